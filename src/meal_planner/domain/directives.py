"""Structured payloads exchanged with the reasoning service."""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from meal_planner.domain.profile import STRICTNESS_LEVELS, finite_number
from meal_planner.domain.recipes import MEAL_TYPES, MacroTotals, RecipeFields


class PlanningDirectives(BaseModel):
    """Terminal directive payload produced by the reasoning service."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    meal_types: list[str] = Field(default_factory=list, alias="mealTypes")
    selected_recipe_ids: list[str] = Field(
        default_factory=list, alias="selectedRecipeIds"
    )
    strictness: str | None = None
    notes: list[str] = Field(default_factory=list)
    why_this_plan: str | None = Field(default=None, alias="whyThisPlan")

    @field_validator("meal_types", mode="before")
    @classmethod
    def _known_meal_types(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        seen: list[str] = []
        for item in value:
            if item in MEAL_TYPES and item not in seen:
                seen.append(item)
        return seen

    @field_validator("selected_recipe_ids", mode="before")
    @classmethod
    def _string_ids(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value]

    @field_validator("strictness", mode="before")
    @classmethod
    def _known_strictness(cls, value: object) -> str | None:
        return value if value in STRICTNESS_LEVELS else None

    @field_validator("notes", mode="before")
    @classmethod
    def _string_notes(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        return [str(item) for item in value if str(item).strip()]

    @field_validator("why_this_plan", mode="before")
    @classmethod
    def _optional_text(cls, value: object) -> str | None:
        if value is None:
            return None
        text = str(value).strip()
        return text or None


class MacroArguments(BaseModel):
    """Macro block of a create_recipe tool call."""

    model_config = ConfigDict(extra="ignore")

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    @field_validator("calories", "protein", "carbs", "fat", mode="before")
    @classmethod
    def _number_or_zero(cls, value: object) -> float:
        return finite_number(value) or 0.0


class CreateRecipeArguments(BaseModel):
    """Arguments of a create_recipe tool call, coerced to safe values."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    title: str = "Agent Recipe"
    description: str = "Generated by agent"
    category: str = "lunch"
    prep_time: float = Field(default=25.0, alias="prepTime")
    recipe_servings: float = Field(default=2.0, alias="recipeServings")
    ingredients: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)
    macros: MacroArguments = Field(default_factory=MacroArguments)

    @field_validator("title", mode="before")
    @classmethod
    def _title(cls, value: object) -> str:
        return (str(value) if value else "Agent Recipe")[:100]

    @field_validator("description", mode="before")
    @classmethod
    def _description(cls, value: object) -> str:
        return (str(value) if value else "Generated by agent")[:500]

    @field_validator("category", mode="before")
    @classmethod
    def _category(cls, value: object) -> str:
        return value if value in MEAL_TYPES else "lunch"

    @field_validator("prep_time", mode="before")
    @classmethod
    def _prep_time(cls, value: object) -> float:
        number = finite_number(value)
        return max(1.0, number) if number is not None else 25.0

    @field_validator("recipe_servings", mode="before")
    @classmethod
    def _servings(cls, value: object) -> float:
        number = finite_number(value)
        return max(1.0, number) if number is not None else 2.0

    @field_validator("ingredients", "instructions", mode="before")
    @classmethod
    def _lines(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        return [
            str(item).strip()
            for item in value
            if item is not None and str(item).strip()
        ]

    @field_validator("macros", mode="before")
    @classmethod
    def _macros(cls, value: object) -> object:
        return value if isinstance(value, dict) else {}

    def to_fields(self) -> RecipeFields:
        """Convert validated arguments into recipe creation fields."""
        return RecipeFields(
            title=self.title,
            description=self.description,
            category=self.category,
            prep_time_minutes=self.prep_time,
            recipe_servings=self.recipe_servings,
            ingredients=tuple(self.ingredients),
            instructions=tuple(self.instructions),
            macros=MacroTotals(
                calories=self.macros.calories,
                protein=self.macros.protein,
                carbs=self.macros.carbs,
                fat=self.macros.fat,
            ),
        )
