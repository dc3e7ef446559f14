"""Recipe domain models."""

from dataclasses import dataclass, field

from meal_planner.domain.profile import finite_number, positive_number

MEAL_TYPES: tuple[str, ...] = ("breakfast", "lunch", "dinner", "snack")


@dataclass(frozen=True)
class MacroTotals:
    """Per-recipe macro totals."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    def to_dict(self) -> dict[str, float]:
        """Return the JSON-compatible payload."""
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
        }


@dataclass(frozen=True)
class RecipeCandidate:
    """A recipe eligible for planning."""

    id: str
    title: str
    category: str
    prep_time_minutes: float | None
    recipe_servings: float
    ingredients: tuple[str, ...]
    macros: MacroTotals = field(default_factory=MacroTotals)
    is_global: bool = False
    description: str = ""
    instructions: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, payload: dict[str, object]) -> "RecipeCandidate":
        """Build a candidate from a stored or posted recipe payload."""
        macros = payload.get("macros")
        macro_data = macros if isinstance(macros, dict) else {}
        return cls(
            id=str(payload.get("id") or payload.get("_id") or ""),
            title=str(payload.get("title") or ""),
            category=str(payload.get("category") or "dinner"),
            prep_time_minutes=finite_number(payload.get("prepTime")),
            recipe_servings=positive_number(payload.get("recipeServings"), 1.0),
            ingredients=_lines(payload.get("ingredients")),
            macros=MacroTotals(
                calories=finite_number(macro_data.get("calories")) or 0.0,
                protein=finite_number(macro_data.get("protein")) or 0.0,
                carbs=finite_number(macro_data.get("carbs")) or 0.0,
                fat=finite_number(macro_data.get("fat")) or 0.0,
            ),
            is_global=bool(payload.get("isGlobal")),
            description=str(payload.get("description") or ""),
            instructions=_lines(payload.get("instructions")),
        )

    def to_compact_dict(self) -> dict[str, object]:
        """Return the short listing sent to the reasoning service."""
        return {
            "id": self.id,
            "title": self.title,
            "category": self.category,
            "prepTime": self.prep_time_minutes,
            "servings": self.recipe_servings or 1,
            "isGlobal": self.is_global,
        }

    def to_catalog_dict(self) -> dict[str, object]:
        """Return the catalog entry stored with a run draft."""
        return {
            "id": self.id,
            "title": self.title,
            "prepTime": self.prep_time_minutes,
            "ingredients": list(self.ingredients),
            "recipeServings": self.recipe_servings or 1,
            "isGlobal": self.is_global,
        }


@dataclass(frozen=True)
class RecipeFields:
    """Validated fields for a recipe that is about to be created."""

    title: str
    description: str
    category: str
    prep_time_minutes: float
    recipe_servings: float
    ingredients: tuple[str, ...]
    instructions: tuple[str, ...]
    macros: MacroTotals

    def to_dict(self) -> dict[str, object]:
        """Return the payload handed to the recipe store."""
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "prepTime": self.prep_time_minutes,
            "recipeServings": self.recipe_servings,
            "ingredients": list(self.ingredients),
            "instructions": list(self.instructions),
            "macros": self.macros.to_dict(),
        }


def _lines(value: object) -> tuple[str, ...]:
    if not isinstance(value, list | tuple):
        return ()
    return tuple(str(item) for item in value if str(item).strip())
