"""Request bodies for the HTTP API."""

from pydantic import BaseModel, ConfigDict, Field


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ShoppingListRequest(_CamelModel):
    """Build a shopping list from stored plan days."""

    start: str
    end: str
    include_meals: bool = Field(default=True, alias="includeMeals")
    include_cooking_sessions: bool = Field(
        default=True, alias="includeCookingSessions"
    )


class ShoppingPreviewRequest(_CamelModel):
    """Build a shopping list from posted days and recipes."""

    days: list[dict[str, object]] = Field(default_factory=list)
    recipes: list[dict[str, object]] = Field(default_factory=list)
    include_meals: bool = Field(default=True, alias="includeMeals")
    include_cooking_sessions: bool = Field(
        default=True, alias="includeCookingSessions"
    )


class AisleOverrideRequest(_CamelModel):
    """Set the aisle for one normalized ingredient name."""

    normalized_name: str = Field(alias="normalizedName")
    aisle: str | None = None


class ValidateRequest(_CamelModel):
    """Validate a recipe catalog against a profile."""

    profile: dict[str, object] = Field(default_factory=dict)
    recipe_catalog: list[dict[str, object]] = Field(
        default_factory=list, alias="recipeCatalog"
    )


class ReviseRequest(_CamelModel):
    """Regenerate a run draft with a revision instruction."""

    instruction: str = ""
