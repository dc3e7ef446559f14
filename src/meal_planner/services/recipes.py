"""Recipe store interface and candidate selection."""

from collections.abc import Iterable
from typing import Protocol

from meal_planner.domain.profile import PlanPreferences, finite_number
from meal_planner.domain.recipes import MacroTotals, RecipeCandidate, RecipeFields


class RecipeRepository(Protocol):
    """Persistence interface for recipes visible to a user."""

    def list_candidates(self, user_id: str) -> list[RecipeCandidate]:
        """Return global recipes plus the user's own recipes."""

    def create_recipe(self, user_id: str, fields: RecipeFields) -> RecipeCandidate:
        """Create a private recipe for the user and return it."""


BASELINE_RECIPE = RecipeFields(
    title="Agent Chicken & Rice Bowl",
    description="Auto-generated recipe based on your profile constraints.",
    category="dinner",
    prep_time_minutes=25,
    recipe_servings=2,
    ingredients=(
        "1 lb chicken breast",
        "2 cups rice",
        "2 cups broccoli",
        "1 tbsp olive oil",
        "1 tsp garlic powder",
    ),
    instructions=(
        "Cook rice.",
        "Cook seasoned chicken.",
        "Steam broccoli.",
        "Assemble and portion.",
    ),
    macros=MacroTotals(calories=640, protein=48, carbs=60, fat=20),
)


def select_candidate_recipes(
    recipes: Iterable[RecipeCandidate], preferences: PlanPreferences
) -> list[RecipeCandidate]:
    """Filter the recipe pool by ownership flags and the cook-time ceiling."""
    ceiling = finite_number(preferences.max_cook_time_minutes)
    selected: list[RecipeCandidate] = []
    for recipe in recipes:
        if recipe.is_global and not preferences.include_global_recipes:
            continue
        if not recipe.is_global and not preferences.include_user_recipes:
            continue
        if (
            ceiling is not None
            and ceiling > 0
            and recipe.prep_time_minutes is not None
            and recipe.prep_time_minutes > ceiling
        ):
            continue
        selected.append(recipe)
    return selected
