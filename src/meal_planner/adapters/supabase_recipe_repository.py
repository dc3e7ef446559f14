"""Supabase repository for recipes."""

from dataclasses import dataclass

from supabase import Client

from meal_planner.domain.recipes import RecipeCandidate, RecipeFields
from meal_planner.services.recipes import RecipeRepository


@dataclass
class SupabaseRecipeRepository(RecipeRepository):
    """Supabase implementation for global and user recipes."""

    client: Client

    def list_candidates(self, user_id: str) -> list[RecipeCandidate]:
        """Return global recipes plus recipes owned by the user."""
        response = (
            self.client.table("recipes")
            .select("*")
            .or_(f"is_global.eq.true,user_id.eq.{user_id}")
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_recipe(row) for row in response.data or []]

    def create_recipe(self, user_id: str, fields: RecipeFields) -> RecipeCandidate:
        """Insert a private recipe and return it."""
        response = (
            self.client.table("recipes")
            .insert(
                {
                    "user_id": user_id,
                    "title": fields.title,
                    "description": fields.description,
                    "category": fields.category,
                    "prep_time": fields.prep_time_minutes,
                    "recipe_servings": fields.recipe_servings,
                    "ingredients": list(fields.ingredients),
                    "instructions": list(fields.instructions),
                    "macros": fields.macros.to_dict(),
                    "is_global": False,
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create recipe")
        return _parse_recipe(response.data[0])


def _parse_recipe(row: dict[str, object]) -> RecipeCandidate:
    return RecipeCandidate.from_dict(
        {
            "id": row.get("id"),
            "title": row.get("title"),
            "category": row.get("category"),
            "prepTime": row.get("prep_time"),
            "recipeServings": row.get("recipe_servings"),
            "ingredients": row.get("ingredients"),
            "instructions": row.get("instructions"),
            "macros": row.get("macros"),
            "description": row.get("description"),
            "isGlobal": row.get("is_global"),
        }
    )
