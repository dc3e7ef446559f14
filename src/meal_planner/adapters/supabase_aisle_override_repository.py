"""Supabase repository for per-user ingredient aisle overrides."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from meal_planner.services.shopping import AisleOverrideRepository


@dataclass
class SupabaseAisleOverrideRepository(AisleOverrideRepository):
    """Supabase implementation for aisle overrides."""

    client: Client

    def get_overrides(self, user_id: str) -> dict[str, str]:
        """Return the user's overrides keyed by normalized ingredient name."""
        response = (
            self.client.table("ingredient_preferences")
            .select("normalized_name,aisle")
            .eq("user_id", user_id)
            .execute()
        )
        overrides: dict[str, str] = {}
        for row in response.data or []:
            name = row.get("normalized_name")
            aisle = row.get("aisle")
            if name and aisle:
                overrides[str(name)] = str(aisle)
        return overrides

    def upsert_override(self, user_id: str, normalized_name: str, aisle: str) -> None:
        """Insert or replace the aisle for one ingredient."""
        self.client.table("ingredient_preferences").upsert(
            {
                "user_id": user_id,
                "normalized_name": normalized_name,
                "aisle": aisle,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id,normalized_name",
        ).execute()
