"""Supabase repository for applied meal plan days."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from meal_planner.domain.plans import MealPlanDay
from meal_planner.services.meal_plans import MealPlanRepository


@dataclass
class SupabaseMealPlanRepository(MealPlanRepository):
    """Supabase implementation for meal plans, one row per user and date."""

    client: Client

    def list_days(self, user_id: str, start: str, end: str) -> list[MealPlanDay]:
        """Return plan days between start and end inclusive."""
        response = (
            self.client.table("meal_plans")
            .select("date,meals,cooking_sessions")
            .eq("user_id", user_id)
            .gte("date", start)
            .lte("date", end)
            .order("date")
            .execute()
        )
        return [
            MealPlanDay.from_dict(
                {
                    "date": row.get("date"),
                    "meals": row.get("meals"),
                    "cookingSessions": row.get("cooking_sessions"),
                }
            )
            for row in response.data or []
        ]

    def save_day(self, user_id: str, day: MealPlanDay) -> None:
        """Replace the stored plan for the day's date."""
        payload = day.to_dict()
        self.client.table("meal_plans").upsert(
            {
                "user_id": user_id,
                "date": day.date,
                "meals": payload["meals"],
                "cooking_sessions": payload["cookingSessions"],
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="user_id,date",
        ).execute()
