"""Meal plan persistence interface and date range helpers."""

from datetime import date, timedelta
from typing import Protocol

from meal_planner.domain.plans import MealPlanDay
from meal_planner.errors import InvalidDateRangeError

MAX_PLAN_DAYS = 35


class MealPlanRepository(Protocol):
    """Persistence interface for applied meal plan days."""

    def list_days(self, user_id: str, start: str, end: str) -> list[MealPlanDay]:
        """Return stored plan days within an inclusive date range."""

    def save_day(self, user_id: str, day: MealPlanDay) -> None:
        """Replace the stored plan for one date."""


def expand_date_range(start: str, end: str, max_days: int = MAX_PLAN_DAYS) -> list[str]:
    """Return inclusive ISO dates from start to end, capped at max_days."""
    try:
        cursor = date.fromisoformat(str(start))
        last = date.fromisoformat(str(end))
    except ValueError as exc:
        raise InvalidDateRangeError(f"Invalid date range: {start} to {end}") from exc

    days: list[str] = []
    while cursor <= last and len(days) < max_days:
        days.append(cursor.isoformat())
        cursor += timedelta(days=1)
    if not days:
        raise InvalidDateRangeError(f"Empty date range: {start} to {end}")
    return days
