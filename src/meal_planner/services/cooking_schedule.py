"""Coarse daily cooking task lists."""

from collections.abc import Sequence

from meal_planner.domain.plans import CookingScheduleDay

BATCH_TASKS = ("Batch cook proteins", "Prep vegetables", "Portion meals")
DAILY_TASKS = ("Cook planned meals", "Prep next-day ingredients")


def batch_day_interval(batch_cooking_preference: str | None) -> int:
    """Every how many days a batch-cook day falls."""
    if batch_cooking_preference == "heavy":
        return 2
    if batch_cooking_preference == "moderate":
        return 3
    return 5


def build_cooking_schedule(
    dates: Sequence[str], batch_cooking_preference: str | None
) -> list[CookingScheduleDay]:
    """Label each date as a batch-cook day or a regular cooking day."""
    interval = batch_day_interval(batch_cooking_preference)
    schedule: list[CookingScheduleDay] = []
    for index, current in enumerate(dates):
        batch_day = index % interval == 0
        schedule.append(
            CookingScheduleDay(
                date=current,
                time_slot="afternoon" if batch_day else "evening",
                tasks=BATCH_TASKS if batch_day else DAILY_TASKS,
            )
        )
    return schedule
