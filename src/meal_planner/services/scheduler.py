"""Deterministic meal-slot scheduling with batch-cook coverage."""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from meal_planner.domain.plans import CookingSession, MealPlanDay, MealSlot
from meal_planner.domain.recipes import RecipeCandidate

BATCH_DAYS_BY_LEFTOVERS = {"heavy": 5, "moderate": 3, "light": 2}
SERVINGS_BY_LEFTOVERS = {"heavy": 3, "moderate": 2}

MIN_MEAL_SERVINGS = 1
MAX_MEAL_SERVINGS = 4
MIN_BATCH_SERVINGS = 2
MAX_BATCH_SERVINGS = 20


def batch_days_per_cook(leftovers_preference: str) -> int:
    """Number of days one batch-cook session covers."""
    return BATCH_DAYS_BY_LEFTOVERS.get(leftovers_preference, 1)


def default_planned_servings(leftovers_preference: str) -> int:
    """Servings planned per meal before clamping."""
    return SERVINGS_BY_LEFTOVERS.get(leftovers_preference, 1)


def primary_batch_meal_type(meal_types: Sequence[str]) -> str:
    """Meal type that batch-cook sessions feed."""
    if "dinner" in meal_types:
        return "dinner"
    if "lunch" in meal_types:
        return "lunch"
    return meal_types[0] if meal_types else "dinner"


@dataclass
class RecipeRotation:
    """Rotating cursor over the planning pool.

    Holds all mutable selection state for a single schedule so it can be
    inspected and tested without running the rest of the pipeline.
    """

    pool: tuple[RecipeCandidate, ...]
    avoid_repeats: bool = True
    position: int = 0
    previous_by_meal_type: dict[str, str] = field(default_factory=dict)

    def pick(self, meal_type: str, used: set[str]) -> RecipeCandidate | None:
        """Select the next recipe, skipping back-to-back and same-day repeats.

        When every candidate breaks a rule, a second rotation only keeps the
        same-day rule. If the day has already used the whole pool, the recipe
        at the cursor is used anyway so that the slot is never left empty.
        """
        if not self.pool:
            return None
        previous = self.previous_by_meal_type.get(meal_type)
        if not self.avoid_repeats:
            return self._take(lambda _: True)
        candidate = self._take(
            lambda candidate: candidate.id != previous and candidate.id not in used
        )
        if candidate is None:
            candidate = self._take(lambda candidate: candidate.id not in used)
        if candidate is not None:
            return candidate

        fallback = self.pool[self.position % len(self.pool)]
        self.position += 1
        return fallback

    def _take(
        self, accept: Callable[[RecipeCandidate], bool]
    ) -> RecipeCandidate | None:
        size = len(self.pool)
        for offset in range(size):
            index = (self.position + offset) % size
            candidate = self.pool[index]
            if accept(candidate):
                self.position = index + 1
                return candidate
        return None

    def record(self, meal_type: str, recipe_id: str) -> None:
        """Remember the latest recipe served for a meal type."""
        self.previous_by_meal_type[meal_type] = recipe_id


@dataclass(frozen=True)
class BatchWindow:
    """A run of consecutive days fed by one cooking session."""

    start_index: int
    coverage_days: int
    recipe_id: str


@dataclass(frozen=True)
class PlanSchedule:
    """Scheduler output plus the facts the run summary needs."""

    days: tuple[MealPlanDay, ...]
    windows: tuple[BatchWindow, ...]
    batch_cooking_enabled: bool
    batch_days_per_cook: int
    primary_meal_type: str
    intentional_repeat_slots: int


def build_meal_plan_days(  # noqa: PLR0913
    dates: Sequence[str],
    meal_types: Sequence[str],
    pool: Sequence[RecipeCandidate],
    *,
    avoid_repeats: bool,
    planned_servings: int,
    leftovers_preference: str,
) -> PlanSchedule:
    """Assign one recipe per date and meal type, with batch-cook windows."""
    requested = list(dict.fromkeys(meal_types))
    rotation = RecipeRotation(pool=tuple(pool), avoid_repeats=avoid_repeats)
    per_meal = min(
        MAX_MEAL_SERVINGS, max(MIN_MEAL_SERVINGS, int(planned_servings or 1))
    )
    days_per_cook = batch_days_per_cook(leftovers_preference)
    primary = primary_batch_meal_type(requested)
    batch_enabled = days_per_cook > 1 and bool(requested) and bool(pool)

    sessions_by_date: dict[str, list[CookingSession]] = {d: [] for d in dates}
    batch_by_date: dict[str, tuple[str, str]] = {}
    windows: list[BatchWindow] = []
    repeat_slots = 0

    if batch_enabled:
        used_for_batch: set[str] = set()
        for start in range(0, len(dates), days_per_cook):
            recipe = rotation.pick(primary, used_for_batch)
            if recipe is None:
                continue
            used_for_batch.add(recipe.id)
            rotation.record(primary, recipe.id)

            coverage = min(days_per_cook, len(dates) - start)
            servings = min(
                MAX_BATCH_SERVINGS, max(MIN_BATCH_SERVINGS, coverage * per_meal)
            )
            sessions_by_date[dates[start]].append(
                CookingSession(
                    recipe_id=recipe.id,
                    servings=servings,
                    notes=f"Batch cook for {coverage} {primary} meals",
                )
            )
            for offset in range(coverage):
                source = "fresh" if offset == 0 else "leftovers"
                batch_by_date[dates[start + offset]] = (recipe.id, source)
            windows.append(BatchWindow(start, coverage, recipe.id))
            repeat_slots += coverage - 1

    days: list[MealPlanDay] = []
    for current in dates:
        used_today: set[str] = set()
        if current in batch_by_date:
            used_today.add(batch_by_date[current][0])
        meals: list[MealSlot] = []
        for meal_type in requested:
            if meal_type == primary and current in batch_by_date:
                recipe_id, source = batch_by_date[current]
                meals.append(
                    MealSlot(
                        meal_type=meal_type,
                        recipe_id=recipe_id,
                        source=source,
                        planned_servings=per_meal,
                        exclude_from_shopping=True,
                        notes=(
                            "Leftover portion from batch cook"
                            if source == "leftovers"
                            else "Fresh batch-cooked portion"
                        ),
                    )
                )
                continue

            recipe = rotation.pick(meal_type, used_today)
            if recipe is None:
                continue
            used_today.add(recipe.id)
            rotation.record(meal_type, recipe.id)
            meals.append(
                MealSlot(
                    meal_type=meal_type,
                    recipe_id=recipe.id,
                    planned_servings=per_meal,
                    notes="Agent-generated draft",
                )
            )
        days.append(
            MealPlanDay(
                date=current,
                meals=tuple(meals),
                cooking_sessions=tuple(sessions_by_date[current]),
            )
        )

    return PlanSchedule(
        days=tuple(days),
        windows=tuple(windows),
        batch_cooking_enabled=batch_enabled,
        batch_days_per_cook=days_per_cook,
        primary_meal_type=primary,
        intentional_repeat_slots=repeat_slots,
    )
