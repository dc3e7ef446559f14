"""Daily nutrition target resolution."""

import math

from meal_planner.domain.profile import (
    NutritionTargets,
    PlanningProfile,
    ProfileMetrics,
)

ACTIVITY_MULTIPLIERS = {
    "sedentary": 1.2,
    "light": 1.375,
    "moderate": 1.55,
    "active": 1.725,
    "very_active": 1.9,
    "unspecified": 1.4,
}
MIN_CALORIES = 1200


def estimate_nutrition_targets(metrics: ProfileMetrics) -> NutritionTargets | None:
    """Estimate maintenance targets with the Mifflin-St Jeor equation.

    Returns None unless weight, height and age are all present and non-zero.
    Macros are split 30/40/30 across protein, carbs and fat.
    """
    if not metrics.weight_kg or not metrics.height_cm or not metrics.age:
        return None
    sex_factor = -161 if metrics.sex == "female" else 5
    bmr = (
        10 * metrics.weight_kg
        + 6.25 * metrics.height_cm
        - 5 * metrics.age
        + sex_factor
    )
    multiplier = ACTIVITY_MULTIPLIERS.get(metrics.activity_level, 1.4)
    calories = max(MIN_CALORIES, _round_half_up(bmr * multiplier))
    return NutritionTargets(
        source="estimated",
        calories=calories,
        protein=_round_half_up(calories * 0.3 / 4),
        carbs=_round_half_up(calories * 0.4 / 4),
        fat=_round_half_up(calories * 0.3 / 9),
    )


def resolve_nutrition_targets(profile: PlanningProfile) -> NutritionTargets | None:
    """Use explicit user targets when present, else an estimate from metrics."""
    if profile.nutrition_targets.source == "user":
        return profile.nutrition_targets
    return estimate_nutrition_targets(profile.metrics)


def nutrition_note(targets: NutritionTargets | None) -> str:
    """Provenance note for the run summary."""
    if targets is None:
        return "Nutrition targets unavailable; add profile metrics or explicit targets."
    note = f"Nutrition target source: {targets.source}"
    if targets.calories:
        note += f" ({_format_number(targets.calories)} kcal)"
    return note


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)
