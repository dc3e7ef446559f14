"""Planning profile models and tolerant parsing from stored payloads."""

import math
from dataclasses import dataclass, field
from datetime import datetime

STRICTNESS_LEVELS: tuple[str, ...] = ("flexible", "balanced", "strict")
CADENCE_LEVELS: tuple[str, ...] = ("none", "light", "moderate", "heavy")
TARGET_SOURCES: tuple[str, ...] = ("user", "estimated", "none")
SEXES: tuple[str, ...] = ("female", "male", "other", "unspecified")
ACTIVITY_LEVELS: tuple[str, ...] = (
    "sedentary",
    "light",
    "moderate",
    "active",
    "very_active",
    "unspecified",
)


@dataclass(frozen=True)
class PlanPreferences:
    """Preferences that shape recipe selection and scheduling."""

    allow_generated_recipes: bool = True
    include_global_recipes: bool = True
    include_user_recipes: bool = True
    avoid_repeat_meals: bool = True
    leftovers_preference: str = "moderate"
    batch_cooking_preference: str = "moderate"
    max_cook_time_minutes: float | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, object] | None) -> "PlanPreferences":
        """Build preferences, defaulting anything missing or malformed."""
        data = payload or {}
        return cls(
            allow_generated_recipes=data.get("allowGeneratedRecipes") is not False,
            include_global_recipes=data.get("includeGlobalRecipes") is not False,
            include_user_recipes=data.get("includeUserRecipes") is not False,
            avoid_repeat_meals=data.get("avoidRepeatMeals") is not False,
            leftovers_preference=pick_choice(
                data.get("leftoversPreference"), CADENCE_LEVELS, "moderate"
            ),
            batch_cooking_preference=pick_choice(
                data.get("batchCookingPreference"), CADENCE_LEVELS, "moderate"
            ),
            max_cook_time_minutes=finite_number(data.get("maxCookTimeMinutes")),
        )

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "allowGeneratedRecipes": self.allow_generated_recipes,
            "includeGlobalRecipes": self.include_global_recipes,
            "includeUserRecipes": self.include_user_recipes,
            "avoidRepeatMeals": self.avoid_repeat_meals,
            "leftoversPreference": self.leftovers_preference,
            "batchCookingPreference": self.batch_cooking_preference,
            "maxCookTimeMinutes": self.max_cook_time_minutes,
        }


@dataclass(frozen=True)
class NutritionTargets:
    """Daily nutrition targets and where they came from."""

    source: str = "none"
    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, object] | None) -> "NutritionTargets":
        """Build targets from a stored payload."""
        data = payload or {}
        return cls(
            source=pick_choice(data.get("source"), TARGET_SOURCES, "none"),
            calories=finite_number(data.get("calories")),
            protein=finite_number(data.get("protein")),
            carbs=finite_number(data.get("carbs")),
            fat=finite_number(data.get("fat")),
        )

    def to_dict(self) -> dict[str, object]:
        """Return the JSON-compatible payload."""
        return {
            "source": self.source,
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
        }


@dataclass(frozen=True)
class ProfileMetrics:
    """Body metrics used to estimate nutrition targets."""

    height_cm: float | None = None
    weight_kg: float | None = None
    age: float | None = None
    sex: str = "unspecified"
    activity_level: str = "unspecified"

    @classmethod
    def from_dict(cls, payload: dict[str, object] | None) -> "ProfileMetrics":
        """Build metrics from a stored payload."""
        data = payload or {}
        return cls(
            height_cm=finite_number(data.get("heightCm")),
            weight_kg=finite_number(data.get("weightKg")),
            age=finite_number(data.get("age")),
            sex=pick_choice(data.get("sex"), SEXES, "unspecified"),
            activity_level=pick_choice(
                data.get("activityLevel"), ACTIVITY_LEVELS, "unspecified"
            ),
        )


@dataclass(frozen=True)
class PlanningProfile:
    """A user's dietary profile for a planning run."""

    optimization_goal: str = ""
    strictness: str = "balanced"
    hard_constraints: tuple[str, ...] = ()
    soft_preferences: tuple[str, ...] = ()
    nutrition_targets: NutritionTargets = field(default_factory=NutritionTargets)
    metrics: ProfileMetrics = field(default_factory=ProfileMetrics)
    preferences: PlanPreferences = field(default_factory=PlanPreferences)
    disclaimer_accepted_at: datetime | None = None

    @classmethod
    def from_dict(cls, payload: dict[str, object] | None) -> "PlanningProfile":
        """Build a profile from a stored payload, defaulting malformed fields."""
        data = payload or {}
        return cls(
            optimization_goal=str(data.get("optimizationGoal") or ""),
            strictness=pick_choice(
                data.get("strictness"), STRICTNESS_LEVELS, "balanced"
            ),
            hard_constraints=_string_tuple(data.get("hardConstraints")),
            soft_preferences=_string_tuple(data.get("softPreferences")),
            nutrition_targets=NutritionTargets.from_dict(
                _as_dict(data.get("nutritionTargets"))
            ),
            metrics=ProfileMetrics.from_dict(_as_dict(data.get("profileMetrics"))),
            preferences=PlanPreferences.from_dict(
                _as_dict(data.get("planPreferences"))
            ),
            disclaimer_accepted_at=_parse_datetime(
                data.get("medicalDisclaimerAcceptedAt")
            ),
        )

    def to_prompt_dict(self) -> dict[str, object]:
        """Return the profile summary shared with the reasoning service."""
        return {
            "goal": self.optimization_goal,
            "strictness": self.strictness,
            "hardConstraints": list(self.hard_constraints),
            "softPreferences": list(self.soft_preferences),
            "nutritionTargets": self.nutrition_targets.to_dict(),
            "preferences": self.preferences.to_dict(),
        }


def finite_number(value: object) -> float | None:
    """Return a finite float for numeric-looking input, else None."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value)
        except ValueError:
            return None
    else:
        return None
    return number if math.isfinite(number) else None


def positive_number(value: object, fallback: float) -> float:
    """Return a finite positive number or the fallback."""
    number = finite_number(value)
    if number is not None and number > 0:
        return number
    return fallback


def pick_choice(value: object, allowed: tuple[str, ...], default: str) -> str:
    """Return value when it is one of the allowed strings, else the default."""
    if isinstance(value, str) and value in allowed:
        return value
    return default


def _string_tuple(value: object) -> tuple[str, ...]:
    if not isinstance(value, list | tuple):
        return ()
    return tuple(str(item).strip() for item in value if str(item).strip())


def _as_dict(value: object) -> dict[str, object] | None:
    return value if isinstance(value, dict) else None


def _parse_datetime(value: object) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None
