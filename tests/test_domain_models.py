"""Tests for domain payload parsing and serialization."""

from meal_planner.domain.directives import CreateRecipeArguments, PlanningDirectives
from meal_planner.domain.plans import (
    CookingSession,
    MealPlanDay,
    MealSlot,
    RunSummary,
    ToolTraceEntry,
)
from meal_planner.domain.profile import PlanningProfile


def test_profile_from_dict_defaults_malformed_fields() -> None:
    profile = PlanningProfile.from_dict(
        {
            "optimizationGoal": "Lose fat",
            "strictness": "extreme",
            "hardConstraints": ["no pork", " ", 5],
            "nutritionTargets": {"source": "user", "calories": "2100", "fat": "x"},
            "profileMetrics": {"weightKg": 70, "sex": "robot"},
            "planPreferences": {
                "avoidRepeatMeals": False,
                "leftoversPreference": "heavy",
                "batchCookingPreference": "sometimes",
                "maxCookTimeMinutes": float("inf"),
            },
            "medicalDisclaimerAcceptedAt": "2025-01-02T03:04:05Z",
        }
    )

    assert profile.strictness == "balanced"
    assert profile.hard_constraints == ("no pork", "5")
    assert profile.nutrition_targets.calories == 2100
    assert profile.nutrition_targets.fat is None
    assert profile.metrics.sex == "unspecified"
    assert profile.preferences.avoid_repeat_meals is False
    assert profile.preferences.include_global_recipes is True
    assert profile.preferences.leftovers_preference == "heavy"
    assert profile.preferences.batch_cooking_preference == "moderate"
    assert profile.preferences.max_cook_time_minutes is None
    assert profile.disclaimer_accepted_at is not None
    assert profile.disclaimer_accepted_at.year == 2025


def test_empty_profile_payload() -> None:
    profile = PlanningProfile.from_dict(None)

    assert profile == PlanningProfile()
    assert profile.disclaimer_accepted_at is None
    assert profile.to_prompt_dict()["strictness"] == "balanced"


def test_meal_plan_day_round_trips_through_payload() -> None:
    day = MealPlanDay(
        date="2025-01-06",
        meals=(
            MealSlot(
                "dinner",
                "r1",
                source="leftovers",
                planned_servings=2,
                exclude_from_shopping=True,
                notes="Leftover portion from batch cook",
            ),
        ),
        cooking_sessions=(CookingSession("r1", servings=6, notes="Batch"),),
    )

    payload = day.to_dict()

    assert payload["meals"][0]["type"] == "dinner"
    assert payload["meals"][0]["excludeFromShopping"] is True
    assert payload["cookingSessions"][0]["plannedServings"] == 6
    assert MealPlanDay.from_dict(payload) == day


def test_meal_slot_from_dict_clamps_bad_values() -> None:
    slot = MealSlot.from_dict(
        {"type": "lunch", "recipe": "r1", "source": "takeout", "plannedServings": 0}
    )

    assert slot.source == "fresh"
    assert slot.planned_servings == 1
    assert slot.exclude_from_shopping is False


def test_fractional_servings_survive_loading() -> None:
    slot = MealSlot.from_dict({"type": "lunch", "recipe": "r1", "plannedServings": 2.5})
    half = MealSlot.from_dict({"type": "lunch", "recipe": "r1", "plannedServings": "0.5"})
    session = CookingSession.from_dict({"recipe": "r1", "servings": 1.5})

    assert slot.planned_servings == 2.5
    assert half.planned_servings == 0.5
    assert session.servings == 1.5
    assert session.to_dict()["plannedServings"] == 1.5


def test_trace_and_summary_payloads() -> None:
    entry = ToolTraceEntry("filter_recipes", {"total": 3})
    summary = RunSummary("Because", ("bad",), ("note",))

    assert entry.to_dict() == {"tool": "filter_recipes", "total": 3}
    assert summary.to_dict() == {
        "whyThisPlan": "Because",
        "unmetConstraints": ["bad"],
        "notes": ["note"],
    }


def test_directives_filter_unknown_values() -> None:
    directives = PlanningDirectives.model_validate(
        {
            "mealTypes": ["dinner", "brunch", "dinner", "lunch"],
            "selectedRecipeIds": [1, "r2"],
            "strictness": "loose",
            "notes": ["Keep it quick", "", 7],
            "whyThisPlan": "  ",
        }
    )

    assert directives.meal_types == ["dinner", "lunch"]
    assert directives.selected_recipe_ids == ["1", "r2"]
    assert directives.strictness is None
    assert directives.notes == ["Keep it quick", "7"]
    assert directives.why_this_plan is None


def test_directives_tolerate_wrong_types() -> None:
    directives = PlanningDirectives.model_validate(
        {"mealTypes": "dinner", "selectedRecipeIds": None, "notes": "text"}
    )

    assert directives.meal_types == []
    assert directives.selected_recipe_ids == []
    assert directives.notes == []


def test_create_recipe_arguments_are_coerced() -> None:
    arguments = CreateRecipeArguments.model_validate(
        {
            "title": "T" * 150,
            "category": "brunch",
            "prepTime": -5,
            "recipeServings": "abc",
            "ingredients": [" 1 cup oats ", "", None],
            "instructions": "stir",
            "macros": {"calories": 300, "protein": "20", "carbs": None},
        }
    )

    fields = arguments.to_fields()

    assert len(fields.title) == 100
    assert fields.description == "Generated by agent"
    assert fields.category == "lunch"
    assert fields.prep_time_minutes == 1
    assert fields.recipe_servings == 2
    assert fields.ingredients == ("1 cup oats",)
    assert fields.instructions == ()
    assert fields.macros.protein == 20
    assert fields.macros.carbs == 0
