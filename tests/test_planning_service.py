"""Tests for the planning run orchestrator."""

import asyncio
import json

import pytest

from meal_planner.domain.conversation import ConversationMessage
from meal_planner.domain.profile import PlanningProfile
from meal_planner.errors import InvalidDateRangeError, NoCandidatesError
from meal_planner.services.directives import (
    DirectiveResolver,
    ReasoningResponse,
    ToolCall,
)
from meal_planner.services.planning import (
    REPEAT_PRESSURE_NOTE,
    PlanningService,
    planning_pool,
)
from tests.conftest import (
    InMemoryAisleOverrideRepository,
    InMemoryMessageRepository,
    InMemoryRecipeRepository,
    ScriptedReasoningClient,
    make_recipe,
)

NO_TARGETS_NOTE = (
    "Nutrition targets unavailable; add profile metrics or explicit targets."
)


def _profile(**overrides: object) -> PlanningProfile:
    payload: dict[str, object] = {
        "planPreferences": {"leftoversPreference": "none"},
        "medicalDisclaimerAcceptedAt": "2025-01-01T00:00:00Z",
    }
    payload.update(overrides)
    return PlanningProfile.from_dict(payload)


def _service(
    recipes: list,
    messages: tuple[str, ...] = (),
    client: ScriptedReasoningClient | None = None,
    overrides: dict[str, str] | None = None,
) -> tuple[PlanningService, InMemoryRecipeRepository]:
    recipe_repository = InMemoryRecipeRepository(recipes=list(recipes))
    message_repository = InMemoryMessageRepository(
        messages={
            "run-1": [ConversationMessage(role="user", content=m) for m in messages]
        }
    )
    service = PlanningService(
        recipe_repository=recipe_repository,
        message_repository=message_repository,
        resolver=DirectiveResolver(
            client=client, recipe_repository=recipe_repository
        ),
        override_repository=InMemoryAisleOverrideRepository(
            overrides={"user-1": dict(overrides or {})}
        ),
    )
    return service, recipe_repository


def _run(service: PlanningService, profile: PlanningProfile, start: str, end: str):
    return asyncio.run(
        service.run_agent_planning_tools("user-1", "run-1", profile, start, end)
    )


def test_heuristic_plan_end_to_end() -> None:
    service, _ = _service(
        [make_recipe("r1"), make_recipe("r2"), make_recipe("r3")],
        messages=("Plan breakfast and dinner please",),
    )

    result = _run(service, _profile(), "2025-01-06", "2025-01-07")

    draft = result.output_draft
    assignments = [
        [(meal.meal_type, meal.recipe_id) for meal in day.meals]
        for day in draft.meal_plan_days
    ]
    assert assignments == [
        [("breakfast", "r1"), ("dinner", "r2")],
        [("breakfast", "r3"), ("dinner", "r1")],
    ]
    assert [entry.tool for entry in draft.tool_trace] == [
        "get_run_messages",
        "get_candidate_recipes",
        "filter_recipes",
        "infer_directives",
        "build_meal_plan",
        "build_shopping_list",
        "validate_constraints",
        "build_cooking_schedule",
    ]
    assert draft.tool_trace[3].details["via"] == "fallback"
    assert draft.validation.passed
    assert [day.date for day in draft.cooking_schedule] == ["2025-01-06", "2025-01-07"]
    assert result.summary.why_this_plan == (
        "Built a 2-day plan with breakfast, dinner meals using balanced strictness."
    )
    assert result.summary.notes == (REPEAT_PRESSURE_NOTE, NO_TARGETS_NOTE)
    assert result.summary.unmet_constraints == ()


def test_single_recipe_scales_into_shopping_totals() -> None:
    service, _ = _service(
        [make_recipe("r1", "Rice Bowl", ingredients=("2 cups rice",), servings=2)]
    )

    result = _run(service, _profile(), "2025-01-06", "2025-01-07")

    shopping = result.output_draft.shopping_list
    assert [meal.meal_type for meal in result.output_draft.meal_plan_days[0].meals] == [
        "lunch",
        "dinner",
    ]
    # 4 slots x 2 cups x (1 planned / 2 base)
    assert len(shopping.totals) == 1
    rice = shopping.totals[0]
    assert rice.key == "rice::cup"
    assert rice.quantity == pytest.approx(4.0)
    assert rice.occurrences == pytest.approx(2.0)
    assert shopping.stats.planned_meals == 4


def test_saved_aisle_overrides_apply_to_the_draft_shopping_list() -> None:
    service, _ = _service(
        [make_recipe("r1", ingredients=("1 cup rice", "1 tsp salt"))],
        overrides={"rice": "Bulk"},
    )

    result = _run(service, _profile(), "2025-01-06", "2025-01-06")

    aisles = {
        item.normalized_name: item.aisle
        for item in result.output_draft.shopping_list.totals
    }
    assert aisles["rice"] == "Bulk"
    assert aisles["salt"] != "Bulk"
    shopping_trace = next(
        entry
        for entry in result.output_draft.tool_trace
        if entry.tool == "build_shopping_list"
    )
    assert shopping_trace.details["aisleOverrides"] == 1


def test_batch_cooking_feeds_shopping_from_the_session() -> None:
    service, _ = _service(
        [make_recipe("r1"), make_recipe("r2"), make_recipe("r3")],
        messages=("Only dinner this week",),
    )
    profile = _profile(planPreferences={"leftoversPreference": "moderate"})

    result = _run(service, profile, "2025-01-06", "2025-01-08")

    days = result.output_draft.meal_plan_days
    assert [day.meals[0].source for day in days] == ["fresh", "leftovers", "leftovers"]
    assert all(day.meals[0].exclude_from_shopping for day in days)
    assert len(days[0].cooking_sessions) == 1
    assert days[0].cooking_sessions[0].servings == 6
    rice = result.output_draft.shopping_list.totals[0]
    assert rice.unit == "cup"
    assert rice.quantity == pytest.approx(3.0)
    assert result.output_draft.shopping_list.stats.cooking_sessions == 1
    assert result.output_draft.shopping_list.stats.planned_meals == 0
    assert (
        "Batch cooking enabled: one prep can cover up to 3 days for dinner."
        in result.summary.notes
    )
    assert REPEAT_PRESSURE_NOTE not in result.summary.notes


def test_directives_from_reasoning_service_drive_the_plan() -> None:
    client = ScriptedReasoningClient(
        responses=[
            ReasoningResponse(
                content=json.dumps(
                    {
                        "mealTypes": ["dinner"],
                        "selectedRecipeIds": ["r2"],
                        "strictness": "strict",
                        "notes": ["High protein"],
                        "whyThisPlan": "Protein focus.",
                    }
                )
            )
        ]
    )
    service, _ = _service(
        [make_recipe("r1"), make_recipe("r2"), make_recipe("r3")], client=client
    )

    result = _run(service, _profile(), "2025-01-06", "2025-01-07")

    draft = result.output_draft
    assert [day.meals[0].recipe_id for day in draft.meal_plan_days] == ["r2", "r1"]
    assert [entry["id"] for entry in draft.recipe_catalog] == ["r2", "r1"]
    infer = draft.tool_trace[3]
    assert infer.details["via"] == "function_calling_llm"
    assert infer.details["strictness"] == "strict"
    assert result.summary.why_this_plan == "Protein focus."
    assert result.summary.notes == ("High protein", NO_TARGETS_NOTE)


def test_recipe_created_by_tool_call_is_planned_and_reported() -> None:
    arguments = json.dumps(
        {
            "title": "Tofu Stir Fry",
            "category": "dinner",
            "prepTime": 20,
            "recipeServings": 2,
            "ingredients": ["1 lb tofu"],
        }
    )
    client = ScriptedReasoningClient(
        responses=[
            ReasoningResponse(
                content="",
                tool_calls=(ToolCall("call-1", "create_recipe", arguments),),
            ),
            ReasoningResponse(
                content=json.dumps(
                    {"mealTypes": ["dinner"], "selectedRecipeIds": ["created-1"]}
                )
            ),
        ]
    )
    service, _ = _service([], client=client)

    result = _run(service, _profile(), "2025-01-06", "2025-01-06")

    draft = result.output_draft
    assert draft.created_recipes == ({"id": "created-1", "title": "Tofu Stir Fry"},)
    assert draft.meal_plan_days[0].meals[0].recipe_id == "created-1"
    assert draft.tool_trace[3].tool == "function.create_recipe"
    assert draft.shopping_list.totals[0].name == "Tofu"


def test_created_recipes_survive_a_failed_resolution() -> None:
    arguments = json.dumps({"title": "Lentil Soup", "ingredients": ["1 cup lentils"]})
    client = ScriptedReasoningClient(
        responses=[
            ReasoningResponse(
                content="",
                tool_calls=(ToolCall("call-1", "create_recipe", arguments),),
            ),
            RuntimeError("service down"),
        ]
    )
    service, repository = _service([], client=client)

    result = _run(service, _profile(), "2025-01-06", "2025-01-06")

    draft = result.output_draft
    assert draft.created_recipes == ({"id": "created-1", "title": "Lentil Soup"},)
    assert len(repository.created) == 1
    assert draft.tool_trace[4].details["via"] == "fallback"
    assert {meal.recipe_id for meal in draft.meal_plan_days[0].meals} == {"created-1"}


def test_fallback_recipe_is_created_when_no_candidates_remain() -> None:
    service, repository = _service([make_recipe("slow", prep_time=90)])
    profile = _profile(
        planPreferences={"leftoversPreference": "none", "maxCookTimeMinutes": 30}
    )

    result = _run(service, profile, "2025-01-06", "2025-01-06")

    draft = result.output_draft
    assert [fields.title for fields in repository.created] == [
        "Agent Chicken & Rice Bowl"
    ]
    assert draft.created_recipes == (
        {"id": "created-1", "title": "Agent Chicken & Rice Bowl"},
    )
    assert "fallback.create_recipe" in [entry.tool for entry in draft.tool_trace]
    assert [entry["id"] for entry in draft.recipe_catalog] == ["created-1"]


def test_no_candidates_without_generation_fails() -> None:
    service, _ = _service([])
    profile = _profile(
        planPreferences={"leftoversPreference": "none", "allowGeneratedRecipes": False}
    )

    with pytest.raises(NoCandidatesError):
        _run(service, profile, "2025-01-06", "2025-01-06")


def test_failed_fallback_creation_fails_the_run() -> None:
    service, repository = _service([])
    repository.fail_create = True

    with pytest.raises(NoCandidatesError, match="No candidate recipes available"):
        _run(service, _profile(), "2025-01-06", "2025-01-06")


def test_empty_date_range_fails() -> None:
    service, _ = _service([make_recipe("r1")])

    with pytest.raises(InvalidDateRangeError):
        _run(service, _profile(), "2025-01-08", "2025-01-06")


def test_long_ranges_are_capped() -> None:
    service, _ = _service([make_recipe("r1")])

    result = _run(service, _profile(), "2025-01-01", "2025-03-01")

    assert len(result.output_draft.meal_plan_days) == 35


def test_hard_constraint_violation_is_reported_not_raised() -> None:
    service, _ = _service(
        [make_recipe("r1", "Satay", ingredients=("1/4 cup peanuts",))]
    )
    profile = _profile(hardConstraints=["no peanuts"])

    result = _run(service, profile, "2025-01-06", "2025-01-06")

    assert result.summary.unmet_constraints == (
        'Hard constraint violation: "peanuts" found in recipe "Satay".',
    )
    assert result.output_draft.validation.to_dict()["hardConstraintPass"] is False


def test_user_nutrition_targets_note() -> None:
    service, _ = _service([make_recipe("r1"), make_recipe("r2")])
    profile = _profile(nutritionTargets={"source": "user", "calories": 2100})

    result = _run(service, profile, "2025-01-06", "2025-01-06")

    assert result.summary.notes[-1] == "Nutrition target source: user (2100 kcal)"


def test_planning_pool_narrows_and_tops_up() -> None:
    candidates = [make_recipe(f"r{i}") for i in range(1, 5)]

    narrowed = planning_pool(candidates, ["r3"], slot_count=2, avoid_repeats=True)
    unchanged = planning_pool(candidates, ["missing"], slot_count=2, avoid_repeats=False)
    only_selected = planning_pool(candidates, ["r3"], slot_count=4, avoid_repeats=False)

    assert [recipe.id for recipe in narrowed] == ["r3", "r1"]
    assert [recipe.id for recipe in unchanged] == ["r1", "r2", "r3", "r4"]
    assert [recipe.id for recipe in only_selected] == ["r3"]
