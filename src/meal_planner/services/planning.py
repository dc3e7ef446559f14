"""Run orchestration for one planning pass."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from meal_planner.domain.directives import PlanningDirectives
from meal_planner.domain.plans import (
    PlanningRunResult,
    RunDraft,
    RunSummary,
    ToolTraceEntry,
)
from meal_planner.domain.profile import STRICTNESS_LEVELS, PlanningProfile
from meal_planner.domain.recipes import MEAL_TYPES, RecipeCandidate
from meal_planner.errors import NoCandidatesError
from meal_planner.services.cooking_schedule import build_cooking_schedule
from meal_planner.services.directives import (
    DirectiveRequest,
    DirectiveResolver,
    MessageRepository,
    infer_meal_types_from_text,
)
from meal_planner.services.meal_plans import MAX_PLAN_DAYS, expand_date_range
from meal_planner.services.nutrition import nutrition_note, resolve_nutrition_targets
from meal_planner.services.recipes import (
    BASELINE_RECIPE,
    RecipeRepository,
    select_candidate_recipes,
)
from meal_planner.services.scheduler import (
    build_meal_plan_days,
    default_planned_servings,
)
from meal_planner.services.shopping import (
    AisleOverrideRepository,
    apply_aisle_overrides,
    build_shopping_list,
)
from meal_planner.services.validation import validate_agent_draft

_logger = logging.getLogger(__name__)

MAX_DIRECTIVE_NOTES = 5
MAX_UNIQUE_RECIPES = 20
REPEAT_PRESSURE_NOTE = (
    "Not enough unique recipes to avoid all repeats; "
    "add more recipes or allow generation for better variety."
)


@dataclass
class PlanningService:
    """Turns a profile, conversation and recipe pool into a run draft."""

    recipe_repository: RecipeRepository
    message_repository: MessageRepository
    resolver: DirectiveResolver
    override_repository: AisleOverrideRepository
    max_plan_days: int = MAX_PLAN_DAYS

    async def run_agent_planning_tools(  # noqa: PLR0913
        self,
        user_id: str,
        run_id: str,
        profile: PlanningProfile,
        date_start: str,
        date_end: str,
        revision_instruction: str | None = None,
    ) -> PlanningRunResult:
        """Execute one full planning pass and return the draft and summary."""
        dates = expand_date_range(date_start, date_end, self.max_plan_days)
        preferences = profile.preferences
        trace: list[ToolTraceEntry] = []

        messages = self.message_repository.list_messages(user_id, run_id)
        trace.append(ToolTraceEntry("get_run_messages", {"count": len(messages)}))

        all_recipes = self.recipe_repository.list_candidates(user_id)
        trace.append(
            ToolTraceEntry("get_candidate_recipes", {"total": len(all_recipes)})
        )

        candidates = select_candidate_recipes(all_recipes, preferences)
        trace.append(ToolTraceEntry("filter_recipes", {"total": len(candidates)}))

        request = DirectiveRequest(
            user_id=user_id,
            profile=profile,
            date_start=date_start,
            date_end=date_end,
            messages=messages,
            candidates=candidates,
            revision_instruction=revision_instruction,
            tool_trace=trace,
        )
        directives = await self.resolver.resolve(request)

        if not candidates and preferences.allow_generated_recipes:
            self._create_fallback_recipe(request)
        if not candidates:
            raise NoCandidatesError()

        fallback_text = "\n".join(m.content for m in messages)
        fallback_text += f"\n{revision_instruction or ''}"
        meal_types = (
            list(directives.meal_types)
            if directives is not None and directives.meal_types
            else infer_meal_types_from_text(fallback_text)
        )
        meal_types = [t for t in dict.fromkeys(meal_types) if t in MEAL_TYPES]
        strictness = (
            directives.strictness
            if directives is not None and directives.strictness in STRICTNESS_LEVELS
            else profile.strictness
        )
        avoid_repeats = preferences.avoid_repeat_meals
        pool = planning_pool(
            candidates,
            directives.selected_recipe_ids if directives is not None else (),
            slot_count=len(dates) * max(1, len(meal_types)),
            avoid_repeats=avoid_repeats,
        )
        trace.append(
            ToolTraceEntry(
                "infer_directives",
                {
                    "via": (
                        "function_calling_llm" if directives is not None else "fallback"
                    ),
                    "mealTypes": list(meal_types),
                    "strictness": strictness,
                    "recipePool": len(pool),
                    "avoidRepeatMeals": avoid_repeats,
                },
            )
        )

        schedule = build_meal_plan_days(
            dates,
            meal_types,
            pool,
            avoid_repeats=avoid_repeats,
            planned_servings=default_planned_servings(preferences.leftovers_preference),
            leftovers_preference=preferences.leftovers_preference,
        )
        trace.append(
            ToolTraceEntry(
                "build_meal_plan",
                {
                    "days": len(schedule.days),
                    "batchCookingEnabled": schedule.batch_cooking_enabled,
                    "intentionalRepeatSlots": schedule.intentional_repeat_slots,
                },
            )
        )

        catalog = {recipe.id: recipe for recipe in pool}
        overrides = self.override_repository.get_overrides(user_id)
        shopping_list = apply_aisle_overrides(
            build_shopping_list(schedule.days, catalog), overrides
        )
        trace.append(
            ToolTraceEntry(
                "build_shopping_list",
                {
                    "itemCount": len(shopping_list.totals),
                    "aisleOverrides": len(overrides),
                },
            )
        )

        validation = validate_agent_draft(profile, catalog.values())
        trace.append(
            ToolTraceEntry(
                "validate_constraints",
                {"pass": validation.passed, "violations": len(validation.violations)},
            )
        )

        cooking_schedule = build_cooking_schedule(
            dates, preferences.batch_cooking_preference
        )
        trace.append(
            ToolTraceEntry(
                "build_cooking_schedule", {"dayCount": len(cooking_schedule)}
            )
        )

        slot_count = len(dates) * max(1, len(meal_types))
        variety_slots = max(0, slot_count - schedule.intentional_repeat_slots)
        notes = _directive_notes(directives)
        if avoid_repeats and len(pool) < variety_slots:
            notes.append(REPEAT_PRESSURE_NOTE)
        if schedule.batch_cooking_enabled:
            notes.append(
                "Batch cooking enabled: one prep can cover up to "
                f"{schedule.batch_days_per_cook} days for {schedule.primary_meal_type}."
            )
        notes.append(nutrition_note(resolve_nutrition_targets(profile)))

        why = (directives.why_this_plan if directives is not None else None) or (
            f"Built a {len(dates)}-day plan with {', '.join(meal_types)} meals "
            f"using {strictness} strictness."
        )

        _logger.info(
            "Planning run %s complete: days=%s pool=%s items=%s violations=%s",
            run_id,
            len(schedule.days),
            len(pool),
            len(shopping_list.totals),
            len(validation.violations),
        )
        return PlanningRunResult(
            output_draft=RunDraft(
                meal_plan_days=schedule.days,
                shopping_list=shopping_list,
                cooking_schedule=tuple(cooking_schedule),
                created_recipes=tuple(
                    {"id": recipe.id, "title": recipe.title}
                    for recipe in request.created_recipes
                ),
                recipe_catalog=tuple(recipe.to_catalog_dict() for recipe in pool),
                validation=validation,
                tool_trace=tuple(trace),
            ),
            summary=RunSummary(
                why_this_plan=why,
                unmet_constraints=validation.violations,
                notes=tuple(notes),
            ),
        )

    def _create_fallback_recipe(self, request: DirectiveRequest) -> None:
        try:
            created = self.recipe_repository.create_recipe(
                request.user_id, BASELINE_RECIPE
            )
        except Exception:
            _logger.exception("Fallback recipe creation failed")
            raise NoCandidatesError() from None
        request.candidates.append(created)
        request.created_recipes.append(created)
        request.tool_trace.append(
            ToolTraceEntry("fallback.create_recipe", {"created": created.title})
        )


def planning_pool(
    candidates: Sequence[RecipeCandidate],
    selected_ids: Sequence[str],
    *,
    slot_count: int,
    avoid_repeats: bool,
) -> list[RecipeCandidate]:
    """Narrow to the selected recipes, topping up for variety when needed."""
    pool = list(candidates)
    if selected_ids:
        wanted = set(selected_ids)
        selected = [recipe for recipe in candidates if recipe.id in wanted]
        if selected:
            pool = selected
    if avoid_repeats:
        desired = min(slot_count, MAX_UNIQUE_RECIPES)
        if len(pool) < desired:
            chosen = {recipe.id for recipe in pool}
            extra = [recipe for recipe in candidates if recipe.id not in chosen]
            pool = (pool + extra)[:desired]
    return pool


def _directive_notes(directives: PlanningDirectives | None) -> list[str]:
    if directives is None:
        return []
    return list(directives.notes[:MAX_DIRECTIVE_NOTES])
