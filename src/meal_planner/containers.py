"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from meal_planner.adapters.openai_reasoning_client import OpenAIReasoningClient
from meal_planner.adapters.supabase_aisle_override_repository import (
    SupabaseAisleOverrideRepository,
)
from meal_planner.adapters.supabase_meal_plan_repository import (
    SupabaseMealPlanRepository,
)
from meal_planner.adapters.supabase_message_repository import SupabaseMessageRepository
from meal_planner.adapters.supabase_profile_repository import SupabaseProfileRepository
from meal_planner.adapters.supabase_recipe_repository import SupabaseRecipeRepository
from meal_planner.adapters.supabase_run_repository import SupabaseRunRepository
from meal_planner.config import Settings
from meal_planner.services.directives import DirectiveResolver
from meal_planner.services.planning import PlanningService
from meal_planner.services.rate_limit import InMemoryRateLimiter
from meal_planner.services.runs import AgentRunService
from meal_planner.services.shopping import ShoppingService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    planning_service: PlanningService
    run_service: AgentRunService
    shopping_service: ShoppingService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    recipe_repository = SupabaseRecipeRepository(supabase_client)
    message_repository = SupabaseMessageRepository(supabase_client)
    plan_repository = SupabaseMealPlanRepository(supabase_client)
    override_repository = SupabaseAisleOverrideRepository(supabase_client)

    reasoning_client = None
    if resolved_settings.openai_api_key:
        reasoning_client = OpenAIReasoningClient.create(
            resolved_settings.openai_api_key,
            model=resolved_settings.openai_agent_model,
            temperature=resolved_settings.openai_temperature,
            max_completion_tokens=resolved_settings.openai_max_completion_tokens,
        )
    resolver = DirectiveResolver(
        client=reasoning_client,
        recipe_repository=recipe_repository,
        max_round_trips=resolved_settings.agent_max_round_trips,
        candidate_limit=resolved_settings.candidate_listing_limit,
        conversation_window=resolved_settings.conversation_window,
    )
    planning_service = PlanningService(
        recipe_repository=recipe_repository,
        message_repository=message_repository,
        resolver=resolver,
        override_repository=override_repository,
        max_plan_days=resolved_settings.max_plan_days,
    )
    run_service = AgentRunService(
        planning_service=planning_service,
        run_repository=SupabaseRunRepository(supabase_client),
        profile_repository=SupabaseProfileRepository(supabase_client),
        message_repository=message_repository,
        plan_repository=plan_repository,
        rate_limiter=InMemoryRateLimiter(),
        rate_limit=resolved_settings.generate_rate_limit,
        rate_limit_window_seconds=resolved_settings.generate_rate_window_seconds,
    )
    shopping_service = ShoppingService(
        plan_repository=plan_repository,
        recipe_repository=recipe_repository,
        override_repository=override_repository,
    )

    async def close_resources() -> None:
        if reasoning_client is not None:
            await reasoning_client.client.close()

    return AppContainer(
        settings=resolved_settings,
        planning_service=planning_service,
        run_service=run_service,
        shopping_service=shopping_service,
        close_resources=close_resources,
    )
