"""Shared test fixtures."""

from dataclasses import dataclass, field, replace

import pytest

from meal_planner.config import Settings
from meal_planner.containers import AppContainer
from meal_planner.domain.conversation import ConversationMessage
from meal_planner.domain.plans import AgentRunRecord, MealPlanDay
from meal_planner.domain.profile import PlanningProfile
from meal_planner.domain.recipes import RecipeCandidate, RecipeFields
from meal_planner.services.directives import (
    DirectiveResolver,
    MessageRepository,
    ReasoningClient,
    ReasoningResponse,
)
from meal_planner.services.meal_plans import MealPlanRepository
from meal_planner.services.planning import PlanningService
from meal_planner.services.rate_limit import InMemoryRateLimiter
from meal_planner.services.recipes import RecipeRepository
from meal_planner.services.runs import (
    AgentRunRepository,
    AgentRunService,
    ProfileRepository,
)
from meal_planner.services.shopping import AisleOverrideRepository, ShoppingService


def make_recipe(  # noqa: PLR0913
    recipe_id: str,
    title: str | None = None,
    *,
    ingredients: tuple[str, ...] = ("1 cup rice",),
    servings: float = 2,
    prep_time: float | None = 20,
    category: str = "dinner",
    is_global: bool = False,
) -> RecipeCandidate:
    return RecipeCandidate(
        id=recipe_id,
        title=title or f"Recipe {recipe_id}",
        category=category,
        prep_time_minutes=prep_time,
        recipe_servings=servings,
        ingredients=ingredients,
        is_global=is_global,
    )


@dataclass
class InMemoryRecipeRepository(RecipeRepository):
    """In-memory recipe repository for tests."""

    recipes: list[RecipeCandidate] = field(default_factory=list)
    created: list[RecipeFields] = field(default_factory=list)
    fail_create: bool = False

    def list_candidates(self, user_id: str) -> list[RecipeCandidate]:
        return list(self.recipes)

    def create_recipe(self, user_id: str, fields: RecipeFields) -> RecipeCandidate:
        if self.fail_create:
            raise RuntimeError("recipe store unavailable")
        self.created.append(fields)
        recipe = RecipeCandidate(
            id=f"created-{len(self.created)}",
            title=fields.title,
            category=fields.category,
            prep_time_minutes=fields.prep_time_minutes,
            recipe_servings=fields.recipe_servings,
            ingredients=fields.ingredients,
            macros=fields.macros,
            description=fields.description,
            instructions=fields.instructions,
        )
        self.recipes.append(recipe)
        return recipe


@dataclass
class InMemoryMessageRepository(MessageRepository):
    """In-memory conversation store for tests."""

    messages: dict[str, list[ConversationMessage]] = field(default_factory=dict)

    def list_messages(self, user_id: str, run_id: str) -> list[ConversationMessage]:
        return list(self.messages.get(run_id, []))

    def add_message(self, user_id: str, run_id: str, role: str, content: str) -> None:
        self.messages.setdefault(run_id, []).append(
            ConversationMessage(role=role, content=content)
        )


@dataclass
class InMemoryAisleOverrideRepository(AisleOverrideRepository):
    """In-memory aisle override store for tests."""

    overrides: dict[str, dict[str, str]] = field(default_factory=dict)

    def get_overrides(self, user_id: str) -> dict[str, str]:
        return dict(self.overrides.get(user_id, {}))

    def upsert_override(self, user_id: str, normalized_name: str, aisle: str) -> None:
        self.overrides.setdefault(user_id, {})[normalized_name] = aisle


@dataclass
class InMemoryMealPlanRepository(MealPlanRepository):
    """In-memory meal plan store for tests."""

    days: dict[tuple[str, str], MealPlanDay] = field(default_factory=dict)

    def list_days(self, user_id: str, start: str, end: str) -> list[MealPlanDay]:
        return [
            day
            for (owner, date), day in sorted(self.days.items())
            if owner == user_id and start <= date <= end
        ]

    def save_day(self, user_id: str, day: MealPlanDay) -> None:
        self.days[(user_id, day.date)] = day


@dataclass
class InMemoryRunRepository(AgentRunRepository):
    """In-memory run store for tests."""

    runs: dict[str, AgentRunRecord] = field(default_factory=dict)

    def add(self, run: AgentRunRecord) -> None:
        self.runs[run.id] = run

    def get_run(self, user_id: str, run_id: str) -> AgentRunRecord | None:
        run = self.runs.get(run_id)
        if run is None or run.user_id != user_id:
            return None
        return run

    def save_draft(
        self,
        run_id: str,
        output_draft: dict[str, object],
        summary: dict[str, object],
    ) -> None:
        self.runs[run_id] = replace(
            self.runs[run_id],
            status="draft",
            output_draft=output_draft,
            summary=summary,
            error_message="",
        )

    def mark_failed(self, run_id: str, error_message: str) -> None:
        self.runs[run_id] = replace(
            self.runs[run_id], status="failed", error_message=error_message
        )

    def update_status(self, run_id: str, status: str) -> None:
        self.runs[run_id] = replace(self.runs[run_id], status=status)


@dataclass
class InMemoryProfileRepository(ProfileRepository):
    """In-memory profile store for tests."""

    profiles: dict[str, PlanningProfile] = field(default_factory=dict)

    def get_profile(self, user_id: str) -> PlanningProfile:
        return self.profiles.get(user_id, PlanningProfile())


@dataclass
class ScriptedReasoningClient(ReasoningClient):
    """Fake reasoning client that replays scripted turns."""

    responses: list[ReasoningResponse | Exception] = field(default_factory=list)
    calls: list[list[dict[str, object]]] = field(default_factory=list)

    async def complete(
        self,
        *,
        messages: list[dict[str, object]],
        tools: list[dict[str, object]],
    ) -> ReasoningResponse:
        self.calls.append(list(messages))
        if not self.responses:
            raise RuntimeError("no scripted response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="service-key",
        api_token="api-token",
        openai_api_key="openai-key",
    )


@pytest.fixture
def recipe_repository() -> InMemoryRecipeRepository:
    return InMemoryRecipeRepository()


@pytest.fixture
def message_repository() -> InMemoryMessageRepository:
    return InMemoryMessageRepository()


@pytest.fixture
def reasoning_client() -> ScriptedReasoningClient:
    return ScriptedReasoningClient()


@pytest.fixture
def override_repository() -> InMemoryAisleOverrideRepository:
    return InMemoryAisleOverrideRepository()


@pytest.fixture
def planning_service(
    recipe_repository: InMemoryRecipeRepository,
    message_repository: InMemoryMessageRepository,
    override_repository: InMemoryAisleOverrideRepository,
) -> PlanningService:
    return PlanningService(
        recipe_repository=recipe_repository,
        message_repository=message_repository,
        resolver=DirectiveResolver(client=None, recipe_repository=recipe_repository),
        override_repository=override_repository,
    )


@pytest.fixture
def container(
    settings: Settings,
    recipe_repository: InMemoryRecipeRepository,
    message_repository: InMemoryMessageRepository,
    planning_service: PlanningService,
    override_repository: InMemoryAisleOverrideRepository,
) -> AppContainer:
    plan_repository = InMemoryMealPlanRepository()
    run_service = AgentRunService(
        planning_service=planning_service,
        run_repository=InMemoryRunRepository(),
        profile_repository=InMemoryProfileRepository(),
        message_repository=message_repository,
        plan_repository=plan_repository,
        rate_limiter=InMemoryRateLimiter(),
    )
    shopping_service = ShoppingService(
        plan_repository=plan_repository,
        recipe_repository=recipe_repository,
        override_repository=override_repository,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        planning_service=planning_service,
        run_service=run_service,
        shopping_service=shopping_service,
        close_resources=close_resources,
    )
