"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from meal_planner.api.auth import current_user_id, require_api_token
from meal_planner.api.schemas import (
    AisleOverrideRequest,
    ReviseRequest,
    ShoppingListRequest,
    ShoppingPreviewRequest,
    ValidateRequest,
)
from meal_planner.app_logging import configure_logging
from meal_planner.config import parse_date_range
from meal_planner.containers import AppContainer
from meal_planner.domain.plans import AgentRunRecord, MealPlanDay
from meal_planner.domain.profile import PlanningProfile
from meal_planner.domain.recipes import RecipeCandidate
from meal_planner.errors import (
    NoCandidatesError,
    PlanningError,
    RateLimitExceededError,
    RunNotFoundError,
    RunStateError,
)
from meal_planner.services.shopping import apply_aisle_overrides, build_shopping_list
from meal_planner.services.validation import validate_agent_draft


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    authed = [Depends(require_api_token)]

    @app.exception_handler(PlanningError)
    async def planning_error_handler(
        _request: Request, exc: PlanningError
    ) -> JSONResponse:
        code, headers, extra = _error_response(exc)
        return JSONResponse(
            status_code=code,
            content={"success": False, "message": str(exc), **extra},
            headers=headers,
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/shopping-list", dependencies=authed)
    async def shopping_list(
        body: ShoppingListRequest,
        request: Request,
        user_id: str = Depends(current_user_id),
    ) -> dict[str, object]:
        """Build the shopping list for stored plan days in a date range."""
        state_container: AppContainer = request.app.state.container
        start, end = parse_date_range(body.start, body.end)
        signature, result = state_container.shopping_service.build_for_user(
            user_id,
            start,
            end,
            include_meals=body.include_meals,
            include_cooking_sessions=body.include_cooking_sessions,
        )
        return {"success": True, "signature": signature, "data": result.to_dict()}

    @app.post("/shopping-list/preview", dependencies=authed)
    async def shopping_list_preview(
        body: ShoppingPreviewRequest,
        request: Request,
        user_id: str = Depends(current_user_id),
    ) -> dict[str, object]:
        """Build a shopping list from posted days and recipes."""
        state_container: AppContainer = request.app.state.container
        catalog: dict[str, RecipeCandidate] = {}
        for payload in body.recipes:
            recipe = RecipeCandidate.from_dict(payload)
            catalog[recipe.id] = recipe
        result = build_shopping_list(
            [MealPlanDay.from_dict(day) for day in body.days],
            catalog,
            include_meals=body.include_meals,
            include_cooking_sessions=body.include_cooking_sessions,
        )
        overrides = (
            state_container.shopping_service.override_repository.get_overrides(user_id)
        )
        result = apply_aisle_overrides(result, overrides)
        return {"success": True, "data": result.to_dict()}

    @app.put("/ingredient-preferences", dependencies=authed)
    async def set_ingredient_preference(
        body: AisleOverrideRequest,
        request: Request,
        user_id: str = Depends(current_user_id),
    ) -> dict[str, object]:
        """Store an aisle override for an ingredient."""
        state_container: AppContainer = request.app.state.container
        try:
            name, aisle = state_container.shopping_service.set_aisle_override(
                user_id, body.normalized_name, body.aisle
            )
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)
            ) from exc
        return {"success": True, "data": {"normalizedName": name, "aisle": aisle}}

    @app.post("/validate", dependencies=authed)
    async def validate(body: ValidateRequest) -> dict[str, object]:
        """Validate a recipe catalog against a profile's hard constraints."""
        result = validate_agent_draft(
            PlanningProfile.from_dict(body.profile),
            [RecipeCandidate.from_dict(recipe) for recipe in body.recipe_catalog],
        )
        return {"success": True, "data": result.to_dict()}

    @app.post("/runs/{run_id}/generate", dependencies=authed)
    async def generate_run(
        run_id: str, request: Request, user_id: str = Depends(current_user_id)
    ) -> dict[str, object]:
        """Generate a draft for a run."""
        state_container: AppContainer = request.app.state.container
        run = await _generate(state_container, logger, user_id, run_id, None)
        return {"success": True, "data": _run_payload(run)}

    @app.post("/runs/{run_id}/revise", dependencies=authed)
    async def revise_run(
        run_id: str,
        body: ReviseRequest,
        request: Request,
        user_id: str = Depends(current_user_id),
    ) -> dict[str, object]:
        """Regenerate a run draft with a revision instruction."""
        instruction = body.instruction.strip()
        if not instruction:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Revision instruction is required",
            )
        state_container: AppContainer = request.app.state.container
        run = await _generate(state_container, logger, user_id, run_id, instruction)
        return {"success": True, "data": _run_payload(run)}

    @app.post("/runs/{run_id}/approve", dependencies=authed)
    async def approve_run(
        run_id: str, request: Request, user_id: str = Depends(current_user_id)
    ) -> dict[str, object]:
        """Approve a run with no unmet hard constraints."""
        state_container: AppContainer = request.app.state.container
        run = state_container.run_service.approve(user_id, run_id)
        return {"success": True, "data": _run_payload(run)}

    @app.post("/runs/{run_id}/apply", dependencies=authed)
    async def apply_run(
        run_id: str, request: Request, user_id: str = Depends(current_user_id)
    ) -> dict[str, object]:
        """Write an approved run's days to the meal plan."""
        state_container: AppContainer = request.app.state.container
        result = state_container.run_service.apply(user_id, run_id)
        return {
            "success": True,
            "data": {"runId": result.run_id, "appliedDays": result.applied_days},
        }

    return app


async def _generate(
    container: AppContainer,
    logger: logging.Logger,
    user_id: str,
    run_id: str,
    instruction: str | None,
) -> AgentRunRecord:
    try:
        return await container.run_service.generate(user_id, run_id, instruction)
    except PlanningError:
        raise
    except Exception as exc:
        logger.exception("Failed to generate draft for run %s", run_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate draft",
        ) from exc


def _error_response(
    exc: PlanningError,
) -> tuple[int, dict[str, str] | None, dict[str, object]]:
    if isinstance(exc, RunNotFoundError):
        return status.HTTP_404_NOT_FOUND, None, {}
    if isinstance(exc, RateLimitExceededError):
        retry_after = str(max(1, int(exc.reset_in_seconds + 0.999)))
        return status.HTTP_429_TOO_MANY_REQUESTS, {"Retry-After": retry_after}, {}
    if isinstance(exc, RunStateError):
        extra = {"data": {"violations": list(exc.violations)}} if exc.violations else {}
        return status.HTTP_400_BAD_REQUEST, None, extra
    if isinstance(exc, NoCandidatesError):
        return status.HTTP_422_UNPROCESSABLE_ENTITY, None, {}
    return status.HTTP_400_BAD_REQUEST, None, {}


def _run_payload(run: AgentRunRecord) -> dict[str, object]:
    return {
        "id": run.id,
        "status": run.status,
        "dateRange": {"start": run.date_start, "end": run.date_end},
        "outputDraft": run.output_draft,
        "summary": run.summary,
        "errorMessage": run.error_message,
    }
