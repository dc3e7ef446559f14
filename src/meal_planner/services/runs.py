"""Planning run lifecycle: generate, revise, approve and apply."""

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from meal_planner.domain.plans import AgentRunRecord, MealPlanDay
from meal_planner.domain.profile import PlanningProfile
from meal_planner.errors import RateLimitExceededError, RunNotFoundError, RunStateError
from meal_planner.services.directives import MessageRepository
from meal_planner.services.meal_plans import MealPlanRepository
from meal_planner.services.planning import PlanningService
from meal_planner.services.rate_limit import RateLimiter

_logger = logging.getLogger(__name__)


class AgentRunRepository(Protocol):
    """Persistence interface for planning runs."""

    def get_run(self, user_id: str, run_id: str) -> AgentRunRecord | None:
        """Return a run owned by the user."""

    def save_draft(
        self,
        run_id: str,
        output_draft: dict[str, object],
        summary: dict[str, object],
    ) -> None:
        """Store a generated draft and set the run status to draft."""

    def mark_failed(self, run_id: str, error_message: str) -> None:
        """Set the run status to failed with an error message."""

    def update_status(self, run_id: str, status: str) -> None:
        """Set the run status."""


class ProfileRepository(Protocol):
    """Read interface for planning profiles."""

    def get_profile(self, user_id: str) -> PlanningProfile:
        """Return the user's profile, or a default profile when none is stored."""


@dataclass(frozen=True)
class ApplyResult:
    """Outcome of applying a run to the meal plan store."""

    run_id: str
    applied_days: int


@dataclass
class AgentRunService:
    """Drives a run through draft, approved and applied states."""

    planning_service: PlanningService
    run_repository: AgentRunRepository
    profile_repository: ProfileRepository
    message_repository: MessageRepository
    plan_repository: MealPlanRepository
    rate_limiter: RateLimiter
    rate_limit: int = 10
    rate_limit_window_seconds: float = 60

    async def generate(
        self, user_id: str, run_id: str, revision_instruction: str | None = None
    ) -> AgentRunRecord:
        """Generate (or regenerate) a draft for the run.

        A failed planning pass marks the run as failed and re-raises.
        """
        decision = self.rate_limiter.check(
            f"agent-generate:{user_id}", self.rate_limit, self.rate_limit_window_seconds
        )
        if not decision.allowed:
            raise RateLimitExceededError(decision.reset_in_seconds)

        run = self._require_run(user_id, run_id)
        instruction = (revision_instruction or "").strip() or None
        if instruction:
            self.message_repository.add_message(user_id, run_id, "user", instruction)

        profile = self.profile_repository.get_profile(user_id)
        try:
            result = await self.planning_service.run_agent_planning_tools(
                user_id,
                run_id,
                profile,
                run.date_start,
                run.date_end,
                revision_instruction=instruction,
            )
        except Exception as exc:
            _logger.exception("Planning run %s failed", run_id)
            self.run_repository.mark_failed(run_id, str(exc))
            raise

        self.run_repository.save_draft(
            run_id, result.output_draft.to_dict(), result.summary.to_dict()
        )
        why = result.summary.why_this_plan
        if instruction:
            content = f"Revision applied. {why or 'Updated draft ready for review.'}"
        else:
            content = why or "Draft generated."
        self.message_repository.add_message(user_id, run_id, "assistant", content)
        return self._require_run(user_id, run_id)

    def approve(self, user_id: str, run_id: str) -> AgentRunRecord:
        """Approve a run whose draft has no hard-constraint violations."""
        run = self._require_run(user_id, run_id)
        violations = draft_violations(run)
        if violations:
            raise RunStateError(
                "Run has unmet hard constraints. Revise before approving.", violations
            )
        self.run_repository.update_status(run_id, "approved")
        return self._require_run(user_id, run_id)

    def apply(self, user_id: str, run_id: str) -> ApplyResult:
        """Write an approved run's plan days through the meal plan store."""
        run = self._require_run(user_id, run_id)
        if run.status != "approved":
            raise RunStateError("Run must be approved before apply.")
        violations = draft_violations(run)
        if violations:
            raise RunStateError(
                "Run has unmet hard constraints. Revise before applying.", violations
            )
        days = draft_days(run)
        if not days:
            raise RunStateError("Run has no generated meal plan days to apply")

        for day in days:
            self.plan_repository.save_day(user_id, day)
        self.run_repository.update_status(run_id, "applied")
        _logger.info("Applied run %s: days=%s", run_id, len(days))
        return ApplyResult(run_id=run_id, applied_days=len(days))

    def _require_run(self, user_id: str, run_id: str) -> AgentRunRecord:
        run = self.run_repository.get_run(user_id, run_id)
        if run is None:
            raise RunNotFoundError("Run not found")
        return run


def draft_violations(run: AgentRunRecord) -> tuple[str, ...]:
    """Return the stored draft's hard-constraint violations."""
    validation = (run.output_draft or {}).get("validation")
    if not isinstance(validation, dict):
        return ()
    violations = validation.get("hardConstraintViolations")
    if not isinstance(violations, list):
        return ()
    return tuple(str(item) for item in violations)


def draft_days(run: AgentRunRecord) -> Sequence[MealPlanDay]:
    """Return the stored draft's plan days."""
    days = (run.output_draft or {}).get("mealPlanDays")
    if not isinstance(days, list):
        return ()
    return tuple(MealPlanDay.from_dict(day) for day in days if isinstance(day, dict))
