"""Planning error taxonomy."""


class PlanningError(Exception):
    """Base class for errors that terminate a planning operation."""


class NoCandidatesError(PlanningError):
    """Raised when no recipe can be scheduled, even after the fallback."""

    def __init__(self) -> None:
        super().__init__("No candidate recipes available for this run.")


class InvalidDateRangeError(PlanningError):
    """Raised when a date range cannot produce any plan days."""


class RunNotFoundError(PlanningError):
    """Raised when a planning run does not exist for the user."""


class RunStateError(PlanningError):
    """Raised when a run is not in a state that allows the operation."""

    def __init__(self, message: str, violations: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.violations = violations


class RateLimitExceededError(PlanningError):
    """Raised when a user exceeds the generation rate limit."""

    def __init__(self, reset_in_seconds: float) -> None:
        super().__init__("Too many planning requests; try again shortly.")
        self.reset_in_seconds = reset_in_seconds
