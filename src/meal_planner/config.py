"""Application configuration."""

import os
from datetime import date

from pydantic_settings import BaseSettings, SettingsConfigDict

from meal_planner.errors import InvalidDateRangeError

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    api_token: str
    openai_api_key: str | None = None
    openai_agent_model: str = "gpt-4o-mini"
    openai_temperature: float = 0.2
    openai_max_completion_tokens: int = 350
    agent_max_round_trips: int = 3
    max_plan_days: int = 35
    candidate_listing_limit: int = 120
    conversation_window: int = 12
    generate_rate_limit: int = 10
    generate_rate_window_seconds: int = 60
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_date_range(start: str | None, end: str | None) -> tuple[str, str]:
    """Validate an ISO date range and return it normalized."""
    try:
        first = date.fromisoformat(str(start or "").strip())
        last = date.fromisoformat(str(end or "").strip())
    except ValueError as exc:
        raise InvalidDateRangeError("start and end must be YYYY-MM-DD dates") from exc
    if last < first:
        raise InvalidDateRangeError("end must not be before start")
    return first.isoformat(), last.isoformat()
