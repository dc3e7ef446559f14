"""Fixed-window rate limiting."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a rate limit check."""

    allowed: bool
    remaining: int
    reset_in_seconds: float


class RateLimiter(Protocol):
    """Rate limiter interface keyed by an arbitrary string."""

    def check(self, key: str, limit: int, window_seconds: float) -> RateLimitDecision:
        """Count one hit against the key and report whether it is allowed."""


@dataclass
class _Bucket:
    count: int
    reset_at: datetime


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class InMemoryRateLimiter(RateLimiter):
    """Process-local fixed-window limiter."""

    _buckets: dict[str, _Bucket]
    _clock: Callable[[], datetime]

    def __init__(self, clock: Callable[[], datetime] = _utc_now) -> None:
        self._buckets = {}
        self._clock = clock

    def check(self, key: str, limit: int, window_seconds: float) -> RateLimitDecision:
        """Count a hit; non-positive limits or windows disable limiting."""
        if not key or limit <= 0 or window_seconds <= 0:
            return RateLimitDecision(True, max(0, limit), 0.0)

        now = self._clock()
        self._prune(now)
        bucket = self._buckets.get(key)
        if bucket is None or now >= bucket.reset_at:
            self._buckets[key] = _Bucket(
                count=1, reset_at=now + timedelta(seconds=window_seconds)
            )
            return RateLimitDecision(True, max(0, limit - 1), float(window_seconds))

        reset_in = max(0.0, (bucket.reset_at - now).total_seconds())
        if bucket.count >= limit:
            return RateLimitDecision(False, 0, reset_in)

        bucket.count += 1
        return RateLimitDecision(True, max(0, limit - bucket.count), reset_in)

    def _prune(self, now: datetime) -> None:
        expired = [
            key for key, bucket in self._buckets.items() if now >= bucket.reset_at
        ]
        for key in expired:
            del self._buckets[key]
