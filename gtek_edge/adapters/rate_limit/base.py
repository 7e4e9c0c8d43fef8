"""Rate limiter interfaces.

The HTTP layer depends on this abstraction (not the concrete implementation)
so the per-process table can later be swapped for a shared store.
"""

from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_LATEST = datetime.max.replace(tzinfo=timezone.utc)


class Decision(str, Enum):
    """Outcome of a rate limit check."""

    ALLOWED = "allowed"
    DENIED = "denied"


@dataclass(frozen=True)
class RateLimitConfig:
    """Resolved limits for one route group.

    Attributes:
        limit_per_window: Requests admitted per key within one window.
        window_duration_ms: Window length in milliseconds.
    """

    limit_per_window: int
    window_duration_ms: int


@dataclass(frozen=True)
class RateLimitDecision:
    """Result of a single ``check()`` call.

    Attributes:
        decision: Whether the request may proceed.
        count: Requests counted into the current window, this one included.
        limit: Max requests per window.
        reset_at_ms: UNIX epoch milliseconds when the current window ends.
    """

    decision: Decision
    count: int
    limit: int
    reset_at_ms: int

    @property
    def allowed(self) -> bool:
        return self.decision is Decision.ALLOWED

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.count)

    @property
    def reset_at(self) -> int:
        """Window reset as UNIX epoch seconds (rounded up)."""
        return int(math.ceil(self.reset_at_ms / 1000))

    @property
    def reset_iso(self) -> str:
        """Window reset as an ISO-8601 UTC string with millisecond precision."""
        try:
            moment = _EPOCH + timedelta(milliseconds=self.reset_at_ms)
        except OverflowError:
            # Resets beyond year 9999 render as the latest representable instant.
            moment = _LATEST
        return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def retry_after_seconds(self, now_ms: int) -> int:
        """Suggested wait before the next attempt, never negative."""
        return max(0, int(math.ceil((self.reset_at_ms - now_ms) / 1000)))


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, client_id: str, route_key: str, now_ms: int) -> RateLimitDecision:
        """Count one request for (client_id, route_key) and decide on it.

        Every call is counted, including denied ones; there is no way to peek
        at a key without consuming budget.

        Args:
            client_id: Client identifier (e.g., resolved IP).
            route_key: Logical route identifier (e.g., request path).
            now_ms: Caller-supplied UNIX time in milliseconds.

        Returns:
            RateLimitDecision describing the outcome and window metadata.
        """
        raise NotImplementedError
