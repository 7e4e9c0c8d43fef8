"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers multiplies the effective limit.
- Thread-safe: uses a lock around shared state.
- Windows start at each key's first request, not on a global clock grid.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from gtek_edge.adapters.rate_limit.base import (
    AbstractRateLimiter,
    Decision,
    RateLimitConfig,
    RateLimitDecision,
)
from gtek_edge.core.errors import ConfigurationAppError

logger = logging.getLogger(__name__)

UNKNOWN_CLIENT = "unknown"


@dataclass
class _WindowState:
    count: int
    reset_at_ms: int


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per client+route in fixed windows.

    A key's window opens on its first request and lasts ``window_duration_ms``.
    When a request arrives at or after the reset time, the old count is
    discarded and a new window opens with ``count = 1``. There is no decay
    between windows, so a burst straddling a boundary can admit up to twice
    the limit within one window duration.

    Important:
        This limiter is per-process only. If the API runs with multiple workers
        (e.g., multiple Uvicorn/Gunicorn workers), each worker will enforce its
        own independent limits.
    """

    def __init__(
        self,
        config: RateLimitConfig,
        *,
        sweep_interval_ms: int | None = None,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            config: Limit and window duration for this limiter.
            sweep_interval_ms: When set, expired windows are evicted during
                ``check()`` at most once per interval.

        Raises:
            ConfigurationAppError: If the limit or window duration is not positive.
        """
        if config.limit_per_window <= 0:
            raise ConfigurationAppError(
                code="rate_limit_invalid_limit",
                message="limit_per_window must be > 0",
                details={"field": "limit", "actual_value": config.limit_per_window},
            )
        if config.window_duration_ms <= 0:
            raise ConfigurationAppError(
                code="rate_limit_invalid_window",
                message="window_duration_ms must be > 0",
                details={"field": "window", "actual_value": config.window_duration_ms},
            )

        self._config = config
        self._sweep_interval_ms = sweep_interval_ms or None
        self._next_sweep_ms: int | None = None
        self._lock = threading.Lock()
        self._state_by_key: dict[str, _WindowState] = {}

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    def __len__(self) -> int:
        with self._lock:
            return len(self._state_by_key)

    @staticmethod
    def build_key(client_id: str, route_key: str) -> str:
        return f"{client_id or UNKNOWN_CLIENT}:{route_key}"

    def check(self, client_id: str, route_key: str, now_ms: int) -> RateLimitDecision:
        """Count one request and decide whether it may proceed.

        Args:
            client_id: Client identifier; empty values count as ``"unknown"``.
            route_key: Logical route identifier (normalized path).
            now_ms: UNIX time in milliseconds, non-decreasing across calls.

        Returns:
            RateLimitDecision with the window's count, limit and reset time.
        """
        key = self.build_key(client_id, route_key)
        limit = self._config.limit_per_window

        with self._lock:
            self._maybe_sweep(now_ms)

            state = self._state_by_key.get(key)
            if state is None or state.reset_at_ms <= now_ms:
                state = _WindowState(
                    count=1,
                    reset_at_ms=now_ms + self._config.window_duration_ms,
                )
                self._state_by_key[key] = state
            else:
                state.count += 1

            count = state.count
            reset_at_ms = state.reset_at_ms

        decision = Decision.DENIED if count > limit else Decision.ALLOWED
        return RateLimitDecision(
            decision=decision,
            count=count,
            limit=limit,
            reset_at_ms=reset_at_ms,
        )

    def sweep(self, now_ms: int) -> int:
        """Drop windows that have already expired.

        An expired window is replaced on its key's next request anyway, so
        evicting it early never changes a decision.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            return self._sweep_locked(now_ms)

    def _maybe_sweep(self, now_ms: int) -> None:
        if self._sweep_interval_ms is None:
            return
        if self._next_sweep_ms is None:
            self._next_sweep_ms = now_ms + self._sweep_interval_ms
            return
        if now_ms < self._next_sweep_ms:
            return
        self._sweep_locked(now_ms)
        self._next_sweep_ms = now_ms + self._sweep_interval_ms

    def _sweep_locked(self, now_ms: int) -> int:
        expired = [
            key
            for key, state in self._state_by_key.items()
            if state.reset_at_ms <= now_ms
        ]
        for key in expired:
            del self._state_by_key[key]
        if expired:
            logger.debug(
                "rate_limit.sweep",
                extra={"evicted": len(expired), "live": len(self._state_by_key)},
            )
        return len(expired)
