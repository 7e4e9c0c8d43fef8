"""Audit sink interface.

Sinks receive structured events about traffic at the edge. Emission is
best-effort: ``emit()`` must return immediately and must never raise, so an
unavailable audit store can never change how a request is handled.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

API_HIT = "api.hit"
RATE_LIMIT = "rate.limit"


class AbstractAuditSink(ABC):
    """Interface for audit event sinks."""

    @abstractmethod
    def emit(self, action: str, meta: dict[str, Any]) -> None:
        """Record an audit event without blocking the caller.

        Args:
            action: Event name, ``api.hit`` or ``rate.limit``.
            meta: Event payload (ip, path, method, actor, count, limit, reset).
        """
        raise NotImplementedError

    def close(self, timeout: float | None = None) -> None:
        """Flush pending events and release resources."""


class NullAuditSink(AbstractAuditSink):
    """Sink that discards every event (audit store not configured)."""

    def emit(self, action: str, meta: dict[str, Any]) -> None:
        return None
