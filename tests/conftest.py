"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment defaults are set here, before anything imports the settings
module, so tests never pick up a developer's .env or real Supabase keys.
"""

import os

# CRITICAL: Set these before any imports that might load settings
os.environ.setdefault("APP_ENV", "testing")
os.environ["AUDIT_PROVIDER"] = "none"
os.environ.pop("SUPABASE_URL", None)
os.environ.pop("NEXT_PUBLIC_SUPABASE_URL", None)
os.environ.pop("SUPABASE_SERVICE_ROLE", None)
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Any

import pytest

from gtek_edge.adapters.audit.base import AbstractAuditSink


class RecordingAuditSink(AbstractAuditSink):
    """Audit sink that keeps events in memory for assertions."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.closed = False

    def emit(self, action: str, meta: dict[str, Any]) -> None:
        self.events.append((action, dict(meta)))

    def close(self, timeout: float | None = None) -> None:
        self.closed = True

    @property
    def actions(self) -> list[str]:
        return [action for action, _ in self.events]


class ManualClock:
    """Millisecond clock advanced explicitly by tests."""

    def __init__(self, now_ms: int = 0) -> None:
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


@pytest.fixture
def audit_sink() -> RecordingAuditSink:
    return RecordingAuditSink()


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()
