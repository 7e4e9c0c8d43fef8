from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from gtek_edge.adapters.rate_limit.base import RateLimitConfig
from gtek_edge.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from gtek_edge.core.app_factory import create_app


@pytest.fixture
def client(audit_sink, clock) -> TestClient:
    limiter = InMemoryFixedWindowRateLimiter(
        RateLimitConfig(limit_per_window=1, window_duration_ms=60_000)
    )
    return TestClient(create_app(rate_limiter=limiter, audit_sink=audit_sink, clock=clock))


def test_preserves_incoming_request_id_header(client: TestClient):
    incoming_id = "test-request-id-123"
    resp = client.get("/health", headers={"X-Request-ID": incoming_id})

    assert resp.status_code == 200
    assert resp.headers.get("X-Request-ID") == incoming_id


def test_generates_request_id_when_missing(client: TestClient):
    resp = client.get("/health")

    assert resp.status_code == 200
    generated = resp.headers.get("X-Request-ID")
    assert generated
    assert resp.headers.get("X-Request-Duration-ms") is not None


def test_rate_limited_responses_carry_request_id(client: TestClient):
    client.get("/api/health")
    resp = client.get("/api/health", headers={"X-Request-ID": "throttled-1"})

    assert resp.status_code == 429
    assert resp.headers.get("X-Request-ID") == "throttled-1"
