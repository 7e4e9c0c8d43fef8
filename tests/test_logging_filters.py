"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from gtek_edge.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    set_request_id,
)


@pytest.fixture
def capture():
    """Logger wired like production, writing into a buffer."""

    logger = logging.getLogger("test_redaction")
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)

    yield logger, stream

    logger.handlers.clear()
    clear_request_id()


def test_redacts_supabase_credentials(capture):
    logger, stream = capture

    logger.info(
        "audit.write_failed",
        extra={
            "apikey": "service-role-secret",
            "headers": {
                "Authorization": "Bearer service-role-secret",
                "Prefer": "return=minimal",
            },
            "safe_field": "visible",
        },
    )

    output = stream.getvalue()
    assert "service-role-secret" not in output
    assert "[REDACTED]" in output
    assert "return=minimal" in output
    assert "visible" in output


def test_rate_limit_fields_pass_through(capture):
    logger, stream = capture

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "client_hash": "abc123",
            "path": "/api/health",
            "count": 4,
            "limit": 3,
        },
    )

    record = json.loads(stream.getvalue())
    assert record["message"] == "rate_limit.exceeded"
    assert record["level"] == "warning"
    assert record["path"] == "/api/health"
    assert record["count"] == 4
    assert "[REDACTED]" not in stream.getvalue()


def test_request_id_attached_from_context(capture):
    logger, stream = capture
    set_request_id("req-123")

    logger.info("request.completed", extra={"status": 200})

    record = json.loads(stream.getvalue())
    assert record["request_id"] == "req-123"
    assert record["status"] == 200


def test_redacts_inside_lists(capture):
    logger, stream = capture

    logger.info("batch", extra={"items": [{"token": "t-1"}, {"token": "t-2", "n": 2}]})

    output = stream.getvalue()
    assert "t-1" not in output
    assert "t-2" not in output
    assert '"n": 2' in output
