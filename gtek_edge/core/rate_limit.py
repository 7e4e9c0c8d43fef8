"""Edge rate limiting middleware.

This module wires the rate limiting adapter and the audit sink into the HTTP
layer.

Design goals:
- The limiter and sink are owned by the app (``app.state``), not this module,
  so tests can run several independently configured apps side by side.
- Auditing never influences the decision: the decision is made first and
  sink failures are logged and dropped.

Rate limiting strategy:
- Fixed window per client IP + request path, for paths under the configured
  prefix (``/api`` by default).
"""

from __future__ import annotations

import hashlib
import logging
import time
from typing import Any, Callable

from fastapi import Request, Response, status
from fastapi.responses import PlainTextResponse

from gtek_edge.adapters.audit.base import API_HIT, RATE_LIMIT, AbstractAuditSink
from gtek_edge.adapters.rate_limit.base import AbstractRateLimiter, RateLimitDecision
from gtek_edge.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from gtek_edge.core.config import RateLimitSettings, settings
from gtek_edge.core.rate_limit_config import resolve_rate_limit_config
from gtek_edge.core.request_context import RequestContext, extract_request_context

logger = logging.getLogger(__name__)

RATE_LIMIT_BODY = "Rate limit exceeded"


def epoch_ms() -> int:
    """Current UNIX time in milliseconds."""
    return int(time.time() * 1000)


def build_rate_limiter(rate_settings: RateLimitSettings | None = None) -> AbstractRateLimiter:
    """Create the limiter for the configured route group.

    Raises:
        ConfigurationAppError: If the resolved limit or window is not positive.
    """

    cfg = rate_settings or settings.rate_limit
    config = resolve_rate_limit_config(cfg.group)
    sweep_ms = cfg.sweep_interval_seconds * 1000 or None

    logger.info(
        "rate_limit.configured",
        extra={
            "group": cfg.group,
            "limit": config.limit_per_window,
            "window_ms": config.window_duration_ms,
        },
    )
    return InMemoryFixedWindowRateLimiter(config, sweep_interval_ms=sweep_ms)


def _hash_client_id(client_id: str) -> str:
    """Hash the client id for logging without exposing addresses."""
    return hashlib.sha256(client_id.encode()).hexdigest()[:16]


def build_audit_meta(ctx: RequestContext, result: RateLimitDecision) -> dict[str, Any]:
    return {
        "ip": ctx.ip,
        "path": ctx.path,
        "method": ctx.method,
        "actor": ctx.actor,
        "count": result.count,
        "limit": result.limit,
        "reset": result.reset_iso,
    }


def _emit_audit(sink: AbstractAuditSink, action: str, meta: dict[str, Any]) -> None:
    try:
        sink.emit(action, meta)
    except Exception as exc:
        logger.warning(
            "audit.emit_failed",
            extra={
                "action": action,
                "error_type": type(exc).__name__,
                "error_msg": str(exc),
            },
        )


def _rate_limit_headers(result: RateLimitDecision, now_ms: int) -> dict[str, str]:
    return {
        "Retry-After": str(result.retry_after_seconds(now_ms)),
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }


def _is_limited_path(path: str, prefix: str) -> bool:
    prefix = prefix.rstrip("/")
    if not prefix:
        return True
    return path == prefix or path.startswith(prefix + "/")


async def rate_limit_middleware(request: Request, call_next) -> Response:
    """HTTP middleware enforcing the fixed-window limit on API routes.

    Counts every request under the configured path prefix. Allowed requests
    are audited as ``api.hit`` and passed through unchanged; denied requests
    are audited as ``rate.limit`` and answered with HTTP 429.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: Handler response, or a 429 plain-text response when denied.
    """

    cfg = settings.rate_limit
    if not cfg.enabled or not _is_limited_path(request.url.path, cfg.path_prefix):
        return await call_next(request)

    state = request.app.state
    limiter: AbstractRateLimiter = state.rate_limiter
    sink: AbstractAuditSink = state.audit_sink
    clock: Callable[[], int] = state.clock

    ctx = extract_request_context(request)
    now_ms = clock()
    result = limiter.check(ctx.ip, ctx.path, now_ms)
    meta = build_audit_meta(ctx, result)
    client_hash = _hash_client_id(ctx.ip)

    if result.allowed:
        logger.debug(
            "rate_limit.allowed",
            extra={
                "client_hash": client_hash,
                "path": ctx.path,
                "count": result.count,
                "limit": result.limit,
                "remaining": result.remaining,
            },
        )
        _emit_audit(sink, API_HIT, meta)
        return await call_next(request)

    logger.warning(
        "rate_limit.exceeded",
        extra={
            "client_hash": client_hash,
            "path": ctx.path,
            "count": result.count,
            "limit": result.limit,
            "reset": result.reset_iso,
        },
    )
    _emit_audit(sink, RATE_LIMIT, meta)

    headers = _rate_limit_headers(result, now_ms) if cfg.include_headers else None
    return PlainTextResponse(
        RATE_LIMIT_BODY,
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        headers=headers,
    )
