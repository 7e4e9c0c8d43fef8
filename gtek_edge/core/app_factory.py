from __future__ import annotations

"""Application factory for the edge service.

Centralizes app construction (limiter, audit sink, middleware, handlers,
routers). Collaborators can be injected so tests get isolated limiter state
and a deterministic clock.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from gtek_edge.adapters.audit.base import AbstractAuditSink
from gtek_edge.adapters.audit.factory import create_audit_sink
from gtek_edge.adapters.rate_limit.base import AbstractRateLimiter
from gtek_edge.api.routes import health_router
from gtek_edge.core.config import settings
from gtek_edge.core.exception_handlers import setup_exception_handlers
from gtek_edge.core.logging import configure_logging
from gtek_edge.core.middleware import request_id_middleware
from gtek_edge.core.rate_limit import build_rate_limiter, epoch_ms, rate_limit_middleware

logger = logging.getLogger(__name__)


def create_app(
    *,
    rate_limiter: AbstractRateLimiter | None = None,
    audit_sink: AbstractAuditSink | None = None,
    clock: Callable[[], int] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application instance.

    Args:
        rate_limiter: Limiter to use; built from the rules file when omitted.
        audit_sink: Audit sink to use; chosen by ``AUDIT_PROVIDER`` when omitted.
        clock: Millisecond UNIX clock; defaults to wall-clock time.

    Returns:
        Configured FastAPI app.

    Raises:
        ConfigurationAppError: If rate limit or audit configuration is invalid.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    # Explicit None checks: limiters define __len__, so an empty one is falsy.
    limiter = rate_limiter if rate_limiter is not None else build_rate_limiter(settings.rate_limit)
    sink = audit_sink if audit_sink is not None else create_audit_sink(settings.audit)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        logger.info("audit.sink_closing", extra={"sink": type(sink).__name__})
        sink.close(timeout=5.0)

    app = FastAPI(
        title="GTEK Edge",
        description=(
            "Edge gateway for the GTEK API routes: per-client fixed-window rate "
            "limiting with audit events for every hit and every rejection."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.rate_limiter = limiter
    app.state.audit_sink = sink
    app.state.clock = clock if clock is not None else epoch_ms

    # Middleware: the last one registered runs first, so request ids wrap
    # rate limit rejections too.
    app.middleware("http")(rate_limit_middleware)
    app.middleware("http")(request_id_middleware)

    setup_exception_handlers(app)

    app.include_router(health_router)

    return app
