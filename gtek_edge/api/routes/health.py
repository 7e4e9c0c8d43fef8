from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["Health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe for load balancers; not rate limited."""

    return {"status": "ok"}


@router.get("/api/health")
def api_health() -> dict:
    """Health check behind the edge limiter.

    Counts against the caller's ``api`` budget like any other API route, so
    it doubles as a cheap way to observe throttling.
    """

    return {"ok": True, "status": "ok"}


@router.get("/api/ping")
def ping() -> dict:
    return {"ok": True}
