"""Extraction of the client facts the edge middleware needs from a request."""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Request

UNKNOWN_IP = "unknown"
ANONYMOUS_ACTOR = "anonymous"
ACTOR_HEADER = "x-actor-id"
FORWARDED_FOR_HEADER = "x-forwarded-for"


@dataclass(frozen=True)
class RequestContext:
    """Who is calling what.

    Attributes:
        ip: Client address, or ``"unknown"`` when it cannot be determined.
        path: Request path without query string.
        method: HTTP method.
        actor: Value of the ``X-Actor-ID`` header, or ``"anonymous"``.
    """

    ip: str
    path: str
    method: str
    actor: str


def resolve_client_ip(request: Request) -> str:
    """Return the client address for rate limiting.

    Prefers the direct connection peer; behind a proxy that strips it, falls
    back to the first ``X-Forwarded-For`` entry.
    """

    if request.client and request.client.host:
        return request.client.host

    forwarded = request.headers.get(FORWARDED_FOR_HEADER)
    if not forwarded:
        return UNKNOWN_IP
    first = forwarded.split(",")[0].strip()
    return first or UNKNOWN_IP


def extract_request_context(request: Request) -> RequestContext:
    return RequestContext(
        ip=resolve_client_ip(request),
        path=request.url.path,
        method=request.method or "GET",
        actor=request.headers.get(ACTOR_HEADER) or ANONYMOUS_ACTOR,
    )
