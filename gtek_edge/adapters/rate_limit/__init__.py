"""Rate limiting adapters.

This package provides a small abstraction layer so the edge can start with an
in-memory limiter and later migrate to Redis or another shared store without
changing the middleware.
"""

from gtek_edge.adapters.rate_limit.base import (
    AbstractRateLimiter,
    Decision,
    RateLimitConfig,
    RateLimitDecision,
)
from gtek_edge.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter

__all__ = [
    "AbstractRateLimiter",
    "Decision",
    "InMemoryFixedWindowRateLimiter",
    "RateLimitConfig",
    "RateLimitDecision",
]
