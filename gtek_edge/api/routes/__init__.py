from __future__ import annotations

from gtek_edge.api.routes.health import router as health_router

__all__ = ["health_router"]
