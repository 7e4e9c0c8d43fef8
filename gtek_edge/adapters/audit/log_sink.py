"""Audit sink that writes events to the application log."""

from __future__ import annotations

import logging
from typing import Any

from gtek_edge.adapters.audit.base import AbstractAuditSink

logger = logging.getLogger("gtek_edge.audit")


class LoggingAuditSink(AbstractAuditSink):
    """Emit each audit event as a structured ``audit.<action>`` log record.

    Useful in development, or where log shipping already feeds an analytics
    store.
    """

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    def emit(self, action: str, meta: dict[str, Any]) -> None:
        logger.log(self._level, f"audit.{action}", extra={"audit_meta": dict(meta)})
