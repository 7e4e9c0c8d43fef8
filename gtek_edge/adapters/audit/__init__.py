"""Audit adapter layer - abstracts over where edge audit events are stored."""

from gtek_edge.adapters.audit.base import (
    API_HIT,
    RATE_LIMIT,
    AbstractAuditSink,
    NullAuditSink,
)
from gtek_edge.adapters.audit.factory import create_audit_sink
from gtek_edge.adapters.audit.log_sink import LoggingAuditSink
from gtek_edge.adapters.audit.supabase import SupabaseAuditSink

__all__ = [
    "API_HIT",
    "RATE_LIMIT",
    "AbstractAuditSink",
    "LoggingAuditSink",
    "NullAuditSink",
    "SupabaseAuditSink",
    "create_audit_sink",
]
