"""Factory pattern for creating audit sink instances."""

from gtek_edge.adapters.audit.base import AbstractAuditSink, NullAuditSink
from gtek_edge.adapters.audit.log_sink import LoggingAuditSink
from gtek_edge.adapters.audit.supabase import SupabaseAuditSink
from gtek_edge.core.config import AuditSettings, settings
from gtek_edge.core.errors import ConfigurationAppError


def create_audit_sink(audit_settings: AuditSettings | None = None) -> AbstractAuditSink:
    """Instantiate the audit sink selected by configuration.

    Providers:
    - ``auto``: Supabase when both URL and service role key are set, else none
    - ``supabase``: Supabase, credentials required
    - ``log``: structured application log records
    - ``none``: discard events

    Args:
        audit_settings: Optional settings; defaults to the global settings.

    Returns:
        AbstractAuditSink: Configured sink instance.

    Raises:
        ConfigurationAppError: If the provider is unknown or lacks credentials.
    """
    cfg = audit_settings or settings.audit
    provider = cfg.provider.lower()
    has_credentials = bool(cfg.supabase_url and cfg.supabase_service_role)

    if provider == "auto":
        provider = "supabase" if has_credentials else "none"

    if provider == "supabase":
        if not has_credentials:
            raise ConfigurationAppError(
                code="audit_missing_credentials",
                message=(
                    "Supabase audit sink requires SUPABASE_URL and "
                    "SUPABASE_SERVICE_ROLE environment variables"
                ),
            )
        return SupabaseAuditSink(
            base_url=cfg.supabase_url,  # type: ignore[arg-type]
            service_key=cfg.supabase_service_role,  # type: ignore[arg-type]
            entity=cfg.entity,
            queue_size=cfg.queue_size,
            timeout_seconds=cfg.timeout_seconds,
        )

    if provider == "log":
        return LoggingAuditSink()

    if provider == "none":
        return NullAuditSink()

    raise ConfigurationAppError(
        code="audit_unknown_provider",
        message=(
            f"Unknown audit provider: '{cfg.provider}'. "
            "Supported providers: auto, supabase, log, none"
        ),
    )
