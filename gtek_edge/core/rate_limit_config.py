"""Loading of per-group rate limit rules.

Rules live in a small JSON file keyed by route group::

    {"api": {"limit": 60, "window": "1m"}}

Window strings use a single unit suffix (``s``, ``m`` or ``h``). Anything the
parser does not understand falls back to one minute rather than failing, while
a non-positive result is left for the limiter to reject at startup.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ValidationError

from gtek_edge.adapters.rate_limit.base import RateLimitConfig
from gtek_edge.core.config import settings
from gtek_edge.core.errors import ConfigurationAppError

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 60
DEFAULT_WINDOW = "1m"
DEFAULT_WINDOW_MS = 60_000

_WINDOW_RE = re.compile(r"([0-9]+)([smh])")
_UNIT_MS = {
    "s": 1000,
    "m": 60 * 1000,
    "h": 60 * 60 * 1000,
}


class RateLimitRule(BaseModel):
    """One route group's entry in the rules file."""

    limit: int = DEFAULT_LIMIT
    window: Any = DEFAULT_WINDOW


def parse_window(window: Any) -> int:
    """Convert a window string such as ``"30s"``, ``"5m"`` or ``"2h"`` to ms.

    Args:
        window: Raw value from configuration.

    Returns:
        Window duration in milliseconds; 60000 when the value is missing or
        not understood.
    """

    if not isinstance(window, str):
        return DEFAULT_WINDOW_MS
    match = _WINDOW_RE.fullmatch(window)
    if not match:
        return DEFAULT_WINDOW_MS
    return int(match.group(1)) * _UNIT_MS[match.group(2)]


def load_rate_limit_rules(path: str | Path | None = None) -> dict[str, RateLimitRule]:
    """Read the rules file into a group -> rule mapping.

    A missing or unreadable file yields an empty mapping, so every group falls
    back to the defaults. Entries whose fields have the wrong type are a
    configuration error.

    Args:
        path: Rules file; defaults to ``settings.rate_limit.config_path``.

    Returns:
        Mapping of group name to rule.

    Raises:
        ConfigurationAppError: If an entry cannot be validated.
    """

    rules_path = Path(path or settings.rate_limit.config_path)
    if not rules_path.is_file():
        logger.info(
            "rate_limit.rules_missing",
            extra={"config_path": str(rules_path)},
        )
        return {}

    try:
        raw = json.loads(rules_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning(
            "rate_limit.rules_unreadable",
            extra={"config_path": str(rules_path), "error_msg": str(exc)},
        )
        return {}

    if not isinstance(raw, dict):
        logger.warning(
            "rate_limit.rules_not_mapping",
            extra={"config_path": str(rules_path)},
        )
        return {}

    rules: dict[str, RateLimitRule] = {}
    for group, entry in raw.items():
        if not isinstance(entry, dict):
            continue
        try:
            rules[group] = RateLimitRule.model_validate(entry)
        except ValidationError as exc:
            raise ConfigurationAppError(
                code="rate_limit_invalid_rule",
                message=f"Invalid rate limit rule for group '{group}'",
                details={"field": group, "context": {"errors": exc.errors()}},
            ) from exc
    return rules


def resolve_rate_limit_config(
    group: str | None = None,
    rules: dict[str, RateLimitRule] | None = None,
) -> RateLimitConfig:
    """Resolve the limits for one route group.

    Args:
        group: Route group name; defaults to ``settings.rate_limit.group``.
        rules: Pre-loaded rules; read from the rules file when omitted.

    Returns:
        Immutable RateLimitConfig. Unknown groups get 60 requests per minute.
    """

    group_name = group or settings.rate_limit.group
    loaded = load_rate_limit_rules() if rules is None else rules
    rule = loaded.get(group_name) or RateLimitRule()

    return RateLimitConfig(
        limit_per_window=rule.limit,
        window_duration_ms=parse_window(rule.window),
    )
