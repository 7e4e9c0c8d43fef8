"""Tests for rate limit rule loading and window parsing."""

import json
from pathlib import Path

import pytest

from gtek_edge.core.errors import ConfigurationAppError
from gtek_edge.core.rate_limit_config import (
    RateLimitRule,
    load_rate_limit_rules,
    parse_window,
    resolve_rate_limit_config,
)


class TestParseWindow:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("30s", 30_000),
            ("1m", 60_000),
            ("5m", 300_000),
            ("2h", 7_200_000),
            ("0s", 0),
        ],
    )
    def test_parses_supported_units(self, raw: str, expected: int) -> None:
        assert parse_window(raw) == expected

    @pytest.mark.parametrize(
        "raw",
        [None, "", "abc", "1d", "m", "10", " 5m", "5m ", "5m\n", "1.5m", "-5s", "\u0663m", 30, 1.5],
    )
    def test_unparseable_values_default_to_one_minute(self, raw) -> None:
        assert parse_window(raw) == 60_000


def _write_rules(tmp_path: Path, content) -> Path:
    path = tmp_path / "rate_limits.json"
    path.write_text(content if isinstance(content, str) else json.dumps(content))
    return path


class TestLoadRules:
    def test_reads_groups(self, tmp_path: Path) -> None:
        path = _write_rules(tmp_path, {"api": {"limit": 3, "window": "1m"}})

        rules = load_rate_limit_rules(path)

        assert rules == {"api": RateLimitRule(limit=3, window="1m")}

    def test_missing_file_yields_no_rules(self, tmp_path: Path) -> None:
        assert load_rate_limit_rules(tmp_path / "nope.json") == {}

    def test_invalid_json_yields_no_rules(self, tmp_path: Path) -> None:
        path = _write_rules(tmp_path, "{not json")
        assert load_rate_limit_rules(path) == {}

    def test_non_mapping_document_yields_no_rules(self, tmp_path: Path) -> None:
        path = _write_rules(tmp_path, [1, 2, 3])
        assert load_rate_limit_rules(path) == {}

    def test_wrongly_typed_limit_is_a_config_error(self, tmp_path: Path) -> None:
        path = _write_rules(tmp_path, {"api": {"limit": "lots", "window": "1m"}})

        with pytest.raises(ConfigurationAppError) as exc_info:
            load_rate_limit_rules(path)

        assert exc_info.value.code == "rate_limit_invalid_rule"

    def test_project_rules_file_defines_api_group(self) -> None:
        rules = load_rate_limit_rules()
        assert "api" in rules


class TestResolveConfig:
    def test_uses_group_rule(self) -> None:
        config = resolve_rate_limit_config(
            "api", rules={"api": RateLimitRule(limit=3, window="30s")}
        )

        assert config.limit_per_window == 3
        assert config.window_duration_ms == 30_000

    def test_unknown_group_defaults(self) -> None:
        config = resolve_rate_limit_config("other", rules={})

        assert config.limit_per_window == 60
        assert config.window_duration_ms == 60_000

    def test_missing_fields_default(self, tmp_path: Path) -> None:
        path = _write_rules(tmp_path, {"api": {}})

        config = resolve_rate_limit_config("api", rules=load_rate_limit_rules(path))

        assert config.limit_per_window == 60
        assert config.window_duration_ms == 60_000

    def test_bad_window_degrades_but_keeps_limit(self) -> None:
        config = resolve_rate_limit_config(
            "api", rules={"api": RateLimitRule(limit=5, window="forever")}
        )

        assert config.limit_per_window == 5
        assert config.window_duration_ms == 60_000
