"""
Unit tests for exporter configuration.

Tests verify:
- ExporterSettings loads from USV_* environment variables with defaults.
- Validation rejects unknown families and out-of-range values.
- The YAML target file accepts plain and overridden entries.
- Unreadable or invalid target files raise ConfigError.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from pathlib import Path

import pytest
from pydantic import ValidationError
from usv_exporter.src.config import (
    ConfigError,
    ExporterSettings,
    TargetEntry,
    load_file_config,
    parse_listen_address,
)


class TestExporterSettingsDefaults:
    """Defaults mirror the original exporter flags."""

    def test_defaults(self) -> None:
        settings = ExporterSettings()

        assert settings.listen_address == ":9332"
        assert settings.metrics_path == "/metrics"
        assert settings.targets == ""
        assert settings.community == ""
        assert settings.config_file == "config.yml"
        assert settings.family == "xups"
        assert settings.snmp_port == 161
        assert settings.snmp_version == "1"
        assert settings.snmp_timeout_s == 2.0
        assert settings.scrape_timeout_s is None
        assert settings.metric_prefix == "eaton_usv_"
        assert settings.health_file is None
        assert settings.debug is False

    def test_loads_env_vars(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("USV_TARGETS", "10.0.0.1,10.0.0.2")
        monkeypatch.setenv("USV_COMMUNITY", "public")
        monkeypatch.setenv("USV_FAMILY", "mge")
        monkeypatch.setenv("USV_SNMP_VERSION", "2c")
        monkeypatch.setenv("USV_SCRAPE_TIMEOUT_S", "10")
        monkeypatch.setenv("USV_DEBUG", "true")

        settings = ExporterSettings()

        assert settings.targets == "10.0.0.1,10.0.0.2"
        assert settings.community == "public"
        assert settings.family == "mge"
        assert settings.snmp_version == "2c"
        assert settings.scrape_timeout_s == 10.0
        assert settings.debug is True

    def test_init_kwargs_override_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("USV_COMMUNITY", "from-env")
        assert ExporterSettings(community="from-flag").community == "from-flag"


class TestExporterSettingsValidation:
    """Invalid values are rejected at startup."""

    def test_unknown_family(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("USV_FAMILY", "apc")
        with pytest.raises(ValidationError) as exc_info:
            ExporterSettings()
        assert "unknown ups family" in str(exc_info.value).lower()

    def test_relative_metrics_path(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            ExporterSettings(metrics_path="metrics")
        assert "metrics_path" in str(exc_info.value).lower()

    @pytest.mark.parametrize("port", [0, 65536])
    def test_port_out_of_range(self, port: int) -> None:
        with pytest.raises(ValidationError):
            ExporterSettings(snmp_port=port)

    def test_snmp_v3_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ExporterSettings(snmp_version="3")

    @pytest.mark.parametrize("field", ["snmp_timeout_s", "scrape_timeout_s"])
    def test_non_positive_timeouts(self, field: str) -> None:
        with pytest.raises(ValidationError):
            ExporterSettings(**{field: 0})


class TestParseListenAddress:
    """Go-style listen addresses."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (":9332", ("0.0.0.0", 9332)),
            ("127.0.0.1:9000", ("127.0.0.1", 9000)),
            ("[::]:9332", ("::", 9332)),
        ],
    )
    def test_valid(self, value: str, expected: tuple[str, int]) -> None:
        assert parse_listen_address(value) == expected

    @pytest.mark.parametrize("value", ["9332", "host:", "host:http"])
    def test_invalid(self, value: str) -> None:
        with pytest.raises(ValueError):
            parse_listen_address(value)


class TestLoadFileConfig:
    """YAML target file loading."""

    def test_plain_and_overridden_targets(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"
        path.write_text(
            "community: public\n"
            "targets:\n"
            "  - 10.0.0.1\n"
            "  - address: 10.0.0.2:1161\n"
            "    community: private\n"
            "    family: mge\n"
        )

        cfg = load_file_config(path)

        assert cfg.community == "public"
        assert cfg.targets[0] == "10.0.0.1"
        assert cfg.targets[1] == TargetEntry(
            address="10.0.0.2:1161", community="private", family="mge"
        )

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"
        path.write_text("")

        cfg = load_file_config(path)

        assert cfg.community == ""
        assert cfg.targets == []

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="cannot read"):
            load_file_config(tmp_path / "missing.yml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"
        path.write_text("targets: [10.0.0.1\n")
        with pytest.raises(ConfigError, match="invalid YAML"):
            load_file_config(path)

    def test_top_level_list_rejected(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"
        path.write_text("- 10.0.0.1\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_file_config(path)

    def test_unknown_family_in_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"
        path.write_text("targets:\n  - address: 10.0.0.1\n    family: apc\n")
        with pytest.raises(ConfigError, match="unknown UPS family"):
            load_file_config(path)
