"""
Exporter configuration: environment settings and the YAML target file.

Process settings use Pydantic BaseSettings (env prefix ``USV_``, optional
``.env`` file); command-line flags parsed in ``main`` override them.  The
target list file is YAML validated by Pydantic models::

    community: public
    targets:
      - 10.0.0.1
      - address: 10.0.0.2:1161
        community: private
        family: mge

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ValidationError, field_validator
from pydantic_settings import BaseSettings

from usv_exporter.src.catalogue import DEFAULT_PREFIX
from usv_exporter.src.registers import DEFAULT_FAMILY, FAMILIES


class ConfigError(Exception):
    """The target file is missing, unreadable or invalid."""


def _check_family(v: str | None) -> str | None:
    if v is not None and v not in FAMILIES:
        known = ", ".join(sorted(FAMILIES))
        raise ValueError(f"unknown UPS family '{v}' (known: {known})")
    return v


# ---------------------------------------------------------------------------
# Process settings
# ---------------------------------------------------------------------------


class ExporterSettings(BaseSettings):
    """Exporter process configuration.

    Attributes:
        listen_address: ``[host]:port`` the HTTP server binds to.
        metrics_path: Path under which metrics are exposed.
        targets: Comma-separated inline target list.
        community: Default SNMP community; falls back to the file's value.
        config_file: Path of the YAML target file.
        family: Default register map for targets without an override.
        snmp_port: Default SNMP agent port.
        snmp_version: ``"1"`` or ``"2c"``.
        snmp_timeout_s: Timeout of each SNMP request.
        scrape_timeout_s: Optional deadline of a whole scrape.
        metric_prefix: Prefix of every metric name.
        health_file: Optional path of a JSON health file.
        debug: Enable debug logging.
    """

    listen_address: str = ":9332"
    metrics_path: str = "/metrics"
    targets: str = ""
    community: str = ""
    config_file: str = "config.yml"
    family: str = DEFAULT_FAMILY
    snmp_port: int = 161
    snmp_version: str = "1"
    snmp_timeout_s: float = 2.0
    scrape_timeout_s: float | None = None
    metric_prefix: str = DEFAULT_PREFIX
    health_file: str | None = None
    debug: bool = False

    @field_validator("family")
    @classmethod
    def family_must_be_known(cls, v: str) -> str:
        """Reject families without a register map at startup."""
        return _check_family(v)  # type: ignore[return-value]

    @field_validator("metrics_path")
    @classmethod
    def metrics_path_must_be_absolute(cls, v: str) -> str:
        """Validate that the metrics path starts with ``/``."""
        if not v.startswith("/"):
            raise ValueError("USV_METRICS_PATH must start with '/'")
        return v

    @field_validator("snmp_port")
    @classmethod
    def snmp_port_must_be_valid(cls, v: int) -> int:
        """Validate SNMP port is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("USV_SNMP_PORT must be between 1 and 65535")
        return v

    @field_validator("snmp_version")
    @classmethod
    def snmp_version_must_be_supported(cls, v: str) -> str:
        """Only community-based SNMP versions are supported."""
        if v not in ("1", "2c"):
            raise ValueError("USV_SNMP_VERSION must be '1' or '2c'")
        return v

    @field_validator("snmp_timeout_s")
    @classmethod
    def snmp_timeout_must_be_positive(cls, v: float) -> float:
        """Validate SNMP timeout is positive."""
        if v <= 0:
            raise ValueError("USV_SNMP_TIMEOUT_S must be > 0")
        return v

    @field_validator("scrape_timeout_s")
    @classmethod
    def scrape_timeout_must_be_positive(cls, v: float | None) -> float | None:
        """Validate the optional scrape deadline is positive."""
        if v is not None and v <= 0:
            raise ValueError("USV_SCRAPE_TIMEOUT_S must be > 0")
        return v

    model_config = {
        "env_prefix": "USV_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }


def parse_listen_address(value: str) -> tuple[str, int]:
    """Split ``[host]:port`` into ``(host, port)``; empty host binds all."""
    host, sep, port = value.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"listen address must be '[host]:port', got '{value}'")
    return host.strip("[]") or "0.0.0.0", int(port)


# ---------------------------------------------------------------------------
# Target file
# ---------------------------------------------------------------------------


class TargetEntry(BaseModel):
    """A target in the YAML file with optional per-target overrides."""

    address: str
    community: str | None = None
    family: str | None = None

    @field_validator("family")
    @classmethod
    def family_must_be_known(cls, v: str | None) -> str | None:
        """Reject families without a register map at startup."""
        return _check_family(v)


class FileConfig(BaseModel):
    """Contents of the YAML target file."""

    community: str = ""
    targets: list[str | TargetEntry] = []


def load_file_config(path: str | Path) -> FileConfig:
    """Read and validate the YAML target file at *path*.

    An empty file yields an empty :class:`FileConfig`.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated.
    """
    try:
        with open(path, encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except OSError as exc:
        raise ConfigError(f"cannot read config file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: top level must be a mapping")

    try:
        return FileConfig.model_validate(raw)
    except ValidationError as exc:
        raise ConfigError(f"invalid config file {path}: {exc}") from exc
