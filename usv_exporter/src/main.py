"""
Exporter entry point: parse flags, load configuration, serve HTTP.

Startup sequence:
1. Parse command-line flags; they override ``USV_*`` environment settings.
2. Load the YAML target file and merge it with the inline target list.
3. Build the catalogue, SNMP client, poller and coordinator once.
4. Serve the FastAPI app with uvicorn until interrupted.

Any configuration problem (unknown family, invalid settings, unreadable
target file) is logged and terminates the process with exit code 1.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import argparse
import hashlib
import json
import logging
import sys
from collections.abc import Sequence
from datetime import UTC, datetime

import uvicorn
from pydantic import ValidationError

from usv_exporter.src import __version__
from usv_exporter.src.app import create_app
from usv_exporter.src.catalogue import build_catalogue
from usv_exporter.src.config import (
    ConfigError,
    ExporterSettings,
    load_file_config,
    parse_listen_address,
)
from usv_exporter.src.coordinator import ScrapeCoordinator
from usv_exporter.src.health import ScrapeHealth
from usv_exporter.src.poller import DevicePoller
from usv_exporter.src.registers import FAMILIES, UnknownFamilyError
from usv_exporter.src.session import SnmpSessionClient
from usv_exporter.src.targets import resolve_targets

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


class JsonLogFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(debug: bool = False) -> None:
    """Route exporter and uvicorn logs to stderr as JSON lines.

    uvicorn runs with ``log_config=None`` so its loggers propagate to the
    root handler installed here.  Every Prometheus scrape is an HTTP request,
    so the access log is only shown with *debug*, together with the
    per-target poll summaries.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonLogFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    logging.getLogger("uvicorn.access").setLevel(
        logging.DEBUG if debug else logging.WARNING
    )


def _masked_token(value: str | None) -> str:
    """Fingerprint the SNMP community so startup logs never carry it."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"


def log_config_summary(settings: ExporterSettings, target_count: int) -> None:
    """Log a config summary at startup, with the community masked."""
    logger.info(
        "Exporter starting with config: "
        "listen_address=%s, metrics_path=%s, config_file=%s, family=%s, "
        "snmp_port=%s, snmp_version=%s, snmp_timeout_s=%s, "
        "scrape_timeout_s=%s, metric_prefix=%s, targets=%d, "
        "community_masked=%s",
        settings.listen_address,
        settings.metrics_path,
        settings.config_file,
        settings.family,
        settings.snmp_port,
        settings.snmp_version,
        settings.snmp_timeout_s,
        settings.scrape_timeout_s,
        settings.metric_prefix,
        target_count,
        _masked_token(settings.community),
    )


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    """Build the command-line parser; unset flags leave settings untouched."""
    parser = argparse.ArgumentParser(
        prog="eaton_usv_exporter",
        description="Prometheus exporter for Eaton UPS devices over SNMP.",
    )
    parser.add_argument(
        "--version", action="store_true", help="Print version information."
    )
    parser.add_argument(
        "--listen-address", help="Address on which to expose metrics."
    )
    parser.add_argument(
        "--path", dest="metrics_path", help="Path under which to expose metrics."
    )
    parser.add_argument("--targets", help="targets to scrape")
    parser.add_argument("--community", help="SNMP community")
    parser.add_argument("--config-file", help="Path to config file")
    parser.add_argument(
        "--family",
        choices=sorted(FAMILIES),
        help="Default UPS register family",
    )
    parser.add_argument(
        "--debug", action="store_true", default=None, help="Show debug log"
    )
    return parser


def load_settings(argv: Sequence[str] | None = None) -> tuple[ExporterSettings, bool]:
    """Parse *argv* and merge flags over environment settings.

    Returns:
        The settings and whether ``--version`` was requested.
    """
    args = build_parser().parse_args(argv)
    overrides = {
        key: value
        for key, value in vars(args).items()
        if key != "version" and value is not None
    }
    return ExporterSettings(**overrides), args.version


# ---------------------------------------------------------------------------
# Assembly
# ---------------------------------------------------------------------------


def build_coordinator(settings: ExporterSettings) -> ScrapeCoordinator:
    """Resolve targets and wire the poller and coordinator.

    Raises:
        ConfigError: If the target file cannot be loaded.
        UnknownFamilyError: If a target names an unknown family.
    """
    logger.info("Loading config from %s", settings.config_file)
    file_config = load_file_config(settings.config_file)

    community = settings.community or file_config.community
    targets = resolve_targets(
        settings.targets,
        file_config.targets,
        community=community,
        family=settings.family,
        port=settings.snmp_port,
    )

    poller = DevicePoller(
        SnmpSessionClient(version=settings.snmp_version),
        build_catalogue(settings.metric_prefix),
        timeout_s=settings.snmp_timeout_s,
    )
    log_config_summary(settings.model_copy(update={"community": community}), len(targets))
    return ScrapeCoordinator(
        targets, poller, cycle_timeout_s=settings.scrape_timeout_s
    )


def main(argv: Sequence[str] | None = None) -> int:
    """Synchronous entrypoint for the exporter."""
    try:
        settings, show_version = load_settings(argv)
    except ValidationError as exc:
        print(f"invalid configuration: {exc}", file=sys.stderr)
        return 1

    if show_version:
        print("eaton_usv_exporter")
        print(f"Version: {__version__}")
        return 0

    configure_logging(settings.debug)

    try:
        coordinator = build_coordinator(settings)
        host, port = parse_listen_address(settings.listen_address)
    except (ConfigError, UnknownFamilyError, ValueError) as exc:
        logger.error("could not load config: %s", exc)
        return 1

    app = create_app(
        coordinator,
        metrics_path=settings.metrics_path,
        health=ScrapeHealth(settings.health_file),
    )
    logger.info("Starting EATON usv exporter (Version: %s)", __version__)
    logger.info("Listening for %s on %s", settings.metrics_path, settings.listen_address)
    uvicorn.run(app, host=host, port=port, log_config=None)
    return 0


if __name__ == "__main__":
    sys.exit(main())
