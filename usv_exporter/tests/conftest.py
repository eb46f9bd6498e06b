"""
Shared test fixtures for exporter tests.

Provides scripted in-memory SNMP sessions so poller and coordinator tests run
without a network, and cleans ``USV_*`` environment variables before every
test so settings tests are isolated.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterator, Sequence

import pytest
from usv_exporter.src.catalogue import Catalogue, build_catalogue
from usv_exporter.src.session import ConnectError, TransportError

_ALL_USV_ENV_VARS = (
    "USV_LISTEN_ADDRESS",
    "USV_METRICS_PATH",
    "USV_TARGETS",
    "USV_COMMUNITY",
    "USV_CONFIG_FILE",
    "USV_FAMILY",
    "USV_SNMP_PORT",
    "USV_SNMP_VERSION",
    "USV_SNMP_TIMEOUT_S",
    "USV_SCRAPE_TIMEOUT_S",
    "USV_METRIC_PREFIX",
    "USV_HEALTH_FILE",
    "USV_DEBUG",
)


class FakeSession:
    """Scripted session answering reads from an ``{oid: value}`` dict.

    Args:
        values: Register values; unknown OIDs read as absent.
        fail_oids: A read containing any of these OIDs raises TransportError.
        delay_s: Seconds every read sleeps before answering.
    """

    def __init__(
        self,
        values: dict[str, int | None] | None = None,
        fail_oids: Sequence[str] = (),
        delay_s: float = 0.0,
    ) -> None:
        self.values = dict(values or {})
        self.fail_oids = set(fail_oids)
        self.delay_s = delay_s
        self.reads: list[list[str]] = []
        self.closed = False

    async def read(self, oids: Sequence[str]) -> list[int | None]:
        self.reads.append(list(oids))
        if self.delay_s:
            await asyncio.sleep(self.delay_s)
        if self.fail_oids.intersection(oids):
            raise TransportError("simulated timeout")
        return [self.values.get(oid) for oid in oids]

    def close(self) -> None:
        self.closed = True


class FakeSessionClient:
    """Session factory handing out :class:`FakeSession` objects per host.

    Hosts missing from *sessions* raise ConnectError on open.
    """

    def __init__(self, sessions: dict[str, FakeSession] | None = None) -> None:
        self.sessions = dict(sessions or {})
        self.opened: list[tuple[str, int, str, float]] = []

    async def open(
        self, host: str, port: int, community: str, timeout: float
    ) -> FakeSession:
        self.opened.append((host, port, community, timeout))
        if host not in self.sessions:
            raise ConnectError(f"no route to {host}")
        return self.sessions[host]


@pytest.fixture(autouse=True)
def _clean_usv_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all exporter env vars and isolate from .env files."""
    for var in _ALL_USV_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture(autouse=True)
def _restore_root_logger() -> Iterator[None]:
    """Undo configure_logging() calls made by a test."""
    root = logging.getLogger()
    access = logging.getLogger("uvicorn.access")
    handlers, level, access_level = root.handlers[:], root.level, access.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    access.setLevel(access_level)


@pytest.fixture()
def catalogue() -> Catalogue:
    """Descriptor table with the default prefix."""
    return build_catalogue()
