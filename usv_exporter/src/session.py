"""
SNMP session client consumed by the device poller.

The poller only depends on the :class:`SessionClient` / :class:`Session`
protocols; :class:`SnmpSessionClient` is the production implementation on
top of the pysnmp asyncio high-level API.  One session is opened per target
per scrape and closed when the poll finishes.

Failure mapping:

- transport target cannot be created (bad address, DNS) -> ConnectError
- error indication (timeout, ...) on a GET -> TransportError
- SNMPv1 ``noSuchName`` error status -> every value of the batch absent
- any other error status -> TransportError
- ``noSuchObject`` / ``noSuchInstance`` / ``endOfMibView`` or a non-integer
  value -> that value absent (``None``)

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Protocol

from pysnmp.hlapi.v3arch.asyncio import (
    CommunityData,
    ContextData,
    ObjectIdentity,
    ObjectType,
    SnmpEngine,
    Udp6TransportTarget,
    UdpTransportTarget,
    get_cmd,
)
from pysnmp.proto.rfc1905 import EndOfMibView, NoSuchInstance, NoSuchObject

logger = logging.getLogger(__name__)

SNMP_PORT = 161
NO_SUCH_NAME = 2
"""SNMPv1 error-status code ``noSuchName``."""

_MP_MODELS = {"1": 0, "2c": 1}
_ABSENT_TYPES = (NoSuchObject, NoSuchInstance, EndOfMibView)


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class SessionError(Exception):
    """Base class for session failures."""


class ConnectError(SessionError):
    """A session to the target could not be established."""


class TransportError(SessionError):
    """A request on an open session failed."""


# ---------------------------------------------------------------------------
# Interface
# ---------------------------------------------------------------------------


class Session(Protocol):
    """An open session to one device."""

    async def read(self, oids: Sequence[str]) -> list[int | None]:
        """Read *oids* in one request, returning values in the same order."""
        ...

    def close(self) -> None:
        """Release the session."""
        ...


class SessionClient(Protocol):
    """Factory for :class:`Session` objects."""

    async def open(
        self,
        host: str,
        port: int,
        community: str,
        timeout: float,
    ) -> Session:
        """Open a session or raise :class:`ConnectError`."""
        ...


# ---------------------------------------------------------------------------
# pysnmp implementation
# ---------------------------------------------------------------------------


def to_int(value: Any) -> int | None:
    """Convert a pysnmp value to ``int``, ``None`` when absent or non-numeric."""
    if value is None or isinstance(value, _ABSENT_TYPES):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class SnmpSession:
    """Session over one pysnmp engine and UDP transport target."""

    def __init__(
        self,
        engine: SnmpEngine,
        auth: CommunityData,
        transport: UdpTransportTarget | Udp6TransportTarget,
        host: str,
    ) -> None:
        self._engine = engine
        self._auth = auth
        self._transport = transport
        self._host = host

    async def read(self, oids: Sequence[str]) -> list[int | None]:
        """Issue one GET for all *oids*.

        Raises:
            TransportError: On error indication or a non-``noSuchName``
                error status.
        """
        try:
            error_indication, error_status, error_index, var_binds = await get_cmd(
                self._engine,
                self._auth,
                self._transport,
                ContextData(),
                *[ObjectType(ObjectIdentity(oid)) for oid in oids],
            )
        except Exception as exc:
            raise TransportError(f"GET to {self._host} failed: {exc}") from exc

        if error_indication:
            raise TransportError(f"GET to {self._host} failed: {error_indication}")

        if error_status:
            if int(error_status) == NO_SUCH_NAME:
                logger.debug(
                    "noSuchName from %s at index %s", self._host, error_index
                )
                return [None] * len(oids)
            raise TransportError(
                f"GET to {self._host} failed: {error_status.prettyPrint()} "
                f"at {error_index}"
            )

        values: list[int | None] = [to_int(value) for _, value in var_binds]
        # Pad short responses so positions always line up with *oids*.
        values.extend([None] * (len(oids) - len(values)))
        return values[: len(oids)]

    def close(self) -> None:
        """Shut down the engine's transport dispatcher."""
        self._engine.close_dispatcher()


class SnmpSessionClient:
    """Opens :class:`SnmpSession` objects.

    Args:
        version: SNMP version, ``"1"`` or ``"2c"``.
        retries: Retries per request; the exporter never retries.
    """

    def __init__(self, *, version: str = "1", retries: int = 0) -> None:
        if version not in _MP_MODELS:
            raise ValueError(f"SNMP version must be '1' or '2c', got '{version}'")
        self._mp_model = _MP_MODELS[version]
        self._retries = retries

    async def open(
        self,
        host: str,
        port: int,
        community: str,
        timeout: float,
    ) -> SnmpSession:
        """Create the engine and transport target for *host*.

        Raises:
            ConnectError: If the transport target cannot be created.
        """
        transport_cls = Udp6TransportTarget if ":" in host else UdpTransportTarget
        try:
            transport = await transport_cls.create(
                (host, port), timeout=timeout, retries=self._retries
            )
        except Exception as exc:
            raise ConnectError(f"cannot open session to {host}:{port}: {exc}") from exc

        return SnmpSession(
            SnmpEngine(),
            CommunityData(community, mpModel=self._mp_model),
            transport,
            host,
        )
