"""
Target resolution: merge the inline target list with the target file.

The effective target set is the comma-separated inline list followed by the
file entries.  Empty entries are skipped and duplicates are kept, so a
duplicated address is polled and reported once per occurrence.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from usv_exporter.src.config import TargetEntry
from usv_exporter.src.models import Target
from usv_exporter.src.registers import get_family

logger = logging.getLogger(__name__)


def parse_address(address: str, default_port: int = 161) -> tuple[str, int]:
    """Split ``host[:port]`` into host and port.

    IPv6 literals must be bracketed when a port is given (``[::1]:161``);
    a bare IPv6 literal uses *default_port*.

    Raises:
        ValueError: If the port is not a valid number.
    """
    address = address.strip()
    if address.startswith("["):
        host, _, rest = address[1:].partition("]")
        port = rest[1:] if rest.startswith(":") else ""
    elif address.count(":") == 1:
        host, _, port = address.partition(":")
    else:
        host, port = address, ""

    if not port:
        return host, default_port
    if not port.isdigit() or not 1 <= int(port) <= 65535:
        raise ValueError(f"invalid port in target address '{address}'")
    return host, int(port)


def resolve_targets(
    inline: str,
    entries: Sequence[str | TargetEntry],
    *,
    community: str,
    family: str,
    port: int = 161,
) -> list[Target]:
    """Build the target list polled on every scrape.

    Args:
        inline: Comma-separated addresses from the command line.
        entries: Target file entries, plain addresses or
            :class:`~usv_exporter.src.config.TargetEntry` overrides.
        community: Default community for targets without an override.
        family: Default register map for targets without an override.
        port: Default SNMP port when the address carries none.

    Raises:
        UnknownFamilyError: If any effective family has no register map.
        ValueError: If an address carries an invalid port.
    """
    candidates: list[TargetEntry] = [
        TargetEntry(address=address) for address in inline.split(",")
    ]
    candidates += [
        TargetEntry(address=entry) if isinstance(entry, str) else entry
        for entry in entries
    ]

    targets: list[Target] = []
    for entry in candidates:
        address = entry.address.strip()
        if not address:
            continue
        target_family = entry.family or family
        get_family(target_family)
        host, target_port = parse_address(address, port)
        targets.append(
            Target(
                address=address,
                host=host,
                port=target_port,
                community=entry.community if entry.community is not None else community,
                family=target_family,
            )
        )

    logger.info("Resolved %d target(s)", len(targets))
    return targets
