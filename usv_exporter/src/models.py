"""
Per-scrape data models: polling targets and per-target outcomes.

A :class:`Target` is resolved once at startup and never mutated.  A
:class:`PollOutcome` is created fresh for every target on every scrape and
carries the measurements of that target as one unit.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from usv_exporter.src.catalogue import Measurement


class Target(BaseModel):
    """A UPS to poll.

    Attributes:
        address: Address as configured; used verbatim as the ``target`` label.
        host: Host name or IP address part of *address*.
        port: SNMP agent UDP port.
        community: SNMP community used for this target.
        family: Register map identifier (see ``registers.FAMILIES``).
    """

    model_config = ConfigDict(frozen=True)

    address: str
    host: str
    port: int = Field(default=161, ge=1, le=65535)
    community: str = ""
    family: str = "xups"


class OutcomeStatus(str, Enum):
    """How far a poll cycle got for one target."""

    COMPLETE = "complete"
    PARTIAL = "partial"
    UNREACHABLE = "unreachable"


@dataclass(frozen=True, slots=True)
class PollOutcome:
    """Result of one poll cycle for one target."""

    target: Target
    status: OutcomeStatus
    measurements: tuple[Measurement, ...]

    @property
    def up(self) -> bool:
        """True unless the target was unreachable."""
        return self.status is not OutcomeStatus.UNREACHABLE
