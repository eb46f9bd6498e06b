"""
UPS SNMP register maps -- single source of truth per device family.

Two UPS families expose the same physical quantities under different OIDs
and with different status-code encodings.  Each family is described by one
:class:`FamilyMap` entry in :data:`FAMILIES`; the poller is family-agnostic
and only consults the map, so supporting a third family means adding one
table entry.

Each map provides:

- ``core``: registers fetched in a single batched GET per scrape.
- ``input_phase`` / ``output_phase``: OID templates read once per phase
  index (1-based), ``{phase}`` is substituted.
- ``flag_codes``: raw status codes meaning "true" for boolean registers.
- ``cause_labels``: decoding of the bad-input cause register.

References:
    - Eaton/Powerware XUPS-MIB (enterprise 534)
    - MGE-UPS-MIB (enterprise 705)

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

# ---------------------------------------------------------------------------
# Semantic register keys
# ---------------------------------------------------------------------------

BATTERY_REMAINING = "battery_remaining"
BATTERY_CHARGE = "battery_charge"
INPUT_PHASES = "input_phases"
OUTPUT_PHASES = "output_phases"
INPUT_FREQUENCY = "input_frequency"
OUTPUT_FREQUENCY = "output_frequency"
OUTPUT_LOAD = "output_load"
OUTPUT_POWER_RAW = "output_power_raw"
ON_BATTERY = "on_battery"
ON_BYPASS = "on_bypass"
OUTPUT_SOURCE = "output_source"
BAD_INPUT_STATUS = "bad_input_status"
BAD_INPUT_CAUSE = "bad_input_cause"
AMBIENT_TEMP = "ambient_temp"

VOLTAGE = "voltage"
LOAD = "load"

INPUT = "input"
OUTPUT = "output"

BAD_INPUT_CAUSES: Mapping[int, str] = MappingProxyType(
    {
        1: "no",
        2: "voltage out of tolerance",
        3: "frequency out of tolerance",
        4: "no voltage at all",
    }
)
"""Bad-input cause codes; anything else decodes to an empty string."""


class UnknownFamilyError(ValueError):
    """Raised when a family identifier has no register map."""

    def __init__(self, family: str) -> None:
        self.family = family
        known = ", ".join(sorted(FAMILIES))
        super().__init__(f"unknown UPS family '{family}' (known: {known})")


# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FamilyMap:
    """Register layout of one UPS family.

    Attributes:
        name: Family identifier used in configuration.
        description: Free-text description.
        core: Ordered ``{key: oid}`` read in one batched request.
        input_phase: Ordered ``{key: oid_template}`` per input phase.
        output_phase: Ordered ``{key: oid_template}`` per output phase.
        flag_codes: ``{key: codes}`` where a raw value in *codes* means 1.
        flag_sources: ``{flag: register}`` for flags decoded from another
            core register; flags not listed are read from their own key.
        cause_labels: ``{code: text}`` for the bad-input cause register.
    """

    name: str
    description: str
    core: Mapping[str, str]
    input_phase: Mapping[str, str]
    output_phase: Mapping[str, str]
    flag_codes: Mapping[str, frozenset[int]] = field(default_factory=dict)
    flag_sources: Mapping[str, str] = field(default_factory=dict)
    cause_labels: Mapping[int, str] = field(default_factory=lambda: BAD_INPUT_CAUSES)

    def core_keys(self) -> list[str]:
        """Return the core register keys in request order."""
        return list(self.core)

    def core_oids(self) -> list[str]:
        """Return the core OIDs in the same order as :meth:`core_keys`."""
        return list(self.core.values())

    def phase_table(self, direction: str) -> Mapping[str, str]:
        """Return the per-phase template table for ``"input"`` or ``"output"``."""
        if direction == INPUT:
            return self.input_phase
        if direction == OUTPUT:
            return self.output_phase
        raise ValueError(f"direction must be 'input' or 'output', got '{direction}'")

    def phase_oids(self, direction: str, phase: int) -> list[str]:
        """Return the concrete OIDs of *direction* for 1-based *phase*."""
        return [
            template.format(phase=phase)
            for template in self.phase_table(direction).values()
        ]

    @property
    def per_phase_load(self) -> bool:
        """True when output load is reported per output phase."""
        return LOAD in self.output_phase

    def flag_register(self, key: str) -> str:
        """Return the core register key holding the raw value of flag *key*."""
        return self.flag_sources.get(key, key)

    def decode_flag(self, key: str, code: int) -> int:
        """Map a raw status code of boolean register *key* to 0 or 1."""
        return 1 if code in self.flag_codes.get(key, ()) else 0

    def decode_cause(self, code: int | None) -> str:
        """Map a bad-input cause code to its text, ``""`` when unknown."""
        if code is None:
            return ""
        return self.cause_labels.get(code, "")


# ---------------------------------------------------------------------------
# Eaton / Powerware XUPS-MIB (1.3.6.1.4.1.534)
# ---------------------------------------------------------------------------

_XUPS = "1.3.6.1.4.1.534.1"

XUPS = FamilyMap(
    name="xups",
    description="Eaton/Powerware XUPS-MIB",
    core=MappingProxyType(
        {
            BATTERY_REMAINING: f"{_XUPS}.2.1.0",
            BATTERY_CHARGE: f"{_XUPS}.2.4.0",
            INPUT_PHASES: f"{_XUPS}.3.3.0",
            OUTPUT_PHASES: f"{_XUPS}.4.3.0",
            AMBIENT_TEMP: f"{_XUPS}.6.1.0",
            OUTPUT_FREQUENCY: f"{_XUPS}.4.2.0",
            INPUT_FREQUENCY: f"{_XUPS}.3.1.0",
            OUTPUT_LOAD: f"{_XUPS}.4.1.0",
            OUTPUT_POWER_RAW: f"{_XUPS}.10.3.0",
            OUTPUT_SOURCE: f"{_XUPS}.4.5.0",
        }
    ),
    input_phase=MappingProxyType({VOLTAGE: _XUPS + ".3.4.1.2.{phase}"}),
    output_phase=MappingProxyType({VOLTAGE: _XUPS + ".4.4.1.2.{phase}"}),
    # xupsOutputSource drives both flags
    flag_sources=MappingProxyType(
        {ON_BATTERY: OUTPUT_SOURCE, ON_BYPASS: OUTPUT_SOURCE}
    ),
    flag_codes=MappingProxyType(
        {
            # other(1) none(2) normal(3) bypass(4) battery(5) ...
            ON_BATTERY: frozenset({5}),
            ON_BYPASS: frozenset({4}),
        }
    ),
)

# ---------------------------------------------------------------------------
# MGE-UPS-MIB (1.3.6.1.4.1.705)
# ---------------------------------------------------------------------------

_MGE = "1.3.6.1.4.1.705.1"

MGE = FamilyMap(
    name="mge",
    description="MGE-UPS-MIB (Eaton Pulsar / Evolution)",
    core=MappingProxyType(
        {
            BATTERY_REMAINING: f"{_MGE}.5.1.0",
            BATTERY_CHARGE: f"{_MGE}.5.2.0",
            INPUT_PHASES: f"{_MGE}.6.1.0",
            OUTPUT_PHASES: f"{_MGE}.7.1.0",
            ON_BATTERY: f"{_MGE}.7.3.0",
            ON_BYPASS: f"{_MGE}.7.4.0",
            AMBIENT_TEMP: f"{_MGE}.8.1.0",
            BAD_INPUT_STATUS: f"{_MGE}.6.3.0",
            BAD_INPUT_CAUSE: f"{_MGE}.6.4.0",
            OUTPUT_POWER_RAW: f"{_MGE}.4.12.0",
            # frequency of the first phase stands for the whole unit
            INPUT_FREQUENCY: f"{_MGE}.6.2.1.3.1",
            OUTPUT_FREQUENCY: f"{_MGE}.7.2.1.3.1",
        }
    ),
    input_phase=MappingProxyType({VOLTAGE: _MGE + ".6.2.1.2.{phase}"}),
    output_phase=MappingProxyType(
        {
            VOLTAGE: _MGE + ".7.2.1.2.{phase}",
            LOAD: _MGE + ".7.2.1.4.{phase}",
        }
    ),
    flag_codes=MappingProxyType(
        {
            # yes(1) no(2)
            ON_BATTERY: frozenset({1}),
            ON_BYPASS: frozenset({1}),
            BAD_INPUT_STATUS: frozenset({1}),
        }
    ),
)

# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

FAMILIES: Mapping[str, FamilyMap] = MappingProxyType(
    {family.name: family for family in (XUPS, MGE)}
)
"""All supported families keyed by identifier."""

DEFAULT_FAMILY = XUPS.name


def get_family(name: str) -> FamilyMap:
    """Return the register map for *name*.

    Raises:
        UnknownFamilyError: If *name* is not a key of :data:`FAMILIES`.
    """
    try:
        return FAMILIES[name]
    except KeyError:
        raise UnknownFamilyError(name) from None
