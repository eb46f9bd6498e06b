"""
Measurement catalogue -- the fixed set of gauges the exporter can emit.

Descriptors are built once at startup by :func:`build_catalogue` and handed
to the poller; nothing is registered at import time.  Every descriptor is a
gauge and carries a ``target`` label, phase-scoped descriptors additionally
carry ``phase`` and ``bad_input`` carries ``cause``.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass

DEFAULT_PREFIX = "eaton_usv_"

# ---------------------------------------------------------------------------
# Logical measurement keys
# ---------------------------------------------------------------------------

UP = "up"
BATTERY_REMAINING = "battery_remaining"
BATTERY_CHARGE = "battery_charge"
INPUT_VOLTAGE = "input_voltage"
OUTPUT_VOLTAGE = "output_voltage"
INPUT_FREQUENCY = "input_frequency"
OUTPUT_FREQUENCY = "output_frequency"
OUTPUT_LOAD = "output_load"
OUTPUT_POWER = "output_power"
ON_BATTERY = "on_battery"
ON_BYPASS = "on_bypass"
BAD_INPUT = "bad_input"
AMBIENT_TEMP = "ambient_temp"

_TARGET = ("target",)
_PHASE = ("target", "phase")
_CAUSE = ("target", "cause")

_DEFINITIONS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    (UP, "Scrape of target was successful", _TARGET),
    (BATTERY_REMAINING, "The time remaining actual charge vs actual load", _TARGET),
    (BATTERY_CHARGE, "The battery level as a percentage of charge", _TARGET),
    (INPUT_VOLTAGE, "The input phase voltage", _PHASE),
    (OUTPUT_VOLTAGE, "The output phase voltage.", _PHASE),
    (INPUT_FREQUENCY, "The input frequency", _TARGET),
    (OUTPUT_FREQUENCY, "The output frequency.", _TARGET),
    (OUTPUT_LOAD, "The output load.", _PHASE),
    (OUTPUT_POWER, "The output power in VA.", _PHASE),
    (ON_BATTERY, "The UPS is running on battery", _TARGET),
    (ON_BYPASS, "The UPS is running on bypass", _TARGET),
    (BAD_INPUT, "The utility input is out of tolerance", _CAUSE),
    (
        AMBIENT_TEMP,
        "The ambient temperature in the vicinity of the UPS (in degrees C)",
        _TARGET,
    ),
)


# ---------------------------------------------------------------------------
# Data definitions
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MeasurementDescriptor:
    """Immutable description of one gauge.

    Attributes:
        name: Full metric name including the prefix.
        documentation: Help text.
        labels: Ordered label names.
        kind: Metric type; always ``"gauge"``.
    """

    name: str
    documentation: str
    labels: tuple[str, ...]
    kind: str = "gauge"


@dataclass(frozen=True, slots=True)
class Measurement:
    """A single sample produced by a poller."""

    descriptor: MeasurementDescriptor
    value: float
    label_values: tuple[str, ...]

    def __post_init__(self) -> None:  # noqa: D105
        if len(self.label_values) != len(self.descriptor.labels):
            msg = (
                f"Measurement '{self.descriptor.name}': expected "
                f"{len(self.descriptor.labels)} label values, "
                f"got {len(self.label_values)}"
            )
            raise ValueError(msg)


class Catalogue(Mapping[str, MeasurementDescriptor]):
    """Read-only table of descriptors keyed by logical measurement key."""

    def __init__(self, descriptors: dict[str, MeasurementDescriptor]) -> None:
        self._descriptors = dict(descriptors)

    def __getitem__(self, key: str) -> MeasurementDescriptor:
        return self._descriptors[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def measurement(self, key: str, value: float, *label_values: str) -> Measurement:
        """Build a :class:`Measurement` for the descriptor stored under *key*."""
        return Measurement(self._descriptors[key], value, tuple(label_values))


def build_catalogue(prefix: str = DEFAULT_PREFIX) -> Catalogue:
    """Construct the descriptor table with every name prefixed by *prefix*."""
    return Catalogue(
        {
            key: MeasurementDescriptor(prefix + key, doc, labels)
            for key, doc, labels in _DEFINITIONS
        }
    )
