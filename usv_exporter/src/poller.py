"""
Async SNMP poller for a single UPS.

Runs one measurement cycle against one target and returns a
:class:`~usv_exporter.src.models.PollOutcome`.  Designed to be robust:

- Never raises to the caller for device or transport problems.
- Connect failure or a failed core read -> ``up 0`` and nothing else.
- ``timeout_s`` bounds the whole session, open included; a session still
  running when it expires is discarded and reported as ``up 0``.
- A failed phase read aborts the remaining phases of that direction only;
  phases already read are kept and the outcome is marked partial.
- Absent register values are skipped without logging noise.

Output power is derived as ``trunc(raw_power / 100) * load``.  The early
truncation matches the values published by earlier exporter releases and
must not be "fixed" to ``raw_power * load / 100``.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from usv_exporter.src import catalogue as cat
from usv_exporter.src import registers as reg
from usv_exporter.src.models import OutcomeStatus, PollOutcome
from usv_exporter.src.session import ConnectError, TransportError

if TYPE_CHECKING:
    from usv_exporter.src.catalogue import Catalogue, Measurement
    from usv_exporter.src.models import Target
    from usv_exporter.src.registers import FamilyMap
    from usv_exporter.src.session import Session, SessionClient

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

SNMP_TIMEOUT_S: float = 2.0
"""Timeout per SNMP request in seconds."""

_DIRECT: dict[str, str] = {
    reg.BATTERY_REMAINING: cat.BATTERY_REMAINING,
    reg.BATTERY_CHARGE: cat.BATTERY_CHARGE,
    reg.AMBIENT_TEMP: cat.AMBIENT_TEMP,
    reg.INPUT_FREQUENCY: cat.INPUT_FREQUENCY,
    reg.OUTPUT_FREQUENCY: cat.OUTPUT_FREQUENCY,
}
"""Core registers published as-is: register key -> measurement key."""

_FLAGS: dict[str, str] = {
    reg.ON_BATTERY: cat.ON_BATTERY,
    reg.ON_BYPASS: cat.ON_BYPASS,
}

_VOLTAGE_KEYS: dict[str, str] = {
    reg.INPUT: cat.INPUT_VOLTAGE,
    reg.OUTPUT: cat.OUTPUT_VOLTAGE,
}


def derive_output_power(raw_power: int, load: int) -> int:
    """Return ``trunc(raw_power / 100) * load`` using truncating division."""
    hundreds = abs(raw_power) // 100
    if raw_power < 0:
        hundreds = -hundreds
    return hundreds * load


class DevicePoller:
    """Polls one UPS per call to :meth:`poll`.

    Stateless between calls; a single instance is shared by all concurrent
    target tasks of a scrape.

    Args:
        client: Session factory.
        catalogue: Descriptor table used to build measurements.
        timeout_s: Lifetime of one session, also passed to the client as
            the per-request timeout.
    """

    def __init__(
        self,
        client: SessionClient,
        catalogue: Catalogue,
        *,
        timeout_s: float = SNMP_TIMEOUT_S,
    ) -> None:
        self._client = client
        self._catalogue = catalogue
        self._timeout_s = timeout_s

    def unreachable(self, target: Target) -> PollOutcome:
        """Build the outcome of a target that could not be polled."""
        return PollOutcome(
            target=target,
            status=OutcomeStatus.UNREACHABLE,
            measurements=(self._catalogue.measurement(cat.UP, 0, target.address),),
        )

    async def poll(self, target: Target) -> PollOutcome:
        """Execute one measurement cycle against *target*.

        Raises:
            UnknownFamilyError: If the target's family has no register map.
                Targets are validated at startup so this indicates a bug.
        """
        family = reg.get_family(target.family)
        session: Session | None = None
        try:
            async with asyncio.timeout(self._timeout_s):
                try:
                    session = await self._client.open(
                        target.host, target.port, target.community, self._timeout_s
                    )
                except ConnectError:
                    logger.warning(
                        "Failed to open session to %s", target.address, exc_info=True
                    )
                    return self.unreachable(target)
                return await self._do_poll(session, family, target)
        except TimeoutError:
            logger.warning(
                "Session to %s exceeded %ss, discarding its results",
                target.address,
                self._timeout_s,
            )
            return self.unreachable(target)
        finally:
            if session is not None:
                session.close()

    # -----------------------------------------------------------------------
    # Internal poll sequence
    # -----------------------------------------------------------------------

    async def _do_poll(
        self,
        session: Session,
        family: FamilyMap,
        target: Target,
    ) -> PollOutcome:
        label = target.address

        try:
            raw = await session.read(family.core_oids())
        except TransportError:
            logger.warning("Core read from %s failed", label, exc_info=True)
            return self.unreachable(target)

        core = dict(zip(family.core_keys(), raw, strict=True))
        out: list[Measurement] = []
        self._decode_core(family, core, label, out)

        raw_power = core.get(reg.OUTPUT_POWER_RAW)
        complete = await self._read_phases(
            session, family, reg.INPUT, core.get(reg.INPUT_PHASES) or 0, label, out
        )
        complete &= await self._read_phases(
            session,
            family,
            reg.OUTPUT,
            core.get(reg.OUTPUT_PHASES) or 0,
            label,
            out,
            raw_power=raw_power,
        )

        # Families without per-phase load report one aggregate value.
        load = core.get(reg.OUTPUT_LOAD)
        if not family.per_phase_load and raw_power is not None and load is not None:
            out.append(
                self._catalogue.measurement(
                    cat.OUTPUT_POWER, derive_output_power(raw_power, load), label, "1"
                )
            )

        out.append(self._catalogue.measurement(cat.UP, 1, label))
        status = OutcomeStatus.COMPLETE if complete else OutcomeStatus.PARTIAL
        logger.debug("Polled %s: %s, %d measurements", label, status.value, len(out))
        return PollOutcome(target=target, status=status, measurements=tuple(out))

    def _decode_core(
        self,
        family: FamilyMap,
        core: dict[str, int | None],
        label: str,
        out: list[Measurement],
    ) -> None:
        """Convert present core values to measurements, skipping absent ones."""
        measure = self._catalogue.measurement

        for key, metric in _DIRECT.items():
            value = core.get(key)
            if value is not None:
                out.append(measure(metric, value, label))

        for key, metric in _FLAGS.items():
            value = core.get(family.flag_register(key))
            if value is not None:
                out.append(measure(metric, family.decode_flag(key, value), label))

        status = core.get(reg.BAD_INPUT_STATUS)
        if status is not None:
            cause = family.decode_cause(core.get(reg.BAD_INPUT_CAUSE))
            out.append(
                measure(
                    cat.BAD_INPUT,
                    family.decode_flag(reg.BAD_INPUT_STATUS, status),
                    label,
                    cause,
                )
            )

        load = core.get(reg.OUTPUT_LOAD)
        if load is not None and not family.per_phase_load:
            out.append(measure(cat.OUTPUT_LOAD, load, label, "1"))

    async def _read_phases(
        self,
        session: Session,
        family: FamilyMap,
        direction: str,
        count: int,
        label: str,
        out: list[Measurement],
        *,
        raw_power: int | None = None,
    ) -> bool:
        """Read phases ``1..count`` of *direction*.

        Returns:
            False if a read failed and the remaining phases were skipped.
        """
        measure = self._catalogue.measurement
        keys = list(family.phase_table(direction))

        for phase in range(1, count + 1):
            try:
                values = await session.read(family.phase_oids(direction, phase))
            except TransportError:
                logger.warning(
                    "%s phase %d read from %s failed, skipping remaining phases",
                    direction,
                    phase,
                    label,
                    exc_info=True,
                )
                return False

            phase_label = str(phase)
            for key, value in zip(keys, values, strict=True):
                if value is None:
                    continue
                if key == reg.VOLTAGE:
                    out.append(
                        measure(_VOLTAGE_KEYS[direction], value, label, phase_label)
                    )
                elif key == reg.LOAD:
                    out.append(measure(cat.OUTPUT_LOAD, value, label, phase_label))
                    if raw_power is not None:
                        out.append(
                            measure(
                                cat.OUTPUT_POWER,
                                derive_output_power(raw_power, value),
                                label,
                                phase_label,
                            )
                        )

        return True
