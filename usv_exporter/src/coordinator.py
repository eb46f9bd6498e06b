"""
Scrape coordinator: fans out one poll task per target and waits for all.

Every target runs as an independent task inside an ``asyncio.TaskGroup``.
Each task is guarded, so neither an unexpected exception nor the optional
cycle deadline can cancel its siblings; both degrade that single target to
``up 0``.  :meth:`ScrapeCoordinator.collect` returns once every task has
finished.

No state survives a scrape: outcomes are built fresh on every call.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from usv_exporter.src.catalogue import Measurement
    from usv_exporter.src.models import PollOutcome, Target
    from usv_exporter.src.poller import DevicePoller

logger = logging.getLogger(__name__)


class ScrapeCoordinator:
    """Runs one scrape across all configured targets.

    Args:
        targets: Resolved targets, polled in full on every scrape.
            Duplicates are polled independently.
        poller: Shared, stateless device poller.
        cycle_timeout_s: Optional deadline per scrape.  Targets still
            running at the deadline are reported as unreachable.
    """

    def __init__(
        self,
        targets: Sequence[Target],
        poller: DevicePoller,
        *,
        cycle_timeout_s: float | None = None,
    ) -> None:
        self._targets = tuple(targets)
        self._poller = poller
        self._cycle_timeout_s = cycle_timeout_s

    @property
    def targets(self) -> tuple[Target, ...]:
        """The resolved target list."""
        return self._targets

    async def collect(self) -> list[PollOutcome]:
        """Poll every target concurrently and return their outcomes."""
        if not self._targets:
            logger.debug("No targets configured, nothing to scrape")
            return []

        async with asyncio.TaskGroup() as group:
            tasks = [
                group.create_task(self._poll_guarded(target))
                for target in self._targets
            ]

        outcomes = [task.result() for task in tasks]
        up = sum(1 for outcome in outcomes if outcome.up)
        logger.info("Scrape finished: %d/%d targets up", up, len(outcomes))
        return outcomes

    async def scrape(self) -> list[Measurement]:
        """Run :meth:`collect` and flatten the outcomes into one result set."""
        return [m for outcome in await self.collect() for m in outcome.measurements]

    async def _poll_guarded(self, target: Target) -> PollOutcome:
        """Poll *target*, converting any failure into an unreachable outcome."""
        try:
            async with asyncio.timeout(self._cycle_timeout_s):
                return await self._poller.poll(target)
        except TimeoutError:
            logger.warning(
                "Target %s did not finish within %ss",
                target.address,
                self._cycle_timeout_s,
            )
        except Exception:
            logger.error("Unexpected error polling %s", target.address, exc_info=True)
        return self._poller.unreachable(target)
