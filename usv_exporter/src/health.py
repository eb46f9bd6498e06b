"""
Scrape health tracker for the exporter.

Keeps the status of the most recent scrape:
- last_scrape_ts: ISO timestamp of the most recent scrape.
- last_scrape_duration_s: Wall time of that scrape.
- targets_up / targets_down: Outcome counts of that scrape.

The status is served at ``GET /health`` and, when a path is configured,
also written to a JSON file after every scrape so Docker HEALTHCHECK can
inspect it.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from usv_exporter.src.models import PollOutcome

logger = logging.getLogger(__name__)


class ScrapeHealth:
    """Tracks the outcome of the latest scrape.

    Args:
        path: Optional filesystem path for a JSON health file.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._last_scrape_ts: str | None = None
        self._last_scrape_duration_s: float | None = None
        self._targets_up: int = 0
        self._targets_down: int = 0

    def record_scrape(self, outcomes: Sequence[PollOutcome], duration_s: float) -> None:
        """Record a finished scrape and write the health file.

        Args:
            outcomes: Per-target outcomes of the scrape.
            duration_s: Wall time the scrape took.
        """
        self._last_scrape_ts = datetime.now(tz=UTC).isoformat()
        self._last_scrape_duration_s = round(duration_s, 3)
        self._targets_up = sum(1 for outcome in outcomes if outcome.up)
        self._targets_down = len(outcomes) - self._targets_up
        self._write()

    def status(self) -> dict[str, object]:
        """Return the current health status."""
        return {
            "status": "ok",
            "last_scrape_ts": self._last_scrape_ts,
            "last_scrape_duration_s": self._last_scrape_duration_s,
            "targets_up": self._targets_up,
            "targets_down": self._targets_down,
        }

    def _write(self) -> None:
        """Write the health JSON file with current state.

        A failed write is logged; the in-memory status stays current.
        """
        if self.path is None:
            return
        try:
            self.path.write_text(json.dumps(self.status()))
        except OSError:
            logger.warning("Failed to write health file %s", self.path, exc_info=True)
