"""
Unit tests for the scrape health tracker.

Tests verify:
- Initial status has no scrape recorded.
- record_scrape counts up/down targets and stamps the time.
- The optional JSON health file mirrors the in-memory status.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

import pytest
from usv_exporter.src.catalogue import Catalogue
from usv_exporter.src.health import ScrapeHealth
from usv_exporter.src.models import OutcomeStatus, PollOutcome, Target


def _outcome(catalogue: Catalogue, address: str, status: OutcomeStatus) -> PollOutcome:
    up = 0 if status is OutcomeStatus.UNREACHABLE else 1
    return PollOutcome(
        target=Target(address=address, host=address),
        status=status,
        measurements=(catalogue.measurement("up", up, address),),
    )


class TestScrapeHealth:
    """Health status after zero or more scrapes."""

    def test_initial_status(self) -> None:
        status = ScrapeHealth().status()

        assert status["status"] == "ok"
        assert status["last_scrape_ts"] is None
        assert status["last_scrape_duration_s"] is None
        assert status["targets_up"] == 0
        assert status["targets_down"] == 0

    def test_record_scrape_counts(self, catalogue: Catalogue) -> None:
        health = ScrapeHealth()
        health.record_scrape(
            [
                _outcome(catalogue, "a", OutcomeStatus.COMPLETE),
                _outcome(catalogue, "b", OutcomeStatus.PARTIAL),
                _outcome(catalogue, "c", OutcomeStatus.UNREACHABLE),
            ],
            duration_s=0.12345,
        )
        status = health.status()

        assert status["targets_up"] == 2
        assert status["targets_down"] == 1
        assert status["last_scrape_duration_s"] == 0.123
        datetime.fromisoformat(str(status["last_scrape_ts"]))

    def test_no_file_without_path(self, tmp_path: Path, catalogue: Catalogue) -> None:
        ScrapeHealth().record_scrape([], duration_s=0.0)
        assert list(tmp_path.iterdir()) == []

    def test_file_mirrors_status(self, tmp_path: Path, catalogue: Catalogue) -> None:
        path = tmp_path / "health.json"
        health = ScrapeHealth(str(path))
        health.record_scrape(
            [_outcome(catalogue, "a", OutcomeStatus.UNREACHABLE)], duration_s=1.0
        )

        assert json.loads(path.read_text()) == health.status()

    def test_unwritable_file_keeps_status(
        self, tmp_path: Path, catalogue: Catalogue, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failed write is logged and the in-memory status still updates."""
        health = ScrapeHealth(tmp_path / "missing-dir" / "health.json")

        with caplog.at_level(logging.WARNING, logger="usv_exporter.src.health"):
            health.record_scrape(
                [_outcome(catalogue, "a", OutcomeStatus.COMPLETE)], duration_s=0.5
            )

        assert health.status()["targets_up"] == 1
        assert "Failed to write health file" in caplog.text
