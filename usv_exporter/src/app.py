"""
FastAPI application serving the exporter's HTTP surface.

Routes:
- ``GET /``: HTML index linking the metrics path.
- ``GET <metrics_path>``: runs one scrape and returns the Prometheus text
  exposition of its measurements.
- ``GET /health``: JSON status of the latest scrape.

The app is built by :func:`create_app` from already-validated settings and
an already-resolved coordinator; no configuration is read at request time.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import HTMLResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST

from usv_exporter.src import __version__
from usv_exporter.src.exposition import render
from usv_exporter.src.health import ScrapeHealth

if TYPE_CHECKING:
    from usv_exporter.src.coordinator import ScrapeCoordinator

logger = logging.getLogger(__name__)

PROJECT_URL = "https://github.com/l3akage/eaton_usv_exporter"

_INDEX_TEMPLATE = """<html>
<head><title>EATON usv Exporter (Version {version})</title></head>
<body>
<h1>EATON usv Exporter</h1>
<p><a href="{metrics_path}">Metrics</a></p>
<h2>More information:</h2>
<p><a href="{url}">{url_text}</a></p>
</body>
</html>"""

router = APIRouter(tags=["exporter"])


@router.get("/", response_class=HTMLResponse)
async def index(request: Request) -> str:
    """Return the HTML landing page."""
    return _INDEX_TEMPLATE.format(
        version=__version__,
        metrics_path=request.app.state.metrics_path,
        url=PROJECT_URL,
        url_text=PROJECT_URL.removeprefix("https://"),
    )


@router.get("/health")
async def health(request: Request) -> dict[str, object]:
    """Return the status of the most recent scrape."""
    return request.app.state.health.status()


async def metrics(request: Request) -> Response:
    """Run one scrape and return its measurements in text format."""
    coordinator: ScrapeCoordinator = request.app.state.coordinator
    started = time.monotonic()
    outcomes = await coordinator.collect()
    request.app.state.health.record_scrape(outcomes, time.monotonic() - started)

    body = render(m for outcome in outcomes for m in outcome.measurements)
    return Response(content=body, media_type=CONTENT_TYPE_LATEST)


def create_app(
    coordinator: ScrapeCoordinator,
    *,
    metrics_path: str = "/metrics",
    health: ScrapeHealth | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Args:
        coordinator: Coordinator invoked once per metrics request.
        metrics_path: Path of the metrics endpoint.
        health: Health tracker; a fresh in-memory one when omitted.
    """
    app = FastAPI(
        title="EATON usv Exporter",
        description="Prometheus exporter for Eaton UPS devices over SNMP.",
        version=__version__,
    )
    app.state.coordinator = coordinator
    app.state.metrics_path = metrics_path
    app.state.health = health if health is not None else ScrapeHealth()

    app.include_router(router)
    app.add_api_route(
        metrics_path,
        metrics,
        methods=["GET"],
        response_class=Response,
        tags=["exporter"],
    )
    logger.debug("Serving metrics on %s", metrics_path)
    return app
