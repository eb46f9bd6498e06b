"""
Prometheus text exposition of one scrape's measurements.

A fresh ``CollectorRegistry`` is built per request so that nothing from a
previous scrape can leak into the response.  Only descriptors that have at
least one sample are rendered.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from usv_exporter.src.catalogue import Measurement, MeasurementDescriptor


class MeasurementCollector(Collector):
    """Collector yielding a fixed set of measurements as gauge families."""

    def __init__(self, measurements: Sequence[Measurement]) -> None:
        self._measurements = tuple(measurements)

    def collect(self) -> Iterator[GaugeMetricFamily]:
        families: dict[MeasurementDescriptor, GaugeMetricFamily] = {}
        for m in self._measurements:
            family = families.get(m.descriptor)
            if family is None:
                family = GaugeMetricFamily(
                    m.descriptor.name,
                    m.descriptor.documentation,
                    labels=list(m.descriptor.labels),
                )
                families[m.descriptor] = family
            family.add_metric(list(m.label_values), float(m.value))
        yield from families.values()


def render(measurements: Iterable[Measurement]) -> bytes:
    """Serialize *measurements* in the Prometheus text format."""
    registry = CollectorRegistry()
    registry.register(MeasurementCollector(list(measurements)))
    return generate_latest(registry)
