"""
Eaton UPS (USV) exporter package.

Polls UPS network management cards over SNMP on every scrape and republishes
their state as Prometheus gauges.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

__version__ = "0.2.0"
