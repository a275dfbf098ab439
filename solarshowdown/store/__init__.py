"""
Time-series store access.

Exports the MetricStore protocol and the InfluxDB-backed implementation.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-004)

TODO:
- None
"""

from solarshowdown.store.influx import InfluxMetricStore, MetricStore

__all__ = ["InfluxMetricStore", "MetricStore"]
