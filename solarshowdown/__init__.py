"""
Solar Showdown energy metrics API.

Answers "what were the aggregate energy flows for this device over the
requested day, week, or month?" by reading maximum-to-date counters from
InfluxDB and deriving generated, consumed, exported, imported, discharged,
and peak PV power figures.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""

__version__ = "0.1.0"
