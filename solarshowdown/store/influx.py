"""
InfluxDB adapter returning the maximum value of a measurement in a window.

Each call issues a single Flux query scoped to the configured bucket, the
requested measurement, the ``value`` field, and the configured dongle tag,
reduced with ``max()``. The untyped Flux result is decoded here into a plain
float or a typed error so nothing dynamic leaks into the aggregation logic.

An empty result means no energy was recorded for the period (new device or a
telemetry gap) and decodes to ``0.0``.

CHANGELOG:
- 2026-10-19: Apply per-query deadline via asyncio.timeout (STORY-007)
- 2026-10-19: Initial creation (STORY-004)

TODO:
- None
"""

import asyncio
import logging
import time
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Protocol

from influxdb_client.client.flux_table import FluxTable
from influxdb_client.client.influxdb_client_async import InfluxDBClientAsync

from solarshowdown.config import Settings
from solarshowdown.errors import QueryFailedError, UnexpectedValueTypeError
from solarshowdown.services.timeframe import TimeWindow

logger = logging.getLogger(__name__)

VALUE_FIELD = "value"
DEVICE_TAG = "dongle"


class MetricStore(Protocol):
    """Read-only access to maximum-to-date measurement values."""

    async def query_max(self, measurement: str, window: TimeWindow) -> float:
        """Return the maximum ``value`` of ``measurement`` since ``window.start``."""
        ...

    async def ping(self) -> bool:
        """Return True if the store is reachable."""
        ...


def _flux_string(value: str) -> str:
    """Escape a Python string for use inside a double-quoted Flux literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


def _rfc3339(ts: datetime) -> str:
    """Format an aware datetime as an RFC 3339 UTC timestamp."""
    return ts.astimezone(UTC).isoformat().replace("+00:00", "Z")


def build_max_query(
    bucket: str,
    measurement: str,
    device_id: str,
    start: datetime,
) -> str:
    """Build the Flux query returning the window maximum for one measurement.

    Args:
        bucket: Bucket to read from.
        measurement: Measurement name, e.g. ``lux_Epv1_day``.
        device_id: Value of the ``dongle`` tag to filter on.
        start: Aware start instant of the window; the window ends now.

    Returns:
        str: Flux query text.
    """
    return (
        f'from(bucket: "{_flux_string(bucket)}")\n'
        f"  |> range(start: {_rfc3339(start)})\n"
        f'  |> filter(fn: (r) => r["_measurement"] == "{_flux_string(measurement)}")\n'
        f'  |> filter(fn: (r) => r["_field"] == "{VALUE_FIELD}")\n'
        f'  |> filter(fn: (r) => r["{DEVICE_TAG}"] == "{_flux_string(device_id)}")\n'
        f"  |> max()"
    )


def extract_max_value(measurement: str, tables: Iterable[FluxTable]) -> float:
    """Decode a ``max()`` query result into a float.

    Only the first record of the first non-empty table is consulted.

    Args:
        measurement: Measurement name, used in errors and logs.
        tables: Tables returned by the Flux query API.

    Returns:
        float: The maximum value, or 0.0 when no rows were returned.

    Raises:
        UnexpectedValueTypeError: If the value is not an int or float.
    """
    records = [record for table in tables for record in table.records]
    if not records:
        return 0.0
    if len(records) > 1:
        logger.debug(
            "max() for %s returned %d rows, using the first",
            measurement,
            len(records),
            extra={"measurement": measurement},
        )

    value = records[0].get_value()
    if value is None:
        return 0.0
    # bool is an int subclass but a boolean field is schema drift, not energy.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise UnexpectedValueTypeError(measurement, value)
    return float(value)


class InfluxMetricStore:
    """MetricStore backed by the InfluxDB v2 async query API.

    The client is shared read-only across concurrent requests.

    Args:
        client: Open async InfluxDB client.
        org: Organization the queries run under.
        bucket: Bucket holding the measurements.
        device_id: Dongle tag every query is scoped to.
        timeout_s: Deadline for a single query, in seconds.
    """

    def __init__(
        self,
        client: InfluxDBClientAsync,
        *,
        org: str,
        bucket: str,
        device_id: str,
        timeout_s: float = 10.0,
    ) -> None:
        self._client = client
        self._query_api = client.query_api()
        self.org = org
        self.bucket = bucket
        self.device_id = device_id
        self.timeout_s = timeout_s

    @classmethod
    def from_settings(cls, settings: Settings) -> "InfluxMetricStore":
        """Create a store and its client from application settings.

        Must be called from within a running event loop.
        """
        client = InfluxDBClientAsync(
            url=settings.influxdb_url,
            token=settings.influxdb_token,
            org=settings.influxdb_org,
            timeout=int(settings.query_timeout_s * 1000),
        )
        return cls(
            client,
            org=settings.influxdb_org,
            bucket=settings.influxdb_bucket,
            device_id=settings.dongle,
            timeout_s=settings.query_timeout_s,
        )

    async def query_max(self, measurement: str, window: TimeWindow) -> float:
        """Return the maximum ``value`` of ``measurement`` in ``window``.

        Raises:
            QueryFailedError: On any client or transport failure, or when
                the query exceeds ``timeout_s``.
            UnexpectedValueTypeError: If the stored value is not numeric.
        """
        query = build_max_query(self.bucket, measurement, self.device_id, window.start)
        started = time.monotonic()
        try:
            async with asyncio.timeout(self.timeout_s):
                tables = await self._query_api.query(query, org=self.org)
        except TimeoutError as exc:
            raise QueryFailedError(measurement, exc, timed_out=True) from exc
        except Exception as exc:
            raise QueryFailedError(measurement, exc) from exc

        value = extract_max_value(measurement, tables)
        logger.debug(
            "Queried max %s=%s",
            measurement,
            value,
            extra={
                "measurement": measurement,
                "window_start": _rfc3339(window.start),
                "elapsed_ms": round((time.monotonic() - started) * 1000, 1),
            },
        )
        return value

    async def ping(self) -> bool:
        """Return True if the InfluxDB server answers its ping endpoint."""
        try:
            return await self._client.ping()
        except Exception:
            logger.warning("InfluxDB ping failed", exc_info=True)
            return False

    async def close(self) -> None:
        """Release the underlying HTTP connection pool."""
        await self._client.close()
