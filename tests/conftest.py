"""
Shared test fixtures for the energy metrics API.

Provides an in-memory fake MetricStore, environment fixtures for Settings,
and a TestClient whose metric store dependency is overridden with the fake
so no InfluxDB server is needed.

CHANGELOG:
- 2026-10-19: Initial creation with fake store and app fixture (STORY-009)
"""

import asyncio
from collections.abc import Callable, Generator
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from solarshowdown.config import Settings
from solarshowdown.services.timeframe import TimeWindow

# All Settings environment variable names, used for cleanup.
_ALL_ENV_VARS = (
    "INFLUXDB_URL",
    "INFLUXDB_TOKEN",
    "INFLUXDB_ORG",
    "INFLUXDB_BUCKET",
    "DONGLE",
    "SERVER_HOST",
    "SERVER_PORT",
    "TZ",
    "QUERY_TIMEOUT_S",
    "LOG_LEVEL",
    "CORS_ALLOW_ORIGINS",
)

# Fixture readings: generated=10 (5 + 3 + 2), imported=2, discharged=1,
# exported=3, charged=0.5 -> consumed=9.5; 2500 W -> maxPv=2.5 kW.
DEFAULT_READINGS: dict[str, float] = {
    "lux_Epv1_day": 5.0,
    "lux_Epv2_day": 3.0,
    "lux_Epv3_day": 2.0,
    "lux_Etouser_day": 2.0,
    "lux_Edischg_day": 1.0,
    "lux_Etogrid_day": 3.0,
    "lux_Echg_day": 0.5,
    "lux_Pall": 2500.0,
}


class FakeMetricStore:
    """In-memory MetricStore returning fixed readings.

    Measurements missing from ``readings`` return 0.0, like an empty window.
    Measurements present in ``failures`` raise the mapped exception at once,
    without waiting for ``delay_s``.

    Attributes:
        calls: (measurement, window) pairs in the order they were queried.
    """

    def __init__(
        self,
        readings: dict[str, float] | None = None,
        failures: dict[str, Exception] | None = None,
        delay_s: float = 0.0,
    ) -> None:
        self.readings = dict(DEFAULT_READINGS if readings is None else readings)
        self.failures = dict(failures or {})
        self.delay_s = delay_s
        self.calls: list[tuple[str, TimeWindow]] = []
        self.cancelled: list[str] = []
        self.reachable = True

    async def query_max(self, measurement: str, window: TimeWindow) -> float:
        self.calls.append((measurement, window))
        if measurement in self.failures:
            raise self.failures[measurement]
        try:
            if self.delay_s:
                await asyncio.sleep(self.delay_s)
        except asyncio.CancelledError:
            self.cancelled.append(measurement)
            raise
        return self.readings.get(measurement, 0.0)

    async def ping(self) -> bool:
        return self.reachable

    async def close(self) -> None:
        return None


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all service env vars and isolate from .env files before each test."""
    for var in _ALL_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_required(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required environment variables for Settings."""
    env = {
        "INFLUXDB_URL": "http://influxdb.local:8086",
        "INFLUXDB_TOKEN": "test-influx-token",
        "INFLUXDB_ORG": "home",
        "INFLUXDB_BUCKET": "solar",
        "DONGLE": "BA12345678",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def settings(env_vars_required: dict[str, str], monkeypatch: pytest.MonkeyPatch) -> Settings:
    """Settings with a fixed UTC zone so day windows are predictable."""
    monkeypatch.setenv("TZ", "UTC")
    return Settings()


@pytest.fixture()
def make_store() -> Callable[..., FakeMetricStore]:
    """Factory fixture building FakeMetricStore instances."""
    return FakeMetricStore


@pytest.fixture()
def fake_store() -> FakeMetricStore:
    """A FakeMetricStore loaded with DEFAULT_READINGS."""
    return FakeMetricStore()


@pytest.fixture()
def client(
    settings: Settings,
    fake_store: FakeMetricStore,
    monkeypatch: pytest.MonkeyPatch,
) -> Generator[TestClient, None, None]:
    """Create a FastAPI TestClient backed by ``fake_store``.

    The lifespan's InfluxDB store construction is replaced with a mock so no
    client or connection pool is created. Route handlers receive
    ``fake_store`` through the get_store dependency override.

    Yields:
        TestClient: Configured test client.
    """
    from solarshowdown.api import main
    from solarshowdown.api.deps import get_store

    placeholder = AsyncMock()
    monkeypatch.setattr(
        main.InfluxMetricStore, "from_settings", lambda _settings: placeholder
    )
    app = main.create_app(settings)
    app.dependency_overrides[get_store] = lambda: fake_store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
