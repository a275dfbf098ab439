"""
FastAPI application entry point for the Solar Showdown energy metrics API.

Settings are loaded and validated when the app is built: a missing InfluxDB
variable or DONGLE makes create_app() raise before anything is served, both
for `python -m solarshowdown` and for
`uvicorn --factory solarshowdown.api.main:create_app`. The InfluxDB-backed
metric store is created once in the lifespan, shared read-only on app.state
by every request, and closed at shutdown.

CHANGELOG:
- 2026-10-19: create_app() loads settings itself so CORS always applies (STORY-016)
- 2026-10-19: Optional CORS middleware from CORS_ALLOW_ORIGINS (STORY-012)
- 2026-10-19: Register health router (STORY-010)
- 2026-10-19: Register metrics router (STORY-009)
- 2026-10-19: Initial creation (STORY-009)
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from solarshowdown import __version__
from solarshowdown.api.health import router as health_router
from solarshowdown.api.metrics import router as metrics_router
from solarshowdown.config import Settings, load_settings
from solarshowdown.logging_config import configure_logging, masked_token
from solarshowdown.store.influx import InfluxMetricStore

logger = logging.getLogger(__name__)


def log_config_summary(settings: Settings) -> None:
    """Log a config summary at startup, masking the InfluxDB token."""
    logger.info(
        "Energy metrics API starting with config: "
        "influxdb_url=%s, influxdb_org=%s, influxdb_bucket=%s, dongle=%s, "
        "tz=%s, query_timeout_s=%s, influxdb_token_masked=%s",
        settings.influxdb_url,
        settings.influxdb_org,
        settings.influxdb_bucket,
        settings.dongle,
        settings.tz or "local",
        settings.query_timeout_s,
        masked_token(settings.influxdb_token),
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: store setup and teardown.

    Startup:
        - Configures logging from the settings on app.state.
        - Creates the InfluxDB metric store on app.state.

    Shutdown:
        - Closes the InfluxDB client.
    """
    settings: Settings = app.state.settings
    configure_logging(settings.log_level)
    log_config_summary(settings)

    store = InfluxMetricStore.from_settings(settings)
    app.state.store = store
    logger.info("Settings validated, energy metrics API ready")
    try:
        yield
    finally:
        await store.close()
        logger.info("Energy metrics API shutting down")


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Pre-loaded settings. When None they are read from the
            environment.

    Returns:
        FastAPI: The configured application.

    Raises:
        RuntimeError: If settings are None and the environment is incomplete.
    """
    if settings is None:
        settings = load_settings()

    app = FastAPI(
        title="Solar Showdown API",
        description="Aggregate energy flows for a monitored inverter.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    origins = settings.allowed_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["GET"],
        )

    app.include_router(health_router)
    app.include_router(metrics_router)

    @app.get("/")
    async def root() -> dict:
        """Root health check endpoint.

        Returns:
            dict: JSON object with application status.
        """
        return {"status": "ok"}

    return app
