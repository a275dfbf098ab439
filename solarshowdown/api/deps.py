"""
FastAPI dependency injection providers.

The metric store and settings are created once in the application lifespan
and kept on ``app.state``. Route handlers receive them through Depends(), so
tests substitute a fake store with ``app.dependency_overrides`` instead of
patching module globals.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-009)
"""

from typing import Annotated

from fastapi import Depends, Request

from solarshowdown.config import Settings
from solarshowdown.store.influx import MetricStore


def get_store(request: Request) -> MetricStore:
    """Return the process-wide metric store."""
    return request.app.state.store


def get_settings(request: Request) -> Settings:
    """Return the settings loaded at startup."""
    return request.app.state.settings


# Type aliases for route signatures, e.g. ``async def route(store: Store)``.
Store = Annotated[MetricStore, Depends(get_store)]
AppSettings = Annotated[Settings, Depends(get_settings)]
