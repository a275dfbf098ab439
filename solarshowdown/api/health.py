"""
Liveness and readiness endpoints for the energy metrics API.

GET /health returns {"status": "ok"} without touching InfluxDB; it is meant
for Docker HEALTHCHECK and liveness checks. GET /ready pings InfluxDB and
answers 503 while the store is unreachable, so a load balancer can hold
traffic back until queries can succeed.

CHANGELOG:
- 2026-10-19: Add GET /ready backed by the store ping (STORY-014)
- 2026-10-19: Initial creation (STORY-010)

TODO:
- None
"""

import logging

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from solarshowdown.api.deps import Store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Return a simple health status.

    Returns:
        dict: ``{"status": "ok"}`` indicating the service is alive.
    """
    return {"status": "ok"}


@router.get(
    "/ready",
    responses={503: {"description": "InfluxDB is not reachable."}},
)
async def ready(store: Store) -> JSONResponse:
    """Report whether the metric store answers its ping.

    Args:
        store: Metric store injected from app state.

    Returns:
        JSONResponse: 200 ``{"status": "ready"}`` or
        503 ``{"status": "unavailable"}``.
    """
    if await store.ping():
        return JSONResponse({"status": "ready"})
    logger.warning("Readiness check failed: InfluxDB ping returned false")
    return JSONResponse(
        {"status": "unavailable"},
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
    )
