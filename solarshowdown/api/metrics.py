"""
GET /solarshowdown endpoint returning aggregate energy flows.

Reads the ``timeframe`` query parameter (day, week, month; missing or empty
means day), aggregates the six energy quantities for the configured device,
and returns them as a flat JSON object.

On failure the body keeps the same shape with every number set to 0 and an
``error`` message added. Invalid timeframes are client errors (400); store
timeouts map to 504 and every other store or decoding failure to 500.

CHANGELOG:
- 2026-10-19: Default only the empty timeframe; padded tokens are invalid (STORY-015)
- 2026-10-19: Map query timeouts to 504 (STORY-011)
- 2026-10-19: Initial creation (STORY-009)

TODO:
- None
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from solarshowdown.api.deps import AppSettings, Store
from solarshowdown.errors import (
    EnergyMetricsError,
    InvalidTimeframeError,
    QueryFailedError,
)
from solarshowdown.services.energy import collect_metrics
from solarshowdown.services.timeframe import DEFAULT_TIMEFRAME, VALID_TIMEFRAMES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["metrics"])


# ---------------------------------------------------------------------------
# Pydantic response model
# ---------------------------------------------------------------------------


class EnergyMetricsOut(BaseModel):
    """Response body for the energy metrics endpoint.

    Attributes:
        generated: PV generation in kWh.
        consumed: Site consumption in kWh.
        exported: Energy sent to the grid in kWh.
        imported: Energy drawn from the grid in kWh.
        discharged: Energy drawn from the battery in kWh.
        max_pv: Peak instantaneous PV power in kW (JSON key ``maxPv``).
        error: Failure message; absent on success.
    """

    model_config = ConfigDict(populate_by_name=True)

    generated: float = 0.0
    consumed: float = 0.0
    exported: float = 0.0
    imported: float = 0.0
    discharged: float = 0.0
    max_pv: float = Field(default=0.0, alias="maxPv")
    error: str | None = None


# ---------------------------------------------------------------------------
# Error mapping
# ---------------------------------------------------------------------------


def _status_for(exc: EnergyMetricsError) -> int:
    """Map an error kind to an HTTP status code."""
    if isinstance(exc, InvalidTimeframeError):
        return status.HTTP_400_BAD_REQUEST
    if isinstance(exc, QueryFailedError) and exc.timed_out:
        return status.HTTP_504_GATEWAY_TIMEOUT
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _error_response(exc: EnergyMetricsError, timeframe: str) -> JSONResponse:
    code = _status_for(exc)
    log = logger.warning if code < 500 else logger.error
    log(
        "Energy metrics request failed: %s",
        exc,
        extra={"kind": exc.kind, "timeframe": timeframe},
    )
    body = EnergyMetricsOut(error=str(exc)).model_dump(by_alias=True)
    return JSONResponse(status_code=code, content=body)


# ---------------------------------------------------------------------------
# Route
# ---------------------------------------------------------------------------


@router.get(
    "/solarshowdown",
    response_model=EnergyMetricsOut,
    response_model_by_alias=True,
    response_model_exclude_none=True,
    responses={
        400: {"model": EnergyMetricsOut, "description": "Invalid timeframe."},
        500: {"model": EnergyMetricsOut, "description": "Store query failed."},
        504: {"model": EnergyMetricsOut, "description": "Store query timed out."},
    },
)
async def get_energy_metrics(
    store: Store,
    settings: AppSettings,
    timeframe: Annotated[
        str,
        Query(description=f"Time frame: {', '.join(VALID_TIMEFRAMES)}."),
    ] = DEFAULT_TIMEFRAME,
) -> EnergyMetricsOut | JSONResponse:
    """Return aggregate energy flows for the configured device.

    Args:
        store: Metric store injected from app state.
        settings: Application settings (for the local time zone).
        timeframe: Window selector; empty means ``day``.

    Returns:
        EnergyMetricsOut: The six energy quantities, or a JSONResponse
        carrying the error body and status on failure.
    """
    timeframe = timeframe or DEFAULT_TIMEFRAME

    try:
        metrics = await collect_metrics(store, timeframe, tz=settings.timezone())
    except EnergyMetricsError as exc:
        return _error_response(exc, timeframe)

    logger.debug("Energy metrics served", extra={"timeframe": timeframe})
    return EnergyMetricsOut(**metrics.as_dict())
