"""
Energy aggregation over maximum-to-date inverter counters.

Derives the six reported quantities from the dongle's daily counters:

- generated:  sum of the three PV string counters
- exported:   energy sent to the grid
- imported:   energy drawn from the grid to the user
- discharged: energy drawn from the battery
- consumed:   generated + imported + discharged - (exported + charged)
- max_pv:     peak instantaneous PV power, watts converted to kilowatts

Site consumption is not metered directly. It is reconstructed from the energy
balance: everything generated, imported, or pulled from the battery, minus
everything exported or pushed into the battery. The identity assumes no other
metered sources or sinks; a second inverter means extending the formula.

The per-quantity operations each resolve their own window and run their
queries sequentially, failing on the first error. ``collect_metrics`` is the
request-level entry point: it resolves the window once, fans the distinct
measurement queries out concurrently, and derives every quantity from the
same readings.

CHANGELOG:
- 2026-10-19: Concurrent fan-out in collect_metrics via TaskGroup (STORY-008)
- 2026-10-19: Initial creation (STORY-003)

TODO:
- None
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo

from solarshowdown.errors import EnergyMetricsError
from solarshowdown.services.timeframe import TimeWindow, resolve_window
from solarshowdown.store.influx import MetricStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Measurement names written by the dongle
# ---------------------------------------------------------------------------

PV_STRING_MEASUREMENTS = ("lux_Epv1_day", "lux_Epv2_day", "lux_Epv3_day")
EXPORTED_MEASUREMENT = "lux_Etogrid_day"
IMPORTED_MEASUREMENT = "lux_Etouser_day"
DISCHARGED_MEASUREMENT = "lux_Edischg_day"
CHARGED_MEASUREMENT = "lux_Echg_day"
PV_POWER_MEASUREMENT = "lux_Pall"

ALL_MEASUREMENTS = (
    *PV_STRING_MEASUREMENTS,
    IMPORTED_MEASUREMENT,
    DISCHARGED_MEASUREMENT,
    EXPORTED_MEASUREMENT,
    CHARGED_MEASUREMENT,
    PV_POWER_MEASUREMENT,
)

WATTS_PER_KILOWATT = 1000


@dataclass(frozen=True)
class EnergyMetrics:
    """Aggregate energy flows for one device over one window.

    Energy values are in the dongle's counter unit (kWh); ``max_pv`` is in kW.
    """

    generated: float
    consumed: float
    exported: float
    imported: float
    discharged: float
    max_pv: float

    def as_dict(self) -> dict[str, float]:
        """Serialise with the JSON keys used by the dashboard."""
        return {
            "generated": self.generated,
            "consumed": self.consumed,
            "exported": self.exported,
            "imported": self.imported,
            "discharged": self.discharged,
            "maxPv": self.max_pv,
        }


def consumed_from(
    generated: float,
    imported: float,
    discharged: float,
    exported: float,
    charged: float,
) -> float:
    """Apply the energy balance identity to reconstruct site consumption."""
    return generated + imported + discharged - (exported + charged)


def watts_to_kilowatts(watts: float) -> float:
    return watts / WATTS_PER_KILOWATT


# ---------------------------------------------------------------------------
# Per-quantity operations
# ---------------------------------------------------------------------------


async def _sum_pv_strings(store: MetricStore, window: TimeWindow) -> float:
    total = 0.0
    for measurement in PV_STRING_MEASUREMENTS:
        total += await store.query_max(measurement, window)
    return total


async def generated(
    store: MetricStore,
    timeframe: str,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> float:
    """Return total PV generation over the window (sum of strings 1-3)."""
    window = resolve_window(timeframe, now, tz)
    return await _sum_pv_strings(store, window)


async def exported(
    store: MetricStore,
    timeframe: str,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> float:
    """Return energy sent to the grid over the window."""
    window = resolve_window(timeframe, now, tz)
    return await store.query_max(EXPORTED_MEASUREMENT, window)


async def imported(
    store: MetricStore,
    timeframe: str,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> float:
    """Return energy drawn from the grid to the user over the window."""
    window = resolve_window(timeframe, now, tz)
    return await store.query_max(IMPORTED_MEASUREMENT, window)


async def discharged(
    store: MetricStore,
    timeframe: str,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> float:
    """Return energy discharged from the battery over the window."""
    window = resolve_window(timeframe, now, tz)
    return await store.query_max(DISCHARGED_MEASUREMENT, window)


async def consumed(
    store: MetricStore,
    timeframe: str,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> float:
    """Return site consumption reconstructed from the energy balance.

    Recomputes generation rather than reusing an earlier result, so two
    calls made at different times may see slightly different windows.
    """
    gen = await generated(store, timeframe, now=now, tz=tz)
    window = resolve_window(timeframe, now, tz)
    to_user = await store.query_max(IMPORTED_MEASUREMENT, window)
    dischg = await store.query_max(DISCHARGED_MEASUREMENT, window)
    to_grid = await store.query_max(EXPORTED_MEASUREMENT, window)
    chg = await store.query_max(CHARGED_MEASUREMENT, window)
    return consumed_from(gen, to_user, dischg, to_grid, chg)


async def max_pv(
    store: MetricStore,
    timeframe: str,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> float:
    """Return peak instantaneous PV power over the window, in kilowatts."""
    window = resolve_window(timeframe, now, tz)
    watts = await store.query_max(PV_POWER_MEASUREMENT, window)
    return watts_to_kilowatts(watts)


# ---------------------------------------------------------------------------
# Request-level assembly
# ---------------------------------------------------------------------------


def _first_error(group: BaseExceptionGroup) -> BaseException:
    """Return the first leaf exception of a (possibly nested) group."""
    exc: BaseException = group
    while isinstance(exc, BaseExceptionGroup):
        exc = exc.exceptions[0]
    return exc


async def _fetch_all(store: MetricStore, window: TimeWindow) -> dict[str, float]:
    """Query every measurement concurrently, failing on the first error.

    Remaining queries are cancelled as soon as one fails.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tasks = {
                m: tg.create_task(store.query_max(m, window)) for m in ALL_MEASUREMENTS
            }
    except BaseExceptionGroup as group:
        raise _first_error(group) from None
    return {m: task.result() for m, task in tasks.items()}


async def collect_metrics(
    store: MetricStore,
    timeframe: str,
    *,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> EnergyMetrics:
    """Compute all six quantities for one request.

    The window is resolved once and every quantity is derived from the same
    set of readings, so the generation figure inside ``consumed`` always
    equals the reported ``generated``.

    Args:
        store: Metric store to query.
        timeframe: One of ``day``, ``week``, ``month``.
        now: Current instant; defaults to the wall clock.
        tz: Local zone for the ``day`` window; None for the process zone.

    Returns:
        EnergyMetrics: The complete record.

    Raises:
        InvalidTimeframeError: If ``timeframe`` is not recognised.
        QueryFailedError: If any query fails or times out.
        UnexpectedValueTypeError: If any query returns a non-numeric value.
    """
    window = resolve_window(timeframe, now, tz)
    try:
        values = await _fetch_all(store, window)
    except EnergyMetricsError as exc:
        logger.debug(
            "Aggregation aborted: %s",
            exc,
            extra={"kind": exc.kind, "timeframe": timeframe},
        )
        raise

    gen = sum(values[m] for m in PV_STRING_MEASUREMENTS)
    metrics = EnergyMetrics(
        generated=gen,
        consumed=consumed_from(
            gen,
            values[IMPORTED_MEASUREMENT],
            values[DISCHARGED_MEASUREMENT],
            values[EXPORTED_MEASUREMENT],
            values[CHARGED_MEASUREMENT],
        ),
        exported=values[EXPORTED_MEASUREMENT],
        imported=values[IMPORTED_MEASUREMENT],
        discharged=values[DISCHARGED_MEASUREMENT],
        max_pv=watts_to_kilowatts(values[PV_POWER_MEASUREMENT]),
    )
    logger.debug(
        "Aggregated metrics %s",
        metrics.as_dict(),
        extra={"timeframe": timeframe, "window_start": window.start.isoformat()},
    )
    return metrics
