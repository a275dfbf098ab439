"""
Timeframe token to query window resolution.

Maps the coarse ``day`` / ``week`` / ``month`` tokens used by the dashboard
to an absolute UTC start instant. The end of every window is implicitly
"now" at query time and is never stored.

The ``day`` window starts one minute after local midnight: the inverter's
daily counters reset slightly after midnight, so querying from exactly
midnight would pick up yesterday's final value as today's maximum. During
the grace minute itself the window starts at plain local midnight so the
range is never empty.

CHANGELOG:
- 2026-10-19: Do week/month arithmetic on local wall-clock time when TZ is unset (STORY-013)
- 2026-10-19: Clamp month window to the last day of the previous month (STORY-003)
- 2026-10-19: Initial creation (STORY-003)

TODO:
- None
"""

import calendar
from dataclasses import dataclass
from datetime import UTC, datetime, time, timedelta, tzinfo

from solarshowdown.errors import InvalidTimeframeError

VALID_TIMEFRAMES = ("day", "week", "month")
DEFAULT_TIMEFRAME = "day"

# Daily counters on the dongle reset a little after 00:00 local time.
DAY_GRACE_OFFSET = timedelta(minutes=1)


@dataclass(frozen=True)
class TimeWindow:
    """Query window starting at ``start`` (UTC) and ending now.

    Attributes:
        start: Timezone-aware UTC start instant.
    """

    start: datetime


def _localize(wall_clock: datetime, tz: tzinfo | None) -> datetime:
    """Attach ``tz`` to a naive wall-clock time, using the offset of that date."""
    if tz is None:
        # Naive astimezone() interprets the wall-clock time in the local zone.
        return wall_clock.astimezone()
    return wall_clock.replace(tzinfo=tz)


def _one_month_back(wall_now: datetime) -> datetime:
    """Step back one calendar month, clamping the day to the month's length."""
    if wall_now.month == 1:
        year, month = wall_now.year - 1, 12
    else:
        year, month = wall_now.year, wall_now.month - 1
    day = min(wall_now.day, calendar.monthrange(year, month)[1])
    return wall_now.replace(year=year, month=month, day=day)


def resolve_window_start(
    timeframe: str,
    now: datetime,
    tz: tzinfo | None = None,
) -> datetime:
    """Resolve a timeframe token to the UTC start of its query window.

    Args:
        timeframe: One of ``day``, ``week``, ``month``.
        now: Current instant; must be timezone-aware.
        tz: Local zone for calendar arithmetic, or None for the process
            local zone.

    Returns:
        datetime: UTC start instant, strictly before ``now``.

    Raises:
        InvalidTimeframeError: If ``timeframe`` is not recognised. The empty
            string is rejected here; defaulting happens at the HTTP boundary.
        ValueError: If ``now`` is naive.
    """
    if timeframe not in VALID_TIMEFRAMES:
        raise InvalidTimeframeError(timeframe)
    if now.tzinfo is None or now.utcoffset() is None:
        raise ValueError("now must be timezone-aware")

    # Calendar arithmetic runs on naive local wall-clock time so the offset
    # applied to the start is the one in force on the start date.
    wall_now = now.astimezone(tz).replace(tzinfo=None)

    if timeframe == "day":
        start = _localize(
            datetime.combine(wall_now.date(), time.min) + DAY_GRACE_OFFSET, tz
        )
        if start >= now:
            # Inside the grace minute: fall back to plain midnight.
            start -= DAY_GRACE_OFFSET
    elif timeframe == "week":
        start = _localize(wall_now - timedelta(days=7), tz)
    else:
        start = _localize(_one_month_back(wall_now), tz)

    return start.astimezone(UTC)


def resolve_window(
    timeframe: str,
    now: datetime | None = None,
    tz: tzinfo | None = None,
) -> TimeWindow:
    """Build a TimeWindow for ``timeframe`` relative to ``now``.

    Args:
        timeframe: One of ``day``, ``week``, ``month``.
        now: Current instant; defaults to the wall clock in UTC.
        tz: Local zone for calendar arithmetic.

    Returns:
        TimeWindow: The resolved window.
    """
    if now is None:
        now = datetime.now(tz=UTC)
    return TimeWindow(start=resolve_window_start(timeframe, now, tz))
