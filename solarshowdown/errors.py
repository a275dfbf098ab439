"""
Error types raised by the energy metrics core.

Every error carries a stable ``kind`` tag so the HTTP boundary can map it to
a status code and log lines can tell schema drift apart from ordinary store
failures.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-002)

TODO:
- None
"""


class EnergyMetricsError(Exception):
    """Base class for all energy metrics failures."""

    kind = "energy_metrics_error"


class InvalidTimeframeError(EnergyMetricsError):
    """The timeframe token is not one of day, week, or month."""

    kind = "invalid_timeframe"

    def __init__(self, timeframe: str) -> None:
        self.timeframe = timeframe
        super().__init__(f"invalid timeframe: {timeframe!r}")


class QueryFailedError(EnergyMetricsError):
    """The store query for a measurement failed or timed out."""

    kind = "query_failed"

    def __init__(
        self,
        measurement: str,
        cause: BaseException | None = None,
        *,
        timed_out: bool = False,
    ) -> None:
        self.measurement = measurement
        self.cause = cause
        self.timed_out = timed_out
        if timed_out:
            message = f"query timed out for {measurement}"
        else:
            message = f"query failed for {measurement}: {cause}"
        super().__init__(message)


class UnexpectedValueTypeError(EnergyMetricsError):
    """The store returned a non-numeric value for a numeric measurement."""

    kind = "unexpected_value_type"

    def __init__(self, measurement: str, value: object) -> None:
        self.measurement = measurement
        self.value = value
        self.value_type = type(value).__name__
        super().__init__(
            f"unexpected value type for {measurement}: {self.value_type}"
        )
