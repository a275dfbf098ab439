"""
Service configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
The InfluxDB connection values and the device identifier are required; the
process refuses to start without them. All values are read once at startup
and treated as read-only for the lifetime of the process.

CHANGELOG:
- 2026-10-19: Add TZ, QUERY_TIMEOUT_S and CORS_ALLOW_ORIGINS (STORY-006)
- 2026-10-19: Initial creation (STORY-001)

TODO:
- None
"""

from datetime import tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Energy metrics API configuration.

    Attributes:
        influxdb_url: Base URL of the InfluxDB server (http or https).
        influxdb_token: API token with read access to the bucket.
        influxdb_org: InfluxDB organization name or ID.
        influxdb_bucket: Bucket holding the inverter measurements.
        dongle: Device identifier; every query filters on the ``dongle`` tag.
        server_host: Interface the HTTP server binds to.
        server_port: TCP port the HTTP server listens on.
        tz: IANA time zone used for the local-midnight "day" window. When
            unset the process local zone is used.
        query_timeout_s: Deadline in seconds for a single store query.
        log_level: Root log level name.
        cors_allow_origins: Comma-separated list of browser origins allowed
            to call the API. Empty disables CORS.
    """

    influxdb_url: str
    influxdb_token: str = Field(repr=False)
    influxdb_org: str
    influxdb_bucket: str
    dongle: str
    server_host: str = "0.0.0.0"
    server_port: int = 8080
    tz: str | None = None
    query_timeout_s: float = 10.0
    log_level: str = "INFO"
    cors_allow_origins: str = ""

    @field_validator(
        "influxdb_url", "influxdb_token", "influxdb_org", "influxdb_bucket", "dongle"
    )
    @classmethod
    def required_must_not_be_blank(cls, v: str) -> str:
        """Reject empty or whitespace-only values for required settings."""
        v = v.strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    @field_validator("influxdb_url")
    @classmethod
    def influxdb_url_must_be_http(cls, v: str) -> str:
        """Validate that the InfluxDB URL uses an HTTP scheme."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("INFLUXDB_URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("server_port")
    @classmethod
    def server_port_must_be_valid(cls, v: int) -> int:
        """Validate TCP port is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("SERVER_PORT must be between 1 and 65535")
        return v

    @field_validator("tz")
    @classmethod
    def tz_must_be_known(cls, v: str | None) -> str | None:
        """Validate that TZ names a zone from the IANA database."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"TZ '{v}' is not a known time zone") from exc
        return v

    @field_validator("query_timeout_s")
    @classmethod
    def query_timeout_must_be_positive(cls, v: float) -> float:
        """Validate the per-query deadline is positive."""
        if v <= 0:
            raise ValueError("QUERY_TIMEOUT_S must be > 0")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_upper(cls, v: str) -> str:
        """Normalise the log level name to upper case."""
        return v.strip().upper() or "INFO"

    def timezone(self) -> tzinfo | None:
        """Return the configured zone, or None for the process local zone."""
        return ZoneInfo(self.tz) if self.tz else None

    def allowed_origins(self) -> list[str]:
        """Return the parsed CORS origin list."""
        return [o.strip() for o in self.cors_allow_origins.split(",") if o.strip()]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


def load_settings() -> Settings:
    """Load and validate settings at startup.

    Returns:
        Settings: The validated configuration.

    Raises:
        RuntimeError: If a required environment variable is missing or any
            value fails validation.
    """
    try:
        return Settings()
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(p) for p in err['loc']).upper()}: {err['msg']}"
            for err in exc.errors()
        ]
        raise RuntimeError(
            f"Invalid or missing configuration: {'; '.join(problems)}"
        ) from exc
