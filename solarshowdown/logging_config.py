"""
Structured JSON logging for the energy metrics API.

Every record is rendered as one JSON object on stderr. Extra attributes
passed through ``logger.x(..., extra={...})`` for the keys listed in
``CONTEXT_KEYS`` are copied into the JSON object so failures can be filtered
by error kind, measurement, or timeframe.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-005)

TODO:
- None
"""

import hashlib
import json
import logging
import sys
from datetime import UTC, datetime

CONTEXT_KEYS = ("kind", "measurement", "timeframe", "window_start", "elapsed_ms")


class JsonFormatter(logging.Formatter):
    """Minimal JSON log formatter."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        for key in CONTEXT_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                log_entry[key] = value
        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)


def configure_logging(level: str | int = logging.INFO) -> None:
    """Configure structured JSON logging on the root logger.

    Replaces any existing root handlers so repeated calls do not duplicate
    output.

    Args:
        level: Log level name or number for the root logger.
    """
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def masked_token(value: str | None) -> str:
    """Return a short non-reversible token fingerprint for diagnostics."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"
