"""
Unit tests for structured JSON logging.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-005)

TODO:
- None
"""

import json
import logging
import sys

from solarshowdown.logging_config import JsonFormatter, configure_logging, masked_token


def _record(msg: str = "hello %s", args: tuple = ("world",), **extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="solarshowdown.test",
        level=logging.ERROR,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Records render as one JSON object."""

    def test_basic_fields(self) -> None:
        entry = json.loads(JsonFormatter().format(_record()))
        assert entry["level"] == "ERROR"
        assert entry["logger"] == "solarshowdown.test"
        assert entry["msg"] == "hello world"
        assert "ts" in entry

    def test_context_keys_included(self) -> None:
        entry = json.loads(
            JsonFormatter().format(
                _record(kind="query_failed", measurement="lux_Pall", timeframe="day")
            )
        )
        assert entry["kind"] == "query_failed"
        assert entry["measurement"] == "lux_Pall"
        assert entry["timeframe"] == "day"

    def test_unknown_extras_ignored(self) -> None:
        entry = json.loads(JsonFormatter().format(_record(secret="x")))
        assert "secret" not in entry

    def test_exception_included(self) -> None:
        try:
            raise ValueError("bad")
        except ValueError:
            record = _record()
            record.exc_info = sys.exc_info()
        entry = json.loads(JsonFormatter().format(record))
        assert "ValueError: bad" in entry["exception"]


class TestConfigureLogging:
    """configure_logging installs a single JSON handler on the root logger."""

    def test_single_handler_after_repeated_calls(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging("DEBUG")
            configure_logging("WARNING")
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JsonFormatter)
            assert root.level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)


class TestMaskedToken:
    def test_empty(self) -> None:
        assert masked_token("") == "empty"
        assert masked_token(None) == "empty"

    def test_does_not_leak_token(self) -> None:
        masked = masked_token("super-secret-token")
        assert "super-secret-token" not in masked
        assert masked.startswith("len=18 ")
