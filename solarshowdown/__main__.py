"""
Process entry point: ``python -m solarshowdown``.

Loads settings, then serves the API with uvicorn on SERVER_HOST:SERVER_PORT.
Exits with status 1 if the configuration is incomplete.

CHANGELOG:
- 2026-10-19: Initial creation (STORY-012)

TODO:
- None
"""

import logging
import sys

import uvicorn

from solarshowdown.api.main import create_app
from solarshowdown.config import load_settings
from solarshowdown.logging_config import configure_logging

logger = logging.getLogger("solarshowdown")


def main() -> int:
    """Run the HTTP server until interrupted.

    Returns:
        int: Process exit code.
    """
    configure_logging()
    try:
        settings = load_settings()
    except RuntimeError as exc:
        logger.error("Failed to load configuration: %s", exc)
        return 1

    configure_logging(settings.log_level)
    logger.info("Starting server on %s:%d", settings.server_host, settings.server_port)
    uvicorn.run(
        create_app(settings),
        host=settings.server_host,
        port=settings.server_port,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
