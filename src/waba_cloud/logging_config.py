"""
Logging setup for the CLI and the webhook receiver app.

The library itself only creates module loggers; applications call
setup_logging() once at startup.
"""

import logging
import os

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """
    Configure root logging with a single stream handler.

    Args:
        level: Log level name; defaults to WABA_LOG_LEVEL or INFO
    """
    level_name = (level or os.getenv("WABA_LOG_LEVEL", "INFO")).upper()
    if level_name not in VALID_LOG_LEVELS:
        raise ValueError(
            f"Invalid log level: {level_name}. Valid: {', '.join(sorted(VALID_LOG_LEVELS))}"
        )

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root = logging.getLogger()
    root.setLevel(level_name)
    # Replace existing handlers to avoid duplicate lines on repeated setup
    root.handlers = [handler]

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
