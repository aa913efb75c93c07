"""Logging configuration for picotag."""

from __future__ import annotations

import logging
import sys
from typing import TextIO

LOGGER_NAME = "picotag"

# Verbosity level constants for external use
VERBOSITY_SILENT = 0  # Only errors
VERBOSITY_WARNINGS = 1  # Show diagnostics
VERBOSITY_INFO = 2  # Show diagnostics and progress
VERBOSITY_DEBUG = 3  # Full debug output


def get_logger(name: str | None = None) -> logging.Logger:
    """Get the picotag logger, or one of its children.

    Library modules log through ``get_logger(__name__)``; only
    ``setup_logger`` attaches handlers.
    """
    if name is None or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if not name.startswith(LOGGER_NAME + "."):
        name = f"{LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def setup_logger(verbosity: int, stream: TextIO | None = None) -> None:
    """Configure the picotag logger with verbosity level.

    Can be called multiple times to reconfigure the logger.

    Args:
        verbosity: 0=silent (errors only), 1=warnings, 2=info, 3=debug
        stream: Optional output stream (defaults to sys.stderr, useful for testing)
    """
    logger = get_logger()
    logger.handlers.clear()

    level_map = {
        VERBOSITY_SILENT: logging.ERROR,
        VERBOSITY_WARNINGS: logging.WARNING,
        VERBOSITY_INFO: logging.INFO,
        VERBOSITY_DEBUG: logging.DEBUG,
    }
    logger.setLevel(level_map.get(min(verbosity, VERBOSITY_DEBUG), logging.ERROR))

    output_stream = stream if stream is not None else sys.stderr

    # Handler with clean formatting (no level prefix)
    handler = logging.StreamHandler(output_stream)
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.propagate = False


def reset_logger() -> None:
    """Reset the logger to clean state.

    Useful for testing to ensure clean state between tests.
    """
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
