"""Logging setup for the engine.

Modules log through ``logging.getLogger(__name__)``; nothing is configured on
import. Applications and the command line runner call :func:`setup_logger`.
"""

import logging
import sys
from typing import Optional, TextIO

LOGGER_NAME = "ccpm_engine"

# Verbosity level constants
VERBOSITY_SILENT = 0  # Only errors
VERBOSITY_WARNINGS = 1
VERBOSITY_INFO = 2  # Analysis and forecast summaries
VERBOSITY_DEBUG = 3  # Per-pass details

_LEVELS = {
    VERBOSITY_SILENT: logging.ERROR,
    VERBOSITY_WARNINGS: logging.WARNING,
    VERBOSITY_INFO: logging.INFO,
    VERBOSITY_DEBUG: logging.DEBUG,
}


def get_logger() -> logging.Logger:
    """Return the package root logger."""
    return logging.getLogger(LOGGER_NAME)


def setup_logger(verbosity: int, stream: Optional[TextIO] = None) -> logging.Logger:
    """
    Configure the package logger. Can be called repeatedly to reconfigure it.

    Args:
        verbosity: 0=errors only, 1=warnings, 2=info, 3=debug
        stream: Output stream, defaults to sys.stderr

    Returns:
        The configured logger
    """
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(_LEVELS.get(verbosity, logging.DEBUG if verbosity > 3 else logging.ERROR))

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter("[%(asctime)s] %(levelname)s %(name)s - %(message)s"))
    logger.addHandler(handler)
    logger.propagate = False
    return logger


def reset_logger() -> None:
    """Remove handlers and restore defaults, mainly for tests."""
    logger = get_logger()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
