"""
Logging utilities for boxfleet.

All modules obtain their logger through ``get_logger(__name__)``; the
CLI calls ``configure_logging`` once at startup. Log records go to stderr
so they do not mix with multiplexed tool output on stdout.
"""

import sys
import traceback

from loguru import logger

from boxfleet.models.enums import LogLevel

ROOT_LOGGER = "boxfleet"

_LEVELS = {
    LogLevel.FULL: "TRACE",
    LogLevel.DEBUG: "DEBUG",
    LogLevel.INFO: "INFO",
    LogLevel.WARNING: "WARNING",
}

LOG_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan> - <level>{message}</level>"
)

logger.configure(extra={"name": ROOT_LOGGER})


def _stderr_sink(message) -> None:
    # Looked up on every write so a replaced sys.stderr is honored
    sys.stderr.write(message)


def get_logger(name: str):
    """Get a logger bound to a name below the boxfleet root."""
    if name != ROOT_LOGGER and not name.startswith(f"{ROOT_LOGGER}."):
        name = f"{ROOT_LOGGER}.{name}"
    return logger.bind(name=name)


def configure_logging(level: LogLevel = LogLevel.INFO) -> None:
    """
    Replace all log handlers with a single stderr handler.

    ``LogLevel.FULL`` also turns on extended tracebacks.
    """
    level = LogLevel(level)
    full = level == LogLevel.FULL

    logger.remove()
    logger.add(
        _stderr_sink,
        level=_LEVELS[level],
        format=LOG_FORMAT,
        colorize=sys.stderr.isatty(),
        backtrace=full,
        diagnose=full,
    )


def format_traceback(exc: BaseException) -> str:
    """Format an exception with its traceback for debug logs."""
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
