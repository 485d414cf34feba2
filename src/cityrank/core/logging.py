"""Logging setup for the ``cityrank`` logger tree."""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path

PACKAGE_LOGGER = "cityrank"

FORMATS = {
    "simple": "%(levelname)s: %(message)s",
    "detailed": "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
}


def setup_logging(
    level: str | int = logging.INFO,
    log_file: str | Path | None = None,
    format_style: str = "detailed",
) -> logging.Logger:
    """Route ``cityrank.*`` records to stderr and, optionally, a file.

    Args:
        level: Level name or number applied to the logger and its handlers.
        log_file: Extra file the same records are appended to.
        format_style: One of ``FORMATS``; "simple" drops timestamp and origin.

    Returns:
        The package logger, with any earlier handlers replaced.
    """
    if format_style not in FORMATS:
        raise ValueError(f"unknown log format {format_style!r}")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    logger.handlers.clear()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    formatter = logging.Formatter(FORMATS[format_style])
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Logger below the package logger; ``name`` may already carry the prefix."""
    if name == PACKAGE_LOGGER or name.startswith(PACKAGE_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


@contextmanager
def log_timing(
    logger: logging.Logger, operation: str, level: int = logging.INFO
):
    """Log start and duration of ``operation``; failures go out at ERROR."""
    started = time.perf_counter()
    logger.log(level, "Starting %s", operation)
    try:
        yield
    except Exception as e:
        logger.error(
            "Failed %s after %.2fs: %s", operation, time.perf_counter() - started, e
        )
        raise
    logger.log(
        level, "Completed %s in %.2fs", operation, time.perf_counter() - started
    )
