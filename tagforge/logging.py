"""Logger hierarchy and console/file sinks for tagforge."""

from __future__ import annotations

import logging
from pathlib import Path

_ROOT = "tagforge"
_CONSOLE_FORMAT = "[tagforge] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``tagforge.<name>``, or the package logger itself."""
    return logging.getLogger(f"{_ROOT}.{name}" if name else _ROOT)


def _sink(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(
    *, verbose: bool = False, log_file: str | Path | None = None
) -> logging.Logger:
    """Send tagforge records to stderr and, when given, to ``log_file``.

    Safe to call repeatedly: previously installed sinks are replaced.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(_ROOT)
    logger.setLevel(level)
    logger.propagate = False

    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    logger.addHandler(_sink(logging.StreamHandler(), level, _CONSOLE_FORMAT))
    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_sink(logging.FileHandler(path, encoding="utf-8"), level, _FILE_FORMAT))
    return logger


__all__ = ["configure_logging", "get_logger"]
