"""Root logging setup used by the CLI entry point."""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"
LOG_FILE_MAX_BYTES = 500 * 1024
LOG_FILE_BACKUPS = 2

# aiohttp logs one line per request at INFO
QUIET_LOGGERS = ("aiohttp.access",)


def coerce_level(level: Union[int, str]) -> int:
    """Accept ``"debug"``-style names as well as numeric levels."""
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level '{level}'")
    return value


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    console: bool = True,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Replace the root handlers with a stderr stream and/or a rotating log file."""
    numeric_level = coerce_level(level)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    handlers: list[logging.Handler] = []

    if console:
        # stdout carries command output (CSV bodies, status lines)
        handlers.append(logging.StreamHandler(sys.stderr))

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(path, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8")
        )

    if not handlers:
        handlers.append(logging.NullHandler())

    for handler in handlers:
        handler.setFormatter(formatter)
    logging.basicConfig(level=numeric_level, handlers=handlers, force=True)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["configure_logging", "coerce_level", "LOG_FORMAT", "LOG_DATEFMT"]
