"""Loguru setup for the localrag CLI."""

from __future__ import annotations

import sys
from pathlib import Path

from loguru import logger

_CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan> - <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} - {message}"


def setup_logger(log_level: str = "WARNING", log_file: str | Path | None = None) -> None:
    """Route library logs to stderr and, optionally, to a rotating file.

    Args:
        log_level: Minimum level for both sinks.
        log_file: Log file path; its parent directory is created if needed.
    """
    logger.remove()
    logger.add(sys.stderr, level=log_level, format=_CONSOLE_FORMAT, colorize=True)

    if log_file is not None:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            level=log_level,
            format=_FILE_FORMAT,
            rotation="5 MB",
            retention=3,
            encoding="utf-8",
        )

    logger.debug(f"Logging at {log_level}" + (f", file {log_file}" if log_file else ""))
