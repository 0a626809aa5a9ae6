"""Logging setup for the mvx command line."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from mvx.config.models import LoggingSettings

LOGGER_NAME = "mvx"
_FILE_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def resolve_level(value: str, verbose: int = 0) -> int:
    """Return the numeric level for ``value``, lowered by ``verbose`` steps."""
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        level = logging.WARNING
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return min(level, logging.INFO)
    return level


def configure_logging(
    settings: Optional[LoggingSettings] = None,
    *,
    verbose: int = 0,
    console: Optional[Console] = None,
) -> logging.Logger:
    """Attach a rich stderr handler and an optional rotating file handler.

    Args:
        settings: Logging section of the loaded configuration.
        verbose: Count of ``--verbose`` flags; each step lowers the level.
        console: Console used by the rich handler; defaults to stderr.

    Returns:
        logging.Logger: The configured package logger.
    """

    settings = settings or LoggingSettings()
    level = resolve_level(settings.level, verbose)
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
    logger.propagate = False

    rich_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=False,
    )
    rich_handler.setLevel(level)
    logger.addHandler(rich_handler)

    if settings.file:
        path = Path(settings.file).expanduser()
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                path,
                maxBytes=settings.max_size_mb * 1024 * 1024,
                backupCount=settings.backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning("Could not open log file %s: %s", path, exc)
        else:
            file_handler.setLevel(level)
            file_handler.setFormatter(logging.Formatter(_FILE_FORMAT))
            logger.addHandler(file_handler)
    return logger


__all__ = ["configure_logging", "resolve_level"]
