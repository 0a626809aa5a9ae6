"""Tests for logging configuration."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.logging import RichHandler

from mvx.config.models import LoggingSettings
from mvx.logging_utils import configure_logging, resolve_level


def test_resolve_level_with_verbosity() -> None:
    assert resolve_level("warning") == logging.WARNING
    assert resolve_level("WARNING", verbose=1) == logging.INFO
    assert resolve_level("ERROR", verbose=2) == logging.DEBUG
    assert resolve_level("DEBUG", verbose=1) == logging.DEBUG
    assert resolve_level("nonsense") == logging.WARNING


def test_configure_logging_replaces_handlers(tmp_path: Path) -> None:
    settings = LoggingSettings(level="INFO", file=str(tmp_path / "logs" / "mvx.log"))

    configure_logging(settings)
    logger = configure_logging(settings)

    assert logger.level == logging.INFO
    assert not logger.propagate
    kinds = sorted(type(handler).__name__ for handler in logger.handlers)
    assert kinds == [RichHandler.__name__, RotatingFileHandler.__name__]

    logger.info("hello from the test")
    for handler in logger.handlers:
        handler.flush()
    assert "hello from the test" in (tmp_path / "logs" / "mvx.log").read_text(encoding="utf-8")

    configure_logging()
    assert len(logging.getLogger("mvx").handlers) == 1
