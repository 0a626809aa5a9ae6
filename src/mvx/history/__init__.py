"""Recent-path history persistence."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Mapping

from pydantic import ValidationError

from mvx.config import config_home

from .errors import HistoryError
from .models import HISTORY_LIMIT, PathHistory

HISTORY_FILENAME = "history.json"


def default_history_path(env: Mapping[str, str] | None = None) -> Path:
    """Return the default history file location."""
    return config_home(env) / HISTORY_FILENAME


class HistoryRepository:
    """Load and persist the recent-path history."""

    def __init__(self, path: Path | None = None, *, limit: int = HISTORY_LIMIT) -> None:
        """Initialize the repository.

        Args:
            path: History file; defaults to ``$XDG_CONFIG_HOME/mvx/history.json``.
            limit: Maximum number of entries kept.
        """
        self._path = (path or default_history_path()).expanduser()
        self._limit = limit

    @property
    def path(self) -> Path:
        """Return the history file path."""
        return self._path

    def load(self) -> PathHistory:
        """Return the stored history, or an empty one when no file exists.

        Raises:
            HistoryError: If the stored data cannot be parsed.
        """
        if not self._path.exists():
            return PathHistory()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return PathHistory.model_validate(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise HistoryError(f"Invalid history data in {self._path}: {exc}") from exc

    def save(self, history: PathHistory) -> None:
        """Persist ``history``.

        Raises:
            HistoryError: If the file cannot be written.
        """
        history.updated_at = datetime.now(timezone.utc)
        payload = history.model_dump(mode="json")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise HistoryError(f"Unable to write history to {self._path}: {exc}") from exc

    def record(self, paths: Iterable[Path | str]) -> PathHistory:
        """Add ``paths`` to the front of the history and persist it."""
        history = self.load()
        history.record(*(str(path) for path in paths), limit=self._limit)
        self.save(history)
        return history


__all__ = [
    "HISTORY_LIMIT",
    "HistoryError",
    "HistoryRepository",
    "PathHistory",
    "default_history_path",
]
