"""History data models."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List

from pydantic import BaseModel, Field

HISTORY_LIMIT = 50


class PathHistory(BaseModel):
    """Recently used paths, newest first."""

    entries: List[str] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def record(self, *values: str, limit: int = HISTORY_LIMIT) -> None:
        """Move ``values`` to the front, dropping duplicates and blanks."""
        items = list(self.entries)
        for raw in values:
            value = raw.strip()
            if not value:
                continue
            items = [existing for existing in items if existing != value]
            items.insert(0, value)
        self.entries = items[:limit]


__all__ = ["HISTORY_LIMIT", "PathHistory"]
