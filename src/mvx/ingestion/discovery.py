"""Batch input discovery utilities."""

from __future__ import annotations

import glob
from pathlib import Path
from typing import Iterable, Iterator, Optional, TextIO


class InputNotFoundError(Exception):
    """Raised when a literal (non-glob) batch input does not exist."""


def looks_like_glob(value: str) -> bool:
    """Return True when ``value`` contains glob metacharacters."""
    return any(char in value for char in "*?[")


class SourceCollector:
    """Expand batch inputs (files, directories, glob patterns) into source files."""

    def __init__(self, *, recursive: bool = False) -> None:
        self.recursive = recursive

    def collect(self, inputs: Iterable[str]) -> list[Path]:
        """Return the de-duplicated, sorted list of files named by ``inputs``.

        Args:
            inputs: Paths, directories, or glob patterns.

        Returns:
            list[Path]: Source files in a stable order.

        Raises:
            InputNotFoundError: If a literal input path does not exist.
        """
        found: set[Path] = set()
        for raw in inputs:
            value = raw.strip()
            if not value:
                continue
            if looks_like_glob(value):
                for match in sorted(glob.glob(str(Path(value).expanduser()), recursive=True)):
                    found.update(self._expand(Path(match)))
                continue
            path = Path(value).expanduser()
            if not path.exists():
                raise InputNotFoundError(f"Input not found: {path}")
            found.update(self._expand(path))
        return sorted(found)

    def _expand(self, path: Path) -> Iterator[Path]:
        if path.is_file():
            yield path
            return
        if not path.is_dir():
            return

        candidates = path.rglob("*") if self.recursive else path.iterdir()
        for candidate in candidates:
            if candidate.is_file():
                yield candidate


def destination_for(source: Path, dest_dir: Path, to_ext: Optional[str] = None) -> Path:
    """Return the batch destination for ``source`` inside ``dest_dir``.

    When ``to_ext`` is given the file stem is kept and the extension replaced.
    """
    if not source.name:
        raise ValueError(f"Source must have a file name: {source}")
    if to_ext:
        extension = to_ext.strip().lstrip(".")
        if extension:
            return dest_dir / f"{source.stem}.{extension}"
    return dest_dir / source.name


def read_input_lines(stream: TextIO) -> list[str]:
    """Return non-empty, stripped lines read from ``stream``."""
    return [line.strip() for line in stream.read().splitlines() if line.strip()]


__all__ = [
    "InputNotFoundError",
    "SourceCollector",
    "destination_for",
    "looks_like_glob",
    "read_input_lines",
]
