"""Progress event values exchanged between the executor and its observers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True, slots=True)
class Started:
    """A plan began executing."""

    label: str


@dataclass(frozen=True, slots=True)
class Spinner:
    """Liveness update carrying wall-clock seconds since the tool started."""

    label: str
    elapsed: float
    message: str


@dataclass(frozen=True, slots=True)
class Progress:
    """Fine-grained progress with an optional linear ETA in seconds."""

    label: str
    percent: float
    eta: Optional[float] = None


@dataclass(frozen=True, slots=True)
class Finished:
    """Terminal event; emitted exactly once per plan execution."""

    label: str
    ok: bool
    message: str


ProgressEvent = Union[Started, Spinner, Progress, Finished]

__all__ = ["Finished", "Progress", "ProgressEvent", "Spinner", "Started"]
