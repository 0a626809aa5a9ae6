"""Interchangeable progress observers."""

from __future__ import annotations

import queue
from typing import Optional, Protocol

import click

from .events import Finished, Progress, ProgressEvent, Spinner, Started


class ProgressSink(Protocol):
    """Observer interface the executor reports to."""

    def started(self, label: str) -> None: ...

    def spinner(self, label: str, elapsed: float, message: str) -> None: ...

    def progress(self, label: str, percent: float, eta: Optional[float]) -> None: ...

    def finished(self, label: str, ok: bool, message: str) -> None: ...


class QuietSink:
    """Discard every event; used for JSON output and tests."""

    def started(self, label: str) -> None:
        return None

    def spinner(self, label: str, elapsed: float, message: str) -> None:
        return None

    def progress(self, label: str, percent: float, eta: Optional[float]) -> None:
        return None

    def finished(self, label: str, ok: bool, message: str) -> None:
        return None


class ConsoleSink:
    """Render progress as a single in-place line on stderr."""

    def __init__(self) -> None:
        self._line_open = False
        self._last_spinner: Optional[tuple[str, float]] = None

    def _write(self, text: str) -> None:
        click.echo(f"\r{text}", nl=False, err=True)
        self._line_open = True

    def started(self, label: str) -> None:
        self._line_open = False
        self._last_spinner = None

    def spinner(self, label: str, elapsed: float, message: str) -> None:
        self._write(f"{message} ... {elapsed:.1f}s")
        self._last_spinner = (message, elapsed)

    def progress(self, label: str, percent: float, eta: Optional[float]) -> None:
        self._last_spinner = None
        if eta is None:
            self._write(f"ffmpeg {percent:.0f}%")
        else:
            self._write(f"ffmpeg {percent:.0f}% eta {eta:.1f}s")

    def finished(self, label: str, ok: bool, message: str) -> None:
        if ok and self._last_spinner is not None:
            tool, elapsed = self._last_spinner
            self._write(f"{tool} done in {elapsed:.1f}s")
        self._last_spinner = None
        if self._line_open:
            click.echo("", err=True)
            self._line_open = False


class ChannelSink:
    """Publish events onto a queue consumed by another thread."""

    def __init__(self, channel: "queue.Queue[ProgressEvent]") -> None:
        self.channel = channel

    def started(self, label: str) -> None:
        self.channel.put(Started(label))

    def spinner(self, label: str, elapsed: float, message: str) -> None:
        self.channel.put(Spinner(label, elapsed, message))

    def progress(self, label: str, percent: float, eta: Optional[float]) -> None:
        self.channel.put(Progress(label, percent, eta))

    def finished(self, label: str, ok: bool, message: str) -> None:
        self.channel.put(Finished(label, ok, message))


class RecordingSink:
    """Keep every event in order; handy for inspection and tests."""

    def __init__(self) -> None:
        self.events: list[ProgressEvent] = []

    def started(self, label: str) -> None:
        self.events.append(Started(label))

    def spinner(self, label: str, elapsed: float, message: str) -> None:
        self.events.append(Spinner(label, elapsed, message))

    def progress(self, label: str, percent: float, eta: Optional[float]) -> None:
        self.events.append(Progress(label, percent, eta))

    def finished(self, label: str, ok: bool, message: str) -> None:
        self.events.append(Finished(label, ok, message))


__all__ = ["ChannelSink", "ConsoleSink", "ProgressSink", "QuietSink", "RecordingSink"]
