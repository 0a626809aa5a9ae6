"""Translate external tool output and liveness into progress events."""

from __future__ import annotations

import subprocess
import time
from typing import Callable, Iterable, Optional

from .sinks import ProgressSink

SPINNER_INTERVAL_SECONDS = 0.15

ELAPSED_KEY = "out_time_ms"
END_LINE = "progress=end"


class FfmpegProgressParser:
    """Incrementally parse ffmpeg ``-progress`` key=value lines.

    ``out_time_ms`` is reported by ffmpeg in microseconds despite its name.

    Attributes:
        sink: Observer receiving the derived events.
        label: Plan label attached to every event.
        duration: Total source duration in seconds, when known.
    """

    def __init__(self, sink: ProgressSink, label: str, duration: Optional[float]) -> None:
        self.sink = sink
        self.label = label
        self.duration = duration
        self.last_percent: Optional[float] = None
        self.last_elapsed: Optional[float] = None

    def feed(self, line: str) -> None:
        """Consume one line of progress output."""
        line = line.strip()
        if line == END_LINE:
            self._finish()
            return
        key, sep, value = line.partition("=")
        if not sep or key.strip() != ELAPSED_KEY:
            return
        try:
            micros = int(value.strip())
        except ValueError:
            return
        self._update(micros / 1_000_000)

    def _update(self, elapsed: float) -> None:
        duration = self.duration
        if duration is None:
            if self.last_elapsed is None or abs(elapsed - self.last_elapsed) >= 1.0:
                self.sink.spinner(self.label, elapsed, "ffmpeg")
                self.last_elapsed = elapsed
            return
        if duration <= 0:
            return
        percent = min(elapsed / duration * 100.0, 100.0)
        if self.last_percent is None or abs(percent - self.last_percent) >= 1.0:
            self.sink.progress(self.label, percent, max(duration - elapsed, 0.0))
            self.last_percent = percent

    def _finish(self) -> None:
        if self.duration is None or self.duration <= 0:
            return
        if self.last_percent is None or self.last_percent < 99.5:
            self.sink.progress(self.label, 100.0, 0.0)
            self.last_percent = 100.0


def stream_progress(
    lines: Iterable[str],
    sink: ProgressSink,
    label: str,
    duration: Optional[float],
) -> None:
    """Drain ``lines`` to exhaustion, emitting progress events along the way."""
    parser = FfmpegProgressParser(sink, label, duration)
    for line in lines:
        parser.feed(line)


def wait_with_spinner(
    process: subprocess.Popen,
    sink: ProgressSink,
    label: str,
    message: str,
    *,
    interval: float = SPINNER_INTERVAL_SECONDS,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """Poll ``process`` until it exits, emitting spinner events.

    Args:
        process: Running child process.
        sink: Observer receiving spinner events.
        label: Plan label.
        message: Tool name shown next to the elapsed time.
        interval: Seconds between liveness polls.
        clock: Monotonic clock, injectable for tests.

    Returns:
        int: The child's exit status.
    """

    start = clock()
    while True:
        status = process.poll()
        if status is not None:
            return status
        sink.spinner(label, clock() - start, message)
        time.sleep(interval)


__all__ = [
    "FfmpegProgressParser",
    "SPINNER_INTERVAL_SECONDS",
    "stream_progress",
    "wait_with_spinner",
]
