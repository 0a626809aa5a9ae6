"""Interactive batch view rendered with rich."""

from __future__ import annotations

import queue
import time
from collections import deque
from dataclasses import dataclass
from typing import Deque, Dict, Iterable, Optional

from rich.console import Console, Group
from rich.live import Live
from rich.table import Table
from rich.text import Text

from mvx.execution.worker import ConversionWorker
from mvx.progress.events import Finished, Progress, ProgressEvent, Spinner, Started

TICK_SECONDS = 0.12
LOG_LIMIT = 200

_STATUS_STYLES = {
    "pending": "dim",
    "running": "yellow",
    "ok": "green",
    "failed": "red",
}


@dataclass(slots=True)
class TaskState:
    """Display state for one plan in the batch."""

    label: str
    status: str = "pending"
    percent: Optional[float] = None
    eta: Optional[float] = None
    elapsed: Optional[float] = None
    message: str = ""


class DashboardState:
    """Fold progress events into per-task rows and a bounded log."""

    def __init__(self, labels: Iterable[str] = (), log_limit: int = LOG_LIMIT) -> None:
        self.tasks: Dict[str, TaskState] = {label: TaskState(label) for label in labels}
        self.log: Deque[str] = deque(maxlen=log_limit)

    def _task(self, label: str) -> TaskState:
        task = self.tasks.get(label)
        if task is None:
            task = TaskState(label)
            self.tasks[label] = task
        return task

    def apply(self, event: ProgressEvent) -> None:
        """Update state from one event."""
        task = self._task(event.label)
        if isinstance(event, Started):
            task.status = "running"
            self.log.append(f"started {event.label}")
        elif isinstance(event, Spinner):
            task.elapsed = event.elapsed
            task.message = event.message
        elif isinstance(event, Progress):
            task.percent = event.percent
            task.eta = event.eta
        elif isinstance(event, Finished):
            task.status = "ok" if event.ok else "failed"
            task.message = event.message
            if event.ok:
                if task.percent is not None:
                    task.percent = 100.0
                self.log.append(f"done {event.label}")
            else:
                self.log.append(f"failed {event.label}: {event.message}")

    def counts(self) -> Dict[str, int]:
        """Return the number of tasks in each status."""
        totals = {status: 0 for status in _STATUS_STYLES}
        for task in self.tasks.values():
            totals[task.status] += 1
        return totals


def render(state: DashboardState, log_lines: int = 8) -> Group:
    """Build the renderable for the current state."""
    table = Table(title="mvx batch")
    table.add_column("Source", overflow="fold")
    table.add_column("Status")
    table.add_column("Progress", justify="right")
    table.add_column("Detail", overflow="fold")
    for task in state.tasks.values():
        if task.percent is not None:
            progress = f"{task.percent:.0f}%"
            if task.eta is not None and task.status == "running":
                progress += f" eta {task.eta:.1f}s"
        elif task.elapsed is not None:
            progress = f"{task.elapsed:.1f}s"
        else:
            progress = ""
        table.add_row(
            task.label,
            Text(task.status, style=_STATUS_STYLES[task.status]),
            progress,
            task.message,
        )

    counts = state.counts()
    summary = Text(
        f"ok {counts['ok']}  failed {counts['failed']}  "
        f"running {counts['running']}  pending {counts['pending']}",
        style="bold",
    )
    recent = list(state.log)[-log_lines:]
    return Group(table, summary, Text("\n".join(recent), style="dim"))


class LiveDashboard:
    """Redraw batch progress on a fixed tick while a worker runs.

    The dashboard only reads events from the worker's channel; it stops
    observing once the worker is done and the channel has been drained.
    """

    def __init__(
        self,
        worker: ConversionWorker,
        *,
        console: Optional[Console] = None,
        tick: float = TICK_SECONDS,
    ) -> None:
        self.worker = worker
        self.console = console or Console(stderr=True)
        self.tick = tick
        self.state = DashboardState(worker.labels)

    def drain(self) -> int:
        """Apply every queued event; return how many were processed."""
        processed = 0
        while True:
            try:
                event = self.worker.channel.get_nowait()
            except queue.Empty:
                return processed
            self.state.apply(event)
            processed += 1

    def run(self) -> DashboardState:
        """Render until the worker finishes; returns the final state."""
        with Live(
            render(self.state),
            console=self.console,
            auto_refresh=False,
            transient=False,
        ) as live:
            while True:
                self.drain()
                live.update(render(self.state), refresh=True)
                if self.worker.done.is_set() and self.worker.channel.empty():
                    self.drain()
                    live.update(render(self.state), refresh=True)
                    break
                time.sleep(self.tick)
        return self.state


__all__ = ["DashboardState", "LiveDashboard", "TaskState", "render"]
