"""Tests for the live batch dashboard."""

from __future__ import annotations

import io
import queue
from pathlib import Path

from conftest import StubDetector
from rich.console import Console

from mvx.execution import BatchRequest, BatchRunner, ConversionWorker, PlanExecutor
from mvx.planning import ConversionPlanner
from mvx.progress import ChannelSink, Finished, Progress, Spinner, Started
from mvx.ui import DashboardState, LiveDashboard
from mvx.ui.live import render


def test_state_tracks_event_sequence() -> None:
    state = DashboardState(["a", "b"])

    state.apply(Started("a"))
    state.apply(Spinner("a", 2.0, "ffmpeg"))
    state.apply(Progress("a", 40.0, 3.0))

    task = state.tasks["a"]
    assert task.status == "running"
    assert (task.percent, task.eta, task.elapsed) == (40.0, 3.0, 2.0)
    assert state.counts()["pending"] == 1

    state.apply(Finished("a", True, "ok"))
    state.apply(Started("b"))
    state.apply(Finished("b", False, "boom"))

    assert state.tasks["a"].percent == 100.0
    assert state.tasks["b"].message == "boom"
    assert state.counts() == {"pending": 0, "running": 0, "ok": 1, "failed": 1}
    assert list(state.log) == ["started a", "done a", "started b", "failed b: boom"]


def test_unknown_labels_are_added() -> None:
    state = DashboardState()

    state.apply(Started("late"))

    assert "late" in state.tasks


def test_log_is_bounded() -> None:
    state = DashboardState(log_limit=3)

    for index in range(5):
        state.apply(Started(f"t{index}"))

    assert list(state.log) == ["started t2", "started t3", "started t4"]


def test_render_shows_rows() -> None:
    state = DashboardState(["clip.mkv"])
    state.apply(Started("clip.mkv"))
    state.apply(Progress("clip.mkv", 25.0, 9.0))
    buffer = io.StringIO()

    Console(file=buffer, width=120).print(render(state))

    text = buffer.getvalue()
    assert "clip.mkv" in text
    assert "25% eta 9.0s" in text
    assert "running 1" in text


def test_dashboard_runs_until_worker_finishes(tmp_path: Path) -> None:
    sources = []
    for name in ("a.txt", "b.txt"):
        path = tmp_path / name
        path.write_text(name, encoding="utf-8")
        sources.append(path)
    channel: queue.Queue = queue.Queue()
    runner = BatchRunner(ConversionPlanner(StubDetector()), PlanExecutor(ChannelSink(channel)))
    requests = [BatchRequest(path, tmp_path / "out" / path.name) for path in sources]
    worker = ConversionWorker(runner, requests, channel)

    worker.start()
    state = LiveDashboard(worker, console=Console(file=io.StringIO()), tick=0.01).run()
    report = worker.join()

    assert report is not None and report.ok
    assert state.counts()["ok"] == 2
    assert channel.empty()
