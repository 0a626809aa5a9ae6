"""Tests for batch execution and the background worker."""

from __future__ import annotations

import queue
from pathlib import Path

from conftest import WRITE_LAST_ARG, StubDetector

from mvx.execution import BatchRequest, BatchRunner, ConversionWorker, PlanExecutor
from mvx.planning import ConversionOptions, ConversionPlanner
from mvx.progress.events import Finished, Started
from mvx.progress.sinks import ChannelSink, RecordingSink


def _runner(sink, **kwargs) -> BatchRunner:
    return BatchRunner(ConversionPlanner(StubDetector()), PlanExecutor(sink=sink), **kwargs)


def _requests(tmp_path: Path) -> list[BatchRequest]:
    out_dir = tmp_path / "out"
    good_a = tmp_path / "a.png"
    unsupported = tmp_path / "b.docx"
    good_c = tmp_path / "c.png"
    for path in (good_a, unsupported, good_c):
        path.write_bytes(b"x")
    return [
        BatchRequest(good_a, out_dir / "a.jpg"),
        BatchRequest(unsupported, out_dir / "b.png"),
        BatchRequest(good_c, out_dir / "c.jpg"),
    ]


def test_failures_do_not_stop_the_batch(tmp_path: Path, fake_bin) -> None:
    fake_bin("magick", WRITE_LAST_ARG)
    sink = RecordingSink()

    report = _runner(sink).run(_requests(tmp_path))

    assert (report.total, report.succeeded, report.failed) == (3, 2, 1)
    assert not report.ok
    assert [result.source.name for result in report.results] == ["a.png", "b.docx", "c.png"]
    failure = report.failures[0]
    assert failure.source.name == "b.docx"
    assert failure.step == "select-backend"
    assert (tmp_path / "out" / "a.jpg").exists()
    assert (tmp_path / "out" / "c.jpg").exists()
    finished = [event for event in sink.events if isinstance(event, Finished)]
    assert [event.ok for event in finished] == [True, False, True]


def test_plan_validation_failures_are_recorded(tmp_path: Path) -> None:
    source = tmp_path / "clip.wav"
    source.write_bytes(b"x")
    sink = RecordingSink()
    runner = _runner(sink, options=ConversionOptions(audio_bitrate="fast"))

    report = runner.run([BatchRequest(source, tmp_path / "clip.mp3")])

    assert report.failed == 1
    assert report.results[0].step == "plan"
    assert "audio bitrate" in (report.results[0].error or "")
    assert sink.events[0] == Started(str(source))
    assert isinstance(sink.events[-1], Finished) and not sink.events[-1].ok


def test_dry_run_only_plans(tmp_path: Path) -> None:
    source = tmp_path / "a.txt"
    source.write_text("x", encoding="utf-8")
    sink = RecordingSink()

    report = _runner(sink, dry_run=True).run([BatchRequest(source, tmp_path / "b.txt")])

    assert report.ok
    assert report.results[0].plan is not None
    assert not (tmp_path / "b.txt").exists()
    assert sink.events == []


def test_report_serialises(tmp_path: Path, fake_bin) -> None:
    fake_bin("magick", WRITE_LAST_ARG)

    payload = _runner(RecordingSink()).run(_requests(tmp_path)).to_dict()

    assert payload["total"] == 3
    assert payload["failed"] == 1
    assert payload["results"][1]["ok"] is False
    assert payload["results"][1]["step"] == "select-backend"


def test_worker_publishes_events_and_report(tmp_path: Path, fake_bin) -> None:
    fake_bin("magick", WRITE_LAST_ARG)
    channel: queue.Queue = queue.Queue()
    requests = _requests(tmp_path)
    worker = ConversionWorker(_runner(ChannelSink(channel)), requests, channel)

    worker.start()
    report = worker.join(timeout=30)

    assert worker.done.is_set()
    assert report is not None and report.total == 3
    assert worker.labels == [str(request.source) for request in requests]

    events = []
    while not channel.empty():
        events.append(channel.get_nowait())
    started = [event.label for event in events if isinstance(event, Started)]
    finished = [event.label for event in events if isinstance(event, Finished)]
    assert started == worker.labels
    assert finished == worker.labels


def test_prebuilt_plan_skips_planning(tmp_path: Path) -> None:
    source = tmp_path / "a.txt"
    source.write_text("x", encoding="utf-8")
    detector = StubDetector()
    planner = ConversionPlanner(detector)
    plan = planner.build_plan(source, tmp_path / "b.txt")
    runner = BatchRunner(planner, PlanExecutor(sink=RecordingSink()))

    report = runner.run([BatchRequest(source, tmp_path / "b.txt", plan=plan)])

    assert report.ok
    assert len(detector.calls) == 1
    assert (tmp_path / "b.txt").read_text(encoding="utf-8") == "x"
