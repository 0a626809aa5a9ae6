"""Tests for plan execution against fake external tools."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import (
    FAIL,
    FAKE_FFMPEG,
    FAKE_FFPROBE,
    FAKE_SOFFICE,
    WRITE_EMPTY_LAST_ARG,
    WRITE_LAST_ARG,
    StubDetector,
)

from mvx.execution import (
    ExecutionError,
    ExecutionPreconditionError,
    ExternalToolFailureError,
    ExternalToolMissingError,
    OutputEmptyError,
    PlanExecutor,
)
from mvx.execution.executor import next_backup_path, temp_output_path
from mvx.planning import ConversionOptions, FfmpegMode, FfmpegPreference, build_plan
from mvx.progress.events import Finished, Progress, Spinner, Started
from mvx.progress.sinks import RecordingSink


def _plan(source: Path, destination: Path, **kwargs):
    return build_plan(source, destination, detector=StubDetector(), **kwargs)


def _executor(sink: RecordingSink | None = None) -> PlanExecutor:
    return PlanExecutor(sink=sink or RecordingSink())


def _leftovers(directory: Path) -> list[Path]:
    return [path for path in directory.iterdir() if path.name.startswith(".mvx.tmp")]


def test_copy_preserves_bytes_and_source(tmp_path: Path) -> None:
    source = tmp_path / "in.txt"
    source.write_bytes(b"hello\x00world")
    destination = tmp_path / "nested" / "out.txt"

    _executor().execute(_plan(source, destination))

    assert destination.read_bytes() == b"hello\x00world"
    assert source.exists()
    assert _leftovers(destination.parent) == []


def test_rename_moves_source(tmp_path: Path) -> None:
    source = tmp_path / "in.txt"
    source.write_text("payload", encoding="utf-8")
    destination = tmp_path / "moved.txt"

    _executor().execute(_plan(source, destination, move_source=True))

    assert destination.read_text(encoding="utf-8") == "payload"
    assert not source.exists()


def test_existing_destination_requires_flag(tmp_path: Path) -> None:
    source = tmp_path / "in.txt"
    source.write_text("new", encoding="utf-8")
    destination = tmp_path / "out.txt"
    destination.write_text("old", encoding="utf-8")

    with pytest.raises(ExecutionPreconditionError) as excinfo:
        _executor().execute(_plan(source, destination))

    assert str(excinfo.value) == "destination exists; pass --overwrite or --backup"
    assert excinfo.value.step == "prepare-destination"
    assert destination.read_text(encoding="utf-8") == "old"


def test_overwrite_replaces_destination(tmp_path: Path) -> None:
    source = tmp_path / "in.txt"
    source.write_text("new", encoding="utf-8")
    destination = tmp_path / "out.txt"
    destination.write_text("old", encoding="utf-8")

    result = _executor().execute(_plan(source, destination), overwrite=True)

    assert destination.read_text(encoding="utf-8") == "new"
    assert result.backup_path is None


def test_backup_rotates_existing_destinations(tmp_path: Path) -> None:
    source = tmp_path / "in.txt"
    destination = tmp_path / "out.txt"
    executor = _executor()

    for content in ("first", "second", "third"):
        source.write_text(content, encoding="utf-8")
        executor.execute(_plan(source, destination, backup=True))

    assert destination.read_text(encoding="utf-8") == "third"
    assert (tmp_path / "out.txt.bak").read_text(encoding="utf-8") == "first"
    assert (tmp_path / "out.txt.bak.1").read_text(encoding="utf-8") == "second"


def test_next_backup_path_skips_taken_names(tmp_path: Path) -> None:
    destination = tmp_path / "a.mp4"
    assert next_backup_path(destination) == tmp_path / "a.mp4.bak"

    (tmp_path / "a.mp4.bak").touch()
    (tmp_path / "a.mp4.bak.1").touch()

    assert next_backup_path(destination) == tmp_path / "a.mp4.bak.2"


def test_next_backup_path_gives_up_after_limit(tmp_path: Path) -> None:
    destination = tmp_path / "a.mp4"
    (tmp_path / "a.mp4.bak").touch()
    for index in range(1, 1001):
        (tmp_path / f"a.mp4.bak.{index}").touch()

    with pytest.raises(ExecutionError) as excinfo:
        next_backup_path(destination)

    assert excinfo.value.step == "backup"


def test_temp_output_keeps_extension(tmp_path: Path) -> None:
    assert temp_output_path(tmp_path, Path("x/clip.webm")) == tmp_path / "output.webm"
    assert temp_output_path(tmp_path, Path("x/clip")) == tmp_path / "output.out"


def test_imagemagick_conversion(tmp_path: Path, fake_bin) -> None:
    fake_bin("magick", WRITE_LAST_ARG)
    source = tmp_path / "in.png"
    source.write_bytes(b"png")
    destination = tmp_path / "out.jpg"
    sink = RecordingSink()

    _executor(sink).execute(_plan(source, destination))

    assert destination.read_bytes() == b"data"
    assert source.exists()
    assert sink.events[0] == Started(str(source))
    assert sink.events[-1] == Finished(str(source), True, "ok")
    assert _leftovers(tmp_path) == []


def test_convert_used_when_magick_missing(tmp_path: Path, fake_bin) -> None:
    fake_bin("convert", WRITE_LAST_ARG)
    source = tmp_path / "in.png"
    source.write_bytes(b"png")

    _executor().execute(_plan(source, tmp_path / "out.webp"))

    assert (tmp_path / "out.webp").read_bytes() == b"data"


def test_missing_tool_reports_install_hint(tmp_path: Path, fake_bin) -> None:
    source = tmp_path / "in.png"
    source.write_bytes(b"png")
    sink = RecordingSink()

    with pytest.raises(ExternalToolMissingError) as excinfo:
        _executor(sink).execute(_plan(source, tmp_path / "out.jpg"))

    assert "install ImageMagick" in str(excinfo.value)
    assert excinfo.value.step == "run-backend"
    assert not (tmp_path / "out.jpg").exists()
    assert sink.events[-1] == Finished(str(source), False, str(excinfo.value))


def test_tool_failure_carries_status(tmp_path: Path, fake_bin) -> None:
    fake_bin("magick", FAIL)
    source = tmp_path / "in.png"
    source.write_bytes(b"png")

    with pytest.raises(ExternalToolFailureError) as excinfo:
        _executor().execute(_plan(source, tmp_path / "out.jpg"))

    assert excinfo.value.status == 3
    assert str(excinfo.value) == "ImageMagick exited with status 3"
    assert _leftovers(tmp_path) == []


def test_empty_output_is_rejected(tmp_path: Path, fake_bin) -> None:
    fake_bin("magick", WRITE_EMPTY_LAST_ARG)
    source = tmp_path / "in.png"
    source.write_bytes(b"png")

    with pytest.raises(OutputEmptyError) as excinfo:
        _executor().execute(_plan(source, tmp_path / "out.jpg", move_source=True))

    assert excinfo.value.step == "verify-output"
    assert not (tmp_path / "out.jpg").exists()
    assert source.exists()


def test_unsupported_conversion_fails_without_touching_files(tmp_path: Path) -> None:
    source = tmp_path / "in.docx"
    source.write_bytes(b"doc")
    sink = RecordingSink()

    with pytest.raises(ExecutionError) as excinfo:
        _executor(sink).execute(_plan(source, tmp_path / "out.png"))

    assert excinfo.value.step == "select-backend"
    assert [type(event) for event in sink.events] == [Started, Finished]


def test_move_source_after_successful_conversion(tmp_path: Path, fake_bin) -> None:
    fake_bin("magick", WRITE_LAST_ARG)
    source = tmp_path / "in.png"
    source.write_bytes(b"png")

    _executor().execute(_plan(source, tmp_path / "out.jpg", move_source=True))

    assert not source.exists()
    assert (tmp_path / "out.jpg").exists()


def test_libreoffice_artifact_is_renamed(tmp_path: Path, fake_bin) -> None:
    fake_bin("soffice", FAKE_SOFFICE)
    source = tmp_path / "report.docx"
    source.write_bytes(b"doc")
    destination = tmp_path / "exports" / "final.pdf"

    _executor().execute(_plan(source, destination))

    assert destination.read_bytes() == b"pdf"
    assert not (tmp_path / "exports" / "report.pdf").exists()
    assert _leftovers(destination.parent) == []


def test_ffmpeg_progress_and_stream_copy(tmp_path: Path, fake_bin) -> None:
    fake_bin("ffmpeg", FAKE_FFMPEG)
    fake_bin("ffprobe", FAKE_FFPROBE)
    source = tmp_path / "in.mkv"
    source.write_bytes(b"mkv")
    sink = RecordingSink()

    result = _executor(sink).execute(_plan(source, tmp_path / "out.mp4"))

    assert result.ffmpeg_mode is FfmpegMode.STREAM_COPY
    assert result.media is not None and result.media.duration_seconds == 10.0
    progress = [event for event in sink.events if isinstance(event, Progress)]
    assert [event.percent for event in progress] == [25.0, 50.0, 100.0]
    assert progress[0].eta == pytest.approx(7.5)
    assert progress[-1].eta == 0.0
    assert (tmp_path / "out.mp4").read_bytes() == b"media"
    finished = [event for event in sink.events if isinstance(event, Finished)]
    assert finished == [Finished(str(source), True, "ok")]


def test_ffmpeg_without_ffprobe_transcodes_with_spinner(tmp_path: Path, fake_bin) -> None:
    fake_bin("ffmpeg", FAKE_FFMPEG)
    source = tmp_path / "in.mkv"
    source.write_bytes(b"mkv")
    sink = RecordingSink()

    result = _executor(sink).execute(_plan(source, tmp_path / "out.mp4"))

    assert result.ffmpeg_mode is FfmpegMode.TRANSCODE
    assert result.media is None
    spinners = [event for event in sink.events if isinstance(event, Spinner)]
    assert [event.elapsed for event in spinners] == [2.5, 5.0, 10.0]
    assert not any(isinstance(event, Progress) for event in sink.events)


def test_forced_transcode_skips_copy(tmp_path: Path, fake_bin) -> None:
    fake_bin("ffmpeg", FAKE_FFMPEG)
    fake_bin("ffprobe", FAKE_FFPROBE)
    source = tmp_path / "in.mkv"
    source.write_bytes(b"mkv")
    options = ConversionOptions(ffmpeg_preference=FfmpegPreference.TRANSCODE)

    result = _executor().execute(_plan(source, tmp_path / "out.mp4", options=options))

    assert result.ffmpeg_mode is FfmpegMode.TRANSCODE
