"""Tests for batch input discovery."""

import io
from pathlib import Path

import pytest

from mvx.ingestion import InputNotFoundError, SourceCollector, destination_for, read_input_lines


def _touch(path: Path) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"x")
    return path


def test_destination_replaces_extension() -> None:
    assert destination_for(Path("in/clip.wav"), Path("out"), "mp3") == Path("out/clip.mp3")
    assert destination_for(Path("in/clip.wav"), Path("out"), ".flac") == Path("out/clip.flac")


def test_destination_keeps_name_without_extension_override() -> None:
    assert destination_for(Path("in/clip.wav"), Path("out")) == Path("out/clip.wav")
    assert destination_for(Path("in/clip.wav"), Path("out"), "  ") == Path("out/clip.wav")


def test_collects_files_directories_and_globs(tmp_path: Path) -> None:
    single = _touch(tmp_path / "single.png")
    _touch(tmp_path / "media" / "b.wav")
    _touch(tmp_path / "media" / "a.wav")
    _touch(tmp_path / "media" / "deep" / "c.wav")
    _touch(tmp_path / "pics" / "x.jpg")
    _touch(tmp_path / "pics" / "y.gif")

    found = SourceCollector().collect(
        [str(single), str(tmp_path / "media"), str(tmp_path / "pics" / "*.jpg")]
    )

    assert found == sorted(
        [
            single,
            tmp_path / "media" / "a.wav",
            tmp_path / "media" / "b.wav",
            tmp_path / "pics" / "x.jpg",
        ]
    )


def test_recursive_directory_walk(tmp_path: Path) -> None:
    _touch(tmp_path / "media" / "a.wav")
    deep = _touch(tmp_path / "media" / "deep" / "c.wav")

    found = SourceCollector(recursive=True).collect([str(tmp_path / "media")])

    assert deep in found
    assert len(found) == 2


def test_dot_files_are_collected(tmp_path: Path) -> None:
    visible = _touch(tmp_path / "media" / "a.wav")
    dotted = _touch(tmp_path / "media" / ".notes.wav")
    nested = _touch(tmp_path / "media" / ".cache" / "b.wav")

    assert SourceCollector().collect([str(tmp_path / "media")]) == sorted([visible, dotted])
    assert SourceCollector(recursive=True).collect([str(tmp_path / "media")]) == sorted(
        [visible, dotted, nested]
    )


def test_duplicates_collapse(tmp_path: Path) -> None:
    clip = _touch(tmp_path / "clip.wav")

    found = SourceCollector().collect([str(clip), str(tmp_path / "*.wav"), str(tmp_path)])

    assert found == [clip]


def test_missing_literal_input_raises(tmp_path: Path) -> None:
    with pytest.raises(InputNotFoundError):
        SourceCollector().collect([str(tmp_path / "nope.wav")])


def test_unmatched_glob_is_empty(tmp_path: Path) -> None:
    assert SourceCollector().collect([str(tmp_path / "*.nothing")]) == []


def test_read_input_lines_skips_blanks() -> None:
    stream = io.StringIO("a.wav\n\n  b.wav  \n\t\n")

    assert read_input_lines(stream) == ["a.wav", "b.wav"]
