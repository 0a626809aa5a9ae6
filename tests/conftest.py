"""Shared fixtures: isolated config home, stub detection, and fake tools on PATH."""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Callable

import pytest

from mvx.ingestion.models import DetectedType

WRITE_LAST_ARG = """#!/bin/sh
for last; do :; done
printf 'data' > "$last"
"""

WRITE_EMPTY_LAST_ARG = """#!/bin/sh
for last; do :; done
: > "$last"
"""

FAIL = """#!/bin/sh
exit 3
"""

# Mimics `soffice --headless --convert-to pdf --outdir DIR SRC`.
FAKE_SOFFICE = """#!/bin/sh
outdir=""
src=""
while [ "$#" -gt 0 ]; do
  case "$1" in
    --outdir) outdir="$2"; shift 2 ;;
    --*) shift ;;
    pdf) shift ;;
    *) src="$1"; shift ;;
  esac
done
name="${src##*/}"
printf 'pdf' > "$outdir/${name%.*}.pdf"
"""

# Mimics ffmpeg -progress output for a 10 second source, then writes the output.
FAKE_FFMPEG = """#!/bin/sh
for last; do :; done
printf 'out_time_ms=2500000\\nprogress=continue\\n'
printf 'out_time_ms=5000000\\nprogress=continue\\n'
printf 'out_time_ms=10000000\\nprogress=end\\n'
printf 'media' > "$last"
"""

FAKE_FFPROBE = """#!/bin/sh
printf '%s\\n' \\
  '{"format": {"duration": "10.0"},' \\
  ' "streams": [{"codec_type": "video", "codec_name": "h264"},' \\
  '             {"codec_type": "audio", "codec_name": "aac"}]}'
"""


class StubDetector:
    """Detector returning a fixed result without touching libmagic."""

    def __init__(self, result: DetectedType | None = None) -> None:
        self.result = result or DetectedType()
        self.calls: list[Path] = []

    def detect(self, path: Path) -> DetectedType:
        self.calls.append(path)
        return self.result


@pytest.fixture(autouse=True)
def isolated_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point configuration and history at a temporary directory."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(home / ".config"))
    for key in list(os.environ):
        if key.startswith("MVX__"):
            monkeypatch.delenv(key)
    return home


@pytest.fixture
def stub_detector() -> StubDetector:
    return StubDetector()


@pytest.fixture
def fake_bin(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Callable[[str, str], Path]:
    """Return a factory that installs ``name`` as a shell script first on PATH.

    The PATH holds only the fake directory so real tools are never picked up.
    """

    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", str(bin_dir))

    def _install(name: str, script: str) -> Path:
        path = bin_dir / name
        path.write_text(script, encoding="utf-8")
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return path

    return _install
