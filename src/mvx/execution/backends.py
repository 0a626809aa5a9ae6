"""Invocation of the external conversion tools."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Iterable, Optional

from mvx.planning.commands import (
    FFMPEG_CANDIDATES,
    IMAGEMAGICK_CANDIDATES,
    LIBREOFFICE_CANDIDATES,
    ffmpeg_args,
    imagemagick_args,
    libreoffice_args,
)
from mvx.planning.models import FfmpegMode, Plan
from mvx.progress.bridge import stream_progress, wait_with_spinner
from mvx.progress.sinks import ProgressSink

from .errors import ExecutionError, ExternalToolFailureError, ExternalToolMissingError

LOGGER = logging.getLogger(__name__)


def resolve_executable(candidates: Iterable[str]) -> Optional[str]:
    """Return the first candidate found on ``PATH``, or ``None``."""
    for candidate in candidates:
        resolved = shutil.which(candidate)
        if resolved is not None:
            return resolved
    return None


def _require(tool: str, candidates: Iterable[str]) -> str:
    executable = resolve_executable(candidates)
    if executable is None:
        raise ExternalToolMissingError(tool)
    return executable


def _spawn(tool: str, args: list[str], **kwargs) -> subprocess.Popen:
    LOGGER.debug("Running %s", args)
    try:
        return subprocess.Popen(args, **kwargs)
    except FileNotFoundError as exc:
        raise ExternalToolMissingError(tool) from exc
    except OSError as exc:
        raise ExecutionError(f"failed to execute {tool}: {exc}", step="run-backend") from exc


def _run_with_spinner(tool: str, args: list[str], sink: ProgressSink, label: str) -> None:
    with _spawn(tool, args, stdout=subprocess.DEVNULL) as process:
        status = wait_with_spinner(process, sink, label, tool)
    if status != 0:
        raise ExternalToolFailureError(tool, status)


def run_imagemagick(plan: Plan, output: Path, sink: ProgressSink) -> None:
    """Convert ``plan.source`` into ``output`` with ImageMagick."""
    executable = _require("ImageMagick", IMAGEMAGICK_CANDIDATES)
    args = imagemagick_args(plan, plan.source, output, executable)
    _run_with_spinner("ImageMagick", args, sink, plan.label)


def run_ffmpeg(
    plan: Plan,
    output: Path,
    mode: FfmpegMode,
    duration: Optional[float],
    sink: ProgressSink,
) -> None:
    """Run ffmpeg in ``mode`` and stream its progress to ``sink``."""
    executable = _require("ffmpeg", FFMPEG_CANDIDATES)
    args = ffmpeg_args(plan, mode, plan.source, output, executable)
    with _spawn(
        "ffmpeg",
        args,
        stdout=subprocess.PIPE,
        text=True,
        errors="replace",
    ) as process:
        if process.stdout is not None:
            stream_progress(process.stdout, sink, plan.label, duration)
        status = process.wait()
    if status != 0:
        raise ExternalToolFailureError("ffmpeg", status)


def run_libreoffice(plan: Plan, output: Path, sink: ProgressSink) -> None:
    """Export ``plan.source`` to PDF and move the artifact to ``output``.

    LibreOffice names its artifact after the source stem inside the output
    directory, so the file is renamed afterwards.
    """

    if output.suffix.lower() != ".pdf":
        raise ExecutionError("LibreOffice conversions only support PDF output", step="run-backend")
    executable = _require("LibreOffice", LIBREOFFICE_CANDIDATES)
    out_dir = output.parent
    args = libreoffice_args(plan.source, out_dir, executable)
    _run_with_spinner("LibreOffice", args, sink, plan.label)

    artifact = out_dir / f"{plan.source.stem}.pdf"
    if artifact != output:
        try:
            artifact.replace(output)
        except OSError as exc:
            raise ExecutionError(
                f"failed to collect LibreOffice output: {exc}", step="run-backend"
            ) from exc


__all__ = ["resolve_executable", "run_ffmpeg", "run_imagemagick", "run_libreoffice"]
