"""Executor that carries out conversion plans."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol

from mvx.planning.mode import decide_ffmpeg_mode
from mvx.planning.models import Backend, FfmpegMode, MediaInfo, Plan, Strategy
from mvx.progress.sinks import ProgressSink, QuietSink

from . import backends
from .errors import (
    ExecutionError,
    ExecutionPreconditionError,
    OutputEmptyError,
    ProbeError,
    UnsupportedConversionError,
)
from .probe import MediaProber

LOGGER = logging.getLogger(__name__)

TEMP_PREFIX = ".mvx.tmp"
MAX_BACKUP_ATTEMPTS = 1000


class Prober(Protocol):
    def probe(self, path: Path) -> MediaInfo: ...


@dataclass(slots=True)
class ExecutionResult:
    """Outcome of a successful plan execution.

    Attributes:
        plan: The executed plan.
        backup_path: Where an existing destination was rotated to, if anywhere.
        ffmpeg_mode: Mode chosen for ffmpeg conversions.
        media: Probe results used to pick the ffmpeg mode.
    """

    plan: Plan
    backup_path: Optional[Path] = None
    ffmpeg_mode: Optional[FfmpegMode] = None
    media: Optional[MediaInfo] = None


class PlanExecutor:
    """Execute plans with staged writes and atomic finalisation."""

    def __init__(
        self,
        sink: Optional[ProgressSink] = None,
        prober: Optional[Prober] = None,
    ) -> None:
        self.sink: ProgressSink = sink or QuietSink()
        self.prober: Prober = prober or MediaProber()

    def execute(self, plan: Plan, *, overwrite: bool = False) -> ExecutionResult:
        """Carry out ``plan``.

        Emits ``started`` first and exactly one ``finished`` event, whether the
        execution succeeds or fails.

        Args:
            plan: Validated plan to execute.
            overwrite: Replace an existing destination when no backup is requested.

        Returns:
            ExecutionResult: Details about the completed execution.

        Raises:
            ExecutionError: If any step fails; ``step`` names the failing step.
        """

        label = plan.label
        self.sink.started(label)
        try:
            result = self._execute(plan, overwrite)
        except Exception as exc:
            self.sink.finished(label, False, str(exc))
            raise
        self.sink.finished(label, True, "ok")
        return result

    def _execute(self, plan: Plan, overwrite: bool) -> ExecutionResult:
        result = ExecutionResult(plan=plan)
        result.backup_path = self._prepare_destination(plan, overwrite)

        if plan.strategy is Strategy.RENAME_ONLY:
            self._rename(plan, overwrite)
        elif plan.strategy is Strategy.COPY_ONLY:
            self._copy(plan)
        else:
            self._convert(plan, overwrite, result)
        LOGGER.info("%s %s -> %s", plan.strategy.value, plan.source, plan.destination)
        return result

    def _prepare_destination(self, plan: Plan, overwrite: bool) -> Optional[Path]:
        destination = plan.destination
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ExecutionPreconditionError(
                f"failed to create destination directory {destination.parent}: {exc}",
                step="prepare-destination",
            ) from exc

        if not destination.exists():
            return None
        if plan.backup:
            return backup_existing(destination)
        if not overwrite:
            raise ExecutionPreconditionError(
                "destination exists; pass --overwrite or --backup",
                step="prepare-destination",
            )
        return None

    def _rename(self, plan: Plan, overwrite: bool) -> None:
        try:
            if overwrite and plan.destination.exists():
                plan.destination.unlink()
            plan.source.rename(plan.destination)
        except OSError as exc:
            raise ExecutionError(f"failed to rename source: {exc}", step="rename") from exc

    def _copy(self, plan: Plan) -> None:
        try:
            handle = tempfile.NamedTemporaryFile(
                prefix=TEMP_PREFIX, dir=plan.destination.parent, delete=False
            )
        except OSError as exc:
            raise ExecutionError(f"failed to create temp file: {exc}", step="copy") from exc
        temp_path = Path(handle.name)
        try:
            with handle, plan.source.open("rb") as source:
                shutil.copyfileobj(source, handle)
            shutil.copymode(plan.source, temp_path)
            os.replace(temp_path, plan.destination)
        except OSError as exc:
            temp_path.unlink(missing_ok=True)
            raise ExecutionError(f"failed to copy source: {exc}", step="copy") from exc

    def _convert(self, plan: Plan, overwrite: bool, result: ExecutionResult) -> None:
        if plan.backend is None:
            raise UnsupportedConversionError()

        try:
            staging = tempfile.TemporaryDirectory(prefix=TEMP_PREFIX, dir=plan.destination.parent)
        except OSError as exc:
            raise ExecutionError(
                f"failed to create temp directory: {exc}", step="run-backend"
            ) from exc

        with staging as temp_dir:
            output = temp_output_path(Path(temp_dir), plan.destination)
            self._run_backend(plan, output, result)
            ensure_non_empty(output)
            try:
                if overwrite and plan.destination.exists():
                    plan.destination.unlink()
                output.rename(plan.destination)
            except OSError as exc:
                raise ExecutionError(
                    f"failed to finalize destination: {exc}", step="finalize"
                ) from exc

        if plan.move_source:
            try:
                plan.source.unlink()
            except OSError as exc:
                raise ExecutionError(
                    f"failed to remove source: {exc}", step="remove-source"
                ) from exc

    def _run_backend(self, plan: Plan, output: Path, result: ExecutionResult) -> None:
        if plan.backend is Backend.IMAGEMAGICK:
            backends.run_imagemagick(plan, output, self.sink)
        elif plan.backend is Backend.LIBREOFFICE:
            backends.run_libreoffice(plan, output, self.sink)
        else:
            info = self._probe(plan.source)
            mode = decide_ffmpeg_mode(plan, info)
            result.media = info
            result.ffmpeg_mode = mode
            LOGGER.debug("ffmpeg mode for %s: %s", plan.source, mode.value)
            duration = info.duration_seconds if info else None
            backends.run_ffmpeg(plan, output, mode, duration, self.sink)

    def _probe(self, source: Path) -> Optional[MediaInfo]:
        try:
            return self.prober.probe(source)
        except ProbeError as exc:
            LOGGER.warning("ffprobe unavailable; continuing without it: %s", exc)
            return None


def temp_output_path(temp_dir: Path, destination: Path) -> Path:
    """Return the staged output path, keeping the destination's extension."""
    suffix = destination.suffix if len(destination.suffix) > 1 else ".out"
    return temp_dir / f"output{suffix}"


def ensure_non_empty(path: Path) -> None:
    """Raise :class:`OutputEmptyError` unless ``path`` holds at least one byte."""
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise OutputEmptyError(f"backend produced no output: {exc}") from exc
    if size == 0:
        raise OutputEmptyError()


def next_backup_path(destination: Path) -> Path:
    """Return the first free ``.bak`` / ``.bak.N`` name for ``destination``.

    Raises:
        ExecutionError: If every candidate up to ``.bak.1000`` is taken.
    """

    base = destination.with_name(destination.name + ".bak")
    if not base.exists():
        return base
    for index in range(1, MAX_BACKUP_ATTEMPTS + 1):
        candidate = destination.with_name(f"{base.name}.{index}")
        if not candidate.exists():
            return candidate
    raise ExecutionError("could not find available backup path", step="backup")


def backup_existing(destination: Path) -> Path:
    """Rotate ``destination`` to its next free backup name and return that name."""
    backup_path = next_backup_path(destination)
    try:
        destination.rename(backup_path)
    except OSError as exc:
        raise ExecutionError(f"failed to backup destination: {exc}", step="backup") from exc
    LOGGER.info("Backed up %s to %s", destination, backup_path)
    return backup_path


__all__ = [
    "ExecutionResult",
    "PlanExecutor",
    "backup_existing",
    "ensure_non_empty",
    "next_backup_path",
    "temp_output_path",
]
