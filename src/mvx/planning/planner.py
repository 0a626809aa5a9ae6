"""Planner that turns a source/destination pair into an immutable plan."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional, Protocol

from mvx.ingestion.models import DetectedType

from . import extensions as ext
from .exceptions import PlanValidationError
from .models import (
    Backend,
    ConversionOptions,
    FfmpegPreference,
    MediaKind,
    Plan,
    Strategy,
)

LOGGER = logging.getLogger(__name__)

PRESETS = (
    "ultrafast",
    "superfast",
    "veryfast",
    "faster",
    "fast",
    "medium",
    "slow",
    "slower",
    "veryslow",
)

_BITRATE_PATTERN = re.compile(r"[0-9]+[kKmM]?")


class Detector(Protocol):
    def detect(self, path: Path) -> DetectedType: ...


class ConversionPlanner:
    """Derive plans from a source, a destination, and conversion options."""

    def __init__(self, detector: Optional[Detector] = None) -> None:
        if detector is None:
            from mvx.ingestion.detectors import TypeDetector

            detector = TypeDetector()
        self._detector = detector

    def build_plan(
        self,
        source: Path,
        destination: Path,
        *,
        move_source: bool = False,
        backup: bool = False,
        options: Optional[ConversionOptions] = None,
    ) -> Plan:
        """Produce a plan describing how to turn ``source`` into ``destination``.

        Args:
            source: Existing source file.
            destination: Requested destination path.
            move_source: Remove the source after a successful run.
            backup: Rotate an existing destination to ``.bak`` names.
            options: Conversion options; defaults when omitted.

        Returns:
            Plan: Immutable plan ready for the executor.

        Raises:
            PlanValidationError: If the paths are identical or an option is invalid.
        """

        source = Path(source)
        destination = Path(destination)
        options = options or ConversionOptions()

        if _same_path(source, destination):
            raise PlanValidationError("Source and destination must differ.")
        validate_options(options)

        detected = self._detector.detect(source)
        source_ext = ext.normalize_ext(source)
        dest_ext = ext.normalize_ext(destination)
        dest_kind = ext.classify_dest_kind(dest_ext)

        strategy = select_strategy(source_ext, dest_ext, move_source)
        backend = select_backend(source_ext, dest_ext) if strategy is Strategy.CONVERT else None

        notes: list[str] = []
        if strategy is Strategy.CONVERT:
            if backend is None:
                notes.append("no supported backend found for this conversion")
            if backend is Backend.FFMPEG:
                notes.append("ffprobe may be used at runtime to choose stream copy vs transcode")
            if source_ext == "pdf" and ext.is_image(dest_ext):
                notes.append("PDF to image converts the first page only")
                if detected.pdf_pages is not None and detected.pdf_pages > 1:
                    notes.append(
                        f"PDF has {detected.pdf_pages} pages; only the first page is converted"
                    )
        if not move_source:
            notes.append("source will be kept")
        notes.extend(option_warnings(options, dest_kind, backend, source_ext, dest_ext))

        plan = Plan(
            source=source,
            destination=destination,
            detected=detected,
            strategy=strategy,
            backend=backend,
            notes=tuple(notes),
            move_source=move_source,
            backup=backup,
            options=options,
            dest_ext=dest_ext,
            dest_kind=dest_kind,
        )
        LOGGER.debug(
            "Planned %s -> %s: strategy=%s backend=%s",
            source,
            destination,
            strategy.value,
            backend.value if backend else None,
        )
        return plan


def build_plan(
    source: Path,
    destination: Path,
    *,
    move_source: bool = False,
    backup: bool = False,
    options: Optional[ConversionOptions] = None,
    detector: Optional[Detector] = None,
) -> Plan:
    """Convenience wrapper around :class:`ConversionPlanner`."""
    return ConversionPlanner(detector).build_plan(
        source,
        destination,
        move_source=move_source,
        backup=backup,
        options=options,
    )


def select_strategy(
    source_ext: Optional[str], dest_ext: Optional[str], move_source: bool
) -> Strategy:
    """Pick the strategy from normalized extensions only."""
    if source_ext is not None and source_ext == dest_ext:
        return Strategy.RENAME_ONLY if move_source else Strategy.COPY_ONLY
    return Strategy.CONVERT


def select_backend(source_ext: Optional[str], dest_ext: Optional[str]) -> Optional[Backend]:
    """Pick the conversion backend; the first matching rule wins."""
    if ext.is_image(source_ext) and ext.is_image(dest_ext):
        return Backend.IMAGEMAGICK
    if ext.is_pdf_image_pair(source_ext, dest_ext):
        return Backend.IMAGEMAGICK
    if ext.is_media(source_ext) and ext.is_media(dest_ext):
        return Backend.FFMPEG
    if ext.is_document(source_ext) and dest_ext == "pdf":
        return Backend.LIBREOFFICE
    return None


def validate_options(options: ConversionOptions) -> None:
    """Reject invalid option values.

    Raises:
        PlanValidationError: On the first invalid value.
    """
    quality = options.image_quality
    if quality is not None and not 1 <= quality <= 100:
        raise PlanValidationError("image quality must be between 1 and 100")
    if options.video_bitrate is not None and not is_valid_bitrate(options.video_bitrate):
        raise PlanValidationError(
            f"invalid video bitrate {options.video_bitrate!r}: "
            "expected digits with optional k/m suffix"
        )
    if options.audio_bitrate is not None and not is_valid_bitrate(options.audio_bitrate):
        raise PlanValidationError(
            f"invalid audio bitrate {options.audio_bitrate!r}: "
            "expected digits with optional k/m suffix"
        )
    if options.preset is not None and options.preset.lower() not in PRESETS:
        raise PlanValidationError(f"preset must be one of: {', '.join(PRESETS)}")
    if options.video_codec is not None and not options.video_codec.strip():
        raise PlanValidationError("video codec must be a non-empty string")
    if options.audio_codec is not None and not options.audio_codec.strip():
        raise PlanValidationError("audio codec must be a non-empty string")


def is_valid_bitrate(value: str) -> bool:
    """Return True for digits with an optional trailing k/K/m/M."""
    return _BITRATE_PATTERN.fullmatch(value) is not None


def option_warnings(
    options: ConversionOptions,
    dest_kind: MediaKind,
    backend: Optional[Backend],
    source_ext: Optional[str],
    dest_ext: Optional[str],
) -> list[str]:
    """Return advisory notes for options that will be ignored."""
    notes: list[str] = []
    if dest_kind is not MediaKind.IMAGE and options.image_quality is not None:
        notes.append("image quality ignored for non-image output")
    if (
        dest_kind is MediaKind.DOCUMENT
        and not ext.is_pdf_image_pair(source_ext, dest_ext)
        and (options.image_quality is not None or options.has_encoder_settings())
    ):
        notes.append("media options ignored for document conversions")
    if dest_kind is MediaKind.AUDIO:
        if options.video_bitrate is not None:
            notes.append("video bitrate ignored for audio-only output")
        if options.preset is not None:
            notes.append("preset ignored for audio-only output")
    if dest_kind is MediaKind.IMAGE:
        if options.video_bitrate is not None:
            notes.append("video bitrate ignored for image output")
        if options.audio_bitrate is not None:
            notes.append("audio bitrate ignored for image output")
        if options.video_codec is not None:
            notes.append("video codec ignored for image output")
        if options.audio_codec is not None:
            notes.append("audio codec ignored for image output")
    if dest_kind is MediaKind.AUDIO and options.video_codec is not None:
        notes.append("video codec ignored for audio-only output")
    if backend is not Backend.FFMPEG and options.ffmpeg_preference is not FfmpegPreference.AUTO:
        notes.append("ffmpeg mode preference ignored for non-ffmpeg backend")
    if options.ffmpeg_preference is FfmpegPreference.STREAM_COPY:
        for value, name in (
            (options.video_bitrate, "video bitrate"),
            (options.audio_bitrate, "audio bitrate"),
            (options.preset, "preset"),
            (options.video_codec, "video codec"),
            (options.audio_codec, "audio codec"),
        ):
            if value is not None:
                notes.append(f"{name} ignored when stream copy is forced")
    return notes


def _same_path(source: Path, destination: Path) -> bool:
    if source == destination:
        return True
    try:
        return source.resolve() == destination.resolve()
    except OSError:
        return False


__all__ = [
    "ConversionPlanner",
    "PRESETS",
    "build_plan",
    "is_valid_bitrate",
    "option_warnings",
    "select_backend",
    "select_strategy",
    "validate_options",
]
