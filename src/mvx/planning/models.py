"""Plan data models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from mvx.ingestion.models import DetectedType


class Strategy(str, Enum):
    """Top-level operation kind."""

    RENAME_ONLY = "rename"
    COPY_ONLY = "copy"
    CONVERT = "convert"


class Backend(str, Enum):
    """External tool family used for a conversion."""

    IMAGEMAGICK = "imagemagick"
    FFMPEG = "ffmpeg"
    LIBREOFFICE = "libreoffice"


class MediaKind(str, Enum):
    """Coarse classification of a destination extension."""

    IMAGE = "image"
    AUDIO = "audio"
    VIDEO = "video"
    DOCUMENT = "document"
    OTHER = "other"


class FfmpegPreference(str, Enum):
    """Requested ffmpeg behaviour; ``AUTO`` defers to the mode decider."""

    AUTO = "auto"
    STREAM_COPY = "stream-copy"
    TRANSCODE = "transcode"


class FfmpegMode(str, Enum):
    """Concrete ffmpeg mode chosen at execution time."""

    STREAM_COPY = "stream-copy"
    TRANSCODE = "transcode"


class ConversionOptions(BaseModel):
    """Options forwarded to the conversion backends.

    Attributes:
        image_quality: ImageMagick quality, 1-100.
        video_bitrate: Video bitrate such as ``2500k``.
        audio_bitrate: Audio bitrate such as ``192k``.
        preset: Encoder preset (``ultrafast`` ... ``veryslow``).
        video_codec: ffmpeg video encoder.
        audio_codec: ffmpeg audio encoder.
        ffmpeg_preference: Stream-copy/transcode preference.
    """

    model_config = ConfigDict(frozen=True)

    image_quality: Optional[int] = None
    video_bitrate: Optional[str] = None
    audio_bitrate: Optional[str] = None
    preset: Optional[str] = None
    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None
    ffmpeg_preference: FfmpegPreference = FfmpegPreference.AUTO

    def has_encoder_settings(self) -> bool:
        """Return True when any bitrate, preset, or codec option is set."""
        return any(
            value is not None
            for value in (
                self.video_bitrate,
                self.audio_bitrate,
                self.preset,
                self.video_codec,
                self.audio_codec,
            )
        )


class MediaInfo(BaseModel):
    """Media metadata probed from a source at execution time.

    Attributes:
        duration_seconds: Container duration, when reported.
        video_codec: Codec of the first video stream.
        audio_codec: Codec of the first audio stream.
    """

    model_config = ConfigDict(frozen=True)

    duration_seconds: Optional[float] = None
    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None


class Plan(BaseModel):
    """Immutable description of one source -> destination operation.

    Attributes:
        source: Source file path.
        destination: Requested destination path.
        detected: Advisory type detection for the source.
        strategy: Rename, copy, or convert.
        backend: Conversion backend; only set for conversions.
        notes: Ordered advisory notes; never block execution.
        move_source: Whether the source is removed after success.
        backup: Whether an existing destination is rotated to ``.bak`` names.
        options: Validated conversion options.
        dest_ext: Normalized destination extension.
        dest_kind: Classification of the destination extension.
    """

    model_config = ConfigDict(frozen=True)

    source: Path
    destination: Path
    detected: DetectedType = Field(default_factory=DetectedType)
    strategy: Strategy
    backend: Optional[Backend] = None
    notes: Tuple[str, ...] = ()
    move_source: bool = False
    backup: bool = False
    options: ConversionOptions = Field(default_factory=ConversionOptions)
    dest_ext: Optional[str] = None
    dest_kind: MediaKind = MediaKind.OTHER

    @property
    def label(self) -> str:
        """Identifier used for progress events (the source path)."""
        return str(self.source)


__all__ = [
    "Strategy",
    "Backend",
    "MediaKind",
    "FfmpegPreference",
    "FfmpegMode",
    "ConversionOptions",
    "MediaInfo",
    "Plan",
]
