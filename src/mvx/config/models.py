"""Configuration models describing mvx settings."""

from __future__ import annotations

from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

FfmpegPreferenceName = Literal["auto", "stream-copy", "transcode"]


class MvxBaseModel(BaseModel):
    """Shared configuration for mvx Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class ConversionDefaults(MvxBaseModel):
    """Default conversion options applied before command-line flags.

    Values are only stored here; range and format checks happen when a plan is
    built so that configuration and flags are validated the same way.

    Attributes:
        image_quality: ImageMagick quality (1-100).
        video_bitrate: ffmpeg video bitrate such as ``2500k``.
        audio_bitrate: ffmpeg audio bitrate such as ``192k``.
        preset: ffmpeg encoder preset.
        video_codec: ffmpeg video encoder name.
        audio_codec: ffmpeg audio encoder name.
        ffmpeg_preference: Stream-copy/transcode preference for ffmpeg.
    """

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    image_quality: Optional[int] = None
    video_bitrate: Optional[str] = None
    audio_bitrate: Optional[str] = None
    preset: Optional[str] = None
    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None
    ffmpeg_preference: Optional[FfmpegPreferenceName] = None


class LoggingSettings(MvxBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file path; rotation applies when set.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    file: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 3


class CLIOptions(MvxBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether console progress is suppressed by default.
        live_default: Whether runs use the live dashboard by default.
    """

    quiet_default: bool = False
    live_default: bool = False


class MvxConfig(MvxBaseModel):
    """Top-level configuration struct for mvx.

    Attributes:
        conversion: Default conversion options.
        profiles: Named option sets layered over ``conversion``.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    conversion: ConversionDefaults = Field(default_factory=ConversionDefaults)
    profiles: Dict[str, ConversionDefaults] = Field(default_factory=dict)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "MvxBaseModel",
    "ConversionDefaults",
    "LoggingSettings",
    "CLIOptions",
    "MvxConfig",
]
