"""Conversion planning: strategy, backend, and ffmpeg mode selection."""

from .commands import command_preview
from .exceptions import PlanValidationError
from .mode import decide_ffmpeg_mode
from .models import (
    Backend,
    ConversionOptions,
    FfmpegMode,
    FfmpegPreference,
    MediaInfo,
    MediaKind,
    Plan,
    Strategy,
)
from .planner import ConversionPlanner, build_plan
from .report import plan_report, render_plan

__all__ = [
    "Backend",
    "ConversionOptions",
    "ConversionPlanner",
    "FfmpegMode",
    "FfmpegPreference",
    "MediaInfo",
    "MediaKind",
    "Plan",
    "PlanValidationError",
    "Strategy",
    "build_plan",
    "command_preview",
    "decide_ffmpeg_mode",
    "plan_report",
    "render_plan",
]
