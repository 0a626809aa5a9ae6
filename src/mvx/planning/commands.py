"""Backend argument construction shared by plan previews and execution.

The executor and :func:`command_preview` both call the builders in this module,
so a preview always shows the argument vector that would actually run.
"""

from __future__ import annotations

import shlex
from pathlib import Path
from typing import Optional

from .extensions import normalize_ext
from .models import Backend, FfmpegMode, FfmpegPreference, MediaKind, Plan

IMAGEMAGICK_CANDIDATES = ("magick", "convert")
FFMPEG_CANDIDATES = ("ffmpeg",)
LIBREOFFICE_CANDIDATES = ("soffice", "libreoffice")

TEMP_DIR_PLACEHOLDER = "<temp>"


def default_video_codec(dest_ext: Optional[str]) -> Optional[str]:
    """Return the default video encoder for a destination container."""
    if dest_ext in ("mp4", "mov", "mkv", "avi"):
        return "libx264"
    if dest_ext == "webm":
        return "libvpx-vp9"
    return None


def default_audio_codec(dest_ext: Optional[str], dest_kind: MediaKind) -> Optional[str]:
    """Return the default audio encoder for a destination extension."""
    if dest_kind is MediaKind.AUDIO:
        return {
            "mp3": "libmp3lame",
            "flac": "flac",
            "wav": "pcm_s16le",
            "opus": "libopus",
            "ogg": "libvorbis",
            "m4a": "aac",
            "aac": "aac",
        }.get(dest_ext or "")
    if dest_ext in ("mp4", "mov", "mkv", "avi"):
        return "aac"
    if dest_ext == "webm":
        return "libopus"
    return None


def imagemagick_args(
    plan: Plan,
    source: Path,
    output: Path,
    executable: str = IMAGEMAGICK_CANDIDATES[0],
) -> list[str]:
    """Build an ImageMagick invocation; pdf sources use only page 0."""
    source_arg = str(source)
    if normalize_ext(plan.source) == "pdf" and plan.dest_ext != "pdf":
        source_arg = f"{source}[0]"
    args = [executable, source_arg]
    if plan.options.image_quality is not None:
        args.extend(["-quality", str(plan.options.image_quality)])
    args.append(str(output))
    return args


def ffmpeg_mode_args(plan: Plan, mode: FfmpegMode) -> list[str]:
    """Return the codec/bitrate/preset flags for ``mode``."""
    if mode is FfmpegMode.STREAM_COPY:
        return ["-c", "copy"]

    options = plan.options
    args: list[str] = []
    if plan.dest_kind is MediaKind.VIDEO:
        video_codec = options.video_codec or default_video_codec(plan.dest_ext)
        if video_codec:
            args.extend(["-c:v", video_codec])
        if options.video_bitrate:
            args.extend(["-b:v", options.video_bitrate])
        if options.preset:
            args.extend(["-preset", options.preset])
    if plan.dest_kind in (MediaKind.VIDEO, MediaKind.AUDIO):
        audio_codec = options.audio_codec or default_audio_codec(plan.dest_ext, plan.dest_kind)
        if audio_codec:
            args.extend(["-c:a", audio_codec])
        if options.audio_bitrate:
            args.extend(["-b:a", options.audio_bitrate])
    return args


def ffmpeg_args(
    plan: Plan,
    mode: FfmpegMode,
    source: Path,
    output: Path,
    executable: str = FFMPEG_CANDIDATES[0],
) -> list[str]:
    """Build an ffmpeg invocation that reports progress on stdout."""
    args = [
        executable,
        "-nostdin",
        "-y",
        "-hide_banner",
        "-nostats",
        "-loglevel",
        "error",
        "-i",
        str(source),
    ]
    args.extend(ffmpeg_mode_args(plan, mode))
    args.extend(["-progress", "pipe:1", str(output)])
    return args


def libreoffice_args(
    source: Path,
    out_dir: Path | str,
    executable: str = LIBREOFFICE_CANDIDATES[0],
) -> list[str]:
    """Build a headless LibreOffice PDF export into ``out_dir``."""
    return [
        executable,
        "--headless",
        "--convert-to",
        "pdf",
        "--outdir",
        str(out_dir),
        str(source),
    ]


def command_preview(plan: Plan) -> Optional[str]:
    """Return the command(s) the executor would run for ``plan``.

    For ffmpeg plans with the ``auto`` preference both candidate invocations
    are shown because the final mode is chosen after probing.
    """
    if plan.backend is None:
        return None

    if plan.backend is Backend.IMAGEMAGICK:
        return shlex.join(imagemagick_args(plan, plan.source, plan.destination))

    if plan.backend is Backend.LIBREOFFICE:
        return shlex.join(libreoffice_args(plan.source, TEMP_DIR_PLACEHOLDER))

    preference = plan.options.ffmpeg_preference
    if preference is FfmpegPreference.STREAM_COPY:
        return shlex.join(
            ffmpeg_args(plan, FfmpegMode.STREAM_COPY, plan.source, plan.destination)
        )
    transcode = shlex.join(ffmpeg_args(plan, FfmpegMode.TRANSCODE, plan.source, plan.destination))
    if preference is FfmpegPreference.TRANSCODE:
        return transcode
    copy = shlex.join(ffmpeg_args(plan, FfmpegMode.STREAM_COPY, plan.source, plan.destination))
    return f"{copy} (if compatible), else {transcode}"


__all__ = [
    "FFMPEG_CANDIDATES",
    "IMAGEMAGICK_CANDIDATES",
    "LIBREOFFICE_CANDIDATES",
    "TEMP_DIR_PLACEHOLDER",
    "command_preview",
    "default_audio_codec",
    "default_video_codec",
    "ffmpeg_args",
    "ffmpeg_mode_args",
    "imagemagick_args",
    "libreoffice_args",
]
