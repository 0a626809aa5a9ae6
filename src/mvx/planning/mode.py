"""Stream-copy versus transcode selection for ffmpeg plans."""

from __future__ import annotations

from typing import Optional

from .models import FfmpegMode, FfmpegPreference, MediaInfo, MediaKind, Plan

MP4_VIDEO_CODECS = frozenset({"h264", "hevc", "mpeg4", "av1"})
MP4_AUDIO_CODECS = frozenset({"aac", "mp3", "alac"})
WEBM_VIDEO_CODECS = frozenset({"vp8", "vp9", "av1"})
WEBM_AUDIO_CODECS = frozenset({"opus", "vorbis"})


def decide_ffmpeg_mode(plan: Plan, info: Optional[MediaInfo]) -> FfmpegMode:
    """Choose the ffmpeg mode for ``plan`` given optional probe results.

    Args:
        plan: Plan whose backend is ffmpeg.
        info: Probed source metadata, or ``None`` when probing was unavailable.

    Returns:
        FfmpegMode: Stream copy only when the destination container is known to
        accept the source codecs; transcode otherwise.
    """

    preference = plan.options.ffmpeg_preference
    if preference is FfmpegPreference.STREAM_COPY:
        return FfmpegMode.STREAM_COPY
    if preference is FfmpegPreference.TRANSCODE:
        return FfmpegMode.TRANSCODE

    if plan.dest_kind is MediaKind.AUDIO:
        return FfmpegMode.TRANSCODE
    if plan.dest_ext is None or info is None or info.video_codec is None:
        return FfmpegMode.TRANSCODE

    if plan.dest_ext == "mkv":
        return FfmpegMode.STREAM_COPY
    if plan.dest_ext in ("mp4", "mov"):
        return _copy_if(info, MP4_VIDEO_CODECS, MP4_AUDIO_CODECS)
    if plan.dest_ext == "webm":
        return _copy_if(info, WEBM_VIDEO_CODECS, WEBM_AUDIO_CODECS)
    return FfmpegMode.TRANSCODE


def _copy_if(info: MediaInfo, video: frozenset[str], audio: frozenset[str]) -> FfmpegMode:
    video_ok = (info.video_codec or "").lower() in video
    audio_ok = info.audio_codec is None or info.audio_codec.lower() in audio
    return FfmpegMode.STREAM_COPY if video_ok and audio_ok else FfmpegMode.TRANSCODE


__all__ = ["decide_ffmpeg_mode"]
