"""Media probing via ffprobe."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, ValidationError

from mvx.planning.models import MediaInfo

from .errors import ProbeError

LOGGER = logging.getLogger(__name__)


class _ProbeFormat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    duration: Optional[str] = None


class _ProbeStream(BaseModel):
    model_config = ConfigDict(extra="ignore")

    codec_type: Optional[str] = None
    codec_name: Optional[str] = None


class _ProbeOutput(BaseModel):
    model_config = ConfigDict(extra="ignore")

    format: Optional[_ProbeFormat] = None
    streams: List[_ProbeStream] = []


def parse_probe_output(payload: str | bytes) -> MediaInfo:
    """Convert ffprobe JSON output into :class:`MediaInfo`.

    Raises:
        ProbeError: If the payload is not valid ffprobe JSON.
    """

    try:
        parsed = _ProbeOutput.model_validate_json(payload)
    except ValidationError as exc:
        raise ProbeError(f"failed to parse ffprobe output: {exc}") from exc

    duration: Optional[float] = None
    if parsed.format is not None and parsed.format.duration:
        try:
            duration = float(parsed.format.duration)
        except ValueError:
            duration = None

    video_codec: Optional[str] = None
    audio_codec: Optional[str] = None
    for stream in parsed.streams:
        if stream.codec_type == "video" and video_codec is None:
            video_codec = stream.codec_name
        elif stream.codec_type == "audio" and audio_codec is None:
            audio_codec = stream.codec_name

    return MediaInfo(
        duration_seconds=duration,
        video_codec=video_codec,
        audio_codec=audio_codec,
    )


class MediaProber:
    """Run ffprobe against a source and report duration and codecs."""

    def __init__(self, executable: str = "ffprobe") -> None:
        self.executable = executable

    def probe(self, path: Path) -> MediaInfo:
        """Probe ``path``.

        Raises:
            ProbeError: If ffprobe is missing, fails, or emits unparsable output.
        """

        resolved = shutil.which(self.executable)
        if resolved is None:
            raise ProbeError("ffprobe not found; install ffmpeg to enable stream-copy detection")
        try:
            completed = subprocess.run(
                [
                    resolved,
                    "-v",
                    "error",
                    "-show_format",
                    "-show_streams",
                    "-print_format",
                    "json",
                    str(path),
                ],
                capture_output=True,
                check=False,
            )
        except OSError as exc:
            raise ProbeError(f"failed to execute ffprobe: {exc}") from exc
        if completed.returncode != 0:
            raise ProbeError(f"ffprobe exited with status {completed.returncode}")
        info = parse_probe_output(completed.stdout)
        LOGGER.debug(
            "Probed %s: duration=%s video=%s audio=%s",
            path,
            info.duration_seconds,
            info.video_codec,
            info.audio_codec,
        )
        return info


__all__ = ["MediaProber", "parse_probe_output"]
