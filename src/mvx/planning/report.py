"""Human-readable and structured renderings of a plan."""

from __future__ import annotations

from typing import Any, Dict, List

from .commands import command_preview
from .models import Backend, Plan


def _yes_no(value: bool) -> str:
    return "yes" if value else "no"


def render_plan(plan: Plan, overwrite: bool = False) -> str:
    """Return a multi-line text report for ``plan``.

    Args:
        plan: Plan to describe.
        overwrite: Whether execution would overwrite an existing destination.

    Returns:
        str: Report lines joined with newlines.
    """

    detected = plan.detected
    options = plan.options
    lines: List[str] = [
        f"Source: {plan.source}",
        f"Destination: {plan.destination}",
        f"Detected: {detected.mime or 'unknown'}",
    ]
    if detected.ext_hint:
        lines.append(f"Detected extension: {detected.ext_hint}")
    if detected.external_mime:
        lines.append(f"External MIME: {detected.external_mime}")
    if detected.pdf_pages is not None:
        lines.append(f"PDF pages: {detected.pdf_pages}")
    lines.append(f"Strategy: {plan.strategy.value}")
    if plan.dest_ext:
        lines.append(f"Destination extension: {plan.dest_ext}")
    if plan.backend is not None:
        lines.append(f"Backend: {plan.backend.value}")
    lines.append(f"Destination kind: {plan.dest_kind.value}")

    for label, value in (
        ("Image quality", options.image_quality),
        ("Video bitrate", options.video_bitrate),
        ("Audio bitrate", options.audio_bitrate),
        ("Preset", options.preset),
        ("Video codec", options.video_codec),
        ("Audio codec", options.audio_codec),
    ):
        if value is not None:
            lines.append(f"{label}: {value}")
    if plan.backend is Backend.FFMPEG:
        lines.append(f"FFmpeg mode: {options.ffmpeg_preference.value}")

    preview = command_preview(plan)
    if preview:
        lines.append(f"Command preview: {preview}")
    lines.append(f"Overwrite: {_yes_no(overwrite)}")
    lines.append(f"Backup: {_yes_no(plan.backup)}")
    lines.append(f"Move source: {_yes_no(plan.move_source)}")
    lines.extend(f"Note: {note}" for note in plan.notes)
    return "\n".join(lines)


def plan_report(plan: Plan, overwrite: bool = False) -> Dict[str, Any]:
    """Return a JSON-serialisable dictionary describing ``plan``."""

    options = plan.options
    return {
        "source": str(plan.source),
        "destination": str(plan.destination),
        "detected_mime": plan.detected.mime,
        "detected_extension": plan.detected.ext_hint,
        "external_mime": plan.detected.external_mime,
        "pdf_pages": plan.detected.pdf_pages,
        "strategy": plan.strategy.value,
        "backend": plan.backend.value if plan.backend else None,
        "destination_kind": plan.dest_kind.value,
        "destination_extension": plan.dest_ext,
        "overwrite": overwrite,
        "backup": plan.backup,
        "move_source": plan.move_source,
        "options": {
            "image_quality": options.image_quality,
            "video_bitrate": options.video_bitrate,
            "audio_bitrate": options.audio_bitrate,
            "preset": options.preset,
            "video_codec": options.video_codec,
            "audio_codec": options.audio_codec,
            "ffmpeg_mode": options.ffmpeg_preference.value,
        },
        "notes": list(plan.notes),
        "command_preview": command_preview(plan),
    }


__all__ = ["plan_report", "render_plan"]
