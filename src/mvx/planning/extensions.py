"""Extension normalization and classification tables."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from .models import MediaKind

_ALIASES = {"jpeg": "jpg", "htm": "html"}

IMAGE_EXTENSIONS = frozenset(
    {"jpg", "jpeg", "png", "gif", "webp", "bmp", "tiff", "tif", "heic", "avif"}
)
AUDIO_EXTENSIONS = frozenset({"mp3", "wav", "flac", "aac", "ogg", "m4a", "opus"})
VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "mkv", "webm", "avi"})
MEDIA_EXTENSIONS = AUDIO_EXTENSIONS | VIDEO_EXTENSIONS
DOCUMENT_EXTENSIONS = frozenset(
    {"doc", "docx", "ppt", "pptx", "xls", "xlsx", "odt", "odp", "ods", "rtf", "txt"}
)


def normalize_ext(path: Path) -> Optional[str]:
    """Return the lowercased, alias-resolved extension of ``path`` (without dot)."""
    suffix = path.suffix
    if not suffix or suffix == ".":
        return None
    ext = suffix[1:].lower()
    return _ALIASES.get(ext, ext)


def is_image(ext: Optional[str]) -> bool:
    return ext in IMAGE_EXTENSIONS


def is_audio(ext: Optional[str]) -> bool:
    return ext in AUDIO_EXTENSIONS


def is_video(ext: Optional[str]) -> bool:
    return ext in VIDEO_EXTENSIONS


def is_media(ext: Optional[str]) -> bool:
    return ext in MEDIA_EXTENSIONS


def is_document(ext: Optional[str]) -> bool:
    return ext in DOCUMENT_EXTENSIONS


def is_pdf_image_pair(source_ext: Optional[str], dest_ext: Optional[str]) -> bool:
    """Return True for pdf -> image or image -> pdf pairs."""
    return (source_ext == "pdf" and is_image(dest_ext)) or (
        dest_ext == "pdf" and is_image(source_ext)
    )


def classify_dest_kind(ext: Optional[str]) -> MediaKind:
    """Classify a destination extension."""
    if is_image(ext):
        return MediaKind.IMAGE
    if is_audio(ext):
        return MediaKind.AUDIO
    if is_video(ext):
        return MediaKind.VIDEO
    if is_document(ext) or ext == "pdf":
        return MediaKind.DOCUMENT
    return MediaKind.OTHER


__all__ = [
    "IMAGE_EXTENSIONS",
    "AUDIO_EXTENSIONS",
    "VIDEO_EXTENSIONS",
    "MEDIA_EXTENSIONS",
    "DOCUMENT_EXTENSIONS",
    "normalize_ext",
    "is_image",
    "is_audio",
    "is_video",
    "is_media",
    "is_document",
    "is_pdf_image_pair",
    "classify_dest_kind",
]
