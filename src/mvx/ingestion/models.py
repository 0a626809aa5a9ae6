"""Data models produced by source inspection."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class DetectedType(BaseModel):
    """Best-effort classification of a source file.

    Every field degrades to ``None`` when the corresponding probe is unavailable
    or fails; nothing here influences strategy or backend selection.

    Attributes:
        mime: MIME type sniffed from the file content.
        ext_hint: Lowercased extension taken from the file name.
        external_mime: MIME type reported by the system ``file`` utility.
        pdf_pages: Page count for PDF sources, when ``pdfinfo`` is available.
    """

    model_config = ConfigDict(frozen=True)

    mime: Optional[str] = None
    ext_hint: Optional[str] = None
    external_mime: Optional[str] = None
    pdf_pages: Optional[int] = None


__all__ = ["DetectedType"]
