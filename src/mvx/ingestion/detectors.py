"""File type detection utilities."""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional

try:  # pragma: no cover - optional native dependency
    import magic
except ImportError:  # pragma: no cover - executed when libmagic is missing
    magic = None

from .models import DetectedType

LOGGER = logging.getLogger(__name__)

_PROBE_TIMEOUT_SECONDS = 10


class TypeDetector:
    """Identify a source's MIME type using python-magic and system utilities.

    Detection is advisory. Every probe swallows its own failures and reports
    ``None`` so planning never fails because of a sniffing problem.
    """

    def __init__(self, *, use_external: bool = True, count_pdf_pages: bool = True) -> None:
        self.use_external = use_external
        self.count_pdf_pages = count_pdf_pages

    def detect(self, path: Path) -> DetectedType:
        """Return the detected type information for ``path``."""
        ext_hint = path.suffix[1:].lower() if len(path.suffix) > 1 else None
        mime = self._sniff_content(path)
        external_mime = self._sniff_external(path) if self.use_external else None
        pdf_pages = None
        if self.count_pdf_pages and (ext_hint == "pdf" or mime == "application/pdf"):
            pdf_pages = pdf_page_count(path)
        return DetectedType(
            mime=mime,
            ext_hint=ext_hint,
            external_mime=external_mime,
            pdf_pages=pdf_pages,
        )

    def _sniff_content(self, path: Path) -> Optional[str]:
        if magic is None or not path.is_file():
            return None
        try:
            value = magic.from_file(str(path), mime=True)
        except Exception as exc:  # pragma: no cover - libmagic errors vary by platform
            LOGGER.debug("Content sniffing failed for %s: %s", path, exc)
            return None
        return value or None

    def _sniff_external(self, path: Path) -> Optional[str]:
        executable = shutil.which("file")
        if executable is None or not path.is_file():
            return None
        output = _run_quietly([executable, "--brief", "--mime-type", str(path)])
        if output is None:
            return None
        value = output.strip()
        return value or None


def pdf_page_count(path: Path) -> Optional[int]:
    """Return the number of pages reported by ``pdfinfo``, if available."""
    executable = shutil.which("pdfinfo")
    if executable is None:
        return None
    output = _run_quietly([executable, str(path)])
    if output is None:
        return None
    for line in output.splitlines():
        if line.startswith("Pages:"):
            value = line[len("Pages:") :].strip()
            if value.isdigit():
                return int(value)
    return None


def _run_quietly(args: list[str]) -> Optional[str]:
    try:
        completed = subprocess.run(
            args,
            capture_output=True,
            text=True,
            check=False,
            timeout=_PROBE_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.SubprocessError) as exc:
        LOGGER.debug("Detection helper %s failed: %s", args[0], exc)
        return None
    if completed.returncode != 0:
        return None
    return completed.stdout


__all__ = ["TypeDetector", "pdf_page_count"]
