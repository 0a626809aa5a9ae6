"""Exceptions raised while executing plans."""

from __future__ import annotations

from typing import Optional

INSTALL_HINTS = {
    "imagemagick": "install ImageMagick (e.g., apt install imagemagick)",
    "ffmpeg": "install ffmpeg (e.g., apt install ffmpeg)",
    "ffprobe": "install ffmpeg to enable stream-copy detection",
    "libreoffice": "install LibreOffice (e.g., apt install libreoffice)",
}


class ExecutionError(Exception):
    """Base class for per-plan execution failures.

    Attributes:
        step: Name of the execution step that failed.
    """

    def __init__(self, message: str, *, step: str) -> None:
        super().__init__(message)
        self.step = step


class ExecutionPreconditionError(ExecutionError):
    """Raised when the destination cannot be prepared."""


class UnsupportedConversionError(ExecutionError):
    """Raised when a conversion plan has no backend."""

    def __init__(self, message: str = "no backend available for conversion") -> None:
        super().__init__(message, step="select-backend")


class ExternalToolMissingError(ExecutionError):
    """Raised when no candidate executable for a tool is installed."""

    def __init__(self, tool: str, *, hint: Optional[str] = None) -> None:
        self.tool = tool
        self.hint = hint or INSTALL_HINTS.get(tool.lower(), f"install {tool}")
        super().__init__(f"{tool} not found; {self.hint}", step="run-backend")


class ExternalToolFailureError(ExecutionError):
    """Raised when an external tool exits with a nonzero status."""

    def __init__(self, tool: str, status: int) -> None:
        self.tool = tool
        self.status = status
        super().__init__(f"{tool} exited with status {status}", step="run-backend")


class OutputEmptyError(ExecutionError):
    """Raised when a backend produced no output bytes."""

    def __init__(self, message: str = "output file is empty") -> None:
        super().__init__(message, step="verify-output")


class ProbeError(Exception):
    """Raised when media probing fails; callers treat it as non-fatal."""


__all__ = [
    "ExecutionError",
    "ExecutionPreconditionError",
    "ExternalToolFailureError",
    "ExternalToolMissingError",
    "INSTALL_HINTS",
    "OutputEmptyError",
    "ProbeError",
    "UnsupportedConversionError",
]
