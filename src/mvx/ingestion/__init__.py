"""Source inspection and batch input discovery."""

from .detectors import TypeDetector, pdf_page_count
from .discovery import InputNotFoundError, SourceCollector, destination_for, read_input_lines
from .models import DetectedType

__all__ = [
    "DetectedType",
    "InputNotFoundError",
    "SourceCollector",
    "TypeDetector",
    "destination_for",
    "pdf_page_count",
    "read_input_lines",
]
