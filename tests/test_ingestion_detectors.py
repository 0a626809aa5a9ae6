"""Tests for advisory type detection."""

from pathlib import Path

from conftest import FAIL

from mvx.ingestion import TypeDetector, pdf_page_count

PDFINFO = """#!/bin/sh
printf 'Title:  sample\\nPages:          4\\nEncrypted:      no\\n'
"""

FILE = """#!/bin/sh
printf 'image/png\\n'
"""


def test_missing_helpers_degrade_to_none(tmp_path: Path, fake_bin) -> None:
    source = tmp_path / "doc.pdf"
    source.write_bytes(b"%PDF-1.4\n")

    detected = TypeDetector().detect(source)

    assert detected.ext_hint == "pdf"
    assert detected.external_mime is None
    assert detected.pdf_pages is None


def test_missing_file_detects_nothing(tmp_path: Path, fake_bin) -> None:
    detected = TypeDetector().detect(tmp_path / "gone.PNG")

    assert detected.mime is None
    assert detected.external_mime is None
    assert detected.ext_hint == "png"


def test_external_mime_from_file_utility(tmp_path: Path, fake_bin) -> None:
    fake_bin("file", FILE)
    source = tmp_path / "pic.png"
    source.write_bytes(b"\x89PNG")

    assert TypeDetector().detect(source).external_mime == "image/png"
    assert TypeDetector(use_external=False).detect(source).external_mime is None


def test_pdf_page_count_from_pdfinfo(tmp_path: Path, fake_bin) -> None:
    fake_bin("pdfinfo", PDFINFO)
    source = tmp_path / "doc.pdf"
    source.write_bytes(b"%PDF-1.4\n")

    assert pdf_page_count(source) == 4
    assert TypeDetector().detect(source).pdf_pages == 4


def test_failing_pdfinfo_is_ignored(tmp_path: Path, fake_bin) -> None:
    fake_bin("pdfinfo", FAIL)
    source = tmp_path / "doc.pdf"
    source.write_bytes(b"%PDF-1.4\n")

    assert pdf_page_count(source) is None


def test_pages_only_counted_for_pdf_sources(tmp_path: Path, fake_bin) -> None:
    fake_bin("pdfinfo", PDFINFO)
    source = tmp_path / "notes.txt"
    source.write_text("plain", encoding="utf-8")

    assert TypeDetector().detect(source).pdf_pages is None
