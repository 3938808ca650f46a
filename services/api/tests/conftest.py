"""
Shared fixtures: real PDFs built with pypdfium2, real PNGs built with Pillow.

Run with: pytest services/api/tests -v
"""
import io
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
import pypdfium2 as pdfium
from PIL import Image, ImageDraw

from models import AuditRecord


def build_pdf(page_count: int = 1, size=(800, 600)) -> bytes:
    """Blank PDF with `page_count` pages of `size` points."""
    pdf = pdfium.PdfDocument.new()
    try:
        for _ in range(page_count):
            page = pdf.new_page(*size)
            page.close()
        buf = io.BytesIO()
        pdf.save(buf)
        return buf.getvalue()
    finally:
        pdf.close()


def page_count(document: bytes) -> int:
    pdf = pdfium.PdfDocument(document)
    try:
        return len(pdf)
    finally:
        pdf.close()


def count_image_objects(document: bytes, page_index: int) -> int:
    """Top-level image objects on one page."""
    pdf = pdfium.PdfDocument(document)
    try:
        page = pdf[page_index]
        try:
            return sum(
                1 for _ in page.get_objects(filter=(pdfium.raw.FPDF_PAGEOBJ_IMAGE,), max_depth=1)
            )
        finally:
            page.close()
    finally:
        pdf.close()


def build_image(width: int = 400, height: int = 100, fmt: str = "PNG", mode: str = "RGBA") -> bytes:
    """A small 'signature': a dark stroke on a transparent (or white) background."""
    bg = (255, 255, 255, 0) if mode == "RGBA" else (255, 255, 255)
    img = Image.new(mode, (width, height), bg)
    draw = ImageDraw.Draw(img)
    ink = (20, 20, 120, 255) if mode == "RGBA" else (20, 20, 120)
    draw.line([(0, height - 1), (width // 2, 0), (width - 1, height - 1)], fill=ink, width=3)
    buf = io.BytesIO()
    img.save(buf, format=fmt)
    return buf.getvalue()


class MemoryAuditStore:
    """In-memory AuditStore; `fail_times` makes the first N appends fail."""

    def __init__(self, fail_times: int = 0, error: Exception = None):
        self.records = []
        self.fail_times = fail_times
        self.error = error
        self.append_calls = 0

    def append(self, record: AuditRecord) -> None:
        from adapters.base import AuditStoreError

        self.append_calls += 1
        if self.append_calls <= self.fail_times:
            raise self.error or AuditStoreError("store unavailable")
        self.records.append(record)

    def list_records(self, document_id: str):
        return sorted(
            (r for r in self.records if r.document_id == document_id),
            key=lambda r: (r.timestamp, r.record_id),
        )

    def ping(self) -> None:
        return None


@pytest.fixture
def pdf_bytes() -> bytes:
    return build_pdf(page_count=1, size=(800, 600))


@pytest.fixture
def five_page_pdf() -> bytes:
    return build_pdf(page_count=5, size=(612, 792))


@pytest.fixture
def png_bytes() -> bytes:
    return build_image(400, 100)


@pytest.fixture
def memory_store() -> MemoryAuditStore:
    return MemoryAuditStore()


@pytest.fixture
def workspace(tmp_path, pdf_bytes, five_page_pdf):
    """documents/ with sample.pdf and five.pdf, plus an empty signed/ dir."""
    docs = tmp_path / "documents"
    signed = tmp_path / "signed"
    docs.mkdir()
    signed.mkdir()
    (docs / "sample.pdf").write_bytes(pdf_bytes)
    (docs / "five.pdf").write_bytes(five_page_pdf)
    return tmp_path
