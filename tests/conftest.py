"""Shared fixtures: isolated storage directories and small PDFs with traceable pages."""
import os
import tempfile
from io import BytesIO

import pytest

# must be set before pdf_merger reads its settings
_root = tempfile.mkdtemp(prefix="pdf-merger-tests-")
os.environ.setdefault("STORAGE_DIR", os.path.join(_root, "outputs"))
os.environ.setdefault("PUBLIC_DIR", os.path.join(_root, "public"))

from pypdf import PdfReader, PdfWriter  # noqa: E402


def build_pdf(widths) -> bytes:
    """One blank page per width, so page identity survives a merge."""
    writer = PdfWriter()
    for width in widths:
        writer.add_blank_page(width=width, height=200)
    buffer = BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def widths_of(data: bytes) -> list:
    return [int(page.mediabox.width) for page in PdfReader(BytesIO(data)).pages]


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def page_widths():
    return widths_of


@pytest.fixture
def doc_a():
    return build_pdf([101, 102, 103])


@pytest.fixture
def doc_b():
    return build_pdf([201, 202])
