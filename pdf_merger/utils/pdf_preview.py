import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import fitz  # PyMuPDF


@dataclass
class PdfSnapshot:
    page_count: int
    preview: Optional[str] = None


def _encode_png(image_bytes: bytes) -> str:
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:image/png;base64,{encoded}"


def snapshot_pdf(pdf_path: Path, zoom: float = 0.5) -> PdfSnapshot:
    """
    فتح الملف مرة واحدة لإرجاع عدد صفحاته وصورة مصغرة لصفحته الأولى.

    Args:
        pdf_path: المسار إلى ملف PDF.
        zoom: معامل التكبير؛ القيم الصغيرة تكفي لبطاقات ترتيب الملفات.

    Raises:
        fitz.FileDataError: إذا لم يكن الملف مستند PDF قابلًا للفتح.
    """
    with fitz.open(pdf_path, filetype="pdf") as document:
        if document.page_count == 0:
            return PdfSnapshot(page_count=0)

        page = document.load_page(0)
        pixmap = page.get_pixmap(matrix=fitz.Matrix(zoom, zoom), alpha=False)
        return PdfSnapshot(page_count=document.page_count, preview=_encode_png(pixmap.tobytes("png")))
