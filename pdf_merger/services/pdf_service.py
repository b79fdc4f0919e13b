from __future__ import annotations

from io import BytesIO
from typing import List, Sequence

from pypdf import PageObject, PdfReader, PdfWriter
from pypdf.errors import FileNotDecryptedError


class PDFService:
    """واجهة رفيعة فوق pypdf تقدم العمليات التي يحتاجها الدمج فقط."""

    # ------------------------------------------------------------------
    # إنشاء وتحميل المستندات
    # ------------------------------------------------------------------
    def create_document(self) -> PdfWriter:
        return PdfWriter()

    def load_document(self, data: bytes) -> PdfReader:
        """تحليل بايتات ملف PDF وإرجاع المستند، مع رفض الملفات المشفرة."""
        reader = PdfReader(BytesIO(data))
        if reader.is_encrypted:
            raise FileNotDecryptedError("الملف محمي بكلمة مرور ولا يمكن دمجه.")
        # قراءة شجرة الصفحات الآن حتى تظهر أخطاء التحليل في هذه الخطوة
        len(reader.pages)
        return reader

    # ------------------------------------------------------------------
    # نسخ الصفحات
    # ------------------------------------------------------------------
    @staticmethod
    def page_indices(document: PdfReader) -> List[int]:
        return list(range(len(document.pages)))

    @staticmethod
    def copy_pages(document: PdfReader, indices: Sequence[int]) -> List[PageObject]:
        # pypdf ينقل ملكية الصفحة إلى المستند الهدف عند add_page
        return [document.pages[index] for index in indices]

    @staticmethod
    def add_page(accumulator: PdfWriter, page: PageObject) -> None:
        accumulator.add_page(page)

    # ------------------------------------------------------------------
    # الحفظ والتحرير
    # ------------------------------------------------------------------
    @staticmethod
    def save_document(accumulator: PdfWriter) -> bytes:
        buffer = BytesIO()
        accumulator.write(buffer)
        buffer.seek(0)
        return buffer.getvalue()

    @staticmethod
    def discard_document(accumulator: PdfWriter) -> None:
        accumulator.close()
