"""
تنسيق عملية الدمج: قراءة الملفات بالترتيب، نسخ صفحاتها إلى مستند تجميعي،
ثم حفظه وتسليمه كملف قابل للتنزيل.

كل خطوة تعيد نتيجة صريحة (قيمة أو خطأ) ويتوقف التنفيذ عند أول خطأ، فلا يُسلَّم
أي ملف جزئي.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, Protocol, Sequence, TypeVar

from fastapi.concurrency import run_in_threadpool
from pypdf import PdfReader, PdfWriter

from pdf_merger.core.logging import configure_logging
from pdf_merger.services.pdf_service import PDFService
from pdf_merger.storage.delivery import Deliverer, DeliveryReceipt

logger = configure_logging()

PDF_MEDIA_TYPE = "application/pdf"

T = TypeVar("T")


class MergeErrorKind(str, Enum):
    empty_selection = "empty_selection"
    read_failure = "read_failure"
    parse_failure = "parse_failure"
    serialize_failure = "serialize_failure"
    delivery_failure = "delivery_failure"


@dataclass
class MergeError:
    kind: MergeErrorKind
    message: str
    filename: Optional[str] = None

    def to_detail(self) -> dict:
        return {"kind": self.kind.value, "message": self.message, "filename": self.filename}


@dataclass
class Step(Generic[T]):
    value: Optional[T] = None
    error: Optional[MergeError] = None


@dataclass
class MergeOutcome:
    output_name: str
    source_count: int
    page_count: int = 0
    size_bytes: int = 0
    delivery: Optional[DeliveryReceipt] = None
    error: Optional[MergeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class SourceFile(Protocol):
    name: str

    async def read(self) -> bytes:
        ...


# ----------------------------------------------------------------------
# الخطوات
# ----------------------------------------------------------------------
async def _read_entry(entry: SourceFile) -> Step[bytes]:
    try:
        data = await entry.read()
    except Exception:  # noqa: BLE001 - يتحول إلى نتيجة خطأ صريحة
        logger.exception("تعذرت قراءة الملف %s", entry.name)
        return Step(error=MergeError(MergeErrorKind.read_failure, "تعذرت قراءة الملف.", entry.name))
    return Step(value=data)


async def _parse_entry(toolkit: PDFService, entry: SourceFile, data: bytes) -> Step[PdfReader]:
    try:
        document = await run_in_threadpool(toolkit.load_document, data)
    except Exception:  # noqa: BLE001
        logger.exception("الملف %s ليس مستند PDF صالحًا", entry.name)
        return Step(
            error=MergeError(MergeErrorKind.parse_failure, "الملف تالف أو ليس من نوع PDF.", entry.name)
        )
    return Step(value=document)


def _copy_all_pages(toolkit: PDFService, accumulator: PdfWriter, document: PdfReader) -> int:
    pages = toolkit.copy_pages(document, toolkit.page_indices(document))
    for page in pages:
        toolkit.add_page(accumulator, page)
    return len(pages)


async def _append_entry(
    toolkit: PDFService, accumulator: PdfWriter, entry: SourceFile, document: PdfReader
) -> Step[int]:
    try:
        copied = await run_in_threadpool(_copy_all_pages, toolkit, accumulator, document)
    except Exception:  # noqa: BLE001
        logger.exception("تعذر نسخ صفحات الملف %s", entry.name)
        return Step(
            error=MergeError(MergeErrorKind.parse_failure, "تعذر نسخ صفحات الملف.", entry.name)
        )
    return Step(value=copied)


async def _serialize(toolkit: PDFService, accumulator: PdfWriter) -> Step[bytes]:
    try:
        data = await run_in_threadpool(toolkit.save_document, accumulator)
    except Exception:  # noqa: BLE001
        logger.exception("تعذر حفظ المستند المدمج")
        return Step(error=MergeError(MergeErrorKind.serialize_failure, "تعذر حفظ المستند المدمج."))
    return Step(value=data)


async def _deliver(deliverer: Deliverer, data: bytes, output_name: str) -> Step[DeliveryReceipt]:
    try:
        receipt = await run_in_threadpool(deliverer.deliver, data, output_name, PDF_MEDIA_TYPE)
    except Exception:  # noqa: BLE001
        logger.exception("تعذر تسليم الملف %s", output_name)
        return Step(
            error=MergeError(MergeErrorKind.delivery_failure, "تعذر تجهيز الملف للتنزيل.", output_name)
        )
    return Step(value=receipt)


# ----------------------------------------------------------------------
# الدمج
# ----------------------------------------------------------------------
async def merge(
    ordered_files: Sequence[SourceFile],
    output_name: str,
    deliverer: Deliverer,
    toolkit: PDFService | None = None,
) -> MergeOutcome:
    """
    دمج الملفات بالترتيب المعطى وتسليم الناتج باسم output_name.

    Args:
        ordered_files: الملفات بترتيب الدمج؛ ترتيب صفحات كل ملف يبقى كما هو.
        output_name: اسم الملف الناتج كما حدده المستخدم.
        deliverer: وسيلة تسليم البايتات كملف قابل للتنزيل.
        toolkit: غلاف مكتبة PDF (PDFService افتراضيًا).

    Returns:
        MergeOutcome يحمل بيانات النتيجة أو الخطأ الذي أوقف الدمج.
    """
    outcome = MergeOutcome(output_name=output_name, source_count=len(ordered_files))
    if not ordered_files:
        outcome.error = MergeError(MergeErrorKind.empty_selection, "يجب اختيار ملف PDF واحد على الأقل.")
        logger.warning("طلب دمج بدون ملفات.")
        return outcome

    toolkit = toolkit or PDFService()
    logger.info("بدء دمج %s ملفات في %s", len(ordered_files), output_name)

    accumulator = toolkit.create_document()
    try:
        for entry in ordered_files:
            read = await _read_entry(entry)
            if read.error:
                outcome.error = read.error
                return outcome

            parsed = await _parse_entry(toolkit, entry, read.value)
            if parsed.error:
                outcome.error = parsed.error
                return outcome

            appended = await _append_entry(toolkit, accumulator, entry, parsed.value)
            if appended.error:
                outcome.error = appended.error
                return outcome
            outcome.page_count += appended.value

        serialized = await _serialize(toolkit, accumulator)
        if serialized.error:
            outcome.error = serialized.error
            return outcome
    finally:
        toolkit.discard_document(accumulator)

    delivered = await _deliver(deliverer, serialized.value, output_name)
    if delivered.error:
        outcome.error = delivered.error
        return outcome

    outcome.delivery = delivered.value
    outcome.size_bytes = len(serialized.value)
    logger.info("اكتمل الدمج: %s صفحة في %s", outcome.page_count, delivered.value.filename)
    return outcome
