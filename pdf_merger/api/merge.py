from datetime import datetime, timezone
from typing import Callable, List, Optional, Sequence
from urllib.parse import quote

from fastapi import APIRouter, File, HTTPException, Query, Response, UploadFile, status
from fastapi.concurrency import run_in_threadpool

from pdf_merger.core.config import get_settings
from pdf_merger.core.logging import configure_logging
from pdf_merger.models import (
    CreateSessionRequest,
    MergeCard,
    MergeInProgress,
    MergeResultCard,
    MergeSession,
    OutputNameRequest,
    SelectionLimitExceeded,
    SessionState,
    SourceFileEntry,
)
from pdf_merger.services import ordering
from pdf_merger.services.merge_service import MergeErrorKind, MergeOutcome, merge
from pdf_merger.services.pdf_service import PDFService
from pdf_merger.storage.delivery import AttachmentDelivery, Deliverer, PublicDownloadDelivery, download_url_for
from pdf_merger.storage.local import LocalStorage
from pdf_merger.storage.registry import create_session, discard_session, get_session
from pdf_merger.utils.file_utils import ensure_pdf, file_stats
from pdf_merger.utils.pdf_preview import PdfSnapshot, snapshot_pdf

router = APIRouter(prefix="/pdf/merge", tags=["PDF Merge"])

settings = get_settings()
logger = configure_logging()
storage = LocalStorage()
pdf_service = PDFService()

ERROR_STATUS = {
    MergeErrorKind.empty_selection: status.HTTP_400_BAD_REQUEST,
    MergeErrorKind.read_failure: status.HTTP_422_UNPROCESSABLE_ENTITY,
    MergeErrorKind.parse_failure: status.HTTP_422_UNPROCESSABLE_ENTITY,
    MergeErrorKind.serialize_failure: status.HTTP_500_INTERNAL_SERVER_ERROR,
    MergeErrorKind.delivery_failure: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


# ============ Helpers ============
def _snapshot(path) -> Optional[PdfSnapshot]:
    try:
        return snapshot_pdf(path, zoom=settings.preview_zoom)
    except Exception as exc:  # noqa: BLE001 - المعاينة لا تمنع الاختيار
        logger.warning("تعذر إنشاء معاينة للملف %s: %s", path.name, exc)
        return None


def _entry_from_upload(upload: UploadFile) -> SourceFileEntry:
    temp_path = storage.save_upload(upload)
    entry = SourceFileEntry.from_path(temp_path, upload.filename)
    snapshot = _snapshot(temp_path)
    if snapshot:
        entry.page_count = snapshot.page_count
        entry.preview = snapshot.preview
    return entry


def _state(session: MergeSession) -> dict:
    cards = [
        MergeCard(
            index=index,
            entry_id=entry.entry_id,
            filename=entry.name,
            size_bytes=entry.size_bytes,
            page_count=entry.page_count,
            preview=entry.preview,
        )
        for index, entry in enumerate(session.files)
    ]
    state = SessionState(
        session_id=session.session_id,
        output_filename=session.output_name,
        busy=session.busy,
        max_files=session.max_files,
        files=cards,
    )
    return {"status": "ok", "session": state.model_dump()}


def _ensure_idle(session: MergeSession) -> None:
    if session.busy:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="لا يمكن تعديل الملفات أثناء تنفيذ الدمج.",
        )


def _rearranged(session: MergeSession, operation: Callable, index: int) -> Sequence[SourceFileEntry]:
    _ensure_idle(session)
    try:
        return operation(session.files, index)
    except IndexError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc


async def _run_merge(session: MergeSession, deliverer: Deliverer) -> MergeOutcome:
    try:
        with session.merging():
            outcome = await merge(list(session.files), session.output_name, deliverer, pdf_service)
    except MergeInProgress as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc)) from exc

    if not outcome.ok:
        logger.error("فشل الدمج للجلسة %s: %s", session.session_id, outcome.error.message)
        raise HTTPException(status_code=ERROR_STATUS[outcome.error.kind], detail=outcome.error.to_detail())
    return outcome


# ============ Session ============
@router.post("/sessions", summary="إنشاء جلسة دمج جديدة")
async def open_session(payload: Optional[CreateSessionRequest] = None) -> dict:
    session = create_session(payload.output_filename if payload else None)
    logger.info("تم إنشاء جلسة دمج: %s", session.session_id)
    return _state(session)


@router.get("/sessions/{session_id}", summary="حالة الجلسة: الملفات بترتيبها واسم الناتج")
async def read_session(session_id: str) -> dict:
    return _state(get_session(session_id))


@router.delete("/sessions/{session_id}", summary="إنهاء الجلسة وحذف ملفاتها المؤقتة")
async def close_session(session_id: str) -> dict:
    _ensure_idle(get_session(session_id))
    discard_session(session_id)
    return {"status": "ok"}


# ============ Selection ============
@router.post("/sessions/{session_id}/files", summary="اختيار ملفات PDF للدمج")
async def select_files(
    session_id: str,
    files: List[UploadFile] = File(...),
    append: bool = Query(False, description="إضافة الملفات إلى الاختيار الحالي بدل استبداله."),
) -> dict:
    session = get_session(session_id)
    _ensure_idle(session)
    if not files:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="يجب اختيار ملف PDF واحد على الأقل.",
        )
    for upload in files:
        ensure_pdf(upload)

    entries = [await run_in_threadpool(_entry_from_upload, upload) for upload in files]
    try:
        session.select(entries, append=append)
    except SelectionLimitExceeded as exc:
        for entry in entries:
            entry.discard()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    logger.info("تم اختيار %s ملفات في الجلسة %s", len(entries), session_id)
    return _state(session)


@router.post("/sessions/{session_id}/files/{index}/up", summary="نقل الملف خطوة إلى الأعلى")
async def move_file_up(session_id: str, index: int) -> dict:
    session = get_session(session_id)
    session.reorder(_rearranged(session, ordering.move_up, index))
    return _state(session)


@router.post("/sessions/{session_id}/files/{index}/down", summary="نقل الملف خطوة إلى الأسفل")
async def move_file_down(session_id: str, index: int) -> dict:
    session = get_session(session_id)
    session.reorder(_rearranged(session, ordering.move_down, index))
    return _state(session)


@router.delete("/sessions/{session_id}/files/{index}", summary="حذف ملف من قائمة الدمج")
async def remove_file(session_id: str, index: int) -> dict:
    session = get_session(session_id)
    session.drop(_rearranged(session, ordering.remove, index))
    return _state(session)


@router.put("/sessions/{session_id}/output-name", summary="تغيير اسم الملف الناتج")
async def rename_output(session_id: str, payload: OutputNameRequest) -> dict:
    session = get_session(session_id)
    session.rename_output(payload.output_filename)
    return _state(session)


# ============ Merge ============
@router.post("/sessions/{session_id}/commit", summary="دمج الملفات بالترتيب الحالي ونشر الملف الناتج")
async def commit_merge(session_id: str) -> dict:
    session = get_session(session_id)
    outcome = await _run_merge(session, PublicDownloadDelivery(session.session_id, storage))
    receipt = outcome.delivery
    session.add_result(receipt.path)

    snapshot = await run_in_threadpool(_snapshot, receipt.path)
    card = MergeResultCard(
        filename=receipt.filename,
        size_bytes=receipt.size_bytes,
        page_count=outcome.page_count,
        source_count=outcome.source_count,
        download_url=receipt.download_url,
        preview=snapshot.preview if snapshot else None,
    )

    logger.info("تم دمج %s ملفات في ملف واحد: %s", outcome.source_count, receipt.filename)

    return {
        "status": "ok",
        "message": "تم دمج الملفات بنجاح.",
        "result": card.model_dump(),
    }


@router.post("/sessions/{session_id}/download", summary="دمج الملفات وإرجاع الناتج مباشرة كمرفق")
async def download_merge(session_id: str) -> Response:
    session = get_session(session_id)
    deliverer = AttachmentDelivery()
    outcome = await _run_merge(session, deliverer)
    receipt = outcome.delivery

    return Response(
        content=deliverer.data,
        media_type=receipt.media_type,
        headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(receipt.filename)}"},
    )


@router.get("/sessions/{session_id}/results", summary="الملفات المدمجة المتاحة للتنزيل في هذه الجلسة")
async def list_results(session_id: str) -> dict:
    session = get_session(session_id)
    results: List[dict] = []
    for path in session.results:
        if not path.is_file():
            continue
        size_bytes, _ = file_stats(path)
        updated_at = datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)
        results.append(
            {
                "filename": path.name,
                "download_url": download_url_for(session.session_id, path.name),
                "size_bytes": size_bytes,
                "updated_at": updated_at.isoformat().replace("+00:00", "Z"),
            }
        )

    return {"status": "ok", "results": results}
