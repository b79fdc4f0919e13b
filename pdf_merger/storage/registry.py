from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, Optional
from uuid import uuid4

from fastapi import HTTPException, status

from pdf_merger.core.config import get_settings
from pdf_merger.models.session import MergeSession

_registry: Dict[str, MergeSession] = {}


def _ttl() -> timedelta:
    return timedelta(minutes=get_settings().session_ttl_minutes)


def create_session(output_name: Optional[str] = None) -> MergeSession:
    """إنشاء جلسة دمج جديدة بالإعدادات الحالية."""
    cleanup()
    settings = get_settings()
    session = MergeSession(
        session_id=uuid4().hex,
        output_name=output_name if output_name is not None else settings.default_output_name,
        max_files=settings.max_files,
    )
    _registry[session.session_id] = session
    return session


def get_session(session_id: str) -> MergeSession:
    cleanup()
    session = _registry.get(session_id)
    if not session:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="الجلسة المطلوبة غير موجودة أو انتهت صلاحيتها.",
        )
    session.touch()
    return session


def discard_session(session_id: str) -> None:
    session = _registry.pop(session_id, None)
    if session:
        session.discard()


def cleanup() -> None:
    """حذف الجلسات المنتهية الصلاحية مع ملفاتها المؤقتة، ما عدا الجلسات المشغولة."""
    now = datetime.utcnow()
    ttl = _ttl()
    expired = [
        session_id
        for session_id, session in _registry.items()
        if not session.busy and now - session.touched_at > ttl
    ]
    for session_id in expired:
        discard_session(session_id)
