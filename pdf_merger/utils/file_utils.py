from pathlib import Path
from typing import Tuple

from fastapi import HTTPException, UploadFile, status


def ensure_pdf(upload: UploadFile) -> None:
    """التحقق من أن الملف المرفوع هو PDF."""
    content_type = (upload.content_type or "").lower()
    if not content_type.endswith("pdf"):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"يجب أن يكون الملف من نوع PDF: {upload.filename}",
        )


def file_stats(path: Path) -> Tuple[int, str]:
    """إرجاع حجم الملف بالبَيت ونوعه البسيط للاستخدام في الاستجابات."""
    size = path.stat().st_size if path.exists() else 0
    suffix = path.suffix.lower().lstrip(".")
    return size, suffix or "bin"
