from typing import List, Optional

from pydantic import BaseModel, Field


class OutputNameRequest(BaseModel):
    output_filename: str = Field(..., description="اسم الملف الناتج بعد الدمج.")


class CreateSessionRequest(BaseModel):
    output_filename: Optional[str] = Field(default=None, description="اسم الملف الناتج (اختياري).")


class MergeCard(BaseModel):
    index: int
    entry_id: str
    filename: str
    size_bytes: int
    page_count: Optional[int] = None
    preview: Optional[str] = None


class SessionState(BaseModel):
    session_id: str
    output_filename: str
    busy: bool
    max_files: Optional[int] = None
    files: List[MergeCard] = Field(default_factory=list)


class MergeResultCard(BaseModel):
    filename: str
    size_bytes: int
    page_count: int
    source_count: int
    download_url: Optional[str] = None
    preview: Optional[str] = None
