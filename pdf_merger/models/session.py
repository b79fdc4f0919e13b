from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Iterator, List, Optional, Sequence
from uuid import uuid4

from fastapi.concurrency import run_in_threadpool


class MergeInProgress(RuntimeError):
    """محاولة بدء دمج جديد بينما الدمج السابق في نفس الجلسة لم ينته."""


class SelectionLimitExceeded(ValueError):
    def __init__(self, limit: int, requested: int) -> None:
        super().__init__(f"الحد الأقصى للملفات هو {limit}، وتم طلب {requested}.")
        self.limit = limit
        self.requested = requested


@dataclass
class SourceFileEntry:
    """ملف PDF اختاره المستخدم؛ تُقرأ بايتاته عند الحاجة فقط."""

    entry_id: str
    name: str
    path: Path
    size_bytes: int
    page_count: Optional[int] = None
    preview: Optional[str] = None

    @classmethod
    def from_path(cls, path: Path, name: str | None = None) -> "SourceFileEntry":
        return cls(
            entry_id=uuid4().hex,
            name=name or path.name,
            path=path,
            size_bytes=path.stat().st_size if path.exists() else 0,
        )

    async def read(self) -> bytes:
        return await run_in_threadpool(self.path.read_bytes)

    def discard(self) -> None:
        self.path.unlink(missing_ok=True)


@dataclass
class MergeSession:
    """حالة واجهة الدمج: الملفات المختارة بترتيبها، واسم الناتج، وعلم الانشغال."""

    session_id: str
    output_name: str
    max_files: Optional[int] = None
    files: List[SourceFileEntry] = field(default_factory=list)
    results: List[Path] = field(default_factory=list)
    busy: bool = False
    touched_at: datetime = field(default_factory=datetime.utcnow)

    def touch(self) -> None:
        self.touched_at = datetime.utcnow()

    def select(self, entries: Sequence[SourceFileEntry], *, append: bool = False) -> None:
        """استبدال الاختيار الحالي (أو الإضافة إليه) مع احترام الحد الأقصى للملفات."""
        requested = len(self.files) + len(entries) if append else len(entries)
        if self.max_files is not None and requested > self.max_files:
            raise SelectionLimitExceeded(self.max_files, requested)

        if append:
            self.files = [*self.files, *entries]
        else:
            previous, self.files = self.files, list(entries)
            for entry in previous:
                entry.discard()
        self.touch()

    def reorder(self, files: Sequence[SourceFileEntry]) -> None:
        """اعتماد ترتيب جديد يجب أن يكون تبديلًا لنفس الملفات دون زيادة أو نقصان."""
        if sorted(e.entry_id for e in files) != sorted(e.entry_id for e in self.files):
            raise ValueError("الترتيب الجديد لا يطابق الملفات المختارة.")
        self.files = list(files)
        self.touch()

    def drop(self, files: Sequence[SourceFileEntry]) -> None:
        """اعتماد قائمة بعد الحذف وتحرير الملفات التي لم تعد موجودة فيها."""
        kept = {entry.entry_id for entry in files}
        for entry in self.files:
            if entry.entry_id not in kept:
                entry.discard()
        self.files = list(files)
        self.touch()

    def rename_output(self, name: str) -> None:
        self.output_name = name
        self.touch()

    def add_result(self, path: Path) -> None:
        self.results.append(path)
        self.touch()

    @contextmanager
    def merging(self) -> Iterator["MergeSession"]:
        if self.busy:
            raise MergeInProgress("عملية دمج أخرى قيد التنفيذ لهذه الجلسة.")
        self.busy = True
        try:
            yield self
        finally:
            self.busy = False
            self.touch()

    def discard(self) -> None:
        for entry in self.files:
            entry.discard()
        self.files = []

        # الملفات المنشورة للتنزيل تعيش بعمر الجلسة فقط
        for path in self.results:
            path.unlink(missing_ok=True)
        for folder in {path.parent for path in self.results}:
            if folder.is_dir() and not any(folder.iterdir()):
                folder.rmdir()
        self.results = []
