import shutil
from pathlib import Path
from typing import IO
from uuid import uuid4

from fastapi import UploadFile

from pdf_merger.core.config import get_settings


class LocalStorage:
    """خدمات التخزين المحلية للملفات المختارة والنتائج القابلة للتنزيل."""

    def __init__(self) -> None:
        settings = get_settings()
        self.temp_dir = settings.temp_dir
        self.download_root = settings.public_dir / "downloads"

        for directory in (self.temp_dir, self.download_root):
            directory.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def _generate_filename(suffix: str) -> str:
        suffix = suffix if suffix.startswith(".") else f".{suffix.lstrip('.')}"
        return f"{uuid4().hex}{suffix}"

    @staticmethod
    def safe_name(name: str, fallback: str) -> str:
        """الاحتفاظ بالجزء الأخير من المسار فقط لمنع الكتابة خارج مجلد التنزيلات."""
        candidate = Path((name or "").replace("\\", "/")).name.strip()
        if candidate in ("", ".", ".."):
            return fallback
        return candidate

    def save_upload(self, upload: UploadFile) -> Path:
        suffix = Path(upload.filename or "").suffix or ".pdf"
        upload.file.seek(0)
        path = self._save_stream(upload.file, suffix=suffix, directory=self.temp_dir)
        upload.file.seek(0)
        return path

    def _save_stream(self, stream: IO[bytes], *, suffix: str, directory: Path) -> Path:
        target_name = self._generate_filename(suffix)
        target_path = directory / target_name
        with target_path.open("wb") as buffer:
            shutil.copyfileobj(stream, buffer)
        return target_path

    def publish_bytes(self, data: bytes, public_name: str, *, folder: str) -> Path:
        """
        كتابة البايتات داخل مجلد خاص بالجلسة في مجلد التنزيلات العام.

        الإنشاء حصري (وضع "xb")؛ عند وجود ملف بنفس الاسم يُضاف مقطع عشوائي.
        """
        directory = self.download_root / folder
        directory.mkdir(parents=True, exist_ok=True)

        stem, suffix = Path(public_name).stem, Path(public_name).suffix
        target = directory / public_name
        while True:
            try:
                with target.open("xb") as buffer:
                    buffer.write(data)
                return target
            except FileExistsError:
                target = directory / f"{stem}-{uuid4().hex[:6]}{suffix}"
