"""تسليم الملف الناتج للعميل كملف قابل للتنزيل باسم محدد."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Protocol
from urllib.parse import quote

from pdf_merger.core.config import get_settings
from pdf_merger.storage.local import LocalStorage


@dataclass
class DeliveryReceipt:
    filename: str
    media_type: str
    size_bytes: int
    download_url: Optional[str] = None
    path: Optional[Path] = None


class Deliverer(Protocol):
    def deliver(self, data: bytes, filename: str, media_type: str) -> DeliveryReceipt:
        ...


def download_url_for(folder: str, public_name: str) -> str:
    return f"/downloads/{quote(folder)}/{quote(public_name)}"


def public_file_name(filename: str, media_type: str) -> str:
    """اسم الملف على القرص: يحمل دائمًا امتداد نوع المحتوى ليُخدم بالنوع الصحيح."""
    extension = mimetypes.guess_extension(media_type) or ""
    if extension and not filename.lower().endswith(extension):
        return f"{filename}{extension}"
    return filename


class PublicDownloadDelivery:
    """حفظ الملف في مجلد الجلسة داخل التنزيلات العامة المخدومة عبر /downloads."""

    def __init__(self, folder: str, storage: LocalStorage | None = None) -> None:
        self.folder = folder
        self.storage = storage or LocalStorage()

    def deliver(self, data: bytes, filename: str, media_type: str) -> DeliveryReceipt:
        name = self.storage.safe_name(filename, get_settings().default_output_name)
        public_path = self.storage.publish_bytes(data, public_file_name(name, media_type), folder=self.folder)
        return DeliveryReceipt(
            filename=name,
            media_type=media_type,
            size_bytes=len(data),
            download_url=download_url_for(self.folder, public_path.name),
            path=public_path,
        )


class AttachmentDelivery:
    """الاحتفاظ بالبايتات في الذاكرة لإرجاعها مباشرة كمرفق في الاستجابة."""

    def __init__(self) -> None:
        self.data: Optional[bytes] = None

    def deliver(self, data: bytes, filename: str, media_type: str) -> DeliveryReceipt:
        name = LocalStorage.safe_name(filename, get_settings().default_output_name)
        self.data = data
        return DeliveryReceipt(filename=name, media_type=media_type, size_bytes=len(data))
