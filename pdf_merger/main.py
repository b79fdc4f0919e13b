# pdf_merger/main.py
from __future__ import annotations

import json
import os
from typing import Iterable

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from pdf_merger.api import routers
from pdf_merger.core.config import get_settings
from pdf_merger.core.logging import configure_logging

# === إعدادات وتسجيل ===
settings = get_settings()
logger = configure_logging()

app = FastAPI(title=settings.app_name, version=settings.app_version)


# === CORS ===
def _as_list(val: Iterable | str | None, fallback: list[str]) -> list[str]:
    if val is None:
        return fallback
    if isinstance(val, (list, tuple, set)):
        return [str(x).strip() for x in val if str(x).strip()] or fallback
    s = str(val).strip()
    if not s:
        return fallback
    # يدعم "a,b,c" أو JSON list مثل '["a","b"]'
    if s.startswith("["):
        try:
            parsed = json.loads(s)
        except json.JSONDecodeError:
            logger.warning("قيمة ALLOWED_ORIGINS ليست JSON صالحًا: %s", s)
        else:
            return [str(x).strip() for x in parsed if str(x).strip()]
    return [x.strip() for x in s.split(",") if x.strip()]


allow_origins = _as_list(os.getenv("ALLOWED_ORIGINS") or settings.allow_origins, fallback=["*"])
allow_credentials = os.getenv("ALLOW_CREDENTIALS", "0") in ("1", "true", "True")

# ملاحظة أمنية: لا تجتمع allow_credentials=True مع allow_origins=["*"].
if allow_credentials and "*" in allow_origins:
    allow_credentials = False
    logger.warning("تم تعطيل ALLOW_CREDENTIALS لأن الأصول المسموحة تتضمن '*'.")

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],  # لقراءة اسم الملف المدمج من الهيدر
)

# === Routers ===
for router in routers:
    app.include_router(router)

# === Static downloads ===
downloads_dir = settings.public_dir / "downloads"
downloads_dir.mkdir(parents=True, exist_ok=True)
app.mount("/downloads", StaticFiles(directory=str(downloads_dir)), name="downloads")


# === Basic endpoints ===
@app.get("/")
async def root() -> dict:
    logger.debug("Root endpoint accessed")
    return {"message": "PDF Merger API", "version": settings.app_version}


@app.get("/health")
async def health_check() -> dict:
    logger.debug("Health check invoked")
    return {"status": "ok", "message": "PDF Merger API is running"}
