"""
Local upload storage.

Stored names are ``<ms-timestamp>-<random>-<sanitized original name>`` so
concurrent uploads of the same file never collide. Downloads resolve names
strictly inside the upload directory.
"""

from __future__ import annotations

import os
import re
import secrets
import time
from pathlib import Path
from typing import Optional

import structlog
from fastapi import HTTPException, UploadFile

log = structlog.get_logger()

CHUNK_SIZE = 1024 * 1024

CONTENT_TYPES: dict[str, str] = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "gif": "image/gif",
    "svg": "image/svg+xml",
    "txt": "text/plain",
    "doc": "application/msword",
    "docx": "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "xls": "application/vnd.ms-excel",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    "zip": "application/zip",
    "csv": "text/csv",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def sanitize_filename(name: str) -> str:
    """Replace whitespace runs with '-' and drop anything outside [\\w.-]."""
    name = re.sub(r"\s+", "-", os.path.basename(name or ""))
    name = re.sub(r"[^\w.-]", "", name, flags=re.ASCII)
    return name.lstrip(".") or "file"


def make_stored_name(original: str, now_ms: Optional[int] = None) -> str:
    now_ms = now_ms if now_ms is not None else int(time.time() * 1000)
    return f"{now_ms}-{secrets.randbelow(10**9)}-{sanitize_filename(original)}"


def content_type_for(filename: str) -> str:
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return CONTENT_TYPES.get(ext, DEFAULT_CONTENT_TYPE)


def resolve_stored_path(upload_dir: str | Path, stored_name: str) -> Path:
    """Path of a stored upload. Raises 404 for names escaping the upload dir."""
    root = Path(upload_dir).resolve()
    if not stored_name or stored_name != os.path.basename(stored_name):
        raise HTTPException(status_code=404, detail="File not found")
    path = (root / stored_name).resolve()
    if path.parent != root:
        raise HTTPException(status_code=404, detail="File not found")
    return path


async def save_upload(
    upload: UploadFile, upload_dir: str | Path, max_bytes: int
) -> tuple[str, int]:
    """Write an upload to disk. Returns (stored_name, size)."""
    root = Path(upload_dir)
    root.mkdir(parents=True, exist_ok=True)
    stored_name = make_stored_name(upload.filename or "file")
    path = root / stored_name

    size = 0
    try:
        with open(path, "wb") as fh:
            while chunk := await upload.read(CHUNK_SIZE):
                size += len(chunk)
                if size > max_bytes:
                    raise HTTPException(status_code=413, detail="File too large")
                fh.write(chunk)
    except BaseException:
        path.unlink(missing_ok=True)
        raise

    log.info("upload.stored", stored_name=stored_name, size=size)
    return stored_name, size


def delete_stored_file(upload_dir: str | Path, stored_name: str) -> None:
    path = resolve_stored_path(upload_dir, stored_name)
    try:
        path.unlink()
    except FileNotFoundError:
        log.warning("upload.missing_on_delete", stored_name=stored_name)
