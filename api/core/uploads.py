"""
Upload handling shared by every resource that accepts files.

This file contains logic that is independent of FastAPI's routing layer:
- Validate uploads
- Read file bytes with a size limit
- Hand the bytes to the media host and return its permanent URL
"""

from __future__ import annotations

import logging

from fastapi import HTTPException, UploadFile

from . import config, media

ALLOWED_CONTENT_TYPES = {"image/png", "image/jpg", "image/jpeg", "video/mp4"}

logger = logging.getLogger(__name__)


def has_file(file: UploadFile | None) -> bool:
    return file is not None and bool(file.filename)


def validate_upload(file: UploadFile | None, *, label: str = "Image") -> str:
    """
    Return the normalized content type if this upload is acceptable.
    """
    if not has_file(file):
        raise HTTPException(status_code=400, detail=f"{label} file is required")

    content_type = (file.content_type or "").strip().lower()
    if content_type not in ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail="Only .png, .jpg, .jpeg, .mp4 allowed")

    return content_type


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read the upload into memory, enforcing a maximum size.
    """
    chunk_size = 1024 * 1024  # 1 MiB
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Max is {max_bytes} bytes.",
            )

    return bytes(buf)


async def store_upload(file: UploadFile | None, *, label: str = "Image") -> media.MediaAsset:
    """
    Validate, read and upload a single file. Media host failures become 502.
    """
    content_type = validate_upload(file, label=label)
    data = await read_upload_bytes(file, max_bytes=config.max_upload_bytes())
    if not data:
        raise HTTPException(status_code=400, detail=f"{label} file is empty")

    try:
        return await media.upload(data, filename=file.filename or "", content_type=content_type)
    except media.MediaError as exc:
        logger.exception("media_upload_failed filename=%s", file.filename)
        raise HTTPException(status_code=502, detail=f"{label} upload failed") from exc


async def discard_asset(public_id: str | None) -> None:
    """
    Best-effort removal of a previously uploaded asset. Never raises.
    """
    if not public_id:
        return None
    try:
        await media.destroy(public_id)
    except media.MediaError:
        logger.exception("media_destroy_failed public_id=%s", public_id)
