"""
Cloudinary HTTP client helpers.

Used endpoints:
- POST /v1_1/<cloud>/auto/upload     -> {"secure_url": "...", "public_id": "..."}
- POST /v1_1/<cloud>/image/destroy   -> {"result": "ok"}

Requests are signed: SHA-1 over the sorted `key=value` params joined with
`&`, followed by the API secret.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx

from . import config

CLOUDINARY_API_BASE = "https://api.cloudinary.com"

logger = logging.getLogger(__name__)


# Media host failures are explicit and separable from other runtime errors.
class MediaError(RuntimeError):
    pass


@dataclass(frozen=True)
class MediaAsset:
    url: str
    public_id: str


@dataclass(frozen=True)
class Credentials:
    cloud_name: str
    api_key: str
    api_secret: str


def credentials_from_env() -> Credentials:
    creds = Credentials(
        cloud_name=config.cloudinary_cloud_name(),
        api_key=config.cloudinary_api_key(),
        api_secret=config.cloudinary_api_secret(),
    )
    if not (creds.cloud_name and creds.api_key and creds.api_secret):
        raise MediaError("Cloudinary credentials are not configured.")
    return creds


def sign_params(params: dict[str, Any], api_secret: str) -> str:
    to_sign = "&".join(f"{k}={params[k]}" for k in sorted(params) if params[k] not in (None, ""))
    return hashlib.sha1((to_sign + api_secret).encode("utf-8")).hexdigest()


def _signed_form(params: dict[str, Any], creds: Credentials) -> dict[str, str]:
    params = {k: v for k, v in params.items() if v not in (None, "")}
    params["timestamp"] = params.get("timestamp") or int(time.time())
    signature = sign_params(params, creds.api_secret)
    form = {k: str(v) for k, v in params.items()}
    form["api_key"] = creds.api_key
    form["signature"] = signature
    return form


async def upload(
    data: bytes,
    *,
    filename: str,
    content_type: str | None = None,
    folder: str | None = None,
    credentials: Credentials | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout_s: float = 120.0,
) -> MediaAsset:
    """
    Upload raw bytes and return the permanent URL of the stored asset.
    """
    if not data:
        raise MediaError("Upload payload is empty.")

    creds = credentials or credentials_from_env()
    form = _signed_form({"folder": folder if folder is not None else config.cloudinary_folder()}, creds)

    try:
        async with httpx.AsyncClient(base_url=CLOUDINARY_API_BASE, timeout=timeout_s, transport=transport) as client:
            resp = await client.post(
                f"/v1_1/{creds.cloud_name}/auto/upload",
                data=form,
                files={"file": (filename or "upload", data, content_type or "application/octet-stream")},
            )
    except httpx.HTTPError as exc:
        raise MediaError(f"Failed to call media host: {exc}") from exc

    if resp.status_code != 200:
        # Avoid dumping huge bodies; include a small snippet.
        raise MediaError(f"Media upload failed: {resp.status_code} {resp.text[:300]}")

    payload: dict[str, Any] = resp.json()
    url = str(payload.get("secure_url") or "").strip()
    public_id = str(payload.get("public_id") or "").strip()
    if not url:
        raise MediaError("Media host returned no secure_url.")

    logger.info("media_uploaded public_id=%s bytes=%s", public_id, len(data))
    return MediaAsset(url=url, public_id=public_id)


async def destroy(
    public_id: str,
    *,
    credentials: Credentials | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
    timeout_s: float = 30.0,
) -> bool:
    """
    Remove a stored asset. Returns False when the host reports anything but "ok".
    """
    public_id = (public_id or "").strip()
    if not public_id:
        return False

    creds = credentials or credentials_from_env()
    form = _signed_form({"public_id": public_id}, creds)

    try:
        async with httpx.AsyncClient(base_url=CLOUDINARY_API_BASE, timeout=timeout_s, transport=transport) as client:
            resp = await client.post(f"/v1_1/{creds.cloud_name}/image/destroy", data=form)
    except httpx.HTTPError as exc:
        raise MediaError(f"Failed to call media host: {exc}") from exc

    if resp.status_code != 200:
        raise MediaError(f"Media delete failed: {resp.status_code} {resp.text[:300]}")

    result = str(resp.json().get("result") or "")
    if result != "ok":
        logger.warning("media_destroy_not_ok public_id=%s result=%s", public_id, result)
        return False
    return True
