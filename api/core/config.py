"""
Environment-backed settings.

Every setting is read on demand so tests can override it with
`unittest.mock.patch.dict(os.environ, ...)` without reloading modules.
"""

from __future__ import annotations

import os


DEFAULT_MONGO_URI = "mongodb://localhost:27017"
DEFAULT_MONGO_DB_NAME = "course_catalog"
DEFAULT_MAX_UPLOAD_BYTES = 100 * 1024 * 1024  # 100 MiB


def env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default).strip() or default


def env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    return raw not in {"0", "false", "no", "off"}


def env_list(name: str, default: list[str]) -> list[str]:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return list(default)
    return [item.strip() for item in raw.split(",") if item.strip()]


def mongo_uri() -> str:
    return env_str("MONGO_URI", DEFAULT_MONGO_URI)


def mongo_db_name() -> str:
    return env_str("MONGO_DB_NAME", DEFAULT_MONGO_DB_NAME)


def cors_origins() -> list[str]:
    # Local frontend dev server by default.
    return env_list("CORS_ORIGINS", ["http://localhost:5173", "http://127.0.0.1:5173"])


def log_level() -> str:
    return env_str("LOG_LEVEL", "INFO").upper()


def max_upload_bytes() -> int:
    value = env_int("MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES)
    return value if value > 0 else DEFAULT_MAX_UPLOAD_BYTES


def cloudinary_cloud_name() -> str:
    return env_str("CLOUDINARY_CLOUD_NAME")


def cloudinary_api_key() -> str:
    return env_str("CLOUDINARY_API_KEY")


def cloudinary_api_secret() -> str:
    return env_str("CLOUDINARY_API_SECRET")


def cloudinary_folder() -> str:
    return env_str("CLOUDINARY_FOLDER")
