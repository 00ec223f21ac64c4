"""
Async MongoDB access helpers using motor.

This module owns the client. FastAPI opens it on startup and closes it on
shutdown (see `api/main.py`).

Documents leave this layer through `serialize()`, which turns `_id` into a
string `id` so responses are JSON-friendly.
"""

from __future__ import annotations

import logging
from typing import Any

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, IndexModel

from . import config

logger = logging.getLogger(__name__)

_client: AsyncIOMotorClient | None = None

USERS = "users"
REFRESH_TOKENS = "refresh_tokens"
COURSES = "courses"
BLOGS = "blogs"
CONTACTS = "contacts"
SUBSCRIBERS = "subscribers"

INDEXES: dict[str, list[IndexModel]] = {
    USERS: [IndexModel([("email", ASCENDING)], unique=True)],
    REFRESH_TOKENS: [
        IndexModel([("tokenHash", ASCENDING)], unique=True),
        IndexModel([("userId", ASCENDING)]),
    ],
    COURSES: [
        IndexModel([("category", ASCENDING), ("isActive", ASCENDING), ("rating", DESCENDING)]),
        IndexModel([("originalPrice", ASCENDING), ("discountedPrice", ASCENDING)]),
        IndexModel([("rating", DESCENDING), ("reviewCount", DESCENDING)]),
        IndexModel([("isFeatured", DESCENDING), ("createdAt", DESCENDING)]),
        IndexModel([("students", DESCENDING), ("rating", DESCENDING)]),
    ],
    BLOGS: [
        IndexModel([("slug", ASCENDING)], unique=True),
        IndexModel([("isPublished", ASCENDING), ("createdAt", DESCENDING)]),
        IndexModel([("category", ASCENDING)]),
    ],
    CONTACTS: [IndexModel([("createdAt", DESCENDING)])],
    SUBSCRIBERS: [
        IndexModel([("email", ASCENDING)], unique=True),
        IndexModel([("status", ASCENDING)]),
        IndexModel([("subscribedAt", DESCENDING)]),
    ],
}


async def init_client() -> None:
    global _client
    if _client is not None:
        return None
    _client = AsyncIOMotorClient(config.mongo_uri(), tz_aware=True, serverSelectionTimeoutMS=5000)
    await ensure_indexes()
    logger.info("mongo_connected db=%s", config.mongo_db_name())


async def close_client() -> None:
    global _client
    if _client is None:
        return None
    _client.close()
    _client = None


def client() -> AsyncIOMotorClient:
    if _client is None:
        raise RuntimeError("Mongo client is not initialized. Call init_client() on startup.")
    return _client


def database() -> AsyncIOMotorDatabase:
    return client()[config.mongo_db_name()]


def collection(name: str) -> AsyncIOMotorCollection:
    return database()[name]


async def ensure_indexes() -> None:
    for name, indexes in INDEXES.items():
        await collection(name).create_indexes(indexes)


def object_id(value: Any) -> ObjectId | None:
    """
    Parse a client-supplied id. Returns None for anything that is not a
    valid ObjectId so callers can answer 404 instead of 500.
    """
    if isinstance(value, ObjectId):
        return value
    raw = str(value or "").strip()
    if not ObjectId.is_valid(raw):
        return None
    return ObjectId(raw)


def _plain(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, list):
        return [_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    return value


def serialize(doc: dict[str, Any] | None) -> dict[str, Any] | None:
    if doc is None:
        return None
    out = {k: _plain(v) for k, v in doc.items() if k != "_id"}
    if "_id" in doc:
        out = {"id": _plain(doc["_id"]), **out}
    return out


def serialize_all(docs: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [serialize(d) for d in docs]
