"""
Subscriber persistence helpers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from pymongo import ReturnDocument

from core import db

ACTIVE = "active"
INACTIVE = "inactive"
EXPORT_PROJECTION = {"_id": 0, "email": 1, "status": 1, "subscribedAt": 1, "source": 1}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def subscribers():
    return db.collection(db.SUBSCRIBERS)


async def get_by_email(email: str) -> dict | None:
    return await subscribers().find_one({"email": email})


async def insert_subscriber(
    *,
    email: str,
    source: str,
    ip_address: str | None = None,
    user_agent: str | None = None,
) -> dict:
    now = _utc_now()
    doc = {
        "email": email,
        "status": ACTIVE,
        "source": source,
        "subscribedAt": now,
        "unsubscribedAt": None,
        "ipAddress": ip_address,
        "userAgent": user_agent,
        "createdAt": now,
        "updatedAt": now,
    }
    result = await subscribers().insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


async def reactivate(subscriber_id: ObjectId, *, source: str) -> dict | None:
    return await subscribers().find_one_and_update(
        {"_id": subscriber_id},
        {"$set": {"status": ACTIVE, "unsubscribedAt": None, "source": source, "updatedAt": _utc_now()}},
        return_document=ReturnDocument.AFTER,
    )


async def deactivate(subscriber_id: ObjectId) -> dict | None:
    now = _utc_now()
    return await subscribers().find_one_and_update(
        {"_id": subscriber_id},
        {"$set": {"status": INACTIVE, "unsubscribedAt": now, "updatedAt": now}},
        return_document=ReturnDocument.AFTER,
    )


async def count(query: dict[str, Any]) -> int:
    return await subscribers().count_documents(query)


async def export_rows() -> list[dict]:
    cursor = subscribers().find({}, EXPORT_PROJECTION).sort("subscribedAt", -1)
    return await cursor.to_list(length=None)
