"""
Auth persistence helpers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from pymongo import ReturnDocument

from core import db


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def users():
    return db.collection(db.USERS)


def refresh_tokens():
    return db.collection(db.REFRESH_TOKENS)


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


async def create_user(
    *,
    full_name: str,
    email: str,
    password_hash: str,
    avatar: str | None = None,
    avatar_public_id: str | None = None,
) -> dict:
    now = _utc_now()
    doc = {
        "fullName": full_name.strip(),
        "email": normalize_email(email),
        "passwordHash": password_hash,
        "avatar": avatar,
        "avatarPublicId": avatar_public_id,
        "role": "user",
        "status": "active",
        "createdAt": now,
        "updatedAt": now,
    }
    result = await users().insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


async def get_user_by_email(email: str) -> dict | None:
    return await users().find_one({"email": normalize_email(email)})


async def get_user_by_id(user_id: ObjectId | str) -> dict | None:
    oid = db.object_id(user_id)
    if oid is None:
        return None
    return await users().find_one({"_id": oid})


async def email_taken_by_other(email: str, *, user_id: ObjectId) -> bool:
    row = await users().find_one({"email": normalize_email(email), "_id": {"$ne": user_id}}, {"_id": 1})
    return row is not None


async def update_user(user_id: ObjectId, fields: dict[str, Any]) -> dict | None:
    return await users().find_one_and_update(
        {"_id": user_id},
        {"$set": {**fields, "updatedAt": _utc_now()}},
        return_document=ReturnDocument.AFTER,
    )


async def insert_refresh_token(
    *,
    user_id: ObjectId,
    token_hash: str,
    expires_at: datetime,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> dict:
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    doc = {
        "userId": user_id,
        "tokenHash": token_hash,
        "expiresAt": expires_at,
        "revokedAt": None,
        "replacedByTokenId": None,
        "createdAt": _utc_now(),
        "lastUsedAt": None,
        "userAgent": user_agent,
        "ipAddress": ip_address,
    }
    result = await refresh_tokens().insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


async def get_refresh_token_by_hash(token_hash: str) -> dict | None:
    return await refresh_tokens().find_one({"tokenHash": token_hash})


async def mark_refresh_token_used(token_id: ObjectId) -> None:
    await refresh_tokens().update_one({"_id": token_id}, {"$set": {"lastUsedAt": _utc_now()}})


async def revoke_refresh_token_by_hash(token_hash: str) -> bool:
    result = await refresh_tokens().update_one(
        {"tokenHash": token_hash, "revokedAt": None},
        {"$set": {"revokedAt": _utc_now()}},
    )
    return result.modified_count > 0


async def revoke_refresh_token_by_id(token_id: ObjectId) -> bool:
    result = await refresh_tokens().update_one(
        {"_id": token_id, "revokedAt": None},
        {"$set": {"revokedAt": _utc_now()}},
    )
    return result.modified_count > 0


async def revoke_all_refresh_tokens_for_user(user_id: ObjectId) -> None:
    await refresh_tokens().update_many(
        {"userId": user_id, "revokedAt": None},
        {"$set": {"revokedAt": _utc_now()}},
    )


async def set_refresh_token_replacement(*, old_token_id: ObjectId, new_token_id: ObjectId) -> None:
    await refresh_tokens().update_one(
        {"_id": old_token_id},
        {"$set": {"replacedByTokenId": new_token_id}},
    )
