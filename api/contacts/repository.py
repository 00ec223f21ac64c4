"""
Contact message persistence.
"""

from __future__ import annotations

from datetime import datetime, timezone

from core import db


def contacts():
    return db.collection(db.CONTACTS)


async def insert_contact(*, full_name: str, email: str, message: str) -> dict:
    now = datetime.now(timezone.utc)
    doc = {
        "fullName": full_name,
        "email": email,
        "message": message,
        "createdAt": now,
        "updatedAt": now,
    }
    result = await contacts().insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc
