"""
Blog persistence helpers.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from pymongo import ReturnDocument

from core import db

FEATURED_BADGES = ["featured", "popular", "trending"]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def blogs():
    return db.collection(db.BLOGS)


async def get_blog(blog_id: ObjectId) -> dict | None:
    return await blogs().find_one({"_id": blog_id})


async def view_published(selector: dict[str, Any]) -> dict | None:
    """
    Fetch a published post and count the view in the same round trip.
    """
    return await blogs().find_one_and_update(
        {**selector, "isPublished": True},
        {"$inc": {"views": 1}},
        return_document=ReturnDocument.AFTER,
    )


async def title_taken(title: str, slug: str, *, exclude_id: ObjectId | None = None) -> bool:
    query: dict[str, Any] = {
        "$or": [
            {"title": {"$regex": f"^{re.escape(title)}$", "$options": "i"}},
            {"slug": slug},
        ]
    }
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    return await blogs().find_one(query, {"_id": 1}) is not None


async def insert_blog(doc: dict[str, Any]) -> dict:
    now = _utc_now()
    doc = {**doc, "views": 0, "createdAt": now, "updatedAt": now}
    result = await blogs().insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


async def update_blog(blog_id: ObjectId, fields: dict[str, Any]) -> dict | None:
    return await blogs().find_one_and_update(
        {"_id": blog_id},
        {"$set": {**fields, "updatedAt": _utc_now()}},
        return_document=ReturnDocument.AFTER,
    )


async def delete_blog(blog_id: ObjectId) -> bool:
    result = await blogs().delete_one({"_id": blog_id})
    return result.deleted_count > 0


async def category_stats() -> list[dict]:
    pipeline = [
        {"$match": {"isPublished": True}},
        {"$group": {"_id": "$category", "count": {"$sum": 1}}},
        {"$project": {"_id": 0, "category": "$_id", "count": 1}},
        {"$sort": {"count": -1, "category": 1}},
    ]
    return await blogs().aggregate(pipeline).to_list(length=None)


async def overview_stats() -> dict[str, Any]:
    pipeline = [
        {"$match": {"isPublished": True}},
        {
            "$group": {
                "_id": None,
                "totalBlogs": {"$sum": 1},
                "featuredBlogs": {"$sum": {"$cond": [{"$in": ["$badge", FEATURED_BADGES]}, 1, 0]}},
                "totalViews": {"$sum": "$views"},
            }
        },
        {"$project": {"_id": 0}},
    ]
    rows = await blogs().aggregate(pipeline).to_list(length=1)
    return rows[0] if rows else {"totalBlogs": 0, "featuredBlogs": 0, "totalViews": 0}
