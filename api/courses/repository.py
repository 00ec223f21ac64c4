"""
Course persistence helpers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from pymongo import ReturnDocument

from catalog.constraints import substring_regex
from core import db

CARD_PROJECTION = {
    "title": 1,
    "instructor": 1,
    "category": 1,
    "image": 1,
    "rating": 1,
    "students": 1,
    "originalPrice": 1,
    "discountedPrice": 1,
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def courses():
    return db.collection(db.COURSES)


async def get_course(course_id: ObjectId, *, active_only: bool = False) -> dict | None:
    query: dict[str, Any] = {"_id": course_id}
    if active_only:
        query["isActive"] = True
    return await courses().find_one(query)


async def related_courses(course: dict, *, limit: int = 4) -> list[dict]:
    cursor = (
        courses()
        .find({"category": course.get("category"), "_id": {"$ne": course["_id"]}, "isActive": True})
        .sort([("rating", -1), ("students", -1)])
        .limit(limit)
    )
    return await cursor.to_list(length=limit)


async def quick_search(text: str, *, limit: int) -> list[dict]:
    pattern = substring_regex(text)
    query = {
        "isActive": True,
        "$or": [
            {"title": pattern},
            {"instructor": pattern},
            {"category": pattern},
            {"tags": pattern},
        ],
    }
    cursor = courses().find(query, CARD_PROJECTION).sort([("rating", -1), ("students", -1)]).limit(limit)
    return await cursor.to_list(length=limit)


async def similar_courses(course: dict, *, limit: int) -> list[dict]:
    alternatives: list[dict[str, Any]] = [
        {"category": course.get("category")},
        {"level": course.get("level")},
        {"instructor": course.get("instructor")},
    ]
    if course.get("tags"):
        alternatives.append({"tags": {"$in": list(course["tags"])}})

    cursor = (
        courses()
        .find({"_id": {"$ne": course["_id"]}, "isActive": True, "$or": alternatives})
        .sort([("rating", -1), ("students", -1), ("createdAt", -1)])
        .limit(limit)
    )
    return await cursor.to_list(length=limit)


async def active_categories() -> list[str]:
    return await courses().distinct("category", {"isActive": True})


async def category_counts() -> list[dict]:
    pipeline = [
        {"$match": {"isActive": True}},
        {"$group": {"_id": "$category", "count": {"$sum": 1}}},
        {"$sort": {"count": -1, "_id": 1}},
    ]
    return await courses().aggregate(pipeline).to_list(length=None)


async def count_active() -> int:
    return await courses().count_documents({"isActive": True})


async def featured_courses(*, limit: int) -> list[dict]:
    cursor = (
        courses()
        .find({"isFeatured": True, "isActive": True})
        .sort([("rating", -1), ("students", -1)])
        .limit(limit)
    )
    return await cursor.to_list(length=limit)


async def discounted_courses(*, limit: int) -> list[dict]:
    pipeline = [
        {
            "$match": {
                "isActive": True,
                "discountedPrice": {"$exists": True, "$ne": None},
                "originalPrice": {"$gt": 0},
            }
        },
        {
            "$addFields": {
                "discountPercentage": {
                    "$multiply": [
                        {
                            "$divide": [
                                {"$subtract": ["$originalPrice", "$discountedPrice"]},
                                "$originalPrice",
                            ]
                        },
                        100,
                    ]
                }
            }
        },
        {"$sort": {"discountPercentage": -1, "rating": -1}},
        {"$limit": limit},
    ]
    return await courses().aggregate(pipeline).to_list(length=limit)


async def overview_stats() -> dict[str, Any]:
    pipeline = [
        {"$match": {"isActive": True}},
        {
            "$group": {
                "_id": None,
                "totalCourses": {"$sum": 1},
                "totalStudents": {"$sum": "$students"},
                "totalRevenue": {"$sum": "$originalPrice"},
                "avgRating": {"$avg": "$rating"},
                "avgPrice": {"$avg": "$originalPrice"},
                "categories": {"$addToSet": "$category"},
            }
        },
        {
            "$project": {
                "_id": 0,
                "totalCourses": 1,
                "totalStudents": 1,
                "totalRevenue": 1,
                "avgRating": {"$round": ["$avgRating", 2]},
                "avgPrice": {"$round": ["$avgPrice", 2]},
                "categoriesCount": {"$size": "$categories"},
            }
        },
    ]
    rows = await courses().aggregate(pipeline).to_list(length=1)
    return rows[0] if rows else {}


async def category_stats() -> list[dict]:
    pipeline = [
        {"$match": {"isActive": True}},
        {
            "$group": {
                "_id": "$category",
                "courseCount": {"$sum": 1},
                "avgRating": {"$avg": "$rating"},
                "avgPrice": {"$avg": "$originalPrice"},
                "totalStudents": {"$sum": "$students"},
            }
        },
        {
            "$project": {
                "_id": 0,
                "category": "$_id",
                "courseCount": 1,
                "avgRating": {"$round": ["$avgRating", 2]},
                "avgPrice": {"$round": ["$avgPrice", 2]},
                "totalStudents": 1,
            }
        },
        {"$sort": {"courseCount": -1, "category": 1}},
    ]
    return await courses().aggregate(pipeline).to_list(length=None)


async def insert_course(doc: dict[str, Any]) -> dict:
    now = _utc_now()
    doc = {**doc, "createdAt": now, "updatedAt": now}
    result = await courses().insert_one(doc)
    doc["_id"] = result.inserted_id
    return doc


async def update_course(course_id: ObjectId, fields: dict[str, Any]) -> dict | None:
    return await courses().find_one_and_update(
        {"_id": course_id},
        {"$set": {**fields, "updatedAt": _utc_now()}},
        return_document=ReturnDocument.AFTER,
    )


async def soft_delete_course(course_id: ObjectId) -> dict | None:
    return await courses().find_one_and_update(
        {"_id": course_id},
        {"$set": {"isActive": False, "updatedAt": _utc_now()}},
        return_document=ReturnDocument.AFTER,
    )
