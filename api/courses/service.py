"""
Course business logic.

Listings go through the shared query builder (`catalog`); everything else
is a thin layer over `repository` that enforces price consistency and turns
missing records into 404s.
"""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any

from bson import ObjectId
from fastapi import HTTPException, UploadFile, status

from catalog import fields, listing, params
from catalog.query import build_query
from core import db, forms, uploads

from . import repository, schemas

logger = logging.getLogger(__name__)

BASIC_LISTING_LIMIT = 10
RELATED_LIMIT = 4
IMAGE_LABEL = "Course image"


def discount_percentage(original: float | None, discounted: float | None) -> int:
    """
    Whole-percent discount, rounded half up. 0 when there is no positive
    discount or nothing to compare against.
    """
    if not original or original <= 0 or not discounted or discounted <= 0:
        return 0
    saved = original - discounted
    if saved <= 0:
        return 0
    return int(math.floor(saved / original * 100 + 0.5))


def _check_prices(original: float | None, discounted: float | None) -> None:
    if original is not None and discounted is not None and discounted > original:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Discounted price cannot be higher than original price",
        )


def _course_id_or_404(course_id: str) -> ObjectId:
    oid = db.object_id(course_id)
    if oid is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    return oid


async def list_courses(raw: params.RawParams) -> dict[str, Any]:
    query = build_query(raw, fields.COURSES)
    result = await listing.run_listing(repository.courses(), query, facets=fields.COURSES.facets)
    facets = result.facets

    return {
        "courses": result.items,
        "pagination": result.pagination.as_dict(),
        "filters": {
            "available": facets.available if facets else {},
            "applied": dict(raw) or None,
            "stats": facets.stats if facets else {},
        },
        "meta": {
            "searchQuery": params.first(raw, fields.COURSES.search_param),
            "sortBy": params.first(raw, "sortBy") or fields.COURSES.default_sort,
            "sortOrder": params.first(raw, fields.COURSES.order_param) or "desc",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    }


async def basic_listing(raw: params.RawParams) -> dict[str, Any]:
    query = build_query(raw, fields.COURSES, default_limit=BASIC_LISTING_LIMIT)
    result = await listing.run_listing(repository.courses(), query)
    return {
        "courses": result.items,
        "pagination": result.pagination.as_dict(),
        "filters": {"applied": dict(raw) or None},
    }


async def quick_search(q: str | None, *, limit: int) -> list[dict]:
    text = (q or "").strip()
    if not text:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Search query is required")
    rows = await repository.quick_search(text, limit=limit)
    return db.serialize_all(rows)


async def similar_courses(course_id: str | None, *, limit: int) -> list[dict]:
    if not (course_id or "").strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Course ID is required")

    course = await repository.get_course(_course_id_or_404(course_id))
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")

    rows = await repository.similar_courses(course, limit=limit)
    return db.serialize_all(rows)


async def categories(*, include_count: bool) -> list[dict[str, Any]]:
    if include_count:
        counts, total = await listing.gather_all(
            repository.category_counts(),
            repository.count_active(),
        )
        found = [{"name": row["_id"], "count": row["count"]} for row in counts if row.get("_id") is not None]
    else:
        names = await repository.active_categories()
        found = [{"name": name, "count": None} for name in sorted(n for n in names if n is not None)]
        total = None

    return [{"name": fields.ALL_COURSES, "count": total}, *found]


async def featured_courses(*, limit: int) -> list[dict]:
    return db.serialize_all(await repository.featured_courses(limit=limit))


async def discounted_courses(*, limit: int) -> list[dict]:
    return db.serialize_all(await repository.discounted_courses(limit=limit))


async def course_stats() -> dict[str, Any]:
    overview, by_category = await listing.gather_all(
        repository.overview_stats(),
        repository.category_stats(),
    )
    return {"overview": overview, "byCategory": by_category}


async def get_course(course_id: str) -> dict[str, Any]:
    course = await repository.get_course(_course_id_or_404(course_id), active_only=True)
    if course is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")

    related = await repository.related_courses(course, limit=RELATED_LIMIT)
    return {"course": db.serialize(course), "relatedCourses": db.serialize_all(related)}


async def create_course(form_fields: dict[str, str], image: UploadFile | None) -> dict[str, Any]:
    uploads.validate_upload(image, label=IMAGE_LABEL)
    payload = forms.parse_model(schemas.CourseCreate, form_fields)
    doc = payload.model_dump(by_alias=True)
    _check_prices(doc["originalPrice"], doc.get("discountedPrice"))

    asset = await uploads.store_upload(image, label=IMAGE_LABEL)
    doc.update(
        image=asset.url,
        imagePublicId=asset.public_id,
        discountPercentage=discount_percentage(doc["originalPrice"], doc.get("discountedPrice")),
    )

    row = await repository.insert_course(doc)
    logger.info("course_created course_id=%s category=%s", row["_id"], row.get("category"))
    return db.serialize(row)


async def update_course(
    course_id: str,
    form_fields: dict[str, str],
    image: UploadFile | None = None,
) -> dict[str, Any]:
    oid = _course_id_or_404(course_id)
    existing = await repository.get_course(oid)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")

    payload = forms.parse_model(schemas.CourseUpdate, form_fields)
    changes = payload.model_dump(by_alias=True, exclude_unset=True)

    if "originalPrice" in changes or "discountedPrice" in changes:
        original = changes.get("originalPrice", existing.get("originalPrice"))
        discounted = changes.get("discountedPrice", existing.get("discountedPrice"))
        _check_prices(original, discounted)
        changes["discountPercentage"] = discount_percentage(original, discounted)

    asset = None
    if uploads.has_file(image):
        asset = await uploads.store_upload(image, label=IMAGE_LABEL)
        changes.update(image=asset.url, imagePublicId=asset.public_id)

    updated = await repository.update_course(oid, changes)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")

    if asset is not None:
        await uploads.discard_asset(existing.get("imagePublicId"))
    logger.info("course_updated course_id=%s fields=%s", oid, ",".join(sorted(changes)))
    return db.serialize(updated)


async def delete_course(course_id: str) -> dict[str, Any]:
    row = await repository.soft_delete_course(_course_id_or_404(course_id))
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Course not found")
    logger.info("course_deactivated course_id=%s", row["_id"])
    return {"ok": True, "id": str(row["_id"]), "isActive": False}
