"""
Blog business logic.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from bson import ObjectId
from fastapi import HTTPException, UploadFile, status

from catalog import fields, listing, params
from catalog.query import build_query
from core import db, forms, uploads

from . import repository, schemas

logger = logging.getLogger(__name__)

IMAGE_LABEL = "Blog image"


def slugify(title: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", (title or "").lower()).strip("-")
    return slug or "post"


def _blog_id_or_404(blog_id: str) -> ObjectId:
    oid = db.object_id(blog_id)
    if oid is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog not found")
    return oid


async def _ensure_unique_title(title: str, *, exclude_id: ObjectId | None = None) -> str:
    slug = slugify(title)
    if await repository.title_taken(title, slug, exclude_id=exclude_id):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Blog with this title already exists",
        )
    return slug


async def list_blogs(raw: params.RawParams) -> dict[str, Any]:
    query = build_query(raw, fields.BLOGS)
    result = await listing.run_listing(repository.blogs(), query, facets=fields.BLOGS.facets)
    facets = result.facets

    return {
        "blogs": result.items,
        "pagination": result.pagination.as_dict(),
        "filters": {
            "available": facets.available if facets else {},
            "applied": dict(raw) or None,
            "stats": facets.stats if facets else {},
        },
    }


async def blog_stats() -> dict[str, Any]:
    categories, overview = await listing.gather_all(
        repository.category_stats(),
        repository.overview_stats(),
    )
    return {"categories": categories, "overview": overview}


async def get_blog(id_or_slug: str) -> dict[str, Any]:
    """
    Published post by ObjectId or slug. Each successful read counts as a view.
    """
    oid = db.object_id(id_or_slug)
    selector = {"_id": oid} if oid is not None else {"slug": (id_or_slug or "").strip().lower()}

    row = await repository.view_published(selector)
    if row is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog not found")
    return db.serialize(row)


async def create_blog(form_fields: dict[str, str], image: UploadFile | None) -> dict[str, Any]:
    uploads.validate_upload(image, label=IMAGE_LABEL)
    payload = forms.parse_model(schemas.BlogCreate, form_fields)
    doc = payload.model_dump(by_alias=True)
    doc["slug"] = await _ensure_unique_title(doc["title"])

    asset = await uploads.store_upload(image, label=IMAGE_LABEL)
    doc.update(image=asset.url, imagePublicId=asset.public_id)

    row = await repository.insert_blog(doc)
    logger.info("blog_created blog_id=%s slug=%s", row["_id"], row["slug"])
    return db.serialize(row)


async def update_blog(
    blog_id: str,
    form_fields: dict[str, str],
    image: UploadFile | None = None,
) -> dict[str, Any]:
    oid = _blog_id_or_404(blog_id)
    existing = await repository.get_blog(oid)
    if existing is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog not found")

    payload = forms.parse_model(schemas.BlogUpdate, form_fields)
    changes = payload.model_dump(by_alias=True, exclude_unset=True)
    if not changes and not uploads.has_file(image):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="At least one field must be provided for update",
        )

    title = changes.get("title")
    if title and title != existing.get("title"):
        changes["slug"] = await _ensure_unique_title(title, exclude_id=oid)

    asset = None
    if uploads.has_file(image):
        asset = await uploads.store_upload(image, label=IMAGE_LABEL)
        changes.update(image=asset.url, imagePublicId=asset.public_id)

    updated = await repository.update_blog(oid, changes)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog not found")

    if asset is not None:
        await uploads.discard_asset(existing.get("imagePublicId"))
    return db.serialize(updated)


async def delete_blog(blog_id: str) -> dict[str, Any]:
    oid = _blog_id_or_404(blog_id)
    existing = await repository.get_blog(oid)
    if existing is None or not await repository.delete_blog(oid):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog not found")

    await uploads.discard_asset(existing.get("imagePublicId"))
    logger.info("blog_deleted blog_id=%s", oid)
    return {"ok": True, "id": str(oid)}
