"""
Course API endpoints.

Static paths are registered before `/{course_id}` so they are not captured
as ids.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile, status

from auth import dependencies as auth_dependencies
from catalog import params
from core import forms

from . import service

router = APIRouter()


@router.get("/listing")
async def list_courses(request: Request) -> dict:
    """
    Filtered, sorted and paginated listing with facet counts for filter widgets.
    """
    return await service.list_courses(params.from_query_params(request.query_params))


@router.get("")
async def get_courses(request: Request) -> dict:
    return await service.basic_listing(params.from_query_params(request.query_params))


@router.get("/search/quick")
async def quick_search(
    q: str | None = Query(default=None, max_length=200),
    limit: int = Query(5, ge=1, le=50),
) -> dict:
    courses = await service.quick_search(q, limit=limit)
    return {"courses": courses, "count": len(courses)}


@router.get("/similar")
async def similar_courses(
    course_id: str | None = Query(default=None, alias="courseId"),
    limit: int = Query(4, ge=1, le=50),
) -> dict:
    courses = await service.similar_courses(course_id, limit=limit)
    return {"courses": courses, "count": len(courses)}


@router.get("/categories")
async def get_categories(include_count: str | None = Query(default=None, alias="includeCount")) -> dict:
    # Any non-empty value asks for counts unless it is an explicit false.
    wanted = bool((include_count or "").strip()) and params.parse_bool(include_count) is not False
    categories = await service.categories(include_count=wanted)
    return {"categories": categories}


@router.get("/featured")
async def featured_courses(limit: int = Query(8, ge=1, le=100)) -> dict:
    courses = await service.featured_courses(limit=limit)
    return {"courses": courses, "count": len(courses)}


@router.get("/discounted")
async def discounted_courses(limit: int = Query(8, ge=1, le=100)) -> dict:
    courses = await service.discounted_courses(limit=limit)
    return {"courses": courses, "count": len(courses)}


@router.get("/stats")
async def course_stats() -> dict:
    return await service.course_stats()


@router.get("/{course_id}")
async def get_course(course_id: str) -> dict:
    return await service.get_course(course_id)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_course(
    request: Request,
    image: UploadFile | None = File(default=None),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    form = await request.form()
    return await service.create_course(forms.text_fields(form), image)


@router.put("/{course_id}")
async def update_course(
    course_id: str,
    request: Request,
    image: UploadFile | None = File(default=None),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    form = await request.form()
    return await service.update_course(course_id, forms.text_fields(form), image)


@router.delete("/{course_id}")
async def delete_course(
    course_id: str,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.delete_course(course_id)
