"""
Blog API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Request, UploadFile, status

from auth import dependencies as auth_dependencies
from catalog import params
from core import forms

from . import service

router = APIRouter()


@router.get("")
async def list_blogs(request: Request) -> dict:
    return await service.list_blogs(params.from_query_params(request.query_params))


@router.get("/stats")
async def blog_stats() -> dict:
    return await service.blog_stats()


@router.get("/{id_or_slug}")
async def get_blog(id_or_slug: str) -> dict:
    return await service.get_blog(id_or_slug)


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_blog(
    request: Request,
    image: UploadFile | None = File(default=None),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    form = await request.form()
    return await service.create_blog(forms.text_fields(form), image)


@router.put("/{blog_id}")
async def update_blog(
    blog_id: str,
    request: Request,
    image: UploadFile | None = File(default=None),
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    form = await request.form()
    return await service.update_blog(blog_id, forms.text_fields(form), image)


@router.delete("/{blog_id}")
async def delete_blog(
    blog_id: str,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.delete_blog(blog_id)
