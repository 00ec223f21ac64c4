"""
Contact API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, status

from auth import dependencies as auth_dependencies
from catalog import params

from . import schemas, service

router = APIRouter()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_contact(payload: schemas.ContactCreate) -> dict:
    return await service.create_contact(payload)


@router.get("")
async def list_contacts(
    request: Request,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.list_contacts(params.from_query_params(request.query_params))
