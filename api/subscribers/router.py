"""
Newsletter subscription endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response

from auth import dependencies as auth_dependencies
from catalog import params

from . import schemas, service

router = APIRouter()


@router.post("")
async def subscribe(request: Request, response: Response, payload: schemas.SubscribeRequest) -> dict:
    status_code, body = await service.subscribe(
        payload,
        user_agent=request.headers.get("user-agent"),
        ip_address=request.client.host if request.client else None,
    )
    response.status_code = status_code
    return body


@router.get("")
async def list_subscribers(
    request: Request,
    _: dict = Depends(auth_dependencies.get_current_user),
) -> dict:
    return await service.list_subscribers(params.from_query_params(request.query_params))


@router.delete("")
async def unsubscribe(payload: schemas.UnsubscribeRequest | None = None) -> dict:
    return await service.unsubscribe(payload or schemas.UnsubscribeRequest())


@router.get("/export")
async def export_subscribers(_: dict = Depends(auth_dependencies.get_current_user)) -> Response:
    filename, text = await service.export_csv()
    return Response(
        content=text,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"},
    )


@router.get("/stats")
async def subscription_stats(_: dict = Depends(auth_dependencies.get_current_user)) -> dict:
    return {"stats": await service.subscription_stats()}
