"""
Auth API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status

from core import forms

from . import dependencies, schemas, service

router = APIRouter()


def _client_meta(request: Request) -> dict[str, str | None]:
    return {
        "user_agent": request.headers.get("user-agent"),
        "ip_address": request.client.host if request.client else None,
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: Request,
    full_name: str = Form(..., alias="fullName"),
    email: str = Form(...),
    password: str = Form(...),
    avatar: UploadFile | None = File(default=None),
) -> schemas.AuthResponse:
    payload = forms.parse_model(
        schemas.RegisterRequest,
        {"full_name": full_name, "email": email, "password": password},
    )
    return await service.register(payload, avatar=avatar, **_client_meta(request))


@router.post("/login")
async def login(request: Request, payload: schemas.LoginRequest) -> schemas.AuthResponse:
    return await service.login(payload, **_client_meta(request))


@router.post("/refresh-token")
async def refresh_token(request: Request, payload: schemas.RefreshRequest) -> schemas.TokenPairResponse:
    return await service.refresh_tokens(payload, **_client_meta(request))


@router.post("/logout")
async def logout(
    payload: schemas.LogoutRequest,
    current_user: dict | None = Depends(dependencies.get_optional_user),
) -> dict:
    return await service.logout(
        payload,
        current_user_id=current_user["_id"] if current_user else None,
    )


@router.get("/me")
async def me(current_user: dict = Depends(dependencies.get_current_user)) -> schemas.UserResponse:
    return service.me(current_user)


@router.post("/change-password")
async def change_password(
    payload: schemas.ChangePasswordRequest,
    current_user: dict = Depends(dependencies.get_current_user),
) -> dict:
    return await service.change_password(current_user, payload)


@router.patch("/account")
async def update_account(
    payload: schemas.UpdateAccountRequest,
    current_user: dict = Depends(dependencies.get_current_user),
) -> schemas.UserResponse:
    return await service.update_account(current_user, payload)


@router.patch("/avatar")
async def update_avatar(
    avatar: UploadFile | None = File(default=None),
    current_user: dict = Depends(dependencies.get_current_user),
) -> schemas.UserResponse:
    return await service.update_avatar(current_user, avatar)
