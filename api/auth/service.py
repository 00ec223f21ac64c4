"""
Auth business logic.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, UploadFile, status

from core import db, uploads

from . import repository, schemas, security

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _to_user_response(user_row: dict) -> schemas.UserResponse:
    return schemas.UserResponse(
        id=str(user_row["_id"]),
        full_name=str(user_row.get("fullName") or ""),
        email=str(user_row["email"]),
        avatar=user_row.get("avatar"),
        role=str(user_row.get("role") or "user"),
        status=str(user_row.get("status") or "active"),
        created_at=user_row["createdAt"],
    )


def _is_active(user_row: dict) -> bool:
    return str(user_row.get("status") or "") == "active"


async def _issue_token_pair(
    *,
    user_row: dict,
    user_agent: str | None = None,
    ip_address: str | None = None,
    replaced_token_id=None,
) -> schemas.TokenPairResponse:
    user_id = user_row["_id"]

    access_token = security.build_access_token(
        user_id=str(user_id),
        email=str(user_row["email"]),
        role=str(user_row.get("role") or "user"),
    )
    raw_refresh_token = security.build_refresh_token()
    refresh_hash = security.hash_refresh_token(raw_refresh_token)
    expires_at = _utc_now() + timedelta(days=security.refresh_token_expire_days())

    refresh_row = await repository.insert_refresh_token(
        user_id=user_id,
        token_hash=refresh_hash,
        expires_at=expires_at,
        user_agent=user_agent,
        ip_address=ip_address,
    )

    if replaced_token_id is not None:
        await repository.set_refresh_token_replacement(
            old_token_id=replaced_token_id,
            new_token_id=refresh_row["_id"],
        )

    return schemas.TokenPairResponse(
        access_token=access_token,
        refresh_token=raw_refresh_token,
    )


async def register(
    payload: schemas.RegisterRequest,
    *,
    avatar: UploadFile | None = None,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.AuthResponse:
    existing = await repository.get_user_by_email(payload.email)
    if existing is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email is already registered.",
        )

    asset = await uploads.store_upload(avatar, label="Avatar") if uploads.has_file(avatar) else None

    password_hash = security.hash_password(payload.password)
    user_row = await repository.create_user(
        full_name=payload.full_name,
        email=payload.email,
        password_hash=password_hash,
        avatar=asset.url if asset else None,
        avatar_public_id=asset.public_id if asset else None,
    )
    logger.info("user_registered user_id=%s", user_row["_id"])

    tokens = await _issue_token_pair(
        user_row=user_row,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    user = _to_user_response(user_row)
    return schemas.AuthResponse(user=user, tokens=tokens)


async def login(
    payload: schemas.LoginRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.AuthResponse:
    user_row = await repository.get_user_by_email(payload.email)
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    if not _is_active(user_row):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive.",
        )

    is_valid = security.verify_password(payload.password, str(user_row.get("passwordHash") or ""))
    if not is_valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password.",
        )

    tokens = await _issue_token_pair(
        user_row=user_row,
        user_agent=user_agent,
        ip_address=ip_address,
    )
    user = _to_user_response(user_row)
    return schemas.AuthResponse(user=user, tokens=tokens)


async def refresh_tokens(
    payload: schemas.RefreshRequest,
    *,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> schemas.TokenPairResponse:
    incoming_refresh = (payload.refresh_token or "").strip()
    if not incoming_refresh:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="refresh_token is required.",
        )

    incoming_hash = security.hash_refresh_token(incoming_refresh)
    old_token_row = await repository.get_refresh_token_by_hash(incoming_hash)
    if old_token_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token.",
        )

    if old_token_row.get("revokedAt") is not None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token is revoked.",
        )

    expires_at = old_token_row.get("expiresAt")
    if not isinstance(expires_at, datetime) or expires_at <= _utc_now():
        # Revoke expired token as cleanup.
        await repository.revoke_refresh_token_by_id(old_token_row["_id"])
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Refresh token is expired.",
        )

    user_row = await repository.get_user_by_id(old_token_row["userId"])
    if user_row is None or not _is_active(user_row):
        await repository.revoke_refresh_token_by_id(old_token_row["_id"])
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token owner.",
        )

    await repository.mark_refresh_token_used(old_token_row["_id"])
    await repository.revoke_refresh_token_by_id(old_token_row["_id"])

    return await _issue_token_pair(
        user_row=user_row,
        user_agent=user_agent,
        ip_address=ip_address,
        replaced_token_id=old_token_row["_id"],
    )


async def logout(
    payload: schemas.LogoutRequest,
    *,
    current_user_id=None,
) -> dict[str, bool]:
    # If specific refresh token is provided, revoke only that token.
    refresh_token = (payload.refresh_token or "").strip()
    if refresh_token:
        token_hash = security.hash_refresh_token(refresh_token)
        await repository.revoke_refresh_token_by_hash(token_hash)
        return {"ok": True}

    # If token is not provided, but user is authenticated, revoke all sessions.
    if current_user_id is not None:
        await repository.revoke_all_refresh_tokens_for_user(current_user_id)
        return {"ok": True}

    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="Provide refresh_token or authenticated user.",
    )


async def get_user_from_access_token(access_token: str) -> dict:
    try:
        payload = security.decode_access_token(access_token)
    except security.AuthSecurityError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc

    subject = db.object_id(payload.get("sub"))
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid access token subject.",
        )

    user_row = await repository.get_user_by_id(subject)
    if user_row is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found.",
        )
    if not _is_active(user_row):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="User is inactive.",
        )
    return user_row


def me(user_row: dict) -> schemas.UserResponse:
    return _to_user_response(user_row)


async def change_password(user_row: dict, payload: schemas.ChangePasswordRequest) -> dict[str, bool]:
    if not security.verify_password(payload.old_password, str(user_row.get("passwordHash") or "")):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid old password.",
        )

    await repository.update_user(
        user_row["_id"],
        {"passwordHash": security.hash_password(payload.new_password)},
    )
    # Existing sessions were issued against the old password.
    await repository.revoke_all_refresh_tokens_for_user(user_row["_id"])
    return {"ok": True}


async def update_account(user_row: dict, payload: schemas.UpdateAccountRequest) -> schemas.UserResponse:
    fields: dict[str, str] = {}
    if payload.full_name:
        fields["fullName"] = payload.full_name.strip()
    if payload.email:
        email = repository.normalize_email(payload.email)
        if await repository.email_taken_by_other(email, user_id=user_row["_id"]):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email is already taken by another user.",
            )
        fields["email"] = email

    if not fields:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Provide full_name or email.",
        )

    updated = await repository.update_user(user_row["_id"], fields)
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")
    return _to_user_response(updated)


async def update_avatar(user_row: dict, avatar: UploadFile | None) -> schemas.UserResponse:
    asset = await uploads.store_upload(avatar, label="Avatar")
    updated = await repository.update_user(
        user_row["_id"],
        {"avatar": asset.url, "avatarPublicId": asset.public_id},
    )
    if updated is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found.")

    await uploads.discard_asset(user_row.get("avatarPublicId"))
    return _to_user_response(updated)
