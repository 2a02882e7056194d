#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Auth router
===========
POST   /api/login             username/password → JWT   (rate limited)
GET    /api/verify            validate the bearer token
POST   /api/logout            revoke the bearer token
POST   /api/refresh           revoke the bearer token, issue a fresh one
POST   /api/change-password   change own password        [auth]
GET    /api/users             list accounts              [admin]
POST   /api/users             create account             [admin]
PUT    /api/users/{username}  update role/password/state [admin]
DELETE /api/users/{username}  delete account             [admin]
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from docportal.core.database import get_db
from docportal.core.log import security_event
from docportal.core.security import (
    client_ip, create_access_token, enforce_rate_limit,
    get_current_user, get_token_payload, require_admin, token_expiry,
)
from docportal.models import User
from docportal.schemas import (
    ChangePasswordRequest, LoginRequest, OKResponse, TokenResponse,
    UserCreate, UserListResponse, UserResponse, UserUpdate, VerifyResponse,
)
from docportal.services import users as user_svc

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

router = APIRouter(tags=["auth"])


# -----------------------------------------------------------------------------

def _token_response(user: User) -> dict[str, Any]:
    token, expires_at = create_access_token(user.username, user.role)
    return {
        "success":    True,
        "token":      token,
        "token_type": "bearer",
        "expires_at": expires_at,
        "expires_in": int((expires_at - datetime.now(tz=timezone.utc)).total_seconds()),
        "user":       user,
    }


# ── Session ───────────────────────────────────────────────────────────────────

@router.post("/login", response_model=TokenResponse)
async def login(
    data: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
):
    limiter = request.app.state.login_limiter
    enforce_rate_limit(request, limiter)
    user = await user_svc.authenticate_user(db, data.username, data.password)
    limiter.reset(client_ip(request))
    security_event("login", level=logging.INFO, username=user.username, ip=client_ip(request))
    return _token_response(user)


# -----------------------------------------------------------------------------

@router.get("/verify", response_model=VerifyResponse)
async def verify(user: User = Depends(get_current_user)):
    return {"success": True, "user": user}


# -----------------------------------------------------------------------------

@router.post("/logout", response_model=OKResponse)
async def logout(
    payload: dict = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db),
):
    await user_svc.revoke_token(db, payload["jti"], payload["sub"], token_expiry(payload))
    return OKResponse(message="Logged out successfully")


# -----------------------------------------------------------------------------

@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    payload: dict = Depends(get_token_payload),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await user_svc.revoke_token(db, payload["jti"], payload["sub"], token_expiry(payload))
    return _token_response(user)


# -----------------------------------------------------------------------------

@router.post("/change-password", response_model=OKResponse)
async def change_password(
    data: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await user_svc.change_password(db, user, data.current_password, data.new_password)
    security_event("password_changed", level=logging.INFO, username=user.username)
    return OKResponse(message="Password changed successfully")


# ── Users ─────────────────────────────────────────────────────────────────────

@router.get("/users", response_model=UserListResponse)
async def list_users(
    _admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return {"users": await user_svc.list_users(db)}


# -----------------------------------------------------------------------------

@router.post("/users", response_model=UserResponse, status_code=201)
async def create_user(
    data: UserCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_svc.create_user(db, data)
    security_event("user_created", level=logging.INFO,
                   username=user.username, role=user.role, by=admin.username)
    return user


# -----------------------------------------------------------------------------

@router.put("/users/{username}", response_model=UserResponse)
async def update_user(
    username: str,
    data: UserUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    user = await user_svc.update_user(db, username, data)
    security_event("user_updated", level=logging.INFO,
                   username=username, fields=sorted(data.model_dump(exclude_none=True)),
                   by=admin.username)
    return user


# -----------------------------------------------------------------------------

@router.delete("/users/{username}", response_model=OKResponse)
async def delete_user(
    username: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await user_svc.delete_user(db, username, admin)
    return OKResponse(message="User deleted successfully")


# -----------------------------------------------------------------------------
