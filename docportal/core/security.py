#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
Security utilities
==================
- Password hashing (bcrypt)
- JWT access token creation/verification (one token type, 24 h by default)
- Token revocation check against the ``revoked_tokens`` table
- FastAPI dependencies for the current user and role gates
- In-memory sliding-window rate limiter for login and upload
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

import time
import uuid
from collections import defaultdict, deque
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt as _bcrypt_lib
from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession


# -----------------------------------------------------------------------------

from .config import get_settings
from .database import get_db
from .log import security_event

# ----------------------------------------------------------------------------
# Password hashing
# ----------------------------------------------------------------------------

def hash_password(plain: str) -> str:
    return _bcrypt_lib.hashpw(plain.encode("utf-8"), _bcrypt_lib.gensalt()).decode("utf-8")


# ----------------------------------------------------------------------------

def verify_password(plain: str, hashed: str) -> bool:
    try:
        return _bcrypt_lib.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Malformed hash (e.g. an imported account with a non-bcrypt value)
        return False


# ----------------------------------------------------------------------------
# JWT tokens
# ----------------------------------------------------------------------------

_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/login")


# ----------------------------------------------------------------------------

def create_access_token(username: str, role: str) -> tuple[str, datetime]:
    """Return ``(token, expires_at)`` for *username*."""
    s = get_settings()
    expire = datetime.now(tz=timezone.utc) + timedelta(minutes=s.access_token_expire_minutes)
    payload: dict[str, Any] = {
        "sub":  username,
        "role": role,
        "jti":  uuid.uuid4().hex,
        "exp":  expire,
    }
    return jwt.encode(payload, s.secret_key, algorithm=s.algorithm), expire


# ----------------------------------------------------------------------------

def decode_token(token: str) -> dict[str, Any]:
    s = get_settings()
    try:
        payload = jwt.decode(token, s.secret_key, algorithms=[s.algorithm])
    except JWTError:
        raise _credentials_error()
    if payload.get("sub") is None or payload.get("jti") is None:
        raise _credentials_error()
    return payload


# -----------------------------------------------------------------------------

def token_expiry(payload: dict[str, Any]) -> datetime:
    return datetime.fromtimestamp(payload["exp"], tz=timezone.utc)


# -----------------------------------------------------------------------------

def _credentials_error(detail: str = "Could not validate credentials") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


# ----------------------------------------------------------------------------
# FastAPI dependencies: API (Bearer token)
# ----------------------------------------------------------------------------

async def get_token_payload(
    token: str = Depends(_oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> dict[str, Any]:
    """Decode the bearer token and reject it if it has been revoked."""
    from docportal.models import RevokedToken

    payload = decode_token(token)
    result = await db.execute(select(RevokedToken.id).where(RevokedToken.jti == payload["jti"]))
    if result.first() is not None:
        raise _credentials_error("Token has been revoked")
    return payload


# ----------------------------------------------------------------------------

async def get_current_user(
    payload: dict[str, Any] = Depends(get_token_payload),
    db: AsyncSession = Depends(get_db),
):
    from docportal.models import User

    result = await db.execute(select(User).where(User.username == payload["sub"]))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        raise _credentials_error("User not found or disabled")
    return user


# ----------------------------------------------------------------------------

async def require_editor(user=Depends(get_current_user)):
    if user.role not in ("admin", "editor"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Editor access required")
    return user


# ----------------------------------------------------------------------------

async def require_admin(user=Depends(get_current_user)):
    if user.role != "admin":
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return user


# ----------------------------------------------------------------------------
# Rate limiting
# ----------------------------------------------------------------------------

class RateLimiter:
    """Allow at most *limit* hits per *window* seconds for each key."""

    def __init__(self, name: str, limit: int, window: int):
        self.name   = name
        self.limit  = limit
        self.window = window
        self._hits: dict[str, deque[float]] = defaultdict(deque)
        self._next_prune = 0.0

    def hit(self, key: str, now: float | None = None) -> bool:
        """Record a hit; return False when *key* is over its limit."""
        now = time.monotonic() if now is None else now
        if now >= self._next_prune:
            self.prune(now)
            self._next_prune = now + self.window
        hits = self._hits[key]
        while hits and now - hits[0] >= self.window:
            hits.popleft()
        if len(hits) >= self.limit:
            return False
        hits.append(now)
        return True

    def prune(self, now: float | None = None) -> None:
        """Drop keys whose hits have all aged out of the window."""
        now = time.monotonic() if now is None else now
        for key in [k for k, h in self._hits.items() if not h or now - h[-1] >= self.window]:
            del self._hits[key]

    def __len__(self) -> int:
        return len(self._hits)

    def reset(self, key: str | None = None) -> None:
        if key is None:
            self._hits.clear()
        else:
            self._hits.pop(key, None)


# ----------------------------------------------------------------------------

def client_ip(request: Request) -> str:
    # X-Forwarded-For is client-controlled unless a trusted proxy sets it
    if get_settings().trust_proxy_headers:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


# ----------------------------------------------------------------------------

def enforce_rate_limit(request: Request, limiter: RateLimiter) -> None:
    ip = client_ip(request)
    if not limiter.hit(ip):
        security_event("rate_limited", limiter=limiter.name, ip=ip, path=request.url.path)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many requests, please try again later",
        )


# ----------------------------------------------------------------------------
