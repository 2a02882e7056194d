#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
User service: create, authenticate, and manage admin-panel accounts.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from docportal.core.config import get_settings
from docportal.core.log import security_event
from docportal.core.security import hash_password, verify_password
from docportal.models import ROLES, RevokedToken, User
from docportal.schemas import UserCreate, UserUpdate

log = logging.getLogger(__name__)


# -----------------------------------------------------------------------------

async def create_user(db: AsyncSession, data: UserCreate) -> User:
    existing = await db.execute(select(User).where(User.username == data.username))
    if existing.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Username already taken")

    user = User(
        username=data.username,
        password_hash=hash_password(data.password),
        role=data.role,
    )
    db.add(user)
    await db.flush()
    log.info("Created user %s (%s)", user.username, user.role)
    return user


# -----------------------------------------------------------------------------

async def authenticate_user(db: AsyncSession, username: str, password: str) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if not user or not verify_password(password, user.password_hash):
        security_event("login_failed", username=username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )
    if not user.is_active:
        security_event("login_disabled", username=username)
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")
    return user


# -----------------------------------------------------------------------------

async def get_user_by_username(db: AsyncSession, username: str) -> User:
    result = await db.execute(select(User).where(User.username == username))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user


# -----------------------------------------------------------------------------

async def list_users(db: AsyncSession, skip: int = 0, limit: int = 100) -> list[User]:
    result = await db.execute(select(User).order_by(User.username).offset(skip).limit(limit))
    return list(result.scalars().all())


# -----------------------------------------------------------------------------

async def update_user(db: AsyncSession, username: str, data: UserUpdate) -> User:
    user = await get_user_by_username(db, username)
    if data.role is not None:
        user.role = data.role
    if data.password is not None:
        user.password_hash = hash_password(data.password)
    if data.is_active is not None:
        user.is_active = data.is_active
    await db.flush()
    return user


# -----------------------------------------------------------------------------

async def delete_user(db: AsyncSession, username: str, acting_user: User) -> None:
    if username == acting_user.username:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")
    user = await get_user_by_username(db, username)
    await db.delete(user)
    await db.flush()
    security_event("user_deleted", level=logging.INFO,
                   username=username, by=acting_user.username)


# -----------------------------------------------------------------------------

async def change_password(db: AsyncSession, user: User, current: str, new: str) -> User:
    if not verify_password(current, user.password_hash):
        security_event("password_change_failed", username=user.username)
        raise HTTPException(status_code=400, detail="Current password is incorrect")
    user.password_hash = hash_password(new)
    await db.flush()
    return user


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Token revocation
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def revoke_token(db: AsyncSession, jti: str, username: str, expires_at: datetime) -> None:
    """Blacklist *jti* until it would have expired anyway; purge stale rows."""
    now = datetime.now(tz=timezone.utc)
    await db.execute(delete(RevokedToken).where(RevokedToken.expires_at < now))
    existing = await db.execute(select(RevokedToken.id).where(RevokedToken.jti == jti))
    if existing.first() is None:
        db.add(RevokedToken(jti=jti, username=username, expires_at=expires_at))
    await db.flush()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Seeding
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _parse_created_at(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


async def seed_users(db: AsyncSession, users_doc: dict[str, Any] | None = None) -> int:
    """Populate an empty ``users`` table.

    Entries of ``users.json`` (``username``, bcrypt ``password``, ``role``,
    ``createdAt``) are imported as-is.  Without any, a bootstrap admin is
    created when ``bootstrap_admin_password`` is set.  Returns the number of
    accounts created.
    """
    count = (await db.execute(select(func.count()).select_from(User))).scalar_one()
    if count:
        return 0

    created = 0
    for entry in (users_doc or {}).get("users") or []:
        username = entry.get("username")
        password = entry.get("password")
        if not username or not password:
            log.warning("Skipping users.json entry without username/password")
            continue
        role = entry.get("role") if entry.get("role") in ROLES else "user"
        user = User(username=username, password_hash=password, role=role)
        created_at = _parse_created_at(entry.get("createdAt"))
        if created_at:
            user.created_at = created_at
        db.add(user)
        created += 1

    if created:
        await db.flush()
        log.info("Imported %d user(s) from users.json", created)
        return created

    s = get_settings()
    if s.bootstrap_admin_password:
        db.add(User(
            username=s.bootstrap_admin_username,
            password_hash=hash_password(s.bootstrap_admin_password),
            role="admin",
        ))
        await db.flush()
        log.info("Created bootstrap admin %r", s.bootstrap_admin_username)
        return 1

    log.warning("No users configured; set BOOTSTRAP_ADMIN_PASSWORD or run scripts/create_user.py")
    return 0


# -----------------------------------------------------------------------------
