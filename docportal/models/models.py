#!/usr/bin/env python
#
#
# ----------------------------------------------------------------------------
"""
ORM Models for DocPortal
========================

Tables
------
users           admin-panel accounts with hashed passwords and a role
revoked_tokens  JWT ids invalidated by logout / refresh until they expire
page_visits     daily visit counter per documentation path

Documentation content is not stored here; it lives on disk.
All primary keys are UUIDs.  Timestamps stored in UTC.
"""
# ----------------------------------------------------------------------------

from __future__ import annotations

import uuid
from datetime import date, datetime, timezone

from sqlalchemy import (
    Boolean, Date, DateTime, Integer, String, UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from docportal.core.database import Base


ROLES = ("admin", "editor", "user")


# ----------------------------------------------------------------------------

def _uuid_col(primary_key=False, nullable=False, **kw):
    """UUID column stored as String(36); works for both SQLite and PostgreSQL."""
    return mapped_column(
        String(36),
        primary_key=primary_key,
        nullable=nullable,
        default=lambda: str(uuid.uuid4()),
        **kw,
    )


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# users
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class User(Base):
    __tablename__ = "users"

    id:            Mapped[str]      = _uuid_col(primary_key=True)
    username:      Mapped[str]      = mapped_column(String(64), unique=True, nullable=False, index=True)
    password_hash: Mapped[str]      = mapped_column(String(255), nullable=False)
    # "admin" | "editor" | "user"
    role:          Mapped[str]      = mapped_column(String(16), nullable=False, default="user")
    is_active:     Mapped[bool]     = mapped_column(Boolean, default=True, nullable=False)
    created_at:    Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at:    Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# revoked_tokens
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RevokedToken(Base):
    """A JWT id that must no longer be accepted.  Rows past ``expires_at`` are purged."""
    __tablename__ = "revoked_tokens"

    id:         Mapped[str]      = _uuid_col(primary_key=True)
    jti:        Mapped[str]      = mapped_column(String(64), unique=True, nullable=False, index=True)
    username:   Mapped[str]      = mapped_column(String(64), nullable=False)
    revoked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# page_visits  (one row per path per day)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class PageVisit(Base):
    __tablename__ = "page_visits"
    __table_args__ = (
        UniqueConstraint("day", "path", name="uq_page_visits_day_path"),
    )

    id:     Mapped[str]  = _uuid_col(primary_key=True)
    day:    Mapped[date] = mapped_column(Date, nullable=False, index=True)
    path:   Mapped[str]  = mapped_column(String(1024), nullable=False, index=True)
    visits: Mapped[int]  = mapped_column(Integer, nullable=False, default=0)
