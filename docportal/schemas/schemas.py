#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pydantic v2 schemas for request validation and response serialisation.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from docportal.models import ROLES


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Shared
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class OKResponse(BaseModel):
    success: bool = True
    message: str = "success"


def _check_role(v: str | None) -> str | None:
    if v is not None and v not in ROLES:
        raise ValueError(f"role must be one of: {', '.join(ROLES)}")
    return v


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Auth
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=1, max_length=256)


# -----------------------------------------------------------------------------

class UserResponse(BaseModel):
    id: str
    username: str
    role: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


# -----------------------------------------------------------------------------

class TokenResponse(BaseModel):
    success: bool = True
    token: str
    token_type: str = "bearer"
    expires_at: datetime
    expires_in: int   # seconds
    user: UserResponse


# -----------------------------------------------------------------------------

class VerifyResponse(BaseModel):
    success: bool = True
    user: UserResponse


# -----------------------------------------------------------------------------

class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1, max_length=256)
    new_password: str = Field(..., min_length=6, max_length=256)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Users
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class UserCreate(BaseModel):
    username: str = Field(..., min_length=2, max_length=64, pattern=r"^[a-zA-Z0-9_.-]+$")
    password: str = Field(..., min_length=6, max_length=256)
    role: str = Field(default="user")

    @field_validator("role")
    @classmethod
    def valid_role(cls, v: str) -> str:
        return _check_role(v)


# -----------------------------------------------------------------------------

class UserUpdate(BaseModel):
    role: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6, max_length=256)
    is_active: Optional[bool] = None

    @field_validator("role")
    @classmethod
    def valid_role(cls, v: str | None) -> str | None:
        return _check_role(v)


# -----------------------------------------------------------------------------

class UserListResponse(BaseModel):
    users: list[UserResponse]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Docs
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class DocMetadata(BaseModel):
    size: int
    last_modified: datetime


# -----------------------------------------------------------------------------

class TocEntry(BaseModel):
    level: int
    id: str
    text: str


# -----------------------------------------------------------------------------

class DocResponse(BaseModel):
    content: str
    raw_content: str
    file_type: str
    title: str
    toc: list[TocEntry] = []
    path: str
    metadata: DocMetadata


# -----------------------------------------------------------------------------

class DocSaveRequest(BaseModel):
    product: str = Field(..., min_length=1, max_length=128)
    super_category: str = Field(..., min_length=1, max_length=256)
    category: str = Field(..., min_length=1, max_length=256)
    file_name: str = Field(..., min_length=1, max_length=128, pattern=r"^[a-z0-9_-]+$")
    content: str = Field(default="", max_length=10_000_000)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Files (editor)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class FileContentResponse(BaseModel):
    path: str
    content: str
    file_type: str
    size: int
    modified: datetime


# -----------------------------------------------------------------------------

class FileSaveRequest(BaseModel):
    file_path: str = Field(..., min_length=1, max_length=1024)
    content: str = Field(default="", max_length=10_000_000)


# -----------------------------------------------------------------------------

class FileCreateRequest(BaseModel):
    type: Literal["file", "folder"]
    name: str = Field(..., min_length=1, max_length=255)
    folder_path: str = Field(default="", max_length=1024)
    content: str = Field(default="", max_length=10_000_000)
    product: Optional[str] = Field(None, max_length=128)


# -----------------------------------------------------------------------------

class FileDuplicateRequest(BaseModel):
    file_path: str = Field(..., min_length=1, max_length=1024)


# -----------------------------------------------------------------------------

class FileRenameRequest(BaseModel):
    old_path: str = Field(..., min_length=1, max_length=1024)
    new_name: str = Field(..., min_length=1, max_length=255)


# -----------------------------------------------------------------------------

class FileMoveRequest(BaseModel):
    source_path: str = Field(..., min_length=1, max_length=1024)
    target_path: str = Field(default="", max_length=1024)


# -----------------------------------------------------------------------------

class FileOpResponse(BaseModel):
    success: bool = True
    message: str = "success"
    path: Optional[str] = None


# -----------------------------------------------------------------------------

class UploadResponse(BaseModel):
    success: bool = True
    url: str
    filename: str
    size: int


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Search
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class SearchResult(BaseModel):
    score: float
    title: str
    content: str
    snippet: str
    highlighted: str
    path: str
    url: str
    url_slug: str
    file_name: str
    file_type: str
    category: str
    product_id: str


# -----------------------------------------------------------------------------

class SearchGroup(BaseModel):
    category: str
    results: list[SearchResult]


# -----------------------------------------------------------------------------

class SearchResponse(BaseModel):
    query: str
    results: list[SearchResult]
    groups: list[SearchGroup]
    count: int


# -----------------------------------------------------------------------------

class SearchStatsResponse(BaseModel):
    total_documents: int
    indexed: bool
    products: list[str]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Editor helpers
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RenderRequest(BaseModel):
    content: str = Field(default="", max_length=1_000_000)
    file_type: Literal["md", "mdx"] = "md"


# -----------------------------------------------------------------------------

class RenderResponse(BaseModel):
    html: str
    toc: list[TocEntry]


# -----------------------------------------------------------------------------

class ConvertRequest(BaseModel):
    html: str = Field(default="", max_length=1_000_000)


# -----------------------------------------------------------------------------

class SlashCommand(BaseModel):
    command: str
    title: str
    description: str
    icon: str
    template: str


class SlashCommandList(BaseModel):
    commands: list[SlashCommand]


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Analytics / config
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class AnalyticsResponse(BaseModel):
    range: str
    current_month: dict[str, Any]
    all_time: dict[str, Any]
    months: dict[str, dict[str, int]]
    top_pages: list[dict[str, Any]]
    series: dict[str, list[Any]]
