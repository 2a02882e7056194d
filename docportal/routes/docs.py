#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Docs router
===========
GET  /api/docs/{product}/tree                         navigation tree
GET  /api/docs/{product}/super-categories             top-level categories
GET  /api/docs/{product}/{super_category}/categories  one super-category's children
GET  /api/docs/{product}/{path}                       rendered document
POST /api/docs/save                                   write a document [editor]
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from docportal.core.database import get_db
from docportal.core.security import require_editor
from docportal.models import User
from docportal.schemas import DocResponse, DocSaveRequest, FileOpResponse
from docportal.services import content as content_svc
from docportal.services.analytics import record_visit
from docportal.services.files import save_document


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/docs", tags=["docs"])


# ── Save ──────────────────────────────────────────────────────────────────────

@router.post("/save", response_model=FileOpResponse)
async def save_doc(
    data: DocSaveRequest,
    request: Request,
    _editor: User = Depends(require_editor),
):
    path = await save_document(
        data.product, data.super_category, data.category, data.file_name, data.content,
        index=request.app.state.search_index,
    )
    return FileOpResponse(message="Document saved successfully", path=path)


# ── Navigation ────────────────────────────────────────────────────────────────

@router.get("/{product}/tree")
async def product_tree(product: str):
    return content_svc.get_product_tree(product)


# -----------------------------------------------------------------------------

@router.get("/{product}/super-categories")
async def super_categories(product: str):
    return {
        "product":          product,
        "super_categories": content_svc.get_super_categories(product),
    }


# -----------------------------------------------------------------------------

@router.get("/{product}/{super_category}/categories")
async def categories(product: str, super_category: str):
    return {"product": product, **content_svc.get_categories(product, super_category)}


# ── Document ──────────────────────────────────────────────────────────────────

@router.get("/{product}/{path:path}", response_model=DocResponse)
async def get_doc(
    product: str,
    path: str,
    db: AsyncSession = Depends(get_db),
):
    doc = await content_svc.get_file_by_url_path(product, path)
    await record_visit(db, f"/docs/{product}/{path.strip('/')}".rstrip("/"))
    return doc


# -----------------------------------------------------------------------------
