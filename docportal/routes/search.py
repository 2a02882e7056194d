#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Search router
=============
GET  /api/search?q=...&product=...&limit=...  fuzzy search, grouped by category
GET  /api/search/stats                        index size
POST /api/search/rebuild                      rebuild the index [admin]
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from docportal.core.security import require_admin
from docportal.schemas import OKResponse, SearchResponse, SearchStatsResponse
from docportal.services.search import DEFAULT_LIMIT, group_by_category


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/search", tags=["search"])


# -----------------------------------------------------------------------------

@router.get("", response_model=SearchResponse)
async def search(
    request: Request,
    q:       str           = Query("", max_length=256, description="Search query"),
    product: Optional[str] = Query(None, description="Restrict search to this product"),
    limit:   int           = Query(DEFAULT_LIMIT, ge=1, le=100),
):
    results = request.app.state.search_index.search(q, product=product, limit=limit)
    return {
        "query":   q.strip(),
        "results": results,
        "groups":  group_by_category(results),
        "count":   len(results),
    }


# -----------------------------------------------------------------------------

@router.get("/stats", response_model=SearchStatsResponse)
async def stats(request: Request):
    index = request.app.state.search_index
    index.ensure_built()
    return index.stats()


# -----------------------------------------------------------------------------

@router.post("/rebuild", response_model=OKResponse)
async def rebuild(request: Request, _admin=Depends(require_admin)):
    count = request.app.state.search_index.build()
    return OKResponse(message=f"Indexed {count} documents")


# -----------------------------------------------------------------------------
