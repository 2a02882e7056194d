#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Analytics router
================
GET /api/analytics?range=7d|30d|3m|all  visit summary and chart series [admin]
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from docportal.core.database import get_db
from docportal.core.security import require_admin
from docportal.schemas import AnalyticsResponse
from docportal.services.analytics import get_analytics


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/analytics", tags=["analytics"])


# -----------------------------------------------------------------------------

@router.get("", response_model=AnalyticsResponse)
async def analytics(
    range_: str = Query("7d", alias="range"),
    _admin=Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await get_analytics(db, range_)


# -----------------------------------------------------------------------------
