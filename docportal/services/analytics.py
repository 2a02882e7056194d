#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Analytics service: page-visit counters and the admin dashboard summary.

Visits are stored as one counter per (day, path).  The summary rolls them
up into months and builds the chart series for the selected range.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Any

from fastapi import HTTPException
from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from docportal.models import PageVisit

log = logging.getLogger(__name__)


RANGES = ("7d", "30d", "3m", "all")
TOP_PAGES = 10


# -----------------------------------------------------------------------------

_UPSERT_INSERTS = {"sqlite": sqlite_insert, "postgresql": pg_insert}


async def record_visit(db: AsyncSession, path: str, day: date | None = None) -> None:
    """Add one visit to the ``(day, path)`` counter as a single upsert."""
    day = day or date.today()
    insert = _UPSERT_INSERTS.get(db.get_bind().dialect.name)
    if insert is not None:
        stmt = insert(PageVisit).values(day=day, path=path, visits=1)
        stmt = stmt.on_conflict_do_update(
            index_elements=[PageVisit.day, PageVisit.path],
            set_={"visits": PageVisit.visits + 1},
        )
        await db.execute(stmt)
        return

    # Dialects without ON CONFLICT: bump in place, insert the first visit
    bump = (
        update(PageVisit)
        .where(PageVisit.day == day, PageVisit.path == path)
        .values(visits=PageVisit.visits + 1)
        .execution_options(synchronize_session=False)
    )
    if (await db.execute(bump)).rowcount:
        return
    try:
        async with db.begin_nested():
            db.add(PageVisit(day=day, path=path, visits=1))
    except IntegrityError:
        # Lost the race for the first visit of the day
        await db.execute(bump)


# -----------------------------------------------------------------------------

def month_key(d: date) -> str:
    return f"{d.year:04d}-{d.month:02d}"


def _month_label(key: str) -> str:
    year, month = (int(x) for x in key.split("-"))
    return date(year, month, 1).strftime("%b %Y")


def _add_months(d: date, delta: int) -> date:
    index = d.year * 12 + (d.month - 1) + delta
    return date(index // 12, index % 12 + 1, 1)


def _month_range(start: date, end: date) -> list[str]:
    keys: list[str] = []
    cur = date(start.year, start.month, 1)
    while cur <= end:
        keys.append(month_key(cur))
        cur = _add_months(cur, 1)
    return keys


# -----------------------------------------------------------------------------

def build_series(daily: dict[date, int], months: dict[str, dict[str, int]],
                 range_: str, today: date) -> dict[str, list[Any]]:
    """Chart labels/values: zero-filled days for 7d/30d, months for 3m/all."""
    if range_ in ("7d", "30d"):
        days = 7 if range_ == "7d" else 30
        span = [today - timedelta(days=i) for i in range(days - 1, -1, -1)]
        return {
            "labels": [d.strftime("%b %d").replace(" 0", " ") for d in span],
            "values": [daily.get(d, 0) for d in span],
        }

    if range_ == "3m":
        keys = _month_range(_add_months(today, -3), today)
    else:
        if not months:
            return {"labels": ["No data"], "values": [0]}
        first = min(months)
        year, month = (int(x) for x in first.split("-"))
        keys = _month_range(date(year, month, 1), today)

    return {
        "labels": [_month_label(k) for k in keys],
        "values": [months.get(k, {}).get("total_visits", 0) for k in keys],
    }


# -----------------------------------------------------------------------------

async def get_analytics(db: AsyncSession, range_: str = "7d",
                        today: date | None = None) -> dict[str, Any]:
    if range_ not in RANGES:
        raise HTTPException(status_code=400, detail=f"range must be one of: {', '.join(RANGES)}")
    today = today or date.today()

    rows = await db.execute(
        select(PageVisit.day, func.sum(PageVisit.visits)).group_by(PageVisit.day)
    )
    daily: dict[date, int] = {day: int(total or 0) for day, total in rows.all()}

    months: dict[str, dict[str, int]] = {}
    for day, total in daily.items():
        bucket = months.setdefault(month_key(day), {"total_visits": 0})
        bucket["total_visits"] += total

    top = await db.execute(
        select(PageVisit.path, func.sum(PageVisit.visits).label("visits"))
        .group_by(PageVisit.path)
        .order_by(func.sum(PageVisit.visits).desc(), PageVisit.path)
        .limit(TOP_PAGES)
    )

    current = month_key(today)
    return {
        "range": range_,
        "current_month": {
            "key":          current,
            "total_visits": months.get(current, {}).get("total_visits", 0),
        },
        "all_time":  {"total_visits": sum(daily.values())},
        "months":    dict(sorted(months.items())),
        "top_pages": [{"path": path, "visits": int(v or 0)} for path, v in top.all()],
        "series":    build_series(daily, months, range_, today),
    }


# -----------------------------------------------------------------------------
