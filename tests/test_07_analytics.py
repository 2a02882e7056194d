#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for visit counting and the analytics summary."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import asyncio
from datetime import date, timedelta

import pytest
from fastapi import HTTPException
from httpx import AsyncClient

from docportal.services import analytics
from docportal.services.analytics import build_series, get_analytics, month_key, record_visit


TODAY = date(2026, 10, 19)


# ── Series ────────────────────────────────────────────────────────────────────

def test_month_key():
    assert month_key(date(2026, 3, 9)) == "2026-03"


def test_series_7d_is_zero_filled():
    daily = {TODAY: 4, TODAY - timedelta(days=2): 1, TODAY - timedelta(days=30): 99}
    series = build_series(daily, {}, "7d", TODAY)
    assert series["labels"][0] == "Oct 13"
    assert series["labels"][-1] == "Oct 19"
    assert series["values"] == [0, 0, 0, 0, 1, 0, 4]


def test_series_30d_length():
    series = build_series({}, {}, "30d", TODAY)
    assert len(series["labels"]) == 30
    assert set(series["values"]) == {0}


def test_series_day_labels_drop_leading_zero():
    series = build_series({}, {}, "7d", date(2026, 11, 3))
    assert series["labels"][-3:] == ["Nov 1", "Nov 2", "Nov 3"]


def test_series_3m_by_month():
    months = {"2026-08": {"total_visits": 5}, "2026-10": {"total_visits": 7}}
    series = build_series({}, months, "3m", TODAY)
    assert series["labels"] == ["Jul 2026", "Aug 2026", "Sep 2026", "Oct 2026"]
    assert series["values"] == [0, 5, 0, 7]


def test_series_all_spans_from_first_month():
    months = {"2025-11": {"total_visits": 2}, "2026-01": {"total_visits": 3}}
    series = build_series({}, months, "all", date(2026, 2, 10))
    assert series["labels"] == ["Nov 2025", "Dec 2025", "Jan 2026", "Feb 2026"]
    assert series["values"] == [2, 0, 3, 0]


def test_series_all_without_data():
    assert build_series({}, {}, "all", TODAY) == {"labels": ["No data"], "values": [0]}


# ── Summary ───────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_record_visit_increments(db_session):
    await record_visit(db_session, "/docs/quantom", day=TODAY)
    await record_visit(db_session, "/docs/quantom", day=TODAY)
    await record_visit(db_session, "/docs/quantom", day=TODAY - timedelta(days=1))
    await db_session.commit()

    summary = await get_analytics(db_session, "7d", today=TODAY)
    assert summary["all_time"]["total_visits"] == 3
    assert summary["series"]["values"][-2:] == [1, 2]


@pytest.mark.asyncio
async def test_concurrent_first_visits(db_session_factory, db_session):
    async def _visit():
        async with db_session_factory() as session:
            await record_visit(session, "/docs/quantom", day=TODAY)
            await session.commit()

    await asyncio.gather(*(_visit() for _ in range(5)))
    summary = await get_analytics(db_session, "7d", today=TODAY)
    assert summary["top_pages"] == [{"path": "/docs/quantom", "visits": 5}]


@pytest.mark.asyncio
async def test_record_visit_without_upsert_dialect(db_session, monkeypatch):
    monkeypatch.setattr(analytics, "_UPSERT_INSERTS", {})
    for _ in range(3):
        await record_visit(db_session, "/docs/terminus", day=TODAY)
    await db_session.commit()
    summary = await get_analytics(db_session, "7d", today=TODAY)
    assert summary["all_time"]["total_visits"] == 3


@pytest.mark.asyncio
async def test_get_analytics_summary(db_session):
    visits = [
        ("/docs/quantom/getting-started/installation", TODAY, 5),
        ("/docs/quantom/getting-started/installation", date(2026, 9, 2), 3),
        ("/docs/terminus/basics/overview", TODAY, 2),
        ("/docs/quantom", date(2026, 8, 30), 1),
    ]
    for path, day, n in visits:
        for _ in range(n):
            await record_visit(db_session, path, day=day)
    await db_session.commit()

    summary = await get_analytics(db_session, "3m", today=TODAY)
    assert summary["range"] == "3m"
    assert summary["current_month"] == {"key": "2026-10", "total_visits": 7}
    assert summary["all_time"] == {"total_visits": 11}
    assert summary["months"] == {
        "2026-08": {"total_visits": 1},
        "2026-09": {"total_visits": 3},
        "2026-10": {"total_visits": 7},
    }
    assert summary["top_pages"] == [
        {"path": "/docs/quantom/getting-started/installation", "visits": 8},
        {"path": "/docs/terminus/basics/overview", "visits": 2},
        {"path": "/docs/quantom", "visits": 1},
    ]
    assert summary["series"]["values"] == [0, 1, 3, 7]


@pytest.mark.asyncio
async def test_get_analytics_bad_range(db_session):
    with pytest.raises(HTTPException) as exc:
        await get_analytics(db_session, "1y")
    assert exc.value.status_code == 400


# ── API ───────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_analytics_endpoint(client: AsyncClient, sample_docs, admin_headers):
    for _ in range(3):
        await client.get("/api/docs/terminus/basics/overview")
    resp = await client.get("/api/analytics", headers=admin_headers, params={"range": "30d"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["range"] == "30d"
    assert len(data["series"]["values"]) == 30
    assert data["series"]["values"][-1] == 3
    assert data["top_pages"] == [{"path": "/docs/terminus/basics/overview", "visits": 3}]


@pytest.mark.asyncio
async def test_concurrent_doc_requests_are_all_counted(client: AsyncClient, sample_docs,
                                                       admin_headers):
    url = "/api/docs/quantom/getting-started/introduction"
    responses = await asyncio.gather(*(client.get(url) for _ in range(5)))
    assert [r.status_code for r in responses] == [200] * 5
    resp = await client.get("/api/analytics", headers=admin_headers)
    assert resp.json()["top_pages"] == [
        {"path": "/docs/quantom/getting-started/introduction", "visits": 5},
    ]


@pytest.mark.asyncio
async def test_analytics_requires_admin(client: AsyncClient, editor_headers):
    resp = await client.get("/api/analytics", headers=editor_headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_analytics_rejects_unknown_range(client: AsyncClient, admin_headers):
    resp = await client.get("/api/analytics", headers=admin_headers, params={"range": "1y"})
    assert resp.status_code == 400


# -----------------------------------------------------------------------------
