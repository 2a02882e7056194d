#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for the server-rendered pages, the health check and app startup."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import json

import pytest
from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine

from docportal import main as main_module
from docportal.core.config import get_settings
from docportal.core.database import Base, get_session_factory
from docportal.core.security import hash_password
from docportal.main import create_app, lifespan
from docportal.models import User


# ── Home ──────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_home_redirects_to_first_product(client: AsyncClient, sample_docs):
    resp = await client.get("/")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/docs/quantom"


@pytest.mark.asyncio
async def test_home_uses_configured_default(client: AsyncClient, sample_docs, settings_env):
    (settings_env.config_root / "docs-config.json").write_text(json.dumps({
        "general": {"defaultProduct": "terminus"}, "products": [{"id": "terminus"}],
    }))
    resp = await client.get("/")
    assert resp.headers["location"] == "/docs/terminus"


@pytest.mark.asyncio
async def test_home_without_content(client: AsyncClient):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert "DocPortal" in resp.text


# ── Documentation pages ───────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_product_landing_page(client: AsyncClient, sample_docs):
    resp = await client.get("/docs/quantom")
    assert resp.status_code == 200
    assert "Welcome to the Quantom documentation." in resp.text
    assert 'href="/docs/quantom/getting-started/installation"' in resp.text


@pytest.mark.asyncio
async def test_product_without_index_lists_sections(client: AsyncClient, sample_docs):
    resp = await client.get("/docs/terminus")
    assert resp.status_code == 200
    assert 'class="card-title">basics<' in resp.text
    assert 'href="/docs/terminus/basics/overview"' in resp.text


@pytest.mark.asyncio
async def test_doc_page(client: AsyncClient, sample_docs):
    resp = await client.get("/docs/quantom/getting-started/installation")
    assert resp.status_code == 200
    html = resp.text
    assert "<title>Installation · " in html
    assert 'id="requirements"' in html
    assert 'href="#requirements"' in html              # TOC
    assert 'class="sidebar-category expanded"' in html
    assert 'class="sidebar-file active"' in html


@pytest.mark.asyncio
async def test_doc_page_not_found(client: AsyncClient, sample_docs):
    resp = await client.get("/docs/quantom/getting-started/nope")
    assert resp.status_code == 404
    assert "text/html" in resp.headers["content-type"]


@pytest.mark.asyncio
async def test_unknown_product_page(client: AsyncClient, sample_docs):
    resp = await client.get("/docs/nope")
    assert resp.status_code == 404
    assert "could not be found" in resp.text


@pytest.mark.asyncio
async def test_unknown_api_route_is_json(client: AsyncClient):
    resp = await client.get("/api/does-not-exist")
    assert resp.status_code == 404
    assert resp.json() == {"detail": "Not Found"}


# ── Search page ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_search_page(client: AsyncClient, sample_docs):
    resp = await client.get("/search", params={"q": "installation"})
    assert resp.status_code == 200
    assert "/docs/quantom/getting-started/installation" in resp.text
    assert "<mark>" in resp.text


@pytest.mark.asyncio
async def test_search_page_empty_query(client: AsyncClient, sample_docs):
    resp = await client.get("/search")
    assert resp.status_code == 200


# ── System ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert data["search"]["indexed"] is False


@pytest.mark.asyncio
async def test_startup_seeds_users(tmp_path, monkeypatch, sample_docs, settings_env):
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'startup.db'}")
    monkeypatch.setenv("ENVIRONMENT", "development")
    (settings_env.config_root / "users.json").write_text(json.dumps({"users": [
        {"username": "imported", "password": hash_password("imported123"), "role": "editor"},
    ]}))
    get_settings.cache_clear()

    app = create_app()
    async with lifespan(app):
        assert app.state.search_index.indexed is True
        async with get_session_factory()() as session:
            result = await session.execute(select(User.username, User.role))
            assert result.all() == [("imported", "editor")]


@pytest.mark.asyncio
async def test_production_startup_leaves_schema_to_migrations(tmp_path, monkeypatch, sample_docs):
    db_url = f"sqlite+aiosqlite:///{tmp_path / 'prod.db'}"
    engine = create_async_engine(db_url)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()

    monkeypatch.setenv("DATABASE_URL", db_url)
    monkeypatch.setenv("ENVIRONMENT", "production")
    get_settings.cache_clear()

    calls = []

    async def _create_all_tables():
        calls.append(True)

    monkeypatch.setattr(main_module, "create_all_tables", _create_all_tables)
    app = create_app()
    async with lifespan(app):
        assert app.state.search_index.indexed is True
    assert calls == []


# -----------------------------------------------------------------------------
