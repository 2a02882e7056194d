#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Pytest fixtures for DocPortal tests.
Uses an in-memory SQLite database and a throwaway content / config / images
tree under ``tmp_path`` so no external services are needed.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from docportal.core.config import get_settings
from docportal.core.database import Base, get_db
from docportal.main import create_app
from docportal.schemas import UserCreate
from docportal.services import users as user_svc
from docportal.services.content import clear_cache


# -----------------------------------------------------------------------------

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

SAMPLE_DOCS: dict[str, str] = {
    "quantom/index.md":
        "# Quantom\n\nWelcome to the Quantom documentation.\n",
    "quantom/01-getting-started/01-introduction.md":
        "# Introduction\n\nQuantom is a realtime analytics engine.\n\n"
        "## Overview\n\nIt ingests events.\n",
    "quantom/01-getting-started/02-installation.md":
        "# Installation\n\n## Requirements\n\nPython and Docker.\n\n"
        "## Install\n\n```bash\npip install quantom\n```\n",
    "quantom/02-api-reference/index.md":
        "# API Reference\n\nEvery endpoint in one place.\n",
    "quantom/02-api-reference/01-endpoints/01-users.mdx":
        "# Users endpoint\n\n<Note>\nRequires a token.\n</Note>\n",
    "terminus/01-basics/01-overview.md":
        "# Terminus Overview\n\nTerminus handles deployments.\n",
}


# -----------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def settings_env(tmp_path: Path, monkeypatch):
    """Point every storage root at ``tmp_path`` and reload settings."""
    for name in ("content", "config", "images"):
        (tmp_path / name).mkdir()
    monkeypatch.setenv("ENVIRONMENT", "testing")
    monkeypatch.setenv("CONTENT_ROOT", str(tmp_path / "content"))
    monkeypatch.setenv("CONFIG_ROOT", str(tmp_path / "config"))
    monkeypatch.setenv("IMAGES_ROOT", str(tmp_path / "images"))
    monkeypatch.setenv("SECURITY_LOG_PATH", "")
    monkeypatch.setenv("BOOTSTRAP_ADMIN_PASSWORD", "")
    get_settings.cache_clear()
    clear_cache()
    yield get_settings()
    get_settings.cache_clear()
    clear_cache()


@pytest.fixture
def content_root(settings_env) -> Path:
    return settings_env.content_root


@pytest.fixture
def sample_docs(content_root: Path) -> Path:
    """Two products worth of documentation on disk."""
    for rel, text in SAMPLE_DOCS.items():
        path = content_root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return content_root


# -----------------------------------------------------------------------------

@pytest_asyncio.fixture(scope="function")
async def db_engine():
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session_factory(db_engine):
    """Shared sessionmaker used by both client and db_session."""
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def db_session(db_session_factory):
    """Direct DB session for test setup and assertions."""
    async with db_session_factory() as session:
        yield session


@pytest_asyncio.fixture(scope="function")
async def app(db_engine, db_session_factory):
    async def override_get_db():
        async with db_session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    application = create_app()
    application.dependency_overrides[get_db] = override_get_db
    return application


@pytest_asyncio.fixture(scope="function")
async def client(app):
    """HTTP test client wired to an isolated in-memory DB."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture(scope="function")
async def admin_headers(client, db_session_factory) -> dict:
    await create_user(db_session_factory, "admin", "adminpass123", "admin")
    return await auth_headers(client, "admin", "adminpass123")


@pytest_asyncio.fixture(scope="function")
async def editor_headers(client, db_session_factory) -> dict:
    await create_user(db_session_factory, "editor", "editorpass123", "editor")
    return await auth_headers(client, "editor", "editorpass123")


@pytest_asyncio.fixture(scope="function")
async def user_headers(client, db_session_factory) -> dict:
    await create_user(db_session_factory, "reader", "readerpass123", "user")
    return await auth_headers(client, "reader", "readerpass123")


# -----------------------------------------------------------------------------
# Helper functions for tests
# -----------------------------------------------------------------------------

async def create_user(session_factory, username: str = "testuser",
                      password: str = "testpass123", role: str = "user"):
    async with session_factory() as session:
        user = await user_svc.create_user(
            session, UserCreate(username=username, password=password, role=role))
        await session.commit()
        return user


async def login_user(client: AsyncClient, username: str = "testuser",
                     password: str = "testpass123") -> str:
    resp = await client.post("/api/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["token"]


async def auth_headers(client: AsyncClient, username: str = "testuser",
                       password: str = "testpass123") -> dict:
    token = await login_user(client, username, password)
    return {"Authorization": f"Bearer {token}"}


# -----------------------------------------------------------------------------
