#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
DocPortal: FastAPI application factory
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from docportal.core.config import get_settings
from docportal.core.database import create_all_tables, dispose_db, init_db, session_scope
from docportal.core.log import configure_logging
from docportal.core.security import RateLimiter
from docportal.routes import analytics, auth, config, docs, editor, files, search
from docportal.services.config_store import ConfigStore
from docportal.services.search import SearchIndex
from docportal.services.users import seed_users
from docportal.ui import views

log = logging.getLogger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"


# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    settings = get_settings()
    configure_logging()
    init_db()
    if settings.environment != "production":
        await create_all_tables()   # production schema is managed by alembic

    async with session_scope() as session:
        await seed_users(session, app.state.config_store.read("users"))

    if not settings.is_testing:
        app.state.search_index.build()
    log.info("%s %s started (content: %s)", settings.app_name, settings.app_version,
             settings.content_root.resolve())
    yield
    await dispose_db()


# -----------------------------------------------------------------------------

def create_app() -> FastAPI:
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Documentation portal with a file-based content tree and an editor API.",
        docs_url="/api/openapi",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
        lifespan=lifespan,
    )

    # ── Shared state ──────────────────────────────────────────────────────

    app.state.search_index = SearchIndex()
    app.state.config_store = ConfigStore()
    app.state.login_limiter = RateLimiter(
        "login", settings.login_rate_limit, settings.login_rate_window_seconds)
    app.state.upload_limiter = RateLimiter(
        "upload", settings.upload_rate_limit, settings.upload_rate_window_seconds)

    # ── Static files ──────────────────────────────────────────────────────

    static_dir = Path(__file__).parent / "static"
    app.mount("/static", StaticFiles(directory=str(static_dir)), name="static")
    app.mount(
        settings.images_url_prefix.rstrip("/") or "/images",
        StaticFiles(directory=str(settings.images_root_resolved)),
        name="images",
    )

    # ── CORS ──────────────────────────────────────────────────────────────

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── API routers ───────────────────────────────────────────────────────

    prefix = "/api"

    app.include_router(auth.router,      prefix=prefix)
    app.include_router(docs.router,      prefix=prefix)
    app.include_router(files.router,     prefix=prefix)
    app.include_router(search.router,    prefix=prefix)
    app.include_router(config.router,    prefix=prefix)
    app.include_router(analytics.router, prefix=prefix)
    app.include_router(editor.router,    prefix=prefix)

    # ── UI (Jinja2) router ────────────────────────────────────────────────

    app.include_router(views.router)

    # ── Global exception handlers ─────────────────────────────────────────

    @app.exception_handler(404)
    async def not_found(request: Request, exc):
        detail = exc.detail if isinstance(exc, StarletteHTTPException) else "Not found"
        if request.url.path.startswith("/api/"):
            return JSONResponse(
                status_code=status.HTTP_404_NOT_FOUND,
                content={"detail": detail or "Not found"},
            )
        tmpl = Jinja2Templates(directory=str(_TEMPLATES_DIR))
        return tmpl.TemplateResponse(
            request,
            "error.html",
            {"site_name": settings.site_name, "products": [], "status_code": 404,
             "message": "The page you requested could not be found."},
            status_code=404,
        )

    @app.exception_handler(500)
    async def server_error(request: Request, exc):
        log.exception("Unhandled error on %s %s", request.method, request.url.path,
                      exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )

    # ── Health check ──────────────────────────────────────────────────────

    @app.get("/api/health", tags=["system"])
    async def health(request: Request):
        return {
            "status":  "ok",
            "version": settings.app_version,
            "app":     settings.app_name,
            "search":  request.app.state.search_index.stats(),
        }

    return app


# -----------------------------------------------------------------------------

app = create_app()


# -----------------------------------------------------------------------------
