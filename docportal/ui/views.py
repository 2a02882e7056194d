#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Jinja2 UI views (server-rendered HTML pages)
============================================
GET /                       redirect to the default product
GET /docs/{product}         product landing page
GET /docs/{product}/{path}  a documentation page
GET /search                 grouped search results
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from docportal.core.config import get_settings
from docportal.core.database import get_db
from docportal.services import content as content_svc
from docportal.services.analytics import record_visit
from docportal.services.search import group_by_category


# -----------------------------------------------------------------------------

router = APIRouter(tags=["ui"])
templates = Jinja2Templates(directory=str(Path(__file__).parent.parent / "templates"))
templates.env.globals["docs_url"] = content_svc.docs_url


# -----------------------------------------------------------------------------
# Helpers
# -----------------------------------------------------------------------------

def _products(request: Request) -> list[dict[str, Any]]:
    """Products from docs-config.json, else every product folder on disk."""
    configured = request.app.state.config_store.products(visible_only=True)
    if configured:
        return configured
    return [{"id": p, "name": p} for p in content_svc.list_products()]


def _ctx(request: Request, **extra) -> dict:
    """Base template context (request passed separately as first arg to TemplateResponse)."""
    settings = get_settings()
    store = request.app.state.config_store
    return {
        "site_name":    settings.site_name,
        "app_version":  settings.app_version,
        "products":     _products(request),
        "header_links": store.header_links(),
        **extra,
    }


def _product_name(request: Request, product: str) -> str:
    for p in _products(request):
        if p.get("id") == product:
            return p.get("name") or product
    return product


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Home
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.get("/", response_class=HTMLResponse)
async def home(request: Request):
    default = request.app.state.config_store.default_product()
    if default is None:
        on_disk = content_svc.list_products()
        default = on_disk[0] if on_disk else None
    if default:
        return RedirectResponse(url=f"/docs/{default}", status_code=302)
    return templates.TemplateResponse(request, "home.html", _ctx(request))


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Documentation pages
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.get("/docs/{product}", response_class=HTMLResponse)
async def product_home(
    request: Request,
    product: str,
    db: AsyncSession = Depends(get_db),
):
    root = content_svc.product_dir(product)
    tree = content_svc.build_category_tree(root)

    doc = None
    for name in content_svc.INDEX_FILES:
        if (root / name).is_file():
            doc = await content_svc.get_rendered_content(root / name)
            await record_visit(db, f"/docs/{product}")
            break

    return templates.TemplateResponse(
        request,
        "docs.html",
        _ctx(request,
             product=product,
             product_name=_product_name(request, product),
             tree=tree,
             expanded=[],
             current_path=None,
             doc=doc,
             sections=[n for n in tree if n["type"] == "category"]),
    )


# -----------------------------------------------------------------------------

@router.get("/docs/{product}/{path:path}", response_class=HTMLResponse)
async def view_doc(
    request: Request,
    product: str,
    path: str,
    db: AsyncSession = Depends(get_db),
):
    path = path.strip("/")
    try:
        doc = await content_svc.get_file_by_url_path(product, path)
    except HTTPException as e:
        if e.status_code in (400, 404):
            return templates.TemplateResponse(
                request,
                "error.html",
                _ctx(request, status_code=404,
                     message=f"No page at /docs/{product}/{path}."),
                status_code=404,
            )
        raise

    await record_visit(db, f"/docs/{product}/{path}")

    rel_in_product = doc["file_path"].split("/", 1)[1]
    tree = content_svc.get_product_tree(product)["tree"]
    return templates.TemplateResponse(
        request,
        "docs.html",
        _ctx(request,
             product=product,
             product_name=_product_name(request, product),
             tree=tree,
             expanded=content_svc.find_ancestors(tree, rel_in_product),
             current_path=rel_in_product,
             doc=doc,
             sections=[]),
    )


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Search
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@router.get("/search", response_class=HTMLResponse)
async def search_page(
    request: Request,
    q: str = Query("", max_length=256),
    product: Optional[str] = Query(None),
):
    results: list[dict[str, Any]] = []
    if q.strip():
        results = request.app.state.search_index.search(q, product=product or None)
    return templates.TemplateResponse(
        request,
        "search.html",
        _ctx(request,
             query=q,
             product=product,
             results=results,
             groups=group_by_category(results)),
    )


# -----------------------------------------------------------------------------
