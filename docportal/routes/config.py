#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Config router
=============
GET /api/config/{name}  docs | downloads | blog document   [admin]
PUT /api/config/{name}  replace the document               [admin]
GET /api/products       products shown in the docs portal
GET /api/downloads      downloads.json
GET /api/blog           blog posts, newest first
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Request

from docportal.core.log import security_event
from docportal.core.security import require_admin
from docportal.models import User
from docportal.services.config_store import EDITABLE_CONFIGS, ConfigStore


# -----------------------------------------------------------------------------

router = APIRouter(tags=["config"])


def _store(request: Request) -> ConfigStore:
    return request.app.state.config_store


def _check_name(name: str) -> str:
    if name not in EDITABLE_CONFIGS:
        raise HTTPException(status_code=404, detail=f"Unknown config '{name}'")
    return name


def _validate(name: str, data: dict[str, Any]) -> None:
    if name == "docs":
        products = data.get("products", [])
        if not isinstance(products, list) or any(
            not isinstance(p, dict) or not p.get("id") for p in products
        ):
            raise HTTPException(status_code=400, detail="Every product needs an 'id'")
    elif name == "blog" and not isinstance(data.get("posts", []), list):
        raise HTTPException(status_code=400, detail="'posts' must be a list")
    elif name == "downloads" and not isinstance(data.get("products", []), list):
        raise HTTPException(status_code=400, detail="'products' must be a list")


# ── Admin ─────────────────────────────────────────────────────────────────────

@router.get("/config/{name}")
async def read_config(name: str, request: Request, _admin: User = Depends(require_admin)):
    return _store(request).read(_check_name(name))


# -----------------------------------------------------------------------------

@router.put("/config/{name}")
async def write_config(
    name: str,
    request: Request,
    data: dict[str, Any] = Body(...),
    admin: User = Depends(require_admin),
):
    _validate(_check_name(name), data)
    saved = _store(request).write(name, data)
    security_event("config_updated", level=logging.INFO, name=name, by=admin.username)
    return saved


# ── Public ────────────────────────────────────────────────────────────────────

@router.get("/products")
async def products(request: Request):
    store = _store(request)
    return {
        "products":        store.products(visible_only=True),
        "default_product": store.default_product(),
    }


# -----------------------------------------------------------------------------

@router.get("/downloads")
async def downloads(request: Request):
    return _store(request).read("downloads")


# -----------------------------------------------------------------------------

@router.get("/blog")
async def blog(request: Request):
    return {"posts": _store(request).blog_posts()}


# -----------------------------------------------------------------------------
