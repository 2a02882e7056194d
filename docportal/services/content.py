#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Content service: read-only access to the documentation tree on disk.

Layout::

    content_root/<product>/<NN-super-category>/<NN-category>/<NN-page>.md

A leading ``NN-`` on any folder or file name sets its sort order and is
dropped from its display name and URL slug.  ``index.md`` / ``index.mdx``
inside a folder is that folder's landing page.  Dot-files are ignored.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import unquote

import aiofiles
from fastapi import HTTPException, status

from docportal.core.config import get_settings
from docportal.core.log import security_event
from .renderer import extract_toc, is_cache_valid, render

log = logging.getLogger(__name__)


DOC_EXTENSIONS = (".md", ".mdx")
INDEX_FILES = ("index.mdx", "index.md")
DEFAULT_ORDER = 999

_ORDER_RE = re.compile(r"^(\d+)-(.+)$")
_ENCODED_DOTS_RE = re.compile(r"%(?:25)?2e%(?:25)?2e", re.IGNORECASE)
_TITLE_RE = re.compile(r"^#\s+(.+?)\s*#*\s*$", re.MULTILINE)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Paths
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def content_root() -> Path:
    return get_settings().content_root.resolve()


# -----------------------------------------------------------------------------

def _forbidden(requested: str, reason: str) -> HTTPException:
    security_event("path_traversal", requested=requested, reason=reason)
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=reason)


# -----------------------------------------------------------------------------

def resolve_safe_path(requested: str, base: Path | None = None) -> Path:
    """Resolve *requested* under *base*, rejecting anything that could escape it."""
    base = (base or content_root()).resolve()
    requested = requested or ""
    decoded = unquote(requested)

    for candidate in (requested, decoded):
        if ".." in candidate or candidate.startswith("~") or _ENCODED_DOTS_RE.search(candidate):
            raise _forbidden(requested, "Path contains forbidden characters")

    if decoded.startswith(("/", "\\")) or Path(decoded).is_absolute() or re.match(r"^[A-Za-z]:", decoded):
        raise _forbidden(requested, "Absolute paths are not allowed")

    target = (base / decoded).resolve()
    if target != base and base not in target.parents:
        raise _forbidden(requested, "Path traversal attempt detected")
    return target


# -----------------------------------------------------------------------------

def relative_path(path: Path, base: Path | None = None) -> str:
    return path.resolve().relative_to((base or content_root()).resolve()).as_posix()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Names and slugs
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def strip_doc_extension(name: str) -> str:
    return re.sub(r"\.(md|mdx)$", "", name)


def format_url_path(name: str) -> str:
    """Turn a folder/file name into its URL slug: ``02-Getting_Started.md`` → ``getting-started``."""
    cleaned = strip_doc_extension(name)
    cleaned = re.sub(r"^\d+-", "", cleaned)
    cleaned = cleaned.lower()
    cleaned = re.sub(r"[\s_]+", "-", cleaned)
    cleaned = re.sub(r"[^a-z0-9-]", "", cleaned)
    cleaned = re.sub(r"-+", "-", cleaned)
    return cleaned.strip("-")


def split_order(name: str) -> tuple[int, str]:
    """``03-install`` → ``(3, "install")``; unnumbered names sort last."""
    m = _ORDER_RE.match(name)
    if m:
        return int(m.group(1)), m.group(2)
    return DEFAULT_ORDER, name


def display_name(name: str) -> str:
    return split_order(strip_doc_extension(name))[1]


def is_doc_file(path: Path) -> bool:
    return path.is_file() and path.suffix in DOC_EXTENSIONS


def extract_title(raw: str, fallback: str) -> str:
    m = _TITLE_RE.search(raw)
    return m.group(1).strip() if m else fallback


def docs_url(product: str, rel_path: str) -> str:
    """Public URL of a document given its path relative to the product folder."""
    parts = [p for p in rel_path.split("/") if p]
    if parts and parts[-1] in INDEX_FILES:
        parts = parts[:-1]
    slugs = [format_url_path(p) for p in parts]
    return "/".join([f"/docs/{product}", *slugs]) if slugs else f"/docs/{product}"


# -----------------------------------------------------------------------------

def resolve_url_path(parent: Path, slug: str) -> str | None:
    """Return the entry in *parent* whose URL slug equals *slug*."""
    slug = slug.lower()
    try:
        entries = sorted(parent.iterdir())
    except OSError:
        return None
    for entry in entries:
        if entry.name.startswith("."):
            continue
        if format_url_path(entry.name) == slug:
            return entry.name
    return None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Trees
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def build_category_tree(dir_path: Path, rel: str = "") -> list[dict[str, Any]]:
    """Navigation tree of categories and documents under *dir_path*."""
    items: list[dict[str, Any]] = []
    try:
        entries = list(dir_path.iterdir())
    except OSError as exc:
        log.warning("Cannot list %s: %s", dir_path, exc)
        return items

    for entry in entries:
        if entry.name.startswith("."):
            continue
        item_rel = f"{rel}/{entry.name}" if rel else entry.name

        if entry.is_dir():
            order, name = split_order(entry.name)
            children = build_category_tree(entry, item_rel)
            items.append({
                "type":              "category",
                "id":                entry.name,
                "name":              name,
                "url_slug":          format_url_path(entry.name),
                "order":             order,
                "path":              item_rel,
                "children":          children,
                "has_files":         any(c["type"] == "file" for c in children),
                "has_subcategories": any(c["type"] == "category" for c in children),
                "has_index":         any((entry / f).is_file() for f in INDEX_FILES),
            })
        elif is_doc_file(entry) and entry.name not in INDEX_FILES:
            stem = strip_doc_extension(entry.name)
            order, name = split_order(stem)
            items.append({
                "type":      "file",
                "id":        stem,
                "name":      name,
                "url_slug":  format_url_path(entry.name),
                "order":     order,
                "path":      item_rel,
                "file_name": entry.name,
                "file_type": entry.suffix.lstrip("."),
            })

    items.sort(key=lambda i: (i["order"], i["name"].lower()))
    return items


# -----------------------------------------------------------------------------

def build_file_tree(dir_path: Path, rel: str = "") -> list[dict[str, Any]]:
    """Editor tree: every non-hidden entry, folders first, then by name."""
    items: list[dict[str, Any]] = []
    for entry in dir_path.iterdir():
        if entry.name.startswith("."):
            continue
        item_rel = f"{rel}/{entry.name}" if rel else entry.name
        if entry.is_dir():
            items.append({
                "name":     entry.name,
                "type":     "folder",
                "path":     item_rel,
                "children": build_file_tree(entry, item_rel),
            })
        else:
            st = entry.stat()
            items.append({
                "name":      entry.name,
                "type":      "file",
                "path":      item_rel,
                "extension": entry.suffix,
                "size":      st.st_size,
                "modified":  datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            })
    items.sort(key=lambda i: (i["type"] != "folder", i["name"].lower()))
    return items


# -----------------------------------------------------------------------------

def product_dir(product: str) -> Path:
    path = resolve_safe_path(product)
    if not path.is_dir() or path == content_root():
        raise HTTPException(status_code=404, detail=f"Product '{product}' not found")
    return path


def list_products() -> list[str]:
    root = content_root()
    if not root.is_dir():
        return []
    return sorted(p.name for p in root.iterdir() if p.is_dir() and not p.name.startswith("."))


def get_product_tree(product: str) -> dict[str, Any]:
    return {
        "product":   product,
        "tree":      build_category_tree(product_dir(product)),
        "timestamp": datetime.now(tz=timezone.utc),
    }


def _strip_children(node: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in node.items() if k != "children"}


def get_super_categories(product: str) -> list[dict[str, Any]]:
    """Top-level categories of *product*, without their subtrees."""
    tree = build_category_tree(product_dir(product))
    return [_strip_children(n) for n in tree if n["type"] == "category"]


def get_categories(product: str, super_category: str) -> dict[str, Any]:
    """Children of one super-category, addressed by id or URL slug."""
    for node in build_category_tree(product_dir(product)):
        if node["type"] == "category" and super_category in (node["id"], node["url_slug"]):
            return {
                "super_category": _strip_children(node),
                "categories":     [_strip_children(c) if c["type"] == "category" else c
                                   for c in node["children"]],
            }
    raise HTTPException(status_code=404, detail=f"Super-category '{super_category}' not found")


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Render cache
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class _CacheEntry:
    html: str
    toc: list[dict[str, Any]]
    raw: str
    mtime: float
    size: int
    stored_at: float = field(default_factory=time.monotonic)


class RenderCache:
    """Rendered HTML keyed by absolute path; stale on TTL expiry or file change."""

    def __init__(self) -> None:
        self._entries: dict[str, _CacheEntry] = {}

    def get(self, path: Path, mtime: float, size: int, ttl: int) -> _CacheEntry | None:
        entry = self._entries.get(str(path))
        if entry is None:
            return None
        if (time.monotonic() - entry.stored_at > ttl
                or entry.mtime != mtime or entry.size != size
                or not is_cache_valid(entry.html)):
            self._entries.pop(str(path), None)
            return None
        return entry

    def put(self, path: Path, entry: _CacheEntry) -> None:
        self._entries[str(path)] = entry

    def clear(self, path: Path | None = None) -> None:
        if path is None:
            self._entries.clear()
            log.debug("Render cache cleared")
            return
        prefix = str(path)
        for key in [k for k in self._entries if k == prefix or k.startswith(prefix + "/")]:
            del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)


render_cache = RenderCache()


def clear_cache(path: Path | None = None) -> None:
    render_cache.clear(path)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Documents
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def read_text(path: Path) -> str:
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        return await f.read()


# -----------------------------------------------------------------------------

async def get_rendered_content(path: Path) -> dict[str, Any]:
    """Render the document at absolute *path*, using the cache when fresh."""
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")
    st = path.stat()
    ttl = get_settings().render_cache_ttl
    entry = render_cache.get(path, st.st_mtime, st.st_size, ttl)
    if entry is None:
        raw = await read_text(path)
        html = render(raw, path.suffix.lstrip("."))
        entry = _CacheEntry(html=html, toc=extract_toc(html), raw=raw,
                            mtime=st.st_mtime, size=st.st_size)
        render_cache.put(path, entry)
    else:
        log.debug("Render cache hit: %s", path)

    fallback = display_name(path.parent.name if path.name in INDEX_FILES else path.name)
    return {
        "content":     entry.html,
        "raw_content": entry.raw,
        "file_type":   "mdx" if path.suffix == ".mdx" else "md",
        "title":       extract_title(entry.raw, fallback),
        "toc":         entry.toc,
        "metadata": {
            "size":          st.st_size,
            "last_modified": datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        },
    }


# -----------------------------------------------------------------------------

def locate_document(product: str, url_path: str) -> Path:
    """Map ``getting-started/installation`` to the file it names under *product*."""
    current = product_dir(product)
    for segment in (s for s in url_path.split("/") if s):
        if not current.is_dir():
            raise HTTPException(status_code=404, detail=f"Could not resolve: {segment}")
        actual = resolve_url_path(current, segment)
        if actual is None:
            raise HTTPException(status_code=404, detail=f"Could not resolve: {segment}")
        current = current / actual

    # A folder URL serves the folder's landing page
    if current.is_dir():
        for name in INDEX_FILES:
            if (current / name).is_file():
                return current / name
        raise HTTPException(status_code=400, detail="Path is a directory, not a file")
    if current.suffix not in DOC_EXTENSIONS:
        raise HTTPException(status_code=404, detail="File not found")
    return current


# -----------------------------------------------------------------------------

async def get_file_by_url_path(product: str, url_path: str) -> dict[str, Any]:
    path = locate_document(product, url_path)
    result = await get_rendered_content(path)
    result["path"] = url_path
    result["file_path"] = relative_path(path)
    return result


# -----------------------------------------------------------------------------

def find_ancestors(tree: list[dict[str, Any]], rel_path: str) -> list[str]:
    """Return the category paths leading to *rel_path* (used to expand the sidebar)."""
    for node in tree:
        if node["path"] == rel_path:
            return []
        if node["type"] == "category" and rel_path.startswith(node["path"] + "/"):
            return [node["path"], *find_ancestors(node["children"], rel_path)]
    return []


# -----------------------------------------------------------------------------
