#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
File editor service: raw read/write and tree operations on the content tree.

Every path is validated with ``resolve_safe_path`` against the content root
(or ``content_root/<product>`` when a product is given).  Each mutation
clears the render cache for the touched path and patches the search index.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

import aiofiles
from fastapi import HTTPException, UploadFile, status

from docportal.core.config import get_settings
from .content import (
    clear_cache, content_root, product_dir, relative_path, resolve_safe_path,
)
from .search import SearchIndex

log = logging.getLogger(__name__)


_FILE_NAME_RE = re.compile(r"^[a-z0-9_-]+$")
_UNSAFE_NAME_RE = re.compile(r"[^a-z0-9._-]+")


# -----------------------------------------------------------------------------

def _base(product: Optional[str]) -> Path:
    return product_dir(product) if product else content_root()


def _bad_request(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


def _check_name(name: str) -> str:
    name = name.strip()
    if not name or "/" in name or "\\" in name or name in (".", ".."):
        raise _bad_request("Invalid name")
    return name


def file_type_of(path: Path) -> str:
    if path.suffix == ".mdx":
        return "mdx"
    if path.suffix == ".json":
        return "json"
    return "md"


def _touched(path: Path, index: Optional[SearchIndex], removed: bool = False) -> None:
    """Invalidate caches after *path* (file or folder) changed on disk."""
    clear_cache(path)
    if index is None:
        return
    rel = relative_path(path)
    if removed:
        index.remove_prefix(rel)
    else:
        index.reindex_prefix(rel)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Read / write
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def read_file(file_path: str, product: Optional[str] = None) -> dict[str, Any]:
    if not file_path:
        raise _bad_request("File path is required")
    path = resolve_safe_path(file_path, _base(product))
    if not path.is_file():
        raise HTTPException(status_code=404, detail="File not found")

    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        content = await f.read()
    st = path.stat()
    return {
        "path":      file_path,
        "content":   content,
        "file_type": file_type_of(path),
        "size":      st.st_size,
        "modified":  datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
    }


# -----------------------------------------------------------------------------

async def _write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(content)


# -----------------------------------------------------------------------------

async def save_file(file_path: str, content: str,
                    index: Optional[SearchIndex] = None) -> str:
    if not file_path:
        raise _bad_request("File path is required")
    path = resolve_safe_path(file_path)
    if path.is_dir():
        raise _bad_request("Path is a directory, not a file")
    if path.suffix not in get_settings().allowed_doc_extensions:
        raise _bad_request(f"File type '{path.suffix}' cannot be edited")
    await _write(path, content)
    _touched(path, index)
    log.info("Saved %s (%d chars)", file_path, len(content))
    return relative_path(path)


# -----------------------------------------------------------------------------

async def save_document(product: str, super_category: str, category: str,
                        file_name: str, content: str,
                        index: Optional[SearchIndex] = None) -> str:
    """Write ``<product>/<super_category>/<category>/<file_name>.md``."""
    if not _FILE_NAME_RE.match(file_name or ""):
        raise _bad_request("Invalid file name format")
    rel = f"{product}/{super_category}/{category}/{file_name}.md"
    path = resolve_safe_path(rel)
    await _write(path, content)
    _touched(path, index)
    log.info("Saved document %s", rel)
    return rel


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Tree operations
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

async def create_item(type_: str, name: str, folder_path: str = "",
                      content: str = "", product: Optional[str] = None,
                      index: Optional[SearchIndex] = None) -> str:
    """Create a file or folder; returns its path relative to the content root."""
    name = _check_name(name)
    base = _base(product)
    rel = f"{folder_path.strip('/')}/{name}" if folder_path.strip("/") else name
    target = resolve_safe_path(rel, base)
    if target.exists():
        raise _bad_request("File or folder already exists")

    if type_ == "folder":
        target.mkdir(parents=True)
    elif type_ == "file":
        await _write(target, content or "")
        _touched(target, index)
    else:
        raise _bad_request("Invalid type")
    log.info("Created %s %s", type_, target)
    return relative_path(target)


# -----------------------------------------------------------------------------

def delete_item(file_path: str, product: Optional[str] = None,
                index: Optional[SearchIndex] = None) -> None:
    if not file_path:
        raise _bad_request("File path is required")
    base = _base(product)
    target = resolve_safe_path(file_path, base)
    if target == base or not target.exists():
        raise _bad_request("File or folder not found")

    _touched(target, index, removed=True)
    if target.is_dir():
        shutil.rmtree(target)
    else:
        target.unlink()
    log.info("Deleted %s", target)


# -----------------------------------------------------------------------------

def rename_item(old_path: str, new_name: str, product: Optional[str] = None,
                index: Optional[SearchIndex] = None) -> str:
    """Rename in place; returns the new path relative to *product* (or the root)."""
    new_name = _check_name(new_name)
    base = _base(product)
    source = resolve_safe_path(old_path, base)
    if source == base or not source.exists():
        raise _bad_request("File or folder not found")
    target = resolve_safe_path(relative_path(source.parent / new_name, base), base)
    if target.exists():
        raise _bad_request("A file or folder with that name already exists")

    _touched(source, index, removed=True)
    source.rename(target)
    _touched(target, index)
    log.info("Renamed %s -> %s", source, target)
    return relative_path(target, base)


# -----------------------------------------------------------------------------

def move_item(source_path: str, target_path: str = "", product: Optional[str] = None,
              index: Optional[SearchIndex] = None) -> str:
    """Move into the folder *target_path* (``""`` for the base); returns the new path."""
    base = _base(product)
    source = resolve_safe_path(source_path, base)
    if source == base or not source.exists():
        raise _bad_request("Source not found")
    target_dir = resolve_safe_path(target_path.strip("/"), base) if target_path.strip("/") else base
    if not target_dir.is_dir():
        raise _bad_request("Target folder not found")
    if source.is_dir() and (target_dir == source or source in target_dir.parents):
        raise _bad_request("Cannot move a folder into itself")
    target = target_dir / source.name
    if target.exists():
        raise _bad_request("A file with that name already exists in target folder")

    _touched(source, index, removed=True)
    shutil.move(str(source), str(target))
    _touched(target, index)
    log.info("Moved %s -> %s", source, target)
    return relative_path(target, base)


# -----------------------------------------------------------------------------

def _copy_name(path: Path) -> Path:
    stem, ext = (path.name, "") if path.is_dir() else (path.stem, path.suffix)
    n = 1
    while True:
        suffix = " - Copy" if n == 1 else f" - Copy ({n})"
        candidate = path.with_name(f"{stem}{suffix}{ext}")
        if not candidate.exists():
            return candidate
        n += 1


def duplicate_item(file_path: str, product: Optional[str] = None,
                   index: Optional[SearchIndex] = None) -> str:
    base = _base(product)
    source = resolve_safe_path(file_path, base)
    if source == base or not source.exists():
        raise _bad_request("Item not found")

    target = _copy_name(source)
    if source.is_dir():
        shutil.copytree(source, target)
    else:
        shutil.copy2(source, target)
    _touched(target, index)
    log.info("Duplicated %s -> %s", source, target)
    return relative_path(target, base)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Image upload
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def safe_filename(name: str) -> str:
    """``My Screenshot (1).PNG`` → ``my-screenshot-1-.png``; never empty."""
    name = Path(name or "").name.lower()
    name = _UNSAFE_NAME_RE.sub("-", name).strip("-.")
    return name or "upload"


def _unique(path: Path) -> Path:
    n = 1
    candidate = path
    while candidate.exists():
        candidate = path.with_name(f"{path.stem}-{n}{path.suffix}")
        n += 1
    return candidate


async def save_upload(file: UploadFile, product: Optional[str] = None) -> dict[str, Any]:
    settings = get_settings()

    if file.content_type not in settings.allowed_image_types:
        raise HTTPException(
            status_code=status.HTTP_415_UNSUPPORTED_MEDIA_TYPE,
            detail=f"Unsupported file type: {file.content_type}",
        )

    data = await file.read()
    if len(data) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File exceeds maximum size of {settings.max_upload_bytes // 1024 // 1024} MB",
        )
    if not data:
        raise _bad_request("Empty file")

    root = settings.images_root_resolved.resolve()
    folder = safe_filename(product) if product else ""
    dest_dir = resolve_safe_path(folder, root) if folder else root
    dest_dir.mkdir(parents=True, exist_ok=True)
    dest = _unique(dest_dir / safe_filename(file.filename or "upload"))

    async with aiofiles.open(dest, "wb") as f:
        await f.write(data)

    rel = dest.relative_to(root).as_posix()
    log.info("Uploaded image %s (%d bytes)", rel, len(data))
    return {
        "success":  True,
        "url":      f"{settings.images_url_prefix.rstrip('/')}/{rel}",
        "filename": dest.name,
        "size":     len(data),
    }


# -----------------------------------------------------------------------------
