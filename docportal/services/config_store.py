#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Config store: cached JSON documents under ``config_root``.

A missing or unreadable file never raises: the document's default shape is
returned (and cached) instead, so a fresh install serves an empty portal.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import copy
import json
import logging
from pathlib import Path
from typing import Any

from docportal.core.config import get_settings

log = logging.getLogger(__name__)


CONFIG_FILES: dict[str, str] = {
    "docs":      "docs-config.json",
    "downloads": "downloads.json",
    "blog":      "blog.json",
    "users":     "users.json",
}

# Documents the admin API may read and replace; users.json is import-only.
EDITABLE_CONFIGS = ("docs", "downloads", "blog")

_DEFAULTS: dict[str, dict[str, Any]] = {
    "docs":      {"general": {}, "header": {"links": []}, "products": []},
    "downloads": {"products": []},
    "blog":      {"posts": []},
    "users":     {"users": []},
}


# -----------------------------------------------------------------------------

class ConfigStore:

    def __init__(self, root: Path | None = None):
        self._root = root
        self._cache: dict[str, dict[str, Any]] = {}

    @property
    def root(self) -> Path:
        return self._root or get_settings().config_root

    def path_for(self, name: str) -> Path:
        if name not in CONFIG_FILES:
            raise KeyError(name)
        return self.root / CONFIG_FILES[name]

    @staticmethod
    def defaults(name: str) -> dict[str, Any]:
        return copy.deepcopy(_DEFAULTS.get(name, {}))

    # -------------------------------------------------------------------------

    def read(self, name: str, use_cache: bool = True) -> dict[str, Any]:
        path = self.path_for(name)
        if use_cache and name in self._cache:
            return self._cache[name]

        data = self.defaults(name)
        if path.is_file():
            try:
                loaded = json.loads(path.read_text(encoding="utf-8"))
            except (OSError, ValueError) as exc:
                log.warning("Cannot read %s, using defaults: %s", path, exc)
            else:
                if isinstance(loaded, dict):
                    data = loaded
                else:
                    log.warning("%s is not a JSON object, using defaults", path)
        self._cache[name] = data
        return data

    def write(self, name: str, data: dict[str, Any]) -> dict[str, Any]:
        path = self.path_for(name)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")
        tmp.replace(path)
        self._cache[name] = data
        log.info("Wrote %s", path)
        return data

    def invalidate(self, name: str | None = None) -> None:
        if name is None:
            self._cache.clear()
        else:
            self._cache.pop(name, None)

    # ── docs-config helpers ───────────────────────────────────────────────

    def products(self, visible_only: bool = False) -> list[dict[str, Any]]:
        items = self.read("docs").get("products") or []
        if visible_only:
            items = [p for p in items if p.get("showInDocs", True)]
        return items

    def default_product(self) -> str | None:
        general = self.read("docs").get("general") or {}
        if general.get("defaultProduct"):
            return general["defaultProduct"]
        visible = self.products(visible_only=True)
        return visible[0]["id"] if visible else None

    def header_links(self) -> list[dict[str, Any]]:
        return (self.read("docs").get("header") or {}).get("links") or []

    def blog_posts(self) -> list[dict[str, Any]]:
        posts = self.read("blog").get("posts") or []
        return sorted(posts, key=lambda p: str(p.get("date", "")), reverse=True)


# -----------------------------------------------------------------------------
