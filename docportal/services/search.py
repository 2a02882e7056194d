#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Search service: in-memory fuzzy index over the documentation tree.

Every ``.md`` / ``.mdx`` file of every product becomes one document with
four weighted keys (title .4, content .3, category .2, path .1).  Each key
is scored 0 (exact substring) .. 1 (no resemblance) using difflib's
SequenceMatcher over word windows; keys scoring above the threshold don't
match.  A document's score is the weighted product of its matching keys,
so lower is better and documents matching on several keys rank first.

The index lives on ``app.state.search_index``; it is built at startup (or
lazily on first query) and patched file-by-file on every editor save.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import difflib
import html as _html
import logging
import re
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Optional

from fastapi import HTTPException

from .content import (
    DOC_EXTENSIONS, content_root, display_name, docs_url,
    extract_title, format_url_path,
)

log = logging.getLogger(__name__)


KEY_WEIGHTS: tuple[tuple[str, float], ...] = (
    ("title",    0.4),
    ("content",  0.3),
    ("category", 0.2),
    ("path",     0.1),
)
THRESHOLD = 0.3
MIN_MATCH_CHARS = 2
CONTENT_CHARS = 500
SNIPPET_CHARS = 160
DEFAULT_LIMIT = 20
_EPSILON = 1e-3


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Plain-text extraction
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

_PLAIN_TEXT_RULES: tuple[tuple[re.Pattern, str], ...] = (
    (re.compile(r"```.*?```", re.S),                 " "),
    (re.compile(r"`[^`]*`"),                         " "),
    (re.compile(r"<[^>]+>"),                         " "),
    (re.compile(r"!\[[^\]]*\]\([^)]*\)"),            " "),
    (re.compile(r"\[([^\]]*)\]\([^)]*\)"),           r"\1"),
    (re.compile(r"^#{1,6}\s+", re.M),                ""),
    (re.compile(r"(\*\*|__)(.*?)\1"),                r"\2"),
    (re.compile(r"(\*|_)(.*?)\1"),                   r"\2"),
    (re.compile(r"^\s*[-*_]{3,}\s*$", re.M),         " "),
    (re.compile(r"^\s*[-*+]\s+", re.M),              ""),
    (re.compile(r"^\s*\d+\.\s+", re.M),              ""),
    (re.compile(r"\s+"),                             " "),
)


def extract_plain_text(markdown: str) -> str:
    """Strip markdown/HTML syntax, leaving searchable text."""
    text = markdown
    for pattern, repl in _PLAIN_TEXT_RULES:
        text = pattern.sub(repl, text)
    return text.strip()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Scoring
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def field_score(query: str, text: str) -> Optional[float]:
    """Return 0..THRESHOLD when *text* matches *query*, else None."""
    q = query.lower().strip()
    t = text.lower()
    if len(q) < MIN_MATCH_CHARS or not t:
        return None
    if q in t:
        return 0.0

    words = t.split()
    n = max(1, len(q.split()))
    best = 0.0
    matcher = difflib.SequenceMatcher(autojunk=False)
    matcher.set_seq2(q)
    for i in range(max(1, len(words) - n + 1)):
        window = " ".join(words[i:i + n])
        matcher.set_seq1(window)
        if matcher.real_quick_ratio() <= best or matcher.quick_ratio() <= best:
            continue
        best = max(best, matcher.ratio())
    score = 1.0 - best
    return score if score <= THRESHOLD else None


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Snippets / highlighting
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _terms(query: str) -> list[str]:
    terms = {t for t in re.split(r"\s+", query.strip()) if len(t) >= MIN_MATCH_CHARS}
    return sorted(terms, key=len, reverse=True)


def make_snippet(text: str, query: str, width: int = SNIPPET_CHARS) -> str:
    lowered = text.lower()
    hits = [lowered.find(t.lower()) for t in [query.strip(), *_terms(query)]]
    hits = [h for h in hits if h >= 0]
    start = max(0, min(hits) - width // 3) if hits else 0
    snippet = text[start:start + width]
    if start > 0:
        snippet = "…" + snippet
    if start + width < len(text):
        snippet += "…"
    return snippet


def highlight(text: str, query: str) -> str:
    """HTML-escape *text* and wrap each query term in ``<mark>``."""
    terms = _terms(query)
    if not terms:
        return _html.escape(text)
    pattern = re.compile("|".join(re.escape(t) for t in terms), re.IGNORECASE)
    out: list[str] = []
    pos = 0
    for m in pattern.finditer(text):
        out.append(_html.escape(text[pos:m.start()]))
        out.append(f"<mark>{_html.escape(m.group(0))}</mark>")
        pos = m.end()
    out.append(_html.escape(text[pos:]))
    return "".join(out)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Index
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass
class SearchDocument:
    title: str
    content: str
    path: str          # relative to the content root
    url: str
    url_slug: str
    file_name: str
    file_type: str
    category: str
    product_id: str


# -----------------------------------------------------------------------------

class SearchIndex:

    def __init__(self, root: Path | None = None):
        self._root = root
        self.documents: list[SearchDocument] = []
        self.indexed = False
        self.built_at: float | None = None

    @property
    def root(self) -> Path:
        return (self._root or content_root()).resolve()

    # ── building ──────────────────────────────────────────────────────────

    def build(self) -> int:
        docs: list[SearchDocument] = []
        skipped = 0
        root = self.root
        if root.is_dir():
            for product in sorted(p for p in root.iterdir() if p.is_dir() and not p.name.startswith(".")):
                for path in sorted(product.rglob("*")):
                    if path.suffix not in DOC_EXTENSIONS or not path.is_file():
                        continue
                    if any(part.startswith(".") for part in path.relative_to(root).parts):
                        continue
                    doc = self._load(path)
                    if doc is None:
                        skipped += 1
                    else:
                        docs.append(doc)
        self.documents = docs
        self.indexed = True
        self.built_at = time.time()
        log.info("Search index built: %d documents (%d skipped)", len(docs), skipped)
        return len(docs)

    def ensure_built(self) -> None:
        if not self.indexed:
            self.build()

    def _load(self, path: Path) -> SearchDocument | None:
        root = self.root
        rel = path.relative_to(root)
        if len(rel.parts) < 2:
            return None
        product = rel.parts[0]
        try:
            raw = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("Skipping %s: %s", path, exc)
            return None

        parent = path.parent
        category = display_name(parent.name) if parent != root / product else product
        return SearchDocument(
            title=extract_title(raw, display_name(path.name)),
            content=extract_plain_text(raw)[:CONTENT_CHARS],
            path=rel.as_posix(),
            url=docs_url(product, Path(*rel.parts[1:]).as_posix()),
            url_slug=format_url_path(path.name),
            file_name=path.name,
            file_type=path.suffix.lstrip("."),
            category=category,
            product_id=product,
        )

    # ── incremental updates ───────────────────────────────────────────────

    def update_file(self, rel_path: str) -> None:
        """Re-index one document after it was written or removed."""
        if not self.indexed:
            return
        self.documents = [d for d in self.documents if d.path != rel_path]
        path = self.root / rel_path
        if path.suffix in DOC_EXTENSIONS and path.is_file():
            doc = self._load(path)
            if doc is not None:
                self.documents.append(doc)

    def remove_prefix(self, rel_path: str) -> None:
        """Drop every document at or below *rel_path*."""
        if not self.indexed:
            return
        prefix = rel_path.rstrip("/") + "/"
        self.documents = [d for d in self.documents
                          if d.path != rel_path and not d.path.startswith(prefix)]

    def reindex_prefix(self, rel_path: str) -> None:
        """Re-read every document at or below *rel_path* (after a move/rename/copy)."""
        if not self.indexed:
            return
        self.remove_prefix(rel_path)
        path = self.root / rel_path
        if path.is_dir():
            for p in sorted(path.rglob("*")):
                if p.suffix in DOC_EXTENSIONS and p.is_file():
                    doc = self._load(p)
                    if doc is not None:
                        self.documents.append(doc)
        else:
            self.update_file(rel_path)

    # ── querying ──────────────────────────────────────────────────────────

    def search(self, query: str, product: str | None = None,
               limit: int = DEFAULT_LIMIT) -> list[dict[str, Any]]:
        query = (query or "").strip()
        if not query:
            raise HTTPException(status_code=400, detail="Search query is required")
        self.ensure_built()

        scored: list[tuple[float, SearchDocument]] = []
        for doc in self.documents:
            if product and doc.product_id != product:
                continue
            total, matched = 1.0, False
            for key, weight in KEY_WEIGHTS:
                s = field_score(query, getattr(doc, key))
                if s is None:
                    continue
                matched = True
                total *= max(s, _EPSILON) ** weight
            if matched:
                scored.append((total, doc))

        scored.sort(key=lambda pair: (pair[0], pair[1].title.lower()))
        results: list[dict[str, Any]] = []
        for score, doc in scored[:limit]:
            snippet = make_snippet(doc.content, query)
            results.append({
                **asdict(doc),
                "score":       round(score, 6),
                "snippet":     snippet,
                "highlighted": highlight(snippet, query),
            })
        return results

    def stats(self) -> dict[str, Any]:
        return {
            "total_documents": len(self.documents),
            "indexed":         self.indexed,
            "products":        sorted({d.product_id for d in self.documents}),
        }


# -----------------------------------------------------------------------------

def group_by_category(results: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Group results by category, keeping first-appearance order."""
    groups: dict[str, list[dict[str, Any]]] = {}
    for r in results:
        groups.setdefault(r["category"], []).append(r)
    return [{"category": c, "results": rs} for c, rs in groups.items()]


# -----------------------------------------------------------------------------
