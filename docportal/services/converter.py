#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
HTML → Markdown converter used when the WYSIWYG editor hands back HTML.

Output conventions: ATX headings, ``---`` rules, ``-`` bullets, fenced code
blocks (language taken from a ``language-*`` class), ``*em*``, ``**strong**``,
``~~del~~``, inline links and images, pipe tables and task-list markers.
Tags without a Markdown equivalent are unwrapped.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup, Comment, NavigableString, Tag

log = logging.getLogger(__name__)


_BLOCK_CONTAINERS = {
    "[document]", "body", "html", "div", "section", "article", "header",
    "footer", "main", "nav", "aside", "figure", "figcaption", "details",
    "summary", "ul", "ol", "li", "table", "thead", "tbody", "tfoot", "tr",
    "blockquote",
}
_UNWRAP_BLOCKS = {
    "div", "section", "article", "header", "footer", "main", "nav", "aside",
    "figure", "figcaption", "details", "summary",
}
_DROP = {"script", "style", "head", "title", "meta", "link", "noscript", "template"}
_LANG_RE = re.compile(r"(?:language|lang)-(\S+)")


# -----------------------------------------------------------------------------

def html_to_markdown(html: str) -> str:
    if not html or not html.strip():
        return ""
    soup = BeautifulSoup(html, "html.parser")
    markdown = _children(soup)
    markdown = re.sub(r"[ \t]+\n", lambda m: "  \n" if m.group(0).startswith("  ") else "\n", markdown)
    markdown = re.sub(r"\n{3,}", "\n\n", markdown)
    return markdown.strip()


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Node walk
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _children(node: Tag) -> str:
    return "".join(_convert(child) for child in node.children)


def _block(text: str) -> str:
    return f"\n\n{text}\n\n"


def _convert(node) -> str:
    if isinstance(node, Comment):
        return ""
    if isinstance(node, NavigableString):
        text = str(node)
        if not text.strip():
            parent = node.parent.name if node.parent else None
            return "" if parent in _BLOCK_CONTAINERS else (" " if text else "")
        return re.sub(r"\s+", " ", text)
    if not isinstance(node, Tag):
        return ""

    name = node.name.lower()
    if name in _DROP:
        return ""

    if re.fullmatch(r"h[1-6]", name):
        text = _children(node).strip()
        return _block(f"{'#' * int(name[1])} {text}") if text else ""

    if name == "p":
        text = _children(node).strip()
        return _block(text) if text else ""

    if name == "br":
        return "  \n"
    if name == "hr":
        return _block("---")

    if name in ("strong", "b"):
        return _wrap(node, "**")
    if name in ("em", "i"):
        return _wrap(node, "*")
    if name in ("del", "s", "strike"):
        return _wrap(node, "~~")

    if name == "code":
        return _code_span(node.get_text())
    if name == "pre":
        return _fenced(node)

    if name == "a":
        return _link(node)
    if name == "img":
        return _image(node)

    if name in ("ul", "ol"):
        return _list(node)
    if name == "blockquote":
        return _blockquote(node)
    if name == "table":
        return _table(node)

    if name == "input" and node.get("type") == "checkbox":
        return "[x] " if node.has_attr("checked") else "[ ] "

    if name in _UNWRAP_BLOCKS:
        return _block(_children(node).strip())
    return _children(node)


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Inline
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _wrap(node: Tag, marker: str) -> str:
    inner = _children(node)
    if not inner.strip():
        return inner
    # Keep surrounding spaces outside the delimiters
    lead = inner[: len(inner) - len(inner.lstrip())]
    trail = inner[len(inner.rstrip()):]
    return f"{lead}{marker}{inner.strip()}{marker}{trail}"


def _code_span(text: str) -> str:
    ticks = "``" if "`" in text else "`"
    pad = " " if text.startswith("`") or text.endswith("`") else ""
    return f"{ticks}{pad}{text}{pad}{ticks}"


def _title_suffix(node: Tag) -> str:
    title = node.get("title")
    return f' "{title}"' if title else ""


def _link(node: Tag) -> str:
    text = _children(node).strip()
    href = node.get("href")
    if not href:
        return text
    return f"[{text}]({href}{_title_suffix(node)})"


def _image(node: Tag) -> str:
    src = node.get("src")
    if not src:
        return ""
    return f"![{node.get('alt', '')}]({src}{_title_suffix(node)})"


# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# Blocks
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def _fenced(node: Tag) -> str:
    code = node.find("code")
    source = code if isinstance(code, Tag) else node
    language = ""
    for el in (source, node):
        for cls in el.get("class") or []:
            m = _LANG_RE.match(cls)
            if m:
                language = m.group(1)
                break
        if language:
            break
    text = source.get_text().rstrip("\n")
    fence = "````" if "```" in text else "```"
    return _block(f"{fence}{language}\n{text}\n{fence}")


# -----------------------------------------------------------------------------

def _list(node: Tag) -> str:
    ordered = node.name.lower() == "ol"
    try:
        number = int(node.get("start", 1))
    except ValueError:
        number = 1

    lines: list[str] = []
    for li in node.find_all("li", recursive=False):
        prefix = f"{number}. " if ordered else "- "
        number += 1
        body = re.sub(r"\n{2,}", "\n", _children(li).strip())
        body = re.sub(r"^\[([ x])\]\s+", r"[\1] ", body)
        indent = " " * len(prefix)
        body = "\n".join(
            line if i == 0 or not line else indent + line
            for i, line in enumerate(body.split("\n"))
        )
        lines.append(prefix + body)
    return _block("\n".join(lines)) if lines else ""


# -----------------------------------------------------------------------------

def _blockquote(node: Tag) -> str:
    inner = re.sub(r"\n{3,}", "\n\n", _children(node).strip())
    if not inner:
        return ""
    return _block("\n".join(f"> {line}" if line else ">" for line in inner.split("\n")))


# -----------------------------------------------------------------------------

def _cell(cell: Tag) -> str:
    text = re.sub(r"\s*\n\s*", " ", _children(cell)).strip()
    return text.replace("|", "\\|")


def _table(node: Tag) -> str:
    rows = [tr for tr in node.find_all("tr") if tr.find_parent("table") is node]
    if not rows:
        return ""
    grid = [[_cell(c) for c in tr.find_all(["th", "td"], recursive=False)] for tr in rows]
    width = max(len(r) for r in grid)
    if width == 0:
        return ""
    grid = [r + [""] * (width - len(r)) for r in grid]

    out = ["| " + " | ".join(grid[0]) + " |",
           "| " + " | ".join(["---"] * width) + " |"]
    out.extend("| " + " | ".join(r) + " |" for r in grid[1:])
    return _block("\n".join(out))


# -----------------------------------------------------------------------------
