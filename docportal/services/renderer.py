#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Markdown renderer
=================
Renders documentation source (``.md`` / ``.mdx``) to HTML.

Pipeline
--------
1. Component pre-pass: ``<Tabs>``, ``<Steps>``, ``<Note>`` ... blocks and
   ``:::info`` admonitions are parsed with regexes, their bodies rendered
   recursively, and each block replaced by an HTML-comment sentinel.  Fenced
   code is skipped so examples of component syntax stay literal.
2. Inline pre-pass: ``[text](url){.btn}`` and ``{color:x}..{/color}`` become
   raw inline HTML.
3. mistune (tables, strikethrough, bare URLs, hard line breaks) with a
   renderer that wraps fenced code in a copy-button header and lazy-loads
   images.
4. Post-pass: sentinels are swapped for component HTML, headings get anchor
   ids, and external links open in a new tab.

MDX files go through the same pipeline; JSX beyond the known components is
left as raw HTML.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import re
import textwrap
from typing import Any

from . import components as comp


# Bump this whenever the render pipeline changes so stale cached HTML is
# automatically discarded and re-rendered on next page view.
RENDERER_VERSION = 3
_CACHE_STAMP = f'<!--rv:{RENDERER_VERSION}-->'

_BLOCK_SENTINEL = '<!--dp-block:{}-->'
_BLOCK_SENTINEL_RE = re.compile(r'(?:<p>)?<!--dp-block:(\d+)-->(?:</p>)?')

CALLOUT_TAGS = ("Note", "Warning", "Info", "Tip", "Check", "Danger", "Callout")
COMPONENT_TAGS = CALLOUT_TAGS + (
    "Tabs", "Steps", "AccordionGroup", "Accordion", "CodeGroup",
    "Columns", "Frame", "Expandable", "ResponseField",
)


# -----------------------------------------------------------------------------
# Props
# -----------------------------------------------------------------------------

_PROP_RE = re.compile(
    r'([A-Za-z_][\w-]*)'
    r'(?:\s*=\s*(?:"([^"]*)"|\'([^\']*)\'|\{([^}]*)\}|([^\s"\'{}>]+)))?'
)


def parse_props(raw: str) -> dict[str, Any]:
    """Parse JSX-ish attributes.

    ``title="x"`` → "x", ``cols={3}`` → "3", ``defaultOpen={true}`` and
    ``defaultOpen=true`` → True, a bare ``required`` → True.
    """
    props: dict[str, Any] = {}
    for m in _PROP_RE.finditer(raw or ""):
        name = m.group(1)
        dq, sq, expr = m.group(2), m.group(3), m.group(4) or m.group(5)
        if dq is not None:
            value: Any = dq
        elif sq is not None:
            value = sq
        elif expr is not None:
            expr = expr.strip().strip('"\'')
            value = {"true": True, "false": False}.get(expr, expr)
        else:
            value = True
        if value == "true":
            value = True
        elif value == "false":
            value = False
        props[name] = value
    return props


# -----------------------------------------------------------------------------
# Block pre-pass
# -----------------------------------------------------------------------------

_SCAN_RE = re.compile(
    r'(?P<fence>^[ \t]*(?P<fence_mark>`{3,}|~{3,})[^\n]*\n.*?^[ \t]*(?P=fence_mark)[ \t]*$)'
    r'|(?P<admonition>^:::(?P<adm_kind>info|warning)[ \t]*\n(?P<adm_body>.+?)\n:::[ \t]*$)'
    r'|(?P<component>^[ \t]*<(?P<tag>' + "|".join(COMPONENT_TAGS) + r')\b(?P<props>[^>]*?)(?P<selfclose>/)?>)',
    re.M | re.S,
)

_ADMONITION_TITLE_RE = re.compile(r'^#\s*(.*?)\s*#\s*(.*)$', re.S)

_CODE_FENCE_ITEM_RE = re.compile(
    r'^[ \t]*```[ \t]*([\w+#.-]+)(?:[ \t]+([^\n]*?))?[ \t]*\n(.*?)\n?[ \t]*```[ \t]*$',
    re.M | re.S,
)


def _dedent(body: str) -> str:
    return textwrap.dedent(body.strip("\n")).strip()


def _find_close(src: str, tag: str, start: int) -> tuple[int, int] | None:
    """Return ``(body_end, close_end)`` for the ``</tag>`` matching an opener at *start*."""
    token_re = re.compile(r'<(/?)' + tag + r'\b[^>]*?(/?)>')
    depth = 1
    for m in token_re.finditer(src, start):
        if m.group(1):
            depth -= 1
            if depth == 0:
                return m.start(), m.end()
        elif not m.group(2):
            depth += 1
    return None


def _children(body: str, tag: str) -> list[tuple[dict[str, Any], str]]:
    """Split *body* into ``(props, inner_source)`` for each top-level ``<tag>``."""
    out: list[tuple[dict[str, Any], str]] = []
    open_re = re.compile(r'<' + tag + r'\b([^>]*?)>')
    pos = 0
    while True:
        m = open_re.search(body, pos)
        if not m:
            break
        close = _find_close(body, tag, m.end())
        if close is None:
            break
        out.append((parse_props(m.group(1)), _dedent(body[m.end():close[0]])))
        pos = close[1]
    return out


def _render_component(tag: str, props: dict[str, Any], body: str) -> str:
    if tag in CALLOUT_TAGS:
        return comp.render_callout(tag, props, render_markdown(body))

    if tag == "Tabs":
        tabs = [{"title": p.get("title", f"Tab {i}"), "icon": p.get("icon"),
                 "html": render_markdown(inner)}
                for i, (p, inner) in enumerate(_children(body, "Tab"), 1)]
        return comp.render_tabs(tabs)

    if tag == "Steps":
        steps = [{"title": p.get("title", ""), "icon": p.get("icon"),
                  "html": render_markdown(inner)}
                 for p, inner in _children(body, "Step")]
        return comp.render_steps(steps)

    if tag == "AccordionGroup":
        items = [{**p, "html": render_markdown(inner)}
                 for p, inner in _children(body, "Accordion")]
        return comp.render_accordion_group(items)

    if tag == "Accordion":
        return comp.render_accordion(props, render_markdown(body))

    if tag == "Expandable":
        return comp.render_expandable(props, render_markdown(body))

    if tag == "CodeGroup":
        blocks = [{"language": m.group(1), "title": (m.group(2) or m.group(1)).strip(),
                   "code": m.group(3)}
                  for m in _CODE_FENCE_ITEM_RE.finditer(body)]
        return comp.render_code_group(blocks, dropdown=bool(props.get("dropdown")))

    if tag == "Columns":
        try:
            cols = max(1, int(props.get("cols", 2)))
        except (TypeError, ValueError):
            cols = 2
        cards = [{"title": p.get("title", ""), "icon": p.get("icon"),
                  "html": render_markdown(inner)}
                 for p, inner in _children(body, "Card")]
        return comp.render_columns(cols, cards)

    if tag == "Frame":
        return comp.render_frame(props.get("caption"), render_markdown(body))

    if tag == "ResponseField":
        return comp.render_response_field(props, render_markdown(body))

    raise ValueError(f"Unknown component <{tag}>")


def _preprocess(content: str, blocks: list[str]) -> str:
    """Replace component blocks in *content* with sentinels, appending their HTML to *blocks*."""
    out: list[str] = []
    pos = 0

    def _stash(fragment: str) -> None:
        blocks.append(fragment)
        out.append("\n\n" + _BLOCK_SENTINEL.format(len(blocks) - 1) + "\n\n")

    while True:
        m = _SCAN_RE.search(content, pos)
        if not m:
            break
        out.append(_inline_pass(content[pos:m.start()]))

        if m.group("fence"):
            out.append(m.group("fence"))
            pos = m.end()
            continue

        if m.group("admonition"):
            kind = m.group("adm_kind")
            raw  = m.group("adm_body").strip()
            title, message = kind, raw
            tm = _ADMONITION_TITLE_RE.match(raw)
            if tm:
                title, message = tm.group(1).strip(), tm.group(2).strip()
            _stash(comp.render_admonition(kind, title, render_markdown(message)))
            pos = m.end()
            continue

        tag   = m.group("tag")
        props = parse_props(m.group("props"))
        if m.group("selfclose"):
            _stash(_render_component(tag, props, ""))
            pos = m.end()
            continue
        close = _find_close(content, tag, m.end())
        if close is None:
            # Unterminated tag: leave the source as typed
            out.append(_inline_pass(m.group(0)))
            pos = m.end()
            continue
        _stash(_render_component(tag, props, _dedent(content[m.end():close[0]])))
        pos = close[1]

    out.append(_inline_pass(content[pos:]))
    return "".join(out)


# -----------------------------------------------------------------------------
# Inline pre-pass
# -----------------------------------------------------------------------------

_INLINE_RE = re.compile(
    r'(?P<code>(?P<ticks>`+)[^`].*?(?P=ticks))'
    r'|(?P<btn>\[(?P<btn_text>[^\]]*)\]\((?P<btn_href>[^)\s]*)\)\{\.btn\})'
    r'|(?P<color>\{color:(?P<color_kind>accent|secondary|warning)\}(?P<color_text>.*?)\{/color\})',
    re.S,
)


def _inline_pass(text: str) -> str:
    def _sub(m: re.Match) -> str:
        if m.group("code"):
            return m.group(0)
        if m.group("btn"):
            href = _html.escape(m.group("btn_href"), quote=True)
            return f'<a href="{href}" class="btn btn-outline-accent">{m.group("btn_text")}</a>'
        return f'<span class="color-{m.group("color_kind")}">{m.group("color_text")}</span>'
    return _INLINE_RE.sub(_sub, text)


# -----------------------------------------------------------------------------
# mistune
# -----------------------------------------------------------------------------

def _make_md_renderer():
    import mistune
    from mistune.plugins.formatting import strikethrough
    from mistune.plugins.table import table
    from mistune.plugins.url import url

    class _DocsRenderer(mistune.HTMLRenderer):
        def codespan(self, code: str) -> str:
            return f'<code>{_html.escape(code)}</code>'

        def block_code(self, code: str, **kwargs) -> str:
            info = kwargs.get('info') or ''
            lang = info.split()[0] if info.strip() else ''
            return comp.code_block(code.rstrip("\n"), lang) + "\n"

        def image(self, text: str, url: str, title: str | None = None) -> str:
            src   = self.safe_url(url)
            alt   = _html.escape(text or "", quote=True)
            title_attr = f' title="{_html.escape(title, quote=True)}"' if title else ""
            return f'<img src="{src}" alt="{alt}"{title_attr} loading="lazy">'

    return mistune.create_markdown(
        renderer=_DocsRenderer(escape=False),
        plugins=[table, strikethrough, url],
        hard_wrap=True,
    )


_md_renderer = None


def _get_md_renderer():
    global _md_renderer
    if _md_renderer is None:
        _md_renderer = _make_md_renderer()
    return _md_renderer


# -----------------------------------------------------------------------------

def render_markdown(content: str) -> str:
    """Render a markdown fragment (components included) without post-processing."""
    if not content.strip():
        return ""
    blocks: list[str] = []
    processed = _preprocess(content.replace("\r\n", "\n"), blocks)
    html = _get_md_renderer()(processed)

    def _restore(m: re.Match) -> str:
        return blocks[int(m.group(1))]

    return _BLOCK_SENTINEL_RE.sub(_restore, html).strip()


# -----------------------------------------------------------------------------
# Heading anchors / TOC
# -----------------------------------------------------------------------------

# Only bare headings produced by mistune; component titles carry a class.
_HEADING_RE = re.compile(r'<(h[1-6])>(.*?)</h[1-6]>', re.IGNORECASE | re.DOTALL)
_ANCHORED_RE = re.compile(r'<h([1-6]) id="([^"]+)">(.*?)</h\1>', re.IGNORECASE | re.DOTALL)
_STRIP_TAGS_RE = re.compile(r'<[^>]+>')


def slugify_anchor(text: str) -> str:
    """Convert heading text to a URL-safe anchor ID."""
    text = _html.unescape(_STRIP_TAGS_RE.sub('', text))
    text = text.strip().lower()
    text = re.sub(r'[^\w\s-]', '', text)
    text = re.sub(r'[\s_]+', '-', text)
    text = re.sub(r'-+', '-', text)
    return text.strip('-') or 'section'


def _add_heading_ids(html: str) -> str:
    used: set[str] = set()

    def _anchor(m: re.Match) -> str:
        tag, inner = m.group(1).lower(), m.group(2)
        base = anchor = slugify_anchor(inner)
        n = 0
        while anchor in used:
            n += 1
            anchor = f'{base}-{n}'
        used.add(anchor)
        return f'<{tag} id="{anchor}">{inner}</{tag}>'

    return _HEADING_RE.sub(_anchor, html)


def extract_toc(html: str, levels: tuple[int, ...] = (2, 3)) -> list[dict[str, Any]]:
    """Return ``[{level, id, text}]`` for anchored headings in rendered *html*."""
    toc: list[dict[str, Any]] = []
    for m in _ANCHORED_RE.finditer(html):
        level = int(m.group(1))
        if level in levels:
            text = _html.unescape(_STRIP_TAGS_RE.sub('', m.group(3))).strip()
            toc.append({"level": level, "id": m.group(2), "text": text})
    return toc


# -----------------------------------------------------------------------------
# External link post-processor
# -----------------------------------------------------------------------------

_EXT_LINK_RE = re.compile(
    r'<a\s([^>]*href=["\'](?:https?://|//)[^"\'>][^>]*)>',
    re.IGNORECASE,
)


def _add_external_link_targets(html: str) -> str:
    """Add target="_blank" rel="noopener noreferrer" to all external <a> tags."""
    def _patch(m: re.Match) -> str:
        attrs = m.group(1)
        if "target=" in attrs:
            return m.group(0)
        return f'<a {attrs} target="_blank" rel="noopener noreferrer">'
    return _EXT_LINK_RE.sub(_patch, html)


# -----------------------------------------------------------------------------
# Public render function
# -----------------------------------------------------------------------------

def render(content: str, file_type: str = "md") -> str:
    """
    Render documentation source to HTML.

    Parameters
    ----------
    content   : raw markdown / MDX text
    file_type : "md" or "mdx" (both use the markdown pipeline)

    The result starts with a renderer-version stamp; see ``is_cache_valid``.
    """
    file_type = (file_type or "md").lower().lstrip(".")
    if file_type not in ("md", "mdx", "markdown"):
        return _CACHE_STAMP + f"<pre>{_html.escape(content)}</pre>"
    html = render_markdown(content)
    return _CACHE_STAMP + _add_external_link_targets(_add_heading_ids(html))


def render_document(content: str, file_type: str = "md") -> tuple[str, list[dict[str, Any]]]:
    """Return ``(html, toc)`` for a full document."""
    html = render(content, file_type)
    return html, extract_toc(html)


def is_cache_valid(rendered: str | None) -> bool:
    """Return True only if *rendered* was produced by the current renderer version."""
    return rendered is not None and rendered.startswith(_CACHE_STAMP)


# -----------------------------------------------------------------------------
