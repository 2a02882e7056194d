#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Component HTML builders
=======================
One function per documentation component.  Each takes already-parsed props
and already-rendered body HTML and returns an HTML fragment; parsing the
``<Tabs>`` / ``<Steps>`` / ... source is done by ``renderer``.

Interactive components (tabs, accordions, code groups, expandables) carry a
random id and the class hooks ``static/js/docs.js`` binds to.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import html as _html
import secrets
import string
from typing import Any


CALLOUT_TYPES: dict[str, str] = {
    "note":    "fas fa-info-circle",
    "warning": "fas fa-exclamation-triangle",
    "info":    "fas fa-info-circle",
    "tip":     "fas fa-lightbulb",
    "check":   "fas fa-check-circle",
    "danger":  "fas fa-exclamation-circle",
}

ADMONITION_ICONS: dict[str, str] = {
    "info":    "fas fa-info-circle",
    "warning": "fas fa-exclamation-triangle",
}

_ID_ALPHABET = string.ascii_lowercase + string.digits


# -----------------------------------------------------------------------------

def new_id(prefix: str) -> str:
    """Return ``<prefix>-`` followed by 9 random lowercase alphanumerics."""
    return f"{prefix}-" + "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))


def _esc(value: Any) -> str:
    return _html.escape(str(value), quote=True)


def _fa_icon(icon: str | None, extra: str = "") -> str:
    if not icon:
        return ""
    cls = f"fas fa-{_esc(icon)}"
    if extra:
        cls += f" {extra}"
    return f'<i class="{cls}"></i>'


# -----------------------------------------------------------------------------
# Code blocks
# -----------------------------------------------------------------------------

def resolve_language(lang: str | None) -> str:
    """Return *lang* if Pygments knows it, else ``"plaintext"``."""
    from pygments.lexers import get_lexer_by_name
    from pygments.util import ClassNotFound

    lang = (lang or "").strip().lower()
    if not lang or lang in ("plaintext", "text", "plain"):
        return "plaintext"
    try:
        get_lexer_by_name(lang)
    except ClassNotFound:
        return "plaintext"
    return lang


def highlight_code(code: str, lang: str) -> str:
    """Highlight *code* with Pygments, returning the inner markup only (no <pre>)."""
    from pygments import highlight
    from pygments.formatters import HtmlFormatter
    from pygments.lexers import get_lexer_by_name

    if lang == "plaintext":
        return _html.escape(code)
    lexer = get_lexer_by_name(lang, stripnl=False)
    return highlight(code, lexer, HtmlFormatter(nowrap=True)).rstrip("\n")


def code_block(code: str, lang: str | None, label: str | None = None) -> str:
    """Code block with a language label and a copy-to-clipboard button."""
    valid = resolve_language(lang)
    if label is None:
        label = valid[:1].upper() + valid[1:]
    return (
        '<div class="code-block-wrapper">'
        '<div class="code-block-header">'
        f'<span class="code-language">{_esc(label)}</span>'
        f'<button class="copy-code-btn" data-clipboard-text="{_esc(code)}">'
        '<i class="fa-regular fa-copy"></i> Copy</button>'
        '</div>'
        f'<pre class="highlight language-{valid}"><code class="language-{valid}">'
        f'{highlight_code(code, valid)}</code></pre>'
        '</div>'
    )


# -----------------------------------------------------------------------------
# Callouts and admonitions
# -----------------------------------------------------------------------------

def render_callout(kind: str, props: dict[str, Any], body_html: str) -> str:
    kind = kind.lower()
    if kind == "callout":
        icon_type = props.get("iconType")
        icon_cls = f"fa-{_esc(icon_type)}" if icon_type else "fas"
        icon = props.get("icon") or "info-circle"
        style = f' style="border-left-color: {_esc(props["color"])};"' if props.get("color") else ""
        return (
            f'<div class="callout callout-custom"{style}>'
            f'<div class="callout-icon"><i class="{icon_cls} fa-{_esc(icon)}"></i></div>'
            f'<div class="callout-content">{body_html}</div>'
            '</div>'
        )
    if kind not in CALLOUT_TYPES:
        kind = "note"
    return (
        f'<div class="callout callout-{kind}">'
        f'<div class="callout-icon"><i class="{CALLOUT_TYPES[kind]}"></i></div>'
        f'<div class="callout-content">{body_html}</div>'
        '</div>'
    )


def render_admonition(kind: str, title: str, message_html: str) -> str:
    icon = ADMONITION_ICONS.get(kind, ADMONITION_ICONS["info"])
    return (
        f'<div class="{kind}-box">'
        f'<div class="{kind}-title"><i class="{icon}"></i>'
        f'<span>{_esc(title.upper())}</span></div>'
        f'{message_html}'
        '</div>'
    )


# -----------------------------------------------------------------------------
# Tabs
# -----------------------------------------------------------------------------

def render_tabs(tabs: list[dict[str, Any]], uid: str | None = None) -> str:
    """*tabs* items carry ``title``, optional ``icon`` and rendered ``html``."""
    uid = uid or new_id("tabs")
    buttons: list[str] = []
    panels:  list[str] = []
    for i, tab in enumerate(tabs):
        active = " active" if i == 0 else ""
        buttons.append(
            f'<button class="tab-button{active}" data-tab-index="{i}">'
            f'{_fa_icon(tab.get("icon"))}<span>{_esc(tab["title"])}</span></button>'
        )
        panels.append(f'<div class="tab-panel{active}" data-tab-index="{i}">{tab["html"]}</div>')
    return (
        f'<div class="tabs-container" id="{uid}">'
        f'<div class="tabs-header">{"".join(buttons)}</div>'
        f'<div class="tabs-content">{"".join(panels)}</div>'
        '</div>'
    )


# -----------------------------------------------------------------------------
# Steps
# -----------------------------------------------------------------------------

def render_steps(steps: list[dict[str, Any]]) -> str:
    items: list[str] = []
    for i, step in enumerate(steps, 1):
        indicator = _fa_icon(step.get("icon")) or f'<span class="step-number">{i}</span>'
        items.append(
            '<div class="step-item">'
            f'<div class="step-indicator">{indicator}</div>'
            '<div class="step-content">'
            f'<h3 class="step-title">{_esc(step["title"])}</h3>'
            f'<div class="step-body">{step["html"]}</div>'
            '</div></div>'
        )
    return f'<div class="steps-container">{"".join(items)}</div>'


# -----------------------------------------------------------------------------
# Accordions / expandables
# -----------------------------------------------------------------------------

def render_accordion(props: dict[str, Any], body_html: str, uid: str | None = None) -> str:
    uid = uid or new_id("accordion")
    active = " active" if props.get("defaultOpen") else ""
    desc = (f'<p class="accordion-description">{_esc(props["description"])}</p>'
            if props.get("description") else "")
    return (
        f'<div class="accordion-item{active}" id="{uid}">'
        '<div class="accordion-header">'
        '<div class="accordion-title-wrapper">'
        f'{_fa_icon(props.get("icon"))}'
        f'<div><h3 class="accordion-title">{_esc(props.get("title", ""))}</h3>{desc}</div>'
        '</div>'
        '<i class="fas fa-chevron-down accordion-icon"></i>'
        '</div>'
        f'<div class="accordion-content"><div class="accordion-body">{body_html}</div></div>'
        '</div>'
    )


def render_accordion_group(items: list[dict[str, Any]]) -> str:
    inner = "".join(render_accordion(item, item["html"]) for item in items)
    return f'<div class="accordion-group">{inner}</div>'


def render_expandable(props: dict[str, Any], body_html: str, uid: str | None = None) -> str:
    uid = uid or new_id("expandable")
    active = " active" if props.get("defaultOpen") else ""
    return (
        f'<div class="expandable-item{active}" id="{uid}">'
        '<div class="expandable-header">'
        f'<span class="expandable-title">{_esc(props.get("title", ""))}</span>'
        '<i class="fas fa-chevron-down expandable-icon"></i>'
        '</div>'
        f'<div class="expandable-content">{body_html}</div>'
        '</div>'
    )


# -----------------------------------------------------------------------------
# Code groups
# -----------------------------------------------------------------------------

def render_code_group(blocks: list[dict[str, str]], dropdown: bool = False,
                      uid: str | None = None) -> str:
    """*blocks* items carry ``language``, ``title`` and raw ``code``."""
    uid = uid or new_id("codegroup")
    bodies: list[str] = []
    for i, block in enumerate(blocks):
        inner = code_block(block["code"], block["language"], label=block["language"])
        if dropdown:
            display = "block" if i == 0 else "none"
            bodies.append(f'<div class="code-group-block" data-index="{i}" '
                          f'style="display: {display};">{inner}</div>')
        else:
            active = " active" if i == 0 else ""
            bodies.append(f'<div class="code-group-block{active}" data-index="{i}">{inner}</div>')

    if dropdown:
        options = "".join(f'<option value="{i}">{_esc(b["title"])}</option>'
                          for i, b in enumerate(blocks))
        return (
            f'<div class="code-group code-group-dropdown" id="{uid}">'
            f'<div class="code-group-selector"><select data-group-id="{uid}">{options}</select></div>'
            f'<div class="code-group-content">{"".join(bodies)}</div>'
            '</div>'
        )

    tabs = "".join(
        f'<button class="code-group-tab{" active" if i == 0 else ""}" data-tab-index="{i}">'
        f'{_esc(b["title"])}</button>'
        for i, b in enumerate(blocks)
    )
    return (
        f'<div class="code-group" id="{uid}">'
        f'<div class="code-group-tabs">{tabs}</div>'
        f'<div class="code-group-content">{"".join(bodies)}</div>'
        '</div>'
    )


# -----------------------------------------------------------------------------
# Layout
# -----------------------------------------------------------------------------

def render_columns(cols: int, cards: list[dict[str, Any]]) -> str:
    items = "".join(
        '<div class="column-card">'
        f'{_fa_icon(card.get("icon"), "card-icon")}'
        f'<h3 class="card-title">{_esc(card["title"])}</h3>'
        f'<div class="card-content">{card["html"]}</div>'
        '</div>'
        for card in cards
    )
    return (f'<div class="columns-container" style="grid-template-columns: '
            f'repeat({cols}, 1fr);">{items}</div>')


def render_frame(caption: str | None, body_html: str) -> str:
    cap = f'<p class="frame-caption">{_esc(caption)}</p>' if caption else ""
    return f'<div class="frame-container"><div class="frame-content">{body_html}</div>{cap}</div>'


# -----------------------------------------------------------------------------
# API reference
# -----------------------------------------------------------------------------

def render_response_field(props: dict[str, Any], body_html: str) -> str:
    badges = ""
    if props.get("required"):
        badges += '<span class="field-badge field-required">required</span>'
    if props.get("deprecated"):
        badges += '<span class="field-badge field-deprecated">deprecated</span>'
    if props.get("default") not in (None, True):
        badges += f'<span class="field-badge field-default">default: {_esc(props["default"])}</span>'
    return (
        '<div class="response-field">'
        '<div class="response-field-header">'
        f'<span class="field-name">{_esc(props.get("name", ""))}</span>'
        f'<span class="field-type">{_esc(props.get("type", ""))}</span>'
        f'{badges}'
        '</div>'
        f'<div class="response-field-content">{body_html}</div>'
        '</div>'
    )


# -----------------------------------------------------------------------------
