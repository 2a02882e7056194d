#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Editor helpers router
=====================
POST /api/render          live preview: markdown → {html, toc}
POST /api/convert         WYSIWYG HTML → markdown
GET  /api/slash-commands  slash-command templates, filtered by ?q=
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Query

from docportal.schemas import ConvertRequest, RenderRequest, RenderResponse, SlashCommandList
from docportal.services.converter import html_to_markdown
from docportal.services.renderer import render_document
from docportal.services.snippets import filter_commands


# -----------------------------------------------------------------------------

router = APIRouter(tags=["editor"])


# -----------------------------------------------------------------------------

@router.post("/render", response_model=RenderResponse)
async def render_preview(data: RenderRequest):
    html, toc = render_document(data.content, data.file_type)
    return {"html": html, "toc": toc}


# -----------------------------------------------------------------------------

@router.post("/convert")
async def convert(data: ConvertRequest):
    return {"markdown": html_to_markdown(data.html)}


# -----------------------------------------------------------------------------

@router.get("/slash-commands", response_model=SlashCommandList)
async def slash_commands(q: str = Query("", max_length=64)):
    return {"commands": filter_commands(q)}


# -----------------------------------------------------------------------------
