#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Tests for fuzzy search: the in-memory index, snippet highlighting and the
/api/search endpoint, including incremental updates after editor saves.
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest
from fastapi import HTTPException
from httpx import AsyncClient

from docportal.services.search import (
    THRESHOLD, SearchIndex, extract_plain_text, field_score, group_by_category,
    highlight, make_snippet,
)


# ── Scoring ───────────────────────────────────────────────────────────────────

def test_field_score_exact_substring():
    assert field_score("install", "Installation guide") == 0.0


def test_field_score_typo_tolerance():
    score = field_score("instalation", "Installation guide")
    assert score is not None
    assert 0.0 < score <= THRESHOLD


def test_field_score_no_match():
    assert field_score("kubernetes", "Installation guide") is None
    assert field_score("a", "a b c") is None          # too short
    assert field_score("install", "") is None


# ── Text helpers ──────────────────────────────────────────────────────────────

def test_extract_plain_text():
    md = "# Title\n\nSome **bold** and [a link](/x).\n\n```py\ncode()\n```\n\n- item\n<Note>hi</Note>"
    text = extract_plain_text(md)
    assert text == "Title Some bold and a link. item hi"


def test_highlight_escapes_and_marks():
    out = highlight("Use <b>install</b> to Install", "install")
    assert out == ("Use &lt;b&gt;<mark>install</mark>&lt;/b&gt; to <mark>Install</mark>")


def test_highlight_does_not_match_inside_entities():
    assert highlight("Tom & Jerry", "amp") == "Tom &amp; Jerry"
    assert highlight("R&D <lt> notes", "lt notes") == "R&amp;D &lt;<mark>lt</mark>&gt; <mark>notes</mark>"
    assert highlight("x&y", "x&y") == "<mark>x&amp;y</mark>"


def test_highlight_multiple_terms():
    out = highlight("deploy the api server", "api deploy")
    assert "<mark>deploy</mark>" in out
    assert "<mark>api</mark>" in out


def test_make_snippet_centres_on_match():
    text = "lorem " * 60 + "needle in the haystack " + "ipsum " * 60
    snippet = make_snippet(text, "needle", width=60)
    assert "needle" in snippet
    assert snippet.startswith("…")
    assert snippet.endswith("…")


def test_group_by_category_keeps_order():
    results = [{"category": "b", "id": 1}, {"category": "a", "id": 2}, {"category": "b", "id": 3}]
    groups = group_by_category(results)
    assert [g["category"] for g in groups] == ["b", "a"]
    assert [r["id"] for r in groups[0]["results"]] == [1, 3]


# ── Index ─────────────────────────────────────────────────────────────────────

def test_index_build(sample_docs):
    index = SearchIndex()
    assert index.build() == 6
    assert index.stats() == {
        "total_documents": 6, "indexed": True, "products": ["quantom", "terminus"],
    }
    doc = next(d for d in index.documents if d.title == "Installation")
    assert doc.url == "/docs/quantom/getting-started/installation"
    assert doc.category == "getting-started"
    assert doc.product_id == "quantom"
    assert "pip install" not in doc.content


def test_index_root_document_category_is_product(sample_docs):
    index = SearchIndex()
    index.build()
    landing = next(d for d in index.documents if d.path == "quantom/index.md")
    assert landing.category == "quantom"
    assert landing.url == "/docs/quantom"


def test_search_ranks_title_match_first(sample_docs):
    index = SearchIndex()
    results = index.search("overview")
    assert results[0]["title"] == "Terminus Overview"
    assert "<mark>Overview</mark>" in results[0]["highlighted"]
    scores = [r["score"] for r in results]
    assert scores == sorted(scores)


def test_search_fuzzy(sample_docs):
    results = SearchIndex().search("instalation")
    assert results
    assert results[0]["title"] == "Installation"


def test_search_product_filter(sample_docs):
    index = SearchIndex()
    results = index.search("overview", product="quantom")
    assert results
    assert {r["product_id"] for r in results} == {"quantom"}


def test_search_limit(sample_docs):
    results = SearchIndex().search("quantom", limit=2)
    assert len(results) == 2


def test_search_blank_query(sample_docs):
    with pytest.raises(HTTPException) as exc:
        SearchIndex().search("   ")
    assert exc.value.status_code == 400


def test_incremental_updates(sample_docs):
    index = SearchIndex()
    index.build()
    new = sample_docs / "terminus" / "01-basics" / "02-rollback.md"
    new.write_text("# Rollback\n\nUndo a deployment.\n")
    index.update_file("terminus/01-basics/02-rollback.md")
    assert index.search("rollback")[0]["title"] == "Rollback"

    index.remove_prefix("terminus")
    assert all(d.product_id != "terminus" for d in index.documents)
    index.reindex_prefix("terminus/01-basics")
    assert {d.title for d in index.documents if d.product_id == "terminus"} == {
        "Terminus Overview", "Rollback",
    }


def test_unbuilt_index_ignores_updates(sample_docs):
    index = SearchIndex()
    index.update_file("quantom/index.md")
    assert index.documents == []
    assert index.indexed is False


# ── API ───────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_search_api(client: AsyncClient, sample_docs):
    resp = await client.get("/api/search", params={"q": "overview"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["query"] == "overview"
    assert data["count"] == len(data["results"])
    assert data["results"][0]["url"] == "/docs/terminus/basics/overview"
    categories = [g["category"] for g in data["groups"]]
    assert "basics" in categories
    assert "getting-started" in categories


@pytest.mark.asyncio
async def test_search_api_requires_query(client: AsyncClient, sample_docs):
    resp = await client.get("/api/search", params={"q": "  "})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Search query is required"


@pytest.mark.asyncio
async def test_search_api_limit_bounds(client: AsyncClient, sample_docs):
    resp = await client.get("/api/search", params={"q": "quantom", "limit": 0})
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_search_stats(client: AsyncClient, sample_docs):
    resp = await client.get("/api/search/stats")
    assert resp.status_code == 200
    assert resp.json()["total_documents"] == 6


@pytest.mark.asyncio
async def test_search_sees_editor_saves(client: AsyncClient, sample_docs, editor_headers):
    await client.get("/api/search/stats")      # builds the index

    resp = await client.post("/api/files/save", headers=editor_headers, json={
        "file_path": "terminus/01-basics/02-rollback.md",
        "content": "# Rollback\n\nUndo a deployment.\n",
    })
    assert resp.status_code == 200
    resp = await client.get("/api/search", params={"q": "rollback"})
    assert resp.json()["results"][0]["title"] == "Rollback"

    await client.delete("/api/files/terminus", headers=editor_headers,
                        params={"file_path": "01-basics/02-rollback.md"})
    resp = await client.get("/api/search", params={"q": "rollback", "product": "terminus"})
    assert all(r["title"] != "Rollback" for r in resp.json()["results"])


@pytest.mark.asyncio
async def test_search_rebuild_requires_admin(client: AsyncClient, sample_docs,
                                             editor_headers, admin_headers):
    resp = await client.post("/api/search/rebuild", headers=editor_headers)
    assert resp.status_code == 403
    resp = await client.post("/api/search/rebuild", headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["message"] == "Indexed 6 documents"


# -----------------------------------------------------------------------------
