#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""Tests for the file editor API: tree, read/write, create, copy, rename, move, delete, upload."""
# -----------------------------------------------------------------------------

from __future__ import annotations

import pytest
from fastapi import HTTPException
from httpx import AsyncClient

from docportal.core.config import get_settings
from docportal.services import files as file_svc


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


# ── Access ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_files_require_editor(client: AsyncClient, sample_docs, user_headers):
    assert (await client.get("/api/files/tree")).status_code == 401
    assert (await client.get("/api/files/tree", headers=user_headers)).status_code == 403


# ── Tree / read ───────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_file_tree(client: AsyncClient, sample_docs, editor_headers):
    (sample_docs / "README.txt").write_text("root file")
    resp = await client.get("/api/files/tree", headers=editor_headers)
    assert resp.status_code == 200
    tree = resp.json()["tree"]
    assert [(n["name"], n["type"]) for n in tree] == [
        ("quantom", "folder"), ("terminus", "folder"), ("README.txt", "file"),
    ]
    quantom = tree[0]
    assert [n["name"] for n in quantom["children"]] == [
        "01-getting-started", "02-api-reference", "index.md",
    ]


@pytest.mark.asyncio
async def test_product_file_tree(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.get("/api/files/terminus/tree", headers=editor_headers)
    assert resp.status_code == 200
    basics = resp.json()["tree"][0]
    assert basics["path"] == "01-basics"
    assert basics["children"][0]["extension"] == ".md"


@pytest.mark.asyncio
async def test_read_file(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.get("/api/files/content", headers=editor_headers,
                            params={"file_path": "quantom/index.md"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["content"].startswith("# Quantom")
    assert data["file_type"] == "md"

    resp = await client.get("/api/files/quantom/content", headers=editor_headers,
                            params={"file_path": "02-api-reference/01-endpoints/01-users.mdx"})
    assert resp.status_code == 200
    assert resp.json()["file_type"] == "mdx"


@pytest.mark.asyncio
async def test_read_file_errors(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.get("/api/files/content", headers=editor_headers,
                            params={"file_path": "quantom/missing.md"})
    assert resp.status_code == 404
    resp = await client.get("/api/files/content", headers=editor_headers,
                            params={"file_path": "../outside.md"})
    assert resp.status_code == 403


# ── Save ──────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_save_file(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.post("/api/files/save", headers=editor_headers, json={
        "file_path": "quantom/index.md", "content": "# Quantom\n\nUpdated.\n",
    })
    assert resp.status_code == 200
    assert resp.json()["path"] == "quantom/index.md"
    assert (sample_docs / "quantom" / "index.md").read_text() == "# Quantom\n\nUpdated.\n"


@pytest.mark.asyncio
async def test_save_file_invalidates_render_cache(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.get("/api/docs/quantom/getting-started/introduction")
    assert "realtime analytics" in resp.json()["content"]

    await client.post("/api/files/save", headers=editor_headers, json={
        "file_path": "quantom/01-getting-started/01-introduction.md",
        "content": "# Introduction\n\nBrand new text.\n",
    })
    resp = await client.get("/api/docs/quantom/getting-started/introduction")
    assert "Brand new text" in resp.json()["content"]


@pytest.mark.asyncio
async def test_save_file_rejects_other_types(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.post("/api/files/save", headers=editor_headers, json={
        "file_path": "quantom/run.sh", "content": "echo hi",
    })
    assert resp.status_code == 400
    resp = await client.post("/api/files/save", headers=editor_headers, json={
        "file_path": "quantom/01-getting-started", "content": "x",
    })
    assert resp.status_code == 400


# ── Create ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_create_file_in_product(client: AsyncClient, sample_docs, editor_headers):
    payload = {"type": "file", "name": "03-faq.md",
               "folder_path": "01-getting-started", "content": "# FAQ\n"}
    resp = await client.post("/api/files/quantom", headers=editor_headers, json=payload)
    assert resp.status_code == 200
    assert resp.json()["path"] == "quantom/01-getting-started/03-faq.md"
    assert (sample_docs / "quantom" / "01-getting-started" / "03-faq.md").read_text() == "# FAQ\n"

    resp = await client.post("/api/files/quantom", headers=editor_headers, json=payload)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "File or folder already exists"


@pytest.mark.asyncio
async def test_create_folder(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.post("/api/files/create", headers=editor_headers, json={
        "type": "folder", "name": "03-guides", "product": "quantom",
    })
    assert resp.status_code == 200
    assert resp.json()["message"] == "Folder created successfully"
    assert (sample_docs / "quantom" / "03-guides").is_dir()


@pytest.mark.asyncio
async def test_create_rejects_bad_input(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.post("/api/files/create", headers=editor_headers, json={
        "type": "symlink", "name": "x",
    })
    assert resp.status_code == 422
    resp = await client.post("/api/files/create", headers=editor_headers, json={
        "type": "file", "name": "a/b.md",
    })
    assert resp.status_code == 400
    resp = await client.post("/api/files/create", headers=editor_headers, json={
        "type": "file", "name": "x.md", "folder_path": "../..",
    })
    assert resp.status_code == 403


# ── Duplicate ─────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_duplicate_file(client: AsyncClient, sample_docs, editor_headers):
    first = await client.post("/api/files/duplicate", headers=editor_headers,
                              json={"file_path": "quantom/index.md"})
    second = await client.post("/api/files/duplicate", headers=editor_headers,
                               json={"file_path": "quantom/index.md"})
    assert first.json()["path"] == "quantom/index - Copy.md"
    assert second.json()["path"] == "quantom/index - Copy (2).md"
    assert (sample_docs / "quantom" / "index - Copy (2).md").read_text().startswith("# Quantom")


@pytest.mark.asyncio
async def test_duplicate_folder(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.post("/api/files/duplicate", headers=editor_headers,
                             json={"file_path": "terminus/01-basics"})
    assert resp.status_code == 200
    assert resp.json()["path"] == "terminus/01-basics - Copy"
    assert (sample_docs / "terminus" / "01-basics - Copy" / "01-overview.md").is_file()


def test_product_scoped_paths_are_product_relative(sample_docs):
    copy = file_svc.duplicate_item("01-getting-started/01-introduction.md", product="quantom")
    assert copy == "01-getting-started/01-introduction - Copy.md"
    assert (sample_docs / "quantom" / copy).is_file()

    renamed = file_svc.rename_item(copy, "01-intro-copy.md", product="quantom")
    assert renamed == "01-getting-started/01-intro-copy.md"


# ── Rename / move / delete ────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_rename(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.post("/api/files/quantom/rename", headers=editor_headers, json={
        "old_path": "01-getting-started/02-installation.md", "new_name": "02-setup.md",
    })
    assert resp.status_code == 200
    assert resp.json()["path"] == "01-getting-started/02-setup.md"
    folder = sample_docs / "quantom" / "01-getting-started"
    assert (folder / "02-setup.md").is_file()
    assert not (folder / "02-installation.md").exists()

    resp = await client.post("/api/files/quantom/rename", headers=editor_headers, json={
        "old_path": "01-getting-started/02-setup.md", "new_name": "01-introduction.md",
    })
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_move(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.post("/api/files/quantom/move", headers=editor_headers, json={
        "source_path": "01-getting-started/01-introduction.md",
        "target_path": "02-api-reference",
    })
    assert resp.status_code == 200
    assert resp.json()["path"] == "02-api-reference/01-introduction.md"
    assert (sample_docs / "quantom" / "02-api-reference" / "01-introduction.md").is_file()


@pytest.mark.asyncio
async def test_move_errors(client: AsyncClient, sample_docs, editor_headers):
    async def move(source, target):
        return await client.post("/api/files/quantom/move", headers=editor_headers,
                                 json={"source_path": source, "target_path": target})

    assert (await move("missing.md", "")).json()["detail"] == "Source not found"
    assert (await move("index.md", "nowhere")).json()["detail"] == "Target folder not found"
    resp = await move("02-api-reference", "02-api-reference/01-endpoints")
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cannot move a folder into itself"

    (sample_docs / "quantom" / "01-getting-started" / "index.md").write_text("# dup")
    resp = await move("index.md", "01-getting-started")
    assert resp.json()["detail"] == "A file with that name already exists in target folder"


@pytest.mark.asyncio
async def test_delete(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.delete("/api/files/quantom", headers=editor_headers,
                               params={"file_path": "01-getting-started"})
    assert resp.status_code == 200
    assert not (sample_docs / "quantom" / "01-getting-started").exists()

    resp = await client.delete("/api/files/quantom", headers=editor_headers,
                               params={"file_path": "01-getting-started"})
    assert resp.status_code == 400


# ── Upload ────────────────────────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_upload_image(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.post(
        "/api/files/quantom/upload", headers=editor_headers,
        files={"file": ("My Shot.PNG", PNG_BYTES, "image/png")},
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["url"] == "/images/quantom/my-shot.png"
    assert data["size"] == len(PNG_BYTES)
    assert (get_settings().images_root / "quantom" / "my-shot.png").read_bytes() == PNG_BYTES

    again = await client.post(
        "/api/files/quantom/upload", headers=editor_headers,
        files={"file": ("My Shot.PNG", PNG_BYTES, "image/png")},
    )
    assert again.json()["filename"] == "my-shot-1.png"

    served = await client.get(data["url"])
    assert served.status_code == 200
    assert served.content == PNG_BYTES


@pytest.mark.asyncio
async def test_upload_rejects_bad_files(client: AsyncClient, sample_docs, editor_headers):
    resp = await client.post("/api/files/quantom/upload", headers=editor_headers,
                             files={"file": ("notes.txt", b"hello", "text/plain")})
    assert resp.status_code == 415
    resp = await client.post("/api/files/quantom/upload", headers=editor_headers,
                             files={"file": ("empty.png", b"", "image/png")})
    assert resp.status_code == 400
    resp = await client.post("/api/files/nope/upload", headers=editor_headers,
                             files={"file": ("a.png", PNG_BYTES, "image/png")})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_upload_too_large(client: AsyncClient, sample_docs, editor_headers, monkeypatch):
    monkeypatch.setenv("MAX_UPLOAD_BYTES", "16")
    get_settings.cache_clear()
    resp = await client.post("/api/files/quantom/upload", headers=editor_headers,
                             files={"file": ("big.png", PNG_BYTES, "image/png")})
    assert resp.status_code == 413


@pytest.mark.asyncio
async def test_upload_rate_limited(client: AsyncClient, sample_docs, editor_headers):
    limit = get_settings().upload_rate_limit
    for i in range(limit):
        resp = await client.post("/api/files/quantom/upload", headers=editor_headers,
                                 files={"file": (f"{i}.png", PNG_BYTES, "image/png")})
        assert resp.status_code == 201
    resp = await client.post("/api/files/quantom/upload", headers=editor_headers,
                             files={"file": ("last.png", PNG_BYTES, "image/png")})
    assert resp.status_code == 429


# ── Service helpers ───────────────────────────────────────────────────────────

@pytest.mark.parametrize("name,expected", [
    ("My Screenshot (1).PNG", "my-screenshot-1-.png"),
    ("../../etc/passwd",      "passwd"),
    ("",                      "upload"),
    ("...",                   "upload"),
])
def test_safe_filename(name, expected):
    assert file_svc.safe_filename(name) == expected


def test_delete_product_root_rejected(sample_docs):
    with pytest.raises(HTTPException) as exc:
        file_svc.delete_item("", product="quantom")
    assert exc.value.status_code == 400


# -----------------------------------------------------------------------------
