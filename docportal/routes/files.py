#!/usr/bin/env python
#
#
# -----------------------------------------------------------------------------
"""
Files router (editor API, all [editor])
=======================================
GET    /api/files/tree                  whole content tree
GET    /api/files/content?file_path=    raw file
POST   /api/files/save                  write file
POST   /api/files/create                new file/folder
POST   /api/files/duplicate             copy with " - Copy" suffix
GET    /api/files/{product}/tree        one product's tree
GET    /api/files/{product}/content?file_path=
POST   /api/files/{product}             new file/folder in product
DELETE /api/files/{product}?file_path=  delete file/folder
POST   /api/files/{product}/rename
POST   /api/files/{product}/move
POST   /api/files/{product}/upload      image upload (rate limited)
"""
# -----------------------------------------------------------------------------

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, UploadFile

from docportal.core.security import enforce_rate_limit, require_editor
from docportal.schemas import (
    FileContentResponse, FileCreateRequest, FileDuplicateRequest, FileMoveRequest,
    FileOpResponse, FileRenameRequest, FileSaveRequest, UploadResponse,
)
from docportal.services import content as content_svc
from docportal.services import files as file_svc


# -----------------------------------------------------------------------------

router = APIRouter(prefix="/files", tags=["files"], dependencies=[Depends(require_editor)])


def _index(request: Request):
    return request.app.state.search_index


# ── Whole tree ────────────────────────────────────────────────────────────────

@router.get("/tree")
async def file_tree():
    root = content_svc.content_root()
    if not root.is_dir():
        raise HTTPException(status_code=404, detail="Content directory not found")
    return {"tree": content_svc.build_file_tree(root)}


# -----------------------------------------------------------------------------

@router.get("/content", response_model=FileContentResponse)
async def file_content(file_path: str = Query(..., min_length=1, max_length=1024)):
    return await file_svc.read_file(file_path)


# -----------------------------------------------------------------------------

@router.post("/save", response_model=FileOpResponse)
async def save_file(data: FileSaveRequest, request: Request):
    path = await file_svc.save_file(data.file_path, data.content, index=_index(request))
    return FileOpResponse(message="File saved successfully", path=path)


# -----------------------------------------------------------------------------

@router.post("/create", response_model=FileOpResponse)
async def create_item(data: FileCreateRequest, request: Request):
    path = await file_svc.create_item(
        data.type, data.name, data.folder_path, data.content, data.product,
        index=_index(request),
    )
    label = "Folder" if data.type == "folder" else "File"
    return FileOpResponse(message=f"{label} created successfully", path=path)


# -----------------------------------------------------------------------------

@router.post("/duplicate", response_model=FileOpResponse)
async def duplicate_item(data: FileDuplicateRequest, request: Request):
    path = file_svc.duplicate_item(data.file_path, index=_index(request))
    return FileOpResponse(message="Duplicated successfully", path=path)


# ── Per product ───────────────────────────────────────────────────────────────

@router.get("/{product}/tree")
async def product_file_tree(product: str):
    return {
        "product": product,
        "tree":    content_svc.build_file_tree(content_svc.product_dir(product)),
    }


# -----------------------------------------------------------------------------

@router.get("/{product}/content", response_model=FileContentResponse)
async def product_file_content(
    product: str,
    file_path: str = Query(..., min_length=1, max_length=1024),
):
    return await file_svc.read_file(file_path, product=product)


# -----------------------------------------------------------------------------

@router.post("/{product}", response_model=FileOpResponse)
async def create_product_item(product: str, data: FileCreateRequest, request: Request):
    path = await file_svc.create_item(
        data.type, data.name, data.folder_path, data.content, product,
        index=_index(request),
    )
    label = "Folder" if data.type == "folder" else "File"
    return FileOpResponse(message=f"{label} created successfully", path=path)


# -----------------------------------------------------------------------------

@router.delete("/{product}", response_model=FileOpResponse)
async def delete_item(
    product: str,
    request: Request,
    file_path: str = Query(..., min_length=1, max_length=1024),
):
    file_svc.delete_item(file_path, product=product, index=_index(request))
    return FileOpResponse(message="Deleted successfully")


# -----------------------------------------------------------------------------

@router.post("/{product}/rename", response_model=FileOpResponse)
async def rename_item(product: str, data: FileRenameRequest, request: Request):
    path = file_svc.rename_item(data.old_path, data.new_name, product=product,
                                index=_index(request))
    return FileOpResponse(message="Renamed successfully", path=path)


# -----------------------------------------------------------------------------

@router.post("/{product}/move", response_model=FileOpResponse)
async def move_item(product: str, data: FileMoveRequest, request: Request):
    path = file_svc.move_item(data.source_path, data.target_path, product=product,
                              index=_index(request))
    return FileOpResponse(message="Moved successfully", path=path)


# -----------------------------------------------------------------------------

@router.post("/{product}/upload", response_model=UploadResponse, status_code=201)
async def upload_image(
    product: str,
    request: Request,
    file: UploadFile,
):
    enforce_rate_limit(request, request.app.state.upload_limiter)
    content_svc.product_dir(product)
    return await file_svc.save_upload(file, product)


# -----------------------------------------------------------------------------
