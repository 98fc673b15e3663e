"""File routes: listing, upload, delete, move."""

from __future__ import annotations

from dataclasses import asdict
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from opencdn.api.deps import require_api_key, storage_service, upload_handler
from opencdn.schemas.files import (
    FileDeleteRequest,
    ListResponse,
    MoveRequest,
    MoveResponse,
    OperationResponse,
    StorageItem,
    UploadedFile,
    UploadResponse,
)
from opencdn.services.credentials import ApiKeyGrant
from opencdn.services.storage import StorageService
from opencdn.services.uploads import UploadHandler

router = APIRouter()


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("true", "1", "yes", "on")


@router.get("/list", response_model=ListResponse)
def list_folder(
    folder: str = Query(""),
    grant: ApiKeyGrant = Depends(require_api_key),
    storage: StorageService = Depends(storage_service),
):
    """Direct children of ``folder`` with live sizes and timestamps."""
    entries = storage.list_folder(folder)
    return ListResponse(
        items=[StorageItem.model_validate(e) for e in entries],
        current_path=folder,
    )


@router.post("/file/upload", response_model=UploadResponse)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    folder: Optional[str] = Form(None),
    keep_original_name: Optional[str] = Form(None, alias="keepOriginalName"),
    grant: ApiKeyGrant = Depends(require_api_key),
    uploads: UploadHandler = Depends(upload_handler),
):
    """Store a multipart file, then enforce the key's size quota (413 on overage)."""
    try:
        stored = await uploads.store(
            grant,
            file,
            file.filename if file else None,
            folder=folder,
            keep_original_name=_as_bool(keep_original_name),
        )
    finally:
        if file is not None:
            await file.close()

    return UploadResponse(
        file=UploadedFile(**asdict(stored)),
        api_key_used=grant.label,
    )


@router.delete("/file/delete", response_model=OperationResponse)
def delete_file(
    body: Optional[FileDeleteRequest] = None,
    grant: ApiKeyGrant = Depends(require_api_key),
    storage: StorageService = Depends(storage_service),
):
    file_path = body.file_path if body else None
    storage.delete_file(file_path)
    return OperationResponse(message="File deleted successfully", path=file_path)


@router.post("/move", response_model=MoveResponse)
def move_entry(
    body: Optional[MoveRequest] = None,
    grant: ApiKeyGrant = Depends(require_api_key),
    storage: StorageService = Depends(storage_service),
):
    """Move or rename a file or folder; 409 if the destination exists."""
    source = body.source_path if body else None
    destination = body.destination_path if body else None
    entry = storage.move(source, destination)
    return MoveResponse(
        message="Moved successfully",
        path=entry.path,
        item=StorageItem.model_validate(entry),
    )
