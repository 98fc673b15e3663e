"""Folder create / delete."""

from typing import Optional

from fastapi import APIRouter, Depends

from opencdn.api.deps import require_api_key, storage_service
from opencdn.schemas.files import FolderRequest, OperationResponse
from opencdn.services.credentials import ApiKeyGrant
from opencdn.services.storage import StorageService

router = APIRouter()


@router.post("/create", response_model=OperationResponse)
def create_folder(
    body: Optional[FolderRequest] = None,
    grant: ApiKeyGrant = Depends(require_api_key),
    storage: StorageService = Depends(storage_service),
):
    """Create a folder and any missing parents; 409 if it already exists."""
    folder_path = body.folder_path if body else None
    storage.create_folder(folder_path)
    return OperationResponse(message="Folder created successfully", path=folder_path)


@router.delete("/delete", response_model=OperationResponse)
def delete_folder(
    body: Optional[FolderRequest] = None,
    grant: ApiKeyGrant = Depends(require_api_key),
    storage: StorageService = Depends(storage_service),
):
    """Recursively delete a folder. Irreversible."""
    folder_path = body.folder_path if body else None
    storage.delete_folder(folder_path)
    return OperationResponse(message="Folder deleted successfully", path=folder_path)
