"""File and folder schemas."""

from datetime import datetime
from typing import Literal

from pydantic import Field

from opencdn.schemas.common import CamelModel


class StorageItem(CamelModel):
    """One direct child of a listed folder."""
    name: str
    type: Literal["file", "folder"]
    size: int
    created: datetime
    modified: datetime
    path: str
    url: str | None = None  # Files only


class ListResponse(CamelModel):
    items: list[StorageItem]
    current_path: str


class FolderRequest(CamelModel):
    folder_path: str | None = None


class FileDeleteRequest(CamelModel):
    file_path: str | None = None


class MoveRequest(CamelModel):
    source_path: str | None = None
    destination_path: str | None = None


class OperationResponse(CamelModel):
    success: bool = True
    message: str
    path: str


class MoveResponse(OperationResponse):
    item: StorageItem


class UploadedFile(CamelModel):
    original_name: str
    filename: str
    size: int
    size_mb: str = Field(alias="sizeMB")
    path: str
    url: str


class UploadResponse(CamelModel):
    success: bool = True
    message: str = "File uploaded successfully"
    file: UploadedFile
    api_key_used: str
