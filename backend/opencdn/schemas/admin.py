"""Backup / restore / clear schemas."""

from opencdn.schemas.common import CamelModel


class RestoreResponse(CamelModel):
    success: bool = True
    message: str = "Backup restored successfully"
    restored: int
    skipped: int
    replaced: bool


class ClearRequest(CamelModel):
    confirm: bool = False


class ClearResponse(CamelModel):
    success: bool = True
    message: str = "Storage cleared"
    removed: int
