"""Storage info, usage statistics and health schemas."""

from pydantic import Field

from opencdn.schemas.common import CamelModel


class StorageInfo(CamelModel):
    storage_path: str
    total_size: int
    total_size_mb: str = Field(alias="totalSizeMB")
    api_key_info: str


class DiskUsage(CamelModel):
    total_bytes: int
    used_bytes: int
    free_bytes: int
    percent: float


class UsageStats(CamelModel):
    """Aggregate usage of the storage root, recomputed per request."""
    file_count: int
    folder_count: int
    total_size: int
    total_size_mb: str = Field(alias="totalSizeMB")
    largest_file: str | None = None
    largest_file_size: int = 0
    size_by_extension: dict[str, int] = {}
    disk: DiskUsage


class HealthResponse(CamelModel):
    status: str = "ok"
    version: str
    service: str = "opencdn"
