"""Storage info and usage statistics."""

from fastapi import APIRouter, Depends

from opencdn.api.deps import require_api_key, storage_service
from opencdn.schemas.system import StorageInfo, UsageStats
from opencdn.services.credentials import ApiKeyGrant
from opencdn.services.storage import StorageService
from opencdn.utils.storage import to_mb

router = APIRouter()


@router.get("/info", response_model=StorageInfo)
def storage_info(
    grant: ApiKeyGrant = Depends(require_api_key),
    storage: StorageService = Depends(storage_service),
):
    """Storage root, total stored bytes and the caller's key label."""
    total = storage.total_size()
    return StorageInfo(
        storage_path=str(storage.root),
        total_size=total,
        total_size_mb=to_mb(total),
        api_key_info=grant.label,
    )


@router.get("/stats", response_model=UsageStats)
def usage_stats(
    grant: ApiKeyGrant = Depends(require_api_key),
    storage: StorageService = Depends(storage_service),
):
    stats = storage.usage_stats()
    return UsageStats(total_size_mb=to_mb(stats["total_size"]), **stats)
