"""FastAPI dependency injection: API key auth & service lookup."""

from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header

from opencdn.services import (
    get_backup_service,
    get_credential_store,
    get_storage_service,
    get_upload_handler,
)
from opencdn.services.backup import BackupService
from opencdn.services.credentials import ApiKeyGrant, CredentialStore
from opencdn.services.storage import StorageService
from opencdn.services.uploads import UploadHandler


def credential_store() -> CredentialStore:
    return get_credential_store()


def storage_service() -> StorageService:
    return get_storage_service()


def upload_handler() -> UploadHandler:
    return get_upload_handler()


def backup_service() -> BackupService:
    return get_backup_service()


async def require_api_key(
    x_api_key: Optional[str] = Header(None),
    store: CredentialStore = Depends(credential_store),
) -> ApiKeyGrant:
    """Resolve the ``x-api-key`` header to its grant.

    Raises MissingCredential / InvalidCredential, rendered as 401 by the app.
    """
    return store.authorize(x_api_key)
