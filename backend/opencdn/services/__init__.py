"""Business logic services: singleton registry."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from opencdn.config import Settings, settings as default_settings

if TYPE_CHECKING:
    from opencdn.services.backup import BackupService
    from opencdn.services.credentials import CredentialStore
    from opencdn.services.storage import StorageService
    from opencdn.services.uploads import UploadHandler

logger = logging.getLogger(__name__)

_credential_store: CredentialStore | None = None
_storage_service: StorageService | None = None
_upload_handler: UploadHandler | None = None
_backup_service: BackupService | None = None


def init_services(settings: Settings | None = None) -> None:
    """Create and wire up all service singletons."""
    global _credential_store, _storage_service, _upload_handler, _backup_service

    from opencdn.services.backup import BackupService
    from opencdn.services.credentials import CredentialStore
    from opencdn.services.storage import StorageService
    from opencdn.services.uploads import UploadHandler

    settings = settings or default_settings

    _credential_store = CredentialStore.from_settings(settings)
    _storage_service = StorageService(settings.storage_path, settings.files_base_url)
    _upload_handler = UploadHandler(
        _storage_service,
        _credential_store,
        chunk_size=settings.upload_chunk_size,
        max_request_bytes=settings.max_request_upload_bytes,
    )
    _backup_service = BackupService(_storage_service)
    logger.info("Services initialized (storage root %s)", _storage_service.root)


def shutdown_services() -> None:
    global _credential_store, _storage_service, _upload_handler, _backup_service
    _credential_store = None
    _storage_service = None
    _upload_handler = None
    _backup_service = None


def get_credential_store() -> CredentialStore:
    if _credential_store is None:
        raise RuntimeError("Services not initialized, call init_services() first")
    return _credential_store


def get_storage_service() -> StorageService:
    if _storage_service is None:
        raise RuntimeError("Services not initialized, call init_services() first")
    return _storage_service


def get_upload_handler() -> UploadHandler:
    if _upload_handler is None:
        raise RuntimeError("Services not initialized, call init_services() first")
    return _upload_handler


def get_backup_service() -> BackupService:
    if _backup_service is None:
        raise RuntimeError("Services not initialized, call init_services() first")
    return _backup_service
