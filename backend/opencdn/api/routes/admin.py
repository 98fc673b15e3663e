"""Admin routes: panel login, backup, restore and clear-all."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import FileResponse, JSONResponse
from starlette.background import BackgroundTask

from opencdn.api.deps import (
    backup_service,
    credential_store,
    require_api_key,
    storage_service,
    upload_handler,
)
from opencdn.errors import BadRequest, PayloadTooLarge
from opencdn.schemas.admin import ClearRequest, ClearResponse, RestoreResponse
from opencdn.schemas.auth import LoginRequest, LoginResponse
from opencdn.services.backup import BackupService, backup_filename
from opencdn.services.credentials import ApiKeyGrant, CredentialStore
from opencdn.services.storage import StorageService
from opencdn.services.uploads import UploadHandler
from opencdn.utils.storage import to_mb

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=LoginResponse)
async def login(
    body: Optional[LoginRequest] = None,
    store: CredentialStore = Depends(credential_store),
):
    """Gate for the management UI. Returns tier labels, never the keys."""
    if body is None or not body.username or not body.password:
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "error": "bad_request",
                "message": "Please provide both username and password.",
            },
        )

    if not store.check_admin(body.username, body.password):
        logger.warning("Failed admin login for %r", body.username)
        return JSONResponse(
            status_code=401,
            content={
                "success": False,
                "error": "invalid_credential",
                "message": "The username or password you entered is incorrect.",
            },
        )

    logger.info("Admin %r logged in", body.username)
    return LoginResponse(api_keys=store.labels())


@router.get("/backup")
def download_backup(
    grant: ApiKeyGrant = Depends(require_api_key),
    backup: BackupService = Depends(backup_service),
):
    """ZIP of the whole store; the temp archive is removed after sending."""
    archive = backup.create_archive()
    return FileResponse(
        archive,
        media_type="application/zip",
        filename=backup_filename(),
        background=BackgroundTask(os.unlink, archive),
    )


@router.post("/restore", response_model=RestoreResponse)
async def restore_backup(
    archive: Optional[UploadFile] = File(None),
    replace: Optional[str] = Form(None),
    grant: ApiKeyGrant = Depends(require_api_key),
    uploads: UploadHandler = Depends(upload_handler),
    backup: BackupService = Depends(backup_service),
):
    """Extract an uploaded backup ZIP; ``replace=true`` clears the store first.

    The key's quota applies to the archive and to every extracted file.
    """
    if archive is None:
        raise BadRequest(
            "Bad Request: No archive uploaded",
            hint='Please provide a ZIP file in the "archive" field of the multipart form data.',
        )

    fd, name = tempfile.mkstemp(prefix="opencdn-restore-", suffix=".zip")
    os.close(fd)
    temp_path = Path(name)
    replace_all = (replace or "").strip().lower() in ("true", "1", "yes", "on")
    try:
        size = await uploads.write_stream(archive, temp_path)
        if grant.quota.exceeds(size):
            raise PayloadTooLarge(
                f"Your archive is {to_mb(size)} MB, but your API key ({grant.label}) "
                f"only allows files up to {grant.quota.describe_mb()} MB.",
                fileSize=size,
                maxSize=grant.quota.limit,
                apiKeyType=grant.label,
                suggestion=uploads.credentials.suggest_upgrade(grant),
            )
        restored, skipped = await run_in_threadpool(
            backup.restore_archive, temp_path, replace_all, grant.quota
        )
    finally:
        await archive.close()
        temp_path.unlink(missing_ok=True)

    return RestoreResponse(restored=restored, skipped=skipped, replaced=replace_all)


@router.post("/clear", response_model=ClearResponse)
def clear_storage(
    body: Optional[ClearRequest] = None,
    grant: ApiKeyGrant = Depends(require_api_key),
    storage: StorageService = Depends(storage_service),
):
    """Delete everything below the storage root. Requires ``{"confirm": true}``."""
    if body is None or not body.confirm:
        raise BadRequest(
            "Refusing to clear storage without confirmation",
            hint='Send {"confirm": true} to delete every stored file and folder.',
        )
    logger.warning("Clearing storage root on request of %s key", grant.tier)
    removed = storage.clear_all()
    return ClearResponse(removed=removed)
