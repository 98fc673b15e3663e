"""Upload handling: stream to disk, then check against the key's quota."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Protocol

import aiofiles
import aiofiles.os

from opencdn.errors import BadRequest, InternalError, NotAFolder, PayloadTooLarge
from opencdn.services.credentials import ApiKeyGrant, CredentialStore
from opencdn.services.storage import StorageService
from opencdn.utils.storage import to_mb

logger = logging.getLogger(__name__)


class AsyncReadable(Protocol):
    async def read(self, size: int = -1) -> bytes: ...


class UploadState(str, Enum):
    RECEIVING = "receiving"
    SIZE_CHECKED = "size_checked"
    ACCEPTED = "accepted"
    REJECTED_AND_PURGED = "rejected_and_purged"


@dataclass
class StoredFile:
    original_name: str
    filename: str
    size: int
    size_mb: str
    path: str
    url: str


def clean_filename(original: str | None) -> str:
    """Final path component of a client filename, or BadRequest."""
    if not original:
        raise BadRequest(
            "Bad Request: No file uploaded",
            hint='Please provide a file in the "file" field of the multipart form data.',
        )
    name = PurePosixPath(original.replace("\\", "/")).name
    if name in ("", ".", "..") or "\x00" in name:
        raise BadRequest(f'Invalid filename "{original}"', filename=original)
    return name


async def _purge(path: Path) -> None:
    try:
        await aiofiles.os.remove(path)
    except FileNotFoundError:
        pass


class UploadHandler:
    """Receiving -> SizeChecked -> Accepted | RejectedAndPurged."""

    def __init__(
        self,
        storage: StorageService,
        credentials: CredentialStore,
        chunk_size: int = 1024 * 1024,
        max_request_bytes: int | None = None,
    ):
        self.storage = storage
        self.credentials = credentials
        self.chunk_size = chunk_size
        self.max_request_bytes = max_request_bytes

    async def write_stream(self, stream: AsyncReadable, target: Path) -> int:
        """Copy ``stream`` into ``target`` chunk by chunk; returns bytes written.

        Only the transport cap aborts mid-stream. The partial file is removed
        on any failure.
        """
        written = 0
        try:
            async with aiofiles.open(target, "wb") as f:
                while chunk := await stream.read(self.chunk_size):
                    written += len(chunk)
                    if self.max_request_bytes is not None and written > self.max_request_bytes:
                        raise PayloadTooLarge(
                            "Payload Too Large: upload exceeds the server limit",
                            maxSize=self.max_request_bytes,
                            maxSizeMB=to_mb(self.max_request_bytes),
                        )
                    await f.write(chunk)
        except PayloadTooLarge:
            await _purge(target)
            raise
        except OSError as e:
            await _purge(target)
            logger.error("Failed writing upload to %s: %s", target, e)
            raise InternalError(f"Failed to store file: {e}")
        return written

    async def store(
        self,
        grant: ApiKeyGrant,
        stream: AsyncReadable | None,
        original_name: str | None,
        folder: str | None = "",
        keep_original_name: bool = False,
    ) -> StoredFile:
        if stream is None:
            original_name = None
        original = clean_filename(original_name)
        folder = folder or ""

        dest_dir = self.storage.resolve(folder)
        if await aiofiles.os.path.exists(dest_dir) and not await aiofiles.os.path.isdir(dest_dir):
            raise NotAFolder(f'"{folder}" is a file, not a folder.', path=folder)
        try:
            await aiofiles.os.makedirs(dest_dir, exist_ok=True)
        except (FileExistsError, NotADirectoryError):
            raise NotAFolder(f'A parent of "{folder}" is a file, not a folder.', path=folder)
        except OSError as e:
            logger.error("Failed to create upload folder %s: %s", dest_dir, e)
            raise InternalError(f"Failed to create folder: {e}", path=folder)

        filename = original if keep_original_name else f"{uuid.uuid4()}-{original}"
        rel_target = f"{self.storage.relative(dest_dir)}/{filename}".lstrip("/")
        target = self.storage.resolve(rel_target)
        if await aiofiles.os.path.isdir(target):
            raise BadRequest(f'"{rel_target}" is an existing folder', path=rel_target)

        logger.debug("Upload %s: %s", UploadState.RECEIVING.value, rel_target)
        size = await self.write_stream(stream, target)
        logger.debug("Upload %s: %s (%d bytes)", UploadState.SIZE_CHECKED.value, rel_target, size)

        if grant.quota.exceeds(size):
            await _purge(target)
            logger.info(
                "Upload %s: %s is %d bytes, over the %s quota",
                UploadState.REJECTED_AND_PURGED.value, rel_target, size, grant.tier,
            )
            max_mb = grant.quota.describe_mb()
            raise PayloadTooLarge(
                f"Your file size is {to_mb(size)} MB, but your API key ({grant.label}) "
                f"only allows files up to {max_mb} MB.",
                fileSize=size,
                fileSizeMB=to_mb(size),
                maxSize=grant.quota.limit,
                maxSizeMB=max_mb,
                apiKeyType=grant.label,
                suggestion=self.credentials.suggest_upgrade(grant),
            )

        logger.info("Upload %s: %s (%d bytes, %s)", UploadState.ACCEPTED.value, rel_target, size, grant.tier)
        return StoredFile(
            original_name=original,
            filename=filename,
            size=size,
            size_mb=to_mb(size),
            path=rel_target,
            url=self.storage.url_for(rel_target),
        )
