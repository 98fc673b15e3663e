"""Filesystem operations on the storage tree.

Every entry point takes a client-supplied relative path, passes it through
``opencdn.services.paths.resolve`` and works on the canonical result. Delete
and move use ``resolve_entry`` so a symlink is removed or moved as a link.
Metadata is read live from ``stat``; nothing is cached between calls.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Literal

from opencdn.errors import (
    BadRequest,
    Conflict,
    InternalError,
    NotAFile,
    NotAFolder,
    NotFound,
    SelfContainment,
)
from opencdn.services.paths import public_url, resolve, resolve_entry, to_relative
from opencdn.utils.storage import get_directory_size, get_disk_usage

logger = logging.getLogger(__name__)


@dataclass
class StorageEntry:
    name: str
    type: Literal["file", "folder"]
    size: int
    created: datetime
    modified: datetime
    path: str
    url: str | None = None


def _timestamp(value: float) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc)


class StorageService:
    """List, create, delete and move entries below a single storage root."""

    def __init__(self, root: str | Path, files_base_url: str):
        self.root = Path(root).resolve()
        self.files_base_url = files_base_url.rstrip("/")

    # --- helpers -----------------------------------------------------------

    def resolve(self, relative: str | None) -> Path:
        return resolve(self.root, relative)

    def resolve_entry(self, relative: str | None) -> Path:
        return resolve_entry(self.root, relative)

    def relative(self, absolute: Path) -> str:
        return to_relative(self.root, absolute)

    def url_for(self, relative: str) -> str:
        return public_url(self.files_base_url, relative)

    def require_parent_folders(self, target: Path, relative: str) -> None:
        """Raise NotAFolder if an existing ancestor of ``target`` is a file."""
        for parent in target.parents:
            if parent == self.root:
                return
            if parent.exists() and not parent.is_dir():
                raise NotAFolder(
                    f'"{self.relative(parent)}" is a file, not a folder.',
                    path=relative,
                )

    def entry(self, absolute: Path) -> StorageEntry:
        """Build a StorageEntry from a live stat of ``absolute``.

        A dangling symlink is described by its own ``lstat``.
        """
        st = absolute.stat() if absolute.exists() else absolute.lstat()
        rel = self.relative(absolute)
        is_dir = absolute.is_dir()
        return StorageEntry(
            name=absolute.name,
            type="folder" if is_dir else "file",
            size=get_directory_size(absolute) if is_dir else st.st_size,
            created=_timestamp(getattr(st, "st_birthtime", st.st_ctime)),
            modified=_timestamp(st.st_mtime),
            path=rel,
            url=None if is_dir else self.url_for(rel),
        )

    # --- operations --------------------------------------------------------

    def list_folder(self, relative: str | None = "") -> list[StorageEntry]:
        target = self.resolve(relative)
        if not target.exists():
            raise NotFound(
                f'The folder "{relative or ""}" does not exist in the CDN storage.',
                path=relative or "",
            )
        if not target.is_dir():
            raise NotAFolder(f'"{relative}" is a file, not a folder.', path=relative)

        try:
            children = [self.entry(child) for child in target.iterdir()]
        except OSError as e:
            logger.error("Failed to list %s: %s", target, e)
            raise InternalError(f"Failed to list folder: {e}", path=relative or "")

        children.sort(key=lambda item: (item.type != "folder", item.name.lower()))
        return children

    def create_folder(self, relative: str | None) -> str:
        if not relative or not relative.strip("/\\"):
            raise BadRequest(
                "Bad Request: Folder path is required",
                hint='Please provide a "folderPath" in the request body.',
            )
        target = self.resolve(relative)
        if target.exists():
            raise Conflict(
                f'A folder with the path "{relative}" already exists.',
                path=relative,
            )
        self.require_parent_folders(target, relative)
        try:
            target.mkdir(parents=True)
        except FileExistsError:
            # Lost a race with a concurrent create
            raise Conflict(f'A folder with the path "{relative}" already exists.', path=relative)
        except NotADirectoryError:
            raise NotAFolder(f'A parent of "{relative}" is a file, not a folder.', path=relative)
        except OSError as e:
            logger.error("Failed to create folder %s: %s", target, e)
            raise InternalError(f"Failed to create folder: {e}", path=relative)

        logger.info("Created folder %s", self.relative(target))
        return self.relative(target)

    def delete_folder(self, relative: str | None) -> str:
        if not relative or not relative.strip("/\\"):
            raise BadRequest(
                "Bad Request: Folder path is required",
                hint='Please provide a "folderPath" in the request body.',
            )
        target = self.resolve_entry(relative)
        if target == self.root:
            raise BadRequest("The storage root cannot be deleted", path=relative)
        if not os.path.lexists(target):
            raise NotFound(f'The folder "{relative}" was not found.', path=relative)
        if target.is_symlink() or not target.is_dir():
            raise NotAFolder(
                f'"{relative}" is a file, not a folder. Use the file delete endpoint instead.',
                path=relative,
            )
        try:
            shutil.rmtree(target)
        except OSError as e:
            logger.error("Failed to delete folder %s: %s", target, e)
            raise InternalError(f"Failed to delete folder: {e}", path=relative)

        logger.info("Deleted folder %s", relative)
        return relative

    def delete_file(self, relative: str | None) -> str:
        if not relative or not relative.strip("/\\"):
            raise BadRequest(
                "Bad Request: File path is required",
                hint='Please provide a "filePath" in the request body.',
            )
        target = self.resolve_entry(relative)
        if not os.path.lexists(target):
            raise NotFound(f'The file "{relative}" was not found.', path=relative)
        if target.is_dir() and not target.is_symlink():
            raise NotAFile(
                f'"{relative}" is a directory, not a file. Use the folder delete endpoint instead.',
                path=relative,
            )
        try:
            target.unlink()
        except OSError as e:
            logger.error("Failed to delete file %s: %s", target, e)
            raise InternalError(f"Failed to delete file: {e}", path=relative)

        logger.info("Deleted file %s", relative)
        return relative

    def move(self, source: str | None, destination: str | None) -> StorageEntry:
        if not source or not destination:
            raise BadRequest(
                "Bad Request: Source and destination paths are required",
                hint='Please provide "sourcePath" and "destinationPath" in the request body.',
            )
        src = self.resolve_entry(source)
        dst = self.resolve_entry(destination)
        if src == self.root:
            raise BadRequest("The storage root cannot be moved", path=source)
        if not os.path.lexists(src):
            raise NotFound(f'The path "{source}" was not found.', path=source)
        is_folder = src.is_dir() and not src.is_symlink()
        if is_folder and (dst == src or src in dst.parents):
            raise SelfContainment(
                f'Cannot move "{source}" into "{destination}".',
                source=source,
                destination=destination,
            )
        if os.path.lexists(dst):
            raise Conflict(f'The path "{destination}" already exists.', path=destination)
        self.require_parent_folders(dst, destination)

        try:
            dst.parent.mkdir(parents=True, exist_ok=True)
        except (FileExistsError, NotADirectoryError):
            # An ancestor turned into a file after the check above
            raise NotAFolder(
                f'A parent of "{destination}" is a file, not a folder.',
                path=destination,
            )
        except OSError as e:
            logger.error("Failed to create %s: %s", dst.parent, e)
            raise InternalError(f"Failed to move: {e}", source=source, destination=destination)

        try:
            shutil.move(str(src), str(dst))
        except OSError as e:
            logger.error("Failed to move %s -> %s: %s", src, dst, e)
            raise InternalError(f"Failed to move: {e}", source=source, destination=destination)

        logger.info("Moved %s -> %s", source, self.relative(dst))
        return self.entry(dst)

    def total_size(self) -> int:
        return get_directory_size(self.root)

    def usage_stats(self) -> dict[str, Any]:
        """File/folder counts, byte totals per extension and volume usage."""
        file_count = 0
        folder_count = 0
        total = 0
        largest: Path | None = None
        largest_size = 0
        by_ext: dict[str, int] = defaultdict(int)

        for dirpath, dirnames, filenames in os.walk(self.root):
            folder_count += len(dirnames)
            for name in filenames:
                path = Path(dirpath) / name
                if path.is_symlink():
                    continue
                size = path.stat().st_size
                file_count += 1
                total += size
                by_ext[path.suffix.lower() or "(none)"] += size
                if largest is None or size > largest_size:
                    largest, largest_size = path, size

        return {
            "file_count": file_count,
            "folder_count": folder_count,
            "total_size": total,
            "largest_file": self.relative(largest) if largest else None,
            "largest_file_size": largest_size,
            "size_by_extension": dict(sorted(by_ext.items(), key=lambda kv: -kv[1])),
            "disk": get_disk_usage(self.root),
        }

    def clear_all(self) -> int:
        """Remove every child of the root; the root itself stays."""
        removed = 0
        try:
            for child in self.root.iterdir():
                if child.is_dir() and not child.is_symlink():
                    shutil.rmtree(child)
                else:
                    child.unlink()
                removed += 1
        except OSError as e:
            logger.error("Failed to clear storage: %s", e)
            raise InternalError(f"Failed to clear storage: {e}", removed=removed)

        logger.info("Cleared storage root (%d entries removed)", removed)
        return removed
