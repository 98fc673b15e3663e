"""ZIP backup and restore of the whole storage tree."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
import zipfile
from datetime import datetime
from pathlib import Path

from opencdn.errors import InternalError, InvalidArchive, PathEscape
from opencdn.services.credentials import UNLIMITED, Quota
from opencdn.services.storage import StorageService

logger = logging.getLogger(__name__)


def backup_filename(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"opencdn-backup-{now:%Y%m%d-%H%M%S}.zip"


class BackupService:
    """Archives live outside the storage root, in the system temp dir."""

    def __init__(self, storage: StorageService):
        self.storage = storage

    def create_archive(self) -> Path:
        """Write every file and empty folder to a temporary ZIP; caller deletes it."""
        fd, name = tempfile.mkstemp(prefix="opencdn-backup-", suffix=".zip")
        os.close(fd)
        archive = Path(name)
        root = self.storage.root
        count = 0
        try:
            with zipfile.ZipFile(archive, "w", compression=zipfile.ZIP_DEFLATED, allowZip64=True) as zf:
                for dirpath, dirnames, filenames in os.walk(root):
                    current = Path(dirpath)
                    if current != root and not dirnames and not filenames:
                        zf.write(current, self.storage.relative(current) + "/")
                    for fname in filenames:
                        path = current / fname
                        if path.is_symlink():
                            continue
                        zf.write(path, self.storage.relative(path))
                        count += 1
        except OSError as e:
            archive.unlink(missing_ok=True)
            logger.error("Backup failed: %s", e)
            raise InternalError(f"Failed to create backup: {e}")

        logger.info("Created backup with %d files (%d bytes)", count, archive.stat().st_size)
        return archive

    def restore_archive(
        self, archive: Path, replace: bool = False, quota: Quota = UNLIMITED
    ) -> tuple[int, int]:
        """Extract ``archive`` into the root. Returns (restored, skipped).

        Members that would land outside the root are skipped, and so are
        members whose uncompressed size is over ``quota``. The size comes from
        the member header; ``zipfile`` never yields more than that many bytes.
        """
        if not zipfile.is_zipfile(archive):
            raise InvalidArchive()

        restored = 0
        skipped = 0
        try:
            with zipfile.ZipFile(archive) as zf:
                members = zf.infolist()
                if replace:
                    self.storage.clear_all()
                for member in members:
                    try:
                        target = self.storage.resolve(member.filename)
                    except PathEscape:
                        logger.warning("Skipping archive member outside storage root: %r", member.filename)
                        skipped += 1
                        continue
                    if target == self.storage.root:
                        continue
                    if member.is_dir():
                        target.mkdir(parents=True, exist_ok=True)
                        continue
                    if quota.exceeds(member.file_size):
                        logger.warning(
                            "Skipping archive member %r: %d bytes is over the %s byte quota",
                            member.filename, member.file_size, quota.limit,
                        )
                        skipped += 1
                        continue
                    if target.is_dir():
                        skipped += 1
                        continue
                    target.parent.mkdir(parents=True, exist_ok=True)
                    with zf.open(member) as src, open(target, "wb") as dst:
                        shutil.copyfileobj(src, dst)
                    restored += 1
        except zipfile.BadZipFile as e:
            raise InvalidArchive(f"The uploaded archive is corrupt: {e}")
        except OSError as e:
            logger.error("Restore failed: %s", e)
            raise InternalError(f"Failed to restore backup: {e}", restored=restored)

        logger.info("Restored backup: %d files, %d skipped (replace=%s)", restored, skipped, replace)
        return restored, skipped
