"""Mapping of client-supplied relative paths onto the storage root."""

from __future__ import annotations

import posixpath
import re
from pathlib import Path
from urllib.parse import quote

from opencdn.errors import PathEscape

_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def _normalize(relative_path: str | None) -> str:
    """Collapse separators and ``.``/``..`` segments; ``""`` means the root."""
    if not relative_path:
        return ""
    if "\x00" in relative_path:
        raise PathEscape(path=relative_path)

    candidate = relative_path.replace("\\", "/")
    if _DRIVE_RE.match(candidate):
        raise PathEscape(path=relative_path)

    # Leading slashes are relative to the root, never to the host filesystem
    candidate = candidate.lstrip("/")
    if not candidate:
        return ""

    normalized = posixpath.normpath(candidate)
    if normalized == ".":
        return ""
    if normalized == ".." or normalized.startswith("../"):
        raise PathEscape(path=relative_path)
    return normalized


def _is_within(root: Path, target: Path) -> bool:
    return target == root or root in target.parents


def resolve(storage_root: str | Path, relative_path: str | None) -> Path:
    """Resolve ``relative_path`` below ``storage_root``.

    The result is canonical (symlinks followed) and guaranteed to be the root
    itself or one of its descendants; anything else raises ``PathEscape``.
    """
    root = Path(storage_root).resolve()
    normalized = _normalize(relative_path)
    if not normalized:
        return root

    joined = root.joinpath(*normalized.split("/"))
    if not _is_within(root, joined):
        raise PathEscape(path=relative_path)

    # Re-check after following symlinks on the way down
    canonical = joined.resolve(strict=False)
    if not _is_within(root, canonical):
        raise PathEscape(path=relative_path)
    return canonical


def resolve_entry(storage_root: str | Path, relative_path: str | None) -> Path:
    """Like ``resolve`` but leaves the final component unfollowed.

    Delete and move act on the entry itself, so a symlink is handled as a
    link rather than as its target. The parent is still canonical and inside
    the root.
    """
    root = Path(storage_root).resolve()
    normalized = _normalize(relative_path)
    if not normalized:
        return root
    parent, _, name = normalized.rpartition("/")
    return resolve(root, parent) / name


def to_relative(storage_root: str | Path, absolute: str | Path) -> str:
    """POSIX-style path from the root, ``""`` for the root itself."""
    rel = Path(absolute).relative_to(Path(storage_root).resolve())
    return rel.as_posix() if rel.parts else ""


def public_url(files_base_url: str, relative: str) -> str:
    """Absolute URL of a stored file on the public static mount."""
    return f"{files_base_url.rstrip('/')}/{quote(relative.lstrip('/'))}"
