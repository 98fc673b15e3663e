"""Disk space and size helpers."""

from pathlib import Path

import psutil

BYTES_PER_MB = 1024 * 1024


def get_disk_usage(path: str | Path) -> dict:
    """Get disk usage for the volume holding the given path."""
    usage = psutil.disk_usage(str(path))
    return {
        "total_bytes": usage.total,
        "used_bytes": usage.used,
        "free_bytes": usage.free,
        "percent": usage.percent,
    }


def get_directory_size(path: str | Path) -> int:
    """Calculate total size of all files in a directory (recursive)."""
    total = 0
    for f in Path(path).rglob("*"):
        if f.is_file() and not f.is_symlink():
            total += f.stat().st_size
    return total


def to_mb(size: int) -> str:
    """Bytes as a two-decimal MB string, e.g. ``"10.00"``."""
    return f"{size / BYTES_PER_MB:.2f}"
