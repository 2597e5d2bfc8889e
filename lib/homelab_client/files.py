from __future__ import annotations

import posixpath
from typing import Iterable

from .models import FileEntry


def sort_entries(entries: Iterable[FileEntry]) -> list[FileEntry]:
    """Directories first, then files; names case-insensitive within each group."""
    return sorted(entries, key=lambda e: (not e.is_dir, e.name.casefold(), e.name))


def join_path(current: str, name: str) -> str:
    current = current or "/"
    name = name.strip("/")
    if current == "/":
        return f"/{name}"
    return f"{current.rstrip('/')}/{name}"


def parent_path(path: str) -> str:
    path = (path or "/").rstrip("/")
    if not path:
        return "/"
    parent = posixpath.dirname(path)
    return parent or "/"


def format_size(size: int | None) -> str:
    if size is None:
        return "-"
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TB"
