"""Shared path utilities for archgraph-core."""

from __future__ import annotations

import posixpath
from pathlib import Path


def normalize_path(file_path: str | Path) -> str:
    """Normalize a project-relative path to its canonical POSIX form.

    Args:
        file_path: Relative file path (string or Path object)

    Returns:
        Path with forward slashes, no ``./`` segments and no trailing slash.

    Examples:
        >>> normalize_path("src/./app/../lib/util.ts")
        'src/lib/util.ts'
        >>> normalize_path("src\\\\domain\\\\order.ts")
        'src/domain/order.ts'
        >>> normalize_path(Path("foo/bar.py"))
        'foo/bar.py'
    """
    path_str = file_path.as_posix() if isinstance(file_path, Path) else str(file_path)
    path_str = path_str.replace("\\", "/")
    if not path_str:
        return ""
    normalized = posixpath.normpath(path_str)
    return "" if normalized == "." else normalized


def parent_dir(file_path: str) -> str:
    """Return the directory part of a normalized path ("" at the root)."""
    return posixpath.dirname(file_path)


def join_path(*parts: str) -> str:
    """Join path segments and normalize the result."""
    return normalize_path(posixpath.join(*[part for part in parts if part]))


def base_name(file_path: str) -> str:
    return file_path.replace("\\", "/").rsplit("/", 1)[-1]


def contains_dir_segment(path: str, segment: str) -> bool:
    """Return True when ``segment`` (one or more path parts) occurs in ``path``.

    Matching is case-insensitive and bounded by ``/`` on both sides, so
    ``app`` matches ``src/app/x.ts`` but not ``src/apple/x.ts``.
    """
    haystack = f"/{path.replace(chr(92), '/').strip('/').lower()}/"
    needle = f"/{segment.replace(chr(92), '/').strip('/').lower()}/"
    return needle != "//" and needle in haystack


def round3(value: float) -> float:
    """Round half-up to three decimals."""
    return int(value * 1000 + 0.5) / 1000


__all__ = [
    "base_name",
    "contains_dir_segment",
    "join_path",
    "normalize_path",
    "parent_dir",
    "round3",
]
