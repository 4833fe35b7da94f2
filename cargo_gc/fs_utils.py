"""Shared filesystem helpers for scanning and sizing build output trees."""

from __future__ import annotations

import os
from pathlib import Path


class IndexScanError(RuntimeError):
    """Raised when a build output tree cannot be listed or stat'd."""


class CanonicalizationError(ValueError):
    """Raised when a path cannot be resolved to its canonical form."""


def canonicalize(path: Path) -> Path:
    """Resolve path strictly, following symlinks.

    Raises:
        CanonicalizationError: If the path does not exist or cannot be resolved.
    """
    try:
        return path.resolve(strict=True)
    except (OSError, RuntimeError) as exc:
        raise CanonicalizationError(f"cannot canonicalize path {path}: {exc}") from exc


def list_dir(directory: Path) -> list[os.DirEntry] | None:
    """Return directory entries in listing order, or None if it does not exist.

    Raises:
        IndexScanError: If the directory exists but cannot be listed.
    """
    if not directory.exists():
        return None
    try:
        with os.scandir(directory) as entries:
            return list(entries)
    except OSError as exc:
        raise IndexScanError(f"failed to read directory {directory}: {exc}") from exc


def tree_size(path: Path) -> int:
    """Return the total size of every file below path.

    Raises:
        IndexScanError: If any directory or file below path cannot be read.
    """

    def _raise(exc: OSError) -> None:
        raise IndexScanError(f"failed to walk {path}: {exc}") from exc

    total = 0
    for dirpath, _, filenames in os.walk(path, onerror=_raise):
        for filename in filenames:
            file_path = os.path.join(dirpath, filename)
            try:
                total += os.lstat(file_path).st_size
            except OSError as exc:
                raise IndexScanError(f"failed to stat {file_path}: {exc}") from exc
    return total


def shallow_dir_size(path: Path) -> int:
    """Best-effort sum of the immediate child file sizes of a directory."""
    try:
        with os.scandir(path) as entries:
            children = list(entries)
    except OSError:
        return 0
    total = 0
    for entry in children:
        try:
            if entry.is_file(follow_symlinks=False):
                total += entry.stat(follow_symlinks=False).st_size
        except OSError:
            continue
    return total
