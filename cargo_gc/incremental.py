"""
Incremental session reduction for cargo_gc.

Cargo keeps one ``incremental/<name>-<hash>`` directory per compilation
session. Only the newest session per name is useful for future builds; every
older generation is selected for removal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from .fs_utils import IndexScanError, canonicalize, list_dir
from .naming import Identifier, parse_identifier

logger = logging.getLogger(__name__)

INCREMENTAL_DIR = "incremental"


@dataclass(frozen=True)
class IncrementalSession:
    """One session directory with its last-modified time."""

    identifier: Identifier
    path: Path
    mtime_ns: int


def list_sessions(incremental_dir: Path) -> list[IncrementalSession]:
    """List session directories in filesystem listing order.

    Non-directory entries and names without a hash are skipped.

    Raises:
        IndexScanError: If the tree or an entry's metadata cannot be read.
    """
    entries = list_dir(incremental_dir)
    if entries is None:
        return []
    sessions: list[IncrementalSession] = []
    for entry in entries:
        try:
            if not entry.is_dir(follow_symlinks=False):
                continue
            identifier = parse_identifier(entry.name)
            if identifier is None:
                logger.debug("Skipping non-session entry %s", entry.path)
                continue
            mtime_ns = entry.stat().st_mtime_ns
        except OSError as exc:
            raise IndexScanError(f"failed to get metadata of {entry.path}: {exc}") from exc
        sessions.append(IncrementalSession(identifier, Path(entry.path), mtime_ns))
    return sessions


def reduce_sessions(sessions: Iterable[IncrementalSession]) -> list[IncrementalSession]:
    """Return the sessions to remove, keeping the newest one per name.

    A later session displaces the retained one only when its timestamp is
    strictly greater; on ties the first-observed session stays.
    """
    latest: dict[str, IncrementalSession] = {}
    superseded: list[IncrementalSession] = []
    for session in sessions:
        name = session.identifier.name
        current = latest.get(name)
        if current is None:
            latest[name] = session
        elif session.mtime_ns > current.mtime_ns:
            logger.debug("Session %s supersedes %s", session.path.name, current.path.name)
            superseded.append(current)
            latest[name] = session
        else:
            superseded.append(session)
    return superseded


def select_stale_sessions(profile_dir: Path) -> set[str]:
    """Return canonical paths of every superseded session under profile_dir.

    Raises:
        IndexScanError: If the incremental tree cannot be read.
        CanonicalizationError: If a selected path cannot be canonicalized.
    """
    sessions = list_sessions(profile_dir / INCREMENTAL_DIR)
    stale = reduce_sessions(sessions)
    logger.info(
        "Found %d incremental sessions, %d superseded", len(sessions), len(stale)
    )
    return {str(canonicalize(session.path)) for session in stale}
