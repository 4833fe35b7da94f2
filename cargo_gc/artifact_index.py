"""
In-memory index of a cargo profile directory.

Holds two independent views of the same build output:

- the fingerprint tree (``.fingerprint/<name>-<hash>``), one record per unit
  with a freshness annotation supplied by an external oracle, and
- the compiled-dependency tree (``deps/<name>-<hash>.<ext>``), aggregated to
  size and modification time per identifier.

The views are keyed by (normalized name, hash) and are only joined when a
report is produced; a fingerprint may outlive its artifacts and vice versa.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from .fs_utils import IndexScanError, canonicalize, list_dir, tree_size
from .incremental import select_stale_sessions
from .naming import (
    DEP_INFO_EXTENSION,
    Identifier,
    normalize_name,
    parse_identifier,
    split_file_name,
)

logger = logging.getLogger(__name__)

FINGERPRINT_DIR = ".fingerprint"
DEPS_DIR = "deps"


class FreshnessState(str, Enum):
    """Build-state classification of a unit."""

    FRESH = "fresh"
    DIRTY = "dirty"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Freshness:
    """Freshness of a unit; dirty units carry the reason they must rebuild."""

    state: FreshnessState
    reason: str | None = None

    @classmethod
    def fresh(cls) -> Freshness:
        return cls(FreshnessState.FRESH)

    @classmethod
    def dirty(cls, reason: str) -> Freshness:
        return cls(FreshnessState.DIRTY, reason)

    @classmethod
    def unknown(cls) -> Freshness:
        return cls(FreshnessState.UNKNOWN)


@dataclass(frozen=True)
class ArtifactRecord:
    """One entry directly under the deps tree."""

    identifier: Identifier
    extension: str | None
    path: Path
    size_bytes: int
    mtime: float
    is_dir: bool = False

    @property
    def is_dep_info(self) -> bool:
        """Dependency-info side files are read by cargo and never removed."""
        return self.extension == DEP_INFO_EXTENSION


@dataclass
class FingerprintRecord:
    """One unit under the fingerprint tree; the name is normalized."""

    identifier: Identifier
    freshness: Freshness = field(default_factory=Freshness.unknown)


@dataclass
class ItemInfo:
    """Aggregated size and newest mtime of every deps entry for an identifier."""

    size_bytes: int
    mtime: float


@dataclass(frozen=True)
class IndexSummary:
    """Cross-tabulation of fingerprint freshness against deps correspondence."""

    fresh_with_deps: int = 0
    fresh_without_deps: int = 0
    dirty_with_deps: int = 0
    dirty_without_deps: int = 0
    unknown_with_deps: int = 0
    unknown_without_deps: int = 0
    deps_without_fingerprints: int = 0
    total_deps_items: int = 0

    @property
    def fresh_count(self) -> int:
        return self.fresh_with_deps + self.fresh_without_deps

    @property
    def dirty_count(self) -> int:
        return self.dirty_with_deps + self.dirty_without_deps

    @property
    def unknown_count(self) -> int:
        return self.unknown_with_deps + self.unknown_without_deps

    def render(self) -> str:
        """Return the multi-line text form of the summary."""
        lines = [
            "Fingerprint summary:",
            f"  fresh:   {self.fresh_count} "
            f"({self.fresh_with_deps} with deps, {self.fresh_without_deps} without deps)",
            f"  dirty:   {self.dirty_count} "
            f"({self.dirty_with_deps} with deps, {self.dirty_without_deps} without deps)",
            f"  unknown: {self.unknown_count} "
            f"({self.unknown_with_deps} with deps, {self.unknown_without_deps} without deps)",
            f"Deps items: {self.total_deps_items} total, "
            f"{self.deps_without_fingerprints} without fingerprints",
        ]
        return "\n".join(lines)


def list_artifacts(deps_dir: Path) -> list[ArtifactRecord]:
    """List every parseable entry directly under deps_dir.

    Directory entries are sized recursively. A missing deps_dir yields an
    empty list. Paths are rooted at the canonical deps_dir; a symlinked entry
    keeps its own path so removing it never touches the link target.

    Raises:
        IndexScanError: If the tree or an entry's metadata cannot be read.
        CanonicalizationError: If deps_dir cannot be canonicalized.
    """
    entries = list_dir(deps_dir)
    if entries is None:
        return []
    root = canonicalize(deps_dir)
    records: list[ArtifactRecord] = []
    for entry in entries:
        path = root / entry.name
        stem, extension = split_file_name(path)
        identifier = parse_identifier(stem)
        if identifier is None:
            logger.debug("Skipping non-artifact entry %s", path)
            continue
        try:
            stat = entry.stat(follow_symlinks=False)
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as exc:
            raise IndexScanError(f"failed to get metadata of {path}: {exc}") from exc
        size = tree_size(path) if is_dir else stat.st_size
        records.append(
            ArtifactRecord(
                identifier=identifier,
                extension=extension,
                path=path,
                size_bytes=size,
                mtime=stat.st_mtime,
                is_dir=is_dir,
            )
        )
    return records


def _list_fingerprints(fingerprint_dir: Path) -> list[Identifier]:
    entries = list_dir(fingerprint_dir)
    if entries is None:
        return []
    identifiers: list[Identifier] = []
    for entry in entries:
        identifier = parse_identifier(entry.name)
        if identifier is None:
            logger.debug("Skipping non-fingerprint entry %s", entry.path)
            continue
        identifiers.append(identifier)
    return identifiers


class ArtifactIndex:
    """Fingerprint and deps views of one profile directory."""

    def __init__(self) -> None:
        self._fingerprints: dict[str, dict[str, FingerprintRecord]] = {}
        self._deps: dict[str, dict[str, ItemInfo]] = {}
        self._artifacts: tuple[ArtifactRecord, ...] = ()

    @property
    def artifacts(self) -> tuple[ArtifactRecord, ...]:
        """Deps entries discovered by the last scan, in listing order."""
        return self._artifacts

    def scan(self, profile_dir: Path) -> None:
        """Rebuild both views from profile_dir.

        Raises:
            IndexScanError: If either tree exists but cannot be read.
        """
        self._fingerprints = {}
        self._deps = {}
        self._artifacts = ()

        for identifier in _list_fingerprints(profile_dir / FINGERPRINT_DIR):
            name = normalize_name(identifier.name)
            self._fingerprints.setdefault(name, {})[identifier.hash] = FingerprintRecord(
                Identifier(name, identifier.hash)
            )

        artifacts = list_artifacts(profile_dir / DEPS_DIR)
        for record in artifacts:
            by_hash = self._deps.setdefault(normalize_name(record.identifier.name), {})
            info = by_hash.get(record.identifier.hash)
            if info is None:
                by_hash[record.identifier.hash] = ItemInfo(record.size_bytes, record.mtime)
            else:
                info.size_bytes += record.size_bytes
                info.mtime = max(info.mtime, record.mtime)
        self._artifacts = tuple(artifacts)

        logger.info(
            "Indexed %d fingerprints and %d deps items under %s",
            sum(len(v) for v in self._fingerprints.values()),
            sum(len(v) for v in self._deps.values()),
            profile_dir,
        )

    def fingerprint_identifiers(self) -> list[Identifier]:
        """Return every indexed fingerprint identifier (normalized names)."""
        return [
            record.identifier
            for by_hash in self._fingerprints.values()
            for record in by_hash.values()
        ]

    def update_freshness(self, name: str, hash_: str, freshness: Freshness) -> None:
        """Annotate a known fingerprint; unknown identifiers are ignored."""
        record = self._fingerprints.get(normalize_name(name), {}).get(hash_)
        if record is not None:
            record.freshness = freshness

    def get_freshness(self, name: str, hash_: str) -> Freshness | None:
        record = self._fingerprints.get(normalize_name(name), {}).get(hash_)
        return record.freshness if record is not None else None

    def has_package(self, name: str) -> bool:
        normalized = normalize_name(name)
        return normalized in self._fingerprints or normalized in self._deps

    def get_deps_info(self, name: str, hash_: str) -> ItemInfo | None:
        return self._deps.get(normalize_name(name), {}).get(hash_)

    def summary(self) -> IndexSummary:
        """Cross-tabulate freshness against deps correspondence."""
        counts = {
            (state, has_deps): 0 for state in FreshnessState for has_deps in (True, False)
        }
        for name, by_hash in self._fingerprints.items():
            deps_hashes = self._deps.get(name, {})
            for hash_, record in by_hash.items():
                counts[(record.freshness.state, hash_ in deps_hashes)] += 1

        total_deps = 0
        orphaned_deps = 0
        for name, by_hash in self._deps.items():
            fingerprint_hashes = self._fingerprints.get(name, {})
            for hash_ in by_hash:
                total_deps += 1
                if hash_ not in fingerprint_hashes:
                    orphaned_deps += 1

        return IndexSummary(
            fresh_with_deps=counts[(FreshnessState.FRESH, True)],
            fresh_without_deps=counts[(FreshnessState.FRESH, False)],
            dirty_with_deps=counts[(FreshnessState.DIRTY, True)],
            dirty_without_deps=counts[(FreshnessState.DIRTY, False)],
            unknown_with_deps=counts[(FreshnessState.UNKNOWN, True)],
            unknown_without_deps=counts[(FreshnessState.UNKNOWN, False)],
            deps_without_fingerprints=orphaned_deps,
            total_deps_items=total_deps,
        )

    def report(self) -> str:
        return self.summary().render()

    def load_incremental(self, profile_dir: Path) -> set[str]:
        """Return canonical paths of superseded incremental sessions."""
        return select_stale_sessions(profile_dir)
