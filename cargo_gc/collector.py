"""
Garbage collection for a cargo profile directory.

Builds a removal plan from the live set, the artifact index and the
incremental session reducer, then deletes it with per-item accounting. One
failed removal never aborts the batch.
"""

from __future__ import annotations

import logging
import os
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable

from .artifact_index import DEPS_DIR, ArtifactIndex, ArtifactRecord
from .freshness import FreshnessOracle, annotate_freshness
from .fs_utils import shallow_dir_size
from .live_set import LiveSet

logger = logging.getLogger(__name__)


class MissingDepsDirError(RuntimeError):
    """Raised when the profile directory has no deps tree to collect."""


@dataclass(frozen=True, order=True)
class RemovalItem:
    """A path selected for removal with the size measured when it was selected."""

    path: str
    size_bytes: int = 0


@dataclass(frozen=True)
class RemovalPlan:
    """Files from the deps tree plus superseded incremental session directories."""

    files: tuple[RemovalItem, ...] = ()
    incremental_dirs: tuple[RemovalItem, ...] = ()

    @property
    def total_bytes(self) -> int:
        return sum(item.size_bytes for item in self.files) + sum(
            item.size_bytes for item in self.incremental_dirs
        )

    @property
    def is_empty(self) -> bool:
        return not self.files and not self.incremental_dirs


@dataclass
class GcOutcome:
    """Counters accumulated while executing a plan."""

    files_selected: int = 0
    files_removed: int = 0
    dirs_selected: int = 0
    dirs_removed: int = 0
    bytes_freed: int = 0
    errors: list[tuple[str, Exception]] = field(default_factory=list)

    @property
    def failures(self) -> int:
        return len(self.errors)


def select_stale_deps(
    artifacts: Iterable[ArtifactRecord], live_set: LiveSet
) -> list[ArtifactRecord]:
    """Return deps files the live set no longer references.

    Dependency-info files and directories are never selected.
    """
    stale: list[ArtifactRecord] = []
    for record in artifacts:
        if record.is_dir or record.is_dep_info:
            continue
        if record.identifier not in live_set:
            stale.append(record)
    return stale


def _remove_all(
    items: Iterable[RemovalItem],
    remover: Callable[[str], None],
    outcome: GcOutcome,
    kind: str,
) -> int:
    removed = 0
    for item in items:
        outcome.bytes_freed += item.size_bytes
        try:
            remover(item.path)
        except OSError as exc:
            outcome.bytes_freed -= item.size_bytes
            outcome.errors.append((item.path, exc))
            logger.warning("failed to remove %s %s: %s", kind, item.path, exc)
        else:
            removed += 1
            logger.debug("Removed %s %s", kind, item.path)
    return removed


def execute_plan(
    plan: RemovalPlan,
    *,
    remove_file: Callable[[str], None] | None = None,
    remove_tree: Callable[[str], None] | None = None,
) -> GcOutcome:
    """Delete every planned path, counting successes, failures and freed bytes.

    Removers default to os.remove and shutil.rmtree.
    """
    remove_file = remove_file or os.remove
    remove_tree = remove_tree or shutil.rmtree
    outcome = GcOutcome(
        files_selected=len(plan.files),
        dirs_selected=len(plan.incremental_dirs),
    )
    outcome.files_removed = _remove_all(plan.files, remove_file, outcome, "file")
    outcome.dirs_removed = _remove_all(
        plan.incremental_dirs, remove_tree, outcome, "incremental directory"
    )
    return outcome


class GarbageCollector:
    """Plans and executes garbage collection for one profile directory."""

    def __init__(
        self,
        profile_dir: Path,
        live_set: LiveSet,
        *,
        oracle: FreshnessOracle | None = None,
        index: ArtifactIndex | None = None,
    ) -> None:
        self.profile_dir = profile_dir
        self.live_set = live_set
        self.oracle = oracle
        self.index = index if index is not None else ArtifactIndex()

    def plan(self) -> RemovalPlan:
        """Scan the profile directory and select everything stale.

        Raises:
            MissingDepsDirError: If the deps tree does not exist.
            IndexScanError: If a tree cannot be read.
            CanonicalizationError: If a selected path cannot be canonicalized.
        """
        deps_dir = self.profile_dir / DEPS_DIR
        if not deps_dir.is_dir():
            raise MissingDepsDirError(f"failed to read deps directory: {deps_dir}")

        self.index.scan(self.profile_dir)
        annotate_freshness(self.index, self.oracle)

        files = sorted(
            RemovalItem(str(record.path), record.size_bytes)
            for record in select_stale_deps(self.index.artifacts, self.live_set)
        )
        dirs = sorted(
            RemovalItem(path, shallow_dir_size(Path(path)))
            for path in self.index.load_incremental(self.profile_dir)
        )
        logger.info(
            "Selected %d deps files and %d incremental directories", len(files), len(dirs)
        )
        return RemovalPlan(files=tuple(files), incremental_dirs=tuple(dirs))

    def execute(self, plan: RemovalPlan) -> GcOutcome:
        return execute_plan(plan)
