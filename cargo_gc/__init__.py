"""
cargo gc package.

Remove build artifacts from a cargo target directory that the current build
plan no longer references, and superseded incremental compilation sessions.
"""

from . import (
    args_parser,
    artifact_index,
    cargo,
    collector,
    config,
    freshness,
    fs_utils,
    incremental,
    live_set,
    naming,
    reports,
)
from .artifact_index import ArtifactIndex, ArtifactRecord, Freshness, FreshnessState, IndexSummary
from .collector import GarbageCollector, GcOutcome, RemovalItem, RemovalPlan
from .live_set import EmptyLiveSetError, resolve_live_set
from .naming import Identifier, normalize_name, parse_identifier, profile_to_dir

__all__ = [
    "ArtifactIndex",
    "ArtifactRecord",
    "EmptyLiveSetError",
    "Freshness",
    "FreshnessState",
    "GarbageCollector",
    "GcOutcome",
    "Identifier",
    "IndexSummary",
    "RemovalItem",
    "RemovalPlan",
    "args_parser",
    "artifact_index",
    "cargo",
    "collector",
    "config",
    "freshness",
    "fs_utils",
    "incremental",
    "live_set",
    "naming",
    "normalize_name",
    "parse_identifier",
    "profile_to_dir",
    "reports",
    "resolve_live_set",
]
