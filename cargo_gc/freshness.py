"""
Freshness oracle boundary for cargo_gc.

Freshness is never computed here. An oracle is any callable that maps a
fingerprint identifier to a Freshness (or None when it has no opinion); the
index only records and cross-tabulates its answers.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Callable, Optional

from .artifact_index import ArtifactIndex, Freshness
from .naming import normalize_name

logger = logging.getLogger(__name__)

FreshnessOracle = Callable[[str, str], Optional[Freshness]]

DEFAULT_DIRTY_REASON = "unknown reason"


class FreshnessFileError(RuntimeError):
    """Raised when a freshness file cannot be read or is malformed."""


def annotate_freshness(index: ArtifactIndex, oracle: FreshnessOracle | None) -> int:
    """Ask the oracle about every indexed fingerprint; return how many it classified.

    Without an oracle every fingerprint stays Unknown.
    """
    if oracle is None:
        return 0
    classified = 0
    for identifier in index.fingerprint_identifiers():
        freshness = oracle(identifier.name, identifier.hash)
        if freshness is None:
            continue
        index.update_freshness(identifier.name, identifier.hash, freshness)
        classified += 1
    logger.info("Freshness oracle classified %d units", classified)
    return classified


def _parse_entry(payload: object, path: Path, line_no: int) -> tuple[str, str, Freshness]:
    if not isinstance(payload, dict):
        raise FreshnessFileError(f"{path}:{line_no}: expected a JSON object")
    for key in ("name", "hash", "fresh"):
        if key not in payload:
            raise FreshnessFileError(f"{path}:{line_no}: missing '{key}' key")
    name, hash_, fresh = payload["name"], payload["hash"], payload["fresh"]
    if not isinstance(name, str) or not isinstance(hash_, str) or not isinstance(fresh, bool):
        raise FreshnessFileError(f"{path}:{line_no}: 'name'/'hash' must be strings, 'fresh' a bool")
    if fresh:
        return name, hash_, Freshness.fresh()
    reason = payload.get("reason") or DEFAULT_DIRTY_REASON
    return name, hash_, Freshness.dirty(str(reason))


def load_freshness_file(path: Path) -> FreshnessOracle:
    """Build an oracle from a newline-delimited JSON freshness export.

    Raises:
        FreshnessFileError: If the file cannot be read or a line is malformed.
    """
    try:
        text = path.read_text()
    except OSError as exc:
        raise FreshnessFileError(f"Failed to read freshness file {path}: {exc}") from exc

    table: dict[tuple[str, str], Freshness] = {}
    for line_no, raw in enumerate(text.splitlines(), start=1):
        if not raw.strip():
            continue
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise FreshnessFileError(f"{path}:{line_no}: invalid JSON: {exc}") from exc
        name, hash_, freshness = _parse_entry(payload, path, line_no)
        table[(normalize_name(name), hash_)] = freshness

    def oracle(name: str, hash_: str) -> Freshness | None:
        return table.get((normalize_name(name), hash_))

    return oracle
