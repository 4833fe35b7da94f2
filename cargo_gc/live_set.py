"""
Live set resolution for cargo_gc.

Turns the newline-delimited JSON messages emitted by
``cargo build --message-format=json`` into the set of artifact identifiers the
current build still needs.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import PurePath
from typing import Iterable

from .naming import Identifier, parse_identifier, split_file_name

logger = logging.getLogger(__name__)

LiveSet = frozenset[Identifier]


class BuildPlanParseError(ValueError):
    """Raised when a build-plan line is not a valid JSON message."""


class EmptyLiveSetError(RuntimeError):
    """Raised when the build produced no recognizable artifact outputs."""


@dataclass(frozen=True)
class BuildPlanRecord:
    """One build message; only its output file names matter here."""

    filenames: tuple[str, ...] = ()


def _record_from_payload(payload: object, line_no: int) -> BuildPlanRecord:
    if not isinstance(payload, dict):
        raise BuildPlanParseError(f"Line {line_no}: expected a JSON object")
    filenames = payload.get("filenames")
    if filenames is None:
        return BuildPlanRecord()
    if not isinstance(filenames, list) or not all(isinstance(f, str) for f in filenames):
        raise BuildPlanParseError(f"Line {line_no}: 'filenames' must be a list of strings")
    return BuildPlanRecord(filenames=tuple(filenames))


def parse_build_plan(text: str) -> list[BuildPlanRecord]:
    """Parse newline-delimited build messages.

    Raises:
        BuildPlanParseError: If any non-blank line is not a JSON object.
    """
    records: list[BuildPlanRecord] = []
    for line_no, raw in enumerate(text.splitlines(), start=1):
        if not raw.strip():
            continue
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise BuildPlanParseError(
                f"Line {line_no}: failed to deserialize build message: {exc}"
            ) from exc
        records.append(_record_from_payload(payload, line_no))
    return records


def resolve_live_set(records: Iterable[BuildPlanRecord]) -> LiveSet:
    """Collect identifiers from every output path of every record.

    Names are kept exactly as they appear in the file names; they are matched
    against ``deps/`` entries which use the same spelling.

    Raises:
        EmptyLiveSetError: If no output path yields an identifier.
    """
    live: set[Identifier] = set()
    for record in records:
        for filename in record.filenames:
            stem, _ = split_file_name(PurePath(filename))
            if not stem:
                continue
            identifier = parse_identifier(stem)
            if identifier is not None:
                live.add(identifier)
    if not live:
        raise EmptyLiveSetError(
            "no valid output file found in the build plan, you can just run `cargo clean`"
        )
    logger.info("Resolved %d live artifact identifiers", len(live))
    return frozenset(live)
