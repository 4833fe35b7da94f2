"""
Artifact naming helpers for cargo_gc.

Every entry under ``.fingerprint/``, ``deps/`` and ``incremental/`` follows the
same ``<name>-<hash>`` grammar, so all trees share these parsers.
"""

from __future__ import annotations

from pathlib import PurePath
from typing import NamedTuple

DEP_INFO_EXTENSION = "d"

_PROFILE_DIRS = {"dev": "debug"}


class Identifier(NamedTuple):
    """A (name, hash) pair as it appears in an artifact file name."""

    name: str
    hash: str

    def __str__(self) -> str:
        return f"{self.name}-{self.hash}"


def parse_identifier(file_stem: str) -> Identifier | None:
    """Split a file stem on its last ``-``; return None for non-artifact names."""
    name, sep, hash_ = file_stem.rpartition("-")
    if not sep:
        return None
    return Identifier(name, hash_)


def normalize_name(name: str) -> str:
    """Return the canonical underscore form of a package name."""
    return name.replace("-", "_")


def profile_to_dir(profile: str) -> str:
    """Map a cargo profile name to the directory cargo writes it to."""
    return _PROFILE_DIRS.get(profile, profile)


def split_file_name(path: PurePath) -> tuple[str, str | None]:
    """Return (stem, extension) for a path, extension without the leading dot.

    Dotfiles such as ``.fingerprint`` have no extension, matching how the
    build tool names its outputs.
    """
    suffix = path.suffix
    if not suffix:
        return path.name, None
    return path.stem, suffix[1:]
