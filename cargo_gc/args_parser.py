"""
Argument parsing for the cargo gc CLI.

Handles command-line argument definition, parsing, and profile resolution.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Sequence

from .config import DEFAULT_PROFILE

RELEASE_PROFILE = "release"


def add_profile_arguments(parser: argparse.ArgumentParser) -> None:
    """Add mutually exclusive profile selectors."""
    group = parser.add_mutually_exclusive_group()
    group.add_argument(
        "-r",
        "--release",
        action="store_true",
        help="GC artifacts built in release profile.",
    )
    group.add_argument("--profile", help="GC artifacts with the specified profile.")


def add_action_arguments(parser: argparse.ArgumentParser) -> None:
    """Add action and output arguments."""
    parser.add_argument(
        "-d",
        "--dry-run",
        action="store_true",
        help="Perform all checks without making any changes.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Display the detailed path of removed files.",
    )


def add_input_arguments(parser: argparse.ArgumentParser) -> None:
    """Add optional inputs feeding configuration and freshness."""
    parser.add_argument(
        "--freshness",
        type=Path,
        help="Newline-delimited JSON freshness export used to annotate fingerprints.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        help="Dotenv file to load settings from (default: $CARGO_GC_ENV_FILE or ./.env).",
    )
    parser.add_argument(
        "cargo_args",
        nargs=argparse.REMAINDER,
        help="Arguments passed to `cargo build`, use `--` to separate them from cargo-gc arguments.",
    )


def resolve_profile(release: bool, profile: str | None, default: str = DEFAULT_PROFILE) -> str:
    """Return the profile selected by --profile/--release, else the default."""
    if profile:
        return profile
    if release:
        return RELEASE_PROFILE
    return default


def _profile_in_cargo_args(cargo_args: Sequence[str]) -> str | None:
    selected: str | None = None
    idx = 0
    while idx < len(cargo_args):
        arg = cargo_args[idx]
        if arg == "--profile":
            if idx + 1 < len(cargo_args):
                selected = cargo_args[idx + 1]
                idx += 1
        elif arg.startswith("--profile="):
            selected = arg[len("--profile=") :]
        elif arg in ("--release", "-r"):
            selected = RELEASE_PROFILE
        idx += 1
    return selected


def effective_profile(profile: str, cargo_args: Sequence[str]) -> str:
    """Return the profile cargo will actually build, honoring pass-through flags."""
    return _profile_in_cargo_args(cargo_args) or profile


def cargo_profile_args(profile: str, cargo_args: Sequence[str]) -> list[str]:
    """Return the profile flags to add to the cargo build command."""
    if _profile_in_cargo_args(cargo_args) is not None or profile == DEFAULT_PROFILE:
        return []
    return ["--profile", profile]


def build_parser() -> argparse.ArgumentParser:
    """Create the `cargo gc` argument parser."""
    parser = argparse.ArgumentParser(
        prog="cargo",
        description="Remove stale cargo build artifacts that the current build no longer uses.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    gc_parser = subparsers.add_parser(
        "gc",
        help="Remove outdated files from the target directory.",
        description="Remove outdated files from the target directory.",
    )
    add_profile_arguments(gc_parser)
    add_action_arguments(gc_parser)
    add_input_arguments(gc_parser)
    return parser


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    """Parse command-line arguments; the profile is resolved once settings are loaded."""
    parser = build_parser()
    args = parser.parse_args(list(argv))
    cargo_args = list(args.cargo_args)
    if cargo_args and cargo_args[0] == "--":
        cargo_args = cargo_args[1:]
    args.cargo_args = cargo_args
    return args
