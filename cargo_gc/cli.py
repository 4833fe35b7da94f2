"""
Command-line interface and main entry point for cargo gc.

Handles workflow orchestration and user interaction.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .args_parser import cargo_profile_args, effective_profile, parse_args, resolve_profile
from .cargo import BuildToolError, query_target_directory, run_build
from .collector import GarbageCollector, MissingDepsDirError
from .config import ConfigurationError, GcSettings, load_settings
from .freshness import FreshnessFileError, load_freshness_file
from .fs_utils import CanonicalizationError, IndexScanError
from .live_set import BuildPlanParseError, EmptyLiveSetError, LiveSet, parse_build_plan, resolve_live_set
from .naming import profile_to_dir
from .reports import print_removal_plan, render_outcome

FATAL_ERRORS = (
    BuildPlanParseError,
    BuildToolError,
    CanonicalizationError,
    ConfigurationError,
    EmptyLiveSetError,
    FreshnessFileError,
    IndexScanError,
    MissingDepsDirError,
)


def _gather_live_set(settings: GcSettings, profile: str, cargo_args: list[str]) -> LiveSet:
    """Run the build and derive the live set from its JSON messages."""
    stdout = run_build(settings.cargo_bin, cargo_profile_args(profile, cargo_args), cargo_args)
    return resolve_live_set(parse_build_plan(stdout))


def _resolve_profile_dir(settings: GcSettings, profile: str) -> Path:
    """Return the on-disk directory cargo writes the profile's outputs to."""
    target_dir = settings.target_dir
    if target_dir is None:
        target_dir = query_target_directory(settings.cargo_bin)
    return target_dir / profile_to_dir(profile)


def _run(args: argparse.Namespace) -> int:
    settings = load_settings(args.env_file)
    profile = resolve_profile(args.release, args.profile, settings.default_profile)
    oracle = load_freshness_file(args.freshness) if args.freshness else None

    live_set = _gather_live_set(settings, profile, args.cargo_args)
    profile_dir = _resolve_profile_dir(settings, effective_profile(profile, args.cargo_args))

    collector = GarbageCollector(profile_dir, live_set, oracle=oracle)
    plan = collector.plan()

    print_removal_plan(plan, verbose=args.verbose)
    print(collector.index.report())
    if args.dry_run:
        print("abort due to dry run")
        return 0

    outcome = collector.execute(plan)
    print(render_outcome(outcome, profile_dir))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the cargo gc CLI."""
    args = parse_args(argv or sys.argv[1:])
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(message)s",
    )
    try:
        return _run(args)
    except FATAL_ERRORS as exc:
        logging.error("%s", exc)
        return 1
