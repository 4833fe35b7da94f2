"""
Report output for cargo gc.

Handles byte formatting, removal-plan listings, and the final summary line.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from cargo_gc.collector import GcOutcome, RemovalPlan

BYTES_PER_KB = 1000
UNITS = ["B", "kB", "MB", "GB", "TB", "PB"]


def format_bytes(num_bytes: Optional[int]) -> str:
    """
    Format byte count as a human-readable string in decimal units.

    Args:
        num_bytes: Number of bytes to format (None returns "n/a")

    Returns:
        Formatted string like "1.23 MB"

    Examples:
        >>> format_bytes(1000)
        '1.00 kB'
        >>> format_bytes(512)
        '512 B'
    """
    if num_bytes is None:
        return "n/a"

    if num_bytes < BYTES_PER_KB:
        return f"{num_bytes} B"

    value = float(num_bytes)
    for unit in UNITS:
        if value < BYTES_PER_KB or unit == UNITS[-1]:
            return f"{value:.2f} {unit}"
        value /= BYTES_PER_KB
    return f"{value:.2f} {UNITS[-1]}"


def print_removal_plan(plan: RemovalPlan, *, verbose: bool) -> None:
    """Print plan totals, and every selected path when verbose."""
    print(
        f"found {len(plan.files)} outdated files and "
        f"{len(plan.incremental_dirs)} stale incremental directories "
        f"({format_bytes(plan.total_bytes)} reclaimable)"
    )
    if not verbose:
        return
    if plan.files:
        print("files to remove:")
        for item in plan.files:
            print(f"  {format_bytes(item.size_bytes):>12}  {item.path}")
    if plan.incremental_dirs:
        print("incremental directories to remove:")
        for item in plan.incremental_dirs:
            print(f"  {format_bytes(item.size_bytes):>12}  {item.path}")


def render_outcome(outcome: GcOutcome, profile_dir: Path) -> str:
    """Return the final one-line summary of an executed plan."""
    fail_report = ""
    if outcome.failures:
        fail_report = f", {outcome.failures} items failed to remove"
    return (
        f"Removed {outcome.files_removed}/{outcome.files_selected} files and "
        f"{outcome.dirs_removed}/{outcome.dirs_selected} incremental directories "
        f"from {profile_dir}, {format_bytes(outcome.bytes_freed)} freed{fail_report}"
    )
