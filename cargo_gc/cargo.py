"""
Cargo invocation for cargo_gc.

Runs the build with machine-readable output to learn which artifacts are
still live, and asks ``cargo metadata`` where the target directory is.
"""

from __future__ import annotations

import json
import logging
import subprocess
from pathlib import Path
from typing import Sequence

logger = logging.getLogger(__name__)


class BuildToolError(RuntimeError):
    """Raised when cargo cannot be run or exits unsuccessfully."""


def build_command(cargo_bin: str, profile_args: Sequence[str], cargo_args: Sequence[str]) -> list[str]:
    """Return the argv for a JSON-message build."""
    return [cargo_bin, "build", "--message-format=json", *profile_args, *cargo_args]


def _run(cmd: list[str], what: str) -> str:
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, check=False)
    except OSError as exc:
        raise BuildToolError(f"failed to execute {what}: {exc}") from exc
    except UnicodeDecodeError as exc:
        raise BuildToolError(f"failed to parse {what} output: {exc}") from exc
    if result.returncode != 0:
        error_msg = f"{what} failed with return code {result.returncode}"
        stderr = (result.stderr or "").strip()
        if stderr:
            error_msg += f"\n\nError details:\n{stderr}"
        raise BuildToolError(error_msg)
    return result.stdout


def run_build(cargo_bin: str, profile_args: Sequence[str], cargo_args: Sequence[str]) -> str:
    """Build the workspace and return its JSON message stream.

    Raises:
        BuildToolError: If cargo is missing or the build fails.
    """
    return _run(build_command(cargo_bin, profile_args, cargo_args), "cargo build")


def query_target_directory(cargo_bin: str) -> Path:
    """Return the workspace target directory reported by ``cargo metadata``.

    Raises:
        BuildToolError: If cargo fails or its output has no target directory.
    """
    stdout = _run(
        [cargo_bin, "metadata", "--no-deps", "--format-version", "1"], "cargo metadata"
    )
    try:
        metadata = json.loads(stdout)
    except json.JSONDecodeError as exc:
        raise BuildToolError(f"failed to parse cargo metadata output: {exc}") from exc
    target = metadata.get("target_directory") if isinstance(metadata, dict) else None
    if not isinstance(target, str) or not target:
        raise BuildToolError("cargo metadata output has no target_directory")
    return Path(target)
