"""
Configuration for cargo_gc.

Settings come from the process environment, optionally seeded from a dotenv
file. Values already present in the environment win over the file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_CARGO_BIN = "cargo"
DEFAULT_PROFILE = "dev"


class ConfigurationError(RuntimeError):
    """Raised when configuration is missing or invalid."""


@dataclass(frozen=True)
class GcSettings:
    """Resolved runtime settings."""

    cargo_bin: str = DEFAULT_CARGO_BIN
    default_profile: str = DEFAULT_PROFILE
    target_dir: Path | None = None
    env_file: Path | None = None


def _resolve_env_file(env_file: str | os.PathLike | None) -> Path | None:
    """
    Determine which dotenv file to load.

    Priority order:
      1. Explicit parameter
      2. CARGO_GC_ENV_FILE environment variable
      3. ./.env when it exists
    """
    if env_file:
        path = Path(env_file).expanduser()
    elif os.environ.get("CARGO_GC_ENV_FILE"):
        path = Path(os.environ["CARGO_GC_ENV_FILE"]).expanduser()
    else:
        default = Path.cwd() / ".env"
        return default if default.is_file() else None
    if not path.is_file():
        raise ConfigurationError(f"Env file {path} does not exist.")
    return path


def _target_dir_override() -> Path | None:
    raw = os.environ.get("CARGO_GC_TARGET_DIR")
    if not raw:
        return None
    path = Path(raw).expanduser()
    if not path.is_dir():
        raise ConfigurationError(f"CARGO_GC_TARGET_DIR {path} is not a directory.")
    return path


def load_settings(env_file: str | os.PathLike | None = None) -> GcSettings:
    """Load settings from the environment after applying any dotenv file.

    Raises:
        ConfigurationError: If a named env file or the target dir override is missing.
    """
    resolved = _resolve_env_file(env_file)
    if resolved is not None:
        load_dotenv(resolved, override=False)
        logger.debug("Loaded environment from %s", resolved)

    return GcSettings(
        cargo_bin=os.environ.get("CARGO") or DEFAULT_CARGO_BIN,
        default_profile=os.environ.get("CARGO_GC_PROFILE") or DEFAULT_PROFILE,
        target_dir=_target_dir_override(),
        env_file=resolved,
    )
