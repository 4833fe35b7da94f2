#!/usr/bin/env python3
"""
Remove stale cargo build artifacts from the target directory.

Cargo runs this as ``cargo-gc gc ...`` when invoked as ``cargo gc``.
This is a thin wrapper around the cargo_gc package.
"""
from __future__ import annotations

import sys

from cargo_gc.cli import main

if __name__ == "__main__":  # pragma: no cover
    try:
        raise SystemExit(main())
    except KeyboardInterrupt as exc:
        print("\n✗ cargo gc interrupted by user.", file=sys.stderr)
        raise SystemExit(130) from exc
