#!/usr/bin/env python3
"""
Simpro CLI entrypoint (source-checkout convenience).

NOTE:
This file is intentionally small. The command implementations live in
`simpro/app.py`; installed environments get the same thing as the `simpro` script.
"""
from __future__ import annotations

import sys
from pathlib import Path

# Add the parent directory to Python path to allow running from a source checkout
parent_dir = Path(__file__).parent.parent
sys.path.insert(0, str(parent_dir))

from simpro.app import main  # noqa: E402


if __name__ == "__main__":
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        sys.exit(0)
