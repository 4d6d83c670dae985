"""Package entry point: ``python -m zipflow ...``."""

from __future__ import annotations

import sys

from zipflow.cli import main

if __name__ == "__main__":
    sys.exit(main())
