"""Allow ``python -m marking_time``."""

from __future__ import annotations

import sys

from marking_time.cli import main


if __name__ == "__main__":
    sys.exit(main())
