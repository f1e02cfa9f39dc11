"""Allow running as ``python -m py2pixelflut``."""

import sys

from py2pixelflut.cli import main

if __name__ == "__main__":
    sys.exit(main())
