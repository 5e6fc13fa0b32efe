"""Entry point for `python -m calendarkit`."""

import sys

from calendarkit.cli import main

if __name__ == "__main__":
    sys.exit(main())
