"""
gostuck.__main__ - Entry point for running gostuck as a module.

Usage:
    python -m gostuck <events_file> [options]
"""

import sys

from gostuck.cli import main

if __name__ == "__main__":
    sys.exit(main())
