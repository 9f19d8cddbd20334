"""
Entry point for running hostfit as a module.

Usage:
    python -m hostfit hardware
    python -m hostfit hardware --json
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
