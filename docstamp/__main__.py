"""
Entry point for running docstamp as a module.

Usage:
    python -m docstamp render input.html -o output.pdf
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
