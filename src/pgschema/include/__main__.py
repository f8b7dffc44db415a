"""Entry point for running the include resolver as a module.

Usage:
    python -m pgschema.include main.sql
"""

import sys

from pgschema.include.cli import main

if __name__ == "__main__":
    sys.exit(main())
