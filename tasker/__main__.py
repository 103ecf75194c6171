"""CLI entry point for tasker.

Usage:
    python -m tasker [options] [manifest]

Example:
    python -m tasker apps/myapp/tasker.yaml
    python -m tasker --dry-run
    python -m tasker -t css -t js --verbose
"""

import sys

from .manifest.runner import main

if __name__ == '__main__':
    sys.exit(main())
