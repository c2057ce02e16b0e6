"""Module entry point.

Runs the CLI when the package is executed with ``python -m domsift``.
"""

import sys

from domsift.cli import main

if __name__ == '__main__':
    sys.exit(main())
