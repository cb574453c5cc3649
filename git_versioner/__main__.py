"""
Entry point for python -m git_versioner

Allows running the package as a module:
    python -m git_versioner print
"""

import sys

from .cli import main

if __name__ == '__main__':
    sys.exit(main())
