# Copyright (c) 2025 Henru Wang
# All rights reserved.

"""Entry point for running the analyzer as a module: python -m vb6_xref"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
