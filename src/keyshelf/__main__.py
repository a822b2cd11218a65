#!/usr/bin/env python3
"""
Allow running keyshelf as a module: python -m keyshelf

This enables the following usage:
    python -m keyshelf [OPTIONS] COMMAND

Which is equivalent to:
    keyshelf [OPTIONS] COMMAND
"""

from keyshelf.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
