#!/usr/bin/env python3
"""
tfblueprint - Main entry point.

Runs the command-line interface.
"""

import sys

from tfblueprint.cli import main


if __name__ == "__main__":
    sys.exit(main())
