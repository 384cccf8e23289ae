#!/usr/bin/env python3
"""
SyncTrans Entry Point Script

This script initializes the CLI handler and runs transcript generation and translation.
"""

import sys
from synctrans.cli import CLIHandler

if __name__ == "__main__":
    if sys.version_info < (3, 9):
        sys.stderr.write("SyncTrans requires Python 3.9 or later.\n")
        sys.exit(1)

    cli = CLIHandler()
    cli.run()
