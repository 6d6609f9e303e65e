#!/usr/bin/env python3
"""
Verify the deployed upgrade contracts against the local repository.

The source_verifier package must be importable, so install the project first
(pip install -e .); the installed `verify-upgrade` command is equivalent.

Usage:
    pip install -e .
    python3 scripts/verify-upgrade.py --network mainnet
    verify-upgrade --network mainnet
    python3 -m source_verifier.cli --help
"""

import sys

from source_verifier.cli import main

if __name__ == "__main__":
    sys.exit(main())
