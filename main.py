#!/usr/bin/env python3
"""
Document Management Authorization - Main Entry Point
====================================================

Runs the docmgmt admin CLI from a source checkout without installing.

Usage:
    python main.py --help                  # Show available commands
    python main.py seed                    # Create schema and load fixtures
    python main.py fga-setup               # Provision OpenFGA
    python main.py check alice doc1        # Check with Cedar
    python main.py scenario --engine local # Run scenarios with the rule table

Once installed, the same app is the `docmgmt` command, next to
`cedar-check` and `openfga-check`.
"""

import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from cli.main import app

if __name__ == "__main__":
    app()
