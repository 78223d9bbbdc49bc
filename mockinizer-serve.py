#!/usr/bin/env python3
"""
Mockinizer - programmable mock HTTP server

This is a convenience wrapper that calls the packaged CLI.
The actual implementation is in src/mockinizer/cli.py

Usage:
    python mockinizer-serve.py serve mocks.yaml --port 34567

For more information, see DESIGN.md
"""

import sys
from pathlib import Path

# Add src to the path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from mockinizer.cli import main

if __name__ == '__main__':
    main()
