#!/usr/bin/env python3
"""
Main entry point for the CLI when run as a module.

Usage:
    python -m corkboard.database.cli [options] [command]
"""
from . import main

if __name__ == "__main__":
    main()
