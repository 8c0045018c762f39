#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants for the Corkboard project.

The project structure:
    ROOT/
    ├── corkboard/              # Package code
    │   └── migrations/         # Alembic environment and revisions
    ├── data/                   # SQLite database (default location)
    └── logs/                   # Application logs

These are the defaults for the command-line options; every path can be
overridden when constructing ``CorkboardDB`` or on the command line.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path


def _get_project_root() -> Path:
    """
    Determine project root directory.

    Assumes this file is at ROOT/corkboard/core/paths.py.

    Returns:
        Path object for project root

    Raises:
        RuntimeError: If the package directory cannot be located
    """
    current_file = Path(__file__).resolve()

    # paths.py -> core/ -> corkboard/ -> ROOT/
    root = current_file.parent.parent.parent

    if not (root / "corkboard").is_dir():
        raise RuntimeError(
            f"Cannot determine valid project root. "
            f"Expected {root / 'corkboard'} to exist. "
            f"Current file: {current_file}"
        )

    return root


# ----- Project directory -----
ROOT: Path = _get_project_root()
PACKAGE_DIR = ROOT / "corkboard"
DATA_DIR = ROOT / "data"

# --- Database ---
MIGRATIONS_DIR = PACKAGE_DIR / "migrations"
ALEMBIC_INI = ROOT / "alembic.ini"
DB_PATH = DATA_DIR / "corkboard.db"

# ---- Logs ----
LOG_DIR = ROOT / "logs"
