#!/usr/bin/env python3
"""
Corkboard Database Package
---------------------------
Tag & cluster association engine on top of SQLAlchemy.

This package provides:
- CorkboardDB: engine, sessions, schema lifecycle and manager access
- managers: tag, entry-tag, merge, cluster, membership and sweep logic
- models: ORM models for entries, tags and clusters
- decorators: error translation and operation logging
"""

from .manager import CorkboardDB
from corkboard.core.exceptions import (
    DatabaseError,
    DuplicateNameError,
    MergeFailedError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from .decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
)

__version__ = "1.0.0"

__all__ = [
    # Main manager
    "CorkboardDB",
    # Exceptions
    "DatabaseError",
    "DuplicateNameError",
    "MergeFailedError",
    "NotFoundError",
    "StorageError",
    "ValidationError",
    # Decorators
    "DatabaseOperation",
    "handle_db_errors",
    "log_database_operation",
]
