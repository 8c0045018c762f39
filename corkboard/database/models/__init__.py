"""
Database Models Package
------------------------

SQLAlchemy ORM models for the Corkboard database.

This package provides a modular organization of database models:
- base: Base class and mixins
- enums: Enumeration types
- core: Category, Feed and Entry (read-only to the engine)
- tags: Tag and EntryTag
- clusters: Cluster and ClusterEntry

Usage:
    from corkboard.database.models import Entry, Tag, EntryTag, Cluster
"""
# Base classes
from .base import Base, TimestampMixin

# Enumerations
from .enums import EntryStatus, TagSource

# Core models
from .core import Category, Entry, Feed

# Tags
from .tags import EntryTag, Tag

# Clusters
from .clusters import Cluster, ClusterEntry

__all__ = [
    # Base
    "Base",
    "TimestampMixin",
    # Enums
    "EntryStatus",
    "TagSource",
    # Core
    "Category",
    "Feed",
    "Entry",
    # Tags
    "Tag",
    "EntryTag",
    # Clusters
    "Cluster",
    "ClusterEntry",
]
