#!/usr/bin/env python3
"""
managers package
--------------------
Entity managers for the Corkboard association engine.

Each manager handles one side of the engine and inherits from
BaseManager. Managers are bound to a single session; obtain them through
CorkboardDB.session_scope() rather than sharing them across threads.

Available Managers:
    BaseManager: Abstract base class with common utilities
    TagManager: Tag identity and naming
    EntryTagManager: Entry↔tag associations and their provenance
    TagMerger: Atomic folding of tags into a target tag
    ClusterManager: Cluster lifecycle and listing
    ClusterEntryManager: Cluster membership
    ExpirySweeper: Bulk removal of expired clusters

Usage:
    from corkboard.database.managers import TagManager, EntryTagManager

    tag_mgr = TagManager(session, logger)
    links = EntryTagManager(session, logger, tags=tag_mgr)
"""
from .base_manager import BaseManager
from .tag_manager import TagManager
from .entry_tag_manager import EntryTagManager
from .tag_merger import TagMerger
from .cluster_entry_manager import ClusterEntryManager
from .cluster_manager import ClusterManager
from .expiry_sweeper import ExpirySweeper

__all__ = [
    "BaseManager",
    "TagManager",
    "EntryTagManager",
    "TagMerger",
    "ClusterManager",
    "ClusterEntryManager",
    "ExpirySweeper",
]
