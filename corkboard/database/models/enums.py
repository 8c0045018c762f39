"""
Enumeration Types
------------------

Enum classes for the Corkboard database models.

Enums:
    - TagSource: Provenance of an entry-tag association (manual, auto)
    - EntryStatus: Lifecycle state of a content entry
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from enum import Enum
from typing import List


class TagSource(str, Enum):
    """
    Enumeration of tag provenance.
    - MANUAL: Applied or confirmed by the user
    - AUTO: Inferred by automated processing, pending confirmation
    """

    MANUAL = "manual"
    AUTO = "auto"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available source choices."""
        return [source.value for source in cls]

    @property
    def display_name(self) -> str:
        """Get human-readable display name."""
        display_map = {
            self.MANUAL: "Manual",
            self.AUTO: "Suggested",
        }
        return display_map.get(self, self.value.title())


class EntryStatus(str, Enum):
    """
    Enumeration of entry states.

    Entries are owned by the feed subsystem; only REMOVED matters here,
    since removed entries are never offered for clustering.
    """

    UNREAD = "unread"
    READ = "read"
    REMOVED = "removed"

    @classmethod
    def choices(cls) -> List[str]:
        """Get all available status choices."""
        return [status.value for status in cls]
