"""
Tag Models
----------

User-defined tags and their provenance-carrying links to entries.

Models:
    - Tag: A named label owned by one user
    - EntryTag: Association between an entry and a tag

Tag names are unique per owner ignoring case. The functional index
``uq_tags_owner_lower_name`` is the storage-level race guard for
concurrent creations of the same name.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin
from .enums import TagSource

if TYPE_CHECKING:
    from .core import Entry


class Tag(Base, TimestampMixin):
    """
    Keyword tag owned by a single user.

    Attributes:
        id: Primary key
        owner_id: Owning user
        name: Display name (unique per owner, case-insensitive)
        created_at: Creation time

    Relationships:
        entry_links: One-to-many with EntryTag

    Transient:
        entry_count: Number of associations, set only by counting queries
    """

    __tablename__ = "tags"
    __table_args__ = (
        CheckConstraint("name != ''", name="ck_tag_non_empty_name"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)

    entry_links: Mapped[List["EntryTag"]] = relationship(
        "EntryTag",
        back_populates="tag",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Not mapped; filled by TagManager.get_all_with_counts
    entry_count = None

    def __repr__(self) -> str:
        return f"<Tag(id={self.id}, owner_id={self.owner_id}, name='{self.name}')>"

    def __str__(self) -> str:
        return f"ID={self.id}, OwnerID={self.owner_id}, Name={self.name}"


# Case-insensitive name uniqueness per owner
Index(
    "uq_tags_owner_lower_name",
    Tag.owner_id,
    func.lower(Tag.name),
    unique=True,
)


class EntryTag(Base):
    """
    Link between an entry and a tag.

    At most one row exists per (entry_id, tag_id). ``source`` records
    whether the user applied the tag or automated processing suggested
    it; confirming a suggestion flips it to manual.

    Attributes:
        entry_id: FK to Entry (part of primary key)
        tag_id: FK to Tag (part of primary key)
        source: TagSource value
        created_at: When the tag was first applied

    Relationships:
        entry: Many-to-one with Entry
        tag: Many-to-one with Tag
    """

    __tablename__ = "entry_tags"
    __table_args__ = (
        CheckConstraint(
            "source IN ('manual', 'auto')", name="ck_entry_tag_valid_source"
        ),
        Index("ix_entry_tags_tag_id", "tag_id"),
    )

    entry_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("entries.id", ondelete="CASCADE"), primary_key=True
    )
    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    )
    source: Mapped[str] = mapped_column(
        String(16), nullable=False, default=TagSource.MANUAL.value
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    entry: Mapped["Entry"] = relationship("Entry", back_populates="tag_links")
    tag: Mapped["Tag"] = relationship("Tag", back_populates="entry_links")

    @property
    def tag_name(self) -> Optional[str]:
        """Name of the linked tag, for display."""
        return self.tag.name if self.tag is not None else None

    @property
    def is_auto(self) -> bool:
        """Whether the link is an unconfirmed suggestion."""
        return self.source == TagSource.AUTO.value

    def __repr__(self) -> str:
        return (
            f"<EntryTag(entry_id={self.entry_id}, tag_id={self.tag_id}, "
            f"source='{self.source}')>"
        )
