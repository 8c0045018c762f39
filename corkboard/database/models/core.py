"""
Core Models
------------

Content models that the association engine reads but never writes.

Models:
    - Category: A user's feed category
    - Feed: A subscription belonging to a category
    - Entry: A single content item published by a feed

Entries are created, updated and deleted by the feed subsystem. The
engine only needs them for ownership checks, publish-time ordering and
the feed/category metadata shown next to cluster members. Deleting an
entry cascades to its tag and cluster associations at the storage level.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, TimestampMixin
from .enums import EntryStatus

if TYPE_CHECKING:
    from .clusters import ClusterEntry
    from .tags import EntryTag


class Category(Base):
    """
    Feed category.

    Attributes:
        id: Primary key
        user_id: Owner
        title: Display title
    """

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)

    feeds: Mapped[List["Feed"]] = relationship("Feed", back_populates="category")

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, title='{self.title}')>"


class Feed(Base):
    """
    Feed subscription.

    Attributes:
        id: Primary key
        user_id: Owner
        category_id: FK to Category
        title: Display title
        site_url: Website of the feed
        icon_id: Optional icon reference
    """

    __tablename__ = "feeds"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    site_url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    icon_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    category: Mapped["Category"] = relationship("Category", back_populates="feeds")
    entries: Mapped[List["Entry"]] = relationship("Entry", back_populates="feed")

    def __repr__(self) -> str:
        return f"<Feed(id={self.id}, title='{self.title}')>"


class Entry(Base, TimestampMixin):
    """
    Content item published by a feed.

    Attributes:
        id: Primary key
        user_id: Owner (every tag attached to the entry must share it)
        feed_id: FK to Feed
        title: Entry title
        url: Link to the original item
        author: Optional author
        status: EntryStatus value
        published_at: Publication time, used for ordering
        created_at: When the row was inserted

    Relationships:
        feed: Many-to-one with Feed
        tag_links: One-to-many with EntryTag
        cluster_links: One-to-many with ClusterEntry
    """

    __tablename__ = "entries"
    __table_args__ = (Index("ix_entries_user_published", "user_id", "published_at"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    feed_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("feeds.id", ondelete="CASCADE"), nullable=False
    )
    title: Mapped[str] = mapped_column(Text, nullable=False, default="")
    url: Mapped[str] = mapped_column(Text, nullable=False, default="")
    author: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=EntryStatus.UNREAD.value
    )
    published_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    feed: Mapped["Feed"] = relationship("Feed", back_populates="entries")
    tag_links: Mapped[List["EntryTag"]] = relationship(
        "EntryTag",
        back_populates="entry",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    cluster_links: Mapped[List["ClusterEntry"]] = relationship(
        "ClusterEntry",
        back_populates="entry",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:
        return f"<Entry(id={self.id}, user_id={self.user_id}, title='{self.title}')>"
