"""
Cluster Models
--------------

Time-bounded groups of related entries.

Models:
    - Cluster: A named group owned by one user, with optional expiry
    - ClusterEntry: Membership of an entry in a cluster

A cluster is active while ``expires_at`` is unset or in the future.
Expired clusters stay in storage until the expiry sweep removes them.
"""
from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from corkboard.core.validators import DataValidator, utcnow

from .base import Base, TimestampMixin

if TYPE_CHECKING:
    from .core import Entry


class Cluster(Base, TimestampMixin):
    """
    Group of related entries.

    Attributes:
        id: Primary key
        owner_id: Owning user
        name: Display name
        created_at: Creation time
        expires_at: Expiry time (None means never)

    Relationships:
        memberships: One-to-many with ClusterEntry

    Transient:
        entry_count: Live member count, set by listing queries
        entries: Member entries, set by ClusterManager.get_with_entries
    """

    __tablename__ = "clusters"
    __table_args__ = (
        CheckConstraint("name != ''", name="ck_cluster_non_empty_name"),
        Index("ix_clusters_expires_at", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    expires_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    memberships: Mapped[List["ClusterEntry"]] = relationship(
        "ClusterEntry",
        back_populates="cluster",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Not mapped
    entry_count = None
    entries = None

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """Whether the cluster has not yet expired at ``now``."""
        if self.expires_at is None:
            return True
        now = DataValidator.normalize_datetime(now) or utcnow()
        return DataValidator.normalize_datetime(self.expires_at) > now

    def __repr__(self) -> str:
        return f"<Cluster(id={self.id}, owner_id={self.owner_id}, name='{self.name}')>"

    def __str__(self) -> str:
        return f"ID={self.id}, OwnerID={self.owner_id}, Name={self.name}"


class ClusterEntry(Base):
    """
    Membership of an entry in a cluster.

    At most one row exists per (cluster_id, entry_id).
    """

    __tablename__ = "cluster_entries"
    __table_args__ = (Index("ix_cluster_entries_entry_id", "entry_id"),)

    cluster_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("clusters.id", ondelete="CASCADE"), primary_key=True
    )
    entry_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("entries.id", ondelete="CASCADE"), primary_key=True
    )

    cluster: Mapped["Cluster"] = relationship("Cluster", back_populates="memberships")
    entry: Mapped["Entry"] = relationship("Entry", back_populates="cluster_links")

    def __repr__(self) -> str:
        return f"<ClusterEntry(cluster_id={self.cluster_id}, entry_id={self.entry_id})>"
