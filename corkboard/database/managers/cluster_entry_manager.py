#!/usr/bin/env python3
"""
cluster_entry_manager.py
--------------------
Manages cluster membership (the cluster↔entry relation).

Membership rows carry no payload: an entry either is in a cluster or it
is not. Adding is INSERT ... ON CONFLICT DO NOTHING, so adding the same
entry twice, or from two callers at once, leaves exactly one row.

Usage:
    members = ClusterEntryManager(session, logger)
    members.add_many(cluster.id, [e.id for e in related])
    for entry in members.get_entries(owner_id, cluster.id):
        print(entry.title, entry.feed.title, entry.feed.category.title)
"""
from typing import List, Sequence

from sqlalchemy import delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import contains_eager

from corkboard.core.exceptions import StorageError
from corkboard.database.decorators import handle_db_errors, log_database_operation
from corkboard.database.models import ClusterEntry, Entry, Feed
from .base_manager import BaseManager


class ClusterEntryManager(BaseManager):
    """
    Manages ClusterEntry rows.

    Cluster ownership is checked by the callers (ClusterManager); reads
    here are still restricted to the owner's entries.
    """

    def _add_stmt(self, cluster_id: int, entry_id: int):
        return (
            self._insert(ClusterEntry)
            .values(cluster_id=cluster_id, entry_id=entry_id)
            .on_conflict_do_nothing(index_elements=["cluster_id", "entry_id"])
        )

    @handle_db_errors
    @log_database_operation("add_cluster_entry")
    def add(self, cluster_id: int, entry_id: int) -> None:
        """
        Add an entry to a cluster. Adding an existing member is a no-op.

        Raises:
            StorageError: If the cluster or entry does not exist
        """
        stmt = self._add_stmt(cluster_id, entry_id)
        self._execute_with_retry(lambda: self.session.execute(stmt))

    @handle_db_errors
    @log_database_operation("add_cluster_entries")
    def add_many(self, cluster_id: int, entry_ids: Sequence[int]) -> None:
        """
        Add several entries to a cluster as one unit.

        Args:
            cluster_id: Target cluster
            entry_ids: Entries to add (duplicates and existing members are fine)

        Raises:
            StorageError: If any insert failed; no membership was added
        """
        if not entry_ids:
            return

        try:
            with self.session.begin_nested():
                for entry_id in entry_ids:
                    self.session.execute(self._add_stmt(cluster_id, entry_id))
        except SQLAlchemyError as e:
            raise StorageError(
                f"Failed to add {len(entry_ids)} entries to cluster #{cluster_id}: {e}"
            ) from e

        if self.logger:
            self.logger.log_debug(
                "Added entries to cluster",
                {"cluster_id": cluster_id, "count": len(entry_ids)},
            )

    @handle_db_errors
    @log_database_operation("remove_cluster_entry")
    def remove(self, cluster_id: int, entry_id: int) -> None:
        """Remove an entry from a cluster. Removing a non-member is a no-op."""
        self.session.execute(
            delete(ClusterEntry)
            .where(ClusterEntry.cluster_id == cluster_id, ClusterEntry.entry_id == entry_id)
            .execution_options(synchronize_session=False)
        )

    @handle_db_errors
    @log_database_operation("get_cluster_entries")
    def get_entries(self, owner_id: int, cluster_id: int) -> List[Entry]:
        """
        Member entries of a cluster, newest publication first.

        Returns:
            Entry objects with ``feed`` and ``feed.category`` loaded
        """
        return (
            self.session.query(Entry)
            .join(ClusterEntry, ClusterEntry.entry_id == Entry.id)
            .join(Entry.feed)
            .join(Feed.category)
            .options(contains_eager(Entry.feed).contains_eager(Feed.category))
            .filter(ClusterEntry.cluster_id == cluster_id, Entry.user_id == owner_id)
            .order_by(Entry.published_at.desc(), Entry.id.desc())
            .all()
        )

    @handle_db_errors
    @log_database_operation("count_cluster_entries")
    def count(self, cluster_id: int) -> int:
        """Live number of members of a cluster."""
        return (
            self.session.query(func.count(ClusterEntry.entry_id))
            .filter(ClusterEntry.cluster_id == cluster_id)
            .scalar()
        )
