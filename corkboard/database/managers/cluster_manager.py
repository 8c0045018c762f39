#!/usr/bin/env python3
"""
cluster_manager.py
--------------------
Manages Cluster lifecycle and listing.

Clusters are produced by an external grouping process; this manager
only stores them. Listing methods return *active* clusters (no expiry,
or expiry in the future). Expired clusters stay readable by ID until the
ExpirySweeper removes them.

Key Features:
    - Active-only listing with a live member count per cluster
    - Explicit removal of memberships before the cluster itself
    - Cluster detail with its member entries (feed and category loaded)
    - Candidate entries for the external grouping process

Usage:
    clusters = ClusterManager(session, logger)

    cluster = clusters.create(owner_id, "Rust 2.0 launch", expires_at=tomorrow)
    for cluster in clusters.get_all(owner_id):
        print(cluster.name, cluster.entry_count)
"""
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import delete, func, or_, select

from corkboard.core.exceptions import NotFoundError
from corkboard.core.validators import DataValidator, utcnow
from corkboard.database.decorators import handle_db_errors, log_database_operation
from corkboard.database.models import Cluster, ClusterEntry, Entry, EntryStatus
from .base_manager import BaseManager
from .cluster_entry_manager import ClusterEntryManager


class ClusterManager(BaseManager):
    """Manages Cluster table operations, scoped by owner."""

    def __init__(
        self, session, logger=None, members: Optional[ClusterEntryManager] = None
    ):
        super().__init__(session, logger)
        self.members = members or ClusterEntryManager(session, logger)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _active(now: datetime):
        return or_(Cluster.expires_at.is_(None), Cluster.expires_at > now)

    @staticmethod
    def _member_count():
        return (
            select(func.count(ClusterEntry.entry_id))
            .where(ClusterEntry.cluster_id == Cluster.id)
            .correlate(Cluster)
            .scalar_subquery()
        )

    def _annotated(self, query) -> List[Cluster]:
        clusters = []
        for cluster, count in query.all():
            cluster.entry_count = count
            clusters.append(cluster)
        return clusters

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("get_cluster_by_id")
    def get_by_id(self, owner_id: int, cluster_id: int) -> Optional[Cluster]:
        """
        Retrieve a cluster by ID, expired or not.

        Returns:
            Cluster if it exists and belongs to the owner, None otherwise
        """
        return (
            self.session.query(Cluster)
            .filter(Cluster.id == cluster_id, Cluster.owner_id == owner_id)
            .populate_existing()
            .first()
        )

    @handle_db_errors
    @log_database_operation("get_all_clusters")
    def get_all(self, owner_id: int) -> List[Cluster]:
        """
        Active clusters of an owner, newest first, with ``entry_count`` set.
        """
        query = (
            self.session.query(Cluster, self._member_count())
            .filter(Cluster.owner_id == owner_id, self._active(utcnow()))
            .order_by(Cluster.created_at.desc(), Cluster.id.desc())
        )
        return self._annotated(query)

    @handle_db_errors
    @log_database_operation("get_clusters_for_entry")
    def get_for_entry(self, owner_id: int, entry_id: int) -> List[Cluster]:
        """Active clusters containing an entry, newest first."""
        return (
            self.session.query(Cluster)
            .join(ClusterEntry, ClusterEntry.cluster_id == Cluster.id)
            .filter(
                ClusterEntry.entry_id == entry_id,
                Cluster.owner_id == owner_id,
                self._active(utcnow()),
            )
            .order_by(Cluster.created_at.desc(), Cluster.id.desc())
            .all()
        )

    @handle_db_errors
    @log_database_operation("get_cluster_with_entries")
    def get_with_entries(self, owner_id: int, cluster_id: int) -> Optional[Cluster]:
        """
        Retrieve a cluster together with its member entries.

        Returns:
            Cluster with ``entries`` and ``entry_count`` set, or None
        """
        cluster = self.get_by_id(owner_id, cluster_id)
        if cluster is None:
            return None

        cluster.entries = self.members.get_entries(owner_id, cluster_id)
        cluster.entry_count = len(cluster.entries)
        return cluster

    @handle_db_errors
    @log_database_operation("get_entries_for_clustering")
    def get_entries_for_clustering(
        self, owner_id: int, limit: int = 500, max_age_days: int = 7
    ) -> List[Entry]:
        """
        Recent entries to hand to the grouping process.

        Args:
            owner_id: Owning user
            limit: Maximum number of entries
            max_age_days: Only entries published within this many days

        Returns:
            Non-removed entries, newest publication first
        """
        cutoff = utcnow() - timedelta(days=max_age_days)
        return (
            self.session.query(Entry)
            .filter(
                Entry.user_id == owner_id,
                Entry.status != EntryStatus.REMOVED.value,
                Entry.published_at >= cutoff,
            )
            .order_by(Entry.published_at.desc(), Entry.id.desc())
            .limit(limit)
            .all()
        )

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("create_cluster")
    def create(
        self, owner_id: int, name: str, expires_at: Optional[datetime] = None
    ) -> Cluster:
        """
        Create a cluster.

        Args:
            owner_id: Owning user
            name: Display name
            expires_at: Expiry time (naive values are taken as UTC), None for never

        Returns:
            Created Cluster with ``entry_count == 0``
        """
        cluster = Cluster(
            owner_id=owner_id,
            name=name,
            created_at=utcnow(),
            expires_at=DataValidator.normalize_datetime(expires_at),
        )
        self.session.add(cluster)
        self.session.flush()
        cluster.entry_count = 0

        if self.logger:
            self.logger.log_debug(
                f"Created cluster: {name}",
                {"cluster_id": cluster.id, "owner_id": owner_id},
            )
        return cluster

    @handle_db_errors
    @log_database_operation("delete_cluster")
    def delete(self, owner_id: int, cluster_id: int) -> None:
        """
        Delete a cluster and its memberships.

        Raises:
            NotFoundError: If no cluster was removed (absent or foreign)
        """
        owned = select(Cluster.id).where(
            Cluster.id == cluster_id, Cluster.owner_id == owner_id
        )
        self.session.execute(
            delete(ClusterEntry)
            .where(ClusterEntry.cluster_id.in_(owned))
            .execution_options(synchronize_session=False)
        )

        result = self.session.execute(
            delete(Cluster).where(Cluster.id == cluster_id, Cluster.owner_id == owner_id)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Cluster #{cluster_id} not found for user #{owner_id}")

    @handle_db_errors
    @log_database_operation("delete_all_clusters")
    def delete_all(self, owner_id: int) -> int:
        """
        Delete every cluster of an owner, expired or not.

        Returns:
            Number of clusters removed
        """
        owned = select(Cluster.id).where(Cluster.owner_id == owner_id)
        self.session.execute(
            delete(ClusterEntry)
            .where(ClusterEntry.cluster_id.in_(owned))
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(
            delete(Cluster)
            .where(Cluster.owner_id == owner_id)
            .execution_options(synchronize_session=False)
        )

        if self.logger:
            self.logger.log_info(
                "Deleted all clusters", {"owner_id": owner_id, "count": result.rowcount}
            )
        return result.rowcount
