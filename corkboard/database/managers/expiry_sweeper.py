#!/usr/bin/env python3
"""
expiry_sweeper.py
--------------------
Bulk removal of expired clusters.

Listing already hides expired clusters; the sweep is what reclaims
their storage. It is meant to be called periodically by an external
scheduler (see CorkboardDB.sweep_expired_clusters and the
``corkboard clusters sweep`` command) and covers every owner at once.

Usage:
    removed = ExpirySweeper(session, logger).sweep_expired()
"""
from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select

from corkboard.core.validators import DataValidator, utcnow
from corkboard.database.decorators import DatabaseOperation
from corkboard.database.models import Cluster, ClusterEntry
from .base_manager import BaseManager


class ExpirySweeper(BaseManager):
    """Deletes clusters whose expiry time has passed, with their memberships."""

    def sweep_expired(self, now: Optional[datetime] = None) -> int:
        """
        Delete all expired clusters and their memberships as one unit.

        Args:
            now: Reference time (defaults to current UTC time)

        Returns:
            Number of clusters removed

        Raises:
            StorageError: If either delete failed; nothing was removed
        """
        now = DataValidator.normalize_datetime(now) or utcnow()
        expired = Cluster.expires_at.is_not(None) & (Cluster.expires_at < now)

        with DatabaseOperation(
            self.logger, "sweep_expired_clusters", {"now": now.isoformat()}, log_start=True
        ) as op:
            with self.session.begin_nested():
                self.session.execute(
                    delete(ClusterEntry)
                    .where(ClusterEntry.cluster_id.in_(select(Cluster.id).where(expired)))
                    .execution_options(synchronize_session=False)
                )
                result = self.session.execute(
                    delete(Cluster)
                    .where(expired)
                    .execution_options(synchronize_session=False)
                )
            op.details["removed"] = result.rowcount

        return result.rowcount
