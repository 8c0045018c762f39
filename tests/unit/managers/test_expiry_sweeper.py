"""
test_expiry_sweeper.py
----------------------
Unit tests for ExpirySweeper.

After a sweep at time T no cluster with expires_at < T remains, nor any
membership pointing at one; everything else is untouched.
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from corkboard.core.exceptions import StorageError
from corkboard.database.models import Cluster, ClusterEntry

OWNER = 1
OTHER = 2

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clusters(cluster_manager, cluster_entry_manager, make_entry):
    """
    Clusters around NOW, each with one member.

    stale: expired an hour before NOW (other owner)
    old: expired a day before NOW
    edge: expires exactly at NOW
    live: expires an hour after NOW
    forever: never expires
    """
    layout = {
        "stale": (OTHER, NOW - timedelta(hours=1)),
        "old": (OWNER, NOW - timedelta(days=1)),
        "edge": (OWNER, NOW),
        "live": (OWNER, NOW + timedelta(hours=1)),
        "forever": (OWNER, None),
    }
    created = {}
    for name, (owner, expires_at) in layout.items():
        cluster = cluster_manager.create(owner, name, expires_at=expires_at)
        cluster_entry_manager.add(cluster.id, make_entry(owner, title=name).id)
        created[name] = cluster
    return created


def remaining(session):
    return sorted(name for (name,) in session.query(Cluster.name).all())


class TestSweepExpired:
    """Test ExpirySweeper.sweep_expired()."""

    def test_removes_only_expired(self, expiry_sweeper, clusters, db_session):
        """Test clusters expired before NOW go, across owners."""
        removed = expiry_sweeper.sweep_expired(NOW)

        assert removed == 2
        assert remaining(db_session) == ["edge", "forever", "live"]

    def test_removes_memberships_of_expired(self, expiry_sweeper, clusters, db_session):
        """Test no membership points at a swept cluster."""
        expiry_sweeper.sweep_expired(NOW)

        swept = {clusters["stale"].id, clusters["old"].id}
        cluster_ids = {cid for (cid,) in db_session.query(ClusterEntry.cluster_id).all()}
        assert cluster_ids.isdisjoint(swept)
        assert len(cluster_ids) == 3

    def test_second_sweep_is_noop(self, expiry_sweeper, clusters):
        """Test sweeping again at the same time removes nothing."""
        expiry_sweeper.sweep_expired(NOW)
        assert expiry_sweeper.sweep_expired(NOW) == 0

    def test_later_sweep_catches_up(self, expiry_sweeper, clusters, db_session):
        """Test moving time forward expires the next clusters."""
        assert expiry_sweeper.sweep_expired(NOW + timedelta(hours=2)) == 4
        assert remaining(db_session) == ["forever"]

    def test_naive_now_is_utc(self, expiry_sweeper, clusters):
        """Test a naive reference time is read as UTC."""
        assert expiry_sweeper.sweep_expired(NOW.replace(tzinfo=None)) == 2

    def test_empty_database(self, expiry_sweeper):
        """Test sweeping nothing returns zero."""
        assert expiry_sweeper.sweep_expired(NOW) == 0

    def test_logs_completion(self, db_session, clusters):
        """Test the sweep reports its outcome through the logger."""
        from corkboard.database.managers.expiry_sweeper import ExpirySweeper

        logger = MagicMock()
        ExpirySweeper(db_session, logger).sweep_expired(NOW)

        logger.log_operation.assert_called_once()
        operation, details = logger.log_operation.call_args[0]
        assert operation == "sweep_expired_clusters_completed"
        assert details["removed"] == 2
        assert details["success"] is True

    def test_failure_removes_nothing(self, expiry_sweeper, clusters, db_session, monkeypatch):
        """Test a failing second delete rolls back the membership delete too."""
        real_execute = db_session.execute
        calls = []

        def fail_on_cluster_delete(statement, *args, **kwargs):
            calls.append(statement)
            if len(calls) == 2:
                raise OperationalError("DELETE FROM clusters", {}, Exception("disk full"))
            return real_execute(statement, *args, **kwargs)

        monkeypatch.setattr(db_session, "execute", fail_on_cluster_delete)
        with pytest.raises(StorageError):
            expiry_sweeper.sweep_expired(NOW)
        monkeypatch.undo()

        assert len(remaining(db_session)) == 5
        assert db_session.query(ClusterEntry).count() == 5


class TestDatabaseSweep:
    """Test CorkboardDB.sweep_expired_clusters()."""

    def test_runs_in_own_transaction(self, test_db):
        """Test the sweep commits on its own outside any caller session."""
        with test_db.session_scope():
            test_db.clusters.create(OWNER, "old", expires_at=NOW - timedelta(days=1))
            test_db.clusters.create(OWNER, "new")

        assert test_db.sweep_expired_clusters(NOW) == 1

        with test_db.session_scope():
            assert [c.name for c in test_db.clusters.get_all(OWNER)] == ["new"]
