"""
test_cluster_entry_manager.py
-----------------------------
Unit tests for ClusterEntryManager.

Membership is idempotent: adding an entry any number of times leaves
exactly one row, and a failing batch adds nothing.
"""
from datetime import timedelta

import pytest

from corkboard.core.exceptions import StorageError
from corkboard.database.models import ClusterEntry

OWNER = 1
OTHER = 2


@pytest.fixture
def cluster(cluster_manager):
    """An active cluster with no members."""
    return cluster_manager.create(OWNER, "Release week")


class TestAdd:
    """Test ClusterEntryManager.add()."""

    def test_add_member(self, cluster_entry_manager, cluster, make_entry):
        """Test an entry becomes a member."""
        entry = make_entry()

        cluster_entry_manager.add(cluster.id, entry.id)

        assert cluster_entry_manager.count(cluster.id) == 1

    def test_add_twice_keeps_one_row(self, cluster_entry_manager, cluster, make_entry):
        """Test re-adding an existing member is a no-op."""
        entry = make_entry()

        cluster_entry_manager.add(cluster.id, entry.id)
        cluster_entry_manager.add(cluster.id, entry.id)

        assert cluster_entry_manager.count(cluster.id) == 1

    def test_add_missing_entry_raises(self, cluster_entry_manager, cluster):
        """Test foreign keys reject unknown entries."""
        with pytest.raises(StorageError):
            cluster_entry_manager.add(cluster.id, 999)


class TestAddMany:
    """Test ClusterEntryManager.add_many()."""

    def test_add_many_with_duplicates(self, cluster_entry_manager, cluster, make_entry):
        """Test duplicates in the batch and existing members collapse."""
        first = make_entry(title="One")
        second = make_entry(title="Two")
        cluster_entry_manager.add(cluster.id, first.id)

        cluster_entry_manager.add_many(cluster.id, [first.id, second.id, second.id])

        assert cluster_entry_manager.count(cluster.id) == 2

    def test_add_many_empty_is_noop(self, cluster_entry_manager, cluster):
        """Test an empty batch does nothing."""
        cluster_entry_manager.add_many(cluster.id, [])
        assert cluster_entry_manager.count(cluster.id) == 0

    def test_add_many_is_all_or_nothing(
        self, cluster_entry_manager, cluster, make_entry, db_session
    ):
        """Test one bad entry rolls back the whole batch."""
        first = make_entry(title="One")
        second = make_entry(title="Two")

        with pytest.raises(StorageError):
            cluster_entry_manager.add_many(cluster.id, [first.id, 999, second.id])

        assert db_session.query(ClusterEntry).count() == 0

        # The surrounding transaction is still usable
        cluster_entry_manager.add_many(cluster.id, [first.id, second.id])
        assert cluster_entry_manager.count(cluster.id) == 2


class TestRemove:
    """Test ClusterEntryManager.remove()."""

    def test_remove_member(self, cluster_entry_manager, cluster, make_entry):
        """Test removing a member."""
        entry = make_entry()
        cluster_entry_manager.add(cluster.id, entry.id)

        cluster_entry_manager.remove(cluster.id, entry.id)

        assert cluster_entry_manager.count(cluster.id) == 0

    def test_remove_twice_is_noop(self, cluster_entry_manager, cluster, make_entry):
        """Test removing a non-member does not fail."""
        entry = make_entry()

        cluster_entry_manager.remove(cluster.id, entry.id)
        cluster_entry_manager.remove(cluster.id, entry.id)

        assert cluster_entry_manager.count(cluster.id) == 0


class TestGetEntries:
    """Test ClusterEntryManager.get_entries()."""

    def test_entries_newest_first_with_feed(
        self, cluster_entry_manager, cluster, make_entry, make_feed
    ):
        """Test members are ordered by publication and carry feed metadata."""
        feed = make_feed(OWNER, title="Planet Python", category="Programming")
        old = make_entry(title="Old", age=timedelta(days=2), feed=feed)
        new = make_entry(title="New", age=timedelta(minutes=5), feed=feed)
        cluster_entry_manager.add_many(cluster.id, [old.id, new.id])

        entries = cluster_entry_manager.get_entries(OWNER, cluster.id)

        assert [e.title for e in entries] == ["New", "Old"]
        assert entries[0].feed.title == "Planet Python"
        assert entries[0].feed.category.title == "Programming"

    def test_entries_scoped_to_owner(self, cluster_entry_manager, cluster, make_entry):
        """Test another user's entries are never listed."""
        mine = make_entry(OWNER, title="Mine")
        theirs = make_entry(OTHER, title="Theirs")
        cluster_entry_manager.add_many(cluster.id, [mine.id, theirs.id])

        assert [e.title for e in cluster_entry_manager.get_entries(OWNER, cluster.id)] == [
            "Mine"
        ]
