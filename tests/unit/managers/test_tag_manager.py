"""
test_tag_manager.py
-------------------
Unit tests for TagManager operations.

Covers per-owner, case-insensitive name uniqueness, listing with live
counts and deletion together with entry associations.
"""
import pytest
from sqlalchemy.exc import IntegrityError

from corkboard.core.exceptions import DuplicateNameError, NotFoundError, ValidationError
from corkboard.database.models import EntryTag, Tag

OWNER = 1
OTHER = 2


class TestTagManagerExists:
    """Test TagManager.exists() and name lookups."""

    def test_exists_returns_false_when_not_found(self, tag_manager):
        """Test exists returns False for non-existent tag."""
        assert tag_manager.exists(OWNER, 999) is False

    def test_exists_returns_true_for_owner(self, tag_manager):
        """Test exists returns True for the owner's tag."""
        tag = tag_manager.create(OWNER, "python")
        assert tag_manager.exists(OWNER, tag.id) is True

    def test_exists_hides_foreign_tag(self, tag_manager):
        """Test another user's tag behaves as absent."""
        tag = tag_manager.create(OTHER, "python")
        assert tag_manager.exists(OWNER, tag.id) is False

    def test_name_exists_ignores_case(self, tag_manager):
        """Test name_exists matches regardless of case."""
        tag_manager.create(OWNER, "Python")
        assert tag_manager.name_exists(OWNER, "PYTHON") is True
        assert tag_manager.name_exists(OTHER, "python") is False

    def test_name_exists_empty_returns_false(self, tag_manager):
        """Test empty names never exist."""
        assert tag_manager.name_exists(OWNER, "   ") is False

    def test_another_exists_excludes_self(self, tag_manager):
        """Test another_exists ignores the tag being renamed."""
        python = tag_manager.create(OWNER, "python")
        rust = tag_manager.create(OWNER, "rust")

        assert tag_manager.another_exists(OWNER, python.id, "Python") is False
        assert tag_manager.another_exists(OWNER, rust.id, "Python") is True


class TestTagManagerGet:
    """Test TagManager.get() and get_by_id()."""

    def test_get_returns_none_when_not_found(self, tag_manager):
        """Test get returns None for non-existent tag."""
        assert tag_manager.get(OWNER, "nonexistent") is None

    def test_get_is_case_insensitive(self, tag_manager):
        """Test get finds a tag by any casing of its name."""
        tag_manager.create(OWNER, "Machine Learning")

        result = tag_manager.get(OWNER, "  machine learning ")
        assert result is not None
        assert result.name == "Machine Learning"

    def test_get_by_id(self, tag_manager):
        """Test get_by_id returns the owner's tag."""
        tag = tag_manager.create(OWNER, "python")

        result = tag_manager.get_by_id(OWNER, tag.id)
        assert result is not None
        assert result.id == tag.id

    def test_get_by_id_foreign_returns_none(self, tag_manager):
        """Test get_by_id hides tags of other users."""
        tag = tag_manager.create(OTHER, "python")
        assert tag_manager.get_by_id(OWNER, tag.id) is None


class TestTagManagerCreate:
    """Test TagManager.create(): per-owner case-insensitive uniqueness."""

    def test_create_basic(self, tag_manager, db_session):
        """Test creating a tag persists it with a timestamp."""
        tag = tag_manager.create(OWNER, "python")

        assert tag.id is not None
        assert tag.owner_id == OWNER
        assert tag.name == "python"
        assert tag.created_at is not None
        assert db_session.query(Tag).count() == 1

    def test_create_strips_whitespace_keeps_case(self, tag_manager):
        """Test names are stripped but keep their casing."""
        tag = tag_manager.create(OWNER, "  PyTorch  ")
        assert tag.name == "PyTorch"

    def test_create_empty_raises(self, tag_manager):
        """Test empty names are rejected."""
        with pytest.raises(ValidationError):
            tag_manager.create(OWNER, "   ")

    def test_create_duplicate_other_case_raises(self, tag_manager):
        """Test a second tag differing only in case is rejected."""
        tag_manager.create(OWNER, "Python")

        with pytest.raises(DuplicateNameError):
            tag_manager.create(OWNER, "python")

    def test_same_name_for_different_owners(self, tag_manager):
        """Test uniqueness is scoped to the owner."""
        mine = tag_manager.create(OWNER, "python")
        theirs = tag_manager.create(OTHER, "Python")
        assert mine.id != theirs.id

    def test_unique_index_guards_direct_inserts(self, tag_manager, db_session):
        """Test the storage index rejects a duplicate that skipped the lookup."""
        tag_manager.create(OWNER, "Python")

        with pytest.raises(IntegrityError):
            with db_session.begin_nested():
                db_session.add(Tag(owner_id=OWNER, name="PYTHON"))

        names = [t.name for t in tag_manager.get_all(OWNER)]
        assert names == ["Python"]

    def test_duplicate_non_ascii_case_raises(self, tag_manager):
        """Test case folding also applies to accented names."""
        tag_manager.create(OWNER, "Éclair")

        with pytest.raises(DuplicateNameError):
            tag_manager.create(OWNER, "éclair")

        assert tag_manager.get(OWNER, "ÉCLAIR").name == "Éclair"

    def test_unique_index_folds_non_ascii(self, tag_manager, db_session):
        """Test the storage index itself rejects an accented case variant."""
        tag_manager.create(OWNER, "Ärger")

        with pytest.raises(IntegrityError):
            with db_session.begin_nested():
                db_session.add(Tag(owner_id=OWNER, name="ÄRGER"))

    def test_session_usable_after_duplicate(self, tag_manager):
        """Test a rejected create leaves the transaction usable."""
        tag_manager.create(OWNER, "python")
        with pytest.raises(DuplicateNameError):
            tag_manager.create(OWNER, "PYTHON")

        rust = tag_manager.create(OWNER, "rust")
        assert rust.id is not None


class TestTagManagerGetOrCreate:
    """Test TagManager.get_or_create()."""

    def test_creates_when_missing(self, tag_manager):
        """Test a new tag is created."""
        tag = tag_manager.get_or_create(OWNER, "python")
        assert tag.id is not None

    def test_returns_existing_any_case(self, tag_manager):
        """Test the existing tag is returned for another casing."""
        first = tag_manager.get_or_create(OWNER, "Python")
        second = tag_manager.get_or_create(OWNER, "PYTHON")

        assert first.id == second.id
        assert len(tag_manager.get_all(OWNER)) == 1

    def test_retries_lookup_after_lost_race(self, tag_manager, monkeypatch):
        """Test a creation race resolves to the winner's tag."""
        winner = tag_manager.create(OWNER, "python")

        real_get = tag_manager.get
        calls = []

        def stale_first_lookup(owner_id, name):
            calls.append(name)
            if len(calls) == 1:
                return None
            return real_get(owner_id, name)

        monkeypatch.setattr(tag_manager, "get", stale_first_lookup)

        tag = tag_manager.get_or_create(OWNER, "Python")
        assert tag.id == winner.id
        assert len(calls) == 2


class TestTagManagerListing:
    """Test TagManager.get_all() and get_all_with_counts()."""

    def test_get_all_sorted_by_name(self, tag_manager):
        """Test tags are listed by name for one owner only."""
        tag_manager.create(OWNER, "rust")
        tag_manager.create(OWNER, "go")
        tag_manager.create(OTHER, "ada")

        assert [t.name for t in tag_manager.get_all(OWNER)] == ["go", "rust"]

    def test_counts_include_unused_tags(self, tag_manager, make_entry, db_session):
        """Test counts are live and unused tags report zero."""
        python = tag_manager.create(OWNER, "python")
        tag_manager.create(OWNER, "rust")
        for i in range(3):
            entry = make_entry(OWNER, title=f"Entry {i}")
            db_session.add(EntryTag(entry_id=entry.id, tag_id=python.id))
        db_session.flush()

        counts = {t.name: t.entry_count for t in tag_manager.get_all_with_counts(OWNER)}
        assert counts == {"python": 3, "rust": 0}


class TestTagManagerRename:
    """Test TagManager.rename() and update()."""

    def test_rename(self, tag_manager):
        """Test renaming changes the stored name."""
        tag = tag_manager.create(OWNER, "pyhton")
        tag_manager.rename(tag, "python")

        assert tag_manager.get_by_id(OWNER, tag.id).name == "python"

    def test_rename_case_only(self, tag_manager):
        """Test a tag may change only the case of its own name."""
        tag = tag_manager.create(OWNER, "python")
        tag_manager.rename(tag, "Python")
        assert tag_manager.get_by_id(OWNER, tag.id).name == "Python"

    def test_rename_collision_raises(self, tag_manager):
        """Test renaming onto another tag's name fails and keeps the old name."""
        tag_manager.create(OWNER, "python")
        rust = tag_manager.create(OWNER, "rust")

        with pytest.raises(DuplicateNameError):
            tag_manager.rename(rust, "PYTHON")

        assert tag_manager.get_by_id(OWNER, rust.id).name == "rust"

    def test_update_absent_raises(self, tag_manager):
        """Test update of a missing tag raises NotFoundError."""
        with pytest.raises(NotFoundError):
            tag_manager.update(OWNER, 999, name="x")

    def test_update_without_name_is_noop(self, tag_manager):
        """Test update with no changes returns the tag untouched."""
        tag = tag_manager.create(OWNER, "python")
        assert tag_manager.update(OWNER, tag.id).name == "python"


class TestTagManagerDelete:
    """Test TagManager.delete()."""

    def test_delete_removes_associations(self, tag_manager, make_entry, db_session):
        """Test deleting a tag removes it from every entry."""
        tag = tag_manager.create(OWNER, "python")
        entry = make_entry(OWNER)
        db_session.add(EntryTag(entry_id=entry.id, tag_id=tag.id))
        db_session.flush()

        tag_manager.delete(OWNER, tag.id)

        assert tag_manager.get_by_id(OWNER, tag.id) is None
        assert db_session.query(EntryTag).filter_by(tag_id=tag.id).count() == 0

    def test_delete_absent_raises(self, tag_manager):
        """Test deleting a missing tag raises NotFoundError."""
        with pytest.raises(NotFoundError):
            tag_manager.delete(OWNER, 999)

    def test_delete_foreign_raises_and_keeps_tag(self, tag_manager):
        """Test another user's tag cannot be deleted."""
        tag = tag_manager.create(OTHER, "python")

        with pytest.raises(NotFoundError):
            tag_manager.delete(OWNER, tag.id)

        assert tag_manager.get_by_id(OTHER, tag.id) is not None
