#!/usr/bin/env python3
"""
tag_manager.py
--------------------
Manages Tag identity and naming.

Tags belong to exactly one user and their names are unique per user
ignoring case. The unique functional index on (owner_id, lower(name))
is what actually protects that rule under concurrency; the lookups
here only give callers a clean error before the database has to.

Key Features:
    - Case-insensitive lookup by name
    - Listing with live association counts
    - Get-or-create that survives losing a creation race
    - Delete with explicit removal of entry associations

Usage:
    tag_mgr = TagManager(session, logger)

    tag = tag_mgr.get_or_create(owner_id, "Python")
    tag_mgr.rename(tag, "python3")
    for tag in tag_mgr.get_all_with_counts(owner_id):
        print(tag.name, tag.entry_count)
    tag_mgr.delete(owner_id, tag.id)
"""
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from corkboard.core.exceptions import DuplicateNameError, NotFoundError, ValidationError
from corkboard.core.validators import DataValidator
from corkboard.database.decorators import handle_db_errors, log_database_operation
from corkboard.database.models import EntryTag, Tag
from .base_manager import BaseManager


class TagManager(BaseManager):
    """
    Manages Tag table operations.

    Every method is scoped by owner: a tag that belongs to somebody else
    behaves exactly like a tag that does not exist.
    """

    # -------------------------------------------------------------------------
    # Lookups
    # -------------------------------------------------------------------------

    def _name_query(self, owner_id: int, name: str):
        return self.session.query(Tag).filter(
            Tag.owner_id == owner_id,
            func.lower(Tag.name) == func.lower(name),
        )

    @handle_db_errors
    @log_database_operation("tag_exists")
    def exists(self, owner_id: int, tag_id: int) -> bool:
        """
        Check if a tag with this ID belongs to the owner.

        Args:
            owner_id: Owning user
            tag_id: Tag ID

        Returns:
            True if the tag exists for this owner
        """
        return self._tag_owned(owner_id, tag_id)

    @handle_db_errors
    @log_database_operation("tag_name_exists")
    def name_exists(self, owner_id: int, name: str) -> bool:
        """Check if the owner already has a tag with this name (any case)."""
        normalized = DataValidator.normalize_string(name)
        if not normalized:
            return False
        return self._name_query(owner_id, normalized).first() is not None

    @handle_db_errors
    @log_database_operation("another_tag_exists")
    def another_exists(self, owner_id: int, tag_id: int, name: str) -> bool:
        """
        Check if a *different* tag of the owner already uses ``name``.

        Used before renaming, where the tag keeping its own name (or
        changing only its case) is not a conflict.
        """
        normalized = DataValidator.normalize_string(name)
        if not normalized:
            return False
        query = self._name_query(owner_id, normalized).filter(Tag.id != tag_id)
        return query.first() is not None

    @handle_db_errors
    @log_database_operation("get_tag_by_id")
    def get_by_id(self, owner_id: int, tag_id: int) -> Optional[Tag]:
        """
        Retrieve a tag by ID.

        Args:
            owner_id: Owning user
            tag_id: Tag ID

        Returns:
            Tag if it exists and belongs to the owner, None otherwise
        """
        return (
            self.session.query(Tag)
            .filter(Tag.id == tag_id, Tag.owner_id == owner_id)
            .populate_existing()
            .first()
        )

    @handle_db_errors
    @log_database_operation("get_tag")
    def get(self, owner_id: int, name: str) -> Optional[Tag]:
        """
        Retrieve a tag by name, ignoring case.

        Args:
            owner_id: Owning user
            name: Tag name

        Returns:
            Tag object if found, None otherwise
        """
        normalized = DataValidator.normalize_string(name)
        if not normalized:
            return None
        return self._name_query(owner_id, normalized).first()

    @handle_db_errors
    @log_database_operation("get_all_tags")
    def get_all(self, owner_id: int) -> List[Tag]:
        """
        Retrieve all tags of an owner, ordered by name.

        Returns:
            List of Tag objects
        """
        return (
            self.session.query(Tag)
            .filter(Tag.owner_id == owner_id)
            .order_by(Tag.name.asc())
            .all()
        )

    @handle_db_errors
    @log_database_operation("get_all_tags_with_counts")
    def get_all_with_counts(self, owner_id: int) -> List[Tag]:
        """
        Retrieve all tags of an owner with their association counts.

        Counts come from an outer join so unused tags are included with
        ``entry_count == 0``. They are computed on every call.

        Returns:
            List of Tag objects ordered by name, ``entry_count`` set
        """
        rows = (
            self.session.query(Tag, func.count(EntryTag.entry_id))
            .outerjoin(EntryTag, EntryTag.tag_id == Tag.id)
            .filter(Tag.owner_id == owner_id)
            .group_by(Tag.id)
            .order_by(Tag.name.asc())
            .all()
        )

        tags = []
        for tag, count in rows:
            tag.entry_count = count
            tags.append(tag)
        return tags

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("create_tag")
    def create(self, owner_id: int, name: str) -> Tag:
        """
        Create a new tag.

        Args:
            owner_id: Owning user
            name: Tag name (surrounding whitespace is stripped)

        Returns:
            Created Tag object

        Raises:
            ValidationError: If the name is empty
            DuplicateNameError: If the owner already has this name in any case

        Notes:
            - The insert runs in a SAVEPOINT, so a collision detected by the
              database leaves the caller's transaction usable
            - Usually prefer get_or_create() to avoid duplicate errors
        """
        normalized = DataValidator.normalize_string(name)
        if not normalized:
            raise ValidationError("Tag name cannot be empty")

        if self._name_query(owner_id, normalized).first() is not None:
            raise DuplicateNameError(f"Tag already exists: {normalized!r}")

        tag = Tag(owner_id=owner_id, name=normalized)
        try:
            with self.session.begin_nested():
                self.session.add(tag)
        except IntegrityError as e:
            raise DuplicateNameError(f"Tag already exists: {normalized!r}") from e

        if self.logger:
            self.logger.log_debug(
                f"Created tag: {normalized}", {"tag_id": tag.id, "owner_id": owner_id}
            )

        return tag

    @handle_db_errors
    @log_database_operation("get_or_create_tag")
    def get_or_create(self, owner_id: int, name: str) -> Tag:
        """
        Get an existing tag or create it if it doesn't exist.

        Two concurrent callers may both miss the lookup; the loser's
        insert fails on the unique index and the lookup is retried once
        to return the winner's row.

        Raises:
            ValidationError: If name is empty after normalization
            DuplicateNameError: If creation failed and the retry found nothing
        """
        existing = self.get(owner_id, name)
        if existing is not None:
            return existing

        try:
            return self.create(owner_id, name)
        except DuplicateNameError:
            existing = self.get(owner_id, name)
            if existing is not None:
                return existing
            raise

    @handle_db_errors
    @log_database_operation("rename_tag")
    def rename(self, tag: Tag, new_name: str) -> Tag:
        """
        Rename a tag in place.

        No uniqueness pre-check is made here (see another_exists); the
        unique index reports collisions.

        Raises:
            ValidationError: If the new name is empty
            DuplicateNameError: If another tag of the owner has this name
        """
        normalized = DataValidator.normalize_string(new_name)
        if not normalized:
            raise ValidationError("Tag name cannot be empty")

        old_name = tag.name
        try:
            with self.session.begin_nested():
                tag.name = normalized
        except IntegrityError as e:
            raise DuplicateNameError(f"Tag already exists: {normalized!r}") from e

        if self.logger:
            self.logger.log_debug(
                "Renamed tag", {"tag_id": tag.id, "from": old_name, "to": normalized}
            )
        return tag

    @handle_db_errors
    @log_database_operation("update_tag")
    def update(self, owner_id: int, tag_id: int, name: Optional[str] = None) -> Tag:
        """
        Apply a partial modification to a tag.

        Args:
            owner_id: Owning user
            tag_id: Tag to modify
            name: New name, or None to leave it unchanged

        Returns:
            The (possibly) modified tag

        Raises:
            NotFoundError: If the tag is absent or foreign
            DuplicateNameError: If the new name collides
        """
        tag = self.get_by_id(owner_id, tag_id)
        if tag is None:
            raise NotFoundError(f"Tag #{tag_id} not found for user #{owner_id}")

        if name is not None:
            self.rename(tag, name)
        return tag

    @handle_db_errors
    @log_database_operation("delete_tag")
    def delete(self, owner_id: int, tag_id: int) -> None:
        """
        Delete a tag together with its entry associations.

        Args:
            owner_id: Owning user
            tag_id: Tag to delete

        Raises:
            NotFoundError: If no tag was removed (absent or foreign)

        Notes:
            - Associations are deleted first, in the same transaction
            - Not atomic on its own: wrap in session_scope for that
        """
        owned = select(Tag.id).where(Tag.id == tag_id, Tag.owner_id == owner_id)
        links = self.session.execute(
            delete(EntryTag)
            .where(EntryTag.tag_id.in_(owned))
            .execution_options(synchronize_session=False)
        )

        result = self.session.execute(
            delete(Tag).where(Tag.id == tag_id, Tag.owner_id == owner_id)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Tag #{tag_id} not found for user #{owner_id}")

        if self.logger:
            self.logger.log_debug(
                "Deleted tag",
                {"tag_id": tag_id, "owner_id": owner_id, "links_removed": links.rowcount},
            )
