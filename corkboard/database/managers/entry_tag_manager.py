#!/usr/bin/env python3
"""
entry_tag_manager.py
--------------------
Manages the entry↔tag relation and its provenance.

Every link carries a source: ``manual`` when the user applied (or
confirmed) the tag, ``auto`` when automated processing suggested it.
Attaching is a single INSERT ... ON CONFLICT DO UPDATE, so two callers
attaching the same pair at once cannot create duplicates; the composite
primary key is the race guard.

Key Features:
    - Ownership checks on both the entry and the tag before linking
    - Upsert attach (re-attaching overwrites the source)
    - Attach by name, creating tags on demand
    - Confirm/dismiss flow for automatic suggestions
    - Bulk tag-name lookup for listing pages

Batch methods (attach_many, attach_many_by_name) are sequential and NOT
atomic: they stop at the first failure and keep whatever was attached
before it.

Usage:
    links = EntryTagManager(session, logger)

    links.attach_by_name(owner_id, entry_id, "python", TagSource.AUTO)
    links.confirm_auto(owner_id, entry_id, tag.id)
    for link in links.get_for_entry(owner_id, entry_id):
        print(link.tag_name, link.source)
"""
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import contains_eager

from corkboard.core.exceptions import NotFoundError
from corkboard.core.validators import DataValidator, utcnow
from corkboard.database.decorators import handle_db_errors, log_database_operation
from corkboard.database.models import Entry, EntryStatus, EntryTag, Tag, TagSource
from .base_manager import BaseManager
from .tag_manager import TagManager


class EntryTagManager(BaseManager):
    """
    Manages EntryTag rows.

    Reads always join the owner's tags, so links pointing at another
    user's tag are never returned even if they existed.
    """

    def __init__(self, session, logger=None, tags: Optional[TagManager] = None):
        super().__init__(session, logger)
        self.tags = tags or TagManager(session, logger)

    # -------------------------------------------------------------------------
    # Attach
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("attach_tag")
    def attach(
        self,
        owner_id: int,
        entry_id: int,
        tag_id: int,
        source: Any = TagSource.MANUAL,
    ) -> EntryTag:
        """
        Attach a tag to an entry, or overwrite the source of an existing link.

        Args:
            owner_id: User that must own both the entry and the tag
            entry_id: Entry to tag
            tag_id: Tag to attach
            source: TagSource (or its string value); empty means manual

        Returns:
            The EntryTag row as stored

        Raises:
            NotFoundError: If the entry or the tag is absent or foreign

        Notes:
            - Re-attaching with ``manual`` promotes an ``auto`` link
            - Re-attaching with ``auto`` demotes a ``manual`` link
        """
        self._require_entry(owner_id, entry_id)
        self._require_tag(owner_id, tag_id)
        source = DataValidator.normalize_tag_source(source)

        stmt = self._insert(EntryTag).values(
            entry_id=entry_id,
            tag_id=tag_id,
            source=source.value,
            created_at=utcnow(),
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["entry_id", "tag_id"],
            set_={"source": stmt.excluded.source},
        ).returning(EntryTag)

        entry_tag = self._execute_with_retry(
            lambda: self.session.scalars(
                stmt, execution_options={"populate_existing": True}
            ).one()
        )

        if self.logger:
            self.logger.log_debug(
                "Attached tag to entry",
                {"entry_id": entry_id, "tag_id": tag_id, "source": source.value},
            )
        return entry_tag

    @handle_db_errors
    @log_database_operation("attach_tags")
    def attach_many(
        self,
        owner_id: int,
        entry_id: int,
        tag_ids: Sequence[int],
        source: Any = TagSource.MANUAL,
    ) -> List[EntryTag]:
        """
        Attach several tags one by one.

        Stops at the first failure and raises it; tags attached before
        the failure stay attached.
        """
        return [self.attach(owner_id, entry_id, tag_id, source) for tag_id in tag_ids]

    @handle_db_errors
    @log_database_operation("attach_tag_by_name")
    def attach_by_name(
        self,
        owner_id: int,
        entry_id: int,
        name: str,
        source: Any = TagSource.MANUAL,
    ) -> EntryTag:
        """
        Attach a tag by name, creating the tag if the owner has none by
        that name yet.
        """
        tag = self.tags.get_or_create(owner_id, name)
        return self.attach(owner_id, entry_id, tag.id, source)

    @handle_db_errors
    @log_database_operation("attach_tags_by_name")
    def attach_many_by_name(
        self,
        owner_id: int,
        entry_id: int,
        names: Sequence[str],
        source: Any = TagSource.MANUAL,
    ) -> List[EntryTag]:
        """
        Attach several tags by name, one by one.

        Same partial-failure behaviour as attach_many: tags created and
        attached before a failure are kept.

        Returns:
            All links of the entry after the batch, ordered by tag name
        """
        for name in names:
            self.attach_by_name(owner_id, entry_id, name, source)
        return self.get_for_entry(owner_id, entry_id)

    # -------------------------------------------------------------------------
    # Detach / provenance transitions
    # -------------------------------------------------------------------------

    @handle_db_errors
    @log_database_operation("detach_tag")
    def detach(self, owner_id: int, entry_id: int, tag_id: int) -> None:
        """
        Remove a tag from an entry.

        Removing a link that does not exist is not an error.

        Raises:
            NotFoundError: If the entry is absent or foreign
        """
        self._require_entry(owner_id, entry_id)
        self.session.execute(
            delete(EntryTag)
            .where(EntryTag.entry_id == entry_id, EntryTag.tag_id == tag_id)
            .execution_options(synchronize_session=False)
        )

    @handle_db_errors
    @log_database_operation("detach_all_tags")
    def detach_all(self, owner_id: int, entry_id: int) -> int:
        """
        Remove every tag from an entry.

        Returns:
            Number of links removed

        Raises:
            NotFoundError: If the entry is absent or foreign
        """
        self._require_entry(owner_id, entry_id)
        result = self.session.execute(
            delete(EntryTag)
            .where(EntryTag.entry_id == entry_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    @handle_db_errors
    @log_database_operation("confirm_auto_tag")
    def confirm_auto(self, owner_id: int, entry_id: int, tag_id: int) -> None:
        """
        Mark a suggested tag as confirmed by the user (source → manual).

        If the entry has no such link nothing happens.

        Raises:
            NotFoundError: If the entry is absent or foreign
        """
        self._require_entry(owner_id, entry_id)
        result = self.session.execute(
            update(EntryTag)
            .where(EntryTag.entry_id == entry_id, EntryTag.tag_id == tag_id)
            .values(source=TagSource.MANUAL.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0 and self.logger:
            self.logger.log_debug(
                "No tag link to confirm", {"entry_id": entry_id, "tag_id": tag_id}
            )

    @handle_db_errors
    @log_database_operation("dismiss_auto_tag")
    def dismiss_auto(self, owner_id: int, entry_id: int, tag_id: int) -> None:
        """Reject a suggested tag. Removes the link whatever its source."""
        self.detach(owner_id, entry_id, tag_id)

    @handle_db_errors
    @log_database_operation("remove_auto_tags")
    def remove_auto_from_entry(self, owner_id: int, entry_id: int) -> int:
        """
        Remove every unconfirmed suggestion from an entry.

        Only links to the owner's tags are touched.

        Returns:
            Number of links removed
        """
        owned_tags = select(Tag.id).where(Tag.owner_id == owner_id)
        result = self.session.execute(
            delete(EntryTag)
            .where(
                EntryTag.entry_id == entry_id,
                EntryTag.source == TagSource.AUTO.value,
                EntryTag.tag_id.in_(owned_tags),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def _links_query(self, owner_id: int, entry_id: int):
        return (
            self.session.query(EntryTag)
            .join(EntryTag.tag)
            .options(contains_eager(EntryTag.tag))
            .filter(EntryTag.entry_id == entry_id, Tag.owner_id == owner_id)
            .order_by(Tag.name.asc())
            .populate_existing()
        )

    @handle_db_errors
    @log_database_operation("get_entry_tags")
    def get_for_entry(self, owner_id: int, entry_id: int) -> List[EntryTag]:
        """
        Get all tag links of an entry, ordered by tag name.

        Returns:
            EntryTag rows with ``tag`` loaded (``tag_name`` is available)
        """
        return self._links_query(owner_id, entry_id).all()

    @handle_db_errors
    @log_database_operation("get_entry_auto_tags")
    def get_auto_for_entry(self, owner_id: int, entry_id: int) -> List[EntryTag]:
        """Get only the unconfirmed (auto) tag links of an entry."""
        return (
            self._links_query(owner_id, entry_id)
            .filter(EntryTag.source == TagSource.AUTO.value)
            .all()
        )

    @handle_db_errors
    @log_database_operation("count_entries_for_tag")
    def count_entries_for_tag(self, owner_id: int, tag_id: int) -> int:
        """Count the owner's entries carrying a tag."""
        return (
            self.session.query(func.count(EntryTag.entry_id))
            .join(Entry, Entry.id == EntryTag.entry_id)
            .filter(EntryTag.tag_id == tag_id, Entry.user_id == owner_id)
            .scalar()
        )

    @handle_db_errors
    @log_database_operation("get_entry_ids_for_tag")
    def get_entry_ids_for_tag(self, owner_id: int, tag_id: int) -> List[int]:
        """
        IDs of the owner's entries carrying a tag, newest publication first.
        """
        rows = (
            self.session.query(EntryTag.entry_id)
            .join(Entry, Entry.id == EntryTag.entry_id)
            .filter(EntryTag.tag_id == tag_id, Entry.user_id == owner_id)
            .order_by(Entry.published_at.desc(), Entry.id.desc())
            .all()
        )
        return [entry_id for (entry_id,) in rows]

    @handle_db_errors
    @log_database_operation("get_entries_for_tag")
    def get_entries_for_tag(self, owner_id: int, tag_id: int) -> Dict[str, Any]:
        """
        Entries carrying a tag, with their total.

        Removed entries are left out of both the list and the total;
        count_entries_for_tag still counts them.

        Returns:
            {"total": int, "entries": List[Entry]} newest publication first

        Raises:
            NotFoundError: If the tag is absent or foreign
        """
        if self.tags.get_by_id(owner_id, tag_id) is None:
            raise NotFoundError(f"Tag #{tag_id} not found for user #{owner_id}")

        entries = (
            self.session.query(Entry)
            .join(EntryTag, EntryTag.entry_id == Entry.id)
            .filter(
                EntryTag.tag_id == tag_id,
                Entry.user_id == owner_id,
                Entry.status != EntryStatus.REMOVED.value,
            )
            .order_by(Entry.published_at.desc(), Entry.id.desc())
            .all()
        )
        return {"total": len(entries), "entries": entries}

    @handle_db_errors
    @log_database_operation("get_tag_names_for_entries")
    def get_tag_names_for_entries(
        self, owner_id: int, entry_ids: Sequence[int]
    ) -> Dict[int, List[str]]:
        """
        Tag names for many entries at once.

        Args:
            owner_id: Owning user
            entry_ids: Entries to look up

        Returns:
            Mapping entry_id -> sorted tag names. Entries without tags are
            absent. An empty ``entry_ids`` returns {} without a query.
        """
        if not entry_ids:
            return {}

        rows = (
            self.session.query(EntryTag.entry_id, Tag.name)
            .join(Tag, Tag.id == EntryTag.tag_id)
            .filter(Tag.owner_id == owner_id, EntryTag.entry_id.in_(list(entry_ids)))
            .order_by(EntryTag.entry_id, Tag.name)
            .all()
        )

        names: Dict[int, List[str]] = {}
        for entry_id, name in rows:
            names.setdefault(entry_id, []).append(name)
        return names
