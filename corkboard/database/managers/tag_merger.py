#!/usr/bin/env python3
"""
tag_merger.py
--------------------
Folds several tags of one user into a single target tag.

For every source tag, each entry carrying it ends up carrying the
target instead (keeping the source link's provenance and timestamp
unless the entry already had the target), then the source tag and its
links are removed. The whole merge runs inside one SAVEPOINT: if any
step fails nothing is changed.

Usage:
    merger = TagMerger(session, logger)
    removed = merger.merge(owner_id, python.id, [py.id, python3.id])
"""
from typing import Sequence

from sqlalchemy import Integer, delete, literal, select
from sqlalchemy.exc import SQLAlchemyError

from corkboard.core.exceptions import DatabaseError, MergeFailedError, NotFoundError
from corkboard.database.decorators import handle_db_errors, log_database_operation
from corkboard.database.models import EntryTag, Tag
from .base_manager import BaseManager


class TagMerger(BaseManager):
    """Atomic merge of tags into a target tag."""

    @handle_db_errors
    @log_database_operation("merge_tags")
    def merge(self, owner_id: int, target_tag_id: int, source_tag_ids: Sequence[int]) -> int:
        """
        Merge source tags into a target tag.

        Args:
            owner_id: Owning user of every tag involved
            target_tag_id: Tag that survives
            source_tag_ids: Tags to fold into the target

        Returns:
            Number of source tags removed

        Raises:
            NotFoundError: If the target is absent or foreign. Checked before
                the merge starts, so it is raised as is, not wrapped in
                MergeFailedError
            MergeFailedError: If any step after that check failed; nothing
                was changed

        Notes:
            - A source equal to the target is skipped
            - Sources that are absent or foreign are skipped
            - Where an entry already carries the target, the target link
              (and its source) wins
        """
        self._require_tag(owner_id, target_tag_id)

        removed = 0
        try:
            with self.session.begin_nested():
                for source_id in dict.fromkeys(source_tag_ids):
                    if source_id == target_tag_id:
                        continue
                    if not self._tag_owned(owner_id, source_id):
                        if self.logger:
                            self.logger.log_debug(
                                "Skipping merge source not owned by user",
                                {"tag_id": source_id, "owner_id": owner_id},
                            )
                        continue

                    self._reassign(target_tag_id, source_id)
                    removed += self._remove_source(owner_id, source_id)
        except (SQLAlchemyError, DatabaseError) as e:
            raise MergeFailedError(
                f"Failed to merge tags into #{target_tag_id}: {e}"
            ) from e

        if self.logger:
            self.logger.log_info(
                "Merged tags",
                {"target_tag_id": target_tag_id, "owner_id": owner_id, "removed": removed},
            )
        return removed

    def _reassign(self, target_tag_id: int, source_tag_id: int) -> None:
        """Copy the source's entry links onto the target, keeping existing ones."""
        links = EntryTag.__table__
        rows = select(
            links.c.entry_id,
            literal(target_tag_id, Integer),
            links.c.source,
            links.c.created_at,
        ).where(links.c.tag_id == source_tag_id)

        stmt = (
            self._insert(links)
            .from_select(["entry_id", "tag_id", "source", "created_at"], rows)
            .on_conflict_do_nothing(index_elements=["entry_id", "tag_id"])
        )
        self.session.execute(stmt)

    def _remove_source(self, owner_id: int, source_tag_id: int) -> int:
        """Delete a merged tag and its remaining links. Returns rows removed."""
        self.session.execute(
            delete(EntryTag)
            .where(EntryTag.tag_id == source_tag_id)
            .execution_options(synchronize_session=False)
        )
        result = self.session.execute(
            delete(Tag).where(Tag.id == source_tag_id, Tag.owner_id == owner_id)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Tag #{source_tag_id} vanished during merge")
        return result.rowcount
