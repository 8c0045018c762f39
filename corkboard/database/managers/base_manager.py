#!/usr/bin/env python3
"""
base_manager.py
--------------------
Base manager providing common utilities for the association engine.
All entity managers inherit from this class.

Key Features:
    - Retry logic for database lock handling
    - Dialect-aware INSERT for ON CONFLICT upserts
    - Ownership checks shared by the tag and cluster sides
    - Consistent logging via safe_logger

Usage:
    class TagManager(BaseManager):
        @handle_db_errors
        @log_database_operation("get_tag_by_id")
        def get_by_id(self, owner_id: int, tag_id: int) -> Optional[Tag]:
            ...
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import time
from abc import ABC
from typing import Any, Callable, Optional, Type

# --- Third party imports ---
from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

# --- Local imports ---
from corkboard.core.exceptions import NotFoundError, StorageError
from corkboard.core.logging_manager import CorkboardLogger, safe_logger
from corkboard.database.models import Entry, Tag


class BaseManager(ABC):
    """
    Abstract base manager providing common utilities.

    Managers hold no state besides the session and the logger: every
    durable fact lives in the database, which is the single arbiter of
    consistency between concurrent callers.

    Attributes:
        session: SQLAlchemy session for database operations
        logger: Optional logger for operation tracking
    """

    def __init__(self, session: Session, logger: Optional[CorkboardLogger] = None):
        """
        Initialize the base manager.

        Args:
            session: SQLAlchemy session
            logger: Optional logger for operation tracking
        """
        self.session = session
        self.logger = logger

    # -------------------------------------------------------------------------
    # Core Helper Methods
    # -------------------------------------------------------------------------

    def _execute_with_retry(
        self,
        operation: Callable[[], Any],
        max_retries: int = 3,
        retry_delay: float = 0.1,
    ) -> Any:
        """
        Execute database operation with retry on lock.

        Args:
            operation: Callable that performs the operation
            max_retries: Maximum number of retry attempts
            retry_delay: Base delay between retries (exponential backoff)

        Returns:
            Result of the operation

        Raises:
            OperationalError: If not a lock error or all retries exhausted
        """
        for attempt in range(max_retries):
            try:
                return operation()
            except OperationalError as e:
                error_msg = str(e).lower()

                if (
                    "locked" in error_msg or "busy" in error_msg
                ) and attempt < max_retries - 1:
                    wait_time = retry_delay * (2**attempt)

                    safe_logger(self.logger).log_debug(
                        f"Database locked, retrying in {wait_time}s",
                        {"attempt": attempt + 1, "max_retries": max_retries},
                    )

                    time.sleep(wait_time)
                    continue

                raise

        raise StorageError("Retry loop completed without success")

    def _insert(self, model_class: Type[Any]):
        """
        Build an INSERT supporting ``on_conflict_do_*`` for the bound dialect.

        Args:
            model_class: ORM model class to insert into

        Returns:
            Dialect-specific Insert construct

        Raises:
            StorageError: If the dialect has no ON CONFLICT support here
        """
        dialect = self.session.get_bind().dialect.name
        if dialect == "sqlite":
            return sqlite.insert(model_class)
        if dialect == "postgresql":
            return postgresql.insert(model_class)
        raise StorageError(f"Upserts are not supported on dialect '{dialect}'")

    # -------------------------------------------------------------------------
    # Ownership Helpers
    # -------------------------------------------------------------------------

    def _entry_owned(self, owner_id: int, entry_id: int) -> bool:
        """Check whether ``entry_id`` exists and belongs to ``owner_id``."""
        stmt = (
            select(Entry.id)
            .where(Entry.id == entry_id, Entry.user_id == owner_id)
            .limit(1)
        )
        return self.session.execute(stmt).first() is not None

    def _tag_owned(self, owner_id: int, tag_id: int) -> bool:
        """Check whether ``tag_id`` exists and belongs to ``owner_id``."""
        stmt = (
            select(Tag.id)
            .where(Tag.id == tag_id, Tag.owner_id == owner_id)
            .limit(1)
        )
        return self.session.execute(stmt).first() is not None

    def _require_entry(self, owner_id: int, entry_id: int) -> None:
        """
        Raise unless the entry belongs to the owner.

        Raises:
            NotFoundError: If the entry is absent or foreign
        """
        if not self._entry_owned(owner_id, entry_id):
            raise NotFoundError(f"Entry #{entry_id} not found for user #{owner_id}")

    def _require_tag(self, owner_id: int, tag_id: int) -> None:
        """
        Raise unless the tag belongs to the owner.

        Raises:
            NotFoundError: If the tag is absent or foreign
        """
        if not self._tag_owned(owner_id, tag_id):
            raise NotFoundError(f"Tag #{tag_id} not found for user #{owner_id}")
