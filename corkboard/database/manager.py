#!/usr/bin/env python3
"""
manager.py
--------------------
Database manager for the Corkboard association engine.

Provides the CorkboardDB class, the single entry point callers use to
reach the engine. Handles:
    - Initialization of the database engine and sessionmaker
    - Per-session construction of the entity managers
    - Transaction boundaries (commit on success, rollback on failure)
    - Schema lifecycle via Alembic
    - Logging with rotation

Key Features:
    - SQLite connections configured for SAVEPOINTs and foreign keys
    - Optional database URL override (e.g. PostgreSQL)
    - Managers exposed as properties only while a session is open
    - Expiry sweep entry point for external schedulers

Managers:
    tags: TagManager
    entry_tags: EntryTagManager
    merger: TagMerger
    clusters: ClusterManager
    cluster_entries: ClusterEntryManager
    sweeper: ExpirySweeper

Notes
==============
- Timestamps are stored as UTC
- Managers never commit; session_scope() does
- Retry logic for SQLite lock contention lives in BaseManager
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import threading
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Union

# --- Third party ---
from sqlalchemy import Engine, create_engine, event, inspect
from sqlalchemy.orm import Session, sessionmaker

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext

# --- Local imports ---
from corkboard.core.exceptions import DatabaseError
from corkboard.core.logging_manager import CorkboardLogger
from corkboard.core.paths import ALEMBIC_INI
from .decorators import handle_db_errors, log_database_operation
from .managers import (
    ClusterEntryManager,
    ClusterManager,
    EntryTagManager,
    ExpirySweeper,
    TagManager,
    TagMerger,
)
from .models import Base


def _unicode_lower(value):
    return None if value is None else str(value).lower()


class SessionManagers:
    """The entity managers bound to one session."""

    def __init__(self, session: Session, logger: Optional[CorkboardLogger]) -> None:
        self.tags = TagManager(session, logger)
        self.entry_tags = EntryTagManager(session, logger, tags=self.tags)
        self.merger = TagMerger(session, logger)
        self.cluster_entries = ClusterEntryManager(session, logger)
        self.clusters = ClusterManager(session, logger, members=self.cluster_entries)
        self.sweeper = ExpirySweeper(session, logger)


# ----- Main Database Manager -----
class CorkboardDB:
    """
    Main database manager for the Corkboard association engine.

    Attributes:
        - db_path (Path): Filesystem path to the SQLite database file.
        - migrations_dir (Path): Filesystem path to the Alembic environment.
        - db_url (str): SQLAlchemy URL actually used.
        - engine (Engine): SQLAlchemy engine instance.
        - SessionLocal (sessionmaker): SQLAlchemy session factory.

    Usage:
        db = CorkboardDB("data/corkboard.db", "corkboard/migrations")
        with db.session_scope():
            tag = db.tags.get_or_create(owner_id, "python")
            db.entry_tags.attach(owner_id, entry_id, tag.id)
    """

    # ---- Initialization ----
    def __init__(
        self,
        db_path: Union[str, Path],
        migrations_dir: Union[str, Path],
        log_dir: Optional[Union[str, Path]] = None,
        db_url: Optional[str] = None,
    ) -> None:
        """
        Initialize database engine and session factory.

        Args:
            db_path (str | Path): Path to the SQLite file.
            migrations_dir (str | Path): Path to the Alembic environment.
            log_dir (str | Path): Directory for log files (optional)
            db_url (str): SQLAlchemy URL overriding the SQLite file (optional)
        """
        self.db_path = Path(db_path).expanduser().resolve()
        self.migrations_dir = Path(migrations_dir).expanduser().resolve()
        self.db_url = db_url or f"sqlite:///{self.db_path}"

        # --- Logging ---
        if log_dir:
            self.log_dir = Path(log_dir).expanduser().resolve()
            self.logger: Optional[CorkboardLogger] = CorkboardLogger(
                self.log_dir,
                component_name="database",
            )
        else:
            self.logger = None

        # Managers only exist inside session_scope, one set per thread
        self._scopes = threading.local()

        self._setup_engine()

    @property
    def is_sqlite(self) -> bool:
        """Whether the engine talks to SQLite."""
        return self.db_url.startswith("sqlite")

    def _setup_engine(self) -> None:
        """Initialize database engine and session factory."""
        try:
            if self.logger:
                self.logger.log_operation(
                    "database_init_start",
                    {
                        "db_path": str(self.db_path),
                        "migrations_dir": str(self.migrations_dir),
                    },
                )

            is_fresh = False
            if self.is_sqlite:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                is_fresh = not self.db_path.exists()

            self.engine: Engine = create_engine(
                self.db_url,
                echo=False,
                pool_pre_ping=True,
            )
            if self.is_sqlite:
                self._configure_sqlite(self.engine)

            self.SessionLocal: sessionmaker = sessionmaker(
                bind=self.engine,
                autoflush=True,
                expire_on_commit=False,
            )

            self.alembic_cfg: Config = self._setup_alembic()

            if is_fresh:
                self.initialize_schema()

            if self.logger:
                self.logger.log_operation("database_init_complete", {"success": True})

        except Exception as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "database_init"})
            raise DatabaseError(f"Database initialization failed: {e}") from e

    @staticmethod
    def _configure_sqlite(engine: Engine) -> None:
        """
        Make pysqlite honour SAVEPOINTs, foreign keys and Unicode case folding.

        SQLite's built-in lower() only folds ASCII; it is replaced per
        connection so the (owner_id, lower(name)) unique index treats
        "Éclair" and "éclair" as the same name, as PostgreSQL does.

        The driver's own transaction handling is switched off and SQLAlchemy
        emits BEGIN itself, so nested transactions map onto real SAVEPOINTs.
        """

        @event.listens_for(engine, "connect")
        def _on_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            dbapi_connection.create_function(
                "lower", 1, _unicode_lower, deterministic=True
            )
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            # Index expressions may call application-defined functions
            cursor.execute("PRAGMA trusted_schema=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _on_begin(conn):
            conn.exec_driver_sql("BEGIN")

    # ---- Session Management ----
    @contextmanager
    def session_scope(self):
        """
        Provide a transactional scope around operations with logging.

        Also initializes the entity managers for use within the session.
        Managers are available via properties (db.tags, db.clusters, etc.)
        and belong to the calling thread, so one CorkboardDB can serve
        several threads at once. A nested scope shadows the outer one
        until it exits.

        Usage:
            with db.session_scope() as session:
                removed = db.merger.merge(owner_id, target.id, [a.id, b.id])
        """
        session = self.SessionLocal()
        session_id = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
        logger = self.logger.bind(session_id=session_id) if self.logger else None

        outer = getattr(self._scopes, "managers", None)
        self._scopes.managers = SessionManagers(session, logger)

        if logger:
            logger.log_debug("session_start")

        try:
            yield session
            session.commit()
            if logger:
                logger.log_debug("session_commit")

        except Exception as e:
            session.rollback()
            if logger:
                logger.log_error(e, {"operation": "session_rollback"})
            raise
        finally:
            self._scopes.managers = outer
            session.close()
            if logger:
                logger.log_debug("session_close")

    # -------------------------------------------------------------------------
    # Entity Manager Properties
    # -------------------------------------------------------------------------

    def _require(self, attribute: str, name: str):
        managers = getattr(self._scopes, "managers", None)
        if managers is None:
            raise DatabaseError(
                f"{name} requires active session. "
                "Use within session_scope: "
                "with db.session_scope() as session: ..."
            )
        return getattr(managers, attribute)

    @property
    def tags(self) -> TagManager:
        """
        Access TagManager for tag operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require("tags", "TagManager")

    @property
    def entry_tags(self) -> EntryTagManager:
        """
        Access EntryTagManager for entry↔tag associations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require("entry_tags", "EntryTagManager")

    @property
    def merger(self) -> TagMerger:
        """Access TagMerger. Raises DatabaseError outside session_scope."""
        return self._require("merger", "TagMerger")

    @property
    def clusters(self) -> ClusterManager:
        """
        Access ClusterManager for cluster operations.

        Raises:
            DatabaseError: If accessed outside of session_scope context
        """
        return self._require("clusters", "ClusterManager")

    @property
    def cluster_entries(self) -> ClusterEntryManager:
        """Access ClusterEntryManager. Raises DatabaseError outside session_scope."""
        return self._require("cluster_entries", "ClusterEntryManager")

    @property
    def sweeper(self) -> ExpirySweeper:
        """Access ExpirySweeper. Raises DatabaseError outside session_scope."""
        return self._require("sweeper", "ExpirySweeper")

    # -------------------------------------------------------------------------
    # Maintenance
    # -------------------------------------------------------------------------

    def sweep_expired_clusters(self, now: Optional[datetime] = None) -> int:
        """
        Remove expired clusters in a transaction of their own.

        Intended for periodic schedulers.

        Returns:
            Number of clusters removed
        """
        with self.session_scope():
            return self.sweeper.sweep_expired(now)

    # ---- Alembic setup ----
    def _setup_alembic(self) -> Config:
        """Setup Alembic configuration."""
        try:
            if self.logger:
                self.logger.log_debug("Setting up Alembic configuration...")

            alembic_cfg: Config = Config(str(ALEMBIC_INI))
            alembic_cfg.set_main_option("script_location", str(self.migrations_dir))
            alembic_cfg.set_main_option(
                "sqlalchemy.url", self.db_url.replace("%", "%%")
            )
            alembic_cfg.set_main_option(
                "file_template",
                "%%(year)d%%(month).2d%%(day).2d_%%(slug)s",
            )

            if self.logger:
                self.logger.log_debug("Alembic configuration setup complete")
            return alembic_cfg
        except Exception as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "setup_alembic"})
            raise DatabaseError(f"Alembic configuration failed: {e}") from e

    @handle_db_errors
    @log_database_operation("initialize_schema")
    def initialize_schema(self) -> None:
        """
        Initialize database - create tables if needed and run migrations.

        Actions:
            Checks if the database is fresh (no tables)
            If fresh,
                creates all tables from the ORM models
                stamps the Alembic revision to head
            If not,
                runs pending migrations to update schema
        """
        try:
            table_names = inspect(self.engine).get_table_names()
            is_fresh_db: bool = len(table_names) == 0

            if is_fresh_db:
                Base.metadata.create_all(bind=self.engine)
                try:
                    command.stamp(self.alembic_cfg, "head")
                    if self.logger:
                        self.logger.log_operation(
                            "fresh_database_created",
                            {"tables_created": len(Base.metadata.tables)},
                        )
                except Exception as e:
                    if self.logger:
                        self.logger.log_error(e, {"operation": "stamp_database"})
            else:
                self.upgrade_database()
                if self.logger:
                    self.logger.log_operation(
                        "existing_database_migrated",
                        {"table_count": len(table_names)},
                    )

        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Could not initialize database: {e}") from e

    @handle_db_errors
    @log_database_operation("upgrade_database")
    def upgrade_database(self, revision: str = "head") -> None:
        """
        Upgrade the database schema to the specified Alembic revision.

        Args:
            revision (str, optional):
                The target revision to upgrade to.
                Defaults to 'head' (latest revision).
        """
        try:
            command.upgrade(self.alembic_cfg, revision)
        except Exception as e:
            raise DatabaseError(f"Database upgrade failed: {e}") from e

    def get_migration_history(self) -> Dict[str, Optional[str]]:
        """
        Get the current migration status of the database.

        Returns:
            Dictionary with keys:
                - 'current_revision' (str | None):
                  Current Alembic revision of the database.
                - 'status' (str):
                  Either 'up_to_date' or 'needs_migration'.
                - 'error' (str, optional):
                  Present if an exception occurred.
        """
        try:
            with self.engine.connect() as conn:
                context = MigrationContext.configure(conn)
                current_rev = context.get_current_revision()

            return {
                "current_revision": current_rev,
                "status": "up_to_date" if current_rev else "needs_migration",
            }
        except Exception as e:
            if self.logger:
                self.logger.log_error(e, {"operation": "get_migration_history"})
            return {"error": str(e)}

    # ----- Context Manager Support -----
    def close(self) -> None:
        """Dispose of the engine's connection pool and close log handlers."""
        self.engine.dispose()
        if self.logger:
            self.logger.close()

    def __enter__(self) -> "CorkboardDB":
        """Support for context manager usage."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Cleanup on context manager exit."""
        del exc_type, exc_val, exc_tb
        self.close()
