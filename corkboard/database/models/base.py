"""
Base Classes
------------

Foundational ORM classes for the Corkboard database.

Classes:
    - Base: Declarative base for all SQLAlchemy models
    - TimestampMixin: ``created_at`` column filled in UTC on insert
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime, timezone

# --- Third party ---
from sqlalchemy import DateTime
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# --- Base ORM class ---
class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Serves as the declarative base for SQLAlchemy models and provides
    access to the metadata object for table creation and migrations.
    """

    pass


# --- Timestamps ---
class TimestampMixin:
    """
    Mixin providing a creation timestamp.

    Attributes:
        created_at: When the row was inserted (UTC)
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        doc="Timestamp of creation",
    )
