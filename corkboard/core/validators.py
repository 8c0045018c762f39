#!/usr/bin/env python3
"""
validators.py
--------------------
Data validation and normalization utilities.

The engine itself trusts its inputs; these helpers are used where the
engine converts loosely-typed values (tag sources, timestamps) and by
the command-line surface for field-level checks.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from .exceptions import ValidationError

MAX_TAG_NAME_LENGTH = 255


class DataValidator:
    """Centralized data validation for engine operations."""

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """
        Strip surrounding whitespace; empty strings become None.

        Case is preserved: tag names keep the spelling the user typed and
        are compared case-insensitively at query time.
        """
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @staticmethod
    def validate_tag_name(value: Any) -> str:
        """
        Normalize and check a tag name.

        Raises:
            ValidationError: If the name is empty or longer than 255 chars
        """
        name = DataValidator.normalize_string(value)
        if not name:
            raise ValidationError("Tag name is required")
        if len(name) > MAX_TAG_NAME_LENGTH:
            raise ValidationError(
                f"Tag name is too long ({len(name)} > {MAX_TAG_NAME_LENGTH})"
            )
        return name

    @staticmethod
    def normalize_tag_source(value: Any) -> "TagSource":
        """
        Convert a source value to TagSource.

        Empty values default to manual.

        Raises:
            ValidationError: If the value is not 'manual' or 'auto'
        """
        from corkboard.database.models.enums import TagSource

        if value is None or value == "":
            return TagSource.MANUAL
        if isinstance(value, TagSource):
            return value
        try:
            return TagSource(str(value).strip().lower())
        except ValueError:
            raise ValidationError(f"Invalid tag source: {value!r}")

    @staticmethod
    def normalize_datetime(value: Optional[datetime]) -> Optional[datetime]:
        """
        Return a timezone-aware UTC datetime.

        Naive values (as read back from SQLite) are taken to be UTC.
        """
        if value is None:
            return None
        if not isinstance(value, datetime):
            raise ValidationError(f"Invalid datetime: {value!r}")
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)
