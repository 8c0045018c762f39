#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the Corkboard project.

Exception Hierarchy:
    Exception (built-in)
    ├── DatabaseError - Base for all engine errors
    │   ├── NotFoundError - Entity absent or owned by another user
    │   ├── DuplicateNameError - Tag name collision for an owner
    │   ├── MergeFailedError - Tag merge rolled back
    │   └── StorageError - Underlying SQLAlchemy/driver failure
    └── ValidationError - Field-level validation failures

Usage:
    from corkboard.core.exceptions import NotFoundError, DuplicateNameError

    try:
        tag = db.tags.create(owner_id, "python")
    except DuplicateNameError:
        tag = db.tags.get(owner_id, "python")
"""


class DatabaseError(Exception):
    """
    Base exception for engine errors.

    Catch this to handle any failure coming out of the association
    engine, or catch a subclass for more granular handling.

    See Also:
        NotFoundError, DuplicateNameError, MergeFailedError, StorageError
    """

    pass


class NotFoundError(DatabaseError):
    """
    Exception for missing entities.

    Raised when a tag, cluster or entry does not exist *or* belongs to
    another user. The two cases are deliberately indistinguishable so
    that callers cannot probe other tenants' data.

    Examples:
        >>> raise NotFoundError("Tag #12 not found for user #3")
    """

    pass


class DuplicateNameError(DatabaseError):
    """
    Exception for tag name collisions.

    Raised when creating or renaming a tag would give an owner two tags
    whose names are equal ignoring case.

    Examples:
        >>> raise DuplicateNameError("Tag already exists: 'Python'")
    """

    pass


class MergeFailedError(DatabaseError):
    """
    Exception for tag merge failures.

    The merge runs as a single unit; when this is raised nothing has
    been reassigned and no source tag has been removed. The original
    cause is available as ``__cause__``.
    """

    pass


class StorageError(DatabaseError):
    """
    Exception wrapping storage-level failures.

    Raised for connection loss, integrity violations that have no more
    specific meaning, unsupported dialects and any other SQLAlchemy error.

    Examples:
        >>> raise StorageError("Database operation failed: disk I/O error")
    """

    pass


class ValidationError(Exception):
    """
    Exception for data validation failures.

    The engine expects pre-validated input; this is raised by the
    command-line surface (and by ``DataValidator``) when input is
    missing, too long or out of range.

    Examples:
        >>> raise ValidationError("Tag name is required")
        >>> raise ValidationError("Invalid tag source: 'robot'")
    """

    pass
