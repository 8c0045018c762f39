#!/usr/bin/env python3
"""
decorators.py
--------------------
Shared decorators and context managers for database operations.

    - log_database_operation: timing/outcome logging around manager methods
    - handle_db_errors: translate SQLAlchemy failures into StorageError
    - DatabaseOperation: both of the above for an arbitrary block of code

Engine errors (NotFoundError, DuplicateNameError, MergeFailedError,
StorageError) pass through unchanged so callers can tell them apart.
"""
from __future__ import annotations

from datetime import datetime
from functools import wraps
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from corkboard.core.exceptions import DatabaseError, StorageError
from corkboard.core.logging_manager import CorkboardLogger, safe_logger


def log_database_operation(operation_name: str):
    """
    Decorator to log database operations with timing and context.

    Args:
        operation_name: Name of the operation being logged

    Returns:
        Decorator function
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            start_time = datetime.now()
            operation_id = f"{operation_name}_{start_time.strftime('%Y%m%d_%H%M%S_%f')}"
            logger = safe_logger(getattr(self, "logger", None))

            logger.log_debug(
                f"Starting {operation_name}",
                {
                    "operation_id": operation_id,
                    "args_count": len(args),
                    "kwargs_keys": list(kwargs.keys()),
                },
            )

            try:
                result = function(self, *args, **kwargs)
            except Exception as e:
                duration = (datetime.now() - start_time).total_seconds()
                logger.log_error(
                    e,
                    {
                        "operation": operation_name,
                        "operation_id": operation_id,
                        "duration_seconds": duration,
                    },
                )
                raise

            duration = (datetime.now() - start_time).total_seconds()
            logger.log_operation(
                f"{operation_name}_completed",
                {
                    "operation_id": operation_id,
                    "duration_seconds": duration,
                    "success": True,
                },
            )
            return result

        return wrapper

    return decorator


def handle_db_errors(function: Callable) -> Callable:
    """
    Decorator to handle common database errors.

    Args:
        function: Function to wrap

    Returns:
        Wrapped function with error handling
    """

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except DatabaseError:
            raise
        except IntegrityError as e:
            raise StorageError(f"Data integrity violation: {e}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"Database operation failed: {e}") from e

    return wrapper


class DatabaseOperation:
    """
    Context manager combining error translation and operation logging.

    Usage:
        with DatabaseOperation(self.logger, "sweep_expired_clusters"):
            ...
    """

    def __init__(
        self,
        logger: Optional[CorkboardLogger],
        operation_name: str,
        details: Optional[Dict[str, Any]] = None,
        log_start: bool = False,
    ) -> None:
        self.logger = safe_logger(logger)
        self.operation_name = operation_name
        self.details = details or {}
        self.log_start = log_start
        self.start_time: Optional[datetime] = None

    def __enter__(self) -> "DatabaseOperation":
        self.start_time = datetime.now()
        if self.log_start:
            self.logger.log_debug(f"Starting {self.operation_name}", self.details)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        duration = (datetime.now() - self.start_time).total_seconds()

        if exc_type is None:
            self.logger.log_operation(
                f"{self.operation_name}_completed",
                {**self.details, "duration_seconds": duration, "success": True},
            )
            return False

        self.logger.log_error(
            exc_val,
            {
                **self.details,
                "operation": self.operation_name,
                "duration_seconds": duration,
            },
        )

        if issubclass(exc_type, DatabaseError):
            return False
        if issubclass(exc_type, IntegrityError):
            raise StorageError(f"Data integrity violation: {exc_val}") from exc_val
        if issubclass(exc_type, SQLAlchemyError):
            raise StorageError(f"Database operation failed: {exc_val}") from exc_val
        return False
