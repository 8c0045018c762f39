#!/usr/bin/env python3
"""
logging_manager.py
--------------------
Logging for the association engine and its command line.

Every record is one line: a label, a message and, when there is any, a
JSON payload with the details (owner, ids, durations...). Loggers can be
bound to context that is merged into every payload; CorkboardDB binds a
session id so all manager records of one unit of work can be grepped
together.

Files (under the log directory):
    <component>.log   everything from DEBUG up
    errors.log        errors only, with tracebacks
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import copy
import json
import logging
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# --- Third party imports ---
import click

LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _render(label: str, message: str, payload: Dict[str, Any]) -> str:
    line = f"{label} - {message}"
    if payload:
        line += f": {json.dumps(payload, default=str, sort_keys=True)}"
    return line


class CorkboardLogger:
    """
    Structured logger for one component ('database', 'cli', ...).

    Attributes:
        log_dir: Directory holding the log files
        component_name: Component the records come from
        context: Details merged into every record of this logger
        logger: Underlying ``logging.Logger`` (``corkboard.<component>``)
    """

    def __init__(
        self,
        log_dir: Path,
        component_name: str = "corkboard",
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ) -> None:
        self.log_dir = Path(log_dir)
        self.component_name = component_name
        self.context: Dict[str, Any] = {}
        self.logger = logging.getLogger(f"corkboard.{component_name}")
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.close()
        self._add_file(f"{component_name}.log", logging.DEBUG, max_bytes, backup_count)
        self._add_file("errors.log", logging.ERROR, max_bytes, backup_count)

        console = logging.StreamHandler()
        console.setLevel(logging.WARNING)
        console.setFormatter(logging.Formatter(LINE_FORMAT, datefmt="%H:%M:%S"))
        self.logger.addHandler(console)

    def _add_file(self, name: str, level: int, max_bytes: int, backup_count: int) -> None:
        handler = RotatingFileHandler(
            self.log_dir / name,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LINE_FORMAT, datefmt=DATE_FORMAT))
        self.logger.addHandler(handler)

    def bind(self, **context: Any) -> "CorkboardLogger":
        """
        Return a logger writing to the same files with extra context.

        Example:
            >>> session_log = db_logger.bind(session_id="20261019_120000_000001")
            >>> session_log.log_operation("merge_tags_completed", {"removed": 2})
            # OPERATION - merge_tags_completed: {"removed": 2, "session_id": "..."}
        """
        bound = copy.copy(self)
        bound.context = {**self.context, **context}
        return bound

    def close(self) -> None:
        """Close and detach every handler of the component logger."""
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    def _emit(
        self, level: int, label: str, message: str, details: Optional[Dict[str, Any]]
    ) -> None:
        payload = {**self.context, **(details or {})}
        self.logger.log(level, _render(label, message, payload))

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        """Record a completed operation (``<name>_completed`` and the like)."""
        self._emit(logging.INFO, "OPERATION", operation, details)

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.DEBUG, "DEBUG", message, details)

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.INFO, "INFO", message, details)

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.WARNING, "WARNING", message, details)

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        """
        Record an exception with its context and traceback.

        The record lands in both the component log and errors.log.
        """
        payload = {**self.context, **(context or {})}
        self.logger.error(
            _render("ERROR", f"{type(error).__name__}: {error}", payload),
            exc_info=(type(error), error, error.__traceback__),
        )

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        """
        Log an error raised under a CLI command and format it for stderr.

        Returns:
            'Error: <Type>: <message>', followed by the traceback when
            ``show_traceback`` is set
        """
        self.log_error(error, context or {"source": "cli"})
        return format_cli_error(error, show_traceback)


def format_cli_error(error: Exception, show_traceback: bool = False) -> str:
    """One-line CLI rendering of an exception, optionally with traceback."""
    message = f"Error: {type(error).__name__}: {error}"
    if show_traceback:
        tb = "".join(traceback.format_exception(type(error), error, error.__traceback__))
        message += f"\n\n{tb}"
    return message


def handle_cli_error(
    ctx: "click.Context",
    error: Exception,
    operation: str,
    additional_context: Optional[Dict[str, Any]] = None,
    exit_code: int = 1,
) -> None:
    """
    Report a failed CLI command and exit.

    The error goes to the logger stored on the Click context (if any)
    with the operation and ids involved; stderr gets a single line, or
    the traceback too under ``--verbose``. Never returns.
    """
    logger: Optional[CorkboardLogger] = ctx.obj.get("logger")
    verbose: bool = ctx.obj.get("verbose", False)

    context = {"operation": operation, **(additional_context or {})}
    click.echo(safe_logger(logger).log_cli_error(error, context, show_traceback=verbose), err=True)
    sys.exit(exit_code)


class NullLogger:
    """Stand-in with the CorkboardLogger interface that records nothing."""

    def bind(self, **context: Any) -> "NullLogger":
        return self

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        return format_cli_error(error, show_traceback)


_null_logger = NullLogger()


def safe_logger(logger: Optional[CorkboardLogger]) -> CorkboardLogger:
    """Return ``logger``, or the shared NullLogger when it is None."""
    return logger if logger is not None else _null_logger  # type: ignore[return-value]
