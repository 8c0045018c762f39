"""
Tests for logging_manager module.

Covers the CorkboardLogger file layout, the NullLogger/safe_logger
null-safe logging helpers and the shared CLI error handler.
"""
import pytest
from unittest.mock import MagicMock

import click

from corkboard.core.exceptions import NotFoundError
from corkboard.core.logging_manager import (
    CorkboardLogger,
    NullLogger,
    handle_cli_error,
    safe_logger,
)


class TestCorkboardLogger:
    """Tests for the file-backed logger."""

    @pytest.fixture
    def logger(self, tmp_path):
        logger = CorkboardLogger(tmp_path / "logs", "database")
        yield logger
        logger.close()

    def test_creates_component_and_error_logs(self, logger, tmp_path):
        """Operations go to <component>.log, errors to errors.log."""
        logger.log_operation("merge_tags_completed", {"removed": 2})
        logger.log_error(NotFoundError("Tag #4 not found"), {"operation": "merge"})
        for handler in logger.logger.handlers:
            handler.flush()

        operations = (tmp_path / "logs" / "database.log").read_text()
        errors = (tmp_path / "logs" / "errors.log").read_text()

        assert 'merge_tags_completed: {"removed": 2}' in operations
        assert "NotFoundError: Tag #4 not found" in errors
        assert '"operation": "merge"' in errors

    def test_log_cli_error_format(self, logger):
        """CLI errors are returned as a one-liner."""
        message = logger.log_cli_error(NotFoundError("Cluster #9 not found"))
        assert message == "Error: NotFoundError: Cluster #9 not found"

    def test_close_detaches_handlers(self, logger):
        """close() leaves no open handlers behind."""
        logger.close()
        assert logger.logger.handlers == []

    def test_bind_adds_context(self, logger, tmp_path):
        """Bound loggers write to the same file with their context merged in."""
        session_log = logger.bind(session_id="s1")
        session_log.log_operation("attach_tag_completed", {"tag_id": 3})
        logger.log_operation("unbound")
        for handler in logger.logger.handlers:
            handler.flush()

        operations = (tmp_path / "logs" / "database.log").read_text()

        assert 'attach_tag_completed: {"session_id": "s1", "tag_id": 3}' in operations
        assert "OPERATION - unbound\n" in operations
        assert logger.context == {}

    def test_errors_carry_traceback(self, logger, tmp_path):
        """Raised errors are written with their traceback."""
        try:
            raise NotFoundError("Cluster #2 not found")
        except NotFoundError as e:
            logger.log_error(e, {"cluster_id": 2})
        for handler in logger.logger.handlers:
            handler.flush()

        errors = (tmp_path / "logs" / "errors.log").read_text()
        assert "Traceback (most recent call last)" in errors
        assert '"cluster_id": 2' in errors


class TestNullLogger:
    """Tests for NullLogger class."""

    def test_log_methods_are_no_ops(self):
        """NullLogger methods accept the same arguments and do nothing."""
        logger = NullLogger()
        logger.log_operation("test_op", {"key": "value"})
        logger.log_error(ValueError("test error"), {"context": "test"})
        logger.log_debug("debug message", {"key": "value"})
        logger.log_info("info message")
        logger.log_warning("warning message")

    def test_log_cli_error_returns_formatted(self):
        """NullLogger.log_cli_error should return formatted error string."""
        result = NullLogger().log_cli_error(ValueError("test error"), {"context": "test"})
        assert result == "Error: ValueError: test error"


class TestSafeLogger:
    """Tests for safe_logger function."""

    def test_returns_logger_when_provided(self):
        """safe_logger should return the same logger when not None."""
        mock_logger = MagicMock(spec=CorkboardLogger)
        assert safe_logger(mock_logger) is mock_logger

    def test_returns_null_logger_when_none(self):
        """safe_logger should return the shared NullLogger when logger is None."""
        result = safe_logger(None)
        assert isinstance(result, NullLogger)
        assert safe_logger(None) is result

    def test_forwards_calls(self):
        """Calls reach the wrapped logger unchanged."""
        mock_logger = MagicMock(spec=CorkboardLogger)
        details = {"owner_id": 1}

        safe_logger(mock_logger).log_operation("sweep", details)
        mock_logger.log_operation.assert_called_once_with("sweep", details)


class TestHandleCliError:
    """Tests for the shared CLI error handler."""

    def make_ctx(self, **obj):
        ctx = click.Context(click.Command("test"))
        ctx.obj = obj
        return ctx

    def test_exits_with_code(self, capsys):
        """The handler prints to stderr and exits."""
        ctx = self.make_ctx()

        with pytest.raises(SystemExit) as exc_info:
            handle_cli_error(ctx, NotFoundError("Tag #3 not found"), "delete_tag")

        assert exc_info.value.code == 1
        assert "NotFoundError: Tag #3 not found" in capsys.readouterr().err

    def test_logs_with_context(self):
        """Operation and extra context are passed to the logger."""
        mock_logger = MagicMock(spec=CorkboardLogger)
        mock_logger.log_cli_error.return_value = "Error: boom"
        ctx = self.make_ctx(logger=mock_logger)
        error = NotFoundError("boom")

        with pytest.raises(SystemExit):
            handle_cli_error(ctx, error, "merge_tags", {"owner_id": 1}, exit_code=2)

        mock_logger.log_cli_error.assert_called_once_with(
            error, {"operation": "merge_tags", "owner_id": 1}, show_traceback=False
        )
