"""Tests for the error handler module."""

import logging
from datetime import datetime
from unittest.mock import patch

import pytest

from ecfr_analyzer.error_handler import (
    CatalogParseFailure,
    CatalogUnavailableError,
    ContentValidationFailure,
    ECFRAnalyzerError,
    ErrorCollector,
    PipelineBusyError,
    StorageFailure,
    TerminalClientError,
    TransientNetworkError,
    handle_graceful_degradation,
    log_execution_time,
)


class TestECFRAnalyzerError:
    """Test cases for ECFRAnalyzerError and subclasses."""

    def test_error_creation(self):
        """Test ECFRAnalyzerError creation."""
        error = ECFRAnalyzerError("Test error", recoverable=True)

        assert error.message == "Test error"
        assert error.recoverable is True
        assert error.cause is None
        assert isinstance(error.timestamp, datetime)

    def test_error_with_cause(self):
        """Test ECFRAnalyzerError with cause."""
        original_error = ValueError("Original error")
        error = ECFRAnalyzerError("Wrapped error", cause=original_error)

        assert error.cause == original_error
        assert error.recoverable is False

    def test_error_subclasses(self):
        """Test every failure kind derives from the base error."""
        for error_class in (TransientNetworkError, TerminalClientError, ContentValidationFailure,
                            CatalogParseFailure, CatalogUnavailableError, StorageFailure,
                            PipelineBusyError):
            assert isinstance(error_class("failed"), ECFRAnalyzerError)

    def test_network_errors_carry_status(self):
        transient = TransientNetworkError("Server error", status_code=503)
        terminal = TerminalClientError("Not found", status_code=404)

        assert transient.status_code == 503
        assert transient.recoverable is True
        assert terminal.status_code == 404
        assert terminal.recoverable is False


class TestLogExecutionTime:
    """Test cases for the log_execution_time decorator."""

    def test_returns_result_and_logs(self, caplog):
        @log_execution_time
        def compute():
            return 42

        with caplog.at_level(logging.INFO, logger='ecfr_analyzer.error_handler'):
            assert compute() == 42

        assert "Completed" in caplog.text
        assert "compute" in caplog.text

    def test_reraises_and_logs_failure(self, caplog):
        @log_execution_time
        def explode():
            raise RuntimeError("boom")

        with caplog.at_level(logging.ERROR, logger='ecfr_analyzer.error_handler'):
            with pytest.raises(RuntimeError, match="boom"):
                explode()

        assert "Failed" in caplog.text


class TestGracefulDegradation:
    """Test cases for the handle_graceful_degradation decorator."""

    def test_success_passes_through(self):
        @handle_graceful_degradation(fallback_factory=list)
        def fetch():
            return [1, 2]

        assert fetch() == [1, 2]

    def test_analyzer_error_returns_fresh_fallback(self):
        @handle_graceful_degradation(fallback_factory=list)
        def fetch():
            raise CatalogParseFailure("bad payload")

        first = fetch()
        first.append('mutated')

        assert fetch() == []

    def test_other_exceptions_propagate(self):
        @handle_graceful_degradation(fallback_factory=dict)
        def fetch():
            raise KeyError('missing')

        with pytest.raises(KeyError):
            fetch()

    def test_uses_configured_log_level(self):
        @handle_graceful_degradation(fallback_factory=dict, log_level=logging.ERROR)
        def fetch():
            raise StorageFailure("read failed")

        with patch('ecfr_analyzer.error_handler.logger') as mock_logger:
            assert fetch() == {}

        assert mock_logger.log.call_args.args[0] == logging.ERROR


class TestErrorCollector:
    """Test cases for the ErrorCollector class."""

    def test_empty_collector(self):
        collector = ErrorCollector()

        assert not collector.has_errors()
        assert not collector.has_warnings()
        assert collector.get_error_summary() == "No errors or warnings collected"

    def test_wraps_foreign_exceptions(self):
        """Test non-analyzer exceptions are wrapped with context."""
        collector = ErrorCollector()
        original = RuntimeError("table broken")

        collector.add_error(original, "Title 2")

        error = collector.errors[0]
        assert isinstance(error, ECFRAnalyzerError)
        assert error.message == "Title 2: table broken"
        assert error.cause is original

    def test_keeps_analyzer_errors(self):
        collector = ErrorCollector()
        error = StorageFailure("disk full")

        collector.add_error(error)

        assert collector.errors == [error]

    def test_summary_lists_errors_and_warnings(self):
        collector = ErrorCollector()
        collector.add_error(ValueError("bad date"), "Title 7")
        collector.add_warning("content truncated", "Title 40")

        summary = collector.get_error_summary()

        assert "Errors (1):" in summary
        assert "1. Title 7: bad date" in summary
        assert "Caused by: bad date" in summary
        assert "Warnings (1):" in summary
        assert "1. Title 40: content truncated" in summary

    def test_clear(self):
        collector = ErrorCollector()
        collector.add_error(ValueError("bad"))
        collector.add_warning("careful")

        collector.clear()

        assert not collector.has_errors()
        assert not collector.has_warnings()
