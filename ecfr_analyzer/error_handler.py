"""
Error handling utilities for the eCFR Analyzer.

This module provides the exception taxonomy, error collection and the
decorators used for timing and graceful degradation of pipeline stages.
"""

import logging
import time
import functools
from typing import Any, Callable, List, Optional, Union
from datetime import datetime


logger = logging.getLogger(__name__)


class ECFRAnalyzerError(Exception):
    """Base exception for eCFR Analyzer errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None,
                 recoverable: bool = False):
        """
        Initialize eCFR Analyzer error.

        Args:
            message: Error message
            cause: Original exception that caused this error
            recoverable: Whether this error is recoverable
        """
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.recoverable = recoverable
        self.timestamp = datetime.now()


class TransientNetworkError(ECFRAnalyzerError):
    """Server-side (5xx) or transport failure; retried until attempts run out."""

    def __init__(self, message: str, cause: Optional[Exception] = None,
                 status_code: Optional[int] = None):
        super().__init__(message, cause=cause, recoverable=True)
        self.status_code = status_code


class TerminalClientError(ECFRAnalyzerError):
    """Client error (4xx); never retried."""

    def __init__(self, message: str, cause: Optional[Exception] = None,
                 status_code: Optional[int] = None):
        super().__init__(message, cause=cause, recoverable=False)
        self.status_code = status_code


class ContentValidationFailure(ECFRAnalyzerError):
    """Fetched content failed the minimal sanity check."""

    def __init__(self, message: str, cause: Optional[Exception] = None):
        super().__init__(message, cause=cause, recoverable=True)


class CatalogParseFailure(ECFRAnalyzerError):
    """Agency or title catalog payload could not be parsed."""
    pass


class CatalogUnavailableError(ECFRAnalyzerError):
    """The title catalog could not be retrieved; the run cannot proceed."""
    pass


class StorageFailure(ECFRAnalyzerError):
    """Error reading or writing the title snapshot."""
    pass


class PipelineBusyError(ECFRAnalyzerError):
    """A pipeline run was requested while another run is active."""
    pass


def log_execution_time(func: Callable) -> Callable:
    """
    Decorator to log function execution time.

    Args:
        func: Function to wrap

    Returns:
        Wrapped function with execution time logging
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs) -> Any:
        start_time = time.time()
        func_name = f"{func.__module__}.{func.__name__}"

        try:
            logger.debug(f"Starting {func_name}")
            result = func(*args, **kwargs)
            execution_time = time.time() - start_time
            logger.info(f"Completed {func_name} in {execution_time:.2f}s")
            return result

        except Exception as e:
            execution_time = time.time() - start_time
            logger.error(f"Failed {func_name} after {execution_time:.2f}s: {e}")
            raise

    return wrapper


def handle_graceful_degradation(fallback_factory: Callable[[], Any],
                                log_level: int = logging.WARNING):
    """
    Decorator for graceful degradation on errors.

    Args:
        fallback_factory: Callable building the value to return on error
        log_level: Logging level for the error
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except ECFRAnalyzerError as e:
                fallback_value = fallback_factory()
                logger.log(
                    log_level,
                    f"Graceful degradation in {func.__name__}: {e}. "
                    f"Returning fallback value: {fallback_value!r}"
                )
                return fallback_value

        return wrapper
    return decorator


class ErrorCollector:
    """Collects and manages errors during processing."""

    def __init__(self):
        """Initialize error collector."""
        self.errors: List[ECFRAnalyzerError] = []
        self.warnings: List[str] = []
        self.start_time = datetime.now()

    def add_error(self, error: Union[ECFRAnalyzerError, Exception],
                  context: str = "") -> None:
        """
        Add an error to the collection.

        Args:
            error: Error to add
            context: Additional context information
        """
        if isinstance(error, ECFRAnalyzerError):
            collected = error
        else:
            collected = ECFRAnalyzerError(
                message=f"{context}: {str(error)}" if context else str(error),
                cause=error,
                recoverable=False
            )

        self.errors.append(collected)
        logger.error(f"Error collected: {collected.message}")

    def add_warning(self, message: str, context: str = "") -> None:
        """
        Add a warning to the collection.

        Args:
            message: Warning message
            context: Additional context information
        """
        warning_msg = f"{context}: {message}" if context else message
        self.warnings.append(warning_msg)
        logger.warning(f"Warning collected: {warning_msg}")

    def has_errors(self) -> bool:
        """Check if any errors have been collected."""
        return len(self.errors) > 0

    def has_warnings(self) -> bool:
        """Check if any warnings have been collected."""
        return len(self.warnings) > 0

    def get_error_summary(self) -> str:
        """
        Get a summary of collected errors and warnings.

        Returns:
            Formatted summary string
        """
        lines = []

        if self.has_errors():
            lines.append(f"Errors ({len(self.errors)}):")
            for i, error in enumerate(self.errors, 1):
                lines.append(f"  {i}. {error.message}")
                if error.cause:
                    lines.append(f"     Caused by: {error.cause}")

        if self.has_warnings():
            lines.append(f"Warnings ({len(self.warnings)}):")
            for i, warning in enumerate(self.warnings, 1):
                lines.append(f"  {i}. {warning}")

        if not lines:
            lines.append("No errors or warnings collected")

        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected errors and warnings."""
        self.errors.clear()
        self.warnings.clear()
        logger.debug("Error collector cleared")
