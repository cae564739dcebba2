"""
Error handling utilities for the CFR Structure Analyzer.

This module provides the exception hierarchy shared by the analysis engine
and its collaborators, plus logging helpers for long-running operations.
"""

import logging
import time
import functools
from typing import Any, Callable, List, Optional, Union
from datetime import datetime


logger = logging.getLogger(__name__)


class StructureAnalyzerError(Exception):
    """Base exception for CFR Structure Analyzer errors."""

    def __init__(self, message: str, cause: Optional[Exception] = None,
                 recoverable: bool = False):
        """
        Initialize CFR Structure Analyzer error.

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


class EmptyBatchError(StructureAnalyzerError):
    """A summary was requested over an empty batch of results."""
    pass


class FixtureLoadError(StructureAnalyzerError):
    """Error loading or parsing a persisted fixture."""
    pass


class FixtureNotFoundError(FixtureLoadError):
    """A requested fixture file does not exist."""
    pass


class ECFRAPIError(StructureAnalyzerError):
    """Error communicating with the eCFR API."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 cause: Optional[Exception] = None, recoverable: bool = False):
        super().__init__(message, cause=cause, recoverable=recoverable)
        self.status_code = status_code


class DownloadError(StructureAnalyzerError):
    """Error downloading fixtures from the eCFR API."""
    pass


class ReportGenerationError(StructureAnalyzerError):
    """Error generating reports."""
    pass


class ConfigurationError(StructureAnalyzerError):
    """Error in configuration or setup."""
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


class ErrorCollector:
    """Collects errors from independent steps of a multi-step operation."""

    def __init__(self):
        """Initialize error collector."""
        self.errors: List[StructureAnalyzerError] = []
        self.start_time = datetime.now()

    def add_error(self, error: Union[StructureAnalyzerError, Exception],
                  context: str = "") -> None:
        """
        Add an error to the collection.

        Args:
            error: Error to add
            context: Additional context information
        """
        if isinstance(error, StructureAnalyzerError) and not context:
            collected = error
        else:
            message = getattr(error, 'message', str(error))
            collected = StructureAnalyzerError(
                message=f"{context}: {message}" if context else message,
                cause=error,
                recoverable=False
            )

        self.errors.append(collected)
        logger.error(f"Error collected: {collected.message}")

    def has_errors(self) -> bool:
        """Check if any errors have been collected."""
        return len(self.errors) > 0

    @property
    def error_count(self) -> int:
        return len(self.errors)

    def get_messages(self) -> List[str]:
        """Get the collected error messages in order."""
        return [error.message for error in self.errors]

    def get_error_summary(self) -> str:
        """
        Get a summary of collected errors.

        Returns:
            Formatted summary string
        """
        if not self.has_errors():
            return "No errors collected"

        lines = [f"Errors ({len(self.errors)}):"]
        for i, error in enumerate(self.errors, 1):
            lines.append(f"  {i}. {error.message}")
            if error.cause:
                lines.append(f"     Caused by: {error.cause}")
        return "\n".join(lines)

    def clear(self) -> None:
        """Clear all collected errors."""
        self.errors.clear()
        logger.debug("Error collector cleared")
