# src/browser_harness/core/exceptions/base.py
"""
Base Exception Class for the Browser Harness

This module provides the foundation exception class that all other
harness exceptions inherit from. It carries rich error context,
a unique error code, and recovery suggestions so that a failed
provisioning step reports one clear, actionable reason.

Key Design Patterns:
- Template Method: Common exception structure with customizable details
- Builder Pattern: Fluent API for adding context and recovery suggestions
"""

import json
import traceback
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set
from uuid import uuid4

from .enums import ErrorCategory, ErrorSeverity, LogLevel, RetryStrategy


@dataclass
class ErrorContext:
    """
    Structured context information attached to an error.
    """

    data: Dict[str, Any] = field(default_factory=dict)
    tags: Set[str] = field(default_factory=set)

    def add(self, key: str, value: Any) -> 'ErrorContext':
        """Add context data."""
        self.data[key] = value
        return self

    def add_tag(self, tag: str) -> 'ErrorContext':
        """Add a tag for categorization."""
        self.tags.add(tag)
        return self

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "data": self.data.copy(),
            "tags": sorted(self.tags)
        }


class HarnessError(Exception):
    """
    Base exception class for all browser harness exceptions.

    This class provides:
    - Rich error context for debugging
    - Recovery suggestions for the operator
    - Structured data for logging
    - Unique error tracking with correlation IDs
    - Severity and category classification

    Attributes:
        message: Human-readable error description
        error_code: Unique error identifier for tracking
        correlation_id: UUID for correlating related errors
        category: Error category for classification
        severity: Error severity level
        retry_strategy: Suggested retry approach
        recovery_suggestions: List of potential recovery actions
        timestamp: When the error occurred
        original_exception: Original exception that caused this error

    Example:
        >>> try:
        ...     service.start()
        ... except Exception as e:
        ...     raise HarnessError(
        ...         message="Driver service did not start",
        ...         category=ErrorCategory.BROWSER,
        ...         severity=ErrorSeverity.CRITICAL,
        ...         original_exception=e
        ...     ).add_context("driver_path", "/usr/bin/chromedriver")
    """

    default_category: ErrorCategory = ErrorCategory.INFRASTRUCTURE
    default_severity: ErrorSeverity = ErrorSeverity.MEDIUM

    def __init__(
            self,
            message: str,
            error_code: Optional[str] = None,
            correlation_id: Optional[str] = None,
            category: Optional[ErrorCategory] = None,
            severity: Optional[ErrorSeverity] = None,
            retry_strategy: Optional[RetryStrategy] = None,
            context: Optional[Dict[str, Any]] = None,
            recovery_suggestions: Optional[List[str]] = None,
            original_exception: Optional[BaseException] = None
    ):
        """
        Initialize harness exception with error details.

        Args:
            message: Clear, actionable error description
            error_code: Unique identifier for this error type (auto-generated if None)
            correlation_id: UUID for tracking related errors (auto-generated if None)
            category: Error category (class default if None)
            severity: Severity level (class default if None)
            retry_strategy: Suggested retry approach (derived from category if None)
            context: Additional debugging context
            recovery_suggestions: List of recovery actions
            original_exception: Original exception that caused this error
        """
        super().__init__(message)

        self.message = message
        self.timestamp = datetime.now(timezone.utc)
        self.error_code = error_code or self._generate_error_code()
        self.correlation_id = correlation_id or str(uuid4())
        self.category = category or self.default_category
        self.severity = severity or self.default_severity
        self.retry_strategy = retry_strategy or self.category.get_default_retry_strategy()
        self.log_level = LogLevel.from_severity(self.severity)

        self.error_context = ErrorContext()
        if context:
            for key, value in context.items():
                self.error_context.add(key, value)

        for tag in self.category.get_monitoring_tags():
            self.error_context.add_tag(tag)

        self.recovery_suggestions: List[str] = []
        for suggestion in recovery_suggestions or []:
            self.add_recovery_suggestion(suggestion)

        self.original_exception = original_exception
        if original_exception is not None:
            self.__cause__ = original_exception
            self.error_context.add("original_type", type(original_exception).__name__)
            self.error_context.add("original_message", str(original_exception))

        self.stack_trace = traceback.format_exc()

    def _generate_error_code(self) -> str:
        """Generate a unique error code based on exception type and timestamp."""
        class_name = self.__class__.__name__.replace("Error", "").upper()
        timestamp = self.timestamp.strftime("%Y%m%d_%H%M%S_%f")
        return f"{class_name}_{timestamp}"

    @property
    def context(self) -> Dict[str, Any]:
        """Context data attached to this error."""
        return self.error_context.data

    def add_context(self, key: str, value: Any) -> 'HarnessError':
        """
        Add contextual information to the exception.

        Args:
            key: Context key (e.g., "driver_path", "port")
            value: Context value (any serializable type)

        Returns:
            HarnessError: Self for method chaining
        """
        self.error_context.add(key, value)
        return self

    def add_tag(self, tag: str) -> 'HarnessError':
        """Add a tag for categorization."""
        self.error_context.add_tag(tag)
        return self

    def add_recovery_suggestion(self, suggestion: str) -> 'HarnessError':
        """Add a recovery suggestion, ignoring duplicates."""
        if suggestion and suggestion not in self.recovery_suggestions:
            self.recovery_suggestions.append(suggestion)
        return self

    def is_fatal(self) -> bool:
        """Whether this error aborts provisioning."""
        return self.severity.is_fatal()

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary for structured logging.

        Returns:
            Dict: Complete exception data
        """
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "correlation_id": self.correlation_id,
            "message": self.message,
            "category": self.category.value,
            "severity": self.severity.value,
            "retry_strategy": self.retry_strategy.value,
            "log_level": self.log_level.value,
            "context": self.error_context.to_dict(),
            "recovery_suggestions": list(self.recovery_suggestions),
            "timestamp": self.timestamp.isoformat(),
            "original_exception": {
                "type": type(self.original_exception).__name__,
                "message": str(self.original_exception)
            } if self.original_exception is not None else None,
        }

    def to_json(self) -> str:
        """Convert exception to JSON string."""
        return json.dumps(self.to_dict(), indent=2, default=str)

    def __str__(self) -> str:
        """Return the message followed by the most useful context."""
        parts = [self.message]
        if self.error_context.data:
            shown = [
                f"{k}={v}" for k, v in self.error_context.data.items()
                if k not in ("original_type", "original_message")
            ][:5]
            if shown:
                parts.append(f"({', '.join(shown)})")
        if self.original_exception is not None:
            parts.append(f"caused by {type(self.original_exception).__name__}: {str(self.original_exception)[:200]}")
        return " ".join(parts)

    def __repr__(self) -> str:
        """Return a concise representation suitable for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message='{self.message[:50]}', "
            f"category={self.category.value}, "
            f"severity={self.severity.value}, "
            f"error_code='{self.error_code}'"
            f")"
        )
