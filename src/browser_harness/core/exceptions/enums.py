# src/browser_harness/core/exceptions/enums.py
"""
Exception Classification Enums

This module defines enums for categorizing and prioritizing exceptions
raised while provisioning a browser test environment. They give every
harness error a consistent classification for logging and for deciding
whether a failure is fatal or can be degraded around.

Key Design Benefits:
- Type Safety: Enum values prevent typos and invalid categories
- Consistent Classification: Standardized error categorization
- Built-in business logic in enums (retry limits, log levels)
"""

import random
from enum import Enum
from typing import Dict, Optional, Set


class ErrorSeverity(str, Enum):
    """
    Error severity levels for exception prioritization.

    Severity decides whether a provisioning step may be retried
    and at what level the failure is logged.
    """

    LOW = "low"
    """
    Degraded-but-workable conditions.
    Examples: a single failed readiness probe, cleanup warnings
    """

    MEDIUM = "medium"
    """
    Failures that are recovered locally.
    Examples: file server could not start, server never became ready
    """

    HIGH = "high"
    """
    Failures of the caller's usage.
    Examples: lifecycle set up twice
    """

    CRITICAL = "critical"
    """
    Failures that abort provisioning.
    Examples: no usable driver, page under test missing, session not created
    """

    def is_fatal(self) -> bool:
        """Determine if this severity level aborts the lifecycle."""
        return self == ErrorSeverity.CRITICAL


class ErrorCategory(str, Enum):
    """
    Error categories for organizing exception types by functional area.
    """

    BROWSER = "browser"
    """Driver discovery and browser session errors."""

    NETWORK = "network"
    """Readiness probes and local HTTP connectivity."""

    CONFIGURATION = "configuration"
    """Missing project files or invalid settings."""

    TIMEOUT = "timeout"
    """Bounded waits that expired."""

    INFRASTRUCTURE = "infrastructure"
    """Child processes and host resources."""

    TEST = "test"
    """Misuse of the harness by the test layer."""

    def get_default_retry_strategy(self) -> 'RetryStrategy':
        """Get default retry strategy for this category."""
        strategy_mapping: Dict[ErrorCategory, RetryStrategy] = {
            ErrorCategory.BROWSER: RetryStrategy.NONE,
            ErrorCategory.NETWORK: RetryStrategy.FIXED,
            ErrorCategory.CONFIGURATION: RetryStrategy.NONE,
            ErrorCategory.TIMEOUT: RetryStrategy.FIXED,
            ErrorCategory.INFRASTRUCTURE: RetryStrategy.NONE,
            ErrorCategory.TEST: RetryStrategy.NONE,
        }
        return strategy_mapping.get(self, RetryStrategy.NONE)

    def get_monitoring_tags(self) -> Set[str]:
        """Get tags attached to every error of this category."""
        base_tags = {self.value, "harness_error"}

        tag_mapping: Dict[ErrorCategory, Set[str]] = {
            ErrorCategory.BROWSER: {"browser_issue", "driver"},
            ErrorCategory.NETWORK: {"network_issue", "connectivity"},
            ErrorCategory.CONFIGURATION: {"config_issue", "setup_error"},
            ErrorCategory.TIMEOUT: {"timeout_issue"},
            ErrorCategory.INFRASTRUCTURE: {"infra_issue", "process"},
            ErrorCategory.TEST: {"test_issue"},
        }

        return base_tags.union(tag_mapping.get(self, set()))


class RetryStrategy(str, Enum):
    """
    Retry strategies for different types of failures.
    """

    NONE = "none"
    """No retry - fail immediately."""

    FIXED = "fixed"
    """Fixed delay between retries."""

    LINEAR = "linear"
    """Delay grows linearly with the attempt number."""

    EXPONENTIAL = "exponential"
    """Delay doubles with each attempt."""

    EXPONENTIAL_JITTER = "exponential_jitter"
    """Exponential backoff with random jitter."""

    def get_base_delay(self) -> float:
        """Get base delay in seconds for this strategy."""
        if self == RetryStrategy.NONE:
            return 0.0
        return 1.0

    def calculate_delay(self, attempt: int, base_delay: Optional[float] = None) -> float:
        """
        Calculate delay for given attempt number.

        Args:
            attempt: Current retry attempt (1-based)
            base_delay: Override base delay

        Returns:
            Delay in seconds before next retry
        """
        base = base_delay if base_delay is not None else self.get_base_delay()

        if self == RetryStrategy.NONE:
            return 0.0
        elif self == RetryStrategy.FIXED:
            return base
        elif self == RetryStrategy.LINEAR:
            return base * attempt
        elif self == RetryStrategy.EXPONENTIAL:
            return base * (2 ** (attempt - 1))
        elif self == RetryStrategy.EXPONENTIAL_JITTER:
            return base * (2 ** (attempt - 1)) * random.uniform(0.8, 1.2)
        return base


class LogLevel(str, Enum):
    """
    Logging levels aligned with standard Python logging.
    """

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @classmethod
    def from_severity(cls, severity: ErrorSeverity) -> 'LogLevel':
        """Determine log level from error severity."""
        severity_mapping: Dict[ErrorSeverity, LogLevel] = {
            ErrorSeverity.LOW: LogLevel.INFO,
            ErrorSeverity.MEDIUM: LogLevel.WARNING,
            ErrorSeverity.HIGH: LogLevel.ERROR,
            ErrorSeverity.CRITICAL: LogLevel.CRITICAL,
        }
        return severity_mapping[severity]
