# src/browser_harness/core/retry.py
"""
Bounded Retry for Provisioning Steps

This module provides the retry mechanism used to poll slow-starting
resources such as the static file server:
- Fixed, linear and exponential delay strategies
- Exception-aware retry decisions
- A hard cap on the number of attempts
- Per-operation retry statistics

Key Design Patterns:
- Strategy Pattern: Different delay strategies
- Decorator Pattern: Easy application of retry logic to functions
"""

import functools
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Set, Type, TypeVar, Union
from uuid import uuid4

from .exceptions.base import HarnessError
from .exceptions.enums import ErrorCategory, ErrorSeverity, RetryStrategy
from .logger import get_logger

F = TypeVar('F', bound=Callable[..., Any])


@dataclass
class RetryConfig:
    """
    Configuration for retry behavior.
    """

    max_attempts: int = 3
    """Maximum number of attempts (including the initial attempt)."""

    base_delay: float = 1.0
    """Base delay in seconds between attempts."""

    max_delay: float = 60.0
    """Maximum delay in seconds between attempts."""

    strategy: RetryStrategy = RetryStrategy.FIXED
    """Retry strategy to use."""

    retryable_exceptions: Set[Type[BaseException]] = field(
        default_factory=lambda: {
            HarnessError,
            ConnectionError,
            TimeoutError,
        }
    )
    """Exception types that should trigger retry attempts."""

    non_retryable_exceptions: Set[Type[BaseException]] = field(
        default_factory=lambda: {
            KeyboardInterrupt,
            SystemExit,
            MemoryError,
        }
    )
    """Exception types that should never be retried."""

    retry_on_severity: Set[ErrorSeverity] = field(
        default_factory=lambda: {
            ErrorSeverity.LOW,
            ErrorSeverity.MEDIUM
        }
    )
    """HarnessError severity levels that allow retry."""

    retry_on_categories: Set[ErrorCategory] = field(
        default_factory=lambda: {
            ErrorCategory.NETWORK,
            ErrorCategory.TIMEOUT,
        }
    )
    """HarnessError categories that allow retry."""


@dataclass
class RetryAttempt:
    """Information about a single attempt."""

    attempt_number: int
    timestamp: datetime
    exception: Optional[BaseException]
    delay_before: float
    duration: float = 0.0


@dataclass
class RetryStats:
    """Statistics about one retried operation."""

    operation_id: str
    operation_name: str
    total_attempts: int = 0
    successful_attempts: int = 0
    failed_attempts: int = 0
    total_duration: float = 0.0
    attempts: List[RetryAttempt] = field(default_factory=list)
    final_success: bool = False
    final_exception: Optional[BaseException] = None


class RetryManager:
    """
    Keeps the statistics of the most recent run of each retried operation.
    """

    def __init__(self):
        self.stats: Dict[str, RetryStats] = {}
        self.logger = get_logger("retry_manager")

    def get_stats(self, operation_name: Optional[str] = None) -> Union[Dict[str, RetryStats], Optional[RetryStats]]:
        """
        Get retry statistics.

        Args:
            operation_name: Specific operation name, or None for all stats

        Returns:
            Statistics for specified operation or all operations
        """
        if operation_name:
            return self.stats.get(operation_name)
        return self.stats.copy()

    def clear_stats(self) -> None:
        self.stats.clear()

    def _record_stats(self, stats: RetryStats) -> None:
        self.stats[stats.operation_name] = stats
        self.logger.debug(
            "Recorded retry stats",
            operation_name=stats.operation_name,
            total_attempts=stats.total_attempts,
            final_success=stats.final_success
        )


_retry_manager: Optional[RetryManager] = None


def get_retry_manager() -> RetryManager:
    """Get the global retry manager instance."""
    global _retry_manager
    if _retry_manager is None:
        _retry_manager = RetryManager()
    return _retry_manager


def calculate_delay(attempt: int, config: RetryConfig) -> float:
    """
    Calculate delay before an attempt.

    Args:
        attempt: Attempt number about to run (1-based)
        config: Retry configuration

    Returns:
        Delay in seconds; the first attempt never waits
    """
    if attempt <= 1:
        return 0.0
    delay = config.strategy.calculate_delay(attempt - 1, config.base_delay)
    return min(delay, config.max_delay)


def should_retry(exception: BaseException, attempt: int, config: RetryConfig) -> bool:
    """
    Determine if an exception should trigger another attempt.

    Args:
        exception: Exception that occurred
        attempt: Attempt number that just failed
        config: Retry configuration

    Returns:
        True if should retry, False otherwise
    """
    if attempt >= config.max_attempts:
        return False

    for exc_type in config.non_retryable_exceptions:
        if isinstance(exception, exc_type):
            return False

    if isinstance(exception, HarnessError):
        if exception.severity not in config.retry_on_severity:
            return False
        if exception.category not in config.retry_on_categories:
            return False

    for exc_type in config.retryable_exceptions:
        if isinstance(exception, exc_type):
            return True

    return False


def retry_with_backoff(
        config: Optional[RetryConfig] = None,
        operation_name: Optional[str] = None
) -> Callable[[F], F]:
    """
    Decorator for adding retry logic.

    Example:
        >>> @retry_with_backoff(
        ...     config=RetryConfig(max_attempts=5, strategy=RetryStrategy.FIXED),
        ...     operation_name="probe"
        ... )
        ... def probe():
        ...     return requests.head("http://localhost:8123/index.html", timeout=1)
    """
    if config is None:
        config = RetryConfig()

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            return call_with_retry(func, config, operation_name, *args, **kwargs)

        return wrapper

    return decorator


def call_with_retry(
        func: Callable,
        config: RetryConfig,
        operation_name: Optional[str] = None,
        *args,
        **kwargs
) -> Any:
    """
    Call func until it succeeds, the error is not retryable, or attempts run out.

    Raises:
        The exception of the last attempt when every attempt failed
    """
    op_name = operation_name or getattr(func, "__name__", "operation")
    operation_id = str(uuid4())
    manager = get_retry_manager()

    logger = get_logger("retry")
    stats = RetryStats(operation_id=operation_id, operation_name=op_name)

    logger.debug(
        "Starting operation with retry",
        operation_name=op_name,
        operation_id=operation_id,
        max_attempts=config.max_attempts,
        strategy=config.strategy.value
    )

    for attempt in range(1, config.max_attempts + 1):
        delay_before = calculate_delay(attempt, config)
        if delay_before > 0:
            time.sleep(delay_before)

        attempt_start = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            attempt_duration = time.perf_counter() - attempt_start
            stats.attempts.append(RetryAttempt(
                attempt_number=attempt,
                timestamp=datetime.now(),
                exception=e,
                delay_before=delay_before,
                duration=attempt_duration
            ))
            stats.total_attempts += 1
            stats.failed_attempts += 1
            stats.total_duration += attempt_duration
            stats.final_exception = e

            if should_retry(e, attempt, config):
                logger.debug(
                    f"Attempt {attempt} failed, will retry",
                    operation_name=op_name,
                    attempt=attempt,
                    exception_type=type(e).__name__,
                    exception_message=str(e),
                    operation_id=operation_id
                )
                continue

            logger.warning(
                f"Operation failed after {stats.total_attempts} attempts",
                operation_name=op_name,
                total_attempts=stats.total_attempts,
                total_duration=round(stats.total_duration, 3),
                exception_type=type(e).__name__,
                operation_id=operation_id
            )
            manager._record_stats(stats)
            raise

        attempt_duration = time.perf_counter() - attempt_start
        stats.attempts.append(RetryAttempt(
            attempt_number=attempt,
            timestamp=datetime.now(),
            exception=None,
            delay_before=delay_before,
            duration=attempt_duration
        ))
        stats.total_attempts += 1
        stats.successful_attempts += 1
        stats.total_duration += attempt_duration
        stats.final_success = True

        logger.debug(
            f"Operation succeeded on attempt {attempt}",
            operation_name=op_name,
            attempt=attempt,
            operation_id=operation_id
        )
        manager._record_stats(stats)
        return result

    # max_attempts < 1 never enters the loop
    raise ValueError(f"max_attempts must be at least 1, got {config.max_attempts}")


def create_probe_retry_config(attempts: int, interval: float) -> RetryConfig:
    """
    Create the retry configuration for readiness probes.

    At most `attempts` probes, spaced by a fixed `interval` seconds.
    """
    return RetryConfig(
        max_attempts=attempts,
        base_delay=interval,
        max_delay=max(interval, 0.0),
        strategy=RetryStrategy.FIXED,
        retry_on_categories={ErrorCategory.NETWORK, ErrorCategory.TIMEOUT}
    )
