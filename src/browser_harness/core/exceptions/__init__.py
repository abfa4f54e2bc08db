# src/browser_harness/core/exceptions/__init__.py
"""
Exception hierarchy for the browser harness.
"""

from .base import ErrorContext, HarnessError
from .browser import BrowserError, DriverNotFoundError, PageNotFoundError, SessionCreateError
from .enums import ErrorCategory, ErrorSeverity, LogLevel, RetryStrategy
from .lifecycle import CleanupError, LifecycleStateError
from .server import ReadinessProbeError, ServerError, ServerNotRespondingError, ServerStartError

__all__ = [
    "ErrorContext",
    "HarnessError",
    "BrowserError",
    "DriverNotFoundError",
    "PageNotFoundError",
    "SessionCreateError",
    "ServerError",
    "ServerStartError",
    "ServerNotRespondingError",
    "ReadinessProbeError",
    "CleanupError",
    "LifecycleStateError",
    "ErrorCategory",
    "ErrorSeverity",
    "LogLevel",
    "RetryStrategy",
]
