# src/browser_harness/core/exceptions/lifecycle.py
"""
Lifecycle Exception Classes
"""

from typing import Optional

from .base import HarnessError
from .enums import ErrorCategory, ErrorSeverity, RetryStrategy


class CleanupError(HarnessError):
    """
    A teardown step failed.

    Cleanup errors are logged, never raised out of a teardown path,
    so they can never mask the failure that triggered the teardown.
    """

    default_category = ErrorCategory.INFRASTRUCTURE
    default_severity = ErrorSeverity.LOW

    def __init__(self, message: str, resource: Optional[str] = None, **kwargs):
        kwargs.setdefault('retry_strategy', RetryStrategy.NONE)
        super().__init__(message=message, **kwargs)

        self.resource = resource
        if resource:
            self.add_context("resource", resource)
            self.add_tag(f"cleanup_{resource}")


class LifecycleStateError(HarnessError):
    """
    A lifecycle operation was called in a state that does not allow it.
    """

    default_category = ErrorCategory.TEST
    default_severity = ErrorSeverity.HIGH

    def __init__(self, message: str, state: Optional[str] = None, **kwargs):
        kwargs.setdefault('retry_strategy', RetryStrategy.NONE)
        super().__init__(message=message, **kwargs)

        self.state = state
        if state:
            self.add_context("state", state)
