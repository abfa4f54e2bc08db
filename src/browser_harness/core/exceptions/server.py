# src/browser_harness/core/exceptions/server.py
"""
Static File Server Exception Classes

Serving the page over HTTP is an optimization, not a requirement: these
errors are recovered by the lifecycle, which falls back to a file URL.
"""

from typing import Optional

from .base import HarnessError
from .enums import ErrorCategory, ErrorSeverity, RetryStrategy


class ServerError(HarnessError):
    """
    Base class for static file server exceptions.
    """

    default_category = ErrorCategory.INFRASTRUCTURE
    default_severity = ErrorSeverity.MEDIUM

    def __init__(
            self,
            message: str,
            port: Optional[int] = None,
            directory: Optional[str] = None,
            **kwargs
    ):
        super().__init__(message=message, **kwargs)

        self.port = port
        self.directory = directory
        if port is not None:
            self.add_context("port", port)
        if directory:
            self.add_context("directory", directory)


class ServerStartError(ServerError):
    """
    The server process could not be launched or died during startup.

    Also raised when no script runtime capable of serving files exists.
    """

    def __init__(self, message: str, runtime: Optional[str] = None, **kwargs):
        kwargs.setdefault('retry_strategy', RetryStrategy.NONE)
        super().__init__(message=f"HTTP server failed to start: {message}", **kwargs)

        self.runtime = runtime
        if runtime:
            self.add_context("runtime", runtime)

        self.add_recovery_suggestion("Check that python3 is on PATH")
        self.add_recovery_suggestion("Check that the chosen port is not already in use")


class ServerNotRespondingError(ServerError):
    """
    The server process is alive but never answered a readiness probe.
    """

    default_category = ErrorCategory.NETWORK

    def __init__(
            self,
            message: str,
            url: Optional[str] = None,
            attempts: Optional[int] = None,
            **kwargs
    ):
        kwargs.setdefault('retry_strategy', RetryStrategy.NONE)
        super().__init__(message=f"HTTP server not responding: {message}", **kwargs)

        self.url = url
        self.attempts = attempts
        if url:
            self.add_context("url", url)
        if attempts is not None:
            self.add_context("attempts", attempts)

        self.add_recovery_suggestion("Verify the served directory contains the requested file")


class ReadinessProbeError(ServerError):
    """
    A single readiness probe failed; retried until the probe budget is spent.
    """

    default_category = ErrorCategory.NETWORK
    default_severity = ErrorSeverity.LOW

    def __init__(
            self,
            message: str,
            url: Optional[str] = None,
            status_code: Optional[int] = None,
            **kwargs
    ):
        super().__init__(message=message, **kwargs)

        self.url = url
        self.status_code = status_code
        if url:
            self.add_context("url", url)
        if status_code is not None:
            self.add_context("status_code", status_code)
