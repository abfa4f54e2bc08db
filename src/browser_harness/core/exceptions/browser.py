# src/browser_harness/core/exceptions/browser.py
"""
Browser-Related Exception Classes

This module defines exceptions for driver discovery, locating the page
under test, and bringing up a remote-controlled browser session. All of
them are fatal: provisioning cannot continue without operator action.
"""

from typing import List, Optional, Sequence

from .base import HarnessError
from .enums import ErrorCategory, ErrorSeverity, RetryStrategy


class BrowserError(HarnessError):
    """
    Base class for all browser-related exceptions.
    """

    default_category = ErrorCategory.BROWSER
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
            self,
            message: str,
            browser_kind: Optional[str] = None,
            **kwargs
    ):
        """
        Initialize browser exception with browser-specific context.

        Args:
            message: Error description
            browser_kind: Browser family (chrome, edge) if known
            **kwargs: Additional arguments for HarnessError
        """
        kwargs.setdefault('retry_strategy', RetryStrategy.NONE)
        super().__init__(message=message, **kwargs)

        self.browser_kind = browser_kind
        if browser_kind:
            self.add_context("browser_kind", browser_kind)
            self.add_tag(f"browser_{browser_kind.lower()}")


class DriverNotFoundError(BrowserError):
    """
    No usable driver executable was found.

    Raised when neither the project-local driver folder nor any of the
    well-known system locations yields an executable driver.
    """

    def __init__(
            self,
            message: str = "No compatible browser driver found",
            searched_locations: Optional[Sequence[str]] = None,
            **kwargs
    ):
        super().__init__(message=message, **kwargs)

        self.searched_locations: List[str] = [str(p) for p in searched_locations or []]
        if self.searched_locations:
            self.add_context("searched_count", len(self.searched_locations))
            self.add_context("searched_locations", self.searched_locations)

        self.add_recovery_suggestion("Place chromedriver or msedgedriver in the project 'driver' folder")
        self.add_recovery_suggestion("Install a driver to a standard system location")
        self.add_recovery_suggestion("Verify the driver file has execute permission")


class PageNotFoundError(HarnessError):
    """
    The page under test was not found at any candidate location.
    """

    default_category = ErrorCategory.CONFIGURATION
    default_severity = ErrorSeverity.CRITICAL

    def __init__(
            self,
            message: str = "Could not find the page under test",
            candidates: Optional[Sequence[str]] = None,
            **kwargs
    ):
        kwargs.setdefault('retry_strategy', RetryStrategy.NONE)
        super().__init__(message=message, **kwargs)

        self.candidates: List[str] = [str(c) for c in candidates or []]
        if self.candidates:
            self.add_context("candidates", self.candidates)

        self.add_recovery_suggestion("Check the page.candidates setting")
        self.add_recovery_suggestion("Run tests from the project root directory")


class SessionCreateError(BrowserError):
    """
    The driver service or the remote browser session could not be started.
    """

    def __init__(
            self,
            message: str,
            driver_path: Optional[str] = None,
            binary_path: Optional[str] = None,
            launch_args: Optional[List[str]] = None,
            startup_timeout: Optional[float] = None,
            **kwargs
    ):
        """
        Initialize session creation exception.

        Args:
            message: Error description
            driver_path: Driver executable used for the service
            binary_path: Browser binary override, if any
            launch_args: Arguments passed to the browser
            startup_timeout: Driver service startup bound in seconds
            **kwargs: Additional exception arguments
        """
        super().__init__(message=f"Failed to create browser session: {message}", **kwargs)

        self.driver_path = driver_path
        self.binary_path = binary_path
        self.launch_args = launch_args
        self.startup_timeout = startup_timeout

        if driver_path:
            self.add_context("driver_path", driver_path)
        if binary_path:
            self.add_context("binary_path", binary_path)
        if launch_args:
            self.add_context("launch_args_count", len(launch_args))
        if startup_timeout:
            self.add_context("startup_timeout", startup_timeout)

        self.add_recovery_suggestion("Check that the driver version matches the installed browser")
        self.add_recovery_suggestion("Try launching the driver manually to test")
        if driver_path:
            self.add_recovery_suggestion(f"Verify path exists: {driver_path}")
