# src/browser_harness/core/lifecycle.py
"""
Test Environment Lifecycle

LifecycleCoordinator drives one provisioning run end to end:
platform detection, driver discovery, page discovery, serving, session
creation and navigation. Teardown runs in reverse (server first, then
session) and can never replace the failure that triggered it.

Example:
    >>> with browser_environment() as env:
    ...     env.session.driver.find_element(By.ID, "search").send_keys("python")
"""

from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterator, Optional

from browser_harness.config.settings import Settings, get_settings
from .exceptions import CleanupError, LifecycleStateError, ServerError
from .locator import BrowserConfig, BrowserDriverLocator, PageLocator
from .logger import LoggingContext, get_logger, log_phase
from .platform import PlatformInfo, current_platform
from .server import ServerHandle, StaticFileServer
from .session import SessionFactory, SessionHandle


class LifecycleState(str, Enum):
    """Provisioning progress of a lifecycle."""

    UNINITIALIZED = "uninitialized"
    DETECTING = "detecting"
    LOCATING = "locating"
    SERVING = "serving"
    SESSION_READY = "session_ready"
    TORN_DOWN = "torn_down"


@dataclass(frozen=True)
class ResolvedTarget:
    """URL the browser is pointed at."""

    url: str
    served_by_http: bool

    @classmethod
    def for_file(cls, page: Path) -> "ResolvedTarget":
        return cls(url=Path(page).resolve().as_uri(), served_by_http=False)


class LifecycleCoordinator:
    """
    Provisions and tears down one browser test environment.

    Collaborators default to the ones built from settings and may be
    replaced, which is how the unit tests drive it.
    """

    def __init__(
            self,
            settings: Optional[Settings] = None,
            platform: Optional[PlatformInfo] = None,
            driver_locator: Optional[BrowserDriverLocator] = None,
            page_locator: Optional[PageLocator] = None,
            server: Optional[StaticFileServer] = None,
            session_factory: Optional[SessionFactory] = None,
            test_id: Optional[str] = None
    ):
        self.settings = settings or get_settings()
        self.platform = platform or current_platform()
        self.driver_locator = driver_locator or BrowserDriverLocator(self.settings, self.platform)
        self.page_locator = page_locator or PageLocator(self.settings)
        self.server = server or StaticFileServer(self.settings, self.platform)
        self.session_factory = session_factory or SessionFactory(self.settings, self.platform)
        self.test_id = test_id

        self.browser_config: Optional[BrowserConfig] = None
        self.page_path: Optional[Path] = None
        self.server_handle: Optional[ServerHandle] = None
        self.target: Optional[ResolvedTarget] = None
        self.session: Optional[SessionHandle] = None

        self._state = LifecycleState.UNINITIALIZED
        self._logging_context: Optional[LoggingContext] = None
        self.logger = get_logger("lifecycle")

    @property
    def state(self) -> LifecycleState:
        return self._state

    @property
    def correlation_id(self) -> Optional[str]:
        return self._logging_context.correlation_id if self._logging_context else None

    def setup(self) -> SessionHandle:
        """
        Provision the environment and return a session showing the page.

        On any failure everything acquired so far is released and the
        original exception is re-raised.

        Raises:
            LifecycleStateError: If setup was already called
            DriverNotFoundError: No usable driver
            PageNotFoundError: No page under test
            SessionCreateError: Browser session could not be started
        """
        if self._state != LifecycleState.UNINITIALIZED:
            raise LifecycleStateError(
                f"setup() is only allowed once, lifecycle is {self._state.value}",
                state=self._state.value
            )

        self._logging_context = LoggingContext(test_id=self.test_id)
        self._logging_context.__enter__()

        try:
            self._state = LifecycleState.DETECTING
            log_phase("browser and driver detection")
            self.logger.info("Environment", **self.platform.describe())
            self.browser_config = self.driver_locator.locate()

            self._state = LifecycleState.LOCATING
            log_phase("page discovery")
            self.page_path = self.page_locator.locate()

            self._state = LifecycleState.SERVING
            log_phase("serving")
            self.target = self.resolve_target(self.page_path)

            log_phase("browser session")
            self.session = self.session_factory.create(self.browser_config)
            self.session.navigate(self.target.url)

            self._state = LifecycleState.SESSION_READY
        except BaseException as e:
            self.logger.error(
                "Environment setup failed",
                state=self._state.value,
                error_type=type(e).__name__,
                error=str(e)
            )
            self.teardown()
            raise

        self.logger.info(
            "Browser environment ready",
            browser_kind=self.browser_config.browser_kind.value,
            url=self.target.url,
            served_by_http=self.target.served_by_http
        )
        return self.session

    def resolve_target(self, page: Path) -> ResolvedTarget:
        """
        Serve the page over HTTP, falling back to a file URL.

        The fallback covers a disabled server, a server that fails to start
        and one that never becomes ready.
        """
        page = Path(page)
        if not self.settings.server.enabled:
            self.logger.warning("HTTP serving disabled, using file URL", page=str(page))
            return ResolvedTarget.for_file(page)

        try:
            self.server_handle = self.server.start(page.parent, page.name)
        except ServerError as e:
            self.logger.warning(
                "HTTP server unavailable, falling back to file URL",
                error_type=type(e).__name__,
                error=str(e),
                page=str(page)
            )
            return ResolvedTarget.for_file(page)

        return ResolvedTarget(url=self.server_handle.url, served_by_http=True)

    def teardown(self) -> None:
        """
        Stop the server, then quit the session. Idempotent.

        Errors are logged as CleanupError and never raised.
        """
        if self._state == LifecycleState.TORN_DOWN:
            return

        log_phase("cleanup")
        try:
            if self.server_handle is not None:
                try:
                    self.server.stop(self.server_handle)
                except Exception as e:
                    self._log_cleanup_error("http_server", e)

            if self.session is not None:
                try:
                    self.session.quit()
                except Exception as e:
                    self._log_cleanup_error("browser_session", e)
        finally:
            self._state = LifecycleState.TORN_DOWN
            self.logger.info("Environment torn down")
            if self._logging_context is not None:
                self._logging_context.__exit__(None, None, None)

    def _log_cleanup_error(self, resource: str, exc: Exception) -> None:
        error = CleanupError(
            f"Failed to release {resource}",
            resource=resource,
            correlation_id=self.correlation_id,
            original_exception=exc
        )
        self.logger.warning(str(error), error_code=error.error_code, resource=resource)

    def __enter__(self) -> "LifecycleCoordinator":
        self.setup()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.teardown()


@contextmanager
def browser_environment(
        settings: Optional[Settings] = None,
        test_id: Optional[str] = None
) -> Iterator[LifecycleCoordinator]:
    """
    Context manager yielding a ready environment and always tearing it down.

    Example:
        >>> with browser_environment(Settings(server={"enabled": False})) as env:
        ...     print(env.target.url, env.session.page_info())
    """
    coordinator = LifecycleCoordinator(settings, test_id=test_id)
    coordinator.setup()
    try:
        yield coordinator
    finally:
        coordinator.teardown()
