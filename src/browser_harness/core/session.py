# src/browser_harness/core/session.py
"""
Browser Session Creation

This module turns a resolved BrowserConfig into a live Chrome or Edge
session:
- Builds the Chromium-family argument list (with ARM additions)
- Builds Chrome or Edge options with console log capture enabled
- Starts the driver service and opens the session within a bounded time
- Stops a driver that finishes starting after the bound has expired

Key Design Patterns:
- Factory Pattern: One factory for both browser families
- Dependency Injection: Service and driver factories are replaceable
"""

import tempfile
import time
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from selenium import webdriver
from selenium.common.exceptions import WebDriverException
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.chrome.service import Service as ChromeService
from selenium.webdriver.common.by import By
from selenium.webdriver.edge.options import Options as EdgeOptions
from selenium.webdriver.edge.service import Service as EdgeService
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.support import expected_conditions as EC
from selenium.webdriver.support.ui import WebDriverWait

from browser_harness.config.settings import Settings, get_settings
from .browser_constants import BrowserDefaults, BrowserKind, LaunchArgs, LoggingCapabilities
from .exceptions import CleanupError, SessionCreateError
from .locator import BrowserConfig
from .logger import get_logger, get_performance_timer
from .platform import PlatformInfo, current_platform

BrowserOptions = Union[ChromeOptions, EdgeOptions]
DriverService = Union[ChromeService, EdgeService]

ServiceFactory = Callable[[BrowserKind, Path], Any]
DriverFactory = Callable[[BrowserKind, Any, BrowserOptions], WebDriver]


def default_service_factory(kind: BrowserKind, driver_path: Path) -> DriverService:
    if kind == BrowserKind.EDGE:
        return EdgeService(executable_path=str(driver_path))
    return ChromeService(executable_path=str(driver_path))


def default_driver_factory(kind: BrowserKind, service: DriverService, options: BrowserOptions) -> WebDriver:
    """Start the service and open a Chromium session that can read browser logs."""
    if kind == BrowserKind.EDGE:
        return webdriver.Edge(service=service, options=options)
    return webdriver.Chrome(service=service, options=options)


class SessionHandle:
    """
    A live browser session together with the driver service process it talks to.

    quit() releases the remote session and stops the service; calling it
    again is a no-op.
    """

    def __init__(
            self,
            browser_kind: BrowserKind,
            driver: WebDriver,
            service: Any,
            page_load_timeout: float,
            implicit_wait_timeout: float,
            wait_timeout: float,
            launch_args: Optional[List[str]] = None
    ):
        self.browser_kind = browser_kind
        self.driver = driver
        self.service = service
        self.page_load_timeout = page_load_timeout
        self.implicit_wait_timeout = implicit_wait_timeout
        self.wait_timeout = wait_timeout
        self.launch_args = list(launch_args or [])
        self._closed = False
        self.logger = get_logger("session")

    @property
    def closed(self) -> bool:
        return self._closed

    def navigate(self, url: str) -> None:
        """Load url and wait for the page body to be present."""
        with get_performance_timer("navigate") as timer:
            timer.add_metric("url", url)
            self.driver.get(url)
            WebDriverWait(self.driver, self.wait_timeout).until(
                EC.presence_of_element_located((By.TAG_NAME, BrowserDefaults.BODY_LOCATOR))
            )
        self.logger.info("Page loaded", url=url, title=self.driver.title)

    def page_info(self) -> Dict[str, Any]:
        source = self.driver.page_source or ""
        return {
            "title": self.driver.title,
            "url": self.driver.current_url,
            "source_length": len(source),
        }

    def browser_logs(self) -> List[Dict[str, Any]]:
        """
        Get console entries captured by the browser.

        Returns an empty list when the driver rejects the log command.
        """
        try:
            return list(self.driver.get_log(BrowserDefaults.LOG_TYPE))
        except WebDriverException as e:
            self.logger.debug("Browser logs unavailable", error=str(e))
            return []

    def quit(self) -> None:
        """
        Quit the driver, then stop the service.

        The service is stopped even if quitting the driver fails; the first
        failure is re-raised afterwards.
        """
        if self._closed:
            return
        self._closed = True

        try:
            self.driver.quit()
        finally:
            self.service.stop()
            self.logger.info("Browser session closed", browser_kind=self.browser_kind.value)


class SessionFactory:
    """
    Creates browser sessions from a BrowserConfig.

    Example:
        >>> factory = SessionFactory(settings)
        >>> session = factory.create(BrowserDriverLocator(settings).locate())
        >>> session.navigate("http://localhost:8123/index.html")
    """

    def __init__(
            self,
            settings: Optional[Settings] = None,
            platform: Optional[PlatformInfo] = None,
            service_factory: ServiceFactory = default_service_factory,
            driver_factory: DriverFactory = default_driver_factory
    ):
        self.settings = settings or get_settings()
        self.platform = platform or current_platform()
        self.service_factory = service_factory
        self.driver_factory = driver_factory
        self.logger = get_logger("session_factory")

    def user_data_dir(self) -> Path:
        """Per-run profile folder; the timestamp keeps parallel runs apart."""
        prefix = self.settings.browser.user_data_dir_prefix
        return Path(tempfile.gettempdir()) / f"{prefix}{int(time.time() * 1000)}"

    def build_arguments(self) -> List[str]:
        """
        Build the browser command line arguments.

        ARM hosts get software rendering arguments appended after the common set.
        """
        cfg = self.settings.browser
        args: List[str] = []

        if cfg.headless:
            args.append(LaunchArgs.HEADLESS)

        args.extend(LaunchArgs.SECURITY_ARGS)
        args.append(LaunchArgs.window_size(cfg.window_width, cfg.window_height))
        args.extend(LaunchArgs.ACCESS_ARGS)
        args.append(LaunchArgs.user_data_dir(str(self.user_data_dir())))
        args.extend(LaunchArgs.PERFORMANCE_ARGS)
        args.extend(cfg.extra_args)

        if self.platform.is_arm:
            args.extend(LaunchArgs.ARM_ARGS)

        return args

    def build_options(self, config: BrowserConfig) -> BrowserOptions:
        options = EdgeOptions() if config.browser_kind == BrowserKind.EDGE else ChromeOptions()

        for arg in self.build_arguments():
            options.add_argument(arg)

        if config.binary_path is not None:
            options.binary_location = str(config.binary_path)

        options.set_capability(
            LoggingCapabilities.key_for(config.browser_kind),
            dict(LoggingCapabilities.PREFERENCES)
        )
        return options

    def _start_driver(self, service: Any, options: BrowserOptions, config: BrowserConfig) -> WebDriver:
        """
        Run the driver factory, giving up after the configured startup timeout.

        A factory call that outlives the timeout keeps running in its worker;
        whatever it eventually starts is released as soon as it returns.
        """
        timeout = self.settings.browser.driver_startup_timeout
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="driver-service")
        try:
            future = executor.submit(self.driver_factory, config.browser_kind, service, options)
            try:
                return future.result(timeout=timeout)
            except FuturesTimeoutError:
                future.add_done_callback(lambda late: self._release_late_start(late, service))
                raise SessionCreateError(
                    f"driver service did not start within {timeout}s",
                    browser_kind=config.browser_kind.value,
                    driver_path=str(config.driver_path),
                    startup_timeout=timeout
                )
        finally:
            executor.shutdown(wait=False)

    def _release_late_start(self, future: Future, service: Any) -> None:
        driver = None if future.cancelled() or future.exception() else future.result()
        self.logger.warning(
            "Releasing driver that finished starting after the timeout",
            session_opened=driver is not None
        )
        self._discard(driver, service)

    def _discard(self, driver: Optional[WebDriver], service: Any) -> None:
        """Release whatever a failed create() had acquired."""
        for resource, action in (("driver", getattr(driver, "quit", None)), ("driver_service", service.stop)):
            if action is None:
                continue
            try:
                action()
            except Exception as e:
                error = CleanupError(f"Failed to release {resource}", resource=resource, original_exception=e)
                self.logger.warning(str(error), error_code=error.error_code, resource=resource)

    def create(self, config: BrowserConfig) -> SessionHandle:
        """
        Start the driver service and open a browser session.

        Raises:
            SessionCreateError: If the service or the session cannot be started
        """
        cfg = self.settings.browser
        options = self.build_options(config)
        launch_args = list(options.arguments)

        self.logger.info(
            f"Creating {config.browser_kind.display_name} session",
            browser_kind=config.browser_kind.value,
            driver_path=str(config.driver_path),
            headless=cfg.headless,
            is_arm=self.platform.is_arm,
            args_count=len(launch_args)
        )

        with get_performance_timer(f"create_{config.browser_kind.value}_session") as timer:
            service = None
            driver = None
            try:
                service = self.service_factory(config.browser_kind, config.driver_path)
                driver = self._start_driver(service, options, config)
                driver.set_page_load_timeout(cfg.page_load_timeout)
                driver.implicitly_wait(cfg.implicit_wait)
            except SessionCreateError:
                if service is not None:
                    self._discard(driver, service)
                raise
            except Exception as e:
                if service is not None:
                    self._discard(driver, service)
                raise SessionCreateError(
                    str(e),
                    browser_kind=config.browser_kind.value,
                    driver_path=str(config.driver_path),
                    binary_path=str(config.binary_path) if config.binary_path else None,
                    launch_args=launch_args,
                    startup_timeout=cfg.driver_startup_timeout,
                    original_exception=e
                )
            timer.add_metric("browser_kind", config.browser_kind.value)

        self.logger.info("Browser session created", browser_kind=config.browser_kind.value)
        return SessionHandle(
            browser_kind=config.browser_kind,
            driver=driver,
            service=service,
            page_load_timeout=cfg.page_load_timeout,
            implicit_wait_timeout=cfg.implicit_wait,
            wait_timeout=cfg.wait_timeout,
            launch_args=launch_args
        )
