# src/browser_harness/core/locator.py
"""
Driver, Browser Binary and Page Discovery

This module finds everything a browser session needs on the local host:
- A driver executable, project-local first, then well-known system paths
- The matching browser binary (optional, the driver default is used otherwise)
- The HTML page under test

Key Design Patterns:
- Chain of Responsibility: Driver resolvers tried in order, first hit wins
- Strategy Pattern: Path tables injectable per platform
"""

import os
import stat
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from browser_harness.config.settings import Settings, get_settings
from .browser_constants import (
    BrowserBinaryPaths,
    BrowserKind,
    DriverFileNames,
    SystemDriverPaths,
    expand_home,
)
from .exceptions import DriverNotFoundError, PageNotFoundError
from .logger import get_logger, get_performance_timer
from .platform import PlatformInfo, current_platform

PathTable = Callable[[BrowserKind, PlatformInfo], List[str]]


@dataclass(frozen=True)
class BrowserConfig:
    """
    Resolved browser selection.

    Attributes:
        browser_kind: Browser family the driver belongs to
        driver_path: Absolute path of an executable driver file
        binary_path: Absolute path of the browser binary, None for the driver default
        source: Where the driver was found ("project" or "system")
    """

    browser_kind: BrowserKind
    driver_path: Path
    binary_path: Optional[Path] = None
    source: str = "system"


def ensure_executable(path: Path) -> bool:
    """
    Make sure a driver file can be executed, adding execute bits if needed.

    Returns:
        True if the file is executable afterwards
    """
    if os.access(path, os.X_OK):
        return True

    logger = get_logger("locator")
    try:
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        logger.info("Made driver executable", driver_path=str(path))
    except OSError as e:
        logger.warning("Could not set execute permission", driver_path=str(path), error=str(e))

    return os.access(path, os.X_OK)


class ProjectDriverResolver:
    """
    Looks for drivers in the project driver folder.

    Kinds are tried in the configured local priority; a file that cannot be
    made executable is skipped.
    """

    def __init__(self, driver_dir: Path, priority: Sequence[BrowserKind], platform: PlatformInfo):
        self.driver_dir = driver_dir
        self.priority = list(priority)
        self.platform = platform
        self.searched: List[str] = []
        self.logger = get_logger("locator.project")

    def __call__(self) -> Optional[BrowserConfig]:
        if not self.driver_dir.is_dir():
            self.logger.info("Project driver folder not found", driver_dir=str(self.driver_dir))
            return None

        for kind in self.priority:
            for file_name in DriverFileNames.for_kind(kind, self.platform):
                candidate = self.driver_dir / file_name
                self.searched.append(str(candidate))
                if not candidate.is_file():
                    continue
                if not ensure_executable(candidate):
                    self.logger.warning("Skipping non-executable driver", driver_path=str(candidate))
                    continue
                self.logger.info(
                    f"Found {kind.display_name} driver in project folder",
                    browser_kind=kind.value,
                    driver_path=str(candidate)
                )
                return BrowserConfig(browser_kind=kind, driver_path=candidate.resolve(), source="project")

        self.logger.info("No usable driver in project folder", driver_dir=str(self.driver_dir))
        return None


class SystemDriverResolver:
    """Scans well-known system locations for drivers."""

    def __init__(
            self,
            priority: Sequence[BrowserKind],
            platform: PlatformInfo,
            project_root: Path,
            home: Path,
            path_table: PathTable = SystemDriverPaths.for_kind
    ):
        self.priority = list(priority)
        self.platform = platform
        self.project_root = project_root
        self.home = home
        self.path_table = path_table
        self.searched: List[str] = []
        self.logger = get_logger("locator.system")

    def _absolute(self, entry: str) -> Path:
        path = Path(expand_home(entry, self.home))
        if not path.is_absolute():
            path = self.project_root / path
        return path

    def __call__(self) -> Optional[BrowserConfig]:
        for kind in self.priority:
            for entry in self.path_table(kind, self.platform):
                candidate = self._absolute(entry)
                self.searched.append(str(candidate))
                if candidate.is_file() and os.access(candidate, os.X_OK):
                    self.logger.info(
                        f"Found {kind.display_name} driver in system location",
                        browser_kind=kind.value,
                        driver_path=str(candidate)
                    )
                    return BrowserConfig(browser_kind=kind, driver_path=candidate.resolve(), source="system")

        self.logger.debug("No driver in system locations", searched_count=len(self.searched))
        return None


class BrowserDriverLocator:
    """
    Resolves a BrowserConfig for the host.

    Example:
        >>> config = BrowserDriverLocator(settings).locate()
        >>> config.browser_kind, config.driver_path
        (<BrowserKind.CHROME: 'chrome'>, PosixPath('/usr/bin/chromedriver'))
    """

    def __init__(
            self,
            settings: Optional[Settings] = None,
            platform: Optional[PlatformInfo] = None,
            project_root: Optional[Path] = None,
            home: Optional[Path] = None,
            driver_table: PathTable = SystemDriverPaths.for_kind,
            binary_table: PathTable = BrowserBinaryPaths.for_kind
    ):
        """
        Initialize the locator.

        Args:
            settings: Harness settings (loads from environment if None)
            platform: Host platform (detected if None)
            project_root: Root holding the driver folder (settings.project_root if None)
            home: Home directory used to expand "~" entries
            driver_table: System driver paths per kind and platform
            binary_table: Browser binary paths per kind and platform
        """
        self.settings = settings or get_settings()
        self.platform = platform or current_platform()
        self.project_root = Path(project_root or self.settings.project_root)
        self.home = Path(home) if home else Path.home()
        self.driver_table = driver_table
        self.binary_table = binary_table
        self.logger = get_logger("locator")

        discovery = self.settings.discovery
        self.resolvers: List[Callable[[], Optional[BrowserConfig]]] = [
            ProjectDriverResolver(
                self.project_root / discovery.driver_dir,
                [BrowserKind(k) for k in discovery.local_priority],
                self.platform
            ),
            SystemDriverResolver(
                [BrowserKind(k) for k in discovery.system_priority],
                self.platform,
                self.project_root,
                self.home,
                self.driver_table
            ),
        ]

    def locate(self) -> BrowserConfig:
        """
        Find a driver and its browser binary.

        Raises:
            DriverNotFoundError: If no resolver yields an executable driver
        """
        with get_performance_timer("locate_driver") as timer:
            config = None
            for resolver in self.resolvers:
                config = resolver()
                if config is not None:
                    break

            if config is None:
                searched = [loc for r in self.resolvers for loc in getattr(r, "searched", [])]
                raise DriverNotFoundError(
                    searched_locations=searched,
                    context={"platform": self.platform.os_family.value, "is_arm": self.platform.is_arm}
                )

            binary = self.resolve_binary(config.browser_kind)
            config = replace(config, binary_path=binary)
            timer.add_metric("browser_kind", config.browser_kind.value)
            timer.add_metric("source", config.source)

        self.logger.info(
            "Browser configuration resolved",
            browser_kind=config.browser_kind.value,
            driver_path=str(config.driver_path),
            binary_path=str(config.binary_path) if config.binary_path else None
        )
        return config

    def resolve_binary(self, kind: BrowserKind) -> Optional[Path]:
        """Find the browser binary for a kind; None lets the driver pick its default."""
        for entry in self.binary_table(kind, self.platform):
            candidate = Path(expand_home(entry, self.home))
            if candidate.exists():
                self.logger.info(
                    f"Found {kind.display_name} binary",
                    binary_path=str(candidate)
                )
                return candidate.resolve()

        self.logger.info(
            f"{kind.display_name} binary not found in known locations, using driver default",
            browser_kind=kind.value
        )
        return None


class PageLocator:
    """Finds the HTML page under test below the project root."""

    def __init__(self, settings: Optional[Settings] = None, project_root: Optional[Path] = None):
        self.settings = settings or get_settings()
        self.project_root = Path(project_root or self.settings.project_root)
        self.candidates = list(self.settings.page.candidates)
        self.logger = get_logger("locator.page")

    def locate(self) -> Path:
        """
        Get the first existing candidate page.

        Raises:
            PageNotFoundError: If none of the candidates exists
        """
        for relative in self.candidates:
            candidate = self.project_root / relative
            if candidate.is_file():
                self.logger.info("Found page under test", page=str(candidate))
                return candidate.resolve()

        raise PageNotFoundError(
            candidates=self.candidates,
            context={"project_root": str(self.project_root)}
        )
