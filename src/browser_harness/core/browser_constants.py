# src/browser_harness/core/browser_constants.py
"""
Browser Management Constants

This module defines the constants used to discover drivers and binaries
and to launch the browser, so that no path or flag is a magic string
elsewhere in the harness.

Key Design Benefits:
- No Magic Strings: All browser-related constants in one place
- Type Safety: Enum values prevent typos and invalid values
- Platform Tables: Every OS-specific path list lives here
"""

from enum import Enum
from pathlib import Path
from typing import Dict, List, Tuple

from .platform import PlatformInfo


class BrowserKind(str, Enum):
    """Supported browser families."""

    CHROME = "chrome"
    EDGE = "edge"

    @property
    def display_name(self) -> str:
        return "Chrome" if self == BrowserKind.CHROME else "Edge"


class DriverFileNames:
    """Driver executable names looked up in the project driver folder."""

    NAMES: Dict[BrowserKind, Tuple[str, ...]] = {
        BrowserKind.EDGE: ("msedgedriver", "edgedriver"),
        BrowserKind.CHROME: ("chromedriver",),
    }

    @classmethod
    def for_kind(cls, kind: BrowserKind, platform: PlatformInfo) -> List[str]:
        """Get file names for a browser kind, with the platform's executable suffix."""
        return [name + platform.executable_suffix for name in cls.NAMES[kind]]


class SystemDriverPaths:
    """
    Well-known system driver locations.

    Entries may start with "~" (expanded against the home directory) or be
    relative (resolved against the project root by the locator).
    """

    CHROME_UNIX = [
        "/usr/bin/chromedriver",
        "/usr/local/bin/chromedriver",
        "/snap/bin/chromedriver",
        "~/.cache/selenium/chromedriver/linux64/chromedriver",
        "/opt/chromedriver/chromedriver",
    ]

    CHROME_MAC_EXTRA = [
        "/opt/homebrew/bin/chromedriver",
    ]

    CHROME_WINDOWS = [
        r"C:\Program Files\Google\Chrome\Application\chromedriver.exe",
        r"C:\ChromeDriver\chromedriver.exe",
        "chromedriver.exe",
    ]

    EDGE_WINDOWS = [
        r"C:\Program Files (x86)\Microsoft\Edge\Application\msedgedriver.exe",
        "msedgedriver.exe",
    ]

    @classmethod
    def for_kind(cls, kind: BrowserKind, platform: PlatformInfo) -> List[str]:
        """Get candidate driver paths for a browser kind on a platform."""
        if kind == BrowserKind.EDGE:
            # Edge drivers are only searched system-wide on Windows
            return list(cls.EDGE_WINDOWS) if platform.is_windows else []

        if platform.is_windows:
            return list(cls.CHROME_WINDOWS)
        if platform.is_mac:
            return cls.CHROME_UNIX + cls.CHROME_MAC_EXTRA
        return list(cls.CHROME_UNIX)


class BrowserBinaryPaths:
    """Well-known browser binary locations."""

    CHROME_WINDOWS = [
        r"C:\Program Files\Google\Chrome\Application\chrome.exe",
        r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
    ]

    CHROME_MAC = [
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    ]

    CHROME_LINUX = [
        "/usr/bin/chromium-browser",
        "/usr/bin/chromium",
        "/usr/bin/google-chrome",
        "/snap/bin/chromium",
    ]

    EDGE_WINDOWS = [
        r"C:\Program Files (x86)\Microsoft\Edge\Application\msedge.exe",
        r"C:\Program Files\Microsoft\Edge\Application\msedge.exe",
    ]

    EDGE_MAC = [
        "/Applications/Microsoft Edge.app/Contents/MacOS/Microsoft Edge",
    ]

    EDGE_LINUX = [
        "/usr/bin/microsoft-edge",
        "/usr/bin/microsoft-edge-stable",
    ]

    @classmethod
    def for_kind(cls, kind: BrowserKind, platform: PlatformInfo) -> List[str]:
        """Get candidate binary paths for a browser kind on a platform."""
        if kind == BrowserKind.EDGE:
            if platform.is_windows:
                return list(cls.EDGE_WINDOWS)
            if platform.is_mac:
                return list(cls.EDGE_MAC)
            return list(cls.EDGE_LINUX)

        if platform.is_windows:
            return list(cls.CHROME_WINDOWS)
        if platform.is_mac:
            return list(cls.CHROME_MAC)
        return list(cls.CHROME_LINUX)


def expand_home(path: str, home: Path) -> str:
    """Expand a leading "~" against an explicit home directory."""
    if path == "~":
        return str(home)
    if path.startswith("~/"):
        return str(home / path[2:])
    return path


class LaunchArgs:
    """Chromium-family command line arguments (shared by Chrome and Edge)."""

    HEADLESS = "--headless=new"

    # Sandboxing and shared memory
    SECURITY_ARGS = [
        "--no-sandbox",
        "--disable-dev-shm-usage",
        "--disable-gpu",
    ]

    # Local file and mixed content access for the page under test
    ACCESS_ARGS = [
        "--disable-extensions",
        "--disable-web-security",
        "--allow-file-access-from-files",
        "--allow-running-insecure-content",
    ]

    PERFORMANCE_ARGS = [
        "--disable-features=TranslateUI,VizDisplayCompositor",
        "--disable-background-timer-throttling",
        "--disable-backgrounding-occluded-windows",
        "--disable-renderer-backgrounding",
    ]

    # Software rendering for ARM hosts without GPU support
    ARM_ARGS = [
        "--disable-features=VizDisplayCompositor",
        "--use-gl=swiftshader",
        "--disable-software-rasterizer",
    ]

    @staticmethod
    def window_size(width: int, height: int) -> str:
        return f"--window-size={width},{height}"

    @staticmethod
    def user_data_dir(path: str) -> str:
        return f"--user-data-dir={path}"


class LoggingCapabilities:
    """Vendor capability keys enabling browser console log capture."""

    KEYS: Dict[BrowserKind, str] = {
        BrowserKind.CHROME: "goog:loggingPrefs",
        BrowserKind.EDGE: "ms:loggingPrefs",
    }

    PREFERENCES = {"browser": "ALL"}

    @classmethod
    def key_for(cls, kind: BrowserKind) -> str:
        return cls.KEYS[kind]


class BrowserDefaults:
    """Default values used outside the settings layer."""

    BODY_LOCATOR = "body"
    LOG_TYPE = "browser"
