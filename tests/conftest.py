# tests/conftest.py
"""
Shared fixtures for the harness test suite.
"""

import os
from pathlib import Path
from typing import Callable

import pytest

from browser_harness.config.settings import Settings, get_settings
from browser_harness.core.logger import setup_logging
from browser_harness.core.platform import PlatformInfo


@pytest.fixture(scope="session", autouse=True)
def configure_test_logging():
    """Route harness logs to the console at DEBUG for the whole run."""
    setup_logging(log_level="DEBUG", force=True)


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Clear cached settings before and after each test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_settings(tmp_path: Path) -> Callable[..., Settings]:
    """
    Build Settings rooted at a temporary project, ignoring any .env file.

    Example:
        settings = make_settings(server={"probe_attempts": 2})
    """

    def _make(**overrides) -> Settings:
        overrides.setdefault("project_root", tmp_path)
        return Settings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def linux_x86() -> PlatformInfo:
    return PlatformInfo.detect(os_name="Linux", arch="x86_64")


@pytest.fixture
def linux_arm() -> PlatformInfo:
    return PlatformInfo.detect(os_name="Linux", arch="aarch64")


@pytest.fixture
def windows_x64() -> PlatformInfo:
    return PlatformInfo.detect(os_name="Windows", arch="AMD64")


def make_executable(path: Path, executable: bool = True) -> Path:
    """Create a small script file, optionally with execute permission."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("#!/bin/sh\nexit 0\n")
    path.chmod(0o755 if executable else 0o644)
    return path


posix_only = pytest.mark.skipif(os.name == "nt", reason="relies on POSIX file permissions")
