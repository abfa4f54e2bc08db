# src/browser_harness/pytest_plugin.py
"""
pytest integration.

Registered through the "pytest11" entry point, so installing the package
makes these fixtures available to any test suite:

    def test_title(browser_env):
        assert browser_env.session.page_info()["title"] == "Book Search"
"""

from typing import Iterator

import pytest

from browser_harness.config.settings import Settings, get_settings
from browser_harness.core.lifecycle import LifecycleCoordinator
from browser_harness.core.logger import setup_logging_from_settings


@pytest.fixture(scope="session")
def harness_settings() -> Settings:
    """Harness settings, with logging configured from them."""
    settings = get_settings()
    setup_logging_from_settings(settings)
    return settings


@pytest.fixture
def browser_env(harness_settings: Settings, request) -> Iterator[LifecycleCoordinator]:
    """A ready browser environment, torn down after the test."""
    coordinator = LifecycleCoordinator(harness_settings, test_id=request.node.nodeid)
    coordinator.setup()
    try:
        yield coordinator
    finally:
        coordinator.teardown()
