# tests/unit/test_lifecycle.py
"""
Unit tests for the lifecycle coordinator.

Every collaborator is a mock so the tests exercise ordering, fallback
and cleanup rules only.
"""

from pathlib import Path
from unittest.mock import Mock

import pytest
from selenium.common.exceptions import TimeoutException, WebDriverException

from browser_harness.core.browser_constants import BrowserKind
from browser_harness.core.exceptions import (
    DriverNotFoundError,
    LifecycleStateError,
    PageNotFoundError,
    ServerNotRespondingError,
    ServerStartError,
    SessionCreateError,
)
from browser_harness.core.lifecycle import LifecycleCoordinator, LifecycleState, ResolvedTarget
from browser_harness.core.locator import BrowserConfig
from browser_harness.core.logger import correlation_id_var
from browser_harness.core.server import ServerHandle, ServerState


class Harness:
    """Mock collaborators plus a shared call log."""

    def __init__(self, tmp_path: Path):
        self.calls = []
        self.page = tmp_path / "index.html"
        self.page.write_text("<html><body>ok</body></html>")

        self.config = BrowserConfig(browser_kind=BrowserKind.CHROME, driver_path=Path("/usr/bin/chromedriver"))
        self.handle = ServerHandle(
            process=Mock(), port=8123, root_directory=tmp_path, file_name="index.html", state=ServerState.READY
        )

        self.driver_locator = Mock()
        self.driver_locator.locate.return_value = self.config

        self.page_locator = Mock()
        self.page_locator.locate.return_value = self.page

        self.server = Mock()
        self.server.start.return_value = self.handle
        self.server.stop.side_effect = lambda handle: self.calls.append("server.stop")

        self.session = Mock()
        self.session.quit.side_effect = lambda: self.calls.append("session.quit")

        self.session_factory = Mock()
        self.session_factory.create.return_value = self.session

    def coordinator(self, settings, platform):
        return LifecycleCoordinator(
            settings,
            platform=platform,
            driver_locator=self.driver_locator,
            page_locator=self.page_locator,
            server=self.server,
            session_factory=self.session_factory,
            test_id="tests/unit/test_lifecycle.py::case"
        )


@pytest.fixture
def harness(tmp_path):
    return Harness(tmp_path)


class TestLifecycleSetup:
    """Test successful provisioning."""

    def test_served_page_session(self, harness, make_settings, linux_x86):
        coordinator = harness.coordinator(make_settings(), linux_x86)

        session = coordinator.setup()

        assert session is harness.session
        assert coordinator.state == LifecycleState.SESSION_READY
        assert coordinator.target == ResolvedTarget("http://localhost:8123/index.html", True)
        harness.server.start.assert_called_once_with(harness.page.parent, "index.html")
        harness.session_factory.create.assert_called_once_with(harness.config)
        harness.session.navigate.assert_called_once_with("http://localhost:8123/index.html")

    def test_server_start_failure_falls_back_to_file_url(self, harness, make_settings, linux_x86):
        harness.server.start.side_effect = ServerStartError("process exited with code 1")
        coordinator = harness.coordinator(make_settings(), linux_x86)

        coordinator.setup()

        assert coordinator.target.served_by_http is False
        assert coordinator.target.url == harness.page.resolve().as_uri()
        assert coordinator.target.url.startswith("file://")
        harness.session.navigate.assert_called_once_with(harness.page.resolve().as_uri())
        assert coordinator.state == LifecycleState.SESSION_READY

    def test_unresponsive_server_falls_back_to_file_url(self, harness, make_settings, linux_x86):
        harness.server.start.side_effect = ServerNotRespondingError("no HTTP 200", attempts=10)
        coordinator = harness.coordinator(make_settings(), linux_x86)

        coordinator.setup()

        assert coordinator.target.served_by_http is False
        assert coordinator.server_handle is None

    def test_disabled_server_uses_file_url(self, harness, make_settings, linux_x86):
        coordinator = harness.coordinator(make_settings(server={"enabled": False}), linux_x86)

        coordinator.setup()

        harness.server.start.assert_not_called()
        assert coordinator.target.served_by_http is False

    def test_setup_twice_is_rejected(self, harness, make_settings, linux_x86):
        coordinator = harness.coordinator(make_settings(), linux_x86)
        coordinator.setup()

        with pytest.raises(LifecycleStateError) as exc_info:
            coordinator.setup()

        assert exc_info.value.state == "session_ready"
        harness.driver_locator.locate.assert_called_once()

    def test_setup_after_teardown_is_rejected(self, harness, make_settings, linux_x86):
        coordinator = harness.coordinator(make_settings(), linux_x86)
        coordinator.teardown()

        with pytest.raises(LifecycleStateError):
            coordinator.setup()

    def test_correlation_id_scoped_to_lifecycle(self, harness, make_settings, linux_x86):
        seen = []
        harness.session_factory.create.side_effect = lambda config: seen.append(correlation_id_var.get()) or harness.session
        before = correlation_id_var.get()
        coordinator = harness.coordinator(make_settings(), linux_x86)

        coordinator.setup()
        assert seen == [coordinator.correlation_id]
        assert coordinator.correlation_id

        coordinator.teardown()
        assert correlation_id_var.get() == before


class TestLifecycleFailures:
    """Test that failures clean up and surface unchanged."""

    def test_driver_not_found_is_fatal(self, harness, make_settings, linux_x86):
        error = DriverNotFoundError(searched_locations=["/usr/bin/chromedriver"])
        harness.driver_locator.locate.side_effect = error
        coordinator = harness.coordinator(make_settings(), linux_x86)

        with pytest.raises(DriverNotFoundError) as exc_info:
            coordinator.setup()

        assert exc_info.value is error
        assert coordinator.state == LifecycleState.TORN_DOWN
        harness.page_locator.locate.assert_not_called()
        harness.server.start.assert_not_called()
        harness.session_factory.create.assert_not_called()

    def test_page_not_found_is_fatal(self, harness, make_settings, linux_x86):
        harness.page_locator.locate.side_effect = PageNotFoundError(candidates=["index.html"])
        coordinator = harness.coordinator(make_settings(), linux_x86)

        with pytest.raises(PageNotFoundError):
            coordinator.setup()

        harness.server.start.assert_not_called()
        assert coordinator.state == LifecycleState.TORN_DOWN

    def test_session_failure_stops_server(self, harness, make_settings, linux_x86):
        error = SessionCreateError("chrome failed to start")
        harness.session_factory.create.side_effect = error
        coordinator = harness.coordinator(make_settings(), linux_x86)

        with pytest.raises(SessionCreateError) as exc_info:
            coordinator.setup()

        assert exc_info.value is error
        harness.server.stop.assert_called_once_with(harness.handle)
        assert harness.calls == ["server.stop"]

    def test_cleanup_errors_never_mask_original(self, harness, make_settings, linux_x86):
        original = TimeoutException("body never appeared")
        harness.session.navigate.side_effect = original
        harness.session.quit.side_effect = WebDriverException("session already deleted")
        harness.server.stop.side_effect = OSError("kill failed")
        coordinator = harness.coordinator(make_settings(), linux_x86)

        with pytest.raises(TimeoutException) as exc_info:
            coordinator.setup()

        assert exc_info.value is original
        harness.server.stop.assert_called_once()
        harness.session.quit.assert_called_once()
        assert coordinator.state == LifecycleState.TORN_DOWN


class TestLifecycleTeardown:
    """Test teardown ordering and idempotency."""

    def test_server_stopped_before_session(self, harness, make_settings, linux_x86):
        coordinator = harness.coordinator(make_settings(), linux_x86)
        coordinator.setup()

        coordinator.teardown()

        assert harness.calls == ["server.stop", "session.quit"]
        assert coordinator.state == LifecycleState.TORN_DOWN

    def test_teardown_is_idempotent(self, harness, make_settings, linux_x86):
        coordinator = harness.coordinator(make_settings(), linux_x86)
        coordinator.setup()

        coordinator.teardown()
        coordinator.teardown()

        assert harness.calls == ["server.stop", "session.quit"]

    def test_teardown_without_setup(self, harness, make_settings, linux_x86):
        coordinator = harness.coordinator(make_settings(), linux_x86)

        coordinator.teardown()

        harness.server.stop.assert_not_called()
        assert coordinator.state == LifecycleState.TORN_DOWN

    def test_context_manager(self, harness, make_settings, linux_x86):
        with harness.coordinator(make_settings(), linux_x86) as env:
            assert env.state == LifecycleState.SESSION_READY
            assert env.session is harness.session

        assert env.state == LifecycleState.TORN_DOWN
        assert harness.calls == ["server.stop", "session.quit"]

    def test_context_manager_tears_down_on_test_failure(self, harness, make_settings, linux_x86):
        with pytest.raises(AssertionError):
            with harness.coordinator(make_settings(), linux_x86):
                raise AssertionError("ui assertion failed")

        assert harness.calls == ["server.stop", "session.quit"]
