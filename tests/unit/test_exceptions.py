# tests/unit/test_exceptions.py
"""
Unit tests for the harness exception hierarchy.
"""

import json

import pytest

from browser_harness.core.exceptions import (
    CleanupError,
    DriverNotFoundError,
    ErrorCategory,
    ErrorSeverity,
    HarnessError,
    LifecycleStateError,
    LogLevel,
    PageNotFoundError,
    ReadinessProbeError,
    RetryStrategy,
    ServerError,
    ServerNotRespondingError,
    ServerStartError,
    SessionCreateError,
)


class TestErrorClassification:
    """Test category and severity defaults per error type."""

    @pytest.mark.parametrize("error, category, severity", [
        (DriverNotFoundError(), ErrorCategory.BROWSER, ErrorSeverity.CRITICAL),
        (PageNotFoundError(), ErrorCategory.CONFIGURATION, ErrorSeverity.CRITICAL),
        (SessionCreateError("boom"), ErrorCategory.BROWSER, ErrorSeverity.CRITICAL),
        (ServerStartError("boom"), ErrorCategory.INFRASTRUCTURE, ErrorSeverity.MEDIUM),
        (ServerNotRespondingError("boom"), ErrorCategory.NETWORK, ErrorSeverity.MEDIUM),
        (ReadinessProbeError("boom"), ErrorCategory.NETWORK, ErrorSeverity.LOW),
        (CleanupError("boom"), ErrorCategory.INFRASTRUCTURE, ErrorSeverity.LOW),
        (LifecycleStateError("boom"), ErrorCategory.TEST, ErrorSeverity.HIGH),
    ])
    def test_defaults(self, error, category, severity):
        assert isinstance(error, HarnessError)
        assert error.category == category
        assert error.severity == severity
        assert error.is_fatal() is (severity == ErrorSeverity.CRITICAL)

    def test_server_errors_share_a_base(self):
        assert isinstance(ServerStartError("x"), ServerError)
        assert isinstance(ServerNotRespondingError("x"), ServerError)

    def test_explicit_severity_overrides_default(self):
        error = CleanupError("boom", severity=ErrorSeverity.HIGH)

        assert error.severity == ErrorSeverity.HIGH
        assert error.log_level == LogLevel.ERROR

    def test_fatal_errors_are_not_retried(self):
        assert DriverNotFoundError().retry_strategy == RetryStrategy.NONE
        assert ReadinessProbeError("x").retry_strategy == RetryStrategy.FIXED


class TestErrorContext:
    """Test context, suggestions and serialization."""

    def test_driver_not_found_context(self):
        error = DriverNotFoundError(searched_locations=["/usr/bin/chromedriver", "/snap/bin/chromedriver"])

        assert error.context["searched_count"] == 2
        assert error.recovery_suggestions
        assert "browser_issue" in error.error_context.tags
        assert error.error_code.startswith("DRIVERNOTFOUND_")

    def test_message_prefixes(self):
        assert str(ServerStartError("no runtime")).startswith("HTTP server failed to start: no runtime")
        assert SessionCreateError("boom").message == "Failed to create browser session: boom"

    def test_original_exception_is_chained(self):
        cause = OSError("permission denied")

        error = SessionCreateError("service failed", driver_path="/usr/bin/chromedriver", original_exception=cause)

        assert error.__cause__ is cause
        assert error.context["original_type"] == "OSError"
        assert "caused by OSError: permission denied" in str(error)
        assert "driver_path=/usr/bin/chromedriver" in str(error)

    def test_to_dict_and_json(self):
        error = ServerNotRespondingError("no HTTP 200", url="http://localhost:8000/index.html", attempts=10)

        data = error.to_dict()

        assert data["error_type"] == "ServerNotRespondingError"
        assert data["category"] == "network"
        assert data["context"]["data"]["attempts"] == 10
        assert json.loads(error.to_json())["message"] == error.message

    def test_fluent_builders(self):
        error = HarnessError("boom").add_context("port", 8123).add_tag("flaky").add_recovery_suggestion("retry")
        error.add_recovery_suggestion("retry")

        assert error.context["port"] == 8123
        assert "flaky" in error.error_context.tags
        assert error.recovery_suggestions == ["retry"]

    def test_cleanup_error_resource_tag(self):
        error = CleanupError("Failed to stop HTTP server", resource="http_server")

        assert error.resource == "http_server"
        assert "cleanup_http_server" in error.error_context.tags
        assert not error.is_fatal()
