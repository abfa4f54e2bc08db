# tests/unit/test_retry.py
"""
Unit tests for the bounded retry helpers.
"""

from unittest.mock import Mock, patch

import pytest

from browser_harness.core.exceptions import (
    DriverNotFoundError,
    ErrorCategory,
    ReadinessProbeError,
    RetryStrategy,
)
from browser_harness.core.retry import (
    RetryConfig,
    calculate_delay,
    call_with_retry,
    create_probe_retry_config,
    get_retry_manager,
    retry_with_backoff,
    should_retry,
)


@pytest.fixture(autouse=True)
def clear_retry_stats():
    get_retry_manager().clear_stats()
    yield
    get_retry_manager().clear_stats()


class TestDelayCalculation:
    """Test delay strategies."""

    def test_first_attempt_never_waits(self):
        assert calculate_delay(1, RetryConfig(base_delay=5.0)) == 0.0

    def test_fixed_delay(self):
        config = RetryConfig(base_delay=0.5, strategy=RetryStrategy.FIXED)

        assert [calculate_delay(n, config) for n in (2, 3, 4)] == [0.5, 0.5, 0.5]

    def test_exponential_delay_is_capped(self):
        config = RetryConfig(base_delay=1.0, max_delay=3.0, strategy=RetryStrategy.EXPONENTIAL)

        assert [calculate_delay(n, config) for n in (2, 3, 4)] == [1.0, 2.0, 3.0]

    def test_linear_delay(self):
        config = RetryConfig(base_delay=2.0, strategy=RetryStrategy.LINEAR)

        assert calculate_delay(3, config) == 4.0


class TestRetryDecision:
    """Test which failures are retried."""

    def test_probe_errors_are_retried(self):
        config = create_probe_retry_config(attempts=3, interval=0)

        assert should_retry(ReadinessProbeError("HTTP 404"), 1, config)
        assert should_retry(ConnectionError("refused"), 2, config)

    def test_attempt_limit(self):
        config = create_probe_retry_config(attempts=3, interval=0)

        assert not should_retry(ReadinessProbeError("HTTP 404"), 3, config)

    def test_critical_errors_are_not_retried(self):
        config = create_probe_retry_config(attempts=3, interval=0)

        assert not should_retry(DriverNotFoundError(), 1, config)

    def test_unknown_errors_are_not_retried(self):
        config = create_probe_retry_config(attempts=3, interval=0)

        assert not should_retry(ValueError("bad"), 1, config)
        assert not should_retry(KeyboardInterrupt(), 1, config)


@patch("browser_harness.core.retry.time.sleep")
class TestCallWithRetry:
    """Test the retry loop."""

    def test_succeeds_after_failures(self, sleep):
        func = Mock(side_effect=[ReadinessProbeError("refused"), ReadinessProbeError("HTTP 404"), "ok"])
        config = create_probe_retry_config(attempts=5, interval=0.25)

        assert call_with_retry(func, config, "probe", "http://localhost:8000/") == "ok"

        assert func.call_count == 3
        func.assert_called_with("http://localhost:8000/")
        assert [c.args[0] for c in sleep.call_args_list] == [0.25, 0.25]

        stats = get_retry_manager().get_stats("probe")
        assert stats.final_success
        assert stats.total_attempts == 3
        assert stats.failed_attempts == 2

    def test_exhausted_attempts_raise_last_error(self, sleep):
        errors = [ReadinessProbeError(f"HTTP 50{i}") for i in range(3)]
        func = Mock(side_effect=errors)

        with pytest.raises(ReadinessProbeError) as exc_info:
            call_with_retry(func, create_probe_retry_config(attempts=3, interval=1.0), "probe")

        assert exc_info.value is errors[-1]
        assert func.call_count == 3
        assert sleep.call_count == 2
        assert get_retry_manager().get_stats("probe").final_success is False

    def test_non_retryable_error_fails_fast(self, sleep):
        func = Mock(side_effect=ValueError("bad url"))

        with pytest.raises(ValueError):
            call_with_retry(func, create_probe_retry_config(attempts=5, interval=1.0), "probe")

        func.assert_called_once()
        sleep.assert_not_called()

    def test_zero_attempts_rejected(self, sleep):
        with pytest.raises(ValueError):
            call_with_retry(Mock(), RetryConfig(max_attempts=0), "probe")

    def test_decorator(self, sleep):
        calls = []

        @retry_with_backoff(config=create_probe_retry_config(attempts=2, interval=0), operation_name="decorated")
        def flaky():
            calls.append(1)
            if len(calls) == 1:
                raise ReadinessProbeError("not yet")
            return len(calls)

        assert flaky() == 2
        assert get_retry_manager().get_stats("decorated").total_attempts == 2


class TestProbeRetryConfig:
    """Test the readiness probe policy."""

    def test_fixed_interval_policy(self):
        config = create_probe_retry_config(attempts=10, interval=1.0)

        assert config.max_attempts == 10
        assert config.base_delay == 1.0
        assert config.strategy == RetryStrategy.FIXED
        assert ErrorCategory.NETWORK in config.retry_on_categories
