"""
Unit Tests for ConnectionGuard.

Test Aspects Covered:
    ✅ Business Logic: Retry, circuit breaker, half-open recovery
    ✅ Edge Cases: Immediate success, all failures
"""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from voltdb_prometheus.domain.errors import ConnectError
from voltdb_prometheus.resilience.connection_guard import (
    CircuitBreakerConfig,
    CircuitBreakerOpen,
    CircuitState,
    ConnectionGuard,
    RetryConfig,
    RetryExhausted,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class TestRetry:
    """Test cases for retry logic."""

    def test_succeeds_on_first_attempt(self) -> None:
        """
        SCENARIO: Connect succeeds on first attempt
        EXPECTED: Result returned, no retries
        """
        # Arrange
        guard = ConnectionGuard()
        connect = Mock(return_value="connection")

        # Act
        result = guard.call(connect, "connect")

        # Assert
        assert result == "connection"
        assert connect.call_count == 1

    def test_succeeds_after_retries(self) -> None:
        """
        SCENARIO: Connect fails twice, succeeds on third attempt
        EXPECTED: Result returned after two backoff sleeps
        """
        # Arrange
        sleep = Mock()
        guard = ConnectionGuard(RetryConfig(max_attempts=3, base_delay_seconds=0.5), sleep=sleep)
        connect = Mock(side_effect=[ConnectError("down"), ConnectError("down"), "connection"])

        # Act
        result = guard.call(connect, "connect")

        # Assert
        assert result == "connection"
        assert connect.call_count == 3
        assert [c.args[0] for c in sleep.call_args_list] == [0.5, 1.0]

    def test_raises_after_max_attempts(self) -> None:
        """
        SCENARIO: Connect fails every attempt
        EXPECTED: RetryExhausted raised with the last error
        """
        # Arrange
        guard = ConnectionGuard(RetryConfig(max_attempts=3), sleep=Mock())
        connect = Mock(side_effect=ConnectError("refused"))

        # Act & Assert
        with pytest.raises(RetryExhausted) as exc_info:
            guard.call(connect, "connect")

        assert "failed after 3 attempt(s)" in str(exc_info.value)
        assert isinstance(exc_info.value.__cause__, ConnectError)
        assert connect.call_count == 3

    def test_default_is_single_attempt(self) -> None:
        guard = ConnectionGuard(sleep=Mock())
        connect = Mock(side_effect=ConnectError("refused"))

        with pytest.raises(RetryExhausted):
            guard.call(connect)

        assert connect.call_count == 1

    def test_exponential_backoff(self) -> None:
        """
        SCENARIO: Multiple retries
        EXPECTED: Delay increases exponentially
        """
        # Arrange
        guard = ConnectionGuard(
            RetryConfig(max_attempts=3, base_delay_seconds=0.1, exponential_base=2.0)
        )

        # Act & Assert
        assert guard._calculate_delay(1) == pytest.approx(0.1)
        assert guard._calculate_delay(2) == pytest.approx(0.2)
        assert guard._calculate_delay(3) == pytest.approx(0.4)

    def test_max_delay_cap(self) -> None:
        guard = ConnectionGuard(
            RetryConfig(max_attempts=10, base_delay_seconds=1.0, max_delay_seconds=5.0)
        )

        assert guard._calculate_delay(10) == 5.0


class TestCircuitBreaker:
    """Test cases for circuit breaker."""

    def test_opens_after_threshold(self) -> None:
        """
        SCENARIO: Consecutive failed connect calls reach the threshold
        EXPECTED: Circuit opens
        """
        # Arrange
        guard = ConnectionGuard(circuit_breaker_config=CircuitBreakerConfig(failure_threshold=3))
        connect = Mock(side_effect=ConnectError("down"))

        # Act
        for _ in range(3):
            with pytest.raises(RetryExhausted):
                guard.call(connect)

        # Assert
        assert guard.state == CircuitState.OPEN

    def test_open_rejects_without_attempt(self) -> None:
        # Arrange
        guard = ConnectionGuard(
            circuit_breaker_config=CircuitBreakerConfig(failure_threshold=1, recovery_timeout_seconds=60),
            clock=FakeClock(),
        )
        with pytest.raises(RetryExhausted):
            guard.call(Mock(side_effect=ConnectError("down")))
        connect = Mock()

        # Act & Assert
        with pytest.raises(CircuitBreakerOpen):
            guard.call(connect)
        connect.assert_not_called()

    def test_half_open_success_closes(self) -> None:
        """
        SCENARIO: Recovery window elapses and the probe connects
        EXPECTED: Circuit closes again
        """
        # Arrange
        clock = FakeClock()
        guard = ConnectionGuard(
            circuit_breaker_config=CircuitBreakerConfig(failure_threshold=1, recovery_timeout_seconds=30),
            clock=clock,
        )
        with pytest.raises(RetryExhausted):
            guard.call(Mock(side_effect=ConnectError("down")))

        # Act
        clock.now = 30.0
        result = guard.call(Mock(return_value="connection"))

        # Assert
        assert result == "connection"
        assert guard.state == CircuitState.CLOSED

    def test_half_open_failure_reopens(self) -> None:
        # Arrange
        clock = FakeClock()
        guard = ConnectionGuard(
            circuit_breaker_config=CircuitBreakerConfig(failure_threshold=1, recovery_timeout_seconds=30),
            clock=clock,
        )
        with pytest.raises(RetryExhausted):
            guard.call(Mock(side_effect=ConnectError("down")))

        # Act
        clock.now = 31.0
        with pytest.raises(RetryExhausted):
            guard.call(Mock(side_effect=ConnectError("still down")))

        # Assert
        assert guard.state == CircuitState.OPEN
        with pytest.raises(CircuitBreakerOpen):
            guard.call(Mock())

    def test_success_resets_failure_count(self) -> None:
        # Arrange
        guard = ConnectionGuard(circuit_breaker_config=CircuitBreakerConfig(failure_threshold=2))
        failing = Mock(side_effect=ConnectError("down"))

        # Act
        with pytest.raises(RetryExhausted):
            guard.call(failing)
        guard.call(Mock(return_value="ok"))
        with pytest.raises(RetryExhausted):
            guard.call(failing)

        # Assert
        assert guard.state == CircuitState.CLOSED

    def test_reset(self) -> None:
        guard = ConnectionGuard(circuit_breaker_config=CircuitBreakerConfig(failure_threshold=1))
        with pytest.raises(RetryExhausted):
            guard.call(Mock(side_effect=ConnectError("down")))
        assert guard.state == CircuitState.OPEN

        guard.reset()

        assert guard.state == CircuitState.CLOSED
