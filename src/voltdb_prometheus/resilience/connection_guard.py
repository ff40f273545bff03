"""
Connection Guard - Retry and Circuit Breaking for Connect Attempts.

Provides:
    - Retry with exponential backoff around one connect attempt
    - Circuit breaker that stops connect attempts during an outage

Design Notes:
    - A failed connect can take a full network timeout; when the cluster
      is down, the open circuit makes each gather cycle fail fast instead
    - After the recovery window one probe attempt is let through
      (half-open); success closes the circuit, failure re-opens it
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"      # Normal operation
    OPEN = "open"          # Failing, reject connect attempts
    HALF_OPEN = "half_open"  # Probing whether the cluster is back


class CircuitBreakerOpen(Exception):
    """Raised when the circuit is open and no attempt is made."""
    pass


class RetryExhausted(Exception):
    """Raised when all connect attempts failed."""
    pass


@dataclass
class RetryConfig:
    """Configuration for retry logic."""
    max_attempts: int = 1
    base_delay_seconds: float = 0.5
    max_delay_seconds: float = 10.0
    exponential_base: float = 2.0


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""
    failure_threshold: int = 5  # Consecutive failures before opening
    recovery_timeout_seconds: float = 30.0  # Time before half-open


class ConnectionGuard:
    """
    Guards connection attempts with retry and a circuit breaker.

    Example:
        guard = ConnectionGuard(RetryConfig(max_attempts=2))
        connection = guard.call(lambda: factory.connect(...), "connect")
    """

    def __init__(
        self,
        retry_config: Optional[RetryConfig] = None,
        circuit_breaker_config: Optional[CircuitBreakerConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize connection guard.

        Args:
            retry_config: Configuration for retry logic
            circuit_breaker_config: Configuration for circuit breaker
            clock: Monotonic time source
            sleep: Sleep function used between retries
        """
        self.retry_config = retry_config or RetryConfig()
        self.circuit_breaker_config = circuit_breaker_config or CircuitBreakerConfig()
        self._clock = clock
        self._sleep = sleep
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None

    @property
    def state(self) -> CircuitState:
        """Current circuit state."""
        return self._state

    def call(self, func: Callable[[], T], operation_name: str = "connect") -> T:
        """
        Execute func under circuit breaker and retry protection.

        Args:
            func: Connect function
            operation_name: Name for logging

        Returns:
            Result of the first successful attempt

        Raises:
            CircuitBreakerOpen: When the circuit is open
            RetryExhausted: When all attempts fail
        """
        if self._state == CircuitState.OPEN:
            if self._should_attempt_recovery():
                self._state = CircuitState.HALF_OPEN
                logger.info(f"{operation_name} circuit entering half-open state")
            else:
                raise CircuitBreakerOpen(
                    f"{operation_name} circuit is open after "
                    f"{self._failure_count} consecutive failures"
                )

        try:
            result = self._retry(func, operation_name)
        except RetryExhausted:
            self._record_failure(operation_name)
            raise

        self._record_success(operation_name)
        return result

    def reset(self) -> None:
        """Reset the circuit to closed state."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = None

    def _retry(self, func: Callable[[], T], operation_name: str) -> T:
        """Execute func with exponential backoff between attempts."""
        last_exception: Optional[Exception] = None
        attempts = max(1, self.retry_config.max_attempts)

        for attempt in range(1, attempts + 1):
            try:
                result = func()
                if attempt > 1:
                    logger.info(f"{operation_name} succeeded on attempt {attempt}")
                return result

            except Exception as e:
                last_exception = e
                if attempt < attempts:
                    delay = self._calculate_delay(attempt)
                    logger.warning(
                        f"{operation_name} failed (attempt {attempt}/{attempts}), "
                        f"retrying in {delay:.2f}s: {e}"
                    )
                    self._sleep(delay)

        raise RetryExhausted(
            f"{operation_name} failed after {attempts} attempt(s): {last_exception}"
        ) from last_exception

    def _calculate_delay(self, attempt: int) -> float:
        """Calculate delay with exponential backoff."""
        delay = self.retry_config.base_delay_seconds * (
            self.retry_config.exponential_base ** (attempt - 1)
        )
        return min(delay, self.retry_config.max_delay_seconds)

    def _should_attempt_recovery(self) -> bool:
        """Check if enough time has passed to attempt recovery."""
        if self._opened_at is None:
            return True
        elapsed = self._clock() - self._opened_at
        return elapsed >= self.circuit_breaker_config.recovery_timeout_seconds

    def _record_success(self, operation_name: str) -> None:
        if self._state != CircuitState.CLOSED:
            logger.info(f"{operation_name} circuit closed after recovery")
        self.reset()

    def _record_failure(self, operation_name: str) -> None:
        self._failure_count += 1

        if self._state == CircuitState.HALF_OPEN:
            self._state = CircuitState.OPEN
            self._opened_at = self._clock()
            logger.warning(f"{operation_name} circuit re-opened after failed recovery")
        elif self._failure_count >= self.circuit_breaker_config.failure_threshold:
            self._state = CircuitState.OPEN
            self._opened_at = self._clock()
            logger.warning(
                f"{operation_name} circuit opened after {self._failure_count} failures"
            )
