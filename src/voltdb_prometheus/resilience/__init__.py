"""
Resilience Package - Connection Fault Tolerance.

This package provides resilience patterns for the database connection:
    - ConnectionGuard: Retry and circuit breaker around connect attempts

Design Principles:
    - Retry with backoff for transient connect errors
    - Circuit breaker so an outage does not cost a timeout per scrape
"""

from voltdb_prometheus.resilience.connection_guard import (
    CircuitBreakerConfig,
    CircuitBreakerOpen,
    CircuitState,
    ConnectionGuard,
    RetryConfig,
    RetryExhausted,
)

__all__ = [
    "CircuitBreakerConfig",
    "CircuitBreakerOpen",
    "CircuitState",
    "ConnectionGuard",
    "RetryConfig",
    "RetryExhausted",
]
