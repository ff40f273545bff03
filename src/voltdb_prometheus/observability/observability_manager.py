"""
Observability Manager - Structured Cycle Event Logging.

Provides:
    - Structured logging via structlog
    - Per-cycle correlation IDs
    - A bounded in-memory history of recent events

Design Notes:
    - Response callbacks run on client threads where the cycle's context
      variables are not bound; the cycle id is passed in the event data
    - Thread-safe event storage
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Deque, Dict, Iterator, List, Optional

import structlog


def configure_structlog(use_json: bool = False, log_level: int = logging.INFO) -> None:
    """
    Configure structlog processors for the agent.

    Args:
        use_json: Render JSON lines instead of console output
        log_level: Minimum level emitted
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if use_json:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ObservabilityManager:
    """
    Structured event log for gather cycles.

    Events: ``cycle_start``, ``cycle_end``, ``category_failed``,
    ``connection_opened``, ``connection_discarded``.
    """

    def __init__(
        self,
        service_name: str = "voltdb_prometheus",
        max_events: int = 1000,
    ) -> None:
        """
        Initialize observability manager.

        Args:
            service_name: Logger name for event records
            max_events: Number of recent events kept in memory
        """
        self.service_name = service_name
        self._events: Deque[Dict[str, Any]] = deque(maxlen=max_events)
        self._lock = threading.Lock()
        self._logger = structlog.get_logger(service_name)

    @staticmethod
    def generate_cycle_id() -> str:
        """Generate a new cycle correlation id."""
        return uuid.uuid4().hex[:12]

    @contextmanager
    def cycle_context(self, cycle_id: str) -> Iterator[str]:
        """Bind the cycle id to all structlog records in this context."""
        with structlog.contextvars.bound_contextvars(cycle_id=cycle_id):
            yield cycle_id

    def log_event(
        self,
        event_type: str,
        data: Optional[Dict[str, Any]] = None,
        level: str = "info",
    ) -> None:
        """
        Log a structured event.

        Args:
            event_type: Type of event (e.g., "cycle_start", "category_failed")
            data: Additional event data
            level: Log level (debug, info, warning, error)
        """
        event_data = {
            "timestamp": datetime.now().isoformat(),
            **(data or {}),
        }

        with self._lock:
            self._events.append({"event_type": event_type, **event_data})

        log_method = getattr(self._logger, level.lower(), self._logger.info)
        log_method(event_type, **event_data)

    def get_events(self, event_type: Optional[str] = None) -> List[Dict[str, Any]]:
        """Recorded events, optionally only those of one type."""
        with self._lock:
            events = list(self._events)
        if event_type is None:
            return events
        return [e for e in events if e["event_type"] == event_type]

    def clear(self) -> None:
        """Clear all recorded events."""
        with self._lock:
            self._events.clear()
