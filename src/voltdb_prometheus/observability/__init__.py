"""
Observability Package - Structured Logging of Gather Cycles.

Components:
    - ObservabilityManager: Cycle events with correlation ids (structlog)
    - configure_structlog: Processor chain used by the CLI
"""

from voltdb_prometheus.observability.observability_manager import (
    ObservabilityManager,
    configure_structlog,
)

__all__ = ["ObservabilityManager", "configure_structlog"]
