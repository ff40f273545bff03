"""
Exception hierarchy for the agent.

Only ConfigError is meant to reach an operator; the others are raised
and absorbed inside the gather cycle.
"""

from __future__ import annotations


class ExporterError(Exception):
    """Base class for all agent errors."""
    pass


class ConfigError(ExporterError):
    """Raised when the agent configuration is invalid."""
    pass


class ConnectError(ExporterError):
    """Raised when no connection to the database can be established."""
    pass


class DispatchError(ExporterError):
    """Raised when a statistics request cannot be sent."""
    pass


class DecodeError(ExporterError):
    """Raised when a statistics result does not have the expected shape."""
    pass


class MetricSchemaConflict(ExporterError, ValueError):
    """Raised when a metric is re-registered with different label names."""
    pass
