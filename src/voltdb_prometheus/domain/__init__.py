"""
Domain Layer - Core Entities and Errors.

This package contains the entities the gathering engine operates on:
    - StatsSelector: The closed set of statistics categories
    - Metric: Column-to-gauge mapping with unit scaling
    - StatsTable / ProcedureResponse: Results returned by @Statistics
    - GatherOutcome / GatherResult: Outcome of one polling cycle
"""

from voltdb_prometheus.domain.entities import (
    ColumnKind,
    Credentials,
    GatherOutcome,
    GatherResult,
    Metric,
    ProcedureResponse,
    ResponseStatus,
    StatsSelector,
    StatsTable,
    TlsSettings,
)
from voltdb_prometheus.domain.errors import (
    ConfigError,
    ConnectError,
    DecodeError,
    DispatchError,
    ExporterError,
    MetricSchemaConflict,
)

__all__ = [
    "ColumnKind",
    "Credentials",
    "GatherOutcome",
    "GatherResult",
    "Metric",
    "ProcedureResponse",
    "ResponseStatus",
    "StatsSelector",
    "StatsTable",
    "TlsSettings",
    "ConfigError",
    "ConnectError",
    "DecodeError",
    "DispatchError",
    "ExporterError",
    "MetricSchemaConflict",
]
