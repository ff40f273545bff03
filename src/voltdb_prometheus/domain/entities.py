"""
Core Domain Entities.

This module defines the fundamental entities of the agent domain:
statistics selectors, metric definitions, result tables returned by
@Statistics, and the outcome of a gather cycle.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from voltdb_prometheus.domain.errors import DecodeError


class StatsSelector(str, Enum):
    """
    Supported @Statistics selectors.

    The names are the same as the database's own selector names, since
    it would be confusing to the operator to have them differ.
    """

    COMMANDLOG = "COMMANDLOG"
    CPU = "CPU"
    EXPORT = "EXPORT"
    GC = "GC"
    IDLETIME = "IDLETIME"
    INDEX = "INDEX"
    INITIATOR = "INITIATOR"  # may cause significant overhead
    IOSTATS = "IOSTATS"
    LATENCY = "LATENCY"
    LIVECLIENTS = "LIVECLIENTS"
    MEMORY = "MEMORY"
    PROCEDURE = "PROCEDURE"
    QUEUE = "QUEUE"
    QUEUEPRIORITY = "QUEUEPRIORITY"
    TABLE = "TABLE"

    @classmethod
    def parse_list(cls, names: Sequence[str]) -> List["StatsSelector"]:
        """
        Convert selector names to enum members, preserving declaration order.

        Raises:
            ValueError: If any name is not a supported selector
        """
        wanted = {n.strip().upper() for n in names if n.strip()}
        unknown = sorted(wanted - {s.value for s in cls})
        if unknown:
            supported = ", ".join(s.value for s in cls)
            raise ValueError(
                f"Unsupported statistics {unknown}; supported statistics are: {supported}"
            )
        return [s for s in cls if s.value in wanted]


class ColumnKind(str, Enum):
    """How a raw statistics column is coerced before scaling."""

    INT = "int"
    FLOAT = "float"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class Metric:
    """
    Mapping from one statistics column to one published gauge.

    The published name is ``<namespace>_<key>[_<unit>]``; the multiplier
    normalizes the database's unit into the published unit (for example
    0.001 for milliseconds to seconds, 1024 for kilobytes to bytes).
    """

    column: str
    name: str
    multiplier: float = 1.0
    kind: ColumnKind = ColumnKind.INT
    help_text: Optional[str] = None

    @staticmethod
    def make_name(namespace: str, key: str, unit: Optional[str] = None) -> str:
        """Build the fully-qualified metric name."""
        name = f"{namespace}_{key}"
        if unit:
            name += f"_{unit}"
        return name


@dataclass
class StatsTable:
    """One result table from a @Statistics call."""

    columns: List[str]
    rows: List[Sequence[Any]] = field(default_factory=list)

    def column_index(self, column: str) -> int:
        """
        Position of a column in the schema.

        Raises:
            DecodeError: If the column is not part of this table
        """
        try:
            return self.columns.index(column)
        except ValueError:
            raise DecodeError(f"Missing expected column {column}") from None

    def records(self) -> Iterator[Dict[str, Any]]:
        """Iterate rows as column-name dictionaries."""
        for row in self.rows:
            yield dict(zip(self.columns, row))

    @classmethod
    def from_records(
        cls, columns: Sequence[str], records: Sequence[Dict[str, Any]]
    ) -> "StatsTable":
        """Build a table from dictionaries; absent keys become None."""
        cols = list(columns)
        return cls(columns=cols, rows=[tuple(r.get(c) for c in cols) for r in records])


class ResponseStatus(str, Enum):
    """Procedure call status, as reported by the client library."""

    SUCCESS = "SUCCESS"
    USER_ABORT = "USER_ABORT"
    GRACEFUL_FAILURE = "GRACEFUL_FAILURE"
    UNEXPECTED_FAILURE = "UNEXPECTED_FAILURE"
    CONNECTION_LOST = "CONNECTION_LOST"
    SERVER_UNAVAILABLE = "SERVER_UNAVAILABLE"
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"

    @property
    def is_transport_failure(self) -> bool:
        """True if the status means the connection itself is unusable."""
        return self in (
            ResponseStatus.CONNECTION_LOST,
            ResponseStatus.SERVER_UNAVAILABLE,
            ResponseStatus.CONNECTION_TIMEOUT,
        )


@dataclass
class ProcedureResponse:
    """Response delivered to a procedure callback."""

    status: ResponseStatus
    tables: List[StatsTable] = field(default_factory=list)
    status_string: str = ""


@dataclass(frozen=True)
class Credentials:
    """Database login."""

    username: str = ""
    password: str = ""

    def __repr__(self) -> str:
        return f"Credentials(username={self.username!r}, password='***')"


@dataclass(frozen=True)
class TlsSettings:
    """TLS toggle plus optional trust-store properties file."""

    enabled: bool = False
    config_file: Optional[str] = None


class GatherOutcome(str, Enum):
    """Result classification of one gather cycle."""

    SUCCESS = "success"
    DEGRADED = "degraded"  # some failures, but values were recorded
    FAILED = "failed"

    @property
    def published(self) -> bool:
        """True if the cycle produced something worth serving."""
        return self is not GatherOutcome.FAILED


class GatherResult(BaseModel):
    """Summary of one gather cycle."""

    cycle_id: str = Field(..., description="Correlation id for the cycle")
    outcome: GatherOutcome = Field(..., description="Cycle classification")
    categories: Tuple[StatsSelector, ...] = Field(default=())
    values_reported: int = Field(default=0, ge=0)
    failed_categories: Tuple[StatsSelector, ...] = Field(default=())
    decode_errors: int = Field(default=0, ge=0)
    connection_discarded: bool = False
    duration_seconds: float = Field(default=0.0, ge=0)
    error: Optional[str] = None

    model_config = {"frozen": True}
