"""
Mock Statistics Client.

A fake database client for development and testing. Serves
deterministic @Statistics tables for every selector and can be told to
fail connects, refuse dispatches, return error statuses, or never
answer at all.
"""

from __future__ import annotations

import random
import threading
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Sequence, Set

from voltdb_prometheus.domain.entities import (
    ColumnKind,
    Credentials,
    ProcedureResponse,
    ResponseStatus,
    StatsSelector,
    StatsTable,
    TlsSettings,
)
from voltdb_prometheus.domain.errors import ConnectError, DispatchError
from voltdb_prometheus.interfaces.stats_client import ProcedureCallback
from voltdb_prometheus.mappers import MAPPER_TYPES
from voltdb_prometheus.registry.gauge_registry import GaugeRegistry


def sample_table(selector: StatsSelector, hosts: int = 2, seed: int = 42) -> StatsTable:
    """
    Build a plausible result table for a selector.

    Columns are taken from the selector's mapper declarations, so every
    declared label and metric column is present.
    """
    rng = random.Random(f"{seed}:{selector.value}")
    mapper = MAPPER_TYPES[selector](GaugeRegistry())
    label_columns = list(mapper.labels)
    metrics = mapper.metrics
    columns = [lc.column for lc in label_columns] + [m.column for m in metrics]

    base_time = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
    rows: List[tuple] = []
    for host in range(hosts):
        row: List[Any] = []
        for lc in label_columns:
            if lc.column == "HOSTNAME":
                row.append(f"voltdb-{host + 1}")
            elif lc.numeric:
                row.append(host)
            else:
                row.append(f"{lc.label.upper()}_{host}")
        for metric in metrics:
            if metric.kind is ColumnKind.FLOAT:
                row.append(round(rng.uniform(0, 1), 4))
            elif metric.kind is ColumnKind.TIMESTAMP:
                row.append(base_time + timedelta(seconds=rng.randint(0, 3600)))
            else:
                row.append(rng.randint(0, 10_000))
        rows.append(tuple(row))
    return StatsTable(columns=columns, rows=rows)


class MockConnection:
    """In-memory connection; responses are delivered on worker threads."""

    def __init__(self, client: "MockStatsClient") -> None:
        self._client = client
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()
        self.closed = False
        self.calls: List[tuple] = []

    def call_procedure(self, callback: ProcedureCallback, procedure: str, *params: Any) -> None:
        if self.closed:
            raise DispatchError("connection is closed")
        selector = str(params[0]) if params else ""
        with self._lock:
            self.calls.append((procedure, *params))
        if selector in self._client.dispatch_failures:
            raise DispatchError(f"request queue full for {selector}")
        if selector in self._client.silent:
            return

        response = self._client.response_for(selector)
        if not self._client.async_delivery:
            callback(response)
            return

        thread = threading.Thread(target=callback, args=(response,), daemon=True)
        with self._lock:
            self._threads.append(thread)
        thread.start()

    def drain(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            threads = list(self._threads)
        deadline = None if timeout is None else time.monotonic() + timeout
        for thread in threads:
            thread.join(None if deadline is None else max(0.0, deadline - time.monotonic()))

    def close(self) -> None:
        self.closed = True


class MockStatsClient:
    """
    Fake client factory for development and testing.

    Attributes:
        tables: Result tables per selector name
        connect_failures: Number of upcoming connect attempts that fail
        dispatch_failures: Selector names whose call cannot be queued
        statuses: Non-success status to answer per selector name
        silent: Selector names that are accepted but never answered
    """

    def __init__(
        self,
        tables: Optional[Dict[str, StatsTable]] = None,
        async_delivery: bool = True,
        seed: int = 42,
    ) -> None:
        """
        Initialize mock client.

        Args:
            tables: Tables to serve; missing selectors get a sample table
            async_delivery: Deliver responses on separate threads
            seed: Random seed for sample tables
        """
        self.tables: Dict[str, StatsTable] = dict(tables or {})
        self.async_delivery = async_delivery
        self.seed = seed
        self.connect_failures = 0
        self.dispatch_failures: Set[str] = set()
        self.statuses: Dict[str, ResponseStatus] = {}
        self.silent: Set[str] = set()
        self.connections: List[MockConnection] = []

    @property
    def connect_count(self) -> int:
        return len(self.connections)

    @property
    def last_connection(self) -> Optional[MockConnection]:
        return self.connections[-1] if self.connections else None

    def connect(
        self,
        servers: Sequence[str],
        port: int,
        credentials: Credentials,
        tls: TlsSettings,
    ) -> MockConnection:
        if self.connect_failures > 0:
            self.connect_failures -= 1
            raise ConnectError(f"Unable to connect to VoltDB server {servers[0]} on port {port}")
        connection = MockConnection(self)
        self.connections.append(connection)
        return connection

    def response_for(self, selector: str) -> ProcedureResponse:
        status = self.statuses.get(selector)
        if status is not None:
            return ProcedureResponse(status=status, status_string=f"{selector} failed")
        table = self.tables.get(selector)
        if table is None:
            table = sample_table(StatsSelector(selector), seed=self.seed)
        return ProcedureResponse(status=ResponseStatus.SUCCESS, tables=[table])
