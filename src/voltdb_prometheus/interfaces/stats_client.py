"""
Statistics Client Protocol.

Defines the abstract interface to the database client library. The
gather coordinator depends only on these protocols; concrete clients
live in ``voltdb_prometheus.adapters``.

The client is responsible for:
    - Connecting to every server in the server list
    - Queuing asynchronous procedure calls
    - Delivering each response to its callback, on a thread of its own

Design Notes:
    - Uses typing.Protocol for structural subtyping
    - ``call_procedure`` raises if the call cannot be queued; it must not
      also invoke the callback in that case
    - A callback is invoked at most once per successful ``call_procedure``
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Protocol, Sequence, runtime_checkable

from voltdb_prometheus.domain.entities import Credentials, ProcedureResponse, TlsSettings

ProcedureCallback = Callable[[ProcedureResponse], None]


@runtime_checkable
class StatsConnection(Protocol):
    """A live link to the database cluster."""

    def call_procedure(
        self,
        callback: ProcedureCallback,
        procedure: str,
        *params: Any,
    ) -> None:
        """
        Queue an asynchronous procedure call.

        Args:
            callback: Invoked with the response when it arrives
            procedure: Procedure name, e.g. "@Statistics"
            *params: Procedure parameters

        Raises:
            Exception: If the call cannot be queued
        """
        ...

    def drain(self, timeout: Optional[float] = None) -> None:
        """
        Block until all queued calls have been answered.

        Args:
            timeout: Seconds to wait at most, or None to wait without limit
        """
        ...

    def close(self) -> None:
        """Close the connection; pending callbacks may never fire."""
        ...


@runtime_checkable
class StatsClientFactory(Protocol):
    """Creates connections to the database cluster."""

    def connect(
        self,
        servers: Sequence[str],
        port: int,
        credentials: Credentials,
        tls: TlsSettings,
    ) -> StatsConnection:
        """
        Connect to every server in the list.

        Raises:
            Exception: If any server cannot be reached
        """
        ...
