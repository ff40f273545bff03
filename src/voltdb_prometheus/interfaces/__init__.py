"""
Interfaces Layer - Abstract Protocols for Dependencies.

This package defines the abstract interfaces (using typing.Protocol) for
the database client the agent polls. Following the Dependency Inversion
Principle, the gathering engine depends on these abstractions, not on a
concrete client library.

Protocols:
    - StatsClientFactory: Creates connections
    - StatsConnection: Queues asynchronous procedure calls
"""

from voltdb_prometheus.interfaces.stats_client import (
    ProcedureCallback,
    StatsClientFactory,
    StatsConnection,
)

__all__ = ["ProcedureCallback", "StatsClientFactory", "StatsConnection"]
