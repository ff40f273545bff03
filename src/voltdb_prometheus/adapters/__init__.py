"""
Adapters Package - Database Client Implementations.

This package contains concrete implementations of the client
interfaces defined in the interfaces package.

Clients:
    - MockStatsClient: Fake statistics for development/testing
    - VoltDBClientFactory: Real cluster connection via voltdbclient,
      in voltdb_prometheus.adapters.voltdb_client (needs the ``voltdb``
      extra, so it is not imported here)
"""

from voltdb_prometheus.adapters.mock_client import MockConnection, MockStatsClient, sample_table

__all__ = [
    "MockConnection",
    "MockStatsClient",
    "sample_table",
]
