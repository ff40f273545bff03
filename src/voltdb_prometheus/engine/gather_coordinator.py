"""
Gather Coordinator - One Polling Cycle Over a Shared Connection.

The GatherCoordinator drives a gather cycle:

    IDLE -> CONNECTING -> DISPATCHING -> AWAITING -> DONE

It connects lazily, issues one asynchronous @Statistics call per
enabled selector, waits on a completion barrier for every response or
failure, and decides whether the connection may be reused.

Design Notes:
    - Any dispatch or transport failure discards the connection after the
      cycle; values already decoded stay in the registry
    - Decode errors are isolated to their category and never discard
      the connection
    - The connection is created or closed only under the cycle lock
    - gather() never raises; callers get a GatherResult
"""

from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional

from voltdb_prometheus.config.models import AgentConfig
from voltdb_prometheus.domain.entities import (
    Credentials,
    GatherOutcome,
    GatherResult,
    ProcedureResponse,
    ResponseStatus,
    StatsSelector,
    TlsSettings,
)
from voltdb_prometheus.domain.errors import DecodeError
from voltdb_prometheus.engine.barrier import GatherCycle
from voltdb_prometheus.interfaces.stats_client import StatsClientFactory, StatsConnection
from voltdb_prometheus.mappers.base import StatsMapper
from voltdb_prometheus.observability.observability_manager import ObservabilityManager
from voltdb_prometheus.resilience.connection_guard import (
    CircuitBreakerConfig,
    CircuitBreakerOpen,
    ConnectionGuard,
    RetryConfig,
    RetryExhausted,
)

logger = logging.getLogger(__name__)

STATISTICS_PROCEDURE = "@Statistics"


class GatherState(Enum):
    """Coordinator state machine."""
    IDLE = "idle"
    CONNECTING = "connecting"
    DISPATCHING = "dispatching"
    AWAITING = "awaiting"
    DONE = "done"


class GatherCoordinator:
    """Orchestrates gather cycles against the database cluster."""

    def __init__(
        self,
        client_factory: StatsClientFactory,
        mappers: Mapping[StatsSelector, StatsMapper],
        servers: List[str],
        port: int,
        credentials: Optional[Credentials] = None,
        tls: Optional[TlsSettings] = None,
        interval: int = 0,
        gather_timeout_seconds: Optional[float] = 60.0,
        connection_guard: Optional[ConnectionGuard] = None,
        observability: Optional[ObservabilityManager] = None,
    ) -> None:
        """
        Initialize coordinator with all dependencies.

        Args:
            client_factory: Creates database connections
            mappers: Enabled selectors and their mappers
            servers: Database servers to connect to
            port: Client port on every server
            credentials: Database login
            tls: TLS settings
            interval: @Statistics interval argument (1 = since last poll)
            gather_timeout_seconds: Bound on the wait for responses;
                None waits without limit
            connection_guard: Retry/circuit breaker for connect attempts
            observability: Structured cycle event log
        """
        self.client_factory = client_factory
        self.mappers: Dict[StatsSelector, StatsMapper] = dict(mappers)
        self.servers = list(servers)
        self.port = port
        self.credentials = credentials or Credentials()
        self.tls = tls or TlsSettings()
        self.interval = interval
        self.gather_timeout_seconds = gather_timeout_seconds
        self.connection_guard = connection_guard or ConnectionGuard()
        self.observability = observability or ObservabilityManager()

        self._connection: Optional[StatsConnection] = None
        self._state = GatherState.IDLE
        self._cycle_lock = threading.Lock()

    @classmethod
    def from_config(
        cls,
        config: AgentConfig,
        client_factory: StatsClientFactory,
        mappers: Mapping[StatsSelector, StatsMapper],
        observability: Optional[ObservabilityManager] = None,
    ) -> "GatherCoordinator":
        """Build a coordinator from validated configuration."""
        policy = config.connection
        guard = ConnectionGuard(
            RetryConfig(
                max_attempts=policy.retry_attempts,
                base_delay_seconds=policy.retry_base_delay_seconds,
            ),
            CircuitBreakerConfig(
                failure_threshold=policy.failure_threshold,
                recovery_timeout_seconds=policy.recovery_seconds,
            ),
        )
        return cls(
            client_factory=client_factory,
            mappers=mappers,
            servers=config.servers,
            port=config.port,
            credentials=config.credentials,
            tls=config.tls,
            interval=config.interval,
            gather_timeout_seconds=config.gather_timeout_seconds,
            connection_guard=guard,
            observability=observability,
        )

    @property
    def state(self) -> GatherState:
        return self._state

    @property
    def connected(self) -> bool:
        return self._connection is not None

    @property
    def server_description(self) -> str:
        return ",".join(self.servers)

    def gather(self) -> GatherResult:
        """
        Run one gather cycle.

        Returns:
            GatherResult; SUCCESS when every category reported,
            DEGRADED when some failed but values were recorded,
            FAILED otherwise
        """
        cycle_id = self.observability.generate_cycle_id()
        if not self._cycle_lock.acquire(blocking=False):
            logger.error("Gather cycle already in progress, rejecting request")
            return GatherResult(
                cycle_id=cycle_id,
                outcome=GatherOutcome.FAILED,
                error="gather cycle already in progress",
            )

        started = time.monotonic()
        try:
            with self.observability.cycle_context(cycle_id):
                return self._run_cycle(cycle_id, started)
        except Exception as e:
            logger.exception(
                f"Failed to poll for statistics for server {self.server_description}: {e}"
            )
            self._discard_connection(drain=False)
            return GatherResult(
                cycle_id=cycle_id,
                outcome=GatherOutcome.FAILED,
                categories=tuple(self.mappers),
                connection_discarded=True,
                duration_seconds=time.monotonic() - started,
                error=str(e),
            )
        finally:
            self._state = GatherState.DONE
            self._cycle_lock.release()

    def disconnect(self) -> None:
        """
        Drain and close the connection, if any.

        Waits up to the gather timeout for a running cycle to finish first;
        after that the connection is closed regardless.
        """
        lock_timeout = -1 if self.gather_timeout_seconds is None else self.gather_timeout_seconds
        acquired = self._cycle_lock.acquire(timeout=lock_timeout)
        if not acquired:
            logger.warning(
                f"Gather cycle still running after {self.gather_timeout_seconds}s, "
                f"closing connection anyway"
            )
        try:
            self._discard_connection(drain=True)
        finally:
            if acquired:
                self._cycle_lock.release()

    close = disconnect

    def __enter__(self) -> "GatherCoordinator":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.disconnect()

    def _run_cycle(self, cycle_id: str, started: float) -> GatherResult:
        if self._connection is None:
            self._state = GatherState.CONNECTING
            try:
                self._connection = self.connection_guard.call(self._connect, "connect")
            except (CircuitBreakerOpen, RetryExhausted) as e:
                logger.error(f"Unable to connect to VoltDB server(s) {self.server_description}: {e}")
                self.observability.log_event(
                    "cycle_end",
                    {"cycle_id": cycle_id, "outcome": GatherOutcome.FAILED.value, "error": str(e)},
                    level="error",
                )
                return GatherResult(
                    cycle_id=cycle_id,
                    outcome=GatherOutcome.FAILED,
                    categories=tuple(self.mappers),
                    duration_seconds=time.monotonic() - started,
                    error=str(e),
                )
            self.observability.log_event(
                "connection_opened", {"cycle_id": cycle_id, "servers": self.server_description}
            )

        logger.debug(f"Starting metrics collection for server {self.server_description}")
        self.observability.log_event(
            "cycle_start",
            {"cycle_id": cycle_id, "categories": [s.value for s in self.mappers]},
            level="debug",
        )

        self._state = GatherState.DISPATCHING
        cycle = GatherCycle(cycle_id, self.mappers)
        connection = self._connection
        for selector, mapper in self.mappers.items():
            self._dispatch(connection, cycle, selector, mapper)

        self._state = GatherState.AWAITING
        try:
            connection.drain(self._remaining_wait(cycle))
        except Exception as e:
            logger.error(f"Failed to drain connection: {e}")
            cycle.mark_transport_failure()

        if not cycle.barrier.wait(self._remaining_wait(cycle)):
            expired = cycle.expire_pending()
            for selector in expired:
                self._log_category_failure(cycle, selector, "no response before gather timeout")
            logger.error(
                f"Timed out after {self.gather_timeout_seconds}s waiting for "
                f"{[s.value for s in expired]}"
            )

        return self._finish(cycle, started)

    def _remaining_wait(self, cycle: GatherCycle) -> Optional[float]:
        if self.gather_timeout_seconds is None:
            return None
        return max(0.0, self.gather_timeout_seconds - cycle.elapsed_seconds())

    def _connect(self) -> StatsConnection:
        logger.info(f"Connecting to VoltDB server(s) {self.server_description} port {self.port}")
        connection = self.client_factory.connect(self.servers, self.port, self.credentials, self.tls)
        logger.info(f"Connected to VoltDB server(s) {self.server_description}")
        return connection

    def _dispatch(
        self,
        connection: StatsConnection,
        cycle: GatherCycle,
        selector: StatsSelector,
        mapper: StatsMapper,
    ) -> None:
        """Queue one @Statistics call; a failure to queue counts as an arrival."""
        callback = self._make_callback(cycle, selector, mapper)
        try:
            connection.call_procedure(callback, STATISTICS_PROCEDURE, selector.value, self.interval)
        except Exception as e:
            logger.error(f"Failed to call {selector.value} procedure: {e}")
            cycle.complete(selector, failed=True, transport_failure=True)
            self._log_category_failure(cycle, selector, f"dispatch failed: {e}")

    def _make_callback(
        self,
        cycle: GatherCycle,
        selector: StatsSelector,
        mapper: StatsMapper,
    ) -> Callable[[ProcedureResponse], None]:
        def on_response(response: ProcedureResponse) -> None:
            values = 0
            failed = False
            decode_error = False
            transport_failure = False
            try:
                if response.status is ResponseStatus.SUCCESS:
                    values = mapper.decode(response.tables)
                else:
                    failed = True
                    transport_failure = response.status.is_transport_failure
                    self._log_category_failure(
                        cycle,
                        selector,
                        f"{response.status.value}: {response.status_string}",
                    )
            except DecodeError as e:
                failed = decode_error = True
                logger.error(f"Failed to process stats for {mapper.namespace}: {e}")
                self._log_category_failure(cycle, selector, f"decode error: {e}")
            except Exception as e:
                failed = decode_error = True
                logger.exception(f"Failed to process stats for {mapper.namespace}: {e}")
                self._log_category_failure(cycle, selector, f"decode error: {e}")
            finally:
                cycle.complete(
                    selector,
                    values=values,
                    failed=failed,
                    decode_error=decode_error,
                    transport_failure=transport_failure,
                )

        return on_response

    def _finish(self, cycle: GatherCycle, started: float) -> GatherResult:
        failed = tuple(cycle.failed)
        if not failed:
            outcome = GatherOutcome.SUCCESS
        elif cycle.values_reported > 0:
            outcome = GatherOutcome.DEGRADED
        else:
            outcome = GatherOutcome.FAILED

        duration = time.monotonic() - started
        discard = cycle.transport_failure
        if discard:
            logger.error(
                f"Error collecting metrics for server {self.server_description}, "
                f"will reconnect on next polling cycle"
            )
            self._discard_connection(drain=False)
            self.observability.log_event(
                "connection_discarded", {"cycle_id": cycle.cycle_id}, level="warning"
            )
        else:
            logger.debug(
                f"Finished metrics collection for server {self.server_description}; "
                f"collected {cycle.values_reported} stats in {duration * 1000:.0f} msec"
            )

        result = GatherResult(
            cycle_id=cycle.cycle_id,
            outcome=outcome,
            categories=cycle.categories,
            values_reported=cycle.values_reported,
            failed_categories=failed,
            decode_errors=cycle.decode_errors,
            connection_discarded=discard,
            duration_seconds=duration,
        )
        self.observability.log_event(
            "cycle_end",
            {
                "cycle_id": cycle.cycle_id,
                "outcome": outcome.value,
                "values_reported": result.values_reported,
                "failed_categories": [s.value for s in failed],
                "decode_errors": result.decode_errors,
                "duration_seconds": round(duration, 4),
            },
            level="info" if outcome is GatherOutcome.SUCCESS else "warning",
        )
        return result

    def _log_category_failure(self, cycle: GatherCycle, selector: StatsSelector, reason: str) -> None:
        self.observability.log_event(
            "category_failed",
            {"cycle_id": cycle.cycle_id, "category": selector.value, "reason": reason},
            level="warning",
        )

    def _discard_connection(self, drain: bool) -> None:
        connection, self._connection = self._connection, None
        if connection is None:
            return
        try:
            if drain:
                connection.drain(self.gather_timeout_seconds)
            connection.close()
        except Exception as e:
            logger.warning(f"Error when closing client connection: {e}")
