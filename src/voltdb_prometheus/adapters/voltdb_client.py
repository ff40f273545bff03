"""
VoltDB Client Adapter - voltdbclient Wire Protocol Connection.

Wraps the synchronous voltdbclient FastSerializer behind the
asynchronous StatsConnection interface. Each configured server gets its
own serializer; calls are spread round-robin over them and executed on a
small thread pool, so responses arrive on pool threads.

Design Notes:
    - A serializer is not thread-safe; each is guarded by its own lock
    - Socket errors during a call are reported as CONNECTION_LOST
      responses, not raised to the caller
    - Servers that refuse the connection are skipped; connect fails only
      when none of them accept
    - close() shuts the sockets without waiting for the session locks, so a
      call stuck on a silent server cannot hold up a reconnect
"""

from __future__ import annotations

import itertools
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Dict, List, Optional, Sequence, Set

from voltdbclient import FastSerializer, VoltProcedure

from voltdb_prometheus.domain.entities import (
    Credentials,
    ProcedureResponse,
    ResponseStatus,
    StatsTable,
    TlsSettings,
)
from voltdb_prometheus.domain.errors import ConnectError, DispatchError
from voltdb_prometheus.interfaces.stats_client import ProcedureCallback

logger = logging.getLogger(__name__)

# Wire protocol status codes
STATUS_CODES: Dict[int, ResponseStatus] = {
    1: ResponseStatus.SUCCESS,
    -1: ResponseStatus.USER_ABORT,
    -2: ResponseStatus.GRACEFUL_FAILURE,
    -3: ResponseStatus.UNEXPECTED_FAILURE,
    -4: ResponseStatus.CONNECTION_LOST,
    -5: ResponseStatus.SERVER_UNAVAILABLE,
    -6: ResponseStatus.CONNECTION_TIMEOUT,
}

CONNECT_TIMEOUT_SECONDS = 8


def to_stats_table(volt_table: Any) -> StatsTable:
    """Convert a voltdbclient VoltTable."""
    return StatsTable(
        columns=[column.name for column in volt_table.columns],
        rows=[tuple(row) for row in volt_table.tuples],
    )


def to_procedure_response(volt_response: Any) -> ProcedureResponse:
    """Convert a voltdbclient VoltResponse."""
    status = STATUS_CODES.get(volt_response.status, ResponseStatus.UNEXPECTED_FAILURE)
    tables = [to_stats_table(t) for t in (volt_response.tables or [])]
    return ProcedureResponse(
        status=status,
        tables=tables,
        status_string=volt_response.statusString or "",
    )


class _ServerSession:
    """One serializer and the lock that serializes its use."""

    def __init__(self, host: str, serializer: FastSerializer) -> None:
        self.host = host
        self.serializer = serializer
        self.lock = threading.Lock()
        self._procedures: Dict[str, VoltProcedure] = {}

    def procedure(self, name: str) -> VoltProcedure:
        proc = self._procedures.get(name)
        if proc is None:
            proc = VoltProcedure(
                self.serializer,
                name,
                [FastSerializer.VOLTTYPE_STRING, FastSerializer.VOLTTYPE_INTEGER],
            )
            self._procedures[name] = proc
        return proc


class VoltDBConnection:
    """StatsConnection over one or more voltdbclient serializers."""

    def __init__(
        self,
        sessions: List[_ServerSession],
        call_timeout_seconds: Optional[float] = None,
    ) -> None:
        self._sessions = sessions
        self.call_timeout_seconds = call_timeout_seconds
        self._next_session = itertools.cycle(sessions)
        self._executor = ThreadPoolExecutor(
            max_workers=len(sessions),
            thread_name_prefix="voltdb-stats",
        )
        self._outstanding: Set[Future] = set()
        self._lock = threading.Lock()
        self._closed = False

    @property
    def hosts(self) -> List[str]:
        return [s.host for s in self._sessions]

    def call_procedure(self, callback: ProcedureCallback, procedure: str, *params: Any) -> None:
        with self._lock:
            if self._closed:
                raise DispatchError("connection is closed")
            session = next(self._next_session)
            try:
                future = self._executor.submit(self._invoke, session, callback, procedure, list(params))
            except RuntimeError as e:
                raise DispatchError(f"unable to queue {procedure}: {e}") from e
            self._outstanding.add(future)
        future.add_done_callback(self._forget)

    def drain(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            pending = list(self._outstanding)
        if pending:
            _, not_done = wait(pending, timeout=timeout)
            if not_done:
                logger.warning(f"{len(not_done)} call(s) still outstanding after {timeout}s")

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._executor.shutdown(wait=False, cancel_futures=True)
        for session in self._sessions:
            # not under session.lock: an in-flight call may hold it indefinitely
            try:
                session.serializer.close()
            except Exception as e:
                logger.warning(f"Error closing connection to {session.host}: {e}")

    def _invoke(
        self,
        session: _ServerSession,
        callback: ProcedureCallback,
        procedure: str,
        params: List[Any],
    ) -> None:
        try:
            with session.lock:
                volt_response = session.procedure(procedure).call(
                    params, timeout=self.call_timeout_seconds
                )
            response = to_procedure_response(volt_response)
        except Exception as e:
            logger.debug(f"Call to {procedure} on {session.host} failed: {e}")
            response = ProcedureResponse(
                status=ResponseStatus.CONNECTION_LOST,
                status_string=str(e),
            )
        callback(response)

    def _forget(self, future: Future) -> None:
        with self._lock:
            self._outstanding.discard(future)


class VoltDBClientFactory:
    """Creates VoltDBConnection instances."""

    def __init__(
        self,
        connect_timeout_seconds: float = CONNECT_TIMEOUT_SECONDS,
        call_timeout_seconds: Optional[float] = None,
    ) -> None:
        self.connect_timeout_seconds = connect_timeout_seconds
        self.call_timeout_seconds = call_timeout_seconds

    def connect(
        self,
        servers: Sequence[str],
        port: int,
        credentials: Credentials,
        tls: TlsSettings,
    ) -> VoltDBConnection:
        sessions: List[_ServerSession] = []
        errors: List[str] = []
        for host in servers:
            try:
                serializer = FastSerializer(
                    host,
                    port,
                    usessl=tls.enabled,
                    ssl_config_file=tls.config_file,
                    connect_timeout=self.connect_timeout_seconds,
                    username=credentials.username,
                    password=credentials.password,
                )
            except Exception as e:
                logger.warning(f"Unable to connect to VoltDB server {host} on port {port}: {e}")
                errors.append(f"{host}: {e}")
                continue
            sessions.append(_ServerSession(host, serializer))

        if not sessions:
            raise ConnectError(
                f"Unable to connect to any VoltDB server on port {port}: {'; '.join(errors)}"
            )
        return VoltDBConnection(sessions, self.call_timeout_seconds)
