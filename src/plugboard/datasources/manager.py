"""
Connection lifecycle manager.

Validates configs, enforces each backend's connection ceiling, runs queries
under a caller-supplied timeout and keeps one circuit breaker per backend.
"""
from __future__ import annotations

import contextvars
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Any, Dict, Optional

import pybreaker

from plugboard.common.errors import (
    ConnectionClosed,
    ErrorCode,
    PlugboardError,
    QueryExecutionError,
    QueryTimeout,
    TooManyConnections,
    describe,
)
from plugboard.common.logger import current_trace_id, get_logger, trace_context
from plugboard.common.metrics import active_connections, query_duration_histogram, query_error_counter
from plugboard.common.resilience import TripClock, create_breaker
from plugboard.common.settings import settings
from plugboard.datasources.config_validation import validate_config
from plugboard.datasources.normalization import new_query_id
from plugboard.registry.registry import PluginRegistry
from plugboard.sdk.interfaces import DatasourcePlugin, QueryParams
from plugboard.sdk.models import Connection, QueryResult, SchemaInfo

logger = get_logger("connection_manager")


def _noop() -> None:
    return None


def _reraise(exc: BaseException) -> None:
    raise exc


def _record_outcome(breaker: pybreaker.CircuitBreaker, exc: Optional[BaseException] = None) -> None:
    """Replays a finished call's outcome through ``breaker`` for accounting only."""
    try:
        if exc is None:
            breaker.call(_noop)
        else:
            breaker.call(_reraise, exc)
    except pybreaker.CircuitBreakerError:
        # Still open, or the failed half-open trial re-opened it
        return
    except Exception:
        # The replayed failure itself; the caller re-raises it
        return


class ConnectionManager:
    """Front door for data-source operations.

    Args:
        registry: Data-source plugin registry.
        query_timeout_ms: Default timeout when ``execute_query`` gets none.
        max_workers: Threads available for timed query execution.
        breaker_fail_max: Consecutive failures before a backend's breaker opens.
        breaker_reset_timeout: Seconds an open breaker rejects calls.
    """

    def __init__(
        self,
        registry: PluginRegistry,
        query_timeout_ms: Optional[int] = None,
        max_workers: Optional[int] = None,
        breaker_fail_max: Optional[int] = None,
        breaker_reset_timeout: Optional[float] = None,
    ):
        self._registry = registry
        self.query_timeout_ms = query_timeout_ms or settings.default_query_timeout_ms
        self._breaker_fail_max = breaker_fail_max or settings.breaker_fail_max
        self._breaker_reset_timeout = breaker_reset_timeout or settings.breaker_reset_timeout

        self._lock = threading.Lock()
        self._active: Dict[str, int] = {}
        self._open: Dict[str, Connection] = {}
        self._breakers: Dict[str, pybreaker.CircuitBreaker] = {}
        self._trip_clocks: Dict[str, TripClock] = {}
        self._pool = ThreadPoolExecutor(
            max_workers=max_workers or settings.query_workers,
            thread_name_prefix="plugboard-query",
        )

    # -- lookup --------------------------------------------------------------

    def plugin(self, backend_name: str) -> DatasourcePlugin:
        return self._registry.get(backend_name)

    def active_connections(self, backend_name: str) -> int:
        with self._lock:
            return self._active.get(backend_name, 0)

    def breaker(self, backend_name: str) -> pybreaker.CircuitBreaker:
        with self._lock:
            breaker = self._breakers.get(backend_name)
            if breaker is None:
                clock = TripClock()
                breaker = create_breaker(
                    name=f"{backend_name.upper()}_BREAKER",
                    fail_max=self._breaker_fail_max,
                    reset_timeout=self._breaker_reset_timeout,
                    exclude=[ConnectionClosed, QueryTimeout],
                    throw_new_error_on_trip=False,
                    listeners=[clock],
                )
                self._breakers[backend_name] = breaker
                self._trip_clocks[backend_name] = clock
            return breaker

    # -- lifecycle -----------------------------------------------------------

    def connect(self, backend_name: str, config: Dict[str, Any]) -> Connection:
        """Opens a connection, reserving a slot under the backend's ceiling.

        Raises:
            UnknownBackend, InvalidConfig, TooManyConnections, ConnectFailed
        """
        plugin = self.plugin(backend_name)
        resolved = validate_config(plugin.name, plugin.config_schema, config)

        self._reserve(plugin)
        try:
            connection = plugin.connect(resolved)
        except Exception:
            self._release(plugin.name)
            raise

        with self._lock:
            self._open[connection.id] = connection
        active_connections.add(1, {"backend": plugin.name})
        return connection

    def test_connection(self, backend_name: str, config: Dict[str, Any]) -> bool:
        """True if the backend is reachable with ``config``. Never raises."""
        try:
            plugin = self.plugin(backend_name)
            resolved = validate_config(plugin.name, plugin.config_schema, config)
        except PlugboardError as e:
            logger.warning(f"Connection test for '{backend_name}' rejected: {e}")
            return False
        return plugin.test_connection(resolved)

    def disconnect(self, connection: Connection) -> None:
        """Closes ``connection`` and frees its slot. Idempotent."""
        with self._lock:
            tracked = self._open.pop(connection.id, None)
        if tracked is None and not connection.is_connected:
            return

        try:
            self.plugin(connection.backend).disconnect(connection)
        finally:
            if tracked is not None:
                self._release(connection.backend)
                active_connections.add(-1, {"backend": connection.backend})

    def close_all(self) -> None:
        with self._lock:
            connections = list(self._open.values())
        for connection in connections:
            try:
                self.disconnect(connection)
            except Exception as e:
                logger.error(f"Failed to close {connection.id}: {describe(e)}")

    def shutdown(self) -> None:
        self.close_all()
        self._pool.shutdown(wait=False)

    def __enter__(self) -> "ConnectionManager":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.shutdown()

    # -- queries -------------------------------------------------------------

    def execute_query(
        self,
        connection: Connection,
        query: Any,
        params: QueryParams = None,
        timeout_ms: Optional[int] = None,
    ) -> QueryResult:
        """Runs ``query`` and waits at most ``timeout_ms`` for its result.

        On timeout the plugin is asked to cancel, the connection stays open
        and QueryTimeout is raised. Log records for the query carry the
        caller's trace id, or a fresh one when none is set.

        Raises:
            ConnectionClosed, QueryExecutionError, QueryTimeout
        """
        plugin = self.plugin(connection.backend)
        if not connection.is_connected:
            raise ConnectionClosed(connection.id, backend=plugin.name)

        with trace_context(current_trace_id() or new_query_id(plugin.name)):
            return self._execute(plugin, connection, query, params, timeout_ms or self.query_timeout_ms)

    def _execute(
        self,
        plugin: DatasourcePlugin,
        connection: Connection,
        query: Any,
        params: QueryParams,
        timeout_ms: int,
    ) -> QueryResult:
        breaker = self.breaker(plugin.name)
        self._check_breaker(breaker, plugin.name)

        context = contextvars.copy_context()
        future = self._pool.submit(context.run, self._run_guarded, breaker, plugin, connection, query, params)
        try:
            result = future.result(timeout=timeout_ms / 1000)
        except FutureTimeoutError:
            future.cancel()
            self._cancel(plugin, connection)
            logger.error(f"Query on {connection.id} timed out after {timeout_ms} ms")
            query_error_counter.add(1, {"backend": plugin.name, "error_code": ErrorCode.QUERY_TIMEOUT.value})
            raise QueryTimeout(plugin.name, timeout_ms) from None
        except PlugboardError as e:
            query_error_counter.add(1, {"backend": plugin.name, "error_code": e.error_code.value})
            raise

        query_duration_histogram.record(result.execution_time_ms, {"backend": plugin.name})
        return result

    def get_schema(self, connection: Connection) -> SchemaInfo:
        plugin = self.plugin(connection.backend)
        return plugin.get_schema(connection)

    # -- internals -----------------------------------------------------------

    def _reserve(self, plugin: DatasourcePlugin) -> None:
        limit = plugin.capabilities.max_concurrent_connections
        with self._lock:
            current = self._active.get(plugin.name, 0)
            if current >= limit:
                logger.warning(f"Rejected connection to '{plugin.name}': {current}/{limit} in use")
                raise TooManyConnections(plugin.name, limit)
            self._active[plugin.name] = current + 1

    def _release(self, backend_name: str) -> None:
        with self._lock:
            self._active[backend_name] = max(0, self._active.get(backend_name, 0) - 1)

    def _check_breaker(self, breaker: pybreaker.CircuitBreaker, backend_name: str) -> None:
        # After reset_timeout the query itself is the half-open trial; its
        # replayed outcome closes or re-opens the breaker.
        if breaker.current_state != pybreaker.STATE_OPEN:
            return
        if not self._trip_clocks[backend_name].cooling_down(self._breaker_reset_timeout):
            return
        raise QueryExecutionError(
            f"Backend temporarily unavailable: circuit '{breaker.name}' is open",
            backend=backend_name,
            error_code=ErrorCode.SERVICE_UNAVAILABLE,
        )

    @staticmethod
    def _run_guarded(
        breaker: pybreaker.CircuitBreaker,
        plugin: DatasourcePlugin,
        connection: Connection,
        query: Any,
        params: QueryParams,
    ) -> QueryResult:
        # The native call runs outside the breaker; only its outcome is
        # replayed through it so no lock is held during I/O.
        try:
            result = plugin.execute_query(connection, query, params)
        except Exception as e:
            _record_outcome(breaker, e)
            raise
        _record_outcome(breaker)
        return result

    def _cancel(self, plugin: DatasourcePlugin, connection: Connection) -> None:
        try:
            plugin.cancel(connection)
        except Exception as e:
            logger.warning(f"Cancel on {connection.id} failed: {describe(e)}")
