import json
import time
from collections.abc import Mapping
from abc import abstractmethod
from typing import Any, Dict, List

from plugboard.common.errors import (
    ConnectFailed,
    ConnectionClosed,
    PlugboardError,
    QueryExecutionError,
    describe,
)
from plugboard.common.logger import get_logger
from plugboard.datasources.config_validation import mask_config, validate_config
from plugboard.datasources.introspection import introspect
from plugboard.datasources.normalization import (
    NativeOutput,
    build_query_result,
    new_connection_id,
)
from plugboard.sdk.interfaces import DatasourcePlugin, QueryParams
from plugboard.sdk.models import (
    ColumnDescriptor,
    Connection,
    ContainerRef,
    QueryResult,
    SchemaInfo,
)

logger = get_logger("datasource")


def parse_operation(query: Any, key: str) -> Dict[str, Any]:
    """Decodes a JSON operation descriptor (string or mapping) for non-SQL backends.

    Raises:
        ValueError: if the query is not a JSON object or lacks ``key``.
    """
    if isinstance(query, Mapping):
        operation = dict(query)
    else:
        try:
            operation = json.loads(query)
        except (TypeError, json.JSONDecodeError) as e:
            raise ValueError(f"Query must be a JSON operation descriptor: {e}") from e
        if not isinstance(operation, dict):
            raise ValueError("Query must be a JSON object")
    if not operation.get(key):
        raise ValueError(f"Operation descriptor is missing '{key}'")
    return operation


class BaseDatasourcePlugin(DatasourcePlugin):
    """
    Base class for the built-in data-source plugins.

    Implements the connection lifecycle, result normalization, timing and
    error wrapping once; subclasses only provide the native hooks
    (``_open``, ``_execute_native``, ``_list_containers``, ``_read_columns``
    and optionally ``_probe``/``_close``).
    """

    def connect(self, config: Dict[str, Any]) -> Connection:
        resolved = validate_config(self.name, self.config_schema, config)
        try:
            client = self._open(resolved)
        except PlugboardError:
            raise
        except Exception as e:
            logger.error(f"Failed to connect to {self.name}: {describe(e)}")
            raise ConnectFailed(str(e), backend=self.name) from e

        connection = Connection(
            id=new_connection_id(self.name),
            backend=self.name,
            config=resolved,
            client=client,
        )
        logger.info(
            f"Opened connection {connection.id}",
            extra={"backend": self.name, "config": mask_config(self.config_schema, resolved)},
        )
        return connection

    def test_connection(self, config: Dict[str, Any]) -> bool:
        try:
            connection = self.connect(config)
        except Exception as e:
            logger.warning(f"Connection test for {self.name} failed: {describe(e)}")
            return False

        try:
            self._probe(connection)
            return True
        except Exception as e:
            logger.warning(f"Connection probe for {self.name} failed: {describe(e)}")
            return False
        finally:
            self.disconnect(connection)

    def execute_query(self, connection: Connection, query: Any, params: QueryParams = None) -> QueryResult:
        self._ensure_open(connection)

        start = time.perf_counter()
        try:
            output = self._execute_native(connection, query, params)
            elapsed_ms = (time.perf_counter() - start) * 1000
            result = build_query_result(output, elapsed_ms, backend=self.name)
        except PlugboardError:
            raise
        except Exception as e:
            logger.error(f"Query failed on {connection.id}: {describe(e)}")
            raise QueryExecutionError(str(e), backend=self.name) from e
        connection.touch()
        return result

    def get_schema(self, connection: Connection) -> SchemaInfo:
        self._ensure_open(connection)
        try:
            containers = list(self._list_containers(connection))
        except PlugboardError:
            raise
        except Exception as e:
            logger.error(f"Failed to enumerate containers for {connection.id}: {describe(e)}")
            raise QueryExecutionError(str(e), backend=self.name) from e

        info = introspect(containers, lambda ref: self._read_columns(connection, ref))
        if info.is_partial:
            logger.warning(
                f"Schema for {connection.id} is partial: "
                f"{len(info.failures)} of {len(containers)} containers unreadable"
            )
        connection.touch()
        return info

    def disconnect(self, connection: Connection) -> None:
        if not connection.is_connected:
            return
        try:
            self._close(connection.client)
        except Exception as e:
            logger.warning(f"Error while closing {connection.id}: {describe(e)}")
        finally:
            connection.mark_closed()
            connection.touch()
        logger.info(f"Closed connection {connection.id}")

    def _ensure_open(self, connection: Connection) -> None:
        if not connection.is_connected:
            raise ConnectionClosed(connection.id, backend=self.name)

    # -- native hooks --------------------------------------------------------

    @abstractmethod
    def _open(self, config: Dict[str, Any]) -> Any:
        """Creates the native client and verifies reachability."""

    def _probe(self, connection: Connection) -> None:
        """Cheap round trip on an open connection. Default: opening was enough."""
        return None

    @abstractmethod
    def _execute_native(self, connection: Connection, query: Any, params: QueryParams) -> NativeOutput:
        """Runs the query and fully materializes its rows."""

    @abstractmethod
    def _list_containers(self, connection: Connection) -> List[ContainerRef]:
        pass

    @abstractmethod
    def _read_columns(self, connection: Connection, container: ContainerRef) -> List[ColumnDescriptor]:
        pass

    def _close(self, client: Any) -> None:
        return None
