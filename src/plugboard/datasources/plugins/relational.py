from abc import abstractmethod
from collections.abc import Mapping
from typing import Any, Dict, List, Union

from sqlalchemy import Engine, create_engine, inspect, text
from sqlalchemy.engine import URL

from plugboard.common.logger import get_logger
from plugboard.datasources.normalization import NativeResult
from plugboard.datasources.plugins.base import BaseDatasourcePlugin
from plugboard.sdk.capabilities import BackendCategory
from plugboard.sdk.interfaces import QueryParams
from plugboard.sdk.models import ColumnDescriptor, Connection, ContainerRef
from plugboard.sdk.typemap import map_sql_type

logger = get_logger("relational")


class BaseSQLAlchemyPlugin(BaseDatasourcePlugin):
    """
    Base class for relational plugins backed by a SQLAlchemy engine.

    The engine is the native client; every query checks a connection out of
    its pool for the duration of one statement.
    """

    category = BackendCategory.RELATIONAL

    @abstractmethod
    def build_url(self, config: Dict[str, Any]) -> Union[str, URL]:
        pass

    def engine_options(self, config: Dict[str, Any]) -> Dict[str, Any]:
        return {"pool_pre_ping": True}

    def schema_names(self, engine: Engine) -> List[str]:
        return [inspect(engine).default_schema_name]

    def prepare_engine(self, engine: Engine) -> None:
        """Hook for dialect event listeners, run before the first checkout."""
        return None

    def _open(self, config: Dict[str, Any]) -> Engine:
        engine = create_engine(self.build_url(config), **self.engine_options(config))
        self.prepare_engine(engine)
        try:
            with engine.connect():
                pass
        except Exception:
            engine.dispose()
            raise
        return engine

    def _probe(self, connection: Connection) -> None:
        with connection.client.connect() as conn:
            conn.execute(text("SELECT 1"))

    def _execute_native(self, connection: Connection, query: Any, params: QueryParams) -> NativeResult:
        engine: Engine = connection.client
        with engine.begin() as conn:
            if params is not None and not isinstance(params, Mapping):
                # Positional parameters go to the DBAPI as-is
                result = conn.exec_driver_sql(str(query), tuple(params))
            else:
                result = conn.execute(text(str(query)), dict(params or {}))

            if result.returns_rows:
                return NativeResult(rows=[dict(row) for row in result.mappings()])
            return NativeResult(rows=[], affected_rows=result.rowcount)

    def _list_containers(self, connection: Connection) -> List[ContainerRef]:
        engine: Engine = connection.client
        inspector = inspect(engine)
        containers: List[ContainerRef] = []
        for schema in self.schema_names(engine):
            for table_name in inspector.get_table_names(schema=schema):
                containers.append(ContainerRef(name=table_name, schema_name=schema))
            for view_name in inspector.get_view_names(schema=schema):
                try:
                    definition = inspector.get_view_definition(view_name, schema=schema) or ""
                except Exception as e:
                    logger.warning(f"No definition for view {schema}.{view_name}: {e}")
                    definition = ""
                containers.append(
                    ContainerRef(name=view_name, schema_name=schema, kind="view", definition=definition)
                )
        return containers

    def _read_columns(self, connection: Connection, container: ContainerRef) -> List[ColumnDescriptor]:
        inspector = inspect(connection.client)
        columns = []
        for col_info in inspector.get_columns(container.name, schema=container.schema_name):
            native = str(col_info["type"])
            columns.append(
                ColumnDescriptor(
                    name=col_info["name"],
                    type=map_sql_type(native),
                    nullable=bool(col_info.get("nullable", True)),
                    default_value=col_info.get("default"),
                    native_type=native,
                    is_primary_key=bool(col_info.get("primary_key", False)),
                )
            )
        return columns

    def _close(self, client: Engine) -> None:
        client.dispose()
