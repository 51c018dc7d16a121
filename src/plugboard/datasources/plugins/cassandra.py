from typing import Any, Dict, List, NamedTuple

from plugboard.datasources.plugins.base import BaseDatasourcePlugin
from plugboard.sdk.capabilities import BackendCategory
from plugboard.sdk.interfaces import QueryParams
from plugboard.sdk.models import (
    CapabilitySet,
    ColumnDescriptor,
    ConfigField,
    ConfigSchema,
    Connection,
    ContainerRef,
)
from plugboard.sdk.typemap import map_cql_type


class CassandraHandle(NamedTuple):
    cluster: Any
    session: Any


class CassandraPlugin(BaseDatasourcePlugin):
    """Apache Cassandra via the DataStax driver. Queries are CQL strings."""

    name = "cassandra"
    category = BackendCategory.WIDE_COLUMN
    display_name = "Apache Cassandra"
    description = "Connect to Cassandra keyspaces"
    config_schema = ConfigSchema(
        properties={
            "hosts": ConfigField(type="array", title="Contact Points", required=True),
            "port": ConfigField(type="integer", title="Port", default=9042, minimum=1, maximum=65535),
            "keyspace": ConfigField(type="string", title="Keyspace", required=True),
            "username": ConfigField(type="string", title="Username"),
            "password": ConfigField(type="password", title="Password"),
            "request_timeout": ConfigField(
                type="number", title="Request Timeout (s)", default=10, minimum=0
            ),
        },
        additional_properties=False,
    )
    capabilities = CapabilitySet(
        supports_bulk_insert=True,
        supports_transactions=False,
        max_concurrent_connections=50,
    )

    def _open(self, config: Dict[str, Any]) -> CassandraHandle:
        from cassandra.auth import PlainTextAuthProvider
        from cassandra.cluster import Cluster
        from cassandra.query import dict_factory

        auth_provider = None
        if config.get("username") and config.get("password"):
            auth_provider = PlainTextAuthProvider(
                username=config["username"], password=config["password"]
            )

        cluster = Cluster(list(config["hosts"]), port=config["port"], auth_provider=auth_provider)
        try:
            session = cluster.connect(config["keyspace"])
        except Exception:
            cluster.shutdown()
            raise
        session.row_factory = dict_factory
        session.default_timeout = float(config.get("request_timeout", 10))
        return CassandraHandle(cluster=cluster, session=session)

    def _probe(self, connection: Connection) -> None:
        connection.client.session.execute("SELECT release_version FROM system.local")

    def _execute_native(self, connection: Connection, query: Any, params: QueryParams) -> List[Dict[str, Any]]:
        return list(connection.client.session.execute(str(query), params))

    def _keyspace(self, connection: Connection):
        name = connection.config["keyspace"]
        return connection.client.cluster.metadata.keyspaces[name]

    def _list_containers(self, connection: Connection) -> List[ContainerRef]:
        keyspace = self._keyspace(connection)
        containers = [
            ContainerRef(name=name, schema_name=keyspace.name) for name in keyspace.tables
        ]
        for name, view in keyspace.views.items():
            containers.append(
                ContainerRef(
                    name=name,
                    schema_name=keyspace.name,
                    kind="view",
                    definition=view.as_cql_query(),
                )
            )
        return containers

    def _read_columns(self, connection: Connection, container: ContainerRef) -> List[ColumnDescriptor]:
        keyspace = self._keyspace(connection)
        meta = keyspace.views[container.name] if container.kind == "view" else keyspace.tables[container.name]
        key_columns = {col.name for col in meta.primary_key}
        return [
            ColumnDescriptor(
                name=col.name,
                type=map_cql_type(col.cql_type),
                nullable=col.name not in key_columns,
                native_type=col.cql_type,
                is_primary_key=col.name in key_columns,
            )
            for col in meta.columns.values()
        ]

    def _close(self, client: CassandraHandle) -> None:
        client.session.shutdown()
        client.cluster.shutdown()
