from typing import Any, Dict, List, NamedTuple
from urllib.parse import quote_plus

from plugboard.datasources.plugins.base import BaseDatasourcePlugin, parse_operation
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
from plugboard.sdk.typemap import infer_value_type, native_type_name

DEFAULT_FIND_LIMIT = 1000


class MongoHandle(NamedTuple):
    client: Any
    db: Any


class MongoDBPlugin(BaseDatasourcePlugin):
    """
    MongoDB via pymongo.

    Queries are JSON operation descriptors::

        {"collection": "users", "operation": "find", "filter": {...}, "limit": 10}
        {"collection": "users", "operation": "aggregate", "pipeline": [...]}
        {"collection": "users", "operation": "count", "filter": {...}}
    """

    name = "mongodb"
    category = BackendCategory.DOCUMENT
    display_name = "MongoDB"
    description = "Connect to MongoDB databases"
    config_schema = ConfigSchema(
        properties={
            "uri": ConfigField(
                type="string",
                title="Connection URI",
                description="Full mongodb:// URI; overrides host/port/credentials.",
            ),
            "host": ConfigField(type="string", title="Host", default="localhost"),
            "port": ConfigField(type="integer", title="Port", default=27017, minimum=1, maximum=65535),
            "database": ConfigField(type="string", title="Database", required=True),
            "username": ConfigField(type="string", title="Username"),
            "password": ConfigField(type="password", title="Password"),
            "auth_source": ConfigField(type="string", title="Auth Source", default="admin"),
            "ssl": ConfigField(type="boolean", title="Use SSL", default=False),
            "server_selection_timeout_ms": ConfigField(
                type="integer", title="Server Selection Timeout (ms)", default=5000, minimum=1
            ),
        },
        additional_properties=False,
    )
    capabilities = CapabilitySet(
        supports_bulk_insert=True,
        supports_transactions=True,
        max_concurrent_connections=100,
    )

    def build_uri(self, config: Dict[str, Any]) -> str:
        if config.get("uri"):
            return config["uri"]
        auth = ""
        if config.get("username") and config.get("password"):
            auth = f"{quote_plus(config['username'])}:{quote_plus(config['password'])}@"
        uri = f"mongodb://{auth}{config['host']}:{config['port']}/{config['database']}"
        options = [f"authSource={config.get('auth_source', 'admin')}"]
        if config.get("ssl"):
            options.append("tls=true")
        return uri + "?" + "&".join(options)

    def _open(self, config: Dict[str, Any]) -> MongoHandle:
        from pymongo import MongoClient

        client = MongoClient(
            self.build_uri(config),
            serverSelectionTimeoutMS=config.get("server_selection_timeout_ms", 5000),
        )
        try:
            client.admin.command("ping")
        except Exception:
            client.close()
            raise
        return MongoHandle(client=client, db=client[config["database"]])

    def _probe(self, connection: Connection) -> None:
        connection.client.db.command("ping")

    def _execute_native(self, connection: Connection, query: Any, params: QueryParams) -> List[Dict[str, Any]]:
        operation = parse_operation(query, "operation")
        collection = connection.client.db[operation["collection"]]
        kind = operation["operation"]

        if kind == "find":
            cursor = collection.find(operation.get("filter") or {}, operation.get("projection"))
            if operation.get("sort"):
                cursor = cursor.sort([tuple(item) for item in operation["sort"]])
            return list(cursor.limit(int(operation.get("limit", DEFAULT_FIND_LIMIT))))
        if kind == "aggregate":
            return list(collection.aggregate(operation.get("pipeline") or []))
        if kind == "count":
            return [{"count": collection.count_documents(operation.get("filter") or {})}]
        raise ValueError(f"Unsupported operation: {kind}")

    def _list_containers(self, connection: Connection) -> List[ContainerRef]:
        database = connection.config["database"]
        containers = []
        for info in connection.client.db.list_collections():
            if info["name"].startswith("system."):
                continue
            kind = "view" if info.get("type") == "view" else "table"
            containers.append(ContainerRef(name=info["name"], schema_name=database, kind=kind))
        return containers

    def _read_columns(self, connection: Connection, container: ContainerRef) -> List[ColumnDescriptor]:
        # Collections are schemaless; describe the shape of one sampled document
        sample = connection.client.db[container.name].find_one()
        if not sample:
            return []
        return [
            ColumnDescriptor(
                name=key,
                type=infer_value_type(value),
                nullable=key != "_id",
                native_type=native_type_name(value),
                is_primary_key=key == "_id",
            )
            for key, value in sample.items()
        ]

    def _close(self, client: MongoHandle) -> None:
        client.client.close()
