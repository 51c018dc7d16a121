from typing import Any, Dict, List, NamedTuple

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
from plugboard.sdk.typemap import map_dynamodb_type

SCHEMA_NAME = "dynamodb"


class DynamoHandle(NamedTuple):
    client: Any
    deserializer: Any


class DynamoDBPlugin(BaseDatasourcePlugin):
    """
    Amazon DynamoDB via boto3.

    Queries are JSON operation descriptors whose ``params`` are passed
    straight to the boto3 call::

        {"type": "scan", "tableName": "orders", "params": {"Limit": 50}}
        {"type": "query", "tableName": "orders",
         "params": {"KeyConditionExpression": "pk = :pk",
                    "ExpressionAttributeValues": {":pk": {"S": "42"}}}}
    """

    name = "dynamodb"
    category = BackendCategory.CLOUD_NATIVE
    display_name = "Amazon DynamoDB"
    description = "Connect to Amazon DynamoDB tables"
    config_schema = ConfigSchema(
        properties={
            "region": ConfigField(type="string", title="AWS Region", required=True, default="us-east-1"),
            "access_key_id": ConfigField(type="string", title="Access Key ID", required=True),
            "secret_access_key": ConfigField(type="password", title="Secret Access Key", required=True),
            "endpoint_url": ConfigField(
                type="string",
                title="Endpoint URL",
                description="Custom endpoint, e.g. DynamoDB Local.",
                format="uri",
            ),
        },
        additional_properties=False,
    )
    capabilities = CapabilitySet(
        supports_bulk_insert=True,
        supports_transactions=True,
        max_concurrent_connections=50,
    )

    def _open(self, config: Dict[str, Any]) -> DynamoHandle:
        import boto3
        from boto3.dynamodb.types import TypeDeserializer

        client = boto3.client(
            "dynamodb",
            region_name=config["region"],
            aws_access_key_id=config["access_key_id"],
            aws_secret_access_key=config["secret_access_key"],
            endpoint_url=config.get("endpoint_url"),
        )
        return DynamoHandle(client=client, deserializer=TypeDeserializer())

    def _probe(self, connection: Connection) -> None:
        connection.client.client.list_tables(Limit=1)

    def _execute_native(self, connection: Connection, query: Any, params: QueryParams) -> List[Dict[str, Any]]:
        operation = parse_operation(query, "type")
        table_name = operation.get("tableName")
        if not table_name:
            raise ValueError("Operation descriptor is missing 'tableName'")
        call_params = dict(operation.get("params") or {})

        client = connection.client.client
        if operation["type"] == "scan":
            response = client.scan(TableName=table_name, **call_params)
        elif operation["type"] == "query":
            response = client.query(TableName=table_name, **call_params)
        else:
            raise ValueError(f"Unsupported operation: {operation['type']}")

        deserialize = connection.client.deserializer.deserialize
        return [
            {key: deserialize(value) for key, value in item.items()}
            for item in response.get("Items", [])
        ]

    def _list_containers(self, connection: Connection) -> List[ContainerRef]:
        client = connection.client.client
        names: List[str] = []
        kwargs: Dict[str, Any] = {}
        while True:
            page = client.list_tables(**kwargs)
            names.extend(page.get("TableNames", []))
            last = page.get("LastEvaluatedTableName")
            if not last:
                break
            kwargs["ExclusiveStartTableName"] = last
        return [ContainerRef(name=name, schema_name=SCHEMA_NAME) for name in names]

    def _read_columns(self, connection: Connection, container: ContainerRef) -> List[ColumnDescriptor]:
        table = connection.client.client.describe_table(TableName=container.name)["Table"]
        key_names = {key["AttributeName"] for key in table.get("KeySchema", [])}
        return [
            ColumnDescriptor(
                name=attr["AttributeName"],
                type=map_dynamodb_type(attr["AttributeType"]),
                nullable=attr["AttributeName"] not in key_names,
                native_type=attr["AttributeType"],
                is_primary_key=attr["AttributeName"] in key_names,
            )
            for attr in table.get("AttributeDefinitions", [])
        ]

    def _close(self, client: DynamoHandle) -> None:
        client.client.close()
