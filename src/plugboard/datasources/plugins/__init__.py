from typing import List

from plugboard.sdk.interfaces import DatasourcePlugin

from .base import BaseDatasourcePlugin, parse_operation
from .cassandra import CassandraPlugin
from .dynamodb import DynamoDBPlugin
from .mongodb import MongoDBPlugin
from .mysql import MySQLPlugin
from .postgres import PostgresPlugin
from .relational import BaseSQLAlchemyPlugin
from .sqlite import SqlitePlugin


def builtin_datasources() -> List[DatasourcePlugin]:
    """Instances of every data-source plugin shipped with plugboard."""
    return [
        SqlitePlugin(),
        PostgresPlugin(),
        MySQLPlugin(),
        MongoDBPlugin(),
        CassandraPlugin(),
        DynamoDBPlugin(),
    ]


__all__ = [
    "BaseDatasourcePlugin",
    "BaseSQLAlchemyPlugin",
    "CassandraPlugin",
    "DynamoDBPlugin",
    "MongoDBPlugin",
    "MySQLPlugin",
    "PostgresPlugin",
    "SqlitePlugin",
    "builtin_datasources",
    "parse_operation",
]
