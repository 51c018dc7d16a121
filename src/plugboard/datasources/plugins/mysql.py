from typing import Any, Dict

from sqlalchemy.engine import URL

from plugboard.datasources.plugins.relational import BaseSQLAlchemyPlugin
from plugboard.sdk.models import CapabilitySet, ConfigField, ConfigSchema


class MySQLPlugin(BaseSQLAlchemyPlugin):
    name = "mysql"
    display_name = "MySQL"
    description = "Connect to MySQL databases"
    config_schema = ConfigSchema(
        properties={
            "host": ConfigField(type="string", title="Host", required=True, default="localhost"),
            "port": ConfigField(type="integer", title="Port", default=3306, minimum=1, maximum=65535),
            "database": ConfigField(type="string", title="Database", required=True),
            "username": ConfigField(type="string", title="Username", required=True),
            "password": ConfigField(type="password", title="Password", required=True),
            "ssl": ConfigField(type="boolean", title="SSL", default=False),
            "connection_limit": ConfigField(
                type="integer", title="Connection Limit", default=10, minimum=1
            ),
        },
        additional_properties=False,
    )
    capabilities = CapabilitySet(
        supports_bulk_insert=True,
        supports_transactions=True,
        supports_stored_procedures=True,
        max_concurrent_connections=100,
    )

    def build_url(self, config: Dict[str, Any]) -> URL:
        return URL.create(
            "mysql+pymysql",
            username=config["username"],
            password=config["password"],
            host=config["host"],
            port=config.get("port", 3306),
            database=config["database"],
            query={"charset": "utf8mb4"},
        )

    def engine_options(self, config: Dict[str, Any]) -> Dict[str, Any]:
        connect_args: Dict[str, Any] = {}
        if config.get("ssl"):
            connect_args["ssl"] = {"check_hostname": True}
        return {
            "pool_pre_ping": True,
            "pool_size": int(config.get("connection_limit", 10)),
            "pool_recycle": 3600,
            "connect_args": connect_args,
        }
