from typing import Any, Dict, List

from sqlalchemy import Engine, inspect
from sqlalchemy.engine import URL

from plugboard.datasources.plugins.relational import BaseSQLAlchemyPlugin
from plugboard.sdk.models import CapabilitySet, ConfigField, ConfigSchema

SYSTEM_SCHEMAS = {"information_schema", "pg_catalog", "pg_toast"}


class PostgresPlugin(BaseSQLAlchemyPlugin):
    name = "postgres"
    display_name = "PostgreSQL"
    description = "Connect to PostgreSQL databases"
    config_schema = ConfigSchema(
        properties={
            "host": ConfigField(type="string", title="Host", required=True),
            "port": ConfigField(type="integer", title="Port", default=5432, minimum=1, maximum=65535),
            "database": ConfigField(type="string", title="Database", required=True),
            "username": ConfigField(type="string", title="Username", required=True),
            "password": ConfigField(type="password", title="Password", required=True),
            "ssl": ConfigField(type="boolean", title="Use SSL", default=False),
            "statement_timeout_ms": ConfigField(
                type="integer",
                title="Statement Timeout (ms)",
                description="Server-side statement timeout; 0 disables it.",
                default=0,
                minimum=0,
            ),
        },
        additional_properties=False,
    )
    capabilities = CapabilitySet(
        supports_bulk_insert=True,
        supports_transactions=True,
        supports_stored_procedures=True,
        supports_streaming=True,
        max_concurrent_connections=100,
    )

    def build_url(self, config: Dict[str, Any]) -> URL:
        return URL.create(
            "postgresql+psycopg2",
            username=config["username"],
            password=config["password"],
            host=config["host"],
            port=config.get("port", 5432),
            database=config["database"],
        )

    def engine_options(self, config: Dict[str, Any]) -> Dict[str, Any]:
        connect_args: Dict[str, Any] = {}
        if config.get("ssl"):
            connect_args["sslmode"] = "require"
        if config.get("statement_timeout_ms"):
            connect_args["options"] = f"-c statement_timeout={int(config['statement_timeout_ms'])}"
        return {"pool_pre_ping": True, "connect_args": connect_args}

    def schema_names(self, engine: Engine) -> List[str]:
        return [
            schema
            for schema in inspect(engine).get_schema_names()
            if schema not in SYSTEM_SCHEMAS and not schema.startswith("pg_temp")
        ]
