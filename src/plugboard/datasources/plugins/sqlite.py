from typing import Any, Dict, List

from sqlalchemy import Engine, event
from sqlalchemy.pool import StaticPool

from plugboard.datasources.plugins.relational import BaseSQLAlchemyPlugin
from plugboard.sdk.models import CapabilitySet, ConfigField, ConfigSchema

MEMORY = ":memory:"

_URI_MODES = {"readonly": "ro", "readwrite": "rw", "create": "rwc"}


class SqlitePlugin(BaseSQLAlchemyPlugin):
    """SQLite database files, opened through SQLAlchemy's pysqlite dialect."""

    name = "sqlite"
    display_name = "SQLite"
    description = "Connect to SQLite database files"
    config_schema = ConfigSchema(
        properties={
            "filename": ConfigField(type="string", title="Database File Path", required=True),
            "mode": ConfigField(
                type="select",
                title="Open Mode",
                enum=["readonly", "readwrite", "create"],
                default="readwrite",
            ),
            "timeout": ConfigField(type="number", title="Timeout (ms)", default=5000, minimum=0),
        },
        additional_properties=False,
    )
    capabilities = CapabilitySet(
        supports_bulk_insert=True,
        supports_transactions=True,
        supports_stored_procedures=False,
        max_concurrent_connections=1,
    )

    def build_url(self, config: Dict[str, Any]) -> str:
        filename = config["filename"]
        if filename == MEMORY:
            return "sqlite://"
        mode = _URI_MODES[config.get("mode", "readwrite")]
        return f"sqlite:///file:{filename}?mode={mode}&uri=true"

    def engine_options(self, config: Dict[str, Any]) -> Dict[str, Any]:
        options: Dict[str, Any] = {
            "connect_args": {
                # Queries run on the manager's worker threads
                "check_same_thread": False,
                "timeout": float(config.get("timeout", 5000)) / 1000,
            },
        }
        if config["filename"] == MEMORY:
            options["poolclass"] = StaticPool
        return options

    def schema_names(self, engine: Engine) -> List[str]:
        return ["main"]

    def prepare_engine(self, engine: Engine) -> None:
        @event.listens_for(engine, "connect")
        def _enable_foreign_keys(dbapi_conn, _record):
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys = ON")
            cursor.close()
