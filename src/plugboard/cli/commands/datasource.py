import json
import pathlib
from typing import Any, Optional

from rich.table import Table

from plugboard.cli.console import console, print_error, print_success, print_warning
from plugboard.configs import ConfigManager, DatasourceConfig
from plugboard.datasources import ConnectionManager
from plugboard.registry import create_datasource_registry
from plugboard.sdk.models import ViewDescriptor


def _profile(datasource_id: str, config_path: Optional[pathlib.Path]) -> DatasourceConfig:
    return ConfigManager().get_datasource(datasource_id, config_path)


def test_connection(datasource_id: str, config_path: Optional[pathlib.Path]) -> bool:
    profile = _profile(datasource_id, config_path)
    with ConnectionManager(create_datasource_registry()) as manager:
        ok = manager.test_connection(profile.backend, profile.connection)
    if ok:
        print_success(f"{datasource_id} ({profile.backend}) is reachable")
    else:
        print_error(f"{datasource_id} ({profile.backend}) is not reachable")
    return ok


def show_schema(datasource_id: str, config_path: Optional[pathlib.Path]) -> None:
    profile = _profile(datasource_id, config_path)
    with ConnectionManager(create_datasource_registry()) as manager:
        connection = manager.connect(profile.backend, profile.connection)
        try:
            info = manager.get_schema(connection)
        finally:
            manager.disconnect(connection)

    failed = {failure.container for failure in info.failures}
    for container in [*info.tables, *info.views]:
        kind = "view" if isinstance(container, ViewDescriptor) else "table"
        table = Table(title=f"{container.schema_name}.{container.name} ({kind})")
        table.add_column("Column", style="cyan")
        table.add_column("Type", style="magenta")
        table.add_column("Native Type", style="dim")
        table.add_column("Nullable")
        for col in container.columns:
            table.add_row(col.name, col.type.value, col.native_type or "", "yes" if col.nullable else "no")
        console.print(table)
        if container.name in failed:
            print_warning(f"Columns for {container.name} could not be read")

    if info.is_partial:
        print_warning(f"Schema is partial: {len(info.failures)} container(s) failed")


def run_query(
    datasource_id: str,
    query: str,
    config_path: Optional[pathlib.Path],
    timeout_ms: Optional[int],
    as_json: bool = False,
) -> None:
    profile = _profile(datasource_id, config_path)
    with ConnectionManager(create_datasource_registry()) as manager:
        connection = manager.connect(profile.backend, profile.connection)
        try:
            result = manager.execute_query(
                connection, query, timeout_ms=timeout_ms or profile.query_timeout_ms
            )
        finally:
            manager.disconnect(connection)

    if as_json:
        console.print_json(json.dumps(result.model_dump(), default=str))
        return

    table = Table(title=f"{result.row_count} row(s) in {result.execution_time_ms:.1f} ms")
    for col in result.columns:
        table.add_column(col.name)
    for row in result.rows:
        table.add_row(*[_cell(row.get(col.name)) for col in result.columns])
    console.print(table)


def _cell(value: Any) -> str:
    return "NULL" if value is None else str(value)
