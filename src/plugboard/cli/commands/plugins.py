from typing import Optional

from rich.table import Table

from plugboard.cli.console import console
from plugboard.registry import create_chart_registry, create_datasource_registry


def list_plugins(kind: Optional[str] = None, category: Optional[str] = None) -> None:
    """Displays registered data-source and chart backends."""
    registries = []
    if kind in (None, "datasource"):
        registries.append(("Data-source Backends", create_datasource_registry()))
    if kind in (None, "chart"):
        registries.append(("Chart Backends", create_chart_registry()))

    for title, registry in registries:
        plugins = registry.list(category)
        table = Table(title=title)
        table.add_column("Name", style="cyan", no_wrap=True)
        table.add_column("Category", style="magenta")
        table.add_column("Display Name")
        table.add_column("Version")
        table.add_column("Max Conn.", justify="right")
        table.add_column("Config Keys", style="dim")

        for plugin in sorted(plugins, key=lambda p: p.name):
            schema = plugin.config_schema
            keys = ", ".join(f"{k}*" if spec.required else k for k, spec in schema.properties.items())
            table.add_row(
                plugin.name,
                plugin.category.value,
                plugin.display_name,
                plugin.version,
                str(plugin.capabilities.max_concurrent_connections),
                keys,
            )
        console.print(table)
