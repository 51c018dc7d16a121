"""Command line interface for plugboard backends."""
import pathlib
from contextlib import contextmanager
from typing import Optional

import typer
from typing_extensions import Annotated

from plugboard.cli.commands.compile import compile_chart
from plugboard.cli.commands.datasource import run_query, show_schema, test_connection
from plugboard.cli.commands.plugins import list_plugins
from plugboard.cli.console import print_error
from plugboard.common.errors import PlugboardError
from plugboard.common.logger import configure_logging
from plugboard.common.metrics import configure_metrics
from plugboard.common.settings import settings

app = typer.Typer(
    name="plugboard",
    help="Pluggable data-source and chart backends.",
    no_args_is_help=True,
    add_completion=False,
)

ConfigOption = Annotated[Optional[pathlib.Path], typer.Option("--config", help="Path to datasource config YAML")]


@contextmanager
def _errors_to_exit():
    """Turns expected failures into a red message and exit code 1."""
    try:
        yield
    except (PlugboardError, FileNotFoundError, KeyError, ValueError) as e:
        message = e.args[0] if isinstance(e, KeyError) and e.args else str(e)
        print_error(message)
        raise typer.Exit(code=1) from e


@app.callback()
def global_callback(
    env: Annotated[Optional[str], typer.Option("--env", "-e", help="Environment name; loads .env.<name>.")] = None,
    log_level: Annotated[Optional[str], typer.Option("--log-level", help="Logging level (DEBUG, INFO, ...)")] = None,
    json_logs: Annotated[Optional[bool], typer.Option("--json-logs/--text-logs", help="Emit JSON log records")] = None,
):
    """plugboard CLI entry point."""
    if env:
        settings.configure_env(env)
    configure_logging(
        level=log_level or settings.log_level,
        json_format=settings.log_json if json_logs is None else json_logs,
    )
    configure_metrics(settings.observability_exporter, settings.otlp_endpoint)


@app.command()
def plugins(
    kind: Annotated[Optional[str], typer.Option(help="Only 'datasource' or 'chart' backends")] = None,
    category: Annotated[Optional[str], typer.Option(help="Filter by category, e.g. relational")] = None,
):
    """List registered backends."""
    if kind not in (None, "datasource", "chart"):
        raise typer.BadParameter("kind must be 'datasource' or 'chart'", param_hint="--kind")
    list_plugins(kind, category)


@app.command("test-connection")
def test_connection_cmd(
    datasource_id: Annotated[str, typer.Argument(help="Datasource profile id")],
    config: ConfigOption = None,
):
    """Check that a configured datasource is reachable."""
    with _errors_to_exit():
        ok = test_connection(datasource_id, config)
    if not ok:
        raise typer.Exit(code=1)


@app.command()
def schema(
    datasource_id: Annotated[str, typer.Argument(help="Datasource profile id")],
    config: ConfigOption = None,
):
    """Introspect tables, views and columns of a datasource."""
    with _errors_to_exit():
        show_schema(datasource_id, config)


@app.command()
def query(
    datasource_id: Annotated[str, typer.Argument(help="Datasource profile id")],
    native_query: Annotated[str, typer.Argument(metavar="QUERY", help="SQL, CQL or a JSON operation descriptor")],
    config: ConfigOption = None,
    timeout_ms: Annotated[Optional[int], typer.Option("--timeout-ms", help="Query timeout in milliseconds")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print the canonical result as JSON")] = False,
):
    """Run a native query and print the rows."""
    with _errors_to_exit():
        run_query(datasource_id, native_query, config, timeout_ms, as_json)


@app.command("compile")
def compile_cmd(
    spec: Annotated[pathlib.Path, typer.Option("--spec", help="YAML chart spec (fields, aggregations, filters, custom)")],
    chart: Annotated[Optional[str], typer.Argument(help="Chart backend, e.g. echarts-bar")] = None,
):
    """Compile a chart spec into a backend configuration and validate it."""
    with _errors_to_exit():
        valid = compile_chart(chart, spec)
    if not valid:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
