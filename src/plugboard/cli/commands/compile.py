import pathlib
from typing import Optional

from plugboard.charts import ChartConfigValidator, ConfigCompiler
from plugboard.cli.console import console, print_error, print_success, print_warning
from plugboard.configs import ConfigManager
from plugboard.registry import create_chart_registry


def compile_chart(chart: Optional[str], spec_path: pathlib.Path) -> bool:
    """Compiles a YAML chart spec and prints the config plus its validation result."""
    spec = ConfigManager().load_chart_spec(spec_path)
    target = chart or spec.chart
    if not target:
        raise ValueError("No chart backend given: pass CHART or set 'chart' in the spec")

    registry = create_chart_registry()
    factory_config = ConfigCompiler(registry).compile(
        target,
        field_assignment=spec.fields,
        aggregations=spec.aggregations,
        filters=spec.filters,
        custom_config=spec.custom,
    )
    result = ChartConfigValidator(registry).validate(factory_config, target, spec.fields)

    console.print_json(factory_config.to_json())
    for warning in result.warnings:
        print_warning(f"[{warning.severity}] {warning.field}: {warning.message}")
    for error in result.errors:
        print_error(f"{error.field}: {error.message}")
    if result.valid:
        print_success(f"Configuration for {target} is valid")
    return result.valid
