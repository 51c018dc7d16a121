"""
Validation of compiled chart configurations.

Validation is a pipeline of named rules. Each rule inspects the compiled
config, the target chart and the field assignment and yields zero or more
issues; errors make the result invalid, warnings never do.
"""
from collections import OrderedDict
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from plugboard.charts.models import (
    EncodingChannel,
    FactoryConfig,
    FieldAssignment,
    SemanticType,
    ValidationError,
    ValidationIssue,
    ValidationResult,
    ValidationWarning,
)
from plugboard.charts.plugins import ChartPlugin
from plugboard.common.logger import get_logger
from plugboard.registry.registry import PluginRegistry
from plugboard.sdk.models import QueryResult, ScalarType

logger = get_logger("config_validator")

ValidationRule = Callable[[Dict[str, Any], ChartPlugin, FieldAssignment], Iterable[ValidationIssue]]

REQUIRED_CHANNELS = (EncodingChannel.X_AXIS, EncodingChannel.Y_AXIS)

DATE_NATIVE_TYPES = {"date", "datetime", "timestamp", "timestamptz", "datetime64", "time"}


def required_channels(config, chart, assignment) -> Iterable[ValidationIssue]:
    for channel in REQUIRED_CHANNELS:
        if not assignment.is_assigned(channel):
            yield ValidationError(field=channel.value, message=f"{channel.value} field is required")


def axis_mapping_present(config, chart, assignment) -> Iterable[ValidationIssue]:
    # Only meaningful once the channel is assigned; missing channels are
    # reported by required_channels.
    if assignment.is_assigned(EncodingChannel.X_AXIS) and not (
        config.get("xField") or config.get("xAxis.field")
    ):
        yield ValidationError(
            field=EncodingChannel.X_AXIS.value,
            message=f"x-axis field mapping is missing for {chart.name}",
        )
    if assignment.is_assigned(EncodingChannel.Y_AXIS) and not (
        config.get("yField") or config.get("yAxis.field")
    ):
        yield ValidationError(
            field=EncodingChannel.Y_AXIS.value,
            message=f"y-axis field mapping is missing for {chart.name}",
        )


def pie_requirements(config, chart, assignment) -> Iterable[ValidationIssue]:
    if chart.chart_kind not in ("pie", "doughnut"):
        return
    if not assignment.is_assigned(EncodingChannel.CATEGORY):
        yield ValidationError(field="category", message=f"{chart.chart_kind} charts require a category field")
    if not assignment.is_assigned(EncodingChannel.VALUE):
        yield ValidationError(field="value", message=f"{chart.chart_kind} charts require a value field")


def scatter_numeric_axes(config, chart, assignment) -> Iterable[ValidationIssue]:
    if chart.chart_kind not in ("scatter", "bubble"):
        return
    for channel in REQUIRED_CHANNELS:
        for field in assignment.fields(channel):
            if field.type != SemanticType.NUMBER:
                yield ValidationWarning(
                    field=channel.value,
                    message=f"{chart.chart_kind} charts work best with a numeric {channel.value} ('{field.name}' is {field.type.value})",
                    severity="medium",
                )


def line_ordered_x(config, chart, assignment) -> Iterable[ValidationIssue]:
    if chart.chart_kind not in ("line", "area"):
        return
    x_field = assignment.first(EncodingChannel.X_AXIS)
    if x_field is not None and x_field.type not in (SemanticType.DATE, SemanticType.NUMBER):
        yield ValidationWarning(
            field=EncodingChannel.X_AXIS.value,
            message=f"{chart.chart_kind} charts expect a date or numeric x-axis ('{x_field.name}' is {x_field.type.value})",
            severity="medium",
        )


def unchecked_passthrough(config, chart, assignment) -> Iterable[ValidationIssue]:
    for key in config:
        if "." in key and key not in chart.config_schema:
            yield ValidationWarning(
                field=key,
                message=f"'{key}' is not declared by {chart.name} and was passed through unchecked",
                severity="low",
            )


DEFAULT_RULES: "OrderedDict[str, ValidationRule]" = OrderedDict(
    [
        ("required_channels", required_channels),
        ("axis_mapping_present", axis_mapping_present),
        ("pie_requirements", pie_requirements),
        ("scatter_numeric_axes", scatter_numeric_axes),
        ("line_ordered_x", line_ordered_x),
        ("unchecked_passthrough", unchecked_passthrough),
    ]
)


class ChartConfigValidator:
    """Runs the rule pipeline against compiled configurations.

    Args:
        registry: Chart registry used to resolve backends given by name.
    """

    def __init__(self, registry: Optional[PluginRegistry] = None):
        self._registry = registry
        self._rules: "OrderedDict[str, ValidationRule]" = OrderedDict(DEFAULT_RULES)

    @property
    def rule_names(self) -> List[str]:
        return list(self._rules)

    def add_rule(self, name: str, rule: ValidationRule) -> None:
        if name in self._rules:
            raise ValueError(f"Validation rule '{name}' already exists")
        self._rules[name] = rule

    def remove_rule(self, name: str) -> None:
        self._rules.pop(name, None)

    def validate(
        self,
        factory_config: Union[FactoryConfig, Mapping[str, Any]],
        target_backend: Union[str, ChartPlugin],
        field_assignment: Union[FieldAssignment, Mapping[Any, Any], None] = None,
    ) -> ValidationResult:
        chart = self._resolve(target_backend)
        if not isinstance(field_assignment, FieldAssignment):
            field_assignment = FieldAssignment.from_mapping(field_assignment)
        config = dict(factory_config.values if isinstance(factory_config, FactoryConfig) else factory_config)

        issues: List[ValidationIssue] = []
        for rule in self._rules.values():
            issues.extend(rule(config, chart, field_assignment))

        result = ValidationResult.from_issues(issues)
        if not result.valid:
            logger.info(
                f"Config for {chart.name} is invalid: {[error.message for error in result.errors]}"
            )
        return result

    def _resolve(self, target_backend: Union[str, ChartPlugin]) -> ChartPlugin:
        if isinstance(target_backend, ChartPlugin):
            return target_backend
        if self._registry is None:
            raise ValueError("A chart registry is required to resolve backends by name")
        return self._registry.get(target_backend)


def _is_date_column(column) -> bool:
    native = (column.native_type or "").lower()
    return native in DATE_NATIVE_TYPES or any(token in native for token in ("date", "time"))


def validate_data_compatibility(chart: ChartPlugin, query_result: QueryResult) -> ValidationResult:
    """Checks that a query result has the shape ``chart`` needs.

    An empty result's columns are unknown, so only the empty-data error is
    reported for it.
    """
    issues: List[ValidationIssue] = []
    if query_result.row_count == 0 or not query_result.rows:
        issues.append(ValidationError(field="data", message="Query returned no data"))
        return ValidationResult.from_issues(issues)

    column_count = len(query_result.columns)
    minimum = {"pie": 2, "doughnut": 2, "scatter": 2, "bubble": 2, "heatmap": 3}.get(chart.chart_kind)
    if minimum is not None and column_count < minimum:
        issues.append(
            ValidationError(
                field="columns",
                message=f"{chart.chart_kind} charts need at least {minimum} columns, got {column_count}",
            )
        )

    if chart.chart_kind in ("line", "area"):
        has_date = any(
            _is_date_column(col) for col in query_result.columns if col.type == ScalarType.STRING
        )
        if not has_date:
            issues.append(
                ValidationWarning(
                    field="columns",
                    message=f"{chart.chart_kind} charts usually need a date column; none found",
                    severity="medium",
                )
            )
    return ValidationResult.from_issues(issues)
