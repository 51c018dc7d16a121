"""
Chart configuration compiler.

Turns a UI-level description of a chart (field assignments, aggregations,
filters and custom settings) into the flat key/value FactoryConfig a
chart-library backend understands. Compilation runs five stages in a fixed
order; each stage only adds or overwrites keys, so later stages win.
"""
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from plugboard.charts.models import (
    AggregationSetting,
    EncodingChannel,
    FactoryConfig,
    FieldAssignment,
    FilterConfig,
    FilterRule,
)
from plugboard.charts.plugins import ChartPlugin
from plugboard.common.logger import get_logger
from plugboard.registry.registry import PluginRegistry

logger = get_logger("config_compiler")

DEFAULT_PALETTE: Tuple[str, ...] = (
    "#1f77b4", "#ff7f0e", "#2ca02c", "#d62728", "#9467bd",
    "#8c564b", "#e377c2", "#7f7f7f", "#bcbd22", "#17becf",
)

# Target keys written for each channel. A channel is recognized by a chart
# when at least one of its keys is declared in the chart's schema.
CHANNEL_KEYS: Dict[EncodingChannel, Tuple[str, ...]] = {
    EncodingChannel.X_AXIS: ("xAxis.field", "xField"),
    EncodingChannel.Y_AXIS: ("yAxis.field", "yField"),
    EncodingChannel.SERIES: ("series.field", "seriesField"),
    EncodingChannel.CATEGORY: ("labelField", "categoryField"),
    EncodingChannel.VALUE: ("valueField",),
    EncodingChannel.SIZE: ("sizeField",),
    EncodingChannel.COLOR: ("colorField",),
}

# Channels that accept several fields (emitted as a list when more than one)
MULTI_FIELD_CHANNELS = {EncodingChannel.Y_AXIS}

Aggregations = Mapping[str, Union[AggregationSetting, Dict[str, Any]]]
Filters = Union[FilterConfig, Dict[str, Any], None]


def map_fields(config: Dict[str, Any], chart: ChartPlugin, assignment: FieldAssignment) -> None:
    schema = chart.config_schema
    for channel, keys in CHANNEL_KEYS.items():
        fields = assignment.fields(channel)
        if not fields:
            continue
        targets = [key for key in keys if key in schema]
        if not targets:
            logger.debug(f"{chart.name} does not recognize channel '{channel.value}'")
            continue

        names = [field.name for field in fields]
        if len(names) > 1 and channel not in MULTI_FIELD_CHANNELS:
            logger.debug(f"{chart.name}: channel '{channel.value}' takes one field, using '{names[0]}'")
        value: Any = names if len(names) > 1 and channel in MULTI_FIELD_CHANNELS else names[0]
        for key in targets:
            config[key] = list(value) if isinstance(value, list) else value


def map_aggregations(config: Dict[str, Any], aggregations: Aggregations) -> None:
    for field_name, setting in aggregations.items():
        if not isinstance(setting, AggregationSetting):
            setting = AggregationSetting.model_validate(setting)
        if setting.aggregation:
            config[f"{field_name}.aggregation"] = setting.aggregation
        if setting.group_by:
            config["groupBy"] = list(setting.group_by)


def _is_enabled(rule: Union[FilterRule, Mapping[str, Any]]) -> bool:
    if isinstance(rule, FilterRule):
        return rule.enabled
    return rule.get("enabled", True) is not False


def map_filters(config: Dict[str, Any], filters: Filters) -> None:
    if filters is None:
        return
    raw_rules = filters.rules if isinstance(filters, FilterConfig) else (filters.get("rules") or [])
    if not raw_rules:
        return
    # Disabled rules are dropped before they are validated
    rules = [
        rule if isinstance(rule, FilterRule) else FilterRule.model_validate(rule)
        for rule in raw_rules
        if _is_enabled(rule)
    ]
    config["filters"] = [
        {
            "field": rule.field_name,
            "operator": rule.operator,
            "value": rule.value,
            "type": rule.field_type,
        }
        for rule in rules
    ]


def map_custom(
    config: Dict[str, Any],
    chart: ChartPlugin,
    custom: Mapping[str, Any],
    unchecked: List[str],
) -> None:
    schema = chart.config_schema
    for key, value in custom.items():
        if key in schema:
            config[key] = value
        elif "." in key:
            config[key] = value
            unchecked.append(key)

    # Well-known UI settings with library-specific spellings
    if custom.get("title"):
        config["title"] = custom["title"]
    if custom.get("colors") is not None:
        config["colors"] = list(custom["colors"])
        config["color"] = list(custom["colors"])
    if custom.get("showLegend") is not None:
        config["legend.show"] = custom["showLegend"]
        config["showLegend"] = custom["showLegend"]
    if custom.get("showGrid") is not None:
        config["grid.show"] = custom["showGrid"]
        config["showGrid"] = custom["showGrid"]
    if custom.get("xAxisLabel"):
        config["xAxis.label"] = custom["xAxisLabel"]
    if custom.get("yAxisLabel"):
        config["yAxis.label"] = custom["yAxisLabel"]
    if custom.get("width"):
        config["width"] = custom["width"]
    if custom.get("height"):
        config["height"] = custom["height"]


def apply_defaults(config: Dict[str, Any], chart: ChartPlugin) -> None:
    for key, spec in chart.config_schema.properties.items():
        if spec.required and key not in config and spec.default is not None:
            config[key] = spec.default

    config.setdefault("animation", True)
    config.setdefault("responsive", True)
    if config.get("colors") is None:
        config["colors"] = list(DEFAULT_PALETTE)


def compile_factory_config(
    chart: ChartPlugin,
    field_assignment: Union[FieldAssignment, Mapping[Any, Any], None] = None,
    aggregations: Optional[Aggregations] = None,
    filters: Filters = None,
    custom_config: Optional[Mapping[str, Any]] = None,
) -> FactoryConfig:
    """Compiles UI-level chart settings into a FactoryConfig for ``chart``.

    Identical inputs always produce identical output (key order included).
    """
    if not isinstance(field_assignment, FieldAssignment):
        field_assignment = FieldAssignment.from_mapping(field_assignment)

    config: Dict[str, Any] = {}
    unchecked: List[str] = []

    map_fields(config, chart, field_assignment)
    map_aggregations(config, aggregations or {})
    map_filters(config, filters)
    map_custom(config, chart, custom_config or {}, unchecked)
    apply_defaults(config, chart)

    if unchecked:
        logger.info(f"{chart.name}: passing through unchecked keys {unchecked}")
    logger.debug(f"Compiled config for {chart.name}: {sorted(config)}")
    return FactoryConfig(backend=chart.name, values=config, unchecked_keys=unchecked)


class ConfigCompiler:
    """Resolves chart backends by name and compiles configs for them."""

    def __init__(self, registry: PluginRegistry):
        self._registry = registry

    def compile(
        self,
        target_backend: Union[str, ChartPlugin],
        field_assignment: Union[FieldAssignment, Mapping[Any, Any], None] = None,
        aggregations: Optional[Aggregations] = None,
        filters: Filters = None,
        custom_config: Optional[Mapping[str, Any]] = None,
    ) -> FactoryConfig:
        chart = self.resolve(target_backend)
        return compile_factory_config(chart, field_assignment, aggregations, filters, custom_config)

    def resolve(self, target_backend: Union[str, ChartPlugin]) -> ChartPlugin:
        if isinstance(target_backend, ChartPlugin):
            return target_backend
        return self._registry.get(target_backend)
