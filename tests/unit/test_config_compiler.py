import pytest

from plugboard.charts import ConfigCompiler
from plugboard.charts.compiler import DEFAULT_PALETTE, compile_factory_config
from plugboard.charts.models import DatasetField, FieldAssignment
from plugboard.common.errors import UnknownBackend

FIELD_A = DatasetField(name="fieldA", type="string")
FIELD_B = DatasetField(name="fieldB", type="number")
FIELD_C = DatasetField(name="fieldC", type="number")


@pytest.fixture
def compiler(chart_registry):
    return ConfigCompiler(chart_registry)


def test_bar_chart_with_two_measures(compiler):
    """Verify that several y fields compile to a list and defaults are filled."""
    config = compiler.compile(
        "echarts-bar",
        {"x-axis": FIELD_A, "y-axis": [FIELD_B, FIELD_C]},
    )

    assert config.backend == "echarts-bar"
    assert config["xField"] == "fieldA"
    assert config["xAxis.field"] == "fieldA"
    assert config["yField"] == ["fieldB", "fieldC"]
    assert config["animation"] is True
    assert config["responsive"] is True
    assert config["colors"] == list(DEFAULT_PALETTE)
    assert config["horizontal"] is False


def test_single_field_and_one_element_list_are_equivalent(compiler):
    single = compiler.compile("echarts-bar", {"x-axis": FIELD_A, "y-axis": FIELD_B})
    listed = compiler.compile("echarts-bar", {"x-axis": [FIELD_A], "y-axis": [FIELD_B]})

    assert single.values == listed.values
    assert single["yField"] == "fieldB"


def test_compilation_is_deterministic(compiler):
    kwargs = dict(
        field_assignment={"x-axis": FIELD_A, "y-axis": [FIELD_B, FIELD_C], "series": FIELD_A},
        aggregations={"fieldB": {"aggregation": "sum", "groupBy": ["fieldA"]}},
        filters={"rules": [{"fieldName": "fieldB", "operator": "greater_than", "value": 10}]},
        custom_config={"title": "Sales", "stack": True},
    )

    first = compiler.compile("echarts-bar", **kwargs)
    second = compiler.compile("echarts-bar", **kwargs)

    assert first.to_json() == second.to_json()
    assert list(first.values) == list(second.values)


def test_unrecognized_channels_are_dropped(compiler):
    config = compiler.compile(
        "chartjs-line",
        {"x-axis": FIELD_A, "y-axis": FIELD_B, "size": FIELD_C},
    )

    assert "sizeField" not in config
    assert config["tension"] == 0


def test_pie_maps_category_and_value(compiler):
    config = compiler.compile(
        "echarts-pie",
        {"x-axis": FIELD_A, "y-axis": FIELD_B, "category": FIELD_A, "value": FIELD_B},
    )

    assert config["categoryField"] == "fieldA"
    assert config["labelField"] == "fieldA"
    assert config["valueField"] == "fieldB"
    assert config["radius"] == "70%"


def test_aggregations(compiler):
    config = compiler.compile(
        "echarts-bar",
        {"x-axis": FIELD_A, "y-axis": FIELD_B},
        aggregations={"fieldB": {"aggregation": "avg", "groupBy": ["fieldA"]}, "fieldC": {"aggregation": "count"}},
    )

    assert config["fieldB.aggregation"] == "avg"
    assert config["fieldC.aggregation"] == "count"
    assert config["groupBy"] == ["fieldA"]


def test_filters_keep_only_enabled_rules(compiler):
    filters = {
        "operator": "AND",
        "rules": [
            {"fieldName": "fieldB", "fieldType": "number", "operator": "between", "value": [1, 5]},
            {"fieldName": "fieldA", "operator": "equals", "value": "x", "enabled": False},
        ],
    }

    config = compiler.compile("echarts-bar", {"x-axis": FIELD_A, "y-axis": FIELD_B}, filters=filters)

    assert config["filters"] == [{"field": "fieldB", "operator": "between", "value": [1, 5], "type": "number"}]


def test_empty_filter_config_adds_nothing(compiler):
    config = compiler.compile("echarts-bar", {"x-axis": FIELD_A, "y-axis": FIELD_B}, filters={"rules": []})
    assert "filters" not in config


def test_aggregation_without_function_still_groups(compiler):
    config = compiler.compile(
        "echarts-bar",
        {"x-axis": FIELD_A, "y-axis": FIELD_B},
        aggregations={"fieldB": {"groupBy": ["fieldA"]}},
    )

    assert "fieldB.aggregation" not in config
    assert config["groupBy"] == ["fieldA"]


def test_disabled_rules_are_dropped_before_validation(compiler):
    filters = {
        "rules": [
            {"operator": "regex", "enabled": False},
            {"fieldName": "fieldA", "operator": "matches", "value": "^a"},
        ]
    }

    config = compiler.compile("echarts-bar", {"x-axis": FIELD_A, "y-axis": FIELD_B}, filters=filters)

    assert config["filters"] == [{"field": "fieldA", "operator": "matches", "value": "^a", "type": "string"}]


def test_explicit_empty_palette_is_kept(compiler):
    config = compiler.compile("echarts-bar", {"x-axis": FIELD_A, "y-axis": FIELD_B}, custom_config={"colors": []})

    assert config["colors"] == []
    assert config["color"] == []


def test_custom_settings_and_aliases(compiler):
    config = compiler.compile(
        "echarts-line",
        {"x-axis": FIELD_A, "y-axis": FIELD_B},
        custom_config={
            "title": "Revenue",
            "colors": ["#000", "#fff"],
            "showLegend": False,
            "showGrid": False,
            "xAxisLabel": "Month",
            "smooth": True,
            "notInSchema": 1,
        },
    )

    assert config["title"] == "Revenue"
    assert config["colors"] == ["#000", "#fff"]
    assert config["color"] == ["#000", "#fff"]
    assert config["legend.show"] is False
    assert config["grid.show"] is False
    assert config["xAxis.label"] == "Month"
    assert config["smooth"] is True
    assert "notInSchema" not in config


def test_dotted_custom_keys_pass_through_unchecked(compiler):
    config = compiler.compile(
        "echarts-bar",
        {"x-axis": FIELD_A, "y-axis": FIELD_B},
        custom_config={"tooltip.trigger": "axis", "barWidth": 12},
    )

    assert config["tooltip.trigger"] == "axis"
    assert config.unchecked_keys == ["tooltip.trigger"]
    assert config["barWidth"] == 12


def test_custom_values_override_defaults(compiler):
    config = compiler.compile(
        "plotly-scatter",
        {"x-axis": FIELD_B, "y-axis": FIELD_C},
        custom_config={"mode": "lines", "animation": False},
    )

    assert config["mode"] == "lines"
    assert config["animation"] is False


def test_unknown_target_backend(compiler):
    with pytest.raises(UnknownBackend):
        compiler.compile("vega-bar", {"x-axis": FIELD_A})


def test_compile_factory_config_with_field_assignment(chart_registry):
    chart = chart_registry.get("echarts-scatter")
    assignment = FieldAssignment.from_mapping({"x-axis": FIELD_B, "y-axis": FIELD_C, "size": FIELD_B, "color": None})

    config = compile_factory_config(chart, assignment)

    assert config["sizeField"] == "fieldB"
    assert "colorField" not in config
    assert config["symbolSize"] == 10
