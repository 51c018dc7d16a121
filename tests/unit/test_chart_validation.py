import pytest

from plugboard.charts import ChartConfigValidator, ConfigCompiler, validate_data_compatibility
from plugboard.charts.models import DatasetField, FactoryConfig, ValidationError, ValidationWarning
from plugboard.common.errors import ErrorCode, ValidationFailed
from plugboard.sdk.models import ColumnDescriptor, QueryResult, ScalarType

MONTH = DatasetField(name="month", type="date")
REGION = DatasetField(name="region", type="string")
SALES = DatasetField(name="sales", type="number")
UNITS = DatasetField(name="units", type="number")


@pytest.fixture
def compiler(chart_registry):
    return ConfigCompiler(chart_registry)


@pytest.fixture
def validator(chart_registry):
    return ChartConfigValidator(chart_registry)


def _compile_and_validate(compiler, validator, backend, fields, **kwargs):
    config = compiler.compile(backend, fields, **kwargs)
    return validator.validate(config, backend, fields)


def test_valid_bar_chart(compiler, validator):
    result = _compile_and_validate(compiler, validator, "echarts-bar", {"x-axis": REGION, "y-axis": [SALES, UNITS]})

    assert result.valid
    assert result.errors == []
    assert result.warnings == []


def test_missing_y_axis(compiler, validator):
    result = _compile_and_validate(compiler, validator, "echarts-bar", {"x-axis": REGION})

    assert result.valid is False
    assert [e.message for e in result.errors] == ["y-axis field is required"]
    assert result.errors[0].field == "y-axis"
    assert result.errors[0].severity == "error"


def test_missing_both_axes(compiler, validator):
    result = _compile_and_validate(compiler, validator, "chartjs-bar", {})
    assert {e.field for e in result.errors} == {"x-axis", "y-axis"}


def test_pie_requires_category_and_value(compiler, validator):
    result = _compile_and_validate(compiler, validator, "echarts-pie", {"x-axis": REGION, "y-axis": SALES})

    assert not result.valid
    assert {e.field for e in result.errors} == {"category", "value"}

    complete = _compile_and_validate(
        compiler,
        validator,
        "chartjs-doughnut",
        {"x-axis": REGION, "y-axis": SALES, "category": REGION, "value": SALES},
    )
    assert complete.valid


def test_line_chart_warns_on_categorical_x(compiler, validator):
    result = _compile_and_validate(compiler, validator, "echarts-line", {"x-axis": REGION, "y-axis": SALES})

    assert result.valid
    assert len(result.warnings) == 1
    assert result.warnings[0].severity == "medium"
    assert "region" in result.warnings[0].message


def test_line_chart_with_date_x_has_no_warning(compiler, validator):
    result = _compile_and_validate(compiler, validator, "chartjs-line", {"x-axis": MONTH, "y-axis": SALES})
    assert result.warnings == []


def test_scatter_warns_on_non_numeric_axes(compiler, validator):
    result = _compile_and_validate(compiler, validator, "plotly-scatter", {"x-axis": REGION, "y-axis": SALES})

    assert result.valid
    assert [w.field for w in result.warnings] == ["x-axis"]


def test_unchecked_keys_produce_low_warnings(compiler, validator):
    result = _compile_and_validate(
        compiler,
        validator,
        "echarts-bar",
        {"x-axis": REGION, "y-axis": SALES},
        custom_config={"tooltip.trigger": "axis"},
    )

    assert result.valid
    assert [(w.field, w.severity) for w in result.warnings] == [("tooltip.trigger", "low")]


def test_axis_mapping_checked_on_raw_config(validator):
    config = FactoryConfig(backend="echarts-bar", values={"yField": "sales"})

    result = validator.validate(config, "echarts-bar", {"x-axis": REGION, "y-axis": SALES})

    assert [e.message for e in result.errors] == ["x-axis field mapping is missing for echarts-bar"]


def test_raise_for_errors(compiler, validator):
    result = _compile_and_validate(compiler, validator, "echarts-bar", {"x-axis": REGION})

    with pytest.raises(ValidationFailed) as exc_info:
        result.raise_for_errors("echarts-bar")

    assert exc_info.value.error_code == ErrorCode.VALIDATION_FAILED
    assert exc_info.value.result is result


class TestRulePipeline:
    def test_custom_rule_runs_after_builtin_rules(self, compiler, validator):
        def max_title_length(config, chart, assignment):
            if len(config.get("title", "")) > 10:
                yield ValidationWarning(field="title", message="title is long", severity="low")

        validator.add_rule("max_title_length", max_title_length)
        result = _compile_and_validate(
            compiler,
            validator,
            "echarts-bar",
            {"x-axis": REGION, "y-axis": SALES},
            custom_config={"title": "Quarterly sales by region"},
        )

        assert validator.rule_names[-1] == "max_title_length"
        assert [w.message for w in result.warnings] == ["title is long"]

    def test_duplicate_rule_name_rejected(self, validator):
        with pytest.raises(ValueError):
            validator.add_rule("required_channels", lambda *args: [])

    def test_removed_rule_no_longer_runs(self, compiler, validator):
        validator.remove_rule("required_channels")
        validator.remove_rule("axis_mapping_present")

        result = _compile_and_validate(compiler, validator, "echarts-bar", {"x-axis": REGION})

        assert result.valid

    def test_rule_errors_make_result_invalid(self, compiler, validator):
        validator.add_rule("no_stacking", lambda config, chart, assignment: [ValidationError(field="stack", message="no")])

        result = _compile_and_validate(compiler, validator, "echarts-bar", {"x-axis": REGION, "y-axis": SALES})

        assert not result.valid

    def test_name_resolution_requires_registry(self):
        with pytest.raises(ValueError):
            ChartConfigValidator().validate({}, "echarts-bar", {})


class TestDataCompatibility:
    def _result(self, rows, columns):
        return QueryResult(rows=rows, columns=columns, row_count=len(rows), query_id="q-1")

    def test_empty_data_is_an_error(self, chart_registry):
        result = validate_data_compatibility(chart_registry.get("echarts-bar"), self._result([], []))

        assert not result.valid
        assert [e.field for e in result.errors] == ["data"]

    def test_heatmap_needs_three_columns(self, chart_registry):
        columns = [ColumnDescriptor(name="x", type=ScalarType.STRING), ColumnDescriptor(name="v", type=ScalarType.NUMBER)]
        result = validate_data_compatibility(
            chart_registry.get("echarts-heatmap"), self._result([{"x": "a", "v": 1}], columns)
        )

        assert not result.valid
        assert "at least 3 columns" in result.errors[0].message

    def test_line_without_date_column_warns(self, chart_registry):
        columns = [ColumnDescriptor(name="region", type=ScalarType.STRING, native_type="str")]
        result = validate_data_compatibility(chart_registry.get("echarts-line"), self._result([{"region": "eu"}], columns))

        assert result.valid
        assert result.warnings[0].severity == "medium"

    def test_line_with_date_column(self, chart_registry):
        columns = [
            ColumnDescriptor(name="day", type=ScalarType.STRING, native_type="datetime"),
            ColumnDescriptor(name="sales", type=ScalarType.NUMBER, native_type="float"),
        ]
        result = validate_data_compatibility(
            chart_registry.get("chartjs-line"), self._result([{"day": "2024-01-01", "sales": 1.0}], columns)
        )

        assert result.valid
        assert result.warnings == []
