"""
Chart-library backends.

A chart plugin is pure metadata: its config schema lists the keys the
rendering library understands, which drives both compilation (which
channels are recognized, which custom keys are admitted, which defaults
apply) and validation.
"""
from typing import Dict, List, Literal, Optional

from plugboard.sdk.capabilities import BackendCategory, BackendKind
from plugboard.sdk.interfaces import BackendPlugin
from plugboard.sdk.models import CapabilitySet, ConfigField, ConfigSchema

ChartKind = Literal["bar", "line", "area", "pie", "doughnut", "scatter", "bubble", "heatmap"]


class ChartPlugin(BackendPlugin):
    kind = BackendKind.CHART
    category = BackendCategory.CHART_LIBRARY

    def __init__(
        self,
        name: str,
        library: str,
        chart_kind: ChartKind,
        display_name: str,
        config_schema: ConfigSchema,
        description: Optional[str] = None,
        version: str = "1.0.0",
    ):
        self.name = name
        self.library = library
        self.chart_kind = chart_kind
        self.display_name = display_name
        self.config_schema = config_schema
        self.description = description
        self.version = version
        self.capabilities = CapabilitySet()


def _field(title: str, required: bool = False) -> ConfigField:
    return ConfigField(type="string", title=title, required=required)


def _axes(x_title: str = "X-Axis Field", y_title: str = "Y-Axis Field") -> Dict[str, ConfigField]:
    return {
        "xField": _field(x_title, required=True),
        "yField": _field(y_title, required=True),
        "xAxis.field": _field(x_title),
        "yAxis.field": _field(y_title),
        "xAxis.label": _field("X-Axis Label"),
        "yAxis.label": _field("Y-Axis Label"),
    }


_COMMON: Dict[str, ConfigField] = {
    "title": _field("Title"),
    "colors": ConfigField(type="array", title="Color Palette"),
    "color": ConfigField(type="array", title="Series Colors"),
    "showLegend": ConfigField(type="boolean", title="Show Legend", default=True),
    "legend.show": ConfigField(type="boolean", title="Show Legend", default=True),
    "animation": ConfigField(type="boolean", title="Animation", default=True),
    "responsive": ConfigField(type="boolean", title="Responsive", default=True),
    "width": ConfigField(type="number", title="Width", minimum=0),
    "height": ConfigField(type="number", title="Height", minimum=0),
}

_GRID: Dict[str, ConfigField] = {
    "showGrid": ConfigField(type="boolean", title="Show Grid", default=True),
    "grid.show": ConfigField(type="boolean", title="Show Grid", default=True),
}


def _schema(*parts: Dict[str, ConfigField]) -> ConfigSchema:
    properties: Dict[str, ConfigField] = {}
    for part in parts:
        properties.update(part)
    return ConfigSchema(properties=properties)


def builtin_charts() -> List[ChartPlugin]:
    """Descriptors for every chart type shipped with plugboard."""
    return [
        ChartPlugin(
            name="echarts-bar",
            library="echarts",
            chart_kind="bar",
            display_name="ECharts Bar",
            description="Vertical or horizontal bar chart",
            config_schema=_schema(
                _axes("Category Axis Field", "Value Axis Field"),
                _COMMON,
                _GRID,
                {
                    "seriesField": _field("Series Field"),
                    "series.field": _field("Series Field"),
                    "colorField": _field("Color Field"),
                    "horizontal": ConfigField(type="boolean", title="Horizontal", required=True, default=False),
                    "stack": ConfigField(type="boolean", title="Stacked", default=False),
                    "barWidth": ConfigField(type="number", title="Bar Width", minimum=0),
                },
            ),
        ),
        ChartPlugin(
            name="echarts-line",
            library="echarts",
            chart_kind="line",
            display_name="ECharts Line",
            description="Line chart for trends over an ordered axis",
            config_schema=_schema(
                _axes("Time/Category Field", "Value Field"),
                _COMMON,
                _GRID,
                {
                    "seriesField": _field("Series Field"),
                    "series.field": _field("Series Field"),
                    "smooth": ConfigField(type="boolean", title="Smooth Lines", required=True, default=False),
                    "areaStyle": ConfigField(type="boolean", title="Fill Area", default=False),
                    "showSymbol": ConfigField(type="boolean", title="Show Points", default=True),
                },
            ),
        ),
        ChartPlugin(
            name="echarts-pie",
            library="echarts",
            chart_kind="pie",
            display_name="ECharts Pie",
            description="Part-to-whole pie chart",
            config_schema=_schema(
                {
                    "xField": _field("Label Field"),
                    "yField": _field("Value Field"),
                    "categoryField": _field("Category Field", required=True),
                    "labelField": _field("Label Field"),
                    "valueField": _field("Value Field", required=True),
                    "radius": ConfigField(type="string", title="Radius", required=True, default="70%"),
                    "roseType": ConfigField(type="select", title="Rose Type", enum=["radius", "area"]),
                },
                _COMMON,
            ),
        ),
        ChartPlugin(
            name="echarts-scatter",
            library="echarts",
            chart_kind="scatter",
            display_name="ECharts Scatter",
            description="Scatter plot of two numeric measures",
            config_schema=_schema(
                _axes(),
                _COMMON,
                _GRID,
                {
                    "sizeField": _field("Size Field"),
                    "colorField": _field("Color Field"),
                    "seriesField": _field("Series Field"),
                    "symbolSize": ConfigField(type="number", title="Symbol Size", required=True, default=10, minimum=1),
                },
            ),
        ),
        ChartPlugin(
            name="echarts-heatmap",
            library="echarts",
            chart_kind="heatmap",
            display_name="ECharts Heatmap",
            description="Matrix of values colored by magnitude",
            config_schema=_schema(
                _axes(),
                _COMMON,
                {
                    "valueField": _field("Value Field", required=True),
                    "colorField": _field("Color Field"),
                    "visualMap.min": ConfigField(type="number", title="Color Scale Min"),
                    "visualMap.max": ConfigField(type="number", title="Color Scale Max"),
                },
            ),
        ),
        ChartPlugin(
            name="chartjs-bar",
            library="chartjs",
            chart_kind="bar",
            display_name="Chart.js Bar",
            config_schema=_schema(
                _axes(),
                _COMMON,
                _GRID,
                {
                    "seriesField": _field("Dataset Field"),
                    "indexAxis": ConfigField(type="select", title="Index Axis", enum=["x", "y"], required=True, default="x"),
                    "stacked": ConfigField(type="boolean", title="Stacked", default=False),
                },
            ),
        ),
        ChartPlugin(
            name="chartjs-line",
            library="chartjs",
            chart_kind="line",
            display_name="Chart.js Line",
            config_schema=_schema(
                _axes(),
                _COMMON,
                _GRID,
                {
                    "seriesField": _field("Dataset Field"),
                    "tension": ConfigField(type="number", title="Line Tension", required=True, default=0, minimum=0, maximum=1),
                    "fill": ConfigField(type="boolean", title="Fill", default=False),
                },
            ),
        ),
        ChartPlugin(
            name="chartjs-doughnut",
            library="chartjs",
            chart_kind="doughnut",
            display_name="Chart.js Doughnut",
            config_schema=_schema(
                {
                    "xField": _field("Label Field"),
                    "yField": _field("Value Field"),
                    "categoryField": _field("Category Field", required=True),
                    "labelField": _field("Label Field"),
                    "valueField": _field("Value Field", required=True),
                    "cutout": ConfigField(type="string", title="Cutout", required=True, default="50%"),
                },
                _COMMON,
            ),
        ),
        ChartPlugin(
            name="plotly-scatter",
            library="plotly",
            chart_kind="scatter",
            display_name="Plotly Scatter",
            config_schema=_schema(
                _axes(),
                _COMMON,
                {
                    "sizeField": _field("Marker Size Field"),
                    "colorField": _field("Marker Color Field"),
                    "mode": ConfigField(
                        type="select",
                        title="Mode",
                        enum=["markers", "lines", "lines+markers"],
                        required=True,
                        default="markers",
                    ),
                },
            ),
        ),
    ]
