from typing import Any, Dict, Optional

from pydantic import BaseModel, Field

from plugboard.charts.models import AggregationSetting, FilterConfig


class ChartSpec(BaseModel):
    """A chart request as written in a YAML spec file.

    ``fields`` maps channel names (``x-axis``, ``y-axis`` ...) to one field
    or a list of fields, each ``{name, type}``.
    """

    chart: Optional[str] = None
    fields: Dict[str, Any] = Field(default_factory=dict)
    aggregations: Dict[str, AggregationSetting] = Field(default_factory=dict)
    filters: Optional[FilterConfig] = None
    custom: Dict[str, Any] = Field(default_factory=dict)
