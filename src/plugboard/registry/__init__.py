from typing import Optional

from plugboard.common.settings import settings

from .discovery import CHART_GROUP, DATASOURCE_GROUP, discover_plugins
from .registry import PluginRegistry


def create_datasource_registry(discover: Optional[bool] = None) -> PluginRegistry:
    """Registry preloaded (on first use) with the built-in data-source plugins.

    Args:
        discover: Also load ``plugboard.datasources`` entry points.
            Defaults to ``settings.discover_entry_points``.
    """
    from plugboard.datasources.plugins import builtin_datasources

    loaders = [builtin_datasources]
    if settings.discover_entry_points if discover is None else discover:
        loaders.append(lambda: discover_plugins(DATASOURCE_GROUP))
    return PluginRegistry("datasource", loaders)


def create_chart_registry(discover: Optional[bool] = None) -> PluginRegistry:
    from plugboard.charts.plugins import builtin_charts

    loaders = [builtin_charts]
    if settings.discover_entry_points if discover is None else discover:
        loaders.append(lambda: discover_plugins(CHART_GROUP))
    return PluginRegistry("chart", loaders)


__all__ = [
    "PluginRegistry",
    "create_chart_registry",
    "create_datasource_registry",
    "discover_plugins",
]
