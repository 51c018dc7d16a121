import inspect
from importlib.metadata import entry_points
from typing import Any, List

from plugboard.common.logger import get_logger

logger = get_logger("discovery")

DATASOURCE_GROUP = "plugboard.datasources"
CHART_GROUP = "plugboard.charts"


def discover_plugins(group: str) -> List[Any]:
    """Loads plugins advertised under the ``group`` entry-point group.

    An entry point may name a plugin class (instantiated with no arguments)
    or a ready-made plugin instance. Entry points that fail to load are
    logged and skipped.
    """
    plugins = []
    for ep in entry_points(group=group):
        try:
            target = ep.load()
            plugins.append(target() if inspect.isclass(target) else target)
        except Exception as e:
            logger.error(f"Failed to load plugin {ep.name} from '{group}': {e}")
    return plugins
