from .charts import ChartSpec
from .datasources import DatasourceConfig, DatasourceFileConfig
from .manager import ConfigManager
from .secrets import EnvResolver

__all__ = ["ChartSpec", "ConfigManager", "DatasourceConfig", "DatasourceFileConfig", "EnvResolver"]
