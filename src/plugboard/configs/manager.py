import pathlib
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from plugboard.common.errors import ConfigViolation, InvalidConfig
from plugboard.common.logger import get_logger
from plugboard.common.settings import settings

from .charts import ChartSpec
from .datasources import DatasourceConfig, DatasourceFileConfig
from .secrets import EnvResolver

logger = get_logger("config_manager")


def _read_yaml(path: pathlib.Path) -> Any:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse YAML from {path}: {e}") from e


def _violations(exc: ValidationError) -> List[ConfigViolation]:
    return [
        ConfigViolation(field=".".join(str(part) for part in err["loc"]) or "<root>", message=err["msg"])
        for err in exc.errors()
    ]


class ConfigManager:
    """Reads datasource profiles and chart specs from YAML files.

    Args:
        project_root: Base for relative config paths. Defaults to the CWD.
    """

    def __init__(self, project_root: Optional[pathlib.Path] = None):
        root = project_root or pathlib.Path.cwd()
        self._ds_path = root / settings.datasource_config_path

    def load_datasources(self, path: Optional[pathlib.Path] = None) -> Dict[str, DatasourceConfig]:
        """Loads and resolves every datasource profile, keyed by id.

        Raises:
            FileNotFoundError: if the file does not exist.
            InvalidConfig: on a malformed file or unresolvable ``${env:...}``.
        """
        target_path = pathlib.Path(path) if path else self._ds_path
        raw = _read_yaml(target_path)

        resolver = EnvResolver()
        resolved = resolver.resolve(raw)
        if resolver.violations:
            raise InvalidConfig(str(target_path), resolver.violations)

        try:
            file_config = DatasourceFileConfig.model_validate(resolved)
        except ValidationError as e:
            raise InvalidConfig(str(target_path), _violations(e)) from e

        logger.info(f"Loaded {len(file_config.datasources)} datasource profiles from {target_path}")
        return {ds.id: ds for ds in file_config.datasources}

    def get_datasource(self, datasource_id: str, path: Optional[pathlib.Path] = None) -> DatasourceConfig:
        profiles = self.load_datasources(path)
        if datasource_id not in profiles:
            raise KeyError(f"Unknown datasource ID: '{datasource_id}'. Available: {sorted(profiles)}")
        return profiles[datasource_id]

    def load_chart_spec(self, path: pathlib.Path) -> ChartSpec:
        raw = _read_yaml(pathlib.Path(path))
        try:
            return ChartSpec.model_validate(raw)
        except ValidationError as e:
            raise InvalidConfig(str(path), _violations(e)) from e
