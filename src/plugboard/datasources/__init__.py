from .config_validation import mask_config, validate_config
from .manager import ConnectionManager

__all__ = ["ConnectionManager", "mask_config", "validate_config"]
