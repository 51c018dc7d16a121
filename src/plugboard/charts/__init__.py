from .compiler import ConfigCompiler, compile_factory_config
from .models import (
    AggregationSetting,
    DatasetField,
    EncodingChannel,
    FactoryConfig,
    FieldAssignment,
    FilterConfig,
    FilterRule,
    SemanticType,
    ValidationError,
    ValidationResult,
    ValidationWarning,
)
from .plugins import ChartPlugin, builtin_charts
from .validation import ChartConfigValidator, validate_data_compatibility

__all__ = [
    "AggregationSetting",
    "ChartConfigValidator",
    "ChartPlugin",
    "ConfigCompiler",
    "DatasetField",
    "EncodingChannel",
    "FactoryConfig",
    "FieldAssignment",
    "FilterConfig",
    "FilterRule",
    "SemanticType",
    "ValidationError",
    "ValidationResult",
    "ValidationWarning",
    "builtin_charts",
    "compile_factory_config",
    "validate_data_compatibility",
]
