from .capabilities import BackendCapability, BackendCategory, BackendKind
from .interfaces import BackendPlugin, DatasourcePlugin, QueryParams
from .models import (
    CapabilitySet,
    ColumnDescriptor,
    ConfigField,
    ConfigSchema,
    Connection,
    ContainerRef,
    PluginDescriptor,
    QueryResult,
    ScalarType,
    SchemaInfo,
    TableDescriptor,
    ViewDescriptor,
)
from .typemap import infer_value_type, map_native_type

__all__ = [
    "BackendCapability",
    "BackendCategory",
    "BackendKind",
    "BackendPlugin",
    "CapabilitySet",
    "ColumnDescriptor",
    "ConfigField",
    "ConfigSchema",
    "Connection",
    "ContainerRef",
    "DatasourcePlugin",
    "PluginDescriptor",
    "QueryParams",
    "QueryResult",
    "ScalarType",
    "SchemaInfo",
    "TableDescriptor",
    "ViewDescriptor",
    "infer_value_type",
    "map_native_type",
]
