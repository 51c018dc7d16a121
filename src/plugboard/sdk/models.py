from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, computed_field

from plugboard.common.errors import SchemaIntrospectionPartial
from plugboard.sdk.capabilities import BackendCapability, BackendCategory, BackendKind


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ScalarType(str, Enum):
    """Canonical scalar-type taxonomy shared by every backend."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    BINARY = "binary"
    NULL = "null"
    LIST = "list"
    MAP = "map"
    MIXED = "mixed"
    UNKNOWN = "unknown"


# ---------------------------------------------------------------------------
# Configuration schema
# ---------------------------------------------------------------------------

ConfigFieldType = Literal[
    "string",
    "number",
    "integer",
    "boolean",
    "password",
    "array",
    "object",
    "select",
    "multiselect",
]


class ConfigField(BaseModel):
    """Declaration of a single configuration key."""

    model_config = ConfigDict(frozen=True)

    type: ConfigFieldType = "string"
    title: str
    required: bool = False
    default: Optional[Any] = None
    enum: Optional[List[Any]] = None
    description: Optional[str] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    pattern: Optional[str] = None
    format: Optional[str] = None

    @property
    def is_secret(self) -> bool:
        return self.type == "password" or self.format == "password"


class ConfigSchema(BaseModel):
    """Declarative map from field name to ConfigField.

    Used both to validate connection configs and to default compiled
    chart configurations.
    """

    model_config = ConfigDict(frozen=True)

    properties: Dict[str, ConfigField] = Field(default_factory=dict)
    additional_properties: bool = True

    def __contains__(self, key: str) -> bool:
        return key in self.properties

    def get(self, key: str) -> Optional[ConfigField]:
        return self.properties.get(key)

    def keys(self) -> List[str]:
        return list(self.properties.keys())

    def required_fields(self) -> List[str]:
        return [name for name, spec in self.properties.items() if spec.required]

    def secret_fields(self) -> Set[str]:
        return {name for name, spec in self.properties.items() if spec.is_secret}


# ---------------------------------------------------------------------------
# Descriptor metadata
# ---------------------------------------------------------------------------

class CapabilitySet(BaseModel):
    """Static limits and features a backend declares."""

    model_config = ConfigDict(frozen=True)

    supports_bulk_insert: bool = False
    supports_transactions: bool = False
    supports_stored_procedures: bool = False
    supports_streaming: bool = False
    max_concurrent_connections: int = Field(default=10, ge=1)

    def flags(self) -> Set[BackendCapability]:
        return {cap for cap in BackendCapability if getattr(self, cap.value)}


class PluginDescriptor(BaseModel):
    """Immutable, self-describing metadata for a registered backend."""

    model_config = ConfigDict(frozen=True)

    name: str
    kind: BackendKind
    category: BackendCategory
    display_name: str
    version: str = "1.0.0"
    description: Optional[str] = None
    config_schema: ConfigSchema = Field(default_factory=ConfigSchema)
    capabilities: CapabilitySet = Field(default_factory=CapabilitySet)


# ---------------------------------------------------------------------------
# Connections
# ---------------------------------------------------------------------------

class Connection(BaseModel):
    """Opaque handle returned by a data-source plugin's ``connect``.

    ``is_connected`` starts true and can only ever be latched to false by
    ``mark_closed``; there is no path back to true.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    id: str
    backend: str
    config: Dict[str, Any] = Field(default_factory=dict, repr=False)
    client: Any = Field(default=None, exclude=True, repr=False)
    created_at: datetime = Field(default_factory=utcnow)
    last_activity: datetime = Field(default_factory=utcnow)

    _closed: bool = PrivateAttr(default=False)

    @computed_field
    @property
    def is_connected(self) -> bool:
        return not self._closed

    def mark_closed(self) -> None:
        self._closed = True

    def touch(self) -> None:
        self.last_activity = utcnow()


# ---------------------------------------------------------------------------
# Results & schema
# ---------------------------------------------------------------------------

class ColumnDescriptor(BaseModel):
    name: str
    type: ScalarType = ScalarType.UNKNOWN
    nullable: bool = True
    default_value: Optional[Any] = None
    native_type: Optional[str] = None
    is_primary_key: bool = False


class QueryResult(BaseModel):
    """Canonical result of a query against any backend.

    ``columns`` is inferred from the first row only; an empty result has
    unknown columns, not zero columns.
    """

    rows: List[Dict[str, Any]] = Field(default_factory=list)
    columns: List[ColumnDescriptor] = Field(default_factory=list)
    row_count: int = 0
    execution_time_ms: float = 0.0
    query_id: str
    backend: Optional[str] = None

    @property
    def columns_known(self) -> bool:
        return bool(self.rows)

    def column_names(self) -> List[str]:
        return [col.name for col in self.columns]


class ContainerRef(BaseModel):
    """A table-like container enumerated from a backend."""

    model_config = ConfigDict(frozen=True)

    name: str
    schema_name: str
    kind: Literal["table", "view"] = "table"
    definition: str = ""


class TableDescriptor(BaseModel):
    name: str
    schema_name: str
    columns: List[ColumnDescriptor] = Field(default_factory=list)


class ViewDescriptor(BaseModel):
    name: str
    schema_name: str
    columns: List[ColumnDescriptor] = Field(default_factory=list)
    definition: str = ""


class SchemaInfo(BaseModel):
    tables: List[TableDescriptor] = Field(default_factory=list)
    views: List[ViewDescriptor] = Field(default_factory=list)
    failures: List[SchemaIntrospectionPartial] = Field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.failures)

    def table(self, name: str) -> Optional[TableDescriptor]:
        for tbl in self.tables:
            if tbl.name == name:
                return tbl
        return None
