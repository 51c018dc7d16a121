import json
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from plugboard.common.errors import ValidationFailed


class SemanticType(str, Enum):
    STRING = "string"
    NUMBER = "number"
    DATE = "date"
    BOOLEAN = "boolean"


class EncodingChannel(str, Enum):
    """Visual channels a dataset field can be bound to."""

    X_AXIS = "x-axis"
    Y_AXIS = "y-axis"
    SERIES = "series"
    CATEGORY = "category"
    VALUE = "value"
    SIZE = "size"
    COLOR = "color"


class DatasetField(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    type: SemanticType = SemanticType.STRING
    id: Optional[str] = None
    display_name: Optional[str] = None


class FieldAssignment(BaseModel):
    """Mapping from encoding channel to one or more dataset fields.

    A single field and a one-element list are equivalent; channels assigned
    ``None`` or an empty list count as unassigned.
    """

    channels: Dict[EncodingChannel, List[DatasetField]] = Field(default_factory=dict)

    @field_validator("channels", mode="before")
    @classmethod
    def _normalize(cls, value: Any) -> Dict[str, List[Any]]:
        if value is None:
            return {}
        normalized: Dict[str, List[Any]] = {}
        for channel, fields in dict(value).items():
            if fields is None:
                continue
            if not isinstance(fields, (list, tuple)):
                fields = [fields]
            if fields:
                normalized[channel] = list(fields)
        return normalized

    @classmethod
    def from_mapping(cls, mapping: Optional[Dict[Any, Any]]) -> "FieldAssignment":
        return cls(channels=mapping or {})

    def fields(self, channel: Union[EncodingChannel, str]) -> List[DatasetField]:
        return self.channels.get(EncodingChannel(channel), [])

    def first(self, channel: Union[EncodingChannel, str]) -> Optional[DatasetField]:
        fields = self.fields(channel)
        return fields[0] if fields else None

    def is_assigned(self, channel: Union[EncodingChannel, str]) -> bool:
        return bool(self.fields(channel))


class AggregationSetting(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    aggregation: Optional[str] = None
    group_by: Optional[List[str]] = Field(default=None, alias="groupBy")


class FilterRule(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: Optional[str] = None
    field_id: Optional[str] = Field(default=None, alias="fieldId")
    field_name: str = Field(alias="fieldName")
    field_type: str = Field(default="string", alias="fieldType")
    operator: str
    value: Any = None
    enabled: bool = True


class FilterConfig(BaseModel):
    rules: List[FilterRule] = Field(default_factory=list)
    operator: Literal["AND", "OR"] = "AND"


class FactoryConfig(BaseModel):
    """Flat, deterministic chart configuration produced by the compiler.

    ``unchecked_keys`` lists the dotted custom keys admitted without a schema
    entry for the target backend.
    """

    backend: str
    values: Dict[str, Any] = Field(default_factory=dict)
    unchecked_keys: List[str] = Field(default_factory=list)

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def keys(self) -> List[str]:
        return list(self.values)

    def to_json(self) -> str:
        return json.dumps(self.values, sort_keys=True, default=str)


class ValidationError(BaseModel):
    """A blocking problem with a compiled configuration."""

    field: str
    message: str
    severity: Literal["error"] = "error"


class ValidationWarning(BaseModel):
    field: str
    message: str
    severity: Literal["low", "medium"] = "medium"


ValidationIssue = Union[ValidationError, ValidationWarning]


class ValidationResult(BaseModel):
    valid: bool = True
    errors: List[ValidationError] = Field(default_factory=list)
    warnings: List[ValidationWarning] = Field(default_factory=list)

    @classmethod
    def from_issues(cls, issues: List[ValidationIssue]) -> "ValidationResult":
        errors = [issue for issue in issues if isinstance(issue, ValidationError)]
        warnings = [issue for issue in issues if isinstance(issue, ValidationWarning)]
        return cls(valid=not errors, errors=errors, warnings=warnings)

    def raise_for_errors(self, backend: str) -> None:
        if not self.valid:
            raise ValidationFailed(backend, self)
