from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class DatasourceConfig(BaseModel):
    """One named datasource profile."""

    id: str
    backend: str
    description: Optional[str] = None
    connection: Dict[str, Any] = Field(default_factory=dict)
    query_timeout_ms: Optional[int] = Field(default=None, gt=0)


class DatasourceFileConfig(BaseModel):
    """File-level schema for datasources.yaml."""

    version: int = Field(1, description="Schema version")
    datasources: List[DatasourceConfig] = Field(default_factory=list)

    @field_validator("datasources")
    @classmethod
    def _unique_ids(cls, value: List[DatasourceConfig]) -> List[DatasourceConfig]:
        seen = set()
        for ds in value:
            if ds.id in seen:
                raise ValueError(f"Duplicate datasource id '{ds.id}'")
            seen.add(ds.id)
        return value
