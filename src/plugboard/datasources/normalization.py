"""Shaping native driver output into canonical QueryResults."""
import os
import time
import uuid
from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from plugboard.sdk.models import ColumnDescriptor, QueryResult
from plugboard.sdk.typemap import infer_value_type, native_type_name


class NativeResult(BaseModel):
    """What a plugin's native execution hands back.

    ``affected_rows`` is set for statements that do not return rows.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    rows: List[Any] = Field(default_factory=list)
    affected_rows: Optional[int] = None


NativeOutput = Union[NativeResult, Iterable[Any]]


def new_connection_id(backend: str) -> str:
    """'<backend>-<epoch ms>-<8 hex>', unique within a process."""
    return f"{backend}-{int(time.time() * 1000)}-{os.urandom(4).hex()}"


def new_query_id(backend: str) -> str:
    return f"{backend}-{uuid.uuid4().hex}"


def normalize_row(row: Any) -> Dict[str, Any]:
    if isinstance(row, dict):
        return dict(row)
    if isinstance(row, Mapping):
        return {key: row[key] for key in row.keys()}
    if hasattr(row, "_asdict"):
        return dict(row._asdict())
    raise TypeError(f"Cannot normalize row of type {type(row).__name__}")


def infer_columns(rows: List[Dict[str, Any]]) -> List[ColumnDescriptor]:
    """Column descriptors from the first row only; later rows are not consulted."""
    if not rows:
        return []
    return [
        ColumnDescriptor(
            name=str(key),
            type=infer_value_type(value),
            nullable=True,
            native_type=native_type_name(value),
        )
        for key, value in rows[0].items()
    ]


def build_query_result(output: NativeOutput, execution_time_ms: float, backend: str) -> QueryResult:
    if isinstance(output, NativeResult):
        raw_rows, affected = output.rows, output.affected_rows
    else:
        raw_rows, affected = list(output), None

    rows = [normalize_row(row) for row in raw_rows]
    row_count = len(rows)
    if not rows and affected is not None and affected >= 0:
        row_count = affected

    return QueryResult(
        rows=rows,
        columns=infer_columns(rows),
        row_count=row_count,
        execution_time_ms=execution_time_ms,
        query_id=new_query_id(backend),
        backend=backend,
    )
