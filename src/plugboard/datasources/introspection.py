"""
Per-container schema introspection.

Each container's column read is captured as its own outcome so a single
unreadable table never aborts the whole introspection: the table is kept
with an empty column list and a SchemaIntrospectionPartial record is
attached to the resulting SchemaInfo.
"""
from typing import Callable, Iterable, List, Optional

from pydantic import BaseModel, Field

from plugboard.common.errors import SchemaIntrospectionPartial, describe
from plugboard.common.logger import get_logger
from plugboard.sdk.models import (
    ColumnDescriptor,
    ContainerRef,
    SchemaInfo,
    TableDescriptor,
    ViewDescriptor,
)

logger = get_logger("introspection")

ColumnReader = Callable[[ContainerRef], List[ColumnDescriptor]]


class ContainerOutcome(BaseModel):
    container: ContainerRef
    columns: List[ColumnDescriptor] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def read_container(container: ContainerRef, read_columns: ColumnReader) -> ContainerOutcome:
    try:
        return ContainerOutcome(container=container, columns=list(read_columns(container)))
    except Exception as e:
        logger.warning(f"Column read failed for {container.schema_name}.{container.name}: {describe(e)}")
        return ContainerOutcome(container=container, error=describe(e))


def introspect(containers: Iterable[ContainerRef], read_columns: ColumnReader) -> SchemaInfo:
    outcomes = [read_container(ref, read_columns) for ref in containers]

    info = SchemaInfo()
    for outcome in outcomes:
        ref = outcome.container
        if ref.kind == "view":
            info.views.append(
                ViewDescriptor(
                    name=ref.name,
                    schema_name=ref.schema_name,
                    columns=outcome.columns,
                    definition=ref.definition,
                )
            )
        else:
            info.tables.append(
                TableDescriptor(name=ref.name, schema_name=ref.schema_name, columns=outcome.columns)
            )
        if not outcome.ok:
            info.failures.append(
                SchemaIntrospectionPartial(container=ref.name, message=outcome.error)
            )
    return info
