from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Sequence, Union

from plugboard.sdk.capabilities import BackendCategory, BackendKind
from plugboard.sdk.models import (
    CapabilitySet,
    ConfigSchema,
    Connection,
    PluginDescriptor,
    QueryResult,
    SchemaInfo,
)

QueryParams = Optional[Union[Sequence[Any], Dict[str, Any]]]


class BackendPlugin(ABC):
    """Metadata every registered backend carries, data source or chart."""

    name: str
    kind: BackendKind
    category: BackendCategory
    display_name: str
    version: str = "1.0.0"
    description: Optional[str] = None
    config_schema: ConfigSchema = ConfigSchema()
    capabilities: CapabilitySet = CapabilitySet()

    @property
    def descriptor(self) -> PluginDescriptor:
        return PluginDescriptor(
            name=self.name,
            kind=self.kind,
            category=self.category,
            display_name=self.display_name,
            version=self.version,
            description=self.description,
            config_schema=self.config_schema,
            capabilities=self.capabilities,
        )

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name} ({self.category.value})>"


class DatasourcePlugin(BackendPlugin):
    """Canonical interface every data-source backend must implement."""

    kind = BackendKind.DATASOURCE

    @abstractmethod
    def connect(self, config: Dict[str, Any]) -> Connection:
        """Opens a native client and returns a live Connection."""
        pass

    @abstractmethod
    def test_connection(self, config: Dict[str, Any]) -> bool:
        """Probes reachability. Never raises; releases any resources it opened."""
        pass

    @abstractmethod
    def execute_query(
        self, connection: Connection, query: Any, params: QueryParams = None
    ) -> QueryResult:
        """Runs a native query and returns a canonical QueryResult."""
        pass

    @abstractmethod
    def get_schema(self, connection: Connection) -> SchemaInfo:
        """Introspects tables/views; per-container failures are recorded, not raised."""
        pass

    @abstractmethod
    def disconnect(self, connection: Connection) -> None:
        """Releases the native client. Idempotent."""
        pass

    def cancel(self, connection: Connection) -> None:
        """Best-effort cancellation of in-flight work. Default: no-op."""
        return None
