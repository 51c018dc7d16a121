from enum import Enum


class BackendKind(str, Enum):
    """Which registry a backend belongs to."""

    DATASOURCE = "datasource"
    CHART = "chart"


class BackendCategory(str, Enum):
    """Category tags used to group and filter registered backends."""

    RELATIONAL = "relational"
    DOCUMENT = "document"
    WIDE_COLUMN = "wide-column"
    CLOUD_NATIVE = "cloud-native"
    CHART_LIBRARY = "chart-library"


class BackendCapability(str, Enum):
    """Capability flags derived from a backend's CapabilitySet."""

    SUPPORTS_BULK_INSERT = "supports_bulk_insert"
    SUPPORTS_TRANSACTIONS = "supports_transactions"
    SUPPORTS_STORED_PROCEDURES = "supports_stored_procedures"
    SUPPORTS_STREAMING = "supports_streaming"
