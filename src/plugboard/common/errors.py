from enum import Enum
from typing import Any, List, Optional, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict

if TYPE_CHECKING:
    from plugboard.charts.models import ValidationResult


class ErrorCode(str, Enum):
    """Standardized error codes for backend operations."""
    UNKNOWN_BACKEND = "UNKNOWN_BACKEND"
    DUPLICATE_BACKEND = "DUPLICATE_BACKEND"
    INVALID_CONFIG = "INVALID_CONFIG"
    CONNECT_FAILED = "CONNECT_FAILED"
    CONNECTION_CLOSED = "CONNECTION_CLOSED"
    QUERY_EXECUTION_ERROR = "QUERY_EXECUTION_ERROR"
    QUERY_TIMEOUT = "QUERY_TIMEOUT"
    TOO_MANY_CONNECTIONS = "TOO_MANY_CONNECTIONS"
    SCHEMA_INTROSPECTION_PARTIAL = "SCHEMA_INTROSPECTION_PARTIAL"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"


class ConfigViolation(BaseModel):
    """One violated field of a configuration schema."""

    model_config = ConfigDict(frozen=True)

    field: str
    message: str


class SchemaIntrospectionPartial(BaseModel):
    """Record of a container whose column read failed during introspection.

    Never raised: it travels inside ``SchemaInfo.failures`` while the affected
    table keeps an empty column list.
    """

    model_config = ConfigDict(frozen=True)

    error_code: ErrorCode = ErrorCode.SCHEMA_INTROSPECTION_PARTIAL
    container: str
    message: str


class PlugboardError(Exception):
    """Base class for all backend dispatch errors.

    Attributes:
        error_code: Standardized error code.
        backend: Name of the backend involved, when known.
        message: Human readable message (the native message is preserved).
    """

    error_code: ErrorCode = ErrorCode.QUERY_EXECUTION_ERROR

    def __init__(self, message: str, backend: Optional[str] = None):
        self.message = message
        self.backend = backend
        super().__init__(self._render())

    def _render(self) -> str:
        if self.backend:
            return f"[{self.backend}] {self.message}"
        return self.message

    def to_dict(self) -> dict:
        return {
            "error_code": self.error_code.value,
            "backend": self.backend,
            "message": self.message,
        }


class UnknownBackend(PlugboardError):
    error_code = ErrorCode.UNKNOWN_BACKEND

    def __init__(self, name: str, available: Optional[List[str]] = None):
        self.available = sorted(available or [])
        message = f"No backend registered under '{name}'."
        if self.available:
            message += f" Available: {self.available}"
        super().__init__(message, backend=name)


class DuplicateBackend(PlugboardError):
    error_code = ErrorCode.DUPLICATE_BACKEND

    def __init__(self, name: str):
        super().__init__(f"A backend named '{name}' is already registered.", backend=name)


class InvalidConfig(PlugboardError):
    """Configuration failed schema validation. Carries every violation."""

    error_code = ErrorCode.INVALID_CONFIG

    def __init__(self, backend: str, violations: List[ConfigViolation]):
        self.violations = list(violations)
        fields = ", ".join(v.field for v in self.violations)
        super().__init__(f"Invalid configuration ({fields})", backend=backend)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["violations"] = [v.model_dump() for v in self.violations]
        return payload


class ConnectFailed(PlugboardError):
    error_code = ErrorCode.CONNECT_FAILED


class ConnectionClosed(PlugboardError):
    error_code = ErrorCode.CONNECTION_CLOSED

    def __init__(self, connection_id: str, backend: Optional[str] = None):
        self.connection_id = connection_id
        super().__init__(f"Connection '{connection_id}' is closed.", backend=backend)


class QueryExecutionError(PlugboardError):
    error_code = ErrorCode.QUERY_EXECUTION_ERROR

    def __init__(self, message: str, backend: Optional[str] = None, error_code: Optional[ErrorCode] = None):
        if error_code is not None:
            self.error_code = error_code
        super().__init__(message, backend=backend)


class QueryTimeout(PlugboardError):
    error_code = ErrorCode.QUERY_TIMEOUT

    def __init__(self, backend: str, timeout_ms: int):
        self.timeout_ms = timeout_ms
        super().__init__(f"Query exceeded timeout of {timeout_ms} ms.", backend=backend)


class TooManyConnections(PlugboardError):
    error_code = ErrorCode.TOO_MANY_CONNECTIONS

    def __init__(self, backend: str, limit: int):
        self.limit = limit
        super().__init__(f"Connection ceiling of {limit} reached.", backend=backend)


class ValidationFailed(PlugboardError):
    """Compiled configuration did not validate. Carries the full result."""

    error_code = ErrorCode.VALIDATION_FAILED

    def __init__(self, backend: str, result: "ValidationResult"):
        self.result = result
        messages = "; ".join(e.message for e in result.errors)
        super().__init__(f"Configuration validation failed: {messages}", backend=backend)

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload["result"] = self.result.model_dump()
        return payload


def describe(exc: Any) -> str:
    """Returns '<ExceptionType>: <message>' for logging native failures."""
    return f"{type(exc).__name__}: {exc}"
