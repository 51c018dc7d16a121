import re
from typing import Any, Dict, List, Optional

from plugboard.common.errors import ConfigViolation, InvalidConfig
from plugboard.sdk.models import ConfigField, ConfigSchema

MASK = "********"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_type(name: str, spec: ConfigField, value: Any) -> Optional[str]:
    kind = spec.type
    if kind in ("string", "password"):
        if not isinstance(value, str):
            return f"'{name}' must be a string"
    elif kind == "number":
        if not _is_number(value):
            return f"'{name}' must be a number"
    elif kind == "integer":
        if not isinstance(value, int) or isinstance(value, bool):
            return f"'{name}' must be an integer"
    elif kind == "boolean":
        if not isinstance(value, bool):
            return f"'{name}' must be a boolean"
    elif kind == "array":
        if not isinstance(value, (list, tuple)):
            return f"'{name}' must be an array"
    elif kind == "object":
        if not isinstance(value, dict):
            return f"'{name}' must be an object"
    elif kind == "multiselect":
        if not isinstance(value, (list, tuple)):
            return f"'{name}' must be a list of options"
    return None


def _check_constraints(name: str, spec: ConfigField, value: Any) -> List[str]:
    problems: List[str] = []
    if spec.enum is not None:
        candidates = value if spec.type == "multiselect" else [value]
        for candidate in candidates:
            if candidate not in spec.enum:
                problems.append(f"'{name}' must be one of {spec.enum}, got {candidate!r}")
    if _is_number(value):
        if spec.minimum is not None and value < spec.minimum:
            problems.append(f"'{name}' must be >= {spec.minimum:g}")
        if spec.maximum is not None and value > spec.maximum:
            problems.append(f"'{name}' must be <= {spec.maximum:g}")
    if spec.pattern and isinstance(value, str) and not re.search(spec.pattern, value):
        problems.append(f"'{name}' does not match pattern {spec.pattern}")
    return problems


def collect_violations(schema: ConfigSchema, config: Dict[str, Any]) -> List[ConfigViolation]:
    """Every violation of ``schema`` by ``config``, in schema order.

    Unset keys that carry a default are not violations.
    """
    violations: List[ConfigViolation] = []

    for name, spec in schema.properties.items():
        value = config.get(name)
        if value is None:
            if spec.required and spec.default is None:
                violations.append(ConfigViolation(field=name, message=f"'{name}' is required"))
            continue
        type_problem = _check_type(name, spec, value)
        if type_problem:
            violations.append(ConfigViolation(field=name, message=type_problem))
            continue
        for problem in _check_constraints(name, spec, value):
            violations.append(ConfigViolation(field=name, message=problem))

    if not schema.additional_properties:
        for name in config:
            if name not in schema:
                violations.append(
                    ConfigViolation(field=name, message=f"'{name}' is not a recognized option")
                )
    return violations


def apply_defaults(schema: ConfigSchema, config: Dict[str, Any]) -> Dict[str, Any]:
    resolved = dict(config)
    for name, spec in schema.properties.items():
        if resolved.get(name) is None and spec.default is not None:
            resolved[name] = spec.default
    return resolved


def validate_config(backend: str, schema: ConfigSchema, config: Dict[str, Any]) -> Dict[str, Any]:
    """Validates ``config`` against ``schema`` and returns it with defaults applied.

    Raises:
        InvalidConfig: carrying all violations, not just the first.
    """
    if not isinstance(config, dict):
        raise InvalidConfig(
            backend, [ConfigViolation(field="<root>", message="configuration must be a mapping")]
        )
    violations = collect_violations(schema, config)
    if violations:
        raise InvalidConfig(backend, violations)
    return apply_defaults(schema, config)


def mask_config(schema: ConfigSchema, config: Dict[str, Any]) -> Dict[str, Any]:
    """Copy of ``config`` with secret fields replaced, for logs and CLI output."""
    secrets = schema.secret_fields()
    return {key: (MASK if key in secrets and value else value) for key, value in config.items()}
