import os
import re
from typing import Any, List, Mapping, Optional

from plugboard.common.errors import ConfigViolation

ENV_REF = re.compile(r"\$\{env:([A-Za-z_][A-Za-z0-9_]*)\}")


class EnvResolver:
    """Resolves ``${env:NAME}`` references in nested config values.

    Unresolvable references are collected as violations instead of raising
    on the first one, so a file reports every missing variable at once.
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        self._environ = os.environ if environ is None else environ
        self.violations: List[ConfigViolation] = []

    def resolve(self, obj: Any, path: str = "") -> Any:
        if isinstance(obj, str):
            return self._resolve_str(obj, path)
        if isinstance(obj, list):
            return [self.resolve(item, f"{path}[{i}]") for i, item in enumerate(obj)]
        if isinstance(obj, dict):
            return {key: self.resolve(value, f"{path}.{key}" if path else str(key)) for key, value in obj.items()}
        return obj

    def _resolve_str(self, value: str, path: str) -> str:
        def substitute(match: "re.Match[str]") -> str:
            name = match.group(1)
            resolved = self._environ.get(name)
            if resolved is None:
                self.violations.append(
                    ConfigViolation(field=path, message=f"Environment variable '{name}' is not set")
                )
                return match.group(0)
            return resolved

        return ENV_REF.sub(substitute, value)
