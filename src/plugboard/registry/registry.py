"""
Name-keyed plugin registries.

A registry is read-mostly: writes happen while ``initialize()`` runs (and
through explicit ``register`` calls); every write publishes a fresh dict, so
readers never take a lock.
"""
from __future__ import annotations

import threading
from typing import Callable, Dict, Generic, Iterable, List, Optional, Sequence, TypeVar

from plugboard.common.errors import DuplicateBackend, UnknownBackend
from plugboard.common.logger import get_logger
from plugboard.sdk.capabilities import BackendCategory
from plugboard.sdk.interfaces import BackendPlugin

logger = get_logger("registry")

P = TypeVar("P", bound=BackendPlugin)

PluginLoader = Callable[[], Iterable[P]]


class PluginRegistry(Generic[P]):
    """Registry and lookup for backend plugins by name.

    Args:
        kind: Label used in log messages (e.g. ``"datasource"``).
        loaders: Callables producing plugins, run once by ``initialize()``.
            Built-ins come first, discovery loaders after.
    """

    def __init__(self, kind: str, loaders: Sequence[PluginLoader] = ()):
        self.kind = kind
        self._loaders = list(loaders)
        self._plugins: Dict[str, P] = {}
        self._write_lock = threading.Lock()
        self._init_lock = threading.Lock()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def register(self, plugin: P) -> P:
        """Adds ``plugin`` under its name.

        Raises:
            DuplicateBackend: if the name is already taken.
        """
        with self._write_lock:
            if plugin.name in self._plugins:
                raise DuplicateBackend(plugin.name)
            self._plugins = {**self._plugins, plugin.name: plugin}
        logger.info(f"Registered {self.kind} backend '{plugin.name}' ({plugin.category.value})")
        return plugin

    def initialize(self) -> None:
        """Runs the loaders exactly once. Safe to call concurrently."""
        if self._initialized:
            return
        with self._init_lock:
            if self._initialized:
                return
            for loader in self._loaders:
                for plugin in loader():
                    if plugin.name in self._plugins:
                        logger.warning(
                            f"Skipping {self.kind} backend '{plugin.name}': name already registered"
                        )
                        continue
                    self.register(plugin)
            self._initialized = True
            logger.info(f"{self.kind.capitalize()} registry initialized with {len(self._plugins)} backends")

    def get(self, name: str) -> P:
        self.initialize()
        plugin = self._plugins.get(name)
        if plugin is None:
            raise UnknownBackend(name, available=list(self._plugins))
        return plugin

    def list(self, category: Optional[BackendCategory | str] = None) -> List[P]:
        self.initialize()
        plugins = list(self._plugins.values())
        if category is None:
            return plugins
        wanted = BackendCategory(category)
        return [plugin for plugin in plugins if plugin.category == wanted]

    def names(self) -> List[str]:
        self.initialize()
        return list(self._plugins)

    def __contains__(self, name: object) -> bool:
        return name in self._plugins

    def __len__(self) -> int:
        return len(self._plugins)
