import threading
from unittest.mock import MagicMock, patch

import pytest

from plugboard.common.errors import DuplicateBackend, ErrorCode, UnknownBackend
from plugboard.registry import PluginRegistry, discover_plugins
from plugboard.sdk.capabilities import BackendCategory, BackendKind

from tests.fakes import FakePlugin


class OtherFake(FakePlugin):
    name = "other"
    category = BackendCategory.RELATIONAL


def test_register_and_get():
    registry = PluginRegistry("datasource")
    plugin = registry.register(FakePlugin())

    assert registry.get("fake") is plugin
    assert "fake" in registry
    assert len(registry) == 1


def test_duplicate_name_is_rejected():
    registry = PluginRegistry("datasource")
    registry.register(FakePlugin())

    with pytest.raises(DuplicateBackend) as exc_info:
        registry.register(FakePlugin())
    assert exc_info.value.error_code == ErrorCode.DUPLICATE_BACKEND
    assert len(registry) == 1


def test_unknown_backend_lists_available_names():
    registry = PluginRegistry("datasource", [lambda: [FakePlugin(), OtherFake()]])

    with pytest.raises(UnknownBackend) as exc_info:
        registry.get("oracle")
    assert exc_info.value.available == ["fake", "other"]
    assert "oracle" in str(exc_info.value)


def test_list_filters_by_category():
    registry = PluginRegistry("datasource", [lambda: [FakePlugin(), OtherFake()]])

    assert [p.name for p in registry.list()] == ["fake", "other"]
    assert [p.name for p in registry.list(BackendCategory.RELATIONAL)] == ["other"]
    assert [p.name for p in registry.list("document")] == ["fake"]
    assert registry.list(BackendCategory.WIDE_COLUMN) == []


def test_initialize_runs_loaders_once_under_concurrency():
    """Verify that concurrent first use runs every loader exactly once."""
    calls = []
    start = threading.Barrier(8)

    def loader():
        calls.append(1)
        return [FakePlugin()]

    registry = PluginRegistry("datasource", [loader])
    errors = []

    def worker():
        start.wait()
        try:
            registry.get("fake")
        except Exception as e:  # pragma: no cover
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(calls) == 1
    assert registry.initialized


def test_initialize_skips_names_already_registered():
    registry = PluginRegistry("datasource", [lambda: [FakePlugin()]])
    explicit = registry.register(FakePlugin())

    registry.initialize()

    assert registry.get("fake") is explicit
    assert registry.names() == ["fake"]


def test_builtin_registries(datasource_registry, chart_registry):
    assert set(datasource_registry.names()) == {"sqlite", "postgres", "mysql", "mongodb", "cassandra", "dynamodb"}
    assert all(p.kind == BackendKind.DATASOURCE for p in datasource_registry.list())
    assert "echarts-bar" in chart_registry.names()
    assert all(p.kind == BackendKind.CHART for p in chart_registry.list())


def test_descriptor_is_self_describing(datasource_registry):
    descriptor = datasource_registry.get("postgres").descriptor

    assert descriptor.kind == BackendKind.DATASOURCE
    assert descriptor.category == BackendCategory.RELATIONAL
    assert descriptor.config_schema.get("password").is_secret
    assert descriptor.capabilities.max_concurrent_connections == 100


class TestDiscovery:
    def _entry_point(self, name, loaded=None, error=None):
        ep = MagicMock()
        ep.name = name
        if error is not None:
            ep.load.side_effect = error
        else:
            ep.load.return_value = loaded
        return ep

    def test_classes_are_instantiated_and_failures_skipped(self):
        instance = OtherFake()
        eps = [
            self._entry_point("fake", loaded=FakePlugin),
            self._entry_point("broken", error=ImportError("missing driver")),
            self._entry_point("other", loaded=instance),
        ]

        with patch("plugboard.registry.discovery.entry_points", return_value=eps) as mock_eps:
            plugins = discover_plugins("plugboard.datasources")

        mock_eps.assert_called_once_with(group="plugboard.datasources")
        assert isinstance(plugins[0], FakePlugin)
        assert plugins[1] is instance
        assert len(plugins) == 2

    def test_discovered_names_never_shadow_builtins(self):
        shadow = FakePlugin()
        registry = PluginRegistry("datasource", [lambda: [FakePlugin()], lambda: [shadow, OtherFake()]])

        assert registry.get("fake") is not shadow
        assert registry.names() == ["fake", "other"]
