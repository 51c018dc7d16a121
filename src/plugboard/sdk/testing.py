"""
Standard compliance test suite for plugboard data-source plugins.

Subclass ``DatasourceComplianceSuite`` in a test module and override the
``plugin``, ``config`` and ``query`` fixtures; every test here then runs
against the plugin under test.
"""
import pytest

from plugboard.common.errors import ConnectionClosed, InvalidConfig, PlugboardError
from plugboard.sdk.interfaces import DatasourcePlugin
from plugboard.sdk.models import (
    CapabilitySet,
    ConfigSchema,
    Connection,
    QueryResult,
    SchemaInfo,
)


class DatasourceComplianceSuite:
    @pytest.fixture
    def plugin(self) -> DatasourcePlugin:
        """Override to return the plugin under test."""
        raise NotImplementedError

    @pytest.fixture
    def config(self) -> dict:
        """Override to return a config that connects successfully."""
        raise NotImplementedError

    @pytest.fixture
    def query(self):
        """Override to return a query that succeeds and returns rows."""
        raise NotImplementedError

    def test_descriptor_contract(self, plugin):
        assert plugin.name
        assert isinstance(plugin.config_schema, ConfigSchema)
        assert isinstance(plugin.capabilities, CapabilitySet)
        assert plugin.capabilities.max_concurrent_connections >= 1
        assert plugin.descriptor.name == plugin.name

    def test_connect_returns_live_connection(self, plugin, config):
        connection = plugin.connect(config)
        try:
            assert isinstance(connection, Connection)
            assert connection.is_connected
            assert connection.backend == plugin.name
            assert connection.id.startswith(f"{plugin.name}-")
        finally:
            plugin.disconnect(connection)

    def test_disconnect_is_idempotent(self, plugin, config):
        connection = plugin.connect(config)
        plugin.disconnect(connection)
        plugin.disconnect(connection)
        assert connection.is_connected is False

    def test_closed_connection_rejects_operations(self, plugin, config, query):
        connection = plugin.connect(config)
        plugin.disconnect(connection)
        with pytest.raises(ConnectionClosed):
            plugin.execute_query(connection, query)
        with pytest.raises(ConnectionClosed):
            plugin.get_schema(connection)

    def test_execute_query_result_shape(self, plugin, config, query):
        connection = plugin.connect(config)
        try:
            before = connection.last_activity
            result = plugin.execute_query(connection, query)
            assert isinstance(result, QueryResult)
            assert result.row_count == len(result.rows)
            assert result.execution_time_ms >= 0
            assert result.query_id
            if result.rows:
                assert [c.name for c in result.columns] == list(result.rows[0].keys())
            else:
                assert result.columns == []
            assert connection.last_activity >= before
        finally:
            plugin.disconnect(connection)

    def test_get_schema_contract(self, plugin, config):
        connection = plugin.connect(config)
        try:
            info = plugin.get_schema(connection)
            assert isinstance(info, SchemaInfo)
            failed = {failure.container for failure in info.failures}
            for table in info.tables:
                assert table.name
                if table.name in failed:
                    assert table.columns == []
        finally:
            plugin.disconnect(connection)

    def test_invalid_config_is_rejected(self, plugin):
        if not plugin.config_schema.required_fields():
            pytest.skip("plugin declares no required fields")
        with pytest.raises(InvalidConfig) as exc_info:
            plugin.connect({})
        assert exc_info.value.violations

    def test_test_connection_never_raises(self, plugin, config):
        assert plugin.test_connection(config) is True
        try:
            outcome = plugin.test_connection({"__bogus__": object()})
        except PlugboardError as e:  # pragma: no cover - contract violation
            pytest.fail(f"test_connection raised {e!r}")
        assert outcome is False
