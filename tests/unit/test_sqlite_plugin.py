import pytest

from plugboard.common.errors import ConnectFailed, InvalidConfig, QueryExecutionError, TooManyConnections
from plugboard.datasources import ConnectionManager
from plugboard.datasources.plugins import SqlitePlugin
from plugboard.sdk.models import ScalarType
from plugboard.sdk.testing import DatasourceComplianceSuite


class TestSqliteCompliance(DatasourceComplianceSuite):
    @pytest.fixture
    def plugin(self):
        return SqlitePlugin()

    @pytest.fixture
    def config(self, sqlite_db):
        return {"filename": sqlite_db}

    @pytest.fixture
    def query(self):
        return "SELECT id, name FROM users ORDER BY id"


@pytest.fixture
def plugin():
    return SqlitePlugin()


@pytest.fixture
def connection(plugin, sqlite_db):
    conn = plugin.connect({"filename": sqlite_db, "mode": "readwrite"})
    yield conn
    plugin.disconnect(conn)


def test_build_url_modes(plugin):
    assert plugin.build_url({"filename": ":memory:"}) == "sqlite://"
    assert plugin.build_url({"filename": "/data/app.db", "mode": "readonly"}) == (
        "sqlite:///file:/data/app.db?mode=ro&uri=true"
    )
    assert plugin.build_url({"filename": "/data/app.db", "mode": "create"}).endswith("mode=rwc&uri=true")


def test_select_rows_and_inferred_columns(plugin, connection):
    result = plugin.execute_query(connection, "SELECT id, name, score FROM users ORDER BY id")

    assert result.row_count == 3
    assert result.rows[0] == {"id": 1, "name": "ada", "score": 91.5}
    assert [(c.name, c.type) for c in result.columns] == [
        ("id", ScalarType.NUMBER),
        ("name", ScalarType.STRING),
        ("score", ScalarType.NUMBER),
    ]


def test_empty_result_has_unknown_columns(plugin, connection):
    result = plugin.execute_query(connection, "SELECT * FROM users WHERE id < 0")

    assert result.rows == []
    assert result.columns == []
    assert result.row_count == 0
    assert result.columns_known is False


def test_named_and_positional_params(plugin, connection):
    named = plugin.execute_query(connection, "SELECT name FROM users WHERE id = :id", {"id": 2})
    positional = plugin.execute_query(connection, "SELECT name FROM users WHERE id = ?", [3])

    assert named.rows == [{"name": "brian"}]
    assert positional.rows == [{"name": "chloe"}]


def test_write_statement_reports_affected_rows(plugin, connection):
    result = plugin.execute_query(connection, "UPDATE users SET score = 0 WHERE score > 50")

    assert result.rows == []
    assert result.row_count == 2
    check = plugin.execute_query(connection, "SELECT COUNT(*) AS n FROM users WHERE score = 0")
    assert check.rows == [{"n": 2}]


def test_foreign_keys_are_enforced(plugin, connection):
    with pytest.raises(QueryExecutionError) as exc_info:
        plugin.execute_query(connection, "INSERT INTO orders (id, user_id, amount) VALUES (9, 999, 1)")
    assert "FOREIGN KEY" in exc_info.value.message.upper()


def test_sql_error_preserves_native_message(plugin, connection):
    with pytest.raises(QueryExecutionError) as exc_info:
        plugin.execute_query(connection, "SELECT * FROM missing_table")

    assert exc_info.value.backend == "sqlite"
    assert "missing_table" in exc_info.value.message
    assert connection.is_connected


def test_get_schema_tables_and_views(plugin, connection):
    info = plugin.get_schema(connection)

    assert sorted(t.name for t in info.tables) == ["orders", "users"]
    assert [v.name for v in info.views] == ["high_scorers"]
    assert "score > 50" in info.views[0].definition
    assert info.is_partial is False

    users = {c.name: c for c in info.table("users").columns}
    assert users["id"].is_primary_key
    assert users["id"].type == ScalarType.NUMBER
    assert users["name"].type == ScalarType.STRING
    assert users["name"].nullable is False
    assert users["created_at"].type == ScalarType.STRING

    orders = {c.name: c for c in info.table("orders").columns}
    assert orders["amount"].type == ScalarType.NUMBER
    assert orders["payload"].type == ScalarType.BINARY


def test_readonly_mode_rejects_writes(plugin, sqlite_db):
    connection = plugin.connect({"filename": sqlite_db, "mode": "readonly"})
    try:
        with pytest.raises(QueryExecutionError) as exc_info:
            plugin.execute_query(connection, "DELETE FROM users")
        assert "readonly" in exc_info.value.message.lower()
    finally:
        plugin.disconnect(connection)


def test_missing_file_without_create_fails(plugin, tmp_path):
    with pytest.raises(ConnectFailed):
        plugin.connect({"filename": str(tmp_path / "nope.db")})


def test_create_mode_makes_new_file(plugin, tmp_path):
    path = tmp_path / "new.db"
    connection = plugin.connect({"filename": str(path), "mode": "create"})
    try:
        plugin.execute_query(connection, "CREATE TABLE t (x INTEGER)")
    finally:
        plugin.disconnect(connection)
    assert path.exists()


def test_unknown_mode_is_invalid(plugin, sqlite_db):
    with pytest.raises(InvalidConfig) as exc_info:
        plugin.connect({"filename": sqlite_db, "mode": "append"})
    assert exc_info.value.violations[0].field == "mode"


def test_in_memory_database(plugin):
    connection = plugin.connect({"filename": ":memory:"})
    try:
        plugin.execute_query(connection, "CREATE TABLE kv (k TEXT PRIMARY KEY, v TEXT)")
        plugin.execute_query(connection, "INSERT INTO kv VALUES ('a', '1')")
        assert plugin.execute_query(connection, "SELECT v FROM kv").rows == [{"v": "1"}]
    finally:
        plugin.disconnect(connection)


def test_manager_enforces_single_connection(datasource_registry, sqlite_db):
    with ConnectionManager(datasource_registry) as manager:
        connection = manager.connect("sqlite", {"filename": sqlite_db})

        with pytest.raises(TooManyConnections):
            manager.connect("sqlite", {"filename": sqlite_db})

        result = manager.execute_query(connection, "SELECT COUNT(*) AS n FROM orders")
        assert result.rows == [{"n": 3}]
