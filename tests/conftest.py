import sqlite3

import pytest

from plugboard.datasources import ConnectionManager
from plugboard.registry import PluginRegistry, create_chart_registry, create_datasource_registry

from tests.fakes import FakePlugin


@pytest.fixture
def fake_plugin():
    return FakePlugin()


@pytest.fixture
def fake_registry(fake_plugin):
    registry = PluginRegistry("datasource")
    registry.register(fake_plugin)
    return registry


@pytest.fixture
def manager(fake_registry):
    mgr = ConnectionManager(fake_registry, query_timeout_ms=2000, max_workers=4, breaker_fail_max=3)
    yield mgr
    mgr.shutdown()


@pytest.fixture
def datasource_registry():
    return create_datasource_registry(discover=False)


@pytest.fixture
def chart_registry():
    return create_chart_registry(discover=False)


@pytest.fixture
def sqlite_db(tmp_path):
    """A small SQLite database file with two tables and a view."""
    path = tmp_path / "shop.db"
    conn = sqlite3.connect(path)
    conn.executescript(
        """
        CREATE TABLE users (
            id INTEGER PRIMARY KEY,
            name VARCHAR(50) NOT NULL,
            score REAL,
            created_at TIMESTAMP
        );
        CREATE TABLE orders (
            id INTEGER PRIMARY KEY,
            user_id INTEGER REFERENCES users(id),
            amount NUMERIC(10, 2),
            payload BLOB
        );
        CREATE VIEW high_scorers AS SELECT id, name FROM users WHERE score > 50;
        INSERT INTO users (id, name, score, created_at) VALUES
            (1, 'ada', 91.5, '2024-01-01 10:00:00'),
            (2, 'brian', 42.0, '2024-02-01 11:30:00'),
            (3, 'chloe', 77.25, NULL);
        INSERT INTO orders (id, user_id, amount) VALUES (1, 1, 10.5), (2, 1, 3.25), (3, 3, 8);
        """
    )
    conn.commit()
    conn.close()
    return str(path)
