import sqlite3

import pytest

from libcatalog.adapters import (
    AdapterConnectionError,
    AdapterExecutionError,
    AdapterTransactionError,
    ConnectionConfig,
    SQLiteAdapter,
)


@pytest.fixture
def adapter(tmp_path):
    adapter = SQLiteAdapter()
    config = ConnectionConfig(url=f"sqlite:///{tmp_path / 'test.db'}")
    adapter.connect(config)
    yield adapter
    adapter.close()


def test_connect_creates_database(tmp_path):
    adapter = SQLiteAdapter()
    config = ConnectionConfig(url=f"sqlite:///{tmp_path / 'connect.db'}")
    connection = adapter.connect(config)
    assert isinstance(connection, sqlite3.Connection)
    assert connection.isolation_level is None
    assert (tmp_path / "connect.db").exists()
    adapter.close()
    assert adapter.connected is False


def test_execute_returns_rows_by_name(adapter):
    adapter.execute("CREATE TABLE example (id TEXT PRIMARY KEY, name TEXT NOT NULL)")
    adapter.execute("INSERT INTO example (id, name) VALUES (?, ?)", ("a1", "Alice"))
    row = adapter.execute("SELECT id, name FROM example WHERE id = ?", ("a1",)).fetchone()
    assert row["name"] == "Alice"


def test_transaction_commit_and_rollback(adapter):
    adapter.execute("CREATE TABLE item (id INTEGER PRIMARY KEY, value INTEGER)")

    adapter.begin()
    adapter.execute("INSERT INTO item (value) VALUES (?)", (10,))
    adapter.commit()
    count = adapter.execute("SELECT COUNT(*) FROM item").fetchone()[0]
    assert count == 1

    adapter.begin()
    adapter.execute("INSERT INTO item (value) VALUES (?)", (20,))
    adapter.rollback()
    count_after = adapter.execute("SELECT COUNT(*) FROM item").fetchone()[0]
    assert count_after == 1


def test_begin_takes_write_lock(tmp_path):
    path = tmp_path / "locked.db"
    first = SQLiteAdapter()
    second = SQLiteAdapter()
    first.connect(ConnectionConfig(url=f"sqlite:///{path}"))
    second.connect(ConnectionConfig.from_dsn(f"sqlite:///{path}?timeout=0"))
    first.execute("CREATE TABLE item (value INTEGER)")

    first.begin()
    with pytest.raises(AdapterTransactionError, match="retry the write"):
        second.begin()
    first.rollback()
    second.begin()
    second.rollback()
    first.close()
    second.close()


def test_execution_errors_are_wrapped(adapter):
    with pytest.raises(AdapterExecutionError):
        adapter.execute("SELECT * FROM missing_table")


def test_execute_requires_connection():
    with pytest.raises(AdapterConnectionError):
        SQLiteAdapter().execute("SELECT 1")


def test_in_memory_database():
    adapter = SQLiteAdapter()
    config = ConnectionConfig(url="sqlite:///:memory:")
    adapter.connect(config)
    adapter.execute("CREATE TABLE sample (value TEXT)")
    adapter.execute("INSERT INTO sample (value) VALUES (?)", ("hello",))
    row = adapter.execute("SELECT value FROM sample").fetchone()
    assert row[0] == "hello"
    adapter.close()


@pytest.mark.parametrize(
    "url, expected",
    [
        ("sqlite:///:memory:", ":memory:"),
        ("sqlite://", ":memory:"),
        ("sqlite:///catalog.db?timeout=2", "catalog.db"),
        ("sqlite:////var/lib/catalog.db", "/var/lib/catalog.db"),
    ],
)
def test_normalize_path(url, expected):
    assert SQLiteAdapter._normalize_path(url) == expected


def test_rollback_without_open_transaction_is_a_no_op(adapter):
    adapter.rollback()
    with pytest.raises(AdapterTransactionError, match="COMMIT failed"):
        adapter.commit()


def test_close_warns_about_open_transaction(tmp_path, caplog):
    adapter = SQLiteAdapter()
    adapter.connect(ConnectionConfig(url=f"sqlite:///{tmp_path / 'open.db'}"))
    adapter.begin()
    caplog.set_level("WARNING", logger="libcatalog.adapters.sqlite")
    adapter.close()
    assert any("open transaction" in record.getMessage() for record in caplog.records)
    assert adapter.connected is False
