"""
SQLite database adapter implementation.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Any, Sequence

from ..dialects.sqlite import SQLiteDialect
from ..security.dsns import parse_dsn
from ..utils import get_logger, time_call
from ..utils.performance import resolve_slow_query_ms
from .base import (
    AdapterConnectionError,
    AdapterExecutionError,
    AdapterTransactionError,
    ConnectionConfig,
    DatabaseAdapter,
)

MEMORY_PATH = ":memory:"
DEFAULT_BUSY_TIMEOUT = 5.0


def _is_contention(exc: sqlite3.Error) -> bool:
    message = str(exc).lower()
    return "locked" in message or "busy" in message


@dataclass(slots=True)
class SQLiteConnectionState:
    connection: sqlite3.Connection
    path: str


class SQLiteAdapter(DatabaseAdapter):
    """
    Adapter over the stdlib sqlite3 module.

    The connection runs in autocommit mode; the store opens every write unit
    explicitly, and ``begin`` takes the write lock immediately so that the
    guard's reads and the write that follows see the same database.
    """

    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = SQLiteDialect()
        self._state: SQLiteConnectionState | None = None
        self.logger = get_logger("adapters.sqlite")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    # ------------------------------------------------------------------ #
    # Connection management
    # ------------------------------------------------------------------ #
    def connect(self, config: ConnectionConfig) -> sqlite3.Connection:
        path = self._normalize_path(config.url)
        timeout = config.timeout if config.timeout is not None else DEFAULT_BUSY_TIMEOUT
        try:
            connection = sqlite3.connect(path, isolation_level=None, timeout=timeout, check_same_thread=False)
        except sqlite3.Error as exc:
            raise AdapterConnectionError(f"Failed to open SQLite database '{path}'.") from exc
        connection.row_factory = sqlite3.Row
        self._require_json_support(connection)

        self.logger.info("Connected to SQLite %s", config.descriptive_label())
        self._state = SQLiteConnectionState(connection, path)
        return connection

    def close(self) -> None:
        if self._state is None:
            return
        state, self._state = self._state, None
        if state.connection.in_transaction:
            self.logger.warning("Closing %s with an open transaction; it is rolled back.", state.path)
        state.connection.close()

    @property
    def connected(self) -> bool:
        return self._state is not None

    def _ensure_connection(self) -> sqlite3.Connection:
        if self._state is None:
            raise AdapterConnectionError("SQLiteAdapter is not connected.")
        return self._state.connection

    @staticmethod
    def _require_json_support(connection: sqlite3.Connection) -> None:
        # Reference lists are filtered with json_each.
        try:
            connection.execute("SELECT COUNT(*) FROM json_each('[]')").fetchone()
        except sqlite3.OperationalError as exc:
            connection.close()
            raise AdapterConnectionError("This SQLite build lacks the JSON1 functions.") from exc

    # ------------------------------------------------------------------ #
    # Execution
    # ------------------------------------------------------------------ #
    def execute(self, sql: str, params: Sequence[Any] | None = None) -> sqlite3.Cursor:
        connection = self._ensure_connection()
        bound = tuple(params or ())
        cursor = connection.cursor()
        with time_call("sqlite.execute", self.logger, sql=sql, params=bound, threshold_ms=self.slow_query_ms):
            try:
                cursor.execute(sql, bound)
            except sqlite3.Error as exc:
                raise AdapterExecutionError(f"SQLite statement failed: {exc}") from exc
        return cursor

    # ------------------------------------------------------------------ #
    # Write units
    # ------------------------------------------------------------------ #
    def begin(self) -> None:
        self._unit_statement(self.dialect.begin_write_sql())

    def commit(self) -> None:
        self._unit_statement("COMMIT")

    def rollback(self) -> None:
        # SQLite may already have rolled back on its own (SQLITE_FULL, SQLITE_IOERR).
        if not self._ensure_connection().in_transaction:
            return
        self._unit_statement("ROLLBACK")

    def _unit_statement(self, statement: str) -> None:
        connection = self._ensure_connection()
        try:
            connection.execute(statement)
        except sqlite3.Error as exc:
            hint = "; another writer holds the database, retry the write" if _is_contention(exc) else ""
            raise AdapterTransactionError(f"{statement} failed{hint}: {exc}") from exc

    # ------------------------------------------------------------------ #
    @staticmethod
    def _normalize_path(url: str) -> str:
        if not url.startswith("sqlite"):
            return url
        parsed = parse_dsn(url)
        if parsed.is_memory:
            return MEMORY_PATH
        # sqlite:///relative.db and sqlite:////absolute.db
        return parsed.path[1:]
