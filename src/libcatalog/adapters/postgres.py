"""
PostgreSQL adapter over psycopg.

The driver runs in autocommit mode; every guarded write unit is opened
explicitly with ``BEGIN ISOLATION LEVEL ...`` (``SERIALIZABLE`` unless the DSN
asks for another level). A unit that loses a serialization race surfaces as
:class:`AdapterTransactionError` so the caller can retry it.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Sequence

from ..dialects.postgres import PostgresDialect
from ..utils import get_logger, time_call
from ..utils.performance import resolve_slow_query_ms
from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterExecutionError,
    AdapterTransactionError,
    ConnectionConfig,
    DatabaseAdapter,
)

ISOLATION_LEVELS = ("serializable", "repeatable read", "read committed")

# serialization_failure, deadlock_detected
_RETRYABLE_SQLSTATES = frozenset({"40001", "40P01"})
_PLACEHOLDER_RE = re.compile(r"%%|%s")


def _load_driver():
    try:
        import psycopg

        return psycopg
    except ImportError:
        return None


def _is_retryable(exc: BaseException) -> bool:
    return getattr(exc, "sqlstate", None) in _RETRYABLE_SQLSTATES


@dataclass
class PostgresConnectionState:
    connection: Any
    config: ConnectionConfig
    isolation_level: str
    in_unit: bool = False


class PostgresAdapter(DatabaseAdapter):
    def __init__(self, slow_query_ms: int | None = None) -> None:
        self.dialect = PostgresDialect()
        self._state: PostgresConnectionState | None = None
        self.logger = get_logger("adapters.postgres")
        self.slow_query_ms = resolve_slow_query_ms(default=100, override=slow_query_ms)

    def connect(self, config: ConnectionConfig) -> Any:
        driver = _load_driver()
        if driver is None:
            raise AdapterConfigurationError(
                "psycopg is required for PostgreSQL stores (pip install 'libcatalog[postgres]')."
            )
        isolation_level = self._isolation_level(config)

        options = dict(config.options or {})
        if config.ssl:
            for key, value in config.ssl.postgres_options().items():
                options.setdefault(key, value)
        if config.timeout and "connect_timeout" not in options:
            options["connect_timeout"] = int(config.timeout)

        self.logger.info(
            "Connecting to PostgreSQL %s (write units at %s)",
            config.descriptive_label(),
            isolation_level.upper(),
        )
        try:
            connection = driver.connect(config.url.split("?", 1)[0], **options)
        except Exception as exc:
            raise AdapterConnectionError("Failed to connect to PostgreSQL.") from exc
        connection.autocommit = True

        self._state = PostgresConnectionState(connection, config, isolation_level)
        return connection

    def close(self) -> None:
        if self._state:
            try:
                self._state.connection.close()
            finally:
                self._state = None

    @property
    def connected(self) -> bool:
        return self._state is not None

    def _ensure_connection(self) -> Any:
        state = self._state
        if state is None:
            raise AdapterConnectionError("PostgresAdapter is not connected.")
        if getattr(state.connection, "closed", False):
            if state.in_unit:
                # The server already discarded the unit's writes.
                state.in_unit = False
                raise AdapterTransactionError("PostgreSQL connection lost inside a write unit.")
            self.logger.warning("PostgreSQL connection closed; reconnecting.")
            self.connect(state.config)
            return self._state.connection  # type: ignore[union-attr]
        return state.connection

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        connection = self._ensure_connection()
        values = tuple(params or ())
        self._check_placeholders(sql, values)
        cursor = connection.cursor()
        with time_call(
            "postgres.execute",
            self.logger,
            sql=sql,
            params=values,
            threshold_ms=self.slow_query_ms,
        ):
            try:
                cursor.execute(sql, values or None)
            except Exception as exc:
                if _is_retryable(exc):
                    raise AdapterTransactionError(
                        f"Write unit conflicted with a concurrent writer; retry it. ({exc})"
                    ) from exc
                raise AdapterExecutionError(f"PostgreSQL statement failed: {exc}") from exc
        return cursor

    def begin(self) -> None:
        level = self._state.isolation_level if self._state else None
        self._unit_statement(self.dialect.begin_write_sql(level))
        self._state.in_unit = True  # type: ignore[union-attr]

    def commit(self) -> None:
        try:
            self._unit_statement("COMMIT")
        finally:
            if self._state:
                self._state.in_unit = False

    def rollback(self) -> None:
        try:
            self._unit_statement("ROLLBACK")
        finally:
            if self._state:
                self._state.in_unit = False

    def _unit_statement(self, statement: str) -> None:
        connection = self._ensure_connection()
        try:
            connection.cursor().execute(statement)
        except Exception as exc:
            hint = "; retry the write" if _is_retryable(exc) else ""
            raise AdapterTransactionError(f"{statement} failed{hint}: {exc}") from exc

    @staticmethod
    def _isolation_level(config: ConnectionConfig) -> str:
        level = " ".join((config.isolation_level or "serializable").lower().replace("_", " ").split())
        if level not in ISOLATION_LEVELS:
            raise AdapterConfigurationError(
                f"Unsupported isolation_level {config.isolation_level!r}; "
                f"expected one of {', '.join(ISOLATION_LEVELS)}."
            )
        return level

    @staticmethod
    def _check_placeholders(sql: str, params: Sequence[Any]) -> None:
        expected = sum(1 for token in _PLACEHOLDER_RE.findall(sql) if token == "%s")
        if expected != len(params):
            raise AdapterExecutionError(
                f"Statement expects {expected} parameter(s), received {len(params)}."
            )
