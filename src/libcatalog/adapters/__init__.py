"""
Database adapter interfaces and implementations.
"""

from .base import (
    AdapterConfigurationError,
    AdapterConnectionError,
    AdapterError,
    AdapterExecutionError,
    AdapterTransactionError,
    ConnectionConfig,
    DatabaseAdapter,
    SSLConfig,
)
from .postgres import PostgresAdapter
from .sqlite import SQLiteAdapter


def create_adapter(config: ConnectionConfig) -> DatabaseAdapter:
    """
    Pick the adapter matching the DSN scheme of ``config``.
    """
    backend = config.backend
    if backend == "sqlite":
        return SQLiteAdapter()
    if backend == "postgresql":
        return PostgresAdapter()
    raise AdapterConfigurationError(
        f"Unsupported store backend in DSN {config.redacted_dsn()!r}."
    )


__all__ = [
    "ConnectionConfig",
    "DatabaseAdapter",
    "SSLConfig",
    "AdapterError",
    "AdapterConfigurationError",
    "AdapterConnectionError",
    "AdapterExecutionError",
    "AdapterTransactionError",
    "SQLiteAdapter",
    "PostgresAdapter",
    "create_adapter",
]
