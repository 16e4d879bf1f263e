"""
Adapter protocol and connection configuration for catalog stores.

A store is configured from one DSN, e.g. ``sqlite:///catalog.db?timeout=2``
or ``postgresql://app@db/catalog?sslmode=require&isolation_level=serializable``.
Query parameters the store understands are lifted into typed fields; the
rest are handed to the driver as connection options.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields
from typing import Any, Callable, Dict, Protocol, Sequence

from ..dialects.base import Dialect
from ..security.dsns import DSNConfig, parse_dsn


class AdapterError(RuntimeError):
    """Base error for adapter-related failures."""


class AdapterConfigurationError(AdapterError):
    """Bad DSN, bad option value, or a missing driver."""


class AdapterConnectionError(AdapterError):
    pass


class AdapterExecutionError(AdapterError):
    pass


class AdapterTransactionError(AdapterError):
    """A write unit could not be opened, committed or rolled back."""


@dataclass
class SSLConfig:
    mode: str | None = None
    rootcert: str | None = None
    cert: str | None = None
    key: str | None = None

    @classmethod
    def pop_from(cls, query: Dict[str, str]) -> "SSLConfig | None":
        ssl = cls(**{f.name: query.pop(f"ssl{f.name}", None) for f in fields(cls)})
        return ssl if any(vars(ssl).values()) else None

    def postgres_options(self) -> Dict[str, Any]:
        return {f"ssl{name}": value for name, value in vars(self).items() if value}


def _to_bool(value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in ("1", "true", "yes", "on"):
        return True
    if normalized in ("0", "false", "no", "off"):
        return False
    raise ValueError(value)


# DSN parameter -> converter, for parameters the store itself consumes.
_STORE_SETTINGS: Dict[str, Callable[[str], Any]] = {
    "autocommit": _to_bool,
    "timeout": float,
    "isolation_level": str,
}
# Driver options that still need a type.
_TYPED_OPTIONS: Dict[str, Callable[[str], Any]] = {
    "connect_timeout": int,
}


def _convert(key: str, value: str, convert: Callable[[str], Any]) -> Any:
    try:
        return convert(value)
    except ValueError as exc:
        raise AdapterConfigurationError(f"Invalid value for DSN parameter '{key}': {value!r}") from exc


@dataclass
class ConnectionConfig:
    url: str
    autocommit: bool = False
    isolation_level: str | None = None
    timeout: float | None = None
    options: Dict[str, Any] | None = None
    ssl: SSLConfig | None = None
    dsn: DSNConfig | None = None
    source: str | None = None

    @classmethod
    def from_dsn(cls, dsn: str, **overrides: Any) -> "ConnectionConfig":
        """
        Parse ``dsn`` into a config. Keyword ``overrides`` win over values in
        the DSN; an ``options`` override is merged into the DSN's options.
        """
        parsed = parse_dsn(dsn)
        query = dict(parsed.query)

        settings = {
            key: _convert(key, query.pop(key), convert)
            for key, convert in _STORE_SETTINGS.items()
            if key in query
        }
        ssl = SSLConfig.pop_from(query)
        options = {
            key: _convert(key, value, _TYPED_OPTIONS[key]) if key in _TYPED_OPTIONS else value
            for key, value in query.items()
        }
        options.update(overrides.pop("options", None) or {})

        settings.update(overrides)
        settings.setdefault("ssl", ssl)
        if settings.get("autocommit") is None:
            settings["autocommit"] = False
        return cls(url=dsn, dsn=parsed, options=options or None, **settings)

    @classmethod
    def from_env(cls, env_var: str, **overrides: Any) -> "ConnectionConfig":
        value = os.getenv(env_var)
        if not value:
            raise AdapterConfigurationError(f"Environment variable {env_var} is not set")
        return cls.from_dsn(value, source=env_var, **overrides)

    @property
    def parsed(self) -> DSNConfig:
        return self.dsn or parse_dsn(self.url)

    @property
    def backend(self) -> str | None:
        return self.parsed.backend

    @property
    def is_memory(self) -> bool:
        return self.parsed.is_memory

    def redacted_dsn(self) -> str:
        return self.parsed.redacted()

    def descriptive_label(self) -> str:
        """Redacted DSN, prefixed with the environment variable it came from."""
        redacted = self.redacted_dsn()
        return f"{self.source} ({redacted})" if self.source else redacted


class DatabaseAdapter(Protocol):
    """
    The database operations the entity store relies on.
    """

    dialect: Dialect
    slow_query_ms: int

    def connect(self, config: ConnectionConfig) -> Any:
        """
        Open a connection handle. The handle never opens transactions on its
        own; :meth:`begin` does.
        """

    def close(self) -> None:
        """
        Close underlying resources. Implementations should be idempotent.
        """

    @property
    def connected(self) -> bool: ...

    def execute(self, sql: str, params: Sequence[Any] | None = None) -> Any:
        """
        Execute one statement and return a DB-API cursor.
        """

    def begin(self) -> None:
        """
        Open a write unit that serializes against other writers.
        """

    def commit(self) -> None: ...

    def rollback(self) -> None: ...
