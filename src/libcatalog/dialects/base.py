"""
Dialect strategy interfaces describing SQL rendering behaviors.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class DialectCapabilities:
    """
    Feature flags describing backend capabilities.
    """

    supports_savepoints: bool = True


class Dialect(Protocol):
    """
    Strategy interface consumed by the store, schema builder and adapters.
    """

    @property
    def name(self) -> str: ...

    @property
    def capabilities(self) -> DialectCapabilities: ...

    def quote_identifier(self, identifier: str) -> str: ...

    def format_table(self, table_name: str) -> str: ...

    def parameter_placeholder(self, position: int | None = None) -> str: ...

    def render_column_definition(self, column: str, column_type: str, *, nullable: bool) -> str: ...

    def list_contains_clause(self, column: str) -> str:
        """
        SQL predicate true when the JSON array stored in ``column`` holds the
        single bound parameter.
        """
        ...

    def begin_write_sql(self, isolation_level: str | None = None) -> str:
        """
        Statement opening a transaction that serializes guarded writes.
        Backends without isolation levels ignore ``isolation_level``.
        """
        ...

    def insertion_order_expression(self) -> str:
        """
        Expression ordering rows by insertion, used to break sort ties.
        """
        ...

    def insertion_order_definition(self) -> str | None:
        """
        Extra column the schema needs to support
        :meth:`insertion_order_expression`, if any.
        """
        ...
