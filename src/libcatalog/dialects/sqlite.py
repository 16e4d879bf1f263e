"""
SQLite dialect implementation.
"""

from __future__ import annotations

from typing import Final

from .base import DialectCapabilities


class SQLiteDialect:
    """
    SQLite dialect using qmark param style and the JSON1 table functions.
    """

    name: Final[str] = "sqlite"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_savepoints=True,
    )

    def quote_identifier(self, identifier: str) -> str:
        escaped = identifier.replace('"', '""')
        return f'"{escaped}"'

    def format_table(self, table_name: str) -> str:
        return self.quote_identifier(table_name)

    def parameter_placeholder(self, position: int | None = None) -> str:
        return "?"

    def render_column_definition(self, column: str, column_type: str, *, nullable: bool) -> str:
        null_clause = "" if nullable else " NOT NULL"
        return f"{self.quote_identifier(column)} {column_type}{null_clause}"

    def list_contains_clause(self, column: str) -> str:
        quoted = self.quote_identifier(column)
        return f"EXISTS (SELECT 1 FROM json_each({quoted}) WHERE json_each.value = ?)"

    def begin_write_sql(self, isolation_level: str | None = None) -> str:
        # Take the RESERVED lock up front so check-then-write cannot interleave.
        return "BEGIN IMMEDIATE"

    def insertion_order_expression(self) -> str:
        return "rowid"

    def insertion_order_definition(self) -> str | None:
        return None
