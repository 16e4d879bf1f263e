"""
PostgreSQL dialect implementation.
"""

from __future__ import annotations

from typing import Final

from .base import DialectCapabilities

INSERTION_ORDER_COLUMN: Final[str] = "_seq"


class PostgresDialect:
    """
    PostgreSQL dialect using percent positional parameters.
    """

    name: Final[str] = "postgresql"
    capabilities: Final[DialectCapabilities] = DialectCapabilities(
        supports_savepoints=True,
    )

    def quote_identifier(self, identifier: str) -> str:
        escaped = identifier.replace('"', '""')
        return f'"{escaped}"'

    def format_table(self, table_name: str) -> str:
        if "." in table_name:
            schema, table = table_name.split(".", 1)
            return f"{self.quote_identifier(schema)}.{self.quote_identifier(table)}"
        return self.quote_identifier(table_name)

    def parameter_placeholder(self, position: int | None = None) -> str:
        return "%s"

    def render_column_definition(self, column: str, column_type: str, *, nullable: bool) -> str:
        null_clause = "" if nullable else " NOT NULL"
        return f"{self.quote_identifier(column)} {column_type}{null_clause}"

    def list_contains_clause(self, column: str) -> str:
        # jsonb "?" tests for a top-level string element.
        return f"({self.quote_identifier(column)})::jsonb ? %s"

    def begin_write_sql(self, isolation_level: str | None = None) -> str:
        return f"BEGIN ISOLATION LEVEL {(isolation_level or 'serializable').upper()}"

    def insertion_order_expression(self) -> str:
        return self.quote_identifier(INSERTION_ORDER_COLUMN)

    def insertion_order_definition(self) -> str | None:
        return f"{self.quote_identifier(INSERTION_ORDER_COLUMN)} BIGSERIAL"
