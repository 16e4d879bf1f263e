"""
DDL for the catalog collections.

Each record kind gets one table. Reference columns hold plain id text with no
``REFERENCES`` clause; a reference list is a JSON array in a single column.
Single references are indexed because the referential guard looks dependents
up by them before every delete.
"""

from __future__ import annotations

from typing import List, Type

from ..core.model import Model
from ..core.relations import ReferenceField
from ..dialects.base import Dialect


class SchemaBuilder:
    def __init__(self, dialect: Dialect) -> None:
        self.dialect = dialect

    def statements_for(self, model: Type[Model]) -> List[str]:
        """Table first, then its reference indexes."""
        return [self.create_table_sql(model), *self.create_index_sql(model)]

    def create_table_sql(self, model: Type[Model]) -> str:
        table = self.dialect.format_table(model._meta.table_name)
        return f"CREATE TABLE IF NOT EXISTS {table} ({', '.join(self._column_definitions(model))})"

    def create_index_sql(self, model: Type[Model]) -> List[str]:
        table_name = model._meta.table_name
        table = self.dialect.format_table(table_name)
        statements = []
        for field in model._meta.get_fields():
            if not isinstance(field, ReferenceField) or field.many:
                continue
            column = field.column_name()
            index = self.dialect.quote_identifier(f"ix_{table_name}_{column}")
            statements.append(
                f"CREATE INDEX IF NOT EXISTS {index} ON {table} ({self.dialect.quote_identifier(column)})"
            )
        return statements

    def _column_definitions(self, model: Type[Model]) -> List[str]:
        definitions = []
        for field in model._meta.get_fields():
            # A reference list is stored even when empty ("[]").
            nullable = field.nullable and not field.many
            definition = self.dialect.render_column_definition(field.column_name(), field.db_type, nullable=nullable)
            definitions.append(f"{definition} PRIMARY KEY" if field.primary_key else definition)
        tiebreak = self.dialect.insertion_order_definition()
        if tiebreak:
            definitions.append(tiebreak)
        return definitions
