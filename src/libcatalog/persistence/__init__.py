"""
Persistence layer: entity store, transactions and schema management.
"""

from .schema import SchemaBuilder
from .store import EntityStore
from .transaction import TransactionError, TransactionManager

__all__ = ["EntityStore", "SchemaBuilder", "TransactionError", "TransactionManager"]
