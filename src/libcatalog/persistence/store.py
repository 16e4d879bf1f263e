"""
Entity store: typed records over a relational backend with no foreign keys.

The store is deliberately dumb about integrity. It generates ids, converts
field values to and from their column form, and runs statements. Whether a
write or delete is allowed is decided by the validation pipeline and the
referential guard before the store is called.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Type, Union

from ..adapters.base import AdapterError, ConnectionConfig, DatabaseAdapter
from ..core.fields import Field, IdField
from ..core.model import Model, registered_models, resolve_model
from ..core.relations import ReferenceField, RelationshipError, relation_registry
from ..dialects.base import Dialect
from ..errors import StoreError
from ..utils import get_logger, time_call
from ..utils.performance import PerformanceTracker, resolve_slow_query_ms
from .schema import SchemaBuilder
from .transaction import TransactionError, TransactionManager

Kind = Union[str, Type[Model]]


class EntityStore:
    """
    One connection-backed handle onto the catalog collections.

    A handle is meant for one worker at a time; concurrent workers open their
    own. Use it as a context manager or call :meth:`open` / :meth:`close`.
    """

    def __init__(
        self,
        adapter: DatabaseAdapter,
        config: Optional[ConnectionConfig] = None,
        *,
        slow_query_ms: Optional[int] = None,
        n_plus_one_threshold: int = 5,
    ) -> None:
        self.adapter = adapter
        self.config = config or ConnectionConfig(url="sqlite:///:memory:")
        self.dialect: Dialect = adapter.dialect  # type: ignore[attr-defined]
        self.logger = get_logger("persistence.store")
        self.slow_query_ms = resolve_slow_query_ms(default=200, override=slow_query_ms)
        self.performance = PerformanceTracker(
            get_logger("persistence.performance"),
            n_plus_one_threshold=n_plus_one_threshold,
        )
        self.transactions = TransactionManager(adapter, self.dialect)
        self.schema = SchemaBuilder(self.dialect)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #
    def open(self) -> "EntityStore":
        if not self.adapter.connected:
            with self._translate_errors("open"):
                self.adapter.connect(self.config)
            self.logger.debug("Store opened on %s", self.config.redacted_dsn())
        return self

    def close(self) -> None:
        if self.transactions.active:
            pending = self.transactions.discard()
            self.logger.warning(
                "Closing store inside an open write unit; uncommitted writes to %s are lost.",
                ", ".join(pending) or "nothing",
            )
        with self._translate_errors("close"):
            self.adapter.close()

    @property
    def is_open(self) -> bool:
        return self.adapter.connected

    def __enter__(self) -> "EntityStore":
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def ensure_schema(self, models: Optional[Sequence[Type[Model]]] = None) -> None:
        pending = relation_registry.unresolved()
        if pending:
            names = ", ".join(f"{model.__name__}.{field.name} -> {field.to}" for model, field in pending)
            raise RelationshipError(f"Cannot build schema with unresolved references: {names}")
        for model in models or registered_models():
            for statement in self.schema.statements_for(model):
                self._execute(statement)

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #
    @contextmanager
    def transaction(self) -> Iterator["EntityStore"]:
        """
        Open one guarded write unit. Nested use becomes a savepoint.
        """
        with self._translate_errors("begin"):
            self.transactions.begin()
        try:
            yield self
        except Exception:
            with self._translate_errors("rollback"):
                self.transactions.rollback()
            raise
        with self._translate_errors("commit"):
            self.transactions.commit()

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def create(self, kind: Kind, fields: Mapping[str, Any]) -> str:
        """
        Insert a record and return its generated id. A supplied ``id`` is
        ignored.
        """
        model = resolve_model(kind)
        record_id = IdField.generate()
        instance = model(id=record_id, **self._input_values(model, fields))
        columns, params = self._column_values(instance)
        placeholders = ", ".join(self.dialect.parameter_placeholder() for _ in columns)
        sql = (
            f"INSERT INTO {self._table(model)} "
            f"({', '.join(self.dialect.quote_identifier(c) for c in columns)}) "
            f"VALUES ({placeholders})"
        )
        self._execute(sql, params)
        self.transactions.record_write(model._meta.kind)
        self.logger.debug("Created %s %s", model._meta.kind, record_id)
        return record_id

    def replace(self, kind: Kind, id: str, fields: Mapping[str, Any]) -> Optional[Model]:
        """
        Overwrite every input field of record ``id``. Returns ``None`` when no
        such record exists; the id itself never changes.
        """
        model = resolve_model(kind)
        instance = model(id=id, **self._input_values(model, fields))
        columns, params = self._column_values(instance, include_pk=False)
        assignments = ", ".join(
            f"{self.dialect.quote_identifier(column)} = {self.dialect.parameter_placeholder()}"
            for column in columns
        )
        sql = f"UPDATE {self._table(model)} SET {assignments} WHERE {self._pk_clause(model)}"
        cursor = self._execute(sql, [*params, id])
        if cursor.rowcount == 0:
            return None
        self.transactions.record_write(model._meta.kind)
        self.logger.debug("Replaced %s %s", model._meta.kind, id)
        return instance

    def delete(self, kind: Kind, id: str) -> bool:
        model = resolve_model(kind)
        cursor = self._execute(f"DELETE FROM {self._table(model)} WHERE {self._pk_clause(model)}", [id])
        deleted = cursor.rowcount > 0
        if deleted:
            self.transactions.record_write(model._meta.kind)
            self.logger.debug("Deleted %s %s", model._meta.kind, id)
        return deleted

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def get(self, kind: Kind, id: str) -> Optional[Model]:
        model = resolve_model(kind)
        sql = (
            f"SELECT {self._select_list(model)} FROM {self._table(model)} "
            f"WHERE {self._pk_clause(model)}"
        )
        rows = self._fetch(sql, [id])
        if not rows:
            return None
        return model(**rows[0])

    def exists(self, kind: Kind, id: str) -> bool:
        model = resolve_model(kind)
        sql = f"SELECT 1 FROM {self._table(model)} WHERE {self._pk_clause(model)}"
        return bool(self._fetch(sql, [id]))

    def list(
        self,
        kind: Kind,
        filter: Optional[Mapping[str, Any]] = None,
        sort: Optional[str] = None,
    ) -> List[Model]:
        """
        Records of ``kind`` matching every ``filter`` entry, ascending by
        ``sort`` with ties kept in insertion order.

        A filter on a reference-list field matches records whose list contains
        the given id; every other filter is an equality test.
        """
        model = resolve_model(kind)
        where, params = self._where(model, filter)
        order = [self.dialect.insertion_order_expression()]
        if sort is not None:
            order.insert(0, self.dialect.quote_identifier(model._meta.get_field(sort).column_name()))
        sql = (
            f"SELECT {self._select_list(model)} FROM {self._table(model)}{where} "
            f"ORDER BY {', '.join(order)}"
        )
        return [model(**row) for row in self._fetch(sql, params)]

    def count(self, kind: Kind, filter: Optional[Mapping[str, Any]] = None) -> int:
        model = resolve_model(kind)
        where, params = self._where(model, filter)
        cursor = self._execute(f"SELECT COUNT(*) FROM {self._table(model)}{where}", params)
        row = cursor.fetchone()
        return int(row[0]) if row else 0

    def query_stats(self) -> List[Dict[str, object]]:
        return self.performance.summary()

    def reset_query_stats(self) -> None:
        self.performance.reset()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    def _input_values(self, model: Type[Model], fields: Mapping[str, Any]) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for field in model._meta.input_fields():
            name = field.require_name()
            if name in fields:
                values[name] = fields[name]
            elif field.many:
                values[name] = []
            else:
                values[name] = field.get_default()
        return values

    def _column_values(
        self, instance: Model, *, include_pk: bool = True
    ) -> Tuple[List[str], List[Any]]:
        columns: List[str] = []
        params: List[Any] = []
        for field in instance._meta.get_fields():
            if field.primary_key and not include_pk:
                continue
            columns.append(field.column_name())
            params.append(field.to_db(getattr(instance, field.require_name())))
        return columns, params

    def _where(
        self, model: Type[Model], filter: Optional[Mapping[str, Any]]
    ) -> Tuple[str, List[Any]]:
        if not filter:
            return "", []
        clauses: List[str] = []
        params: List[Any] = []
        for name, value in filter.items():
            field = model._meta.get_field(name)
            column = field.column_name()
            if field.many and isinstance(field, ReferenceField):
                clauses.append(self.dialect.list_contains_clause(column))
                params.append(field.clean_item(value))
            elif value is None:
                clauses.append(f"{self.dialect.quote_identifier(column)} IS NULL")
            else:
                clauses.append(
                    f"{self.dialect.quote_identifier(column)} = {self.dialect.parameter_placeholder()}"
                )
                params.append(self._to_db(field, value))
        return " WHERE " + " AND ".join(clauses), params

    @staticmethod
    def _to_db(field: Field, value: Any) -> Any:
        return field.to_db(field.to_python(value))

    def _table(self, model: Type[Model]) -> str:
        return self.dialect.format_table(model._meta.table_name)

    def _pk_clause(self, model: Type[Model]) -> str:
        pk = model._meta.primary_key
        assert pk is not None
        return f"{self.dialect.quote_identifier(pk.column_name())} = {self.dialect.parameter_placeholder()}"

    def _select_list(self, model: Type[Model]) -> str:
        return ", ".join(
            self.dialect.quote_identifier(field.column_name()) for field in model._meta.get_fields()
        )

    def _fetch(self, sql: str, params: Sequence[Any]) -> List[Dict[str, Any]]:
        cursor = self._execute(sql, params)
        with self._translate_errors("fetch"):
            columns = [description[0] for description in cursor.description or ()]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]

    def _execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        param_list = list(params)
        with self._translate_errors("execute"):
            with time_call(
                "store.execute",
                self.logger,
                sql=sql,
                params=param_list,
                threshold_ms=self.slow_query_ms,
                on_complete=lambda elapsed: self.performance.record(sql, param_list, elapsed),
            ):
                return self.adapter.execute(sql, param_list)

    @contextmanager
    def _translate_errors(self, action: str) -> Iterator[None]:
        try:
            yield
        except (AdapterError, TransactionError) as exc:
            self.logger.error("Store %s failed: %s", action, exc)
            raise StoreError(f"Store {action} failed: {exc}") from exc
