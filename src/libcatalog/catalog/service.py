"""
Catalog service: the list / detail / create / replace / delete contract
consumed by presentation code.

Writes follow one path: validate the raw input, then inside a single store
transaction resolve references (or check dependents) and write. Expected
failures come back as outcome values; only :class:`StoreError` and
programming errors raise.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Type, Union

from ..core.model import Model, resolve_model
from ..core.relations import ReferenceField
from ..errors import ConflictError, NotFoundError
from ..guard.referential import ReferentialGuard
from ..persistence.store import EntityStore
from ..query.aggregation import CatalogQueries
from ..utils import get_logger
from ..validation import DanglingReferenceError, FieldError, ValidationError, ValidationResult, validate
from .outcomes import DeleteBlocked, NotFound, Outcome, Success, ValidationFailed

Kind = Union[str, Type[Model]]


class CatalogService:
    def __init__(
        self,
        store: EntityStore,
        *,
        queries: Optional[CatalogQueries] = None,
        guard: Optional[ReferentialGuard] = None,
    ) -> None:
        self.store = store
        self.queries = queries or CatalogQueries(store)
        self.guard = guard or ReferentialGuard(store, self.queries)
        self.logger = get_logger("catalog.service")

    # ------------------------------------------------------------------ #
    def __enter__(self) -> "CatalogService":
        self.store.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        self.store.close()

    # ------------------------------------------------------------------ #
    # Reads
    # ------------------------------------------------------------------ #
    def list(self, kind: Kind) -> Outcome:
        """
        Every record of ``kind`` in its listing order, single references
        resolved inline.
        """
        return Success(self.queries.list_with_relations(kind))

    def detail(self, kind: Kind, id: str) -> Outcome:
        """
        The record with references resolved, plus the records that depend on
        it under ``related`` (an author's or genre's ``books``, a book's
        ``instances``).
        """
        model = resolve_model(kind)
        view = self.queries.with_relations(model, id)
        if view is None:
            return NotFound(model._meta.kind, id)
        related = {
            name: [record.to_dict(include_derived=True) for record in records]
            for name, records in self.queries.related_records(model, id).items()
        }
        return Success({"record": view, "related": related})

    def counts(self) -> Outcome:
        return Success(self.queries.counts())

    def form_choices(self, kind: Kind) -> Outcome:
        """
        Options a create/update form for ``kind`` offers: the candidate
        records for each reference field and the allowed values of each
        choice field.
        """
        model = resolve_model(kind)
        choices: Dict[str, List[Any]] = {}
        for field in model._meta.input_fields():
            name = field.require_name()
            if isinstance(field, ReferenceField):
                remote = field.require_remote_model()
                records = self.store.list(remote, sort=remote._meta.ordering)
                choices[name] = [record.to_dict(include_derived=True) for record in records]
            elif field.choices is not None:
                choices[name] = list(field.choices)
        return Success(choices)

    # ------------------------------------------------------------------ #
    # Writes
    # ------------------------------------------------------------------ #
    def create(self, kind: Kind, raw_fields: Optional[Mapping[str, Any]]) -> Outcome:
        model = resolve_model(kind)
        result = validate(model, raw_fields)
        try:
            with self.store.transaction():
                self._check_input(model, result)
                existing = self._find_by_natural_key(model, result.cleaned)
                if existing is not None:
                    self.logger.debug(
                        "%s %r already exists as %s", model._meta.kind, existing.display_title, existing.pk
                    )
                    return Success(existing)
                record_id = self.store.create(model, result.cleaned)
                record = self.store.get(model, record_id)
        except ValidationError as exc:
            return self._rejected(model, exc, result.sanitized)
        return Success(record)

    def replace(self, kind: Kind, id: str, raw_fields: Optional[Mapping[str, Any]]) -> Outcome:
        model = resolve_model(kind)
        result = validate(model, raw_fields)
        try:
            with self.store.transaction():
                if not self.store.exists(model, id):
                    raise NotFoundError(model._meta.kind, id)
                existing = self._find_by_natural_key(model, result.cleaned)
                if existing is not None and existing.pk != id:
                    key = model._meta.natural_key
                    result.errors.append(
                        FieldError(key, f"{model.__name__} with this {key} already exists.")  # type: ignore[arg-type]
                    )
                self._check_input(model, result)
                record = self.store.replace(model, id, result.cleaned)
        except NotFoundError as exc:
            return NotFound(exc.kind, exc.id)
        except ValidationError as exc:
            return self._rejected(model, exc, {**result.sanitized, "id": id})
        return Success(record)

    def delete(self, kind: Kind, id: str) -> Outcome:
        model = resolve_model(kind)
        record = None
        try:
            with self.store.transaction():
                record = self.store.get(model, id)
                if record is None:
                    raise NotFoundError(model._meta.kind, id)
                self.guard.require_deletable(model, id)
                self.store.delete(model, id)
        except NotFoundError as exc:
            return NotFound(exc.kind, exc.id)
        except ConflictError as exc:
            self.logger.info(
                "Refused to delete %s %s: %s dependent record(s)",
                exc.kind,
                exc.id,
                len(exc.dependents),
            )
            return DeleteBlocked(record, tuple(exc.dependents))
        return Success(record)

    # ------------------------------------------------------------------ #
    def _check_input(self, model: Type[Model], result: ValidationResult) -> None:
        reference_errors = self.guard.resolve_references(model, result.cleaned)
        if reference_errors:
            raise DanglingReferenceError([*result.errors, *reference_errors])
        result.raise_for_errors()

    def _find_by_natural_key(self, model: Type[Model], cleaned: Mapping[str, Any]) -> Optional[Model]:
        key = model._meta.natural_key
        if key is None or cleaned.get(key) is None:
            return None
        matches = self.store.list(model, filter={key: cleaned[key]})
        return matches[0] if matches else None

    def _rejected(
        self, model: Type[Model], exc: ValidationError, sanitized: Dict[str, Any]
    ) -> ValidationFailed:
        self.logger.debug("Rejected %s write: %s", model._meta.kind, exc)
        return ValidationFailed(tuple(exc.field_errors), sanitized)
