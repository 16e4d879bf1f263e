"""
Referential integrity for a store that has no foreign keys.

Two checks stand in for the constraints the backend does not enforce:

* before a create or replace, every reference the record declares must point
  at an existing record (:meth:`ReferentialGuard.resolve_references`);
* before a delete, no live record may reference the target
  (:meth:`ReferentialGuard.can_delete`).

Callers run the check and the write inside one
:meth:`EntityStore.transaction` so no competing writer can slip in between.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, List, Mapping, Tuple, Type, Union

from ..core.model import Model, resolve_model
from ..errors import ConflictError
from ..query.aggregation import CatalogQueries, DependentSummary
from ..utils import get_logger
from ..validation.errors import DanglingReferenceError, FieldError

if TYPE_CHECKING:
    from ..persistence.store import EntityStore

Kind = Union[str, Type[Model]]


@dataclass(frozen=True)
class Allowed:
    allowed = True


@dataclass(frozen=True)
class Blocked:
    dependents: Tuple[DependentSummary, ...]
    allowed = False


DeleteCheck = Union[Allowed, Blocked]


class ReferentialGuard:
    def __init__(self, store: "EntityStore", queries: CatalogQueries | None = None) -> None:
        self.store = store
        self.queries = queries or CatalogQueries(store)
        self.logger = get_logger("guard.referential")

    def can_delete(self, kind: Kind, id: str) -> DeleteCheck:
        dependents = self.queries.dependents_of(kind, id)
        if dependents:
            return Blocked(tuple(dependents))
        return Allowed()

    def require_deletable(self, kind: Kind, id: str) -> None:
        check = self.can_delete(kind, id)
        if isinstance(check, Blocked):
            model = resolve_model(kind)
            raise ConflictError(model._meta.kind, id, check.dependents)

    def resolve_references(self, kind: Kind, fields: Mapping[str, Any]) -> List[FieldError]:
        """
        Look up every id referenced by ``fields``. Each id that does not exist
        yields one :class:`FieldError` on the referencing field.
        """
        model = resolve_model(kind)
        errors: List[FieldError] = []
        for field in model._meta.references:
            name = field.require_name()
            remote = field.require_remote_model()
            for ref_id in field.referenced_ids(fields.get(name)):
                if self.store.exists(remote, ref_id):
                    continue
                self.logger.debug("Dangling %s reference %s on %s", name, ref_id, model._meta.kind)
                errors.append(
                    FieldError(
                        name,
                        field.messages.get("missing")
                        or f"{remote.__name__} '{ref_id}' does not exist.",
                    )
                )
        return errors

    def require_references(self, kind: Kind, fields: Mapping[str, Any]) -> None:
        errors = self.resolve_references(kind, fields)
        if errors:
            raise DanglingReferenceError(errors)
