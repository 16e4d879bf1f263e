"""
Exception hierarchy for libcatalog.

Input problems (:class:`ValidationError` and its
:class:`DanglingReferenceError` subclass) live in
:mod:`libcatalog.validation.errors` and are re-exported here.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Sequence

if TYPE_CHECKING:
    from .query.aggregation import DependentSummary


class CatalogError(Exception):
    """Base class for every error raised by libcatalog."""


class NotFoundError(CatalogError):
    def __init__(self, kind: str, id: Any) -> None:
        self.kind = kind
        self.id = id
        super().__init__(f"No {kind} with id {id!r}.")


class ConflictError(CatalogError):
    """
    A delete was refused because live records still reference the target.
    """

    def __init__(self, kind: str, id: Any, dependents: Sequence["DependentSummary"]) -> None:
        self.kind = kind
        self.id = id
        self.dependents = list(dependents)
        super().__init__(
            f"Cannot delete {kind} {id!r}: referenced by {len(self.dependents)} record(s)."
        )


class StoreError(CatalogError):
    """Underlying persistence failure. The original exception is chained."""


class UnknownKindError(CatalogError, LookupError):
    pass


def __getattr__(name: str) -> Any:
    if name in {"ValidationError", "DanglingReferenceError"}:
        from .validation import errors

        return getattr(errors, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "CatalogError",
    "ConflictError",
    "DanglingReferenceError",
    "NotFoundError",
    "StoreError",
    "UnknownKindError",
    "ValidationError",
]
