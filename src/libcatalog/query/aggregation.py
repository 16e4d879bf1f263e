"""
Read-only aggregation over the entity store: counts, reference resolution and
dependent lookup.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Type, Union

from ..core.model import Model, resolve_model
from ..core.relations import ReferenceField, relation_registry
from ..utils import get_logger

if TYPE_CHECKING:
    from ..persistence.store import EntityStore

Kind = Union[str, Type[Model]]


@dataclass(frozen=True)
class DependentSummary:
    kind: str
    id: str
    title: str


@dataclass(frozen=True)
class CatalogCounts:
    books: int
    book_instances: int
    book_instances_available: int
    authors: int
    genres: int

    def as_dict(self) -> Dict[str, int]:
        return {
            "books": self.books,
            "book_instances": self.book_instances,
            "book_instances_available": self.book_instances_available,
            "authors": self.authors,
            "genres": self.genres,
        }


class CatalogQueries:
    """
    Query façade shared by the referential guard and presentation code.
    """

    def __init__(self, store: "EntityStore") -> None:
        self.store = store
        self.logger = get_logger("query.aggregation")

    def counts(self) -> CatalogCounts:
        return CatalogCounts(
            books=self.store.count("book"),
            book_instances=self.store.count("bookinstance"),
            book_instances_available=self.store.count("bookinstance", {"status": "Available"}),
            authors=self.store.count("author"),
            genres=self.store.count("genre"),
        )

    def related_records(self, kind: Kind, id: str) -> Dict[str, List[Model]]:
        """
        Records referencing ``(kind, id)``, grouped by the referencing field's
        ``related_name`` (``books`` for an author or genre, ``instances`` for a
        book).
        """
        target = resolve_model(kind)
        groups: Dict[str, List[Model]] = {}
        for source, field in relation_registry.references_to(target):
            key = field.related_name or f"{source._meta.kind}_set"
            matches = self.store.list(
                source, filter={field.require_name(): id}, sort=source._meta.ordering
            )
            groups.setdefault(key, []).extend(matches)
        return groups

    def dependents_of(self, kind: Kind, id: str) -> List[DependentSummary]:
        summaries: List[DependentSummary] = []
        for records in self.related_records(kind, id).values():
            for record in records:
                summaries.append(
                    DependentSummary(kind=record._meta.kind, id=record.pk, title=record.display_title)
                )
        return summaries

    def with_relations(self, kind: Kind, id: str) -> Optional[Dict[str, Any]]:
        """
        The record with derived attributes and every reference resolved
        inline. References whose target has vanished resolve to ``None`` (or
        are omitted from a list).
        """
        model = resolve_model(kind)
        record = self.store.get(model, id)
        if record is None:
            return None
        data = record.to_dict(include_derived=True)
        for field in model._meta.references:
            data[field.require_name()] = self._resolve(record, field)
        return data

    def list_with_relations(self, kind: Kind, sort: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        List view with single references resolved inline. Each referenced
        kind is loaded once for the whole list.
        """
        model = resolve_model(kind)
        records = self.store.list(model, sort=sort if sort is not None else model._meta.ordering)
        single_refs = [field for field in model._meta.references if not field.many]
        lookups: Dict[str, Dict[str, Model]] = {}
        if records:
            for field in single_refs:
                remote = field.require_remote_model()
                lookups[field.require_name()] = {r.pk: r for r in self.store.list(remote)}

        rows: List[Dict[str, Any]] = []
        for record in records:
            data = record.to_dict(include_derived=True)
            for field in single_refs:
                name = field.require_name()
                target = lookups[name].get(getattr(record, name))
                data[name] = target.to_dict(include_derived=True) if target else None
            rows.append(data)
        return rows

    def _resolve(self, record: Model, field: ReferenceField) -> Any:
        remote = field.require_remote_model()
        resolved = []
        for ref_id in field.referenced_ids(getattr(record, field.require_name())):
            target = self.store.get(remote, ref_id)
            if target is None:
                self.logger.warning(
                    "%s %s references missing %s %s",
                    record._meta.kind,
                    record.pk,
                    remote._meta.kind,
                    ref_id,
                )
                continue
            resolved.append(target.to_dict(include_derived=True))
        if field.many:
            return resolved
        return resolved[0] if resolved else None
