"""
Reference field implementations and the registry of who references whom.

References are plain id values stored inside the referencing record. Nothing
at the storage level keeps them valid; the registry built here is what the
referential guard walks to find dependents.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple, Type

from ..validation.rules import Rule, ToString, Trim
from .fields import Field

if TYPE_CHECKING:
    from .model import Model


class RelationshipError(RuntimeError):
    pass


def _as_id(value: Any) -> Any:
    pk = getattr(value, "pk", None)
    if pk is not None:
        return pk
    return value


class ReferenceField(Field):
    """
    Reference to exactly one record of another kind (many-to-one).
    """

    def __init__(
        self,
        to: Type | str,
        *,
        related_name: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        kwargs.setdefault("required", True)
        kwargs.setdefault("db_type", "TEXT")
        super().__init__(**kwargs)
        self.to = to
        self.related_name = related_name
        self.remote_model: Optional[Type["Model"]] = None

    def resolve_model(self, model: Type["Model"]) -> None:
        self.remote_model = model

    def require_remote_model(self) -> Type["Model"]:
        if self.remote_model is None:
            raise RelationshipError(f"Reference target '{self.to}' is not resolved.")
        return self.remote_model

    def referenced_ids(self, value: Any) -> list[str]:
        return [] if value is None else [value]

    def sanitizers(self) -> list[Rule]:
        return [_as_id, ToString(), Trim()]

    def clean_item(self, item: Any) -> str:
        value = item
        for rule in ReferenceField.sanitizers(self):
            value = rule(value)
        return value or ""

    def to_python(self, value: Any) -> str | None:
        value = _as_id(value)
        if value is None or value == "":
            return None
        return str(value)


class ReferenceListField(ReferenceField):
    """
    Zero or more references (many-to-many), stored in the record as a JSON
    array of ids.

    Input is normalized rather than rejected: an absent value becomes ``[]``
    and a single scalar becomes a one-element list. Blank entries are dropped
    and duplicates collapse to their first occurrence.
    """
    many = True

    def __init__(self, to: Type | str, **kwargs: Any) -> None:
        kwargs.setdefault("required", False)
        super().__init__(to, **kwargs)

    def referenced_ids(self, value: Any) -> list[str]:
        return list(value or [])

    def clean(self, raw: Any) -> list[str]:
        if raw is None:
            items: list[Any] = []
        elif isinstance(raw, (list, tuple, set, frozenset)):
            items = list(raw)
        else:
            items = [raw]

        cleaned: list[str] = []
        for item in items:
            value = self.clean_item(item)
            if value and value not in cleaned:
                cleaned.append(value)
        if self.required and not cleaned:
            raise ValueError(self.messages["required"])
        return cleaned

    def to_python(self, value: Any) -> list[str]:
        if value is None or value == "":
            return []
        if isinstance(value, str):
            value = json.loads(value)
        return [str(_as_id(item)) for item in value]

    def to_db(self, value: Any) -> str:
        return json.dumps(list(value or []))


class RelationRegistry:
    """
    Tracks record kinds and the reference fields pointing at each of them.

    String targets (``ReferenceField("Book")``) are resolved lazily once the
    named kind is registered.
    """

    def __init__(self) -> None:
        self.models: Dict[str, Type["Model"]] = {}
        self.pending_fields: List[Tuple[Type["Model"], ReferenceField]] = []
        self._incoming: Dict[Type["Model"], List[Tuple[Type["Model"], ReferenceField]]] = {}

    def register_model(self, model: Type["Model"]) -> None:
        self.models[self._label(model)] = model
        self._resolve_pending()

    def register_field(self, model: Type["Model"], field: ReferenceField) -> None:
        target = self._resolve_target(field.to)
        if target is None:
            self.pending_fields.append((model, field))
            return
        self._bind(model, field, target)

    def references_to(self, target: Type["Model"]) -> List[Tuple[Type["Model"], ReferenceField]]:
        """
        Every ``(model, field)`` pair whose field references ``target``.
        """
        return list(self._incoming.get(target, []))

    def unresolved(self) -> List[Tuple[Type["Model"], ReferenceField]]:
        return list(self.pending_fields)

    def _bind(self, model: Type["Model"], field: ReferenceField, target: Type["Model"]) -> None:
        field.resolve_model(target)
        incoming = self._incoming.setdefault(target, [])
        if (model, field) not in incoming:
            incoming.append((model, field))

    def _resolve_pending(self) -> None:
        unresolved = []
        for model, field in self.pending_fields:
            target = self._resolve_target(field.to)
            if target is None:
                unresolved.append((model, field))
                continue
            self._bind(model, field, target)
        self.pending_fields = unresolved

    def _resolve_target(self, target: Type | str) -> Optional[Type["Model"]]:
        if isinstance(target, type):
            return target
        label = target.split(".")[-1]
        return self.models.get(label)

    def _label(self, model: Type["Model"]) -> str:
        return model.__name__


relation_registry = RelationRegistry()
