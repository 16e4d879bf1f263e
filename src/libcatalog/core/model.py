"""
Record base class and metadata orchestration.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Tuple, Type

from ..errors import UnknownKindError
from ..utils import camel_to_snake, normalize_kind
from .fields import Field, IdField
from .relations import ReferenceField, relation_registry


class ModelConfigurationError(Exception):
    """Raised when a record class is misconfigured."""


@dataclass
class ModelOptions:
    """
    Container for record metadata calculated by :class:`ModelMeta`.
    """

    model: Type["Model"]
    table_name: str = ""
    kind: str = ""
    abstract: bool = False
    ordering: Optional[str] = None
    display_field: Optional[str] = None
    natural_key: Optional[str] = None
    derived: Tuple[str, ...] = ()
    fields: "OrderedDict[str, Field]" = field(default_factory=OrderedDict)
    primary_key: Optional[Field] = None
    references: list[ReferenceField] = field(default_factory=list)

    def add_field(self, field_obj: Field) -> None:
        if field_obj.name in self.fields:
            raise ModelConfigurationError(
                f"Duplicate field name '{field_obj.name}' on model '{self.model.__name__}'"
            )
        self.fields[field_obj.name] = field_obj
        if field_obj.primary_key:
            if self.primary_key and self.primary_key is not field_obj:
                raise ModelConfigurationError(
                    f"Multiple primary keys defined on model '{self.model.__name__}'"
                )
            self.primary_key = field_obj
        if isinstance(field_obj, ReferenceField):
            self.references.append(field_obj)

    def get_field(self, name: str) -> Field:
        try:
            return self.fields[name]
        except KeyError as exc:
            raise KeyError(f"Unknown field '{name}' on model '{self.model.__name__}'") from exc

    def get_fields(self) -> Iterable[Field]:
        return self.fields.values()

    def input_fields(self) -> Iterable[Field]:
        """Fields accepted from callers; the primary key is store-assigned."""
        return [f for f in self.fields.values() if not f.primary_key]


class ModelMeta(type):
    """
    Metaclass responsible for collecting fields and establishing metadata.
    """

    def __new__(mcls, name: str, bases: tuple[type, ...], attrs: Dict[str, Any]) -> "ModelMeta":
        if not any(isinstance(base, ModelMeta) for base in bases):
            return super().__new__(mcls, name, bases, attrs)

        declared_fields: Dict[str, Field] = {}
        for attr_name, value in list(attrs.items()):
            if isinstance(value, Field):
                declared_fields[attr_name] = attrs.pop(attr_name)

        cls = super().__new__(mcls, name, bases, attrs)

        meta = attrs.get("Meta")
        options = ModelOptions(
            model=cls,  # type: ignore[arg-type]
            table_name=getattr(meta, "table", camel_to_snake(name)),
            kind=getattr(meta, "kind", normalize_kind(name)),
            abstract=getattr(meta, "abstract", False),
            ordering=getattr(meta, "ordering", None),
            display_field=getattr(meta, "display_field", None),
            natural_key=getattr(meta, "natural_key", None),
            derived=tuple(getattr(meta, "derived", ())),
        )
        cls._meta = options

        if not options.abstract:
            id_field = IdField()
            id_field.contribute_to_class(cls, "id")  # type: ignore[arg-type]
            options.add_field(id_field)

        sorted_fields = sorted(declared_fields.items(), key=lambda item: item[1].creation_counter)
        for attr_name, field_obj in sorted_fields:
            if attr_name == "id":
                raise ModelConfigurationError(
                    f"Model '{name}' may not declare 'id'; record ids are assigned by the store."
                )
            field_obj.contribute_to_class(cls, attr_name)  # type: ignore[arg-type]
            options.add_field(field_obj)
            if isinstance(field_obj, ReferenceField):
                relation_registry.register_field(cls, field_obj)  # type: ignore[arg-type]

        for option_name in ("ordering", "natural_key"):
            value = getattr(options, option_name)
            if value is not None and value not in options.fields:
                raise ModelConfigurationError(
                    f"{option_name} field '{value}' is not defined on model '{name}'"
                )

        if not options.abstract:
            relation_registry.register_model(cls)  # type: ignore[arg-type]

        return cls


class Model(metaclass=ModelMeta):
    """
    Base record providing the data container. Persistence is supplied by
    :class:`libcatalog.persistence.EntityStore`.
    """

    _meta: ModelOptions

    def __init__(self, **kwargs: Any) -> None:
        self._field_values: Dict[str, Any] = {}
        for field_obj in self._meta.get_fields():
            name = field_obj.require_name()
            if name in kwargs:
                setattr(self, name, kwargs[name])
            elif field_obj.many:
                setattr(self, name, [])
            else:
                self._field_values[name] = None

    def __repr__(self) -> str:
        field_parts = ", ".join(
            f"{name}={value!r}" for name, value in self._field_values.items() if value is not None
        )
        return f"<{self.__class__.__name__} {field_parts}>"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Model) or type(other) is not type(self):
            return NotImplemented
        return self._field_values == other._field_values

    __hash__ = None  # type: ignore[assignment]

    @property
    def pk(self) -> Any:
        if not self._meta.primary_key:
            raise ModelConfigurationError(
                f"Model '{self.__class__.__name__}' does not define a primary key."
            )
        return getattr(self, self._meta.primary_key.require_name())

    @property
    def url(self) -> str:
        return f"/catalog/{self._meta.kind}/{self.pk}"

    @property
    def display_title(self) -> str:
        """Short human label used when this record is listed as a dependent."""
        if self._meta.display_field:
            return str(getattr(self, self._meta.display_field) or "")
        return str(self.pk)

    def to_dict(self, *, include_derived: bool = False) -> Dict[str, Any]:
        data = {f.require_name(): getattr(self, f.require_name()) for f in self._meta.get_fields()}
        if include_derived:
            for name in ("url", *self._meta.derived):
                data[name] = getattr(self, name)
        return data


def registered_models() -> list[Type[Model]]:
    return list(relation_registry.models.values())


def resolve_model(kind: str | Type[Model]) -> Type[Model]:
    """
    Look up a record class by kind name (``"book"``, ``"bookinstance"``,
    ``"book_instance"``) or pass a record class through unchanged.
    """
    if isinstance(kind, type):
        meta = getattr(kind, "_meta", None)
        if issubclass(kind, Model) and meta is not None and not meta.abstract:
            return kind
        raise UnknownKindError(f"{kind!r} is not a catalog record class.")
    if not isinstance(kind, str):
        raise UnknownKindError(f"Unknown record kind {kind!r}.")
    wanted = normalize_kind(kind)
    for model in relation_registry.models.values():
        if model._meta.kind == wanted:
            return model
    raise UnknownKindError(f"Unknown record kind {kind!r}.")
