"""
Field definitions and descriptors for catalog records.

A field knows three things about its value: how raw form input is sanitized
and validated into it (:meth:`Field.clean`), how it is restored from storage
or assignment (:meth:`Field.to_python`), and how it is written to storage
(:meth:`Field.to_db`).
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Any, Iterable, Mapping, Optional, Sequence, cast

from ..validation.rules import Escape, Length, OneOf, Rule, ToDate, ToString, Trim, apply_rules

if TYPE_CHECKING:
    from .model import Model


class FieldConfigurationError(Exception):
    """Internal exception for field configuration issues."""


DEFAULT_MESSAGES = {
    "required": "This field is required.",
    "invalid": "Enter a valid value.",
}


class Field:
    """
    Base class for record field descriptors.

    ``validators`` run after the built-in length/format checks; ``messages``
    overrides the default error text per failure key (``required``,
    ``min_length``, ``max_length``, ``invalid``, ``choice``).
    """

    _creation_counter = 0
    many = False

    def __init__(
        self,
        *,
        primary_key: bool = False,
        required: bool = False,
        default: Any = None,
        db_type: Optional[str] = None,
        db_column: Optional[str] = None,
        choices: Optional[Sequence[Any]] = None,
        validators: Optional[Iterable[Rule]] = None,
        messages: Optional[Mapping[str, str]] = None,
        escape: bool = False,
    ) -> None:
        self.primary_key = primary_key
        self.required = required
        self.default = default
        self.db_type = db_type or "TEXT"
        self.db_column = db_column
        self.choices = tuple(choices) if choices is not None else None
        self.validators = list(validators or [])
        self.messages = {**DEFAULT_MESSAGES, **(messages or {})}
        self.escape = escape

        self.model: type["Model"] | None = None
        self.name: str | None = None
        self.creation_counter = Field._creation_counter
        Field._creation_counter += 1

    # Descriptor protocol -------------------------------------------------
    def __get__(self, instance: object | None, owner: type | None = None) -> Any:
        if instance is None:
            return self
        model_instance = cast("Model", instance)
        return model_instance._field_values.get(self.require_name())

    def __set__(self, instance: object, value: Any) -> None:
        model_instance = cast("Model", instance)
        model_instance._field_values[self.require_name()] = self.to_python(value)

    # Metadata helpers ----------------------------------------------------
    def bind(self, model: type["Model"], name: str) -> None:
        self.model = model
        self.name = name
        if self.db_column is None:
            self.db_column = name

    def contribute_to_class(self, model: type["Model"], name: str) -> None:
        """
        Attach the field to the model class as a descriptor.
        """
        self.bind(model, name)
        setattr(model, name, self)

    def require_name(self) -> str:
        if self.name is None:
            raise FieldConfigurationError("Field name is not set.")
        return self.name

    def column_name(self) -> str:
        if self.db_column:
            return self.db_column
        return self.require_name()

    @property
    def nullable(self) -> bool:
        return not self.required and not self.primary_key

    @property
    def has_default(self) -> bool:
        return self.default is not None

    def get_default(self) -> Any:
        if callable(self.default):
            return self.default()
        return self.default

    # Input cleaning ------------------------------------------------------
    def is_blank(self, value: Any) -> bool:
        return value is None or (isinstance(value, str) and value == "")

    def sanitizers(self) -> list[Rule]:
        """Rules applied before the blank check."""
        return [Trim()]

    def rules(self) -> list[Rule]:
        """Rules applied to a non-blank value, in order."""
        chain: list[Rule] = list(self.validators)
        if self.choices is not None:
            chain.append(OneOf(self.choices, self.messages.get("choice")))
        if self.escape:
            chain.append(Escape())
        return chain

    def clean(self, raw: Any) -> Any:
        """
        Turn raw input into a sanitized value, raising ``ValueError`` with the
        message of the first rule that rejects it.
        """
        value = apply_rules(self.sanitizers(), raw)
        if self.is_blank(value):
            if self.required and not self.has_default:
                raise ValueError(self.messages["required"])
            return self.get_default()
        return apply_rules(self.rules(), value)

    # Storage conversion --------------------------------------------------
    def to_python(self, value: Any) -> Any:
        return value

    def to_db(self, value: Any) -> Any:
        return value


class IdField(Field):
    """
    Opaque record identity: a 32-character hex UUID generated by the store.
    """

    def __init__(self) -> None:
        super().__init__(primary_key=True, required=True, db_type="TEXT")

    @staticmethod
    def generate() -> str:
        return uuid.uuid4().hex

    def to_python(self, value: Any) -> str | None:
        if value is None:
            return None
        return str(value)


class StringField(Field):
    def __init__(
        self,
        *,
        max_length: int | None = None,
        min_length: int | None = None,
        escape: bool = True,
        **kwargs: Any,
    ) -> None:
        super().__init__(escape=escape, **kwargs)
        self.max_length = max_length
        self.min_length = min_length

    def sanitizers(self) -> list[Rule]:
        return [ToString(), *super().sanitizers()]

    def rules(self) -> list[Rule]:
        chain: list[Rule] = []
        if self.min_length is not None or self.max_length is not None:
            chain.append(
                Length(
                    min_length=self.min_length,
                    max_length=self.max_length,
                    min_message=self.messages.get("min_length"),
                    max_message=self.messages.get("max_length"),
                )
            )
        return chain + super().rules()

    def to_python(self, value: Any) -> str | None:
        if value is None:
            return None
        return str(value)


class DateField(Field):
    """
    Calendar date. Raw input is an ISO-8601 string, storage is ``YYYY-MM-DD``.
    """

    def __init__(self, **kwargs: Any) -> None:
        kwargs.setdefault("db_type", "TEXT")
        super().__init__(**kwargs)

    def rules(self) -> list[Rule]:
        return [ToDate(self.messages["invalid"]), *super().rules()]

    def to_python(self, value: Any) -> date | None:
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        return ToDate(f"Invalid stored date for field '{self.name}': {value!r}")(value)

    def to_db(self, value: Any) -> str | None:
        if value is None:
            return None
        return value.isoformat()
