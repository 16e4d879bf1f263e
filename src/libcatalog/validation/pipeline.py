"""
Validation pipeline: raw form input in, sanitized field values or a complete
list of field errors out.

The pipeline never touches the store. Reference existence is checked later by
:class:`libcatalog.guard.ReferentialGuard`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Dict, List, Mapping, Optional, Type

from .errors import FieldError, ValidationError
from .rules import Escape

if TYPE_CHECKING:
    from ..core.fields import Field
    from ..core.model import Model


@dataclass
class ValidationResult:
    kind: str
    cleaned: Dict[str, Any] = field(default_factory=dict)
    errors: List[FieldError] = field(default_factory=list)
    sanitized: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def errors_for(self, field_name: str) -> List[str]:
        return [error.message for error in self.errors if error.field == field_name]

    def raise_for_errors(self) -> None:
        if self.errors:
            raise ValidationError(self.errors)


def validate(kind: "str | Type[Model]", raw: Optional[Mapping[str, Any]]) -> ValidationResult:
    """
    Sanitize and validate ``raw`` against the fields declared on ``kind``.

    Every field is checked and every failure is reported. Within one field the
    rule chain stops at the first failing rule. Keys that do not name an input
    field (including ``id``) are ignored.
    """
    from ..core.model import resolve_model

    model = resolve_model(kind)
    data: Mapping[str, Any] = raw or {}
    result = ValidationResult(kind=model._meta.kind)

    for field_obj in model._meta.input_fields():
        name = field_obj.require_name()
        value = data.get(name)
        try:
            cleaned = field_obj.clean(value)
        except ValueError as exc:
            result.errors.append(FieldError(name, str(exc)))
            result.sanitized[name] = _sanitize_only(field_obj, value)
            continue
        result.cleaned[name] = cleaned
        result.sanitized[name] = cleaned

    return result


def _sanitize_only(field_obj: "Field", value: Any) -> Any:
    # Echo rejected input back trimmed and escaped, never raw.
    try:
        if field_obj.many:
            return field_obj.clean(value)
        sanitized = value
        for rule in field_obj.sanitizers():
            sanitized = rule(sanitized)
    except ValueError:
        return None
    if isinstance(sanitized, str):
        return Escape()(sanitized)
    return sanitized
