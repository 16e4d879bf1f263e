"""
Structured results returned by :class:`CatalogService` operations.

Every expected failure is a value, not an exception. Callers switch on the
outcome type (or on ``outcome.ok``) to pick what to render.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple, Union

from ..query.aggregation import DependentSummary
from ..validation.errors import FieldError


@dataclass(frozen=True)
class Success:
    value: Any
    ok = True


@dataclass(frozen=True)
class ValidationFailed:
    """
    Input was rejected. ``input`` holds the sanitized submission so a form
    can be re-rendered with what the user typed.
    """

    errors: Tuple[FieldError, ...]
    input: Dict[str, Any] = field(default_factory=dict)
    ok = False

    def messages_for(self, field_name: str) -> List[str]:
        return [error.message for error in self.errors if error.field == field_name]

    @property
    def fields(self) -> List[str]:
        return list(dict.fromkeys(error.field for error in self.errors))


@dataclass(frozen=True)
class NotFound:
    kind: str
    id: Any
    ok = False


@dataclass(frozen=True)
class DeleteBlocked:
    record: Any
    dependents: Tuple[DependentSummary, ...]
    ok = False


Outcome = Union[Success, ValidationFailed, NotFound, DeleteBlocked]
