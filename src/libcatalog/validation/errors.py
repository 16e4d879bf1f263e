"""
Validation error types.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from ..errors import CatalogError


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


class ValidationError(CatalogError):
    """
    Aggregated validation failure.

    ``field_errors`` keeps every :class:`FieldError` in the order it was found;
    ``errors`` groups the messages by field name.
    """

    def __init__(self, field_errors: Iterable[FieldError]) -> None:
        self.field_errors: List[FieldError] = list(field_errors)
        self.errors: Dict[str, List[str]] = {}
        for error in self.field_errors:
            self.errors.setdefault(error.field, []).append(error.message)
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        segments = []
        for field, messages in self.errors.items():
            prefix = field if field != "__all__" else "non-field"
            combined = "; ".join(messages)
            segments.append(f"{prefix}: {combined}")
        return "; ".join(segments)


class DanglingReferenceError(ValidationError):
    """A declared reference points at a record that does not exist."""
