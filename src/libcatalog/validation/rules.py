"""
Built-in sanitizer and validator rules.

Every rule is a callable taking the current value and returning the value to
hand to the next rule. Validators return their input unchanged and raise
``ValueError`` with a human-readable message when the value is rejected.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, Iterable, Protocol


class Rule(Protocol):
    def __call__(self, value: Any) -> Any: ...


# Sanitizers ---------------------------------------------------------------


class ToString:
    """Render scalar input (numbers, booleans) as text; leave None alone."""

    def __call__(self, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (list, tuple, set, dict)):
            raise ValueError("Expected a single value.")
        return str(value)


class Trim:
    def __call__(self, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#x27;",
        "/": "&#x2F;",
        "\\": "&#x5C;",
        "`": "&#96;",
    }
)


class Escape:
    """
    Replace HTML-significant characters with entities so stored text is safe
    to render without further escaping.
    """

    def __call__(self, value: Any) -> Any:
        if isinstance(value, str):
            return value.translate(_ESCAPE_TABLE)
        return value


class ToDate:
    """
    Coerce an ISO-8601 string (``YYYY-MM-DD``, optionally with a time part)
    to a :class:`datetime.date`.
    """

    def __init__(self, message: str | None = None) -> None:
        self.message = message or "Invalid date."

    def __call__(self, value: Any) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if not isinstance(value, str):
            raise ValueError(self.message)
        text = value.strip()
        try:
            if "T" in text or " " in text:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            return date.fromisoformat(text)
        except ValueError as exc:
            raise ValueError(self.message) from exc


# Validators ---------------------------------------------------------------


class Length:
    def __init__(
        self,
        *,
        min_length: int | None = None,
        max_length: int | None = None,
        min_message: str | None = None,
        max_message: str | None = None,
    ) -> None:
        self.min_length = min_length
        self.max_length = max_length
        self.min_message = min_message or f"Ensure this value has at least {min_length} characters."
        self.max_message = max_message or f"Ensure this value has at most {max_length} characters."

    def __call__(self, value: Any) -> Any:
        size = len(value)
        if self.min_length is not None and size < self.min_length:
            raise ValueError(self.min_message)
        if self.max_length is not None and size > self.max_length:
            raise ValueError(self.max_message)
        return value


class RegexValidator:
    def __init__(self, pattern: str, message: str | None = None) -> None:
        self.pattern = re.compile(pattern)
        self.message = message or "Value does not match required pattern."

    def __call__(self, value: Any) -> Any:
        if not isinstance(value, str):
            raise ValueError("Value must be a string for RegexValidator.")
        if not self.pattern.fullmatch(value):
            raise ValueError(self.message)
        return value


class Alphanumeric(RegexValidator):
    """ASCII letters and digits only."""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(r"[A-Za-z0-9]+", message or "Value has non-alphanumeric characters.")


class OneOf:
    def __init__(self, choices: Iterable[Any], message: str | None = None) -> None:
        self.choices = tuple(choices)
        self.message = message

    def __call__(self, value: Any) -> Any:
        if value not in self.choices:
            allowed = ", ".join(str(choice) for choice in self.choices)
            raise ValueError(self.message or f"Value must be one of: {allowed}.")
        return value


def apply_rules(rules: Iterable[Rule], value: Any) -> Any:
    for rule in rules:
        value = rule(value)
    return value
