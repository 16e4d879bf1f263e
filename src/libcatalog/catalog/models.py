"""
Record kinds of the lending-library catalog.
"""

from __future__ import annotations

from datetime import date
from typing import Optional

from ..core import DateField, Model, ReferenceField, ReferenceListField, StringField
from ..validation.rules import Alphanumeric

_MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")

BOOK_INSTANCE_STATUSES = ("Available", "Maintenance", "Loaned", "Reserve")


def format_medium(value: Optional[date]) -> str:
    """``date(1983, 10, 14)`` -> ``"Oct 14, 1983"``; empty for ``None``."""
    if value is None:
        return ""
    return f"{_MONTHS[value.month - 1]} {value.day}, {value.year}"


def format_iso(value: Optional[date]) -> str:
    return value.isoformat() if value is not None else ""


class Author(Model):
    first_name = StringField(
        required=True,
        max_length=100,
        validators=[Alphanumeric("First name has non-alphanumeric characters")],
        messages={
            "required": "First name must be specified.",
            "max_length": "First name must not exceed 100 characters.",
        },
    )
    family_name = StringField(
        required=True,
        max_length=100,
        validators=[Alphanumeric("Family name has non-alphanumeric characters.")],
        messages={
            "required": "Family name must be given.",
            "max_length": "Family name must not exceed 100 characters.",
        },
    )
    date_of_birth = DateField(messages={"invalid": "Invalid date of birth"})
    date_of_death = DateField(messages={"invalid": "Invalid date of death"})

    class Meta:
        ordering = "family_name"
        display_field = "full_name"
        derived = ("full_name", "lifespan", "norm_dob", "norm_dod")

    @property
    def full_name(self) -> str:
        if self.first_name and self.family_name:
            return f"{self.family_name}, {self.first_name}"
        return ""

    @property
    def lifespan(self) -> str:
        return f"{format_medium(self.date_of_birth)} - {format_medium(self.date_of_death)}"

    @property
    def norm_dob(self) -> str:
        return format_iso(self.date_of_birth)

    @property
    def norm_dod(self) -> str:
        return format_iso(self.date_of_death)


class Genre(Model):
    name = StringField(
        required=True,
        min_length=3,
        max_length=100,
        messages={
            "required": "Genre name must contain at least 3 characters",
            "min_length": "Genre name must contain at least 3 characters",
            "max_length": "Genre name must not exceed 100 characters",
        },
    )

    class Meta:
        ordering = "name"
        display_field = "name"
        natural_key = "name"


class Book(Model):
    title = StringField(required=True, messages={"required": "Title must not be empty."})
    author = ReferenceField(
        Author,
        related_name="books",
        messages={"required": "Author must not be empty."},
    )
    summary = StringField(required=True, messages={"required": "Summary must not be empty."})
    isbn = StringField(required=True, messages={"required": "ISBN must not be empty."})
    genre = ReferenceListField(Genre, related_name="books")

    class Meta:
        ordering = "title"
        display_field = "title"


class BookInstance(Model):
    book = ReferenceField(
        Book,
        related_name="instances",
        messages={"required": "Book must be specified"},
    )
    imprint = StringField(required=True, messages={"required": "Imprint must be specified"})
    status = StringField(
        required=True,
        default="Maintenance",
        choices=BOOK_INSTANCE_STATUSES,
        messages={"choice": "Invalid status"},
    )
    due_back = DateField(default=date.today, messages={"invalid": "Invalid date"})

    class Meta:
        display_field = "imprint"
        derived = ("due_back_formatted", "norm_due_back")

    @property
    def due_back_formatted(self) -> str:
        return format_medium(self.due_back)

    @property
    def norm_due_back(self) -> str:
        return format_iso(self.due_back)
