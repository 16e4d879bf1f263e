"""
libcatalog public package initialization.

Importing the package registers the catalog record kinds (Author, Book,
BookInstance, Genre) so they can be addressed by name.
"""

from .errors import (  # noqa: F401
    CatalogError,
    ConflictError,
    NotFoundError,
    StoreError,
    UnknownKindError,
)
from .validation import DanglingReferenceError, FieldError, ValidationError, validate  # noqa: F401
from .catalog import (  # noqa: F401
    Author,
    Book,
    BookInstance,
    CatalogService,
    DeleteBlocked,
    Genre,
    NotFound,
    Success,
    ValidationFailed,
    open_catalog,
    open_store,
)
from .guard import Allowed, Blocked, ReferentialGuard  # noqa: F401
from .persistence import EntityStore  # noqa: F401
from .query import CatalogCounts, CatalogQueries, DependentSummary  # noqa: F401
from .utils import configure_logging, correlation_scope, set_correlation_id  # noqa: F401

__all__ = [
    "Allowed",
    "Author",
    "Blocked",
    "Book",
    "BookInstance",
    "CatalogCounts",
    "CatalogError",
    "CatalogQueries",
    "CatalogService",
    "ConflictError",
    "DanglingReferenceError",
    "DeleteBlocked",
    "DependentSummary",
    "EntityStore",
    "FieldError",
    "Genre",
    "NotFound",
    "NotFoundError",
    "ReferentialGuard",
    "StoreError",
    "Success",
    "UnknownKindError",
    "ValidationError",
    "ValidationFailed",
    "configure_logging",
    "correlation_scope",
    "open_catalog",
    "open_store",
    "set_correlation_id",
    "validate",
]
