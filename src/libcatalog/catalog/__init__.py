"""
Lending-library catalog: record kinds, service contract and wiring.
"""

from .bootstrap import open_catalog, open_store
from .models import BOOK_INSTANCE_STATUSES, Author, Book, BookInstance, Genre
from .outcomes import DeleteBlocked, NotFound, Outcome, Success, ValidationFailed
from .service import CatalogService

__all__ = [
    "Author",
    "BOOK_INSTANCE_STATUSES",
    "Book",
    "BookInstance",
    "CatalogService",
    "DeleteBlocked",
    "Genre",
    "NotFound",
    "Outcome",
    "Success",
    "ValidationFailed",
    "open_catalog",
    "open_store",
]
