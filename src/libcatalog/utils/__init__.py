"""
Utility helpers shared across libcatalog packages.
"""

from .logging import (
    configure_logging,
    correlation_scope,
    get_correlation_id,
    get_logger,
    set_correlation_id,
    time_call,
)
from .naming import camel_to_snake, normalize_kind

__all__ = [
    "camel_to_snake",
    "configure_logging",
    "correlation_scope",
    "get_correlation_id",
    "get_logger",
    "normalize_kind",
    "set_correlation_id",
    "time_call",
]
