"""
Validation utilities exposed at the package level.
"""

from .errors import DanglingReferenceError, FieldError, ValidationError
from .pipeline import ValidationResult, validate
from .rules import Alphanumeric, Escape, Length, OneOf, RegexValidator, ToDate, ToString, Trim

__all__ = [
    "Alphanumeric",
    "DanglingReferenceError",
    "Escape",
    "FieldError",
    "Length",
    "OneOf",
    "RegexValidator",
    "ToDate",
    "ToString",
    "Trim",
    "ValidationError",
    "ValidationResult",
    "validate",
]
