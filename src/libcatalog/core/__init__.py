"""
Core building blocks for catalog records and metadata handling.
"""

from .fields import DateField, Field, IdField, StringField
from .model import (
    Model,
    ModelConfigurationError,
    ModelMeta,
    ModelOptions,
    registered_models,
    resolve_model,
)
from .relations import ReferenceField, ReferenceListField, RelationRegistry, relation_registry

__all__ = [
    "DateField",
    "Field",
    "IdField",
    "Model",
    "ModelConfigurationError",
    "ModelMeta",
    "ModelOptions",
    "ReferenceField",
    "ReferenceListField",
    "RelationRegistry",
    "StringField",
    "registered_models",
    "relation_registry",
    "resolve_model",
]
