"""Schema management exports."""

from .schema_catalog import SchemaCatalog
from .schema_models import FieldDescriptor, MessageSchema
from .schema_projection import (
    SchemaMappingError,
    load_message_schema,
    load_message_schema_text,
    schema_fingerprint,
)

__all__ = [
    "FieldDescriptor",
    "MessageSchema",
    "SchemaCatalog",
    "SchemaMappingError",
    "load_message_schema",
    "load_message_schema_text",
    "schema_fingerprint",
]
