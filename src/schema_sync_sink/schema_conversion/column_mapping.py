"""Message schema to BigQuery column mapping."""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Sequence

from google.cloud import bigquery

from schema_sync_sink.schema_management.schema_models import FieldDescriptor, MessageSchema
from schema_sync_sink.schema_management.schema_projection import SchemaMappingError

logger = logging.getLogger(__name__)

MAX_NESTED_DEPTH = 15

_SCALAR_COLUMN_TYPES = {
    "string": "STRING",
    "enum": "STRING",
    "bytes": "BYTES",
    "bool": "BOOLEAN",
    "double": "FLOAT",
    "float": "FLOAT",
    "int32": "INTEGER",
    "int64": "INTEGER",
    "uint32": "INTEGER",
    "uint64": "INTEGER",
    "sint32": "INTEGER",
    "sint64": "INTEGER",
    "fixed32": "INTEGER",
    "fixed64": "INTEGER",
    "sfixed32": "INTEGER",
    "sfixed64": "INTEGER",
}

_WELL_KNOWN_COLUMN_TYPES = {
    "google.protobuf.Timestamp": "TIMESTAMP",
    "google.protobuf.Struct": "STRING",
}

_MODES = {"optional": "NULLABLE", "required": "REQUIRED", "repeated": "REPEATED"}


def generate_bigquery_schema(schema: MessageSchema) -> list[bigquery.SchemaField]:
    """Derive the ordered BigQuery column list for a message schema."""
    columns = _columns_for(schema.fields, path="", depth=1)
    if not columns:
        raise SchemaMappingError(f"Schema {schema.class_name} has no mappable fields.")
    return columns


def columns_version(columns: Sequence[bigquery.SchemaField]) -> str:
    """Deterministic fingerprint of a column list."""
    encoded = json.dumps(
        [column.to_api_repr() for column in columns], sort_keys=True, separators=(",", ":")
    ).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()[:16]


def _columns_for(
    fields: Sequence[FieldDescriptor], *, path: str, depth: int
) -> list[bigquery.SchemaField]:
    if depth > MAX_NESTED_DEPTH:
        raise SchemaMappingError(
            f"Field {path} exceeds the maximum nesting depth of {MAX_NESTED_DEPTH}."
        )
    columns: list[bigquery.SchemaField] = []
    for descriptor in fields:
        column_path = descriptor.name if not path else f"{path}.{descriptor.name}"
        column = _column_for(descriptor, path=column_path, depth=depth)
        if column is not None:
            columns.append(column)
    return columns


def _column_for(
    descriptor: FieldDescriptor, *, path: str, depth: int
) -> bigquery.SchemaField | None:
    mode = _MODES.get(descriptor.label)
    if mode is None:
        raise SchemaMappingError(f"Unsupported label for {path}: {descriptor.label}")

    if descriptor.is_message:
        well_known = _WELL_KNOWN_COLUMN_TYPES.get(descriptor.type_name or "")
        if well_known is not None:
            return bigquery.SchemaField(descriptor.name, well_known, mode=mode)
        children = descriptor.message.fields if descriptor.message is not None else ()
        sub_columns = _columns_for(children, path=path, depth=depth + 1)
        if not sub_columns:
            logger.debug("Skipping %s, record has no fields", path)
            return None
        return bigquery.SchemaField(descriptor.name, "RECORD", mode=mode, fields=sub_columns)

    column_type = _SCALAR_COLUMN_TYPES.get(descriptor.proto_type)
    if column_type is None:
        raise SchemaMappingError(f"Unsupported field type for {path}: {descriptor.proto_type}")
    return bigquery.SchemaField(descriptor.name, column_type, mode=mode)
