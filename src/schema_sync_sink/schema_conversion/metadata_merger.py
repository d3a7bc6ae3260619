"""Metadata column construction and merging."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence

from google.cloud import bigquery

from schema_sync_sink.configuration.runtime_settings import MetadataColumn
from schema_sync_sink.schema_management.schema_projection import SchemaMappingError


class DuplicateMetadataFieldError(SchemaMappingError):
    """Raised when metadata column names collide with schema columns."""

    def __init__(self, duplicates: Sequence[str]) -> None:
        super().__init__(
            "Metadata field(s) is already present in the schema. "
            f"fields: {', '.join(duplicates)}"
        )
        self.duplicates = tuple(duplicates)


def build_metadata_fields(
    metadata_columns: Sequence[MetadataColumn], namespace: str | None = None
) -> list[bigquery.SchemaField]:
    """Flat metadata columns, or one RECORD column when a namespace is given."""
    if not metadata_columns:
        return []
    fields = [
        bigquery.SchemaField(column.name, column.column_type, mode="NULLABLE")
        for column in metadata_columns
    ]
    if not namespace:
        return fields
    return [bigquery.SchemaField(namespace, "RECORD", mode="NULLABLE", fields=fields)]


def merge_metadata_fields(
    schema_columns: Sequence[bigquery.SchemaField],
    metadata_columns: Sequence[MetadataColumn],
    namespace: str | None = None,
) -> list[bigquery.SchemaField]:
    """Append metadata columns to the schema columns, rejecting name collisions."""
    metadata_fields = build_metadata_fields(metadata_columns, namespace)
    counts = Counter(column.name for column in (*schema_columns, *metadata_fields))
    duplicates = [name for name, count in counts.items() if count > 1]
    if namespace:
        duplicates.extend(_duplicates_within(metadata_columns))
    if duplicates:
        raise DuplicateMetadataFieldError(duplicates)
    return [*schema_columns, *metadata_fields]


def _duplicates_within(metadata_columns: Sequence[MetadataColumn]) -> list[str]:
    counts = Counter(column.name for column in metadata_columns)
    return [name for name, count in counts.items() if count > 1]
