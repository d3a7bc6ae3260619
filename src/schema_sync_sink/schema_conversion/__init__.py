"""Schema conversion exports."""

from .column_mapping import columns_version, generate_bigquery_schema
from .metadata_merger import (
    DuplicateMetadataFieldError,
    build_metadata_fields,
    merge_metadata_fields,
)

__all__ = [
    "DuplicateMetadataFieldError",
    "build_metadata_fields",
    "columns_version",
    "generate_bigquery_schema",
    "merge_metadata_fields",
]
