"""Configuration domain exports."""

from .loader import ConfigurationError, load_configuration, parse_metadata_columns
from .runtime_settings import (
    BigQuerySettings,
    Configuration,
    ConverterSettings,
    InputSchemaMode,
    MetadataColumn,
    MetadataSettings,
    SchemaSettings,
)

__all__ = [
    "BigQuerySettings",
    "Configuration",
    "ConfigurationError",
    "ConverterSettings",
    "InputSchemaMode",
    "MetadataColumn",
    "MetadataSettings",
    "SchemaSettings",
    "load_configuration",
    "parse_metadata_columns",
]
