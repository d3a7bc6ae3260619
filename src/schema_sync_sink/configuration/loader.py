"""Configuration loader service."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml

from schema_sync_sink.templating.template import InvalidTemplateError, Template

from .runtime_settings import (
    BigQuerySettings,
    Configuration,
    ConverterSettings,
    InputSchemaMode,
    MetadataColumn,
    MetadataSettings,
    SchemaSettings,
)

METADATA_COLUMN_TYPES = ("STRING", "INTEGER", "FLOAT", "BOOLEAN", "TIMESTAMP", "BYTES")
DEFAULT_METADATA_COLUMNS = (
    "message_offset=integer,message_topic=string,message_partition=integer,"
    "message_timestamp=timestamp,load_time=timestamp"
)


class ConfigurationError(Exception):
    """Raised when the configuration file is invalid."""


def load_configuration(config_path: Path | str) -> Configuration:
    """Load and validate the configuration file."""
    path = Path(config_path)
    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {path}")

    text = path.read_text(encoding="utf-8")
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:  # pragma: no cover - exercised indirectly
        raise ConfigurationError(f"Failed to parse configuration file: {exc}") from exc

    if parsed is None:
        parsed = {}

    if not isinstance(parsed, Mapping):
        raise ConfigurationError("Configuration root must be a mapping.")

    return Configuration(
        path=path,
        schema=_parse_schema_section(parsed.get("schema")),
        metadata=_parse_metadata_section(parsed.get("metadata")),
        bigquery=_parse_bigquery_section(parsed.get("bigquery")),
        converter=_parse_converter_section(parsed.get("converter")),
        templates=_parse_templates_section(parsed.get("templates")),
    )


def parse_metadata_columns(value: Any) -> tuple[MetadataColumn, ...]:
    """Parse ``name=type`` pairs from a string or list."""
    if isinstance(value, str):
        entries = [item.strip() for item in value.split(",") if item.strip()]
    elif isinstance(value, Sequence):
        entries = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError("metadata.columns entries must be strings.")
            entries.append(item.strip())
    else:
        raise ConfigurationError("metadata.columns must be a string or list of strings.")

    columns: list[MetadataColumn] = []
    for entry in entries:
        name, separator, column_type = entry.partition("=")
        name = name.strip()
        column_type = column_type.strip().upper()
        if not separator or not name or not column_type:
            raise ConfigurationError(f"Metadata column must look like name=type: {entry!r}")
        if column_type not in METADATA_COLUMN_TYPES:
            raise ConfigurationError(f"Unsupported metadata column type for {name}: {column_type}")
        columns.append(MetadataColumn(name=name, column_type=column_type))
    return tuple(columns)


def _parse_schema_section(value: Any) -> SchemaSettings:
    section = _require_mapping(value, "schema")
    message_class = _require_non_empty_string(section.get("message_class"), "schema.message_class")
    key_class = _optional_string(section.get("key_class"), "schema.key_class")
    mode_raw = _require_non_empty_string(section.get("mode", "log_message"), "schema.mode").lower()
    try:
        mode = InputSchemaMode(mode_raw)
    except ValueError as exc:
        raise ConfigurationError(f"schema.mode must be log_message or log_key: {mode_raw}") from exc
    if mode is InputSchemaMode.LOG_KEY and key_class is None:
        raise ConfigurationError("schema.key_class is required when schema.mode is log_key.")
    return SchemaSettings(message_class=message_class, key_class=key_class, mode=mode)


def _parse_metadata_section(value: Any) -> MetadataSettings:
    if value is None:
        return MetadataSettings()
    section = _require_mapping(value, "metadata")
    enabled = bool(section.get("enabled", False))
    namespace = _optional_string(section.get("namespace"), "metadata.namespace")
    columns = parse_metadata_columns(section.get("columns", DEFAULT_METADATA_COLUMNS))
    if enabled and not columns:
        raise ConfigurationError("metadata.columns must not be empty when metadata is enabled.")
    return MetadataSettings(enabled=enabled, namespace=namespace, columns=columns)


def _parse_bigquery_section(value: Any) -> BigQuerySettings:
    section = _require_mapping(value, "bigquery")
    labels = section.get("labels") or {}
    if not isinstance(labels, Mapping):
        raise ConfigurationError("bigquery.labels must be a mapping.")
    return BigQuerySettings(
        project=_require_non_empty_string(section.get("project"), "bigquery.project"),
        dataset=_require_non_empty_string(section.get("dataset"), "bigquery.dataset"),
        table=_require_non_empty_string(section.get("table"), "bigquery.table"),
        location=_optional_string(section.get("location"), "bigquery.location"),
        partition_field=_optional_string(
            section.get("partition_field"), "bigquery.partition_field"
        ),
        clustering_fields=_normalize_string_sequence(
            section.get("clustering_fields"), "bigquery.clustering_fields"
        ),
        labels={str(key): str(item) for key, item in labels.items()},
    )


def _parse_converter_section(value: Any) -> ConverterSettings:
    if value is None:
        return ConverterSettings()
    section = _require_mapping(value, "converter")
    return ConverterSettings(
        fail_on_unknown_fields=bool(section.get("fail_on_unknown_fields", False))
    )


def _parse_templates_section(value: Any) -> dict[str, Template]:
    if value is None:
        return {}
    section = _require_mapping(value, "templates")
    templates: dict[str, Template] = {}
    for name, raw in section.items():
        if not isinstance(raw, str):
            raise ConfigurationError(f"templates.{name} must be a string.")
        try:
            templates[str(name)] = Template.from_string(raw)
        except InvalidTemplateError as exc:
            raise ConfigurationError(f"templates.{name}: {exc}") from exc
    return templates


def _normalize_string_sequence(value: Any, field_name: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(item.strip() for item in value.split(",") if item.strip())
    if isinstance(value, Sequence):
        normalized = []
        for item in value:
            if not isinstance(item, str):
                raise ConfigurationError(f"{field_name} entries must be strings.")
            stripped = item.strip()
            if stripped:
                normalized.append(stripped)
        return tuple(normalized)
    raise ConfigurationError(f"{field_name} must be a string or list of strings.")


def _require_mapping(value: Any, section_name: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"Configuration section '{section_name}' is required.")
    return value


def _require_non_empty_string(value: Any, field_name: str) -> str:
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    if not stripped:
        raise ConfigurationError(f"{field_name} must not be empty.")
    return stripped


def _optional_string(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ConfigurationError(f"{field_name} must be a string.")
    stripped = value.strip()
    return stripped or None
