"""Configuration domain entities."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from schema_sync_sink.templating.template import Template


class InputSchemaMode(str, Enum):
    """Which part of a Kafka record carries the message."""

    LOG_MESSAGE = "log_message"
    LOG_KEY = "log_key"


@dataclass(frozen=True)
class SchemaSettings:
    """Message classes the sink reads."""

    message_class: str
    key_class: str | None = None
    mode: InputSchemaMode = InputSchemaMode.LOG_MESSAGE

    @property
    def active_class(self) -> str:
        if self.mode is InputSchemaMode.LOG_KEY and self.key_class:
            return self.key_class
        return self.message_class


@dataclass(frozen=True)
class MetadataColumn:
    """One operational column added to every sink table."""

    name: str
    column_type: str


@dataclass(frozen=True)
class MetadataSettings:
    """Metadata column configuration, optionally nested under a namespace."""

    enabled: bool = False
    namespace: str | None = None
    columns: tuple[MetadataColumn, ...] = ()

    @property
    def effective_columns(self) -> tuple[MetadataColumn, ...]:
        return self.columns if self.enabled else ()


@dataclass(frozen=True)
class BigQuerySettings:
    """Target table configuration."""

    project: str
    dataset: str
    table: str
    location: str | None = None
    partition_field: str | None = None
    clustering_fields: tuple[str, ...] = ()
    labels: Mapping[str, str] = field(default_factory=dict)

    @property
    def table_id(self) -> str:
        return f"{self.project}.{self.dataset}.{self.table}"


@dataclass(frozen=True)
class ConverterSettings:
    """Message to row conversion options."""

    fail_on_unknown_fields: bool = False


@dataclass(frozen=True)
class Configuration:  # pylint: disable=too-many-instance-attributes
    """Top-level configuration aggregate."""

    path: Path
    schema: SchemaSettings
    metadata: MetadataSettings
    bigquery: BigQuerySettings
    converter: ConverterSettings
    templates: Mapping[str, Template]
