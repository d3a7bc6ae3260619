"""Configuration loader tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from schema_sync_sink.configuration.loader import (
    ConfigurationError,
    load_configuration,
    parse_metadata_columns,
)
from schema_sync_sink.configuration.runtime_settings import InputSchemaMode, MetadataColumn


def _write_file(path: Path, contents: str) -> Path:
    path.write_text(contents, encoding="utf-8")
    return path


def _minimal(**sections: object) -> dict:
    config: dict = {
        "schema": {"message_class": "com.example.Booking"},
        "bigquery": {"project": "proj", "dataset": "sink", "table": "bookings"},
    }
    config.update(sections)
    return config


def test_loads_yaml_configuration_with_defaults(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.yaml",
        """
schema:
  message_class: com.example.Booking
metadata:
  enabled: true
bigquery:
  project: proj
  dataset: sink
  table: bookings
  clustering_fields: "id, service_type"
templates:
  partition_key: "booking_%s, service_type"
""",
    )

    configuration = load_configuration(config_path)

    assert configuration.schema.mode is InputSchemaMode.LOG_MESSAGE
    assert configuration.schema.active_class == "com.example.Booking"
    assert configuration.metadata.enabled is True
    assert configuration.metadata.namespace is None
    assert [column.name for column in configuration.metadata.columns] == [
        "message_offset",
        "message_topic",
        "message_partition",
        "message_timestamp",
        "load_time",
    ]
    assert configuration.bigquery.table_id == "proj.sink.bookings"
    assert configuration.bigquery.clustering_fields == ("id", "service_type")
    assert configuration.converter.fail_on_unknown_fields is False
    assert configuration.templates["partition_key"].field_names == ("service_type",)


def test_loads_json_configuration_in_log_key_mode(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.json",
        json.dumps(
            _minimal(
                schema={
                    "message_class": "com.example.Booking",
                    "key_class": "com.example.BookingKey",
                    "mode": "LOG_KEY",
                },
                metadata={"enabled": True, "namespace": "meta", "columns": ["offset=integer"]},
                converter={"fail_on_unknown_fields": True},
            )
        ),
    )

    configuration = load_configuration(config_path)

    assert configuration.schema.active_class == "com.example.BookingKey"
    assert configuration.metadata.namespace == "meta"
    assert configuration.metadata.columns == (MetadataColumn("offset", "INTEGER"),)
    assert configuration.converter.fail_on_unknown_fields is True


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="not found"):
        load_configuration(tmp_path / "missing.yaml")


def test_broken_template_refuses_to_load(tmp_path: Path) -> None:
    config_path = _write_file(
        tmp_path / "config.json",
        json.dumps(_minimal(templates={"routing": "hello %s,name,status"})),
    )

    with pytest.raises(ConfigurationError, match="templates.routing"):
        load_configuration(config_path)


@pytest.mark.parametrize(
    ("sections", "message"),
    [
        ({"schema": None}, "section 'schema' is required"),
        ({"bigquery": {"project": "p", "dataset": "d"}}, "bigquery.table"),
        ({"schema": {"message_class": "a", "mode": "log_key"}}, "key_class is required"),
        ({"schema": {"message_class": "a", "mode": "both"}}, "schema.mode"),
        ({"metadata": {"enabled": True, "columns": ""}}, "must not be empty"),
        ({"templates": {"routing": 3}}, "templates.routing must be a string"),
    ],
)
def test_invalid_sections_raise(tmp_path: Path, sections: dict, message: str) -> None:
    config_path = _write_file(tmp_path / "config.json", json.dumps(_minimal(**sections)))

    with pytest.raises(ConfigurationError, match=message):
        load_configuration(config_path)


def test_parse_metadata_columns_validates_entries() -> None:
    assert parse_metadata_columns("a=string, b=Timestamp") == (
        MetadataColumn("a", "STRING"),
        MetadataColumn("b", "TIMESTAMP"),
    )
    with pytest.raises(ConfigurationError, match="name=type"):
        parse_metadata_columns("a")
    with pytest.raises(ConfigurationError, match="Unsupported metadata column type"):
        parse_metadata_columns("a=geography")
