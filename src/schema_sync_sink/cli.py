"""Command line interface entry point."""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import click
from google.auth.exceptions import GoogleAuthError

from schema_sync_sink.configuration import ConfigurationError, load_configuration
from schema_sync_sink.message_fields import (
    FieldNotFoundError,
    JsonMessageParser,
    MessageParseError,
)
from schema_sync_sink.schema_management import (
    SchemaCatalog,
    SchemaMappingError,
    load_message_schema,
)
from schema_sync_sink.schema_sync import (
    BigQueryTableClient,
    SchemaChangeCoordinator,
    TableUpdateFailure,
)
from schema_sync_sink.templating import InvalidTemplateError, Template, TemplateResolutionError


class CliError(Exception):
    """Custom CLI error."""


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="schema-sync-sink")
@click.option(
    "--log-level",
    default="WARNING",
    show_default=True,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging verbosity",
)
def cli(log_level: str) -> None:
    """Schema sync and field templating for the BigQuery sink."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@cli.command(name="check-config")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON sink configuration file",
)
def check_config(config_path: str) -> None:
    """Validate the sink configuration and compile its templates."""
    try:
        configuration = load_configuration(config_path)
    except ConfigurationError as exc:
        raise CliError(str(exc)) from exc
    click.echo(f"table: {configuration.bigquery.table_id}")
    click.echo(f"schema class: {configuration.schema.active_class}")
    for name, template in configuration.templates.items():
        click.echo(f"template {name}: {template}")


@cli.command(name="render-template")
@click.option("--template", "raw_template", required=True, help="<pattern>,<field1>,...")
@click.option(
    "--schema",
    "schema_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to a JSON schema description",
)
@click.option(
    "--message",
    "message_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to a JSON message",
)
def render_template(raw_template: str, schema_path: str, message_path: str) -> None:
    """Resolve a template against one message."""
    try:
        template = Template.from_string(raw_template)
        description = _read_json(schema_path)
        schema = load_message_schema(_class_name(description, schema_path), description)
        template.validate_fields(schema)
        message = JsonMessageParser().parse(Path(message_path).read_bytes())
        rendered = template.resolve(message, schema)
    except (
        InvalidTemplateError,
        TemplateResolutionError,
        FieldNotFoundError,
        SchemaMappingError,
        MessageParseError,
        OSError,
    ) as exc:
        raise CliError(str(exc)) from exc
    click.echo(rendered)


@cli.command(name="sync-schema")
@click.option(
    "--config",
    "config_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to YAML/JSON sink configuration file",
)
@click.option(
    "--schema",
    "schema_path",
    required=True,
    type=click.Path(path_type=str),
    help="Path to the JSON schema description of the configured class",
)
def sync_schema(config_path: str, schema_path: str) -> None:
    """Reconcile the BigQuery table with a schema description."""
    try:
        configuration = load_configuration(config_path)
        description = _read_json(schema_path)
        coordinator = SchemaChangeCoordinator(
            schema_settings=configuration.schema,
            metadata_settings=configuration.metadata,
            converter_settings=configuration.converter,
            catalog=SchemaCatalog(),
            warehouse_client=BigQueryTableClient(configuration.bigquery),
        )
        try:
            outcome = coordinator.on_schema_update({coordinator.class_name: description})
        finally:
            coordinator.close()
    except (
        ConfigurationError,
        SchemaMappingError,
        TableUpdateFailure,
        GoogleAuthError,
        OSError,
    ) as exc:
        raise CliError(str(exc)) from exc
    click.echo(f"{outcome.value} {coordinator.active_converter.version}")


def _read_json(path: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise CliError(f"Invalid JSON in {path}: {exc}") from exc


def _class_name(description: Any, path: str) -> str:
    if isinstance(description, dict) and isinstance(description.get("name"), str):
        return description["name"]
    return Path(path).stem


def main(argv: list[str] | None = None) -> int:
    """CLI entry point for console_scripts wiring."""
    argv = argv if argv is not None else sys.argv[1:]
    try:
        cli.main(args=list(argv), standalone_mode=False)
    except CliError as exc:
        click.echo(str(exc), err=True)
        return 1
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.Abort:
        click.echo("Aborted.", err=True)
        return 1
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
