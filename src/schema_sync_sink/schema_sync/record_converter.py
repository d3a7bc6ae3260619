"""Message to BigQuery row conversion."""

from __future__ import annotations

import base64
import json
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from google.cloud import bigquery

from schema_sync_sink.configuration.runtime_settings import (
    ConverterSettings,
    InputSchemaMode,
    MetadataSettings,
    SchemaSettings,
)
from schema_sync_sink.message_fields.parsed_message import (
    JsonMessageParser,
    MessageParseError,
    ParsedMessage,
)
from schema_sync_sink.schema_conversion.column_mapping import columns_version
from schema_sync_sink.schema_management.schema_models import MessageSchema

LOAD_TIME_COLUMN = "load_time"


class ErrorType(str, Enum):
    """Reason a message could not be turned into a row."""

    DESERIALIZATION_ERROR = "deserialization_error"
    UNKNOWN_FIELDS_ERROR = "unknown_fields_error"
    INVALID_MESSAGE_ERROR = "invalid_message_error"


class MessageConversionError(Exception):
    """Raised when a single message cannot be converted."""

    def __init__(self, error_type: ErrorType, message: str) -> None:
        super().__init__(message)
        self.error_type = error_type


@dataclass(frozen=True)
class InputMessage:
    """Raw record as read from the stream."""

    key: bytes | None
    value: bytes | None
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ErrorInfo:
    error_type: ErrorType
    message: str


@dataclass(frozen=True)
class Record:
    """Conversion outcome for one input message, by batch position."""

    index: int
    row: dict[str, Any] | None = None
    error: ErrorInfo | None = None


@dataclass(frozen=True)
class ConvertedRecords:
    valid: tuple[Record, ...]
    invalid: tuple[Record, ...]


class MessageRecordConverter:
    """Immutable pairing of a committed schema with the logic that fills its columns."""

    def __init__(  # pylint: disable=too-many-arguments
        self,
        schema: MessageSchema,
        columns: Sequence[bigquery.SchemaField],
        *,
        schema_settings: SchemaSettings,
        metadata_settings: MetadataSettings,
        converter_settings: ConverterSettings,
        parser: JsonMessageParser | None = None,
    ) -> None:
        self._schema = schema
        self._columns = tuple(columns)
        self._version = columns_version(self._columns)
        self._schema_settings = schema_settings
        self._metadata_settings = metadata_settings
        self._converter_settings = converter_settings
        self._parser = parser or JsonMessageParser()
        metadata_names = self._metadata_column_names()
        self._data_columns = tuple(
            column for column in self._columns if column.name not in metadata_names
        )

    @property
    def schema(self) -> MessageSchema:
        return self._schema

    @property
    def columns(self) -> tuple[bigquery.SchemaField, ...]:
        return self._columns

    @property
    def version(self) -> str:
        """Fingerprint of the committed column list this converter writes."""
        return self._version

    def convert(self, messages: Sequence[InputMessage]) -> ConvertedRecords:
        valid: list[Record] = []
        invalid: list[Record] = []
        for index, message in enumerate(messages):
            try:
                valid.append(Record(index=index, row=self.convert_message(message)))
            except MessageConversionError as exc:
                error = ErrorInfo(error_type=exc.error_type, message=str(exc))
                invalid.append(Record(index=index, error=error))
        return ConvertedRecords(valid=tuple(valid), invalid=tuple(invalid))

    def convert_message(self, message: InputMessage) -> dict[str, Any]:
        parsed = self.parse(message)
        row = self._record_row(parsed.payload, self._data_columns, path="")
        row.update(self._metadata_row(message.metadata))
        return row

    def parse(self, message: InputMessage) -> ParsedMessage:
        payload = (
            message.key
            if self._schema_settings.mode is InputSchemaMode.LOG_KEY
            else message.value
        )
        try:
            return self._parser.parse(payload)
        except MessageParseError as exc:
            raise MessageConversionError(ErrorType.DESERIALIZATION_ERROR, str(exc)) from exc

    def _metadata_column_names(self) -> set[str]:
        if not self._metadata_settings.effective_columns:
            return set()
        if self._metadata_settings.namespace:
            return {self._metadata_settings.namespace}
        return {column.name for column in self._metadata_settings.effective_columns}

    def _record_row(
        self,
        payload: Mapping[str, Any],
        columns: Sequence[bigquery.SchemaField],
        *,
        path: str,
    ) -> dict[str, Any]:
        if self._converter_settings.fail_on_unknown_fields:
            known = {column.name for column in columns}
            unknown = sorted(name for name in payload if name not in known)
            if unknown:
                qualified = [name if not path else f"{path}.{name}" for name in unknown]
                raise MessageConversionError(
                    ErrorType.UNKNOWN_FIELDS_ERROR, f"Unknown fields: {', '.join(qualified)}"
                )
        row: dict[str, Any] = {}
        for column in columns:
            value = payload.get(column.name)
            if value is None:
                continue
            column_path = column.name if not path else f"{path}.{column.name}"
            row[column.name] = self._column_value(column, value, path=column_path)
        return row

    def _column_value(self, column: bigquery.SchemaField, value: Any, *, path: str) -> Any:
        if column.mode == "REPEATED":
            if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
                raise MessageConversionError(
                    ErrorType.INVALID_MESSAGE_ERROR, f"Field {path} must be a list."
                )
            return [self._scalar_value(column, item, path=path) for item in value]
        return self._scalar_value(column, value, path=path)

    def _scalar_value(self, column: bigquery.SchemaField, value: Any, *, path: str) -> Any:
        try:
            if column.field_type == "RECORD":
                if not isinstance(value, Mapping):
                    raise TypeError("expected an object")
                return self._record_row(value, column.fields, path=path)
            return convert_scalar(column.field_type, value)
        except (TypeError, ValueError, OverflowError, OSError) as exc:
            raise MessageConversionError(
                ErrorType.INVALID_MESSAGE_ERROR,
                f"Field {path} cannot be written as {column.field_type}: {exc}",
            ) from exc

    def _metadata_row(self, metadata: Mapping[str, Any]) -> dict[str, Any]:
        columns = self._metadata_settings.effective_columns
        if not columns:
            return {}
        values: dict[str, Any] = {}
        for column in columns:
            value = metadata.get(column.name)
            if value is None and column.name == LOAD_TIME_COLUMN:
                value = datetime.now(UTC)
            if value is None:
                continue
            try:
                values[column.name] = convert_scalar(column.column_type, value)
            except (TypeError, ValueError, OverflowError, OSError) as exc:
                raise MessageConversionError(
                    ErrorType.INVALID_MESSAGE_ERROR,
                    f"Metadata {column.name} cannot be written as {column.column_type}: {exc}",
                ) from exc
        if self._metadata_settings.namespace:
            return {self._metadata_settings.namespace: values}
        return values


def convert_scalar(column_type: str, value: Any) -> Any:
    """JSON-ready value for one BigQuery scalar column."""
    if column_type == "TIMESTAMP":
        return _timestamp(value).isoformat()
    if column_type == "BYTES":
        if isinstance(value, (bytes, bytearray)):
            return base64.b64encode(bytes(value)).decode("ascii")
        return str(value)
    if column_type == "INTEGER":
        if isinstance(value, bool):
            raise TypeError("boolean is not an integer")
        return int(value)
    if column_type == "FLOAT":
        return float(value)
    if column_type == "BOOLEAN":
        if not isinstance(value, bool):
            raise TypeError("expected a boolean")
        return value
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True)


def _timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=UTC)
    if isinstance(value, Mapping):
        seconds = int(value.get("seconds", 0))
        nanos = int(value.get("nanos", 0))
        return datetime.fromtimestamp(seconds + nanos / 1_000_000_000, tz=UTC)
    if isinstance(value, bool):
        raise TypeError("boolean is not a timestamp")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=UTC)
    if isinstance(value, str):
        parsed = datetime.fromisoformat(value)
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=UTC)
    raise TypeError(f"unsupported timestamp value {value!r}")
