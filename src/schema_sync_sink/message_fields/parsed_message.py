"""Parsed message entities and the JSON payload parser."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from .field_resolver import get_field_by_name

if TYPE_CHECKING:
    from schema_sync_sink.schema_management.schema_models import MessageSchema

    from .field_values import FieldValue


class MessageParseError(Exception):
    """Raised when a raw payload cannot be parsed into a message."""


@dataclass(frozen=True)
class ParsedMessage:
    """Field-addressable view over a decoded message payload."""

    payload: Mapping[str, Any]

    def get(self, name: str) -> Any:
        return self.payload.get(name)

    def get_field_by_name(self, name: str, schema: MessageSchema) -> FieldValue:
        return get_field_by_name(self, name, schema)


class JsonMessageParser:  # pylint: disable=too-few-public-methods
    """Parses JSON encoded payloads into parsed messages."""

    def parse(self, payload: bytes | str | None) -> ParsedMessage:
        if payload is None:
            raise MessageParseError("Received empty message payload.")
        try:
            text = payload.decode("utf-8") if isinstance(payload, bytes) else payload
            decoded = json.loads(text)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise MessageParseError(f"Payload is not valid JSON: {exc}") from exc
        if not isinstance(decoded, Mapping):
            raise MessageParseError("Decoded payload root must be an object.")
        return ParsedMessage(payload=decoded)
