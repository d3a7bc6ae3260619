"""Message field exports."""

from .field_resolver import FieldNotFoundError, get_field_by_name
from .field_values import FieldValue, Primitive, Structured, stringify
from .parsed_message import JsonMessageParser, MessageParseError, ParsedMessage

__all__ = [
    "FieldNotFoundError",
    "FieldValue",
    "JsonMessageParser",
    "MessageParseError",
    "ParsedMessage",
    "Primitive",
    "Structured",
    "get_field_by_name",
    "stringify",
]
