"""Field lookup by (possibly dotted) name."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from .field_values import FieldValue, Primitive, Structured

if TYPE_CHECKING:
    from schema_sync_sink.schema_management.schema_models import FieldDescriptor, MessageSchema

    from .parsed_message import ParsedMessage


class FieldNotFoundError(Exception):
    """Raised when a field reference does not exist in the schema."""

    def __init__(self, field_name: str) -> None:
        super().__init__(f"Field '{field_name}' does not exist in schema.")
        self.field_name = field_name


def get_field_by_name(message: ParsedMessage, name: str, schema: MessageSchema) -> FieldValue:
    """Return the value bound to `name`, descending into nested messages."""
    chain = schema.resolve_path(name)
    if chain is None:
        raise FieldNotFoundError(name)

    raw: Any = message.payload
    for descriptor in chain[:-1]:
        raw = raw.get(descriptor.name) if isinstance(raw, Mapping) else None
    leaf = chain[-1]
    raw = raw.get(leaf.name) if isinstance(raw, Mapping) else None
    return to_field_value(leaf, raw)


def to_field_value(descriptor: FieldDescriptor, raw: Any) -> FieldValue:
    if descriptor.is_repeated:
        if raw is None:
            items: Sequence[Any] = ()
        elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
            items = raw
        else:
            items = (raw,)
        return Structured(tuple(_single_value(descriptor, item) for item in items))
    return _single_value(descriptor, raw)


def _single_value(descriptor: FieldDescriptor, raw: Any) -> FieldValue:
    if descriptor.is_message:
        record = raw if isinstance(raw, Mapping) else {}
        children = descriptor.message.fields if descriptor.message is not None else ()
        return Structured(
            tuple(to_field_value(child, record.get(child.name)) for child in children)
        )
    return Primitive(descriptor.default_value() if raw is None else raw)
