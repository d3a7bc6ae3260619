"""Schema management entities."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

SCALAR_DEFAULTS: dict[str, Any] = {
    "double": 0.0,
    "float": 0.0,
    "int32": 0,
    "int64": 0,
    "uint32": 0,
    "uint64": 0,
    "sint32": 0,
    "sint64": 0,
    "fixed32": 0,
    "fixed64": 0,
    "sfixed32": 0,
    "sfixed64": 0,
    "bool": False,
    "string": "",
    "bytes": b"",
    "enum": "",
}

MESSAGE_TYPE = "message"
LABELS = ("optional", "required", "repeated")


@dataclass(frozen=True)
class FieldDescriptor:
    """One named, typed field of a message schema."""

    name: str
    proto_type: str
    label: str = "optional"
    type_name: str | None = None
    message: MessageSchema | None = None

    @property
    def is_message(self) -> bool:
        return self.proto_type == MESSAGE_TYPE

    @property
    def is_repeated(self) -> bool:
        return self.label == "repeated"

    def default_value(self) -> Any:
        """Value a protobuf reader yields for an unset scalar field."""
        return SCALAR_DEFAULTS.get(self.proto_type)


@dataclass(frozen=True)
class MessageSchema:
    """Immutable, ordered field list for one message class version."""

    class_name: str
    fields: tuple[FieldDescriptor, ...]
    version: str

    def field_names(self) -> tuple[str, ...]:
        return tuple(field.name for field in self.fields)

    def find_field(self, name: str) -> FieldDescriptor | None:
        for field in self.fields:
            if field.name == name:
                return field
        return None

    def resolve_path(self, reference: str) -> tuple[FieldDescriptor, ...] | None:
        """Walk a dotted field reference and return the descriptors along the path."""
        parts = reference.split(".")
        if not all(parts):
            return None
        chain: list[FieldDescriptor] = []
        current: MessageSchema | None = self
        for index, part in enumerate(parts):
            if current is None:
                return None
            descriptor = current.find_field(part)
            if descriptor is None:
                return None
            chain.append(descriptor)
            is_last = index == len(parts) - 1
            if not is_last and (not descriptor.is_message or descriptor.is_repeated):
                return None
            current = descriptor.message
        return tuple(chain)
