"""Registry description parsing service."""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping, Sequence
from typing import Any

from .schema_models import LABELS, MESSAGE_TYPE, SCALAR_DEFAULTS, FieldDescriptor, MessageSchema


class SchemaMappingError(Exception):
    """Raised when a schema cannot be parsed or mapped to warehouse columns."""


def load_message_schema(class_name: str, description: Any) -> MessageSchema:
    """Build an immutable message schema from a registry description."""
    if not isinstance(description, Mapping):
        raise SchemaMappingError(f"Schema description for {class_name} must be a mapping.")
    canonical: list[Any] = []
    fields = _parse_fields(description.get("fields"), prefix="", canonical=canonical)
    return MessageSchema(
        class_name=class_name,
        fields=fields,
        version=schema_fingerprint(canonical),
    )


def load_message_schema_text(class_name: str, text: str) -> MessageSchema:
    """Parse a JSON registry description."""
    try:
        description = json.loads(text)
    except json.JSONDecodeError as exc:
        raise SchemaMappingError(f"Invalid schema description for {class_name}: {exc}") from exc
    return load_message_schema(class_name, description)


def schema_fingerprint(canonical: Any) -> str:
    """Deterministic version string for a canonical field tree."""
    encoded = json.dumps(canonical, sort_keys=True, separators=(",", ":")).encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()[:16]


def _parse_fields(
    raw_fields: Any, *, prefix: str, canonical: list[Any]
) -> tuple[FieldDescriptor, ...]:
    if raw_fields is None:
        return ()
    if isinstance(raw_fields, (str, bytes)) or not isinstance(raw_fields, Sequence):
        raise SchemaMappingError(f"Fields of '{prefix or '<root>'}' must be a list.")

    descriptors: list[FieldDescriptor] = []
    seen_names: set[str] = set()
    for raw in raw_fields:
        if not isinstance(raw, Mapping) or not isinstance(raw.get("name"), str) or not raw["name"]:
            raise SchemaMappingError("Field definitions must include a name.")
        name = raw["name"]
        path = name if not prefix else f"{prefix}.{name}"
        if name in seen_names:
            raise SchemaMappingError(f"Duplicate field detected: {path}")
        seen_names.add(name)

        proto_type = raw.get("type")
        if proto_type != MESSAGE_TYPE and proto_type not in SCALAR_DEFAULTS:
            raise SchemaMappingError(f"Unsupported field type for {path}: {proto_type!r}")
        label = raw.get("label", "optional")
        if label not in LABELS:
            raise SchemaMappingError(f"Unsupported label for {path}: {label!r}")
        type_name = raw.get("type_name")
        if type_name is not None and not isinstance(type_name, str):
            raise SchemaMappingError(f"type_name of {path} must be a string.")

        nested: MessageSchema | None = None
        entry: dict[str, Any] = {"name": name, "type": proto_type, "label": label}
        if type_name:
            entry["type_name"] = type_name
        if proto_type == MESSAGE_TYPE:
            child_canonical: list[Any] = []
            child_fields = _parse_fields(raw.get("fields"), prefix=path, canonical=child_canonical)
            nested = MessageSchema(
                class_name=type_name or path,
                fields=child_fields,
                version=schema_fingerprint(child_canonical),
            )
            entry["fields"] = child_canonical
        canonical.append(entry)
        descriptors.append(
            FieldDescriptor(
                name=name,
                proto_type=proto_type,
                label=label,
                type_name=type_name or None,
                message=nested,
            )
        )
    return tuple(descriptors)
