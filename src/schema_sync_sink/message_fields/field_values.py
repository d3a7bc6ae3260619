"""Resolved field values."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class Primitive:
    """A scalar value read straight out of a message."""

    value: Any


@dataclass(frozen=True)
class Structured:
    """A nested record or repeated field, as its ordered child values."""

    children: tuple[FieldValue, ...]


FieldValue = Primitive | Structured


def stringify(value: FieldValue) -> str:
    """Render a resolved value in its canonical string form.

    Structured values concatenate their already-rendered children; they are
    never re-serialized.
    """
    if isinstance(value, Structured):
        return "".join(stringify(child) for child in value.children)
    return render_primitive(value.value)


def render_primitive(raw: Any) -> str:
    if raw is None:
        return ""
    if isinstance(raw, bool):
        return "true" if raw else "false"
    if isinstance(raw, (bytes, bytearray)):
        return base64.b64encode(bytes(raw)).decode("ascii")
    return str(raw)
