"""Field value rendering tests."""

from __future__ import annotations

from schema_sync_sink.message_fields.field_values import Primitive, Structured, stringify


def test_primitives_render_with_their_string_form() -> None:
    assert stringify(Primitive("abc")) == "abc"
    assert stringify(Primitive(12)) == "12"
    assert stringify(Primitive(1.5)) == "1.5"


def test_booleans_render_lowercase() -> None:
    assert stringify(Primitive(True)) == "true"
    assert stringify(Primitive(False)) == "false"


def test_bytes_render_as_base64() -> None:
    assert stringify(Primitive(b"\x00\x01")) == "AAE="


def test_none_renders_empty() -> None:
    assert stringify(Primitive(None)) == ""


def test_structured_concatenates_children_in_order() -> None:
    nested = Structured((Primitive(1), Primitive(False)))
    value = Structured((Primitive("a"), nested, Primitive("z")))

    assert stringify(value) == "a1falsez"


def test_empty_structured_renders_empty() -> None:
    assert stringify(Structured(())) == ""
