"""Field resolver tests."""

from __future__ import annotations

import pytest
from schema_sync_sink.message_fields.field_resolver import FieldNotFoundError, get_field_by_name
from schema_sync_sink.message_fields.field_values import Primitive, Structured, stringify
from schema_sync_sink.message_fields.parsed_message import ParsedMessage
from schema_sync_sink.schema_management.schema_projection import load_message_schema


def _schema():
    return load_message_schema(
        "com.example.Order",
        {
            "fields": [
                {"name": "order_id", "type": "string"},
                {"name": "amount", "type": "double"},
                {"name": "tags", "type": "string", "label": "repeated"},
                {
                    "name": "customer",
                    "type": "message",
                    "fields": [
                        {"name": "name", "type": "string"},
                        {
                            "name": "address",
                            "type": "message",
                            "fields": [
                                {"name": "city", "type": "string"},
                                {"name": "zip", "type": "int32"},
                            ],
                        },
                    ],
                },
                {
                    "name": "items",
                    "type": "message",
                    "label": "repeated",
                    "fields": [{"name": "sku", "type": "string"}],
                },
            ]
        },
    )


def test_returns_primitive_for_top_level_scalar() -> None:
    message = ParsedMessage({"order_id": "o-1", "amount": 9.5})

    assert get_field_by_name(message, "order_id", _schema()) == Primitive("o-1")
    assert get_field_by_name(message, "amount", _schema()) == Primitive(9.5)


def test_descends_into_nested_messages() -> None:
    message = ParsedMessage({"customer": {"address": {"city": "Jakarta", "zip": 12}}})

    assert get_field_by_name(message, "customer.address.city", _schema()) == Primitive("Jakarta")


def test_returns_structured_wrapper_for_message_fields() -> None:
    message = ParsedMessage({"customer": {"name": "ann", "address": {"city": "Pune"}}})

    value = get_field_by_name(message, "customer", _schema())

    assert isinstance(value, Structured)
    assert value.children[0] == Primitive("ann")
    assert isinstance(value.children[1], Structured)
    assert stringify(value) == "annPune0"


def test_repeated_fields_resolve_to_structured_elements() -> None:
    message = ParsedMessage({"tags": ["a", "b"], "items": [{"sku": "x"}, {"sku": "y"}]})

    assert stringify(get_field_by_name(message, "tags", _schema())) == "ab"
    assert stringify(get_field_by_name(message, "items", _schema())) == "xy"


def test_missing_nested_parent_yields_defaults() -> None:
    value = get_field_by_name(ParsedMessage({}), "customer.address.zip", _schema())

    assert value == Primitive(0)


@pytest.mark.parametrize(
    "name",
    ["unknown", "customer.unknown", "order_id.child", "items.sku", "customer..name", ""],
)
def test_unknown_references_raise_field_not_found(name: str) -> None:
    with pytest.raises(FieldNotFoundError) as exc_info:
        get_field_by_name(ParsedMessage({}), name, _schema())

    assert exc_info.value.field_name == name


def test_parsed_message_delegates_lookup() -> None:
    message = ParsedMessage({"order_id": "o-2"})

    assert message.get_field_by_name("order_id", _schema()) == Primitive("o-2")
