"""Template construction and resolution tests."""

from __future__ import annotations

import pytest
from schema_sync_sink.message_fields.field_resolver import FieldNotFoundError
from schema_sync_sink.message_fields.parsed_message import ParsedMessage
from schema_sync_sink.schema_management.schema_projection import load_message_schema
from schema_sync_sink.templating.template import (
    InvalidTemplateError,
    Template,
    TemplateResolutionError,
    tokenize,
)


def _schema():
    return load_message_schema(
        "com.example.Booking",
        {
            "name": "com.example.Booking",
            "fields": [
                {"name": "name", "type": "string"},
                {"name": "status", "type": "string"},
                {"name": "count", "type": "int32"},
                {"name": "paid", "type": "bool"},
                {
                    "name": "driver",
                    "type": "message",
                    "type_name": "com.example.Driver",
                    "fields": [
                        {"name": "first", "type": "string"},
                        {"name": "last", "type": "string"},
                    ],
                },
            ],
        },
    )


def test_resolves_fields_in_declared_order() -> None:
    template = Template(pattern="hello %s, you are %s", field_names=("name", "status"))
    message = ParsedMessage({"name": "ann", "status": "active"})

    assert template.resolve(message, _schema()) == "hello ann, you are active"


def test_from_string_builds_template_with_fields() -> None:
    template = Template.from_string("booking_%s_%s,name, status")

    assert template.pattern == "booking_%s_%s"
    assert template.field_names == ("name", "status")
    assert str(template) == "booking_%s_%s,name,status"


@pytest.mark.parametrize("raw", [None, "", ",,,"])
def test_empty_template_is_rejected(raw: str | None) -> None:
    with pytest.raises(InvalidTemplateError, match="cannot be empty"):
        Template.from_string(raw)


def test_more_fields_than_placeholders_is_rejected() -> None:
    with pytest.raises(InvalidTemplateError, match="values=2"):
        Template.from_string("hello %s,name,status")


def test_fewer_fields_than_placeholders_is_rejected() -> None:
    with pytest.raises(InvalidTemplateError):
        Template.from_string("%s-%s,name")


def test_stray_marker_is_rejected_even_when_placeholders_match() -> None:
    with pytest.raises(InvalidTemplateError, match="variables=2, validArgs=1, values=1"):
        Template.from_string("100% %s,name")


def test_escaped_marker_is_rejected() -> None:
    with pytest.raises(InvalidTemplateError):
        Template.from_string("%%s,name")


def test_constant_template_without_fields_is_valid() -> None:
    template = Template.from_string("static-table")

    assert template.resolve(ParsedMessage({}), _schema()) == "static-table"


def test_tokenize_splits_literals_and_substitutions() -> None:
    tokens = tokenize("a%sb%dc")

    assert [type(token).__name__ for token in tokens] == [
        "_Literal",
        "_Substitution",
        "_Literal",
        "_Substitution",
        "_Literal",
    ]


def test_structured_field_is_rendered_as_concatenated_children() -> None:
    template = Template.from_string("driver-%s,driver")
    message = ParsedMessage({"driver": {"first": "ann", "last": "lee"}})

    assert template.resolve(message, _schema()) == "driver-annlee"


def test_nested_field_reference_resolves_leaf_value() -> None:
    template = Template.from_string("%s,driver.last")
    message = ParsedMessage({"driver": {"first": "ann", "last": "lee"}})

    assert template.resolve(message, _schema()) == "lee"


def test_integer_placeholder_renders_integral_values() -> None:
    template = Template.from_string("part_%d_%s,count,paid")
    message = ParsedMessage({"count": "42", "paid": True})

    assert template.resolve(message, _schema()) == "part_42_true"


def test_integer_placeholder_rejects_non_integral_value() -> None:
    template = Template.from_string("part_%d,name")

    with pytest.raises(TemplateResolutionError, match="'name'"):
        template.resolve(ParsedMessage({"name": "ann"}), _schema())


def test_missing_field_aborts_resolution_naming_the_field() -> None:
    template = Template.from_string("%s-%s,name,unknown")

    with pytest.raises(FieldNotFoundError) as exc_info:
        template.resolve(ParsedMessage({"name": "ann"}), _schema())

    assert exc_info.value.field_name == "unknown"


def test_unset_fields_resolve_to_protobuf_defaults() -> None:
    template = Template.from_string("%s|%d|%s,name,count,paid")

    assert template.resolve(ParsedMessage({}), _schema()) == "|0|false"


def test_validate_fields_reports_every_missing_reference() -> None:
    template = Template.from_string("%s-%s-%s,name,driver.age,rider")

    with pytest.raises(InvalidTemplateError, match="driver.age, rider"):
        template.validate_fields(_schema())


def test_validate_fields_accepts_known_references() -> None:
    Template.from_string("%s-%s,name,driver.first").validate_fields(_schema())


def test_templates_are_immutable() -> None:
    template = Template.from_string("%s,name")

    with pytest.raises(AttributeError):
        template.pattern = "%s-%s"  # type: ignore[misc]


@pytest.mark.parametrize(
    ("raw", "count", "expected"),
    [
        ("part_%02d,count", 7, "part_07"),
        ("part_%05d,count", -42, "part_-0042"),
        ("part_%+d,count", 3, "part_+3"),
        ("part_% d,count", 3, "part_ 3"),
        ("part_%4d|,count", 12, "part_  12|"),
        ("part_%-4d|,count", 12, "part_12  |"),
    ],
)
def test_integer_placeholder_honours_flags_and_width(raw: str, count: int, expected: str) -> None:
    template = Template.from_string(raw)

    assert template.resolve(ParsedMessage({"count": count}), _schema()) == expected


def test_string_placeholder_honours_width_and_precision() -> None:
    template = Template.from_string("%-5s|%5s|%.2s,name,status,driver.last")
    message = ParsedMessage({"name": "ann", "status": "ok", "driver": {"last": "lee"}})

    assert template.resolve(message, _schema()) == "ann  |   ok|le"


@pytest.mark.parametrize("raw", ["%0s,name", "%+s,name", "%.2d,count", "%-d,count", "%-05d,count"])
def test_unsupported_format_specifier_is_rejected(raw: str) -> None:
    with pytest.raises(InvalidTemplateError, match="Unsupported format specifier"):
        Template.from_string(raw)


@pytest.mark.parametrize("value", ["--5", "+-5", "²", "٥", "5.0"])
def test_integer_placeholder_rejects_malformed_numeric_strings(value: str) -> None:
    template = Template.from_string("id_%d,name")

    with pytest.raises(TemplateResolutionError, match="'name'"):
        template.resolve(ParsedMessage({"name": value}), _schema())


def test_integer_placeholder_accepts_signed_numeric_string() -> None:
    template = Template.from_string("id_%d,name")

    assert template.resolve(ParsedMessage({"name": " -5 "}), _schema()) == "id_-5"
