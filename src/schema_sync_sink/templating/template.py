"""Field templates: a format pattern filled with message field values.

A template is configured as ``"<pattern>,<field1>,...,<fieldN>"``. The pattern
holds exactly N placeholders (``%s`` or ``%d``, optionally with
``-0+ `` flags, a width and, for ``%s``, a precision) and exactly N ``%`` markers;
both counts are checked against the field list when the template is built.
At message time every field is resolved against the schema, rendered to a
primitive string and substituted in declared order.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from schema_sync_sink.message_fields.field_values import FieldValue, Structured, stringify

if TYPE_CHECKING:
    from schema_sync_sink.message_fields.parsed_message import ParsedMessage
    from schema_sync_sink.schema_management.schema_models import MessageSchema

MARKER = "%"
_PLACEHOLDER = re.compile(
    r"%(?P<flags>[-0+ ]*)(?P<width>\d*)(?:\.(?P<precision>\d+))?(?P<conversion>[sd])"
)


class InvalidTemplateError(Exception):
    """Raised when a template configuration is malformed."""


class TemplateResolutionError(Exception):
    """Raised when a resolved value cannot be substituted into the pattern."""


@dataclass(frozen=True)
class _Literal:
    text: str


@dataclass(frozen=True)
class _Substitution:
    conversion: str
    flags: str = ""
    width: int = 0
    precision: int | None = None
    spec: str = ""

    def check(self) -> None:
        """Reject flag combinations a %s or %d slot cannot honour."""
        flags = set(self.flags)
        if self.conversion == "s":
            invalid = bool(flags - {"-"})
        else:
            invalid = self.precision is not None or {"-", "0"} <= flags or {"+", " "} <= flags
        if ({"-", "0"} & flags) and not self.width:
            invalid = True
        if invalid:
            raise InvalidTemplateError(f"Unsupported format specifier {self.spec}")


_Token = _Literal | _Substitution


def tokenize(pattern: str) -> tuple[_Token, ...]:
    """Split a pattern into literal runs and ordered substitution points."""
    tokens: list[_Token] = []
    cursor = 0
    for match in _PLACEHOLDER.finditer(pattern):
        if match.start() > cursor:
            tokens.append(_Literal(pattern[cursor : match.start()]))
        precision = match.group("precision")
        tokens.append(
            _Substitution(
                conversion=match.group("conversion"),
                flags=match.group("flags"),
                width=int(match.group("width") or 0),
                precision=int(precision) if precision is not None else None,
                spec=match.group(0),
            )
        )
        cursor = match.end()
    if cursor < len(pattern):
        tokens.append(_Literal(pattern[cursor:]))
    return tuple(tokens)


@dataclass(frozen=True)
class Template:
    """Immutable, validated pattern plus the field names that fill it."""

    pattern: str
    field_names: tuple[str, ...]
    _tokens: tuple[_Token, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        tokens = tokenize(self.pattern)
        placeholders = sum(1 for token in tokens if isinstance(token, _Substitution))
        markers = self.pattern.count(MARKER)
        values = len(self.field_names)
        if placeholders != values or markers != values:
            raise InvalidTemplateError(
                f"Template is not valid, variables={markers}, "
                f"validArgs={placeholders}, values={values}"
            )
        for token in tokens:
            if isinstance(token, _Substitution):
                token.check()
        object.__setattr__(self, "_tokens", tokens)

    @classmethod
    def from_string(cls, raw: str | None) -> Template:
        """Build a template from its comma-separated configuration form."""
        if not raw:
            raise InvalidTemplateError("Template cannot be empty")
        segments = [segment.strip() for segment in raw.split(",") if segment]
        if not segments:
            raise InvalidTemplateError("Template cannot be empty")
        return cls(pattern=segments[0], field_names=tuple(segments[1:]))

    def validate_fields(self, schema: MessageSchema) -> None:
        """Check every referenced field exists in a declared schema."""
        missing = [name for name in self.field_names if schema.resolve_path(name) is None]
        if missing:
            raise InvalidTemplateError(
                f"Template fields not present in {schema.class_name}: {', '.join(missing)}"
            )

    def resolve(self, message: ParsedMessage, schema: MessageSchema) -> str:
        """Resolve every field of `message` and substitute into the pattern."""
        values = [message.get_field_by_name(name, schema) for name in self.field_names]
        rendered: list[str] = []
        remaining = iter(zip(self.field_names, values))
        for token in self._tokens:
            if isinstance(token, _Literal):
                rendered.append(token.text)
                continue
            field_name, value = next(remaining)
            rendered.append(_render(token, field_name, value))
        return "".join(rendered)

    def __str__(self) -> str:
        return ",".join((self.pattern, *self.field_names))


def _render(slot: _Substitution, field_name: str, value: FieldValue) -> str:
    if slot.conversion == "s":
        text = stringify(value)
        if slot.precision is not None:
            text = text[: slot.precision]
        return _pad(text, slot, sign="")
    number = _integral(value)
    if number is None:
        raise TemplateResolutionError(
            f"Field '{field_name}' is not an integer and cannot fill {slot.spec}: "
            f"{stringify(value)!r}"
        )
    if number < 0:
        sign = "-"
    elif "+" in slot.flags:
        sign = "+"
    elif " " in slot.flags:
        sign = " "
    else:
        sign = ""
    return _pad(str(abs(number)), slot, sign=sign)


def _pad(text: str, slot: _Substitution, *, sign: str) -> str:
    body = sign + text
    if len(body) >= slot.width:
        return body
    if "-" in slot.flags:
        return body.ljust(slot.width)
    if "0" in slot.flags:
        return sign + text.rjust(slot.width - len(sign), "0")
    return body.rjust(slot.width)


def _integral(value: FieldValue) -> int | None:
    if isinstance(value, Structured):
        return None
    raw: Any = value.value
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and raw.strip().isascii():
        try:
            return int(raw)
        except ValueError:
            return None
    return None
