"""Normalization of user-supplied formats into immutable format specs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from typing import Any, cast

from accesslog_json.lib.errors import (
    EmptyFormatError,
    InvalidFormatError,
    InvalidTemplateError,
    InvalidTypeError,
)
from accesslog_json.lib.logging import get_logger
from accesslog_json.lib.template.converters import BUILTIN_CONVERTERS
from accesslog_json.lib.types import Converter, OutputKey

logger = get_logger(__name__)

DEFAULT_VALUE = "-"

_RECORD_ALIASES: dict[str, str] = {
    "value": "value",
    "type": "type",
    "defaultValue": "default_value",
    "default_value": "default_value",
    "noDefault": "no_default",
    "no_default": "no_default",
    "required": "required",
}


@dataclass(frozen=True, slots=True)
class StringType:
    """Every token value is rendered to text; the field is one string."""

    name: str = "string"


@dataclass(frozen=True, slots=True)
class PassthroughType:
    """Token values keep their native type (`type = "*"`)."""

    name: str = "*"


@dataclass(frozen=True, slots=True)
class NamedConverter:
    """A built-in converter selected by name, such as `integer`."""

    name: str
    convert: Converter


@dataclass(frozen=True, slots=True)
class CustomConverter:
    """A caller-supplied `(value, name, arg) -> value` converter."""

    convert: Converter

    @property
    def name(self) -> str:
        return getattr(self.convert, "__name__", type(self.convert).__name__)


type FieldType = StringType | PassthroughType | NamedConverter | CustomConverter

_FIELD_TYPES = (StringType, PassthroughType, NamedConverter, CustomConverter)


@dataclass(frozen=True, slots=True)
class TokenTemplate:
    """Template and value policy for one output key."""

    value: str
    type: FieldType = StringType()
    default_value: Any = DEFAULT_VALUE
    no_default: bool = False
    required: bool = False


@dataclass(frozen=True, slots=True)
class StringFormat:
    """A whole-line template whose token names become the output keys."""

    template: str


@dataclass(frozen=True, slots=True)
class MappedFormat:
    """Output keys mapped to their templates, in declaration order."""

    fields: tuple[tuple[OutputKey, TokenTemplate], ...]


type FormatSpec = StringFormat | MappedFormat


def resolve_field_type(key: str, raw_type: object) -> FieldType:
    """Resolve a declared `type` into one coercion strategy."""

    if raw_type is None or raw_type == "string":
        return StringType()
    if raw_type == "*":
        return PassthroughType()
    if isinstance(raw_type, str):
        converter = BUILTIN_CONVERTERS.get(raw_type)
        if converter is None:
            raise InvalidTypeError(key)
        return NamedConverter(name=raw_type, convert=converter)
    if callable(raw_type):
        return CustomConverter(convert=cast("Converter", raw_type))
    raise InvalidTypeError(key)


def normalize_token_template(key: str, raw: object) -> TokenTemplate:
    """Accept the string shorthand or a record and return a `TokenTemplate`."""

    if isinstance(raw, TokenTemplate):
        if not isinstance(raw.value, str):
            raise InvalidTemplateError(key, "'value' must be a template string")
        if isinstance(raw.type, _FIELD_TYPES):
            return raw
        return replace(raw, type=resolve_field_type(key, raw.type))
    if isinstance(raw, str):
        return TokenTemplate(value=raw)
    if not isinstance(raw, Mapping):
        raise InvalidTemplateError(key, "expected a template string or a table")

    values: dict[str, object] = {}
    for record_key, record_value in cast("Mapping[object, object]", raw).items():
        field_name = _RECORD_ALIASES.get(str(record_key))
        if field_name is None:
            logger.warning("ignoring unknown template key", property=key, key=record_key)
            continue
        values[field_name] = record_value

    value = values.get("value")
    if not isinstance(value, str):
        raise InvalidTemplateError(key, "'value' must be a template string")

    return TokenTemplate(
        value=value,
        type=resolve_field_type(key, values.get("type")),
        default_value=values.get("default_value", DEFAULT_VALUE),
        no_default=bool(values.get("no_default", False)),
        required=bool(values.get("required", False)),
    )


def normalize_format(format: object) -> FormatSpec:
    """Validate the top-level format shape."""

    if isinstance(format, str):
        if not format:
            raise EmptyFormatError()
        return StringFormat(template=format)
    if not isinstance(format, Mapping):
        raise InvalidFormatError()

    fields: list[tuple[OutputKey, TokenTemplate]] = []
    for key, raw in cast("Mapping[object, object]", format).items():
        if not isinstance(key, str):
            raise InvalidTemplateError(str(key), "output keys must be strings")
        fields.append((OutputKey(key), normalize_token_template(key, raw)))
    return MappedFormat(fields=tuple(fields))
