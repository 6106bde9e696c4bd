"""Formatter construction: closures over parsed template segments."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from accesslog_json.lib.errors import InvalidTemplateError
from accesslog_json.lib.serialization import dumps, is_falsy, to_text
from accesslog_json.lib.template.expression import (
    ExpressionSyntaxError,
    compile_expression,
    describe_expression,
    evaluate,
)
from accesslog_json.lib.template.parser import (
    LiteralText,
    Segment,
    TokenRef,
    is_constant,
    parse_line_template,
    parse_template,
    token_refs,
)
from accesslog_json.lib.template.spec import (
    DEFAULT_VALUE,
    FormatSpec,
    MappedFormat,
    PassthroughType,
    StringFormat,
    StringType,
    TokenTemplate,
)
from accesslog_json.lib.types import Converter, OutputKey, TokenResolver

type FieldRenderer = Callable[[TokenResolver, Any], Any]


@dataclass(frozen=True, slots=True)
class FieldPlan:
    """How one output key is produced on every invocation."""

    key: OutputKey
    mode: str
    template: str
    render: FieldRenderer
    field_type: str = "string"
    expression: str | None = None

    def describe(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "key": self.key,
            "mode": self.mode,
            "type": self.field_type,
            "template": self.template,
        }
        if self.expression is not None:
            payload["expression"] = self.expression
        return payload


@dataclass(frozen=True, slots=True)
class CompiledFormatter:
    """Reusable formatter; holds only immutable field plans."""

    fields: tuple[FieldPlan, ...]
    stringify: bool = True

    def __call__(self, tokens: TokenResolver, context: Any = None) -> str | dict[str, Any]:
        record: dict[str, Any] = {}
        for field in self.fields:
            # A repeated key keeps its first position and takes the last value.
            record[field.key] = field.render(tokens, context)
        if self.stringify:
            return dumps(record)
        return record

    def describe(self) -> dict[str, object]:
        return {
            "stringify": self.stringify,
            "fields": [field.describe() for field in self.fields],
        }


def resolve_token(tokens: TokenResolver, context: Any, ref: TokenRef) -> Any:
    """Call the resolver registered for one reference."""

    function = tokens[ref.name]
    if ref.arg is None:
        return function(context)
    return function(context, ref.arg)


def _apply_default(value: Any, default_value: Any, no_default: bool) -> Any:
    if no_default or not is_falsy(value):
        return value
    return default_value


def _identity(value: Any, name: str, arg: str | None) -> Any:
    del name, arg
    return value


def _line_field(ref: TokenRef) -> FieldPlan:
    trailer = ref.trailer

    def render(tokens: TokenResolver, context: Any) -> Any:
        value = resolve_token(tokens, context, ref)
        if is_falsy(value):
            value = DEFAULT_VALUE
        if trailer:
            return to_text(value) + trailer
        return value

    return FieldPlan(
        key=OutputKey(ref.name),
        mode="line",
        template=ref.source + trailer,
        render=render,
    )


def _constant(value: Any) -> FieldRenderer:
    def render(tokens: TokenResolver, context: Any) -> Any:
        del tokens, context
        return value

    return render


def _text_field(
    key: OutputKey,
    template: TokenTemplate,
    segments: tuple[Segment, ...],
) -> FieldPlan:
    if is_constant(segments):
        return FieldPlan(
            key=key,
            mode="constant",
            template=template.value,
            render=_constant(template.value),
        )

    fallback = "" if template.no_default else to_text(template.default_value)

    def render(tokens: TokenResolver, context: Any) -> str:
        pieces: list[str] = []
        for segment in segments:
            if isinstance(segment, LiteralText):
                pieces.append(segment.text)
                continue
            value = resolve_token(tokens, context, segment)
            pieces.append(fallback if is_falsy(value) else to_text(value))
        return "".join(pieces)

    return FieldPlan(key=key, mode="text", template=template.value, render=render)


def _value_field(
    key: OutputKey,
    template: TokenTemplate,
    segments: tuple[Segment, ...],
    convert: Converter,
) -> FieldPlan:
    field_type = template.type.name
    default_value = template.default_value
    no_default = template.no_default
    refs = token_refs(segments)

    def slot_value(tokens: TokenResolver, context: Any, ref: TokenRef) -> Any:
        raw = resolve_token(tokens, context, ref)
        return _apply_default(convert(raw, ref.name, ref.arg), default_value, no_default)

    if len(segments) == 1 and refs:
        ref = refs[0]

        def render_single(tokens: TokenResolver, context: Any) -> Any:
            return slot_value(tokens, context, ref)

        return FieldPlan(
            key=key,
            mode="value",
            template=template.value,
            render=render_single,
            field_type=field_type,
        )

    try:
        node = compile_expression(segments)
    except ExpressionSyntaxError as exc:
        raise InvalidTemplateError(key, str(exc)) from exc

    def render_expression(tokens: TokenResolver, context: Any) -> Any:
        return evaluate(node, [slot_value(tokens, context, ref) for ref in refs])

    return FieldPlan(
        key=key,
        mode="expression" if refs else "constant",
        template=template.value,
        render=render_expression if refs else _constant(evaluate(node, ())),
        field_type=field_type,
        expression=describe_expression(node),
    )


def build_field(key: OutputKey, template: TokenTemplate) -> FieldPlan:
    """Build the plan for one mapped output key."""

    segments = parse_template(template.value)
    field_type = template.type
    if isinstance(field_type, StringType):
        return _text_field(key, template, segments)
    if isinstance(field_type, PassthroughType):
        return _value_field(key, template, segments, _identity)
    return _value_field(key, template, segments, field_type.convert)


def build_formatter(spec: FormatSpec, *, stringify: bool = True) -> CompiledFormatter:
    """Turn a normalized format spec into a compiled formatter."""

    if isinstance(spec, StringFormat):
        fields = tuple(_line_field(ref) for ref in parse_line_template(spec.template))
        return CompiledFormatter(fields=fields, stringify=stringify)
    if isinstance(spec, MappedFormat):
        fields = tuple(build_field(key, template) for key, template in spec.fields)
        return CompiledFormatter(fields=fields, stringify=stringify)
    raise TypeError(f"unsupported format spec: {spec!r}")
