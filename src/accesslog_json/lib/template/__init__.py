"""Template parsing and formatter construction."""

from accesslog_json.lib.template.builder import CompiledFormatter, FieldPlan, build_formatter
from accesslog_json.lib.template.converters import BUILTIN_CONVERTERS
from accesslog_json.lib.template.parser import (
    LiteralText,
    Segment,
    TokenRef,
    parse_line_template,
    parse_template,
)
from accesslog_json.lib.template.spec import (
    FormatSpec,
    MappedFormat,
    StringFormat,
    TokenTemplate,
    normalize_format,
)

__all__ = [
    "BUILTIN_CONVERTERS",
    "CompiledFormatter",
    "FieldPlan",
    "FormatSpec",
    "LiteralText",
    "MappedFormat",
    "Segment",
    "StringFormat",
    "TokenRef",
    "TokenTemplate",
    "build_formatter",
    "normalize_format",
    "parse_line_template",
    "parse_template",
]
