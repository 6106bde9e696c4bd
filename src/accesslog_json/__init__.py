"""Compile morgan-style access-log templates into JSON record formatters."""

from accesslog_json.lib.compiler import compile_format
from accesslog_json.lib.errors import (
    EmptyFormatError,
    FormatError,
    InvalidFormatError,
    InvalidTemplateError,
    InvalidTypeError,
)
from accesslog_json.lib.template.builder import CompiledFormatter
from accesslog_json.lib.template.converters import float_, integer
from accesslog_json.lib.template.spec import TokenTemplate

__version__ = "0.1.0"

__all__ = [
    "CompiledFormatter",
    "EmptyFormatError",
    "FormatError",
    "InvalidFormatError",
    "InvalidTemplateError",
    "InvalidTypeError",
    "TokenTemplate",
    "__version__",
    "compile_format",
    "float_",
    "integer",
]
