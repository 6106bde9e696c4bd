"""Built-in numeric converters for typed fields."""

from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from accesslog_json.lib.types import Converter

# Leading-prefix parsing: "42abc" -> 42, "abc" -> no result.
_INTEGER_PREFIX_RE = re.compile(r"\s*([+-]?\d+)", re.ASCII)
_FLOAT_PREFIX_RE = re.compile(
    r"\s*([+-]?(?:Infinity|(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?))",
    re.ASCII,
)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def integer(value: Any, name: str | None = None, arg: str | None = None) -> int | float | None:
    """Parse a base-10 integer prefix from text; pass numbers through."""

    del name, arg
    if isinstance(value, str):
        match = _INTEGER_PREFIX_RE.match(value)
        if match is None:
            return None
        return int(match.group(1))
    if not _is_number(value):
        return None
    return value


def float_(value: Any, name: str | None = None, arg: str | None = None) -> int | float | None:
    """Parse a decimal/exponent prefix from text; pass numbers through."""

    del name, arg
    if isinstance(value, str):
        match = _FLOAT_PREFIX_RE.match(value)
        if match is None:
            return None
        return float(match.group(1).replace("Infinity", "inf"))
    if not _is_number(value):
        return None
    return value


BUILTIN_CONVERTERS: Mapping[str, Converter] = {
    "integer": integer,
    "float": float_,
}
