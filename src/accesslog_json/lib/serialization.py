"""Serialization helpers for rendered log records."""

from __future__ import annotations

import json
import math
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any, cast


def to_jsonable(value: Any) -> Any:
    """Convert supported values to JSON-serializable payloads.

    Non-finite floats become ``None`` so encoded records never carry the
    non-standard ``NaN``/``Infinity`` literals. Integral floats below 1e21
    become ints, so `42.0` encodes as `42` on every field path.
    """

    if is_dataclass(value) and not isinstance(value, type):
        return to_jsonable(asdict(value))
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, float) and not math.isfinite(value):
        return None
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e21:
        return int(value)
    if isinstance(value, dict):
        typed_dict = cast("dict[object, object]", value)
        return {str(key): to_jsonable(item) for key, item in typed_dict.items()}
    if isinstance(value, (list, tuple, set)):
        typed_seq = cast("list[object] | tuple[object, ...] | set[object]", value)
        return [to_jsonable(item) for item in typed_seq]
    return value


def dumps(value: Any) -> str:
    """Encode one record as compact JSON text."""

    return json.dumps(
        to_jsonable(value),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )


def _number_text(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer() and abs(value) < 1e21:
        return str(int(value))
    text = repr(value)
    mantissa, marker, exponent = text.partition("e")
    if not marker:
        return text
    power = int(exponent)
    if -7 < power < 0:
        sign = "-" if mantissa.startswith("-") else ""
        digits = mantissa.lstrip("-").replace(".", "")
        return f"{sign}0.{'0' * (-power - 1)}{digits}"
    # Exponent without zero padding: 1e-7, 1.5e+21.
    return f"{mantissa}e{'+' if power > 0 else '-'}{abs(power)}"


def to_text(value: Any) -> str:
    """Render a resolved token value the way a log line prints it."""

    if isinstance(value, str):
        return value
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _number_text(value)
    if isinstance(value, (dict, list, tuple)) or is_dataclass(value):
        return dumps(value)
    return str(value)


def is_falsy(value: Any) -> bool:
    """Return True for values the default-value policy treats as missing.

    ``None``, ``False``, ``""``, numeric zero and NaN count as missing; empty
    containers do not.
    """

    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)):
        return value == 0 or (isinstance(value, float) and math.isnan(value))
    return False
