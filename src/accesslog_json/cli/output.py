"""CLI output formatting utilities."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Literal, cast

from accesslog_json.lib.serialization import to_jsonable

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True, slots=True)
class OutputConfig:
    format: OutputFormat


def normalize_output_format(*, requested: str | None, json_mode: bool) -> OutputFormat:
    """Resolve final output format from flags."""

    if json_mode:
        return "json"
    if requested is None or requested == "":
        return "text"
    normalized = requested.strip().lower()
    if normalized in {"text", "json"}:
        return cast("OutputFormat", normalized)
    raise SystemExit("--format must be one of: text, json")


def emit(value: Any, config: OutputConfig) -> None:
    """Emit one payload according to the configured output mode."""

    if config.format == "json":
        if isinstance(value, str):
            # Rendered records are already JSON text.
            print(value)
            return
        print(json.dumps(to_jsonable(value), ensure_ascii=False))
        return
    if isinstance(value, str):
        print(value)
        return
    print(json.dumps(to_jsonable(value), ensure_ascii=False, indent=2))
