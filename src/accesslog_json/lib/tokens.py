"""Static token tables for rendering formats outside a request cycle."""

from __future__ import annotations

import json
from collections.abc import Iterator, Mapping, Sequence
from typing import Any

from accesslog_json.lib.types import TokenFunction


def parse_token_assignments(assignments: Sequence[str]) -> dict[str, Any]:
    """Parse `NAME=VALUE` / `NAME[ARG]=VALUE` pairs; values are JSON when they parse."""

    parsed: dict[str, Any] = {}
    for assignment in assignments:
        key, separator, raw_value = assignment.partition("=")
        normalized_key = key.strip()
        if not separator or not normalized_key:
            raise ValueError(
                "Invalid token assignment. Expected NAME=VALUE, "
                f"got '{assignment}'."
            )
        try:
            parsed[normalized_key] = json.loads(raw_value)
        except json.JSONDecodeError:
            parsed[normalized_key] = raw_value
    return parsed


class StaticTokens(Mapping[str, TokenFunction]):
    """Resolver table answering every token from fixed values.

    `name[arg]` entries answer references carrying that argument; a bare
    `name` entry answers the reference without one. Unknown tokens resolve to
    `None` so templates can be previewed with partial data.
    """

    def __init__(self, values: Mapping[str, Any]) -> None:
        self._values = dict(values)

    def __getitem__(self, name: str) -> TokenFunction:
        def resolve(context: Any, arg: str | None = None) -> Any:
            del context
            if arg is None:
                return self._values.get(name)
            return self._values.get(f"{name}[{arg}]")

        return resolve

    def __iter__(self) -> Iterator[str]:
        seen: dict[str, None] = {}
        for key in self._values:
            seen.setdefault(key.partition("[")[0], None)
        return iter(seen)

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str)
