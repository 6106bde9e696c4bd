"""Template tokenization: `:name[arg]` references and literal text."""

from __future__ import annotations

import re
from dataclasses import dataclass

from accesslog_json.lib.types import TokenName

# Names are ASCII word characters and hyphens, at least two long, so `:a` is text.
_TOKEN_RE = re.compile(r":([-\w]{2,})(?:\[([^\]]+)\])?", re.ASCII)
_LINE_TOKEN_RE = re.compile(r":([-\w]{2,})(?:\[([^\]]+)\])?([^:]+)?", re.ASCII)


@dataclass(frozen=True, slots=True)
class LiteralText:
    """Literal text copied into the output unchanged."""

    text: str


@dataclass(frozen=True, slots=True)
class TokenRef:
    """One `:name[arg]` reference resolved at render time."""

    name: TokenName
    arg: str | None = None
    trailer: str = ""

    @property
    def source(self) -> str:
        if self.arg is None:
            return f":{self.name}"
        return f":{self.name}[{self.arg}]"


type Segment = LiteralText | TokenRef


def parse_template(template: str) -> tuple[Segment, ...]:
    """Split one field template into literal and token segments, in order."""

    segments: list[Segment] = []
    cursor = 0
    for match in _TOKEN_RE.finditer(template):
        if match.start() > cursor:
            segments.append(LiteralText(template[cursor : match.start()]))
        segments.append(TokenRef(name=TokenName(match.group(1)), arg=match.group(2)))
        cursor = match.end()
    if cursor < len(template):
        segments.append(LiteralText(template[cursor:]))
    return tuple(segments)


def parse_line_template(template: str) -> tuple[TokenRef, ...]:
    """Parse a whole-line template into token references with trailers.

    Each reference keeps the text that follows it, up to the next `:` or the
    end of the template, with trailing whitespace removed. Text that does not
    follow a reference is dropped.
    """

    return tuple(
        TokenRef(
            name=TokenName(match.group(1)),
            arg=match.group(2),
            trailer=(match.group(3) or "").rstrip(),
        )
        for match in _LINE_TOKEN_RE.finditer(template)
    )


def token_refs(segments: tuple[Segment, ...]) -> tuple[TokenRef, ...]:
    return tuple(segment for segment in segments if isinstance(segment, TokenRef))


def is_constant(segments: tuple[Segment, ...]) -> bool:
    """Return True when a template holds no token references."""

    return not token_refs(segments)
