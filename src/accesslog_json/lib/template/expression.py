"""Restricted value expressions for passthrough-typed field templates.

A template such as ``:status + :response-time`` is read as an arithmetic
expression whose operands are the raw token values. Only number, string and
keyword literals, the operators ``+ - * / %``, unary signs and parentheses
are understood; anything else is rejected when the template is compiled.
Operators follow JavaScript value rules so results match what access-log
consumers already expect from morgan-style formats.
"""

from __future__ import annotations

import math
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from accesslog_json.lib.serialization import to_text
from accesslog_json.lib.template.parser import Segment, TokenRef

_LEXEME_RE = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<number>(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)
    |(?P<string>"(?:[^"\\]|\\.)*"|'(?:[^'\\]|\\.)*')
    |(?P<keyword>true|false|null)\b
    |(?P<op>[-+*/%()])
    """,
    re.VERBOSE | re.ASCII,
)
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", "'": "'", '"': '"'}


class ExpressionSyntaxError(ValueError):
    """Literal text around token references is not a valid value expression."""


@dataclass(frozen=True, slots=True)
class Const:
    value: Any


@dataclass(frozen=True, slots=True)
class Slot:
    """Position of the n-th token reference in the template."""

    index: int


@dataclass(frozen=True, slots=True)
class Unary:
    op: str
    operand: Node


@dataclass(frozen=True, slots=True)
class Binary:
    op: str
    left: Node
    right: Node


type Node = Const | Slot | Unary | Binary


def _unescape(quoted: str) -> str:
    body = quoted[1:-1]
    return re.sub(r"\\(.)", lambda match: _ESCAPES.get(match.group(1), match.group(1)), body)


def _lex(segments: Sequence[Segment]) -> list[tuple[str, Any]]:
    lexemes: list[tuple[str, Any]] = []
    slot_index = 0
    for segment in segments:
        if isinstance(segment, TokenRef):
            lexemes.append(("slot", slot_index))
            slot_index += 1
            continue
        text = segment.text
        position = 0
        while position < len(text):
            match = _LEXEME_RE.match(text, position)
            if match is None:
                raise ExpressionSyntaxError(f"unexpected character {text[position]!r}")
            kind = match.lastgroup
            raw = match.group()
            position = match.end()
            if kind == "space":
                continue
            if kind == "number":
                number = float(raw)
                lexemes.append(("const", int(number) if number.is_integer() else number))
            elif kind == "string":
                lexemes.append(("const", _unescape(raw)))
            elif kind == "keyword":
                lexemes.append(("const", {"true": True, "false": False, "null": None}[raw]))
            else:
                lexemes.append(("op", raw))
    return lexemes


class _Parser:
    def __init__(self, lexemes: list[tuple[str, Any]]) -> None:
        self._lexemes = lexemes
        self._position = 0

    def _peek_op(self) -> str | None:
        if self._position >= len(self._lexemes):
            return None
        kind, value = self._lexemes[self._position]
        return value if kind == "op" else None

    def parse(self) -> Node:
        if not self._lexemes:
            raise ExpressionSyntaxError("empty expression")
        node = self._expr()
        if self._position != len(self._lexemes):
            raise ExpressionSyntaxError("unexpected trailing input")
        return node

    def _expr(self) -> Node:
        node = self._term()
        while (op := self._peek_op()) in {"+", "-"}:
            self._position += 1
            node = Binary(op, node, self._term())
        return node

    def _term(self) -> Node:
        node = self._unary()
        while (op := self._peek_op()) in {"*", "/", "%"}:
            self._position += 1
            node = Binary(op, node, self._unary())
        return node

    def _unary(self) -> Node:
        op = self._peek_op()
        if op in {"+", "-"}:
            self._position += 1
            return Unary(op, self._unary())
        return self._atom()

    def _atom(self) -> Node:
        if self._position >= len(self._lexemes):
            raise ExpressionSyntaxError("unexpected end of expression")
        kind, value = self._lexemes[self._position]
        self._position += 1
        if kind == "slot":
            return Slot(value)
        if kind == "const":
            return Const(value)
        if value == "(":
            node = self._expr()
            if self._peek_op() != ")":
                raise ExpressionSyntaxError("missing closing parenthesis")
            self._position += 1
            return node
        raise ExpressionSyntaxError(f"unexpected operator {value!r}")


def compile_expression(segments: Sequence[Segment]) -> Node:
    """Build an expression tree from template segments."""

    return _Parser(_lex(segments)).parse()


def _to_number(value: Any) -> float:
    if value is None or value is False:
        return 0.0
    if value is True:
        return 1.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped:
            return 0.0
        try:
            return float(stripped)
        except ValueError:
            return math.nan
    return math.nan


def _normalize(result: Any) -> Any:
    if isinstance(result, float):
        if not math.isfinite(result):
            return None
        if result.is_integer():
            return int(result)
    return result


def _is_textual(value: Any) -> bool:
    return isinstance(value, (str, dict, list, tuple))


def _arithmetic(op: str, left: Any, right: Any) -> Any:
    if op == "+" and (_is_textual(left) or _is_textual(right)):
        return to_text(left) + to_text(right)
    a = _to_number(left)
    b = _to_number(right)
    if op == "+":
        return a + b
    if op == "-":
        return a - b
    if op == "*":
        return a * b
    if b == 0 or math.isnan(a) or math.isnan(b):
        return math.nan
    if op == "/":
        return a / b
    return math.fmod(a, b)


def _evaluate(node: Node, values: Sequence[Any]) -> Any:
    match node:
        case Const(value=value):
            return value
        case Slot(index=index):
            return values[index]
        case Unary(op=op, operand=operand):
            number = _to_number(_evaluate(operand, values))
            return -number if op == "-" else number
        case Binary(op=op, left=left, right=right):
            return _arithmetic(op, _evaluate(left, values), _evaluate(right, values))
    raise TypeError(f"unsupported expression node: {node!r}")


def evaluate(node: Node, values: Sequence[Any]) -> Any:
    """Evaluate an expression tree against resolved slot values."""

    return _normalize(_evaluate(node, values))


def describe_expression(node: Node) -> str:
    match node:
        case Const(value=value):
            return repr(value)
        case Slot(index=index):
            return f"${index}"
        case Unary(op=op, operand=operand):
            return f"{op}{describe_expression(operand)}"
        case Binary(op=op, left=left, right=right):
            return f"({describe_expression(left)} {op} {describe_expression(right)})"
    raise TypeError(f"unsupported expression node: {node!r}")
