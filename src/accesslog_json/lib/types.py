"""Stable domain identifier newtypes and callable aliases."""

from collections.abc import Callable, Mapping
from typing import Any, NewType

TokenName = NewType("TokenName", str)
OutputKey = NewType("OutputKey", str)

type TokenFunction = Callable[..., Any]
type TokenResolver = Mapping[str, TokenFunction]
type Converter = Callable[[Any, str, str | None], Any]
type TraceSink = Callable[[dict[str, object]], None]
