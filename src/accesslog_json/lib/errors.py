"""Compile-time failures raised while building a formatter."""

from __future__ import annotations


class FormatError(Exception):
    """Base class for every error raised by `compile_format`."""


class EmptyFormatError(FormatError, ValueError):
    """The format string was empty."""

    def __init__(self) -> None:
        super().__init__("argument format string must not be empty")


class InvalidFormatError(FormatError, TypeError):
    """The format was neither a string nor a mapping."""

    def __init__(self) -> None:
        super().__init__("argument format must be a string or an object")


class InvalidTypeError(FormatError, ValueError):
    """A mapped field declared an unsupported `type`."""

    def __init__(self, key: str) -> None:
        super().__init__(f'invalid "type" specified for property: {key}')
        self.key = key


class InvalidTemplateError(FormatError, ValueError):
    """A mapped field template could not be compiled."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"invalid template for property {key}: {reason}")
        self.key = key
        self.reason = reason
