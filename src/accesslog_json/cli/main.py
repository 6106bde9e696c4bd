"""Cyclopts CLI entry point for accesslog-json."""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Annotated, Any

from cyclopts import App, Parameter

from accesslog_json import __version__
from accesslog_json.cli.output import OutputConfig, normalize_output_format
from accesslog_json.cli.output import emit as emit_output
from accesslog_json.lib.compiler import compile_format
from accesslog_json.lib.config.settings import load_config
from accesslog_json.lib.errors import FormatError
from accesslog_json.lib.tokens import StaticTokens, parse_token_assignments

if TYPE_CHECKING:
    from collections.abc import Sequence

    from accesslog_json.lib.template.builder import CompiledFormatter

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GlobalOptions:
    """Top-level options that apply to all commands."""

    output: OutputConfig
    verbosity: int = 0


_GLOBAL_OPTIONS: ContextVar[GlobalOptions | None] = ContextVar("_GLOBAL_OPTIONS", default=None)


def get_global_options() -> GlobalOptions:
    """Return parsed global options for current command."""

    default = GlobalOptions(output=OutputConfig(format="text"))
    return _GLOBAL_OPTIONS.get() or default


def emit(payload: object) -> None:
    """Write command output using current output format settings."""

    emit_output(payload, get_global_options().output)


def _extract_global_options(argv: Sequence[str]) -> tuple[list[str], GlobalOptions]:
    json_mode = False
    output_format: str | None = None
    verbosity = 0
    cleaned: list[str] = []

    i = 0
    while i < len(argv):
        arg = argv[i]
        if arg == "--json":
            json_mode = True
            i += 1
            continue
        if arg == "--format":
            if i + 1 >= len(argv):
                raise SystemExit("--format requires a value")
            output_format = argv[i + 1]
            i += 2
            continue
        if arg.startswith("--format="):
            output_format = arg.partition("=")[2]
            i += 1
            continue
        if arg in {"-v", "--verbose"}:
            verbosity += 1
            i += 1
            continue

        cleaned.append(arg)
        i += 1

    resolved = normalize_output_format(requested=output_format, json_mode=json_mode)
    return cleaned, GlobalOptions(output=OutputConfig(format=resolved), verbosity=verbosity)


def _load_format_argument(format_arg: str, config_path: str | None) -> Any:
    """Turn a FORMAT argument into a compilable format.

    `@name` selects a configured format, a leading `{` is read as a JSON
    mapping, anything else is a whole-line template.
    """

    if format_arg.startswith("@"):
        config = load_config(Path(config_path) if config_path is not None else None)
        name = format_arg[1:]
        if name not in config.formats:
            raise KeyError(f"Unknown format '{name}'.")
        return config.formats[name]
    if format_arg.lstrip().startswith("{"):
        try:
            return json.loads(format_arg)
        except json.JSONDecodeError as exc:
            raise ValueError(f"FORMAT is not valid JSON: {exc.msg}") from exc
    return format_arg


app = App(
    name="accesslog-json",
    help="Compile access-log templates into JSON record formatters.",
    version=__version__,
    help_formatter="plain",
)


@app.command(name="render")
def render(
    template: Annotated[
        str,
        Parameter(help="Template, JSON mapping, or @name from the config."),
    ],
    tokens: Annotated[
        tuple[str, ...],
        Parameter(
            name="--token",
            help="Token value as NAME=VALUE or NAME[ARG]=VALUE (repeatable).",
            negative_iterable=(),
        ),
    ] = (),
    config: Annotated[
        str | None,
        Parameter(name="--config", help="Path to the format catalog."),
    ] = None,
    as_object: Annotated[
        bool,
        Parameter(name="--object", help="Render the structured record instead of JSON text."),
    ] = False,
) -> None:
    """Render one record from static token values."""

    formatter = compile_format(
        _load_format_argument(template, config),
        stringify=not as_object,
    )
    emit(formatter(StaticTokens(parse_token_assignments(tokens))))


@app.command(name="explain")
def explain(
    template: Annotated[
        str,
        Parameter(help="Template, JSON mapping, or @name from the config."),
    ],
    config: Annotated[
        str | None,
        Parameter(name="--config", help="Path to the format catalog."),
    ] = None,
) -> None:
    """Show how a format compiles, field by field."""

    formatter: CompiledFormatter = compile_format(_load_format_argument(template, config))
    emit(formatter.describe())


@app.command(name="check")
def check(
    config: Annotated[
        str | None,
        Parameter(name="--config", help="Path to the format catalog."),
    ] = None,
) -> None:
    """Compile every configured format and report failures."""

    loaded = load_config(Path(config) if config is not None else None)
    results: dict[str, str] = {}
    failed = False
    for name in loaded.format_names():
        try:
            loaded.compile(name)
        except FormatError as exc:
            results[name] = f"error: {exc}"
            failed = True
            continue
        results[name] = "ok"
    emit(results)
    if failed:
        raise SystemExit(1)


def _operation_error_message(exc: BaseException) -> str:
    if isinstance(exc, KeyError) and exc.args:
        return str(exc.args[0])
    return str(exc)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point used by `accesslog-json` and `python -m accesslog_json`."""

    from accesslog_json.lib.logging import configure_logging

    args = list(sys.argv[1:] if argv is None else argv)
    cleaned_args, options = _extract_global_options(args)
    configure_logging(json_mode=options.output.format == "json", verbosity=options.verbosity)

    token = _GLOBAL_OPTIONS.set(options)
    try:
        try:
            app(cleaned_args)
        except (FormatError, KeyError, ValueError, OSError) as exc:
            logger.debug("command failed", exc_info=True)
            print(f"error: {_operation_error_message(exc)}", file=sys.stderr)
            raise SystemExit(1) from None
    finally:
        _GLOBAL_OPTIONS.reset(token)
