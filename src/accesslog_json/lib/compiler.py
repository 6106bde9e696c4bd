"""Public entry point: compile a format into a reusable formatter."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from accesslog_json.lib.logging import get_logger
from accesslog_json.lib.template.builder import CompiledFormatter, build_formatter
from accesslog_json.lib.template.spec import normalize_format

if TYPE_CHECKING:
    from accesslog_json.lib.template.spec import TokenTemplate
    from accesslog_json.lib.types import TraceSink

logger = get_logger(__name__)

type FormatInput = str | Mapping[str, "TokenTemplate | Mapping[str, object] | str"]


def compile_format(
    format: FormatInput,
    *,
    stringify: bool = True,
    trace: TraceSink | None = None,
) -> CompiledFormatter:
    """Compile a template string or key -> template mapping.

    String formats produce one output key per referenced token name. Mapped
    formats produce exactly the declared keys, each rendered according to its
    ``type``, ``defaultValue`` and ``noDefault`` settings.

    Raises ``EmptyFormatError``, ``InvalidFormatError``, ``InvalidTypeError``
    or ``InvalidTemplateError``; no formatter is returned on failure.

    ``trace`` receives the compiled plan description. Without one, the plan is
    logged at debug level.
    """

    spec = normalize_format(format)
    formatter = build_formatter(spec, stringify=stringify)
    description = formatter.describe()
    if trace is not None:
        trace(description)
    else:
        logger.debug("format compiled", plan=description)
    return formatter
