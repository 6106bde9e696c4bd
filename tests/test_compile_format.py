"""compile_format tests: whole-line formats, output policy and argument checks."""

from __future__ import annotations

import logging
import math
import sys
from typing import Any

import pytest
import structlog
from structlog.testing import capture_logs

from accesslog_json import (
    EmptyFormatError,
    FormatError,
    InvalidFormatError,
    compile_format,
)
from accesslog_json.lib.serialization import dumps


def test_string_format_of_all_tokens(mock_tokens: dict[str, Any]) -> None:
    compiled = compile_format(":method :url :status :res[content-length] :response-time")

    assert compiled(mock_tokens) == (
        '{"method":"method","url":"url","status":"status",'
        '"res":"res content-length","response-time":"response-time"}'
    )


def test_string_format_with_trailers(mock_tokens: dict[str, Any]) -> None:
    compiled = compile_format(":method :url :status :res[content-length] bytes :response-time ms")

    assert compiled(mock_tokens) == dumps(
        {
            "method": "method",
            "url": "url",
            "status": "status",
            "res": "res content-length bytes",
            "response-time": "response-time ms",
        }
    )


def test_string_format_keeps_native_values(request_tokens: dict[str, Any]) -> None:
    compiled = compile_format(":method :url :status :res[content-length]")

    assert compiled(request_tokens) == '{"method":"GET","url":"/x","status":200,"res":42}'


def test_string_format_trailer_renders_numbers_as_text() -> None:
    compiled = compile_format(":response-time ms", stringify=False)

    assert compiled({"response-time": lambda context: 1.0}) == {"response-time": "1 ms"}
    assert compiled({"response-time": lambda context: 2.5}) == {"response-time": "2.5 ms"}


@pytest.mark.parametrize("value", [None, "", 0, 0.0, False, math.nan])
def test_string_format_defaults_falsy_values(value: object) -> None:
    compiled = compile_format(":status :url", stringify=False)

    output = compiled({"status": lambda context: value, "url": lambda context: "/"})

    assert output == {"status": "-", "url": "/"}


def test_string_format_empty_containers_are_not_missing() -> None:
    compiled = compile_format(":tags", stringify=False)

    assert compiled({"tags": lambda context: []}) == {"tags": []}


def test_string_format_repeated_name_keeps_first_position(mock_tokens: dict[str, Any]) -> None:
    compiled = compile_format(":res[first] :method :res[second]", stringify=False)

    output = compiled(mock_tokens)

    assert list(output) == ["res", "method"]
    assert output["res"] == "res second"


def test_string_format_without_tokens_is_constant() -> None:
    compiled = compile_format("nothing to see")

    assert compiled({}) == "{}"


def test_quotes_in_trailers_cannot_break_output(mock_tokens: dict[str, Any]) -> None:
    compiled = compile_format(':method "quoted" \\ text')

    assert compiled(mock_tokens) == '{"method":"method \\"quoted\\" \\\\ text"}'


def test_context_is_forwarded_to_resolvers() -> None:
    seen: list[tuple[Any, ...]] = []

    def header(context: Any, arg: str | None = None) -> str:
        seen.append((context, arg))
        return context["headers"][arg]

    compiled = compile_format(":req[user-agent]")
    context = {"headers": {"user-agent": "curl"}}

    assert compiled({"req": header}, context) == '{"req":"curl"}'
    assert seen == [(context, "user-agent")]


def test_missing_resolver_propagates_key_error() -> None:
    compiled = compile_format(":method :nope")

    with pytest.raises(KeyError):
        compiled({"method": lambda context: "GET"})


def test_resolver_errors_propagate() -> None:
    def broken(context: Any) -> str:
        raise RuntimeError("boom")

    compiled = compile_format({"method": ":method"})

    with pytest.raises(RuntimeError, match="boom"):
        compiled({"method": broken})


def test_stringify_false_returns_mapping(mock_tokens: dict[str, Any]) -> None:
    compiled = compile_format(":method :url :status", stringify=False)

    assert compiled(mock_tokens) == {"method": "method", "url": "url", "status": "status"}


def test_stringify_false_mapping_reserializes_to_default_output(
    typed_tokens: dict[str, Any],
) -> None:
    spec = {
        "short": ":method :url :status",
        "elapsed": {"value": ":response-time", "type": "*"},
        "length": ":res[content-length]",
        "empty": {"value": ":empty", "type": "*", "noDefault": True},
    }

    as_text = compile_format(spec)(typed_tokens)
    as_object = compile_format(spec, stringify=False)(typed_tokens)

    assert isinstance(as_object, dict)
    assert dumps(as_object) == as_text


def test_compiling_twice_is_deterministic(typed_tokens: dict[str, Any]) -> None:
    spec = {"sum": {"value": ":status + :response-time", "type": "*"}, "url": ":url"}

    first = compile_format(spec)
    second = compile_format(spec)

    assert first(typed_tokens) == second(typed_tokens)
    assert first.describe() == second.describe()


def test_formatter_is_reusable_across_calls() -> None:
    compiled = compile_format(":status", stringify=False)

    assert compiled({"status": lambda context: 200}) == {"status": 200}
    assert compiled({"status": lambda context: 404}) == {"status": 404}


@pytest.mark.parametrize(
    "value",
    [None, False, True, 0, 1, sys.float_info.max, math.inf, [":method"]],
)
def test_invalid_format_arguments(value: Any) -> None:
    with pytest.raises(InvalidFormatError, match="argument format must be a string or an object"):
        compile_format(value)


def test_empty_string_format() -> None:
    with pytest.raises(EmptyFormatError, match="argument format string must not be empty"):
        compile_format("")


def test_compile_errors_share_a_base_class() -> None:
    assert issubclass(EmptyFormatError, FormatError)
    assert issubclass(InvalidFormatError, TypeError)


def test_trace_receives_plan_description() -> None:
    traced: list[dict[str, object]] = []

    compile_format(":method :status ms", trace=traced.append)

    assert traced == [
        {
            "stringify": True,
            "fields": [
                {"key": "method", "mode": "line", "type": "string", "template": ":method"},
                {"key": "status", "mode": "line", "type": "string", "template": ":status ms"},
            ],
        }
    ]


def test_plan_is_logged_without_trace() -> None:
    with capture_logs() as logs:
        compile_format({"url": ":url"})

    compiled_events = [entry for entry in logs if entry["event"] == "format compiled"]
    assert len(compiled_events) == 1
    assert compiled_events[0]["log_level"] == "debug"
    assert compiled_events[0]["plan"]["fields"][0]["key"] == "url"


def test_compile_without_trace_keeps_stdout_clean(capsys: pytest.CaptureFixture[str]) -> None:
    structlog.reset_defaults()

    compiled = compile_format({"url": ":url", "odd": {"value": ":url", "colour": "red"}})
    compiled({"url": lambda context: "/"})

    assert capsys.readouterr().out == ""


def test_plan_reaches_stdlib_logging_when_enabled(caplog: pytest.LogCaptureFixture) -> None:
    structlog.reset_defaults()

    with caplog.at_level(logging.DEBUG, logger="accesslog_json.lib.compiler"):
        compile_format({"url": ":url"})

    assert any("format compiled" in record.getMessage() for record in caplog.records)
