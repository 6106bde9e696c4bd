"""Template tokenizer tests."""

from __future__ import annotations

import pytest

from accesslog_json.lib.template.parser import (
    LiteralText,
    TokenRef,
    is_constant,
    parse_line_template,
    parse_template,
    token_refs,
)
from accesslog_json.lib.types import TokenName


def test_parse_template_interleaves_literals_and_tokens() -> None:
    segments = parse_template("-> /:url?x=:res[content-length] done")

    assert segments == (
        LiteralText("-> /"),
        TokenRef(name=TokenName("url")),
        LiteralText("?x="),
        TokenRef(name=TokenName("res"), arg="content-length"),
        LiteralText(" done"),
    )


@pytest.mark.parametrize("template", [":a text", "ratio :x", "a:b", "no tokens"])
def test_single_character_names_are_literal(template: str) -> None:
    segments = parse_template(template)

    assert segments == (LiteralText(template),)
    assert is_constant(segments)


def test_two_character_names_are_tokens() -> None:
    assert parse_template(":ab") == (TokenRef(name=TokenName("ab")),)


def test_hyphenated_names_and_arguments() -> None:
    (ref,) = token_refs(parse_template(":response-time[digits]"))

    assert ref.name == "response-time"
    assert ref.arg == "digits"
    assert ref.source == ":response-time[digits]"


def test_names_are_ascii_word_characters() -> None:
    assert is_constant(parse_template(":métho"))


def test_empty_brackets_are_not_an_argument() -> None:
    assert parse_template(":req[]") == (TokenRef(name=TokenName("req")), LiteralText("[]"))


def test_line_template_trailers_are_right_trimmed_only() -> None:
    refs = parse_line_template(":res[content-length] bytes   :response-time ms")

    assert refs == (
        TokenRef(name=TokenName("res"), arg="content-length", trailer=" bytes"),
        TokenRef(name=TokenName("response-time"), trailer=" ms"),
    )


def test_line_template_whitespace_only_trailer_is_dropped() -> None:
    refs = parse_line_template(":method :url")

    assert [ref.trailer for ref in refs] == ["", ""]


def test_line_template_trailer_stops_at_next_colon() -> None:
    refs = parse_line_template(":date at 12:30")

    assert refs == (
        TokenRef(name=TokenName("date"), trailer=" at 12"),
        TokenRef(name=TokenName("30")),
    )


def test_line_template_without_tokens_is_empty() -> None:
    assert parse_line_template("plain text :x") == ()
