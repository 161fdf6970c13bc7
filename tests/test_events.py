"""Tests for the event classifier (events.py)."""

from __future__ import annotations

import pytest

from cobertura.events import (
    Empty,
    End,
    RawToken,
    Start,
    Text,
    TokenKind,
    classify,
    describe,
    local_name,
)


class TestClassify:
    def test_start(self) -> None:
        token = RawToken(TokenKind.START, "package", (("name", "app"),))
        assert classify(token) == Start("package", (("name", "app"),))

    def test_end(self) -> None:
        assert classify(RawToken(TokenKind.END, "package")) == End("package")

    def test_empty(self) -> None:
        token = RawToken(TokenKind.EMPTY, "line", (("number", "1"), ("hits", "0")))
        assert classify(token) == Empty("line", (("number", "1"), ("hits", "0")))

    def test_text_keeps_payload_verbatim(self) -> None:
        token = RawToken(TokenKind.DATA, text="  /src/app\n")
        assert classify(token) == Text("  /src/app\n")

    @pytest.mark.parametrize("whitespace", ["", " ", "\n\t  \r\n"])
    def test_whitespace_only_text_ignored(self, whitespace: str) -> None:
        assert classify(RawToken(TokenKind.DATA, text=whitespace)) is None

    def test_comment_ignored(self) -> None:
        assert classify(RawToken(TokenKind.COMMENT, text="Generated by coverage.py")) is None

    def test_processing_instruction_ignored(self) -> None:
        assert classify(RawToken(TokenKind.PI, "xml-stylesheet", text='href="a.xsl"')) is None

    def test_namespace_prefix_stripped(self) -> None:
        assert classify(RawToken(TokenKind.END, "{urn:cov}coverage")) == End("coverage")

    def test_classify_is_pure(self) -> None:
        token = RawToken(TokenKind.START, "coverage")
        assert classify(token) == classify(token)


class TestHelpers:
    def test_local_name_without_namespace(self) -> None:
        assert local_name("lines") == "lines"

    def test_local_name_with_namespace(self) -> None:
        assert local_name("{http://example.com/ns}lines") == "lines"

    @pytest.mark.parametrize(
        ("event", "expected"),
        [
            (Start("class"), "<class>"),
            (End("class"), "</class>"),
            (Empty("line"), "<line/>"),
            (Text("abc"), "text"),
        ],
    )
    def test_describe(self, event: Start | End | Empty | Text, expected: str) -> None:
        assert describe(event) == expected
