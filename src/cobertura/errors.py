"""Exceptions raised while parsing a Cobertura report.

Every error is terminal for the parse that raised it: the parser discards
its partial document before the exception propagates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from cobertura.events import describe

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cobertura.events import Event


def _names(names: Iterable[str]) -> str:
    return ", ".join(sorted(names))


class ParserError(Exception):
    """Base exception for all Cobertura parsing failures."""


class ExpectedStartError(ParserError):
    """Raised when a start tag was required but something else arrived."""

    def __init__(self, got: Event, expected: Iterable[str]) -> None:
        """Initialize with the offending event and acceptable tag names.

        Args:
            got: The event that did not fit the current schema position.
            expected: Names of the start tags that would have been accepted.
        """
        self.got = got
        self.expected = frozenset(expected)
        super().__init__(f"Expected start of one of [{_names(self.expected)}], got {describe(got)}")


class ExpectedEndError(ParserError):
    """Raised when an end tag closes the wrong element."""

    def __init__(self, got: Event, expected: Iterable[str]) -> None:
        self.got = got
        self.expected = frozenset(expected)
        super().__init__(f"Expected end of one of [{_names(self.expected)}], got {describe(got)}")


class ExpectedStartOrEndError(ParserError):
    """Raised when neither an acceptable start nor end tag arrived."""

    def __init__(
        self,
        got: Event,
        expected_starts: Iterable[str],
        expected_ends: Iterable[str],
    ) -> None:
        """Initialize with the offending event and both acceptable sets.

        Args:
            got: The event that did not fit the current schema position.
            expected_starts: Names of start tags that would have been accepted.
            expected_ends: Names of end tags that would have been accepted.
        """
        self.got = got
        self.expected_starts = frozenset(expected_starts)
        self.expected_ends = frozenset(expected_ends)
        super().__init__(
            f"Expected start of one of [{_names(self.expected_starts)}] "
            f"or end of one of [{_names(self.expected_ends)}], got {describe(got)}"
        )


class UnexpectedValueError(ParserError):
    """Raised when a value is well-formed but not allowed where it appears."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"Unexpected value: {value!r}")


class FailedToParseAttributeError(ParserError):
    """Raised when an attribute cannot be read as a name/value pair."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        message = "Failed to parse attribute"
        super().__init__(f"{message}: {detail}" if detail else message)


class InvalidValueForAttributeError(ParserError):
    """Raised when an attribute is present but cannot convert to its type."""

    def __init__(self, name: str, value: str = "") -> None:
        self.name = name
        self.value = value
        super().__init__(f"Invalid value for attribute {name!r}: {value!r}")


class MissingRequiredAttributeError(ParserError):
    """Raised when a required attribute is absent from a tag."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Missing required attribute {name!r}")


class UnexpectedEofError(ParserError):
    """Raised when input ends before the root ``coverage`` element closes."""

    def __init__(self) -> None:
        super().__init__("Unexpected end of input before </coverage>")


class XmlSyntaxError(ParserError):
    """Raised when the tokenizer rejects the input as malformed XML."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None) -> None:
        """Initialize with the tokenizer message and optional position.

        Args:
            message: Description reported by the XML tokenizer.
            line: 1-based line of the failure, when known.
            column: 0-based column of the failure, when known.
        """
        self.line = line
        self.column = column
        super().__init__(f"Malformed XML: {message}")
