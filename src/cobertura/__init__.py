"""Incremental, schema-validating parser for Cobertura XML coverage reports."""

from cobertura.errors import (
    ExpectedEndError,
    ExpectedStartError,
    ExpectedStartOrEndError,
    FailedToParseAttributeError,
    InvalidValueForAttributeError,
    MissingRequiredAttributeError,
    ParserError,
    UnexpectedEofError,
    UnexpectedValueError,
    XmlSyntaxError,
)
from cobertura.events import Empty, End, Event, Start, Text
from cobertura.models import Class, Condition, CoverageDocument, Line, Method, Package, Source
from cobertura.parser import (
    CoberturaParser,
    parse_bytes,
    parse_events,
    parse_file,
    parse_stream,
)

__version__ = "0.1.0"

__all__ = [
    "Class",
    "CoberturaParser",
    "Condition",
    "CoverageDocument",
    "Empty",
    "End",
    "Event",
    "ExpectedEndError",
    "ExpectedStartError",
    "ExpectedStartOrEndError",
    "FailedToParseAttributeError",
    "InvalidValueForAttributeError",
    "Line",
    "Method",
    "MissingRequiredAttributeError",
    "Package",
    "ParserError",
    "Source",
    "Start",
    "Text",
    "UnexpectedEofError",
    "UnexpectedValueError",
    "XmlSyntaxError",
    "__version__",
    "parse_bytes",
    "parse_events",
    "parse_file",
    "parse_stream",
]
