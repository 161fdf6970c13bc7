"""Typed attribute extraction driven by static per-element descriptors."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import TYPE_CHECKING, Any

from cobertura.errors import (
    FailedToParseAttributeError,
    InvalidValueForAttributeError,
    MissingRequiredAttributeError,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

_UNSIGNED_RE = re.compile(r"\+?[0-9]+")
_UINT64_MAX = 2**64 - 1


class AttributeKind(Enum):
    STRING = "string"
    UINT = "uint"
    UINT64 = "uint64"
    FLOAT = "float"
    BOOL = "bool"
    PATH = "path"


@dataclass(frozen=True)
class AttributeSpec:
    """How to read one attribute of one element kind."""

    name: str
    """Attribute name as written in the XML, e.g. ``line-rate``."""

    kind: AttributeKind

    field: str
    """Model field the converted value is stored under."""

    required: bool = True

    default: Any = None
    """Value used when an optional attribute is absent."""


def _to_unsigned(value: str) -> int:
    if not _UNSIGNED_RE.fullmatch(value):
        raise ValueError(value)
    return int(value)


def _to_uint64(value: str) -> int:
    number = _to_unsigned(value)
    if number > _UINT64_MAX:
        raise ValueError(value)
    return number


def _to_float(value: str) -> float:
    # float() tolerates padding and digit separators; the schema does not.
    if value != value.strip() or "_" in value:
        raise ValueError(value)
    return float(value)


def _to_bool(value: str) -> bool:
    if value == "true":
        return True
    if value == "false":
        return False
    raise ValueError(value)


_CONVERTERS: dict[AttributeKind, Callable[[str], Any]] = {
    AttributeKind.STRING: str,
    AttributeKind.UINT: _to_unsigned,
    AttributeKind.UINT64: _to_uint64,
    AttributeKind.FLOAT: _to_float,
    AttributeKind.BOOL: _to_bool,
    AttributeKind.PATH: PurePath,
}


def extract_attributes(
    attributes: Iterable[tuple[str, str]],
    specs: tuple[AttributeSpec, ...],
) -> dict[str, Any]:
    """Convert the attributes named in *specs* and return them by field name.

    Unrecognized attributes are ignored. Required attributes are checked
    only after the whole scan, so attribute order never matters.

    Raises:
        FailedToParseAttributeError: An item is not a ``(name, value)`` pair.
        InvalidValueForAttributeError: A value does not convert to its kind.
        MissingRequiredAttributeError: A required attribute is absent.
    """
    by_name = {spec.name: spec for spec in specs}
    values: dict[str, Any] = {}

    for item in attributes:
        try:
            name, raw = item
        except (TypeError, ValueError) as e:
            raise FailedToParseAttributeError(repr(item)) from e
        if not isinstance(name, str) or not isinstance(raw, str):
            raise FailedToParseAttributeError(repr(item))

        spec = by_name.get(name)
        if spec is None:
            continue
        try:
            values[spec.field] = _CONVERTERS[spec.kind](raw)
        except ValueError as e:
            raise InvalidValueForAttributeError(name, raw) from e

    for spec in specs:
        if spec.field in values:
            continue
        if spec.required:
            raise MissingRequiredAttributeError(spec.name)
        values[spec.field] = spec.default

    return values


def _rate(name: str, field: str) -> AttributeSpec:
    return AttributeSpec(name, AttributeKind.FLOAT, field)


# ── Cobertura element schemas ────────────────────────────────────

COVERAGE_ATTRIBUTES = (
    _rate("line-rate", "line_rate"),
    _rate("branch-rate", "branch_rate"),
    AttributeSpec("lines-covered", AttributeKind.UINT, "lines_covered"),
    AttributeSpec("lines-valid", AttributeKind.UINT, "lines_valid"),
    AttributeSpec("branches-covered", AttributeKind.UINT, "branches_covered"),
    AttributeSpec("branches-valid", AttributeKind.UINT, "branches_valid"),
    _rate("complexity", "complexity"),
    AttributeSpec("version", AttributeKind.STRING, "version"),
    AttributeSpec("timestamp", AttributeKind.UINT64, "timestamp"),
)

PACKAGE_ATTRIBUTES = (
    AttributeSpec("name", AttributeKind.STRING, "name"),
    _rate("line-rate", "line_rate"),
    _rate("branch-rate", "branch_rate"),
    _rate("complexity", "complexity"),
)

CLASS_ATTRIBUTES = (
    AttributeSpec("name", AttributeKind.STRING, "name"),
    AttributeSpec("filename", AttributeKind.PATH, "file_name"),
    _rate("line-rate", "line_rate"),
    _rate("branch-rate", "branch_rate"),
    _rate("complexity", "complexity"),
)

METHOD_ATTRIBUTES = (
    AttributeSpec("name", AttributeKind.STRING, "name"),
    AttributeSpec("signature", AttributeKind.STRING, "signature"),
    _rate("line-rate", "line_rate"),
    _rate("branch-rate", "branch_rate"),
)

LINE_ATTRIBUTES = (
    AttributeSpec("number", AttributeKind.UINT, "number"),
    AttributeSpec("hits", AttributeKind.UINT, "hits"),
    AttributeSpec("branch", AttributeKind.BOOL, "branch", required=False, default=False),
    AttributeSpec(
        "condition-coverage",
        AttributeKind.STRING,
        "condition_coverage",
        required=False,
    ),
)

CONDITION_ATTRIBUTES = (
    AttributeSpec("type", AttributeKind.STRING, "type"),
    AttributeSpec("coverage", AttributeKind.STRING, "coverage"),
    AttributeSpec("number", AttributeKind.UINT, "number", required=False, default=0),
)
