"""Data models for a parsed Cobertura coverage report.

Every rate and counter stored here is the value declared in the XML. The
parser never recomputes them; see ``cobertura.summary`` for recomputation.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import PurePath
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator

# ``condition-coverage`` is almost always ``X% (Y/Z)``.
_CONDITION_COVERAGE_RE = re.compile(r"\((\d+)/(\d+)\)")


@dataclass
class Condition:
    """A single branch outcome attached to a line."""

    type: str
    """Condition kind, e.g. ``jump`` or ``switch``."""

    coverage: str
    """Coverage percentage as written in the report, e.g. ``50%``."""

    number: int = 0
    """Condition index within the line."""


@dataclass
class Line:
    """Coverage data for a single source line."""

    number: int
    """1-based line number."""

    hits: int
    """Number of times the line was executed."""

    branch: bool = False
    """True when the line holds a branch point."""

    condition_coverage: str | None = None
    """Free-form branch summary, usually ``X% (Y/Z)``."""

    conditions: list[Condition] = field(default_factory=list)
    """Branch outcomes in document order."""

    @property
    def is_covered(self) -> bool:
        """Return True if this line was executed at least once."""
        return self.hits > 0

    def branch_counts(self) -> tuple[int, int] | None:
        """Return ``(taken, total)`` parsed from ``condition_coverage``.

        Returns None for non-branch lines or when the summary has no
        ``(Y/Z)`` part.
        """
        if not self.branch or not self.condition_coverage:
            return None
        match = _CONDITION_COVERAGE_RE.search(self.condition_coverage)
        if match is None:
            return None
        return int(match.group(1)), int(match.group(2))


@dataclass
class Method:
    """Coverage data for a single method of a class."""

    name: str
    signature: str
    line_rate: float
    branch_rate: float
    lines: list[Line] = field(default_factory=list)


@dataclass
class Class:
    """Coverage data for a single class (usually one source file)."""

    name: str
    """Class name as reported by the coverage tool."""

    file_name: PurePath
    """Path of the source file, relative to one of the report sources."""

    line_rate: float
    branch_rate: float
    complexity: float

    methods: list[Method] = field(default_factory=list)
    """Methods in document order."""

    lines: list[Line] = field(default_factory=list)
    """Class-level lines in document order."""


@dataclass
class Package:
    """Coverage data for a package and its classes."""

    name: str
    line_rate: float
    branch_rate: float
    complexity: float
    classes: list[Class] = field(default_factory=list)


@dataclass
class Source:
    """A source root listed in the report header."""

    path: str


@dataclass
class CoverageDocument:
    """A complete Cobertura report."""

    line_rate: float
    branch_rate: float
    lines_covered: int
    lines_valid: int
    branches_covered: int
    branches_valid: int
    complexity: float
    version: str
    timestamp: int

    sources: list[Source] = field(default_factory=list)
    """Source roots in document order."""

    packages: list[Package] = field(default_factory=list)
    """Packages in document order."""

    def classes(self) -> Iterator[Class]:
        """Iterate over every class of every package in document order."""
        for package in self.packages:
            yield from package.classes

    def lines(self) -> Iterator[Line]:
        """Iterate over class-level lines of every class.

        Method lines repeat class lines in Cobertura, so they are not
        included.
        """
        for cls in self.classes():
            yield from cls.lines
