"""Schema-validating state machine for Cobertura reports.

The machine keeps its position in the schema as an explicit :class:`State`
plus one in-progress slot per entity kind, so it can be suspended between
any two events. Each state's legal moves are listed in ``_TRANSITIONS``;
an event with no entry there is a schema violation.

Schema::

    coverage
      sources/source (text)
      packages/package
        classes/class
          methods/method/lines/line/conditions/condition
          lines/line/conditions/condition
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum, auto

from cobertura.attributes import (
    CLASS_ATTRIBUTES,
    CONDITION_ATTRIBUTES,
    COVERAGE_ATTRIBUTES,
    LINE_ATTRIBUTES,
    METHOD_ATTRIBUTES,
    PACKAGE_ATTRIBUTES,
    extract_attributes,
)
from cobertura.errors import (
    ExpectedEndError,
    ExpectedStartError,
    ExpectedStartOrEndError,
    ParserError,
    UnexpectedValueError,
)
from cobertura.events import Empty, End, Event, Start, Text, describe
from cobertura.models import Class, Condition, CoverageDocument, Line, Method, Package, Source

logger = logging.getLogger(__name__)


class State(Enum):
    COVERAGE = auto()
    SOURCES = auto()
    SOURCE = auto()
    PACKAGES = auto()
    PACKAGE = auto()
    CLASSES = auto()
    CLASS = auto()
    CLASS_LINES = auto()
    CLASS_LINE = auto()
    CLASS_LINE_CONDITIONS = auto()
    METHODS = auto()
    METHOD = auto()
    METHOD_LINES = auto()
    METHOD_LINE = auto()
    METHOD_LINE_CONDITIONS = auto()
    END = auto()


@dataclass
class InProgress:
    """Partial document plus the entity currently open at each level.

    The schema is strictly nested and never recursive, so a single slot per
    kind is enough.
    """

    document: CoverageDocument
    package: Package | None = None
    class_: Class | None = None
    method: Method | None = None
    line: Line | None = None
    source_text: list[str] = field(default_factory=list)


Action = Callable[[InProgress, Event], None]


def _attributes(event: Event) -> tuple[tuple[str, str], ...]:
    return event.attributes if isinstance(event, (Start, Empty)) else ()


def _chain(*actions: Action) -> Action:
    def run(progress: InProgress, event: Event) -> None:
        for action in actions:
            action(progress, event)

    return run


# ── Actions ──────────────────────────────────────────────────────


def _append_source_text(progress: InProgress, event: Event) -> None:
    if isinstance(event, Text):
        progress.source_text.append(event.payload)


def _push_source(progress: InProgress, _event: Event) -> None:
    progress.document.sources.append(Source("".join(progress.source_text)))
    progress.source_text = []


def _open_package(progress: InProgress, event: Event) -> None:
    progress.package = Package(**extract_attributes(_attributes(event), PACKAGE_ATTRIBUTES))


def _close_package(progress: InProgress, _event: Event) -> None:
    package, progress.package = progress.package, None
    if package is None:
        raise UnexpectedValueError("</package> without an open <package>")
    progress.document.packages.append(package)
    logger.debug("Finished package %s with %d classes", package.name, len(package.classes))


def _open_class(progress: InProgress, event: Event) -> None:
    progress.class_ = Class(**extract_attributes(_attributes(event), CLASS_ATTRIBUTES))


def _close_class(progress: InProgress, _event: Event) -> None:
    cls, progress.class_ = progress.class_, None
    if cls is None or progress.package is None:
        raise UnexpectedValueError("<class> outside of <package>")
    progress.package.classes.append(cls)


def _open_method(progress: InProgress, event: Event) -> None:
    progress.method = Method(**extract_attributes(_attributes(event), METHOD_ATTRIBUTES))


def _close_method(progress: InProgress, _event: Event) -> None:
    method, progress.method = progress.method, None
    if method is None or progress.class_ is None:
        raise UnexpectedValueError("<method> outside of <class>")
    progress.class_.methods.append(method)


def _append_condition(progress: InProgress, event: Event) -> None:
    condition = Condition(**extract_attributes(_attributes(event), CONDITION_ATTRIBUTES))
    if progress.line is None:
        raise UnexpectedValueError("<condition> outside of <line>")
    progress.line.conditions.append(condition)


def _line_actions(
    owner: Callable[[InProgress], list[Line]],
) -> tuple[Action, Action, Action]:
    """Build (open, self-closing, flush) actions appending lines to *owner*.

    A line with nested conditions stays in its slot after ``</line>``; it
    is appended when the next sibling line opens or ``</lines>`` arrives.
    """

    def flush(progress: InProgress, _event: Event) -> None:
        line, progress.line = progress.line, None
        if line is not None:
            owner(progress).append(line)

    def open_line(progress: InProgress, event: Event) -> None:
        flush(progress, event)
        progress.line = Line(**extract_attributes(_attributes(event), LINE_ATTRIBUTES))

    return open_line, _chain(open_line, flush), flush


def _class_lines(progress: InProgress) -> list[Line]:
    if progress.class_ is None:
        raise UnexpectedValueError("<lines> outside of <class>")
    return progress.class_.lines


def _method_lines(progress: InProgress) -> list[Line]:
    if progress.method is None:
        raise UnexpectedValueError("<lines> outside of <method>")
    return progress.method.lines


_open_class_line, _empty_class_line, _flush_class_line = _line_actions(_class_lines)
_open_method_line, _empty_method_line, _flush_method_line = _line_actions(_method_lines)


# ── Transition table ─────────────────────────────────────────────

_Rule = tuple[State, Action | None]

_TRANSITIONS: dict[State, dict[tuple[type, str], _Rule]] = {
    State.COVERAGE: {
        (Start, "sources"): (State.SOURCES, None),
        (Start, "packages"): (State.PACKAGES, None),
        (Empty, "sources"): (State.COVERAGE, None),
        (Empty, "packages"): (State.COVERAGE, None),
        (End, "coverage"): (State.END, None),
    },
    State.SOURCES: {
        (Start, "source"): (State.SOURCE, None),
        (Empty, "source"): (State.SOURCES, _push_source),
        (End, "sources"): (State.COVERAGE, None),
    },
    State.SOURCE: {
        (Text, ""): (State.SOURCE, _append_source_text),
        (End, "source"): (State.SOURCES, _push_source),
    },
    State.PACKAGES: {
        (Start, "package"): (State.PACKAGE, _open_package),
        (Empty, "package"): (State.PACKAGES, _chain(_open_package, _close_package)),
        (End, "packages"): (State.COVERAGE, None),
    },
    State.PACKAGE: {
        (Start, "classes"): (State.CLASSES, None),
        (Empty, "classes"): (State.PACKAGE, None),
        (End, "package"): (State.PACKAGES, _close_package),
    },
    State.CLASSES: {
        (Start, "class"): (State.CLASS, _open_class),
        (Empty, "class"): (State.CLASSES, _chain(_open_class, _close_class)),
        (End, "classes"): (State.PACKAGE, None),
    },
    State.CLASS: {
        (Start, "methods"): (State.METHODS, None),
        (Start, "lines"): (State.CLASS_LINES, None),
        (Empty, "methods"): (State.CLASS, None),
        (Empty, "lines"): (State.CLASS, None),
        (End, "class"): (State.CLASSES, _close_class),
    },
    State.METHODS: {
        (Start, "method"): (State.METHOD, _open_method),
        (Empty, "method"): (State.METHODS, _chain(_open_method, _close_method)),
        (End, "methods"): (State.CLASS, None),
    },
    State.METHOD: {
        (Start, "lines"): (State.METHOD_LINES, None),
        (Empty, "lines"): (State.METHOD, None),
        (End, "method"): (State.METHODS, _close_method),
    },
    State.CLASS_LINES: {
        (Start, "line"): (State.CLASS_LINE, _open_class_line),
        (Empty, "line"): (State.CLASS_LINES, _empty_class_line),
        (End, "lines"): (State.CLASS, _flush_class_line),
    },
    State.CLASS_LINE: {
        (Start, "conditions"): (State.CLASS_LINE_CONDITIONS, None),
        (Empty, "conditions"): (State.CLASS_LINE, None),
        (End, "line"): (State.CLASS_LINES, None),
    },
    State.CLASS_LINE_CONDITIONS: {
        (Empty, "condition"): (State.CLASS_LINE_CONDITIONS, _append_condition),
        (End, "conditions"): (State.CLASS_LINE, None),
    },
    State.METHOD_LINES: {
        (Start, "line"): (State.METHOD_LINE, _open_method_line),
        (Empty, "line"): (State.METHOD_LINES, _empty_method_line),
        (End, "lines"): (State.METHOD, _flush_method_line),
    },
    State.METHOD_LINE: {
        (Start, "conditions"): (State.METHOD_LINE_CONDITIONS, None),
        (Empty, "conditions"): (State.METHOD_LINE, None),
        (End, "line"): (State.METHOD_LINES, None),
    },
    State.METHOD_LINE_CONDITIONS: {
        (Empty, "condition"): (State.METHOD_LINE_CONDITIONS, _append_condition),
        (End, "conditions"): (State.METHOD_LINE, None),
    },
}


def _event_key(event: Event) -> tuple[type, str]:
    if isinstance(event, Text):
        return Text, ""
    return type(event), event.name


def _mismatch(event: Event, rules: dict[tuple[type, str], _Rule]) -> ParserError:
    """Build the error describing why *event* does not fit *rules*."""
    children = frozenset(name for kind, name in rules if kind in (Start, Empty))
    ends = frozenset(name for kind, name in rules if kind is End)

    if isinstance(event, End):
        return ExpectedEndError(event, ends)
    if isinstance(event, (Start, Empty)) and event.name not in children:
        if children:
            return ExpectedStartError(event, children)
        return ExpectedEndError(event, ends)
    return ExpectedStartOrEndError(event, children, ends)


class CoverageStateMachine:
    """Drives one document from its root start tag to ``</coverage>``."""

    def __init__(self, document: CoverageDocument) -> None:
        self.state = State.COVERAGE
        self.progress = InProgress(document=document)

    @classmethod
    def start(cls, event: Event) -> CoverageStateMachine:
        """Create a machine from the root event.

        Raises:
            ExpectedStartError: *event* is not a ``<coverage>`` start tag.
            ParserError: The root attributes are missing or malformed.
        """
        if not isinstance(event, Start) or event.name != "coverage":
            raise ExpectedStartError(event, ["coverage"])
        document = CoverageDocument(**extract_attributes(event.attributes, COVERAGE_ATTRIBUTES))
        logger.debug("Started Cobertura document version %s", document.version)
        return cls(document)

    @property
    def document(self) -> CoverageDocument:
        return self.progress.document

    @property
    def finished(self) -> bool:
        return self.state is State.END

    def consume(self, event: Event) -> bool:
        """Apply *event* and return True once the root element has closed.

        Raises:
            ParserError: The event does not fit the current schema position.
        """
        rules = _TRANSITIONS.get(self.state)
        if rules is None:
            raise UnexpectedValueError(f"{describe(event)} after </coverage>")

        rule = rules.get(_event_key(event))
        if rule is None:
            raise _mismatch(event, rules)

        next_state, action = rule
        if action is not None:
            action(self.progress, event)
        self.state = next_state
        return self.state is State.END
