"""Tests for the schema state machine (machine.py).

Drives CoverageStateMachine directly with hand-built events so every
transition and every error shape can be checked without XML text.
"""

from __future__ import annotations

import pytest

from cobertura.errors import (
    ExpectedEndError,
    ExpectedStartError,
    ExpectedStartOrEndError,
    MissingRequiredAttributeError,
    UnexpectedValueError,
)
from cobertura.events import Empty, End, Start, Text
from cobertura.machine import (
    CoverageStateMachine,
    InProgress,
    State,
    _append_condition,
    _close_class,
    _close_method,
    _close_package,
)
from cobertura.models import Condition, Line

_COVERAGE_ATTRS = {
    "line-rate": "0.5",
    "branch-rate": "0",
    "lines-covered": "1",
    "lines-valid": "2",
    "branches-covered": "0",
    "branches-valid": "0",
    "complexity": "0",
    "version": "1.9",
    "timestamp": "1",
}
_PACKAGE_ATTRS = {"name": "app", "line-rate": "0.5", "branch-rate": "0", "complexity": "0"}
_CLASS_ATTRS = {
    "name": "App",
    "filename": "app.py",
    "line-rate": "0.5",
    "branch-rate": "0",
    "complexity": "0",
}
_METHOD_ATTRS = {"name": "run", "signature": "()V", "line-rate": "1", "branch-rate": "0"}


def _start(name: str, attrs: dict[str, str] | None = None) -> Start:
    return Start(name, tuple((attrs or {}).items()))


def _empty(name: str, attrs: dict[str, str] | None = None) -> Empty:
    return Empty(name, tuple((attrs or {}).items()))


def _line(number: int, hits: int = 0) -> dict[str, str]:
    return {"number": str(number), "hits": str(hits)}


def _machine() -> CoverageStateMachine:
    return CoverageStateMachine.start(_start("coverage", _COVERAGE_ATTRS))


def _feed(machine: CoverageStateMachine, events: list) -> bool:
    finished = False
    for event in events:
        finished = machine.consume(event)
    return finished


def _in_class_lines() -> CoverageStateMachine:
    machine = _machine()
    _feed(
        machine,
        [
            _start("packages"),
            _start("package", _PACKAGE_ATTRS),
            _start("classes"),
            _start("class", _CLASS_ATTRS),
            _start("lines"),
        ],
    )
    assert machine.state is State.CLASS_LINES
    return machine


def _close_class_lines() -> list:
    return [
        End("lines"),
        End("class"),
        End("classes"),
        End("package"),
        End("packages"),
        End("coverage"),
    ]


# ── Root entry ───────────────────────────────────────────────────


class TestRootEntry:
    def test_start_binds_root_attributes(self) -> None:
        machine = _machine()
        assert machine.state is State.COVERAGE
        assert machine.document.version == "1.9"
        assert machine.document.lines_valid == 2
        assert not machine.finished

    @pytest.mark.parametrize(
        "event",
        [_start("report"), End("coverage"), Text("hello"), _empty("coverage", _COVERAGE_ATTRS)],
    )
    def test_non_root_event_rejected(self, event: Start | End | Text | Empty) -> None:
        with pytest.raises(ExpectedStartError) as exc_info:
            CoverageStateMachine.start(event)
        assert exc_info.value.expected == {"coverage"}
        assert exc_info.value.got == event

    def test_root_missing_attribute(self) -> None:
        attrs = dict(_COVERAGE_ATTRS)
        del attrs["version"]
        with pytest.raises(MissingRequiredAttributeError) as exc_info:
            CoverageStateMachine.start(_start("coverage", attrs))
        assert exc_info.value.name == "version"


# ── Transitions ──────────────────────────────────────────────────


class TestTransitions:
    def test_minimal_document(self) -> None:
        machine = _machine()
        assert machine.consume(_empty("packages")) is False
        assert machine.consume(End("coverage")) is True
        assert machine.finished
        assert machine.document.packages == []

    def test_sources_accumulate_text(self) -> None:
        machine = _machine()
        _feed(
            machine,
            [
                _start("sources"),
                _start("source"),
                Text("/home/"),
                Text("user"),
                End("source"),
                _empty("source"),
                End("sources"),
            ],
        )
        assert [s.path for s in machine.document.sources] == ["/home/user", ""]
        assert machine.state is State.COVERAGE

    def test_self_closing_package_pushed(self) -> None:
        machine = _machine()
        _feed(machine, [_start("packages"), _empty("package", _PACKAGE_ATTRS)])
        assert machine.state is State.PACKAGES
        assert [p.name for p in machine.document.packages] == ["app"]
        assert machine.progress.package is None

    def test_package_pushed_on_close(self) -> None:
        machine = _machine()
        _feed(machine, [_start("packages"), _start("package", _PACKAGE_ATTRS), _empty("classes")])
        assert machine.document.packages == []
        assert machine.progress.package is not None
        machine.consume(End("package"))
        assert len(machine.document.packages) == 1

    def test_class_lines_with_conditions(self) -> None:
        machine = _in_class_lines()
        finished = _feed(
            machine,
            [
                _empty("line", _line(1, 3)),
                _start("line", {**_line(2), "branch": "true"}),
                _start("conditions"),
                _empty("condition", {"type": "jump", "coverage": "50%"}),
                End("conditions"),
                End("line"),
                *_close_class_lines(),
            ],
        )
        assert finished
        cls = machine.document.packages[0].classes[0]
        assert [line.number for line in cls.lines] == [1, 2]
        assert cls.lines[0].conditions == []
        assert cls.lines[1].branch is True
        assert cls.lines[1].conditions == [Condition(type="jump", coverage="50%")]

    def test_consecutive_lines_with_children_all_kept(self) -> None:
        machine = _in_class_lines()
        _feed(
            machine,
            [
                _start("line", _line(1)),
                _empty("conditions"),
                End("line"),
                _start("line", _line(2)),
                End("line"),
                _empty("line", _line(3)),
                End("lines"),
            ],
        )
        assert machine.progress.class_ is not None
        assert [line.number for line in machine.progress.class_.lines] == [1, 2, 3]
        assert machine.progress.line is None

    def test_method_lines(self) -> None:
        machine = _machine()
        _feed(
            machine,
            [
                _start("packages"),
                _start("package", _PACKAGE_ATTRS),
                _start("classes"),
                _start("class", _CLASS_ATTRS),
                _start("methods"),
                _start("method", _METHOD_ATTRS),
                _start("lines"),
                _empty("line", _line(7, 1)),
                _start("line", _line(8)),
                _start("conditions"),
                _empty("condition", {"number": "0", "type": "switch", "coverage": "0%"}),
                End("conditions"),
                End("line"),
                End("lines"),
                End("method"),
                _empty("method", {**_METHOD_ATTRS, "name": "stop"}),
                End("methods"),
                _empty("lines"),
                End("class"),
            ],
        )
        assert machine.state is State.CLASSES
        assert machine.document.packages == []
        assert machine.progress.package is not None
        cls = machine.progress.package.classes[0]
        assert [m.name for m in cls.methods] == ["run", "stop"]
        assert cls.methods[0].lines == [
            Line(number=7, hits=1),
            Line(number=8, hits=0, conditions=[Condition(type="switch", coverage="0%")]),
        ]
        assert cls.lines == []

    def test_empty_containers_keep_state(self) -> None:
        machine = _machine()
        _feed(
            machine,
            [
                _empty("sources"),
                _start("packages"),
                _start("package", _PACKAGE_ATTRS),
                _start("classes"),
                _start("class", _CLASS_ATTRS),
                _empty("methods"),
                _empty("lines"),
            ],
        )
        assert machine.state is State.CLASS


# ── Errors ───────────────────────────────────────────────────────


class TestErrors:
    def test_unknown_child_of_coverage(self) -> None:
        machine = _machine()
        with pytest.raises(ExpectedStartError) as exc_info:
            machine.consume(_start("bogus"))
        assert exc_info.value.expected == {"sources", "packages"}
        assert exc_info.value.got == _start("bogus")

    def test_wrong_end_tag(self) -> None:
        machine = _machine()
        machine.consume(_start("packages"))
        with pytest.raises(ExpectedEndError) as exc_info:
            machine.consume(End("coverage"))
        assert exc_info.value.expected == {"packages"}

    def test_text_outside_source(self) -> None:
        machine = _machine()
        with pytest.raises(ExpectedStartOrEndError) as exc_info:
            machine.consume(Text("stray"))
        assert exc_info.value.expected_starts == {"sources", "packages"}
        assert exc_info.value.expected_ends == {"coverage"}

    @pytest.mark.parametrize("event", [_start("path"), _empty("path")])
    def test_tag_inside_source(self, event: Start | Empty) -> None:
        machine = _machine()
        _feed(machine, [_start("sources"), _start("source")])
        with pytest.raises(ExpectedEndError) as exc_info:
            machine.consume(event)
        assert exc_info.value.expected == {"source"}
        assert exc_info.value.got == event

    def test_condition_must_be_self_closing(self) -> None:
        machine = _in_class_lines()
        _feed(machine, [_start("line", _line(1)), _start("conditions")])
        with pytest.raises(ExpectedStartOrEndError) as exc_info:
            machine.consume(_start("condition", {"type": "jump", "coverage": "1%"}))
        assert exc_info.value.expected_starts == {"condition"}
        assert exc_info.value.expected_ends == {"conditions"}

    def test_missing_line_attribute(self) -> None:
        machine = _in_class_lines()
        with pytest.raises(MissingRequiredAttributeError) as exc_info:
            machine.consume(_empty("line", {"number": "1"}))
        assert exc_info.value.name == "hits"

    def test_consume_after_end(self) -> None:
        machine = _machine()
        _feed(machine, [_empty("packages"), End("coverage")])
        with pytest.raises(UnexpectedValueError):
            machine.consume(_start("coverage", _COVERAGE_ATTRS))


# ── Actions ──────────────────────────────────────────────────────


class TestActionsWithoutParent:
    """Actions refuse to drop an entity whose parent slot is empty."""

    def _progress(self) -> InProgress:
        return _machine().progress

    def test_close_package_without_package(self) -> None:
        with pytest.raises(UnexpectedValueError):
            _close_package(self._progress(), End("package"))

    def test_close_class_without_package(self) -> None:
        progress = self._progress()
        machine = _in_class_lines()
        progress.class_ = machine.progress.class_
        with pytest.raises(UnexpectedValueError):
            _close_class(progress, End("class"))

    def test_close_method_without_class(self) -> None:
        with pytest.raises(UnexpectedValueError):
            _close_method(self._progress(), End("method"))

    def test_condition_without_line(self) -> None:
        condition = _empty("condition", {"type": "jump", "coverage": "0%"})
        with pytest.raises(UnexpectedValueError):
            _append_condition(self._progress(), condition)
