"""Public parsing API.

:class:`CoberturaParser` is the incremental entry point: hand it one event
at a time and it answers "need more input" (``None``) or the finished
:class:`~cobertura.models.CoverageDocument`. Errors are raised and leave the
parser reset. The module-level helpers drive it over events, bytes, files
or async byte streams.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from cobertura.config import DEFAULT_CHUNK_SIZE
from cobertura.errors import ParserError, UnexpectedEofError
from cobertura.machine import CoverageStateMachine
from cobertura.tokenizer import XmlTokenizer

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, Iterable

    from cobertura.events import Event
    from cobertura.models import CoverageDocument

logger = logging.getLogger(__name__)


class CoberturaParser:
    """Incremental Cobertura parser with suspend/resume semantics.

    The parser owns at most one in-progress document. It is reusable: after
    a document completes, or after any error, it is back in its initial
    state and accepts the root tag of a new document.

    Example::

        parser = CoberturaParser()
        for event in events:
            document = parser.consume_event(event)
            if document is not None:
                break
    """

    def __init__(self) -> None:
        self._machine: CoverageStateMachine | None = None

    @property
    def in_progress(self) -> bool:
        """Return True while a document has started but not finished."""
        return self._machine is not None

    def reset(self) -> None:
        """Discard any partial document."""
        self._machine = None

    def consume_event(self, event: Event) -> CoverageDocument | None:
        """Consume one event.

        Returns:
            The completed document when *event* closes the root element,
            otherwise None (more input is needed).

        Raises:
            ParserError: The event violates the schema. The partial document
                is discarded before the error propagates.
        """
        try:
            if self._machine is None:
                self._machine = CoverageStateMachine.start(event)
                return None
            finished = self._machine.consume(event)
        except ParserError as e:
            if self._machine is not None:
                logger.debug("Discarding partial document after error: %s", e)
            self._machine = None
            raise

        if not finished:
            return None
        document = self._machine.document
        self._machine = None
        return document

    def consume_events(self, events: Iterable[Event]) -> CoverageDocument | None:
        """Consume events until a document completes.

        Returns None when *events* runs out first; the partial document is
        kept so more events can follow. Events after the completing one are
        not consumed.
        """
        for event in events:
            document = self.consume_event(event)
            if document is not None:
                return document
        return None

    def parse(self, events: Iterable[Event]) -> CoverageDocument:
        """Drive *events* to a complete document.

        Raises:
            UnexpectedEofError: *events* ended before ``</coverage>``.
            ParserError: Any schema violation.
        """
        document = self.consume_events(events)
        if document is None:
            self.reset()
            raise UnexpectedEofError
        return document


def parse_events(events: Iterable[Event]) -> CoverageDocument:
    """Parse a complete event sequence with a fresh parser."""
    return CoberturaParser().parse(events)


def _finish(parser: CoberturaParser, tokenizer: XmlTokenizer) -> CoverageDocument:
    return parser.parse(tokenizer.pending_events())


def parse_bytes(data: bytes | str) -> CoverageDocument:
    """Parse a whole Cobertura document held in memory."""
    parser = CoberturaParser()
    tokenizer = XmlTokenizer()
    document = parser.consume_events(tokenizer.feed(data))
    if document is not None:
        return document
    return _finish(parser, tokenizer)


def parse_file(path: str | Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> CoverageDocument:
    """Parse a Cobertura report file, reading it in chunks.

    Args:
        path: Report location.
        chunk_size: Bytes per read, at least 1.

    Raises:
        ValueError: *chunk_size* is not positive.
        OSError: The file cannot be read.
        ParserError: The file is not a valid Cobertura report.
    """
    if chunk_size < 1:
        msg = f"chunk_size must be positive (got: {chunk_size})"
        raise ValueError(msg)

    report = Path(path)
    logger.debug("Parsing %s in %d byte chunks", report, chunk_size)
    parser = CoberturaParser()
    tokenizer = XmlTokenizer()
    with report.open("rb") as handle:
        while chunk := handle.read(chunk_size):
            document = parser.consume_events(tokenizer.feed(chunk))
            if document is not None:
                return document
    return _finish(parser, tokenizer)


async def parse_stream(chunks: AsyncIterable[bytes]) -> CoverageDocument:
    """Parse a document from an async byte source.

    The parser awaits *chunks* between reads and does no I/O itself, so it
    can share an event loop with the producer (a socket, a subprocess pipe,
    an ``aiofiles`` handle, ...).
    """
    parser = CoberturaParser()
    tokenizer = XmlTokenizer()
    async for chunk in chunks:
        document = parser.consume_events(tokenizer.feed(chunk))
        if document is not None:
            return document
    return _finish(parser, tokenizer)
