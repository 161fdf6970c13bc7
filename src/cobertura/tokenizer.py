"""Byte-to-event adapter over the defusedxml hardened expat parser.

Expat reports ``<line number="1" hits="0"/>`` as a start immediately
followed by an end, so :class:`XmlTokenizer` folds such pairs back into a
single :class:`~cobertura.events.Empty` event. ``<a></a>`` and ``<a/>`` are
the same element in the XML infoset and both come out as Empty.
"""

from __future__ import annotations

import logging

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import ParseError, XMLParser

from cobertura.errors import XmlSyntaxError
from cobertura.events import Empty, End, Event, RawToken, Start, TokenKind, classify

logger = logging.getLogger(__name__)


class _TokenCollector:
    """ElementTree parser target that records raw tokens in order."""

    def __init__(self) -> None:
        self.tokens: list[RawToken] = []

    def start(self, tag: str, attrib: dict[str, str]) -> None:
        self.tokens.append(RawToken(TokenKind.START, tag, tuple(attrib.items())))

    def end(self, tag: str) -> None:
        self.tokens.append(RawToken(TokenKind.END, tag))

    def data(self, data: str) -> None:
        # Expat splits character data at buffer and entity boundaries.
        if self.tokens and self.tokens[-1].kind is TokenKind.DATA:
            previous = self.tokens.pop()
            data = previous.text + data
        self.tokens.append(RawToken(TokenKind.DATA, text=data))

    def comment(self, text: str) -> None:
        self.tokens.append(RawToken(TokenKind.COMMENT, text=text))

    def pi(self, target: str, text: str | None = None) -> None:
        self.tokens.append(RawToken(TokenKind.PI, target, text=text or ""))

    def close(self) -> None:
        return None


class XmlTokenizer:
    """Incremental tokenizer turning byte chunks into classified events.

    Events are released as soon as they are settled: trailing text is held
    back because it may continue in the next chunk, and a trailing start tag
    is held back because it may turn out to be self-closing.
    """

    def __init__(self) -> None:
        self._collector = _TokenCollector()
        self._parser = XMLParser(target=self._collector)
        self._held: Start | None = None
        self._closed = False

    def feed(self, data: bytes | str) -> list[Event]:
        """Feed a chunk of the document and return newly settled events.

        Raises:
            XmlSyntaxError: The input is not well-formed XML or uses a
                construct defusedxml forbids.
        """
        try:
            self._parser.feed(data)
        except ParseError as e:
            raise _syntax_error(e) from e
        except DefusedXmlException as e:
            raise XmlSyntaxError(str(e)) from e
        return self._drain(final=False)

    def close(self) -> list[Event]:
        """Signal end of input and return the remaining events.

        Raises:
            XmlSyntaxError: The document is truncated or malformed.
        """
        if self._closed:
            return []
        self._closed = True
        try:
            self._parser.close()
        except ParseError as e:
            raise _syntax_error(e) from e
        except DefusedXmlException as e:
            raise XmlSyntaxError(str(e)) from e
        return self._drain(final=True)

    def pending_events(self) -> list[Event]:
        """Release everything tokenized so far without closing the parser.

        Used when the caller has hit end of input and needs the events
        already seen, without expat's own truncation error.
        """
        return self._drain(final=True)

    def _drain(self, *, final: bool) -> list[Event]:
        tokens = self._collector.tokens
        if not final and tokens and tokens[-1].kind is TokenKind.DATA:
            settled = tokens[:-1]
            del tokens[:-1]
        else:
            settled = list(tokens)
            tokens.clear()

        events: list[Event] = []
        for token in settled:
            event = classify(token)
            if event is None:
                continue
            if self._held is not None:
                held, self._held = self._held, None
                if isinstance(event, End) and event.name == held.name:
                    events.append(Empty(held.name, held.attributes))
                    continue
                events.append(held)
            if isinstance(event, Start):
                self._held = event
            else:
                events.append(event)

        if final and self._held is not None:
            events.append(self._held)
            self._held = None
        return events


def _syntax_error(error: ParseError) -> XmlSyntaxError:
    position = getattr(error, "position", None)
    if position:
        line, column = position
        logger.debug("XML tokenizer failed at line %d column %d: %s", line, column, error)
        return XmlSyntaxError(str(error), line, column)
    return XmlSyntaxError(str(error))
