"""XML parsing events and the classifier that produces them.

The state machine only ever sees four kinds of event. Everything else the
tokenizer reports (comments, processing instructions, whitespace between
tags) is dropped by :func:`classify`.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

Attributes = tuple[tuple[str, str], ...]


class TokenKind(Enum):
    START = "start"
    END = "end"
    EMPTY = "empty"
    DATA = "data"
    COMMENT = "comment"
    PI = "pi"


@dataclass(frozen=True)
class RawToken:
    """A token as reported by the XML tokenizer, before classification."""

    kind: TokenKind
    name: str = ""
    attributes: Attributes = ()
    text: str = ""


@dataclass(frozen=True)
class Start:
    """An opening tag that will be followed by children and an end tag."""

    name: str
    attributes: Attributes = ()


@dataclass(frozen=True)
class End:
    """A closing tag."""

    name: str


@dataclass(frozen=True)
class Empty:
    """A self-closing tag: attributes only, no children."""

    name: str
    attributes: Attributes = ()


@dataclass(frozen=True)
class Text:
    """Character data between tags."""

    payload: str


Event = Start | End | Empty | Text


def local_name(tag: str) -> str:
    """Strip an ElementTree ``{namespace}`` prefix from *tag*."""
    return tag.split("}")[-1] if "}" in tag else tag


def classify(token: RawToken) -> Event | None:
    """Map a raw token to an event, or None when it carries no structure."""
    if token.kind is TokenKind.START:
        return Start(local_name(token.name), token.attributes)
    if token.kind is TokenKind.END:
        return End(local_name(token.name))
    if token.kind is TokenKind.EMPTY:
        return Empty(local_name(token.name), token.attributes)
    if token.kind is TokenKind.DATA and token.text.strip():
        return Text(token.text)
    return None


def describe(event: Event) -> str:
    """Return a short human-readable form of *event* for error messages."""
    if isinstance(event, Start):
        return f"<{event.name}>"
    if isinstance(event, End):
        return f"</{event.name}>"
    if isinstance(event, Empty):
        return f"<{event.name}/>"
    return "text"
