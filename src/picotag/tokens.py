"""Token types and source positions."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class TokenType(Enum):
    TEXT = auto()  # literal run, value is the unescaped content
    TAG_OPEN = auto()  # <name:arg:...>
    TAG_CLOSE = auto()  # </name:arg:...>


@dataclass(frozen=True, slots=True)
class Position:
    """Source position, 1-based line and column, 0-based offset."""

    line: int
    column: int
    offset: int


@dataclass(frozen=True, slots=True)
class Span:
    """Source range from start to end position."""

    start: Position
    end: Position


@dataclass(frozen=True, slots=True)
class Token:
    """A single lexer token.

    For text tokens ``value`` is the literal content and ``raw`` the source
    slice it came from (they differ for escapes). For tags ``value`` is the
    tag name, ``args`` the raw argument segments and ``raw`` the full tag
    including its angle brackets.
    """

    type: TokenType
    value: str
    raw: str
    span: Span
    args: tuple[str, ...] = ()

    @property
    def is_tag(self) -> bool:
        return self.type is not TokenType.TEXT


QUOTES = frozenset("'\"")
