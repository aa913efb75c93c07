"""Token-level utilities that work on raw markup without resolving tags."""

from __future__ import annotations

from picotag.lexer import find_quote_end, is_quoted, tokenize
from picotag.tokens import Token, TokenType


def strip_tokens(source: str) -> str:
    """Remove every tag from ``source``, known or not, keeping only its text."""
    return "".join(token.value for token in tokenize(source) if token.type == TokenType.TEXT)


def escape_tokens(source: str) -> str:
    """Escape every tag in ``source`` so that parsing it yields literal markup.

    Markup inside quoted arguments is escaped too. Text, including any
    escapes already present, is copied unchanged.
    """
    parts = []
    for token in tokenize(source):
        if token.is_tag:
            parts.append("\\" + _escape_tag(token))
        else:
            parts.append(token.raw)
    return "".join(parts)


def _escape_tag(token: Token) -> str:
    prefix = "</" if token.type == TokenType.TAG_CLOSE else "<"
    segments = [token.value, *(_escape_argument(arg) for arg in token.args)]
    return prefix + ":".join(segments) + ">"


def _escape_argument(arg: str) -> str:
    if is_quoted(arg) and find_quote_end(arg, 0) == len(arg) - 1:
        quote = arg[0]
        return quote + escape_tokens(arg[1:-1]) + quote
    return arg
