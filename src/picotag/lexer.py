"""picotag lexer: converts markup into a flat stream of text and tag tokens."""

from __future__ import annotations

from bisect import bisect_right

from picotag.tokens import QUOTES, Position, Span, Token, TokenType

_ESCAPABLE = "<>"


class Lexer:
    """Tokenize markup into Token objects.

    Tokenizing never fails: anything that looks like a tag but does not
    complete as one is emitted as literal text. Tag attempts that run off the
    end of the input are recorded in ``diagnostics``.
    """

    def __init__(self, source: str) -> None:
        self._source = source
        self._pos = 0
        self._text_start = 0
        self._tokens: list[Token] = []
        self._line_starts = [0] + [i + 1 for i, ch in enumerate(source) if ch == "\n"]
        self.diagnostics: list[tuple[str, Span]] = []

    def tokenize(self) -> list[Token]:
        """Tokenize the full source and return the token list."""
        source = self._source
        while self._pos < len(source):
            ch = source[self._pos]
            nxt = self._peek(1)

            if ch == "\\" and nxt and nxt in _ESCAPABLE:
                self._flush_text()
                start = self._pos
                self._pos += 2
                self._emit(TokenType.TEXT, source[start + 1], start)
                self._text_start = self._pos
                continue

            if ch == "<":
                end = self._scan_tag(self._pos)
                if end is not None:
                    token = self._make_tag(self._pos, end)
                    if token is not None:
                        self._flush_text()
                        self._tokens.append(token)
                        self._pos = end + 1
                        self._text_start = self._pos
                        continue

            self._pos += 1

        self._flush_text()
        return self._tokens

    # ------------------------------------------------------------------
    # Position helpers
    # ------------------------------------------------------------------

    def _position(self, offset: int) -> Position:
        line_idx = bisect_right(self._line_starts, offset) - 1
        return Position(line_idx + 1, offset - self._line_starts[line_idx] + 1, offset)

    def _span(self, start: int, end: int) -> Span:
        return Span(self._position(start), self._position(end))

    def _peek(self, offset: int = 0) -> str:
        idx = self._pos + offset
        if idx < len(self._source):
            return self._source[idx]
        return ""

    def _emit(self, tt: TokenType, value: str, start: int, args: tuple[str, ...] = ()) -> None:
        raw = self._source[start : self._pos]
        self._tokens.append(Token(tt, value, raw, self._span(start, self._pos), args))

    def _flush_text(self) -> None:
        if self._pos > self._text_start:
            text = self._source[self._text_start : self._pos]
            self._tokens.append(
                Token(TokenType.TEXT, text, text, self._span(self._text_start, self._pos))
            )
        self._text_start = self._pos

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def _scan_tag(self, start: int) -> int | None:
        """Return the offset of the unescaped '>' closing the tag opened at ``start``."""
        source = self._source
        pos = start + 1
        segment_start = False
        while pos < len(source):
            ch = source[pos]
            if segment_start and ch in QUOTES:
                close = find_quote_end(source, pos)
                if close is None:
                    pos = len(source)
                    break
                pos = close + 1
                segment_start = False
                continue
            if ch == "\\" and pos + 1 < len(source) and source[pos + 1] == ">":
                pos += 2
                segment_start = False
                continue
            if ch == ">":
                return pos
            if ch == "<" or ch == "\n":
                return None
            segment_start = ch == ":"
            pos += 1

        self.diagnostics.append(
            (
                f"unterminated tag {source[start:pos]!r}: expected '>' before end of input",
                self._span(start, pos),
            )
        )
        return None

    def _make_tag(self, start: int, end: int) -> Token | None:
        body = self._source[start + 1 : end]
        tt = TokenType.TAG_OPEN
        if body.startswith("/"):
            tt = TokenType.TAG_CLOSE
            body = body[1:]
        segments = split_segments(body)
        name = segments[0]
        if not _is_tag_name(name):
            return None
        raw = self._source[start : end + 1]
        return Token(tt, name, raw, self._span(start, end + 1), tuple(segments[1:]))


def find_quote_end(text: str, start: int) -> int | None:
    """Return the offset of the quote closing the span opened at ``start``.

    Only a backslash directly before the same quote character escapes it.
    """
    quote = text[start]
    pos = start + 1
    while pos < len(text):
        ch = text[pos]
        if ch == "\\" and pos + 1 < len(text) and text[pos + 1] == quote:
            pos += 2
            continue
        if ch == quote:
            return pos
        pos += 1
    return None


def split_segments(body: str) -> list[str]:
    """Split a tag body on ':' outside quoted argument spans."""
    segments: list[str] = []
    seg_start = 0
    pos = 0
    at_segment_start = False
    while pos < len(body):
        ch = body[pos]
        if at_segment_start and ch in QUOTES:
            close = find_quote_end(body, pos)
            pos = len(body) if close is None else close + 1
            at_segment_start = False
            continue
        if ch == ":":
            segments.append(body[seg_start:pos])
            seg_start = pos + 1
            at_segment_start = True
        else:
            at_segment_start = False
        pos += 1
    segments.append(body[seg_start:])
    return segments


def is_quoted(arg: str) -> bool:
    """Return True if ``arg`` starts a quoted span."""
    return bool(arg) and arg[0] in QUOTES


def unquote(arg: str) -> str:
    """Strip the quotes from a fully quoted argument and resolve its escapes.

    In an unquoted argument only an escaped '>' is resolved. Raises
    ValueError when the argument starts with a quote but does not end where
    that quote closes.
    """
    if not is_quoted(arg):
        return arg.replace("\\>", ">")
    quote = arg[0]
    close = find_quote_end(arg, 0)
    if close != len(arg) - 1:
        raise ValueError(f"malformed quoted argument {arg!r}")
    return arg[1:-1].replace("\\" + quote, quote)


def _is_tag_name(name: str) -> bool:
    if not name:
        return False
    return not any(ch.isspace() or ch in QUOTES or ch == "<" for ch in name)


def tokenize(source: str) -> list[Token]:
    """Convenience function: tokenize markup and return the token list."""
    return Lexer(source).tokenize()
