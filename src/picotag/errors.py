"""Error types with formatted source context."""

from __future__ import annotations

from enum import Enum

from picotag.tokens import Span


class ErrorKind(Enum):
    UNTERMINATED_TAG = "unterminated-tag"
    UNKNOWN_TAG = "unknown-tag"
    ARITY_MISMATCH = "arity-mismatch"
    INVALID_ARGUMENT = "invalid-argument"
    UNMATCHED_CLOSE = "unmatched-close"
    UNCLOSED_AT_END = "unclosed-at-end"
    DEPTH_EXCEEDED = "depth-exceeded"


class ParseError(Exception):
    """Raised on the first fatal markup error, with span and source context.

    In lenient mode the same objects are collected as diagnostics instead of
    being raised.
    """

    def __init__(
        self,
        message: str,
        span: Span,
        source: str,
        kind: ErrorKind = ErrorKind.UNKNOWN_TAG,
        token: str = "",
    ) -> None:
        self.message = message
        self.span = span
        self.source = source
        self.kind = kind
        self.token = token
        super().__init__(self.format())

    def format(self, filename: str = "<input>") -> str:
        """Render the error with a locator line and the offending source line.

        The caret underline covers the span, clipped to the end of its first
        line.
        """
        start, end = self.span.start, self.span.end
        line_begin = self.source.rfind("\n", 0, start.offset) + 1
        line_end = self.source.find("\n", start.offset)
        if line_end == -1:
            line_end = len(self.source)
        snippet = self.source[line_begin:line_end].rstrip("\r")

        stop = min(end.offset, line_begin + len(snippet))
        width = max(1, stop - start.offset)
        number = str(start.line)
        margin = " " * len(number)

        return "\n".join(
            [
                f"error: {self.message}",
                f"{margin} --> {filename}:{start.line}:{start.column}",
                f"{margin} |",
                f"{number} | {snippet}",
                f"{margin} | {' ' * (start.column - 1)}{'^' * width}",
            ]
        )


class DepthLimitError(ParseError):
    """Raised when markup nests deeper than the configured limit, in any mode."""

    def __init__(self, message: str, span: Span, source: str, token: str = "") -> None:
        super().__init__(message, span, source, ErrorKind.DEPTH_EXCEEDED, token)


class TagArgumentError(Exception):
    """Raised by a tag binder when its arguments cannot be bound."""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.INVALID_ARGUMENT) -> None:
        self.message = message
        self.kind = kind
        super().__init__(message)
