"""picotag parser: resolves a token stream into a tree of styled text."""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, replace

from picotag.errors import DepthLimitError, ErrorKind, ParseError, TagArgumentError
from picotag.lexer import Lexer
from picotag.logger import get_logger
from picotag.nodes import EMPTY_STYLE, Group, Keybind, Node, Style, Text, Translatable, restyle
from picotag.tags import (
    DEFAULT_REGISTRY,
    BindContext,
    Effect,
    InsertKeybind,
    InsertTranslatable,
    Pre,
    Reset,
    StyleEffect,
    TagDef,
    TagRegistry,
    TextEffect,
    resolve_name,
)
from picotag.tokens import Span, Token, TokenType

logger = get_logger(__name__)

Placeholders = Mapping[str, "str | Node"]

# Closes of these tags are accepted even when nothing is open
_TOLERATED_CLOSES: frozenset[str] = frozenset({"rainbow", "gradient", "pre"})


@dataclass(frozen=True, slots=True)
class ParserOptions:
    """Per-parse configuration.

    ``strict`` turns unknown tags, bad arguments and unmatched closes into
    errors. ``on_error`` receives every diagnostic message that is not raised.
    ``max_depth`` bounds nested argument markup; exceeding it raises
    DepthLimitError in every mode. ``max_scopes`` bounds the number of
    simultaneously open tags: at the limit the oldest style overridden by a
    later tag of its kind is dropped, and when none is, the new tag is
    reported and kept as text (raised in strict mode). ``require_closed``
    makes tags left open at end of input fatal in strict mode.
    """

    strict: bool = False
    on_error: Callable[[str], None] | None = None
    max_depth: int = 64
    max_scopes: int = 1024
    require_closed: bool = False


@dataclass(slots=True)
class _Scope:
    tag: TagDef
    effect: Effect
    token: Token
    # Text and nodes collected by a rainbow/gradient scope until it is flushed
    pending: list[tuple[str, Style] | Node] | None = None
    # Style of every scope up to and including this one
    style: Style = EMPTY_STYLE


class Parser:
    """Resolve tokens against a tag registry into a flat list of styled leaves.

    Open tags form a list of scopes rather than a tree: the style of each
    leaf is the fold of every open scope's effect, in opening order.
    """

    def __init__(
        self,
        tokens: list[Token],
        source: str,
        placeholders: Placeholders | None = None,
        options: ParserOptions | None = None,
        registry: TagRegistry = DEFAULT_REGISTRY,
        depth: int = 0,
    ) -> None:
        self._tokens = _coalesce_text(tokens)
        self._source = source
        self._placeholders = placeholders or {}
        self._options = options or ParserOptions()
        self._registry = registry
        self._depth = depth
        self._scopes: list[_Scope] = []
        self._out: list[Node] = []
        self.diagnostics: list[ParseError] = []

    @classmethod
    def from_source(
        cls,
        source: str,
        placeholders: Placeholders | None = None,
        options: ParserOptions | None = None,
        registry: TagRegistry = DEFAULT_REGISTRY,
        depth: int = 0,
    ) -> Parser:
        """Tokenize ``source`` and report any unterminated tag attempts."""
        lexer = Lexer(source)
        parser = cls(lexer.tokenize(), source, placeholders, options, registry, depth)
        for message, span in lexer.diagnostics:
            parser._report(
                ErrorKind.UNTERMINATED_TAG, message, span, source[span.start.offset : span.end.offset]
            )
        return parser

    # ------------------------------------------------------------------
    # Document level
    # ------------------------------------------------------------------

    def parse(self) -> Node:
        for token in self._tokens:
            if token.type == TokenType.TEXT:
                self._emit_text(token.value, self._style())
            elif self._in_pre() and not _closes_pre(token):
                self._emit_text(token.raw, self._style())
            elif token.type == TokenType.TAG_OPEN:
                self._open(token)
            else:
                self._close(token)
        self._finish()
        return _root(self._out)

    def _finish(self) -> None:
        for scope in self._scopes:
            if self._options.strict:
                self._report(
                    ErrorKind.UNCLOSED_AT_END,
                    f"tag {scope.token.raw} is never closed",
                    scope.token.span,
                    scope.token.raw,
                    fatal=self._options.require_closed,
                )
            else:
                logger.debug("auto-closing %s at end of input", scope.token.raw)
        self._flush_effects(0)
        self._scopes.clear()

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def _open(self, token: Token) -> None:
        name = token.value
        value = self._placeholders.get(name)
        if value is not None and not token.args:
            style = self._style()
            if isinstance(value, str):
                self._emit_text(value, style)
            else:
                self._emit_node(restyle(value, style))
            return

        tag = self._registry.lookup(name)
        if tag is None:
            self._fail(ErrorKind.UNKNOWN_TAG, f"unknown tag <{name}>", token)
            return
        try:
            effect = tag.bind(name, token.args, self._bind_context(name, token))
        except TagArgumentError as exc:
            self._fail(exc.kind, f"invalid tag {token.raw}: {exc.message}", token)
            return

        if isinstance(effect, InsertKeybind):
            self._emit_node(Keybind(effect.key, self._style()))
        elif isinstance(effect, InsertTranslatable):
            self._emit_node(Translatable(effect.key, effect.args, self._style()))
        elif isinstance(effect, Reset):
            self._flush_effects(0)
            self._scopes.clear()
        else:
            if len(self._scopes) >= self._options.max_scopes and not self._retire_superseded():
                message = f"more than {self._options.max_scopes} tags open at once"
                if self._options.strict:
                    raise DepthLimitError(message, token.span, self._source, token.raw)
                self._report(ErrorKind.DEPTH_EXCEEDED, message, token.span, token.raw)
                self._emit_text(token.raw, self._style())
                return
            pending: list[tuple[str, Style] | Node] | None = None
            if isinstance(effect, TextEffect):
                pending = []
            style = _fold(self._style(), effect)
            self._scopes.append(_Scope(tag, effect, token, pending, style))

    def _retire_superseded(self) -> bool:
        """Drop the oldest style scope overridden by a later scope of its category.

        Returns False when no open scope is overridden.
        """
        seen: set[str] = set()
        oldest: int | None = None
        for index in range(len(self._scopes) - 1, -1, -1):
            effect = self._scopes[index].effect
            if not isinstance(effect, StyleEffect):
                continue
            if effect.category in seen:
                oldest = index
            seen.add(effect.category)
        if oldest is None:
            return False
        logger.debug("dropping overridden %s", self._scopes[oldest].token.raw)
        self._remove(oldest)
        return True

    def _close(self, token: Token) -> None:
        name = token.value
        if name in self._placeholders:
            return
        tag = self._registry.lookup(name)
        if tag is None:
            self._fail(ErrorKind.UNKNOWN_TAG, f"unknown closing tag </{name}>", token)
            return
        if tag.terminal:
            return

        index = self._match(tag, token)
        if index is None:
            if tag.category not in _TOLERATED_CLOSES:
                self._report(
                    ErrorKind.UNMATCHED_CLOSE,
                    f"closing tag {token.raw} has no matching open tag",
                    token.span,
                    token.raw,
                    fatal=True,
                )
            return

        if self._scopes[index].pending is not None:
            self._flush_effects(index)
        else:
            self._remove(index)

    def _match(self, tag: TagDef, token: Token) -> int | None:
        """Index of the innermost scope this close ends.

        A scope whose effect equals the close tag's own binding wins over one
        that merely shares its category.
        """
        try:
            probe: Effect | None = tag.bind(token.value, token.args, _PROBE_CONTEXT)
        except TagArgumentError:
            probe = None
        indices = range(len(self._scopes) - 1, -1, -1)
        if probe is not None:
            for index in indices:
                if self._scopes[index].effect == probe:
                    return index
        for index in indices:
            if self._scopes[index].tag.category == tag.category:
                return index
        return None

    def _bind_context(self, name: str, token: Token) -> BindContext:
        return BindContext(lambda text: self._parse_argument(text, name, token))

    def _parse_argument(self, text: str, name: str, token: Token) -> Node:
        """Parse markup found inside a tag argument as its own document."""
        depth = self._depth + 1
        if depth > self._options.max_depth:
            raise DepthLimitError(
                f"argument markup of <{name}> nests deeper than {self._options.max_depth} levels",
                token.span,
                self._source,
                token.raw,
            )
        options = replace(self._options, on_error=None)
        sub = Parser.from_source(text, self._placeholders, options, self._registry, depth)
        try:
            node = sub.parse()
        except DepthLimitError as exc:
            raise DepthLimitError(
                f"in argument of <{name}>: {exc.message}", token.span, self._source, token.raw
            ) from None
        except ParseError as exc:
            raise ParseError(
                f"in argument of <{name}>: {exc.message}",
                token.span,
                self._source,
                exc.kind,
                token.raw,
            ) from None
        for diagnostic in sub.diagnostics:
            self._report(
                diagnostic.kind,
                f"in argument of <{name}>: {diagnostic.message}",
                token.span,
                token.raw,
            )
        return node

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def _style(self) -> Style:
        return self._scopes[-1].style if self._scopes else EMPTY_STYLE

    def _remove(self, index: int) -> None:
        """Remove one scope and refold the styles of the scopes above it."""
        del self._scopes[index]
        style = self._scopes[index - 1].style if index > 0 else EMPTY_STYLE
        for scope in self._scopes[index:]:
            style = _fold(style, scope.effect)
            scope.style = style

    def _in_pre(self) -> bool:
        return bool(self._scopes) and isinstance(self._scopes[-1].effect, Pre)

    def _sink(self) -> list:
        for scope in reversed(self._scopes):
            if scope.pending is not None:
                return scope.pending
        return self._out

    def _emit_text(self, content: str, style: Style) -> None:
        sink = self._sink()
        if sink is self._out:
            sink.append(Text(content, style))
        else:
            sink.append((content, style))

    def _emit_node(self, node: Node) -> None:
        self._sink().append(node)

    def _flush_effects(self, start: int) -> None:
        """Flush and remove every rainbow/gradient scope from ``start`` upwards."""
        for index in range(len(self._scopes) - 1, start - 1, -1):
            scope = self._scopes[index]
            if scope.pending is None:
                continue
            self._remove(index)
            self._flush(scope)

    def _flush(self, scope: _Scope) -> None:
        assert scope.pending is not None
        assert isinstance(scope.effect, TextEffect)
        text = "".join(entry[0] for entry in scope.pending if isinstance(entry, tuple))
        colors = iter(scope.effect.colorize(text))
        for entry in scope.pending:
            if isinstance(entry, tuple):
                content, style = entry
                for ch in content:
                    self._emit_node(Text(ch, style.with_color(next(colors))))
            else:
                self._emit_node(entry)

    # ------------------------------------------------------------------
    # Diagnostics
    # ------------------------------------------------------------------

    def _fail(self, kind: ErrorKind, message: str, token: Token) -> None:
        """Report an unresolvable tag, then keep its raw text as a literal leaf."""
        self._report(kind, message, token.span, token.raw, fatal=True)
        logger.debug("treating %s as literal text", token.raw)
        self._emit_text(token.raw, self._style())

    def _report(
        self, kind: ErrorKind, message: str, span: Span, raw: str, *, fatal: bool = False
    ) -> None:
        error = ParseError(message, span, self._source, kind, raw)
        if fatal and self._options.strict:
            raise error
        self.diagnostics.append(error)
        logger.info("%s: %s", kind.value, message)
        if self._options.on_error is not None:
            self._options.on_error(message)


_PROBE_CONTEXT = BindContext(lambda text: Text(text))


def _fold(style: Style, effect: Effect) -> Style:
    if isinstance(effect, StyleEffect):
        return effect.apply(style)
    return style


def _closes_pre(token: Token) -> bool:
    return token.type == TokenType.TAG_CLOSE and resolve_name(token.value) == "pre"


def _root(nodes: list[Node]) -> Node:
    if not nodes:
        return Text("")
    if len(nodes) == 1:
        return nodes[0]
    return Group(tuple(nodes))


def _coalesce_text(tokens: list[Token]) -> list[Token]:
    """Coalesce adjacent TEXT tokens into single tokens."""
    result: list[Token] = []
    for token in tokens:
        if token.type == TokenType.TEXT and result and result[-1].type == TokenType.TEXT:
            prev = result[-1]
            result[-1] = Token(
                TokenType.TEXT,
                prev.value + token.value,
                prev.raw + token.raw,
                Span(prev.span.start, token.span.end),
            )
        else:
            result.append(token)
    return result


def substitute(source: str, placeholders: Mapping[str, str]) -> str:
    """Replace every unescaped ``<name>`` whose name is a key with its value.

    A matching ``</name>`` is dropped, as it is for node placeholders.
    """
    keys = sorted((k for k in placeholders if k), key=len, reverse=True)
    if not keys:
        return source
    pattern = re.compile(r"(?<!\\)<(/?)(" + "|".join(re.escape(k) for k in keys) + ")>")
    return pattern.sub(lambda m: "" if m.group(1) else placeholders[m.group(2)], source)


def parse(
    source: str,
    placeholders: Placeholders | None = None,
    *,
    strict: bool = False,
    on_error: Callable[[str], None] | None = None,
    options: ParserOptions | None = None,
    registry: TagRegistry = DEFAULT_REGISTRY,
) -> Node:
    """Convenience function: parse markup and return its styled-text tree.

    String placeholders are substituted into the source before tokenizing, so
    they may appear inside tag arguments. Node placeholders replace a bare
    ``<name>`` tag. ``options``, when given, overrides ``strict`` and
    ``on_error``.
    """
    if options is None:
        options = ParserOptions(strict=strict, on_error=on_error)
    strings: dict[str, str] = {}
    trees: dict[str, Node] = {}
    for name, value in (placeholders or {}).items():
        if isinstance(value, str):
            strings[name] = value
        else:
            trees[name] = value
    text = substitute(source, strings)
    return Parser.from_source(text, trees, options, registry).parse()
