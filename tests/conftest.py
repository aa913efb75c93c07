"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from picotag.colors import Color, named_color
from picotag.lexer import tokenize
from picotag.nodes import (
    ClickAction,
    ClickEvent,
    Decoration,
    Group,
    HoverAction,
    HoverEvent,
    Key,
    Node,
    Style,
    Text,
)
from picotag.parser import parse
from picotag.tokens import Token, TokenType


@pytest.fixture
def lex():
    """Return a helper that tokenizes source."""

    def _lex(source: str) -> list[Token]:
        return tokenize(source)

    return _lex


@pytest.fixture
def parse_lenient():
    """Return a helper that parses source in lenient mode."""

    def _parse(source: str, **placeholders: str | Node) -> Node:
        return parse(source, placeholders)

    return _parse


@pytest.fixture
def parse_strict():
    """Return a helper that parses source in strict mode."""

    def _parse(source: str, **placeholders: str | Node) -> Node:
        return parse(source, placeholders, strict=True)

    return _parse


@pytest.fixture
def reported():
    """Return (messages, parse helper) where the helper records diagnostics."""
    messages: list[str] = []

    def _parse(source: str, strict: bool = False) -> Node:
        return parse(source, strict=strict, on_error=messages.append)

    return messages, _parse


def assert_types(tokens: list[Token], expected: list[TokenType]) -> None:
    """Assert that the token types match the expected list."""
    actual = [t.type for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def assert_values(tokens: list[Token], expected: list[str]) -> None:
    """Assert that the token values match the expected list."""
    actual = [t.value for t in tokens]
    assert actual == expected, f"Expected {expected}, got {actual}"


def color(value: str | int) -> Color:
    """A named colour by name, or a plain colour from an int."""
    if isinstance(value, int):
        return Color(value)
    found = named_color(value)
    assert found is not None, value
    return found


def style(
    color_spec: str | int | None = None,
    *decorations: Decoration,
    click: ClickEvent | None = None,
    hover: Node | None = None,
    insertion: str | None = None,
    font: str | None = None,
) -> Style:
    """Build an expected Style tersely."""
    return Style(
        color=color(color_spec) if color_spec is not None else None,
        decorations=frozenset(decorations),
        click=click,
        hover=HoverEvent(HoverAction.SHOW_TEXT, hover) if hover is not None else None,
        insertion=insertion,
        font=Key.parse(font) if font is not None else None,
    )


def text(content: str, color_spec: str | int | None = None, *decorations: Decoration, **kw) -> Text:
    """Build an expected Text leaf tersely."""
    return Text(content, style(color_spec, *decorations, **kw))


def group(*children: Node) -> Group:
    return Group(tuple(children))


def run_command(value: str) -> ClickEvent:
    return ClickEvent(ClickAction.RUN_COMMAND, value)


def children(node: Node) -> list[Node]:
    """The leaves of a parse result, whether or not it was wrapped in a Group."""
    if isinstance(node, Group):
        return list(node.children)
    return [node]


def leaf_colors(node: Node) -> list[int]:
    """Colour values of every leaf, in order."""
    return [leaf.style.color.value for leaf in children(node)]  # type: ignore[union-attr]
