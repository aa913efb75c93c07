"""--debug tree dump to stderr."""

from __future__ import annotations

import sys
from typing import TextIO

from picotag.nodes import Group, Keybind, Node, Style, Text, Translatable


def dump_tree(node: Node, *, file: TextIO | None = None) -> None:
    """Print a human-readable styled-text tree to *file* (default stderr)."""
    _dump_node(node, 0, file if file is not None else sys.stderr)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_node(node: Node, depth: int, f: TextIO) -> None:
    style = _format_style(node.style)
    if isinstance(node, Text):
        f.write(f"{_indent(depth)}Text({node.content!r}){style}\n")
    elif isinstance(node, Keybind):
        f.write(f"{_indent(depth)}Keybind({node.key!r}){style}\n")
    elif isinstance(node, Translatable):
        f.write(f"{_indent(depth)}Translatable({node.key!r}){style}\n")
        for arg in node.args:
            _dump_node(arg, depth + 1, f)
    elif isinstance(node, Group):
        f.write(f"{_indent(depth)}Group{style}\n")
        for child in node.children:
            _dump_node(child, depth + 1, f)
    if node.style.hover is not None:
        f.write(f"{_indent(depth + 1)}hover {node.style.hover.action.value}:\n")
        _dump_node(node.style.hover.value, depth + 2, f)


def _format_style(style: Style) -> str:
    if style.is_empty():
        return ""
    parts: list[str] = []
    if style.color is not None:
        parts.append(str(style.color))
    parts.extend(sorted(d.value for d in style.decorations))
    if style.click is not None:
        parts.append(f"click={style.click.action.value}:{style.click.value}")
    if style.hover is not None:
        parts.append("hover")
    if style.insertion is not None:
        parts.append(f"insert={style.insertion}")
    if style.font is not None:
        parts.append(f"font={style.font}")
    return " [" + " ".join(parts) + "]"
