"""Plain-text renderer: flattens a styled-text tree to its visible text."""

from __future__ import annotations

from picotag.nodes import Group, Keybind, Node, Text, Translatable


def plain_text(node: Node) -> str:
    """Concatenate the text of ``node`` in order, dropping all styling.

    Keybinds and translatables have no text of their own; they render as
    their key, since resolving them needs a client.
    """
    parts: list[str] = []
    _collect(node, parts)
    return "".join(parts)


def _collect(node: Node, parts: list[str]) -> None:
    if isinstance(node, Text):
        parts.append(node.content)
    elif isinstance(node, Keybind):
        parts.append(node.key)
    elif isinstance(node, Translatable):
        parts.append(node.key)
    elif isinstance(node, Group):
        for child in node.children:
            _collect(child, parts)
