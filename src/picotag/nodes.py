"""Styled text node types produced by the parser."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from enum import Enum

from picotag.colors import Color

DEFAULT_NAMESPACE = "minecraft"

_NAMESPACE_RE = re.compile(r"[a-z0-9_.\-]+")
_KEY_VALUE_RE = re.compile(r"[a-z0-9_.\-/]+")


class Decoration(Enum):
    BOLD = "bold"
    ITALIC = "italic"
    UNDERLINED = "underlined"
    STRIKETHROUGH = "strikethrough"
    OBFUSCATED = "obfuscated"


class ClickAction(Enum):
    OPEN_URL = "open_url"
    OPEN_FILE = "open_file"
    RUN_COMMAND = "run_command"
    SUGGEST_COMMAND = "suggest_command"
    CHANGE_PAGE = "change_page"
    COPY_TO_CLIPBOARD = "copy_to_clipboard"


class HoverAction(Enum):
    SHOW_TEXT = "show_text"


@dataclass(frozen=True, slots=True)
class Key:
    """A namespaced resource key such as ``minecraft:uniform``."""

    namespace: str
    value: str

    @classmethod
    def parse(cls, text: str, default_namespace: str = DEFAULT_NAMESPACE) -> Key:
        """Parse ``namespace:value`` or a bare value. Raises ValueError if invalid."""
        namespace, sep, value = text.partition(":")
        if not sep:
            namespace, value = default_namespace, text
        if not _NAMESPACE_RE.fullmatch(namespace):
            raise ValueError(f"invalid key namespace {namespace!r}")
        if not _KEY_VALUE_RE.fullmatch(value):
            raise ValueError(f"invalid key value {value!r}")
        return cls(namespace, value)

    def __str__(self) -> str:
        return f"{self.namespace}:{self.value}"


@dataclass(frozen=True, slots=True)
class ClickEvent:
    action: ClickAction
    value: str


@dataclass(frozen=True, slots=True)
class HoverEvent:
    action: HoverAction
    value: Node


@dataclass(frozen=True, slots=True)
class Style:
    """Visual and interactive attributes applied to a node.

    Colour, events, insertion and font are single-valued; decorations
    accumulate.
    """

    color: Color | None = None
    decorations: frozenset[Decoration] = frozenset()
    click: ClickEvent | None = None
    hover: HoverEvent | None = None
    insertion: str | None = None
    font: Key | None = None

    def merge(self, other: Style) -> Style:
        """Return this style overlaid with every field ``other`` sets."""
        return Style(
            color=other.color if other.color is not None else self.color,
            decorations=self.decorations | other.decorations,
            click=other.click if other.click is not None else self.click,
            hover=other.hover if other.hover is not None else self.hover,
            insertion=other.insertion if other.insertion is not None else self.insertion,
            font=other.font if other.font is not None else self.font,
        )

    def with_color(self, color: Color | None) -> Style:
        return replace(self, color=color)

    def is_empty(self) -> bool:
        return self == EMPTY_STYLE


EMPTY_STYLE = Style()


@dataclass(frozen=True, slots=True)
class Text:
    """Leaf node holding literal content."""

    content: str
    style: Style = field(default=EMPTY_STYLE)


@dataclass(frozen=True, slots=True)
class Keybind:
    """Leaf node naming a key binding, rendered client-side."""

    key: str
    style: Style = field(default=EMPTY_STYLE)


@dataclass(frozen=True, slots=True)
class Translatable:
    """Leaf node naming a translation key with positional argument trees."""

    key: str
    args: tuple[Node, ...] = ()
    style: Style = field(default=EMPTY_STYLE)


@dataclass(frozen=True, slots=True)
class Group:
    """Branch node: an ordered sequence of children sharing a base style."""

    children: tuple[Node, ...]
    style: Style = field(default=EMPTY_STYLE)


Node = Text | Keybind | Translatable | Group


def restyle(node: Node, ambient: Style) -> Node:
    """Return ``node`` with ``ambient`` merged beneath its own style."""
    return replace(node, style=ambient.merge(node.style))
