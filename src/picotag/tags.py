"""Tag registry: tag names, aliases, arity and argument binding."""

from __future__ import annotations

import math
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import ClassVar

from picotag.colors import DEFAULT_GRADIENT, Color, gradient, named_color, parse_color, rainbow
from picotag.errors import ErrorKind, TagArgumentError
from picotag.lexer import is_quoted, unquote
from picotag.nodes import (
    ClickAction,
    ClickEvent,
    Decoration,
    HoverAction,
    HoverEvent,
    Key,
    Node,
    Style,
)

# Alias map: alternate name -> canonical name
ALIASES: dict[str, str] = {
    "colour": "color",
    "c": "color",
    "b": "bold",
    "i": "italic",
    "em": "italic",
    "u": "underlined",
    "st": "strikethrough",
    "obf": "obfuscated",
    "tr": "lang",
    "translate": "lang",
    "grey": "gray",
    "dark_grey": "dark_gray",
}


def resolve_name(name: str) -> str:
    """Resolve an alias to its canonical (lower-case) name."""
    key = name.lower()
    return ALIASES.get(key, key)


# ---------------------------------------------------------------------------
# Binding results
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SetColor:
    color: Color
    category: ClassVar[str] = "color"

    def apply(self, style: Style) -> Style:
        return style.with_color(self.color)


@dataclass(frozen=True, slots=True)
class AddDecoration:
    decoration: Decoration

    @property
    def category(self) -> str:
        return self.decoration.value

    def apply(self, style: Style) -> Style:
        return Style(
            style.color,
            style.decorations | {self.decoration},
            style.click,
            style.hover,
            style.insertion,
            style.font,
        )


@dataclass(frozen=True, slots=True)
class SetClick:
    event: ClickEvent
    category: ClassVar[str] = "click"

    def apply(self, style: Style) -> Style:
        return style.merge(Style(click=self.event))


@dataclass(frozen=True, slots=True)
class SetHover:
    event: HoverEvent
    category: ClassVar[str] = "hover"

    def apply(self, style: Style) -> Style:
        return style.merge(Style(hover=self.event))


@dataclass(frozen=True, slots=True)
class SetInsertion:
    value: str
    category: ClassVar[str] = "insert"

    def apply(self, style: Style) -> Style:
        return style.merge(Style(insertion=self.value))


@dataclass(frozen=True, slots=True)
class SetFont:
    key: Key
    category: ClassVar[str] = "font"

    def apply(self, style: Style) -> Style:
        return style.merge(Style(font=self.key))


StyleEffect = SetColor | AddDecoration | SetClick | SetHover | SetInsertion | SetFont


@dataclass(frozen=True, slots=True)
class Rainbow:
    """Colours the literal text of its scope around the hue ring."""

    phase: int = 0
    category: ClassVar[str] = "rainbow"

    def colorize(self, text: str) -> list[Color]:
        return rainbow(text, self.phase)


@dataclass(frozen=True, slots=True)
class Gradient:
    """Colours the literal text of its scope across the given stops."""

    stops: tuple[Color, ...] = DEFAULT_GRADIENT
    phase: float = 0.0
    category: ClassVar[str] = "gradient"

    def colorize(self, text: str) -> list[Color]:
        return gradient(text, self.stops, self.phase)


TextEffect = Rainbow | Gradient


@dataclass(frozen=True, slots=True)
class InsertKeybind:
    key: str


@dataclass(frozen=True, slots=True)
class InsertTranslatable:
    key: str
    args: tuple[Node, ...] = ()


@dataclass(frozen=True, slots=True)
class Pre:
    category: ClassVar[str] = "pre"


@dataclass(frozen=True, slots=True)
class Reset:
    category: ClassVar[str] = "reset"


Effect = StyleEffect | TextEffect | InsertKeybind | InsertTranslatable | Pre | Reset


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BindContext:
    """What a binder may call back into: parsing nested argument markup."""

    parse_markup: Callable[[str], Node]


Binder = Callable[[str, tuple[str, ...], BindContext], Effect]


@dataclass(frozen=True, slots=True)
class TagDef:
    """Definition of a built-in tag."""

    name: str
    category: str
    min_args: int
    max_args: int | None
    binder: Binder
    terminal: bool = False

    def bind(self, name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
        """Check arity and bind ``args``. Raises TagArgumentError on failure."""
        if len(args) < self.min_args or (self.max_args is not None and len(args) > self.max_args):
            if self.max_args is None:
                expected = f"at least {self.min_args}"
            elif self.min_args == self.max_args:
                expected = str(self.min_args)
            else:
                expected = f"{self.min_args} to {self.max_args}"
            raise TagArgumentError(
                f"<{name}> takes {expected} argument(s), got {len(args)}",
                ErrorKind.ARITY_MISMATCH,
            )
        return self.binder(name, args, ctx)


class TagRegistry:
    """Read-only mapping from tag name to TagDef, with hex colour shorthand."""

    def __init__(self, defs: Mapping[str, TagDef]) -> None:
        self._defs = MappingProxyType(dict(defs))

    def lookup(self, name: str) -> TagDef | None:
        canonical = resolve_name(name)
        if canonical.startswith("#"):
            return _HEX_TAG
        return self._defs.get(canonical)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.lookup(name) is not None

    def __iter__(self) -> Iterator[str]:
        return iter(self._defs)

    def __len__(self) -> int:
        return len(self._defs)


# ---------------------------------------------------------------------------
# Binders
# ---------------------------------------------------------------------------


def _value(arg: str) -> str:
    try:
        return unquote(arg)
    except ValueError as exc:
        raise TagArgumentError(str(exc)) from None


def _remainder(args: tuple[str, ...]) -> str:
    """A single argument unquoted, or several segments rejoined with ':' (quoted ones verbatim)."""
    if len(args) == 1:
        return _value(args[0])
    for arg in args:
        if is_quoted(arg):
            _value(arg)
    return ":".join(arg if is_quoted(arg) else unquote(arg) for arg in args)


def _bind_named_color(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    color = named_color(resolve_name(name))
    assert color is not None
    return SetColor(color)


def _bind_hex_color(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    color = parse_color(name)
    if color is None:
        raise TagArgumentError(f"invalid hex colour {name!r}")
    return SetColor(color)


def _bind_color(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    text = _value(args[0])
    color = parse_color(text)
    if color is None:
        raise TagArgumentError(f"unknown colour {text!r}")
    return SetColor(color)


def _decoration_binder(decoration: Decoration) -> Binder:
    def bind(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
        return AddDecoration(decoration)

    return bind


def _bind_click(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    action_name = _value(args[0]).lower()
    try:
        action = ClickAction(action_name)
    except ValueError:
        raise TagArgumentError(f"unknown click action {action_name!r}") from None
    return SetClick(ClickEvent(action, _remainder(args[1:])))


def _bind_hover(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    action_name = _value(args[0]).lower()
    try:
        action = HoverAction(action_name)
    except ValueError:
        raise TagArgumentError(f"unknown hover action {action_name!r}") from None
    return SetHover(HoverEvent(action, ctx.parse_markup(_remainder(args[1:]))))


def _bind_insert(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    return SetInsertion(_remainder(args))


def _bind_font(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    text = ":".join(_value(a) for a in args)
    try:
        return SetFont(Key.parse(text))
    except ValueError as exc:
        raise TagArgumentError(f"invalid font: {exc}") from None


def _bind_key(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    key = _value(args[0])
    if not key:
        raise TagArgumentError("empty keybind")
    return InsertKeybind(key)


def _bind_lang(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    key = _value(args[0])
    if not key:
        raise TagArgumentError("empty translation key")
    return InsertTranslatable(key, tuple(ctx.parse_markup(_value(a)) for a in args[1:]))


def _bind_rainbow(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    if not args:
        return Rainbow()
    text = _value(args[0])
    try:
        return Rainbow(int(text))
    except ValueError:
        raise TagArgumentError(f"rainbow phase must be an integer, got {text!r}") from None


def _bind_gradient(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    if not args:
        return Gradient()
    values = [_value(a) for a in args]
    phase = _parse_phase(values[-1])
    if phase is not None:
        values.pop()
    else:
        phase = 0.0

    stops: list[Color] = []
    for value in values:
        color = parse_color(value)
        if color is None:
            raise TagArgumentError(f"unable to parse a colour from {value!r}")
        stops.append(color)
    if len(stops) < 2:
        raise TagArgumentError("a gradient needs at least two colours")
    return Gradient(tuple(stops), phase)


def _parse_phase(text: str) -> float | None:
    try:
        phase = float(text)
    except ValueError:
        return None
    if math.isnan(phase):
        return None
    if not -1.0 <= phase <= 1.0:
        raise TagArgumentError(f"gradient phase {text} is out of range [-1.0, 1.0]")
    return phase


def _bind_pre(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    return Pre()


def _bind_reset(name: str, args: tuple[str, ...], ctx: BindContext) -> Effect:
    return Reset()


_HEX_TAG = TagDef("#", "color", 0, 0, _bind_hex_color)


def _make_tags() -> dict[str, TagDef]:
    defs: dict[str, TagDef] = {}

    def d(
        name: str,
        category: str,
        binder: Binder,
        min_args: int = 0,
        max_args: int | None = 0,
        *,
        terminal: bool = False,
    ) -> None:
        defs[name] = TagDef(name, category, min_args, max_args, binder, terminal)

    # Colours
    for color_name in (
        "black",
        "dark_blue",
        "dark_green",
        "dark_aqua",
        "dark_red",
        "dark_purple",
        "gold",
        "gray",
        "dark_gray",
        "blue",
        "green",
        "aqua",
        "red",
        "light_purple",
        "yellow",
        "white",
    ):
        d(color_name, "color", _bind_named_color)
    d("color", "color", _bind_color, 1, 1)

    # Decorations
    for decoration in Decoration:
        d(decoration.value, decoration.value, _decoration_binder(decoration))

    # Events and style
    d("click", "click", _bind_click, 2, None)
    d("hover", "hover", _bind_hover, 2, None)
    d("insert", "insert", _bind_insert, 1, None)
    d("font", "font", _bind_font, 1, 2)

    # Content
    d("key", "key", _bind_key, 1, 1, terminal=True)
    d("lang", "lang", _bind_lang, 1, None, terminal=True)
    d("rainbow", "rainbow", _bind_rainbow, 0, 1)
    d("gradient", "gradient", _bind_gradient, 0, None)

    # Control
    d("pre", "pre", _bind_pre)
    d("reset", "reset", _bind_reset, terminal=True)

    return defs


TAGS: dict[str, TagDef] = _make_tags()

DEFAULT_REGISTRY = TagRegistry(TAGS)
