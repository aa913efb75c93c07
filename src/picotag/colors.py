"""Colour values, named colours and the gradient/rainbow interpolation engine."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class Color:
    """A 24-bit RGB colour.

    ``name`` is set when the value is one of the named colours. It is
    informational only: colours compare equal by value.
    """

    value: int
    name: str | None = field(default=None, compare=False)

    @classmethod
    def from_rgb(cls, red: int, green: int, blue: int) -> Color:
        return cls((red & 0xFF) << 16 | (green & 0xFF) << 8 | (blue & 0xFF))

    @property
    def red(self) -> int:
        return self.value >> 16 & 0xFF

    @property
    def green(self) -> int:
        return self.value >> 8 & 0xFF

    @property
    def blue(self) -> int:
        return self.value & 0xFF

    def as_hex(self) -> str:
        return f"#{self.value:06x}"

    def __str__(self) -> str:
        return self.name or self.as_hex()


def _named(name: str, value: int) -> Color:
    return Color(value, name)


NAMED_COLORS: dict[str, Color] = {
    c.name: c  # type: ignore[misc]
    for c in (
        _named("black", 0x000000),
        _named("dark_blue", 0x0000AA),
        _named("dark_green", 0x00AA00),
        _named("dark_aqua", 0x00AAAA),
        _named("dark_red", 0xAA0000),
        _named("dark_purple", 0xAA00AA),
        _named("gold", 0xFFAA00),
        _named("gray", 0xAAAAAA),
        _named("dark_gray", 0x555555),
        _named("blue", 0x5555FF),
        _named("green", 0x55FF55),
        _named("aqua", 0x55FFFF),
        _named("red", 0xFF5555),
        _named("light_purple", 0xFF55FF),
        _named("yellow", 0xFFFF55),
        _named("white", 0xFFFFFF),
    )
}

COLOR_ALIASES: dict[str, str] = {
    "grey": "gray",
    "dark_grey": "dark_gray",
}

_BY_VALUE: dict[int, Color] = {c.value: c for c in NAMED_COLORS.values()}


def named_color(name: str) -> Color | None:
    """Look up a named colour (case-insensitive, aliases allowed)."""
    key = name.lower()
    return NAMED_COLORS.get(COLOR_ALIASES.get(key, key))


def parse_color(text: str) -> Color | None:
    """Parse ``#rrggbb`` or a colour name. Returns None when unrecognised."""
    if text.startswith("#"):
        digits = text[1:]
        if len(digits) != 6 or any(ch not in "0123456789abcdefABCDEF" for ch in digits):
            return None
        return Color(int(digits, 16))
    return named_color(text)


def snap(value: int) -> Color:
    """Return the named colour with this exact value, or a plain colour."""
    return _BY_VALUE.get(value) or Color(value)


# ---------------------------------------------------------------------------
# Interpolation
# ---------------------------------------------------------------------------


def _f32(value: float) -> float:
    """Round to single precision; the reference sequences depend on it."""
    return struct.unpack("f", struct.pack("f", value))[0]


def _round(value: float) -> int:
    return math.floor(value + 0.5)


def utf16_length(text: str) -> int:
    """Length of ``text`` in UTF-16 code units."""
    return len(text) + sum(1 for ch in text if ord(ch) > 0xFFFF)


def rainbow(text: str, phase: int = 0) -> list[Color]:
    """Return one colour per code point of ``text`` around the hue ring.

    Each channel is a sine wave over the text, offset by 2 and 4 radians for
    red and blue; ``phase`` rotates all three.
    """
    size = utf16_length(text)
    if size == 0:
        return []
    frequency = math.pi * 2 / size
    colors = []
    for index in range(len(text)):
        angle = frequency * index + phase
        colors.append(
            Color.from_rgb(
                int(math.sin(angle + 2) * 127 + 128),
                int(math.sin(angle) * 127 + 128),
                int(math.sin(angle + 4) * 127 + 128),
            )
        )
    return colors


def _interpolate(start: Color, end: Color, factor: float) -> Color:
    def channel(a: int, b: int) -> int:
        return _round(_f32(a + _f32(factor * (b - a))))

    return snap(
        channel(start.red, end.red) << 16
        | channel(start.green, end.green) << 8
        | channel(start.blue, end.blue)
    )


DEFAULT_GRADIENT: tuple[Color, ...] = (Color(0xFFFFFF), Color(0x000000))


def gradient(text: str, stops: tuple[Color, ...] = DEFAULT_GRADIENT, phase: float = 0.0) -> list[Color]:
    """Return one colour per code point of ``text`` across ``stops``.

    The text is split into ``len(stops) - 1`` equal sectors. ``phase`` in
    [-1, 1] shifts the sampling point within a sector; samples past the end of
    a sector reflect back into it. A negative phase wraps to ``1 + phase`` and,
    for an odd number of stops, walks each sector in reverse.
    """
    if len(stops) < 2:
        raise ValueError("a gradient needs at least two colours")
    size = utf16_length(text)
    if size == 0:
        return []

    phase = _f32(phase)
    negative = phase < 0
    if negative:
        phase = _f32(1 + phase)
    reverse = negative and len(stops) % 2 != 0

    sector = max(1, size // (len(stops) - 1))
    step = _f32(1.0 / sector)
    phase = _f32(phase * sector)

    colors = []
    index = 0
    stop_index = 0
    for _ in text:
        if _f32(step * index) > 1:
            stop_index = min(stop_index + 1, len(stops) - 2)
            index = 0
        factor = _f32(step * _f32(index + phase))
        index += 1
        if factor > 1:
            factor = _f32(1 - _f32(factor - 1))

        start, end = stops[stop_index], stops[stop_index + 1]
        if reverse:
            start, end = end, start
        colors.append(_interpolate(start, end, factor))
    return colors
