"""picotag: inline tag markup to styled text."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from picotag.nodes import Node

__version__ = "0.1.0"


def parse(
    source: str,
    placeholders: Mapping[str, str | Node] | None = None,
    *,
    strict: bool = False,
    on_error: Callable[[str], None] | None = None,
) -> Node:
    """Parse markup into a styled-text tree."""
    from picotag.parser import parse as _parse

    return _parse(source, placeholders, strict=strict, on_error=on_error)


def strip_tokens(source: str) -> str:
    """Remove every tag from markup, keeping only its text."""
    from picotag.escaping import strip_tokens as _strip

    return _strip(source)


def escape_tokens(source: str) -> str:
    """Escape every tag in markup so that it parses as literal text."""
    from picotag.escaping import escape_tokens as _escape

    return _escape(source)
