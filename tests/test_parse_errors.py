"""Tests for strict-mode errors, lenient diagnostics, depth limits and formatting."""

from __future__ import annotations

import pytest

from picotag.errors import DepthLimitError, ErrorKind, ParseError
from picotag.nodes import Decoration, Text
from picotag.parser import Parser, ParserOptions, parse
from picotag.render import plain_text

from .conftest import children, color, group, leaf_colors, text

NON_STRICT_EXAMPLE = (
    "<gray>Example: <click:suggest_command:/plot flag set coral-dry true>"
    "<gold>/plot flag set coral-dry true<click></gold></gray>"
)


class TestStrict:
    def test_unknown_tag(self, parse_strict):
        with pytest.raises(ParseError) as exc_info:
            parse_strict("<test>")
        assert exc_info.value.kind == ErrorKind.UNKNOWN_TAG
        assert exc_info.value.token == "<test>"

    def test_unknown_close(self, parse_strict):
        with pytest.raises(ParseError, match="unknown closing tag"):
            parse_strict("a</oof>")

    def test_arity(self, parse_strict):
        with pytest.raises(ParseError) as exc_info:
            parse_strict(NON_STRICT_EXAMPLE)
        assert exc_info.value.kind == ErrorKind.ARITY_MISMATCH
        assert exc_info.value.token == "<click>"

    def test_invalid_argument(self, parse_strict):
        with pytest.raises(ParseError) as exc_info:
            parse_strict("<color:purple>x")
        assert exc_info.value.kind == ErrorKind.INVALID_ARGUMENT

    def test_unmatched_close(self, parse_strict):
        with pytest.raises(ParseError) as exc_info:
            parse_strict("a</bold>")
        assert exc_info.value.kind == ErrorKind.UNMATCHED_CLOSE

    def test_missing_close_of_hover(self, parse_strict):
        source = (
            "<hover:show_text:'<blue>Hello</blue>'<red>TEST</red></hover>"
            "<click:suggest_command:'/msg <user>'><user></click> <reset>: "
            "<hover:show_text:'<date>'><message></hover>"
        )
        with pytest.raises(ParseError):
            parse_strict(source)

    def test_error_in_argument_markup(self, parse_strict):
        with pytest.raises(ParseError) as exc_info:
            parse_strict("<hover:show_text:'<oof>'>x")
        err = exc_info.value
        assert err.message.startswith("in argument of <hover>:")
        assert err.kind == ErrorKind.UNKNOWN_TAG
        assert err.token == "<hover:show_text:'<oof>'>"
        assert err.span.start.column == 1

    def test_well_formed_input_passes(self, parse_strict):
        parse_strict("<yellow>TEST<green> nested</green>Test")

    def test_unterminated_tag_is_not_fatal(self, parse_strict):
        assert parse_strict("<red is already") == Text("<red is already")


class TestLenient:
    @pytest.mark.parametrize(
        "source",
        ["<test>", "a</oof>", NON_STRICT_EXAMPLE, "<color:purple>x", "a</bold>"],
    )
    def test_never_raises(self, parse_lenient, source):
        parse_lenient(source)

    def test_callback_receives_messages(self, reported):
        messages, parse_ = reported
        parse_("<test>a</bold>")
        assert len(messages) == 2
        assert "unknown tag <test>" in messages[0]
        assert "</bold>" in messages[1]

    def test_unterminated_tag_message(self, reported):
        messages, parse_ = reported
        parse_("<red is already created! Try different name! :)")
        assert len(messages) == 1
        assert "unterminated tag" in messages[0]

    def test_auto_close_is_silent(self, reported):
        messages, parse_ = reported
        parse_("<yellow>TEST<green> nested<yellow>Test")
        assert messages == []

    def test_argument_diagnostics_are_forwarded(self, reported):
        messages, parse_ = reported
        parse_("<hover:show_text:'<oof>'>x")
        assert messages == ["in argument of <hover>: unknown tag <oof>"]


class TestUnclosedAtEnd:
    def test_strict_reports_without_raising(self, reported):
        messages, parse_ = reported
        parse_("<red>x", strict=True)
        assert messages == ["tag <red> is never closed"]

    def test_require_closed_raises(self):
        options = ParserOptions(strict=True, require_closed=True)
        with pytest.raises(ParseError) as exc_info:
            parse("<red>x", options=options)
        assert exc_info.value.kind == ErrorKind.UNCLOSED_AT_END

    def test_require_closed_accepts_closed_input(self):
        options = ParserOptions(strict=True, require_closed=True)
        parse("<red>x</red>", options=options)


class TestDepthLimit:
    def test_nested_arguments(self):
        source = "x"
        for _ in range(70):
            source = "<hover:show_text:'" + source.replace("'", "\\'") + "'>"
        with pytest.raises(DepthLimitError):
            parse(source)

    def test_raised_in_lenient_mode(self):
        options = ParserOptions(max_depth=1)
        with pytest.raises(DepthLimitError) as exc_info:
            parse("<hover:show_text:\"<hover:show_text:'x'>y\">z", options=options)
        assert exc_info.value.kind == ErrorKind.DEPTH_EXCEEDED

    def test_within_limit(self):
        options = ParserOptions(max_depth=2)
        parse("<hover:show_text:\"<hover:show_text:'x'>y\">z", options=options)

    def test_too_many_open_tags_strict(self):
        options = ParserOptions(strict=True, max_scopes=3)
        with pytest.raises(DepthLimitError):
            parse("<b><i><u><red>x", options=options)

    def test_too_many_open_tags_lenient(self):
        parser = Parser.from_source("<b><i><u><red>x", options=ParserOptions(max_scopes=3))
        result = parser.parse()
        assert plain_text(result) == "<red>x"
        assert [d.kind for d in parser.diagnostics] == [ErrorKind.DEPTH_EXCEEDED]
        assert all(leaf.style.color is None for leaf in children(result))

    def test_overridden_scope_is_dropped_at_limit(self):
        options = ParserOptions(max_scopes=3)
        assert parse("<red>a<blue>b<green>c<b>d", options=options) == group(
            text("a", "red"),
            text("b", "blue"),
            text("c", "green"),
            text("d", "green", Decoration.BOLD),
        )

    def test_many_sibling_colors_never_raise(self, reported):
        messages, parse_ = reported
        result = parse_("<red>a<blue>b" * 600)
        assert messages == []
        assert leaf_colors(result) == [color("red").value, color("blue").value] * 600

    def test_closed_tags_free_their_scope(self):
        options = ParserOptions(max_scopes=1)
        parse("<b>a</b><i>b</i><u>c", options=options)


class TestFormatting:
    def test_format_contains_line_and_carets(self, parse_strict):
        with pytest.raises(ParseError) as exc_info:
            parse_strict("hello\nsome <oof> text")
        formatted = exc_info.value.format("chat.txt")
        assert formatted.startswith("error: unknown tag <oof>")
        assert "--> chat.txt:2:6" in formatted
        assert "some <oof> text" in formatted
        assert "^^^^^" in formatted

    def test_str_is_formatted(self, parse_strict):
        with pytest.raises(ParseError) as exc_info:
            parse_strict("<oof>")
        assert "<input>:1:1" in str(exc_info.value)
