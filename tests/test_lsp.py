"""Tests for the LSP server: diagnostic generation."""

from __future__ import annotations

import pytest
from lsprotocol.types import (
    DiagnosticSeverity,
    PublishDiagnosticsParams,
    TextDocumentItem,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer
from pygls.workspace import Workspace

from picotag.lsp import _validate, collect_diagnostics

URI = "file:///motd.ptag"


@pytest.fixture
def lsp_env():
    """A LanguageServer with a workspace and captured published diagnostics."""
    ls = LanguageServer("test", "v0", text_document_sync_kind=TextDocumentSyncKind.Full)
    ws = Workspace(None)
    ls.protocol._workspace = ws

    published: list[PublishDiagnosticsParams] = []
    ls.text_document_publish_diagnostics = lambda params: published.append(params)

    def put(source: str, uri: str = URI) -> None:
        ws.put_text_document(
            TextDocumentItem(uri=uri, language_id="picotag", version=0, text=source)
        )

    return ls, published, put


class TestUnknownTags:
    def test_unknown_tag_is_warning(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("Hello <oof>world")
        _validate(ls, URI)

        assert len(published) == 1
        assert published[0].uri == URI
        diags = published[0].diagnostics
        assert len(diags) == 1
        d = diags[0]
        assert d.severity == DiagnosticSeverity.Warning
        assert "<oof>" in d.message
        assert d.code == "unknown-tag"
        assert d.source == "picotag"
        # <oof> starts at column 7 (1-based) -> character 6 (0-based)
        assert d.range.start.line == 0
        assert d.range.start.character == 6

    def test_position_on_later_line(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("<red>first\n  <oof>")
        _validate(ls, URI)

        d = published[0].diagnostics[0]
        assert d.range.start.line == 1
        assert d.range.start.character == 2


class TestSeverities:
    def test_unterminated_tag_is_information(self) -> None:
        diags = collect_diagnostics("I <3 you")
        assert len(diags) == 1
        assert diags[0].severity == DiagnosticSeverity.Information
        assert diags[0].code == "unterminated-tag"

    def test_unmatched_close_is_warning(self) -> None:
        diags = collect_diagnostics("text</bold>")
        assert [d.code for d in diags] == ["unmatched-close"]
        assert diags[0].severity == DiagnosticSeverity.Warning

    def test_bad_argument_is_warning(self) -> None:
        diags = collect_diagnostics("<click:explode:x>boom")
        assert [d.code for d in diags] == ["invalid-argument"]

    def test_depth_exceeded_is_error(self) -> None:
        source = "x"
        for _ in range(70):
            source = "<hover:show_text:'" + source.replace("'", "\\'") + "'>"
        diags = collect_diagnostics(source)
        assert diags[-1].severity == DiagnosticSeverity.Error
        assert diags[-1].code == "depth-exceeded"


class TestCleanDocument:
    def test_no_diagnostics(self, lsp_env) -> None:
        ls, published, put = lsp_env
        put("<gradient:#5e4fa2:#f79459>Welcome</gradient> <b>back</b>!")
        _validate(ls, URI)

        assert len(published) == 1
        assert published[0].diagnostics == []

    def test_auto_closed_tags_are_fine(self) -> None:
        assert collect_diagnostics("<red>never closed") == []
