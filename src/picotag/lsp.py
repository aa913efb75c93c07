"""Minimal LSP server for picotag: diagnostics only."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from picotag import __version__
from picotag.errors import DepthLimitError, ErrorKind, ParseError
from picotag.parser import Parser

server = LanguageServer("picotag-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full)

_SEVERITY = {
    ErrorKind.UNTERMINATED_TAG: DiagnosticSeverity.Information,
    ErrorKind.DEPTH_EXCEEDED: DiagnosticSeverity.Error,
}


def _to_diagnostic(exc: ParseError) -> Diagnostic:
    return Diagnostic(
        range=Range(
            start=Position(line=exc.span.start.line - 1, character=exc.span.start.column - 1),
            end=Position(line=exc.span.end.line - 1, character=exc.span.end.column - 1),
        ),
        message=exc.message,
        severity=_SEVERITY.get(exc.kind, DiagnosticSeverity.Warning),
        code=exc.kind.value,
        source="picotag",
    )


def collect_diagnostics(source: str) -> list[Diagnostic]:
    """Parse ``source`` leniently and convert every problem to a Diagnostic."""
    parser = Parser.from_source(source)
    try:
        parser.parse()
    except DepthLimitError as exc:
        return [_to_diagnostic(d) for d in parser.diagnostics] + [_to_diagnostic(exc)]
    return [_to_diagnostic(d) for d in parser.diagnostics]


def _validate(ls: LanguageServer, uri: str) -> None:
    """Parse the document and publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=collect_diagnostics(doc.source))
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
