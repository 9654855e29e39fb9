from typing import List, Optional

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    TEXT_DOCUMENT_HOVER,
    Diagnostic,
    DiagnosticSeverity,
    Hover,
    MarkupContent,
    MarkupKind,
    Position,
    Range,
)
from pygls.server import LanguageServer

from .core.classes import AnalysisResult, ErrorType
from .exceptions import LexicalError
from .lexer.lexer import tokenize
from .pipeline import analyze
from .symbol_table import build_symbol_table
from .utils import offset_to_line_column

server = LanguageServer("exa-server", "v1")


def _offset_to_position(source: str, offset: int) -> Position:
    """Converts a 0-based character offset into an LSP line/character position."""
    line, character = offset_to_line_column(source, offset)
    return Position(line=line, character=character)


def _position_to_offset(source: str, position: Position) -> int:
    lines = source.split("\n")
    line = min(position.line, len(lines) - 1)
    return sum(len(l) + 1 for l in lines[:line]) + min(position.character, len(lines[line]))


def _error_offset(source: str, result: AnalysisResult) -> Optional[int]:
    if result.errors:
        return result.errors[0].position
    # Lexical failures carry no token list, the position comes from the lexer itself.
    if result.error_type is ErrorType.LEXICAL_ERROR:
        try:
            tokenize(source)
        except LexicalError as e:
            return e.position
    return None


def build_diagnostics(source: str, result: Optional[AnalysisResult] = None) -> List[Diagnostic]:
    """
    Runs the analysis and converts the reported error, if any, into a single
    LSP diagnostic one character wide. Blank documents produce no diagnostics.
    """
    if not source.strip():
        return []

    if result is None:
        result = analyze(source)
    if result.success:
        return []

    offset = _error_offset(source, result)
    if offset is None:
        start = Position(line=0, character=0)
        end = _offset_to_position(source, len(source))
    else:
        start = _offset_to_position(source, offset)
        end = Position(line=start.line, character=start.character + 1)

    return [Diagnostic(range=Range(start=start, end=end), message=result.message, severity=DiagnosticSeverity.Error, source="exa")]


def describe_symbol_at(source: str, offset: int) -> Optional[str]:
    """Returns a markdown description of the symbol table entry for the token at `offset`."""
    try:
        table = build_symbol_table(tokenize(source))
    except LexicalError:
        return None

    entry = table.entry_at(offset)
    if entry is None:
        return None

    occurrences = ", ".join(str(p) for p in entry.occurrences)
    return "\n".join(
        [
            f"```\n({entry.type.value}) {entry.token}\n```",
            "---",
            f"First occurrence: {entry.first_occurrence}",
            f"Occurrences ({len(entry.occurrences)}): {occurrences}",
        ]
    )


def _validate(ls, params):
    text_doc = ls.workspace.get_document(params.text_document.uri)
    ls.publish_diagnostics(params.text_document.uri, build_diagnostics(text_doc.source))


@server.feature(TEXT_DOCUMENT_DID_OPEN)
async def did_open(ls, params):
    _validate(ls, params)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls, params):
    _validate(ls, params)


@server.feature(TEXT_DOCUMENT_HOVER)
def hover(params):
    document = server.workspace.get_document(params.text_document.uri)
    source = document.source
    description = describe_symbol_at(source, _position_to_offset(source, params.position))
    if description is None:
        return None
    return Hover(contents=MarkupContent(kind=MarkupKind.Markdown, value=description))


def start_server():
    server.start_io()


if __name__ == "__main__":
    start_server()
