"""Convert sasmode Diagnostic objects to LSP Diagnostic objects."""
from __future__ import annotations

from lsprotocol import types
from analysis.diagnostics import Diagnostic as SasDiagnostic

# Codes that mean the program cannot run as written
ERROR_CODES = {
    "W_MALFORMED_BLOCK_HEADER",
    "W_UNMATCHED_CLOSER",
    "W_UNTERMINATED_COMMENT",
    "W_UNTERMINATED_STRING",
}


def to_lsp_diagnostic(d: SasDiagnostic, source_lines: list[str], uri: str) -> types.Diagnostic:
    """Convert a sasmode Diagnostic to an LSP Diagnostic.

    Args:
        d: Diagnostic with 1-based line and column numbering
        source_lines: Source code split into lines (for range calculation)
        uri: Document URI for related_line locations

    Returns:
        LSP Diagnostic with 0-based line numbering
    """
    line_num = d.line - 1

    # Range runs from the reported column to the end of the line
    if 0 <= line_num < len(source_lines):
        end_char = len(source_lines[line_num])
    else:
        end_char = 0

    start_char = d.col - 1 if d.col > 0 else 0
    range_ = types.Range(
        start=types.Position(line=line_num, character=start_char),
        end=types.Position(line=line_num, character=max(start_char, end_char)),
    )

    if d.code in ERROR_CODES:
        severity = types.DiagnosticSeverity.Error
    else:
        severity = types.DiagnosticSeverity.Warning

    related_information = None
    if d.related_line is not None:
        related_line_num = d.related_line - 1
        if 0 <= related_line_num < len(source_lines):
            related_end_char = len(source_lines[related_line_num])
        else:
            related_end_char = 0

        related_range = types.Range(
            start=types.Position(line=related_line_num, character=0),
            end=types.Position(line=related_line_num, character=related_end_char),
        )
        related_information = [
            types.DiagnosticRelatedInformation(
                location=types.Location(uri=uri, range=related_range),
                message=f"Related: see line {d.related_line}",
            )
        ]

    return types.Diagnostic(
        range=range_,
        severity=severity,
        code=d.code if d.code else None,
        source="sasmode",
        message=d.message,
        related_information=related_information,
    )
