# Ethan Doughty
# diagnostics.py
"""Structural diagnostics for SAS source.

These come straight out of the scanners: a block whose header has no
name, a step or macro that is never closed, a %mend with no %macro, and
comments or strings that run to the end of the buffer. Nothing here
interprets SAS semantics.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional

from frontend.buffer import COMMENT, SourceBuffer, Span
from analysis.blocks import MACRO_BOUNDARY_RE, is_keyword_match, is_open, iter_blocks
from model import Block, BlockKind

# ---------------
# Diagnostic dataclass
# ---------------

@dataclass(frozen=True)
class Diagnostic:
    """Structured warning/error diagnostic.

    Fields:
        line: Source line number (1-based)
        code: Warning code (e.g. "W_UNTERMINATED_BLOCK")
        message: Human-readable message (no line number prefix)
        col: Source column (1-based), 0 when unknown
        related_line: Optional related line (e.g. the opener of an open block)
    """
    line: int
    code: str
    message: str
    col: int = 0
    related_line: Optional[int] = None

    def __str__(self) -> str:
        if self.code:
            return f"{self.code} line {self.line}: {self.message}"
        return f"Line {self.line}: {self.message}"


def _position(buffer: SourceBuffer, offset: int):
    line = buffer.line_of(offset)
    return line + 1, offset - buffer.line_start(line) + 1

# ------------------------
# Warning message builders
# ------------------------

def warn_malformed_header(buffer: SourceBuffer, block: Block) -> Diagnostic:
    line, col = _position(buffer, block.start)
    is_macro = buffer.text[block.start:block.start + 6].lower() == "%macro"
    what = "macro definition" if is_macro else "procedure"
    return Diagnostic(
        line=line, col=col,
        code="W_MALFORMED_BLOCK_HEADER",
        message=f"{what} header has no name",
    )


def warn_unterminated_block(buffer: SourceBuffer, block: Block) -> Diagnostic:
    line, col = _position(buffer, block.start)
    closer = {
        BlockKind.PROC: "run; or quit;",
        BlockKind.DATA: "run;",
        BlockKind.MACRO: "%mend;",
    }[block.kind]
    return Diagnostic(
        line=line, col=col,
        code="W_UNTERMINATED_BLOCK",
        message=f"{block.describe()} is never closed by {closer}",
    )


def warn_unmatched_closer(buffer: SourceBuffer, offset: int) -> Diagnostic:
    line, col = _position(buffer, offset)
    return Diagnostic(
        line=line, col=col,
        code="W_UNMATCHED_CLOSER",
        message="%mend without a matching %macro",
    )


def warn_unterminated_span(buffer: SourceBuffer, span: Span) -> Diagnostic:
    line, col = _position(buffer, span.start)
    if span.kind == COMMENT:
        code, what = "W_UNTERMINATED_COMMENT", "comment"
    else:
        code, what = "W_UNTERMINATED_STRING", "string literal"
    return Diagnostic(
        line=line, col=col,
        code=code,
        message=f"{what} runs to the end of the file",
    )

# ------------------------
# Checks
# ------------------------

def _unmatched_mends(buffer: SourceBuffer) -> List[int]:
    found: List[int] = []
    depth = 0
    anchor = 0
    while True:
        m = buffer.search_forward(MACRO_BOUNDARY_RE, anchor)
        if m is None:
            return found
        anchor = m.end()
        if not is_keyword_match(buffer, m):
            continue
        if m.group(1).lower() == "%macro":
            depth += 1
        elif depth == 0:
            found.append(m.start())
        else:
            depth -= 1


def check_buffer(buffer: SourceBuffer) -> List[Diagnostic]:
    """All structural diagnostics for a buffer, ordered by position."""
    diags: List[Diagnostic] = []
    for span in buffer.spans:
        if not span.terminated:
            diags.append(warn_unterminated_span(buffer, span))
    for block in iter_blocks(buffer):
        if block.kind == BlockKind.ERROR:
            diags.append(warn_malformed_header(buffer, block))
        elif is_open(buffer, block):
            diags.append(warn_unterminated_block(buffer, block))
    for offset in _unmatched_mends(buffer):
        diags.append(warn_unmatched_closer(buffer, offset))
    diags.sort(key=lambda d: (d.line, d.col))
    return diags


def check_text(src: str) -> List[Diagnostic]:
    return check_buffer(SourceBuffer(src))
