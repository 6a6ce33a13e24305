# Ethan Doughty
# statements.py
"""Statement boundary scanning.

A SAS statement ends at the next `;` that is real code. Semicolons inside
comments and string literals are skipped: the search is retried from the
far edge of the span that swallowed the match, so every retry strictly
moves the anchor and a scan costs at most one pass over the document.
"""

from __future__ import annotations
import re
from typing import Optional, Tuple

from frontend.buffer import SourceBuffer

_TERMINATOR_RE = re.compile(";")
_BLANKS = " \t\r\n\f\v"


def find_terminator(buffer: SourceBuffer, anchor: int, backward: bool) -> Optional[int]:
    """Offset of the nearest code `;` before (or at/after) `anchor`.

    Returns None when the scan reaches the buffer edge.
    """
    while True:
        if backward:
            m = buffer.search_backward(_TERMINATOR_RE, anchor)
        else:
            m = buffer.search_forward(_TERMINATOR_RE, anchor)
        if m is None:
            return None
        span = buffer.span_at(m.start())
        if span is None:
            return m.start()
        # Rejected: resume from the edge of the comment/string
        anchor = span.start if backward else span.end


def skip_blanks(buffer: SourceBuffer, pos: int) -> int:
    text = buffer.text
    while pos < len(text) and text[pos] in _BLANKS:
        pos += 1
    return pos


def beginning_of_statement(buffer: SourceBuffer, offset: int) -> int:
    """Start of the statement containing `offset`.

    Lands just after the previous code `;` (or at buffer start) and skips
    leading whitespace, so applying it twice gives the same offset.
    """
    buffer.check_offset(offset)
    semi = find_terminator(buffer, offset, backward=True)
    pos = 0 if semi is None else semi + 1
    return skip_blanks(buffer, pos)


def end_of_statement(buffer: SourceBuffer, offset: int) -> int:
    """Offset just past the next code `;`, or end of buffer."""
    buffer.check_offset(offset)
    semi = find_terminator(buffer, offset, backward=False)
    return len(buffer) if semi is None else semi + 1


def statement_bounds(buffer: SourceBuffer, offset: int) -> Tuple[int, int]:
    """(start, end) of the statement containing `offset`.

    An offset in the blank run before a statement belongs to that statement.
    """
    start = beginning_of_statement(buffer, offset)
    return start, end_of_statement(buffer, max(start, offset))
