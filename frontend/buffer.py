# Ethan Doughty
# buffer.py
"""Immutable SAS source buffer.

The buffer is the only view the scanners have of the document: random
access by offset, regex search in either direction, line geometry, and the
comment/string context of any offset. Comment and string spans are found
once, when the buffer is built; an edit produces a new buffer.

Lexical rules for spans:
- /* ... */ is a comment anywhere in code (unterminated: runs to the end)
- * ... ; and %* ... ; are comments only at statement start; the span stops
  before the ';', which remains a real statement terminator
- '...' and "..." are strings with no escapes; a doubled quote stays inside
  the same literal
"""

from __future__ import annotations
import bisect
import re
from dataclasses import dataclass
from typing import List, Optional, Pattern, Tuple, Union

from model import SyntaxContext, OutOfRange

COMMENT = "comment"
STRING = "string"

_WHITESPACE = " \t\r\n\f\v"


@dataclass(frozen=True)
class Span:
    """Comment or string literal region [start, end)."""
    kind: str
    start: int
    end: int
    terminated: bool = True

    def covers(self, offset: int) -> bool:
        if self.start <= offset < self.end:
            return True
        # An unterminated span also owns the end-of-buffer position
        return not self.terminated and offset == self.end


def _string_end(text: str, start: int) -> Tuple[int, bool]:
    """Return (end, terminated) for the literal opened at text[start]."""
    quote = text[start]
    i = start + 1
    n = len(text)
    while i < n:
        if text[i] == quote:
            if i + 1 < n and text[i + 1] == quote:
                i += 2
                continue
            return i + 1, True
        i += 1
    return n, False


def scan_spans(text: str) -> List[Span]:
    """Find every comment and string span in document order."""
    spans: List[Span] = []
    n = len(text)
    i = 0
    stmt_start = True  # only whitespace/comments since the last ';'
    while i < n:
        c = text[i]
        if c in _WHITESPACE:
            i += 1
            continue
        if text.startswith("/*", i):
            close = text.find("*/", i + 2)
            end = n if close < 0 else close + 2
            spans.append(Span(COMMENT, i, end, close >= 0))
            i = end
            continue
        if stmt_start and (c == "*" or text.startswith("%*", i)):
            semi = text.find(";", i)
            end = n if semi < 0 else semi
            spans.append(Span(COMMENT, i, end, semi >= 0))
            i = end
            continue
        if c == "'" or c == '"':
            end, terminated = _string_end(text, i)
            spans.append(Span(STRING, i, end, terminated))
            stmt_start = False
            i = end
            continue
        stmt_start = c == ";"
        i += 1
    return spans


class SourceBuffer:
    """Read-only SAS document with precomputed lexical spans."""

    def __init__(self, text: str):
        self._text = text
        self._spans = scan_spans(text)
        self._span_starts = [s.start for s in self._spans]
        self._line_starts = [0] + [m.end() for m in re.finditer(r"\n", text)]
        self._paren_pos, self._paren_depth = self._scan_parens()

    def _scan_parens(self) -> Tuple[List[int], List[int]]:
        positions: List[int] = []
        depths: List[int] = []
        depth = 0
        for m in re.finditer(r"[()]", self._text):
            if self.span_at(m.start()) is not None:
                continue
            depth = depth + 1 if m.group() == "(" else max(0, depth - 1)
            positions.append(m.start())
            depths.append(depth)
        return positions, depths

    # ----- basic access -----

    @property
    def text(self) -> str:
        return self._text

    def __len__(self) -> int:
        return len(self._text)

    def check_offset(self, offset: int) -> int:
        """Validate a position (0..len inclusive) and return it."""
        if offset is None or not (0 <= offset <= len(self._text)):
            raise OutOfRange(offset, len(self._text))
        return offset

    def char_at(self, offset: int) -> str:
        if not (0 <= offset < len(self._text)):
            raise OutOfRange(offset, len(self._text))
        return self._text[offset]

    def substring(self, start: int, end: int) -> str:
        return self._text[self.check_offset(start):self.check_offset(end)]

    # ----- search -----

    def search_forward(self, pattern: Union[str, Pattern], start: int,
                       end: Optional[int] = None) -> Optional[re.Match]:
        """First match starting at or after `start` (and ending by `end`)."""
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        self.check_offset(start)
        if end is None:
            return regex.search(self._text, start)
        return regex.search(self._text, start, self.check_offset(end))

    def search_backward(self, pattern: Union[str, Pattern], start: int,
                        limit: int = 0) -> Optional[re.Match]:
        """Nearest match that begins before `start` and ends at or before it.

        Candidate positions are tried from start-1 down to `limit`, so the
        match beginning closest to `start` wins.
        """
        regex = re.compile(pattern) if isinstance(pattern, str) else pattern
        self.check_offset(start)
        for pos in range(start - 1, max(limit, 0) - 1, -1):
            m = regex.match(self._text, pos)
            if m and m.end() <= start:
                return m
        return None

    # ----- lexical context -----

    @property
    def spans(self) -> Tuple[Span, ...]:
        return tuple(self._spans)

    def span_at(self, offset: int) -> Optional[Span]:
        """Comment or string span owning `offset`, if any."""
        k = bisect.bisect_right(self._span_starts, offset) - 1
        if k >= 0 and self._spans[k].covers(offset):
            return self._spans[k]
        return None

    def next_span_start(self, offset: int) -> Optional[int]:
        """Start of the first span beginning at or after `offset`."""
        k = bisect.bisect_left(self._span_starts, offset)
        return self._span_starts[k] if k < len(self._span_starts) else None

    def paren_depth(self, offset: int) -> int:
        """Parenthesis nesting of the character at `offset`."""
        k = bisect.bisect_left(self._paren_pos, offset)
        return self._paren_depth[k - 1] if k > 0 else 0

    def syntax_context(self, offset: int) -> SyntaxContext:
        self.check_offset(offset)
        depth = self.paren_depth(offset)
        span = self.span_at(offset)
        if span is None:
            return SyntaxContext(depth=depth)
        return SyntaxContext(
            depth=depth,
            in_comment=span.kind == COMMENT,
            in_string=span.kind == STRING,
            span_start=span.start,
        )

    def in_code(self, offset: int) -> bool:
        return self.span_at(self.check_offset(offset)) is None

    # ----- line geometry -----

    @property
    def line_count(self) -> int:
        return len(self._line_starts)

    def line_of(self, offset: int) -> int:
        """Zero-based line containing `offset`."""
        self.check_offset(offset)
        return bisect.bisect_right(self._line_starts, offset) - 1

    def line_start(self, line: int) -> int:
        return self._line_starts[line]

    def line_end(self, line: int) -> int:
        """Offset of the line's newline, or end of buffer."""
        if line + 1 < len(self._line_starts):
            return self._line_starts[line + 1] - 1
        return len(self._text)

    def line_bounds(self, offset: int) -> Tuple[int, int]:
        line = self.line_of(offset)
        return self.line_start(line), self.line_end(line)

    def indent_end(self, line: int) -> int:
        """Offset of the first non-blank character of `line` (or line end)."""
        i = self.line_start(line)
        end = self.line_end(line)
        while i < end and self._text[i] in " \t\f\v\r":
            i += 1
        return i

    def column(self, offset: int, tab_width: int = 8) -> int:
        start = self.line_start(self.line_of(offset))
        return len(self._text[start:offset].expandtabs(tab_width))

    def indentation(self, line: int, tab_width: int = 8) -> int:
        return self.column(self.indent_end(line), tab_width)

    def is_blank_line(self, line: int) -> bool:
        return self.indent_end(line) == self.line_end(line)
