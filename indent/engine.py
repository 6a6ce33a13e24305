# Ethan Doughty
# engine.py
"""Precedence-grammar indentation engine.

The engine reads resolved tokens from the top of the buffer with a
shift/reduce parser driven by the grammar's precedence relations. The parse
stack holds exactly the enclosing constructs that are still open, so the
indentation of a line falls out of the stack at the moment the line is
reached:

- a line inside a multi-line comment or string keeps its indentation
- a line led by a closer (end, run, `)`) aligns with the construct it closes
- a line that starts a statement sits one level inside the innermost open
  block, or at column 0
- any other line continues a statement: under the open paren's first
  element, one level inside a hanging paren, or one level past the
  statement's own indentation

Columns of earlier lines are taken as if those lines had already been
reindented ("virtual" columns), so reindenting a region in one pass gives
the same result as indenting it line by line.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Tuple, Union

from frontend.buffer import SourceBuffer
from frontend.lexer import is_macro_call
from frontend.resolver import iter_resolved, next_code_token
from indent.grammar import EQ, GT, PrecedenceGrammar, SAS_GRAMMAR
from indent.rules import (
    AFTER, BEFORE, CONTINUATION, ELEMENT, INHERIT,
    IndentSettings, RuleTable, SAS_RULES,
)
from model import Token, TokenKind

_ATOM_KINDS = {TokenKind.IDENTIFIER, TokenKind.NUMBER, TokenKind.STRING}

# Step openers implicitly end an unterminated step
_STEP_OPENERS = ("proc", "data")

# Clauses that line up with the SQL select they belong to
_SQL_CLAUSES = ("from", "where", "group", "having", "order")

DEFAULT_SETTINGS = IndentSettings()


@dataclass
class _Entry:
    """One shifted terminal on the parse stack."""
    token: str
    pos: int
    line: int
    column: int        # virtual column of the token
    anchor: int        # column the construct's body is measured from
    hanging: bool = True                    # nothing follows it on its line
    follower_column: Optional[int] = None   # virtual column of what follows


class LineEdit(NamedTuple):
    """Replace the first `width` characters of `line` with `indent` spaces."""
    line: int
    width: int
    indent: int


class _IndentParser:
    """Single forward pass that records the target indentation of each line."""

    def __init__(self, buffer: SourceBuffer, settings: IndentSettings,
                 grammar: PrecedenceGrammar, rules: RuleTable):
        self.buffer = buffer
        self.settings = settings
        self.grammar = grammar
        self.rules = rules
        self.stack: List[_Entry] = []
        self.indents: Dict[int, int] = {}
        self.next_line = 0
        self.prev: Optional[Token] = None
        self.prev_line = -1
        self.pending: Optional[_Entry] = None
        self.stmt_line: Optional[int] = None
        self.stmt_first: Optional[Token] = None
        self.stmt_depth = 0
        self.sql_select: Optional[_Entry] = None

    # ----- driver -----

    def run(self, until_line: Optional[int] = None) -> Dict[int, int]:
        last = self.buffer.line_count - 1
        if until_line is not None:
            last = min(last, until_line)
        for tok in iter_resolved(self.buffer):
            line = self.buffer.line_of(tok.start)
            if line > last:
                break
            self._advance(line, tok)
            self._feed(tok, line)
        self._advance(last, None)
        return self.indents

    def _advance(self, line: int, tok: Optional[Token]) -> None:
        """Fix the indentation of every line up to and including `line`."""
        while self.next_line <= line:
            current = self.next_line
            lead = None
            if tok is not None and current == line and tok.start == self.buffer.indent_end(line):
                lead = tok
            self.indents[current] = self._line_indent(current, lead)
            self.next_line += 1

    # ----- parsing -----

    def _terminal(self, tok: Token) -> Optional[str]:
        if tok.kind in _ATOM_KINDS:
            return None
        norm = tok.norm
        if norm == "select" and next_code_token(self.buffer, tok.end).value not in ("(", ";"):
            # SQL select clause, not a data step select group
            return None
        return norm if self.grammar.is_terminal(norm) else None

    def _virtual_column(self, offset: int, line: int) -> int:
        tab = self.settings.tab_width
        actual = self.buffer.column(offset, tab) - self.buffer.indentation(line, tab)
        return actual + self.indents[line]

    def _feed(self, tok: Token, line: int) -> None:
        if self._call_complete() and line > self.prev_line:
            self._end_statement()

        column = self._virtual_column(tok.start, line)
        if self.pending is not None:
            if self.pending.line == line:
                self.pending.hanging = False
                self.pending.follower_column = column
            self.pending = None

        if self.stmt_line is None:
            self.stmt_line = line
            self.stmt_first = tok

        terminal = self._terminal(tok)
        if terminal is not None:
            self._shift(terminal, tok, line, column)
        elif tok.norm == "select" and tok.kind != TokenKind.STRING and not self.stmt_depth:
            # Not on the stack; only anchors the select list and its clauses
            self.sql_select = _Entry("select", tok.start, line, column, anchor=column)
            self.pending = self.sql_select

        self.prev = tok
        self.prev_line = line

    def _shift(self, terminal: str, tok: Token, line: int, column: int) -> None:
        if terminal in _STEP_OPENERS:
            self._close_open_step()
        if not self._reduce_for(terminal):
            return

        if terminal == "(":
            self.stmt_depth += 1
        elif terminal == ")":
            self.stmt_depth = max(0, self.stmt_depth - 1)

        entry = _Entry(terminal, tok.start, line, column,
                       anchor=self._anchor(terminal, line, column))
        top = self.stack[-1] if self.stack else None
        if (top is not None and top.token == terminal
                and self.grammar.relation(terminal, terminal) == EQ):
            # Collapse runs of associative separators (;  ,)
            entry.anchor = top.anchor
            self.stack[-1] = entry
        else:
            self.stack.append(entry)
        self.pending = entry

        if terminal == ";":
            self._start_statement()

    def _anchor(self, terminal: str, line: int, column: int) -> int:
        if self.rules.lookup(BEFORE, terminal) == INHERIT:
            return self.indents[line]
        return column

    def _pop_handle(self) -> None:
        popped = self.stack.pop()
        while self.stack and self.grammar.relation(self.stack[-1].token, popped.token) == EQ:
            popped = self.stack.pop()

    def _reduce_for(self, terminal: str) -> bool:
        """Reduce until `terminal` can be shifted. False means drop it."""
        while self.stack:
            rel = self.grammar.relation(self.stack[-1].token, terminal)
            if rel == GT:
                self._pop_handle()
                continue
            if rel is not None:
                return True
            # No relation: recover
            if terminal in self.grammar.closers:
                idx = self._innermost_opener_of(terminal)
                if idx is None:
                    return False
                del self.stack[idx + 1:]
                return True
            if terminal == ";":
                self.stack.pop()
                continue
            return True
        return terminal not in self.grammar.closers

    def _innermost_opener_of(self, closer: str) -> Optional[int]:
        for idx in range(len(self.stack) - 1, -1, -1):
            if self.grammar.pairs(self.stack[idx].token, closer):
                return idx
        return None

    def _open_step_index(self) -> Optional[int]:
        """Stack index of the innermost proc/data not shielded by a %macro."""
        for idx in range(len(self.stack) - 1, -1, -1):
            token = self.stack[idx].token
            if token == "%macro":
                return None
            if token in _STEP_OPENERS:
                return idx
        return None

    def _close_open_step(self) -> None:
        """A new step ends an unterminated proc/data step."""
        idx = self._open_step_index()
        if idx is not None:
            del self.stack[idx:]

    def _start_statement(self) -> None:
        self.stmt_line = None
        self.stmt_first = None
        self.stmt_depth = 0
        self.sql_select = None

    def _end_statement(self) -> None:
        """Close a macro-call statement that has no terminating `;`."""
        while self.stack and self.grammar.relation(self.stack[-1].token, ";") == GT:
            self._pop_handle()
        self._start_statement()

    def _call_complete(self) -> bool:
        first = self.stmt_first
        if first is None or not is_macro_call(first) or self.stmt_depth:
            return False
        return self.prev is first or (self.prev is not None and self.prev.value == ")")

    # ----- indentation queries -----

    def _line_indent(self, line: int, lead: Optional[Token]) -> int:
        buffer = self.buffer
        start = buffer.line_start(line)
        span = buffer.span_at(start)
        if span is not None and span.start < start:
            return buffer.indentation(line, self.settings.tab_width)

        if lead is not None:
            term = self._terminal(lead)
            if term in self.grammar.closers:
                idx = self._innermost_opener_of(term)
                if idx is not None:
                    return self.stack[idx].anchor + self._units(BEFORE, term)
            elif term in _STEP_OPENERS and self._at_statement_start():
                idx = self._open_step_index()
                if idx is not None:
                    return self.stack[idx].anchor

        if self._at_statement_start():
            return self._statement_indent()
        if lead is not None and self.sql_select is not None and lead.norm in _SQL_CLAUSES:
            return self.sql_select.column
        return self._continuation_indent()

    def _units(self, transition: str, token: str) -> int:
        offset = self.rules.lookup(transition, token)
        if not isinstance(offset, int):
            return 0
        return offset * self.settings.basic_offset

    def _at_statement_start(self) -> bool:
        if self.prev is None or self.prev.kind == TokenKind.STATEMENT_END:
            return True
        return self._call_complete()

    def _is_block_entry(self, entry: _Entry) -> bool:
        return entry.token in self.grammar.openers and entry.token != "("

    def _statement_indent(self) -> int:
        for entry in reversed(self.stack):
            if self._is_block_entry(entry) and isinstance(self.rules.lookup(AFTER, entry.token), int):
                return entry.anchor + self._units(AFTER, entry.token)
        return 0

    def _continuation_indent(self) -> int:
        base = self.indents.get(self.stmt_line, 0) if self.stmt_line is not None else 0
        step = self._units(ELEMENT, CONTINUATION)
        for entry in reversed(self.stack):
            if entry.token == ";" or self._is_block_entry(entry):
                break
            if entry.token == "(":
                if not entry.hanging and self.rules.lookup(ELEMENT, ",") == INHERIT:
                    return entry.follower_column
                return entry.anchor + self._units(AFTER, "(")
            after = self.rules.lookup(AFTER, entry.token)
            if after == INHERIT and entry.follower_column is not None:
                return entry.follower_column
            if isinstance(after, int):
                return base + step + after * self.settings.basic_offset
        select = self.sql_select
        if select is not None:
            if select.follower_column is not None:
                return select.follower_column
            return select.column + step
        return base + step


def _as_buffer(source: Union[SourceBuffer, str]) -> SourceBuffer:
    return source if isinstance(source, SourceBuffer) else SourceBuffer(source)


def compute_indents(source: Union[SourceBuffer, str],
                    settings: IndentSettings = DEFAULT_SETTINGS,
                    until_line: Optional[int] = None,
                    grammar: PrecedenceGrammar = SAS_GRAMMAR,
                    rules: RuleTable = SAS_RULES) -> Dict[int, int]:
    """Target indentation (in columns) of every line up to `until_line`."""
    buffer = _as_buffer(source)
    return _IndentParser(buffer, settings, grammar, rules).run(until_line)


def indent_for(source: Union[SourceBuffer, str], offset: int,
               settings: IndentSettings = DEFAULT_SETTINGS) -> int:
    """Target indentation column of the line containing `offset`.

    Args:
        source: Buffer or source text
        offset: Any position on the line (usually its start)
        settings: Basic offset and tab width

    Returns:
        Column the line's first non-blank character should sit at

    Raises:
        OutOfRange: offset outside the buffer
    """
    buffer = _as_buffer(source)
    line = buffer.line_of(offset)
    return compute_indents(buffer, settings, until_line=line)[line]


def _reindentable(buffer: SourceBuffer, line: int) -> bool:
    if buffer.is_blank_line(line):
        return False
    start = buffer.line_start(line)
    span = buffer.span_at(start)
    return span is None or span.start >= start


def indent_edits(source: Union[SourceBuffer, str], first_line: int = 0,
                 last_line: Optional[int] = None,
                 settings: IndentSettings = DEFAULT_SETTINGS) -> List[LineEdit]:
    """Indentation changes needed for lines first_line..last_line (inclusive)."""
    buffer = _as_buffer(source)
    if last_line is None or last_line >= buffer.line_count:
        last_line = buffer.line_count - 1
    indents = compute_indents(buffer, settings, until_line=last_line)
    edits: List[LineEdit] = []
    for line in range(max(first_line, 0), last_line + 1):
        if not _reindentable(buffer, line):
            continue
        width = buffer.indent_end(line) - buffer.line_start(line)
        prefix = buffer.text[buffer.line_start(line):buffer.indent_end(line)]
        target = indents[line]
        if prefix != " " * target:
            edits.append(LineEdit(line, width, target))
    return edits


def reindent(source: Union[SourceBuffer, str],
             settings: IndentSettings = DEFAULT_SETTINGS) -> str:
    """Whole buffer with every code line reindented; blank lines untouched."""
    buffer = _as_buffer(source)
    edits = {edit.line: edit for edit in indent_edits(buffer, settings=settings)}
    pieces: List[str] = []
    for line in range(buffer.line_count):
        start = buffer.line_start(line)
        end = buffer.line_end(line)
        text = buffer.text[start:end]
        edit = edits.get(line)
        if edit is not None:
            text = " " * edit.indent + text[edit.width:]
        pieces.append(text)
    return "\n".join(pieces)


def line_edit_range(buffer: SourceBuffer, edit: LineEdit) -> Tuple[int, int]:
    """(start, end) offsets the edit replaces."""
    start = buffer.line_start(edit.line)
    return start, start + edit.width
