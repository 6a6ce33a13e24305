# Ethan Doughty
# blocks.py
"""Block boundary location: proc steps, data steps and macro definitions.

Instead of parsing the whole document, the locator works outward from the
cursor: snap to the end of the current statement, search backward for the
nearest step/macro keyword, then search forward for the matching closer.

A keyword match only counts when it is real code and begins a statement
(the previous code token is `;` or there is none). Leading whitespace is not
required, so a keyword at buffer start qualifies. Rejected matches are
retried from the match start (backward) or end (forward), so each retry
strictly moves the anchor.
"""

from __future__ import annotations
import re
from dataclasses import replace
from typing import Iterator, Optional, Pattern, Tuple

from frontend.buffer import SourceBuffer
from frontend.resolver import (
    DATAEQUAL, forward_token, next_code_token, previous_code_token,
)
from analysis.statements import end_of_statement
from model import Block, BlockKind, TokenKind

_WORD_EDGE_BEFORE = r"(?<![\w%&.])"
_WORD_EDGE_AFTER = r"(?![\w&.])"


def _keyword_re(*words: str) -> Pattern:
    alternatives = "|".join(re.escape(w) for w in words)
    return re.compile(f"{_WORD_EDGE_BEFORE}({alternatives}){_WORD_EDGE_AFTER}",
                      re.IGNORECASE)


BLOCK_KEYWORD_RE = _keyword_re("%macro", "%mend", "proc", "data", "run", "quit")
OPENER_RE = _keyword_re("%macro", "proc", "data")
STEP_CLOSER_RE = _keyword_re("run", "quit")
MACRO_BOUNDARY_RE = _keyword_re("%macro", "%mend")

_NAME_KINDS = {TokenKind.IDENTIFIER, TokenKind.KEYWORD}


def starts_statement(buffer: SourceBuffer, offset: int) -> bool:
    """True if no code token other than `;` precedes `offset` in its statement."""
    prev = previous_code_token(buffer, offset)
    return prev.kind in (TokenKind.EOF, TokenKind.STATEMENT_END)


def _is_assignment_target(buffer: SourceBuffer, offset: int) -> bool:
    """True if the word ending at `offset` is followed by `=` (`run = 1;`)."""
    tok = next_code_token(buffer, offset)
    return tok.kind == TokenKind.OPERATOR and tok.value == "="


def is_keyword_match(buffer: SourceBuffer, m: re.Match) -> bool:
    if not (buffer.in_code(m.start()) and starts_statement(buffer, m.start())):
        return False
    # `data =` is classified (and rejected) as a data-assignment
    return m.group(1).lower() == "data" or not _is_assignment_target(buffer, m.end())


def _header_name(buffer: SourceBuffer, offset: int) -> Optional[str]:
    """Name word following a `proc` / `%macro` keyword, if any."""
    tok, _ = forward_token(buffer, offset)
    if tok.kind in _NAME_KINDS and tok.value != DATAEQUAL:
        return tok.value
    return None


def classify_match(buffer: SourceBuffer, m: re.Match) -> Block:
    """Turn a keyword match into a Block (start/header only, end unset)."""
    start = m.start()
    word = m.group(1).lower()
    header_end = end_of_statement(buffer, start)

    if word == "data":
        tok, _ = forward_token(buffer, start)
        if tok.value == DATAEQUAL:
            return Block(BlockKind.DATA_ASSIGNMENT, start, header_end=header_end)
        return Block(BlockKind.DATA, start, header_end=header_end)

    if word in ("proc", "%macro"):
        kind = BlockKind.PROC if word == "proc" else BlockKind.MACRO
        name = _header_name(buffer, m.end())
        if name is None:
            return Block(BlockKind.ERROR, start, end=header_end, header_end=header_end)
        return Block(kind, start, name=name, header_end=header_end)

    if word == "%mend":
        tok = next_code_token(buffer, m.end())
        name = tok.value if tok.kind == TokenKind.IDENTIFIER else None
        return Block(BlockKind.CLOSING_MACRO, start, end=header_end, name=name,
                     header_end=header_end)

    # run / quit
    return Block(BlockKind.CLOSING_RUN, start, end=header_end, header_end=header_end)


def _search_block_backward(buffer: SourceBuffer, anchor: int,
                           pattern: Pattern = BLOCK_KEYWORD_RE) -> Optional[Block]:
    """Nearest accepted block keyword ending at or before `anchor`."""
    while True:
        m = buffer.search_backward(pattern, anchor)
        if m is None:
            return None
        if is_keyword_match(buffer, m):
            block = classify_match(buffer, m)
            if block.kind != BlockKind.DATA_ASSIGNMENT:
                return block
        anchor = m.start()


def _not_found() -> Block:
    return Block(BlockKind.NOT_FOUND, 0, end=0)


def beginning_of_block(buffer: SourceBuffer, offset: int) -> Block:
    """Classify the nearest block keyword at or before the statement at `offset`.

    Returns one of: data, proc(name), macro(name), closing-run,
    closing-macro, error (header without a name), or not-found anchored at
    buffer start. Opening blocks come back with `end` unset.
    """
    anchor = end_of_statement(buffer, offset)
    block = _search_block_backward(buffer, anchor)
    return _not_found() if block is None else block


def _closing_offset(buffer: SourceBuffer, block: Block) -> Optional[int]:
    """End of the statement that closes an opening block, None if open."""
    anchor = block.header_end
    if anchor is None:
        anchor = end_of_statement(buffer, block.start)

    if block.kind == BlockKind.MACRO:
        depth = 1
        while True:
            m = buffer.search_forward(MACRO_BOUNDARY_RE, anchor)
            if m is None:
                return None
            anchor = m.end()
            if not is_keyword_match(buffer, m):
                continue
            depth += 1 if m.group(1).lower() == "%macro" else -1
            if depth == 0:
                return end_of_statement(buffer, m.start())

    closers = ("run", "quit") if block.kind == BlockKind.PROC else ("run",)
    while True:
        m = buffer.search_forward(STEP_CLOSER_RE, anchor)
        if m is None:
            return None
        anchor = m.end()
        if m.group(1).lower() in closers and is_keyword_match(buffer, m):
            return end_of_statement(buffer, m.start())


def is_open(buffer: SourceBuffer, block: Block) -> bool:
    """True for an opening block with no closer before end of buffer."""
    return block.is_opener and _closing_offset(buffer, block) is None


def end_of_block(buffer: SourceBuffer, block: Block) -> int:
    """Offset just past the statement that closes `block`.

    data -> next run; proc -> next run or quit; macro -> matching %mend.
    An open block ends at end of buffer.
    """
    if block.is_opener:
        closing = _closing_offset(buffer, block)
        return len(buffer) if closing is None else closing
    if block.end is not None:
        return block.end
    return block.header_end if block.header_end is not None else block.start


def _matching_macro(buffer: SourceBuffer, mend: Block) -> Block:
    """Walk back from a %mend to the %macro it closes, counting nesting."""
    depth = 1
    anchor = mend.start
    while True:
        m = buffer.search_backward(MACRO_BOUNDARY_RE, anchor)
        if m is None:
            return Block(BlockKind.AMBIGUOUS, mend.start, end=mend.end,
                         name=mend.name, header_end=mend.header_end)
        anchor = m.start()
        if not is_keyword_match(buffer, m):
            continue
        depth += 1 if m.group(1).lower() == "%mend" else -1
        if depth == 0:
            return classify_match(buffer, m)


def locate_enclosing_block(buffer: SourceBuffer, offset: int) -> Block:
    """Block enclosing `offset`, with its end filled in.

    Standing on or after a `run;` retries one statement further back, so
    the closer's own step is returned. A %mend resolves to its %macro.
    """
    block = beginning_of_block(buffer, offset)
    while block.kind == BlockKind.CLOSING_RUN:
        found = _search_block_backward(buffer, block.start)
        if found is None:
            return _not_found()
        block = found
    if block.kind == BlockKind.CLOSING_MACRO:
        block = _matching_macro(buffer, block)
    if block.is_opener:
        block = replace(block, end=end_of_block(buffer, block))
    return block


def block_extent(buffer: SourceBuffer, block: Block) -> Tuple[int, int]:
    """(start, end) span of `block` in the buffer."""
    end = block.end if block.end is not None else end_of_block(buffer, block)
    return block.start, end


def iter_blocks(buffer: SourceBuffer) -> Iterator[Block]:
    """Every step and macro definition in document order.

    Blocks inside a macro definition follow the macro itself. Malformed
    headers are yielded with kind error.
    """
    anchor = 0
    while True:
        m = buffer.search_forward(OPENER_RE, anchor)
        if m is None:
            return
        anchor = m.end()
        if not is_keyword_match(buffer, m):
            continue
        block = classify_match(buffer, m)
        if block.kind == BlockKind.DATA_ASSIGNMENT:
            continue
        if block.is_opener:
            block = replace(block, end=end_of_block(buffer, block))
        yield block
        anchor = max(anchor, block.header_end or anchor)
