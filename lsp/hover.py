"""Hover provider for showing token kinds and the enclosing block."""
from __future__ import annotations

import re
from typing import Optional
from lsprotocol import types

from frontend.buffer import SourceBuffer
from frontend.resolver import forward_token
from analysis.blocks import block_extent, locate_enclosing_block

_WORD_RE = re.compile(r"%?&*[A-Za-z_][\w&.]*")


def get_hover(buffer: SourceBuffer, line: int, character: int) -> Optional[types.Hover]:
    """Get hover information for the word at the given position.

    Args:
        buffer: Source buffer
        line: Zero-indexed line number
        character: Zero-indexed character position in line

    Returns:
        Hover with the resolved token kind and the enclosing block, or None
        if there is no word at the cursor
    """
    if not (0 <= line < buffer.line_count):
        return None

    line_start = buffer.line_start(line)
    line_text = buffer.text[line_start:buffer.line_end(line)]
    if not (0 <= character <= len(line_text)):
        return None

    for match in _WORD_RE.finditer(line_text):
        start, end = match.span()
        if start <= character < end:
            break
    else:
        # No word at cursor
        return None

    offset = line_start + start
    if not buffer.in_code(offset):
        return None

    tok, _ = forward_token(buffer, offset)
    hover_text = f"(sas) `{tok.value}`: {tok.kind.value}"

    block = locate_enclosing_block(buffer, offset)
    block_start, block_end = block_extent(buffer, block)
    if not block.failed and block_start <= offset < block_end:
        first = buffer.line_of(block_start) + 1
        last = buffer.line_of(max(block_start, block_end - 1)) + 1
        hover_text += f"\n\nin `{block.describe()}` (lines {first}-{last})"

    return types.Hover(
        contents=types.MarkupContent(
            kind=types.MarkupKind.Markdown,
            value=hover_text,
        ),
        range=types.Range(
            start=types.Position(line=line, character=start),
            end=types.Position(line=line, character=end),
        ),
    )
