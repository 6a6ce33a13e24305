"""Document symbol provider for outline view."""
from __future__ import annotations
from lsprotocol import types

from frontend.buffer import SourceBuffer
from analysis.blocks import iter_blocks
from model import Block, BlockKind

_SYMBOL_KINDS = {
    BlockKind.MACRO: types.SymbolKind.Function,
    BlockKind.PROC: types.SymbolKind.Method,
    BlockKind.DATA: types.SymbolKind.Struct,
    BlockKind.ERROR: types.SymbolKind.Null,
}


def _position(buffer: SourceBuffer, offset: int) -> types.Position:
    line = buffer.line_of(offset)
    return types.Position(line=line, character=offset - buffer.line_start(line))


def _symbol_name(buffer: SourceBuffer, block: Block) -> str:
    if block.kind == BlockKind.DATA:
        # data step: show the output data set names from the header
        header_end = block.header_end or block.start
        header = buffer.text[block.start:header_end].rstrip(";").split()
        return " ".join(header[:3]) if len(header) > 1 else "data"
    if block.kind == BlockKind.ERROR:
        return "<unnamed block>"
    return f"{'%macro' if block.kind == BlockKind.MACRO else 'proc'} {block.name}"


def get_document_symbols(buffer: SourceBuffer) -> list[types.DocumentSymbol]:
    """Extract document symbols from the block structure of a buffer.

    Args:
        buffer: Source buffer

    Returns:
        List of DocumentSymbol entries; steps defined inside a macro are
        children of that macro's symbol
    """
    symbols: list[types.DocumentSymbol] = []
    # (symbol, end offset) of the macro definitions still enclosing the scan
    open_macros: list[tuple[types.DocumentSymbol, int]] = []

    for block in iter_blocks(buffer):
        end = block.end if block.end is not None else len(buffer)
        header_end = block.header_end if block.header_end is not None else end

        symbol = types.DocumentSymbol(
            name=_symbol_name(buffer, block),
            kind=_SYMBOL_KINDS[block.kind],
            range=types.Range(start=_position(buffer, block.start), end=_position(buffer, end)),
            selection_range=types.Range(
                start=_position(buffer, block.start),
                end=_position(buffer, header_end),
            ),
            detail=block.kind.value,
            children=[],
        )

        while open_macros and open_macros[-1][1] <= block.start:
            open_macros.pop()
        if open_macros:
            open_macros[-1][0].children.append(symbol)
        else:
            symbols.append(symbol)

        if block.kind == BlockKind.MACRO:
            open_macros.append((symbol, end))

    return symbols
