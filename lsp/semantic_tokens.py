"""Semantic tokens: classified lexemes mapped through a style table."""
from __future__ import annotations

from typing import Mapping, Optional

from lsprotocol import types

from frontend.buffer import SourceBuffer
from frontend.lexer import is_macro_call, iter_tokens
from frontend.resolver import forward_token
from model import Token, TokenKind

TOKEN_TYPES = [
    types.SemanticTokenTypes.Keyword,
    types.SemanticTokenTypes.Variable,
    types.SemanticTokenTypes.Number,
    types.SemanticTokenTypes.Operator,
    types.SemanticTokenTypes.String,
    types.SemanticTokenTypes.Comment,
    types.SemanticTokenTypes.Macro,
]

LEGEND = types.SemanticTokensLegend(
    token_types=[t.value for t in TOKEN_TYPES],
    token_modifiers=[],
)

# Swap this table to restyle without touching the classifier
DEFAULT_STYLES: Mapping[TokenKind, types.SemanticTokenTypes] = {
    TokenKind.IDENTIFIER: types.SemanticTokenTypes.Variable,
    TokenKind.NUMBER: types.SemanticTokenTypes.Number,
    TokenKind.KEYWORD: types.SemanticTokenTypes.Keyword,
    TokenKind.OPERATOR: types.SemanticTokenTypes.Operator,
    TokenKind.BLOCK_OPENER: types.SemanticTokenTypes.Keyword,
    TokenKind.BLOCK_CLOSER: types.SemanticTokenTypes.Keyword,
    TokenKind.STRING: types.SemanticTokenTypes.String,
    TokenKind.COMMENT: types.SemanticTokenTypes.Comment,
}


def _style(tok: Token, styles: Mapping[TokenKind, types.SemanticTokenTypes]
           ) -> Optional[types.SemanticTokenTypes]:
    if is_macro_call(tok):
        return types.SemanticTokenTypes.Macro
    return styles.get(tok.kind)


def _resolve(buffer: SourceBuffer, tok: Token) -> Token:
    """Keywords used as option names (`end=`, `data=`) are styled as names."""
    if tok.kind in (TokenKind.KEYWORD, TokenKind.BLOCK_OPENER,
                    TokenKind.BLOCK_CLOSER, TokenKind.OPERATOR):
        resolved, _ = forward_token(buffer, tok.start)
        if resolved.kind == TokenKind.IDENTIFIER:
            return resolved
    return tok


def encode_tokens(
    buffer: SourceBuffer,
    styles: Mapping[TokenKind, types.SemanticTokenTypes] = DEFAULT_STYLES,
) -> list[int]:
    """Encode every token as LSP relative (line, start, length, type, mods) quintuples.

    Multi-line comments and strings are split into one entry per line.

    Args:
        buffer: Source buffer
        styles: TokenKind -> semantic token type

    Returns:
        Flat integer list for SemanticTokens.data
    """
    data: list[int] = []
    prev_line = 0
    prev_char = 0
    index = {t: i for i, t in enumerate(TOKEN_TYPES)}

    for tok in iter_tokens(buffer):
        style = _style(_resolve(buffer, tok), styles)
        if style is None:
            continue
        pos = tok.start
        while pos < tok.end:
            line = buffer.line_of(pos)
            seg_end = min(tok.end, buffer.line_end(line))
            if seg_end > pos:
                char = pos - buffer.line_start(line)
                delta_line = line - prev_line
                delta_char = char - prev_char if delta_line == 0 else char
                data.extend([delta_line, delta_char, seg_end - pos, index[style], 0])
                prev_line, prev_char = line, char
            if seg_end >= tok.end:
                break
            pos = buffer.line_start(line + 1)
    return data
