# Ethan Doughty
# resolver.py
"""Context-sensitive token resolution.

Wraps the classifier with one token of lookahead so that keywords used as
option names are not mistaken for syntax:

- `data =` becomes a single logical token "dataequal" (an option or an
  assignment target, never a step opener)
- any other keyword followed by `=` (`end=eof`, `in=flag`) is demoted to a
  plain identifier

Resolution is local to each occurrence and gives the same answer whether the
pair is reached scanning forward or backward. Comments are skipped; string
literals are returned as tokens.
"""

from typing import Iterator, Optional, Tuple

from frontend.buffer import SourceBuffer
from frontend.lexer import classify, FORWARD, BACKWARD
from model import Token, TokenKind

DATAEQUAL = "dataequal"

_KEYWORD_KINDS = {TokenKind.KEYWORD, TokenKind.BLOCK_OPENER, TokenKind.BLOCK_CLOSER}


def next_code_token(buffer: SourceBuffer, offset: int) -> Token:
    """First non-comment token at or after `offset` (EOF at the end)."""
    tok = classify(buffer, offset, FORWARD)
    while tok.kind == TokenKind.COMMENT:
        if tok.end >= len(buffer):
            # An unterminated comment also owns the end-of-buffer offset
            return Token(TokenKind.EOF, "", len(buffer), len(buffer))
        tok = classify(buffer, tok.end, FORWARD)
    return tok


def previous_code_token(buffer: SourceBuffer, offset: int) -> Token:
    """Last non-comment token ending at or before `offset` (EOF at the start)."""
    tok = classify(buffer, offset, BACKWARD)
    while tok.kind == TokenKind.COMMENT:
        tok = classify(buffer, tok.start, BACKWARD)
    return tok


def _is_equal_sign(tok: Token) -> bool:
    return tok.kind == TokenKind.OPERATOR and tok.value == "="


def _is_option_candidate(tok: Token) -> bool:
    """Keywords and word operators that may double as option names."""
    if tok.kind in _KEYWORD_KINDS:
        return True
    return tok.kind == TokenKind.OPERATOR and tok.value[:1].isalpha()


def _dataequal(first: Token, equal: Token) -> Token:
    return Token(TokenKind.KEYWORD, DATAEQUAL, first.start, equal.end)


def _demote(tok: Token) -> Token:
    return Token(TokenKind.IDENTIFIER, tok.value, tok.start, tok.end)


def _resolve_keyword(buffer: SourceBuffer, tok: Token) -> Optional[Token]:
    """Resolve a keyword by peeking at the token after it.

    Returns the replacement token, or None when the keyword stands.
    """
    if not _is_option_candidate(tok):
        return None
    following = next_code_token(buffer, tok.end)
    if not _is_equal_sign(following):
        return None
    if tok.norm == "data":
        return _dataequal(tok, following)
    return _demote(tok)


def forward_token(buffer: SourceBuffer, offset: int) -> Tuple[Token, int]:
    """Resolved token at or after `offset` and the offset just past it."""
    tok = next_code_token(buffer, offset)
    resolved = _resolve_keyword(buffer, tok)
    if resolved is not None:
        return resolved, resolved.end
    return tok, tok.end


def backward_token(buffer: SourceBuffer, offset: int) -> Tuple[Token, int]:
    """Resolved token ending at or before `offset` and the offset of its start."""
    tok = previous_code_token(buffer, offset)
    if _is_equal_sign(tok):
        before = previous_code_token(buffer, tok.start)
        if before.norm == "data" and before.kind == TokenKind.BLOCK_OPENER:
            merged = _dataequal(before, tok)
            return merged, merged.start
        return tok, tok.start
    resolved = _resolve_keyword(buffer, tok)
    if resolved is not None:
        return resolved, resolved.start
    return tok, tok.start


def iter_resolved(buffer: SourceBuffer, start: int = 0,
                  end: Optional[int] = None) -> Iterator[Token]:
    """Yield resolved code tokens from `start` until `end` (or EOF)."""
    limit = len(buffer) if end is None else buffer.check_offset(end)
    pos = buffer.check_offset(start)
    while pos < limit:
        tok, pos = forward_token(buffer, pos)
        if tok.kind == TokenKind.EOF or tok.start >= limit:
            return
        yield tok
