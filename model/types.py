# Ethan Doughty
# types.py
"""Value types shared by the lexer, the scanners and the indentation engine.

Everything here is a frozen dataclass or an enum. Nothing is cached across
edits: tokens, contexts and blocks are recomputed from buffer text per query.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TokenKind(Enum):
    IDENTIFIER = "identifier"
    NUMBER = "number"
    KEYWORD = "keyword"
    OPERATOR = "operator"
    BLOCK_OPENER = "block-opener"
    BLOCK_CLOSER = "block-closer"
    STATEMENT_END = "statement-end"
    COMMENT = "comment"
    STRING = "string-literal"
    EOF = "eof"


@dataclass(frozen=True)
class Token:
    """Classified lexeme covering buffer[start:end]."""
    kind: TokenKind
    value: str  # original text, or a logical name such as "dataequal"
    start: int
    end: int

    @property
    def norm(self) -> str:
        """Lower-cased value; SAS keywords are case-insensitive."""
        return self.value.lower()

    def is_code(self) -> bool:
        return self.kind not in (TokenKind.COMMENT, TokenKind.EOF)


@dataclass(frozen=True)
class SyntaxContext:
    """Lexical context of the character at one offset.

    Exactly one of in_comment / in_string / in_code holds.
    """
    depth: int  # parenthesis nesting, never negative
    in_comment: bool = False
    in_string: bool = False
    span_start: Optional[int] = None  # start of the enclosing comment/string

    @property
    def in_code(self) -> bool:
        return not (self.in_comment or self.in_string)


class BlockKind(Enum):
    PROC = "proc"
    DATA = "data"
    DATA_ASSIGNMENT = "data-assignment"  # `data =`, rejected while searching
    MACRO = "macro"
    CLOSING_RUN = "closing-run"
    CLOSING_MACRO = "closing-macro"
    NOT_FOUND = "not-found"
    AMBIGUOUS = "ambiguous-error"
    ERROR = "error"


OPENING_KINDS = frozenset({BlockKind.PROC, BlockKind.DATA, BlockKind.MACRO})
FAILED_KINDS = frozenset({BlockKind.NOT_FOUND, BlockKind.AMBIGUOUS, BlockKind.ERROR})


@dataclass(frozen=True)
class Block:
    """A step or macro definition located in a buffer.

    Fields:
        kind: Classification of the matched keyword
        start: Offset of the opener (or closer) keyword
        end: Offset just past the closing statement, end of buffer for an
            open block; None until end_of_block has run
        name: Procedure or macro name, when the header carries one
        header_end: Offset just past the header statement
    """
    kind: BlockKind
    start: int
    end: Optional[int] = None
    name: Optional[str] = None
    header_end: Optional[int] = None

    def __post_init__(self):
        if self.end is not None and self.end < self.start:
            raise ValueError(f"block end {self.end} before start {self.start}")

    @property
    def is_opener(self) -> bool:
        return self.kind in OPENING_KINDS

    @property
    def failed(self) -> bool:
        return self.kind in FAILED_KINDS

    def describe(self) -> str:
        if self.kind in (BlockKind.PROC, BlockKind.MACRO) and self.name:
            return f"{self.kind.value}({self.name})"
        return self.kind.value

    def __str__(self) -> str:
        return f"{self.describe()} [{self.start}, {self.end}]"
