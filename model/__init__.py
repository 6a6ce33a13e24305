# Ethan Doughty
# model/__init__.py
"""Shared value types and exceptions."""

from model.types import (
    TokenKind, Token, SyntaxContext, BlockKind, Block, OPENING_KINDS, FAILED_KINDS,
)
from model.errors import OutOfRange, GrammarError

__all__ = [
    "TokenKind", "Token", "SyntaxContext", "BlockKind", "Block",
    "OPENING_KINDS", "FAILED_KINDS", "OutOfRange", "GrammarError",
]
