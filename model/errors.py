# Ethan Doughty
# errors.py
"""Exceptions raised by the editing core.

Malformed SAS source is never an error here: scanners report it through
Block kinds and diagnostics. Only programmer errors raise.
"""


class OutOfRange(IndexError):
    """Offset outside the bounds of a SourceBuffer."""

    def __init__(self, offset: int, size: int):
        super().__init__(f"offset {offset} outside buffer of length {size}")
        self.offset = offset
        self.size = size


class GrammarError(Exception):
    """Precedence grammar could not be built from its BNF and resolvers."""
    pass
