# Ethan Doughty
# rules.py
"""Indentation rule table and settings.

A rule answers one question about a terminal in one transition:

    after T     indentation of lines inside the construct T opens
    before T    indentation of a line that begins with closer T, relative
                to the construct it closes (or the anchor T sets for its
                own construct when T is an opener)
    element T   alignment of continuation lines separated by T

Offsets are counts of the basic indentation unit, or INHERIT to reuse the
column of the parent construct (the token following it on the same line).
"""

from __future__ import annotations
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple, Union

AFTER = "after"
BEFORE = "before"
ELEMENT = "element"
TRANSITIONS = (AFTER, BEFORE, ELEMENT)

INHERIT = "inherit"

# Pseudo-token for the element rule applied to plain continuation lines
CONTINUATION = "continuation"

Offset = Union[int, str]


@dataclass(frozen=True)
class IndentRule:
    transition: str
    token: str
    offset: Offset

    def __post_init__(self):
        if self.transition not in TRANSITIONS:
            raise ValueError(f"unknown transition {self.transition!r}")
        if self.offset != INHERIT and not isinstance(self.offset, int):
            raise ValueError(f"offset must be an int or INHERIT, got {self.offset!r}")


@dataclass(frozen=True)
class IndentSettings:
    """Per-buffer indentation settings.

    Fields:
        basic_offset: Columns per indentation level
        tab_width: Display width of a tab when measuring columns
    """
    basic_offset: int = 4
    tab_width: int = 8

    def __post_init__(self):
        if self.basic_offset < 0:
            raise ValueError("basic_offset must be non-negative")
        if self.tab_width < 1:
            raise ValueError("tab_width must be positive")


class RuleTable:
    """Immutable (transition, token) -> offset lookup."""

    def __init__(self, rules: Iterable[IndentRule]):
        table = {}
        for rule in rules:
            table[(rule.transition, rule.token)] = rule.offset
        self._table: Mapping[Tuple[str, str], Offset] = MappingProxyType(table)

    def lookup(self, transition: str, token: str) -> Optional[Offset]:
        return self._table.get((transition, token))

    def __contains__(self, key: Tuple[str, str]) -> bool:
        return key in self._table

    def __iter__(self):
        for (transition, token), offset in self._table.items():
            yield IndentRule(transition, token, offset)

    def __len__(self) -> int:
        return len(self._table)


SAS_RULES = RuleTable((
    IndentRule(AFTER, "proc", 1),
    IndentRule(AFTER, "data", 1),
    IndentRule(AFTER, "%macro", 1),
    IndentRule(AFTER, "do", 1),
    IndentRule(AFTER, "%do", 1),
    IndentRule(AFTER, "select", 1),
    IndentRule(AFTER, "(", 1),
    IndentRule(AFTER, "dataequal", 0),
    IndentRule(AFTER, "output", INHERIT),
    IndentRule(BEFORE, "do", INHERIT),
    IndentRule(BEFORE, "%do", INHERIT),
    IndentRule(BEFORE, "(", INHERIT),
    IndentRule(BEFORE, "end", 0),
    IndentRule(BEFORE, "%end", 0),
    IndentRule(BEFORE, "run", 0),
    IndentRule(BEFORE, "quit", 0),
    IndentRule(BEFORE, "%mend", 0),
    IndentRule(BEFORE, ")", 0),
    IndentRule(ELEMENT, ",", INHERIT),
    IndentRule(ELEMENT, CONTINUATION, 1),
))
