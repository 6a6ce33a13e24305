# Ethan Doughty
# grammar.py
"""Operator-precedence grammar for SAS indentation.

The grammar is written as a small BNF plus precedence resolvers and turned
into a table of precedence relations between terminals:

    (a, b) -> "<"   b binds tighter: shift b on top of a
    (a, b) -> "="   a and b belong to the same construct (do ... end)
    (a, b) -> ">"   a's construct is complete before b: reduce

Relations come from first-ops/last-ops of each non-terminal, the same
construction Emacs SMIE uses. A pair that receives two different relations
is settled by the resolvers; otherwise the first relation is kept and the
conflict is logged at debug level.

The table is built once, at import time, and never changes afterwards.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Set, Tuple

from model import GrammarError

logger = logging.getLogger(__name__)

LT, EQ, GT = "<", "=", ">"

# Placeholder terminal for operands; the tokenizer never produces it
ATOM = "id"

Rule = Tuple[str, ...]

BINARY_OPERATORS = (
    "or", "|", "!",
    "and", "&",
    "=", "^=", "~=", "¬=", "<", ">", "<=", ">=",
    "eq", "ne", "lt", "le", "gt", "ge", "in",
    "||", "!!",
    "+", "-",
    "*", "/",
    "**",
)
UNARY_OPERATORS = ("not", "^", "~", "¬")

SAS_BNF: Mapping[str, Sequence[Rule]] = {
    "insts": (
        ("insts", ";", "insts"),
        ("inst",),
    ),
    "inst": (
        ("exp",),
        ("do", "insts", "end"),
        ("select", "insts", "end"),
        ("%do", "insts", "%end"),
        ("if", "exp", "then", "inst"),
        ("%if", "exp", "%then", "inst"),
        ("else", "inst"),
        ("%else", "inst"),
        ("proc", "insts", "run"),
        ("proc", "insts", "quit"),
        ("data", "insts", "run"),
        ("%macro", "insts", "%mend"),
        ("output",),
        ("output", "exp"),
        ("dataequal", "exp"),
    ),
    "exp": (
        (ATOM,),
        ("(", "exps", ")"),
    ) + tuple(("exp", op, "exp") for op in BINARY_OPERATORS)
      + tuple((op, "exp") for op in UNARY_OPERATORS),
    "exps": (
        ("exps", ",", "exps"),
        ("exp",),
    ),
}

# Lowest precedence first
SAS_PRECEDENCES: Sequence[Tuple[str, ...]] = (
    ("assoc", ";"),
    ("assoc", ","),
    ("left", "or", "|", "!"),
    ("left", "and", "&"),
    ("nonassoc", "not", "^", "~", "¬"),
    ("nonassoc", "=", "^=", "~=", "¬=", "<", ">", "<=", ">=",
     "eq", "ne", "lt", "le", "gt", "ge", "in"),
    ("assoc", "||", "!!"),
    ("assoc", "+", "-"),
    ("assoc", "*", "/"),
    ("right", "**"),
)

_SELF_RULES = {"left": GT, "right": LT, "assoc": EQ}


def precs_to_prec2(precs: Sequence[Tuple[str, ...]]) -> Dict[Tuple[str, str], str]:
    """Relations implied by a precedence list (lowest level first)."""
    table: Dict[Tuple[str, str], str] = {}
    for i, (assoc, *ops) in enumerate(precs):
        if assoc not in _SELF_RULES and assoc != "nonassoc":
            raise GrammarError(f"unknown associativity {assoc!r}")
        self_rule = _SELF_RULES.get(assoc)
        for op in ops:
            if self_rule is not None:
                for other in ops:
                    table[(op, other)] = self_rule
            for j, (_, *others) in enumerate(precs):
                if j == i:
                    continue
                for other in others:
                    if j < i:
                        # other binds looser than op
                        table[(op, other)] = GT
                        table[(other, op)] = LT
                    else:
                        table[(op, other)] = LT
                        table[(other, op)] = GT
    return table


def first_last_ops(bnf: Mapping[str, Sequence[Rule]]) -> Tuple[Dict[str, Set[str]], Dict[str, Set[str]]]:
    """Terminals that can begin / end each non-terminal."""
    nts = set(bnf)
    first: Dict[str, Set[str]] = {nt: set() for nt in nts}
    last: Dict[str, Set[str]] = {nt: set() for nt in nts}
    first_nts: Dict[str, Set[str]] = {nt: set() for nt in nts}
    last_nts: Dict[str, Set[str]] = {nt: set() for nt in nts}

    for nt, rules in bnf.items():
        for rhs in rules:
            if not rhs:
                raise GrammarError(f"empty production for {nt}")
            if rhs[0] not in nts:
                first[nt].add(rhs[0])
            else:
                first_nts[nt].add(rhs[0])
                if len(rhs) > 1 and rhs[1] not in nts:
                    first[nt].add(rhs[1])
            if rhs[-1] not in nts:
                last[nt].add(rhs[-1])
            else:
                last_nts[nt].add(rhs[-1])
                if len(rhs) > 1 and rhs[-2] not in nts:
                    last[nt].add(rhs[-2])

    changed = True
    while changed:
        changed = False
        for nt in nts:
            for sub in first_nts[nt]:
                if not first[sub] <= first[nt]:
                    first[nt] |= first[sub]
                    changed = True
            for sub in last_nts[nt]:
                if not last[sub] <= last[nt]:
                    last[nt] |= last[sub]
                    changed = True
    return first, last


@dataclass(frozen=True)
class PrecedenceGrammar:
    """Immutable precedence relations plus the bracketing terminals.

    Fields:
        prec2: (left terminal, right terminal) -> "<" | "=" | ">"
        terminals: Every terminal the tokenizer can produce
        openers: Terminals that open a bracketed construct (do, proc, "(")
        closers: Terminals that close one (end, run, ")")
        conflicts: Pairs whose relation was not settled by the resolvers
    """
    prec2: Mapping[Tuple[str, str], str]
    terminals: FrozenSet[str]
    openers: FrozenSet[str]
    closers: FrozenSet[str]
    conflicts: Tuple[Tuple[str, str], ...] = ()

    def relation(self, left: str, right: str) -> Optional[str]:
        return self.prec2.get((left, right))

    def is_terminal(self, word: str) -> bool:
        return word in self.terminals

    def pairs(self, opener: str, closer: str) -> bool:
        """True if `closer` completes the construct `opener` started."""
        return self.prec2.get((opener, closer)) == EQ


def bnf_to_prec2(bnf: Mapping[str, Sequence[Rule]],
                 *resolvers: Sequence[Tuple[str, ...]]) -> PrecedenceGrammar:
    """Build precedence relations from a BNF, resolving conflicts by precedence."""
    override: Dict[Tuple[str, str], str] = {}
    for precs in resolvers:
        override.update(precs_to_prec2(precs))

    nts = set(bnf)
    first, last = first_last_ops(bnf)
    table: Dict[Tuple[str, str], str] = {}
    conflicts: List[Tuple[str, str]] = []
    openers: Set[str] = set()
    closers: Set[str] = set()
    terminals: Set[str] = set()

    def set_relation(x: str, y: str, rel: str) -> None:
        key = (x, y)
        old = table.get(key)
        if old is None or old == rel:
            table[key] = rel
        elif key in override:
            table[key] = override[key]
        elif key not in conflicts:
            conflicts.append(key)

    for nt, rules in bnf.items():
        for rhs in rules:
            terminals.update(sym for sym in rhs if sym not in nts)
            if len(rhs) > 1 and rhs[0] not in nts and rhs[-1] not in nts:
                openers.add(rhs[0])
                closers.add(rhs[-1])
            for k in range(len(rhs) - 1):
                a, b = rhs[k], rhs[k + 1]
                if a in nts:
                    if b in nts:
                        raise GrammarError(f"adjacent non-terminals {a} {b} in {nt}")
                    for op in last[a]:
                        set_relation(op, b, GT)
                elif b in nts:
                    for op in first[b]:
                        set_relation(a, op, LT)
                    if k + 2 < len(rhs) and rhs[k + 2] not in nts:
                        set_relation(a, rhs[k + 2], EQ)
                else:
                    set_relation(a, b, EQ)

    if conflicts:
        logger.debug("%d precedence conflicts left unresolved, e.g. %s",
                     len(conflicts), conflicts[:5])

    terminals.discard(ATOM)
    return PrecedenceGrammar(
        prec2=MappingProxyType(dict(table)),
        terminals=frozenset(terminals),
        openers=frozenset(openers),
        closers=frozenset(closers),
        conflicts=tuple(conflicts),
    )


def build_grammar(bnf: Mapping[str, Sequence[Rule]] = SAS_BNF,
                  precedences: Sequence[Tuple[str, ...]] = SAS_PRECEDENCES) -> PrecedenceGrammar:
    return bnf_to_prec2(bnf, precedences)


SAS_GRAMMAR = build_grammar()
