"""Structural tests for the indentation precedence grammar.

These fail if a grammar edit changes how constructs bracket or how
operators bind, or lets the table be mutated after construction.

Run directly:   python3 tests/structural/test_grammar_table.py
Run via runner: python3 sasmode.py --tests
"""

import sys
import os

# Allow running from any working directory
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from indent.grammar import (
    ATOM, EQ, GT, LT, SAS_GRAMMAR, bnf_to_prec2, precs_to_prec2,
)
from model import GrammarError


# ---------------------------------------------------------------------------
# Bracketing
# ---------------------------------------------------------------------------

def test_openers_and_closers():
    assert SAS_GRAMMAR.openers == {"do", "select", "%do", "proc", "data", "%macro", "("}, \
        sorted(SAS_GRAMMAR.openers)
    assert SAS_GRAMMAR.closers == {"end", "%end", "run", "quit", "%mend", ")"}, \
        sorted(SAS_GRAMMAR.closers)


def test_every_closer_pairs_with_an_opener():
    for closer in SAS_GRAMMAR.closers:
        assert any(SAS_GRAMMAR.pairs(op, closer) for op in SAS_GRAMMAR.openers), closer


def test_block_pairs():
    assert SAS_GRAMMAR.pairs("do", "end")
    assert SAS_GRAMMAR.pairs("proc", "quit")
    assert SAS_GRAMMAR.pairs("%macro", "%mend")
    assert not SAS_GRAMMAR.pairs("data", "quit")


def test_separator_relations():
    assert SAS_GRAMMAR.relation(";", ";") == EQ
    assert SAS_GRAMMAR.relation(";", "end") == GT
    assert SAS_GRAMMAR.relation("end", ";") == GT
    assert SAS_GRAMMAR.relation("do", ";") == LT


# ---------------------------------------------------------------------------
# Operator precedence
# ---------------------------------------------------------------------------

def test_operator_precedence():
    assert SAS_GRAMMAR.relation("+", "*") == LT
    assert SAS_GRAMMAR.relation("*", "+") == GT
    assert SAS_GRAMMAR.relation("or", "and") == LT


def test_associativity():
    assert SAS_GRAMMAR.relation("**", "**") == LT   # right
    assert SAS_GRAMMAR.relation("-", "-") == EQ     # assoc
    assert SAS_GRAMMAR.relation("or", "or") == GT   # left


# ---------------------------------------------------------------------------
# Table integrity
# ---------------------------------------------------------------------------

def test_atom_is_not_a_terminal():
    assert not SAS_GRAMMAR.is_terminal(ATOM)
    assert SAS_GRAMMAR.is_terminal("dataequal")


def test_table_is_immutable():
    try:
        SAS_GRAMMAR.prec2[("do", "end")] = GT
    except TypeError:
        return
    raise AssertionError("prec2 accepted an assignment")


def test_unknown_associativity_rejected():
    try:
        precs_to_prec2([("sideways", "+")])
    except GrammarError:
        return
    raise AssertionError("expected GrammarError")


def test_adjacent_nonterminals_rejected():
    bnf = {"a": (("b", "c"),), "b": (("x",),), "c": (("y",),)}
    try:
        bnf_to_prec2(bnf)
    except GrammarError:
        return
    raise AssertionError("expected GrammarError")


# ---------------------------------------------------------------------------
# Self-runnable entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    failures = 0
    test_fns = [
        test_openers_and_closers,
        test_every_closer_pairs_with_an_opener,
        test_block_pairs,
        test_separator_relations,
        test_operator_precedence,
        test_associativity,
        test_atom_is_not_a_terminal,
        test_table_is_immutable,
        test_unknown_associativity_rejected,
        test_adjacent_nonterminals_rejected,
    ]
    for func in test_fns:
        try:
            func()
            print(f"  PASS: {func.__name__}")
        except AssertionError as e:
            print(f"  FAIL: {func.__name__}: {e}")
            failures += 1

    print()
    total = len(test_fns)
    ok = total - failures
    print(f"Grammar tests: {ok}/{total} passed")
    sys.exit(0 if failures == 0 else 1)
