# Ethan Doughty
# indent/__init__.py
"""Indentation: precedence grammar, rule table and the engine that uses them."""

from indent.grammar import PrecedenceGrammar, SAS_GRAMMAR, build_grammar, bnf_to_prec2
from indent.rules import IndentRule, IndentSettings, RuleTable, SAS_RULES, INHERIT
from indent.engine import (
    LineEdit, compute_indents, indent_edits, indent_for, line_edit_range, reindent,
)

__all__ = [
    "PrecedenceGrammar", "SAS_GRAMMAR", "build_grammar", "bnf_to_prec2",
    "IndentRule", "IndentSettings", "RuleTable", "SAS_RULES", "INHERIT",
    "LineEdit", "compute_indents", "indent_edits", "indent_for",
    "line_edit_range", "reindent",
]
