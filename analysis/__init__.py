# Ethan Doughty
# analysis/__init__.py
"""Analysis package: statement and block boundaries, diagnostics, dispatch."""

from __future__ import annotations

from analysis.statements import (
    beginning_of_statement, end_of_statement, statement_bounds,
)
from analysis.blocks import (
    beginning_of_block, block_extent, end_of_block, is_open, iter_blocks,
    locate_enclosing_block,
)
from analysis.diagnostics import Diagnostic, check_buffer, check_text
from analysis.dispatch import SessionConfig, Submission, command_line, region_to_send

__all__ = [
    "beginning_of_statement", "end_of_statement", "statement_bounds",
    "beginning_of_block", "block_extent", "end_of_block", "is_open",
    "iter_blocks", "locate_enclosing_block",
    "Diagnostic", "check_buffer", "check_text",
    "SessionConfig", "Submission", "command_line", "region_to_send",
]
