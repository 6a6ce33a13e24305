# Ethan Doughty
# dispatch.py
"""Choosing the region of a buffer to send to a SAS session.

The editor asks for "the thing at point": the enclosing step or macro, the
current statement, or the current line. When block location fails (no
block, an ambiguous %mend, a malformed header) the configured fallback unit
is sent instead and the submission is flagged, so the caller can tell the
user what happened.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Optional, Tuple

from frontend.buffer import SourceBuffer
from analysis.blocks import block_extent, locate_enclosing_block
from analysis.statements import statement_bounds
from model import Block

logger = logging.getLogger(__name__)

UNIT_BLOCK = "block"
UNIT_STATEMENT = "statement"
UNIT_LINE = "line"
UNITS = (UNIT_BLOCK, UNIT_STATEMENT, UNIT_LINE)


@dataclass(frozen=True)
class SessionConfig:
    """Per-buffer interpreter settings.

    Fields:
        program: Executable that runs submitted code
        args: Extra command-line arguments for the program
        fallback: Unit sent when block location fails ("statement" or "line")
    """
    program: str = "sas"
    args: Tuple[str, ...] = ("-nodms", "-stdio")
    fallback: str = UNIT_LINE

    def __post_init__(self):
        if self.fallback not in (UNIT_STATEMENT, UNIT_LINE):
            raise ValueError(f"fallback must be 'statement' or 'line', got {self.fallback!r}")

    @classmethod
    def from_options(cls, options: Optional[Mapping[str, Any]]) -> "SessionConfig":
        """Build from editor settings, ignoring unknown keys."""
        if not options:
            return cls()
        defaults = cls()
        args = options.get("args", defaults.args)
        if isinstance(args, str):
            args = tuple(args.split())
        return cls(
            program=options.get("program", defaults.program),
            args=tuple(args),
            fallback=options.get("fallback", defaults.fallback),
        )


@dataclass(frozen=True)
class Submission:
    """A region of source selected for execution."""
    text: str
    start: int
    end: int
    unit: str
    fallback: bool = False
    block: Optional[Block] = field(default=None, compare=False)


def _bounds(buffer: SourceBuffer, offset: int, unit: str) -> Tuple[int, int]:
    if unit == UNIT_STATEMENT:
        return statement_bounds(buffer, offset)
    if unit == UNIT_LINE:
        return buffer.line_bounds(offset)
    raise ValueError(f"unknown unit {unit!r}")


def region_to_send(buffer: SourceBuffer, offset: int, unit: str = UNIT_BLOCK,
                   config: Optional[SessionConfig] = None) -> Submission:
    """Select the code to submit for the cursor at `offset`.

    Args:
        buffer: Source buffer
        offset: Cursor position
        unit: "block", "statement" or "line"
        config: Session settings; supplies the fallback unit

    Returns:
        Submission whose `fallback` flag is set when block location failed

    Raises:
        OutOfRange: offset outside the buffer
        ValueError: unknown unit
    """
    config = config or SessionConfig()
    buffer.check_offset(offset)

    if unit == UNIT_BLOCK:
        block = locate_enclosing_block(buffer, offset)
        if not block.failed:
            start, end = block_extent(buffer, block)
            return Submission(buffer.substring(start, end), start, end, unit, block=block)
        logger.debug("block location failed (%s) at %d, sending %s",
                     block.kind.value, offset, config.fallback)
        start, end = _bounds(buffer, offset, config.fallback)
        return Submission(buffer.substring(start, end), start, end, config.fallback,
                          fallback=True, block=block)

    start, end = _bounds(buffer, offset, unit)
    return Submission(buffer.substring(start, end), start, end, unit)


def command_line(config: SessionConfig) -> List[str]:
    """argv for starting the configured SAS session."""
    return [config.program, *config.args]
