"""Unit tests for selecting the region sent to a SAS session.

Run with:

    python3 tests/test_dispatch.py
"""
import sys
import os

# Ensure project root is on the path regardless of working directory.
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from frontend.buffer import SourceBuffer
from analysis.dispatch import (
    SessionConfig, command_line, region_to_send, UNIT_LINE, UNIT_STATEMENT,
)
from model import BlockKind


def test_block_submission():
    buf = SourceBuffer("proc print;\nrun;\n")
    sub = region_to_send(buf, 3)
    assert (sub.start, sub.end) == (0, 16), (sub.start, sub.end)
    assert sub.text == "proc print;\nrun;"
    assert sub.unit == "block" and not sub.fallback
    assert sub.block.kind == BlockKind.PROC
    print("PASS: enclosing block is submitted")


def test_no_block_falls_back_to_line():
    buf = SourceBuffer("x = 1 +\n 2;\n")
    sub = region_to_send(buf, 9)
    assert sub.fallback and sub.unit == UNIT_LINE
    assert (sub.start, sub.end, sub.text) == (8, 11, " 2;"), sub
    assert sub.block.kind == BlockKind.NOT_FOUND
    print("PASS: not-found falls back to the current line")


def test_fallback_to_statement():
    buf = SourceBuffer("x = 1 +\n 2;\n")
    sub = region_to_send(buf, 9, config=SessionConfig(fallback=UNIT_STATEMENT))
    assert sub.fallback and sub.unit == UNIT_STATEMENT
    assert (sub.start, sub.end) == (0, 11), sub
    print("PASS: statement fallback sends the whole statement")


def test_malformed_header_falls_back():
    buf = SourceBuffer("proc;\nrun;\n")
    sub = region_to_send(buf, 0)
    assert sub.fallback and sub.text == "proc;"
    assert sub.block.kind == BlockKind.ERROR
    print("PASS: malformed header falls back")


def test_explicit_statement_unit():
    buf = SourceBuffer("proc print;\nrun;\n")
    sub = region_to_send(buf, 3, unit=UNIT_STATEMENT)
    assert (sub.text, sub.fallback) == ("proc print;", False)
    print("PASS: statement unit ignores blocks")


def test_unknown_unit():
    try:
        region_to_send(SourceBuffer("run;"), 0, unit="word")
    except ValueError:
        print("PASS: unknown unit raises ValueError")
        return
    raise AssertionError("expected ValueError")


def test_session_config():
    try:
        SessionConfig(fallback="block")
    except ValueError:
        pass
    else:
        raise AssertionError("block is not a valid fallback")

    assert command_line(SessionConfig()) == ["sas", "-nodms", "-stdio"]
    config = SessionConfig.from_options({"program": "/opt/sas/sas",
                                         "args": "-nodms -noterminal",
                                         "fallback": "statement"})
    assert command_line(config) == ["/opt/sas/sas", "-nodms", "-noterminal"]
    assert config.fallback == UNIT_STATEMENT
    assert SessionConfig.from_options(None) == SessionConfig()
    print("PASS: session configuration")


if __name__ == '__main__':
    test_block_submission()
    test_no_block_falls_back_to_line()
    test_fallback_to_statement()
    test_malformed_header_falls_back()
    test_explicit_statement_unit()
    test_unknown_unit()
    test_session_config()
    print("\nAll tests passed.")
