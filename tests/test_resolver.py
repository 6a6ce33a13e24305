"""Unit tests for context-sensitive token resolution (data= / end=)."""
import sys
import os

# Ensure project root is on the path regardless of working directory.
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from frontend.buffer import SourceBuffer
from frontend.resolver import (
    DATAEQUAL, backward_token, forward_token, iter_resolved, next_code_token,
)
from model import TokenKind


def test_data_option_becomes_dataequal():
    """`data=` in a proc header is one logical token, not a step opener."""
    src = "proc print data=sashelp.class;"
    buf = SourceBuffer(src)
    values = [t.value for t in iter_resolved(buf)]
    assert values == ["proc", "print", DATAEQUAL, "sashelp.class", ";"], values

    tok, end = forward_token(buf, src.index("data"))
    assert tok.kind == TokenKind.KEYWORD
    assert (tok.start, tok.end) == (11, 16), (tok.start, tok.end)
    assert end == 16
    print("PASS: data= resolves to dataequal")


def test_data_step_opener_stands():
    buf = SourceBuffer("data a;")
    tok, _ = forward_token(buf, 0)
    assert tok.kind == TokenKind.BLOCK_OPENER and tok.value == "data"
    print("PASS: data without = stays a block opener")


def test_keyword_option_demoted():
    src = "set x end=eof;"
    buf = SourceBuffer(src)
    tok, _ = forward_token(buf, src.index("end"))
    assert tok.kind == TokenKind.IDENTIFIER and tok.value == "end"
    print("PASS: end= is an identifier")


def test_operator_word_kept_without_equal():
    src = "if x in (1, 2) then y = 1;"
    buf = SourceBuffer(src)
    tok, _ = forward_token(buf, src.index("in"))
    assert tok.kind == TokenKind.OPERATOR
    print("PASS: in without = stays an operator")


def test_comment_between_data_and_equal():
    src = "proc sort data /* input */ = a;"
    buf = SourceBuffer(src)
    tok, _ = forward_token(buf, src.index("data"))
    assert tok.value == DATAEQUAL
    assert tok.end == src.index("=") + 1
    print("PASS: comments do not break data= resolution")


def test_unterminated_comment_ends_the_scan():
    src = "x = 1; /* half"
    buf = SourceBuffer(src)
    assert next_code_token(buf, src.index(";") + 1).kind == TokenKind.EOF
    assert [t.value for t in iter_resolved(buf)] == ["x", "=", "1", ";"]
    print("PASS: unterminated comment runs to EOF")


def test_resolution_is_symmetric():
    """Forward and backward scans agree on every resolved token."""
    src = "proc sort data = x out=y; by a; run; data b; set c end=eof; run;"
    buf = SourceBuffer(src)
    for tok in iter_resolved(buf):
        back, start = backward_token(buf, tok.end)
        assert (back.kind, back.value, back.start, back.end) == \
            (tok.kind, tok.value, tok.start, tok.end), (tok, back)
        assert start == tok.start
    print("PASS: forward and backward resolution agree")


if __name__ == '__main__':
    test_data_option_becomes_dataequal()
    test_data_step_opener_stands()
    test_keyword_option_demoted()
    test_operator_word_kept_without_equal()
    test_comment_between_data_and_equal()
    test_unterminated_comment_ends_the_scan()
    test_resolution_is_symmetric()
    print("\nAll tests passed.")
