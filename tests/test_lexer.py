"""Unit tests for the lexical classifier."""
import sys
import os
# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import unittest
from frontend.buffer import SourceBuffer
from frontend.lexer import classify, lex, is_macro_call, FORWARD, BACKWARD
from model import TokenKind, OutOfRange


class TestClassify(unittest.TestCase):
    def test_block_opener_forward(self):
        buf = SourceBuffer("proc print;")
        tok = classify(buf, 0)
        self.assertEqual(tok.kind, TokenKind.BLOCK_OPENER)
        self.assertEqual((tok.value, tok.start, tok.end), ("proc", 0, 4))

    def test_forward_skips_whitespace(self):
        buf = SourceBuffer("proc print;")
        tok = classify(buf, 4, FORWARD)
        self.assertEqual(tok.kind, TokenKind.IDENTIFIER)
        self.assertEqual(tok.start, 5)

    def test_backward(self):
        buf = SourceBuffer("proc print;")
        self.assertEqual(classify(buf, 10, BACKWARD).value, "print")
        self.assertEqual(classify(buf, 11, BACKWARD).kind, TokenKind.STATEMENT_END)
        self.assertEqual(classify(buf, 0, BACKWARD).kind, TokenKind.EOF)

    def test_backward_matches_forward_boundaries(self):
        """Scanning back from the end of `<=` sees the whole operator."""
        buf = SourceBuffer("a<=b")
        tok = classify(buf, 3, BACKWARD)
        self.assertEqual((tok.value, tok.start, tok.end), ("<=", 1, 3))
        self.assertEqual(classify(buf, 1, FORWARD), tok)

    def test_case_insensitive_keywords(self):
        buf = SourceBuffer("PROC Print; RUN;")
        self.assertEqual(classify(buf, 0).kind, TokenKind.BLOCK_OPENER)
        self.assertEqual(classify(buf, 12).kind, TokenKind.BLOCK_CLOSER)

    def test_comment_is_one_token(self):
        buf = SourceBuffer("x = 1; /* a; b */ y;")
        tok = classify(buf, 9)
        self.assertEqual(tok.kind, TokenKind.COMMENT)
        self.assertEqual((tok.start, tok.end), (7, 17))

    def test_string_with_semicolon(self):
        buf = SourceBuffer("put 'a;b';")
        tok = classify(buf, 5)
        self.assertEqual(tok.kind, TokenKind.STRING)
        self.assertEqual(tok.value, "'a;b'")

    def test_doubled_quote_stays_in_literal(self):
        buf = SourceBuffer("x = 'it''s';")
        tok = classify(buf, 4)
        self.assertEqual((tok.kind, tok.start, tok.end), (TokenKind.STRING, 4, 11))

    def test_star_comment_at_statement_start(self):
        buf = SourceBuffer("* note; data a;")
        tok = classify(buf, 0)
        self.assertEqual(tok.kind, TokenKind.COMMENT)
        self.assertEqual(tok.value, "* note")
        self.assertEqual(classify(buf, 6).kind, TokenKind.STATEMENT_END)

    def test_star_mid_statement_is_operator(self):
        buf = SourceBuffer("x = a * b;")
        self.assertEqual(classify(buf, 6).kind, TokenKind.OPERATOR)

    def test_numbers_and_operators(self):
        buf = SourceBuffer("y = 1.5e3 ** 2;")
        self.assertEqual(classify(buf, 4).kind, TokenKind.NUMBER)
        self.assertEqual(classify(buf, 4).value, "1.5e3")
        self.assertEqual(classify(buf, 10).value, "**")

    def test_macro_words(self):
        buf = SourceBuffer("%macro m; %foo; &var %mend;")
        self.assertEqual(classify(buf, 0).kind, TokenKind.BLOCK_OPENER)
        foo = classify(buf, 10)
        self.assertEqual(foo.kind, TokenKind.IDENTIFIER)
        self.assertTrue(is_macro_call(foo))
        var = classify(buf, 16)
        self.assertEqual(var.value, "&var")
        self.assertFalse(is_macro_call(var))
        self.assertEqual(classify(buf, 21).kind, TokenKind.BLOCK_CLOSER)

    def test_out_of_range(self):
        buf = SourceBuffer("run;")
        with self.assertRaises(OutOfRange):
            classify(buf, 5)
        with self.assertRaises(OutOfRange):
            classify(buf, -1)

    def test_bad_direction(self):
        with self.assertRaises(ValueError):
            classify(SourceBuffer("run;"), 0, "sideways")


class TestSyntaxContext(unittest.TestCase):
    SRC = "f(a, 'b') /* c */"

    def test_code_inside_parens(self):
        ctx = SourceBuffer(self.SRC).syntax_context(2)
        self.assertTrue(ctx.in_code)
        self.assertEqual(ctx.depth, 1)

    def test_string_and_comment(self):
        buf = SourceBuffer(self.SRC)
        in_string = buf.syntax_context(6)
        self.assertTrue(in_string.in_string)
        self.assertEqual(in_string.span_start, 5)
        in_comment = buf.syntax_context(13)
        self.assertTrue(in_comment.in_comment)
        self.assertEqual(in_comment.depth, 0)

    def test_char_at(self):
        buf = SourceBuffer(self.SRC)
        self.assertEqual(buf.char_at(1), "(")
        with self.assertRaises(OutOfRange):
            buf.char_at(len(self.SRC))


def test_comment_transparency():
    """Editing inside a comment never changes classification outside it."""
    a = SourceBuffer("data a; /* x */ run;")
    b = SourceBuffer("data a; /* proc print; run; */ run;")
    assert classify(a, 0) == classify(b, 0)
    tok_a = classify(a, a.text.rindex("run"))
    tok_b = classify(b, b.text.rindex("run"))
    assert (tok_a.kind, tok_a.value) == (tok_b.kind, tok_b.value) == (TokenKind.BLOCK_CLOSER, "run")
    print("PASS: comment contents do not leak into classification")


def test_lex_ends_with_eof():
    kinds = [t.kind for t in lex("x=1;")]
    assert kinds == [
        TokenKind.IDENTIFIER, TokenKind.OPERATOR, TokenKind.NUMBER,
        TokenKind.STATEMENT_END, TokenKind.EOF,
    ], kinds
    print("PASS: lex returns tokens ending with EOF")


if __name__ == "__main__":
    test_comment_transparency()
    test_lex_ends_with_eof()
    unittest.main()
