"""Unit tests for structural diagnostics."""
import sys
import os
# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import unittest
from analysis.diagnostics import Diagnostic, check_text


def codes(src):
    return [d.code for d in check_text(src)]


class TestCheckText(unittest.TestCase):
    def test_clean_program(self):
        self.assertEqual(check_text("data a;\nx = 1;\nrun;\nproc print data=a;\nrun;\n"), [])

    def test_malformed_proc_header(self):
        [diag] = check_text("proc;\n")
        self.assertEqual(diag.code, "W_MALFORMED_BLOCK_HEADER")
        self.assertEqual((diag.line, diag.col), (1, 1))
        self.assertEqual(diag.message, "procedure header has no name")

    def test_malformed_macro_header(self):
        [diag] = check_text("%macro;\n%mend;\n")
        self.assertEqual(diag.message, "macro definition header has no name")

    def test_unterminated_data_step(self):
        [diag] = check_text("data a;\nx = 1;\n")
        self.assertEqual(diag.code, "W_UNTERMINATED_BLOCK")
        self.assertEqual(diag.message, "data is never closed by run;")

    def test_unterminated_proc(self):
        [diag] = check_text("x = 1;\nproc print;\n")
        self.assertEqual(diag.line, 2)
        self.assertEqual(diag.message, "proc(print) is never closed by run; or quit;")

    def test_unmatched_mend(self):
        self.assertEqual(codes("%mend;\n"), ["W_UNMATCHED_CLOSER"])

    def test_unterminated_spans(self):
        self.assertEqual(codes("x = 'abc;\n"), ["W_UNTERMINATED_STRING"])
        self.assertEqual(codes("data a; run; /* open"), ["W_UNTERMINATED_COMMENT"])

    def test_ordered_by_line(self):
        self.assertEqual(codes("%mend;\nproc;\n"),
                         ["W_UNMATCHED_CLOSER", "W_MALFORMED_BLOCK_HEADER"])


class TestDiagnosticFormat(unittest.TestCase):
    def test_str_with_code(self):
        d = Diagnostic(line=3, code="W_UNMATCHED_CLOSER", message="%mend without a matching %macro")
        self.assertEqual(str(d), "W_UNMATCHED_CLOSER line 3: %mend without a matching %macro")

    def test_str_without_code(self):
        self.assertEqual(str(Diagnostic(line=1, code="", message="x")), "Line 1: x")


if __name__ == "__main__":
    unittest.main()
