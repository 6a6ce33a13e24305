"""Tests for the LSP providers (symbols, hover, formatting, tokens, fixes).

Run with:

    python3 tests/test_lsp.py
"""
import sys
import os

# Ensure project root is on the path regardless of working directory.
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lsprotocol import types

from frontend.buffer import SourceBuffer
from analysis.diagnostics import Diagnostic, check_text
from indent import IndentSettings
from lsp.code_actions import code_actions_for_diagnostic
from lsp.diagnostics import to_lsp_diagnostic
from lsp.formatting import format_lines, format_on_type, settings_from_options
from lsp.hover import get_hover
from lsp.semantic_tokens import LEGEND, encode_tokens
from lsp.symbols import get_document_symbols


def test_symbols_nest_under_macro():
    src = "%macro m;\ndata a; run;\n%mend m;\nproc print; run;\n"
    symbols = get_document_symbols(SourceBuffer(src))
    assert [s.name for s in symbols] == ["%macro m", "proc print"], [s.name for s in symbols]
    assert symbols[0].kind == types.SymbolKind.Function
    assert [c.name for c in symbols[0].children] == ["data a"]
    assert symbols[1].range.start.line == 3
    print("PASS: steps inside a macro are children of its symbol")


def test_semantic_tokens():
    data = encode_tokens(SourceBuffer("data a;"))
    assert data == [0, 0, 4, 0, 0, 0, 5, 1, 1, 0], data
    assert LEGEND.token_types[0] == "keyword"
    print("PASS: keyword and variable tokens encoded")


def test_semantic_tokens_split_comment():
    data = encode_tokens(SourceBuffer("/* a\nb */"))
    assert data == [0, 0, 4, 5, 0, 1, 0, 4, 5, 0], data
    print("PASS: multi-line comment split per line")


def test_format_lines():
    buf = SourceBuffer("data a;\nx = 1;\nrun;\n")
    edits = format_lines(buf, 0, None, IndentSettings())
    assert len(edits) == 1
    assert edits[0].range.start.line == 1 and edits[0].new_text == "    "
    print("PASS: range formatting edits only misindented lines")


def test_format_on_newline():
    buf = SourceBuffer("data a;\n\n")
    edits = format_on_type(buf, 1, "\n", IndentSettings())
    assert [(e.range.start.line, e.new_text) for e in edits] == [(1, "    ")]
    print("PASS: newline places the cursor line")


def test_settings_from_options():
    options = types.FormattingOptions(tab_size=2, insert_spaces=True)
    settings = settings_from_options(options, IndentSettings(basic_offset=4, tab_width=8))
    assert (settings.basic_offset, settings.tab_width) == (2, 8)
    print("PASS: editor tab size becomes the basic offset")


def test_hover_shows_block():
    hover = get_hover(SourceBuffer("proc print;\nrun;\n"), 0, 1)
    text = hover.contents.value
    assert "block-opener" in text and "proc(print)" in text, text
    assert "lines 1-2" in text, text
    assert get_hover(SourceBuffer("x = 1;"), 0, 1) is None
    print("PASS: hover reports kind and enclosing block")


def test_lsp_diagnostic_severity():
    lines = ["proc print;"]
    warn = to_lsp_diagnostic(check_text("proc print;")[0], lines, "file:///a.sas")
    assert warn.severity == types.DiagnosticSeverity.Warning
    assert warn.range.end.character == len(lines[0])
    err = to_lsp_diagnostic(Diagnostic(line=1, code="W_UNMATCHED_CLOSER", message="m", col=1),
                            lines, "file:///a.sas")
    assert err.severity == types.DiagnosticSeverity.Error
    assert err.source == "sasmode"
    print("PASS: structural errors and warnings mapped")


def test_append_closer_action():
    lines = ["proc print;"]
    diag = to_lsp_diagnostic(check_text("proc print;")[0], lines, "file:///a.sas")
    [action] = code_actions_for_diagnostic(diag, "file:///a.sas", lines)
    assert action.title == "Append run;", action.title
    [edit] = action.edit.changes["file:///a.sas"]
    assert edit.new_text == "\nrun;\n"

    macro_lines = ["%macro m;", ""]
    macro_diag = to_lsp_diagnostic(check_text("%macro m;\n")[0], macro_lines, "file:///b.sas")
    [macro_action] = code_actions_for_diagnostic(macro_diag, "file:///b.sas", macro_lines)
    assert macro_action.title == "Append %mend;"
    print("PASS: quick fix appends the missing closer")


if __name__ == '__main__':
    test_symbols_nest_under_macro()
    test_semantic_tokens()
    test_semantic_tokens_split_comment()
    test_format_lines()
    test_format_on_newline()
    test_settings_from_options()
    test_hover_shows_block()
    test_lsp_diagnostic_severity()
    test_append_closer_action()
    print("\nAll tests passed.")
