"""Code actions (quick fixes) for sasmode diagnostics."""
from __future__ import annotations

from typing import List

from lsprotocol import types

# Closer to append, keyed on the block description in the diagnostic message
_CLOSERS = (
    ("macro", "%mend;"),
    ("proc", "run;"),
    ("data", "run;"),
)


def _closer_for(message: str) -> str:
    for prefix, closer in _CLOSERS:
        if message.startswith(prefix):
            return closer
    return "run;"


def code_actions_for_diagnostic(
    diagnostic: types.Diagnostic,
    uri: str,
    source_lines: list[str],
) -> List[types.CodeAction]:
    """Generate code actions for a single diagnostic.

    Args:
        diagnostic: LSP diagnostic to generate fixes for
        uri: Document URI
        source_lines: Source code split into lines

    Returns:
        List of CodeAction quick fixes (may be empty)
    """
    actions: List[types.CodeAction] = []
    line_num = diagnostic.range.start.line

    if line_num < 0 or line_num >= len(source_lines):
        return actions

    if diagnostic.code == "W_UNTERMINATED_BLOCK":
        closer = _closer_for(diagnostic.message)
        last = len(source_lines) - 1
        end = types.Position(line=last, character=len(source_lines[last]))
        prefix = "\n" if source_lines[last].strip() else ""
        edit = types.WorkspaceEdit(
            changes={
                uri: [
                    types.TextEdit(
                        range=types.Range(start=end, end=end),
                        new_text=f"{prefix}{closer}\n",
                    )
                ]
            }
        )
        actions.append(
            types.CodeAction(
                title=f"Append {closer}",
                kind=types.CodeActionKind.QuickFix,
                diagnostics=[diagnostic],
                edit=edit,
            )
        )

    return actions
