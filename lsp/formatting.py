"""Indentation edits for formatting requests."""
from __future__ import annotations

from typing import Optional

from lsprotocol import types

from frontend.buffer import SourceBuffer
from indent import IndentSettings, indent_edits, indent_for


def settings_from_options(options: Optional[types.FormattingOptions],
                          defaults: IndentSettings) -> IndentSettings:
    """Editor formatting options take precedence over server settings."""
    if options is None:
        return defaults
    return IndentSettings(basic_offset=options.tab_size, tab_width=defaults.tab_width)


def format_lines(
    buffer: SourceBuffer,
    first_line: int,
    last_line: Optional[int],
    settings: IndentSettings,
) -> list[types.TextEdit]:
    """Reindent lines first_line..last_line (inclusive).

    Args:
        buffer: Source buffer
        first_line: Zero-indexed first line to reindent
        last_line: Zero-indexed last line, None for end of buffer
        settings: Basic offset and tab width

    Returns:
        One TextEdit per line whose indentation changes
    """
    edits: list[types.TextEdit] = []
    for edit in indent_edits(buffer, first_line, last_line, settings):
        edits.append(
            types.TextEdit(
                range=types.Range(
                    start=types.Position(line=edit.line, character=0),
                    end=types.Position(line=edit.line, character=edit.width),
                ),
                new_text=" " * edit.indent,
            )
        )
    return edits


def format_on_type(
    buffer: SourceBuffer,
    line: int,
    trigger: str,
    settings: IndentSettings,
) -> list[types.TextEdit]:
    """Reindent after typing `;` (the current line) or a newline (both lines).

    Args:
        buffer: Source buffer, already containing the typed character
        line: Zero-indexed line of the cursor after the keystroke
        trigger: The character typed
        settings: Basic offset and tab width

    Returns:
        TextEdits for the affected lines
    """
    if trigger != "\n":
        return format_lines(buffer, line, line, settings)

    edits = format_lines(buffer, line - 1, line - 1, settings) if line > 0 else []
    if line < buffer.line_count and buffer.is_blank_line(line):
        # Reindent pass skips blank lines; place the cursor line explicitly
        width = buffer.line_end(line) - buffer.line_start(line)
        target = indent_for(buffer, buffer.line_start(line), settings)
        edits.append(
            types.TextEdit(
                range=types.Range(
                    start=types.Position(line=line, character=0),
                    end=types.Position(line=line, character=width),
                ),
                new_text=" " * target,
            )
        )
    else:
        edits.extend(format_lines(buffer, line, line, settings))
    return edits
