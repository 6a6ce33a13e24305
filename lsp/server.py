"""LSP server for the sasmode SAS editing core."""
from __future__ import annotations

import asyncio
import hashlib
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

from pygls.lsp.server import LanguageServer
from lsprotocol import types

from frontend.buffer import SourceBuffer
from analysis.diagnostics import Diagnostic as SasDiagnostic, check_buffer
from analysis.dispatch import SessionConfig, UNIT_BLOCK, UNITS, region_to_send
from indent import IndentSettings
from lsp.code_actions import code_actions_for_diagnostic
from lsp.diagnostics import to_lsp_diagnostic
from lsp.formatting import format_lines, format_on_type, settings_from_options
from lsp.hover import get_hover
from lsp.semantic_tokens import LEGEND, encode_tokens
from lsp.symbols import get_document_symbols

logger = logging.getLogger(__name__)

ENCLOSING_BLOCK = "sas/enclosingBlock"


@dataclass
class AnalysisCache:
    """Cache for last diagnostics per document."""

    diagnostics: list[SasDiagnostic]
    source_hash: str


# Global cache: URI -> AnalysisCache
analysis_cache: Dict[str, AnalysisCache] = {}

# Debouncing: URI -> asyncio.Task
debounce_tasks: Dict[str, asyncio.Task] = {}

# Server settings (updated via workspace/didChangeConfiguration or initializationOptions)
server_settings: Dict[str, Any] = {
    "basic_offset": 4,
    "tab_width": 8,
    "diagnostics": True,
    "analyze_on_change": False,
    "session": {},
}

# Create server instance
server = LanguageServer(
    "sasmode", "v1.0", text_document_sync_kind=types.TextDocumentSyncKind.Full
)


def _compute_hash(source: str) -> str:
    """Compute hash of source text for cache validation."""
    return hashlib.sha256(source.encode("utf-8")).hexdigest()


def _indent_settings() -> IndentSettings:
    return IndentSettings(
        basic_offset=int(server_settings["basic_offset"]),
        tab_width=int(server_settings["tab_width"]),
    )


def _apply_settings(options: Dict[str, Any]) -> None:
    """Copy recognised client options into server_settings."""
    if "basicOffset" in options:
        server_settings["basic_offset"] = int(options["basicOffset"])
    if "tabWidth" in options:
        server_settings["tab_width"] = int(options["tabWidth"])
    if "diagnostics" in options:
        server_settings["diagnostics"] = bool(options["diagnostics"])
    if "analyzeOnChange" in options:
        server_settings["analyze_on_change"] = bool(options["analyzeOnChange"])
    if isinstance(options.get("session"), dict):
        server_settings["session"] = dict(options["session"])


def _publish_error(ls: LanguageServer, uri: str, message: str) -> None:
    error_diagnostic = types.Diagnostic(
        range=types.Range(
            start=types.Position(line=0, character=0),
            end=types.Position(line=0, character=0),
        ),
        severity=types.DiagnosticSeverity.Error,
        source="sasmode",
        message=message,
    )
    ls.text_document_publish_diagnostics(
        types.PublishDiagnosticsParams(uri=uri, diagnostics=[error_diagnostic])
    )


def _validate(ls: LanguageServer, uri: str, source: str, force: bool = False) -> None:
    """Check SAS source and publish diagnostics.

    Args:
        ls: Language server instance
        uri: Document URI
        source: Document source text
        force: If True, bypass cache and force re-analysis
    """
    if not server_settings["diagnostics"]:
        ls.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=[])
        )
        return

    start_time = time.time()
    logger.info("Checking %s", uri)

    source_hash = _compute_hash(source)
    source_lines = source.split("\n")

    if not force and uri in analysis_cache:
        cached = analysis_cache[uri]
        if cached.source_hash == source_hash:
            lsp_diagnostics = [
                to_lsp_diagnostic(diag, source_lines, uri) for diag in cached.diagnostics
            ]
            ls.text_document_publish_diagnostics(
                types.PublishDiagnosticsParams(uri=uri, diagnostics=lsp_diagnostics)
            )
            logger.info("Cache hit for %s (source unchanged)", uri)
            return

    try:
        diagnostics = check_buffer(SourceBuffer(source))
        lsp_diagnostics = [
            to_lsp_diagnostic(diag, source_lines, uri) for diag in diagnostics
        ]
        ls.text_document_publish_diagnostics(
            types.PublishDiagnosticsParams(uri=uri, diagnostics=lsp_diagnostics)
        )
        analysis_cache[uri] = AnalysisCache(diagnostics=diagnostics, source_hash=source_hash)

        elapsed = time.time() - start_time
        logger.info("Check complete: %s (%.3fs, %d diagnostics)", uri, elapsed, len(diagnostics))

    except Exception as e:
        # Internal error: scanner bug
        _publish_error(ls, uri, f"Internal error: {str(e)}")
        logger.error("Check failed for %s: %s", uri, e, exc_info=True)


def _buffer(ls: LanguageServer, uri: str) -> SourceBuffer:
    doc = ls.workspace.get_text_document(uri)
    return SourceBuffer(doc.source)


def _offset(buffer: SourceBuffer, position: types.Position) -> int:
    """Clamp an LSP position to a buffer offset."""
    line = min(max(position.line, 0), buffer.line_count - 1)
    start = buffer.line_start(line)
    return min(start + max(position.character, 0), buffer.line_end(line))


@server.feature(types.INITIALIZE)
def initialize(ls: LanguageServer, params: types.InitializeParams):
    """Handle initialize request: apply initialization options."""
    logger.info("Server initialized")

    if params.initialization_options and isinstance(params.initialization_options, dict):
        _apply_settings(params.initialization_options)


@server.feature(types.TEXT_DOCUMENT_DID_OPEN)
async def did_open(ls: LanguageServer, params: types.DidOpenTextDocumentParams):
    """Handle document open: check immediately."""
    _validate(ls, params.text_document.uri, params.text_document.text)


@server.feature(types.TEXT_DOCUMENT_DID_SAVE)
async def did_save(ls: LanguageServer, params: types.DidSaveTextDocumentParams):
    """Handle document save: check immediately (no debounce)."""
    doc = ls.workspace.get_text_document(params.text_document.uri)
    _validate(ls, params.text_document.uri, doc.source)


@server.feature(types.TEXT_DOCUMENT_DID_CHANGE)
async def did_change(ls: LanguageServer, params: types.DidChangeTextDocumentParams):
    """Handle document change: debounce checking by 500ms (if enabled)."""
    if not server_settings["analyze_on_change"]:
        return

    uri = params.text_document.uri

    if uri in debounce_tasks:
        debounce_tasks[uri].cancel()

    async def debounced_validate():
        """Wait 500ms then validate."""
        await asyncio.sleep(0.5)
        doc = ls.workspace.get_text_document(uri)
        _validate(ls, uri, doc.source)
        if uri in debounce_tasks:
            del debounce_tasks[uri]

    task = asyncio.create_task(debounced_validate())
    debounce_tasks[uri] = task


@server.feature(types.TEXT_DOCUMENT_DID_CLOSE)
def did_close(ls: LanguageServer, params: types.DidCloseTextDocumentParams):
    """Forget cached results for a closed document."""
    analysis_cache.pop(params.text_document.uri, None)
    task = debounce_tasks.pop(params.text_document.uri, None)
    if task is not None:
        task.cancel()


@server.feature(types.TEXT_DOCUMENT_HOVER)
def hover(ls: LanguageServer, params: types.HoverParams) -> Optional[types.Hover]:
    """Handle hover request: show token kind and enclosing block at cursor."""
    try:
        buffer = _buffer(ls, params.text_document.uri)
        return get_hover(buffer, params.position.line, params.position.character)
    except Exception as e:
        logger.error("Hover failed: %s", e, exc_info=True)
        return None


@server.feature(
    types.TEXT_DOCUMENT_CODE_ACTION,
    types.CodeActionOptions(code_action_kinds=[types.CodeActionKind.QuickFix]),
)
def code_action(
    ls: LanguageServer, params: types.CodeActionParams
) -> Optional[list[types.CodeAction]]:
    """Handle code action request: return quick fixes for diagnostics."""
    uri = params.text_document.uri
    try:
        doc = ls.workspace.get_text_document(uri)
    except Exception:
        return None

    source_lines = doc.source.split("\n")
    actions: list[types.CodeAction] = []

    for diagnostic in params.context.diagnostics:
        actions.extend(code_actions_for_diagnostic(diagnostic, uri, source_lines))

    return actions if actions else None


@server.feature(types.TEXT_DOCUMENT_DOCUMENT_SYMBOL)
def document_symbol(
    ls: LanguageServer, params: types.DocumentSymbolParams
) -> Optional[list[types.DocumentSymbol]]:
    """Handle document symbol request: return steps and macros for outline view."""
    try:
        symbols = get_document_symbols(_buffer(ls, params.text_document.uri))
        return symbols if symbols else None
    except Exception as e:
        logger.error("Document symbols failed: %s", e, exc_info=True)
        return None


@server.feature(types.TEXT_DOCUMENT_FORMATTING)
def formatting(
    ls: LanguageServer, params: types.DocumentFormattingParams
) -> Optional[list[types.TextEdit]]:
    """Reindent the whole document."""
    try:
        settings = settings_from_options(params.options, _indent_settings())
        return format_lines(_buffer(ls, params.text_document.uri), 0, None, settings)
    except Exception as e:
        logger.error("Formatting failed: %s", e, exc_info=True)
        return None


@server.feature(types.TEXT_DOCUMENT_RANGE_FORMATTING)
def range_formatting(
    ls: LanguageServer, params: types.DocumentRangeFormattingParams
) -> Optional[list[types.TextEdit]]:
    """Reindent the lines touched by a range."""
    try:
        settings = settings_from_options(params.options, _indent_settings())
        buffer = _buffer(ls, params.text_document.uri)
        return format_lines(buffer, params.range.start.line, params.range.end.line, settings)
    except Exception as e:
        logger.error("Range formatting failed: %s", e, exc_info=True)
        return None


@server.feature(
    types.TEXT_DOCUMENT_ON_TYPE_FORMATTING,
    types.DocumentOnTypeFormattingOptions(first_trigger_character=";",
                                          more_trigger_character=["\n"]),
)
def on_type_formatting(
    ls: LanguageServer, params: types.DocumentOnTypeFormattingParams
) -> Optional[list[types.TextEdit]]:
    """Reindent as the user types a statement terminator or a newline."""
    try:
        settings = settings_from_options(params.options, _indent_settings())
        buffer = _buffer(ls, params.text_document.uri)
        return format_on_type(buffer, params.position.line, params.ch, settings)
    except Exception as e:
        logger.error("On-type formatting failed: %s", e, exc_info=True)
        return None


@server.feature(types.TEXT_DOCUMENT_SEMANTIC_TOKENS_FULL, LEGEND)
def semantic_tokens_full(
    ls: LanguageServer, params: types.SemanticTokensParams
) -> types.SemanticTokens:
    """Classify every token in the document."""
    try:
        return types.SemanticTokens(data=encode_tokens(_buffer(ls, params.text_document.uri)))
    except Exception as e:
        logger.error("Semantic tokens failed: %s", e, exc_info=True)
        return types.SemanticTokens(data=[])


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field of custom request params, delivered as a dict or an object."""
    if isinstance(obj, dict):
        return obj.get(name, default)
    return getattr(obj, name, default)


@server.feature(ENCLOSING_BLOCK)
def enclosing_block(ls: LanguageServer, params: Any) -> Optional[Dict[str, Any]]:
    """Custom request: the code region to submit for the cursor.

    Params: {textDocument: {uri}, position: {line, character}, unit?}
    """
    try:
        uri = _field(_field(params, "textDocument"), "uri")
        unit = _field(params, "unit", UNIT_BLOCK) or UNIT_BLOCK
        if unit not in UNITS:
            raise ValueError(f"unknown unit {unit!r}")
        buffer = _buffer(ls, uri)
        pos = _field(params, "position")
        position = types.Position(line=int(_field(pos, "line")),
                                  character=int(_field(pos, "character")))
        config = SessionConfig.from_options(server_settings["session"])
        submission = region_to_send(buffer, _offset(buffer, position), unit, config)
    except Exception as e:
        logger.error("Enclosing block request failed: %s", e, exc_info=True)
        return None

    kind = submission.block.kind.value if submission.block is not None else None
    return {
        "text": submission.text,
        "start": submission.start,
        "end": submission.end,
        "unit": submission.unit,
        "fallback": submission.fallback,
        "kind": kind,
    }


@server.feature(types.WORKSPACE_DID_CHANGE_CONFIGURATION)
def did_change_configuration(
    ls: LanguageServer, params: types.DidChangeConfigurationParams
):
    """Handle configuration changes from the client."""
    settings = getattr(params, "settings", None)
    if settings and isinstance(settings, dict):
        sas = settings.get("sas", {})
        if isinstance(sas, dict):
            _apply_settings(sas)

    for uri in list(analysis_cache.keys()):
        try:
            doc = ls.workspace.get_text_document(uri)
            _validate(ls, uri, doc.source, force=True)
        except Exception:
            logger.info("Skipping re-check of %s (no longer open)", uri)
