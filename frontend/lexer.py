# Ethan Doughty
# lexer.py
"""SAS lexical classifier.

classify() turns the text at one buffer offset into a single Token, looking
either forward or backward. Comments and string literals come back whole as
COMMENT / STRING tokens so that boundary scans can step over them. Nothing
is tokenized ahead of time; callers ask for the token they need.
"""

import re
from typing import Iterator, List, Optional

from frontend.buffer import SourceBuffer, Span, COMMENT
from model import Token, TokenKind

FORWARD = "forward"
BACKWARD = "backward"

BLOCK_OPENERS = {"proc", "data", "%macro"}
BLOCK_CLOSERS = {"run", "quit", "%mend"}

# Words that act as infix/prefix operators
OPERATOR_WORDS = {
    "and", "or", "not", "in",
    "eq", "ne", "lt", "le", "gt", "ge",
}

# Statement keywords that matter to the scanners and the indentation grammar
KEYWORDS = {
    "if", "then", "else", "do", "end", "to", "by", "while", "until",
    "select", "when", "otherwise", "output", "return", "delete", "stop",
    "leave", "continue", "set", "merge", "update", "modify", "where",
    "retain", "keep", "drop", "length", "format", "informat", "label",
    "array", "input", "put", "infile", "file", "datalines", "cards",
    "%if", "%then", "%else", "%do", "%end", "%to", "%by", "%while",
    "%until", "%let", "%put", "%global", "%local", "%include", "%return",
    "%goto", "%abort",
}

# Longest operators first so that `**` never lexes as two `*`
TOKEN_SPEC = [
    ("NUMBER", r"(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?"),
    ("WORD", r"%?&*[A-Za-z_][\w&.]*"),
    ("SEMI", r";"),
    ("OP", r"\*\*|<=|>=|~=|\^=|¬=|\|\||!!|<>|><"
           r"|[-+*/=<>()\[\]{},:@$#&|!?^~¬%.]"),
    ("MISMATCH", r"[^\s]"),  # anything else is a one-character operator
]

MASTER_RE = re.compile("|".join(
    f"(?P<{name}>{pat})" for name, pat in TOKEN_SPEC
))

_WHITESPACE = " \t\r\n\f\v"


def word_kind(word: str) -> TokenKind:
    """Classify an identifier-shaped lexeme."""
    w = word.lower()
    if w in BLOCK_OPENERS:
        return TokenKind.BLOCK_OPENER
    if w in BLOCK_CLOSERS:
        return TokenKind.BLOCK_CLOSER
    if w in OPERATOR_WORDS:
        return TokenKind.OPERATOR
    if w in KEYWORDS:
        return TokenKind.KEYWORD
    return TokenKind.IDENTIFIER


def is_macro_call(token: Token) -> bool:
    """True for `%name` words that are not macro-language keywords."""
    return (token.kind == TokenKind.IDENTIFIER and token.value.startswith("%")
            and len(token.value) > 1)


def _span_token(buffer: SourceBuffer, span: Span) -> Token:
    kind = TokenKind.COMMENT if span.kind == COMMENT else TokenKind.STRING
    return Token(kind, buffer.text[span.start:span.end], span.start, span.end)


def _match_token(text: str, pos: int, endpos: int) -> Token:
    m = MASTER_RE.match(text, pos, endpos)
    if m is None:
        # Only reachable when pos sits on whitespace; treat it as one char
        return Token(TokenKind.OPERATOR, text[pos], pos, pos + 1)
    group = m.lastgroup
    value = m.group()
    if group == "NUMBER":
        kind = TokenKind.NUMBER
    elif group == "WORD":
        kind = word_kind(value)
    elif group == "SEMI":
        kind = TokenKind.STATEMENT_END
    else:
        kind = TokenKind.OPERATOR
    return Token(kind, value, m.start(), m.end())


def _classify_forward(buffer: SourceBuffer, offset: int) -> Token:
    text = buffer.text
    span = buffer.span_at(offset)
    if span is not None:
        return _span_token(buffer, span)

    i = offset
    n = len(text)
    while i < n and text[i] in _WHITESPACE:
        i += 1
    if i >= n:
        return Token(TokenKind.EOF, "", n, n)

    span = buffer.span_at(i)
    if span is not None:
        return _span_token(buffer, span)

    # A code token never runs into the next comment or string
    stop = n
    nxt = buffer.next_span_start(i)
    if nxt is not None:
        stop = nxt
    return _match_token(text, i, stop)


def _classify_backward(buffer: SourceBuffer, offset: int) -> Token:
    text = buffer.text
    span = buffer.span_at(offset)
    if span is not None and span.start < offset:
        return _span_token(buffer, span)

    i = offset
    while i > 0 and text[i - 1] in _WHITESPACE and buffer.span_at(i - 1) is None:
        i -= 1
    if i == 0:
        return Token(TokenKind.EOF, "", 0, 0)

    span = buffer.span_at(i - 1)
    if span is not None:
        return _span_token(buffer, span)

    # Re-lex forward from the start of the blank-delimited run that ends
    # here, so that both directions agree on token boundaries.
    j = i
    while j > 0 and text[j - 1] not in _WHITESPACE and buffer.span_at(j - 1) is None:
        j -= 1
    tok = _match_token(text, j, i)
    while tok.end < i:
        tok = _match_token(text, tok.end, i)
    return tok


def classify(buffer: SourceBuffer, offset: int, direction: str = FORWARD) -> Token:
    """Classify the token at `offset`.

    Args:
        buffer: Source buffer
        offset: Position in [0, len(buffer)]
        direction: FORWARD for the token starting at/after offset, BACKWARD
            for the token ending at/before it

    Returns:
        Token; COMMENT or STRING when offset lies in such a span, EOF at
        the buffer edge

    Raises:
        OutOfRange: offset outside the buffer
    """
    buffer.check_offset(offset)
    if direction == FORWARD:
        return _classify_forward(buffer, offset)
    if direction == BACKWARD:
        return _classify_backward(buffer, offset)
    raise ValueError(f"unknown scan direction {direction!r}")


def iter_tokens(buffer: SourceBuffer, start: int = 0, end: Optional[int] = None,
                comments: bool = True) -> Iterator[Token]:
    """Yield tokens from `start` up to `end` in document order."""
    limit = len(buffer) if end is None else buffer.check_offset(end)
    pos = buffer.check_offset(start)
    while pos < limit:
        tok = _classify_forward(buffer, pos)
        if tok.kind == TokenKind.EOF or tok.start >= limit:
            return
        if comments or tok.kind != TokenKind.COMMENT:
            yield tok
        pos = tok.end


def lex(src: str) -> List[Token]:
    """Turn a SAS source string into a list of Tokens, ending with EOF."""
    buffer = SourceBuffer(src)
    tokens = list(iter_tokens(buffer))
    tokens.append(Token(TokenKind.EOF, "", len(src), len(src)))
    return tokens
