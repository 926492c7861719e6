"""prompt_toolkit lexer for live OGNL syntax highlighting in the REPL."""

from __future__ import annotations

from typing import Callable

from prompt_toolkit.document import Document
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.lexers import Lexer

from .lexer_rd import tokenize
from .token_types import TT

# Map highlight groups → prompt_toolkit style strings.
GROUP_STYLE = {
    "keyword": "bold ansicyan",
    "boolean": "ansicyan",
    "constant": "ansicyan",
    "number": "ansimagenta",
    "string": "ansigreen",
    "variable": "bold ansiyellow",
    "static": "bold ansiblue",
    "identifier": "",
    "operator": "",
    "punctuation": "",
    "error": "bold ansired",
}

# Token type → highlight group.
_TT_GROUP = {
    TT.NEW: "keyword",
    TT.INSTANCEOF: "keyword",
    TT.IN: "keyword",
    TT.NOT_IN: "keyword",
    TT.TRUE: "boolean",
    TT.FALSE: "boolean",
    TT.NULL: "constant",
    TT.INT: "number",
    TT.FLOAT: "number",
    TT.STRING: "string",
    TT.CHAR: "string",
    TT.BACKCHAR: "string",
    TT.HASH: "variable",
    TT.AT: "static",
    TT.DOLLAR: "constant",
    TT.IDENT: "identifier",
    TT.ILLEGAL: "error",
}

# Operators spelled as words (and, eq, shl, ...) read as keywords.
_WORD_OPERATORS = frozenset({
    TT.AND, TT.OR, TT.NOT, TT.BIT_AND, TT.BIT_OR, TT.XOR,
    TT.EQ, TT.NEQ, TT.LT, TT.GT, TT.LTE, TT.GTE,
    TT.SHL, TT.SHR, TT.USHR,
})


def _group_for(tok, prev) -> str:
    if tok.type in _WORD_OPERATORS:
        return "keyword" if tok.raw[:1].isalpha() else "operator"

    # #name and @Class@ take the colour of their sigil
    if tok.type == TT.IDENT and prev is not None and prev.type in (TT.HASH, TT.AT):
        return _TT_GROUP[prev.type]

    return _TT_GROUP.get(tok.type, "punctuation")


def _highlight_line(text: str) -> StyleAndTextTuples:
    """Highlight a single line of OGNL source."""
    result: StyleAndTextTuples = []
    pos = 0
    prev = None

    for tok in tokenize(text):
        if tok.type == TT.EOF or not tok.raw:
            continue

        start = tok.column - 1
        if start > pos:
            result.append(("", text[pos:start]))

        style = GROUP_STYLE.get(_group_for(tok, prev), "")
        result.append((style, tok.raw))
        pos = start + len(tok.raw)
        prev = tok

    if pos < len(text):
        result.append(("", text[pos:]))

    return result if result else [("", text)]


class OgnlLexer(Lexer):
    """prompt_toolkit Lexer that highlights OGNL source using the RD lexer."""

    def lex_document(self, document: Document) -> Callable[[int], StyleAndTextTuples]:
        lines = document.lines

        # Pre-compute highlights for all lines.
        cache: dict[int, StyleAndTextTuples] = {}

        def get_line(lineno: int) -> StyleAndTextTuples:
            if lineno not in cache:
                if lineno < len(lines):
                    cache[lineno] = _highlight_line(lines[lineno])
                else:
                    cache[lineno] = [("", "")]

            return cache[lineno]

        return get_line
