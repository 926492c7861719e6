"""OGNL expression lexer and recursive-descent parser producing OGNL-shaped ASTs."""

from .fragment import to_ognl
from .lexer_rd import Lexer, tokenize
from .parser_rd import Diagnostic, ParseError, Parser, parse_expression, parse_top_level
from .token_types import TT, Tok

__all__ = [
    "Diagnostic",
    "Lexer",
    "ParseError",
    "Parser",
    "TT",
    "Tok",
    "parse_expression",
    "parse_top_level",
    "to_ognl",
    "tokenize",
]
