"""
Token Types for the OGNL Parser

Shared between lexer and parser to avoid circular dependencies.
"""

from typing import Any, Optional
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors the OGNL grammar terminals"""

    # Literals
    INT = auto()
    FLOAT = auto()
    STRING = auto()
    CHAR = auto()
    BACKCHAR = auto()  # `c`
    IDENT = auto()

    # Keywords
    TRUE = auto()
    FALSE = auto()
    NULL = auto()
    NEW = auto()
    INSTANCEOF = auto()
    IN = auto()
    NOT_IN = auto()  # not in

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    MOD = auto()

    # Bitwise (symbol or keyword form)
    BIT_AND = auto()  # &, band
    BIT_OR = auto()  # |, bor
    XOR = auto()  # ^, xor
    BIT_NOT = auto()  # ~

    # Comparison
    EQ = auto()  # ==, eq
    NEQ = auto()  # !=, neq
    LT = auto()  # <, lt
    GT = auto()  # >, gt
    LTE = auto()  # <=, lte
    GTE = auto()  # >=, gte

    # Logical
    AND = auto()  # &&, and
    OR = auto()  # ||, or
    NOT = auto()  # !, not

    # Shifts
    SHL = auto()  # <<, shl
    SHR = auto()  # >>, shr
    USHR = auto()  # >>>, ushr

    # Assignment
    ASSIGN = auto()  # =

    # Punctuation
    LPAR = auto()
    RPAR = auto()
    LSQB = auto()
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    COMMA = auto()
    DOT = auto()
    COLON = auto()
    SEMI = auto()
    QMARK = auto()
    HASH = auto()  # #
    DOLLAR = auto()  # $
    AT = auto()  # @

    # Special
    EOF = auto()
    ILLEGAL = auto()


# Kinds that may open a literal constant at primary level
LITERALS = frozenset({
    TT.INT, TT.FLOAT, TT.STRING, TT.CHAR, TT.BACKCHAR,
    TT.TRUE, TT.FALSE, TT.NULL,
})


@dataclass
class Tok:
    """Token with position info.

    ``value`` holds the decoded payload (number, unescaped string, name);
    ``raw`` is the exact source slice, suffixes and quotes included.
    ILLEGAL tokens describe what went wrong in ``error``.
    """

    type: TT
    value: Any
    line: int = 0
    column: int = 0
    raw: str = ''
    error: Optional[str] = None

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
