from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

import pytest

from ognl_ast.lexer_rd import Lexer, tokenize
from ognl_ast.token_types import TT
from tests.support.harness import KEYWORDS, token_pairs, token_types


@dataclass(frozen=True)
class Case:
    """Unified lexer case payload."""

    name: str
    source: str
    expected: Optional[Tuple[Tuple[TT, object], ...]] = None
    expected_types: Optional[Tuple[TT, ...]] = None
    raw: Optional[str] = None
    msg: Optional[str] = None


BASIC_TOKEN_CASES: List[Case] = [
    Case("int-decimal", "123", expected=((TT.INT, 123),)),
    Case("int-zero", "0", expected=((TT.INT, 0),)),
    Case("int-hex", "0x1F", expected=((TT.INT, 31),)),
    Case("int-hex-upper-x", "0XfF", expected=((TT.INT, 255),)),
    Case("int-octal", "017", expected=((TT.INT, 15),)),
    Case("float-simple", "3.14", expected=((TT.FLOAT, 3.14),)),
    Case("float-trailing-dot", "5.", expected=((TT.FLOAT, 5.0),)),
    Case("float-leading-dot", ".1234", expected=((TT.FLOAT, 0.1234),)),
    Case("float-exponent", "1e3", expected=((TT.FLOAT, 1000.0),)),
    Case("float-signed-exponent", "2.5e-2", expected=((TT.FLOAT, 0.025),)),
    Case("ident-single", "x", expected=((TT.IDENT, "x"),)),
    Case("ident-snake", "foo_bar1", expected=((TT.IDENT, "foo_bar1"),)),
    Case("string-double", '"hello"', expected=((TT.STRING, "hello"),)),
    Case("string-empty", '""', expected=((TT.STRING, ""),)),
    Case("char-single", "'a'", expected=((TT.CHAR, "a"),)),
    Case("char-reclassified-string", "'ab'", expected=((TT.STRING, "ab"),)),
    Case("char-empty-is-string", "''", expected=((TT.STRING, ""),)),
    Case("backquote-char", "`x`", expected=((TT.BACKCHAR, "x"),)),
    Case("bool-true", "true", expected=((TT.TRUE, "true"),)),
    Case("bool-false", "false", expected=((TT.FALSE, "false"),)),
    Case("null-literal", "null", expected=((TT.NULL, "null"),)),
]

SUFFIX_CASES: List[Case] = [
    Case("long-lower", "10l", expected=((TT.INT, 10),), raw="10l"),
    Case("long-upper", "10L", expected=((TT.INT, 10),), raw="10L"),
    Case("bigint", "12H", expected=((TT.INT, 12),), raw="12H"),
    Case("hex-long", "0xFFL", expected=((TT.INT, 255),), raw="0xFFL"),
    Case("float-f", "1.5f", expected=((TT.FLOAT, 1.5),), raw="1.5f"),
    Case("double-d", "2D", expected=((TT.FLOAT, 2.0),), raw="2D"),
    Case("bigdec-int", "2b", expected=((TT.FLOAT, Decimal("2")),), raw="2b"),
    Case("bigdec-frac", "2.50B", expected=((TT.FLOAT, Decimal("2.50")),), raw="2.50B"),
    Case("dot-suffix", "2.d", expected=((TT.FLOAT, 2.0),), raw="2.d"),
]

NUMBER_BOUNDARY_CASES: List[Case] = [
    Case(
        "int-then-method",
        "5.toString()",
        expected_types=(TT.INT, TT.DOT, TT.IDENT, TT.LPAR, TT.RPAR),
    ),
    Case("double-dot", "1..2", expected=((TT.INT, 1), (TT.DOT, "."), (TT.FLOAT, 0.2))),
    Case("exponent-before-letter", "1else", expected=((TT.INT, 1), (TT.IDENT, "else"))),
    Case("dot-d-method", "5.doIt", expected_types=(TT.INT, TT.DOT, TT.IDENT)),
]

OPERATOR_CASES: List[Case] = [
    Case("plus", "+", expected_types=(TT.PLUS,)),
    Case("minus", "-", expected_types=(TT.MINUS,)),
    Case("star", "*", expected_types=(TT.STAR,)),
    Case("slash", "/", expected_types=(TT.SLASH,)),
    Case("mod", "%", expected_types=(TT.MOD,)),
    Case("assign", "=", expected_types=(TT.ASSIGN,)),
    Case("eq", "==", expected_types=(TT.EQ,)),
    Case("neq", "!=", expected_types=(TT.NEQ,)),
    Case("lt", "<", expected_types=(TT.LT,)),
    Case("gt", ">", expected_types=(TT.GT,)),
    Case("lte", "<=", expected_types=(TT.LTE,)),
    Case("gte", ">=", expected_types=(TT.GTE,)),
    Case("shl", "<<", expected_types=(TT.SHL,)),
    Case("shr", ">>", expected_types=(TT.SHR,)),
    Case("ushr", ">>>", expected_types=(TT.USHR,)),
    Case("and", "&&", expected_types=(TT.AND,)),
    Case("or", "||", expected_types=(TT.OR,)),
    Case("not", "!", expected_types=(TT.NOT,)),
    Case("bit-and", "&", expected_types=(TT.BIT_AND,)),
    Case("bit-or", "|", expected_types=(TT.BIT_OR,)),
    Case("xor", "^", expected_types=(TT.XOR,)),
    Case("bit-not", "~", expected_types=(TT.BIT_NOT,)),
    Case(
        "punctuation",
        "()[]{},.:;?#$@",
        expected_types=(
            TT.LPAR, TT.RPAR, TT.LSQB, TT.RSQB, TT.LBRACE, TT.RBRACE,
            TT.COMMA, TT.DOT, TT.COLON, TT.SEMI, TT.QMARK, TT.HASH,
            TT.DOLLAR, TT.AT,
        ),
    ),
    Case("ushr-then-eq", ">>>=", expected_types=(TT.USHR, TT.ASSIGN)),
]

NOT_IN_CASES: List[Case] = [
    Case("fused", "not in", expected_types=(TT.NOT_IN,)),
    Case("fused-wide", "not   \t in", expected_types=(TT.NOT_IN,)),
    Case("fused-newline", "not\nin", expected_types=(TT.NOT_IN,)),
    Case("in-expression", "a not in b", expected_types=(TT.IDENT, TT.NOT_IN, TT.IDENT)),
    Case("rollback-ident", "not inside", expected_types=(TT.NOT, TT.IDENT)),
    Case("rollback-operand", "not x", expected_types=(TT.NOT, TT.IDENT)),
    Case("rollback-symbol", "not (x)", expected_types=(TT.NOT, TT.LPAR, TT.IDENT, TT.RPAR)),
    Case("not-at-end", "not", expected_types=(TT.NOT,)),
    Case("glued-word", "notin", expected_types=(TT.IDENT,)),
]

STRING_ESCAPE_CASES: List[Case] = [
    Case("newline", r'"a\nb"', expected=((TT.STRING, "a\nb"),)),
    Case("tab-return", r'"\t\r"', expected=((TT.STRING, "\t\r"),)),
    Case("backspace-formfeed", r'"\b\f"', expected=((TT.STRING, "\b\f"),)),
    Case("backslash", r'"\\"', expected=((TT.STRING, "\\"),)),
    Case("quotes", r'"\"\'"', expected=((TT.STRING, "\"'"),)),
    Case("char-escaped-quote", r"'\''", expected=((TT.CHAR, "'"),)),
    Case("char-escaped-newline", r"'\n'", expected=((TT.CHAR, "\n"),)),
    Case("octal-three", r'"\101"', expected=((TT.STRING, "A"),)),
    Case("octal-zero", r'"\0"', expected=((TT.STRING, "\0"),)),
    Case("octal-max", r'"\377"', expected=((TT.STRING, "\xff"),)),
    Case("octal-two-digit-limit", r'"\477"', expected=((TT.STRING, "'7"),)),
    Case("unicode", r'"\u0041\u00e9"', expected=((TT.STRING, "A\u00e9"),)),
    Case("unicode-char", r"'\u0041'", expected=((TT.CHAR, "A"),)),
]

LEX_ERROR_CASES: List[Case] = [
    Case("illegal-char", "a \u00a5 b", msg="Unexpected character"),
    Case("illegal-backslash", "\\", msg="Unexpected character"),
    Case("unterminated-string", '"abc', msg="Unterminated string literal"),
    Case("unterminated-string-escape", '"abc\\', msg="Unterminated string literal"),
    Case("unterminated-char", "'ab", msg="Unterminated character literal"),
    Case("unterminated-backquote", "`ab`", msg="Unterminated character literal"),
    Case("hex-no-digits", "0x", msg="Malformed hex literal"),
    Case("octal-bad-digit", "09", msg="Malformed octal literal"),
    Case("exponent-no-digits", "1e+", msg="Malformed exponent"),
    Case("exponent-at-end", "1e", msg="Malformed exponent"),
    Case("float-with-long-suffix", "1.5L", msg="Integer suffix on floating-point literal"),
]


@pytest.mark.parametrize("case", BASIC_TOKEN_CASES, ids=lambda case: case.name)
def test_basic_tokens(case: Case) -> None:
    assert case.expected is not None
    assert token_pairs(case.source) == list(case.expected)


@pytest.mark.parametrize("case", SUFFIX_CASES, ids=lambda case: case.name)
def test_numeric_suffixes_stay_in_raw(case: Case) -> None:
    tokens = tokenize(case.source)
    assert case.expected is not None
    assert [(tok.type, tok.value) for tok in tokens[:-1]] == list(case.expected)
    assert tokens[0].raw == case.raw


@pytest.mark.parametrize("case", NUMBER_BOUNDARY_CASES, ids=lambda case: case.name)
def test_number_boundaries(case: Case) -> None:
    if case.expected is not None:
        assert token_pairs(case.source) == list(case.expected)
    else:
        assert token_types(case.source) == list(case.expected_types)


@pytest.mark.parametrize("case", OPERATOR_CASES, ids=lambda case: case.name)
def test_operators(case: Case) -> None:
    assert case.expected_types is not None
    assert token_types(case.source) == list(case.expected_types)


@pytest.mark.parametrize("word", sorted(KEYWORDS), ids=lambda word: f"kw-{word}")
def test_keywords(word: str) -> None:
    assert token_types(word) == [KEYWORDS[word]]


def test_keyword_prefix_is_identifier() -> None:
    assert token_pairs("newer andy") == [(TT.IDENT, "newer"), (TT.IDENT, "andy")]


def test_keyword_and_symbol_forms_share_kind() -> None:
    pairs = [("and", "&&"), ("or", "||"), ("band", "&"), ("bor", "|"), ("xor", "^"),
             ("eq", "=="), ("neq", "!="), ("lt", "<"), ("lte", "<="), ("gt", ">"),
             ("gte", ">="), ("shl", "<<"), ("shr", ">>"), ("ushr", ">>>"), ("not", "!")]
    for word, sym in pairs:
        assert token_types(word) == token_types(sym), word


@pytest.mark.parametrize("case", NOT_IN_CASES, ids=lambda case: case.name)
def test_not_in_fusion(case: Case) -> None:
    assert token_types(case.source) == list(case.expected_types)


def test_not_in_rollback_keeps_position() -> None:
    tokens = tokenize("not  inside")
    assert tokens[0].type == TT.NOT
    assert tokens[0].raw == "not"
    assert (tokens[1].value, tokens[1].line, tokens[1].column) == ("inside", 1, 6)


@pytest.mark.parametrize("case", STRING_ESCAPE_CASES, ids=lambda case: case.name)
def test_string_escapes(case: Case) -> None:
    assert case.expected is not None
    assert token_pairs(case.source) == list(case.expected)


def test_string_raw_keeps_quotes_and_escapes() -> None:
    tok = tokenize(r'"a\tb"')[0]
    assert tok.value == "a\tb"
    assert tok.raw == r'"a\tb"'


def test_position_tracking() -> None:
    tokens = tokenize("a +\n  b.c")
    positions = [(tok.type, tok.line, tok.column) for tok in tokens]
    assert positions == [
        (TT.IDENT, 1, 1),
        (TT.PLUS, 1, 3),
        (TT.IDENT, 2, 3),
        (TT.DOT, 2, 4),
        (TT.IDENT, 2, 5),
        (TT.EOF, 2, 6),
    ]


def test_whitespace_is_skipped() -> None:
    assert token_types(" \t\r\n a \n") == [TT.IDENT]


@pytest.mark.parametrize("case", LEX_ERROR_CASES, ids=lambda case: case.name)
def test_lex_errors_become_illegal_tokens(case: Case) -> None:
    tokens = tokenize(case.source)
    illegal = [tok for tok in tokens if tok.type == TT.ILLEGAL]
    assert illegal, tokens
    assert case.msg is not None
    assert case.msg in illegal[0].error
    assert tokens[-1].type == TT.EOF


def test_illegal_token_does_not_stop_lexing() -> None:
    assert token_types("a \u00a5 b") == [TT.IDENT, TT.ILLEGAL, TT.IDENT]


def test_eof_repeats_after_end() -> None:
    lexer = Lexer("a")
    assert lexer.next_token().type == TT.IDENT
    assert lexer.next_token().type == TT.EOF
    assert lexer.next_token().type == TT.EOF


def test_tokenize_ends_with_single_eof() -> None:
    tokens = tokenize("a.b")
    assert [tok.type for tok in tokens].count(TT.EOF) == 1
    assert tokens[-1].type == TT.EOF


def test_empty_source() -> None:
    tokens = tokenize("")
    assert len(tokens) == 1
    assert tokens[0].type == TT.EOF
