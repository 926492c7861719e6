"""
Lexer for OGNL - Recursive Descent Parser

Turns an OGNL expression into tokens, one at a time, on demand.

Features:
- Single-pass scanning with one character of look-ahead
- Position tracking (line, column)
- Numeric literals: decimal/hex/octal integers, floats, type suffixes
- String and character literals with C-style, octal and unicode escapes
- Keyword operators (and, or, eq, shl, ...) and the fused `not in`
- Never raises: bad input becomes an ILLEGAL token
"""

from decimal import Decimal
from typing import Iterator, List, Optional
import string

from .token_types import TT, Tok

LETTERS = frozenset(string.ascii_letters + '_')
DIGITS = frozenset(string.digits)
OCTAL_DIGITS = frozenset('01234567')
HEX_DIGITS = frozenset(string.hexdigits)
WHITESPACE = frozenset(' \t\r\n\f')

# l/L force long, h/H force big integer
INT_SUFFIXES = frozenset('lLhH')
# d/D and f/F force floating point, b/B force big decimal
FLOAT_SUFFIXES = frozenset('dDfFbB')
NUMBER_SUFFIXES = INT_SUFFIXES | FLOAT_SUFFIXES

SIMPLE_ESCAPES = {
    'n': '\n',
    't': '\t',
    'r': '\r',
    'b': '\b',
    'f': '\f',
    '\\': '\\',
    "'": "'",
    '"': '"',
}

# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    OGNL lexer.

    The parser pulls tokens with next_token(); once EOF has been produced,
    further calls keep returning EOF. Restart by constructing a new lexer.
    """

    # Keyword mapping: word operators share kinds with their symbol forms
    KEYWORDS = {
        'true': TT.TRUE,
        'false': TT.FALSE,
        'null': TT.NULL,
        'new': TT.NEW,
        'instanceof': TT.INSTANCEOF,
        'in': TT.IN,
        'not': TT.NOT,
        'and': TT.AND,
        'or': TT.OR,
        'band': TT.BIT_AND,
        'bor': TT.BIT_OR,
        'xor': TT.XOR,
        'shl': TT.SHL,
        'shr': TT.SHR,
        'ushr': TT.USHR,
        'eq': TT.EQ,
        'neq': TT.NEQ,
        'lt': TT.LT,
        'lte': TT.LTE,
        'gt': TT.GT,
        'gte': TT.GTE,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Three-character operators
        ('>>>', TT.USHR),

        # Two-character operators
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        ('<<', TT.SHL),
        ('>>', TT.SHR),
        ('&&', TT.AND),
        ('||', TT.OR),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('%', TT.MOD),
        ('&', TT.BIT_AND),
        ('|', TT.BIT_OR),
        ('^', TT.XOR),
        ('~', TT.BIT_NOT),
        ('!', TT.NOT),
        ('=', TT.ASSIGN),
        ('<', TT.LT),
        ('>', TT.GT),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        (',', TT.COMMA),
        ('.', TT.DOT),
        (':', TT.COLON),
        (';', TT.SEMI),
        ('?', TT.QMARK),
        ('#', TT.HASH),
        ('$', TT.DOLLAR),
        ('@', TT.AT),
    ]

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1

        # Start of the token being scanned
        self.tok_pos = 0
        self.tok_line = 1
        self.tok_column = 1

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def next_token(self) -> Tok:
        """Scan and return the next token"""
        self.skip_whitespace()
        self.mark()

        if self.pos >= len(self.source):
            return self.emit(TT.EOF, None)

        ch = self.peek()

        # String and character literals
        if ch == '"':
            return self.scan_string()
        if ch == "'":
            return self.scan_char()
        if ch == '`':
            return self.scan_backchar()

        # Numbers, including a leading-dot float such as .1234
        if ch in DIGITS or (ch == '.' and self.peek(1) in DIGITS):
            return self.scan_number()

        # Identifiers and keywords
        if ch in LETTERS:
            return self.scan_identifier()

        # Operators and punctuation
        return self.scan_operator()

    def tokenize(self) -> List[Tok]:
        """Tokenize the remaining source, return token list ending with EOF"""
        return list(self)

    def __iter__(self) -> Iterator[Tok]:
        while True:
            tok = self.next_token()
            yield tok
            if tok.type == TT.EOF:
                return

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_number(self) -> Tok:
        """Scan number literal; the suffix stays in the raw text"""
        # Hexadecimal
        if self.peek() == '0' and self.peek(1) in ('x', 'X'):
            self.advance(2)
            if self.peek() not in HEX_DIGITS:
                return self.illegal("Malformed hex literal")
            while self.peek() in HEX_DIGITS:
                self.advance()
            if self.peek() in INT_SUFFIXES:
                self.advance()
            return self.emit_number(is_float=False, base=16)

        # Octal
        if self.peek() == '0' and self.peek(1) in DIGITS:
            self.advance()
            while self.peek() in DIGITS:
                self.advance()
            digits = self.source[self.tok_pos + 1:self.pos]
            if any(ch not in OCTAL_DIGITS for ch in digits):
                return self.illegal("Malformed octal literal")
            if self.peek() in INT_SUFFIXES:
                self.advance()
            return self.emit_number(is_float=False, base=8)

        is_float = False

        # Integer part (empty for .1234)
        while self.peek() in DIGITS:
            self.advance()

        # Decimal part: `5.` and `5.0` are floats, `5.toString()` and `5..` are not
        if self.peek() == '.':
            nxt = self.peek(1)
            if nxt in DIGITS or self._is_bare_suffix(2) or (nxt not in LETTERS and nxt != '.'):
                is_float = True
                self.advance()
                while self.peek() in DIGITS:
                    self.advance()

        # Scientific notation
        # `1e5`, `1E-3`; `1e` before a letter is left for the identifier scanner
        if self.peek() in ('e', 'E') and self.peek(1) not in LETTERS:
            sign = 1 if self.peek(1) in ('+', '-') else 0
            self.advance(1 + sign)
            if self.peek() not in DIGITS:
                return self.illegal("Malformed exponent")
            is_float = True
            while self.peek() in DIGITS:
                self.advance()

        # Type suffix
        if self.peek() in FLOAT_SUFFIXES:
            is_float = True
            self.advance()
        elif self.peek() in INT_SUFFIXES:
            self.advance()
            if is_float:
                return self.illegal("Integer suffix on floating-point literal")

        return self.emit_number(is_float=is_float, base=10)

    def _is_bare_suffix(self, offset: int) -> bool:
        """True when peek(offset - 1) is a lone numeric suffix such as the d in `2.d`"""
        ch = self.peek(offset - 1)
        after = self.peek(offset)
        return ch in NUMBER_SUFFIXES and after not in LETTERS and after not in DIGITS

    def emit_number(self, is_float: bool, base: int) -> Tok:
        raw = self.source[self.tok_pos:self.pos]
        text = raw
        if is_float:
            if text[-1] in FLOAT_SUFFIXES:
                text = text[:-1]
            value = Decimal(text) if raw[-1] in 'bB' else float(text)
            return self.emit(TT.FLOAT, value)

        if text[-1] in INT_SUFFIXES:
            text = text[:-1]
        if base == 16:
            value = int(text[2:], 16)
        elif base == 8:
            value = int(text, 8)
        else:
            value = int(text)
        return self.emit(TT.INT, value)

    def scan_string(self) -> Tok:
        """Scan double-quoted string literal"""
        value = self.scan_quoted('"')
        if value is None:
            return self.illegal("Unterminated string literal")
        return self.emit(TT.STRING, value)

    def scan_char(self) -> Tok:
        """
        Scan single-quoted literal. One character after escape processing
        makes a CHAR; any other length (including empty) is a STRING.
        """
        value = self.scan_quoted("'")
        if value is None:
            return self.illegal("Unterminated character literal")
        if len(value) == 1:
            return self.emit(TT.CHAR, value)
        return self.emit(TT.STRING, value)

    def scan_backchar(self) -> Tok:
        """Scan back-quoted character: `c` (no escapes)"""
        self.advance()  # opening `
        if self.pos >= len(self.source):
            return self.illegal("Unterminated character literal")
        value = self.advance()
        if self.peek() != '`':
            return self.illegal("Unterminated character literal")
        self.advance()  # closing `
        return self.emit(TT.BACKCHAR, value)

    def scan_quoted(self, quote: str) -> Optional[str]:
        """Scan quoted content with escapes; None when the closing quote is missing"""
        self.advance()  # opening quote
        parts = []

        while self.pos < len(self.source) and self.peek() != quote:
            if self.peek() != '\\':
                parts.append(self.advance())
                continue

            self.advance()  # backslash
            if self.pos >= len(self.source):
                return None
            parts.append(self.scan_escape())

        if self.pos >= len(self.source):
            return None

        self.advance()  # closing quote
        return ''.join(parts)

    def scan_escape(self) -> str:
        """Decode one escape sequence; the backslash is already consumed"""
        ch = self.advance()

        if ch in SIMPLE_ESCAPES:
            return SIMPLE_ESCAPES[ch]

        if ch in OCTAL_DIGITS:
            # \0 .. \377: three digits only when the first is 0-3
            digits = ch
            limit = 3 if ch in '0123' else 2
            while len(digits) < limit and self.peek() in OCTAL_DIGITS:
                digits += self.advance()
            return chr(int(digits, 8))

        if ch == 'u':
            while self.peek() == 'u':
                self.advance()
            digits = self.source[self.pos:self.pos + 4]
            if len(digits) == 4 and all(d in HEX_DIGITS for d in digits):
                self.advance(4)
                return chr(int(digits, 16))
            return 'u'

        # Unknown escape: keep the character itself
        return ch

    def scan_identifier(self) -> Tok:
        """Scan identifier or keyword"""
        value = self.read_word()
        token_type = self.KEYWORDS.get(value, TT.IDENT)

        if token_type == TT.NOT and self.match_in():
            return self.emit(TT.NOT_IN, 'not in')

        return self.emit(token_type, value)

    def match_in(self) -> bool:
        """
        After `not`: consume a following `in` (across whitespace) and return
        True, otherwise roll back to just after `not`.
        """
        saved = (self.pos, self.line, self.column)

        self.skip_whitespace()
        if self.peek() in LETTERS and self.read_word() == 'in':
            return True

        self.pos, self.line, self.column = saved
        return False

    def scan_operator(self) -> Tok:
        """Scan operators and punctuation"""
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                return self.emit(op_type, op_str)

        ch = self.advance()
        return self.illegal(f"Unexpected character {ch!r}")

    # ========================================================================
    # Utilities
    # ========================================================================

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character; empty string past the end"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return ''

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        if n < 0:
            raise ValueError(f"advance() requires n >= 0, got {n}")
        result = self.source[self.pos:self.pos + n]
        for ch in result:
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos += len(result)
        return result

    def read_word(self) -> str:
        start = self.pos
        while self.peek() in LETTERS or self.peek() in DIGITS:
            self.advance()
        return self.source[start:self.pos]

    def skip_whitespace(self) -> bool:
        """Skip whitespace (newlines included), return True if any skipped"""
        skipped = False
        while self.peek() in WHITESPACE:
            self.advance()
            skipped = True
        return skipped

    def mark(self):
        """Remember where the current token starts"""
        self.tok_pos = self.pos
        self.tok_line = self.line
        self.tok_column = self.column

    def emit(self, token_type: TT, value) -> Tok:
        """Build a token spanning from the mark to the current position"""
        return Tok(
            type=token_type,
            value=value,
            line=self.tok_line,
            column=self.tok_column,
            raw=self.source[self.tok_pos:self.pos],
        )

    def illegal(self, message: str) -> Tok:
        """Build an ILLEGAL token covering the offending text"""
        if self.pos == self.tok_pos:
            self.advance()
        tok = self.emit(TT.ILLEGAL, self.source[self.tok_pos:self.pos])
        tok.error = message
        return tok

# ============================================================================
# Testing
# ============================================================================

def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()
