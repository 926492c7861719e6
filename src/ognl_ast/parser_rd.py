"""
Recursive Descent Parser for OGNL

Produces an AST whose shape mirrors, node for node, the tree built by the
reference OGNL grammar (ASTChain, ASTProperty, ASTConst, ...).

Structure:
- Lexer: tokens pulled on demand, two tokens visible (current, lookahead)
- Parser: one method per precedence level, sequence (lowest) to primary
- AST: lark Tree/Token nodes, see tree.py for the layout and accessors

Errors inside a production raise ParseError. The top-level sequence
catches them per element, records a Diagnostic and resumes at the next
top-level comma, so one call reports every independent failure.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple, Union
import logging

from lark import Tree, Token

from .lexer_rd import Lexer
from .token_types import TT, Tok, LITERALS
from .tree import ARRAY, CLASS, NAME

logger = logging.getLogger(__name__)

MAX_PARSE_ITERATIONS = 20000
MAX_NAME_DEPTH = 100

# Class implied by the @@method(...) shorthand
MATH_CLASS = 'java.lang.Math'

# ============================================================================
# Operator Tables
# ============================================================================

LOGICAL_OR_OPS = {TT.OR: 'ASTOr'}
LOGICAL_AND_OPS = {TT.AND: 'ASTAnd'}
BIT_OR_OPS = {TT.BIT_OR: 'ASTBitOr'}
XOR_OPS = {TT.XOR: 'ASTXor'}
BIT_AND_OPS = {TT.BIT_AND: 'ASTBitAnd'}

EQUALITY_OPS = {
    TT.EQ: 'ASTEq',
    TT.NEQ: 'ASTNotEq',
}

RELATIONAL_OPS = {
    TT.LT: 'ASTLess',
    TT.GT: 'ASTGreater',
    TT.LTE: 'ASTLessEq',
    TT.GTE: 'ASTGreaterEq',
    TT.IN: 'ASTIn',
    TT.NOT_IN: 'ASTNotIn',
}

SHIFT_OPS = {
    TT.SHL: 'ASTShiftLeft',
    TT.SHR: 'ASTShiftRight',
    TT.USHR: 'ASTUnsignedShiftRight',
}

ADDITIVE_OPS = {
    TT.PLUS: 'ASTAdd',
    TT.MINUS: 'ASTSubtract',
}

MULTIPLICATIVE_OPS = {
    TT.STAR: 'ASTMultiply',
    TT.SLASH: 'ASTDivide',
    TT.MOD: 'ASTRemainder',
}

UNARY_OPS = {
    TT.MINUS: 'ASTNegate',
    TT.NOT: 'ASTNot',
    TT.BIT_NOT: 'ASTBitNegate',
}

# `.{?e}`, `.{^e}`, `.{$e}`
SELECTION_MARKERS = {
    '?': 'ASTSelect',
    '^': 'ASTSelectFirst',
    '$': 'ASTSelectLast',
}

# `[^]`, `[|]`, `[$]`
DYNAMIC_SUBSCRIPTS = frozenset({'^', '|', '$'})

# Node kinds that turn a following `(arg)` into ASTEval
VALUE_REFERENCES = frozenset({'ASTVarRef', 'ASTConst'})

OPENERS = frozenset({TT.LPAR, TT.LSQB, TT.LBRACE})
CLOSERS = frozenset({TT.RPAR, TT.RSQB, TT.RBRACE})

# ============================================================================
# Errors
# ============================================================================

class ParseError(Exception):
    """Parse error with position info"""
    def __init__(self, message: str, token: Optional[Tok] = None,
                 diagnostics: Optional[List['Diagnostic']] = None):
        self.message = message
        self.token = token
        self.diagnostics = list(diagnostics or [])
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

@dataclass(frozen=True)
class Diagnostic:
    """One recorded syntax problem: message, token kind name and its position."""
    message: str
    token: str
    line: int
    column: int

    @classmethod
    def from_error(cls, err: ParseError) -> 'Diagnostic':
        tok = err.token
        if tok is None:
            return cls(err.message, TT.EOF.name, 0, 0)
        return cls(err.message, tok.type.name, tok.line, tok.column)

    def __str__(self) -> str:
        return f"{self.message} at line {self.line}, col {self.column} (token {self.token})"

# ============================================================================
# Parser
# ============================================================================

class Parser:
    """
    Recursive descent parser for OGNL.

    Expression precedence (lowest to highest):
    1. sequence (,)
    2. assignment (=), right associative
    3. conditional (? :), right associative
    4. logical or (||, or)
    5. logical and (&&, and)
    6. bitwise or (|, bor)
    7. bitwise xor (^, xor)
    8. bitwise and (&, band)
    9. equality (==, eq, !=, neq)
    10. relational (<, >, <=, >=, lt, gt, lte, gte, in, not in)
    11. shift (<<, >>, >>>, shl, shr, ushr)
    12. additive (+, -)
    13. multiplicative (*, /, %)
    14. unary (+, -, !, not, ~)
    15. instanceof suffix
    16. navigation chain (.name, .name(), [index], (arg), .{...}, .@C@m)
    17. primary (literals, identifiers, #vars, maps, lists, new, @statics, lambdas)

    A parser instance handles one expression; build a new one per source.
    """

    def __init__(self, source: str, *, max_iterations: int = MAX_PARSE_ITERATIONS,
                 max_name_depth: int = MAX_NAME_DEPTH):
        self.lexer = Lexer(source)
        self.max_iterations = max_iterations
        self.max_name_depth = max_name_depth
        self.errors: List[Diagnostic] = []

        self.iterations = 0  # navigation steps, shared across the whole parse
        self.depth = 0  # open brackets consumed and not yet closed

        self.current = self.lexer.next_token()
        self.lookahead = self.lexer.next_token()

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def peek(self) -> Tok:
        """Token after the current one"""
        return self.lookahead

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        if prev.type in OPENERS:
            self.depth += 1
        elif prev.type in CLOSERS and self.depth > 0:
            self.depth -= 1

        self.current = self.lookahead
        self.lookahead = self.lexer.next_token()
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            msg = message or f"Expected {token_type.name}, got {self.current.type.name}"
            raise self.error(msg)
        return self.advance()

    def error(self, message: str, token: Optional[Tok] = None) -> ParseError:
        """Build a ParseError; an ILLEGAL token reports its lexical problem instead"""
        tok = token or self.current
        if tok.type == TT.ILLEGAL and tok.error:
            message = tok.error
        return ParseError(message, tok)

    def unexpected(self, token: Optional[Tok] = None) -> ParseError:
        tok = token or self.current
        if tok.type == TT.EOF:
            return self.error("Unexpected end of input", tok)
        return self.error(f"Unexpected token {tok.raw!r}", tok)

    def record(self, err: ParseError):
        diag = Diagnostic.from_error(err)
        self.errors.append(diag)
        logger.debug("Recorded diagnostic: %s", diag)

    def count_iteration(self):
        """Bump the shared navigation counter, fail once it passes the cap"""
        self.iterations += 1
        if self.iterations > self.max_iterations:
            logger.warning("Navigation iteration limit (%d) exceeded", self.max_iterations)
            raise self.error(
                f"Parse iteration limit exceeded ({self.max_iterations}), possible infinite loop"
            )

    # ========================================================================
    # Node Construction
    # ========================================================================

    def node(self, tag: str, children: List[Union[Tree, Token]],
             at: Union[Tok, Tree]) -> Tree:
        """Build a tree positioned at a token or at another node's start"""
        tree = Tree(tag, children)
        if isinstance(at, Tree):
            line = getattr(at.meta, 'line', 0)
            column = getattr(at.meta, 'column', 0)
        else:
            line, column = at.line, at.column

        tree.meta.line = line
        tree.meta.column = column
        tree.meta.empty = False
        return tree

    def const_node(self, kind: str, value, tok: Tok, raw: Optional[str] = None) -> Tree:
        const = self.node('ASTConst', [Token(kind, value)], tok)
        const.meta.raw = tok.raw if raw is None else raw
        return const

    def literal_node(self, tok: Tok) -> Tree:
        """ASTConst for a literal token; numeric kind follows the suffix"""
        kind, value = literal_kind(tok)
        return self.const_node(kind, value, tok)

    def property_node(self, name_tok: Tok) -> Tree:
        """Bare identifier property: the name travels as an ASTConst child"""
        name = self.const_node('STRING', name_tok.value, name_tok)
        return self.node('ASTProperty', [name], name_tok)

    def index_node(self, index: Tree, lsqb: Tok) -> Tree:
        prop = self.node('ASTProperty', [index], lsqb)
        prop.meta.indexed = True
        return prop

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse_top_level(self) -> Tuple[Optional[Tree], List[Diagnostic]]:
        """
        Parse one complete expression.

        Returns the (possibly partial) AST together with every diagnostic
        collected; a non-empty list means the parse failed. Elements of a
        top-level sequence that fail are dropped from the partial AST.
        """
        elements: List[Tree] = []
        failed = False

        while True:
            self.depth = 0
            try:
                elements.append(self.parse_assignment_expr())
            except ParseError as err:
                self.record(err)
                failed = True
                self.synchronize()
            except RecursionError:
                logger.warning("Expression nesting exceeded the interpreter recursion limit")
                self.record(ParseError("Expression nested too deeply", self.current))
                failed = True
                self.synchronize()

            if not self.match(TT.COMMA):
                break

        if not failed and not self.check(TT.EOF):
            self.record(self.error(
                f"Expected end of input, got {self.current.type.name}"
            ))

        if not elements:
            return None, self.errors
        if len(elements) == 1:
            return elements[0], self.errors
        return self.node('ASTSequence', elements, elements[0]), self.errors

    def synchronize(self):
        """Skip to the next comma outside any bracket, or to end of input"""
        while not self.check(TT.EOF):
            if self.depth == 0 and self.check(TT.COMMA):
                return
            self.advance()

    # ========================================================================
    # Binary Precedence Levels
    # ========================================================================

    def parse_expr(self) -> Tree:
        """Parse sequence: expr, expr, ..."""
        first = self.parse_assignment_expr()

        if not self.check(TT.COMMA):
            return first

        items = [first]
        while self.match(TT.COMMA):
            items.append(self.parse_assignment_expr())

        return self.node('ASTSequence', items, first)

    def parse_assignment_expr(self) -> Tree:
        """Parse assignment: lhs = rhs (right associative)"""
        left = self.parse_conditional_expr()

        if self.match(TT.ASSIGN):
            right = self.parse_assignment_expr()
            return self.node('ASTAssign', [left, right], left)

        return left

    def parse_conditional_expr(self) -> Tree:
        """Parse conditional: test ? then : else"""
        test = self.parse_or_expr()

        if not self.match(TT.QMARK):
            return test

        then = self.parse_conditional_expr()
        self.expect(TT.COLON, "Expected ':' in conditional expression")
        other = self.parse_conditional_expr()
        return self.node('ASTTest', [test, then, other], test)

    def parse_or_expr(self) -> Tree:
        """Parse logical OR: expr || expr, expr or expr"""
        left = self.parse_and_expr()

        while self.current.type in LOGICAL_OR_OPS:
            op = self.advance()
            right = self.parse_and_expr()
            left = self.node(LOGICAL_OR_OPS[op.type], [left, right], left)

        return left

    def parse_and_expr(self) -> Tree:
        """Parse logical AND: expr && expr, expr and expr"""
        left = self.parse_bit_or_expr()

        while self.current.type in LOGICAL_AND_OPS:
            op = self.advance()
            right = self.parse_bit_or_expr()
            left = self.node(LOGICAL_AND_OPS[op.type], [left, right], left)

        return left

    def parse_bit_or_expr(self) -> Tree:
        left = self.parse_xor_expr()

        while self.current.type in BIT_OR_OPS:
            op = self.advance()
            right = self.parse_xor_expr()
            left = self.node(BIT_OR_OPS[op.type], [left, right], left)

        return left

    def parse_xor_expr(self) -> Tree:
        left = self.parse_bit_and_expr()

        while self.current.type in XOR_OPS:
            op = self.advance()
            right = self.parse_bit_and_expr()
            left = self.node(XOR_OPS[op.type], [left, right], left)

        return left

    def parse_bit_and_expr(self) -> Tree:
        left = self.parse_equality_expr()

        while self.current.type in BIT_AND_OPS:
            op = self.advance()
            right = self.parse_equality_expr()
            left = self.node(BIT_AND_OPS[op.type], [left, right], left)

        return left

    def parse_equality_expr(self) -> Tree:
        """Parse equality: ==, !=, eq, neq"""
        left = self.parse_relational_expr()

        while self.current.type in EQUALITY_OPS:
            op = self.advance()
            right = self.parse_relational_expr()
            left = self.node(EQUALITY_OPS[op.type], [left, right], left)

        return left

    def parse_relational_expr(self) -> Tree:
        """Parse relational: <, >, <=, >=, in, not in (and their keyword forms)"""
        left = self.parse_shift_expr()

        while True:
            if self.check(TT.NOT) and self.peek().type == TT.IN:
                # `!` or an unfused `not` directly before `in`
                self.advance()
                self.advance()
                tag = 'ASTNotIn'
            elif self.current.type in RELATIONAL_OPS:
                tag = RELATIONAL_OPS[self.advance().type]
            else:
                break

            right = self.parse_shift_expr()
            left = self.node(tag, [left, right], left)

        return left

    def parse_shift_expr(self) -> Tree:
        left = self.parse_additive_expr()

        while self.current.type in SHIFT_OPS:
            op = self.advance()
            right = self.parse_additive_expr()
            left = self.node(SHIFT_OPS[op.type], [left, right], left)

        return left

    def parse_additive_expr(self) -> Tree:
        """Parse addition/subtraction: expr + expr, expr - expr"""
        left = self.parse_multiplicative_expr()

        while self.current.type in ADDITIVE_OPS:
            op = self.advance()
            right = self.parse_multiplicative_expr()
            left = self.node(ADDITIVE_OPS[op.type], [left, right], left)

        return left

    def parse_multiplicative_expr(self) -> Tree:
        """Parse multiplication/division/remainder: expr * expr, etc."""
        left = self.parse_unary_expr()

        while self.current.type in MULTIPLICATIVE_OPS:
            op = self.advance()
            right = self.parse_unary_expr()
            left = self.node(MULTIPLICATIVE_OPS[op.type], [left, right], left)

        return left

    # ========================================================================
    # Unary and instanceof
    # ========================================================================

    def parse_unary_expr(self) -> Tree:
        """
        Parse unary: +x (the plus is dropped), -x, !x, not x, ~x, then an
        optional `instanceof Type` suffix on the operand.

        The keyword form `not x in y` is read as `x not in y`.
        """
        tok = self.current

        if self.match(TT.PLUS):
            return self.parse_unary_expr()

        if tok.type in UNARY_OPS:
            self.advance()
            operand = self.parse_unary_expr()

            if tok.type == TT.NOT and tok.value == 'not' and self.check(TT.IN):
                self.advance()
                right = self.parse_shift_expr()
                return self.node('ASTNotIn', [operand, right], operand)

            return self.node(UNARY_OPS[tok.type], [operand], tok)

        expr = self.parse_navigation_chain()

        if self.match(TT.INSTANCEOF):
            type_name = self.parse_class_name("type name after 'instanceof'", (TT.DOT,))
            return self.node('ASTInstanceof', [expr, Token(CLASS, type_name)], expr)

        return expr

    # ========================================================================
    # Navigation Chains
    # ========================================================================

    def parse_navigation_chain(self) -> Tree:
        """Parse primary followed by any number of navigation steps"""
        start = self.current
        head = self.parse_primary_expr()
        return self.parse_chain_continue(head, start)

    def parse_chain_continue(self, head: Tree, start: Tok) -> Tree:
        """
        Accumulate chain steps after `head`. Steps never hold their own
        receiver: the chain supplies it positionally. A lone child is
        returned as-is instead of a one-element ASTChain.
        """
        children = [head]

        while self.check(TT.DOT, TT.LSQB, TT.LPAR):
            self.count_iteration()

            if self.check(TT.DOT):
                children.append(self.parse_chain_step())
            elif self.check(TT.LSQB):
                children.append(self.parse_index())
            else:
                lpar = self.advance()
                arg = None if self.check(TT.RPAR) else self.parse_expr()
                self.expect(TT.RPAR, "Expected ')' after argument")
                args = [arg] if arg is not None else []

                if len(children) == 1 and self.is_value_reference(children[0]):
                    # (arg) applied to a variable, lambda or literal
                    children = [self.node('ASTEval', [children[0], *args], children[0])]
                else:
                    children.append(self.node('ASTMethod', [Token(NAME, ''), *args], lpar))

        if len(children) == 1:
            return children[0]

        return self.node('ASTChain', children, start)

    def is_value_reference(self, node: Tree) -> bool:
        return node.data in VALUE_REFERENCES

    def parse_chain_step(self) -> Tree:
        """Parse what follows a `.` inside a chain"""
        self.advance()  # .
        tok = self.current

        if self.match(TT.LPAR):
            # .(expr) splices the inner expression into the chain
            expr = self.parse_expr()
            self.expect(TT.RPAR, "Expected ')' after eval expression")
            return expr

        if tok.type == TT.IDENT:
            self.advance()
            if self.check(TT.LPAR):
                return self.parse_method_call(tok)
            return self.property_node(tok)

        if tok.type == TT.LBRACE:
            return self.parse_projection_or_selection()

        if tok.type == TT.AT:
            return self.parse_static_reference()

        raise self.error(f"Expected identifier, '(', '{{' or '@' after '.', got {tok.type.name}", tok)

    def parse_index(self) -> Tree:
        """Parse [expr] or a dynamic subscript [^], [|], [$]"""
        lsqb = self.expect(TT.LSQB)

        if self.current.raw in DYNAMIC_SUBSCRIPTS and self.peek().type == TT.RSQB:
            sym = self.advance()
            self.advance()  # ]
            return self.index_node(self.const_node('SYMBOL', sym.raw, sym), lsqb)

        index = self.parse_expr()
        self.expect(TT.RSQB, "Expected ']' after index expression")
        return self.index_node(index, lsqb)

    def parse_projection_or_selection(self) -> Tree:
        """Parse {expr} (projection) or {?expr} / {^expr} / {$expr} (selection)"""
        lbrace = self.expect(TT.LBRACE)

        tag = SELECTION_MARKERS.get(self.current.raw)
        if tag is not None:
            self.advance()
            what = 'selection'
        else:
            tag = 'ASTProject'
            what = 'projection'

        body = self.parse_assignment_expr()
        self.expect(TT.RBRACE, f"Expected '}}' after {what} expression")
        return self.node(tag, [body], lbrace)

    def parse_method_call(self, name_tok: Tok) -> Tree:
        """Parse name(args); the name is already consumed"""
        args = self.parse_arg_list()
        return self.node('ASTMethod', [Token(NAME, name_tok.value), *args], name_tok)

    def parse_arg_list(self) -> List[Tree]:
        """Parse (arg, arg, ...)"""
        self.expect(TT.LPAR)
        args: List[Tree] = []

        if not self.check(TT.RPAR):
            args.append(self.parse_assignment_expr())
            while self.match(TT.COMMA):
                args.append(self.parse_assignment_expr())

        self.expect(TT.RPAR, f"Expected ')' after arguments, got {self.current.type.name}")
        return args

    # ========================================================================
    # Primary Expressions
    # ========================================================================

    def parse_primary_expr(self) -> Tree:
        """Parse primary expressions (literals, identifiers, parens, etc.)"""
        tok = self.current

        # Identifier: property or receiver-less method call
        if tok.type == TT.IDENT:
            self.advance()
            if self.check(TT.LPAR):
                return self.parse_method_call(tok)
            return self.property_node(tok)

        if tok.type in LITERALS:
            self.advance()
            return self.literal_node(tok)

        # #var, #this, #root, #{...}, #@Class@{...}
        if tok.type == TT.HASH:
            return self.parse_hash_expr()

        if tok.type == TT.DOLLAR:
            self.advance()
            return self.const_node('SYMBOL', '$', tok)

        # Parenthesized expression
        if tok.type == TT.LPAR:
            self.advance()
            expr = self.parse_expr()
            self.expect(TT.RPAR, f"Expected ')' after expression, got {self.current.type.name}")
            return expr

        # [index] with no receiver
        if tok.type == TT.LSQB:
            return self.parse_index()

        if tok.type == TT.LBRACE:
            return self.parse_list_or_map()

        if tok.type == TT.NEW:
            return self.parse_constructor()

        if tok.type == TT.AT:
            return self.parse_static_reference()

        if tok.type == TT.COLON:
            return self.parse_lambda()

        raise self.unexpected(tok)

    def parse_hash_expr(self) -> Tree:
        hash_tok = self.expect(TT.HASH)

        if self.check(TT.LBRACE):
            return self.parse_map_literal(hash_tok)

        if self.match(TT.AT):
            name = self.parse_class_name("class name after '#@'")
            self.expect(TT.AT, "Expected '@' after class name")
            return self.parse_map_literal(hash_tok, name)

        name_tok = self.expect(TT.IDENT, "Expected variable name after '#'")
        if name_tok.value == 'this':
            tag = 'ASTThisVarRef'
        elif name_tok.value == 'root':
            tag = 'ASTRootVarRef'
        else:
            tag = 'ASTVarRef'
        return self.node(tag, [Token(NAME, name_tok.value)], hash_tok)

    def parse_lambda(self) -> Tree:
        """Parse :[body]; the body travels as the only child of an ASTConst"""
        colon = self.expect(TT.COLON)
        self.expect(TT.LSQB, "Expected '[' after ':' in lambda expression")
        body = self.parse_expr()
        self.expect(TT.RSQB, f"Expected ']' after lambda body, got {self.current.type.name}")
        return self.node('ASTConst', [body], colon)

    # ========================================================================
    # Collections
    # ========================================================================

    def parse_list_or_map(self) -> Tree:
        """Parse {a, b, c} (list) or {k : v, ...} (map, decided by the first colon)"""
        lbrace = self.expect(TT.LBRACE)

        if self.match(TT.RBRACE):
            return self.node('ASTList', [], lbrace)

        first = self.parse_assignment_expr()
        if self.check(TT.COLON):
            return self.parse_map_entries(lbrace, first, [])
        return self.parse_list_rest(lbrace, first)

    def parse_list_rest(self, start: Tok, first: Tree) -> Tree:
        elements = [first]
        while self.match(TT.COMMA):
            elements.append(self.parse_assignment_expr())

        self.expect(TT.RBRACE, f"Expected '}}' at end of list, got {self.current.type.name}")
        return self.node('ASTList', elements, start)

    def parse_map_literal(self, start: Tok, class_name: Optional[str] = None) -> Tree:
        """Parse {k : v, k2, ...} after `#` or `#@Class@`"""
        self.expect(TT.LBRACE, "Expected '{' to open map literal")
        header = [Token(CLASS, class_name)] if class_name is not None else []

        if self.match(TT.RBRACE):
            return self.node('ASTMap', header, start)

        return self.parse_map_entries(start, self.parse_assignment_expr(), header)

    def parse_map_entries(self, start: Tok, first_key: Tree, header: List[Token]) -> Tree:
        entries = [self.parse_key_value(first_key)]
        while self.match(TT.COMMA):
            entries.append(self.parse_key_value(self.parse_assignment_expr()))

        self.expect(TT.RBRACE, f"Expected '}}' at end of map, got {self.current.type.name}")
        return self.node('ASTMap', [*header, *entries], start)

    def parse_key_value(self, key: Tree) -> Tree:
        """A key with no colon pairs with an absent (null) value"""
        if self.match(TT.COLON):
            value = self.parse_assignment_expr()
            return self.node('ASTKeyValue', [key, value], key)
        return self.node('ASTKeyValue', [key], key)

    # ========================================================================
    # Constructors and Statics
    # ========================================================================

    def parse_class_name(self, what: str,
                         separators: Tuple[TT, ...] = (TT.DOT, TT.DOLLAR)) -> str:
        """Parse a dotted class name; `$` joins inner classes where allowed"""
        first = self.expect(TT.IDENT, f"Expected {what}")
        parts = [first.value]
        segments = 0

        while self.check(*separators):
            segments += 1
            if segments > self.max_name_depth:
                logger.warning("Class name depth limit (%d) exceeded", self.max_name_depth)
                raise self.error(
                    f"Class name too deep (more than {self.max_name_depth} levels)"
                )

            sep = self.advance()
            ident = self.expect(TT.IDENT, f"Expected identifier after '{sep.raw}'")
            parts.append(sep.raw + ident.value)

        return ''.join(parts)

    def parse_constructor(self) -> Tree:
        """
        Parse constructor call:
        - new T(args)
        - new T[] { elements }  (elements wrapped in ASTList)
        - new T[size]
        """
        new_tok = self.expect(TT.NEW)
        cls = Token(CLASS, self.parse_class_name("class name after 'new'"))

        if self.check(TT.LPAR):
            args = self.parse_arg_list()
            return self.node('ASTCtor', [cls, *args], new_tok)

        if not self.match(TT.LSQB):
            raise self.error("Expected '(' or '[' after constructor class name")

        array = Token(ARRAY, '[]')

        if self.match(TT.RSQB):
            lbrace = self.expect(TT.LBRACE, "Expected '{' after '[]' in array constructor")
            if self.match(TT.RBRACE):
                init = self.node('ASTList', [], lbrace)
            else:
                init = self.parse_list_rest(lbrace, self.parse_assignment_expr())
            return self.node('ASTCtor', [cls, array, init], new_tok)

        size = self.parse_assignment_expr()
        self.expect(TT.RSQB, f"Expected ']' after array size, got {self.current.type.name}")
        return self.node('ASTCtor', [cls, array, size], new_tok)

    def parse_static_reference(self) -> Tree:
        """
        Parse @Class@field, @Class@method(args) or @@method(args); the
        last is shorthand for java.lang.Math and cannot name a field.
        """
        at = self.expect(TT.AT)

        if self.match(TT.AT):
            member = self.expect(TT.IDENT, "Expected method name after '@@'")
            if not self.check(TT.LPAR):
                raise self.error(
                    "'@@' can only be used with method calls, not field access", member
                )
            args = self.parse_arg_list()
            return self.node(
                'ASTStaticMethod', [Token(CLASS, MATH_CLASS), Token(NAME, member.value), *args], at
            )

        cls = Token(CLASS, self.parse_class_name("class name after '@'"))
        self.expect(TT.AT, "Expected '@' after class name")
        member = self.expect(TT.IDENT, "Expected member name after '@'")

        if self.check(TT.LPAR):
            args = self.parse_arg_list()
            return self.node('ASTStaticMethod', [cls, Token(NAME, member.value), *args], at)

        return self.node('ASTStaticField', [cls, Token(NAME, member.value)], at)

# ============================================================================
# Literal Classification
# ============================================================================

KEYWORD_CONSTANTS: Dict[TT, Tuple[str, object]] = {
    TT.TRUE: ('BOOLEAN', True),
    TT.FALSE: ('BOOLEAN', False),
    TT.NULL: ('NULL', None),
}

def literal_kind(tok: Tok) -> Tuple[str, object]:
    """Constant kind and decoded value for a literal token"""
    if tok.type in KEYWORD_CONSTANTS:
        return KEYWORD_CONSTANTS[tok.type]

    if tok.type == TT.INT:
        suffix = tok.raw[-1]
        if suffix in 'lL':
            return ('LONG', tok.value)
        if suffix in 'hH':
            return ('BIGINT', tok.value)
        return ('INT', tok.value)

    if tok.type == TT.FLOAT:
        suffix = tok.raw[-1]
        if suffix in 'fF':
            return ('FLOAT', tok.value)
        if suffix in 'bB':
            return ('BIGDEC', tok.value)
        return ('DOUBLE', tok.value)

    if tok.type in (TT.CHAR, TT.BACKCHAR):
        return ('CHAR', tok.value)

    return ('STRING', tok.value)

# ============================================================================
# Entry Points
# ============================================================================

def parse_top_level(source: str, **limits) -> Tuple[Optional[Tree], List[Diagnostic]]:
    """Parse one expression, return (ast, diagnostics)"""
    return Parser(source, **limits).parse_top_level()

def parse_expression(source: str, **limits) -> Tree:
    """Parse one expression, raising ParseError (with all diagnostics) on failure"""
    ast, errors = parse_top_level(source, **limits)
    if errors:
        raise ParseError(str(errors[0]), diagnostics=errors)
    return ast
