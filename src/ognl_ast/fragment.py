"""Render an OGNL AST back to expression text.

The output follows the canonical toString style (``#{ k : v }``,
``new int[]{ 1, 2 }``, binary operands in parentheses) so trees can be
compared by eye against what OGNL itself prints. It is a display
form, not a whitespace-preserving round trip.
"""
from __future__ import annotations
from decimal import Decimal
from typing import List

from lark import Tree
from lark.visitors import Interpreter

from .tree import (
    BINARY_OPS, SELECTIONS, UNARY_OPS,
    arguments, class_name, const_kind, const_value, is_array, is_index,
    is_lambda, key_value, lambda_body, map_entries, member_name,
    property_name, subnodes, tag, var_name,
)

OPERATOR_TEXT = {
    'ASTAdd': '+',
    'ASTSubtract': '-',
    'ASTMultiply': '*',
    'ASTDivide': '/',
    'ASTRemainder': '%',
    'ASTAnd': '&&',
    'ASTOr': '||',
    'ASTBitAnd': '&',
    'ASTBitOr': '|',
    'ASTXor': '^',
    'ASTShiftLeft': '<<',
    'ASTShiftRight': '>>',
    'ASTUnsignedShiftRight': '>>>',
    'ASTEq': '==',
    'ASTNotEq': '!=',
    'ASTLess': '<',
    'ASTLessEq': '<=',
    'ASTGreater': '>',
    'ASTGreaterEq': '>=',
    'ASTIn': 'in',
    'ASTNotIn': 'not in',
}

UNARY_TEXT = {
    'ASTNegate': '-',
    'ASTNot': '!',
    'ASTBitNegate': '~',
}

SELECTION_TEXT = {
    'ASTSelect': '?',
    'ASTSelectFirst': '^',
    'ASTSelectLast': '$',
}

ESCAPES = {
    '\n': '\\n',
    '\t': '\\t',
    '\r': '\\r',
    '\b': '\\b',
    '\f': '\\f',
    '\\': '\\\\',
}

# Bodies that read ambiguously without parentheses
COMPOUND = BINARY_OPS | {'ASTTest', 'ASTAssign', 'ASTSequence'}


def quote(text: str, delim: str) -> str:
    out = []
    for ch in text:
        if ch == delim:
            out.append('\\' + ch)
        elif ch in ESCAPES:
            out.append(ESCAPES[ch])
        else:
            out.append(ch)
    return delim + ''.join(out) + delim


def format_number(kind: str, value) -> str:
    if kind == 'LONG':
        return f"{value}L"
    if kind == 'BIGINT':
        return f"{value}H"
    if kind == 'BIGDEC':
        return f"{Decimal(value)}B"
    if kind in ('FLOAT', 'DOUBLE'):
        text = repr(float(value))
        if '.' not in text and 'e' not in text and 'inf' not in text and 'nan' not in text:
            text += '.0'
        return text
    return str(value)


class FragmentRenderer(Interpreter):
    """Interpreter returning the OGNL text of each visited node."""

    def render(self, node: Tree) -> str:
        return self.visit(node)

    def wrapped(self, node: Tree, tags=BINARY_OPS) -> str:
        text = self.visit(node)
        return f"({text})" if tag(node) in tags else text

    def joined(self, nodes: List[Tree]) -> str:
        return ', '.join(self.visit(n) for n in nodes)

    def __default__(self, tree: Tree) -> str:
        label = tree.data
        if label in BINARY_OPS:
            left, right = tree.children
            return f"{self.wrapped(left)} {OPERATOR_TEXT[label]} {self.wrapped(right)}"
        if label in UNARY_OPS:
            (operand,) = tree.children
            return UNARY_TEXT[label] + self.wrapped(operand)
        if label in SELECTIONS:
            (body,) = tree.children
            return f"{{{SELECTION_TEXT[label]} {self.wrapped(body, COMPOUND)}}}"
        raise ValueError(f"Cannot render node {label!r}")

    # ------------------------------------------------------------------
    # Leaves
    # ------------------------------------------------------------------

    def ASTConst(self, tree: Tree) -> str:
        if is_lambda(tree):
            return f":[{self.visit(lambda_body(tree))}]"

        kind = const_kind(tree)
        value = const_value(tree)
        if kind == 'NULL':
            return 'null'
        if kind == 'BOOLEAN':
            return 'true' if value else 'false'
        if kind == 'STRING':
            return quote(value, '"')
        if kind == 'CHAR':
            return quote(value, "'")
        if kind == 'SYMBOL':
            return value
        return format_number(kind, value)

    def ASTProperty(self, tree: Tree) -> str:
        if is_index(tree):
            (index,) = tree.children
            return f"[{self.visit(index)}]"
        return property_name(tree)

    def ASTVarRef(self, tree: Tree) -> str:
        return '#' + var_name(tree)

    ASTThisVarRef = ASTVarRef
    ASTRootVarRef = ASTVarRef

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def ASTChain(self, tree: Tree) -> str:
        head, *steps = tree.children
        parts = [self.visit(head)]
        for step in steps:
            if is_index(step):
                parts.append(self.visit(step))
            elif tag(step) in BINARY_OPS or tag(step) == 'ASTTest':
                parts.append(f".({self.visit(step)})")
            else:
                parts.append('.' + self.visit(step))
        return ''.join(parts)

    def ASTMethod(self, tree: Tree) -> str:
        return f"{member_name(tree)}({self.joined(arguments(tree))})"

    def ASTStaticMethod(self, tree: Tree) -> str:
        return f"@{class_name(tree)}@{member_name(tree)}({self.joined(arguments(tree))})"

    def ASTStaticField(self, tree: Tree) -> str:
        return f"@{class_name(tree)}@{member_name(tree)}"

    def ASTCtor(self, tree: Tree) -> str:
        args = arguments(tree)
        if not is_array(tree):
            return f"new {class_name(tree)}({self.joined(args)})"

        (init,) = args
        if tag(init) == 'ASTList':
            return f"new {class_name(tree)}[]{self.visit(init)}"
        return f"new {class_name(tree)}[{self.visit(init)}]"

    def ASTProject(self, tree: Tree) -> str:
        (body,) = tree.children
        return f"{{{self.wrapped(body, COMPOUND)}}}"

    def ASTEval(self, tree: Tree) -> str:
        target, *arg = tree.children
        return f"({self.visit(target)})({self.joined(arg)})"

    # ------------------------------------------------------------------
    # Operators
    # ------------------------------------------------------------------

    def ASTSequence(self, tree: Tree) -> str:
        return ', '.join(self.wrapped(n, BINARY_OPS | {'ASTTest'}) for n in tree.children)

    def ASTAssign(self, tree: Tree) -> str:
        left, right = tree.children
        return f"{self.visit(left)} = {self.visit(right)}"

    def ASTTest(self, tree: Tree) -> str:
        test, then, other = tree.children
        return f"{self.wrapped(test)} ? {self.visit(then)} : {self.visit(other)}"

    def ASTInstanceof(self, tree: Tree) -> str:
        (operand,) = subnodes(tree)
        return f"{self.visit(operand)} instanceof {class_name(tree)}"

    # ------------------------------------------------------------------
    # Collections
    # ------------------------------------------------------------------

    def ASTList(self, tree: Tree) -> str:
        if not tree.children:
            return '{ }'
        return f"{{ {self.joined(tree.children)} }}"

    def ASTMap(self, tree: Tree) -> str:
        body = self.joined(map_entries(tree))
        prefix = f"#@{class_name(tree)}@" if class_name(tree) else '#'
        if not body:
            return prefix + '{ }'
        return f"{prefix}{{ {body} }}"

    def ASTKeyValue(self, tree: Tree) -> str:
        key, value = key_value(tree)
        value_text = self.visit(value) if value is not None else 'null'
        return f"{self.visit(key)} : {value_text}"


def to_ognl(node: Tree) -> str:
    """Render an AST node as OGNL text"""
    return FragmentRenderer().render(node)
