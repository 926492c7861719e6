"""Shared helpers for reading the lark Tree/Token AST produced by the parser.

Nodes are ``lark.Tree`` instances tagged with the OGNL node name
(``ASTChain``, ``ASTConst``, ...). Scalar payloads (names, class names,
constant values) are ``lark.Token`` leaves at fixed leading positions;
the accessors below hide those positions from callers.
"""
from __future__ import annotations
from typing import Any, Iterator, List, Optional, Tuple
from typing_extensions import TypeAlias, TypeGuard

from lark import Tree, Token

Node: TypeAlias = Tree | Token

# Payload token types
NAME = 'NAME'
CLASS = 'CLASS'
ARRAY = 'ARRAY'

CONST_KINDS = frozenset({
    'INT', 'LONG', 'BIGINT',
    'FLOAT', 'DOUBLE', 'BIGDEC',
    'STRING', 'CHAR', 'BOOLEAN', 'NULL', 'SYMBOL',
})

VAR_REFS = frozenset({'ASTVarRef', 'ASTThisVarRef', 'ASTRootVarRef'})

BINARY_OPS = frozenset({
    'ASTAdd', 'ASTSubtract', 'ASTMultiply', 'ASTDivide', 'ASTRemainder',
    'ASTAnd', 'ASTOr', 'ASTBitAnd', 'ASTBitOr', 'ASTXor',
    'ASTShiftLeft', 'ASTShiftRight', 'ASTUnsignedShiftRight',
    'ASTEq', 'ASTNotEq', 'ASTLess', 'ASTLessEq', 'ASTGreater', 'ASTGreaterEq',
    'ASTIn', 'ASTNotIn',
})

UNARY_OPS = frozenset({'ASTNegate', 'ASTNot', 'ASTBitNegate'})

SELECTIONS = frozenset({'ASTSelect', 'ASTSelectFirst', 'ASTSelectLast'})


def is_tree(node: Any) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def is_token(node: Any) -> TypeGuard[Token]:
    return isinstance(node, Token)

def tag(node: Any) -> Optional[str]:
    return node.data if is_tree(node) else None

def subnodes(node: Node) -> List[Tree]:
    """Sub-expression children, payload tokens skipped."""
    if not is_tree(node):
        return []

    return [ch for ch in node.children if is_tree(ch)]

def _payload(node: Node, token_type: str) -> Optional[Token]:
    if not is_tree(node):
        return None

    for ch in node.children:
        if is_token(ch) and ch.type == token_type:
            return ch

    return None

# ============================================================================
# Constants
# ============================================================================

def is_lambda(node: Node) -> bool:
    return tag(node) == 'ASTConst' and bool(node.children) and is_tree(node.children[0])

def lambda_body(node: Node) -> Optional[Tree]:
    return node.children[0] if is_lambda(node) else None

def const_kind(node: Node) -> Optional[str]:
    """INT, LONG, ..., SYMBOL for a literal ASTConst; None for lambdas and other nodes."""
    if tag(node) != 'ASTConst' or is_lambda(node) or not node.children:
        return None

    return node.children[0].type

def const_value(node: Node) -> Any:
    """Decoded value of a literal ASTConst (int, float, Decimal, str, bool, None)."""
    if const_kind(node) is None:
        return None

    return node.children[0].value

def raw_text(node: Node) -> Optional[str]:
    """Source text of a literal, suffix and quotes included."""
    if not is_tree(node):
        return None

    return getattr(node.meta, 'raw', None)

def node_position(node: Node) -> Tuple[Optional[int], Optional[int]]:
    """(line, column) of the node's first token, when recorded."""
    if not is_tree(node):
        return (None, None)

    meta = node.meta
    return (getattr(meta, 'line', None), getattr(meta, 'column', None))

# ============================================================================
# Names
# ============================================================================

def property_name(node: Node) -> Optional[str]:
    """Name of a property written as a bare identifier, else None."""
    if tag(node) != 'ASTProperty' or is_index(node):
        return None

    if len(node.children) != 1 or const_kind(node.children[0]) != 'STRING':
        return None

    return const_value(node.children[0])

def is_index(node: Node) -> bool:
    """True for ASTProperty written with brackets: ``[expr]`` or ``[^]``."""
    if tag(node) != 'ASTProperty':
        return False

    return bool(getattr(node.meta, 'indexed', False))

def var_name(node: Node) -> Optional[str]:
    if tag(node) not in VAR_REFS:
        return None

    tok = _payload(node, NAME)
    return tok.value if tok is not None else None

def member_name(node: Node) -> Optional[str]:
    """Method or field name of ASTMethod / ASTStaticMethod / ASTStaticField."""
    if tag(node) not in ('ASTMethod', 'ASTStaticMethod', 'ASTStaticField'):
        return None

    tok = _payload(node, NAME)
    return tok.value if tok is not None else None

def class_name(node: Node) -> Optional[str]:
    """Class name of ctors, statics, instanceof and typed maps."""
    tok = _payload(node, CLASS)
    return tok.value if tok is not None else None

def is_array(node: Node) -> bool:
    return tag(node) == 'ASTCtor' and _payload(node, ARRAY) is not None

def arguments(node: Node) -> List[Tree]:
    """Ordered argument list of a call or constructor."""
    if tag(node) not in ('ASTMethod', 'ASTStaticMethod', 'ASTCtor'):
        return []

    return subnodes(node)

# ============================================================================
# Maps
# ============================================================================

def map_entries(node: Node) -> List[Tree]:
    if tag(node) != 'ASTMap':
        return []

    return subnodes(node)

def key_value(node: Node) -> Tuple[Tree, Optional[Tree]]:
    """(key, value) of an ASTKeyValue; value is None when the key stood alone."""
    if tag(node) != 'ASTKeyValue':
        raise ValueError(f"expected ASTKeyValue, got {tag(node) or type(node).__name__}")

    key = node.children[0]
    value = node.children[1] if len(node.children) > 1 else None
    return (key, value)

# ============================================================================
# Traversal
# ============================================================================

def walk(node: Node) -> Iterator[Tree]:
    """Pre-order traversal over Tree nodes; iterative so deep chains are fine."""
    if not is_tree(node):
        return

    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(subnodes(current)))

def find_all(node: Node, label: str) -> List[Tree]:
    return [n for n in walk(node) if n.data == label]
