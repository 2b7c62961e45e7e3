"""Shared helpers for working with the lark Tree/Token expression nodes."""
from __future__ import annotations
from typing import List, Optional, TypeGuard, Union
from typing_extensions import TypeAlias

from lark import Token, Tree

Node: TypeAlias = Union[Tree, Token]

EXPRESSION_LABELS = frozenset({
    'identifier', 'literal', 'unary', 'binary', 'logical', 'conditional',
    'assignment', 'member', 'computed_member', 'call', 'arguments', 'array',
    'object', 'property', 'computed_key', 'grouping',
})


def is_tree(node: Node) -> TypeGuard[Tree]:
    return isinstance(node, Tree)

def tree_label(node: Node) -> Optional[str]:
    return node.data if is_tree(node) else None

def tree_children(node: Node) -> List[Node]:
    if not is_tree(node):
        return []

    return list(node.children)

def identifier(name: str) -> Tree:
    return Tree('identifier', [Token('IDENTIFIER', name)])

def literal(kind: str, raw: str) -> Tree:
    return Tree('literal', [Token(kind, raw)])

def leaf_text(node: Node) -> Optional[str]:
    """Text of an identifier/literal node, else None"""
    if tree_label(node) in ('identifier', 'literal'):
        return str(tree_children(node)[0])
    return None

def tree_depth(node: Node) -> int:
    """Height of the tree, counted without recursion"""
    depth = 0
    stack = [(node, 1)]
    while stack:
        current, level = stack.pop()
        if not is_tree(current):
            continue
        depth = max(depth, level)
        stack.extend((child, level + 1) for child in current.children)
    return depth
