"""Document model for HML markup.

Expressions inside interpolations and attribute values are lark ``Tree``
nodes; see ``tree.EXPRESSION_LABELS`` for the labels in use.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from lark import Tree

VOID_TAGS = frozenset({
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input', 'link',
    'meta', 'param', 'source', 'track', 'wbr',
})


class ValueKind(Enum):
    STRING = 'string'
    EXPRESSION = 'expression'
    BOOLEAN = 'boolean'
    UNQUOTED = 'unquoted'


@dataclass
class Attribute:
    name: str
    value_kind: ValueKind = ValueKind.BOOLEAN
    value: str = ''
    quote: Optional[str] = None
    expression: Optional[Tree] = None


@dataclass
class Text:
    value: str


@dataclass
class Comment:
    value: str


@dataclass
class Interpolation:
    expression: Tree


@dataclass
class Element:
    tag_name: str
    attributes: List[Attribute] = field(default_factory=list)
    children: List['MarkupNode'] = field(default_factory=list)
    self_closing: bool = False


MarkupNode = Union[Element, Text, Comment, Interpolation]


@dataclass
class MarkupDocument:
    children: List[MarkupNode] = field(default_factory=list)
