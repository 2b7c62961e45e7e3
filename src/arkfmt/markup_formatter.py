"""
Pretty-printer for HML markup documents.

Elements go one per line with children indented one level; inline tags and
elements holding only text/interpolations stay on a single line. Attribute
lists longer than max_line_length wrap one attribute per line. Expressions
are regenerated from their trees with the minimum parentheses needed.
"""
from __future__ import annotations

import re
from typing import List, Optional, Tuple

from lark import Token, Transformer, Tree, v_args

from .markup_nodes import (
    VOID_TAGS,
    Attribute,
    Comment,
    Element,
    Interpolation,
    MarkupDocument,
    MarkupNode,
    Text,
    ValueKind,
)
from .options import FormatOptions

INLINE_TAGS = frozenset({
    'a', 'abbr', 'b', 'bdi', 'bdo', 'br', 'cite', 'code', 'data', 'em',
    'i', 'img', 'input', 'kbd', 'label', 'q', 's', 'samp', 'small', 'span',
    'strong', 'sub', 'sup', 'time', 'u', 'var',
})

BINARY_PRECEDENCE = {
    '||': 3,
    '&&': 4,
    '==': 5, '!=': 5, '===': 5, '!==': 5,
    '<': 6, '>': 6, '<=': 6, '>=': 6,
    '+': 7, '-': 7,
    '*': 8, '/': 8, '%': 8,
}

ASSIGNMENT_PREC = 1
CONDITIONAL_PREC = 2
UNARY_PREC = 9
POSTFIX_PREC = 10
ATOM_PREC = 11

WHITESPACE = re.compile(r'\s+')

Printed = Tuple[str, int]


def wrap(printed: Printed, required: int) -> str:
    text, prec = printed
    return f"({text})" if prec < required else text


class ExprPrinter(Transformer):
    """Turns an expression tree into ``(text, precedence)``"""

    @v_args(inline=True)
    def identifier(self, name: Token) -> Printed:
        return str(name), ATOM_PREC

    @v_args(inline=True)
    def literal(self, raw: Token) -> Printed:
        return str(raw), ATOM_PREC

    @v_args(inline=True)
    def unary(self, op: Token, argument: Printed) -> Printed:
        operand = wrap(argument, UNARY_PREC)
        # keep "- -a" from fusing into "--a"
        sep = ' ' if op in ('+', '-') and operand[:1] == op else ''
        return f"{op}{sep}{operand}", UNARY_PREC

    @v_args(inline=True)
    def binary(self, left: Printed, op: Token, right: Printed) -> Printed:
        prec = BINARY_PRECEDENCE.get(str(op), UNARY_PREC)
        return f"{wrap(left, prec)} {op} {wrap(right, prec + 1)}", prec

    logical = binary

    @v_args(inline=True)
    def conditional(self, test: Printed, consequent: Printed, alternate: Printed) -> Printed:
        parts = [wrap(p, CONDITIONAL_PREC) for p in (test, consequent, alternate)]
        return f"{parts[0]} ? {parts[1]} : {parts[2]}", CONDITIONAL_PREC

    @v_args(inline=True)
    def assignment(self, left: Printed, op: Token, right: Printed) -> Printed:
        return f"{wrap(left, ASSIGNMENT_PREC)} {op} {wrap(right, ASSIGNMENT_PREC)}", ASSIGNMENT_PREC

    @v_args(inline=True)
    def member(self, obj: Printed, prop: Printed) -> Printed:
        return f"{wrap(obj, POSTFIX_PREC)}.{prop[0]}", POSTFIX_PREC

    @v_args(inline=True)
    def computed_member(self, obj: Printed, prop: Printed) -> Printed:
        return f"{wrap(obj, POSTFIX_PREC)}[{prop[0]}]", POSTFIX_PREC

    @v_args(inline=True)
    def call(self, callee: Printed, args: List[str]) -> Printed:
        return f"{wrap(callee, POSTFIX_PREC)}({', '.join(args)})", POSTFIX_PREC

    def arguments(self, children: List[Printed]) -> List[str]:
        return [text for text, _ in children]

    def array(self, children: List[Printed]) -> Printed:
        return "[" + ", ".join(text for text, _ in children) + "]", ATOM_PREC

    def object(self, children: List[Printed]) -> Printed:
        if not children:
            return "{}", ATOM_PREC
        return "{ " + ", ".join(text for text, _ in children) + " }", ATOM_PREC

    def property(self, children: List[Printed]) -> Printed:
        if len(children) == 1:
            return children[0][0], 0
        key, value = children
        return f"{key[0]}: {value[0]}", 0

    @v_args(inline=True)
    def computed_key(self, expression: Printed) -> Printed:
        return f"[{expression[0]}]", ATOM_PREC

    @v_args(inline=True)
    def grouping(self, expression: Printed) -> Printed:
        return f"({expression[0]})", ATOM_PREC


def format_expression(tree: Tree) -> str:
    return ExprPrinter().transform(tree)[0]


# ============================================================================
# Document printing
# ============================================================================

class MarkupFormatter:
    def __init__(self, options: FormatOptions):
        self.options = options

    def format(self, document: MarkupDocument) -> str:
        parts = [self.format_node(child, 0) for child in document.children]
        lines = [part for part in parts if part.strip()]
        if not lines:
            return ''
        return self.options.eol.join(lines) + self.options.eol

    def format_node(self, node: MarkupNode, level: int) -> str:
        indent = self.options.indent(level)
        if isinstance(node, Element):
            return self.format_element(node, level)
        if isinstance(node, Text):
            text = WHITESPACE.sub(' ', node.value).strip()
            return indent + text if text else ''
        if isinstance(node, Interpolation):
            return indent + self.format_interpolation(node)
        if isinstance(node, Comment):
            return f"{indent}<!--{node.value}-->"
        return ''

    def format_interpolation(self, node: Interpolation) -> str:
        return "{{ " + format_expression(node.expression) + " }}"

    def format_element(self, element: Element, level: int) -> str:
        indent = self.options.indent(level)
        tag = element.tag_name
        attrs = self.format_attributes(element.attributes, level)

        if element.self_closing or tag in VOID_TAGS:
            return f"{indent}<{tag}{attrs} />"

        if self.is_inline(element):
            content = self.format_inline_children(element.children)
            return f"{indent}<{tag}{attrs}>{content}</{tag}>"

        lines = [f"{indent}<{tag}{attrs}>"]
        for child in element.children:
            formatted = self.format_node(child, level + 1)
            if formatted.strip():
                lines.append(formatted)
        lines.append(f"{indent}</{tag}>")
        return self.options.eol.join(lines)

    def format_attributes(self, attributes: List[Attribute], level: int) -> str:
        """Attribute text for an open tag, one attribute per line when too long"""
        if not attributes:
            return ''

        parts = [self.format_attribute(attr) for attr in attributes]
        single = ' ' + ' '.join(parts)
        too_long = len(single) > self.options.max_line_length
        if not too_long and not any('\n' in part for part in parts):
            return single

        inner = self.options.indent(level + 1)
        return self.options.eol + self.options.eol.join(inner + part for part in parts)

    def format_attribute(self, attr: Attribute) -> str:
        if attr.value_kind is ValueKind.BOOLEAN:
            return attr.name
        if attr.value_kind is ValueKind.EXPRESSION and attr.expression is not None:
            quote = attr.quote or '"'
            return f"{attr.name}={quote}{{{{ {format_expression(attr.expression)} }}}}{quote}"
        if attr.value_kind is ValueKind.STRING:
            quote = attr.quote or '"'
            return f"{attr.name}={quote}{attr.value}{quote}"
        return f"{attr.name}={attr.value}"

    def format_inline_children(self, children: List[MarkupNode]) -> str:
        parts = []
        for child in children:
            if isinstance(child, Text):
                parts.append(WHITESPACE.sub(' ', child.value))
            elif isinstance(child, Interpolation):
                parts.append(self.format_interpolation(child))
            elif isinstance(child, Comment):
                parts.append(f"<!--{child.value}-->")
            else:
                parts.append(self.format_node(child, 0))
        return ''.join(parts).strip()

    @staticmethod
    def is_inline(element: Element) -> bool:
        if element.tag_name in INLINE_TAGS or not element.children:
            return True
        return all(isinstance(child, (Text, Interpolation)) for child in element.children)


def format_markup_document(document: MarkupDocument, options: Optional[FormatOptions] = None) -> str:
    return MarkupFormatter(options or FormatOptions.for_markup()).format(document)
