"""
Recursive Descent Parser for HML markup

Builds a MarkupDocument from the on-demand token stream of MarkupLexer.
Parsing never fails: structural problems are collected in ``errors`` and the
parser recovers by skipping to a synchronising token or by substituting an
``_`` identifier for an unparseable expression.
"""

from typing import List, Optional, Tuple
import re

from lark import Token, Tree

from .markup_lexer import MarkupLexer
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
from .token_types import MT, ParseError, Tok
from .tree import identifier, literal, tree_depth

ASSIGNMENT_OPERATORS = frozenset({'=', '+=', '-=', '*=', '/=', '%='})
EQUALITY_OPERATORS = frozenset({'==', '!=', '===', '!=='})
RELATIONAL_OPERATORS = frozenset({'<', '>', '<=', '>='})
ADDITIVE_OPERATORS = frozenset({'+', '-'})
MULTIPLICATIVE_OPERATORS = frozenset({'*', '/', '%'})
UNARY_OPERATORS = frozenset({'+', '-', '!', '~'})

LITERAL_TYPES = (MT.NUMBER, MT.STRING, MT.BOOLEAN, MT.NULL, MT.UNDEFINED)
NAME_TYPES = (MT.IDENTIFIER, MT.NAME)

LONE_INTERPOLATION = re.compile(r'^\s*\{\{.*\}\}\s*$', re.DOTALL)

# Past these depths the parser reports an error instead of recursing further
MAX_ELEMENT_DEPTH = 100
MAX_EXPRESSION_DEPTH = 25
# Operator chains build deep trees without deep parsing; printing walks them
MAX_TREE_DEPTH = 200

# ============================================================================
# Parser
# ============================================================================

class MarkupParser:
    """
    Recursive descent parser for markup documents.

    Expression precedence (lowest to highest):
    1. assignment (=, +=, ...)
    2. conditional (? :)
    3. logical or (||)
    4. logical and (&&)
    5. equality (==, !=, ===, !==)
    6. relational (<, >, <=, >=)
    7. additive (+, -)
    8. multiplicative (*, /, %)
    9. unary (+, -, !, ~)
    10. postfix (.name, [index], (call))
    11. primary (identifiers, literals, grouping, arrays, objects)
    """

    def __init__(self, source: str):
        self.lexer = MarkupLexer(source)
        self.current = self.lexer.next_token()
        self.errors: List[ParseError] = []
        self.open_tags: List[str] = []
        self.expression_depth = 0

    # ========================================================================
    # Token Navigation
    # ========================================================================

    def advance(self) -> Tok:
        prev = self.current
        self.current = self.lexer.next_token()
        return prev

    def check(self, *types: MT) -> bool:
        return self.current.type in types

    def at_operator(self, *values: str) -> bool:
        return self.current.type == MT.OPERATOR and self.current.value in values

    def at_punct(self, *values: str) -> bool:
        return self.current.type == MT.PUNCTUATOR and self.current.value in values

    def report(self, message: str, token: Optional[Tok] = None) -> None:
        self.errors.append(ParseError(message, token or self.current))

    def expect(self, token_type: MT) -> None:
        if self.check(token_type):
            self.advance()
            return
        self.report(f"Expected {token_type.name}, got {self.current.type.name}")

    def expect_punct(self, value: str) -> None:
        if self.at_punct(value):
            self.advance()
            return
        self.report(f"Expected '{value}'")

    def expect_operator(self, value: str) -> None:
        if self.at_operator(value):
            self.advance()
            return
        self.report(f"Expected operator '{value}'")

    def consume_until(self, token_type: MT) -> None:
        """Skip tokens up to (not including) token_type or EOF"""
        while not self.check(MT.EOF, token_type):
            self.advance()

    # ========================================================================
    # Document Structure
    # ========================================================================

    def parse_document(self) -> MarkupDocument:
        """Parse entire document; never raises"""
        children: List[MarkupNode] = []
        while not self.check(MT.EOF):
            before = self.current
            node = self.parse_node()
            if node is not None:
                children.append(node)
            elif self.current is before:
                self.advance()
        return MarkupDocument(children)

    def parse_node(self) -> Optional[MarkupNode]:
        tok = self.current

        if tok.type == MT.TEXT:
            self.advance()
            return Text(tok.value)

        if tok.type == MT.COMMENT:
            self.advance()
            return Comment(tok.value)

        if tok.type == MT.TAG_OPEN:
            return self.parse_element()

        if tok.type == MT.TAG_CLOSE:
            self.report("Unexpected closing tag")
            self.skip_tag_rest()
            return None

        if tok.type == MT.INTERP_START:
            return self.parse_interpolation()

        return None

    def parse_interpolation(self) -> Interpolation:
        self.expect(MT.INTERP_START)
        expression = self.parse_expression()
        if self.check(MT.INTERP_END):
            self.advance()
        else:
            self.report("Missing interpolation end")
        return Interpolation(expression)

    def parse_element(self) -> Element:
        self.expect(MT.TAG_OPEN)
        tag_name = 'unknown'
        if self.check(MT.NAME):
            tag_name = self.advance().value
        else:
            self.report("Missing tag name")

        attributes = []
        while self.check(MT.NAME):
            attributes.append(self.parse_attribute())

        if self.check(MT.TAG_SELF_CLOSE):
            self.advance()
            return Element(tag_name, attributes, [], True)

        if self.check(MT.TAG_END):
            self.advance()
        else:
            self.report("Missing tag end")
            self.skip_tag_rest()

        if tag_name in VOID_TAGS:
            return Element(tag_name, attributes, [], True)

        if len(self.open_tags) >= MAX_ELEMENT_DEPTH:
            self.report(f"Elements nested deeper than {MAX_ELEMENT_DEPTH} levels")
            self.consume_until(MT.EOF)
            return Element(tag_name, attributes, [], False)

        children: List[MarkupNode] = []
        self.open_tags.append(tag_name)
        try:
            while not self.check(MT.EOF):
                if self.check(MT.TAG_CLOSE):
                    closing = self.peek_closing_name()
                    if closing != tag_name and closing in self.open_tags:
                        # Closes an ancestor: this element ends here unclosed
                        self.report(f"Unclosed tag <{tag_name}>")
                        return Element(tag_name, attributes, children, False)
                    if self.parse_closing_tag(tag_name):
                        return Element(tag_name, attributes, children, False)
                    continue

                before = self.current
                node = self.parse_node()
                if node is not None:
                    children.append(node)
                elif self.current is before:
                    self.advance()
        finally:
            self.open_tags.pop()

        self.report(f"Unclosed tag <{tag_name}>")
        return Element(tag_name, attributes, children, False)

    def peek_closing_name(self) -> Optional[str]:
        nxt = self.lexer.peek_token()
        return nxt.value if nxt.type == MT.NAME else None

    def parse_closing_tag(self, expected: str) -> bool:
        """Consume ``</name>``; False when name does not match expected"""
        self.expect(MT.TAG_CLOSE)
        name = ''
        if self.check(MT.NAME):
            name = self.advance().value
        else:
            self.report("Missing closing tag name")

        if self.check(MT.TAG_END):
            self.advance()
        else:
            self.report("Missing closing tag end")
            self.skip_tag_rest()

        if name != expected:
            self.report(f"Expected closing tag </{expected}>")
            return False
        return True

    def skip_tag_rest(self) -> None:
        self.consume_until(MT.TAG_END)
        if self.check(MT.TAG_END):
            self.advance()

    def parse_attribute(self) -> Attribute:
        name_tok = self.advance()
        attr = Attribute(name_tok.value)
        if not self.check(MT.EQUALS):
            return attr
        self.advance()

        tok = self.current
        if tok.type == MT.STRING:
            self.advance()
            raw = tok.value
            attr.quote = raw[0]
            attr.value = raw[1:-1] if len(raw) >= 2 and raw[-1] == raw[0] else raw[1:]
            attr.value_kind = ValueKind.STRING
            if LONE_INTERPOLATION.match(attr.value):
                expression, errors = parse_expression_fragment(attr.value.strip()[2:-2])
                if expression is not None and not errors:
                    attr.value_kind = ValueKind.EXPRESSION
                    attr.expression = expression
            return attr

        if tok.type == MT.INTERP_START:
            self.advance()
            attr.expression = self.parse_expression()
            attr.value_kind = ValueKind.EXPRESSION
            if self.check(MT.INTERP_END):
                self.advance()
            else:
                self.report("Missing interpolation end in attribute")
            return attr

        if tok.type in (MT.NAME, MT.UNQUOTED_VALUE):
            # Unquoted values arrive as adjacent single-character tokens
            start = end = tok.start
            while self.check(MT.NAME, MT.UNQUOTED_VALUE) and self.current.start == end:
                end = self.advance().end
            attr.value = self.lexer.source[start:end]
            attr.value_kind = ValueKind.UNQUOTED
            return attr

        self.report("Missing attribute value")
        attr.value_kind = ValueKind.UNQUOTED
        return attr

    # ========================================================================
    # Expression Parsing
    # ========================================================================

    def parse_expression(self) -> Tree:
        if self.check(MT.INTERP_END, MT.EOF):
            self.report("Expected expression")
            return identifier('_')
        if self.expression_depth >= MAX_EXPRESSION_DEPTH:
            self.report(f"Expression nested deeper than {MAX_EXPRESSION_DEPTH} levels")
            self.consume_until(MT.INTERP_END)
            return identifier('_')

        self.expression_depth += 1
        try:
            expression = self.parse_assignment()
        finally:
            self.expression_depth -= 1

        if self.expression_depth == 0 and tree_depth(expression) > MAX_TREE_DEPTH:
            self.report(f"Expression nested deeper than {MAX_TREE_DEPTH} levels")
        return expression

    def parse_assignment(self) -> Tree:
        left = self.parse_conditional()
        if self.current.type == MT.OPERATOR and self.current.value in ASSIGNMENT_OPERATORS:
            op = self.advance()
            right = self.parse_expression()  # Right associative
            return Tree('assignment', [left, Token('OPERATOR', op.value), right])
        return left

    def parse_conditional(self) -> Tree:
        test = self.parse_logical_or()
        if self.at_operator('?'):
            self.advance()
            consequent = self.parse_expression()
            self.expect_operator(':')
            alternate = self.parse_expression()
            return Tree('conditional', [test, consequent, alternate])
        return test

    def parse_logical_or(self) -> Tree:
        left = self.parse_logical_and()
        while self.at_operator('||'):
            op = self.advance()
            right = self.parse_logical_and()
            left = Tree('logical', [left, Token('OPERATOR', op.value), right])
        return left

    def parse_logical_and(self) -> Tree:
        left = self.parse_equality()
        while self.at_operator('&&'):
            op = self.advance()
            right = self.parse_equality()
            left = Tree('logical', [left, Token('OPERATOR', op.value), right])
        return left

    def _parse_binary(self, operators: frozenset, operand) -> Tree:
        left = operand()
        while self.current.type == MT.OPERATOR and self.current.value in operators:
            op = self.advance()
            right = operand()
            left = Tree('binary', [left, Token('OPERATOR', op.value), right])
        return left

    def parse_equality(self) -> Tree:
        return self._parse_binary(EQUALITY_OPERATORS, self.parse_relational)

    def parse_relational(self) -> Tree:
        return self._parse_binary(RELATIONAL_OPERATORS, self.parse_additive)

    def parse_additive(self) -> Tree:
        return self._parse_binary(ADDITIVE_OPERATORS, self.parse_multiplicative)

    def parse_multiplicative(self) -> Tree:
        return self._parse_binary(MULTIPLICATIVE_OPERATORS, self.parse_unary)

    def parse_unary(self) -> Tree:
        operators = []
        while self.current.type == MT.OPERATOR and self.current.value in UNARY_OPERATORS:
            operators.append(self.advance().value)
        expr = self.parse_postfix()
        for op in reversed(operators):
            expr = Tree('unary', [Token('OPERATOR', op), expr])
        return expr

    def parse_postfix(self) -> Tree:
        expr = self.parse_primary()
        while True:
            if self.at_operator('.'):
                self.advance()
                if self.check(MT.IDENTIFIER, MT.NAME, MT.BOOLEAN, MT.NULL, MT.UNDEFINED):
                    expr = Tree('member', [expr, identifier(self.advance().value)])
                    continue
                self.report("Expected property name after '.'")
                break

            if self.at_punct('['):
                self.advance()
                prop = self.parse_expression()
                self.expect_punct(']')
                expr = Tree('computed_member', [expr, prop])
                continue

            if self.at_punct('('):
                args = self.parse_list('(', ')', self.parse_expression, "argument list")
                expr = Tree('call', [expr, Tree('arguments', args)])
                continue

            break
        return expr

    def parse_list(self, open_: str, close: str, item, what: str) -> List[Tree]:
        """Parse a comma separated list between open_ and close"""
        self.expect_punct(open_)
        items: List[Tree] = []
        while not self.at_punct(close):
            if self.check(MT.EOF, MT.INTERP_END):
                self.report(f"Unterminated {what}")
                break
            items.append(item())
            if self.at_punct(','):
                self.advance()
                continue
            break
        self.expect_punct(close)
        return items

    def parse_primary(self) -> Tree:
        tok = self.current

        if tok.type in NAME_TYPES:
            self.advance()
            return identifier(tok.value)

        if tok.type in LITERAL_TYPES:
            self.advance()
            return literal(tok.type.name, tok.value)

        if self.at_punct('('):
            self.advance()
            expression = self.parse_expression()
            self.expect_punct(')')
            return Tree('grouping', [expression])

        if self.at_punct('['):
            return Tree('array', self.parse_list('[', ']', self.parse_expression, "array literal"))

        if self.at_punct('{'):
            return Tree('object', self.parse_list('{', '}', self.parse_property, "object literal"))

        self.report(f"Unexpected expression token {tok.value!r}")
        if not self.check(MT.EOF, MT.INTERP_END):
            self.advance()
        return identifier('_')

    def parse_property(self) -> Tree:
        key = self.parse_property_key()
        if self.at_operator(':') or self.at_punct(':'):
            self.advance()
            return Tree('property', [key, self.parse_expression()])
        return Tree('property', [key])

    def parse_property_key(self) -> Tree:
        tok = self.current
        if tok.type in NAME_TYPES:
            self.advance()
            return identifier(tok.value)

        if tok.type in (MT.STRING, MT.NUMBER, MT.BOOLEAN):
            self.advance()
            return literal(tok.type.name, tok.value)

        if self.at_punct('['):
            self.advance()
            expression = self.parse_expression()
            self.expect_punct(']')
            return Tree('computed_key', [expression])

        self.report("Invalid object key")
        if not self.check(MT.EOF, MT.INTERP_END):
            self.advance()
        return identifier('_')


def parse_markup(source: str) -> Tuple[MarkupDocument, List[ParseError]]:
    """Parse markup source into a document plus its diagnostics"""
    parser = MarkupParser(source)
    document = parser.parse_document()
    return document, parser.errors


def parse_expression_fragment(source: str) -> Tuple[Optional[Tree], List[ParseError]]:
    """Parse a lone interpolation expression (the text between ``{{`` and ``}}``)"""
    document, errors = parse_markup('{{ ' + source + ' }}')
    if len(document.children) == 1 and isinstance(document.children[0], Interpolation):
        return document.children[0].expression, errors
    return None, errors
