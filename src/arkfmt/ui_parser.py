"""
UI component sub-parser.

Works on the raw text of a build()/@Builder body with its own cursor, using
regular-expression lookahead rather than the outer token stream. This is
pattern matching, not a grammar: anything it does not recognise is skipped
one character at a time and the result is marked incomplete, so the caller
falls back to the raw text.
"""
from __future__ import annotations

import re
from typing import List, NamedTuple, Optional

from .ets_nodes import UIAttribute, UIComponent, UIFlavor

LOOP_RE = re.compile(r'(LazyForEach|ForEach)\s*\(')
COMPONENT_RE = re.compile(r'([A-Z][A-Za-z0-9_]*)\s*\(')
IF_RE = re.compile(r'if\s*\(')
ELSE_IF_RE = re.compile(r'else\s+if\s*\(')
ELSE_RE = re.compile(r'else\s*\{')
ATTRIBUTE_RE = re.compile(r'\.([A-Za-z_$][A-Za-z0-9_$]*)\s*\(')

# Child blocks and else-if links nested past this are left to the raw text
MAX_NESTING_DEPTH = 64


class UIParseResult(NamedTuple):
    components: List[UIComponent]
    complete: bool


class UIComponentParser:
    def __init__(self, content: str, depth: int = 0):
        self.content = content
        self.index = 0
        self.complete = True
        self.depth = depth

    def parse(self) -> UIParseResult:
        components = self.parse_list()
        return UIParseResult(components, self.complete)

    def parse_list(self) -> List[UIComponent]:
        components: List[UIComponent] = []
        while True:
            self.skip_whitespace()
            if self.index >= len(self.content):
                break

            component = self.parse_component()
            if component is not None:
                components.append(component)
            else:
                # unrecognised text: skip it, the tree no longer covers the body
                self.complete = False
                self.index += 1
        return components

    def parse_component(self) -> Optional[UIComponent]:
        loop = LOOP_RE.match(self.content, self.index)
        if loop:
            self.index = loop.start(1) + len(loop.group(1))
            self.skip_whitespace()
            expression = self.consume_balanced('(', ')')
            return UIComponent(loop.group(1), expression, flavor=UIFlavor.LOOP,
                               loop_expression=expression)

        if IF_RE.match(self.content, self.index):
            return self.parse_if()

        match = COMPONENT_RE.match(self.content, self.index)
        if not match:
            return None

        name = match.group(1)
        self.index += len(name)
        self.skip_whitespace()
        component = UIComponent(name, self.consume_balanced('(', ')'))
        component.attributes = self.parse_attributes()

        children = self.parse_block()
        if children is not None:
            component.children = children
            component.has_block = True
            component.attributes.extend(self.parse_attributes(after_children=True))
        return component

    def parse_if(self, chain: int = 0) -> UIComponent:
        self.index += 2
        self.skip_whitespace()
        condition = self.consume_balanced('(', ')')
        component = UIComponent('If', flavor=UIFlavor.CONDITIONAL, condition=condition)
        children = self.parse_block()
        if children is None:
            self.complete = False
        component.children = children or []
        component.has_block = True

        save = self.index
        self.skip_whitespace()
        if ELSE_IF_RE.match(self.content, self.index):
            if chain >= MAX_NESTING_DEPTH:
                self.complete = False
                self.index = len(self.content)
                return component
            self.index += 4
            self.skip_whitespace()
            component.alternate = [self.parse_if(chain + 1)]
            component.else_if = True
        elif ELSE_RE.match(self.content, self.index):
            self.index += 4
            self.skip_whitespace()
            alternate = self.parse_block()
            if alternate is None:
                self.complete = False
            component.alternate = alternate or []
        else:
            self.index = save
        return component

    def parse_attributes(self, after_children: bool = False) -> List[UIAttribute]:
        """Collect chained ``.name(args)`` calls"""
        attributes = []
        while True:
            save = self.index
            self.skip_whitespace()
            match = ATTRIBUTE_RE.match(self.content, self.index)
            if not match:
                self.index = save
                return attributes
            name = match.group(1)
            self.index += 1 + len(name)
            self.skip_whitespace()
            attributes.append(UIAttribute(name, self.consume_balanced('(', ')'), after_children))

    def parse_block(self) -> Optional[List[UIComponent]]:
        """Parse a ``{ ... }`` child block; None when there is none"""
        save = self.index
        self.skip_whitespace()
        if self.peek() != '{':
            self.index = save
            return None

        body = self.consume_balanced('{', '}')
        if self.depth >= MAX_NESTING_DEPTH:
            self.complete = False
            return []
        inner = UIComponentParser(body[1:-1] if body.endswith('}') else body[1:], self.depth + 1)
        result = inner.parse()
        if not result.complete or not body.endswith('}'):
            self.complete = False
        return result.components

    # ========================================================================
    # Scanning
    # ========================================================================

    def skip_whitespace(self) -> None:
        """Skip whitespace; comments are skipped too but mark the tree incomplete"""
        while self.index < len(self.content):
            ch = self.content[self.index]
            if ch in ' \t\r\n':
                self.index += 1
                continue
            if self.content.startswith('//', self.index):
                self.complete = False
                while self.index < len(self.content) and self.content[self.index] != '\n':
                    self.index += 1
                continue
            if self.content.startswith('/*', self.index):
                self.complete = False
                end = self.content.find('*/', self.index + 2)
                self.index = len(self.content) if end < 0 else end + 2
                continue
            break

    def peek(self) -> str:
        return self.content[self.index] if self.index < len(self.content) else ''

    def consume_balanced(self, open_: str, close: str) -> str:
        """
        Return the text from open_ to its matching close, skipping strings and
        template literals. Unterminated input runs to the end.
        """
        if self.peek() != open_:
            return ''

        start = self.index
        depth = 0
        while self.index < len(self.content):
            ch = self.content[self.index]
            if ch in ('"', "'", '`'):
                self.skip_string(ch)
                continue
            if ch == open_:
                depth += 1
            elif ch == close:
                depth -= 1
            self.index += 1
            if depth == 0:
                break
        return self.content[start:self.index]

    def skip_string(self, quote: str) -> None:
        self.index += 1
        depth = 0
        while self.index < len(self.content):
            ch = self.content[self.index]
            if ch == '\\':
                self.index += 2
                continue
            if quote == '`':
                if ch == '$' and self.content.startswith('{', self.index + 1):
                    depth += 1
                    self.index += 2
                    continue
                if ch == '{' and depth > 0:
                    depth += 1
                elif ch == '}' and depth > 0:
                    depth -= 1
                elif ch == '`' and depth == 0:
                    self.index += 1
                    return
            elif ch == quote:
                self.index += 1
                return
            self.index += 1
        self.index = min(self.index, len(self.content))


def parse_ui_components(content: str) -> UIParseResult:
    return UIComponentParser(content).parse()
