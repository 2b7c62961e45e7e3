"""
Pretty-printer for ETS documents

Declarations are printed from the model; raw slices (bodies, initializers,
statements, comments) go through the line reindenter at their nesting level.
build() and @Builder bodies print from the UI model when the sub-parser
understood the whole body, one component or attribute call per line.

Blank lines:
- Top level: one after an import run, and around structs, classes,
  interfaces, functions and exports; elsewhere the source's blank is kept
- Members: one between a property and a following method/build(), and
  between consecutive methods/build(); elsewhere the source's blank is kept
- Comments stay attached to the node that follows them
"""
from __future__ import annotations

from typing import Callable, List, Optional, Sequence

from .ets_nodes import (
    BuildMethod,
    ClassDecl,
    CommentNode,
    Document,
    ExportDecl,
    FunctionDecl,
    ImportDecl,
    InterfaceDecl,
    Method,
    Node,
    Parameter,
    Property,
    RawStatement,
    StructDecl,
    UIComponent,
)
from .fallback import infer_semicolon_style
from .options import FormatOptions
from .reindent import reindent_lines

SIGNIFICANT = (StructDecl, ClassDecl, InterfaceDecl, FunctionDecl, ExportDecl)

MEMBER_SEPARATED = frozenset({
    ('property', 'method'), ('property', 'build'),
    ('method', 'method'), ('method', 'build'),
    ('build', 'method'), ('build', 'build'),
})


def top_level_kind(node: Node) -> str:
    if isinstance(node, ImportDecl):
        return 'import'
    if isinstance(node, SIGNIFICANT):
        return 'significant'
    return 'other'


def member_kind(node: Node) -> str:
    if isinstance(node, BuildMethod):
        return 'build'
    if isinstance(node, Method):
        return 'method'
    return 'property'


def top_level_separated(prev: str, node: str) -> bool:
    if prev == 'import' and node != 'import':
        return True
    return 'significant' in (prev, node)


def member_separated(prev: str, node: str) -> bool:
    return (prev, node) in MEMBER_SEPARATED


class EtsFormatter:
    def __init__(self, options: FormatOptions, semicolon: bool):
        self.options = options
        self.semicolon = semicolon

    # ========================================================================
    # Layout helpers
    # ========================================================================

    def indent(self, level: int) -> str:
        return self.options.indent(level)

    def block_lines(self, text: str, level: int) -> List[str]:
        return reindent_lines(text, level, self.options.indent_unit)

    def terminator(self) -> str:
        return ';' if self.semicolon else ''

    def sequence(
        self,
        nodes: Sequence[Node],
        level: int,
        kind: Callable[[Node], str],
        separated: Callable[[str, str], bool],
        render: Callable[[Node, int], List[str]],
    ) -> List[str]:
        """Render nodes in order, inserting blank lines per the policy"""
        lines: List[str] = []
        for i, node in enumerate(nodes):
            if i > 0 and self.blank_between(nodes, i, kind, separated):
                lines.append('')
            rendered = render(node, level)
            if node.trailing_comment and rendered:
                rendered[-1] += ' ' + node.trailing_comment
            lines.extend(rendered)
        return lines

    def blank_between(self, nodes: Sequence[Node], i: int,
                      kind: Callable[[Node], str], separated: Callable[[str, str], bool]) -> bool:
        prev, node = nodes[i - 1], nodes[i]
        if isinstance(prev, CommentNode):
            return node.blank_before

        # A comment run takes the kind of the node it is attached to
        following = node
        for candidate in nodes[i:]:
            following = candidate
            if not isinstance(candidate, CommentNode):
                break
        if isinstance(following, CommentNode):
            return node.blank_before
        return separated(kind(prev), kind(following)) or node.blank_before

    def body_lines(self, header: str, body_text: str, level: int) -> List[str]:
        inner = reindent_lines(body_text, level + 1, self.options.indent_unit)
        if not inner:
            return self.block_lines(header + ' {}', level)
        return self.block_lines(header + ' {', level) + inner + [self.indent(level) + '}']

    # ========================================================================
    # Top level
    # ========================================================================

    def format(self, doc: Document) -> str:
        lines = self.sequence(doc.children, 0, top_level_kind, top_level_separated, self.format_top)
        if not lines:
            return ''
        return self.options.eol.join(lines) + self.options.eol

    def format_top(self, node: Node, level: int) -> List[str]:
        if isinstance(node, ImportDecl):
            return self.format_import(node, level)
        if isinstance(node, ExportDecl):
            return self.format_export(node, level)
        if isinstance(node, CommentNode):
            return self.block_lines(node.text, level)
        if isinstance(node, RawStatement):
            return self.block_lines(node.text, level)
        return self.format_declaration(node, level)

    def format_declaration(self, node: Node, level: int, prefix: str = '') -> List[str]:
        if isinstance(node, (StructDecl, ClassDecl)):
            return self.format_struct(node, level, prefix)
        if isinstance(node, InterfaceDecl):
            return self.format_interface(node, level, prefix)
        if isinstance(node, FunctionDecl):
            return self.format_function(node, level, prefix)
        if isinstance(node, RawStatement):
            return self.block_lines(prefix + node.text, level)
        raise TypeError(f"Unexpected declaration node {type(node).__name__}")

    def format_import(self, node: ImportDecl, level: int) -> List[str]:
        if not node.structured:
            return self.block_lines(node.raw, level)

        quote = self.options.quote
        source = f"{quote}{node.source}{quote}"
        clauses = []
        if node.default_import:
            clauses.append(node.default_import)
        if node.namespace_import:
            clauses.append(f"* as {node.namespace_import}")
        if node.named_imports is not None:
            if not node.named_imports:
                clauses.append('{}')
            elif self.options.bracket_spacing:
                clauses.append('{ ' + ', '.join(node.named_imports) + ' }')
            else:
                clauses.append('{' + ', '.join(node.named_imports) + '}')

        if clauses:
            text = f"import {', '.join(clauses)} from {source}"
        else:
            text = f"import {source}"
        return [self.indent(level) + text + self.terminator()]

    def format_export(self, node: ExportDecl, level: int) -> List[str]:
        prefix = 'export default ' if node.is_default else 'export '
        if node.declaration is None:
            return [self.indent(level) + prefix.rstrip()]
        return self.format_declaration(node.declaration, level, prefix)

    def decorator_lines(self, node, level: int) -> List[str]:
        lines: List[str] = []
        for decorator in node.decorators:
            lines.extend(self.block_lines(decorator.render(), level))
        return lines

    # ------------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------------

    def format_struct(self, node, level: int, prefix: str) -> List[str]:
        keyword = 'struct' if isinstance(node, StructDecl) else 'class'
        if isinstance(node, ClassDecl) and node.is_abstract:
            keyword = 'abstract class'

        header = f"{prefix}{keyword} {node.name}{node.type_params or ''}"
        if node.extends:
            header += f" extends {node.extends}"
        if node.implements:
            header += f" implements {', '.join(node.implements)}"

        lines = self.decorator_lines(node, level)
        members = self.sequence(node.members, level + 1, member_kind, member_separated, self.format_member)
        if not members:
            return lines + self.block_lines(header + ' {}', level)
        return lines + self.block_lines(header + ' {', level) + members + [self.indent(level) + '}']

    def format_interface(self, node: InterfaceDecl, level: int, prefix: str) -> List[str]:
        header = f"{prefix}interface {node.name}{node.type_params or ''}"
        if node.extends:
            header += f" extends {', '.join(node.extends)}"
        body = node.body[1:-1] if node.body.endswith('}') else node.body[1:]
        return self.body_lines(header, body, level)

    def format_function(self, node: FunctionDecl, level: int, prefix: str) -> List[str]:
        head = prefix + ('async ' if node.is_async else '') + 'function'
        head += ('* ' if node.is_generator else ' ') + node.name + (node.type_params or '')
        tail = f": {node.return_type}" if node.return_type else ''
        lines = self.decorator_lines(node, level)
        return lines + self.format_callable(head, node.parameters, node.raw_parameters, tail,
                                            node.body, node.is_builder, level)

    def format_callable(self, head: str, parameters: List[Parameter], raw_parameters: Optional[str],
                        tail: str, body, ui: bool, level: int) -> List[str]:
        """Signature plus body (or terminator) for methods and functions"""
        signature = self.signature(head, parameters, raw_parameters, tail, level)
        if body is None:
            signature[-1] += self.terminator()
            return self.reflow(signature, level)

        if ui and body.parsed is not None:
            text = self.ui_text(body.parsed)
        else:
            text = body.source_text
        inner = reindent_lines(text, level + 1, self.options.indent_unit)
        if not inner:
            signature[-1] += ' {}'
            return self.reflow(signature, level)
        signature[-1] += ' {'
        return self.reflow(signature, level) + inner + [self.indent(level) + '}']

    def signature(self, head: str, parameters: List[Parameter], raw_parameters: Optional[str],
                  tail: str, level: int) -> List[str]:
        """Header lines without indentation; wraps long parameter lists"""
        if raw_parameters is not None:
            return [head + raw_parameters + tail]

        params = [self.format_parameter(p) for p in parameters]
        single = f"{head}({', '.join(params)}){tail}"
        width = len(self.indent(level)) + len(single) + 2
        if width <= self.options.max_line_length or not params or any('\n' in p for p in params):
            return [single]

        lines = [head + '(']
        for i, param in enumerate(params):
            last = i == len(params) - 1
            comma = ',' if not last or (self.options.trailing_comma and not parameters[i].is_rest) else ''
            lines.append(param + comma)
        lines.append(')' + tail)
        return lines

    def reflow(self, lines: List[str], level: int) -> List[str]:
        return self.block_lines('\n'.join(lines), level)

    def format_parameter(self, param: Parameter) -> str:
        text = ''.join(d.render() + ' ' for d in param.decorators)
        text += ''.join(m + ' ' for m in param.modifiers)
        text += ('...' if param.is_rest else '') + param.name
        if param.is_optional:
            text += '?'
        if param.type_annotation:
            text += f": {param.type_annotation}"
        if param.default is not None:
            text += f" = {param.default}"
        return text

    # ------------------------------------------------------------------------
    # Members
    # ------------------------------------------------------------------------

    def format_member(self, node: Node, level: int) -> List[str]:
        if isinstance(node, CommentNode):
            return self.block_lines(node.text, level)
        if isinstance(node, Property):
            return self.format_property(node, level)
        if isinstance(node, BuildMethod):
            lines = self.decorator_lines(node, level)
            return lines + self.format_callable('build', [], None, '', node.body, True, level)
        if isinstance(node, Method):
            head = ''.join(m + ' ' for m in node.modifiers) + node.name
            head += ('?' if node.is_optional else '') + (node.type_params or '')
            tail = f": {node.return_type}" if node.return_type else ''
            lines = self.decorator_lines(node, level)
            return lines + self.format_callable(head, node.parameters, node.raw_parameters, tail,
                                                node.body, node.is_builder, level)
        raise TypeError(f"Unexpected member node {type(node).__name__}")

    def format_property(self, node: Property, level: int) -> List[str]:
        text = ''.join(d.render() + ' ' for d in node.decorators)
        text += ''.join(m + ' ' for m in node.modifiers) + node.name
        if node.is_optional:
            text += '?'
        if node.is_definite:
            text += '!'
        if node.type_annotation:
            text += f": {node.type_annotation}"
        if node.initializer is not None:
            text += f" = {node.initializer}"
        return self.block_lines(text + self.terminator(), level)

    # ------------------------------------------------------------------------
    # UI trees
    # ------------------------------------------------------------------------

    def ui_text(self, components: List[UIComponent]) -> str:
        return '\n'.join(self.ui_lines(components))

    def ui_lines(self, components: List[UIComponent]) -> List[str]:
        lines: List[str] = []
        for component in components:
            lines.extend(self.ui_component(component))
        return lines

    def ui_component(self, component: UIComponent) -> List[str]:
        if component.is_loop:
            return [component.name + (component.loop_expression or '')]
        if component.is_conditional:
            return self.ui_conditional(component)

        lines = [component.name + component.arguments]
        lines += [f".{a.name}{a.arguments}" for a in component.attributes if not a.after_children]
        if component.has_block:
            if component.children:
                lines[-1] += ' {'
                lines += self.ui_lines(component.children)
                lines.append('}')
            else:
                lines[-1] += ' {}'
        lines += [f".{a.name}{a.arguments}" for a in component.attributes if a.after_children]
        return lines

    def ui_conditional(self, component: UIComponent) -> List[str]:
        lines = [f"if {component.condition} {{"]
        lines += self.ui_lines(component.children)
        if component.alternate is None:
            lines.append('}')
        elif component.else_if and component.alternate:
            nested = self.ui_conditional(component.alternate[0])
            lines.append('} else ' + nested[0])
            lines += nested[1:]
        else:
            lines.append('} else {')
            lines += self.ui_lines(component.alternate)
            lines.append('}')
        return lines


def format_document(doc: Document, options: Optional[FormatOptions] = None,
                    source: Optional[str] = None) -> str:
    """
    Print `doc` with `options`. When options.semicolon is None the style is
    inferred from `source`.
    """
    options = options or FormatOptions()
    semicolon = options.semicolon
    if semicolon is None:
        semicolon = infer_semicolon_style(source or '')
    return EtsFormatter(options, semicolon).format(doc)
