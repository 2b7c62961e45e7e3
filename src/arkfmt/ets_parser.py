"""
Declaration-level parser for ETS struct/UI source

Hybrid strategy: decorators, names, heritage clauses and member boundaries
are parsed token by token, while bodies, initializers and type annotations
are captured as exact source slices (by offset, so inner whitespace and
comments survive). build() and @Builder bodies are handed to the UI
sub-parser.

Structure:
- Token navigation over the full token list, with save()/restore()
- Slice readers: consume_balanced, read_type, read_expression
- Top level: import, export, struct, class, interface, function and
  raw statements (variables, type aliases, enums)
- Members: properties, methods, the build() method and comments

Parsing never raises for malformed input; problems are collected in
``errors`` and unknown top-level tokens end up in ``Document.dropped``.
"""

from typing import List, Optional, Tuple
import logging
import re

from .ets_lexer import EtsLexer
from .ets_nodes import (
    BodySlice,
    BuildMethod,
    ClassDecl,
    CommentNode,
    Decorator,
    Document,
    ExportDecl,
    FunctionDecl,
    ImportDecl,
    InterfaceDecl,
    Member,
    Method,
    Node,
    Parameter,
    Property,
    RawStatement,
    SourceSpan,
    StructDecl,
)
from .token_types import COMMENTS, ST, TRIVIA, ParseError, Tok
from .ui_parser import parse_ui_components

logger = logging.getLogger(__name__)

MEMBER_MODIFIERS = frozenset({
    'public', 'private', 'protected', 'static', 'readonly', 'async', 'abstract',
    'declare', 'override', 'get', 'set', 'accessor',
})
PARAMETER_MODIFIERS = frozenset({'public', 'private', 'protected', 'readonly', 'override'})
STATEMENT_KEYWORDS = frozenset({'const', 'let', 'var', 'type', 'enum', 'declare'})

# An expression continues on the next line after a binary operator, or when
# the next line starts with one of these
CONTINUATION_LEADERS = frozenset({'.', '?.', '?', ':', '||', '&&', '??', '|', '&'})
# Type annotations continue after these
TYPE_JOINERS = frozenset({'|', '&', '=>', ':', '<', '?'})

IDENT = r'[A-Za-z_$][\w$]*'
SIDE_EFFECT_IMPORT_RE = re.compile(r'''^import\s*(['"])([^'"\r\n]*)\1\s*;?$''')
IMPORT_RE = re.compile(r'''^import\s+(.*?)\s*\bfrom\s*(['"])([^'"\r\n]*)\2\s*;?$''', re.DOTALL)
NAMESPACE_CLAUSE_RE = re.compile(rf'^(?:({IDENT})\s*,\s*)?\*\s*as\s+({IDENT})$')
NAMED_CLAUSE_RE = re.compile(rf'^({IDENT})?\s*,?\s*(?:\{{([^{{}}]*)\}})?$', re.DOTALL)
IMPORT_SPECIFIER_RE = re.compile(rf'^{IDENT}(?:\s+as\s+{IDENT})?$')


class EtsParser:
    """
    Recursive descent parser for ETS declarations.

    Operates on the complete token list from EtsLexer, so speculative parses
    (the build() lookahead, lenient interface members) are a save()/restore() of
    the token index.
    """

    def __init__(self, source: str):
        self.source = source
        self.tokens: List[Tok] = EtsLexer(source).tokenize()
        self.pos = 0
        self.errors: List[ParseError] = []
        self.dropped: List[Tok] = []

    # ========================================================================
    # Token Navigation
    # ========================================================================

    @property
    def current(self) -> Tok:
        return self.tokens[self.pos]

    def advance(self) -> Tok:
        prev = self.tokens[self.pos]
        if self.pos < len(self.tokens) - 1:
            self.pos += 1
        return prev

    def save(self) -> int:
        return self.pos

    def restore(self, mark: int) -> None:
        self.pos = mark

    def check(self, *types: ST) -> bool:
        return self.current.type in types

    def at(self, *values: str, tok: Optional[Tok] = None) -> bool:
        """Current (or given) token is a punctuator/operator with one of the values"""
        tok = tok or self.current
        return tok.type in (ST.PUNCTUATOR, ST.OPERATOR) and tok.value in values

    def at_word(self, *values: str) -> bool:
        return self.current.type in (ST.KEYWORD, ST.IDENTIFIER) and self.current.value in values

    def at_name(self) -> bool:
        return self.check(ST.IDENTIFIER, ST.KEYWORD)

    def report(self, message: str, token: Optional[Tok] = None) -> None:
        self.errors.append(ParseError(message, token or self.current))

    def skip_trivia(self) -> int:
        """Skip whitespace and newlines; return how many newlines were skipped"""
        newlines = 0
        while self.current.type in TRIVIA:
            if self.current.type == ST.NEWLINE:
                newlines += 1
            self.advance()
        return newlines

    def skip_space(self) -> None:
        """Skip trivia and comments inside a declaration header"""
        while self.current.type in TRIVIA or self.current.type in COMMENTS:
            self.advance()

    def skip_inline_space(self) -> None:
        while self.check(ST.WHITESPACE):
            self.advance()

    def next_significant(self, index: Optional[int] = None) -> Tok:
        i = self.pos if index is None else index
        while self.tokens[i].type in TRIVIA and i < len(self.tokens) - 1:
            i += 1
        return self.tokens[i]

    def take_trailing_comment(self) -> Optional[str]:
        """Consume a comment that ends the current line, if there is one"""
        i = self.pos
        while self.tokens[i].type == ST.WHITESPACE:
            i += 1
        tok = self.tokens[i]
        if tok.type == ST.COMMENT or (
            tok.type == ST.BLOCK_COMMENT and '\n' not in tok.value and '\r' not in tok.value
        ):
            self.pos = i + 1
            return tok.value
        return None

    def consume_optional_terminator(self) -> None:
        """Consume a ';' or ',' on the same line"""
        mark = self.save()
        self.skip_inline_space()
        if self.at(';', ','):
            self.advance()
        else:
            self.restore(mark)

    def span_from(self, start: Tok) -> SourceSpan:
        end = self.tokens[self.pos - 1].end if self.pos > 0 else start.end
        return SourceSpan(start.start, max(end, start.start), start.line, start.column)

    # ========================================================================
    # Source Slices
    # ========================================================================

    def consume_balanced(self, open_: str, close: str) -> str:
        """
        Consume from the current open_ token to its matching close and return
        the exact source text. For '>' closers, '>>' and '>>>' close two and
        three levels. Unterminated input runs to end of input.
        """
        start = self.current
        end = start.end
        depth = 0
        while not self.check(ST.EOF):
            tok = self.advance()
            end = tok.end
            if tok.type in (ST.PUNCTUATOR, ST.OPERATOR):
                if tok.value == open_:
                    depth += 1
                elif close == '>' and tok.value in ('>', '>>', '>>>'):
                    depth -= len(tok.value)
                elif tok.value == close:
                    depth -= 1
            if depth <= 0:
                break
        return self.source[start.start:end]

    def consume_body(self, what: str) -> str:
        """Consume a {...} body and return the text between the braces"""
        start = self.current
        text = self.consume_balanced('{', '}')
        if not text.endswith('}') or len(text) < 2:
            self.report(f"Unterminated {what} body", start)
            return text[1:]
        return text[1:-1]

    def read_expression(self, stop_at_comma: bool = True) -> str:
        """
        Read an initializer/default/statement up to a depth-0 terminator:
        ';', ',', an unmatched closer, a comment, or a newline the expression
        does not continue across.
        """
        self.skip_trivia()
        depth = 0
        first: Optional[Tok] = None
        last: Optional[Tok] = None
        while not self.check(ST.EOF):
            tok = self.current
            if depth == 0:
                if tok.type == ST.NEWLINE and not self.continues_after(last):
                    break
                if tok.type in COMMENTS:
                    break
                if self.at(';', tok=tok) or (stop_at_comma and self.at(',', tok=tok)):
                    break
            if self.at('(', '[', '{', tok=tok):
                depth += 1
            elif self.at(')', ']', '}', tok=tok):
                if depth == 0:
                    break
                depth -= 1
            if tok.type not in TRIVIA and tok.type not in COMMENTS:
                first = first or tok
                last = tok
            self.advance()
        return self.source[first.start:last.end] if first and last else ''

    def continues_after(self, last: Optional[Tok]) -> bool:
        if last is None:
            return True
        if last.type == ST.OPERATOR and last.value not in ('++', '--'):
            return True
        following = self.next_significant()
        return self.at(*CONTINUATION_LEADERS, tok=following)

    def read_type(self, stop_keywords: Tuple[str, ...] = ()) -> str:
        """
        Read a type annotation. Stops at a depth-0 ';', ',', '=', unmatched
        closer, comment, or a '{' that opens a body rather than an object type.
        """
        self.skip_trivia()
        depth = 0
        first: Optional[Tok] = None
        last: Optional[Tok] = None
        while not self.check(ST.EOF):
            tok = self.current
            if depth == 0:
                if tok.type == ST.NEWLINE:
                    following = self.next_significant()
                    if first is not None and not (
                        self.at(*TYPE_JOINERS, tok=last) or self.at('|', '&', tok=following)
                    ):
                        break
                if tok.type in COMMENTS or self.at(';', ',', tok=tok):
                    break
                if tok.type == ST.OPERATOR and tok.value == '=':
                    break
                if tok.type == ST.KEYWORD and tok.value in stop_keywords:
                    break
                if self.at('{', tok=tok) and last is not None and not self.at(*TYPE_JOINERS, tok=last):
                    break
            if self.at('(', '[', '{', '<', tok=tok):
                depth += 1
            elif self.at(')', ']', '}', '>', '>>', '>>>', tok=tok):
                if depth == 0:
                    break
                depth = max(0, depth - (len(tok.value) if tok.value.startswith('>') else 1))
            if tok.type not in TRIVIA and tok.type not in COMMENTS:
                first = first or tok
                last = tok
            self.advance()
        return self.source[first.start:last.end] if first and last else ''

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def parse_document(self) -> Document:
        """Parse entire source; never raises"""
        doc = Document()
        while True:
            newlines = self.skip_trivia()
            if self.check(ST.EOF):
                break

            start = self.current
            node = self.parse_top_level()
            if node is None:
                continue
            node.blank_before = newlines >= 2 and bool(doc.children)
            node.span = self.span_from(start)
            node.trailing_comment = self.take_trailing_comment()
            doc.children.append(node)

        doc.dropped = self.dropped
        return doc

    def parse_top_level(self) -> Optional[Node]:
        tok = self.current

        if tok.type in COMMENTS:
            self.advance()
            return self.comment_node(tok)

        if self.at(';'):
            self.advance()
            return None

        decorators = self.parse_decorators()

        if self.at_word('import') and not decorators:
            return self.parse_import()
        if self.at_word('export'):
            return self.parse_export(decorators)

        before = self.pos
        node = self.parse_declaration(decorators)
        if node is not None or self.pos != before:
            return node

        if decorators:
            self.report("Expected declaration after decorator")
            return None

        self.dropped.append(tok)
        logger.debug("Dropped top-level token %r", tok)
        self.advance()
        return None

    def parse_declaration(self, decorators: List[Decorator]) -> Optional[Node]:
        """Dispatch on the declaration keyword; None when there is none"""
        if self.at_word('struct'):
            return self.parse_struct(decorators)
        if self.at_word('class'):
            return self.parse_class(decorators)
        if self.at_word('abstract') and self.next_significant(self.pos + 1).value == 'class':
            self.advance()
            self.skip_space()
            return self.parse_class(decorators, is_abstract=True)
        if self.at_word('interface'):
            return self.parse_interface()
        if self.at_word('function'):
            return self.parse_function(decorators)
        if self.at_word('async') and self.next_significant(self.pos + 1).value == 'function':
            self.advance()
            self.skip_space()
            return self.parse_function(decorators, is_async=True)
        if self.at_word(*STATEMENT_KEYWORDS) and not decorators:
            return RawStatement(self.read_statement())
        return None

    def read_statement(self) -> str:
        start = self.current
        text = self.read_expression(stop_at_comma=False)
        mark = self.save()
        self.skip_inline_space()
        if self.at(';'):
            end = self.advance().end
            return self.source[start.start:end]
        self.restore(mark)
        return text

    def comment_node(self, tok: Tok) -> CommentNode:
        # an unterminated block comment runs to EOF and picks up its newline
        return CommentNode(
            tok.value.rstrip(),
            is_block=tok.type != ST.COMMENT,
            is_doc=tok.type == ST.DOC_COMMENT,
        )

    def parse_decorators(self) -> List[Decorator]:
        decorators = []
        while self.check(ST.DECORATOR):
            name = self.advance().value[1:]
            arguments = None
            if self.at('('):
                arguments = self.consume_balanced('(', ')')
            decorators.append(Decorator(name, arguments))
            self.skip_space()
        return decorators

    # ------------------------------------------------------------------------
    # Imports / exports
    # ------------------------------------------------------------------------

    def parse_import(self) -> ImportDecl:
        start = self.current
        end = start.end
        depth = 0
        has_comment = False
        while not self.check(ST.EOF):
            tok = self.current
            if depth == 0 and (tok.type == ST.NEWLINE or tok.type in COMMENTS):
                if tok.type == ST.NEWLINE and self.continues_import(start):
                    self.advance()
                    continue
                break
            if tok.type in COMMENTS:
                has_comment = True
            if self.at('{', tok=tok):
                depth += 1
            elif self.at('}', tok=tok):
                depth = max(0, depth - 1)
            self.advance()
            if tok.type not in TRIVIA:
                end = tok.end
            if depth == 0 and self.at(';', tok=tok):
                break

        raw = self.source[start.start:end]
        decl = ImportDecl(raw)
        if not has_comment:
            self.structure_import(decl)
        return decl

    def continues_import(self, start: Tok) -> bool:
        """A clause split before `from` continues on the next line"""
        text = self.source[start.start:self.current.start].rstrip()
        following = self.next_significant()
        if following.type == ST.KEYWORD and following.value == 'from':
            return True
        return text.endswith((',', ' from', ' as')) and following.type in (ST.STRING, ST.IDENTIFIER, ST.KEYWORD)

    def structure_import(self, decl: ImportDecl) -> None:
        """Fill the structured fields when the import matches the simple grammar"""
        raw = decl.raw.strip()
        match = SIDE_EFFECT_IMPORT_RE.match(raw)
        if match:
            decl.source = match.group(2)
            decl.structured = True
            return

        match = IMPORT_RE.match(raw)
        if not match or match.group(1).startswith('type '):
            return
        clause = match.group(1).strip()
        decl.source = match.group(3)

        namespace = NAMESPACE_CLAUSE_RE.match(clause)
        if namespace:
            decl.default_import = namespace.group(1)
            decl.namespace_import = namespace.group(2)
            decl.structured = True
            return

        named = NAMED_CLAUSE_RE.match(clause)
        if not named or not clause or (named.group(1) is None and named.group(2) is None):
            return
        decl.default_import = named.group(1)
        if named.group(2) is not None:
            names = [re.sub(r'\s+', ' ', part.strip()) for part in named.group(2).split(',')]
            names = [name for name in names if name]
            if not all(IMPORT_SPECIFIER_RE.match(name) for name in names):
                return
            decl.named_imports = names
        decl.structured = True

    def parse_export(self, decorators: List[Decorator]) -> Optional[ExportDecl]:
        self.advance()
        self.skip_space()
        is_default = False
        if self.at_word('default'):
            is_default = True
            self.advance()
            self.skip_space()

        decorators = decorators + self.parse_decorators()
        declaration = self.parse_declaration(decorators)
        if declaration is None:
            if decorators:
                self.report("Expected declaration after decorator")
            declaration = RawStatement(self.read_statement())
        return ExportDecl(is_default=is_default, declaration=declaration)

    # ------------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------------

    def parse_name(self, what: str) -> Optional[str]:
        self.skip_space()
        if self.at_name():
            return self.advance().value
        self.report(f"Expected {what} name")
        return None

    def parse_type_params(self) -> Optional[str]:
        self.skip_space()
        if self.at('<'):
            return self.consume_balanced('<', '>')
        return None

    def parse_heritage(self) -> Tuple[Optional[str], List[str]]:
        extends = None
        implements: List[str] = []
        while True:
            self.skip_space()
            if self.at_word('extends'):
                self.advance()
                extends = self.read_type(stop_keywords=('implements',))
            elif self.at_word('implements'):
                self.advance()
                implements = self.read_type_list()
            else:
                return extends, implements

    def read_type_list(self) -> List[str]:
        types = [self.read_type(stop_keywords=('implements', 'extends'))]
        while self.at(','):
            self.advance()
            types.append(self.read_type(stop_keywords=('implements', 'extends')))
        return [t for t in types if t]

    def parse_struct(self, decorators: List[Decorator]) -> Optional[StructDecl]:
        self.advance()
        name = self.parse_name('struct')
        if name is None:
            return None
        decl = StructDecl(name, decorators, self.parse_type_params())
        decl.extends, decl.implements = self.parse_heritage()
        decl.members = self.parse_class_body('struct')
        return decl

    def parse_class(self, decorators: List[Decorator], is_abstract: bool = False) -> Optional[ClassDecl]:
        self.advance()
        name = self.parse_name('class')
        if name is None:
            return None
        decl = ClassDecl(name, decorators, self.parse_type_params(), is_abstract=is_abstract)
        decl.extends, decl.implements = self.parse_heritage()
        decl.members = self.parse_class_body('class')
        return decl

    def parse_interface(self) -> Optional[InterfaceDecl]:
        self.advance()
        name = self.parse_name('interface')
        if name is None:
            return None
        type_params = self.parse_type_params()
        self.skip_space()
        extends: List[str] = []
        if self.at_word('extends'):
            self.advance()
            extends = self.read_type_list()
        self.skip_space()
        if not self.at('{'):
            self.report("Expected '{' after interface header")
            return None

        # Members are parsed leniently for the model; the raw body is what prints
        mark, error_count = self.save(), len(self.errors)
        members = self.parse_class_body('interface')
        del self.errors[error_count:]
        self.restore(mark)

        body = self.consume_balanced('{', '}')
        if not body.endswith('}'):
            self.report("Unterminated interface body")
        return InterfaceDecl(name, body, type_params, extends, members)

    def parse_function(self, decorators: List[Decorator], is_async: bool = False) -> Optional[FunctionDecl]:
        self.advance()
        self.skip_space()
        is_generator = False
        if self.at('*'):
            is_generator = True
            self.advance()
        name = self.parse_name('function')
        if name is None:
            return None

        decl = FunctionDecl(name, decorators, self.parse_type_params(),
                            is_async=is_async, is_generator=is_generator)
        self.skip_space()
        if not self.at('('):
            self.report("Expected '(' after function name")
            return decl
        decl.parameters, decl.raw_parameters = self.parse_parameters()
        decl.return_type = self.parse_return_type()
        decl.body = self.parse_body(decl.is_builder)
        return decl

    def parse_return_type(self) -> Optional[str]:
        mark = self.save()
        self.skip_trivia()
        if self.at(':'):
            self.advance()
            return self.read_type() or None
        self.restore(mark)
        return None

    def parse_body(self, ui: bool) -> Optional[BodySlice]:
        """Parse a {...} body, or return None for a bodiless signature"""
        mark = self.save()
        self.skip_trivia()
        if not self.at('{'):
            self.restore(mark)
            self.consume_optional_terminator()
            return None
        body = BodySlice(self.consume_body('function'))
        if ui:
            body.parsed = self.parse_ui(body.source_text)
        return body

    def parse_ui(self, text: str):
        result = parse_ui_components(text)
        if not result.complete:
            logger.debug("UI body not fully understood, keeping raw text")
            return None
        return result.components

    # ------------------------------------------------------------------------
    # Class bodies
    # ------------------------------------------------------------------------

    def parse_class_body(self, what: str) -> List[Member]:
        self.skip_space()
        if not self.at('{'):
            self.report(f"Expected '{{' to open {what} body")
            return []
        open_tok = self.advance()

        members: List[Member] = []
        while True:
            newlines = self.skip_trivia()
            if self.check(ST.EOF):
                self.report(f"Unterminated {what} body", open_tok)
                break
            if self.at('}'):
                self.advance()
                break

            tok = self.current
            if tok.type in COMMENTS:
                self.advance()
                member: Optional[Member] = self.comment_node(tok)
            elif self.at(';', ','):
                self.advance()
                continue
            else:
                before = self.pos
                member = self.parse_member()
                if member is None:
                    if self.pos == before:
                        self.report(f"Unexpected token in {what} body")
                        self.advance()
                    continue

            member.blank_before = newlines >= 2 and bool(members)
            member.span = self.span_from(tok)
            member.trailing_comment = self.take_trailing_comment()
            members.append(member)
        return members

    def parse_member(self) -> Optional[Member]:
        decorators = self.parse_decorators()

        if self.at_word('build'):
            mark = self.save()
            build = self.try_build_method(decorators)
            if build is not None:
                return build
            self.restore(mark)

        modifiers = self.parse_modifiers(MEMBER_MODIFIERS)

        if self.at_name() or self.check(ST.STRING, ST.NUMBER):
            name = self.advance().value
        elif self.at('['):
            name = self.consume_balanced('[', ']')
        else:
            if decorators or modifiers:
                self.report("Expected member name")
            return None

        is_optional = is_definite = False
        self.skip_inline_space()
        if self.at('?'):
            self.advance()
            is_optional = True
        elif self.at('!'):
            self.advance()
            is_definite = True
        self.skip_inline_space()

        if self.at('(', '<'):
            return self.parse_method_rest(name, decorators, modifiers, is_optional)

        prop = Property(name, decorators, modifiers, is_optional=is_optional, is_definite=is_definite)
        if self.at(':'):
            self.advance()
            prop.type_annotation = self.read_type() or None
        self.skip_inline_space()
        if self.at('='):
            self.advance()
            prop.initializer = self.read_expression()
            if not prop.initializer:
                self.report(f"Expected initializer for '{name}'")
        self.consume_optional_terminator()
        return prop

    def parse_modifiers(self, allowed: frozenset) -> List[str]:
        """Words in `allowed` count as modifiers only when a name follows them"""
        modifiers = []
        while self.at_word(*allowed):
            following = self.next_significant(self.pos + 1)
            if following.type not in (ST.IDENTIFIER, ST.KEYWORD, ST.STRING) and not self.at('[', tok=following):
                break
            modifiers.append(self.advance().value)
            self.skip_space()
        return modifiers

    def parse_method_rest(self, name: str, decorators: List[Decorator],
                          modifiers: List[str], is_optional: bool) -> Method:
        method = Method(name, decorators, modifiers, is_optional=is_optional)
        if self.at('<'):
            method.type_params = self.consume_balanced('<', '>')
            self.skip_space()
        if not self.at('('):
            self.report(f"Expected '(' after method name '{name}'")
            return method
        method.parameters, method.raw_parameters = self.parse_parameters()
        method.return_type = self.parse_return_type()
        method.body = self.parse_body(method.is_builder)
        return method

    def try_build_method(self, decorators: List[Decorator]) -> Optional[BuildMethod]:
        """Look ahead for `build ( ) {`; the caller restores on None"""
        self.advance()
        self.skip_trivia()
        if not self.at('('):
            return None
        self.advance()
        self.skip_trivia()
        if not self.at(')'):
            return None
        self.advance()
        self.skip_trivia()
        if not self.at('{'):
            return None

        body = BodySlice(self.consume_body('build'))
        body.parsed = self.parse_ui(body.source_text)
        return BuildMethod(decorators, body)

    # ------------------------------------------------------------------------
    # Parameters
    # ------------------------------------------------------------------------

    def parse_parameters(self) -> Tuple[List[Parameter], Optional[str]]:
        """
        Parse a parenthesised parameter list. Lists containing comments are
        kept as raw text so nothing is lost.
        """
        mark = self.save()
        raw = self.consume_balanced('(', ')')
        if not raw.endswith(')'):
            self.report("Unterminated parameter list", self.tokens[mark])
        if any(t.type in COMMENTS for t in self.tokens[mark:self.pos]):
            return [], raw
        end = self.pos
        self.restore(mark)

        self.advance()
        parameters: List[Parameter] = []
        while self.pos < end:
            self.skip_space()
            if self.at(')') or self.check(ST.EOF):
                break
            before = self.pos
            param = self.parse_parameter()
            if param is not None:
                parameters.append(param)
            self.skip_space()
            if self.at(','):
                self.advance()
            elif not self.at(')') and self.pos < end:
                self.report("Expected ',' or ')' in parameter list")
                self.skip_to_delimiter(end)
                if self.pos == before:
                    self.advance()
        self.restore(end)
        return parameters, None

    def skip_to_delimiter(self, end: int) -> None:
        """Skip to the next depth-0 ',' or the closing ')'"""
        depth = 0
        while self.pos < end and not self.check(ST.EOF):
            if self.at('(', '[', '{'):
                depth += 1
            elif self.at(')', ']', '}'):
                if depth == 0:
                    return
                depth -= 1
            elif depth == 0 and self.at(','):
                return
            self.advance()

    def parse_parameter(self) -> Optional[Parameter]:
        decorators = self.parse_decorators()
        modifiers = self.parse_modifiers(PARAMETER_MODIFIERS)
        is_rest = False
        if self.at('...'):
            is_rest = True
            self.advance()

        if self.at_name():
            name = self.advance().value
        elif self.at('{'):
            name = self.consume_balanced('{', '}')
        elif self.at('['):
            name = self.consume_balanced('[', ']')
        else:
            self.report("Expected parameter name")
            return None

        param = Parameter(name, decorators, modifiers, is_rest=is_rest)
        self.skip_space()
        if self.at('?'):
            param.is_optional = True
            self.advance()
            self.skip_space()
        if self.at(':'):
            self.advance()
            param.type_annotation = self.read_type() or None
            self.skip_space()
        if self.at('='):
            self.advance()
            param.default = self.read_expression() or None
        return param


def parse_ets(source: str) -> Tuple[Document, List[ParseError]]:
    """Convenience function: parse ETS source into a Document and error list"""
    parser = EtsParser(source)
    document = parser.parse_document()
    return document, parser.errors
