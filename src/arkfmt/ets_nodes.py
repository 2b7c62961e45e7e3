"""
Document model for ETS struct/UI source.

``Document.children`` is the ordered source of truth; the per-kind lists are
read-only projections over it. Declarations are parsed structurally, while
bodies, initializers and type annotations are kept as exact source slices.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Union

from .token_types import Tok

# Decorators whose function/method bodies hold a UI component tree
BUILDER_DECORATORS = frozenset({'Builder', 'LocalBuilder'})


@dataclass(frozen=True)
class SourceSpan:
    start: int
    end: int
    line: int
    column: int


@dataclass
class Node:
    """Common layout facts every node carries"""

    blank_before: bool = field(default=False, kw_only=True)
    trailing_comment: Optional[str] = field(default=None, kw_only=True)
    span: Optional[SourceSpan] = field(default=None, kw_only=True, repr=False, compare=False)


@dataclass
class Decorator:
    name: str
    arguments: Optional[str] = None

    def render(self) -> str:
        return f"@{self.name}{self.arguments or ''}"


# ============================================================================
# UI component tree
# ============================================================================

class UIFlavor(Enum):
    PLAIN = 'plain'
    CONDITIONAL = 'conditional'
    LOOP = 'loop'


@dataclass
class UIAttribute:
    """One chained ``.name(args)`` call"""

    name: str
    arguments: str
    after_children: bool = False


@dataclass
class UIComponent:
    name: str
    arguments: str = ''
    attributes: List[UIAttribute] = field(default_factory=list)
    children: List['UIComponent'] = field(default_factory=list)
    flavor: UIFlavor = UIFlavor.PLAIN
    condition: Optional[str] = None
    loop_expression: Optional[str] = None
    alternate: Optional[List['UIComponent']] = None
    else_if: bool = False
    has_block: bool = False

    @property
    def is_conditional(self) -> bool:
        return self.flavor is UIFlavor.CONDITIONAL

    @property
    def is_loop(self) -> bool:
        return self.flavor is UIFlavor.LOOP


@dataclass
class BodySlice:
    """
    A brace-delimited body: the exact source between the braces plus, for
    build/builder bodies, the UI tree when the sub-parser understood all of it.
    """

    source_text: str
    parsed: Optional[List[UIComponent]] = None


# ============================================================================
# Members
# ============================================================================

@dataclass
class Parameter:
    name: str
    decorators: List[Decorator] = field(default_factory=list)
    modifiers: List[str] = field(default_factory=list)
    type_annotation: Optional[str] = None
    default: Optional[str] = None
    is_optional: bool = False
    is_rest: bool = False


@dataclass
class Property(Node):
    name: str
    decorators: List[Decorator] = field(default_factory=list)
    modifiers: List[str] = field(default_factory=list)
    type_annotation: Optional[str] = None
    initializer: Optional[str] = None
    is_optional: bool = False
    is_definite: bool = False


@dataclass
class Method(Node):
    name: str
    decorators: List[Decorator] = field(default_factory=list)
    modifiers: List[str] = field(default_factory=list)
    type_params: Optional[str] = None
    parameters: List[Parameter] = field(default_factory=list)
    raw_parameters: Optional[str] = None
    return_type: Optional[str] = None
    body: Optional[BodySlice] = None
    is_optional: bool = False

    @property
    def is_builder(self) -> bool:
        return any(d.name in BUILDER_DECORATORS for d in self.decorators)


@dataclass
class BuildMethod(Node):
    decorators: List[Decorator] = field(default_factory=list)
    body: BodySlice = field(default_factory=lambda: BodySlice(''))


@dataclass
class CommentNode(Node):
    text: str
    is_block: bool = False
    is_doc: bool = False


Member = Union[Property, Method, BuildMethod, CommentNode]


# ============================================================================
# Top level
# ============================================================================

@dataclass
class ImportDecl(Node):
    raw: str
    source: str = ''
    default_import: Optional[str] = None
    named_imports: Optional[List[str]] = None
    namespace_import: Optional[str] = None
    structured: bool = False


@dataclass
class StructDecl(Node):
    name: str
    decorators: List[Decorator] = field(default_factory=list)
    type_params: Optional[str] = None
    extends: Optional[str] = None
    implements: List[str] = field(default_factory=list)
    members: List[Member] = field(default_factory=list)


@dataclass
class ClassDecl(Node):
    name: str
    decorators: List[Decorator] = field(default_factory=list)
    type_params: Optional[str] = None
    extends: Optional[str] = None
    implements: List[str] = field(default_factory=list)
    members: List[Member] = field(default_factory=list)
    is_abstract: bool = False


@dataclass
class InterfaceDecl(Node):
    name: str
    body: str
    type_params: Optional[str] = None
    extends: List[str] = field(default_factory=list)
    members: List[Member] = field(default_factory=list)


@dataclass
class FunctionDecl(Node):
    name: str
    decorators: List[Decorator] = field(default_factory=list)
    type_params: Optional[str] = None
    parameters: List[Parameter] = field(default_factory=list)
    raw_parameters: Optional[str] = None
    return_type: Optional[str] = None
    body: Optional[BodySlice] = None
    is_async: bool = False
    is_generator: bool = False

    @property
    def is_builder(self) -> bool:
        return any(d.name in BUILDER_DECORATORS for d in self.decorators)


@dataclass
class RawStatement(Node):
    """Variables, type aliases, enums and other statements kept verbatim"""

    text: str


Declaration = Union[StructDecl, ClassDecl, InterfaceDecl, FunctionDecl, RawStatement]


@dataclass
class ExportDecl(Node):
    is_default: bool = False
    declaration: Optional[Declaration] = None


TopLevel = Union[ImportDecl, ExportDecl, StructDecl, ClassDecl, InterfaceDecl,
                 FunctionDecl, RawStatement, CommentNode]


@dataclass
class Document:
    children: List[TopLevel] = field(default_factory=list)
    dropped: List[Tok] = field(default_factory=list)

    def _declarations(self) -> Iterator[Node]:
        for child in self.children:
            if isinstance(child, ExportDecl) and child.declaration is not None:
                yield child.declaration
            else:
                yield child

    @property
    def imports(self) -> List[ImportDecl]:
        return [c for c in self.children if isinstance(c, ImportDecl)]

    @property
    def exports(self) -> List[ExportDecl]:
        return [c for c in self.children if isinstance(c, ExportDecl)]

    @property
    def structs(self) -> List[StructDecl]:
        return [d for d in self._declarations() if isinstance(d, StructDecl)]

    @property
    def classes(self) -> List[ClassDecl]:
        return [d for d in self._declarations() if isinstance(d, ClassDecl)]

    @property
    def interfaces(self) -> List[InterfaceDecl]:
        return [d for d in self._declarations() if isinstance(d, InterfaceDecl)]

    @property
    def functions(self) -> List[FunctionDecl]:
        return [d for d in self._declarations() if isinstance(d, FunctionDecl)]
