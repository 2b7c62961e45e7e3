"""
Token Types for arkfmt

Shared between the lexers and parsers of both pipelines to avoid circular
dependencies.
"""

from typing import Optional
from dataclasses import dataclass
from enum import Enum, auto


class MT(Enum):
    """Markup Token types"""

    EOF = auto()
    TEXT = auto()
    COMMENT = auto()

    # Tag structure
    TAG_OPEN = auto()       # <
    TAG_CLOSE = auto()      # </
    TAG_END = auto()        # >
    TAG_SELF_CLOSE = auto() # />
    NAME = auto()
    EQUALS = auto()
    STRING = auto()
    UNQUOTED_VALUE = auto()

    # Interpolation
    INTERP_START = auto()   # {{
    INTERP_END = auto()     # }}
    IDENTIFIER = auto()
    NUMBER = auto()
    BOOLEAN = auto()
    NULL = auto()
    UNDEFINED = auto()
    OPERATOR = auto()
    PUNCTUATOR = auto()


class ST(Enum):
    """Struct/UI source Token types"""

    WHITESPACE = auto()
    NEWLINE = auto()
    COMMENT = auto()
    BLOCK_COMMENT = auto()
    DOC_COMMENT = auto()
    STRING = auto()
    TEMPLATE_STRING = auto()
    NUMBER = auto()
    IDENTIFIER = auto()
    KEYWORD = auto()
    DECORATOR = auto()
    OPERATOR = auto()
    PUNCTUATOR = auto()
    REGEXP = auto()
    EOF = auto()


TRIVIA = frozenset({ST.WHITESPACE, ST.NEWLINE})
COMMENTS = frozenset({ST.COMMENT, ST.BLOCK_COMMENT, ST.DOC_COMMENT})


@dataclass(frozen=True)
class Tok:
    """Token with position info.

    ``start``/``end`` are indices into the source string, ``line`` and
    ``column`` are 1-based and point at the first character.
    """

    type: Enum
    value: str
    start: int
    end: int
    line: int
    column: int

    def __repr__(self) -> str:
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"


class ParseError(Exception):
    """Parse error with position info.

    Parsers collect these in their ``errors`` list; they are never raised for
    malformed input.
    """

    def __init__(self, message: str, token: Optional[Tok] = None):
        self.message = message
        self.token = token
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

    @property
    def line(self) -> Optional[int]:
        return self.token.line if self.token else None

    @property
    def column(self) -> Optional[int]:
        return self.token.column if self.token else None

    @property
    def start(self) -> Optional[int]:
        return self.token.start if self.token else None

    @property
    def end(self) -> Optional[int]:
        return self.token.end if self.token else None


def utf16_offset(text: str, index: int) -> int:
    """Convert a string index into a UTF-16 code unit offset."""
    prefix = text[:index]
    return len(prefix) + sum(1 for ch in prefix if ord(ch) > 0xFFFF)
