"""
Lexer for HML markup

Tokenizes markup source on demand, driven by an explicit mode stack.

Features:
- Data / tag / interpolation modes (nested ``{{ }}`` inside attribute values)
- Single-token lookahead via peek_token()
- Value-copy checkpoints for backtracking
- Never raises: unterminated comments and strings run to end of input
"""

from typing import List, NamedTuple, Optional, Tuple
from enum import Enum
import re

from .token_types import MT, Tok


class Mode(Enum):
    DATA = "data"
    TAG = "tag"
    INTERPOLATION = "interpolation"


class LexerState(NamedTuple):
    """Snapshot of lexer position, restorable by MarkupLexer.restore()"""

    index: int
    line: int
    column: int
    modes: Tuple[Mode, ...]
    lookahead: Optional[Tok]


NAME_START = re.compile(r"[A-Za-z_:\-]")
NAME_CHAR = re.compile(r"[A-Za-z0-9_:\-.]")
IDENT_START = re.compile(r"[A-Za-z_$]")
IDENT_CHAR = re.compile(r"[A-Za-z0-9_$]")

# ============================================================================
# Lexer Implementation
# ============================================================================

class MarkupLexer:
    """
    Markup lexer with a mode stack.

    The base DATA mode is never popped; ``<``, ``</`` and ``{{`` push,
    ``>``, ``/>`` and ``}}`` pop.
    """

    KEYWORDS = {
        'true': MT.BOOLEAN,
        'false': MT.BOOLEAN,
        'null': MT.NULL,
        'undefined': MT.UNDEFINED,
    }

    # Longest matches first to handle prefixes correctly
    OPERATORS = [
        # Three-character operators
        '===', '!==', '>>>',

        # Two-character operators
        '==', '!=', '>=', '<=', '&&', '||', '++', '--',
        '+=', '-=', '*=', '/=', '%=', '=>', '<<', '>>',

        # Single-character operators
        '+', '-', '*', '/', '%', '>', '<', '!', '~', '?', ':', '=',
        '&', '|', '^', '.',
    ]

    PUNCTUATORS = [',', '(', ')', '[', ']', '{', '}']

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.modes: List[Mode] = [Mode.DATA]
        self.lookahead: Optional[Tok] = None

    # ========================================================================
    # Public API
    # ========================================================================

    def peek_token(self) -> Tok:
        """Return the next token without consuming it"""
        if self.lookahead is None:
            self.lookahead = self.scan_token()
        return self.lookahead

    def next_token(self) -> Tok:
        """Consume and return the next token"""
        if self.lookahead is not None:
            tok = self.lookahead
            self.lookahead = None
            return tok
        return self.scan_token()

    def tokenize(self) -> List[Tok]:
        """Tokenize the remaining source, EOF included"""
        tokens = []
        while True:
            tok = self.next_token()
            tokens.append(tok)
            if tok.type == MT.EOF:
                return tokens

    def checkpoint(self) -> LexerState:
        return LexerState(self.pos, self.line, self.column, tuple(self.modes), self.lookahead)

    def restore(self, state: LexerState) -> None:
        self.pos = state.index
        self.line = state.line
        self.column = state.column
        self.modes = list(state.modes)
        self.lookahead = state.lookahead

    @property
    def mode(self) -> Mode:
        return self.modes[-1]

    # ========================================================================
    # Mode Stack
    # ========================================================================

    def push_mode(self, mode: Mode) -> None:
        self.modes.append(mode)

    def pop_mode(self) -> None:
        if len(self.modes) > 1:
            self.modes.pop()

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def scan_token(self) -> Tok:
        if self.pos >= len(self.source):
            return self.make(MT.EOF, self.pos, self.line, self.column)

        if self.mode is Mode.DATA:
            return self.scan_data()
        if self.mode is Mode.TAG:
            return self.scan_tag()
        return self.scan_interpolation()

    def scan_data(self) -> Tok:
        start, line, col = self.pos, self.line, self.column

        if self.match('<!--'):
            return self.scan_comment()

        if self.match('{{'):
            self.advance(2)
            self.push_mode(Mode.INTERPOLATION)
            return self.make(MT.INTERP_START, start, line, col)

        if self.match('</'):
            self.advance(2)
            self.push_mode(Mode.TAG)
            return self.make(MT.TAG_CLOSE, start, line, col)

        if self.peek() == '<':
            self.advance()
            self.push_mode(Mode.TAG)
            return self.make(MT.TAG_OPEN, start, line, col)

        while self.pos < len(self.source) and self.peek() != '<' and not self.match('{{'):
            self.advance()
        return self.make(MT.TEXT, start, line, col)

    def scan_tag(self) -> Tok:
        self.skip_whitespace()
        start, line, col = self.pos, self.line, self.column

        if self.match('/>'):
            self.advance(2)
            self.pop_mode()
            return self.make(MT.TAG_SELF_CLOSE, start, line, col)

        if self.peek() == '>':
            self.advance()
            self.pop_mode()
            return self.make(MT.TAG_END, start, line, col)

        if self.match('{{'):
            self.advance(2)
            self.push_mode(Mode.INTERPOLATION)
            return self.make(MT.INTERP_START, start, line, col)

        if self.peek() == '=':
            self.advance()
            return self.make(MT.EQUALS, start, line, col)

        if self.peek() in ('"', "'"):
            return self.scan_string()

        if self.pos >= len(self.source):
            return self.make(MT.EOF, start, line, col)

        if NAME_START.match(self.peek()):
            self.advance()
            while self.pos < len(self.source) and NAME_CHAR.match(self.peek()):
                self.advance()
            return self.make(MT.NAME, start, line, col)

        self.advance()
        return self.make(MT.UNQUOTED_VALUE, start, line, col)

    def scan_interpolation(self) -> Tok:
        # Comments inside interpolations are dropped, never emitted
        while True:
            self.skip_whitespace()
            if self.match('//'):
                while self.pos < len(self.source) and self.peek() != '\n':
                    self.advance()
                continue
            if self.match('/*'):
                self.advance(2)
                while self.pos < len(self.source) and not self.match('*/'):
                    self.advance()
                if self.match('*/'):
                    self.advance(2)
                continue
            break

        start, line, col = self.pos, self.line, self.column

        if self.match('}}'):
            self.advance(2)
            self.pop_mode()
            return self.make(MT.INTERP_END, start, line, col)

        if self.pos >= len(self.source):
            return self.make(MT.EOF, start, line, col)

        ch = self.peek()
        if IDENT_START.match(ch):
            self.advance()
            while self.pos < len(self.source) and IDENT_CHAR.match(self.peek()):
                self.advance()
            value = self.source[start:self.pos]
            return self.make(self.KEYWORDS.get(value, MT.IDENTIFIER), start, line, col)

        if ch.isdigit() or (ch == '.' and self.peek(1).isdigit()):
            return self.scan_number()

        if ch in ('"', "'"):
            return self.scan_string()

        for op in self.OPERATORS:
            if self.match(op):
                self.advance(len(op))
                return self.make(MT.OPERATOR, start, line, col)

        # Punctuators and anything unrecognised
        self.advance()
        return self.make(MT.PUNCTUATOR, start, line, col)

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_comment(self) -> Tok:
        """Scan <!-- ... -->; the token value is the comment body"""
        start, line, col = self.pos, self.line, self.column
        self.advance(4)
        body_start = self.pos
        while self.pos < len(self.source) and not self.match('-->'):
            self.advance()
        body = self.source[body_start:self.pos]
        if self.match('-->'):
            self.advance(3)
        return Tok(MT.COMMENT, body, start, self.pos, line, col)

    def scan_number(self) -> Tok:
        """Scan number: 0x/0b/0o prefix, else digits, fraction, exponent"""
        start, line, col = self.pos, self.line, self.column
        prefix = self.source[self.pos:self.pos + 2].lower()

        if prefix in ('0x', '0b', '0o'):
            digits = {'0x': '0123456789abcdefABCDEF', '0b': '01', '0o': '01234567'}[prefix]
            self.advance(2)
            while self.pos < len(self.source) and self.peek() in digits:
                self.advance()
            return self.make(MT.NUMBER, start, line, col)

        while self.peek().isdigit():
            self.advance()
        if self.peek() == '.':
            self.advance()
            while self.peek().isdigit():
                self.advance()
        if self.peek() in ('e', 'E'):
            self.advance()
            if self.peek() in ('+', '-'):
                self.advance()
            while self.peek().isdigit():
                self.advance()
        return self.make(MT.NUMBER, start, line, col)

    def scan_string(self) -> Tok:
        """Scan quoted string, keeping the quotes"""
        start, line, col = self.pos, self.line, self.column
        quote = self.peek()
        self.advance()
        escaped = False

        while self.pos < len(self.source):
            ch = self.peek()
            if not escaped and ch == quote:
                self.advance()
                break
            escaped = not escaped and ch == '\\'
            self.advance()

        return self.make(MT.STRING, start, line, col)

    # ========================================================================
    # Helpers
    # ========================================================================

    def skip_whitespace(self) -> None:
        while self.peek() in (' ', '\t', '\r', '\n'):
            self.advance()

    def match(self, text: str) -> bool:
        return self.source.startswith(text, self.pos)

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character; '' past end of input"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return ''

    def advance(self, count: int = 1) -> None:
        for _ in range(count):
            if self.pos >= len(self.source):
                return
            if self.source[self.pos] == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.pos += 1

    def make(self, token_type: MT, start: int, line: int, column: int) -> Tok:
        return Tok(token_type, self.source[start:self.pos], start, self.pos, line, column)


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize markup source"""
    return MarkupLexer(source).tokenize()
