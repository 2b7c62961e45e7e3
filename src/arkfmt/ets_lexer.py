"""
Lexer for ETS struct/UI source

Tokenizes the whole source in one pass; the parser indexes into the
resulting list. Trivia (whitespace, newlines, comments) is kept as tokens so
source slices and blank lines can be recovered.

Features:
- CR, LF and CRLF newlines, each one token with its original text
- Line, block and doc (``/**``) comments
- Template strings with ``${ }`` brace-depth tracking
- Best-effort regular expression literals
- Never raises: unterminated strings/comments run to end of input
"""

from typing import List, Optional

from .token_types import COMMENTS, ST, TRIVIA, Tok

KEYWORDS = frozenset({
    'break', 'case', 'catch', 'class', 'const', 'continue', 'debugger', 'default',
    'delete', 'do', 'else', 'enum', 'export', 'extends', 'false', 'finally', 'for',
    'function', 'if', 'import', 'in', 'instanceof', 'interface', 'let', 'new', 'null',
    'return', 'static', 'struct', 'super', 'switch', 'this', 'throw', 'true', 'try',
    'typeof', 'undefined', 'var', 'void', 'while', 'with', 'as', 'implements',
    'private', 'protected', 'public', 'readonly', 'type', 'from', 'of', 'async',
    'await', 'abstract', 'declare', 'namespace', 'module', 'get', 'set', 'is',
    'keyof', 'infer', 'never', 'unknown', 'any', 'lazy',
})

# Longest matches first to handle prefixes correctly
OPERATORS = [
    '>>>=',
    '===', '!==', '>>>', '<<=', '>>=', '**=', '&&=', '||=', '??=',
    '<=', '>=', '==', '!=', '++', '--', '<<', '>>', '&&', '||', '??',
    '+=', '-=', '*=', '/=', '%=', '&=', '|=', '^=', '=>', '**', '?.',
    '+', '-', '*', '/', '%', '<', '>', '&', '|', '^', '~', '!', '?', ':', '=',
]

PUNCTUATORS = ['...', '{', '}', '(', ')', '[', ']', ';', ',', '.']

# Keywords that end an operand, so a following '/' divides
OPERAND_KEYWORDS = frozenset({'this', 'super', 'true', 'false', 'null', 'undefined'})

WHITESPACE_CHARS = ' \t\f\v'
DIGITS = '0123456789'
HEX_DIGITS = '0123456789abcdefABCDEF'


def is_ident_start(ch: str) -> bool:
    return ch != '' and (ch.isascii() and (ch.isalpha() or ch in '_$'))

def is_ident_char(ch: str) -> bool:
    return ch != '' and (ch.isascii() and (ch.isalnum() or ch in '_$'))

def is_digit(ch: str) -> bool:
    return ch != '' and ch in DIGITS


class EtsLexer:
    """Single-pass ETS lexer producing the full token list up front."""

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.tokens: List[Tok] = []
        self.tok_start = (0, 1, 1)

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list ending in EOF"""
        while self.pos < len(self.source):
            self.tok_start = (self.pos, self.line, self.column)
            self.scan_token()
        self.tok_start = (self.pos, self.line, self.column)
        self.emit(ST.EOF)
        return self.tokens

    def scan_token(self) -> None:
        ch = self.peek()

        if ch == '\n':
            self.advance()
            self.emit(ST.NEWLINE)
            return

        if ch == '\r':
            self.advance(2 if self.peek(1) == '\n' else 1)
            self.emit(ST.NEWLINE)
            return

        if ch in WHITESPACE_CHARS:
            while self.peek() != '' and self.peek() in WHITESPACE_CHARS:
                self.advance()
            self.emit(ST.WHITESPACE)
            return

        if self.match('//'):
            while self.pos < len(self.source) and self.peek() not in ('\n', '\r'):
                self.advance()
            self.emit(ST.COMMENT)
            return

        if self.match('/*'):
            self.scan_block_comment()
            return

        if ch == '@':
            self.advance()
            while is_ident_char(self.peek()):
                self.advance()
            self.emit(ST.DECORATOR)
            return

        if ch in ('"', "'"):
            self.scan_string()
            return

        if ch == '`':
            self.scan_template()
            return

        if is_digit(ch) or (ch == '.' and is_digit(self.peek(1))):
            self.scan_number()
            return

        if is_ident_start(ch):
            while is_ident_char(self.peek()):
                self.advance()
            value = self.source[self.tok_start[0]:self.pos]
            self.emit(ST.KEYWORD if value in KEYWORDS else ST.IDENTIFIER)
            return

        if ch == '/' and self.regex_allowed() and self.scan_regex():
            return

        for op in OPERATORS:
            if self.match(op):
                self.advance(len(op))
                self.emit(ST.OPERATOR)
                return

        for punct in PUNCTUATORS:
            if self.match(punct):
                self.advance(len(punct))
                self.emit(ST.PUNCTUATOR)
                return

        self.advance()
        self.emit(ST.PUNCTUATOR)

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_block_comment(self) -> None:
        """Scan /* ... */; doc comment iff it opens with /** (but not /**/)"""
        is_doc = self.match('/**') and not self.match('/**/')
        self.advance(2)
        while self.pos < len(self.source) and not self.match('*/'):
            self.advance()
        if self.match('*/'):
            self.advance(2)
        self.emit(ST.DOC_COMMENT if is_doc else ST.BLOCK_COMMENT)

    def scan_string(self) -> None:
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
        self.emit(ST.STRING)

    def scan_template(self) -> None:
        """Scan `...`; a backtick only terminates at brace depth 0"""
        self.advance()
        depth = 0
        while self.pos < len(self.source):
            ch = self.peek()
            if ch == '\\':
                self.advance(2)
                continue
            if ch == '$' and self.peek(1) == '{':
                self.advance(2)
                depth += 1
                continue
            if ch == '{' and depth > 0:
                depth += 1
            elif ch == '}' and depth > 0:
                depth -= 1
            elif ch == '`' and depth == 0:
                self.advance()
                break
            self.advance()
        self.emit(ST.TEMPLATE_STRING)

    def scan_number(self) -> None:
        prefix = self.source[self.pos:self.pos + 2].lower()
        if prefix in ('0x', '0b', '0o'):
            digits = {'0x': HEX_DIGITS, '0b': '01', '0o': '01234567'}[prefix]
            self.advance(2)
            while self.peek() != '' and self.peek() in digits:
                self.advance()
        else:
            while is_digit(self.peek()):
                self.advance()
            if self.peek() == '.':
                self.advance()
                while is_digit(self.peek()):
                    self.advance()
            if self.peek() in ('e', 'E'):
                self.advance()
                if self.peek() in ('+', '-'):
                    self.advance()
                while is_digit(self.peek()):
                    self.advance()
        if self.peek() == 'n':
            self.advance()
        self.emit(ST.NUMBER)

    def scan_regex(self) -> bool:
        """
        Try to scan /pattern/flags. Rewinds and returns False when a newline
        or end of input comes before the closing slash.
        """
        saved = (self.pos, self.line, self.column)
        self.advance()
        in_class = False
        while True:
            ch = self.peek()
            if ch in ('', '\n', '\r'):
                self.pos, self.line, self.column = saved
                return False
            if ch == '\\':
                self.advance(2)
                continue
            self.advance()
            if ch == '[':
                in_class = True
            elif ch == ']':
                in_class = False
            elif ch == '/' and not in_class:
                break
        while is_ident_char(self.peek()):
            self.advance()
        self.emit(ST.REGEXP)
        return True

    def regex_allowed(self) -> bool:
        if self.peek(1) in ('/', '*'):
            return False
        prev = self.last_significant()
        if prev is None:
            return True
        if prev.type in (ST.IDENTIFIER, ST.NUMBER, ST.STRING, ST.TEMPLATE_STRING, ST.REGEXP):
            return False
        if prev.type == ST.KEYWORD and prev.value in OPERAND_KEYWORDS:
            return False
        return not (prev.type == ST.PUNCTUATOR and prev.value in (')', ']'))

    # ========================================================================
    # Helpers
    # ========================================================================

    def last_significant(self) -> Optional[Tok]:
        for tok in reversed(self.tokens):
            if tok.type not in TRIVIA and tok.type not in COMMENTS:
                return tok
        return None

    def match(self, text: str) -> bool:
        return self.source.startswith(text, self.pos)

    def peek(self, offset: int = 0) -> str:
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return ''

    def advance(self, count: int = 1) -> None:
        for _ in range(count):
            if self.pos >= len(self.source):
                return
            ch = self.source[self.pos]
            self.pos += 1
            if ch == '\n' or (ch == '\r' and self.peek() != '\n'):
                self.line += 1
                self.column = 1
            else:
                self.column += 1

    def emit(self, token_type: ST) -> None:
        start, line, column = self.tok_start
        self.tokens.append(Tok(token_type, self.source[start:self.pos], start, self.pos, line, column))


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize ETS source"""
    return EtsLexer(source).tokenize()
