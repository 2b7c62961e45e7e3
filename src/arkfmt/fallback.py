"""
Safety net for the structural ETS formatter

- detect_complex_syntax: cheap regex checks for constructs the declaration
  parser does not cover
- has_formatting_issues: post-format invariants (comments kept, braces kept)
- format_with_basic_rules: content-preserving reindent of the whole text
- infer_semicolon_style: guess the semicolon preference from the input
"""

from typing import List
import os
import re

from .ets_lexer import tokenize
from .reindent import reindent_lines, split_lines
from .token_types import COMMENTS, ST

COMPLEX_SYNTAX_PATTERNS = [
    re.compile(r'\bnamespace\s+\w+'),
    re.compile(r'\bget\s+\w+\s*\('),
    re.compile(r'\bset\s+\w+\s*\('),
    re.compile(r'struct\s+\w+[^{]*\{[^}]*\b(enum|interface|class|function)\b', re.DOTALL),
]

def _float_from_env(env_var: str, default: float) -> float:
    raw = os.getenv(env_var)
    if raw is None:
        return default

    try:
        return float(raw)
    except ValueError:
        return default


# Share of statement-like lines ending in ';' above which semicolons are kept
SEMICOLON_INFERENCE_THRESHOLD = _float_from_env('ARKFMT_SEMICOLON_THRESHOLD', 0.3)

STATEMENT_LINE_RE = re.compile(
    r'^(?:(?:export\s+)?(?:const|let|var|import|return|throw)\b|this\.\w+\s*=|[\w.]+\s*\(.*\);?$|\w+\s*[:=])'
)


def detect_complex_syntax(text: str) -> bool:
    return any(pattern.search(text) for pattern in COMPLEX_SYNTAX_PATTERNS)


def count_structure(text: str):
    """Return (comment count, brace count) outside strings and comments"""
    comments = braces = 0
    for tok in tokenize(text):
        if tok.type in COMMENTS:
            comments += 1
        elif tok.type == ST.PUNCTUATOR and tok.value in ('{', '}'):
            braces += 1
    return comments, braces


def has_formatting_issues(original: str, formatted: str) -> bool:
    """True when formatting lost a comment or changed the brace structure"""
    original_comments, original_braces = count_structure(original)
    formatted_comments, formatted_braces = count_structure(formatted)
    return formatted_comments < original_comments or formatted_braces != original_braces


def format_with_basic_rules(text: str, eol: str = '\n', indent: str = '  ') -> str:
    """
    Reindent the whole text as one block. Every non-blank line keeps its
    trimmed content; only leading whitespace and blank runs change.
    """
    lines = reindent_lines(text, 0, indent, normalize_doc=False)
    if not lines:
        return ''
    result = eol.join(lines)
    if re.search(r'(\r\n|\r|\n)$', text):
        result += eol
    return result


def infer_semicolon_style(text: str) -> bool:
    """True when statement-like lines mostly end in ';'"""
    statements: List[str] = []
    for line in split_lines(text):
        code = line.strip()
        if not code or code.startswith(('//', '/*', '*', '@')) or code.endswith(('{', '}', ',', '(')):
            continue
        if STATEMENT_LINE_RE.match(code):
            statements.append(code)
    if not statements:
        return False
    terminated = sum(1 for code in statements if code.endswith(';'))
    return terminated / len(statements) > SEMICOLON_INFERENCE_THRESHOLD
