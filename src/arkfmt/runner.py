"""
Entry points tying the pipelines together

format_ets_source applies the three-layer safety net: a complexity check
before parsing, the parser's error and dropped-token lists, and the
post-format invariant check. Any of them routes the text to the
content-preserving fallback formatter instead.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from .ets_formatter import format_document
from .ets_parser import parse_ets
from .fallback import (
    detect_complex_syntax,
    format_with_basic_rules,
    has_formatting_issues,
    infer_semicolon_style,
)
from .log import get_logger
from .markup_formatter import format_markup_document
from .markup_parser import parse_markup
from .options import FormatOptions
from .token_types import ParseError

logger = get_logger(__name__)


class Language(Enum):
    ETS = 'ets'
    HML = 'hml'


EXTENSIONS = {
    '.ets': Language.ETS,
    '.ts': Language.ETS,
    '.hml': Language.HML,
}


@dataclass
class FormatResult:
    text: str
    changed: bool
    used_fallback: bool = False
    reason: Optional[str] = None
    errors: List[ParseError] = field(default_factory=list)


def detect_language(path: Union[str, Path]) -> Optional[Language]:
    return EXTENSIONS.get(Path(path).suffix.lower())


def format_ets_source(text: str, options: Optional[FormatOptions] = None) -> FormatResult:
    options = options or FormatOptions()
    if options.semicolon is None:
        options = options.with_changes(semicolon=infer_semicolon_style(text))

    errors: List[ParseError] = []
    reason = None
    formatted = text
    if detect_complex_syntax(text):
        reason = 'complex-syntax'
    else:
        doc, errors = parse_ets(text)
        if errors:
            reason = 'parse-errors'
        elif doc.dropped:
            reason = 'dropped-tokens'
        else:
            formatted = format_document(doc, options)
            if has_formatting_issues(text, formatted):
                reason = 'formatting-issues'

    if reason is not None:
        logger.debug("Structural formatting skipped (%s), using basic rules", reason)
        formatted = format_with_basic_rules(text, options.eol, options.indent_unit)

    return FormatResult(formatted, formatted != text, reason is not None, reason, errors)


def format_hml_source(text: str, options: Optional[FormatOptions] = None) -> FormatResult:
    """Markup with parse errors is returned unchanged"""
    options = options or FormatOptions.for_markup()
    document, errors = parse_markup(text)
    if errors:
        logger.debug("Markup has %d parse errors, leaving it unchanged", len(errors))
        return FormatResult(text, False, False, 'parse-errors', errors)

    formatted = format_markup_document(document, options)
    return FormatResult(formatted, formatted != text)


def format_source(text: str, language: Language, options: Optional[FormatOptions] = None) -> FormatResult:
    if language is Language.HML:
        return format_hml_source(text, options)
    return format_ets_source(text, options)
