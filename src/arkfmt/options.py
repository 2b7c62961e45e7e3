"""Formatting options shared by both pipelines."""
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional


@dataclass(frozen=True)
class FormatOptions:
    """
    indent_size/insert_spaces: indent unit (spaces or a tab)
    eol: line terminator written between lines
    max_line_length: wrap parameter lists and markup attributes past this
    single_quote: quote style for rebuilt import paths
    semicolon: terminate rebuilt imports; None infers it from the input
    trailing_comma: add a trailing comma to wrapped parameter lists
    bracket_spacing: ``{ a }`` rather than ``{a}`` in rebuilt imports
    """

    indent_size: int = 2
    insert_spaces: bool = True
    eol: str = "\n"
    max_line_length: int = 120
    single_quote: bool = True
    semicolon: Optional[bool] = False
    trailing_comma: bool = False
    bracket_spacing: bool = True

    @property
    def indent_unit(self) -> str:
        return " " * self.indent_size if self.insert_spaces else "\t"

    @property
    def quote(self) -> str:
        return "'" if self.single_quote else '"'

    def indent(self, level: int) -> str:
        return self.indent_unit * max(level, 0)

    def with_changes(self, **changes) -> FormatOptions:
        return replace(self, **changes)

    @classmethod
    def for_markup(cls, **changes) -> FormatOptions:
        """Markup defaults: four-space indent"""
        return replace(cls(indent_size=4), **changes)
