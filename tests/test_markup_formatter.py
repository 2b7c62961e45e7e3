from __future__ import annotations

from dataclasses import dataclass
from typing import List

import pytest

from arkfmt.markup_formatter import format_expression, format_markup_document
from arkfmt.markup_parser import parse_expression_fragment, parse_markup
from arkfmt.options import FormatOptions
from tests.support.harness import format_hml


@dataclass(frozen=True)
class Case:
    """Formatter case: input and the exact expected output."""

    name: str
    source: str
    expected: str


EXPRESSION_CASES: List[Case] = [
    Case("spacing", "a+b", "a + b"),
    Case("redundant-parens-kept", "(a+b)*c", "(a + b) * c"),
    Case("ternary", "ok?'y':'n'", "ok ? 'y' : 'n'"),
    Case("member-chain", "item . name", "item.name"),
    Case("call-args", "f( a,b )", "f(a, b)"),
    Case("computed", "list[ i+1 ]", "list[i + 1]"),
    Case("object", "{a:1,b}", "{ a: 1, b }"),
    Case("empty-object", "{ }", "{}"),
    Case("array", "[ 1,2 ]", "[1, 2]"),
    Case("unary-not", "! done", "!done"),
    Case("double-negation", "- -a", "- -a"),
    Case("logical", "a&&b||c", "a && b || c"),
    Case("assignment", "a=b", "a = b"),
    Case("literal-raw", "0x1F", "0x1F"),
]


@pytest.mark.parametrize("case", EXPRESSION_CASES, ids=lambda case: case.name)
def test_format_expression(case: Case) -> None:
    tree, errors = parse_expression_fragment(case.source)
    assert errors == []
    assert format_expression(tree) == case.expected


DOCUMENT_CASES: List[Case] = [
    Case(
        "nested-elements",
        '<div class="container"><text>{{message}}</text><br><input type="text" value="{{ a+b }}"></div>',
        '<div class="container">\n'
        "    <text>{{ message }}</text>\n"
        "    <br />\n"
        '    <input type="text" value="{{ a + b }}" />\n'
        "</div>\n",
    ),
    Case(
        "text-whitespace-collapsed",
        "<div>\n  <text>  hello\n   world  </text>\n</div>",
        "<div>\n    <text>hello world</text>\n</div>\n",
    ),
    Case(
        "inline-tag-with-element-child",
        "<span><b>x</b> y</span>",
        "<span><b>x</b> y</span>\n",
    ),
    Case(
        "empty-element-inline",
        "<div></div>",
        "<div></div>\n",
    ),
    Case(
        "comment-preserved",
        "<div><!-- keep --><text>a</text></div>",
        "<div>\n    <!-- keep -->\n    <text>a</text>\n</div>\n",
    ),
    Case(
        "top-level-siblings",
        "<a>1</a>\n\n\n<b>2</b>",
        "<a>1</a>\n<b>2</b>\n",
    ),
    Case(
        "boolean-and-unquoted-attributes",
        "<input disabled  w=100px>",
        "<input disabled w=100px />\n",
    ),
    Case(
        "explicit-self-close",
        "<image src='a.png'/>",
        "<image src='a.png' />\n",
    ),
    Case(
        "bare-attribute-interpolation",
        "<text value={{v}}></text>",
        '<text value="{{ v }}"></text>\n',
    ),
    Case(
        "attribute-object-literal",
        '<div style="{{{a:1}}}"></div>',
        '<div style="{{ { a: 1 } }}"></div>\n',
    ),
    Case(
        "empty-document",
        "   \n\n",
        "",
    ),
]


@pytest.mark.parametrize("case", DOCUMENT_CASES, ids=lambda case: case.name)
def test_format_document(case: Case) -> None:
    assert format_hml(case.source) == case.expected


@pytest.mark.parametrize("case", DOCUMENT_CASES, ids=lambda case: case.name)
def test_format_is_idempotent(case: Case) -> None:
    once = format_hml(case.source)
    assert format_hml(once) == once


def test_long_attribute_list_wraps_one_per_line() -> None:
    source = '<div id="main" class="container wide" style="color: red" onclick="handle"></div>'
    doc, errors = parse_markup(source)
    assert errors == []
    options = FormatOptions.for_markup(max_line_length=40)
    assert format_markup_document(doc, options) == (
        "<div\n"
        '    id="main"\n'
        '    class="container wide"\n'
        '    style="color: red"\n'
        '    onclick="handle"></div>\n'
    )


def test_wrapped_attributes_on_block_element() -> None:
    source = '<div id="main" class="container wide"><text>a</text></div>'
    doc, _ = parse_markup(source)
    options = FormatOptions.for_markup(max_line_length=20)
    assert format_markup_document(doc, options) == (
        "<div\n"
        '    id="main"\n'
        '    class="container wide">\n'
        "    <text>a</text>\n"
        "</div>\n"
    )


def test_indent_and_eol_options() -> None:
    doc, _ = parse_markup("<div><text>a</text></div>")
    options = FormatOptions.for_markup(insert_spaces=False, eol="\r\n")
    assert format_markup_document(doc, options) == "<div>\r\n\t<text>a</text>\r\n</div>\r\n"


def test_default_options_use_four_spaces() -> None:
    doc, _ = parse_markup("<div><p>a</p></div>")
    assert format_markup_document(doc) == "<div>\n    <p>a</p>\n</div>\n"
