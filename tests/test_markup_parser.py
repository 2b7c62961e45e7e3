from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import pytest
from lark import Tree

from arkfmt.markup_nodes import Comment, Element, Interpolation, Text, ValueKind
from arkfmt.markup_parser import parse_expression_fragment, parse_markup
from arkfmt.tree import EXPRESSION_LABELS, leaf_text, tree_depth, tree_label
from tests.support.harness import MARKUP_GARBAGE


@dataclass(frozen=True)
class Case:
    """Expression shape case: source plus the expected tree labels."""

    name: str
    source: str
    label: str
    child_labels: Optional[Tuple[Optional[str], ...]] = None


def shape(tree: Tree) -> Tuple[Optional[str], ...]:
    return tuple(tree_label(child) for child in tree.children)


EXPRESSION_CASES: List[Case] = [
    Case("identifier", "a", "identifier"),
    Case("number", "42", "literal"),
    Case("string", "'s'", "literal"),
    Case("boolean", "true", "literal"),
    Case("null", "null", "literal"),
    Case("undefined", "undefined", "literal"),
    Case("additive", "a + b", "binary", ("identifier", None, "identifier")),
    Case("precedence", "a + b * c", "binary", ("identifier", None, "binary")),
    Case("left-assoc", "a - b - c", "binary", ("binary", None, "identifier")),
    Case("logical", "a && b || c", "logical", ("logical", None, "identifier")),
    Case("equality", "a === b", "binary", ("identifier", None, "identifier")),
    Case("conditional", "a ? b : c", "conditional", ("identifier", "identifier", "identifier")),
    Case("assignment-right-assoc", "a = b = c", "assignment", ("identifier", None, "assignment")),
    Case("unary", "!a", "unary", (None, "identifier")),
    Case("member", "a.b", "member", ("identifier", "identifier")),
    Case("keyword-member", "a.null", "member", ("identifier", "identifier")),
    Case("computed-member", "a[0]", "computed_member", ("identifier", "literal")),
    Case("call", "f(a, 1)", "call", ("identifier", "arguments")),
    Case("grouping", "(a + b)", "grouping", ("binary",)),
    Case("array", "[1, 2]", "array", ("literal", "literal")),
    Case("object", "{ a: 1, b }", "object", ("property", "property")),
    Case("computed-key", "{ [k]: v }", "object", ("property",)),
]


@pytest.mark.parametrize("case", EXPRESSION_CASES, ids=lambda case: case.name)
def test_expression_shapes(case: Case) -> None:
    tree, errors = parse_expression_fragment(case.source)
    assert errors == []
    assert tree is not None
    assert tree_label(tree) == case.label
    if case.child_labels is not None:
        assert shape(tree) == case.child_labels


@pytest.mark.parametrize("case", EXPRESSION_CASES, ids=lambda case: case.name)
def test_expression_labels_are_known(case: Case) -> None:
    tree, _ = parse_expression_fragment(case.source)
    assert {subtree.data for subtree in tree.iter_subtrees()} <= EXPRESSION_LABELS


def test_literal_keeps_raw_text() -> None:
    tree, _ = parse_expression_fragment("0x1F")
    assert leaf_text(tree) == "0x1F"
    tree, _ = parse_expression_fragment('"double"')
    assert leaf_text(tree) == '"double"'


def test_element_tree() -> None:
    doc, errors = parse_markup('<div class="c"><text>{{ msg }}</text><!--n--></div>')
    assert errors == []
    (div,) = doc.children
    assert isinstance(div, Element)
    assert div.tag_name == "div"
    assert div.attributes[0].name == "class"
    assert div.attributes[0].value == "c"
    assert div.attributes[0].quote == '"'
    assert div.attributes[0].value_kind is ValueKind.STRING

    text, comment = div.children
    assert isinstance(text, Element) and text.tag_name == "text"
    assert isinstance(text.children[0], Interpolation)
    assert isinstance(comment, Comment) and comment.value == "n"


def test_void_tags_have_no_children() -> None:
    doc, errors = parse_markup("<br><input type=text>after")
    assert errors == []
    br, input_, text = doc.children
    assert br.self_closing and br.children == []
    assert input_.self_closing
    assert input_.attributes[0].value == "text"
    assert input_.attributes[0].value_kind is ValueKind.UNQUOTED
    assert isinstance(text, Text) and text.value == "after"


def test_explicit_self_closing_tag() -> None:
    doc, errors = parse_markup("<br/>")
    assert errors == []
    (br,) = doc.children
    assert isinstance(br, Element) and br.tag_name == "br"
    assert br.self_closing
    assert br.children == []


def test_object_literal_in_expression_fragment() -> None:
    tree, errors = parse_expression_fragment("{a:1}")
    assert errors == []
    assert tree_label(tree) == "object"


def test_attribute_holding_object_literal() -> None:
    doc, errors = parse_markup('<div style="{{{a:1}}}"></div>')
    assert errors == []
    attr = doc.children[0].attributes[0]
    assert attr.value_kind is ValueKind.EXPRESSION
    assert tree_label(attr.expression) == "object"


def test_deeply_nested_expression_is_reported() -> None:
    doc, errors = parse_markup("{{ " + "(" * 80 + "a" + ")" * 80 + " }}")
    assert any("nested deeper" in error.message for error in errors)
    assert isinstance(doc.children[0], Interpolation)


def test_unary_chain_within_limit_parses() -> None:
    tree, errors = parse_expression_fragment("!" * 50 + "a")
    assert errors == []
    assert tree_label(tree) == "unary"


@pytest.mark.parametrize(
    "source",
    ["!" * 2000 + "a", " + ".join(["a"] * 2000)],
    ids=["unary-run", "binary-chain"],
)
def test_overly_deep_expression_tree_is_reported(source: str) -> None:
    _, errors = parse_markup("{{ " + source + " }}")
    assert any("nested deeper" in error.message for error in errors)


def test_deeply_nested_elements_are_reported() -> None:
    doc, errors = parse_markup("<div>" * 300)
    assert any("nested deeper" in error.message for error in errors)
    assert doc.children[0].tag_name == "div"


def test_attribute_kinds() -> None:
    doc, errors = parse_markup(
        "<input disabled value=\"{{ a + b }}\" title='{{ x }} items' data-id={{ id }} w=100px>"
    )
    assert errors == []
    disabled, value, title, data_id, width = doc.children[0].attributes
    assert disabled.value_kind is ValueKind.BOOLEAN
    assert value.value_kind is ValueKind.EXPRESSION
    assert tree_label(value.expression) == "binary"
    assert value.quote == '"'
    assert title.value_kind is ValueKind.STRING
    assert title.value == "{{ x }} items"
    assert data_id.value_kind is ValueKind.EXPRESSION
    assert leaf_text(data_id.expression) == "id"
    assert width.value_kind is ValueKind.UNQUOTED
    assert width.value == "100px"


def test_quoted_interpolation_with_errors_stays_a_string() -> None:
    doc, errors = parse_markup('<a v="{{ a + }}">')
    attr = doc.children[0].attributes[0]
    assert attr.value_kind is ValueKind.STRING
    assert attr.value == "{{ a + }}"


def test_ancestor_close_is_not_consumed() -> None:
    doc, errors = parse_markup("<div><span></div>")
    assert [e.message for e in errors] == ["Unclosed tag <span>"]
    (div,) = doc.children
    (span,) = div.children
    assert span.tag_name == "span" and span.children == []


def test_mismatched_close_is_consumed_and_reported() -> None:
    doc, errors = parse_markup("<div></span><p></p></div>")
    assert [e.message for e in errors] == ["Expected closing tag </div>"]
    (div,) = doc.children
    assert [child.tag_name for child in div.children] == ["p"]


def test_unclosed_at_eof() -> None:
    doc, errors = parse_markup("<div><p>text")
    messages = [e.message for e in errors]
    assert "Unclosed tag <p>" in messages
    assert "Unclosed tag <div>" in messages
    assert doc.children[0].children[0].children[0].value == "text"


def test_stray_close_at_top_level() -> None:
    doc, errors = parse_markup("</p>after")
    assert [e.message for e in errors] == ["Unexpected closing tag"]
    assert isinstance(doc.children[0], Text)


def test_empty_interpolation_is_an_error() -> None:
    doc, errors = parse_markup("{{ }}")
    assert [e.message for e in errors] == ["Expected expression"]
    assert leaf_text(doc.children[0].expression) == "_"


def test_error_positions() -> None:
    _, errors = parse_markup("<div>\n  </span></div>")
    (error,) = errors
    assert error.line == 2


@pytest.mark.parametrize("source", MARKUP_GARBAGE, ids=lambda source: repr(source))
def test_parse_never_raises(source: str) -> None:
    doc, errors = parse_markup(source)
    assert isinstance(errors, list)
    assert isinstance(doc.children, list)


def test_tree_depth() -> None:
    tree, _ = parse_expression_fragment("a + b * c")
    assert tree_depth(tree) == 3
    tree, _ = parse_expression_fragment("a")
    assert tree_depth(tree) == 1
