from __future__ import annotations

from dataclasses import dataclass
from typing import List

import pytest

from arkfmt.reindent import (
    collapse_blank_lines,
    is_chain_line,
    reindent_block,
    reindent_lines,
    split_lines,
)


@dataclass(frozen=True)
class Case:
    """Reindent case: raw text in, expected lines out."""

    name: str
    source: str
    expected: List[str]
    base_level: int = 0
    unit: str = "  "
    normalize_doc: bool = True


CASES: List[Case] = [
    Case("flat-block", "if (a) {\nb()\n}", ["if (a) {", "  b()", "}"]),
    Case("over-indented", "      if (a) {\n            b()\n   }", ["if (a) {", "  b()", "}"]),
    Case(
        "call-chain",
        "Text('x')\n.fontSize(20)\n.fontColor(Color.Red)",
        ["Text('x')", "  .fontSize(20)", "  .fontColor(Color.Red)"],
    ),
    Case("chain-after-assignment", "let a = b\n.c()", ["let a = b", "  .c()"]),
    Case(
        "chain-after-block",
        "Column() {\nText('a')\n}\n.width(1)\n.height(2)",
        ["Column() {", "  Text('a')", "}", ".width(1)", ".height(2)"],
    ),
    Case(
        "chain-with-arrow-body",
        "Button('Add')\n.onClick(() => {\nthis.count++\n})",
        ["Button('Add')", "  .onClick(() => {", "    this.count++", "  })"],
    ),
    Case(
        "switch",
        "switch (x) {\ncase 1:\nfoo();\nbreak;\ndefault:\nbar();\n}",
        ["switch (x) {", "  case 1:", "    foo();", "    break;", "  default:", "    bar();", "}"],
    ),
    Case(
        "case-with-block",
        "switch (x) {\ncase 1: {\nfoo()\n}\ndefault:\nbar()\n}",
        ["switch (x) {", "  case 1: {", "    foo()", "  }", "  default:", "    bar()", "}"],
    ),
    Case(
        "nested-switch",
        "switch (a) {\ncase 1:\nswitch (b) {\ncase 2:\nx()\n}\nbreak\n}",
        [
            "switch (a) {", "  case 1:", "    switch (b) {", "      case 2:", "        x()",
            "    }", "    break", "}",
        ],
    ),
    Case(
        "doc-comment-normalized",
        "/**\nSummary\n* detail\n*/\nfoo()",
        ["/**", " * Summary", " * detail", " */", "foo()"],
    ),
    Case(
        "doc-comment-kept-in-basic-mode",
        "/**\nSummary\n* detail\n*/\nfoo()",
        ["/**", "Summary", " * detail", " */", "foo()"],
        normalize_doc=False,
    ),
    Case(
        "block-comment-interior-kept",
        "/*\n   free text\n*/",
        ["/*", "   free text", " */"],
    ),
    Case(
        "comment-aligned-with-code",
        "class A {\n/**\n* doc\n*/\nfoo() {}\n}",
        ["class A {", "  /**", "   * doc", "   */", "  foo() {}", "}"],
    ),
    Case("blank-lines-collapsed", "a()\n\n\n\nb()\n\n", ["a()", "", "b()"]),
    Case("leading-blank-lines-dropped", "\n\n  a()", ["a()"]),
    Case("braces-in-strings-ignored", "a('{')\nb(\"}\")\nc()", ["a('{')", 'b("}")', "c()"]),
    Case("braces-in-comments-ignored", "// {\na() /* { */\nb()", ["// {", "a() /* { */", "b()"]),
    Case(
        "template-literal-lines-verbatim",
        "const s = `line1\n   keep {\n`\nnext()",
        ["const s = `line1", "   keep {", "`", "next()"],
    ),
    Case(
        "template-expression-braces",
        "const s = `${ {a: 1}.a }`\nif (x) {\ny()\n}",
        ["const s = `${ {a: 1}.a }`", "if (x) {", "  y()", "}"],
    ),
    Case("partial-closers", "foo({\na: 1\n}, 2)", ["foo({", "  a: 1", "}, 2)"]),
    Case("closers-after-code", "a(b(\nc))\nd()", ["a(b(", "  c))", "d()"]),
    Case("multiple-openers-one-frame", "f(() => {\ng()\n})", ["f(() => {", "  g()", "})"]),
    Case("base-level-tabs", "if (a) {\nb()\n}", ["\tif (a) {", "\t\tb()", "\t}"], base_level=1, unit="\t"),
    Case("base-level-spaces", "x()\n.y()", ["    x()", "      .y()"], base_level=2),
    Case("crlf-input", "if (a) {\r\nb()\r\n}", ["if (a) {", "  b()", "}"]),
    Case("unbalanced-closers", "}\n}\na()", ["}", "}", "a()"]),
]


@pytest.mark.parametrize("case", CASES, ids=lambda case: case.name)
def test_reindent(case: Case) -> None:
    lines = reindent_lines(case.source, case.base_level, case.unit, case.normalize_doc)
    assert lines == case.expected


@pytest.mark.parametrize("case", CASES, ids=lambda case: case.name)
def test_reindent_is_idempotent(case: Case) -> None:
    once = reindent_block(case.source, case.base_level, case.unit, normalize_doc=case.normalize_doc)
    twice = reindent_block(once, case.base_level, case.unit, normalize_doc=case.normalize_doc)
    assert twice == once


@pytest.mark.parametrize("case", CASES, ids=lambda case: case.name)
def test_reindent_preserves_line_content(case: Case) -> None:
    lines = reindent_lines(case.source, case.base_level, case.unit, normalize_doc=False)
    before = [line.strip() for line in split_lines(case.source) if line.strip()]
    after = [line.strip() for line in lines if line.strip()]
    assert after == before


def test_reindent_block_joins_with_eol() -> None:
    assert reindent_block("a {\nb\n}", 0, "  ", eol="\r\n") == "a {\r\n  b\r\n}"


@pytest.mark.parametrize(
    "code, expected",
    [(".x()", True), ("?.x", True), ("...rest", False), (".5 + a", False), ("x.y()", False)],
)
def test_is_chain_line(code: str, expected: bool) -> None:
    assert is_chain_line(code) is expected


def test_split_lines_handles_mixed_terminators() -> None:
    assert split_lines("a\r\nb\rc\nd") == ["a", "b", "c", "d"]


def test_collapse_blank_lines() -> None:
    lines = [("", True), ("a", False), ("", True), ("", True), ("b", False), ("", True)]
    assert collapse_blank_lines(lines) == ["a", "", "b"]
