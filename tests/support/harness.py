from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

BASE_DIR = Path(__file__).resolve().parent.parent.parent
SRC_DIR = (BASE_DIR / "src").resolve()

if str(BASE_DIR) not in sys.path:
    sys.path.append(str(BASE_DIR))
if str(SRC_DIR) not in sys.path:
    sys.path.append(str(SRC_DIR))

from arkfmt.options import FormatOptions
from arkfmt.runner import FormatResult, format_ets_source, format_hml_source

TruncationCase = Tuple[str, str]


@dataclass(frozen=True)
class LimitResult:
    """Holds the sampled size plus an optional truncation note."""

    size: int
    note: Optional[str]


# Canonical ETS sources: formatting each of them must be a no-op
ETS_SAMPLES: Dict[str, str] = {
    "entry-page": """\
import { router } from '@kit.ArkUI'
import hilog from '@ohos.hilog'

@Entry
@Component
struct Index {
  @State message: string = 'Hello World'
  @State count: number = 0
  private items: string[] = ['a', 'b']

  aboutToAppear(): void {
    hilog.info(0x0000, 'tag', '%{public}s', 'start')
  }

  build() {
    Column() {
      Text(this.message)
        .fontSize(50)
        .fontWeight(FontWeight.Bold)
      if (this.count > 0) {
        Text(`${this.count}`)
      } else {
        Text('none')
      }
      ForEach(this.items, (item: string) => {
        Text(item)
      })
      Button('Add')
        .onClick(() => {
          this.count++
        })
    }
    .width('100%')
  }
}
""",
    "preview-decorator": """\
@Preview({ title: 'Test' })
@Component
struct P {
  build() {
    Text('x')
  }
}
""",
    "builder-method": """\
@Component
struct Card {
  @Builder
  header(title: string) {
    Row() {
      Text(title)
    }
  }

  build() {
    Column() {
      this.header('x')
    }
  }
}
""",
    "switch-body": """\
struct A {
  foo(x: number) {
    switch (x) {
      case 1:
        bar()
        break
      default:
        baz()
    }
  }
}
""",
    "declarations": """\
import * as fs from '@ohos.file.fs'

const LIMIT = 10

export interface Item {
  name: string
  age?: number
}

export class Store<T> extends Base<T> implements A, B {
  private data: T[] = []

  add(item: T): void {
    this.data.push(item)
  }
}

@Builder
function Banner(label: string) {
  Text(label)
    .fontSize(12)
}
""",
    "comments": """\
/**
 * Counter page
 */
@Component
struct Counter {
  // current value
  @State value: number = 0 // starts at zero

  build() {
    Column() {
      // label
      Text(`${this.value}`)
    }
  }
}
""",
}

# Sources the structural parser does not trust; they take the fallback path
FALLBACK_SAMPLES: Dict[str, str] = {
    "namespace": "namespace Foo {\nexport const a = 1\n}\n",
    "getter": "class A {\nget value() {\nreturn 1\n}\n}\n",
    "unterminated": "struct A {\n@State a: number = 1\n",
    "expression-statement": "foo()\n  .bar()\n",
    "nested-enum": "struct A {\n  enum B { C }\n}\n",
}

GARBAGE_INPUTS: List[str] = [
    "",
    "\n\n\n",
    "@",
    "@@@",
    "struct",
    "struct {",
    "struct A {",
    "struct A { build(",
    "struct A { build() {",
    ")))}}}",
    "{{{(((",
    "import {",
    "import",
    "export",
    "export default",
    "class A { foo( }",
    "class A extends {",
    "function (",
    "interface {",
    "`unterminated ${ template",
    "'unterminated string",
    "/* unterminated comment",
    "/unterminated regex",
    "struct A { @State }",
    "struct A { a: = }",
    "struct A { foo(@ , ,) {} }",
    "λ ☃ \u0000",
    "\r\n\r\n}\r",
    "struct A {\n  build() {\n" + "Column() {\n" * 300 + "}\n" * 300 + "  }\n}\n",
    "struct A {\n  build() {\n" + "if (a) {\n} else " * 300 + "{\n}\n  }\n}\n",
]

MARKUP_GARBAGE: List[str] = [
    "",
    "<",
    "</",
    "<div",
    "<div attr=",
    "<div attr='x",
    "</div>",
    "<div><span></div>",
    "<div></span></div>",
    "{{",
    "{{ }}",
    "{{ a +",
    "{{ (a }}",
    "{{ [1, 2 }}",
    "{{ {a: } }}",
    "{{ a.}}",
    "<!-- open",
    "<a b={{c",
    "text {{ x }} <br> </br>",
    ">>><<<",
    "{{ " + "(" * 80 + "a" + ")" * 80 + " }}",
    "{{ " + "[" * 80 + "a" + "]" * 80 + " }}",
    "{{ " + "!" * 2000 + "a }}",
    "{{ " + "a ? " * 200 + "b" + " : c" * 200 + " }}",
    "<div>" * 300,
]


def format_ets(source: str, **changes: object) -> str:
    return format_ets_source(source, FormatOptions(**changes)).text


def format_ets_result(source: str, **changes: object) -> FormatResult:
    return format_ets_source(source, FormatOptions(**changes))


def format_hml(source: str, **changes: object) -> str:
    return format_hml_source(source, FormatOptions.for_markup(**changes)).text


def trimmed_lines(text: str) -> List[str]:
    """Non-blank lines with surrounding whitespace removed."""
    return [line.strip() for line in text.splitlines() if line.strip()]


def _limit_from_env(env_var: str, default: int, total: int, label: str) -> LimitResult:
    raw = os.getenv(env_var)
    if raw is None:
        if default >= total:
            return LimitResult(size=total, note=None)
        note = (
            f"[INFO] {label} truncated to {default}/{total} "
            f"(default; set {env_var}=full for full sweep)"
        )
        return LimitResult(size=default, note=note)

    raw = raw.strip()
    if raw.lower() in {"full", "all", "*"}:
        return LimitResult(size=total, note=None)

    try:
        value = max(0, int(raw))
    except ValueError:
        value = default

    if value >= total:
        return LimitResult(size=total, note=None)

    note = (
        f"[INFO] {label} truncated to {value}/{total} "
        f"({env_var}={raw}; use 'full' for complete set)"
    )
    return LimitResult(size=value, note=note)


def build_truncation_cases(samples: Dict[str, str], default_cuts: int = 24) -> List[TruncationCase]:
    """
    Cut every sample at evenly spaced offsets. ARKFMT_TRUNCATION_LIMIT sets
    the number of cuts per sample ('full' cuts at every character).
    """
    cases: List[TruncationCase] = []
    for name, source in sorted(samples.items()):
        limit = _limit_from_env(
            "ARKFMT_TRUNCATION_LIMIT",
            default=default_cuts,
            total=len(source),
            label=f"truncations of {name}",
        )
        if limit.size <= 0:
            continue
        step = max(1, len(source) // limit.size)
        for offset in range(0, len(source), step):
            cases.append((f"{name}@{offset}", source[:offset]))
    return cases


def is_subsequence(needles: Sequence[str], haystack: Sequence[str]) -> bool:
    it = iter(haystack)
    return all(any(item == candidate for candidate in it) for item in needles)
