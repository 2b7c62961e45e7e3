"""
Line reindenter for raw source slices

Recomputes the leading indentation of every line from the delimiter
structure of the lines before it. Only indentation changes: the trimmed text
of every line is kept, so the result is content-preserving and idempotent.

Rules:
- Each line that leaves delimiters open pushes one frame; lines inside it sit
  one level deeper than the line that opened it
- A line starting with closers aligns with the line that opened the frame
  those closers reach
- Brackets inside strings, template literals and comments are not counted
- Lines starting with '.' continue a call chain one level deeper than the
  statement that started it; consecutive chain lines share that level
- Statements under a case/default label sit one level below the label
- Doc comment interiors are aligned as ' * ' lines
- Lines that start inside a template literal are kept verbatim
- At most one blank line in a row; leading and trailing blanks are dropped
"""

from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple, Union
import re

OPENERS = '{[('
CLOSERS = '}])'

# Template stack entry for literal text; ints are brace depths of ${ } expressions
TEMPLATE = 'template'

CASE_LABEL_RE = re.compile(r'^(case\b|default\s*:)')
SWITCH_RE = re.compile(r'^switch\s*\(')
CHAIN_BREAKING_OPERATORS = '+-*/%=&|<>!^~?'


class LineScan(NamedTuple):
    starts_in_template: bool
    starts_in_comment: bool
    comment_is_doc: bool
    ends_in_comment: bool
    events: List[str]
    leading_closers: int
    code: str


@dataclass
class Frame:
    count: int
    indent: int


@dataclass
class SwitchBlock:
    frame: int
    in_case: bool = False


class LineScanner:
    """Tracks string, template and comment state from one line to the next"""

    def __init__(self):
        self.stack: List[Union[str, int]] = []
        self.in_comment = False
        self.comment_is_doc = False

    def scan(self, line: str) -> LineScan:
        starts_in_template = bool(self.stack)
        starts_in_comment = self.in_comment
        comment_is_doc = self.comment_is_doc
        events: List[str] = []
        leading = 0
        seen_code = False
        code_end = len(line)

        i, n = 0, len(line)
        while i < n:
            if self.in_comment:
                end = line.find('*/', i)
                if end < 0:
                    break
                self.in_comment = False
                i = end + 2
                continue

            ch = line[i]
            top = self.stack[-1] if self.stack else None

            if top == TEMPLATE:
                if ch == '\\':
                    i += 2
                elif ch == '`':
                    self.stack.pop()
                    i += 1
                elif line.startswith('${', i):
                    self.stack.append(0)
                    i += 2
                else:
                    i += 1
                continue

            if ch in ' \t':
                i += 1
                continue
            if line.startswith('//', i):
                code_end = min(code_end, i)
                break
            if line.startswith('/*', i):
                self.in_comment = True
                self.comment_is_doc = line.startswith('/**', i) and not line.startswith('/**/', i)
                if line.find('*/', i + 2) < 0:
                    code_end = min(code_end, i)
                i += 2
                continue
            if ch in ('"', "'"):
                i = skip_quoted(line, i)
                seen_code = True
                continue
            if ch == '`':
                self.stack.append(TEMPLATE)
                seen_code = True
                i += 1
                continue

            if isinstance(top, int):
                # inside ${ }: only track its own braces
                if ch == '{':
                    self.stack[-1] = top + 1
                elif ch == '}':
                    if top == 0:
                        self.stack.pop()
                    else:
                        self.stack[-1] = top - 1
            elif ch in OPENERS:
                events.append(ch)
                seen_code = True
            elif ch in CLOSERS:
                events.append(ch)
                if not seen_code:
                    leading += 1
            else:
                seen_code = True
            i += 1

        return LineScan(
            starts_in_template, starts_in_comment, comment_is_doc, self.in_comment,
            events, leading, line[:code_end].strip(),
        )


def skip_quoted(line: str, i: int) -> int:
    """Return the index after the string starting at i (or end of line)"""
    quote = line[i]
    i += 1
    while i < len(line):
        if line[i] == '\\':
            i += 2
            continue
        if line[i] == quote:
            return i + 1
        i += 1
    return len(line)


def split_lines(text: str) -> List[str]:
    return re.split(r'\r\n|\r|\n', text)


def is_chain_line(code: str) -> bool:
    return code.startswith(('.', '?.')) and not code.startswith('...') and not code[1:2].isdigit()


def chain_indent(code: str, prev_code: Optional[str], prev_chain: int) -> int:
    """Extra levels for a line that continues a call chain"""
    if not is_chain_line(code) or not prev_code:
        return 0
    if is_chain_line(prev_code):
        return prev_chain
    if prev_code.endswith(('{', '}')):
        return 0
    if prev_code.endswith('=>'):
        return 1
    if prev_code[-1] in CHAIN_BREAKING_OPERATORS:
        return 0
    return 1


def touched_frames(frames: List[Frame], closers: int) -> int:
    """How many frames from the top the leading closers reach"""
    touched = 0
    for frame in reversed(frames):
        if closers <= 0:
            break
        closers -= frame.count
        touched += 1
    return touched


def apply_events(frames: List[Frame], events: List[str], level: int) -> None:
    line_frame: Optional[Frame] = None
    for ev in events:
        if ev in OPENERS:
            if line_frame is None:
                line_frame = Frame(0, level)
                frames.append(line_frame)
            line_frame.count += 1
        elif frames:
            frames[-1].count -= 1
            if frames[-1].count == 0:
                if frames.pop() is line_frame:
                    line_frame = None


def reindent_lines(
    text: str,
    base_level: int,
    indent_unit: str,
    normalize_doc: bool = True,
) -> List[str]:
    """
    Reindent `text` so its outermost lines sit at `base_level`.

    With normalize_doc, doc comment interior lines that lack a leading '*'
    get one; otherwise such lines are kept verbatim.
    """
    scanner = LineScanner()
    frames: List[Frame] = []
    switches: List[SwitchBlock] = []
    out: List[Tuple[str, bool]] = []
    prev_code: Optional[str] = None
    prev_chain = 0
    comment_level = base_level

    for raw in split_lines(text):
        scan = scanner.scan(raw)
        trimmed = raw.strip()
        open_level = frames[-1].indent + 1 if frames else base_level

        if scan.starts_in_template:
            out.append((raw, False))
            apply_events(frames, scan.events, open_level)
            continue

        if scan.starts_in_comment:
            prefix = indent_unit * comment_level
            if trimmed.startswith('*'):
                line = f"{prefix} {trimmed}"
            elif normalize_doc and scan.comment_is_doc:
                line = f"{prefix} * {trimmed}" if trimmed else f"{prefix} *"
            else:
                line = raw.rstrip()
            out.append((line, False))
            apply_events(frames, scan.events, comment_level)
            continue

        if not trimmed:
            out.append(('', True))
            continue

        touched = touched_frames(frames, scan.leading_closers)
        chain = 0
        if touched:
            level = frames[len(frames) - touched].indent
        else:
            level = open_level
            if switches and switches[-1].frame == len(frames) - 1:
                block = switches[-1]
                if CASE_LABEL_RE.match(trimmed):
                    block.in_case = True
                elif block.in_case:
                    level += 1
            chain = chain_indent(trimmed, prev_code, prev_chain)
            level += chain

        out.append((indent_unit * level + trimmed, False))
        if scan.ends_in_comment:
            comment_level = level

        apply_events(frames, scan.events, level)
        if SWITCH_RE.match(trimmed) and scan.code.endswith('{') and frames:
            switches.append(SwitchBlock(len(frames) - 1))
        while switches and switches[-1].frame >= len(frames):
            switches.pop()

        if scan.code:
            prev_code = scan.code
            prev_chain = chain

    # Blank lines closing an unterminated comment or template at EOF
    end = len(out)
    while end and not out[end - 1][0]:
        end -= 1
    out[end:] = [('', True)] * (len(out) - end)

    return collapse_blank_lines(out)


def collapse_blank_lines(lines: List[Tuple[str, bool]]) -> List[str]:
    result: List[str] = []
    pending_blank = False
    for line, droppable in lines:
        if droppable:
            pending_blank = bool(result)
            continue
        if pending_blank:
            result.append('')
            pending_blank = False
        result.append(line)
    return result


def reindent_block(
    text: str,
    base_level: int,
    indent_unit: str,
    eol: str = '\n',
    normalize_doc: bool = True,
) -> str:
    """reindent_lines joined with `eol`"""
    return eol.join(reindent_lines(text, base_level, indent_unit, normalize_doc))
