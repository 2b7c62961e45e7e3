from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .log import get_console, get_logger, setup_logging
from .options import FormatOptions
from .runner import FormatResult, Language, detect_language, format_source

logger = get_logger(__name__)

EOLS = {'lf': '\n', 'crlf': '\r\n'}
SEMICOLONS = {'auto': None, 'always': True, 'never': False}


def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Otherwise read the file at that path.
    """
    if arg is None or arg == "-":
        return sys.stdin.read()
    with open(arg, encoding="utf-8", newline="") as f:
        return f.read()


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="arkfmt", description="Format ETS and HML source files")
    ap.add_argument("files", nargs="*", help="Files to format (defaults to stdin)")
    ap.add_argument("--lang", choices=("auto", "ets", "hml"), default="auto",
                    help="Source language (auto uses the file extension)")
    ap.add_argument("--indent", type=int, default=None, help="Indent size (default 2, 4 for HML)")
    ap.add_argument("--tabs", action="store_true", help="Indent with tabs")
    ap.add_argument("--eol", choices=tuple(EOLS), default="lf", help="Line terminator")
    ap.add_argument("--max-line-length", type=int, default=120, help="Wrap width")
    ap.add_argument("--quote", choices=("single", "double"), default="single", help="Import quote style")
    ap.add_argument("--semicolons", choices=tuple(SEMICOLONS), default="never",
                    help="Statement terminators (auto infers from the input)")
    ap.add_argument("--trailing-comma", action="store_true", help="Trailing comma in wrapped parameter lists")
    ap.add_argument("--no-bracket-spacing", action="store_true", help="Print {a} instead of { a } in imports")
    ap.add_argument("--check", action="store_true", help="Exit 1 if any file would change")
    ap.add_argument("-w", "--write", action="store_true", help="Rewrite files in place")
    ap.add_argument("--diagnostics", action="store_true", help="Print parse errors to stderr")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return ap


def build_options(args: argparse.Namespace, language: Language) -> FormatOptions:
    base = FormatOptions.for_markup() if language is Language.HML else FormatOptions()
    changes = dict(
        insert_spaces=not args.tabs,
        eol=EOLS[args.eol],
        max_line_length=args.max_line_length,
        single_quote=args.quote == "single",
        semicolon=SEMICOLONS[args.semicolons],
        trailing_comma=args.trailing_comma,
        bracket_spacing=not args.no_bracket_spacing,
    )
    if args.indent is not None:
        changes["indent_size"] = args.indent
    return base.with_changes(**changes)


def resolve_language(args: argparse.Namespace, path: Optional[str]) -> Language:
    if args.lang != "auto":
        return Language(args.lang)
    if path is not None and path != "-":
        return detect_language(path) or Language.ETS
    return Language.ETS


def _echo(message: str) -> None:
    get_console().print(message, markup=False, emoji=False, highlight=False, soft_wrap=True)


def report_diagnostics(name: str, result: FormatResult) -> None:
    for error in result.errors:
        _echo(f"{name}:{error.line}:{error.column}: {error.message}")
    if result.used_fallback:
        _echo(f"{name}: formatted with basic rules ({result.reason})")


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)

    targets: List[Optional[str]] = list(args.files) or [None]
    would_change = False
    for path in targets:
        name = path or "<stdin>"
        try:
            source = _load_source(path)
        except OSError as exc:
            _echo(f"arkfmt: cannot read {name}: {exc}")
            return 2

        language = resolve_language(args, path)
        result = format_source(source, language, build_options(args, language))
        logger.debug("%s: language=%s changed=%s fallback=%s", name, language.value,
                     result.changed, result.used_fallback)
        if args.diagnostics:
            report_diagnostics(name, result)

        if args.check:
            if result.changed:
                would_change = True
                _echo(f"would reformat {name}")
            continue

        if args.write and path not in (None, "-"):
            if result.changed:
                try:
                    with open(path, "w", encoding="utf-8", newline="") as f:
                        f.write(result.text)
                except OSError as exc:
                    _echo(f"arkfmt: cannot write {name}: {exc}")
                    return 2
            continue

        sys.stdout.write(result.text)

    return 1 if would_change else 0


if __name__ == "__main__":
    sys.exit(main())
