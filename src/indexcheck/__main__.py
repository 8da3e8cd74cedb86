from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .core.context import CheckContext
from .core.exceptions import IndexCheckError, ParseError
from .core.ir import Expression, SourceLocation
from .core.labels import MULTICHAR_POLICIES
from .core.options import CheckOptions
from .core.parser import parse_source


def _load_source(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise SystemExit(f"Source file not found: {path}") from exc


def _lint(path: Path, options: CheckOptions, show_info: bool) -> int:
    source = _load_source(path)
    context = CheckContext(options)
    try:
        parsed = parse_source(source, file=str(path))
    except ParseError as exc:
        print(f"{path}: {exc}", file=sys.stderr)
        return 2

    try:
        for number, item in parsed:
            if isinstance(item, Expression):
                for ref in item.references():
                    context.check_static(ref)
            else:
                context.check(item, location=SourceLocation(file=str(path), line=number))
    except IndexCheckError as exc:
        # raised only with --throw; the first mismatch ends the run
        print(str(exc), file=sys.stderr)
        return 1

    for diagnostic in context.diagnostics:
        print(diagnostic.format())
    if show_info:
        print(json.dumps(context.info(), indent=2, ensure_ascii=False))
    return 1 if context.diagnostics else 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="indexcheck command line utilities")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Also emit log records from the checker on stderr",
    )
    subparsers = parser.add_subparsers(dest="cmd")

    lint_parser = subparsers.add_parser(
        "lint", help="Check index labels in a file of einsum expressions"
    )
    lint_parser.add_argument("source", type=Path, help="File with one expression per line")
    lint_parser.add_argument(
        "--tol",
        type=int,
        default=CheckOptions.tol,
        help="Largest letter distance accepted between uses (default: 3)",
    )
    lint_parser.add_argument(
        "--no-alpha",
        action="store_true",
        help="Disable the letter comparison (directives in the file may re-enable it)",
    )
    lint_parser.add_argument(
        "--throw",
        action="store_true",
        help="Stop at the first mismatch",
    )
    lint_parser.add_argument(
        "--multichar",
        default=CheckOptions.multichar,
        choices=list(MULTICHAR_POLICIES),
        help="How multi-character labels are compared (default: exempt)",
    )
    lint_parser.add_argument(
        "--info",
        action="store_true",
        help="Print the recorded labels and sizes as JSON after checking",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.CRITICAL,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.cmd == "lint":
        if args.tol < 0:
            parser.error("--tol must be non-negative")
        options = CheckOptions(
            alpha=not args.no_alpha,
            tol=args.tol,
            throw=args.throw,
            multichar=args.multichar,
        )
        return _lint(args.source, options, args.info)

    parser.print_help()
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main(sys.argv[1:]))
