"""Command-line driver: parse one OGNL expression and print its AST."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .fragment import to_ognl
from .parser_rd import MAX_PARSE_ITERATIONS, parse_top_level
from .repl import format_tokens, repl


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="ognl-ast",
        description="Parse an OGNL expression and print its AST",
    )
    ap.add_argument("expression", nargs="?", help="Expression to parse (defaults to stdin)")
    ap.add_argument("-f", "--file", help="Read the expression from a file")
    ap.add_argument("--tokens", action="store_true", help="Print the token stream instead of the tree")
    ap.add_argument("--fragment", action="store_true", help="Print the expression rebuilt from the AST")
    ap.add_argument("--repl", action="store_true", help="Start the interactive REPL")
    ap.add_argument(
        "--max-iterations",
        type=int,
        default=MAX_PARSE_ITERATIONS,
        help=f"Navigation step cap (default {MAX_PARSE_ITERATIONS})",
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Log parser diagnostics")
    return ap


def _read_source(args: argparse.Namespace) -> str:
    if args.file:
        return Path(args.file).read_text(encoding="utf-8")

    if args.expression is not None and args.expression != "-":
        return args.expression

    data = sys.stdin.read()
    if not data:
        raise SystemExit("No input provided on stdin")
    return data


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.repl:
        repl(max_iterations=args.max_iterations)
        return 0

    source = _read_source(args).strip()

    if args.tokens:
        print(format_tokens(source))
        return 0

    ast, errors = parse_top_level(source, max_iterations=args.max_iterations)
    if errors:
        for diag in errors:
            sys.stderr.write(str(diag) + "\n")
        return 1

    if args.fragment:
        print(to_ognl(ast))
    else:
        print(ast.pretty(), end="")
    return 0


if __name__ == "__main__":
    sys.exit(main())
