"""Check DYNAMO source files.

Usage:
    dynamo-check house.dyn
    dynamo-check house.dyn --tokens
    dynamo-check house.dyn --json --config dynamo.yaml
"""

import argparse
import logging
import sys
from pathlib import Path

from . import ast
from .config import ConfigError, FrontendConfig, load_config
from .diagnostics import ErrorList
from .lexer import tokenize
from .parser import ParseError, parse
from .source import SourceFile


def format_expr(expr: ast.Expr) -> str:
    if isinstance(expr, ast.BasicLit):
        return expr.value
    if isinstance(expr, ast.TableFwdExpr):
        return "/".join(y.value for y in expr.ys)
    if isinstance(expr, ast.CompositeLit):
        inner = ", ".join(f"{kv.key.name}: {format_expr(kv.value)}" for kv in expr.elts)
        return "{" + inner + "}"
    return expr.name


def print_tokens(text: str, filename: str, config: FrontendConfig) -> int:
    errors = ErrorList(filename)
    for tok in tokenize(text, filename, errors):
        print(tok)
    if errors:
        print(errors.render(SourceFile(filename, text), config.tab_width), file=sys.stderr)
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Parse a DYNAMO model and report errors")
    parser.add_argument("file", type=Path, help="DYNAMO source file")
    parser.add_argument("--config", type=Path, default=None, help="YAML config file")
    parser.add_argument("--tokens", action="store_true", help="Print the token stream")
    parser.add_argument("--json", action="store_true", help="Print the AST as JSON")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    # diagnostics are printed below; log records only show in verbose mode
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.CRITICAL,
        format="%(name)s: %(message)s",
    )

    try:
        config = load_config(args.config) if args.config else FrontendConfig()
    except ConfigError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    try:
        text = args.file.read_text()
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2

    if args.tokens:
        return print_tokens(text, str(args.file), config)

    try:
        result = parse(text, str(args.file), config)
    except ParseError as e:
        print(e.render(config.tab_width), file=sys.stderr)
        print(f"{e.error_count} parse errors", file=sys.stderr)
        return 1

    if args.json:
        print(result.model_dump_json(indent=2))
        return 0

    for model in result.decls:
        print(f"model {model.name.name}:")
        for stmt in model.body:
            role = stmt.lhs.role.value if stmt.lhs.role else "-"
            print(f"  {role:9s} {stmt.lhs.name.name} = {format_expr(stmt.rhs)}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
