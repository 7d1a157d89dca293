"""DYNAMO front end: scan, parse and extract the timespec of a model.

Pipeline: source text -> tokens -> AST for model ``main`` -> timespec pass.

Example:
    from dynamo import parse, timespec_of

    program = parse(open("house.dyn").read(), "house.dyn")
    model = program.decls[0]
    print(timespec_of(model).time_points())
"""

__version__ = "0.1.0"

from .ast import (
    TYPE_TAGS,
    AssignStmt,
    BasicLit,
    CompositeLit,
    Expr,
    File,
    Ident,
    KeyValueExpr,
    ModelDecl,
    Role,
    Stmt,
    TableFwdExpr,
    VarDecl,
)
from .config import ConfigError, FrontendConfig, TimespecDefaults, load_config
from .diagnostics import Diagnostic, ErrorList, render_caret
from .lexer import Scanner, Token, TokenKind, TokenStream, tokenize
from .parser import ParseError, Parser, parse, parse_file
from .source import Position, SourceFile
from .timespec import (
    ConstEvalError,
    Timespec,
    TimespecError,
    const_eval,
    extract_timespec,
    timespec_of,
)

__all__ = [
    # Scan
    "Scanner",
    "Token",
    "TokenKind",
    "TokenStream",
    "tokenize",
    # Parse
    "parse",
    "parse_file",
    "Parser",
    "ParseError",
    # AST
    "File",
    "ModelDecl",
    "Stmt",
    "AssignStmt",
    "VarDecl",
    "Role",
    "TYPE_TAGS",
    "Expr",
    "Ident",
    "BasicLit",
    "CompositeLit",
    "KeyValueExpr",
    "TableFwdExpr",
    # Timespec
    "Timespec",
    "TimespecError",
    "ConstEvalError",
    "const_eval",
    "extract_timespec",
    "timespec_of",
    # Diagnostics
    "Diagnostic",
    "ErrorList",
    "Position",
    "SourceFile",
    "render_caret",
    # Config
    "FrontendConfig",
    "TimespecDefaults",
    "ConfigError",
    "load_config",
]
