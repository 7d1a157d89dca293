"""Parser for DYNAMO models.

Grammar (type tags are case-insensitive):
    model      = statement*
    statement  = TAG NAME "=" rhs
    TAG        = "L" | "N" | "C" | "R" | "A" | "T"
    rhs        = NUMBER                 (for L, N, C, R, A)
               | table                  (for T)
    table      = NUMBER ("/" NUMBER)*

A statement ends at ";", at a newline following a value, or at end of
input. Errors are collected rather than raised: a bad statement is
skipped up to its terminator and parsing continues with the next one.
A token that cannot start a statement ends the model.
"""

import logging
from pathlib import Path

from . import ast
from .config import FrontendConfig
from .diagnostics import TAB_WIDTH, Diagnostic, ErrorList
from .lexer import Scanner, Token, TokenKind, TokenStream
from .source import SourceFile
from .timespec import TimespecError, extract_timespec

logger = logging.getLogger(__name__)

# Only this model gets its clock constants folded into a timespec
MAIN = "main"


class ParseError(Exception):
    """A failed parse. The message is every diagnostic, one per line."""

    def __init__(self, errors: ErrorList, source: SourceFile | None = None):
        super().__init__(str(errors))
        self.diagnostics: list[Diagnostic] = list(errors)
        self.error_count = errors.count
        self._errors = errors
        self.source = source

    def render(self, tab_width: int = TAB_WIDTH) -> str:
        """Diagnostics with source lines and carets, when the source is known."""
        if self.source is None:
            return str(self)
        return self._errors.render(self.source, tab_width)


def starts_statement(tok: Token) -> bool:
    """True for a one-letter type tag such as C or t."""
    return (
        tok.kind is TokenKind.IDENT
        and len(tok.value) == 1
        and tok.value.upper() in ast.TYPE_TAGS
    )


def _quote(tok: Token) -> str:
    if tok.kind is TokenKind.EOF:
        return "EOF"
    if tok.kind is TokenKind.SEMI:
        return "';'"
    return f"'{tok.value}'"


class Parser:
    """Recursive descent parser producing the ``main`` model of a file."""

    def __init__(
        self,
        source: SourceFile,
        config: FrontendConfig | None = None,
        errors: ErrorList | None = None,
    ):
        self.source = source
        self.config = config or FrontendConfig()
        self.errors = errors if errors is not None else ErrorList(source.name)
        self.tokens = TokenStream(Scanner(source, self.errors, self.config.tab_width))
        self.last: Token | None = None

    def peek(self) -> Token:
        return self.tokens.peek()

    def at(self, kind: TokenKind, value: str | None = None) -> bool:
        tok = self.peek()
        return tok.kind is kind and (value is None or tok.value == value)

    def advance(self) -> Token:
        self.last = self.tokens.next()
        return self.last

    def error(self, tok: Token, msg: str) -> None:
        self.errors.add(msg, tok.pos)

    def parse(self) -> tuple[ast.File, int]:
        """Parse the whole source. Returns the file and the error count.

        A non-zero count means the file must not be used.
        """
        name = ast.Ident(name=self.config.model_name)
        result = ast.File(name=name)
        result.decls.append(self.parse_model(name))
        return result, self.errors.count

    def parse_model(self, name: ast.Ident) -> ast.ModelDecl:
        model = ast.ModelDecl(name=name)

        while not self.at(TokenKind.EOF):
            tok = self.peek()
            if tok.kind is TokenKind.SEMI:
                self.advance()
                continue
            if starts_statement(tok):
                stmt = self.parse_statement()
                if stmt is not None:
                    model.body.append(stmt)
                continue
            if tok.kind is TokenKind.IDENT and len(tok.value) == 1:
                self.error(tok, f"unknown type: {tok.value}")
            else:
                self.error(tok, f"expected 1 char ident, not {_quote(tok)}")
            break

        if name.name == MAIN and not self.errors:
            try:
                model = extract_timespec(model, self.config.timespec)
            except TimespecError as e:
                self.errors.add(f"extractTimespec: {e}", e.pos)

        return model

    def parse_statement(self) -> ast.AssignStmt | None:
        """Parse one statement, or skip it and return None on error."""
        tag = self.advance()
        role = ast.TYPE_TAGS[tag.value.upper()]

        decl = self.parse_var_decl(role)
        if decl is None or not self.expect_equal():
            self.discard_statement()
            return None

        if role is ast.Role.TABLE:
            rhs = self.parse_table()
        else:
            rhs = self.parse_number()
        if rhs is None:
            self.discard_statement()
            return None

        return ast.AssignStmt(lhs=decl, rhs=rhs)

    def parse_var_decl(self, role: ast.Role) -> ast.VarDecl | None:
        tok = self.peek()
        if tok.kind is not TokenKind.IDENT:
            self.error(tok, f"expected identifier, not {_quote(tok)}")
            return None
        self.advance()
        return ast.VarDecl(name=ast.Ident(pos=tok.pos, name=tok.value), role=role)

    def expect_equal(self) -> bool:
        if self.at(TokenKind.OPERATOR, "="):
            self.advance()
            return True
        self.error(self.peek(), f"expected =, not {_quote(self.peek())}")
        return False

    def end_statement(self) -> bool:
        """Consume the terminator, if any. False if something else follows."""
        if self.at(TokenKind.EOF):
            return True
        if self.at(TokenKind.SEMI):
            self.advance()
            return True
        return False

    def parse_number(self) -> ast.BasicLit | None:
        tok = self.peek()
        if tok.kind is not TokenKind.NUMBER:
            self.error(tok, f"expected number, not {_quote(tok)}")
            return None
        self.advance()
        if not self.end_statement():
            self.error(self.peek(), f"expected end of statement, not {_quote(self.peek())}")
            return None
        return ast.BasicLit(pos=tok.pos, value=tok.value)

    def parse_table(self) -> ast.TableFwdExpr | None:
        ys: list[ast.BasicLit] = []

        while True:
            tok = self.peek()
            if tok.kind is not TokenKind.NUMBER:
                self.error(tok, f"expected float literal in table def, not {_quote(tok)}")
                return None
            self.advance()
            ys.append(ast.BasicLit(pos=tok.pos, value=tok.value))

            if self.at(TokenKind.OPERATOR, "/"):
                self.advance()
                continue
            if self.end_statement():
                break
            self.error(self.peek(), f"expected '/' in table def, not {_quote(self.peek())}")
            return None

        return ast.TableFwdExpr(ys=ys)

    def discard_statement(self) -> None:
        """Skip to just past the next terminator.

        Stops early at end of input, or before a type tag that starts a
        line after the last consumed token, so one bad line cannot
        swallow the statement below it. Other tokens on later lines are
        continuation of the bad statement and are discarded.
        """
        while not self.at(TokenKind.EOF):
            tok = self.peek()
            if (
                self.last is not None
                and tok.pos.line > self.last.pos.line
                and starts_statement(tok)
            ):
                return
            self.advance()
            if tok.kind is TokenKind.SEMI:
                return
            logger.debug("discard: %s", tok)


def parse(source: str, path: str = "<input>", config: FrontendConfig | None = None) -> ast.File:
    """Parse DYNAMO source into an AST. Raises ParseError on any error."""
    src = SourceFile(path, source)
    parser = Parser(src, config)
    result, nerr = parser.parse()
    if nerr:
        raise ParseError(parser.errors, src)
    return result


def parse_file(filepath: str | Path, config: FrontendConfig | None = None) -> ast.File:
    """Parse a DYNAMO source file."""
    filepath = Path(filepath)
    source = filepath.read_text()
    return parse(source, str(filepath), config)
