"""Scanner for DYNAMO source text.

The scanner is a small state machine. Each state handler consumes input,
may queue tokens, and returns the next state; iterating a ``Scanner``
runs handlers until a token is available.

Conventions of the language that live here rather than in the grammar:

* a program starts with ``*``; the rest of that line is a title comment
* ``//`` line comments and ``/* */`` block comments
* a newline ends the statement when the previous token can end one
  (identifier, number, kind declaration, literal, closing bracket), so
  explicit ``;`` terminators are optional at end of line
"""

import logging
from collections import deque
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import Enum

from .diagnostics import TAB_WIDTH, ErrorList, render_caret
from .source import Position, SourceFile

logger = logging.getLogger(__name__)

EOF = ""

OPERATORS = ",+-*/|&=(){}[]:"
KEYWORDS = frozenset({"kind", "import", "package", "model", "interface", "specializes"})


class TokenKind(Enum):
    EOF = "eof"
    IDENT = "ident"
    NUMBER = "num"
    SEMI = "semi"
    OPERATOR = "op"
    KIND_DECL = "kind"
    KEYWORD = "keyword"
    LITERAL = "lit"
    LBRACKET = "lbrac"
    RBRACKET = "rbrac"
    LPAREN = "lparen"
    RPAREN = "rparen"
    LSQUARE = "lsquare"
    RSQUARE = "rsquare"


BRACKETS = {
    "{": TokenKind.LBRACKET,
    "}": TokenKind.RBRACKET,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "[": TokenKind.LSQUARE,
    "]": TokenKind.RSQUARE,
}

# A newline or end of input after one of these ends the statement.
TERMINABLE = frozenset(
    {
        TokenKind.IDENT,
        TokenKind.NUMBER,
        TokenKind.KIND_DECL,
        TokenKind.LITERAL,
        TokenKind.RBRACKET,
        TokenKind.RPAREN,
        TokenKind.RSQUARE,
    }
)


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: str  # exact slice of the source at pos
    pos: Position

    def __str__(self) -> str:
        value = ";" if self.kind is TokenKind.SEMI else self.value
        return f"({self.kind.value} {value})"


class State(Enum):
    BEGIN = "begin"
    COMMENT = "comment"
    MULTI_COMMENT = "multi_comment"
    STATEMENT = "statement"
    KIND_DECL = "kind_decl"
    LITERAL = "literal"
    NUMBER = "number"
    IDENT = "ident"
    OPERATOR = "operator"
    DONE = "done"


def _describe(ch: str) -> str:
    if ch == EOF:
        return "EOF"
    return f"U+{ord(ch):04X} {ch!r}"


def is_operator(ch: str) -> bool:
    return ch != EOF and ch in OPERATORS


def is_ident_start(ch: str) -> bool:
    if ch == EOF or ch.isdecimal() or ch.isspace() or is_operator(ch):
        return False
    return ch.isprintable()


def is_ident_char(ch: str) -> bool:
    if ch == EOF or ch == ";" or ch.isspace() or is_operator(ch):
        return False
    return ch.isprintable()


class Scanner:
    """Lazily produces tokens from a source unit.

    Fatal scan errors are not raised: the error is added to ``errors``,
    logged with a caret diagnostic, and the token sequence ends with an
    EOF token.
    """

    def __init__(
        self,
        source: SourceFile,
        errors: ErrorList | None = None,
        tab_width: int = TAB_WIDTH,
    ):
        self.source = source
        self.text = source.text
        self.errors = errors if errors is not None else ErrorList(source.name)
        self.tab_width = tab_width
        self.pos = 0
        self.start = 0
        self.width = 0
        self.state = State.BEGIN
        self.semi = False
        self._pending: deque[Token] = deque()
        self._handlers = {
            State.BEGIN: self._begin,
            State.COMMENT: self._comment,
            State.MULTI_COMMENT: self._multi_comment,
            State.STATEMENT: self._statement,
            State.KIND_DECL: self._kind_decl,
            State.LITERAL: self._literal,
            State.NUMBER: self._number,
            State.IDENT: self._identifier,
            State.OPERATOR: self._operator,
        }

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        while not self._pending:
            if self.state is State.DONE:
                raise StopIteration
            self.state = self._handlers[self.state]()
        return self._pending.popleft()

    # Cursor primitives

    def _next(self) -> str:
        if self.pos >= len(self.text):
            self.width = 0
            return EOF
        ch = self.text[self.pos]
        self.pos += 1
        self.width = 1
        return ch

    def _backup(self) -> None:
        self.pos -= self.width

    def _peek(self) -> str:
        ch = self._next()
        self._backup()
        return ch

    def _ignore(self) -> None:
        self.start = self.pos

    def _accept(self, valid: str) -> bool:
        ch = self._next()
        if ch != EOF and ch in valid:
            return True
        self._backup()
        return False

    def _accept_digits(self) -> None:
        while self._next().isdecimal():
            pass
        self._backup()

    def _emit(self, kind: TokenKind) -> None:
        tok = Token(kind, self.text[self.start : self.pos], self.source.position(self.start))
        self._pending.append(tok)
        self._ignore()
        self.semi = kind in TERMINABLE

    def _error(self, message: str, offset: int) -> State:
        pos = self.source.position(offset)
        self.errors.add(message, pos)
        logger.error(render_caret(self.source, pos, message, self.tab_width))
        self._pending.append(Token(TokenKind.EOF, "", self.source.position(self.pos)))
        return State.DONE

    # States

    def _begin(self) -> State:
        ch = self._next()
        if ch == "*":
            return State.COMMENT
        return self._error(f"programs must begin with '*', not {_describe(ch)}", 0)

    def _statement(self) -> State:
        ch = self._next()
        if ch == EOF:
            if self.semi:
                self._emit(TokenKind.SEMI)
            self._emit(TokenKind.EOF)
            return State.DONE
        if ch == "/":
            nxt = self._peek()
            if nxt == "/":
                self._next()
                return State.COMMENT
            if nxt == "*":
                self._next()
                return State.MULTI_COMMENT
            self._emit(TokenKind.OPERATOR)
        elif ch == "`":
            return State.KIND_DECL
        elif ch == ";":
            self._emit(TokenKind.SEMI)
        elif ch.isspace():
            if ch == "\n" and self.semi:
                self._emit(TokenKind.SEMI)
            self._ignore()
        elif ch.isdecimal() or ch == ".":
            self._backup()
            return State.NUMBER
        elif ch == '"':
            self._backup()
            return State.LITERAL
        elif is_ident_start(ch):
            self._backup()
            return State.IDENT
        elif is_operator(ch):
            self._backup()
            return State.OPERATOR
        else:
            return self._error(f"unrecognized char: {_describe(ch)}", self.pos - 1)
        return State.STATEMENT

    def _comment(self) -> State:
        # up to, not including, the newline: it may still end a statement
        while self._next() not in ("\n", EOF):
            pass
        self._backup()
        self._ignore()
        return State.STATEMENT

    def _multi_comment(self) -> State:
        while True:
            ch = self._next()
            if ch == EOF:
                break
            if ch == "*" and self._peek() == "/":
                self._next()
                break
        self._ignore()
        return State.STATEMENT

    def _kind_decl(self) -> State:
        opening = self.pos - 1
        self._ignore()
        while self._next() not in ("`", EOF):
            pass
        if self.width == 0:
            return self._error("unterminated kind declaration", opening)
        self._backup()
        self._emit(TokenKind.KIND_DECL)
        self._next()
        self._ignore()
        return State.STATEMENT

    def _literal(self) -> State:
        delim = self._next()
        opening = self.pos - 1
        self._ignore()
        while self._next() not in (delim, EOF):
            pass
        if self.width == 0:
            return self._error("unterminated literal", opening)
        self._backup()
        self._emit(TokenKind.LITERAL)
        self._next()
        self._ignore()
        return State.STATEMENT

    def _number(self) -> State:
        self._accept_digits()
        self._accept(".")
        self._accept_digits()
        if self._accept("eE"):
            self._accept("+-")
            self._accept_digits()
        self._emit(TokenKind.NUMBER)
        return State.STATEMENT

    def _identifier(self) -> State:
        while is_ident_char(self._next()):
            pass
        self._backup()
        if self.text[self.start : self.pos] in KEYWORDS:
            self._emit(TokenKind.KEYWORD)
        else:
            self._emit(TokenKind.IDENT)
        return State.STATEMENT

    def _operator(self) -> State:
        ch = self._next()
        self._emit(BRACKETS.get(ch, TokenKind.OPERATOR))
        return State.STATEMENT


class TokenStream:
    """One token of lookahead over a token iterator.

    Once the underlying tokens are exhausted the final EOF token is
    returned for every further request.
    """

    def __init__(self, tokens: Iterable[Token]):
        self._tokens = iter(tokens)
        self._peeked: Token | None = None
        self._eof = Token(TokenKind.EOF, "", Position(offset=0, line=1, column=1))

    def peek(self) -> Token:
        if self._peeked is None:
            self._peeked = self._pull()
        return self._peeked

    def next(self) -> Token:
        tok = self.peek()
        self._peeked = None
        return tok

    def _pull(self) -> Token:
        tok = next(self._tokens, None)
        if tok is None:
            return self._eof
        if tok.kind is TokenKind.EOF:
            self._eof = tok
        return tok


def tokenize(text: str, filename: str = "<input>", errors: ErrorList | None = None) -> list[Token]:
    """Scan ``text`` to a list of tokens, ending with EOF."""
    return list(Scanner(SourceFile(filename, text), errors))
