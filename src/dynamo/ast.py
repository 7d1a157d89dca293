"""AST nodes for DYNAMO models."""

from enum import Enum
from typing import Annotated
from typing import Literal as TypingLiteral

from pydantic import BaseModel, Field

from .source import Position


class Ident(BaseModel):
    """A name, optionally bound to the declaration it refers to."""

    type: TypingLiteral["ident"] = "ident"
    pos: Position | None = None
    name: str
    decl: "VarDecl | None" = None  # set by a later binding pass, if any


# Expressions - using discriminated union for type safety
class BasicLit(BaseModel):
    """A literal keeping its source text (e.g., '.005')."""

    type: TypingLiteral["basic_lit"] = "basic_lit"
    pos: Position | None = None
    kind: TypingLiteral["float"] = "float"
    value: str


class KeyValueExpr(BaseModel):
    key: Ident
    value: "Expr"


class CompositeLit(BaseModel):
    """Ordered key/value pairs (e.g., the synthesized timespec)."""

    type: TypingLiteral["composite_lit"] = "composite_lit"
    elts: list[KeyValueExpr] = []


class TableFwdExpr(BaseModel):
    """Lookup table y-values.

    The x-range and spacing are not part of the node; they come from the
    construct that looks the table up.
    """

    type: TypingLiteral["table_fwd"] = "table_fwd"
    ys: list[BasicLit]


Expr = Annotated[
    BasicLit | CompositeLit | TableFwdExpr | Ident,
    Field(discriminator="type"),
]


class Role(str, Enum):
    STOCK = "stock"
    INITIAL = "initial"
    CONSTANT = "constant"
    FLOW = "flow"
    AUXILIARY = "auxiliary"
    TABLE = "table"


# Single-letter type tags, matched case-insensitively
TYPE_TAGS = {
    "L": Role.STOCK,
    "N": Role.INITIAL,
    "C": Role.CONSTANT,
    "R": Role.FLOW,
    "A": Role.AUXILIARY,
    "T": Role.TABLE,
}


class VarDecl(BaseModel):
    name: Ident
    role: Role | None = None  # None for synthesized declarations


class AssignStmt(BaseModel):
    type: TypingLiteral["assign"] = "assign"
    lhs: VarDecl
    rhs: Expr


# Only assignments are produced by the grammar
Stmt = AssignStmt


class ModelDecl(BaseModel):
    name: Ident
    body: list[Stmt] = []

    def assignments(self) -> list[AssignStmt]:
        return [s for s in self.body if isinstance(s, AssignStmt)]

    def lookup(self, name: str) -> AssignStmt | None:
        """Find an assignment by case-insensitive target name."""
        upper = name.upper()
        for stmt in self.assignments():
            if stmt.lhs.name.name.upper() == upper:
                return stmt
        return None


class File(BaseModel):
    """A parsed source unit."""

    name: Ident
    decls: list[ModelDecl] = []


# Rebuild models for forward references
Ident.model_rebuild()
KeyValueExpr.model_rebuild()
CompositeLit.model_rebuild()
VarDecl.model_rebuild()
AssignStmt.model_rebuild()
ModelDecl.model_rebuild()
File.model_rebuild()
