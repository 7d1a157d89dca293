"""Simulation time specification.

DYNAMO models set their clock through four reserved constants::

    C TIME=0      start
    C LENGTH=100  end
    C DT=.5       integration step
    C SAVPER=1    save interval

``extract_timespec`` pulls these out of a model's body and replaces them
with one ``timespec`` assignment whose value is a composite literal with
the fields ``start``, ``end``, ``dt`` and ``save_step``, in that order.
"""

import numpy as np
from pydantic import BaseModel

from . import ast
from .config import TimespecDefaults
from .source import Position

TIMESPEC = "timespec"

# Reserved name -> timespec field
RESERVED = {
    "TIME": "start",
    "LENGTH": "end",
    "SAVPER": "save_step",
    "DT": "dt",
}

FIELD_ORDER = ("start", "end", "dt", "save_step")


class ConstEvalError(Exception):
    pass


class TimespecError(Exception):
    def __init__(self, msg: str, pos: Position | None = None):
        super().__init__(msg)
        self.pos = pos


class Timespec(BaseModel):
    """Resolved simulation clock."""

    start: float = 0.0
    end: float = 0.0
    dt: float = 1.0
    save_step: float = 1.0

    def time_points(self) -> np.ndarray:
        """Instants at which the model is integrated."""
        return self._points(self.dt)

    def save_points(self) -> np.ndarray:
        """Instants at which results are saved."""
        return self._points(self.save_step)

    def _points(self, step: float) -> np.ndarray:
        if step <= 0:
            raise ValueError(f"step must be positive, got {step}")
        if self.end < self.start:
            return np.empty(0)
        # tolerate float error so the end point is kept when it is on the grid
        n = int(np.floor((self.end - self.start) / step + 1e-9)) + 1
        return self.start + step * np.arange(n)


def _synthesized(model: ast.ModelDecl) -> ast.AssignStmt | None:
    for stmt in model.body:
        if stmt.lhs.role is None and stmt.lhs.name.name == TIMESPEC:
            return stmt
    return None


def const_eval(expr: ast.Expr) -> float:
    """Evaluate a constant expression to a float."""
    if isinstance(expr, ast.BasicLit):
        try:
            return float(expr.value)
        except ValueError:
            raise ConstEvalError(f"invalid float literal '{expr.value}'") from None
    raise ConstEvalError(f"not a constant expression: {expr.type}")


def timespec_stmt(spec: Timespec) -> ast.AssignStmt:
    """Build the synthesized ``timespec`` assignment for ``spec``."""
    elts = [
        ast.KeyValueExpr(
            key=ast.Ident(name=name),
            value=ast.BasicLit(value=repr(getattr(spec, name))),
        )
        for name in FIELD_ORDER
    ]
    return ast.AssignStmt(
        lhs=ast.VarDecl(name=ast.Ident(name=TIMESPEC)),
        rhs=ast.CompositeLit(elts=elts),
    )


def extract_timespec(
    model: ast.ModelDecl, defaults: TimespecDefaults | None = None
) -> ast.ModelDecl:
    """Return ``model`` with its reserved clock constants folded into a timespec.

    Statements other than TIME, LENGTH, SAVPER and DT keep their relative
    order; the ``timespec`` assignment is appended last. Raises
    TimespecError if a reserved constant does not evaluate, or if the
    model already has a timespec.
    """
    if _synthesized(model) is not None:
        raise TimespecError(f"model '{model.name.name}' already has a timespec")

    values = (defaults or TimespecDefaults()).model_dump()
    kept: list[ast.Stmt] = []

    for stmt in model.body:
        name = stmt.lhs.name.name
        field = RESERVED.get(name.upper())
        if field is None:
            kept.append(stmt)
            continue
        try:
            values[field] = const_eval(stmt.rhs)
        except ConstEvalError as e:
            raise TimespecError(f"constEval({name}): {e}", stmt.lhs.name.pos) from e

    kept.append(timespec_stmt(Timespec(**values)))
    return model.model_copy(update={"body": kept})


def timespec_of(model: ast.ModelDecl) -> Timespec:
    """Read the synthesized timespec back out of a processed model."""
    stmt = _synthesized(model)
    if stmt is None or not isinstance(stmt.rhs, ast.CompositeLit):
        raise TimespecError(f"model '{model.name.name}' has no timespec")
    values = {kv.key.name: const_eval(kv.value) for kv in stmt.rhs.elts}
    return Timespec(**values)
