"""Tests for timespec extraction."""

import numpy as np
import pytest

from dynamo import (
    BasicLit,
    CompositeLit,
    ConstEvalError,
    FrontendConfig,
    Ident,
    Parser,
    SourceFile,
    Timespec,
    TimespecDefaults,
    TimespecError,
    const_eval,
    extract_timespec,
    parse,
    timespec_of,
)
from dynamo import ast


def names(model) -> list[str]:
    return [s.lhs.name.name for s in model.body]


class TestExtraction:
    def test_reserved_constants_become_timespec(self):
        model = parse("*\nC TIME=0;C LENGTH=10;C DT=0.5;C SAVPER=1;C POPN=100;").decls[0]
        assert names(model) == ["POPN", "timespec"]
        assert timespec_of(model) == Timespec(start=0, end=10, dt=0.5, save_step=1)

    def test_timespec_literal_layout(self):
        model = parse("*\nC TIME=0\nC LENGTH=10\nC DT=.5\nC SAVPER=1\n").decls[0]
        stmt = model.body[-1]
        assert stmt.lhs.role is None
        assert isinstance(stmt.rhs, CompositeLit)
        assert [kv.key.name for kv in stmt.rhs.elts] == ["start", "end", "dt", "save_step"]
        assert [kv.value.value for kv in stmt.rhs.elts] == ["0.0", "10.0", "0.5", "1.0"]
        assert all(kv.value.kind == "float" for kv in stmt.rhs.elts)

    def test_names_are_case_insensitive(self):
        model = parse("*\nc time=5\nc Length=20\nc dt=.25\nc SavPer=2\n").decls[0]
        assert names(model) == ["timespec"]
        assert timespec_of(model) == Timespec(start=5, end=20, dt=0.25, save_step=2)

    def test_defaults(self):
        model = parse("*\nC POPN=1\n").decls[0]
        assert timespec_of(model) == Timespec(start=0, end=0, dt=1, save_step=1)

    def test_partial_defaults(self):
        model = parse("*\nC LENGTH=40\n").decls[0]
        assert timespec_of(model) == Timespec(start=0, end=40, dt=1, save_step=1)

    def test_remaining_order_is_preserved(self):
        model = parse("*\nC A=1\nC DT=1\nL B=2\nC TIME=3\nT D=4/5\n").decls[0]
        assert names(model) == ["A", "B", "D", "timespec"]

    def test_reserved_names_removed_in_any_role(self):
        model = parse("*\nA DT=0.1\nC X=1\n").decls[0]
        assert names(model) == ["X", "timespec"]
        assert timespec_of(model).dt == 0.1

    def test_last_assignment_wins(self):
        model = parse("*\nC DT=1\nC DT=0.25\n").decls[0]
        assert timespec_of(model).dt == 0.25

    def test_user_variable_named_timespec(self):
        model = parse("*\nC TIMESPEC=1\n").decls[0]
        assert names(model) == ["TIMESPEC", "timespec"]

    def test_config_defaults(self):
        config = FrontendConfig(timespec=TimespecDefaults(dt=0.25, end=12))
        model = parse("*\nC X=1\n", config=config).decls[0]
        assert timespec_of(model) == Timespec(start=0, end=12, dt=0.25, save_step=1)

    def test_bad_constant_names_variable(self):
        parser = Parser(SourceFile("t.dyn", "*\nC DT=.\n"))
        _, nerr = parser.parse()
        assert nerr == 1
        diag = parser.errors.diagnostics[0]
        assert diag.message.startswith("extractTimespec: constEval(DT):")
        assert (diag.pos.line, diag.pos.column) == (2, 3)

    def test_other_models_untouched(self):
        parser = Parser(SourceFile("t.dyn", "*\nC DT=1\n"))
        model = parser.parse_model(Ident(name="sector"))
        assert names(model) == ["DT"]

    def test_renamed_model_keeps_clock_constants(self):
        config = FrontendConfig(model_name="sector")
        model = parse("*\nC DT=1\n", config=config).decls[0]
        assert model.name.name == "sector"
        assert names(model) == ["DT"]

    def test_second_pass_is_rejected(self):
        model = parse("*\nC DT=1\n").decls[0]
        with pytest.raises(TimespecError, match="already has a timespec"):
            extract_timespec(model)

    def test_input_model_is_not_mutated(self):
        model = ast.ModelDecl(
            name=Ident(name="main"),
            body=[
                ast.AssignStmt(
                    lhs=ast.VarDecl(name=Ident(name="DT"), role=ast.Role.CONSTANT),
                    rhs=BasicLit(value="2"),
                )
            ],
        )
        result = extract_timespec(model)
        assert names(model) == ["DT"]
        assert names(result) == ["timespec"]
        assert timespec_of(result).dt == 2.0

    def test_timespec_of_requires_timespec(self):
        model = ast.ModelDecl(name=Ident(name="main"))
        with pytest.raises(TimespecError):
            timespec_of(model)


class TestConstEval:
    def test_literal(self):
        assert const_eval(BasicLit(value="1e3")) == 1000.0
        assert const_eval(BasicLit(value=".005")) == 0.005

    def test_degenerate_number(self):
        with pytest.raises(ConstEvalError, match="invalid float literal"):
            const_eval(BasicLit(value="."))

    def test_non_constant(self):
        with pytest.raises(ConstEvalError, match="not a constant expression"):
            const_eval(Ident(name="POPN"))


class TestTimePoints:
    def test_time_points(self):
        spec = Timespec(start=0, end=10, dt=2.5)
        np.testing.assert_allclose(spec.time_points(), [0, 2.5, 5, 7.5, 10])

    def test_save_points(self):
        spec = Timespec(start=0, end=10, dt=0.5, save_step=5)
        np.testing.assert_allclose(spec.save_points(), [0, 5, 10])

    def test_end_kept_despite_rounding(self):
        spec = Timespec(start=0, end=1, dt=0.1)
        points = spec.time_points()
        assert len(points) == 11
        assert points[-1] == pytest.approx(1.0)

    def test_end_before_start(self):
        assert len(Timespec(start=5, end=0).time_points()) == 0

    def test_non_positive_step(self):
        with pytest.raises(ValueError):
            Timespec(end=10, dt=0).time_points()
