"""Tests for term syntax and interval formulas."""

import pytest

from cubekernel.core.ast import (
    App,
    Coe,
    Comp,
    FaceBranch,
    HComp,
    Lam,
    PathApp,
    PathLam,
    PathType,
    Pi,
    SmoothPathType,
    Universe,
    Var,
    arrow,
    mentions_dim,
    shift,
)
from cubekernel.core.interval import (
    DimOne,
    DimVar,
    DimZero,
    FaceAnd,
    FaceBottom,
    FaceEq,
    FaceOr,
    FaceTop,
    conjunction,
    disjunction,
    face_vars,
)


# =============================================================================
# Terms
# =============================================================================


class TestTermEquality:
    """Structural equality ignores display names."""

    def test_lambda_names_ignored(self):
        assert Lam("x", Var(0)) == Lam("y", Var(0))

    def test_pi_names_ignored(self):
        assert Pi("A", Universe(0), Var(0)) == Pi("B", Universe(0), Var(0))

    def test_different_bodies_differ(self):
        assert Lam("x", Var(0)) != Lam("x", Var(1))

    def test_terms_are_hashable(self):
        terms = {Lam("x", Var(0)), Lam("y", Var(0)), Universe(1)}
        assert len(terms) == 2

    def test_comp_defaults(self):
        comp = Comp(Universe(0), Var(0))
        assert comp.faces == ()
        assert comp.target == DimZero()
        assert comp.source == DimZero()


class TestTermStr:
    """Rendering of terms."""

    def test_universe_str(self):
        assert str(Universe(2)) == "Type2"

    def test_lam_str(self):
        assert str(Lam("x", Var(0))) == "λx. x0"

    def test_app_str(self):
        assert str(App(Var(1), Var(0))) == "(x1 x0)"

    def test_path_str(self):
        assert str(PathType(Var(2), Var(1), Var(0))) == "Path x2 x1 x0"

    def test_path_lam_str(self):
        assert str(PathLam("i", Var(0))) == "⟨i⟩ x0"

    def test_path_app_str(self):
        assert str(PathApp(Var(0), DimVar(1))) == "(x0 @ i1)"

    def test_smooth_path_str(self):
        assert str(SmoothPathType(2, Var(0), Var(1), Var(1))) == "SmoothPath^2 x0 x1 x1"

    def test_face_branch_str(self):
        assert str(FaceBranch(FaceEq(0, 1), Var(0))) == "(i0=1) ↦ x0"


class TestArrow:
    """Non-dependent function types."""

    def test_arrow_shifts_codomain(self):
        assert arrow(Var(0), Var(0)) == Pi("_", Var(0), Var(1))

    def test_arrow_closed_codomain(self):
        assert arrow(Universe(0), Universe(0)) == Pi("_", Universe(0), Universe(0))


class TestShift:
    """Shifting free term variables."""

    def test_shift_free_var(self):
        assert shift(Var(0), 2) == Var(2)

    def test_shift_respects_binder(self):
        assert shift(Lam("x", App(Var(0), Var(1))), 1) == Lam("x", App(Var(0), Var(2)))

    def test_shift_below_cutoff(self):
        assert shift(Var(0), 3, cutoff=1) == Var(0)

    def test_shift_under_path_lam(self):
        """Interval binders do not bind term variables."""
        assert shift(PathLam("i", Var(0)), 1) == PathLam("i", Var(1))

    def test_shift_kan_faces(self):
        term = HComp(Var(0), Var(1), (FaceBranch(FaceEq(0, 0), Var(2)),))
        assert shift(term, 1) == HComp(Var(1), Var(2), (FaceBranch(FaceEq(0, 0), Var(3)),))


class TestMentionsDim:
    """Detection of dimension-dependent families."""

    def test_closed_term(self):
        assert not mentions_dim(PathType(Var(0), Var(1), Var(1)))

    def test_path_app(self):
        assert mentions_dim(PathApp(Var(0), DimVar(0)))

    def test_path_app_endpoint(self):
        assert not mentions_dim(PathApp(Var(0), DimOne()))

    def test_under_path_lam(self):
        """Index 0 inside a path lambda is the lambda's own variable."""
        assert not mentions_dim(PathLam("i", PathApp(Var(0), DimVar(0))))
        assert mentions_dim(PathLam("i", PathApp(Var(0), DimVar(1))))

    def test_coe_endpoints(self):
        assert mentions_dim(Coe(Universe(0), DimVar(0), DimOne(), Var(0)))

    def test_comp_face_formula(self):
        comp = Comp(Var(0), Var(0), (FaceBranch(FaceEq(0, 1), Var(0)),), DimOne())
        assert mentions_dim(comp)
        assert not mentions_dim(comp, 1)


# =============================================================================
# Interval formulas
# =============================================================================


class TestFaces:
    """Face formula syntax."""

    def test_endpoint_checked(self):
        with pytest.raises(ValueError):
            FaceEq(0, 2)

    def test_face_vars(self):
        face = FaceOr(FaceAnd(FaceEq(0, 0), FaceEq(2, 1)), FaceEq(0, 1))
        assert face_vars(face) == {0, 2}

    def test_face_vars_constants(self):
        assert face_vars(FaceTop()) == set()
        assert face_vars(FaceBottom()) == set()

    def test_conjunction_nests_right(self):
        a, b, c = FaceEq(0, 0), FaceEq(1, 1), FaceEq(2, 0)
        assert conjunction(a, b, c) == FaceAnd(a, FaceAnd(b, c))

    def test_empty_conjunction(self):
        assert conjunction() == FaceTop()

    def test_single_disjunction(self):
        assert disjunction(FaceEq(0, 1)) == FaceEq(0, 1)

    def test_empty_disjunction(self):
        assert disjunction() == FaceBottom()

    def test_face_str(self):
        assert str(FaceAnd(FaceEq(0, 0), FaceTop())) == "((i0=0) ∧ ⊤)"
