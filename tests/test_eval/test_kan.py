"""Tests for Kan operations."""

import pytest

from cubekernel.core.ast import Coe, Comp, FaceBranch, HComp, Lam, Var, arrow
from cubekernel.core.errors import InvalidKan
from cubekernel.core.interval import (
    DimOne,
    DimZero,
    FaceAnd,
    FaceBottom,
    FaceEq,
    FaceOr,
    FaceTop,
)
from cubekernel.eval.kan import cofibration, satisfies
from cubekernel.eval.quote import Quoter
from cubekernel.eval.value import (
    I0,
    I1,
    Cofibration,
    ConstantLine,
    DimEnv,
    Environment,
    IVar,
    NativeDimClosure,
    NCoe,
    NComp,
    TypeLine,
    VLam,
    VNeutral,
    VPathLam,
    VPathType,
    VUniverse,
    generic_var,
)


@pytest.fixture
def scope():
    """A : Type0, a0 : A, a1 : A as values, and their environment."""
    a_type = generic_var(0, VUniverse(0))
    a0 = generic_var(1, a_type)
    a1 = generic_var(2, a_type)
    return a_type, a0, a1, Environment.of(a_type, a0, a1)


def const_tube(value):
    return NativeDimClosure(lambda j: value)


def line(fn):
    """A family the kernel cannot see is constant."""
    return TypeLine(NativeDimClosure(fn), constant=False)


# =============================================================================
# Face satisfaction
# =============================================================================


class TestSatisfies:
    """Face formulas under interval environments."""

    def test_top_and_bottom(self):
        assert satisfies(FaceTop(), DimEnv.empty())
        assert not satisfies(FaceBottom(), DimEnv.empty())

    def test_endpoint(self):
        assert satisfies(FaceEq(0, 0), DimEnv.of(I0))
        assert not satisfies(FaceEq(0, 1), DimEnv.of(I0))

    def test_generic_variable(self):
        assert not satisfies(FaceEq(0, 0), DimEnv.of(IVar(0)))

    def test_free_variable(self):
        """Indices beyond the environment are free and never satisfied."""
        assert not satisfies(FaceEq(3, 0), DimEnv.of(I0))

    def test_conjunction(self):
        dims = DimEnv.of(I1, I0)
        assert satisfies(FaceAnd(FaceEq(0, 0), FaceEq(1, 1)), dims)
        assert not satisfies(FaceAnd(FaceEq(0, 0), FaceEq(1, 0)), dims)

    def test_disjunction(self):
        dims = DimEnv.of(IVar(0), I1)
        assert satisfies(FaceOr(FaceEq(1, 0), FaceEq(0, 1)), dims)

    def test_cofibration_of_variable(self):
        cof = cofibration(FaceEq(0, 1), DimEnv.of(IVar(4)))
        assert cof == Cofibration.eq(IVar(4), 1)


# =============================================================================
# Composition
# =============================================================================


class TestComp:
    """comp and its reduction rules."""

    def test_identity(self, evaluator, scope):
        a_type, a0, _, _ = scope
        assert evaluator.kan.comp(ConstantLine(a_type), a0, (), I0) is a0

    def test_satisfied_face_wins(self, evaluator):
        """comp A a0 [(i=0) ↦ a1] at 0, with i = 0, is a1."""
        a_type = generic_var(0, VUniverse(0))
        a0, a1 = generic_var(1, a_type), generic_var(2, a_type)
        env = Environment.of(a_type, a0, a1)
        term = Comp(Var(2), Var(1), (FaceBranch(FaceEq(0, 0), Var(0)),), DimZero())
        assert evaluator.evaluate(term, env, DimEnv.of(I0)) is a1

    def test_satisfied_face_at_target(self, evaluator, scope):
        a_type, a0, a1, _ = scope
        tube = NativeDimClosure(lambda j: a1 if j == I1 else a0)
        faces = ((Cofibration.top(), tube),)
        assert evaluator.kan.comp(ConstantLine(a_type), a0, faces, I1) is a1

    def test_false_faces_dropped(self, evaluator, scope):
        a_type, a0, a1, _ = scope
        faces = ((Cofibration.bottom(), const_tube(a1)),)
        assert evaluator.kan.comp(ConstantLine(a_type), a0, faces, I0) is a0

    def test_pending_on_neutral_type(self, evaluator, scope):
        a_type, a0, _, _ = scope
        result = evaluator.kan.comp(ConstantLine(a_type), a0, (), I1)
        assert isinstance(result, VNeutral)
        assert isinstance(result.neutral, NComp)
        assert result.ty is a_type

    def test_pending_keeps_open_faces(self, evaluator, scope):
        a_type, a0, _, _ = scope
        faces = (
            (Cofibration.eq(IVar(0), 0), const_tube(a0)),
            (Cofibration.bottom(), const_tube(a0)),
        )
        result = evaluator.kan.comp(ConstantLine(a_type), a0, faces, I1)
        assert len(result.neutral.faces) == 1

    def test_pi_composes_pointwise(self, evaluator, scope):
        a_type, a0, _, env = scope
        pi = evaluator.evaluate(arrow(Var(2), Var(2)), env)
        f = generic_var(3, pi)
        result = evaluator.kan.comp(ConstantLine(pi), f, (), I1)
        assert isinstance(result, VLam)
        applied = evaluator.apply(result, a0)
        assert isinstance(applied.neutral, NComp)
        assert applied.ty is a_type

    def test_path_composes_along_endpoints(self, evaluator, scope):
        a_type, a0, a1, _ = scope
        path_ty = VPathType(a_type, a0, a1)
        p = generic_var(3, path_ty)
        result = evaluator.kan.comp(ConstantLine(path_ty), p, (), I1)
        assert isinstance(result, VPathLam)
        assert evaluator.path_apply(result, I0) is a0
        assert evaluator.path_apply(result, I1) is a1

    def test_shape_change_rejected(self, evaluator, scope):
        a_type, a0, _, env = scope
        pi = evaluator.evaluate(arrow(Var(2), Var(2)), env)
        family = line(lambda j: pi if isinstance(j, IVar) else VUniverse(0))
        result = evaluator.kan.comp(family, generic_var(3, pi), (), I1)
        with pytest.raises(InvalidKan):
            evaluator.apply(result, a0)


class TestHComp:
    """hcomp is comp in a constant family."""

    def test_matches_comp(self, evaluator, scope):
        a_type, a0, a1, _ = scope
        faces = ((Cofibration.eq(IVar(0), 1), const_tube(a0)),)
        quoter = Quoter(evaluator)
        hcomp = evaluator.kan.hcomp(a_type, a0, faces)
        comp = evaluator.kan.comp(ConstantLine(a_type), a0, faces, I1)
        assert quoter.quote(hcomp, 3, 1) == quoter.quote(comp, 3, 1)

    def test_terms_match(self, evaluator, scope):
        _, _, _, env = scope
        dims = DimEnv.of(IVar(0))
        faces = (FaceBranch(FaceEq(0, 1), Var(1)),)
        quoter = Quoter(evaluator)
        hcomp = evaluator.evaluate(HComp(Var(2), Var(1), faces), env, dims)
        comp = evaluator.evaluate(Comp(Var(2), Var(1), faces, DimOne()), env, dims)
        assert quoter.quote(hcomp, 3, 1) == quoter.quote(comp, 3, 1)


# =============================================================================
# Coercion
# =============================================================================


class TestCoe:
    """coe and its reduction rules."""

    def test_reflexivity(self, evaluator, scope):
        _, a0, _, _ = scope
        family = line(lambda j: generic_var(5))
        assert evaluator.kan.coe(family, IVar(0), IVar(0), a0) is a0

    def test_constant_family(self, evaluator, scope):
        _, a0, _, env = scope
        term = Coe(Var(2), DimZero(), DimOne(), Var(1))
        assert evaluator.evaluate(term, env) is a0

    def test_universe_family(self, evaluator, scope):
        a_type, _, _, _ = scope
        family = line(lambda j: VUniverse(0))
        assert evaluator.kan.coe(family, I0, I1, a_type) is a_type

    def test_pending_on_neutral_family(self, evaluator, scope):
        _, a0, _, _ = scope
        family = line(lambda j: generic_var(5))
        result = evaluator.kan.coe(family, I0, I1, a0)
        assert isinstance(result.neutral, NCoe)

    def test_pi_family(self, evaluator, scope):
        _, a0, _, env = scope
        pi = evaluator.evaluate(arrow(Var(2), Var(2)), env)
        identity = evaluator.evaluate(Lam("x", Var(0)))
        result = evaluator.kan.coe(line(lambda j: pi), I0, I1, identity)
        assert isinstance(result, VLam)
        assert isinstance(evaluator.apply(result, a0).neutral, NCoe)

    def test_path_family(self, evaluator, scope):
        a_type, a0, a1, _ = scope
        path_ty = VPathType(a_type, a0, a1)
        p = generic_var(3, path_ty)
        result = evaluator.kan.coe(line(lambda j: path_ty), I0, I1, p)
        assert isinstance(result, VPathLam)
        assert evaluator.path_apply(result, I0) is a0
        assert evaluator.path_apply(result, I1) is a1
