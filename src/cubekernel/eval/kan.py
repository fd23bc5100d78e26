"""Kan operations: composition, coercion and homogeneous composition.

All three work on values only. Type families are ``Line`` values (a type
closed over one interval variable) and face constraints are pairs of an
evaluated formula and a tube, i.e. a value closed over the composition
direction.

Composition runs from ``source`` to ``target``; the public default source
is 0. For Π and path families the operations recurse structurally, for
every other family shape they return a pending neutral (``NComp`` /
``NCoe``) so checking can continue and later extensions can add rules
without changing callers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Iterable

from loguru import logger

from cubekernel.core.errors import InvalidKan
from cubekernel.core.interval import Face, FaceAnd, FaceBottom, FaceEq, FaceOr, FaceTop
from cubekernel.eval.value import (
    I0,
    I1,
    AnyDimClosure,
    Cofibration,
    ConstantLine,
    DimEnv,
    Interval,
    IVar,
    KanFace,
    Line,
    NativeClosure,
    NativeDimClosure,
    NCoe,
    NComp,
    TypeLine,
    Value,
    VLam,
    VNeutral,
    VPathLam,
    VPathType,
    VPi,
    VSmoothPathType,
    VUniverse,
)

if TYPE_CHECKING:
    from cubekernel.eval.machine import Evaluator


def cofibration(face: Face, dims: DimEnv) -> Cofibration:
    """Evaluate a face formula against an interval environment.

    An index beyond ``dims`` names a free interval variable: it stays
    generic, so an equation on it is not satisfied.
    """
    match face:
        case FaceTop():
            return Cofibration.top()
        case FaceBottom():
            return Cofibration.bottom()
        case FaceEq(index, endpoint):
            if index < len(dims):
                dim = dims.lookup(index)
            else:
                dim = IVar(len(dims) - 1 - index)
            return Cofibration.eq(dim, endpoint)
        case FaceAnd(left, right):
            return cofibration(left, dims).meet(cofibration(right, dims))
        case FaceOr(left, right):
            return cofibration(left, dims).join(cofibration(right, dims))
        case _:
            raise ValueError(f"Unknown face formula: {face!r}")


def satisfies(face: Face, dims: DimEnv) -> bool:
    """Check whether a face formula holds under an interval environment."""
    return cofibration(face, dims).is_true()


class Kan:
    """Kan operations over the values of one evaluator."""

    def __init__(self, evaluator: "Evaluator") -> None:
        self.ev = evaluator

    # =========================================================================
    # Entry points
    # =========================================================================

    def comp(
        self,
        family: Line,
        base: Value,
        faces: Iterable[KanFace],
        target: Interval,
        source: Interval = I0,
    ) -> Value:
        """Compose along ``family`` from ``source`` to ``target``.

        Args:
            family: Type family over the composition direction
            base: Value of the family at ``source``
            faces: (formula, tube) pairs; each tube is closed over the direction
            target: Endpoint or variable to compose to
            source: Where ``base`` lives, 0 unless called from ``coe``

        Returns:
            ``base`` when nothing moves, the tube at ``target`` of the first
            satisfied face, a structural composite, or a pending neutral
        """
        faces = tuple(faces)
        if not faces and target == source:
            return base

        for cof, tube in faces:
            if cof.is_true():
                return self.ev.instantiate_dim(tube, target)

        faces = tuple((cof, tube) for cof, tube in faces if not cof.is_false())
        if target == source:
            return base

        shape = self.ev.line_at(family, self.ev.fresh_probe())
        match shape:
            case VPi():
                return self._comp_pi(family, shape.name, base, faces, source, target)
            case VPathType() | VSmoothPathType():
                return self._comp_path(family, base, faces, source, target)
            case _:
                logger.debug("kan.comp.pending shape={}", shape)
                return VNeutral(
                    NComp(family, base, faces, source, target),
                    self.ev.line_at(family, target),
                )

    def coe(self, family: Line, source: Interval, target: Interval, base: Value) -> Value:
        """Transport ``base`` from ``family`` at ``source`` to ``family`` at ``target``."""
        if source == target:
            return base
        if self.is_constant(family):
            return base

        shape = self.ev.line_at(family, self.ev.fresh_probe())
        match shape:
            case VUniverse():
                return base
            case VPi():
                return self._coe_pi(family, shape.name, source, target, base)
            case VPathType() | VSmoothPathType():
                return self._comp_path(family, base, (), source, target)
            case _:
                logger.debug("kan.coe.pending shape={}", shape)
                return VNeutral(
                    NCoe(family, source, target, base),
                    self.ev.line_at(family, target),
                )

    def hcomp(self, ty: Value, base: Value, faces: Iterable[KanFace]) -> Value:
        """Homogeneous composition: ``comp`` in the constant family at 1."""
        return self.comp(ConstantLine(ty), base, faces, I1)

    def is_constant(self, family: Line) -> bool:
        match family:
            case ConstantLine():
                return True
            case TypeLine(_, constant):
                return constant
            case _:
                return False

    # =========================================================================
    # Structural cases
    # =========================================================================

    def _derived(self, fn: Callable[[Interval], Value], constant: bool) -> TypeLine:
        return TypeLine(NativeDimClosure(fn), constant=constant)

    def _pi_at(self, family: Line, dim: Interval) -> VPi:
        ty = self.ev.line_at(family, dim)
        if not isinstance(ty, VPi):
            raise InvalidKan(f"type family changes shape along the interval: {ty} is not a Π type")
        return ty

    def _path_at(self, family: Line, dim: Interval) -> VPathType | VSmoothPathType:
        ty = self.ev.line_at(family, dim)
        if not isinstance(ty, (VPathType, VSmoothPathType)):
            raise InvalidKan(f"type family changes shape along the interval: {ty} is not a path type")
        return ty

    def _comp_pi(
        self,
        family: Line,
        name: str,
        base: Value,
        faces: tuple[KanFace, ...],
        source: Interval,
        target: Interval,
    ) -> Value:
        # comp (Πx:A.B) [φ ↦ u] f = λy. comp (j. B(j, coe A y)) [φ ↦ u(j) (coe A y)] (f (coe A y))
        constant = self.is_constant(family)
        domain = self._derived(lambda j: self._pi_at(family, j).domain, constant)

        def body(y: Value) -> Value:
            def y_at(j: Interval) -> Value:
                return self.coe(domain, target, j, y)

            codomain = self._derived(
                lambda j: self.ev.instantiate(self._pi_at(family, j).closure, y_at(j)),
                constant,
            )
            tubes = tuple(
                (cof, NativeDimClosure(self._applied_tube(tube, y_at))) for cof, tube in faces
            )
            return self.comp(codomain, self.ev.apply(base, y_at(source)), tubes, target, source)

        return VLam(name, NativeClosure(body))

    def _applied_tube(
        self, tube: AnyDimClosure, y_at: Callable[[Interval], Value]
    ) -> Callable[[Interval], Value]:
        return lambda j: self.ev.apply(self.ev.instantiate_dim(tube, j), y_at(j))

    def _coe_pi(
        self,
        family: Line,
        name: str,
        source: Interval,
        target: Interval,
        base: Value,
    ) -> Value:
        # coe (Πx:A.B) f = λy. coe (j. B(j, coe A y)) (f (coe A y))
        domain = self._derived(lambda j: self._pi_at(family, j).domain, False)

        def body(y: Value) -> Value:
            def y_at(j: Interval) -> Value:
                return self.coe(domain, target, j, y)

            codomain = self._derived(
                lambda j: self.ev.instantiate(self._pi_at(family, j).closure, y_at(j)),
                False,
            )
            return self.coe(codomain, source, target, self.ev.apply(base, y_at(source)))

        return VLam(name, NativeClosure(body))

    def _comp_path(
        self,
        family: Line,
        base: Value,
        faces: tuple[KanFace, ...],
        source: Interval,
        target: Interval,
    ) -> Value:
        # comp (Path A a b) [φ ↦ u] p = ⟨k⟩ comp A [φ ↦ u(j) @ k, k=0 ↦ a, k=1 ↦ b] (p @ k)
        constant = self.is_constant(family)
        element = self._derived(lambda j: self._path_at(family, j).ty, constant)

        def body(k: Interval) -> Value:
            tubes = tuple(
                (cof, NativeDimClosure(self._path_applied_tube(tube, k))) for cof, tube in faces
            )
            tubes += (
                (Cofibration.eq(k, 0), NativeDimClosure(lambda j: self._path_at(family, j).left)),
                (Cofibration.eq(k, 1), NativeDimClosure(lambda j: self._path_at(family, j).right)),
            )
            return self.comp(element, self.ev.path_apply(base, k), tubes, target, source)

        return VPathLam("k", NativeDimClosure(body))

    def _path_applied_tube(self, tube: AnyDimClosure, k: Interval) -> Callable[[Interval], Value]:
        return lambda j: self.ev.path_apply(self.ev.instantiate_dim(tube, j), k)
