"""Call-by-need evaluator for the cubical core language."""

from __future__ import annotations

import itertools

from loguru import logger

from cubekernel.config import KernelSettings, get_settings
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
    Term,
    Universe,
    Var,
    mentions_dim,
)
from cubekernel.core.errors import InvalidElimination, NonTermination
from cubekernel.core.interval import Dim, DimOne, DimVar, DimZero
from cubekernel.eval.kan import Kan, cofibration
from cubekernel.eval.value import (
    I0,
    I1,
    PROBE_LEVEL_BASE,
    AnyClosure,
    AnyDimClosure,
    Closure,
    ConstantLine,
    DimClosure,
    DimEnv,
    Environment,
    Interval,
    IVar,
    KanFace,
    Lazy,
    Line,
    NApp,
    NativeClosure,
    NativeDimClosure,
    NPathApp,
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


class Evaluator:
    """Call-by-need evaluator.

    Function, path and tube bodies are kept in closures; arguments of
    β-redexes are passed as memoizing thunks. Comp/Coe/HComp nodes are
    evaluated piecewise and handed to ``Kan``.

    An evaluator guards its own recursion with a depth limit and a step
    budget (fuel). Use one evaluator per derivation.
    """

    def __init__(self, settings: KernelSettings | None = None) -> None:
        self.settings = settings if settings is not None else get_settings()
        self.kan = Kan(self)
        self._depth = 0
        self._steps = 0
        self._probes = itertools.count(0)

    @property
    def steps(self) -> int:
        """Evaluation steps spent so far."""
        return self._steps

    def evaluate(
        self,
        term: Term,
        env: Environment | None = None,
        dims: DimEnv | None = None,
    ) -> Value:
        """Evaluate term to a value.

        Raises:
            UnboundVariable: If a term index is outside ``env``
            UnboundDimension: If an interval index is outside ``dims``
            NonTermination: If the depth or fuel limit is exceeded
        """
        if env is None:
            env = Environment.empty()
        if dims is None:
            dims = DimEnv.empty()

        self._depth += 1
        try:
            if self._depth > self.settings.max_depth:
                logger.debug("eval.depth_limit term={}", term)
                raise NonTermination(f"evaluation depth exceeded {self.settings.max_depth}")
            return self._step(term, env, dims)
        finally:
            self._depth -= 1

    def _step(self, term: Term, env: Environment, dims: DimEnv) -> Value:
        # Forced thunks enter here: they share the depth of the body forcing them
        self._steps += 1
        if self._steps > self.settings.fuel:
            raise NonTermination(f"evaluation fuel of {self.settings.fuel} steps exhausted")
        return self._eval(term, env, dims)

    def _eval(self, term: Term, env: Environment, dims: DimEnv) -> Value:
        match term:
            case Universe(level):
                return VUniverse(level)

            case Var(index):
                return env.lookup(index)

            case Pi(name, domain, codomain):
                return VPi(name, self.evaluate(domain, env, dims), Closure(env, dims, codomain))

            case Lam(name, body):
                return VLam(name, Closure(env, dims, body))

            case App(func, arg):
                func_val = self.evaluate(func, env, dims)
                if isinstance(func_val, VLam):
                    # β-redex: the argument is only computed if the body needs it
                    thunk = Lazy(lambda: self._step(arg, env, dims))
                    return self.instantiate(func_val.closure, thunk)
                return self.apply(func_val, self.evaluate(arg, env, dims))

            case PathType(ty, left, right):
                return VPathType(
                    self.evaluate(ty, env, dims),
                    self.evaluate(left, env, dims),
                    self.evaluate(right, env, dims),
                )

            case SmoothPathType(order, ty, left, right):
                return VSmoothPathType(
                    order,
                    self.evaluate(ty, env, dims),
                    self.evaluate(left, env, dims),
                    self.evaluate(right, env, dims),
                )

            case PathLam(name, body):
                return VPathLam(name, DimClosure(env, dims, body))

            case PathApp(path, dim):
                return self.path_apply(self.evaluate(path, env, dims), self.eval_dim(dim, dims))

            case Comp(family, base, faces, target, source):
                return self.kan.comp(
                    self.eval_line(family, env, dims),
                    self.evaluate(base, env, dims),
                    self.eval_faces(faces, env, dims),
                    self.eval_dim(target, dims),
                    source=self.eval_dim(source, dims),
                )

            case Coe(family, source, target, base):
                return self.kan.coe(
                    self.eval_line(family, env, dims),
                    self.eval_dim(source, dims),
                    self.eval_dim(target, dims),
                    self.evaluate(base, env, dims),
                )

            case HComp(ty, base, faces):
                return self.kan.hcomp(
                    self.evaluate(ty, env, dims),
                    self.evaluate(base, env, dims),
                    self.eval_faces(faces, env, dims),
                )

            case _:
                raise ValueError(f"Unknown term: {term!r}")

    # =========================================================================
    # Interval pieces
    # =========================================================================

    def eval_dim(self, dim: Dim, dims: DimEnv) -> Interval:
        """Resolve a dimension expression in an interval environment."""
        match dim:
            case DimZero():
                return I0
            case DimOne():
                return I1
            case DimVar(index):
                return dims.lookup(index)
            case _:
                raise ValueError(f"Unknown dimension: {dim!r}")

    def eval_line(self, family: Term, env: Environment, dims: DimEnv) -> TypeLine:
        """Close a type family over its direction variable."""
        return TypeLine(DimClosure(env, dims, family), constant=not mentions_dim(family, 0))

    def eval_faces(
        self, faces: tuple[FaceBranch, ...], env: Environment, dims: DimEnv
    ) -> tuple[KanFace, ...]:
        """Evaluate each face's formula and close its payload over the direction."""
        return tuple(
            (cofibration(face.formula, dims), DimClosure(env, dims, face.body)) for face in faces
        )

    def fresh_probe(self) -> IVar:
        """Interval variable distinct from every bound or free one."""
        return IVar(PROBE_LEVEL_BASE - next(self._probes))

    # =========================================================================
    # Eliminators and closure instantiation
    # =========================================================================

    def instantiate(self, closure: AnyClosure, arg: Value | Lazy) -> Value:
        """Run a term binder body with ``arg`` bound at index 0."""
        match closure:
            case Closure(env, dims, body):
                return self.evaluate(body, env.extend(arg), dims)
            case NativeClosure(fn):
                return fn(arg.force() if isinstance(arg, Lazy) else arg)
            case _:
                raise ValueError(f"Unknown closure: {closure!r}")

    def instantiate_dim(self, closure: AnyDimClosure, dim: Interval) -> Value:
        """Run an interval binder body with ``dim`` bound at index 0."""
        match closure:
            case DimClosure(env, dims, body):
                return self.evaluate(body, env, dims.extend(dim))
            case NativeDimClosure(fn):
                return fn(dim)
            case _:
                raise ValueError(f"Unknown dimension closure: {closure!r}")

    def line_at(self, line: Line, dim: Interval) -> Value:
        """Instantiate a type family at an interval value."""
        match line:
            case ConstantLine(ty):
                return ty
            case TypeLine(closure, _):
                return self.instantiate_dim(closure, dim)
            case _:
                raise ValueError(f"Unknown type line: {line!r}")

    def apply(self, func: Value, arg: Value) -> Value:
        """Apply a function value to an argument.

        β-reduces lambdas; a neutral function builds a neutral application
        whose type is the instantiated codomain when the Π type is known.
        """
        match func:
            case VLam(_, closure):
                return self.instantiate(closure, arg)
            case VNeutral(neutral, ty):
                result_ty = self.instantiate(ty.closure, arg) if isinstance(ty, VPi) else None
                return VNeutral(NApp(neutral, arg), result_ty)
            case _:
                raise InvalidElimination(f"cannot apply non-function value {func}")

    def path_apply(self, path: Value, dim: Interval) -> Value:
        """Apply a path value to an interval value.

        A neutral path whose type is known reduces to its endpoints at 0 and 1.
        """
        match path:
            case VPathLam(_, closure):
                return self.instantiate_dim(closure, dim)
            case VNeutral(neutral, ty):
                if isinstance(ty, (VPathType, VSmoothPathType)):
                    if dim == I0:
                        return ty.left
                    if dim == I1:
                        return ty.right
                    return VNeutral(NPathApp(neutral, dim), ty.ty)
                return VNeutral(NPathApp(neutral, dim), None)
            case _:
                raise InvalidElimination(f"cannot apply non-path value {path} to {dim}")
