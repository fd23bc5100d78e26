"""Bidirectional type checker for the cubical core language."""

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
)
from cubekernel.core.context import Context
from cubekernel.core.errors import (
    CannotInfer,
    InvalidFace,
    TypeMismatch,
    UnboundDimension,
)
from cubekernel.core.interval import Dim, DimVar, DimZero, Face, face_vars
from cubekernel.core.smooth import check_order, verify_smooth
from cubekernel.eval.kan import cofibration
from cubekernel.eval.machine import Evaluator
from cubekernel.eval.quote import Quoter
from cubekernel.eval.value import (
    I0,
    I1,
    ConstantLine,
    IVar,
    Line,
    Value,
    VPathType,
    VPi,
    VSmoothPathType,
    VUniverse,
)


class TypeChecker:
    """Bidirectional type checker.

    One checker runs one derivation: it owns an evaluator whose depth and
    fuel guards span every judgment made through it.
    """

    def __init__(self, settings: KernelSettings | None = None):
        """Initialize with kernel settings.

        Args:
            settings: Guards and rule choices; the process defaults if None.
                ``universe_rule="cumulative"`` lets Type_i stand where Type_j,
                i ≤ j, is expected. ``check_face_agreement`` turns the
                boundary agreement check on Kan faces on or off.
        """
        self.settings = settings if settings is not None else get_settings()
        self.evaluator = Evaluator(self.settings)
        self.quoter = Quoter(self.evaluator)

    # =========================================================================
    # Evaluation helpers
    # =========================================================================

    def eval(self, ctx: Context, term: Term) -> Value:
        """Evaluate a term in the context's environments."""
        return self.evaluator.evaluate(term, ctx.env, ctx.dims)

    def quote(self, ctx: Context, value: Value) -> Term:
        """Read a value back at the context's depth."""
        return self.quoter.quote(value, ctx.depth, ctx.dim_depth)

    def conv(self, ctx: Context, v1: Value, v2: Value) -> bool:
        """Definitional equality of two values in a context."""
        return self.quote(ctx, v1) == self.quote(ctx, v2)

    # =========================================================================
    # Judgments
    # =========================================================================

    def infer(self, ctx: Context, term: Term) -> Value:
        """Synthesize type from term (bottom-up, ⇒ mode).

        Args:
            ctx: Typing context
            term: Term to infer type for

        Returns:
            The inferred type, as a value

        Raises:
            UnboundVariable: If a variable is not in context
            CannotInfer: For lambdas and path lambdas
            TypeMismatch: If types don't match
        """
        match term:
            case Universe(level):
                return VUniverse(level + 1)

            case Var(index):
                return ctx.lookup_type(index)

            case Pi(name, domain, codomain):
                domain_level = self.infer_universe(ctx, domain)
                domain_val = self.eval(ctx, domain)
                codomain_level = self.infer_universe(ctx.extend(name, domain_val), codomain)
                return VUniverse(max(domain_level, codomain_level))

            case App(func, arg):
                func_type = self.infer(ctx, func)
                match func_type:
                    case VPi(_, domain, closure):
                        self.check(ctx, arg, domain)
                        return self.evaluator.instantiate(closure, self.eval(ctx, arg))
                    case _:
                        raise TypeMismatch("a Π type", self.quote(ctx, func_type))

            case PathType(ty, left, right):
                level = self.infer_universe(ctx, ty)
                ty_val = self.eval(ctx, ty)
                self.check(ctx, left, ty_val)
                self.check(ctx, right, ty_val)
                return VUniverse(level)

            case SmoothPathType(order, ty, left, right):
                check_order(order, self.settings.max_smooth_order)
                level = self.infer_universe(ctx, ty)
                ty_val = self.eval(ctx, ty)
                self.check(ctx, left, ty_val)
                self.check(ctx, right, ty_val)
                return VUniverse(level)

            case PathApp(path, dim):
                self._check_dim(ctx, dim)
                path_type = self.infer(ctx, path)
                match path_type:
                    case VPathType(ty, _, _) | VSmoothPathType(_, ty, _, _):
                        return ty
                    case _:
                        raise TypeMismatch("a path type", self.quote(ctx, path_type))

            case Comp():
                return self._infer_comp(ctx, term)

            case Coe():
                return self._infer_coe(ctx, term)

            case HComp():
                return self._infer_hcomp(ctx, term)

            case _:
                raise CannotInfer(term)

    def check(self, ctx: Context, term: Term, expected: Value) -> None:
        """Check term against expected type (top-down, ⇐ mode).

        Args:
            ctx: Typing context
            term: Term to check
            expected: Expected type, as a value

        Raises:
            TypeMismatch: If term doesn't have the expected type
        """
        match term:
            case Lam(name, body):
                # Lam: Match expected Π type, extend context, check body
                match expected:
                    case VPi(_, domain, closure):
                        inner = ctx.extend(name, domain)
                        codomain = self.evaluator.instantiate(closure, inner.var(0))
                        self.check(inner, body, codomain)
                    case _:
                        raise TypeMismatch(self.quote(ctx, expected), "a function")

            case PathLam(_, body):
                # PathLam: check body under a fresh interval variable, then endpoints
                match expected:
                    case VPathType(ty, left, right) | VSmoothPathType(_, ty, left, right):
                        self.check(ctx.extend_dim(), body, ty)
                        for dim, boundary in ((I0, left), (I1, right)):
                            actual = self.evaluator.evaluate(body, ctx.env, ctx.dims.extend(dim))
                            if not self.conv(ctx, actual, boundary):
                                raise TypeMismatch(self.quote(ctx, boundary), self.quote(ctx, actual))
                    case _:
                        raise TypeMismatch(self.quote(ctx, expected), "a path")

            case _:
                # Fall back to inference and conversion
                actual = self.infer(ctx, term)
                self._convert(ctx, actual, expected)

    def validate_face(self, ctx: Context, formula: Face) -> None:
        """Check a face formula only mentions interval variables in scope.

        Raises:
            InvalidFace: On an unbound interval variable
        """
        for index in sorted(face_vars(formula)):
            if index < 0 or index >= ctx.dim_depth:
                raise InvalidFace(f"{formula} mentions unbound interval variable i{index}")

    # =========================================================================
    # Helpers
    # =========================================================================

    def infer_universe(self, ctx: Context, term: Term) -> int:
        """Infer that ``term`` is a type and return its universe level."""
        ty = self.infer(ctx, term)
        match ty:
            case VUniverse(level):
                return level
            case _:
                raise TypeMismatch("a universe", self.quote(ctx, ty))

    def _check_dim(self, ctx: Context, dim: Dim) -> None:
        if isinstance(dim, DimVar) and not 0 <= dim.index < ctx.dim_depth:
            raise UnboundDimension(dim.index)

    def _convert(self, ctx: Context, actual: Value, expected: Value) -> None:
        if self.conv(ctx, actual, expected):
            return
        match actual, expected:
            case VUniverse(i), VUniverse(j) if self.settings.cumulative and i <= j:
                return
            case VSmoothPathType(), VSmoothPathType(order=k) if verify_smooth(actual, k):
                # A C^m path is also C^k for k ≤ m
                weakened = VSmoothPathType(k, actual.ty, actual.left, actual.right)
                if self.conv(ctx, weakened, expected):
                    return
        logger.debug("checker.convert.mismatch actual={} expected={}", actual, expected)
        raise TypeMismatch(self.quote(ctx, expected), self.quote(ctx, actual))

    # =========================================================================
    # Kan operations
    # =========================================================================

    def _infer_comp(self, ctx: Context, term: Comp) -> Value:
        """comp^{r→s} (j. A) [φ ↦ u] a : A(s) when a : A(r) and u : A(j)."""
        self.infer_universe(ctx.extend_dim(), term.family)
        self._check_dim(ctx, term.source)
        self._check_dim(ctx, term.target)
        line = self.evaluator.eval_line(term.family, ctx.env, ctx.dims)
        source = self.evaluator.eval_dim(term.source, ctx.dims)
        target = self.evaluator.eval_dim(term.target, ctx.dims)
        self.check(ctx, term.base, self.evaluator.line_at(line, source))
        self._check_faces(ctx, term.faces, line)
        if self.settings.check_face_agreement:
            self._check_face_agreement(ctx, term.faces, term.base, term.source)
        return self.evaluator.line_at(line, target)

    def _infer_coe(self, ctx: Context, term: Coe) -> Value:
        """coe^{r→s} (j. A) a : A(s) when a : A(r)."""
        self.infer_universe(ctx.extend_dim(), term.family)
        self._check_dim(ctx, term.source)
        self._check_dim(ctx, term.target)
        line = self.evaluator.eval_line(term.family, ctx.env, ctx.dims)
        source = self.evaluator.eval_dim(term.source, ctx.dims)
        target = self.evaluator.eval_dim(term.target, ctx.dims)
        self.check(ctx, term.base, self.evaluator.line_at(line, source))
        return self.evaluator.line_at(line, target)

    def _infer_hcomp(self, ctx: Context, term: HComp) -> Value:
        """hcomp A [φ ↦ u] a : A when a : A and u : A."""
        self.infer_universe(ctx, term.ty)
        ty = self.eval(ctx, term.ty)
        self.check(ctx, term.base, ty)
        self._check_faces(ctx, term.faces, ConstantLine(ty))
        if self.settings.check_face_agreement:
            self._check_face_agreement(ctx, term.faces, term.base, DimZero())
        return ty

    def _check_faces(self, ctx: Context, faces: tuple[FaceBranch, ...], line: Line) -> None:
        """Validate each formula and check each payload against the family."""
        inner = ctx.extend_dim()
        along = self.evaluator.line_at(line, ctx.fresh_dim())
        for face in faces:
            self.validate_face(ctx, face.formula)
            self.check(inner, face.body, along)

    def _check_face_agreement(
        self,
        ctx: Context,
        faces: tuple[FaceBranch, ...],
        base: Term,
        source: Dim,
    ) -> None:
        """Overlapping faces agree, and every face agrees with the base at the source.

        Each overlap is split into the clauses of its disjunctive normal
        form; each clause fixes some interval variables to endpoints, and
        the payloads are compared by conversion under that assignment.

        Raises:
            InvalidFace: On the first disagreement
        """
        direction = IVar(ctx.dim_depth)
        cofs = [cofibration(face.formula, ctx.dims) for face in faces]

        for (face_a, cof_a), (face_b, cof_b) in itertools.combinations(zip(faces, cofs), 2):
            for clause in cof_a.meet(cof_b).clauses:
                dims = ctx.dims.substitute(dict(clause)).extend(direction)
                u = self.evaluator.evaluate(face_a.body, ctx.env, dims)
                v = self.evaluator.evaluate(face_b.body, ctx.env, dims)
                if self.quoter.quote(u, ctx.depth, ctx.dim_depth + 1) != self.quoter.quote(
                    v, ctx.depth, ctx.dim_depth + 1
                ):
                    raise InvalidFace(
                        f"faces {face_a.formula} and {face_b.formula} disagree where they overlap"
                    )

        for face, cof in zip(faces, cofs):
            for clause in cof.clauses:
                dims = ctx.dims.substitute(dict(clause))
                at_source = self.evaluator.evaluate(
                    face.body, ctx.env, dims.extend(self.evaluator.eval_dim(source, dims))
                )
                base_val = self.evaluator.evaluate(base, ctx.env, dims)
                if not self.conv(ctx, at_source, base_val):
                    raise InvalidFace(f"face {face.formula} disagrees with the base at the source")
