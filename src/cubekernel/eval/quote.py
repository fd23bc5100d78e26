"""Read-back of values into terms (normalization by evaluation).

Quoting runs at a term depth and an interval depth, the number of term
and interval binders in scope. Variables carry de Bruijn levels and are
turned back into indices here, so the output is canonical up to renaming
of bound variables.
"""

from __future__ import annotations

from cubekernel.core.ast import (
    App,
    Coe,
    Comp,
    FaceBranch,
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
from cubekernel.core.errors import UnboundDimension, UnboundVariable
from cubekernel.core.interval import (
    Dim,
    DimOne,
    DimVar,
    DimZero,
    Face,
    FaceEq,
    FaceTop,
    conjunction,
    disjunction,
)
from cubekernel.eval.machine import Evaluator
from cubekernel.eval.value import (
    Cofibration,
    Interval,
    IOne,
    IVar,
    IZero,
    KanFace,
    Line,
    NApp,
    NCoe,
    NComp,
    NPathApp,
    NVar,
    Neutral,
    Value,
    VLam,
    VNeutral,
    VPathLam,
    VPathType,
    VPi,
    VSmoothPathType,
    VUniverse,
    generic_var,
)


class Quoter:
    """Reads values back into normal-form terms."""

    def __init__(self, evaluator: Evaluator) -> None:
        self.ev = evaluator

    def quote(self, value: Value, depth: int = 0, dim_depth: int = 0) -> Term:
        """Read a value back into a term.

        Args:
            value: Value to read back
            depth: Number of term variables in scope
            dim_depth: Number of interval variables in scope

        Returns:
            A term in normal form for the given scope
        """
        match value:
            case VUniverse(level):
                return Universe(level)

            case VPi(name, domain, closure):
                var = generic_var(depth, domain)
                codomain = self.ev.instantiate(closure, var)
                return Pi(
                    name,
                    self.quote(domain, depth, dim_depth),
                    self.quote(codomain, depth + 1, dim_depth),
                )

            case VLam(name, closure):
                body = self.ev.instantiate(closure, generic_var(depth))
                return Lam(name, self.quote(body, depth + 1, dim_depth))

            case VPathType(ty, left, right):
                return PathType(
                    self.quote(ty, depth, dim_depth),
                    self.quote(left, depth, dim_depth),
                    self.quote(right, depth, dim_depth),
                )

            case VSmoothPathType(order, ty, left, right):
                return SmoothPathType(
                    order,
                    self.quote(ty, depth, dim_depth),
                    self.quote(left, depth, dim_depth),
                    self.quote(right, depth, dim_depth),
                )

            case VPathLam(name, closure):
                body = self.ev.instantiate_dim(closure, IVar(dim_depth))
                return PathLam(name, self.quote(body, depth, dim_depth + 1))

            case VNeutral(neutral, _):
                return self.quote_neutral(neutral, depth, dim_depth)

            case _:
                raise ValueError(f"Unknown value: {value!r}")

    def quote_neutral(self, neutral: Neutral, depth: int, dim_depth: int) -> Term:
        """Read back a stuck computation as an elimination form."""
        match neutral:
            case NVar(level):
                if level < 0 or level >= depth:
                    raise UnboundVariable(depth - 1 - level)
                return Var(depth - 1 - level)

            case NApp(func, arg):
                return App(
                    self.quote_neutral(func, depth, dim_depth),
                    self.quote(arg, depth, dim_depth),
                )

            case NPathApp(path, dim):
                return PathApp(
                    self.quote_neutral(path, depth, dim_depth),
                    self.quote_dim(dim, dim_depth),
                )

            case NComp(family, base, faces, source, target):
                return Comp(
                    self.quote_line(family, depth, dim_depth),
                    self.quote(base, depth, dim_depth),
                    self.quote_faces(faces, depth, dim_depth),
                    self.quote_dim(target, dim_depth),
                    self.quote_dim(source, dim_depth),
                )

            case NCoe(family, source, target, base):
                return Coe(
                    self.quote_line(family, depth, dim_depth),
                    self.quote_dim(source, dim_depth),
                    self.quote_dim(target, dim_depth),
                    self.quote(base, depth, dim_depth),
                )

            case _:
                raise ValueError(f"Unknown neutral: {neutral!r}")

    def quote_dim(self, dim: Interval, dim_depth: int) -> Dim:
        match dim:
            case IZero():
                return DimZero()
            case IOne():
                return DimOne()
            case IVar(level):
                if level < 0 or level >= dim_depth:
                    raise UnboundDimension(dim_depth - 1 - level)
                return DimVar(dim_depth - 1 - level)
            case _:
                raise ValueError(f"Unknown interval value: {dim!r}")

    def quote_line(self, family: Line, depth: int, dim_depth: int) -> Term:
        """Read back a type family as a term under one interval binder."""
        ty = self.ev.line_at(family, IVar(dim_depth))
        return self.quote(ty, depth, dim_depth + 1)

    def quote_cofibration(self, cof: Cofibration, dim_depth: int) -> Face:
        clauses = []
        for clause in cof.clauses:
            eqs = [
                FaceEq(dim_depth - 1 - level, endpoint)
                for level, endpoint in sorted(clause, reverse=True)
            ]
            clauses.append(conjunction(*eqs) if eqs else FaceTop())
        return disjunction(*clauses)

    def quote_faces(
        self, faces: tuple[KanFace, ...], depth: int, dim_depth: int
    ) -> tuple[FaceBranch, ...]:
        return tuple(
            FaceBranch(
                self.quote_cofibration(cof, dim_depth),
                self.quote(self.ev.instantiate_dim(tube, IVar(dim_depth)), depth, dim_depth + 1),
            )
            for cof, tube in faces
        )


def convertible(
    evaluator: Evaluator,
    v1: Value,
    v2: Value,
    depth: int = 0,
    dim_depth: int = 0,
) -> bool:
    """Definitional equality: the two values read back to the same term."""
    quoter = Quoter(evaluator)
    return quoter.quote(v1, depth, dim_depth) == quoter.quote(v2, depth, dim_depth)
