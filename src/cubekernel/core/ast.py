"""Core term syntax for the cubical kernel."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union

from cubekernel.core.interval import Dim, DimVar, DimZero, Face, face_vars


class Term:
    """Base class for terms."""

    pass


@dataclass(frozen=True)
class Universe(Term):
    """Universe at a level: Type₀, Type₁, ..."""

    level: int

    def __str__(self) -> str:
        return f"Type{self.level}"


@dataclass(frozen=True)
class Var(Term):
    """Variable reference using de Bruijn index.

    Index 0 refers to the nearest binder, 1 to the next, etc.
    Example: λx.λy.x  =>  Lam(_, Lam(_, Var(1)))
    """

    index: int

    def __str__(self) -> str:
        return f"x{self.index}"


@dataclass(frozen=True)
class Pi(Term):
    """Dependent function type: (x : A) → B.

    The codomain binds one term variable. Names are for display only
    and do not take part in equality.
    """

    name: str = field(compare=False)
    domain: Term
    codomain: Term

    def __str__(self) -> str:
        return f"(({self.name} : {self.domain}) → {self.codomain})"


@dataclass(frozen=True)
class Lam(Term):
    """Lambda abstraction: λx. body"""

    name: str = field(compare=False)
    body: Term

    def __str__(self) -> str:
        return f"λ{self.name}. {self.body}"


@dataclass(frozen=True)
class App(Term):
    """Function application: f arg."""

    func: Term
    arg: Term

    def __str__(self) -> str:
        return f"({self.func} {self.arg})"


@dataclass(frozen=True)
class PathType(Term):
    """Path type: Path A a b."""

    ty: Term
    left: Term
    right: Term

    def __str__(self) -> str:
        return f"Path {self.ty} {self.left} {self.right}"


@dataclass(frozen=True)
class PathLam(Term):
    """Path abstraction: ⟨i⟩ body.

    The body binds one interval variable, term variables are untouched.
    """

    name: str = field(compare=False)
    body: Term

    def __str__(self) -> str:
        return f"⟨{self.name}⟩ {self.body}"


@dataclass(frozen=True)
class PathApp(Term):
    """Path application: p @ r."""

    path: Term
    dim: Dim

    def __str__(self) -> str:
        return f"({self.path} @ {self.dim})"


@dataclass(frozen=True)
class SmoothPathType(Term):
    """Smooth path type of differentiability order k: SmoothPath^k A a b."""

    order: int
    ty: Term
    left: Term
    right: Term

    def __str__(self) -> str:
        return f"SmoothPath^{self.order} {self.ty} {self.left} {self.right}"


@dataclass(frozen=True)
class FaceBranch:
    """Face constraint: formula ↦ body.

    The formula refers to the scope enclosing the Kan node; the body binds
    the composition direction as interval index 0.
    """

    formula: Face
    body: Term

    def __str__(self) -> str:
        return f"{self.formula} ↦ {self.body}"


@dataclass(frozen=True)
class Comp(Term):
    """Heterogeneous composition: comp^{j. A} [faces] base, from source to target.

    ``family`` and each face body bind the direction j as interval index 0.
    The source defaults to 0.
    """

    family: Term
    base: Term
    faces: tuple[FaceBranch, ...] = ()
    target: Dim = field(default_factory=DimZero)
    source: Dim = field(default_factory=DimZero)

    def __str__(self) -> str:
        faces_str = ", ".join(str(face) for face in self.faces)
        return f"comp^{{{self.source}→{self.target}}} (j. {self.family}) [{faces_str}] {self.base}"


@dataclass(frozen=True)
class Coe(Term):
    """Coercion along a type family: coe^{r→s} (j. A) base.

    ``family`` binds the direction j as interval index 0.
    """

    family: Term
    source: Dim
    target: Dim
    base: Term

    def __str__(self) -> str:
        return f"coe^{{{self.source}→{self.target}}} (j. {self.family}) {self.base}"


@dataclass(frozen=True)
class HComp(Term):
    """Homogeneous composition: hcomp^{0→1} A [faces] base.

    Each face body binds the direction j as interval index 0.
    """

    ty: Term
    base: Term
    faces: tuple[FaceBranch, ...] = ()

    def __str__(self) -> str:
        faces_str = ", ".join(str(face) for face in self.faces)
        return f"hcomp {self.ty} [{faces_str}] {self.base}"


def arrow(domain: Term, codomain: Term) -> Pi:
    """Non-dependent function type A → B.

    ``codomain`` is written in the scope of ``domain``; it is shifted under
    the new binder.
    """
    return Pi("_", domain, shift(codomain, 1))


def shift(term: Term, amount: int, cutoff: int = 0) -> Term:
    """Shift free term variables at or above ``cutoff`` by ``amount``."""
    match term:
        case Var(index):
            return Var(index + amount) if index >= cutoff else term
        case Universe():
            return term
        case Pi(name, domain, codomain):
            return Pi(name, shift(domain, amount, cutoff), shift(codomain, amount, cutoff + 1))
        case Lam(name, body):
            return Lam(name, shift(body, amount, cutoff + 1))
        case App(func, arg):
            return App(shift(func, amount, cutoff), shift(arg, amount, cutoff))
        case PathType(ty, left, right):
            return PathType(
                shift(ty, amount, cutoff), shift(left, amount, cutoff), shift(right, amount, cutoff)
            )
        case SmoothPathType(order, ty, left, right):
            return SmoothPathType(
                order,
                shift(ty, amount, cutoff),
                shift(left, amount, cutoff),
                shift(right, amount, cutoff),
            )
        case PathLam(name, body):
            return PathLam(name, shift(body, amount, cutoff))
        case PathApp(path, dim):
            return PathApp(shift(path, amount, cutoff), dim)
        case Comp(family, base, faces, target, source):
            return Comp(
                shift(family, amount, cutoff),
                shift(base, amount, cutoff),
                _shift_faces(faces, amount, cutoff),
                target,
                source,
            )
        case Coe(family, source, target, base):
            return Coe(shift(family, amount, cutoff), source, target, shift(base, amount, cutoff))
        case HComp(ty, base, faces):
            return HComp(
                shift(ty, amount, cutoff),
                shift(base, amount, cutoff),
                _shift_faces(faces, amount, cutoff),
            )
        case _:
            raise ValueError(f"Unknown term: {term!r}")


def _shift_faces(faces: tuple[FaceBranch, ...], amount: int, cutoff: int) -> tuple[FaceBranch, ...]:
    return tuple(FaceBranch(face.formula, shift(face.body, amount, cutoff)) for face in faces)


def _dim_mentions(dim: Dim, index: int) -> bool:
    return isinstance(dim, DimVar) and dim.index == index


def mentions_dim(term: Term, index: int = 0) -> bool:
    """Check whether interval variable ``index`` occurs free in ``term``.

    Used to recognise dimension-independent type families. A family that
    never mentions its direction is constant.
    """
    match term:
        case Universe() | Var():
            return False
        case Pi(_, domain, codomain):
            return mentions_dim(domain, index) or mentions_dim(codomain, index)
        case Lam(_, body):
            return mentions_dim(body, index)
        case App(func, arg):
            return mentions_dim(func, index) or mentions_dim(arg, index)
        case PathType(ty, left, right) | SmoothPathType(_, ty, left, right):
            return any(mentions_dim(t, index) for t in (ty, left, right))
        case PathLam(_, body):
            return mentions_dim(body, index + 1)
        case PathApp(path, dim):
            return _dim_mentions(dim, index) or mentions_dim(path, index)
        case Comp(family, base, faces, target, source):
            return (
                _dim_mentions(target, index)
                or _dim_mentions(source, index)
                or mentions_dim(family, index + 1)
                or mentions_dim(base, index)
                or _faces_mention(faces, index)
            )
        case Coe(family, source, target, base):
            return (
                _dim_mentions(source, index)
                or _dim_mentions(target, index)
                or mentions_dim(family, index + 1)
                or mentions_dim(base, index)
            )
        case HComp(ty, base, faces):
            return mentions_dim(ty, index) or mentions_dim(base, index) or _faces_mention(faces, index)
        case _:
            raise ValueError(f"Unknown term: {term!r}")


def _faces_mention(faces: tuple[FaceBranch, ...], index: int) -> bool:
    return any(
        index in face_vars(face.formula) or mentions_dim(face.body, index + 1) for face in faces
    )


# Export the term union for type checking
TermRepr = Union[
    Universe, Var, Pi, Lam, App, PathType, PathLam, PathApp, SmoothPathType, Comp, Coe, HComp
]
