"""Interval syntax: dimension expressions and face formulas.

Interval variables live in their own de Bruijn namespace, disjoint from
term variables. ``DimVar(0)`` is the nearest interval binder (a path
lambda, or the direction bound by a Kan node).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


class Dim:
    """Base class for dimension expressions."""

    pass


@dataclass(frozen=True)
class DimZero(Dim):
    """The 0 endpoint of the interval."""

    def __str__(self) -> str:
        return "0"


@dataclass(frozen=True)
class DimOne(Dim):
    """The 1 endpoint of the interval."""

    def __str__(self) -> str:
        return "1"


@dataclass(frozen=True)
class DimVar(Dim):
    """Interval variable by de Bruijn index."""

    index: int

    def __str__(self) -> str:
        return f"i{self.index}"


class Face:
    """Base class for face formulas."""

    pass


@dataclass(frozen=True)
class FaceTop(Face):
    """The always-satisfied face."""

    def __str__(self) -> str:
        return "⊤"


@dataclass(frozen=True)
class FaceBottom(Face):
    """The never-satisfied face."""

    def __str__(self) -> str:
        return "⊥"


@dataclass(frozen=True)
class FaceEq(Face):
    """Endpoint equation: interval variable ``index`` equals ``endpoint``."""

    index: int
    endpoint: int

    def __post_init__(self) -> None:
        if self.endpoint not in (0, 1):
            raise ValueError(f"Face endpoint must be 0 or 1, got {self.endpoint}")

    def __str__(self) -> str:
        return f"(i{self.index}={self.endpoint})"


@dataclass(frozen=True)
class FaceAnd(Face):
    """Conjunction of two faces."""

    left: Face
    right: Face

    def __str__(self) -> str:
        return f"({self.left} ∧ {self.right})"


@dataclass(frozen=True)
class FaceOr(Face):
    """Disjunction of two faces."""

    left: Face
    right: Face

    def __str__(self) -> str:
        return f"({self.left} ∨ {self.right})"


def face_vars(face: Face) -> set[int]:
    """Return the interval indices a face formula mentions."""
    match face:
        case FaceEq(index, _):
            return {index}
        case FaceAnd(left, right) | FaceOr(left, right):
            return face_vars(left) | face_vars(right)
        case _:
            return set()


def conjunction(*faces: Face) -> Face:
    """Fold faces with ∧, right-nested. The empty conjunction is ⊤."""
    result: Face | None = None
    for face in reversed(faces):
        result = face if result is None else FaceAnd(face, result)
    return result if result is not None else FaceTop()


def disjunction(*faces: Face) -> Face:
    """Fold faces with ∨, right-nested. The empty disjunction is ⊥."""
    result: Face | None = None
    for face in reversed(faces):
        result = face if result is None else FaceOr(face, result)
    return result if result is not None else FaceBottom()


# Export the unions for type checking
DimRepr = Union[DimZero, DimOne, DimVar]
FaceRepr = Union[FaceTop, FaceBottom, FaceEq, FaceAnd, FaceOr]
