"""Core language: terms, interval syntax, contexts, and the type checker."""

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
    arrow,
    mentions_dim,
    shift,
)
from cubekernel.core.checker import TypeChecker
from cubekernel.core.context import Binding, Context
from cubekernel.core.errors import (
    CannotInfer,
    InvalidElimination,
    InvalidFace,
    InvalidKan,
    KernelError,
    NonTermination,
    SmoothnessViolation,
    TypeMismatch,
    UnboundDimension,
    UnboundVariable,
)
from cubekernel.core.interval import (
    Dim,
    DimOne,
    DimVar,
    DimZero,
    Face,
    FaceAnd,
    FaceBottom,
    FaceEq,
    FaceOr,
    FaceTop,
    conjunction,
    disjunction,
    face_vars,
)

__all__ = [
    # AST
    "Term",
    "Universe",
    "Var",
    "Pi",
    "Lam",
    "App",
    "PathType",
    "PathLam",
    "PathApp",
    "SmoothPathType",
    "FaceBranch",
    "Comp",
    "Coe",
    "HComp",
    "arrow",
    "shift",
    "mentions_dim",
    # Interval
    "Dim",
    "DimZero",
    "DimOne",
    "DimVar",
    "Face",
    "FaceTop",
    "FaceBottom",
    "FaceEq",
    "FaceAnd",
    "FaceOr",
    "conjunction",
    "disjunction",
    "face_vars",
    # Context
    "Binding",
    "Context",
    # Errors
    "KernelError",
    "TypeMismatch",
    "UnboundVariable",
    "UnboundDimension",
    "CannotInfer",
    "InvalidFace",
    "InvalidKan",
    "InvalidElimination",
    "NonTermination",
    "SmoothnessViolation",
    # Type Checker
    "TypeChecker",
]
