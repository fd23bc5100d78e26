"""Error types for the cubical kernel."""

from __future__ import annotations

from typing import Any


class KernelError(Exception):
    """Base class for kernel errors.

    The first failure aborts a derivation; nothing inside the kernel
    catches and recovers from a ``KernelError``.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class TypeMismatch(KernelError):
    """Expected type does not match actual type.

    ``expected`` and ``actual`` are read-back terms, or a short description
    of the required shape (e.g. "a Π type").
    """

    def __init__(self, expected: Any, actual: Any):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Expected type {expected}, but got {actual}")


class UnboundVariable(KernelError):
    """Term variable index outside its environment or context.

    A contract breach: a correct elaborator never produces one.
    """

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Unbound variable with de Bruijn index {index}")


class UnboundDimension(KernelError):
    """Interval variable index outside the interval scope."""

    def __init__(self, index: int):
        self.index = index
        super().__init__(f"Unbound interval variable with de Bruijn index {index}")


class CannotInfer(KernelError):
    """A checkable-only form was presented to synthesis."""

    def __init__(self, term: Any):
        self.term = term
        super().__init__(f"Cannot infer type for: {term}")


class InvalidFace(KernelError):
    """Face formula is ill-scoped, or overlapping faces disagree."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid face: {reason}")


class InvalidKan(KernelError):
    """Kan operation requested on a shape no fallback covers."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid Kan operation: {reason}")


class InvalidElimination(KernelError):
    """Application or path application of a value of the wrong shape."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid elimination: {reason}")


class NonTermination(KernelError):
    """Recursion depth or fuel limit exceeded."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Non-termination: {reason}")


class SmoothnessViolation(KernelError):
    """Smooth path order out of range, or weaker than required."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Smoothness violation: expected C^{expected} but got C^{actual}")
