"""Smoothness orders of smooth path types.

Only the syntactic side of smooth structure lives here: orders are checked
for range and compared when one smooth path type is used where another is
expected. A C^m path is also C^k for every k ≤ m.
"""

from __future__ import annotations

from cubekernel.core.errors import SmoothnessViolation
from cubekernel.eval.value import Value, VSmoothPathType


def check_order(order: int, max_order: int) -> None:
    """Reject negative orders and orders above ``max_order``."""
    if order < 0 or order > max_order:
        raise SmoothnessViolation(max_order, order)


def smoothness(value: Value) -> int | None:
    """Differentiability order of a smooth path type value, else None."""
    if isinstance(value, VSmoothPathType):
        return value.order
    return None


def verify_smooth(value: Value, required: int) -> bool:
    """Whether ``value`` is a smooth path type of order at least ``required``."""
    order = smoothness(value)
    return order is not None and order >= required
