"""Test configuration and shared fixtures."""

import pytest

from cubekernel.config import KernelSettings, load_settings
from cubekernel.core.checker import TypeChecker
from cubekernel.core.context import Context
from cubekernel.eval.machine import Evaluator
from cubekernel.eval.value import VUniverse


@pytest.fixture
def settings() -> KernelSettings:
    """Default settings, independent of the process-wide cache."""
    return load_settings()


@pytest.fixture
def evaluator(settings) -> Evaluator:
    return Evaluator(settings)


@pytest.fixture
def checker(settings) -> TypeChecker:
    return TypeChecker(settings)


@pytest.fixture
def type_ctx() -> Context:
    """Context A : Type0, a : A, b : A (indices 2, 1, 0)."""
    ctx = Context.empty().extend("A", VUniverse(0))
    a_type = ctx.var(0)
    return ctx.extend("a", a_type).extend("b", a_type)
