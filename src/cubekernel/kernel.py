"""Kernel entry points.

Every call builds its own evaluator and checker, so calls never share
depth counters or fuel and may run from several threads at once.
"""

from __future__ import annotations

import sys
import threading
from contextlib import contextmanager
from typing import Iterator

from loguru import logger

from cubekernel.config import KernelSettings, get_settings
from cubekernel.core.ast import Term
from cubekernel.core.checker import TypeChecker
from cubekernel.core.context import Context
from cubekernel.core.errors import NonTermination
from cubekernel.eval.machine import Evaluator
from cubekernel.eval.quote import Quoter
from cubekernel.eval.quote import convertible as _convertible
from cubekernel.eval.value import DimEnv, Environment, Value


# Interpreter frames one evaluation level may use, counting Kan rules and thunks
FRAMES_PER_LEVEL = 25
RECURSION_CEILING = 200_000

_limit_lock = threading.Lock()
_active_calls = 0
_saved_limit = 0


def _recursion_limit_for(settings: KernelSettings, base: int) -> int:
    return min(RECURSION_CEILING, base + settings.max_depth * FRAMES_PER_LEVEL)


@contextmanager
def _guarded(settings: KernelSettings | None) -> Iterator[None]:
    """Let ``max_depth`` govern recursion and report overflow as non-termination.

    The interpreter limit is raised for the duration of the outermost call
    and restored once no call is running.
    """
    global _active_calls, _saved_limit
    settings = settings if settings is not None else get_settings()
    with _limit_lock:
        if _active_calls == 0:
            _saved_limit = sys.getrecursionlimit()
        _active_calls += 1
        wanted = _recursion_limit_for(settings, _saved_limit)
        if wanted > sys.getrecursionlimit():
            sys.setrecursionlimit(wanted)
    try:
        yield
    except RecursionError as exc:
        logger.debug("kernel.recursion_limit limit={}", sys.getrecursionlimit())
        raise NonTermination("Python recursion limit reached") from exc
    finally:
        with _limit_lock:
            _active_calls -= 1
            if _active_calls == 0:
                sys.setrecursionlimit(_saved_limit)


def evaluate(
    term: Term,
    env: Environment | None = None,
    dims: DimEnv | None = None,
    *,
    settings: KernelSettings | None = None,
) -> Value:
    """Evaluate a term to a value in the given environments."""
    with _guarded(settings):
        return Evaluator(settings).evaluate(term, env, dims)


def infer(ctx: Context, term: Term, *, settings: KernelSettings | None = None) -> Value:
    """Synthesize the type of ``term`` in ``ctx``.

    Raises:
        KernelError: The first failure of the derivation
    """
    with _guarded(settings):
        return TypeChecker(settings).infer(ctx, term)


def check(
    ctx: Context,
    term: Term,
    expected: Term | Value,
    *,
    settings: KernelSettings | None = None,
) -> None:
    """Check ``term`` against ``expected`` in ``ctx``.

    ``expected`` may be a value, or a term which is first checked to be a
    type and then evaluated.

    Raises:
        KernelError: The first failure of the derivation
    """
    with _guarded(settings):
        checker = TypeChecker(settings)
        if isinstance(expected, Term):
            checker.infer_universe(ctx, expected)
            expected = checker.eval(ctx, expected)
        checker.check(ctx, term, expected)


def normalize(
    term: Term,
    ctx: Context | None = None,
    *,
    settings: KernelSettings | None = None,
) -> Term:
    """Normal form of ``term``: evaluate in ``ctx``, then read back."""
    if ctx is None:
        ctx = Context.empty()
    with _guarded(settings):
        evaluator = Evaluator(settings)
        value = evaluator.evaluate(term, ctx.env, ctx.dims)
        return Quoter(evaluator).quote(value, ctx.depth, ctx.dim_depth)


def convertible(
    v1: Value,
    v2: Value,
    ctx: Context | None = None,
    *,
    settings: KernelSettings | None = None,
) -> bool:
    """Definitional equality of two values in ``ctx``."""
    if ctx is None:
        ctx = Context.empty()
    with _guarded(settings):
        return _convertible(Evaluator(settings), v1, v2, ctx.depth, ctx.dim_depth)
