"""Typing contexts for the cubical kernel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from cubekernel.eval.value import DimEnv, Environment, IVar, Value, generic_var


@dataclass(frozen=True)
class Binding:
    """A named context entry and its type."""

    name: str
    ty: Value


@dataclass(frozen=True, eq=False)
class Context:
    """Typing context Γ with term and interval variables.

    - bindings: (name, type) of bound term variables (index 0 = most recent)
    - env: the value of each term variable, a neutral for plain hypotheses
    - dims: bound interval variables, each a generic ``IVar``

    Contexts are persistent: ``extend`` returns a new context sharing its
    parent, which stays valid.
    """

    bindings: Environment = Environment.empty()
    env: Environment = Environment.empty()
    dims: DimEnv = DimEnv.empty()

    @staticmethod
    def empty() -> "Context":
        """Create an empty context."""
        return Context()

    @property
    def depth(self) -> int:
        """Number of term variables in scope."""
        return len(self.bindings)

    @property
    def dim_depth(self) -> int:
        """Number of interval variables in scope."""
        return len(self.dims)

    def lookup(self, index: int) -> Binding:
        """Look up a binding by de Bruijn index.

        Raises:
            UnboundVariable: If index is out of bounds
        """
        return self.bindings.lookup(index)

    def lookup_type(self, index: int) -> Value:
        """Look up the type of a variable by de Bruijn index."""
        return self.lookup(index).ty

    def extend(self, name: str, ty: Value) -> "Context":
        """Extend context with a new hypothesis ``name : ty``.

        The new variable becomes index 0, shifting existing variables up by 1.
        """
        var = generic_var(self.depth, ty)
        return Context(self.bindings.extend(Binding(name, ty)), self.env.extend(var), self.dims)

    def define(self, name: str, ty: Value, value: Value) -> "Context":
        """Extend context with a definition ``name : ty := value``.

        Occurrences of the new variable evaluate to ``value``.
        """
        return Context(self.bindings.extend(Binding(name, ty)), self.env.extend(value), self.dims)

    def extend_dim(self) -> "Context":
        """Extend context with a new interval variable at index 0."""
        return Context(self.bindings, self.env, self.dims.extend(IVar(self.dim_depth)))

    def fresh_dim(self) -> IVar:
        """The interval value ``extend_dim`` would bind."""
        return IVar(self.dim_depth)

    def var(self, index: int) -> Value:
        """The value of the term variable at ``index``."""
        return self.env.lookup(index)

    def __iter__(self) -> Iterator[tuple[str, Value]]:
        """Yield (name, type) pairs, oldest binding first."""
        entries = [(binding.name, binding.ty) for binding in self.bindings]
        return iter(reversed(entries))

    def __len__(self) -> int:
        """Return the number of term variables in context."""
        return self.depth

    def __str__(self) -> str:
        terms = ", ".join(f"{name}:{ty}" for name, ty in self)
        return f"Context(terms=[{terms}], dims={self.dim_depth})"
