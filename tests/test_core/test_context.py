"""Tests for typing contexts."""

import pytest

from cubekernel.core.context import Binding, Context
from cubekernel.core.errors import UnboundVariable
from cubekernel.eval.value import IVar, NVar, VNeutral, VUniverse


class TestContextExtension:
    """Binding term variables."""

    def test_empty(self):
        ctx = Context.empty()
        assert ctx.depth == 0
        assert ctx.dim_depth == 0
        assert len(ctx) == 0

    def test_extend_and_lookup(self):
        ctx = Context.empty().extend("A", VUniverse(0))
        assert ctx.lookup(0) == Binding("A", VUniverse(0))
        assert ctx.lookup_type(0) == VUniverse(0)

    def test_indices_shift(self, type_ctx):
        """The most recent binding is index 0."""
        assert type_ctx.lookup(0).name == "b"
        assert type_ctx.lookup(2).name == "A"
        assert type_ctx.lookup_type(2) == VUniverse(0)

    def test_lookup_out_of_range(self, type_ctx):
        with pytest.raises(UnboundVariable):
            type_ctx.lookup_type(3)

    def test_variables_are_generic(self, type_ctx):
        """Hypotheses evaluate to neutral variables carrying their type."""
        a = type_ctx.var(1)
        assert isinstance(a, VNeutral)
        assert isinstance(a.neutral, NVar)
        assert a.neutral.level == 1
        assert a.ty is type_ctx.var(2)

    def test_parent_unchanged(self):
        parent = Context.empty().extend("A", VUniverse(0))
        child = parent.extend("B", VUniverse(1))
        assert parent.depth == 1
        assert child.depth == 2
        assert parent.lookup(0).name == "A"

    def test_define(self):
        ctx = Context.empty().define("T", VUniverse(1), VUniverse(0))
        assert ctx.var(0) == VUniverse(0)
        assert ctx.lookup_type(0) == VUniverse(1)

    def test_iterates_oldest_first(self, type_ctx):
        assert [name for name, _ in type_ctx] == ["A", "a", "b"]


class TestIntervalScope:
    """Binding interval variables."""

    def test_extend_dim(self):
        ctx = Context.empty().extend_dim().extend_dim()
        assert ctx.dim_depth == 2
        assert ctx.dims.lookup(0) == IVar(1)
        assert ctx.dims.lookup(1) == IVar(0)

    def test_fresh_dim_is_next_level(self):
        ctx = Context.empty().extend_dim()
        assert ctx.fresh_dim() == IVar(1)
        assert ctx.extend_dim().dims.lookup(0) == ctx.fresh_dim()

    def test_dims_do_not_shift_terms(self, type_ctx):
        ctx = type_ctx.extend_dim()
        assert ctx.depth == 3
        assert ctx.lookup(0).name == "b"

    def test_str(self):
        ctx = Context.empty().extend("A", VUniverse(0)).extend_dim()
        assert str(ctx) == "Context(terms=[A:Type0], dims=1)"
