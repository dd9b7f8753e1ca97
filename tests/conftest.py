"""Shared fixtures: a live context with one module and one builder."""
from __future__ import annotations

import pytest

from safellvm import Context


@pytest.fixture
def ctx():
    context = Context.create()
    yield context
    if not context.is_disposed:
        # Tests may leave builders or modules behind; release them first.
        for handle in list(context._live):
            if not handle.is_disposed:
                handle.dispose()
        context.dispose()


@pytest.fixture
def module(ctx):
    return ctx.create_module("test")


@pytest.fixture
def builder(ctx):
    return ctx.create_builder()


@pytest.fixture
def make_function(ctx, module):
    """Declare a function and return it with an ``entry`` block appended."""

    def make(name, ret, params=(), var_arg=False):
        fnty = ctx.create_func_type(ret, list(params), var_arg)
        fn = module.add_function(name, fnty)
        entry = ctx.append_basic_block(fn, "entry")
        return fn, entry

    return make
