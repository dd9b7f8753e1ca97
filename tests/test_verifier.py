"""Function and module verification with each failure action."""
from __future__ import annotations

import pytest

from safellvm import FatalError, VerificationAbort, VerifierFailureAction


def test_valid_void_function(ctx, builder, make_function, capsys):
    fn, entry = make_function("main", ctx.create_void_type())
    builder.position_at_end(entry)
    builder.build_return_void()
    assert fn.verify_function(VerifierFailureAction.PRINT_MESSAGE)
    assert capsys.readouterr().err == ""


def test_declaration_is_valid(ctx, module):
    fn = module.add_function("decl", ctx.create_func_type(ctx.create_i32_type(), []))
    assert fn.verify_function()


def test_missing_terminator_returns_status(ctx, make_function, capsys):
    fn, _ = make_function("open", ctx.create_void_type())
    assert not fn.verify_function(VerifierFailureAction.RETURN_STATUS)
    assert capsys.readouterr().err == ""


def test_missing_terminator_prints_message(ctx, make_function, capsys):
    fn, _ = make_function("open", ctx.create_void_type())
    assert not fn.verify_function(VerifierFailureAction.PRINT_MESSAGE)
    err = capsys.readouterr().err
    assert "function 'open'" in err
    assert "does not end with a terminator" in err


def test_missing_terminator_aborts(ctx, make_function):
    fn, _ = make_function("open", ctx.create_void_type())
    with pytest.raises(VerificationAbort) as exc_info:
        fn.verify_function(VerifierFailureAction.ABORT_PROCESS)
    assert isinstance(exc_info.value, FatalError)
    assert exc_info.value.code == "SL0500"


def test_instruction_after_terminator(ctx, builder, make_function):
    i32 = ctx.create_i32_type()
    fn, entry = make_function("late", ctx.create_void_type(), [i32])
    builder.position_at_end(entry)
    builder.build_return_void()
    builder.build_add(fn.get_param(0), fn.get_param(0))
    assert not fn.verify_function()


def test_unreachable_block_is_terminated(ctx, module, builder, make_function):
    i32 = ctx.create_i32_type()
    fn, entry = make_function("guarded", i32, [ctx.create_i1_type()])
    ok = ctx.append_basic_block(fn, "ok")
    bad = ctx.append_basic_block(fn, "bad")
    builder.position_at_end(entry)
    builder.build_cond_br(fn.get_param(0), ok, bad)
    builder.position_at_end(ok)
    builder.build_return(builder.const_int(i32, 0))
    builder.position_at_end(bad)
    trap = builder.build_unreachable()
    assert trap.is_terminator()
    assert bad.get_block_terminator() is trap
    assert fn.verify_function()
    assert module.verify()


def test_terminator_must_be_last(ctx, builder, make_function):
    i32 = ctx.create_i32_type()
    fn, entry = make_function("trailing", ctx.create_void_type(), [i32])
    builder.position_at_end(entry)
    ret = builder.build_return_void()
    assert entry.get_block_terminator() is ret
    builder.build_add(fn.get_param(0), fn.get_param(0), "after")
    assert entry.get_block_terminator() is None
    assert entry.get_last_instruction().get_name() == "after"


def test_backend_rejects_mismatched_return(ctx, builder, make_function, capsys):
    fn, entry = make_function("wrong_ret", ctx.create_i32_type())
    builder.position_at_end(entry)
    builder.build_return(builder.const_int(ctx.create_i64_type(), 1))
    assert not fn.verify_function(VerifierFailureAction.PRINT_MESSAGE)
    assert "wrong_ret" in capsys.readouterr().err


def test_function_checked_in_isolation(ctx, module, builder, make_function):
    good, good_entry = make_function("good", ctx.create_void_type())
    bad, _ = make_function("bad", ctx.create_void_type())
    builder.position_at_end(good_entry)
    builder.build_return_void()

    assert good.verify_function()
    assert not bad.verify_function()
    assert not module.verify()


def test_module_verify(ctx, module, builder, make_function):
    i32 = ctx.create_i32_type()
    fn, entry = make_function("answer", i32)
    builder.position_at_end(entry)
    builder.build_return(builder.const_int(i32, 42))
    assert module.verify(VerifierFailureAction.ABORT_PROCESS)


def test_module_verify_abort(ctx, module, make_function, capsys):
    make_function("open", ctx.create_void_type())
    with pytest.raises(VerificationAbort):
        module.verify(VerifierFailureAction.ABORT_PROCESS)
    assert "module 'test'" in capsys.readouterr().err
