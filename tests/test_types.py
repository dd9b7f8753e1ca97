"""Type construction, uniquing and introspection."""
from __future__ import annotations

import pytest

from safellvm import AddressSpace, TypeKind, UsageError


@pytest.mark.parametrize("factory, kind", [
    ("create_void_type", TypeKind.VOID),
    ("create_i1_type", TypeKind.INTEGER),
    ("create_i128_type", TypeKind.INTEGER),
    ("create_bf16_type", TypeKind.BFLOAT),
    ("create_f16_type", TypeKind.HALF),
    ("create_f32_type", TypeKind.FLOAT),
    ("create_f64_type", TypeKind.DOUBLE),
    ("create_x86_f80_type", TypeKind.X86_FP80),
    ("create_f128_type", TypeKind.FP128),
    ("create_ppc_f128_type", TypeKind.PPC_FP128),
    ("create_label_type", TypeKind.LABEL),
    ("create_ptr_type", TypeKind.POINTER),
])
def test_primitive_kinds(ctx, factory, kind):
    assert getattr(ctx, factory)().get_type_kind() is kind


def test_int_widths(ctx):
    assert ctx.create_i1_type().get_int_type_width() == 1
    assert ctx.create_i8_type().get_int_type_width() == 8
    assert ctx.create_i16_type().get_int_type_width() == 16
    assert ctx.create_i32_type().get_int_type_width() == 32
    assert ctx.create_i64_type().get_int_type_width() == 64
    assert ctx.create_int_type(7).get_int_type_width() == 7
    assert str(ctx.create_int_type(7)) == "i7"


def test_types_are_uniqued(ctx):
    assert ctx.create_i32_type() is ctx.create_int_type(32)
    assert ctx.create_f64_type() is ctx.create_f64_type()
    a = ctx.create_struct_type([ctx.create_i8_type(), ctx.create_f32_type()])
    b = ctx.create_struct_type([ctx.create_i8_type(), ctx.create_f32_type()])
    assert a is b
    assert a == b


def test_extended_float_spelling(ctx):
    assert str(ctx.create_bf16_type()) == "bfloat"
    assert str(ctx.create_x86_f80_type()) == "x86_fp80"
    assert str(ctx.create_f128_type()) == "fp128"
    assert str(ctx.create_ppc_f128_type()) == "ppc_fp128"
    assert ctx.create_f128_type() != ctx.create_ppc_f128_type()


def test_literal_struct_round_trip(ctx):
    i32, f64, ptr = ctx.create_i32_type(), ctx.create_f64_type(), ctx.create_ptr_type()
    st = ctx.create_struct_type([i32, f64, ptr])
    assert st.get_type_kind() is TypeKind.STRUCT
    assert st.get_struct_element_count() == 3
    assert st.get_struct_element_tys() == [i32, f64, ptr]
    assert st.get_struct_element_ty(0) is i32
    assert st.get_struct_element_ty(2) is ptr
    assert st.get_struct_element_ty(3) is None
    assert st.get_struct_element_ty(-1) is None
    assert st.get_struct_name() is None
    assert st.is_struct_literal()
    assert not st.is_struct_packed()


def test_packed_struct(ctx):
    st = ctx.create_struct_type([ctx.create_i8_type(), ctx.create_i32_type()], is_packed=True)
    assert st.is_struct_packed()
    assert str(st) == "<{i8, i32}>"
    assert st != ctx.create_struct_type([ctx.create_i8_type(), ctx.create_i32_type()])


def test_named_struct(ctx):
    pair = ctx.create_named_struct_type("Pair")
    assert pair.get_struct_name() == "Pair"
    assert pair.is_struct_opaque()
    assert pair.get_struct_element_count() == 0
    assert pair.get_struct_element_ty(0) is None

    i64 = ctx.create_i64_type()
    pair.set_struct_body([i64, i64])
    assert not pair.is_struct_opaque()
    assert pair.get_struct_element_tys() == [i64, i64]
    assert not pair.is_struct_literal()
    assert ctx.get_named_struct_type("Pair") is pair


def test_named_struct_collision_is_suffixed(ctx):
    first = ctx.create_named_struct_type("Pair")
    second = ctx.create_named_struct_type("Pair")
    assert second.get_struct_name() == "Pair.1"
    assert first != second
    assert ctx.get_named_struct_type("Missing") is None


def test_set_body_on_literal_struct_fails(ctx):
    st = ctx.create_struct_type([ctx.create_i8_type()])
    with pytest.raises(UsageError):
        st.set_struct_body([ctx.create_i32_type()])


def test_wrong_kind_introspection(ctx):
    i32 = ctx.create_i32_type()
    with pytest.raises(UsageError) as exc_info:
        i32.get_struct_element_count()
    assert exc_info.value.code == "SL0300"
    with pytest.raises(UsageError):
        ctx.create_f32_type().get_int_type_width()
    with pytest.raises(UsageError):
        i32.get_return_type()
    with pytest.raises(UsageError):
        ctx.create_ptr_type().get_element_type()


def test_array_and_vector(ctx):
    i16 = ctx.create_i16_type()
    arr = ctx.create_array_type(i16, 4)
    assert arr.get_type_kind() is TypeKind.ARRAY
    assert arr.get_array_length() == 4
    assert arr.get_element_type() is i16
    assert str(arr) == "[4 x i16]"

    vec = ctx.create_vector_type(ctx.create_f32_type(), 8)
    assert vec.get_type_kind() is TypeKind.VECTOR
    assert vec.get_vector_size() == 8
    assert vec.get_element_type() is ctx.create_f32_type()


def test_pointer_types(ctx):
    ptr = ctx.create_ptr_type()
    assert ptr.is_pointer_opaque()
    assert ptr.get_pointer_address_space() == 0
    assert str(ptr) == "ptr"

    global_ptr = ctx.create_ptr_type(AddressSpace.GLOBAL)
    assert global_ptr.get_pointer_address_space() == 1
    assert str(global_ptr) == "ptr addrspace(1)"
    assert global_ptr != ptr


def test_function_type(ctx):
    i32, i8, f64 = ctx.create_i32_type(), ctx.create_i8_type(), ctx.create_f64_type()
    fnty = ctx.create_func_type(i32, [i8, f64], is_var_arg=True)
    assert fnty.get_type_kind() is TypeKind.FUNCTION
    assert fnty.get_return_type() is i32
    assert fnty.get_param_types() == [i8, f64]
    assert fnty.count_param_types() == 2
    assert fnty.is_function_var_arg()
    assert str(fnty) == "i32 (i8, double, ...)"

    void_fn = ctx.create_func_type(ctx.create_void_type(), [])
    assert void_fn.get_param_types() == []
    assert not void_fn.is_function_var_arg()


def test_type_knows_its_context(ctx):
    assert ctx.create_i32_type().get_context() is ctx
