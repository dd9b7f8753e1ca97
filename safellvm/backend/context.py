"""
The root authority: type uniquing and the factory for everything else.

A Context pairs an ``llvmlite.ir.Context`` (the identified-struct table the
IR layer builds against) with a native ``llvmlite.binding`` context used
when modules are parsed for verification and emission. Modules and
Builders created here are tracked; the Context refuses to be disposed
while any of them is still alive.
"""
from __future__ import annotations

import typing
from typing import Dict, Sequence, Set, Union

from llvmlite import binding as llvm
from llvmlite import ir

from safellvm.backend.basic_block import BasicBlock
from safellvm.backend.enums import AddressSpace
from safellvm.backend.handle import Disposable, Handle
from safellvm.backend.llvm_types import (
    BFloatType,
    FP128Type,
    PPCFP128Type,
    Type,
    X86FP80Type,
)
from safellvm.backend.llvm_values import Value
from safellvm.backend.utils import require_function, require_kind
from safellvm.internals.errors import make_error, raise_error
if typing.TYPE_CHECKING:
    from safellvm.backend.builder import Builder
    from safellvm.backend.module import Module

_U64 = (1 << 64) - 1


def const_int_value(width: int, value: int, sign_extend: bool) -> Union[int, bool]:
    """Python value for an integer constant, read the way LLVMConstInt reads it.

    *value* is taken as a 64-bit pattern, sign- or zero-extended to *width*
    bits and truncated. The result is printed in signed form (or as a
    boolean for i1) so the textual IR parser accepts it at any width.
    """
    bits = value & _U64
    if sign_extend and bits >> 63:
        bits -= 1 << 64
    bits &= (1 << width) - 1
    if width == 1:
        return bool(bits)
    if bits >> (width - 1):
        bits -= 1 << width
    return bits


class Context(Disposable):
    """Owner of types, modules and builders."""

    _kind = "context"

    def __init__(self, raw: ir.Context, native: llvm.ContextRef) -> None:
        super().__init__(raw)
        if native is None:
            raise_error("SL0001", kind="native context")
        self._native = native
        self._types: Dict[ir.Type, Type] = {}
        self._live: Set[Handle] = set()

    @classmethod
    def create(cls) -> 'Context':
        """Create a fresh context.

        Raises:
            NullHandleError: If the backend cannot allocate a native context.
        """
        try:
            native = llvm.create_context()
        except ValueError as e:
            raise make_error("SL0001", kind="native context") from e
        return cls(ir.Context(), native)

    def __repr__(self):
        state = "disposed" if self._disposed else f"{len(self._live)} live"
        return f"<Context ({state})>"

    @property
    def native(self) -> llvm.ContextRef:
        """Backend context that parsed modules belong to."""
        self._check_alive()
        return self._native

    def _release(self) -> None:
        if self._live:
            names = ", ".join(sorted(repr(h) for h in self._live))
            raise_error("SL0100", kind=self._kind, count=len(self._live), names=names)
        self._native.close()
        self._types.clear()

    def _track(self, handle: Handle) -> None:
        self._live.add(handle)

    def _untrack(self, handle: Handle) -> None:
        self._live.discard(handle)

    def _wrap_type(self, raw: ir.Type) -> Type:
        self._check_alive()
        ty = self._types.get(raw)
        if ty is None:
            ty = self._types[raw] = Type(raw, self)
        return ty

    #
    # --- Factories
    #

    def create_module(self, name: str) -> 'Module':
        from safellvm.backend.module import Module

        module = Module(self, name)
        self._track(module)
        return module

    def create_builder(self) -> 'Builder':
        from safellvm.backend.builder import Builder

        builder = Builder(self)
        self._track(builder)
        return builder

    def append_basic_block(self, function: Value, name: str = "") -> BasicBlock:
        """Append a new block to *function*.

        A name already used in the function gets a numeric suffix.
        """
        fn = require_function(function)
        return function._adopt(fn.append_basic_block(name))

    def const_int(self, integer_type: Type, value: int, sign_extend: bool = False) -> Value:
        raw_ty = require_kind(integer_type, "integer", ir.IntType)
        const = ir.Constant(raw_ty, const_int_value(raw_ty.width, value, sign_extend))
        return Value(const, owner=self, context=self)

    #
    # --- Primitive types
    #

    def create_void_type(self) -> Type:
        return self._wrap_type(ir.VoidType())

    def create_int_type(self, bits: int) -> Type:
        return self._wrap_type(ir.IntType(bits))

    def create_i1_type(self) -> Type:
        return self.create_int_type(1)

    def create_i8_type(self) -> Type:
        return self.create_int_type(8)

    def create_i16_type(self) -> Type:
        return self.create_int_type(16)

    def create_i32_type(self) -> Type:
        return self.create_int_type(32)

    def create_i64_type(self) -> Type:
        return self.create_int_type(64)

    def create_i128_type(self) -> Type:
        return self.create_int_type(128)

    def create_bf16_type(self) -> Type:
        return self._wrap_type(BFloatType())

    def create_f16_type(self) -> Type:
        return self._wrap_type(ir.HalfType())

    def create_f32_type(self) -> Type:
        return self._wrap_type(ir.FloatType())

    def create_f64_type(self) -> Type:
        return self._wrap_type(ir.DoubleType())

    def create_x86_f80_type(self) -> Type:
        return self._wrap_type(X86FP80Type())

    def create_f128_type(self) -> Type:
        return self._wrap_type(FP128Type())

    def create_ppc_f128_type(self) -> Type:
        return self._wrap_type(PPCFP128Type())

    def create_label_type(self) -> Type:
        return self._wrap_type(ir.LabelType())

    #
    # --- Compound types
    #

    def create_ptr_type(self, address_space: Union[AddressSpace, int] = AddressSpace.GENERIC) -> Type:
        return self._wrap_type(ir.PointerType(addrspace=int(address_space)))

    def create_func_type(self, return_ty: Type, param_tys: Sequence[Type],
                         is_var_arg: bool = False) -> Type:
        raw = ir.FunctionType(return_ty.raw, [p.raw for p in param_tys], var_arg=is_var_arg)
        return self._wrap_type(raw)

    def create_array_type(self, element_ty: Type, size: int) -> Type:
        return self._wrap_type(ir.ArrayType(element_ty.raw, size))

    def create_vector_type(self, element_ty: Type, size: int) -> Type:
        return self._wrap_type(ir.VectorType(element_ty.raw, size))

    def create_struct_type(self, element_tys: Sequence[Type], is_packed: bool = False) -> Type:
        raw = ir.LiteralStructType([e.raw for e in element_tys], packed=is_packed)
        return self._wrap_type(raw)

    def create_named_struct_type(self, name: str) -> Type:
        """Declare an opaque named struct. Give it a body with ``set_struct_body``.

        A name already taken in this context gets a numeric suffix, so each
        call yields a distinct type.
        """
        raw_ctx = self.raw
        name = raw_ctx.scope.deduplicate(name)
        return self._wrap_type(raw_ctx.get_identified_type(name))

    def get_named_struct_type(self, name: str) -> Type | None:
        raw = self.raw.identified_types.get(name)
        return None if raw is None else self._wrap_type(raw)
