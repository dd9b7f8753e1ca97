"""
Instruction builder: one insertion cursor and the instruction families.

The cursor is the pair (current block, insertion offset) held by the
wrapped ``ir.IRBuilder`` plus the BasicBlock wrapper for that block. Every
positioning call validates first and then replaces the whole pair, so a
failed call leaves the previous position intact.

Operands are handed to the backend as given. Type mismatches are only
caught where ``llvmlite.ir`` itself refuses them (``ValueError`` or
``TypeError``) or later by verification.
"""
from __future__ import annotations

import typing
from typing import Optional, Sequence

from llvmlite import ir

from safellvm.backend.basic_block import BasicBlock
from safellvm.backend.enums import (
    CastOpcode,
    IntPredicate,
    RealPredicate,
    cast_opname,
    int_predicate_operator,
    real_predicate_operator,
)
from safellvm.backend.handle import Disposable
from safellvm.backend.llvm_types import Type, float_width
from safellvm.backend.llvm_values import Value
from safellvm.backend.utils import require_in_block, require_kind, require_positioned
from safellvm.internals.errors import raise_error
if typing.TYPE_CHECKING:
    from safellvm.backend.context import Context


def _binary(opname: str, doc: str):
    def build(self: 'Builder', lhs: Value, rhs: Value, name: str = "") -> Value:
        return self._emit(opname, lhs.raw, rhs.raw, name=name)
    build.__doc__ = doc
    return build


def _unary(opname: str, doc: str):
    def build(self: 'Builder', value: Value, name: str = "") -> Value:
        return self._emit(opname, value.raw, name=name)
    build.__doc__ = doc
    return build


def _cast(opname: str, doc: str):
    def build(self: 'Builder', value: Value, dest_ty: Type, name: str = "") -> Value:
        return self._emit(opname, value.raw, dest_ty.raw, name=name)
    build.__doc__ = doc
    return build


def _scalar_fp_bits(raw: ir.Type) -> Optional[int]:
    if isinstance(raw, ir.VectorType):
        raw = raw.element
    return float_width(raw)


class Builder(Disposable):
    """Single-cursor instruction emitter created by a Context."""

    _kind = "builder"

    def __init__(self, context: 'Context') -> None:
        super().__init__(ir.IRBuilder(), owner=context)
        self._context = context
        self._block: Optional[BasicBlock] = None

    def __repr__(self):
        if self._disposed:
            return "<Builder (disposed)>"
        where = self._block._raw.name if self._block is not None and self._block._raw else None
        return f"<Builder at {where!r}>"

    def _release(self) -> None:
        self._block = None
        self._context._untrack(self)

    def _emit(self, opname: str, *args, **kwargs) -> Value:
        block = require_positioned(self)
        raw = getattr(self.raw, opname)(*args, **kwargs)
        return block.get_parent()._adopt(raw)

    #
    # --- Positioning
    #

    def position(self, block: BasicBlock, instruction: Optional[Value] = None) -> None:
        """Move the cursor before *instruction* in *block*, or to the end of
        *block* when no instruction is given.

        Raises:
            BuilderPositionError: If *instruction* is not in *block*.
        """
        if instruction is None:
            self.position_at_end(block)
            return
        raw_instr = require_in_block(instruction, block)
        self.raw.position_before(raw_instr)
        self._block = block

    def position_before(self, instruction: Value) -> None:
        """Move the cursor before *instruction*, in whatever block holds it."""
        block = instruction.get_instruction_parent()
        self.position(block, instruction)

    def position_at_end(self, block: BasicBlock) -> None:
        raw_block = block.raw
        self.raw.position_at_end(raw_block)
        self._block = block

    def get_insert_block(self) -> BasicBlock:
        """The block the cursor is in.

        Raises:
            NullHandleError: If the builder was never positioned.
        """
        self._check_alive()
        if self._block is None:
            raise_error("SL0001", kind="insert block")
        self._block._check_alive()
        return self._block

    def is_positioned(self) -> bool:
        self._check_alive()
        return self._block is not None

    #
    # --- Constants
    #

    def const_int(self, integer_type: Type, value: int, sign_extend: bool = False) -> Value:
        self._check_alive()
        return self._context.const_int(integer_type, value, sign_extend)

    #
    # --- Arithmetic and bitwise
    #

    build_add = _binary("add", "Integer addition.")
    build_sub = _binary("sub", "Integer subtraction.")
    build_mul = _binary("mul", "Integer multiplication.")
    build_sdiv = _binary("sdiv", "Signed integer division.")
    build_udiv = _binary("udiv", "Unsigned integer division.")
    build_srem = _binary("srem", "Signed integer remainder.")
    build_urem = _binary("urem", "Unsigned integer remainder.")
    build_and = _binary("and_", "Bitwise and.")
    build_or = _binary("or_", "Bitwise or.")
    build_xor = _binary("xor", "Bitwise exclusive or.")
    build_shl = _binary("shl", "Shift left.")
    build_lshr = _binary("lshr", "Logical shift right.")
    build_ashr = _binary("ashr", "Arithmetic shift right.")
    build_fadd = _binary("fadd", "Floating point addition.")
    build_fsub = _binary("fsub", "Floating point subtraction.")
    build_fmul = _binary("fmul", "Floating point multiplication.")
    build_fdiv = _binary("fdiv", "Floating point division.")
    build_frem = _binary("frem", "Floating point remainder.")

    build_neg = _unary("neg", "Integer negation, emitted as ``sub 0, value``.")
    build_fneg = _unary("fneg", "Floating point negation.")
    build_not = _unary("not_", "Bitwise complement, emitted as ``xor value, -1``.")

    #
    # --- Comparison
    #

    def build_icmp(self, predicate: IntPredicate, lhs: Value, rhs: Value, name: str = "") -> Value:
        signed, op = int_predicate_operator(predicate)
        method = "icmp_signed" if signed else "icmp_unsigned"
        return self._emit(method, op, lhs.raw, rhs.raw, name=name)

    def build_fcmp(self, predicate: RealPredicate, lhs: Value, rhs: Value, name: str = "") -> Value:
        ordered, op = real_predicate_operator(predicate)
        method = "fcmp_ordered" if ordered else "fcmp_unordered"
        return self._emit(method, op, lhs.raw, rhs.raw, name=name)

    #
    # --- Casts
    #

    build_trunc = _cast("trunc", "Integer truncation.")
    build_zext = _cast("zext", "Integer zero extension.")
    build_sext = _cast("sext", "Integer sign extension.")
    build_fptrunc = _cast("fptrunc", "Floating point narrowing.")
    build_fpext = _cast("fpext", "Floating point widening.")
    build_fptosi = _cast("fptosi", "Floating point to signed integer.")
    build_fptoui = _cast("fptoui", "Floating point to unsigned integer.")
    build_sitofp = _cast("sitofp", "Signed integer to floating point.")
    build_uitofp = _cast("uitofp", "Unsigned integer to floating point.")
    build_ptrtoint = _cast("ptrtoint", "Pointer to integer.")
    build_inttoptr = _cast("inttoptr", "Integer to pointer.")
    build_bit_cast = _cast("bitcast", "Reinterpret the bits of a value as another type.")
    build_addrspace_cast = _cast("addrspacecast", "Pointer address space conversion.")

    def build_fpcast(self, value: Value, dest_ty: Type, name: str = "") -> Value:
        """Floating point cast choosing widen, narrow or bitcast by bit width."""
        src_bits = _scalar_fp_bits(value.raw.type)
        dst_bits = _scalar_fp_bits(dest_ty.raw)
        if src_bits is None or dst_bits is None or src_bits == dst_bits:
            opname = "bitcast"
        elif src_bits > dst_bits:
            opname = "fptrunc"
        else:
            opname = "fpext"
        return self._emit(opname, value.raw, dest_ty.raw, name=name)

    def build_cast(self, opcode: CastOpcode, value: Value, dest_ty: Type, name: str = "") -> Value:
        """Cast selected by opcode, for conversions without a named builder."""
        return self._emit(cast_opname(opcode), value.raw, dest_ty.raw, name=name)

    #
    # --- Memory
    #

    def build_alloca(self, ty: Type, name: str = "") -> Value:
        """Stack slot for one *ty*. Returns the pointer."""
        return self._emit("alloca", ty.raw, name=name)

    def build_array_alloca(self, ty: Type, count: Value, name: str = "") -> Value:
        return self._emit("alloca", ty.raw, size=count.raw, name=name)

    def build_load(self, ty: Type, pointer: Value, name: str = "") -> Value:
        return self._emit("load", pointer.raw, name=name, typ=ty.raw)

    def build_store(self, value: Value, pointer: Value) -> Value:
        return self._emit("store", value.raw, pointer.raw)

    #
    # --- Control flow
    #

    def build_br(self, dest: BasicBlock) -> Value:
        return self._emit("branch", dest.raw)

    def build_cond_br(self, condition: Value, then_block: BasicBlock,
                      else_block: BasicBlock) -> Value:
        return self._emit("cbranch", condition.raw, then_block.raw, else_block.raw)

    def build_return(self, value: Value) -> Value:
        return self._emit("ret", value.raw)

    def build_return_void(self) -> Value:
        return self._emit("ret_void")

    def build_unreachable(self) -> Value:
        return self._emit("unreachable")

    #
    # --- Calls
    #

    def build_call(self, function_type: Type, function: Value,
                   args: Sequence[Value], name: str = "") -> Value:
        """Call *function* as a function of type *function_type*.

        When the callee's own type differs from *function_type*, the callee is
        bitcast first, so any pointer can be called with an explicit
        signature. Arguments are checked against *function_type* by the IR
        layer only (``TypeError`` on mismatch).
        """
        fnty = require_kind(function_type, "function", ir.FunctionType)
        callee = function.raw
        callee_ty = getattr(callee, "type", None)
        if not (isinstance(callee_ty, ir.PointerType) and not callee_ty.is_opaque
                and callee_ty.pointee == fnty):
            callee = self._retype_callee(callee, fnty)
        if isinstance(fnty.return_type, ir.VoidType):
            # void results cannot carry a name in textual IR
            name = ""
        return self._emit("call", callee, [a.raw for a in args], name=name)

    def _retype_callee(self, callee: ir.Value, fnty: ir.FunctionType) -> ir.Value:
        # IRBuilder.bitcast returns a plain ``ptr`` operand unchanged, since it
        # compares equal to every pointer type; the call needs the typed one.
        block = require_positioned(self)
        cast = ir.CastInstr(self.raw.block, "bitcast", callee, fnty.as_pointer())
        self.raw._insert(cast)
        block.get_parent()._adopt(cast)
        return cast
