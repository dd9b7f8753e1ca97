"""
Type wrappers and the float kinds missing from ``llvmlite.ir``.

Types are never disposed on their own: a Context interns one ``Type``
wrapper per distinct backend type and every wrapper dies with the Context.
"""
from __future__ import annotations

import typing
from typing import Dict, List, Optional, Sequence

from llvmlite import ir

from safellvm.backend.enums import TypeKind
from safellvm.backend.handle import Handle
from safellvm.backend.utils import require_kind
from safellvm.internals.errors import raise_error
if typing.TYPE_CHECKING:
    from safellvm.backend.context import Context


class _ExtendedFloatType(ir.Type):
    """Floating point kinds the IR layer has no class for.

    One instance per subclass, compared by class, like ``ir.FloatType``.
    """
    null = '0.0'
    _name = ''
    _instances: Dict[type, '_ExtendedFloatType'] = {}

    def __new__(cls):
        inst = cls._instances.get(cls)
        if inst is None:
            inst = cls._instances[cls] = super().__new__(cls)
        return inst

    def _to_string(self):
        return self._name

    def __eq__(self, other):
        return type(other) is type(self)

    def __hash__(self):
        return hash(type(self))

    @property
    def intrinsic_name(self):
        return self._name


class BFloatType(_ExtendedFloatType):
    _name = 'bfloat'


class X86FP80Type(_ExtendedFloatType):
    _name = 'x86_fp80'


class FP128Type(_ExtendedFloatType):
    _name = 'fp128'


class PPCFP128Type(_ExtendedFloatType):
    _name = 'ppc_fp128'


# Most specific class first; lookups walk the MRO.
_KIND_BY_CLASS: Dict[type, TypeKind] = {
    ir.VoidType: TypeKind.VOID,
    ir.HalfType: TypeKind.HALF,
    ir.FloatType: TypeKind.FLOAT,
    ir.DoubleType: TypeKind.DOUBLE,
    X86FP80Type: TypeKind.X86_FP80,
    FP128Type: TypeKind.FP128,
    PPCFP128Type: TypeKind.PPC_FP128,
    ir.LabelType: TypeKind.LABEL,
    ir.IntType: TypeKind.INTEGER,
    ir.FunctionType: TypeKind.FUNCTION,
    ir.BaseStructType: TypeKind.STRUCT,
    ir.ArrayType: TypeKind.ARRAY,
    ir.PointerType: TypeKind.POINTER,
    ir.VectorType: TypeKind.VECTOR,
    ir.MetaDataType: TypeKind.METADATA,
    BFloatType: TypeKind.BFLOAT,
}

FLOAT_WIDTHS: Dict[type, int] = {
    ir.HalfType: 16,
    BFloatType: 16,
    ir.FloatType: 32,
    ir.DoubleType: 64,
    X86FP80Type: 80,
    FP128Type: 128,
    PPCFP128Type: 128,
}


def kind_of(raw: ir.Type) -> TypeKind:
    for cls in type(raw).__mro__:
        kind = _KIND_BY_CLASS.get(cls)
        if kind is not None:
            return kind
    raise TypeError(f"unclassified backend type {raw!r}")


def float_width(raw: ir.Type) -> Optional[int]:
    """Bit width of a floating point type, or None for anything else."""
    return FLOAT_WIDTHS.get(type(raw))


class Type(Handle):
    """A value's shape, owned by the Context that created it."""

    _kind = "type"

    def __init__(self, raw: ir.Type, context: 'Context') -> None:
        super().__init__(raw, owner=context)
        self._context = context
        self._hash = hash(raw)

    def __eq__(self, other):
        if not isinstance(other, Type):
            return NotImplemented
        if self is other:
            return True
        return self._raw is not None and bool(self._raw == other._raw)

    def __hash__(self):
        return self._hash

    def __repr__(self):
        return f"<Type {self._raw}>"

    def __str__(self):
        return str(self.raw)

    def _wrap(self, raw: ir.Type) -> 'Type':
        return self._context._wrap_type(raw)

    def get_context(self) -> 'Context':
        self._check_alive()
        return self._context

    def get_type_kind(self) -> TypeKind:
        return kind_of(self.raw)

    def print_to_string(self) -> str:
        return str(self.raw)

    # Integer

    def get_int_type_width(self) -> int:
        return require_kind(self, "integer", ir.IntType).width

    # Struct

    def get_struct_name(self) -> Optional[str]:
        raw = require_kind(self, "struct", ir.BaseStructType)
        if isinstance(raw, ir.IdentifiedStructType):
            return raw.name
        return None

    def get_struct_element_count(self) -> int:
        raw = require_kind(self, "struct", ir.BaseStructType)
        return 0 if raw.elements is None else len(raw.elements)

    def get_struct_element_tys(self) -> List['Type']:
        raw = require_kind(self, "struct", ir.BaseStructType)
        return [self._wrap(el) for el in raw.elements or ()]

    def get_struct_element_ty(self, index: int) -> Optional['Type']:
        raw = require_kind(self, "struct", ir.BaseStructType)
        elements = raw.elements or ()
        if not 0 <= index < len(elements):
            return None
        return self._wrap(elements[index])

    def is_struct_packed(self) -> bool:
        return require_kind(self, "struct", ir.BaseStructType).packed

    def is_struct_opaque(self) -> bool:
        return require_kind(self, "struct", ir.BaseStructType).is_opaque

    def is_struct_literal(self) -> bool:
        return isinstance(require_kind(self, "struct", ir.BaseStructType),
                          ir.LiteralStructType)

    def set_struct_body(self, element_tys: Sequence['Type'], is_packed: bool = False) -> None:
        """Give a named struct its elements.

        Raises:
            UsageError SL0300: If this is not a named struct.
            RuntimeError: If the backend already has a body for it.
        """
        raw = require_kind(self, "named struct", ir.IdentifiedStructType)
        raw.set_body(*[t.raw for t in element_tys])
        raw.packed = is_packed

    # Array / vector / pointer

    def get_element_type(self) -> 'Type':
        raw = self.raw
        if isinstance(raw, (ir.ArrayType, ir.VectorType)):
            return self._wrap(raw.element)
        if isinstance(raw, ir.PointerType) and not raw.is_opaque:
            return self._wrap(raw.pointee)
        raise_error("SL0300", expected="array, vector or typed pointer", ty=str(raw))

    def get_array_length(self) -> int:
        return require_kind(self, "array", ir.ArrayType).count

    def get_vector_size(self) -> int:
        return require_kind(self, "vector", ir.VectorType).count

    def is_pointer_opaque(self) -> bool:
        return require_kind(self, "pointer", ir.PointerType).is_opaque

    def get_pointer_address_space(self) -> int:
        return require_kind(self, "pointer", ir.PointerType).addrspace

    # Function

    def get_return_type(self) -> 'Type':
        return self._wrap(require_kind(self, "function", ir.FunctionType).return_type)

    def get_param_types(self) -> List['Type']:
        raw = require_kind(self, "function", ir.FunctionType)
        return [self._wrap(arg) for arg in raw.args]

    def count_param_types(self) -> int:
        return len(require_kind(self, "function", ir.FunctionType).args)

    def is_function_var_arg(self) -> bool:
        return require_kind(self, "function", ir.FunctionType).var_arg
