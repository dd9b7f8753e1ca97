"""
Enumerations of the wrapper vocabulary and their backend mappings.

Every enum here carries the numeric tag the native LLVM-C API uses for the
same concept, so values can be exchanged with ``llvmlite.binding`` without
translation. Where the IR layer spells a concept as a string (linkage
keywords, comparison mnemonics, cast opcodes, target machine options), a
bidirectional table is built with ``_bimap``, which refuses to load the
module unless both directions are total.
"""
from __future__ import annotations

from enum import Enum, IntEnum
from typing import Dict, Mapping, Tuple, TypeVar

from llvmlite import binding as llvm

E = TypeVar('E', bound=Enum)
V = TypeVar('V')


class TypeKind(IntEnum):
    VOID = 0
    HALF = 1
    FLOAT = 2
    DOUBLE = 3
    X86_FP80 = 4
    FP128 = 5
    PPC_FP128 = 6
    LABEL = 7
    INTEGER = 8
    FUNCTION = 9
    STRUCT = 10
    ARRAY = 11
    POINTER = 12
    VECTOR = 13
    METADATA = 14
    X86_MMX = 15
    TOKEN = 16
    SCALABLE_VECTOR = 17
    BFLOAT = 18
    X86_AMX = 19
    TARGET_EXTENSION = 20


class Linkage(IntEnum):
    EXTERNAL = 0
    AVAILABLE_EXTERNALLY = 1
    LINK_ONCE_ANY = 2
    LINK_ONCE_ODR = 3
    LINK_ONCE_ODR_AUTO_HIDE = 4
    WEAK_ANY = 5
    WEAK_ODR = 6
    APPENDING = 7
    INTERNAL = 8
    PRIVATE = 9
    DLL_IMPORT = 10
    DLL_EXPORT = 11
    EXTERNAL_WEAK = 12
    GHOST = 13
    COMMON = 14
    LINKER_PRIVATE = 15
    LINKER_PRIVATE_WEAK = 16


class IntPredicate(IntEnum):
    EQ = 32
    NE = 33
    UGT = 34
    UGE = 35
    ULT = 36
    ULE = 37
    SGT = 38
    SGE = 39
    SLT = 40
    SLE = 41


class RealPredicate(IntEnum):
    PREDICATE_FALSE = 0
    OEQ = 1
    OGT = 2
    OGE = 3
    OLT = 4
    OLE = 5
    ONE = 6
    ORD = 7
    UNO = 8
    UEQ = 9
    UGT = 10
    UGE = 11
    ULT = 12
    ULE = 13
    UNE = 14
    PREDICATE_TRUE = 15


class CastOpcode(IntEnum):
    TRUNC = 30
    ZEXT = 31
    SEXT = 32
    FP_TO_UI = 33
    FP_TO_SI = 34
    UI_TO_FP = 35
    SI_TO_FP = 36
    FP_TRUNC = 37
    FP_EXT = 38
    PTR_TO_INT = 39
    INT_TO_PTR = 40
    BIT_CAST = 41
    ADDR_SPACE_CAST = 60


class CodeGenOptLevel(IntEnum):
    NONE = 0
    LESS = 1
    DEFAULT = 2
    AGGRESSIVE = 3


class RelocMode(IntEnum):
    DEFAULT = 0
    STATIC = 1
    PIC = 2
    DYNAMIC_NO_PIC = 3


class CodeModel(IntEnum):
    DEFAULT = 0
    JIT_DEFAULT = 1
    SMALL = 3
    KERNEL = 4
    MEDIUM = 5
    LARGE = 6


class CodeGenFileType(IntEnum):
    ASSEMBLY = 0
    OBJECT = 1


class VerifierFailureAction(IntEnum):
    ABORT_PROCESS = 0
    PRINT_MESSAGE = 1
    RETURN_STATUS = 2


class AddressSpace(IntEnum):
    GENERIC = 0
    GLOBAL = 1
    SHARED = 3
    CONST = 4
    LOCAL = 5
    PARAM = 101


def _bimap(enum_cls: type[E], table: Mapping[E, V]) -> Tuple[Dict[E, V], Dict[V, E]]:
    """Build forward and reverse lookup tables for *enum_cls*.

    Raises:
        ValueError: If a member is missing or two members share a target.
    """
    missing = [m.name for m in enum_cls if m not in table]
    if missing:
        raise ValueError(f"{enum_cls.__name__} has no mapping for {', '.join(missing)}")
    forward = dict(table)
    reverse = {v: k for k, v in forward.items()}
    if len(reverse) != len(forward):
        raise ValueError(f"{enum_cls.__name__} mapping is not one-to-one")
    return forward, reverse


#
# --- Native tag tables
#

_LINKAGE_TO_NATIVE, _NATIVE_TO_LINKAGE = _bimap(Linkage, {
    m: llvm.Linkage(m.value) for m in Linkage
})

# IR keyword per linkage. Obsolete linkages have no textual spelling; the
# two linker-private ones degrade to private the same way LLVMSetLinkage does.
_LINKAGE_KEYWORDS: Dict[Linkage, str] = {
    Linkage.EXTERNAL: "",
    Linkage.AVAILABLE_EXTERNALLY: "available_externally",
    Linkage.LINK_ONCE_ANY: "linkonce",
    Linkage.LINK_ONCE_ODR: "linkonce_odr",
    Linkage.WEAK_ANY: "weak",
    Linkage.WEAK_ODR: "weak_odr",
    Linkage.APPENDING: "appending",
    Linkage.INTERNAL: "internal",
    Linkage.PRIVATE: "private",
    Linkage.EXTERNAL_WEAK: "extern_weak",
    Linkage.COMMON: "common",
}
_LINKAGE_ALIASES: Dict[Linkage, Linkage] = {
    Linkage.LINKER_PRIVATE: Linkage.PRIVATE,
    Linkage.LINKER_PRIVATE_WEAK: Linkage.PRIVATE,
}
UNSUPPORTED_LINKAGES = frozenset({
    Linkage.LINK_ONCE_ODR_AUTO_HIDE,
    Linkage.DLL_IMPORT,
    Linkage.DLL_EXPORT,
    Linkage.GHOST,
})
_KEYWORD_TO_LINKAGE: Dict[str, Linkage] = {v: k for k, v in _LINKAGE_KEYWORDS.items()}
_KEYWORD_TO_LINKAGE["external"] = Linkage.EXTERNAL

_ICMP_MNEMONIC, _MNEMONIC_TO_ICMP = _bimap(IntPredicate, {
    IntPredicate.EQ: "eq",
    IntPredicate.NE: "ne",
    IntPredicate.UGT: "ugt",
    IntPredicate.UGE: "uge",
    IntPredicate.ULT: "ult",
    IntPredicate.ULE: "ule",
    IntPredicate.SGT: "sgt",
    IntPredicate.SGE: "sge",
    IntPredicate.SLT: "slt",
    IntPredicate.SLE: "sle",
})

_FCMP_MNEMONIC, _MNEMONIC_TO_FCMP = _bimap(RealPredicate, {
    RealPredicate.PREDICATE_FALSE: "false",
    RealPredicate.OEQ: "oeq",
    RealPredicate.OGT: "ogt",
    RealPredicate.OGE: "oge",
    RealPredicate.OLT: "olt",
    RealPredicate.OLE: "ole",
    RealPredicate.ONE: "one",
    RealPredicate.ORD: "ord",
    RealPredicate.UNO: "uno",
    RealPredicate.UEQ: "ueq",
    RealPredicate.UGT: "ugt",
    RealPredicate.UGE: "uge",
    RealPredicate.ULT: "ult",
    RealPredicate.ULE: "ule",
    RealPredicate.UNE: "une",
    RealPredicate.PREDICATE_TRUE: "true",
})

# Relation suffix -> comparison operator accepted by ir.IRBuilder
_CMP_OPERATORS = {
    "eq": "==",
    "ne": "!=",
    "gt": ">",
    "ge": ">=",
    "lt": "<",
    "le": "<=",
}

_CAST_OPNAME, _OPNAME_TO_CAST = _bimap(CastOpcode, {
    CastOpcode.TRUNC: "trunc",
    CastOpcode.ZEXT: "zext",
    CastOpcode.SEXT: "sext",
    CastOpcode.FP_TO_UI: "fptoui",
    CastOpcode.FP_TO_SI: "fptosi",
    CastOpcode.UI_TO_FP: "uitofp",
    CastOpcode.SI_TO_FP: "sitofp",
    CastOpcode.FP_TRUNC: "fptrunc",
    CastOpcode.FP_EXT: "fpext",
    CastOpcode.PTR_TO_INT: "ptrtoint",
    CastOpcode.INT_TO_PTR: "inttoptr",
    CastOpcode.BIT_CAST: "bitcast",
    CastOpcode.ADDR_SPACE_CAST: "addrspacecast",
})

_RELOC_NAMES, _NAME_TO_RELOC = _bimap(RelocMode, {
    RelocMode.DEFAULT: "default",
    RelocMode.STATIC: "static",
    RelocMode.PIC: "pic",
    RelocMode.DYNAMIC_NO_PIC: "dynamicnopic",
})

_CODE_MODEL_NAMES, _NAME_TO_CODE_MODEL = _bimap(CodeModel, {
    CodeModel.DEFAULT: "default",
    CodeModel.JIT_DEFAULT: "jitdefault",
    CodeModel.SMALL: "small",
    CodeModel.KERNEL: "kernel",
    CodeModel.MEDIUM: "medium",
    CodeModel.LARGE: "large",
})


#
# --- Conversions
#

def linkage_to_native(linkage: Linkage) -> llvm.Linkage:
    return _LINKAGE_TO_NATIVE[linkage]


def linkage_from_native(native: llvm.Linkage) -> Linkage:
    return _NATIVE_TO_LINKAGE[native]


def linkage_keyword(linkage: Linkage) -> str | None:
    """IR keyword for *linkage*, or None when the IR has no spelling for it."""
    linkage = _LINKAGE_ALIASES.get(linkage, linkage)
    return _LINKAGE_KEYWORDS.get(linkage)


def linkage_from_keyword(keyword: str) -> Linkage:
    return _KEYWORD_TO_LINKAGE[keyword]


def int_predicate_operator(pred: IntPredicate) -> Tuple[bool, str]:
    """Split *pred* into (signed, operator) for ``icmp_signed``/``icmp_unsigned``."""
    mnemonic = _ICMP_MNEMONIC[pred]
    if mnemonic in ("eq", "ne"):
        return True, _CMP_OPERATORS[mnemonic]
    return mnemonic[0] == "s", _CMP_OPERATORS[mnemonic[1:]]


def int_predicate_from_mnemonic(mnemonic: str) -> IntPredicate:
    return _MNEMONIC_TO_ICMP[mnemonic]


def real_predicate_operator(pred: RealPredicate) -> Tuple[bool, str]:
    """Split *pred* into (ordered, operator) for ``fcmp_ordered``/``fcmp_unordered``.

    Predicates without a relation (false, true, ord, uno) are passed through
    verbatim, which both builder entry points accept.
    """
    mnemonic = _FCMP_MNEMONIC[pred]
    relation = _CMP_OPERATORS.get(mnemonic[1:])
    if relation is None:
        return True, mnemonic
    return mnemonic[0] == "o", relation


def real_predicate_from_mnemonic(mnemonic: str) -> RealPredicate:
    return _MNEMONIC_TO_FCMP[mnemonic]


def cast_opname(opcode: CastOpcode) -> str:
    return _CAST_OPNAME[opcode]


def cast_opcode_from_opname(opname: str) -> CastOpcode:
    return _OPNAME_TO_CAST[opname]


def reloc_name(mode: RelocMode) -> str:
    return _RELOC_NAMES[mode]


def code_model_name(model: CodeModel) -> str:
    return _CODE_MODEL_NAMES[model]
