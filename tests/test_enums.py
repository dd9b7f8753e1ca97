"""Enum tables and their backend mappings."""
from __future__ import annotations

import enum

import pytest
from llvmlite import binding as llvm

from safellvm import CastOpcode, IntPredicate, Linkage, RealPredicate
from safellvm.backend.enums import (
    UNSUPPORTED_LINKAGES,
    _bimap,
    cast_opcode_from_opname,
    cast_opname,
    int_predicate_from_mnemonic,
    int_predicate_operator,
    linkage_from_native,
    linkage_keyword,
    linkage_to_native,
    real_predicate_operator,
)


class _Color(enum.Enum):
    RED = 1
    BLUE = 2


def test_bimap_rejects_partial_table():
    with pytest.raises(ValueError, match="BLUE"):
        _bimap(_Color, {_Color.RED: "red"})


def test_bimap_rejects_shared_targets():
    with pytest.raises(ValueError, match="one-to-one"):
        _bimap(_Color, {_Color.RED: "x", _Color.BLUE: "x"})


def test_native_tag_values():
    assert IntPredicate.EQ == 32
    assert IntPredicate.SLE == 41
    assert CastOpcode.TRUNC == 30
    assert CastOpcode.ADDR_SPACE_CAST == 60
    assert RealPredicate.PREDICATE_TRUE == 15


@pytest.mark.parametrize("linkage", list(Linkage))
def test_linkage_native_round_trip(linkage):
    native = linkage_to_native(linkage)
    assert isinstance(native, llvm.Linkage)
    assert linkage_from_native(native) is linkage


def test_linkage_keywords():
    assert linkage_keyword(Linkage.EXTERNAL) == ""
    assert linkage_keyword(Linkage.LINK_ONCE_ANY) == "linkonce"
    assert linkage_keyword(Linkage.LINKER_PRIVATE_WEAK) == "private"
    for linkage in UNSUPPORTED_LINKAGES:
        assert linkage_keyword(linkage) is None


@pytest.mark.parametrize("pred, expected", [
    (IntPredicate.EQ, (True, "==")),
    (IntPredicate.NE, (True, "!=")),
    (IntPredicate.UGT, (False, ">")),
    (IntPredicate.SLE, (True, "<=")),
])
def test_int_predicate_operator(pred, expected):
    assert int_predicate_operator(pred) == expected


def test_int_predicate_mnemonics():
    assert int_predicate_from_mnemonic("ult") is IntPredicate.ULT
    with pytest.raises(KeyError):
        int_predicate_from_mnemonic("lt")


@pytest.mark.parametrize("pred, expected", [
    (RealPredicate.OEQ, (True, "==")),
    (RealPredicate.UNE, (False, "!=")),
    (RealPredicate.ORD, (True, "ord")),
    (RealPredicate.UNO, (True, "uno")),
    (RealPredicate.PREDICATE_FALSE, (True, "false")),
])
def test_real_predicate_operator(pred, expected):
    assert real_predicate_operator(pred) == expected


@pytest.mark.parametrize("opcode", list(CastOpcode))
def test_cast_opnames(opcode):
    assert cast_opcode_from_opname(cast_opname(opcode)) is opcode
