"""Validation utilities for common checks in the wrapper layer.

This module provides reusable validation functions to reduce repetitive
precondition checks throughout the backend wrappers. All validation
functions raise a registered wrapper error on failure and return the
checked object, so they read naturally at the top of an operation.

Common Usage:
    fn = require_function(value)           # Validates and returns ir.Function
    block = require_positioned(builder)    # Validates and returns BasicBlock
    raw = require_kind(ty, "struct", ir.BaseStructType)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Tuple, Type, Union

from llvmlite import ir

from safellvm.internals.errors import raise_error

if TYPE_CHECKING:
    from safellvm.backend.basic_block import BasicBlock
    from safellvm.backend.builder import Builder
    from safellvm.backend.llvm_types import Type as WrappedType
    from safellvm.backend.llvm_values import Value


def require_function(value: 'Value') -> ir.Function:
    """Validate the value is a live function or raise SL0400.

    Verification, linkage changes, parameter access and deletion only make
    sense on functions. Instructions, parameters and constants share the
    same wrapper class, so the check happens at run time.

    Args:
        value: Value wrapper to check.

    Returns:
        The underlying ``ir.Function``.

    Raises:
        UsageError SL0400: If the value is not a function.
    """
    raw = value.raw
    if not isinstance(raw, ir.Function):
        raise_error("SL0400", value=_describe(raw))
    return raw


def require_positioned(builder: 'Builder') -> 'BasicBlock':
    """Validate the builder has an insertion point or raise SL0200.

    Every instruction builder calls this before emitting. The returned block
    is re-checked for liveness, so a cursor left in a deleted function fails
    here instead of emitting into a dead body.

    Args:
        builder: Builder to check.

    Returns:
        The BasicBlock wrapper the cursor is in.

    Raises:
        BuilderPositionError SL0200: If the builder was never positioned.
        DisposedHandleError: If the block's function has been deleted.
    """
    block = builder._block
    if block is None:
        raise_error("SL0200")
    block._check_alive()
    return block


def require_kind(ty: 'WrappedType', expected: str,
                 classes: Union[Type[ir.Type], Tuple[Type[ir.Type], ...]]) -> ir.Type:
    """Validate the type's backend class or raise SL0300.

    Args:
        ty: Type wrapper to check.
        expected: Human-readable kind for the error message.
        classes: ``ir`` type class(es) accepted.

    Returns:
        The underlying ``ir.Type``.
    """
    raw = ty.raw
    if not isinstance(raw, classes):
        raise_error("SL0300", expected=expected, ty=str(raw))
    return raw


def require_in_block(instruction: 'Value', block: 'BasicBlock') -> ir.Instruction:
    """Validate *instruction* lives in *block* or raise SL0201."""
    raw = instruction.raw
    raw_block = block.raw
    if not any(i is raw for i in raw_block.instructions):
        raise_error("SL0201", instr=_describe(raw), block=raw_block.name)
    return raw


def _describe(raw: object) -> str:
    name = getattr(raw, "name", "")
    return name or str(raw).strip()
