"""
Value wrappers: functions, instructions, parameters and constants.

One class covers all four, as in the backend. Function-only operations check
the underlying object at run time. A function Value is also the owner of its
blocks, parameters and instructions and interns their wrappers, so asking
for the same backend object twice returns the same wrapper.
"""
from __future__ import annotations

import sys
import typing
from typing import Dict, List, Optional

from llvmlite import ir

from safellvm.backend.basic_block import BasicBlock, is_terminator
from safellvm.backend.enums import (
    IntPredicate,
    Linkage,
    RealPredicate,
    VerifierFailureAction,
    int_predicate_from_mnemonic,
    linkage_from_keyword,
    linkage_keyword,
    real_predicate_from_mnemonic,
)
from safellvm.backend.handle import Handle
from safellvm.backend.utils import require_function
from safellvm.internals.errors import raise_error
if typing.TYPE_CHECKING:
    from safellvm.backend.context import Context
    from safellvm.backend.llvm_types import Type
    from safellvm.backend.module import Module


class Value(Handle):
    """A function, instruction, parameter or constant."""

    _kind = "value"

    def __init__(self, raw: ir.Value, owner: Handle, context: 'Context') -> None:
        super().__init__(raw, owner=owner)
        self._context = context
        self._key = id(raw)
        self._children: Dict[int, Handle] = {}

    def __eq__(self, other):
        if not isinstance(other, Value):
            return NotImplemented
        return self._key == other._key

    def __hash__(self):
        return self._key

    def __repr__(self):
        if self._disposed:
            return "<Value (disposed)>"
        return f"<Value {getattr(self._raw, 'name', '') or str(self._raw).strip()!r}>"

    def _adopt(self, raw, cls: Optional[type] = None) -> Handle:
        """Wrapper for a block, parameter or instruction of this function."""
        child = self._children.get(id(raw))
        if child is None:
            if cls is None:
                cls = BasicBlock if isinstance(raw, ir.Block) else Value
            child = cls(raw, owner=self, context=self._context)
            self._children[id(raw)] = child
        return child

    #
    # --- Introspection
    #

    def get_type(self) -> 'Type':
        return self._context._wrap_type(self.raw.type)

    def get_name(self) -> str:
        return getattr(self.raw, "name", "")

    def print_to_string(self) -> str:
        return str(self.raw).strip()

    def is_function(self) -> bool:
        return isinstance(self.raw, ir.Function)

    def is_instruction(self) -> bool:
        return isinstance(self.raw, ir.Instruction)

    def is_terminator(self) -> bool:
        return is_terminator(self.raw)

    def is_constant(self) -> bool:
        return isinstance(self.raw, ir.Constant)

    def get_instruction_parent(self) -> BasicBlock:
        """The block an instruction lives in."""
        raw = self.raw
        if not isinstance(raw, ir.Instruction) or not isinstance(self._owner, Value):
            raise_error("SL0202", value=self.get_name() or str(raw).strip())
        return self._owner._adopt(raw.parent)

    def get_icmp_predicate(self) -> IntPredicate:
        raw = self.raw
        if not isinstance(raw, ir.ICMPInstr):
            raise_error("SL0300", expected="icmp instruction", ty=str(raw).strip())
        return int_predicate_from_mnemonic(raw.op)

    def get_fcmp_predicate(self) -> RealPredicate:
        raw = self.raw
        if not isinstance(raw, ir.FCMPInstr):
            raise_error("SL0300", expected="fcmp instruction", ty=str(raw).strip())
        return real_predicate_from_mnemonic(raw.op)

    #
    # --- Function operations
    #

    def get_param(self, index: int) -> 'Value':
        """Parameter *index* of this function.

        Out-of-range indices are not checked here; the backend raises
        ``IndexError``.
        """
        fn = require_function(self)
        return self._adopt(fn.args[index])

    def get_params(self) -> List['Value']:
        fn = require_function(self)
        return [self._adopt(arg) for arg in fn.args]

    def count_params(self) -> int:
        return len(require_function(self).args)

    def get_basic_blocks(self) -> List[BasicBlock]:
        fn = require_function(self)
        return [self._adopt(block) for block in fn.blocks]

    def get_entry_basic_block(self) -> Optional[BasicBlock]:
        fn = require_function(self)
        return self._adopt(fn.blocks[0]) if fn.blocks else None

    def set_linkage(self, linkage: Linkage) -> None:
        """Set the function's linkage.

        Linkages the backend dropped (dllimport, dllexport, ghost and
        linkonce_odr_autohide) have no IR spelling and are ignored with a
        warning, like the native setter does.
        """
        fn = require_function(self)
        keyword = linkage_keyword(linkage)
        if keyword is None:
            print(f"warning: {linkage.name.lower()} linkage is no longer supported, "
                  f"'{fn.name}' keeps {fn.linkage or 'external'} linkage", file=sys.stderr)
            return
        fn.linkage = keyword

    def get_linkage(self) -> Linkage:
        return linkage_from_keyword(require_function(self).linkage)

    def verify_function(self,
                        action: VerifierFailureAction = VerifierFailureAction.RETURN_STATUS) -> bool:
        """Check this function's structure. True iff it is valid.

        *action* selects what happens on failure: return False quietly,
        print the diagnostics to stderr and return False, or print them and
        raise ``VerificationAbort``.
        """
        from safellvm.backend.verifier import verify_function

        fn = require_function(self)
        module: 'Module' = self._owner
        return verify_function(module, fn, action)

    def delete_function(self) -> None:
        """Remove this function from its module.

        The wrapper and every block, parameter and instruction derived from
        it become unusable afterwards.
        """
        fn = require_function(self)
        module: 'Module' = self._owner
        module._remove_function(self, fn)
        self._children.clear()
        self._invalidate()
