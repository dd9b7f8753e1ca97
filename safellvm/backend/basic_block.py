"""Basic block wrapper."""
from __future__ import annotations

import typing
from typing import List, Optional

from llvmlite import ir

from safellvm.backend.handle import Handle
if typing.TYPE_CHECKING:
    from safellvm.backend.context import Context
    from safellvm.backend.llvm_values import Value

# unreachable is not an ir.Terminator subclass
_TERMINATOR_CLASSES = (ir.Terminator, ir.Unreachable)


def is_terminator(raw: ir.Value) -> bool:
    """True for instructions that end a block: branches, returns and unreachable."""
    return isinstance(raw, _TERMINATOR_CLASSES)


class BasicBlock(Handle):
    """A labeled instruction sequence owned by a function Value."""

    _kind = "basic block"

    def __init__(self, raw: ir.Block, owner: 'Value', context: 'Context') -> None:
        super().__init__(raw, owner=owner)
        self._context = context
        self._key = id(raw)

    def __eq__(self, other):
        if not isinstance(other, BasicBlock):
            return NotImplemented
        return self._key == other._key

    def __hash__(self):
        return self._key

    def __repr__(self):
        if self._disposed:
            return "<BasicBlock (disposed)>"
        return f"<BasicBlock {self._raw.name!r}>"

    def get_name(self) -> str:
        return self.raw.name

    def get_parent(self) -> 'Value':
        """The function this block belongs to."""
        self._check_alive()
        return self._owner

    def get_block_terminator(self) -> Optional['Value']:
        """The block's last instruction if it is a terminator, else None."""
        instructions = self.raw.instructions
        if not instructions or not is_terminator(instructions[-1]):
            return None
        return self._owner._adopt(instructions[-1])

    def get_instructions(self) -> List['Value']:
        return [self._owner._adopt(instr) for instr in self.raw.instructions]

    def get_first_instruction(self) -> Optional['Value']:
        instructions = self.raw.instructions
        return self._owner._adopt(instructions[0]) if instructions else None

    def get_last_instruction(self) -> Optional['Value']:
        instructions = self.raw.instructions
        return self._owner._adopt(instructions[-1]) if instructions else None
