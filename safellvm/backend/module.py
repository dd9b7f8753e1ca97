"""
Module wrapper: the function table, target settings and emission entry points.
"""
from __future__ import annotations

import sys
import typing
from pathlib import Path
from typing import Dict, List, Optional, Union

from llvmlite import binding as llvm
from llvmlite import ir

from safellvm.backend.enums import CodeGenFileType, VerifierFailureAction
from safellvm.backend.handle import Disposable
from safellvm.backend.llvm_types import Type
from safellvm.backend.llvm_values import Value
from safellvm.backend.utils import require_kind
from safellvm.config import DEFAULT_CODEGEN_OPTIONS, CodegenOptions, get_default_target_triple
if typing.TYPE_CHECKING:
    from safellvm.backend.context import Context

PathLike = Union[str, Path]


class Module(Disposable):
    """A compilation unit created from a Context."""

    _kind = "module"

    def __init__(self, context: 'Context', name: str) -> None:
        super().__init__(ir.Module(name=name, context=context.raw), owner=context)
        self._context = context
        self._functions: Dict[int, Value] = {}

    def __repr__(self):
        if self._disposed:
            return "<Module (disposed)>"
        return f"<Module {self._raw.name!r}>"

    def _release(self) -> None:
        for fn in self._functions.values():
            fn._children.clear()
        self._functions.clear()
        self._context._untrack(self)

    def _wrap_function(self, raw: ir.Function) -> Value:
        fn = self._functions.get(id(raw))
        if fn is None:
            fn = self._functions[id(raw)] = Value(raw, owner=self, context=self._context)
        return fn

    def _remove_function(self, fn: Value, raw: ir.Function) -> None:
        # The name stays reserved in the module scope; ir.Module cannot free it.
        del self.raw.globals[raw.name]
        self._functions.pop(id(raw), None)

    def get_context(self) -> 'Context':
        self._check_alive()
        return self._context

    def get_name(self) -> str:
        return self.raw.name

    #
    # --- Functions
    #

    def add_function(self, name: str, function_type: Type) -> Value:
        """Declare a function. Add blocks to it to make it a definition.

        A name already used in this module gets a numeric suffix, matching the
        backend's renaming of colliding globals.
        """
        fnty = require_kind(function_type, "function", ir.FunctionType)
        raw_mod = self.raw
        raw = ir.Function(raw_mod, fnty, name=raw_mod.get_unique_name(name))
        return self._wrap_function(raw)

    def get_function(self, name: str) -> Optional[Value]:
        raw = self.raw.globals.get(name)
        if not isinstance(raw, ir.Function):
            return None
        return self._wrap_function(raw)

    def get_functions(self) -> List[Value]:
        return [self._wrap_function(fn) for fn in self.raw.functions]

    #
    # --- Target settings
    #

    def set_target(self, triple: str) -> None:
        self.raw.triple = triple

    def get_target(self) -> str:
        return self.raw.triple

    def set_data_layout(self, layout: str) -> None:
        self.raw.data_layout = layout

    def get_data_layout(self) -> str:
        return self.raw.data_layout

    #
    # --- Text, verification and emission
    #

    def print_to_string(self) -> str:
        return str(self.raw)

    def dump(self, numbered: bool = False) -> None:
        """Print the module's IR to stderr, optionally with line numbers."""
        text = self.print_to_string()
        if not numbered:
            print(text, file=sys.stderr)
            return
        print(f";; Module '{self.raw.name}'", file=sys.stderr)
        for i, line in enumerate(text.splitlines(), 1):
            print(f"{i:4} {line}", file=sys.stderr)

    def verify(self, action: VerifierFailureAction = VerifierFailureAction.RETURN_STATUS) -> bool:
        """Check every function and global of this module. True iff valid."""
        from safellvm.backend.verifier import verify_module

        return verify_module(self, action)

    def write_bitcode_to_file(self, path: PathLike) -> bool:
        """Serialize the module as bitcode to *path*.

        Returns:
            True on success. Any failure (IR the backend rejects, a path that
            cannot be written) gives False.
        """
        text = self.print_to_string()
        try:
            with llvm.create_context() as native:
                with llvm.parse_assembly(text, context=native) as llmod:
                    data = llmod.as_bitcode()
            Path(path).write_bytes(data)
        except (RuntimeError, OSError):
            return False
        return True

    def write_object_file(self, path: PathLike, triple: Optional[str] = None,
                          options: Optional[CodegenOptions] = None) -> None:
        """Lower the module to a native object file at *path*.

        Initializes the backend on first use, then looks up the target for
        *triple* (the default triple when None), builds a target machine from
        *options* (default opt level, PIC relocation, default code model
        unless given) and emits through it. The module itself is unchanged.

        Raises:
            TargetLookupError: No registered target for the triple.
            TargetMachineError: The backend rejected the configuration.
            EmissionError: Lowering or writing the file failed.
        """
        from safellvm.backend.llvm_target import Target, TargetMachine, initialize_all

        self._check_alive()
        initialize_all()
        triple = triple or get_default_target_triple()
        opts = options or DEFAULT_CODEGEN_OPTIONS
        target = Target.get_target_from_triple(triple)
        with TargetMachine.create(target, triple, opts.cpu, opts.features,
                                  opts.opt_level, opts.reloc_mode, opts.code_model) as tm:
            tm.emit_to_file(self, path, CodeGenFileType.OBJECT)
