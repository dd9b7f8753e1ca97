"""
Target lookup, target machine setup and native code emission.

This module handles process-wide backend initialization, target lookup by
triple or registered name, target machine configuration and lowering a
Module to an object or assembly file.
"""
from __future__ import annotations

import threading
import typing
from pathlib import Path
from typing import Union

from llvmlite import binding as llvm

from safellvm.backend.enums import (
    CodeGenFileType,
    CodeGenOptLevel,
    CodeModel,
    RelocMode,
    code_model_name,
    reloc_name,
)
from safellvm.backend.handle import Disposable, Handle, backend_errors
from safellvm.config import get_default_target_triple
if typing.TYPE_CHECKING:
    from safellvm.backend.llvm_types import Type
    from safellvm.backend.module import Module

_init_lock = threading.Lock()
_initialized = False

# Registered target names whose triple architecture is spelled differently.
_ARCH_BY_TARGET_NAME = {
    "x86-64": "x86_64",
    "x86": "i686",
    "arm64": "aarch64",
    "ppc32": "powerpc",
    "ppc32le": "powerpcle",
    "ppc64": "powerpc64",
    "ppc64le": "powerpc64le",
    "systemz": "s390x",
}

_UNSET_TRIPLES = ("", "unknown-unknown-unknown")


def initialize_all() -> None:
    """Initialize every backend target, MC layer, asm printer and the asm parser.

    Performs the one-time registry setup needed before targets can be looked
    up and code emitted. Safe to call multiple times and from several
    threads; only the first call does any work.
    """
    global _initialized
    with _init_lock:
        if _initialized:
            return
        llvm.initialize_all_targets()
        llvm.initialize_all_asmprinters()
        llvm.initialize_native_asmparser()
        _initialized = True


def is_initialized() -> bool:
    """Check if the backend registries have been initialized.

    Returns:
        True if ``initialize_all`` has completed.
    """
    return _initialized


class Target(Handle):
    """A registered backend target. Owned by the process-wide registry, never disposed."""

    _kind = "target"

    def __repr__(self):
        return f"<Target {self._raw.name!r} for {self._raw.triple!r}>"

    @classmethod
    def get_target_from_triple(cls, triple: str) -> 'Target':
        """Look up the target for *triple*.

        Raises:
            TargetLookupError: With the backend's message if nothing matches.
        """
        initialize_all()
        with backend_errors("SL0600", name=triple):
            raw = llvm.Target.from_triple(triple)
        return cls(raw)

    @classmethod
    def get_target_from_name(cls, name: str) -> 'Target':
        """Look up a target by its registered name, such as ``x86-64`` or ``aarch64``.

        Raises:
            TargetLookupError: If no registered target has that name.
        """
        initialize_all()
        arch = _ARCH_BY_TARGET_NAME.get(name.lower(), name.lower())
        with backend_errors("SL0600", name=name):
            raw = llvm.Target.from_triple(f"{arch}-unknown-unknown")
        return cls(raw)

    @classmethod
    def get_default(cls) -> 'Target':
        return cls.get_target_from_triple(get_default_target_triple())

    def get_name(self) -> str:
        return self.raw.name

    def get_description(self) -> str:
        return self.raw.description

    def get_triple(self) -> str:
        return self.raw.triple


class TargetData(Disposable):
    """Size and alignment rules of a target."""

    _kind = "target data"

    def __str__(self):
        return str(self.raw)

    def _release(self) -> None:
        self._raw.close()

    @classmethod
    def from_string(cls, layout: str) -> 'TargetData':
        return cls(llvm.create_target_data(layout))

    def abi_size(self, ty: 'Type') -> int:
        return ty.raw.get_abi_size(self.raw, context=ty.get_context().raw)

    def abi_alignment(self, ty: 'Type') -> int:
        return ty.raw.get_abi_alignment(self.raw, context=ty.get_context().raw)

    def element_offset(self, ty: 'Type', index: int) -> int:
        """Byte offset of element *index* of a struct type."""
        return ty.raw.get_element_offset(self.raw, index, context=ty.get_context().raw)


class TargetMachine(Disposable):
    """Configured code generator for one triple."""

    _kind = "target machine"

    def __repr__(self):
        if self._disposed:
            return "<TargetMachine (disposed)>"
        return f"<TargetMachine {self._raw.triple!r}>"

    def _release(self) -> None:
        self._raw.close()

    @classmethod
    def create(cls, target: Target, triple: str, cpu: str = "", features: str = "",
               opt_level: CodeGenOptLevel = CodeGenOptLevel.DEFAULT,
               reloc_mode: RelocMode = RelocMode.DEFAULT,
               code_model: CodeModel = CodeModel.DEFAULT) -> 'TargetMachine':
        """Configure a code generator.

        Args:
            target: Target looked up earlier.
            triple: Triple to generate for. A triple other than the one the
                target was looked up with is looked up again.
            cpu: CPU name, empty for the backend's generic choice.
            features: Feature string such as ``+avx2``, may be empty.
            opt_level: Code generation optimization level.
            reloc_mode: Relocation model.
            code_model: Code model.

        Raises:
            TargetMachineError: If the backend rejects the configuration.
        """
        raw_target = target.raw
        with backend_errors("SL0601", triple=triple):
            if triple != raw_target.triple:
                raw_target = llvm.Target.from_triple(triple)
            raw = raw_target.create_target_machine(
                cpu=cpu, features=features, opt=int(opt_level),
                reloc=reloc_name(reloc_mode), codemodel=code_model_name(code_model))
        return cls(raw)

    def get_triple(self) -> str:
        return self.raw.triple

    def create_data_layout(self) -> TargetData:
        return TargetData(self.raw.target_data)

    def _lower(self, module: 'Module', file_type: CodeGenFileType, destination: str) -> bytes:
        # Lowering works on a parsed copy; the wrapped module is left unchanged.
        text = module.print_to_string()
        native = module.get_context().native
        tm = self.raw
        with backend_errors("SL0700", file_type=_file_label(file_type), path=destination):
            with llvm.parse_assembly(text, context=native) as llmod:
                if llmod.triple in _UNSET_TRIPLES:
                    llmod.triple = tm.triple
                llmod.data_layout = str(tm.target_data)
                llmod.verify()
                if file_type is CodeGenFileType.OBJECT:
                    return tm.emit_object(llmod)
                return tm.emit_assembly(llmod).encode("utf-8")

    def emit_to_memory(self, module: 'Module', file_type: CodeGenFileType) -> bytes:
        """Lower *module* and return the object code or assembly text as bytes.

        The module gets this machine's data layout (and triple, if it has
        none) and is verified before lowering.

        Raises:
            EmissionError: If the backend rejects the module or lowering fails.
        """
        return self._lower(module, file_type, "<memory>")

    def emit_to_file(self, module: 'Module', path: Union[str, Path],
                     file_type: CodeGenFileType = CodeGenFileType.OBJECT) -> None:
        """Lower *module* and write it to *path* as an object or assembly file.

        Raises:
            EmissionError: If lowering fails or the file cannot be written.
        """
        data = self._lower(module, file_type, str(path))
        with backend_errors("SL0700", catch=(OSError,),
                            file_type=_file_label(file_type), path=str(path)):
            Path(path).write_bytes(data)


def _file_label(file_type: CodeGenFileType) -> str:
    return "object file" if file_type is CodeGenFileType.OBJECT else "assembly"
