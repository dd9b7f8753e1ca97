"""Code generation settings shared by the emission pipeline."""
from __future__ import annotations

import os
from dataclasses import dataclass

from llvmlite import binding as llvm

from safellvm.backend.enums import CodeGenOptLevel, CodeModel, RelocMode

DEFAULT_TRIPLE_ENV = "SAFELLVM_DEFAULT_TRIPLE"


@dataclass(frozen=True)
class CodegenOptions:
    """Target machine configuration used when a module is lowered to a file.

    The defaults are the fixed settings of ``Module.write_object_file``:
    host CPU and features left to the backend, default optimization level,
    position-independent relocation and the default code model.
    """
    cpu: str = ""
    features: str = ""
    opt_level: CodeGenOptLevel = CodeGenOptLevel.DEFAULT
    reloc_mode: RelocMode = RelocMode.PIC
    code_model: CodeModel = CodeModel.DEFAULT


DEFAULT_CODEGEN_OPTIONS = CodegenOptions()


def get_default_target_triple() -> str:
    """Get the triple used when the caller does not name one.

    Checks the SAFELLVM_DEFAULT_TRIPLE environment variable first, so a
    cross-compiling build can redirect every default without code changes.
    Otherwise falls back to the backend's host triple.

    Returns:
        The target triple string.
    """
    override = os.environ.get(DEFAULT_TRIPLE_ENV)
    if override:
        return override
    return llvm.get_default_triple()
