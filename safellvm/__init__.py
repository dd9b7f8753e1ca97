"""safellvm - ownership-checked wrappers for building, verifying and emitting LLVM IR."""
from importlib.metadata import version, PackageNotFoundError

try:
    __version__ = version("safellvm")
    __dev__ = False
except PackageNotFoundError:
    # Development mode - read from pyproject.toml
    import tomllib
    from pathlib import Path
    try:
        pyproject = Path(__file__).parent.parent / "pyproject.toml"
        with open(pyproject, "rb") as f:
            __version__ = tomllib.load(f).get("project", {}).get("version", "unknown")
    except (OSError, tomllib.TOMLDecodeError):
        __version__ = "unknown"
    __dev__ = True

from safellvm.backend.basic_block import BasicBlock
from safellvm.backend.builder import Builder
from safellvm.backend.context import Context
from safellvm.backend.enums import (
    AddressSpace,
    CastOpcode,
    CodeGenFileType,
    CodeGenOptLevel,
    CodeModel,
    IntPredicate,
    Linkage,
    RealPredicate,
    RelocMode,
    TypeKind,
    VerifierFailureAction,
)
from safellvm.backend.llvm_target import Target, TargetData, TargetMachine, initialize_all
from safellvm.backend.llvm_types import Type
from safellvm.backend.llvm_values import Value
from safellvm.backend.module import Module
from safellvm.config import DEFAULT_CODEGEN_OPTIONS, CodegenOptions, get_default_target_triple
from safellvm.internals.errors import (
    BackendError,
    BuilderPositionError,
    DisposedHandleError,
    EmissionError,
    FatalError,
    LifetimeError,
    NullHandleError,
    SafeLLVMError,
    TargetLookupError,
    TargetMachineError,
    UsageError,
    VerificationAbort,
)

__all__ = [
    "AddressSpace",
    "BackendError",
    "BasicBlock",
    "Builder",
    "BuilderPositionError",
    "CastOpcode",
    "CodeGenFileType",
    "CodeGenOptLevel",
    "CodeModel",
    "CodegenOptions",
    "Context",
    "DEFAULT_CODEGEN_OPTIONS",
    "DisposedHandleError",
    "EmissionError",
    "FatalError",
    "IntPredicate",
    "LifetimeError",
    "Linkage",
    "Module",
    "NullHandleError",
    "RealPredicate",
    "RelocMode",
    "SafeLLVMError",
    "Target",
    "TargetData",
    "TargetLookupError",
    "TargetMachine",
    "TargetMachineError",
    "Type",
    "TypeKind",
    "UsageError",
    "Value",
    "VerificationAbort",
    "VerifierFailureAction",
    "get_default_target_triple",
    "initialize_all",
]
