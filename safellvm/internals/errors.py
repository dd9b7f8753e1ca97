# safellvm/internals/errors.py
from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Dict, NoReturn, Type


class Category(str, Enum):
    HANDLE    = "handle"
    LIFETIME  = "lifetime"
    BUILDER   = "builder"
    TYPE      = "type"
    VALUE     = "value"
    VERIFY    = "verify"
    TARGET    = "target"
    EMIT      = "emit"


#
# --- Exception hierarchy
#

class SafeLLVMError(Exception):
    """Base class for every error raised by the wrapper layer."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message


class FatalError(SafeLLVMError):
    """Backend or environment contract violation. Not meant to be caught."""


class NullHandleError(FatalError):
    pass


class VerificationAbort(FatalError):
    pass


class UsageError(SafeLLVMError):
    """Misuse of a wrapper object detected at check time."""


class DisposedHandleError(UsageError):
    pass


class LifetimeError(UsageError):
    pass


class BuilderPositionError(UsageError):
    pass


class BackendError(SafeLLVMError):
    """Recoverable failure carrying the message reported by the backend."""


class TargetLookupError(BackendError):
    pass


class TargetMachineError(BackendError):
    pass


class EmissionError(BackendError):
    pass


@dataclass(frozen=True)
class ErrorMessage:
    code: str
    text: str
    error: Type[SafeLLVMError]
    category: Category
    doc: str = ""


REGISTRY: Dict[str, ErrorMessage] = {}

class _ErrorCatalog:
    def __init__(self, backing: Dict[str, ErrorMessage]) -> None:
        self._registry = backing

    def __getattr__(self, name: str) -> ErrorMessage:
        try:
            return self._registry[name]
        except KeyError as e:
            raise AttributeError(name) from e

    def __getitem__(self, code: str) -> ErrorMessage:
        return self._registry[code]


ERR = _ErrorCatalog(REGISTRY)

def make_error(code: str, **kwargs) -> SafeLLVMError:
    """Build the exception registered for *code* without raising it.

    Used where the caller wants to chain the original backend exception
    with ``raise make_error(...) from exc``.

    Args:
        code: Error code (e.g., "SL0030")
        **kwargs: Format parameters for the error message

    Returns:
        An instance of the exception class registered for the code.
    """
    msg = _get(code)
    return msg.error(code, _fmt(code, **kwargs))

def raise_error(code: str, **kwargs) -> NoReturn:
    """Raise the exception registered for *code*.

    Args:
        code: Error code (e.g., "SL0002")
        **kwargs: Format parameters for the error message

    Raises:
        SafeLLVMError: Always raises the subclass the registry entry names.
    """
    raise make_error(code, **kwargs)


#
# --- Helpers
#

def _add(msg: ErrorMessage) -> None:
    if msg.code in REGISTRY:
        raise ValueError(f"duplicate error code {REGISTRY[msg.code]} in {msg}")
    REGISTRY[msg.code] = msg

def _get(code: str) -> ErrorMessage:
    try:
        return REGISTRY[code]
    except KeyError:
        raise KeyError(f"unknown error code: {code}")

def _fmt(code: str, **kwargs) -> str:
    msg = _get(code)
    try:
        return msg.text.format(**kwargs)
    except KeyError as key_error:
        missing = key_error.args[0]
        raise KeyError(f"missing text key '{missing}' for {code} "
                       f"(needed by: {msg.text!r})") from None

#
# --- Registry population
#

# Handle errors - SL00xx range
_add(ErrorMessage("SL0001",
    "backend returned a null {kind} handle",
    NullHandleError, Category.HANDLE,
    "The backend failed to produce an object. Treated as an environment failure."))

_add(ErrorMessage("SL0002",
    "{kind} has already been disposed",
    DisposedHandleError, Category.HANDLE,
    "The object was disposed (or deleted) and cannot be used or disposed again."))

_add(ErrorMessage("SL0003",
    "{kind} used after its owning {owner} was disposed",
    DisposedHandleError, Category.HANDLE,
    "Objects derived from a context, module or function die with it."))

# Lifetime errors - SL01xx range
_add(ErrorMessage("SL0100",
    "cannot dispose {kind}: {count} derived object(s) still alive ({names})",
    LifetimeError, Category.LIFETIME,
    "Dispose builders and modules before the context they were created from."))

# Builder errors - SL02xx range
_add(ErrorMessage("SL0200",
    "builder not positioned",
    BuilderPositionError, Category.BUILDER,
    "Position the builder in a block before emitting instructions."))

_add(ErrorMessage("SL0201",
    "instruction '{instr}' is not in block '{block}'",
    BuilderPositionError, Category.BUILDER,
    "The instruction given to position() must live in the given block."))

_add(ErrorMessage("SL0202",
    "value '{value}' is not an instruction inside a block",
    BuilderPositionError, Category.BUILDER,
    "Only instructions have an insertion point before them."))

# Type errors - SL03xx range
_add(ErrorMessage("SL0300",
    "expected {expected} type, got '{ty}'",
    UsageError, Category.TYPE,
    "Check get_type_kind() before using kind-specific introspection."))

# Value errors - SL04xx range
_add(ErrorMessage("SL0400",
    "value '{value}' is not a function",
    UsageError, Category.VALUE,
    "Function-level operations need a function value."))

# Verification errors - SL05xx range
_add(ErrorMessage("SL0500",
    "verification of {what} failed:\n{message}",
    VerificationAbort, Category.VERIFY,
    "Raised when the abort-process failure action is selected."))

# Target errors - SL06xx range
_add(ErrorMessage("SL0600",
    "no registered target for '{name}': {message}",
    TargetLookupError, Category.TARGET,
    "The triple or target name does not match any registered backend."))

_add(ErrorMessage("SL0601",
    "cannot create target machine for '{triple}': {message}",
    TargetMachineError, Category.TARGET,
    "The backend rejected the target machine configuration."))

# Emission errors - SL07xx range
_add(ErrorMessage("SL0700",
    "failed to emit {file_type} to '{path}': {message}",
    EmissionError, Category.EMIT,
    "Lowering or writing the output file failed."))
