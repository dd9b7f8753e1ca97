"""
Function and module verification.

The IR is checked in two steps. A structural pass over the ``llvmlite.ir``
objects looks at terminators, which the IR layer lets callers get wrong
(an unterminated block, instructions after a return). The text is then
parsed into the Context's native backend context and run through LLVM's
verifier.

Verifying one function renders a copy of the module in which every other
function is reduced to a declaration, so only the requested body is judged.
"""
from __future__ import annotations

import sys
import typing
from typing import List

from llvmlite import binding as llvm
from llvmlite import ir

from safellvm.backend.basic_block import is_terminator
from safellvm.backend.enums import VerifierFailureAction
from safellvm.internals.errors import raise_error
if typing.TYPE_CHECKING:
    from safellvm.backend.module import Module


def structural_problems(fn: ir.Function) -> List[str]:
    """Terminator placement problems in *fn*'s blocks, empty when there are none."""
    problems = []
    for block in fn.blocks:
        instrs = block.instructions
        if not instrs or not is_terminator(instrs[-1]):
            problems.append(f"block '{block.name}' in '{fn.name}' does not end with a terminator")
        for instr in instrs[:-1]:
            if is_terminator(instr):
                problems.append(f"terminator '{instr.opname}' found in the middle of "
                                f"block '{block.name}' in '{fn.name}'")
    return problems


def _declaration(fn: ir.Function) -> str:
    ftype = fn.ftype
    params = ", ".join(str(arg) for arg in ftype.args)
    if ftype.var_arg:
        params = f"{params}, ..." if params else "..."
    return f"declare {ftype.return_type} {fn.get_reference()}({params})"


def render_for_function(module: ir.Module, fn: ir.Function) -> str:
    """Module text with *fn* in full and every other function declared only."""
    lines = [
        f'; ModuleID = "{module.name}"',
        f'target triple = "{module.triple}"',
        f'target datalayout = "{module.data_layout}"',
        '',
    ]
    lines += [ty.get_declaration() for ty in module.get_identified_types().values()]
    for gv in module.global_values:
        if isinstance(gv, ir.Function) and gv is not fn:
            lines.append(_declaration(gv))
        else:
            lines.append(str(gv))
    return "\n".join(lines)


def _native_check(native: llvm.ContextRef, text: str) -> str:
    """Parse and verify *text*. Returns the backend's complaint, or '' when valid."""
    try:
        with llvm.parse_assembly(text, context=native) as llmod:
            llmod.verify()
    except RuntimeError as e:
        return str(e).strip() or "invalid IR"
    return ""


def _failed(action: VerifierFailureAction, what: str, message: str) -> bool:
    if action is VerifierFailureAction.RETURN_STATUS:
        return False
    print(f"verification of {what} failed:", file=sys.stderr)
    print(message, file=sys.stderr)
    if action is VerifierFailureAction.ABORT_PROCESS:
        raise_error("SL0500", what=what, message=message)
    return False


def verify_function(module: 'Module', fn: ir.Function, action: VerifierFailureAction) -> bool:
    """Verify one function of *module*.

    Args:
        module: Owning module wrapper; supplies the native context.
        fn: Function to check.
        action: What to do when the function is invalid.

    Returns:
        True if the function is valid, False otherwise.

    Raises:
        VerificationAbort: If invalid and *action* is ABORT_PROCESS.
    """
    what = f"function '{fn.name}'"
    problems = structural_problems(fn)
    if problems:
        return _failed(action, what, "\n".join(problems))
    message = _native_check(module.get_context().native, render_for_function(module.raw, fn))
    if message:
        return _failed(action, what, message)
    return True


def verify_module(module: 'Module', action: VerifierFailureAction) -> bool:
    """Verify every function and global of *module*. Same contract as ``verify_function``."""
    raw = module.raw
    what = f"module '{raw.name}'"
    problems = []
    for fn in raw.functions:
        problems += structural_problems(fn)
    if problems:
        return _failed(action, what, "\n".join(problems))
    message = _native_check(module.get_context().native, str(raw))
    if message:
        return _failed(action, what, message)
    return True
