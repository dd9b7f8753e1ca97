"""
Ownership model shared by every wrapper object.

A ``Handle`` holds exactly one raw backend object and, optionally, the
handle that owns it. Ownership forms a chain that ends at a Context::

    Context <- Module <- function Value <- BasicBlock / instruction / param
    Context <- Builder
    Context <- Type / constant Value

Reading ``.raw`` walks that chain, so an object whose owner was disposed (or
a function that was deleted) can no longer reach the backend. ``Disposable``
adds explicit, single-use disposal on top of that.
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Optional, Tuple, Type

from safellvm.internals.errors import make_error, raise_error


class Handle:
    """A non-null reference to a backend object.

    Constructing a handle from ``None`` raises ``NullHandleError``; no live
    wrapper ever holds a null object.
    """

    _kind = "handle"

    def __init__(self, raw: Any, owner: Optional['Handle'] = None) -> None:
        if raw is None:
            raise_error("SL0001", kind=self._kind)
        self._raw = raw
        self._owner = owner
        self._disposed = False

    @property
    def raw(self) -> Any:
        """The backend object, after checking this handle and its owners are alive."""
        self._check_alive()
        return self._raw

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def _check_alive(self) -> None:
        if self._disposed:
            raise_error("SL0002", kind=self._kind)
        owner = self._owner
        while owner is not None:
            if owner._disposed:
                raise_error("SL0003", kind=self._kind, owner=owner._kind)
            owner = owner._owner

    def _invalidate(self) -> None:
        self._disposed = True
        self._raw = None


class Disposable(Handle):
    """A handle that must be disposed exactly once.

    ``dispose()`` consumes the object: the raw backend object is released and
    every later use, including a second ``dispose()``, raises
    ``DisposedHandleError``. Also usable as a context manager.
    """

    def dispose(self) -> None:
        self._check_alive()
        self._release()
        self._invalidate()

    def _release(self) -> None:
        """Free backend resources. Subclasses override."""

    def __enter__(self):
        self._check_alive()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if not self._disposed:
            self.dispose()


def backend_message(exc: BaseException) -> str:
    """Owned, non-empty message text for a backend failure."""
    text = str(exc).strip()
    return text or type(exc).__name__


@contextmanager
def backend_errors(code: str,
                   catch: Tuple[Type[BaseException], ...] = (RuntimeError,),
                   **kwargs) -> Iterator[None]:
    """Convert backend failures inside the block into the error registered for *code*.

    llvmlite copies the native error buffer into a Python string, frees the
    buffer and raises ``RuntimeError(message)``. This is the one place that
    message is turned into a wrapper error; the original exception is chained.

    Args:
        code: Error code whose message takes a ``message`` field.
        catch: Exception types treated as backend failures.
        **kwargs: Remaining format parameters for the error message.

    Raises:
        BackendError: The registry's exception for *code*.
    """
    try:
        yield
    except catch as e:
        raise make_error(code, message=backend_message(e), **kwargs) from e
