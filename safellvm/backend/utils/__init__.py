"""Backend utilities package.

This package contains reusable utility functions for the wrapper layer,
organized by concern:

- validation: Common precondition checks (function, cursor, type kind)
"""

from .validation import (
    require_function,
    require_in_block,
    require_kind,
    require_positioned,
)

__all__ = [
    'require_function',
    'require_positioned',
    'require_kind',
    'require_in_block',
]
