"""
Compatibility layer for runtime errors.

Callers import:

    from pool_vm.errors import VmError, Revert

The canonical implementation lives in pool_vm.runtime.error.
"""

from __future__ import annotations

from pool_vm.runtime.context import ContextError
from pool_vm.runtime.error import Revert, VmError

__all__ = ["VmError", "Revert", "ContextError"]
