"""
Pool runtime — host-facing APIs and the journaled call engine.

Convenience re-exports live here so callers can do:

    from pool_vm.runtime import Engine, BlockEnv, TxEnv
    from pool_vm.runtime import abi, storage, events, treasury  # module namespaces

Contract code imports the same namespaces through ``pool_vm.stdlib``.
"""

from __future__ import annotations

from . import abi as abi
from . import codec as codec
from . import events_api as events
from . import storage_api as storage
from . import syscalls_api as syscalls
from . import treasury_api as treasury
from .context import BlockEnv, CallFrame, TxEnv
from .engine import Engine, reset_state

__all__ = [
    "Engine",
    "reset_state",
    "BlockEnv",
    "TxEnv",
    "CallFrame",
    "abi",
    "codec",
    "storage",
    "events",
    "treasury",
    "syscalls",
]
