"""
pool_vm.runtime.engine — journaled call engine for contract modules.

Design goals
------------
- One call = one frame. Every entrypoint runs inside a `CallFrame` carrying
  the contract address, the authenticated sender and the block timestamp.
- All-or-nothing. Storage, the event log and the treasury ledger are
  checkpointed on entry; any exception restores the checkpoint before it
  propagates. A call that returns commits everything it did.
- Serialized. Calls are run under a re-entrant lock. Code running inside a
  call (e.g. a treasury receive hook) may call back into the engine; that
  nested call gets its own frame and checkpoint and inherits the block of its
  parent.
- Contracts are plain Python modules. Entrypoints are the names listed in the
  module's ``__all__`` (or every public function when it has none).

Usage
-----
    eng = Engine(timestamp=1_700_000_000)
    eng.deploy(POOL, fund_pool_contract)
    eng.call(POOL, "init", OWNER, SERVICE, sender=OWNER)
    eng.call(POOL, "withdraw", sender=ALICE)
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Callable, Dict, List, Optional

from pool_vm import metrics
from pool_vm.config import load_config

from . import context as _ctx
from . import events_api as _events
from . import storage_api as _storage
from . import treasury_api as _treasury
from .error import VmError

log = logging.getLogger(__name__)


@dataclass
class _Checkpoint:
    storage: Any
    events: int
    ledger: Dict[bytes, int]
    outflow: int


class Engine:
    """Executes contract entrypoints against the shared runtime state."""

    def __init__(self, *, timestamp: int = 0, height: int = 0, chain_id: int = 1) -> None:
        self._lock = threading.RLock()
        self._contracts: Dict[bytes, ModuleType] = {}
        self.block = _ctx.BlockEnv(height=height, timestamp=timestamp, chain_id=chain_id)

    # ------------------------------------------------------------------ clock

    @property
    def timestamp(self) -> int:
        return self.block.timestamp

    def set_time(self, timestamp: int) -> None:
        """Set the block timestamp used by subsequent top-level calls."""
        self.block = _ctx.BlockEnv(height=self.block.height, timestamp=timestamp, chain_id=self.block.chain_id)

    def advance_time(self, seconds: int) -> int:
        self.set_time(self.block.timestamp + seconds)
        return self.block.timestamp

    # -------------------------------------------------------------- contracts

    def deploy(self, address: bytes, module: ModuleType) -> None:
        """Bind a contract module to `address`."""
        addr = self._check_address(address, "contract address")
        with self._lock:
            if addr in self._contracts:
                raise VmError("address already has a contract", code="engine.address_taken", context={"address": addr.hex()})
            self._contracts[addr] = module
        log.info("deployed %s at 0x%s", module.__name__, addr.hex())

    def contract_at(self, address: bytes) -> Optional[ModuleType]:
        return self._contracts.get(bytes(address))

    def _entrypoint(self, module: ModuleType, name: str) -> Callable[..., Any]:
        exported: List[str] = list(getattr(module, "__all__", ()))
        fn = getattr(module, name, None)
        if name.startswith("_") or not callable(fn) or (exported and name not in exported):
            raise VmError(f"unknown entrypoint {name!r}", code="engine.unknown_function", context={"contract": module.__name__})
        return fn

    # ------------------------------------------------------------------- call

    def call(self, address: bytes, function: str, *args: Any, sender: bytes, timestamp: Optional[int] = None, **kwargs: Any) -> Any:
        """
        Run `function` of the contract at `address` as `sender`.

        Returns the entrypoint's return value. On any exception all state
        touched by this call (and its nested calls) is rolled back and the
        exception is re-raised.
        """
        addr = self._check_address(address, "contract address")
        snd = self._check_address(sender, "sender")

        with self._lock:
            module = self._contracts.get(addr)
            if module is None:
                raise VmError("no contract at address", code="engine.no_contract", context={"address": addr.hex()})
            fn = self._entrypoint(module, function)

            parent = _ctx.current_frame()
            depth = _ctx.depth()
            if depth >= load_config().max_call_depth:
                raise VmError("call depth exceeded", code="engine.depth", context={"depth": depth})
            if parent is not None:
                block = parent.block
            elif timestamp is not None:
                block = _ctx.BlockEnv(height=self.block.height, timestamp=timestamp, chain_id=self.block.chain_id)
            else:
                block = self.block

            if depth == 0:
                _treasury.take_outflow()  # drop host-side transfers made outside any call
            frame = _ctx.CallFrame(address=addr, block=block, tx=_ctx.TxEnv(sender=snd, to=addr), depth=depth)
            cp = _Checkpoint(
                storage=_storage.snapshot(),
                events=_events.checkpoint(),
                ledger=_treasury.snapshot(),
                outflow=_treasury.outflow_mark(),
            )

            _ctx.push_frame(frame)
            _events.begin_call(depth)
            try:
                with metrics.time_call(function):
                    result = fn(*args, **kwargs)
            except VmError as exc:
                self._rollback(cp)
                metrics.observe_call(function, "revert", exc.code)
                log.debug("call %s@0x%s by 0x%s reverted: %s (%s)", function, addr.hex(), snd.hex(), exc.code, exc.message)
                raise
            except Exception:
                self._rollback(cp)
                metrics.observe_call(function, "error")
                log.exception("call %s@0x%s failed with an unexpected error", function, addr.hex())
                raise
            finally:
                _ctx.pop_frame()

            metrics.observe_call(function, "ok")
            if depth == 0:
                moved = _treasury.take_outflow()
                if moved:
                    metrics.observe_transfer(moved)
            log.debug("call %s@0x%s by 0x%s committed (depth=%d)", function, addr.hex(), snd.hex(), depth)
            return result

    # --------------------------------------------------------------- helpers

    @staticmethod
    def _rollback(cp: _Checkpoint) -> None:
        _storage.restore(cp.storage)
        _events.truncate(cp.events)
        _treasury.restore(cp.ledger)
        _treasury.outflow_truncate(cp.outflow)

    @staticmethod
    def _check_address(address: Any, what: str) -> bytes:
        if not isinstance(address, (bytes, bytearray)):
            raise VmError(f"{what} must be bytes", code="engine.bad_address")
        alen = load_config().address_len
        if len(address) != alen:
            raise VmError(f"{what} must be exactly {alen} bytes", code="engine.bad_address")
        return bytes(address)


def reset_state() -> None:
    """Clear storage, events, ledger balances and receive hooks."""
    _storage.reset_backend()
    _events.clear_events()
    _treasury.reset()


__all__ = ["Engine", "reset_state"]
