"""
pool_vm.runtime.treasury_api — deterministic native-coin ledger for the pool runtime.

Contract-facing API (re-exported by the stdlib):

- balance() -> int                  # this contract's balance
- balance_of(addr: bytes) -> int    # any address balance (read-only)
- transfer(to: bytes, amount: int)  # debit self, credit recipient
- collect(amount: int)              # debit the caller, credit self

Host API:

- credit / set_balance              # fund accounts from the host side
- set_receive_hook(addr, fn)        # run `fn(sender, amount)` whenever `addr` is paid
- snapshot() / restore(snap)        # journal used by the engine
- outflow_mark / outflow_truncate / take_outflow
                                    # paid-out amounts, reported once committed

Receive hooks model recipients that execute code when paid. A hook runs after
the balances moved and may call back into the engine. If it raises, the
transfer is undone and surfaces as ``VmError(code="treasury.transfer_failed")``.

Notes
-----
* Deterministic: no wall-clock, no randomness, pure arithmetic with explicit caps.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from pool_vm.config import load_config

from . import context as _ctx
from .error import VmError

log = logging.getLogger(__name__)

ReceiveHook = Callable[[bytes, int], None]

# ------------------------------ State & Locks ------------------------------ #

_L = threading.RLock()
_LEDGER: Dict[bytes, int] = {}  # address -> balance (non-negative ints)
_HOOKS: Dict[bytes, ReceiveHook] = {}
_OUTFLOW: List[int] = []  # amounts paid out, not yet committed by the engine


# ------------------------------ Addr & Amount ------------------------------ #


def _check_addr(addr: bytes) -> bytes:
    if not isinstance(addr, (bytes, bytearray)):
        raise VmError("address must be bytes", code="treasury.bad_address")
    alen = load_config().address_len
    if len(addr) != alen:
        raise VmError(f"address must be exactly {alen} bytes", code="treasury.bad_address")
    return bytes(addr)


def _check_amount(amount: int) -> int:
    if not isinstance(amount, int) or isinstance(amount, bool):
        raise VmError("amount must be int", code="treasury.bad_amount")
    if amount < 0:
        raise VmError("amount must be non-negative", code="treasury.bad_amount")
    max_bits = load_config().max_balance_bits
    if amount.bit_length() > max_bits:
        raise VmError(f"amount exceeds {max_bits}-bit limit", code="treasury.bad_amount")
    return amount


def _add_checked(a: int, b: int) -> int:
    max_val = (1 << load_config().max_balance_bits) - 1
    c = a + b
    if c > max_val:
        raise VmError("balance overflow", code="treasury.overflow")
    return c


# ------------------------------- Public API -------------------------------- #


def balance(addr: Optional[bytes] = None) -> int:
    """
    Return the balance for `addr`. If omitted, returns the balance of the running contract.
    """
    if addr is None:
        addr = _ctx.current_contract_address()
    baddr = _check_addr(addr)
    with _L:
        return _LEDGER.get(baddr, 0)


def balance_of(addr: bytes) -> int:
    return balance(addr)


def transfer(to: bytes, amount: int) -> None:
    """
    Debit the running contract and credit `to` by `amount`, then run the
    recipient's receive hook (if any).

    On insufficient funds, or when the hook raises, the ledger is left exactly
    as it was before the call.
    """
    frm = _check_addr(_ctx.current_contract_address())
    bto = _check_addr(to)
    _check_amount(amount)

    if amount == 0:
        return  # no-op

    with _L:
        cur_from = _LEDGER.get(frm, 0)
        if amount > cur_from:
            raise VmError(
                "insufficient balance",
                code="treasury.insufficient",
                context={"balance": cur_from, "amount": amount},
            )
        before = dict(_LEDGER)
        _LEDGER[frm] = cur_from - amount
        _LEDGER[bto] = _add_checked(_LEDGER.get(bto, 0), amount)
        hook = _HOOKS.get(bto)

    if hook is not None:
        _run_hook(hook, frm, bto, amount, before)
    with _L:
        _OUTFLOW.append(amount)


def _run_hook(hook: ReceiveHook, frm: bytes, bto: bytes, amount: int, before: Dict[bytes, int]) -> None:
    mark = outflow_mark()
    try:
        hook(frm, amount)
    except Exception as exc:
        with _L:
            _LEDGER.clear()
            _LEDGER.update(before)
            del _OUTFLOW[mark:]
        log.warning("receive hook of 0x%s failed: %s", bto.hex(), exc)
        raise VmError(
            "recipient rejected transfer",
            code="treasury.transfer_failed",
            context={"to": "0x" + bto.hex(), "amount": amount, "cause": repr(exc)},
        ) from exc


def collect(amount: int) -> None:
    """
    Move `amount` from the sender of the current call into the running
    contract (the value a caller attaches to a payment call).
    """
    frm = _check_addr(_ctx.current_tx().sender)
    to = _check_addr(_ctx.current_contract_address())
    _check_amount(amount)
    with _L:
        cur = _LEDGER.get(frm, 0)
        if amount > cur:
            raise VmError(
                "insufficient balance",
                code="treasury.insufficient",
                context={"balance": cur, "amount": amount},
            )
        _LEDGER[frm] = cur - amount
        _LEDGER[to] = _add_checked(_LEDGER.get(to, 0), amount)


# ------------------------------- Host Hooks -------------------------------- #


def credit(addr: bytes, amount: int) -> None:
    """Host helper: increase balance of `addr` by `amount`."""
    baddr = _check_addr(addr)
    _check_amount(amount)
    with _L:
        _LEDGER[baddr] = _add_checked(_LEDGER.get(baddr, 0), amount)


def set_balance(addr: bytes, amount: int) -> None:
    """Set an exact balance for `addr`."""
    baddr = _check_addr(addr)
    _check_amount(amount)
    with _L:
        _LEDGER[baddr] = amount


def set_receive_hook(addr: bytes, hook: Optional[ReceiveHook]) -> None:
    """Install (or with ``None`` remove) the receive hook for `addr`."""
    baddr = _check_addr(addr)
    with _L:
        if hook is None:
            _HOOKS.pop(baddr, None)
        else:
            _HOOKS[baddr] = hook


def outflow_mark() -> int:
    with _L:
        return len(_OUTFLOW)


def outflow_truncate(mark: int) -> None:
    with _L:
        del _OUTFLOW[mark:]


def take_outflow() -> int:
    """Sum of the amounts paid out since the last call, then forget them."""
    with _L:
        total = sum(_OUTFLOW)
        _OUTFLOW.clear()
        return total


def snapshot() -> Dict[bytes, int]:
    with _L:
        return dict(_LEDGER)


def restore(snap: Dict[bytes, int]) -> None:
    with _L:
        _LEDGER.clear()
        _LEDGER.update(snap)


def reset() -> None:
    """Clear balances and hooks."""
    with _L:
        _LEDGER.clear()
        _HOOKS.clear()
        _OUTFLOW.clear()


__all__ = [
    "ReceiveHook",
    "balance",
    "balance_of",
    "transfer",
    "collect",
    "credit",
    "set_balance",
    "set_receive_hook",
    "outflow_mark",
    "outflow_truncate",
    "take_outflow",
    "snapshot",
    "restore",
    "reset",
]
