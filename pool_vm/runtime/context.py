"""
pool_vm.runtime.context — BlockEnv/TxEnv and the active call-frame stack

These lightweight environments are injected by the engine so contracts can
read the caller and the block timestamp in a *deterministic* way. They contain
only pure data (ints/bytes) and perform strict validation.

Design notes
------------
- Addresses are raw bytes; the engine checks their length against
  ``PoolConfig.address_len``. Hex strings (with or without "0x") are accepted
  by helpers and normalized to bytes.
- All numeric fields are validated to be non-negative.
- `timestamp` is the host-provided block timestamp (seconds). Contracts never
  read the wall clock.
- Frames form a per-thread stack: a nested call (e.g. from a transfer hook)
  pushes a new frame on top of the one that triggered it.
"""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Optional, Union

# ----------------------------- helpers ----------------------------- #


class ContextError(Exception):
    """Validation or coercion failure for BlockEnv/TxEnv/CallFrame."""


def _strip_0x(s: str) -> str:
    return s[2:] if s.startswith(("0x", "0X")) else s


def to_bytes(value: Union[bytes, bytearray, memoryview, str]) -> bytes:
    """
    Coerce `value` to bytes.
    - If str, interpret as hex (with or without '0x'); odd-length hex is rejected.
    - If a bytes-like object, copy to immutable bytes.
    """
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        h = _strip_0x(value.strip())
        if len(h) % 2 != 0:
            raise ContextError(f"hex string must have even length, got {len(h)}")
        try:
            return bytes.fromhex(h)
        except ValueError as e:
            raise ContextError(f"invalid hex string: {value!r}") from e
    raise ContextError(f"cannot convert type {type(value).__name__} to bytes")


def to_hex(b: Union[bytes, bytearray, memoryview]) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + bytes(b).hex()


def _require_non_negative_int(name: str, v: Any) -> int:
    if not isinstance(v, int) or isinstance(v, bool):
        raise ContextError(f"{name} must be int, got {type(v).__name__}")
    if v < 0:
        raise ContextError(f"{name} must be non-negative, got {v}")
    return v


# ----------------------------- models ------------------------------ #


@dataclass(frozen=True)
class BlockEnv:
    """
    Deterministic per-block environment.

    Fields
    ------
    height:     Block height (0-based).
    timestamp:  Block timestamp in seconds.
    chain_id:   Integer chain identifier.
    """

    height: int
    timestamp: int
    chain_id: int = 1

    def __post_init__(self) -> None:
        object.__setattr__(self, "height", _require_non_negative_int("height", self.height))
        object.__setattr__(self, "timestamp", _require_non_negative_int("timestamp", self.timestamp))
        object.__setattr__(self, "chain_id", _require_non_negative_int("chain_id", self.chain_id))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "BlockEnv":
        return cls(
            height=_require_non_negative_int("height", d.get("height", 0)),
            timestamp=_require_non_negative_int("timestamp", d.get("timestamp")),
            chain_id=_require_non_negative_int("chain_id", d.get("chain_id", 1)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TxEnv:
    """
    Deterministic per-call transaction environment.

    Fields
    ------
    sender:    Authenticated caller address (bytes).
    to:        Call target address (bytes).
    nonce:     Sender nonce (int).
    tx_hash:   Optional transaction hash bytes (empty for local calls).
    """

    sender: bytes
    to: bytes
    nonce: int = 0
    tx_hash: bytes = b""

    def __post_init__(self) -> None:
        object.__setattr__(self, "sender", to_bytes(self.sender))
        object.__setattr__(self, "to", to_bytes(self.to))
        object.__setattr__(self, "nonce", _require_non_negative_int("nonce", self.nonce))
        object.__setattr__(self, "tx_hash", to_bytes(self.tx_hash))

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "TxEnv":
        return cls(
            sender=to_bytes(d.get("sender", b"")),
            to=to_bytes(d.get("to", b"")),
            nonce=_require_non_negative_int("nonce", d.get("nonce", 0)),
            tx_hash=to_bytes(d.get("tx_hash", b"")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sender": to_hex(self.sender),
            "to": to_hex(self.to),
            "nonce": self.nonce,
            "tx_hash": to_hex(self.tx_hash),
        }


@dataclass(frozen=True)
class CallFrame:
    """One active contract call: which contract runs, for whom, and when."""

    address: bytes
    block: BlockEnv
    tx: TxEnv
    depth: int


# ----------------------------- frame stack ------------------------------ #

_local = threading.local()


def _stack() -> List[CallFrame]:
    st = getattr(_local, "frames", None)
    if st is None:
        st = []
        _local.frames = st
    return st


def push_frame(frame: CallFrame) -> None:
    _stack().append(frame)


def pop_frame() -> CallFrame:
    st = _stack()
    if not st:
        raise ContextError("no active call frame to pop")
    return st.pop()


def current_frame() -> Optional[CallFrame]:
    st = _stack()
    return st[-1] if st else None


def require_frame() -> CallFrame:
    frame = current_frame()
    if frame is None:
        raise ContextError("no active call frame (contract code called outside the engine)")
    return frame


def depth() -> int:
    return len(_stack())


def current_contract_address() -> bytes:
    return require_frame().address


def current_block() -> BlockEnv:
    return require_frame().block


def current_tx() -> TxEnv:
    return require_frame().tx


__all__ = [
    "ContextError",
    "to_bytes",
    "to_hex",
    "BlockEnv",
    "TxEnv",
    "CallFrame",
    "push_frame",
    "pop_frame",
    "current_frame",
    "require_frame",
    "depth",
    "current_contract_address",
    "current_block",
    "current_tx",
]
