"""
pool_vm.runtime.storage_api — host hooks for deterministic key/value storage.

This module provides the contract-facing storage primitives that
`pool_vm.stdlib.storage` re-exports.

Design goals
------------
- Deterministic: pure functions over (key, value) with no wall-clock or I/O.
- Scoped: every contract address owns a separate key space; contract code
  never names the address, it is taken from the active call frame.
- Journaled: the engine takes a `snapshot()` before a call and `restore()`s
  it if the call fails, so a failed call leaves no writes behind.
- Pluggable: a tiny backend interface so the host can swap in a real state DB.
- Safe: strict byte-length caps; typed helpers for common int <-> bytes use.

Public API (re-exported by stdlib.storage)
------------------------------------------
- get(key: bytes) -> Optional[bytes]
- set(key: bytes, value: bytes) -> None
- delete(key: bytes) -> None
- exists(key: bytes) -> bool
- get_int(key: bytes, default: int = 0) -> int     # big-endian, unsigned
- set_int(key: bytes, value: int) -> None          # big-endian, unsigned

Host API
--------
- set_backend(backend: StorageBackend) -> None
- reset_backend() -> None
- read(address, key) -> Optional[bytes]
- snapshot() -> object / restore(snap) -> None
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Protocol, Tuple, runtime_checkable

from pool_vm.config import load_config

from . import context as _ctx
from .error import VmError

# ---------------------------- Backend API ---------------------------- #


@runtime_checkable
class StorageBackend(Protocol):
    """Minimal backend interface for contract storage."""

    def get(self, address: bytes, key: bytes) -> Optional[bytes]: ...
    def set(self, address: bytes, key: bytes, value: bytes) -> None: ...
    def delete(self, address: bytes, key: bytes) -> None: ...
    def exists(self, address: bytes, key: bytes) -> bool: ...
    def snapshot(self) -> Any: ...
    def restore(self, snap: Any) -> None: ...


class MemoryBackend:
    """Thread-safe in-memory backend for local runs and tests."""

    def __init__(self) -> None:
        self._store: Dict[Tuple[bytes, bytes], bytes] = {}
        self._lock = threading.RLock()

    def get(self, address: bytes, key: bytes) -> Optional[bytes]:
        with self._lock:
            return self._store.get((address, key))

    def set(self, address: bytes, key: bytes, value: bytes) -> None:
        with self._lock:
            self._store[(address, key)] = value

    def delete(self, address: bytes, key: bytes) -> None:
        with self._lock:
            self._store.pop((address, key), None)

    def exists(self, address: bytes, key: bytes) -> bool:
        with self._lock:
            return (address, key) in self._store

    def snapshot(self) -> Dict[Tuple[bytes, bytes], bytes]:
        # Keys and values are immutable bytes; a shallow copy is a full snapshot.
        with self._lock:
            return dict(self._store)

    def restore(self, snap: Dict[Tuple[bytes, bytes], bytes]) -> None:
        with self._lock:
            self._store = dict(snap)

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)


_backend: StorageBackend = MemoryBackend()


def set_backend(backend: StorageBackend) -> None:
    """Install a custom backend (host integration)."""
    global _backend
    for attr in ("get", "set", "delete", "exists", "snapshot", "restore"):
        if not callable(getattr(backend, attr, None)):
            raise VmError(f"backend missing method: {attr}", code="storage.bad_backend")
    _backend = backend


def get_backend() -> StorageBackend:
    return _backend


def reset_backend() -> None:
    """Restore the default in-memory backend (useful for tests)."""
    set_backend(MemoryBackend())


# --------------------------- Validation helpers --------------------------- #


def _check_key(key: bytes) -> bytes:
    if not isinstance(key, (bytes, bytearray)):
        raise VmError("storage key must be bytes", code="storage.bad_key")
    if len(key) == 0:
        raise VmError("storage key must be non-empty", code="storage.bad_key")
    cap = load_config().max_storage_key_bytes
    if len(key) > cap:
        raise VmError(f"storage key too long (>{cap} bytes)", code="storage.bad_key", context={"len": len(key)})
    return bytes(key)


def _check_value(value: bytes) -> bytes:
    if not isinstance(value, (bytes, bytearray)):
        raise VmError("storage value must be bytes", code="storage.bad_value")
    cap = load_config().max_storage_value_bytes
    if len(value) > cap:
        raise VmError(f"storage value too large (>{cap} bytes)", code="storage.bad_value", context={"len": len(value)})
    return bytes(value)


def _self() -> bytes:
    return _ctx.current_contract_address()


# --------------------------- Contract-facing API --------------------------- #


def get(key: bytes) -> Optional[bytes]:
    """Return the value for `key`, or None if not set."""
    return _backend.get(_self(), _check_key(key))


def set(key: bytes, value: bytes) -> None:
    """Set `key` to `value` (overwrites existing)."""
    _backend.set(_self(), _check_key(key), _check_value(value))


def delete(key: bytes) -> None:
    """Delete `key` if present (no-op otherwise)."""
    _backend.delete(_self(), _check_key(key))


def exists(key: bytes) -> bool:
    """Return True if `key` is present."""
    return _backend.exists(_self(), _check_key(key))


# ------------------------------ Typed helpers ----------------------------- #

_U256_MAX = (1 << 256) - 1


def decode_uint(raw: Optional[bytes], default: int = 0) -> int:
    if raw is None:
        return default
    if len(raw) == 0:
        return 0
    return int.from_bytes(raw, byteorder="big", signed=False)


def encode_uint(value: int) -> bytes:
    if not isinstance(value, int) or isinstance(value, bool):
        raise VmError("uint value must be int", code="storage.bad_value")
    if value < 0 or value > _U256_MAX:
        raise VmError("uint out of range (must fit in 256 bits)", code="storage.bad_value")
    # Minimal bytes representation (zero -> b"\x00")
    if value == 0:
        return b"\x00"
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def get_int(key: bytes, default: int = 0) -> int:
    """
    Read big-endian unsigned integer at `key`. Returns `default` if not set.
    """
    return decode_uint(get(key), default)


def set_int(key: bytes, value: int) -> None:
    """
    Store `value` as big-endian unsigned integer. Enforces 0 <= value <= 2^256-1.
    """
    set(key, encode_uint(value))


# ------------------------------- Host helpers ------------------------------ #


def read(address: bytes, key: bytes) -> Optional[bytes]:
    """Host-side read of another contract's storage (inspection, tests)."""
    return _backend.get(bytes(address), _check_key(key))


def read_int(address: bytes, key: bytes, default: int = 0) -> int:
    return decode_uint(read(address, key), default)


def snapshot() -> Any:
    return _backend.snapshot()


def restore(snap: Any) -> None:
    _backend.restore(snap)


__all__ = [
    "StorageBackend",
    "MemoryBackend",
    "set_backend",
    "get_backend",
    "reset_backend",
    "get",
    "set",
    "delete",
    "exists",
    "get_int",
    "set_int",
    "decode_uint",
    "encode_uint",
    "read",
    "read_int",
    "snapshot",
    "restore",
]
