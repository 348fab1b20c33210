# -*- coding: utf-8 -*-
"""
pool_contracts.stdlib.control
=============================

Storage-backed control primitives for pool contracts.

1) **Reentrancy Guard**
   - `guard_enter(scope: bytes = b"default") -> None`
   - `guard_exit(scope: bytes = b"default") -> None`
   - `require_not_entered(scope: bytes = b"default") -> None`
   - `nonreentrant(scope)` context manager wrapping enter/exit

   A non-reentrancy latch keyed by a *scope* tag. Operations sharing a scope
   exclude each other:

       with control.nonreentrant(b"payout"):
           # critical section (external transfer last)
           ...

   If the latch for a scope is already set, `guard_enter` reverts with
   ReentrantCall (``CONTROL:REENTRANT``).

2) **Initialize-Once Flag**
   - `initialize_once(flag: bytes = b"default") -> None`
   - `is_initialized(flag: bytes = b"default") -> bool`

   Reverts with AlreadyInitialized (``CONTROL:ALREADY_INIT``) on a second call.

Storage Layout
--------------
- Reentrancy latch:     key = b"control:reentrancy:" + scope  -> b"1" or empty
- Initialize-once flag: key = b"control:init:" + flag         -> b"1" or empty
"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from pool_vm.stdlib import abi, storage

from pool_contracts.errors import AlreadyInitialized, ReentrantCall

__all__ = [
    "guard_enter",
    "guard_exit",
    "require_not_entered",
    "is_entered",
    "nonreentrant",
    "initialize_once",
    "is_initialized",
]

_REENT_PREFIX: bytes = b"control:reentrancy:"
_INIT_PREFIX: bytes = b"control:init:"


# ---- Helpers ----------------------------------------------------------------


def _set_flag(key: bytes) -> None:
    storage.set(key, b"1")


def _clear_flag(key: bytes) -> None:
    storage.set(key, b"")


def _has_flag(key: bytes) -> bool:
    v = storage.get(key)
    return v is not None and len(v) > 0


# ---- Reentrancy Guard -------------------------------------------------------


def is_entered(scope: bytes = b"default") -> bool:
    return _has_flag(_REENT_PREFIX + scope)


def require_not_entered(scope: bytes = b"default") -> None:
    if is_entered(scope):
        abi.revert(ReentrantCall, scope=scope.decode("ascii", "replace"))


def guard_enter(scope: bytes = b"default") -> None:
    require_not_entered(scope)
    _set_flag(_REENT_PREFIX + scope)


def guard_exit(scope: bytes = b"default") -> None:
    _clear_flag(_REENT_PREFIX + scope)


@contextmanager
def nonreentrant(scope: bytes = b"default") -> Iterator[None]:
    guard_enter(scope)
    try:
        yield
    finally:
        guard_exit(scope)


# ---- Initialize-once --------------------------------------------------------


def is_initialized(flag: bytes = b"default") -> bool:
    return _has_flag(_INIT_PREFIX + flag)


def initialize_once(flag: bytes = b"default") -> None:
    if is_initialized(flag):
        abi.revert(AlreadyInitialized)
    _set_flag(_INIT_PREFIX + flag)
