# -*- coding: utf-8 -*-
"""
pool_contracts.stdlib.access.ownable
====================================

Minimal **Ownable** helper for pool contracts.

- read the current owner (`get_owner`)
- set the owner once (`init_owner`)
- check that a caller is the owner (`require_owner`)
- hand ownership to a new account (`transfer_ownership`)

Privileged operations take the caller explicitly and call
``require_owner(caller)`` first, so a further role can be checked the same
way without changing call signatures.

Events:
    - "OwnershipTransferred" args: {"previous": bytes, "new": bytes}
"""
from __future__ import annotations

from typing import Optional

from pool_vm.stdlib import abi, events, storage

from pool_contracts.errors import InvalidAddress, Unauthorized

from . import OWNER_KEY

__all__ = [
    "get_owner",
    "init_owner",
    "require_owner",
    "transfer_ownership",
]


def get_owner() -> Optional[bytes]:
    """Return the current owner address, or None if not set."""
    v = storage.get(OWNER_KEY)
    return v if v is not None and len(v) > 0 else None


def init_owner(owner: bytes) -> None:
    """
    Set the first owner. Does not overwrite an owner that is already set.
    """
    abi.require(abi.is_address(owner), InvalidAddress, "owner must be a valid address")
    if get_owner() is None:
        storage.set(OWNER_KEY, bytes(owner))
        events.emit(b"OwnershipTransferred", {"previous": abi.zero_address(), "new": bytes(owner)})


def require_owner(caller: bytes) -> None:
    """Revert with Unauthorized unless `caller` equals the current owner."""
    owner = get_owner()
    if owner is None or owner != caller:
        abi.revert(Unauthorized)


def transfer_ownership(caller: bytes, new_owner: bytes) -> None:
    """
    Owner-only: transfer ownership to `new_owner`.

    Emits:
        - "OwnershipTransferred" with {"previous": <old>, "new": <new_owner>}
    """
    require_owner(caller)
    abi.require(abi.is_address(new_owner), InvalidAddress, "new owner must be a valid address")

    previous = get_owner() or abi.zero_address()
    storage.set(OWNER_KEY, bytes(new_owner))
    events.emit(b"OwnershipTransferred", {"previous": previous, "new": bytes(new_owner)})
